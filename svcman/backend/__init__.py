"""Native service manager backends.

Provides integration with system service managers:
- systemd on Linux
- launchd on macOS
"""

from svcman.backend.base import CommandResult, ServiceManager, run_command
from svcman.backend.platform import get_platform_name, get_service_manager, is_platform_supported
from svcman.logs import LogOptions

__all__ = [
    "CommandResult",
    "LogOptions",
    "ServiceManager",
    "get_platform_name",
    "get_service_manager",
    "is_platform_supported",
    "run_command",
]
