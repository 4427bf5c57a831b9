"""Backend selection for the host operating system."""

import platform
from pathlib import Path

from svcman.backend.base import ServiceManager
from svcman.exceptions import UnsupportedPlatformError

SUPPORTED_SYSTEMS = ("Linux", "Darwin")

_DISPLAY_NAMES = {
    "Linux": "Linux",
    "Darwin": "macOS",
    "Windows": "Windows",
}


def get_service_manager(
    user_mode: bool = False,
    system: str | None = None,
    unit_dir: Path | None = None,
    command_timeout: float | None = None,
) -> ServiceManager:
    """Get the appropriate service manager for the current platform.

    Args:
        user_mode: Use the per-user systemd manager on Linux.
        system: Override `platform.system()`.
        unit_dir: Override the systemd unit directory.
        command_timeout: Seconds before a native command is abandoned.

    Returns:
        ServiceManager instance for the platform.

    Raises:
        UnsupportedPlatformError: If the platform is not supported.
    """
    system = system or platform.system()

    if not is_platform_supported(system):
        if system == "Windows":
            raise UnsupportedPlatformError(system, "Windows is not yet supported")
        raise UnsupportedPlatformError(system)

    if system == "Linux":
        from svcman.backend.systemd import SystemdBackend

        return SystemdBackend(user_mode=user_mode, unit_dir=unit_dir, command_timeout=command_timeout)

    from svcman.backend.launchd import LaunchdBackend

    return LaunchdBackend(command_timeout=command_timeout)


def is_platform_supported(system: str | None = None) -> bool:
    """Check if a backend exists for the platform."""
    return (system or platform.system()) in SUPPORTED_SYSTEMS


def get_platform_name(system: str | None = None) -> str:
    """Get a display name for the platform."""
    system = system or platform.system()
    return _DISPLAY_NAMES.get(system, system)
