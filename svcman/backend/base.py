"""Base service manager interface."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from svcman.logs import LogOptions
from svcman.models.app import ServiceDescriptor
from svcman.models.status import ServiceStatus

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of a native command invocation."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        """Check if the command exited with status 0."""
        return self.returncode == 0


async def run_command(*args: str, timeout: float | None = None) -> CommandResult:
    """Run a native command and capture its output.

    Args:
        *args: Program and arguments.
        timeout: Seconds to wait before killing the command. None waits
            indefinitely.

    Returns:
        CommandResult with decoded stdout/stderr.

    Raises:
        OSError: If the program cannot be executed.
        TimeoutError: If the timeout expires.
    """
    logger.debug("Running: %s", " ".join(args))
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
    except (asyncio.TimeoutError, asyncio.CancelledError):
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise

    result = CommandResult(
        returncode=proc.returncode if proc.returncode is not None else 0,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )
    logger.debug("Exit code %d from %s", result.returncode, args[0])
    return result


class ServiceManager(ABC):
    """Abstract base class for native service managers.

    Implementations translate svcman operations into calls to the host's
    service manager. Callers pick one with `get_service_manager()` and only
    ever talk to this interface.
    """

    @abstractmethod
    def get_name(self) -> str:
        """Get the backend name (e.g. 'systemd', 'launchd')."""
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if the native control binary responds.

        Returns:
            True if the backend can be used. Never raises.
        """
        pass

    @abstractmethod
    async def init(self) -> None:
        """Create the directories the backend writes to."""
        pass

    @abstractmethod
    async def install(self, service_id: str, descriptor: ServiceDescriptor) -> None:
        """Write the native config for a service and register it.

        Safe to call repeatedly; an existing config is replaced.

        Args:
            service_id: Native service name.
            descriptor: Normalized app definition.
        """
        pass

    @abstractmethod
    async def start(self, service_id: str) -> None:
        """Start a service."""
        pass

    @abstractmethod
    async def stop(self, service_id: str) -> None:
        """Stop a service."""
        pass

    @abstractmethod
    async def restart(self, service_id: str) -> None:
        """Restart a service."""
        pass

    @abstractmethod
    async def get_status(self, service_id: str) -> ServiceStatus:
        """Get the current status of a service.

        Never raises; anything that cannot be determined yields state
        `unknown`.
        """
        pass

    async def get_all_statuses(self, service_ids: Sequence[str]) -> list[ServiceStatus]:
        """Get the status of several services concurrently.

        Returns:
            Statuses in the same order as `service_ids`.
        """
        return list(await asyncio.gather(*(self.get_status(sid) for sid in service_ids)))

    @abstractmethod
    async def is_active(self, service_id: str) -> bool:
        """Check if a service is running."""
        pass

    @abstractmethod
    async def is_enabled(self, service_id: str) -> bool:
        """Check if a service starts automatically."""
        pass

    def is_installed(self, service_id: str) -> bool:
        """Check if the native config for a service exists."""
        return self.config_path(service_id).exists()

    @abstractmethod
    def config_path(self, service_id: str) -> Path:
        """Get the path of the native config file for a service."""
        pass

    @abstractmethod
    async def remove(self, service_id: str) -> None:
        """Stop a service, unregister it and delete its native config."""
        pass

    @abstractmethod
    async def reload(self) -> None:
        """Make the service manager re-read its configuration."""
        pass

    @abstractmethod
    async def enable(self, service_id: str) -> None:
        """Enable a service to start automatically."""
        pass

    @abstractmethod
    async def disable(self, service_id: str) -> None:
        """Disable automatic start for a service."""
        pass

    @abstractmethod
    def log_command(self, service_id: str, options: LogOptions) -> list[str]:
        """Build the command that reads a service's logs."""
        pass

    def log_files(self, service_id: str) -> list[Path]:
        """Get flat log files owned by a service. Empty for journal-based backends."""
        return []

    @abstractmethod
    def logs(self, service_id: str, options: LogOptions) -> AsyncIterator[str]:
        """Read service logs.

        In follow mode the iterator runs until cancelled.

        Yields:
            Log lines.
        """
        pass

    @abstractmethod
    def generate_config(self, service_id: str, descriptor: ServiceDescriptor) -> str:
        """Render the native config for a service without touching disk."""
        pass
