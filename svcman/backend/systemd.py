"""Linux systemd service manager."""

import logging
from collections.abc import AsyncIterator
from pathlib import Path

from svcman.backend.base import CommandResult, ServiceManager, run_command
from svcman.exceptions import SystemdError
from svcman.generators.unit import generate_unit_file
from svcman.logs import LogOptions, LogStreamer
from svcman.models.app import ServiceDescriptor
from svcman.models.status import ServiceState, ServiceStatus
from svcman.parsers.base import StatusParser
from svcman.parsers.systemd import SystemdStatusParser
from svcman.utils.permissions import check_permissions

logger = logging.getLogger(__name__)

# Paths
SYSTEM_UNIT_DIR = Path("/etc/systemd/system")
USER_UNIT_DIR = Path.home() / ".config" / "systemd" / "user"

SYSTEM_TARGET = "multi-user.target"
USER_TARGET = "default.target"


class SystemdBackend(ServiceManager):
    """Manages services through systemctl and reads logs with journalctl.

    In system mode unit files go to /etc/systemd/system and every mutating
    call requires root. In user mode they go to ~/.config/systemd/user and
    every command gets `--user`.
    """

    def __init__(
        self,
        user_mode: bool = False,
        unit_dir: Path | None = None,
        command_timeout: float | None = None,
        streamer: LogStreamer | None = None,
        parser: StatusParser | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            user_mode: Use the per-user systemd manager.
            unit_dir: Override the directory unit files are written to.
            command_timeout: Seconds before a systemctl call is abandoned.
            streamer: Log reader; a default one is created if omitted.
            parser: Status parser; defaults to the `systemctl status` parser.
        """
        self.user_mode = user_mode
        self.unit_dir = unit_dir or (USER_UNIT_DIR if user_mode else SYSTEM_UNIT_DIR)
        self.command_timeout = command_timeout
        self.streamer = streamer or LogStreamer()
        self.parser = parser or SystemdStatusParser()

    def get_name(self) -> str:
        return "systemd"

    def _base_args(self, program: str) -> list[str]:
        return [program, "--user"] if self.user_mode else [program]

    async def _run(self, *args: str) -> CommandResult:
        return await run_command(*self._base_args("systemctl"), *args, timeout=self.command_timeout)

    async def _systemctl(self, operation: str, service_id: str | None = None) -> CommandResult:
        """Run a systemctl verb and raise on failure.

        Raises:
            SystemdError: If systemctl exits non-zero.
        """
        args = [operation] if service_id is None else [operation, service_id]
        result = await self._run(*args)
        if not result.ok:
            raise SystemdError(operation, service_id or "daemon", result.stderr.strip())
        return result

    def _check(self, operation: str) -> None:
        check_permissions(operation, user_mode=self.user_mode)

    async def is_available(self) -> bool:
        try:
            result = await run_command("systemctl", "--version", timeout=self.command_timeout)
        except (OSError, TimeoutError) as e:
            logger.debug("systemctl not available: %s", e)
            return False
        return result.ok

    async def init(self) -> None:
        self._check("init")
        self.unit_dir.mkdir(parents=True, exist_ok=True)

    def config_path(self, service_id: str) -> Path:
        return self.unit_dir / f"{service_id}.service"

    def generate_config(self, service_id: str, descriptor: ServiceDescriptor) -> str:
        wanted_by = USER_TARGET if self.user_mode else SYSTEM_TARGET
        return generate_unit_file(descriptor, wanted_by=wanted_by)

    async def install(self, service_id: str, descriptor: ServiceDescriptor) -> None:
        """Write the unit file, reload systemd and enable the unit.

        Raises:
            PermissionDeniedError: In system mode without root.
            SystemdError: If reload or enable fails.
        """
        self._check("install")

        path = self.config_path(service_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.generate_config(service_id, descriptor))
        logger.debug("Wrote unit file %s", path)

        await self.reload()
        await self.enable(service_id)

    async def start(self, service_id: str) -> None:
        self._check("start")
        await self._systemctl("start", service_id)

    async def stop(self, service_id: str) -> None:
        self._check("stop")
        await self._systemctl("stop", service_id)

    async def restart(self, service_id: str) -> None:
        self._check("restart")
        await self._systemctl("restart", service_id)

    async def reload(self) -> None:
        self._check("daemon-reload")
        await self._systemctl("daemon-reload")

    async def enable(self, service_id: str) -> None:
        self._check("enable")
        await self._systemctl("enable", service_id)

    async def disable(self, service_id: str) -> None:
        self._check("disable")
        await self._systemctl("disable", service_id)

    async def get_status(self, service_id: str) -> ServiceStatus:
        # systemctl status exits 3 for stopped units; the output is still valid
        try:
            result = await self._run("status", service_id, "--no-pager")
            return self.parser.parse(service_id, result.stdout)
        except Exception as e:
            logger.debug("Status of %s unavailable: %s", service_id, e)
            return ServiceStatus(name=service_id, state=ServiceState.UNKNOWN, error=str(e) or None)

    async def is_active(self, service_id: str) -> bool:
        try:
            result = await self._run("is-active", service_id)
        except (OSError, TimeoutError) as e:
            logger.debug("is-active failed for %s: %s", service_id, e)
            return False
        return result.ok

    async def is_enabled(self, service_id: str) -> bool:
        try:
            result = await self._run("is-enabled", service_id)
        except (OSError, TimeoutError) as e:
            logger.debug("is-enabled failed for %s: %s", service_id, e)
            return False
        return result.ok

    async def remove(self, service_id: str) -> None:
        """Stop, disable and delete a unit, then reload systemd.

        Raises:
            PermissionDeniedError: In system mode without root.
        """
        self._check("remove")

        if await self.is_active(service_id):
            await self.stop(service_id)

        if await self.is_enabled(service_id):
            try:
                await self.disable(service_id)
            except SystemdError as e:
                logger.debug("Ignoring disable failure for %s: %s", service_id, e.details)

        self.config_path(service_id).unlink(missing_ok=True)
        await self.reload()

    def log_command(self, service_id: str, options: LogOptions) -> list[str]:
        argv = self._base_args("journalctl")
        argv += ["-u", service_id]
        if options.follow:
            argv.append("-f")
        if options.lines is not None:
            argv += ["-n", str(options.lines)]
        if options.since:
            argv += ["--since", options.since]
        argv.append("--no-pager")
        return argv

    async def logs(self, service_id: str, options: LogOptions) -> AsyncIterator[str]:
        async for line in self.streamer.lines(self.log_command(service_id, options), name=service_id):
            yield line
