"""macOS launchd service manager."""

import asyncio
import logging
from collections.abc import AsyncIterator
from pathlib import Path

from svcman.backend.base import CommandResult, ServiceManager, run_command
from svcman.exceptions import LaunchdError, LogsUnavailableError, ServiceNotInstalledError
from svcman.generators.plist import generate_plist, log_paths
from svcman.logs import LogOptions, LogStreamer
from svcman.models.app import ServiceDescriptor
from svcman.models.status import ServiceState, ServiceStatus
from svcman.parsers.base import StatusParser
from svcman.parsers.launchd import LaunchdStatusParser

logger = logging.getLogger(__name__)

# Service identifier prefix
LABEL_PREFIX = "com.svcman"

# Paths
LAUNCH_AGENTS_DIR = Path.home() / "Library" / "LaunchAgents"
LOG_DIR = Path.home() / ".svcman" / "logs"

# Pause between unload and load when restarting
RESTART_DELAY = 0.5

NOT_LOADED_MESSAGE = "Could not find specified service"

DEFAULT_TAIL_LINES = 50


class LaunchdBackend(ServiceManager):
    """Manages services as per-user launch agents.

    launchd has no restart, reload or enable verbs: loading with `-w`
    enables a job, unloading with `-w` disables it, and plist changes are
    picked up on the next load.
    """

    def __init__(
        self,
        agent_dir: Path | None = None,
        log_dir: Path | None = None,
        command_timeout: float | None = None,
        streamer: LogStreamer | None = None,
        parser: StatusParser | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            agent_dir: Directory plists are written to.
            log_dir: Directory services write stdout/stderr logs to.
            command_timeout: Seconds before a launchctl call is abandoned.
            streamer: Log reader; a default one is created if omitted.
            parser: Status parser; defaults to the `launchctl list` parser.
        """
        self.agent_dir = agent_dir or LAUNCH_AGENTS_DIR
        self.log_dir = log_dir or LOG_DIR
        self.command_timeout = command_timeout
        self.restart_delay = RESTART_DELAY
        self.streamer = streamer or LogStreamer()
        self.parser = parser or LaunchdStatusParser(self.label)

    def get_name(self) -> str:
        return "launchd"

    def label(self, service_id: str) -> str:
        """Get the launchd label for a service."""
        return f"{LABEL_PREFIX}.{service_id}"

    def config_path(self, service_id: str) -> Path:
        return self.agent_dir / f"{self.label(service_id)}.plist"

    async def _launchctl(self, *args: str) -> CommandResult:
        return await run_command("launchctl", *args, timeout=self.command_timeout)

    def _require_plist(self, service_id: str) -> Path:
        path = self.config_path(service_id)
        if not path.exists():
            raise ServiceNotInstalledError(service_id, str(path))
        return path

    async def _is_loaded(self, service_id: str) -> bool:
        result = await self._launchctl("list", self.label(service_id))
        return result.ok

    async def _load(self, service_id: str, path: Path) -> None:
        result = await self._launchctl("load", "-w", str(path))
        if not result.ok:
            raise LaunchdError("load", service_id, result.stderr.strip() or "launchctl load failed")

    async def _unload(self, service_id: str, path: Path) -> None:
        result = await self._launchctl("unload", "-w", str(path))
        if result.ok:
            return
        if NOT_LOADED_MESSAGE in result.stderr:
            logger.debug("%s was not loaded", service_id)
            return
        raise LaunchdError("unload", service_id, result.stderr.strip() or "launchctl unload failed")

    async def is_available(self) -> bool:
        try:
            result = await self._launchctl("version")
        except (OSError, TimeoutError) as e:
            logger.debug("launchctl not available: %s", e)
            return False
        return result.ok

    async def init(self) -> None:
        self.agent_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def generate_config(self, service_id: str, descriptor: ServiceDescriptor) -> str:
        return generate_plist(service_id, descriptor, self.label(service_id), self.log_dir)

    async def install(self, service_id: str, descriptor: ServiceDescriptor) -> None:
        """Write the plist and (re)load it.

        Raises:
            LaunchdError: If launchctl refuses the plist.
        """
        await self.init()

        path = self.config_path(service_id)
        path.write_text(self.generate_config(service_id, descriptor))
        logger.debug("Wrote plist %s", path)

        if await self._is_loaded(service_id):
            await self._unload(service_id, path)
        await self._load(service_id, path)

    async def start(self, service_id: str) -> None:
        """Start a job, loading its plist first if needed.

        Raises:
            ServiceNotInstalledError: If the plist does not exist.
            LaunchdError: If launchctl fails.
        """
        path = self._require_plist(service_id)

        if await self._is_loaded(service_id):
            result = await self._launchctl("start", self.label(service_id))
            if not result.ok:
                raise LaunchdError("start", service_id, result.stderr.strip() or "launchctl start failed")
            return

        await self._load(service_id, path)

    async def stop(self, service_id: str) -> None:
        """Unload a job. A job that is not loaded counts as stopped.

        Raises:
            ServiceNotInstalledError: If the plist does not exist.
            LaunchdError: If launchctl fails for another reason.
        """
        path = self._require_plist(service_id)
        await self._unload(service_id, path)

    async def restart(self, service_id: str) -> None:
        await self.stop(service_id)
        await asyncio.sleep(self.restart_delay)
        await self.start(service_id)

    async def get_status(self, service_id: str) -> ServiceStatus:
        try:
            result = await self._launchctl("list")
            return self.parser.parse(service_id, result.stdout)
        except Exception as e:
            logger.debug("Status of %s unavailable: %s", service_id, e)
            return ServiceStatus(name=service_id, state=ServiceState.UNKNOWN, error=str(e) or None)

    async def is_active(self, service_id: str) -> bool:
        status = await self.get_status(service_id)
        return status.state == ServiceState.ACTIVE

    async def is_enabled(self, service_id: str) -> bool:
        return self.is_installed(service_id)

    async def remove(self, service_id: str) -> None:
        """Unload a job and delete its plist."""
        path = self.config_path(service_id)

        if path.exists():
            try:
                await self._unload(service_id, path)
            except LaunchdError as e:
                logger.debug("Ignoring unload failure for %s: %s", service_id, e.details)
            path.unlink(missing_ok=True)

        await self.reload()

    async def reload(self) -> None:
        logger.debug("launchd picks up plist changes on load; nothing to reload")

    async def enable(self, service_id: str) -> None:
        logger.debug("launchd enables %s when loading with -w", service_id)

    async def disable(self, service_id: str) -> None:
        logger.debug("launchd disables %s when unloading with -w", service_id)

    def log_files(self, service_id: str) -> list[Path]:
        return list(log_paths(service_id, self.log_dir))

    def log_command(self, service_id: str, options: LogOptions) -> list[str]:
        stdout_log, _ = log_paths(service_id, self.log_dir)
        lines = options.lines if options.lines is not None else DEFAULT_TAIL_LINES
        argv = ["tail", "-n", str(lines)]
        if options.follow:
            argv.append("-f")
        argv.append(str(stdout_log))
        return argv

    async def logs(self, service_id: str, options: LogOptions) -> AsyncIterator[str]:
        """Read the stdout log file of a service.

        Raises:
            LogsUnavailableError: If the service has not written a log yet.
        """
        stdout_log, _ = log_paths(service_id, self.log_dir)
        if not stdout_log.exists():
            raise LogsUnavailableError(service_id, f"Expected log file at: {stdout_log}")
        if options.since:
            logger.debug("Ignoring --since for %s; launchd logs are plain files", service_id)

        async for line in self.streamer.lines(self.log_command(service_id, options), name=service_id):
            yield line
