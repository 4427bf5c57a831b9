"""Parser for `systemctl status` output."""

import logging
import re
from collections.abc import Callable
from datetime import datetime, timezone

import dateparser

from svcman.models.status import ServiceState, ServiceStatus

logger = logging.getLogger(__name__)

# First match wins. "deactivating" contains "activating", so it goes first
_STATE_PATTERNS: list[tuple[str, ServiceState]] = [
    ("active (running)", ServiceState.ACTIVE),
    ("inactive", ServiceState.INACTIVE),
    ("failed", ServiceState.FAILED),
    ("deactivating", ServiceState.DEACTIVATING),
    ("activating", ServiceState.ACTIVATING),
]

_SINCE_RE = re.compile(r"since ([^;]+);")
_PID_RE = re.compile(r"Main PID:\s*(\d+)")
_EXIT_STATUS_RE = re.compile(r"status=(\d+)")
_MEMORY_RE = re.compile(r"Memory:\s*([\d.]+)([A-Za-z]?)")

_UTC_NAMES = {"UTC", "GMT"}

_MEMORY_UNITS = {
    "K": 1024,
    "M": 1024 * 1024,
    "G": 1024 * 1024 * 1024,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def classify_active_line(line: str) -> ServiceState:
    """Map the text of an `Active:` line to a ServiceState."""
    for needle, state in _STATE_PATTERNS:
        if needle in line:
            return state
    return ServiceState.UNKNOWN


def parse_timestamp(value: str) -> datetime | None:
    """Parse a systemd timestamp such as `Mon 2024-01-01 00:00:00 UTC`.

    Returns:
        A timezone-aware datetime, or None if the text is not a timestamp.
    """
    value = value.strip()

    # systemd's own format, the common case
    parts = value.split()
    if len(parts) == 4 and parts[3] in _UTC_NAMES:
        try:
            parsed = datetime.strptime(" ".join(parts[1:3]), "%Y-%m-%d %H:%M:%S")
            return parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            pass

    try:
        parsed = dateparser.parse(value, settings={"RETURN_AS_TIMEZONE_AWARE": True})
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug("Unparsable timestamp %r: %s", value, e)
        return None
    if parsed is None:
        logger.debug("Unparsable timestamp %r", value)
    elif parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_memory(line: str) -> float | None:
    """Convert a `Memory: 45.2M` line to bytes.

    Unknown unit letters pass the raw number through.
    """
    match = _MEMORY_RE.search(line)
    if not match:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    return value * _MEMORY_UNITS.get(match.group(2), 1)


class SystemdStatusParser:
    """Best-effort parser for the human-readable `systemctl status` format."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        """Initialize the parser.

        Args:
            clock: Returns the current time; uptime is measured against it.
        """
        self._clock = clock

    def parse(self, service_id: str, output: str) -> ServiceStatus:
        """Parse `systemctl status <id>` output.

        Args:
            service_id: Service the output belongs to.
            output: Raw stdout of the status command.

        Returns:
            ServiceStatus; fields that could not be read are left unset.
        """
        state = ServiceState.UNKNOWN
        pid: int | None = None
        memory: float | None = None
        uptime: int | None = None
        exit_code: int | None = None

        for raw_line in output.splitlines():
            line = raw_line.strip()

            if line.startswith("Active:"):
                state = classify_active_line(line)
                since_match = _SINCE_RE.search(line)
                if since_match:
                    since = parse_timestamp(since_match.group(1))
                    if since is not None:
                        elapsed = (self._clock() - since).total_seconds()
                        uptime = max(0, int(elapsed))

            elif line.startswith("Main PID:"):
                pid_match = _PID_RE.search(line)
                if pid_match:
                    pid = int(pid_match.group(1))
                exit_match = _EXIT_STATUS_RE.search(line)
                if exit_match:
                    exit_code = int(exit_match.group(1))

            elif line.startswith("Memory:"):
                memory = parse_memory(line)

        return ServiceStatus(
            name=service_id,
            state=state,
            pid=pid,
            memory=memory,
            uptime=uptime,
            exit_code=exit_code,
        )
