"""Parser for `launchctl list` output."""

from collections.abc import Callable

from svcman.models.status import ServiceState, ServiceStatus


class LaunchdStatusParser:
    """Finds a job's row in the full `launchctl list` table.

    Rows look like `PID  Status  Label`, with `-` in the PID column when the
    job is loaded but not running. A job missing from the listing is simply
    not loaded, which launchd treats as stopped.
    """

    def __init__(self, label_for: Callable[[str], str]) -> None:
        """Initialize the parser.

        Args:
            label_for: Maps a service id to its launchd label.
        """
        self._label_for = label_for

    def parse(self, service_id: str, output: str) -> ServiceStatus:
        """Parse `launchctl list` output for one service."""
        label = self._label_for(service_id)

        for line in output.splitlines():
            if label not in line:
                continue
            parts = line.split()
            if len(parts) < 3 or parts[2] != label:
                continue
            return self._parse_row(service_id, parts[0], parts[1])

        return ServiceStatus(name=service_id, state=ServiceState.INACTIVE)

    def _parse_row(self, service_id: str, pid_field: str, status_field: str) -> ServiceStatus:
        pid = int(pid_field) if pid_field.isdigit() else None

        try:
            status_code: int | None = int(status_field)
        except ValueError:
            status_code = None

        if pid is not None:
            return ServiceStatus(name=service_id, state=ServiceState.ACTIVE, pid=pid)
        if status_code == 0:
            return ServiceStatus(name=service_id, state=ServiceState.INACTIVE)
        return ServiceStatus(name=service_id, state=ServiceState.FAILED, exit_code=status_code)
