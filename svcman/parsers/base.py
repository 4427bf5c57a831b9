"""Status parser interface."""

from typing import Protocol

from svcman.models.status import ServiceStatus


class StatusParser(Protocol):
    """Turns native status command output into a ServiceStatus.

    Implementations never raise: anything they cannot read is left unset, and
    a state they cannot classify is reported as `unknown`.
    """

    def parse(self, service_id: str, output: str) -> ServiceStatus:
        """Parse command output for one service."""
        ...
