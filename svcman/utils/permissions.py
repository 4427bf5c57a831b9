"""Privilege checks for operations that touch system-wide service config."""

import os

from svcman.exceptions import PermissionDeniedError


def is_root() -> bool:
    """Check if the process runs with an effective uid of 0."""
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def check_permissions(operation: str, user_mode: bool = False) -> None:
    """Ensure the process may perform a mutating service operation.

    User-mode services live under the invoking user's home, so only system
    mode requires root.

    Args:
        operation: Name of the operation, used in the error message.
        user_mode: Whether the operation targets the per-user manager.

    Raises:
        PermissionDeniedError: If system mode is used without root.
    """
    if user_mode or is_root():
        return
    raise PermissionDeniedError(operation)
