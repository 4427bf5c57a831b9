"""Service status model shared by every backend."""

from enum import Enum

from pydantic import BaseModel, Field


class ServiceState(str, Enum):
    """Lifecycle states a native service can be reported in."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    FAILED = "failed"
    ACTIVATING = "activating"
    DEACTIVATING = "deactivating"
    UNKNOWN = "unknown"


class ServiceStatus(BaseModel):
    """A point-in-time status snapshot for one service.

    Built fresh on every query and never cached.
    """

    name: str = Field(description="Service identifier (or app name for display)")
    state: ServiceState = Field(default=ServiceState.UNKNOWN)

    # Runtime details, only present when the backend reports them
    pid: int | None = None
    memory: float | None = Field(default=None, description="Resident memory in bytes")
    cpu: float | None = Field(default=None, description="CPU usage percentage")
    uptime: int | None = Field(default=None, ge=0, description="Uptime in seconds")
    restarts: int | None = None
    exit_code: int | None = None
    error: str | None = None
