"""Application config models for svcman.

`AppConfig` mirrors one entry of the `apps` mapping in svcman.yaml as the user
wrote it. `ServiceDescriptor` is the normalized, fully-resolved form handed to
the backends.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SERVICE_PREFIX = "svcman-"
DEFAULT_RESTART_SEC = 3
DEFAULT_AFTER = ["network.target"]


class RestartPolicy(str, Enum):
    """Restart policy values (systemd spelling)."""

    ALWAYS = "always"
    ON_FAILURE = "on-failure"
    ON_ABNORMAL = "on-abnormal"
    NEVER = "no"


def _coerce_restart(value: Any) -> Any:
    # YAML 1.1 loads a bare `no` as False
    if value is False or value == "never":
        return RestartPolicy.NEVER
    return value


def _coerce_env(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): "" if v is None else str(v) for k, v in value.items()}
    return value


class ResourceLimits(BaseModel):
    """Resource limits for a service. Absent means unlimited."""

    memory: float | None = Field(default=None, gt=0, description="Max memory in MB")
    cpu: float | None = Field(default=None, gt=0, description="CPU quota percentage (100 = 1 core)")
    nofile: int | None = Field(default=None, gt=0, description="Max open file descriptors")
    nproc: int | None = Field(default=None, gt=0, description="Max number of processes")

    model_config = ConfigDict(extra="forbid", frozen=True)


class AppDefaults(BaseModel):
    """Fields that may be shared by all apps via the `defaults` section."""

    env: dict[str, str] | None = None
    env_file: str | None = Field(default=None, alias="envFile")
    user: str | None = None
    group: str | None = None
    description: str | None = None
    restart: RestartPolicy | None = None
    restart_sec: float | None = Field(default=None, ge=0, alias="restartSec")
    after: list[str] | None = None
    requires: list[str] | None = None
    limits: ResourceLimits | None = None

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @field_validator("restart", mode="before")
    @classmethod
    def normalize_restart(cls, value: Any) -> Any:
        return _coerce_restart(value)

    @field_validator("env", mode="before")
    @classmethod
    def stringify_env(cls, value: Any) -> Any:
        return _coerce_env(value)


class AppConfig(AppDefaults):
    """A single app definition as written in svcman.yaml."""

    cwd: str = Field(min_length=1, description="Working directory, relative to the config file")
    command: str = Field(min_length=1, description="Command line to execute")

    @field_validator("command")
    @classmethod
    def check_command(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("command cannot be blank")
        return value


class SystemdSettings(BaseModel):
    """Global systemd settings."""

    unit_path: str | None = Field(default=None, alias="unitPath")
    prefix: str = Field(default=DEFAULT_SERVICE_PREFIX)
    user_mode: bool = Field(default=False, alias="userMode")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ConfigFile(BaseModel):
    """Top-level structure of svcman.yaml."""

    apps: dict[str, AppConfig]
    defaults: AppDefaults = Field(default_factory=AppDefaults)
    systemd: SystemdSettings = Field(default_factory=SystemdSettings)

    model_config = ConfigDict(extra="forbid")

    @field_validator("apps")
    @classmethod
    def check_apps(cls, value: dict[str, AppConfig]) -> dict[str, AppConfig]:
        if not value:
            raise ValueError("no apps defined")
        return value


class ServiceDescriptor(BaseModel):
    """Normalized app definition consumed by the service backends.

    Immutable once built by the config loader.
    """

    name: str = Field(description="App name as written in the config")
    service_id: str = Field(description="Native service name (prefix + app name)")

    cwd: str = Field(description="Absolute working directory")
    command: str
    env: dict[str, str] = Field(default_factory=dict)
    env_file: str | None = None
    user: str | None = None
    group: str | None = None
    description: str = ""
    restart: RestartPolicy = RestartPolicy.ALWAYS
    restart_sec: float = Field(default=DEFAULT_RESTART_SEC, ge=0)
    after: list[str] = Field(default_factory=lambda: list(DEFAULT_AFTER))
    requires: list[str] = Field(default_factory=list)
    limits: ResourceLimits = Field(default_factory=ResourceLimits)

    model_config = ConfigDict(frozen=True)
