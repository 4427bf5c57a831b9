"""Pydantic data models."""

from svcman.models.app import (
    AppConfig,
    ConfigFile,
    ResourceLimits,
    RestartPolicy,
    ServiceDescriptor,
    SystemdSettings,
)
from svcman.models.status import ServiceState, ServiceStatus

__all__ = [
    "AppConfig",
    "ConfigFile",
    "ResourceLimits",
    "RestartPolicy",
    "ServiceDescriptor",
    "ServiceState",
    "ServiceStatus",
    "SystemdSettings",
]
