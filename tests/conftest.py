"""Pytest fixtures for svcman tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from svcman.backend.base import ServiceManager
from svcman.models.app import ServiceDescriptor
from svcman.models.status import ServiceState, ServiceStatus

SAMPLE_CONFIG = """\
apps:
  api:
    cwd: ./api
    command: python -m api --port 8080
    env:
      PORT: 8080
  worker:
    cwd: ./worker
    command: python -m worker
defaults:
  restart: on-failure
  restart_sec: 5
systemd:
  prefix: test-
"""


@pytest.fixture
def make_descriptor() -> Callable[..., ServiceDescriptor]:
    """Factory for service descriptors.

    Returns:
        Callable building a descriptor for an app name, with overrides.
    """

    def factory(name: str = "api", **overrides: Any) -> ServiceDescriptor:
        fields: dict[str, Any] = {
            "name": name,
            "service_id": f"svcman-{name}",
            "cwd": f"/srv/{name}",
            "command": "python -m app",
            "description": f"Test {name} service",
        }
        fields.update(overrides)
        return ServiceDescriptor(**fields)

    return factory


@pytest.fixture
def descriptor(make_descriptor: Callable[..., ServiceDescriptor]) -> ServiceDescriptor:
    """A plain descriptor for the `api` app."""
    return make_descriptor()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a sample svcman.yaml.

    Returns:
        Path to the config file.
    """
    path = tmp_path / "svcman.yaml"
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def mock_manager() -> MagicMock:
    """A ServiceManager whose every operation succeeds and reports `active`."""
    manager = MagicMock(spec=ServiceManager)
    manager.get_name.return_value = "mock"
    manager.generate_config.return_value = "[Unit]\nDescription=mock\n"
    manager.config_path.side_effect = lambda sid: Path("/tmp") / f"{sid}.service"
    manager.is_installed.return_value = True
    manager.log_files.return_value = []

    for method in ("install", "start", "stop", "restart", "remove", "reload", "enable", "disable", "init"):
        setattr(manager, method, AsyncMock(return_value=None))
    manager.is_available = AsyncMock(return_value=True)
    manager.is_active = AsyncMock(return_value=True)
    manager.get_status = AsyncMock(
        side_effect=lambda sid: ServiceStatus(name=sid, state=ServiceState.ACTIVE, pid=4242)
    )

    async def all_statuses(service_ids: list[str]) -> list[ServiceStatus]:
        return [await manager.get_status(sid) for sid in service_ids]

    manager.get_all_statuses = AsyncMock(side_effect=all_statuses)
    return manager
