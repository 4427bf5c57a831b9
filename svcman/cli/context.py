"""Shared state for svcman CLI commands."""

import asyncio
import logging
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import click

from svcman.backend.base import ServiceManager
from svcman.backend.platform import get_platform_name, get_service_manager
from svcman.exceptions import BackendUnavailableError
from svcman.services.config import Config, load_config
from svcman.utils.output import Output, OutputConfig

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(debug: bool) -> None:
    """Send library logs to stderr; debug level when requested."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        force=True,
    )


def get_output(ctx: click.Context) -> Output:
    """Get the output writer for the current invocation."""
    obj = ctx.ensure_object(dict)
    if "output" not in obj:
        obj["output"] = Output(OutputConfig.from_env())
    return obj["output"]


def get_config(ctx: click.Context) -> Config:
    """Load the config once per invocation.

    Raises:
        ConfigError: If no config is found or it is invalid.
    """
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        config_path: Path | None = obj.get("config_path")
        obj["config"] = load_config(config_path)
    return obj["config"]


def get_manager(ctx: click.Context) -> ServiceManager:
    """Get the backend for this host, configured from the loaded config.

    The backend is checked once per invocation before any command uses it.

    Raises:
        UnsupportedPlatformError: If the host OS has no backend.
        BackendUnavailableError: If the native service manager does not respond.
    """
    obj = ctx.ensure_object(dict)
    if "manager" not in obj:
        config = get_config(ctx)
        obj["manager"] = get_service_manager(
            user_mode=config.systemd.user_mode,
            unit_dir=config.unit_dir,
        )

    manager: ServiceManager = obj["manager"]
    if not obj.get("manager_available"):
        if not run(manager.is_available()):
            raise BackendUnavailableError(manager.get_name(), get_platform_name())
        obj["manager_available"] = True
    return manager


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)
