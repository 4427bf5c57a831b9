"""Configuration services."""

from svcman.services.config import Config, ConfigLoader, load_config

__all__ = ["Config", "ConfigLoader", "load_config"]
