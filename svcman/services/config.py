"""Config file discovery, validation and normalization.

svcman reads `svcman.yaml` (or `svcman.yml`), found by walking up from the
current directory. Each app is validated with the pydantic models in
`svcman.models.app`, merged with the `defaults` section and turned into an
immutable `ServiceDescriptor`.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from svcman.batch import validate_service_names
from svcman.exceptions import ConfigError
from svcman.models.app import (
    AppConfig,
    AppDefaults,
    ConfigFile,
    RestartPolicy,
    ServiceDescriptor,
    SystemdSettings,
)

logger = logging.getLogger(__name__)

CONFIG_NAMES = ["svcman.yaml", "svcman.yml"]

# Fields an app inherits from `defaults` when it does not set them itself
_INHERITED_FIELDS = list(AppDefaults.model_fields)

_FIELD_HINTS = {
    "cwd": "'cwd' must be a path to the working directory",
    "command": "'command' must be a non-empty string (e.g. 'python -m app')",
    "env": "Environment variables should be key-value pairs",
    "restart": "Valid values: " + ", ".join(p.value for p in RestartPolicy) + " (or never)",
    "restart_sec": "Specify the restart delay in seconds",
    "restartSec": "Specify the restart delay in seconds",
    "user": "Specify the unix user to run as",
    "group": "Specify the unix group to run as",
}


@dataclass
class Config:
    """A loaded and normalized svcman config."""

    path: Path
    apps: dict[str, ServiceDescriptor] = field(default_factory=dict)
    systemd: SystemdSettings = field(default_factory=SystemdSettings)

    @property
    def config_dir(self) -> Path:
        """Get the directory containing the config file."""
        return self.path.parent

    @property
    def unit_dir(self) -> Path | None:
        """Get the configured systemd unit directory, if overridden."""
        if not self.systemd.unit_path:
            return None
        return _resolve(self.config_dir, self.systemd.unit_path)

    def get_app(self, name: str) -> ServiceDescriptor:
        """Get the descriptor for an app.

        Raises:
            ServiceNotFoundError: If the app is not defined.
        """
        validate_service_names([name], self.apps)
        return self.apps[name]

    def select(self, names: list[str] | tuple[str, ...]) -> list[tuple[str, ServiceDescriptor]]:
        """Get `(name, descriptor)` pairs for the given names, or all apps if empty.

        Raises:
            ServiceNotFoundError: For the first unknown name.
        """
        if not names:
            return list(self.apps.items())

        validate_service_names(names, self.apps)
        return [(name, self.apps[name]) for name in names]


def _resolve(base: Path, value: str) -> Path:
    return (base / Path(value).expanduser()).resolve()


def _format_location(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def _validation_error(error: ValidationError) -> ConfigError:
    """Convert the first pydantic error into a ConfigError naming the field."""
    first = error.errors()[0]
    loc = tuple(first.get("loc", ()))
    message = first.get("msg", "invalid value")
    field_name = str(loc[-1]) if loc else ""

    if len(loc) >= 2 and loc[0] == "apps":
        app_name = loc[1]
        if len(loc) == 2:
            return ConfigError(
                f"Invalid config for app '{app_name}': expected a mapping",
                "Each app must be a mapping with 'cwd' and 'command' keys",
            )
        return ConfigError(
            f"Invalid config for app '{app_name}': {_format_location(loc[2:])}: {message}",
            _FIELD_HINTS.get(field_name),
        )

    if len(loc) >= 2 and loc[0] == "defaults" and field_name in ("cwd", "command"):
        return ConfigError(
            f"Invalid config: '{field_name}' cannot be in defaults",
            f"Each app must specify its own {field_name}",
        )

    if loc == ("apps",):
        return ConfigError(
            f"Invalid config: apps: {message}",
            "Define at least one app under 'apps'",
        )

    return ConfigError(f"Invalid config: {_format_location(loc)}: {message}", _FIELD_HINTS.get(field_name))


class ConfigLoader:
    """Finds, parses and normalizes svcman config files."""

    def __init__(self, start_dir: Path | None = None) -> None:
        """Initialize the loader.

        Args:
            start_dir: Directory discovery starts from. Defaults to the
                current directory.
        """
        self.start_dir = start_dir

    def find(self) -> Path | None:
        """Walk up from the start directory looking for a config file.

        Returns:
            Path to the config file, or None if none exists up to the root.
        """
        path = (self.start_dir or Path.cwd()).resolve()
        while True:
            for name in CONFIG_NAMES:
                candidate = path / name
                if candidate.is_file():
                    return candidate
            if path == path.parent:
                return None
            path = path.parent

    def load(self, path: Path | None = None) -> Config:
        """Load and normalize a config file.

        Args:
            path: Explicit config file; discovered if omitted.

        Returns:
            Normalized config.

        Raises:
            ConfigError: If no config exists or it is invalid.
        """
        if path is None:
            path = self.find()
            if path is None:
                raise ConfigError(
                    "No svcman.yaml found",
                    'Run "svcman init" to create a configuration file',
                )
        elif not path.is_file():
            raise ConfigError(f"Config file not found: {path}")

        path = path.resolve()
        logger.debug("Loading config from %s", path)
        raw = self._read(path)
        return self.normalize(self.validate(raw), path)

    def _read(self, path: Path) -> Any:
        try:
            with open(path, encoding="utf-8") as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config: {e}", f"Check the YAML syntax in {path}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config: {e}") from e

    def validate(self, raw: Any) -> ConfigFile:
        """Validate parsed YAML against the config schema.

        Raises:
            ConfigError: Naming the offending app and field.
        """
        if not isinstance(raw, dict):
            raise ConfigError(
                "Invalid config: expected a mapping",
                "The config must be a YAML mapping with an 'apps' key",
            )
        try:
            return ConfigFile.model_validate(raw)
        except ValidationError as e:
            raise _validation_error(e) from e

    def normalize(self, config: ConfigFile, path: Path) -> Config:
        """Merge defaults, resolve paths and derive service ids."""
        config_dir = path.parent
        prefix = config.systemd.prefix

        apps = {
            name: self._normalize_app(name, app, config.defaults, config_dir, prefix)
            for name, app in config.apps.items()
        }
        return Config(path=path, apps=apps, systemd=config.systemd)

    def _normalize_app(
        self,
        name: str,
        app: AppConfig,
        defaults: AppDefaults,
        config_dir: Path,
        prefix: str,
    ) -> ServiceDescriptor:
        merged: dict[str, Any] = {}
        for key in _INHERITED_FIELDS:
            value = getattr(app, key)
            if value is None:
                value = getattr(defaults, key)
            if value is not None:
                merged[key] = value

        if "env_file" in merged:
            merged["env_file"] = str(_resolve(config_dir, merged["env_file"]))
        merged.setdefault("description", f"svcman service: {name}")

        return ServiceDescriptor(
            name=name,
            service_id=f"{prefix}{name}",
            cwd=str(_resolve(config_dir, app.cwd)),
            command=app.command,
            **merged,
        )


def load_config(path: Path | None = None, start_dir: Path | None = None) -> Config:
    """Load the svcman config.

    Args:
        path: Explicit config file.
        start_dir: Where discovery starts when `path` is omitted.
    """
    return ConfigLoader(start_dir).load(path)
