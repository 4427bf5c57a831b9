"""Custom exceptions for svcman."""


class SvcmanError(Exception):
    """Base exception for svcman errors.

    Every error carries a one-line message, an optional remediation hint and
    the process exit code the CLI should use when it is not handled.
    """

    exit_code = 1

    def __init__(self, message: str, hint: str | None = None, exit_code: int | None = None) -> None:
        self.message = message
        self.hint = hint
        if exit_code is not None:
            self.exit_code = exit_code
        super().__init__(message)


class ConfigError(SvcmanError):
    """Raised when the configuration file is missing or invalid."""

    pass


class PermissionDeniedError(SvcmanError):
    """Raised when a native operation needs elevated privileges."""

    exit_code = 126

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Permission denied for {operation}",
            "Try running with sudo or set 'systemd.user_mode: true' in svcman.yaml",
        )


class NativeCommandError(SvcmanError):
    """Raised when a native control command exits non-zero."""

    backend = "native"

    def __init__(self, operation: str, service: str, details: str | None = None) -> None:
        self.operation = operation
        self.service = service
        self.details = details or ""
        super().__init__(
            f"{self.backend} {operation} failed for {service}",
            self.details or None,
        )


class SystemdError(NativeCommandError):
    """Raised when a systemctl/journalctl invocation fails."""

    backend = "systemd"


class LaunchdError(NativeCommandError):
    """Raised when a launchctl invocation fails."""

    backend = "launchd"


class ServiceNotFoundError(SvcmanError):
    """Raised when a service name is not defined in the config."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        if available:
            hint = f"Available services: {', '.join(available)}"
        else:
            hint = "No services defined in config"
        super().__init__(f'Service "{name}" not found in config', hint)


class ServiceNotInstalledError(SvcmanError):
    """Raised when the native artifact for a service does not exist."""

    def __init__(self, service_id: str, path: str) -> None:
        self.service_id = service_id
        self.path = path
        super().__init__(
            f"Service {service_id} is not installed",
            f"Expected service file at: {path}",
        )


class UnsupportedPlatformError(SvcmanError):
    """Raised when no backend exists for the host operating system."""

    exit_code = 2

    def __init__(self, platform: str, message: str | None = None) -> None:
        self.platform = platform
        super().__init__(
            message or f"Unsupported platform: {platform}",
            "svcman currently supports Linux (systemd) and macOS (launchd)",
        )


class BackendUnavailableError(SvcmanError):
    """Raised when the native service manager does not respond."""

    def __init__(self, backend: str, platform: str) -> None:
        self.backend = backend
        self.platform = platform
        super().__init__(
            f"{backend} is not available",
            f"svcman requires {backend} on {platform}",
        )


class LogsUnavailableError(SvcmanError):
    """Raised when logs for a service cannot be read."""

    def __init__(self, service: str, details: str | None = None) -> None:
        self.service = service
        super().__init__(f"Could not read logs for {service}", details or None)


class CommandError(SvcmanError):
    """Raised when a CLI command is used incorrectly."""

    def __init__(self, message: str, usage: str | None = None) -> None:
        super().__init__(message, usage)
