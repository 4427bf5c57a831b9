"""launchd property list generation."""

import plistlib
from pathlib import Path
from typing import Any

from svcman.models.app import RestartPolicy, ServiceDescriptor


def split_command(command: str) -> list[str]:
    """Split a command line into program and arguments.

    Spaces separate tokens unless they appear inside quotes. Either quote
    character toggles the quoted state and is dropped from the token.

    Args:
        command: Command line as written in the config.

    Returns:
        List of non-empty tokens.
    """
    parts: list[str] = []
    current = ""
    in_quotes = False

    for char in command:
        if char in ('"', "'"):
            in_quotes = not in_quotes
        elif char == " " and not in_quotes:
            if current:
                parts.append(current)
                current = ""
        else:
            current += char

    if current:
        parts.append(current)

    return parts


def log_paths(service_id: str, log_dir: Path) -> tuple[Path, Path]:
    """Get the stdout and stderr log file paths for a service."""
    return log_dir / f"{service_id}.log", log_dir / f"{service_id}.error.log"


def build_plist(service_id: str, descriptor: ServiceDescriptor, label: str, log_dir: Path) -> dict[str, Any]:
    """Build the launchd job dictionary for a descriptor.

    Args:
        service_id: Native service name; names the log files.
        descriptor: Normalized app definition.
        label: launchd job label.
        log_dir: Directory for the job's stdout/stderr files.

    Returns:
        Ordered plist dictionary.
    """
    stdout_path, stderr_path = log_paths(service_id, log_dir)

    plist: dict[str, Any] = {
        "Label": label,
        "ProgramArguments": split_command(descriptor.command),
        "WorkingDirectory": descriptor.cwd,
        "RunAtLoad": True,
        "StandardOutPath": str(stdout_path),
        "StandardErrorPath": str(stderr_path),
    }

    if descriptor.env:
        plist["EnvironmentVariables"] = dict(descriptor.env)

    # on-abnormal has no launchd equivalent, so it gets no KeepAlive
    if descriptor.restart == RestartPolicy.ALWAYS:
        plist["KeepAlive"] = True
    elif descriptor.restart == RestartPolicy.ON_FAILURE:
        plist["KeepAlive"] = {"SuccessfulExit": False}

    if "KeepAlive" in plist:
        plist["ThrottleInterval"] = int(descriptor.restart_sec)

    limits: dict[str, int] = {}
    if descriptor.limits.memory is not None:
        limits["MemoryLimit"] = int(descriptor.limits.memory * 1024 * 1024)
    if descriptor.limits.nofile is not None:
        limits["NumberOfFiles"] = descriptor.limits.nofile
    if descriptor.limits.nproc is not None:
        limits["NumberOfProcesses"] = descriptor.limits.nproc
    if limits:
        plist["HardResourceLimits"] = limits

    if descriptor.user:
        plist["UserName"] = descriptor.user
    if descriptor.group:
        plist["GroupName"] = descriptor.group

    return plist


def generate_plist(service_id: str, descriptor: ServiceDescriptor, label: str, log_dir: Path) -> str:
    """Render a descriptor as launchd plist XML.

    Keys keep insertion order so the output is byte-identical for equal
    descriptors.

    Args:
        service_id: Native service name; names the log files.
        descriptor: Normalized app definition.
        label: launchd job label.
        log_dir: Directory for the job's stdout/stderr files.

    Returns:
        XML property list text.
    """
    plist = build_plist(service_id, descriptor, label, log_dir)
    return plistlib.dumps(plist, fmt=plistlib.FMT_XML, sort_keys=False).decode("utf-8")
