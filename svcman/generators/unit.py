"""systemd unit file generation."""

from svcman.models.app import ServiceDescriptor

# Ordered (key, value) pairs for one unit file section
Section = list[tuple[str, str]]


def _format_number(value: float) -> str:
    """Render integral floats without a trailing `.0`."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_environment(env: dict[str, str]) -> list[str]:
    """Format environment variables as systemd `Environment=` values.

    Args:
        env: Variable mapping.

    Returns:
        One `KEY="value"` string per variable, with double quotes escaped.
    """
    entries = []
    for key, value in env.items():
        escaped = value.replace('"', '\\"')
        entries.append(f'{key}="{escaped}"')
    return entries


def build_unit(descriptor: ServiceDescriptor, wanted_by: str = "multi-user.target") -> dict[str, Section]:
    """Build the unit file sections for a descriptor.

    Optional keys only appear when the descriptor sets them.

    Args:
        descriptor: Normalized app definition.
        wanted_by: Target the service is installed into.

    Returns:
        Mapping of section name to ordered key/value pairs.
    """
    unit: Section = [("Description", descriptor.description)]
    if descriptor.after:
        unit.append(("After", " ".join(descriptor.after)))
    if descriptor.requires:
        unit.append(("Requires", " ".join(descriptor.requires)))

    service: Section = [
        ("Type", "simple"),
        ("WorkingDirectory", descriptor.cwd),
        ("ExecStart", descriptor.command),
        ("Restart", descriptor.restart.value),
        ("RestartSec", _format_number(descriptor.restart_sec)),
    ]
    for entry in format_environment(descriptor.env):
        service.append(("Environment", entry))
    if descriptor.env_file:
        service.append(("EnvironmentFile", descriptor.env_file))
    service.append(("StandardOutput", "journal"))
    service.append(("StandardError", "journal"))
    if descriptor.user:
        service.append(("User", descriptor.user))
    if descriptor.group:
        service.append(("Group", descriptor.group))

    limits = descriptor.limits
    if limits.memory is not None:
        service.append(("MemoryMax", f"{_format_number(limits.memory)}M"))
    if limits.cpu is not None:
        service.append(("CPUQuota", f"{_format_number(limits.cpu)}%"))
    if limits.nofile is not None:
        service.append(("LimitNOFILE", str(limits.nofile)))
    if limits.nproc is not None:
        service.append(("LimitNPROC", str(limits.nproc)))

    install: Section = [("WantedBy", wanted_by)]

    return {"Unit": unit, "Service": service, "Install": install}


def serialize_unit(sections: dict[str, Section]) -> str:
    """Serialize unit sections to INI-style text."""
    lines: list[str] = []
    for name, entries in sections.items():
        lines.append(f"[{name}]")
        lines.extend(f"{key}={value}" for key, value in entries)
        lines.append("")
    return "\n".join(lines)


def generate_unit_file(descriptor: ServiceDescriptor, wanted_by: str = "multi-user.target") -> str:
    """Generate systemd unit file content for a descriptor.

    The output is deterministic: the same descriptor always renders to the
    same text.

    Args:
        descriptor: Normalized app definition.
        wanted_by: Install target (`default.target` for user-mode systemd).

    Returns:
        Unit file text.
    """
    return serialize_unit(build_unit(descriptor, wanted_by))
