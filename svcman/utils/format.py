"""Formatting of service status for display and JSON output."""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from svcman.models.app import ServiceDescriptor
from svcman.models.status import ServiceState, ServiceStatus

if TYPE_CHECKING:
    from svcman.batch import BatchSummary

_UNITS = ["B", "KB", "MB", "GB", "TB"]

# (indicator, label, style) per state
_STATE_STYLES: dict[ServiceState, tuple[str, str, str]] = {
    ServiceState.ACTIVE: ("●", "active", "green"),
    ServiceState.INACTIVE: ("○", "inactive", "bright_black"),
    ServiceState.FAILED: ("●", "failed", "red"),
    ServiceState.ACTIVATING: ("◐", "starting", "yellow"),
    ServiceState.DEACTIVATING: ("◑", "stopping", "yellow"),
    ServiceState.UNKNOWN: ("?", "unknown", "bright_black"),
}


def format_bytes(num: float) -> str:
    """Format a byte count as a human readable string.

    Examples:
        0 -> "0 B", 1536 -> "1.5 KB", 47395635.2 -> "45.2 MB"
    """
    if num <= 0:
        return "0 B"

    value = float(num)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {_UNITS[unit]}"


def format_duration(seconds: int) -> str:
    """Format a duration in seconds using its two largest units.

    Examples:
        45 -> "45s", 125 -> "2m 5s", 3700 -> "1h 1m", 90000 -> "1d 1h"
    """
    if seconds < 60:
        return f"{seconds}s"

    minutes, secs = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"

    hours, mins = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {mins}m"

    days, hrs = divmod(hours, 24)
    return f"{days}d {hrs}h"


def state_text(state: ServiceState) -> Text:
    """Get the colored indicator and label for a state."""
    indicator, label, style = _STATE_STYLES[state]
    return Text(f"{indicator} {label}", style=style)


def status_table(statuses: Sequence[ServiceStatus]) -> Table:
    """Build the status overview table."""
    table = Table(title="Services", title_justify="left")
    table.add_column("Service", style="cyan", min_width=20)
    table.add_column("Status", width=12)
    table.add_column("PID", justify="right", width=8)
    table.add_column("Memory", justify="right", width=10)
    table.add_column("Uptime", width=10)

    for status in statuses:
        table.add_row(
            status.name,
            state_text(status.state),
            str(status.pid) if status.pid is not None else "-",
            format_bytes(status.memory) if status.memory else "-",
            format_duration(status.uptime) if status.uptime else "-",
        )

    return table


def service_detail(status: ServiceStatus) -> Text:
    """Build the detailed view of a single service."""
    indicator, label, style = _STATE_STYLES[status.state]

    text = Text()
    text.append(f"{indicator} ", style=style)
    text.append(status.name, style="bold")
    text.append("\n   State: ")
    text.append(label, style=style)

    if status.pid is not None:
        text.append(f"\n   PID: {status.pid}")
    if status.memory:
        text.append(f"\n   Memory: {format_bytes(status.memory)}")
    if status.uptime:
        text.append(f"\n   Uptime: {format_duration(status.uptime)}")
    if status.restarts:
        text.append(f"\n   Restarts: {status.restarts}")
    if status.exit_code is not None:
        text.append("\n   Exit Code: ")
        text.append(str(status.exit_code), style="red")
    if status.error:
        text.append("\n   Error: ")
        text.append(status.error, style="red")

    return text


def status_json(statuses: Sequence[ServiceStatus]) -> dict[str, Any]:
    """Build the JSON document for `status --json`."""
    return {
        "services": [
            {
                "name": s.name,
                "state": s.state.value,
                "pid": s.pid,
                "memory": s.memory,
                "uptime": s.uptime,
                "restarts": s.restarts,
                "exitCode": s.exit_code,
                "error": s.error,
            }
            for s in statuses
        ],
        "summary": {
            "total": len(statuses),
            "active": sum(1 for s in statuses if s.state == ServiceState.ACTIVE),
            "inactive": sum(1 for s in statuses if s.state == ServiceState.INACTIVE),
            "failed": sum(1 for s in statuses if s.state == ServiceState.FAILED),
        },
    }


def app_config_json(descriptor: ServiceDescriptor) -> dict[str, Any]:
    """Build the JSON document for `start --dry-run --json`."""
    return {
        "name": descriptor.name,
        "serviceName": descriptor.service_id,
        "cwd": descriptor.cwd,
        "command": descriptor.command,
        "env": dict(descriptor.env),
        "envFile": descriptor.env_file,
        "user": descriptor.user,
        "group": descriptor.group,
        "description": descriptor.description,
        "restart": descriptor.restart.value,
        "restartSec": descriptor.restart_sec,
        "after": list(descriptor.after),
        "requires": list(descriptor.requires),
        "limits": descriptor.limits.model_dump(exclude_none=True),
    }


def batch_json(command: str, summary: "BatchSummary") -> dict[str, Any]:
    """Build the JSON document for a multi-service command."""
    return {
        "command": command,
        "success": summary.ok,
        "summary": {
            "total": summary.total,
            "succeeded": summary.succeeded,
            "failed": summary.failed,
            "skipped": summary.skipped,
        },
        "results": [
            {"name": r.name, "success": r.success, "skipped": r.skipped, "error": r.error}
            for r in summary.results
        ],
    }
