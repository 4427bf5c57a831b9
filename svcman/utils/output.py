"""Terminal output helpers."""

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.text import Text

from svcman.logs import LogLine

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class OutputConfig:
    """Presentation settings resolved once from the environment.

    Attributes:
        color: True forces color, False disables it, None lets rich detect
            a terminal.
        debug: Whether debug logging is enabled.
    """

    color: bool | None = None
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "OutputConfig":
        """Build the config from NO_COLOR, FORCE_COLOR and SVCMAN_DEBUG."""
        env = os.environ if environ is None else environ

        color: bool | None = None
        if "NO_COLOR" in env:
            color = False
        elif "FORCE_COLOR" in env:
            color = True

        debug = env.get("SVCMAN_DEBUG", "").strip().lower() in _TRUTHY
        return cls(color=color, debug=debug)


class Output:
    """Writes styled messages to the terminal."""

    def __init__(self, config: OutputConfig | None = None, console: Console | None = None) -> None:
        self.config = config or OutputConfig()
        self.console = console or Console(
            no_color=self.config.color is False,
            force_terminal=True if self.config.color else None,
            highlight=False,
        )

    def error(self, msg: str, hint: str | None = None) -> None:
        """Print an error message."""
        self.console.print(f"[red]Error:[/red] {msg}")
        if hint:
            self.console.print(f"[dim]{hint}[/dim]")

    def warning(self, msg: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]Warning:[/yellow] {msg}")

    def info(self, msg: str) -> None:
        """Print an info message."""
        self.console.print(f"[blue]ℹ[/blue] {msg}")

    def success(self, msg: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {msg}")

    def step(self, msg: str) -> None:
        """Print a progress message."""
        self.console.print(f"[cyan]→[/cyan] {msg}")

    def dim(self, msg: str) -> None:
        """Print a secondary message."""
        self.console.print(f"[dim]{msg}[/dim]")

    def print(self, *objects: Any, **kwargs: Any) -> None:
        self.console.print(*objects, **kwargs)

    def json(self, data: Any) -> None:
        """Print data as indented JSON without markup or highlighting."""
        self.console.out(json.dumps(data, indent=2), highlight=False)

    def raw(self, text: str) -> None:
        """Print text verbatim."""
        self.console.out(text, highlight=False)

    def log_line(self, line: LogLine, width: int = 0) -> None:
        """Print a multiplexed log line with its colored service prefix."""
        prefix = Text(f"{line.service.ljust(width)} |", style=line.color)
        self.console.print(Text.assemble(prefix, " ", line.text), soft_wrap=True)
