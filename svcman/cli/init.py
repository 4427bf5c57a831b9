"""Init command for svcman CLI."""

from pathlib import Path

import click

from svcman.cli.context import get_output
from svcman.exceptions import CommandError
from svcman.services.config import CONFIG_NAMES
from svcman.services.template import CONFIG_TEMPLATE, CONFIG_TEMPLATE_MINIMAL


@click.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config")
@click.option("--minimal", is_flag=True, help="Write a config without comments")
@click.pass_context
def init(ctx: click.Context, force: bool, minimal: bool) -> None:
    """Create a svcman.yaml in the current directory."""
    output = get_output(ctx)
    config_path: Path = ctx.obj.get("config_path") or Path.cwd() / CONFIG_NAMES[0]

    if config_path.exists() and not force:
        raise CommandError(
            f"Config already exists: {config_path}",
            "Use --force to overwrite it",
        )

    config_path.write_text(CONFIG_TEMPLATE_MINIMAL if minimal else CONFIG_TEMPLATE, encoding="utf-8")
    output.success(f"Created {config_path}")
    output.print("\nNext steps:")
    output.print(f"  1. Edit {config_path.name} to define your apps")
    output.print("  2. Run: svcman start --dry-run")
    output.print("  3. Run: svcman start")
