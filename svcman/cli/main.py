"""Main CLI entry point for svcman."""

import sys
from pathlib import Path

import click

from svcman.cli.context import configure_logging
from svcman.cli.init import init
from svcman.cli.lifecycle import restart, start, stop
from svcman.cli.logs import logs
from svcman.cli.remove import remove
from svcman.cli.status import status
from svcman.exceptions import SvcmanError
from svcman.utils.output import Output, OutputConfig


@click.group()
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="Path to svcman.yaml")
@click.option("--debug/--no-debug", default=None, help="Show debug information")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, debug: bool | None) -> None:
    """svcman - run apps as native OS services.

    Apps defined in svcman.yaml are installed as systemd units on Linux and
    launch agents on macOS. svcman never supervises processes itself.
    """
    ctx.ensure_object(dict)
    output_config = OutputConfig.from_env()
    if debug is not None:
        output_config = OutputConfig(color=output_config.color, debug=debug)

    ctx.obj.setdefault("config_path", config_path)
    ctx.obj.setdefault("debug", output_config.debug)
    ctx.obj.setdefault("output", Output(output_config))
    configure_logging(ctx.obj["debug"])


@cli.command()
@click.pass_context
def help(ctx: click.Context) -> None:
    """Show this help message."""
    click.echo(ctx.parent.get_help())


# Register commands
cli.add_command(init)
cli.add_command(start)
cli.add_command(stop)
cli.add_command(restart)
cli.add_command(status)
cli.add_command(logs)
cli.add_command(remove)


def main() -> None:
    """Main entry point with error handling."""
    ctx_obj: dict = {}
    try:
        cli(obj=ctx_obj)
    except SvcmanError as e:
        output = ctx_obj.get("output") or Output(OutputConfig.from_env())
        output.error(e.message, e.hint)
        sys.exit(e.exit_code)
    except Exception as e:
        if ctx_obj.get("debug") or "--debug" in sys.argv:
            raise
        output = ctx_obj.get("output") or Output(OutputConfig.from_env())
        output.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
