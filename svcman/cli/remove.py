"""Remove command for svcman CLI."""

import click

from svcman.cli.context import get_config, get_manager, get_output, run
from svcman.exceptions import CommandError


@click.command()
@click.argument("name")
@click.option("--force", "-f", is_flag=True, help="Confirm removal")
@click.pass_context
def remove(ctx: click.Context, name: str, force: bool) -> None:
    """Stop a service and delete its native config.

    The app stays in svcman.yaml; `svcman start NAME` installs it again.
    """
    config = get_config(ctx)
    output = get_output(ctx)
    app = config.get_app(name)
    manager = get_manager(ctx)

    if not manager.is_installed(app.service_id):
        output.warning(f"Service {name} is not installed")
        return

    if not force:
        output.warning(f"This will remove the {manager.get_name()} config for {name}")
        output.dim(f"  {manager.config_path(app.service_id)}")
        raise CommandError("Confirmation required", "Run with --force to confirm removal")

    output.step(f"Removing {app.service_id}...")
    run(manager.remove(app.service_id))
    output.success(f"Service {name} removed")
