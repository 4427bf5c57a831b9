"""Status command for svcman CLI."""

import click

from svcman.cli.context import get_config, get_manager, get_output, run
from svcman.utils.format import service_detail, status_json, status_table


@click.command()
@click.argument("name", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status(ctx: click.Context, name: str | None, as_json: bool) -> None:
    """Show service status.

    Without NAME a table of every app is shown; with NAME, a detailed view
    of that app.
    """
    config = get_config(ctx)
    output = get_output(ctx)

    if name:
        app = config.get_app(name)
        manager = get_manager(ctx)
        result = run(manager.get_status(app.service_id))
        result = result.model_copy(update={"name": name})

        if as_json:
            output.json(status_json([result]))
        else:
            output.print(service_detail(result))
        return

    apps = list(config.apps.items())
    manager = get_manager(ctx)
    statuses = run(manager.get_all_statuses([app.service_id for _, app in apps]))
    # Show app names rather than native service ids
    statuses = [s.model_copy(update={"name": app_name}) for s, (app_name, _) in zip(statuses, apps)]

    if as_json:
        output.json(status_json(statuses))
        return

    output.print()
    output.print(status_table(statuses))
    output.print()
