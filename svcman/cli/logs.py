"""Logs command for svcman CLI."""

import click

from svcman.backend.base import ServiceManager
from svcman.cli.context import get_config, get_manager, get_output, run
from svcman.logs import LogOptions, LogStreamer
from svcman.models.app import ServiceDescriptor
from svcman.utils.output import Output

DEFAULT_LINES = 50


def _clear_logs(manager: ServiceManager, services: list[tuple[str, ServiceDescriptor]]) -> int:
    """Truncate the flat log files of the given services.

    Returns:
        Number of services whose logs were cleared.
    """
    cleared = 0
    for _, app in services:
        files = [path for path in manager.log_files(app.service_id) if path.exists()]
        for path in files:
            path.write_text("")
        if files:
            cleared += 1
    return cleared


def _has_logs(manager: ServiceManager, app: ServiceDescriptor) -> bool:
    # Journal-based backends have no files to check
    files = manager.log_files(app.service_id)
    return not files or files[0].exists()


async def _show_one(manager: ServiceManager, app: ServiceDescriptor, options: LogOptions, output: Output) -> None:
    async for line in manager.logs(app.service_id, options):
        output.raw(line)


async def _show_all(
    manager: ServiceManager,
    services: list[tuple[str, ServiceDescriptor]],
    options: LogOptions,
    output: Output,
) -> None:
    sources = [(name, manager.log_command(app.service_id, options)) for name, app in services]
    width = max(len(name) for name, _ in sources)

    async for line in LogStreamer().multiplex(sources):
        output.log_line(line, width=width)


@click.command()
@click.argument("name", required=False)
@click.option("--follow", "-f", is_flag=True, help="Keep streaming new lines")
@click.option("--lines", "-n", type=int, default=DEFAULT_LINES, show_default=True, help="Number of lines to show")
@click.option("--since", help="Show logs since a time (journalctl syntax, e.g. '1 hour ago')")
@click.option("--clear", is_flag=True, help="Truncate log files instead of showing them")
@click.pass_context
def logs(ctx: click.Context, name: str | None, follow: bool, lines: int, since: str | None, clear: bool) -> None:
    """Show service logs.

    Without NAME, logs of every app are interleaved with a colored prefix.

    Examples:
        svcman logs api           # Last 50 lines of api
        svcman logs api -f        # Follow api
        svcman logs -f            # Follow every app
        svcman logs --clear       # Truncate log files
    """
    config = get_config(ctx)
    output = get_output(ctx)
    manager = get_manager(ctx)
    services = config.select([name] if name else [])

    if clear:
        cleared = _clear_logs(manager, services)
        if cleared == 0:
            output.warning("No log files found")
        else:
            output.success(f"Cleared logs for {cleared} service(s)")
        return

    options = LogOptions(follow=follow, lines=lines, since=since)

    try:
        if name:
            _, app = services[0]
            if follow:
                output.info(f"Streaming logs for {name}... (Ctrl+C to exit)")
            run(_show_one(manager, app, options, output))
            return

        services = [(n, app) for n, app in services if _has_logs(manager, app)]
        if not services:
            output.warning("No log files found for any service")
            return
        if follow:
            output.info(f"Streaming logs for {len(services)} service(s)... (Ctrl+C to exit)")
        run(_show_all(manager, services, options, output))
    except KeyboardInterrupt:
        output.dim("Stopped following logs")
