"""Start, stop and restart commands for svcman CLI."""

from typing import Any

import click

from svcman.backend.base import ServiceManager
from svcman.batch import BatchOperation, execute_batch, restart_operation, start_operation, stop_operation
from svcman.cli.context import get_config, get_manager, get_output, run
from svcman.models.app import ServiceDescriptor
from svcman.models.status import ServiceState, ServiceStatus
from svcman.utils.format import app_config_json, batch_json
from svcman.utils.output import Output


def _run_batch(
    ctx: click.Context,
    command: str,
    services: list[tuple[str, ServiceDescriptor]],
    operation: BatchOperation,
    as_json: bool,
) -> None:
    output = get_output(ctx)
    manager = get_manager(ctx)

    if not services:
        output.warning("No services defined in config")
        return

    summary = run(execute_batch(services, manager, operation, output=None if as_json else output))

    if as_json:
        output.json(batch_json(command, summary))
    if not summary.ok:
        ctx.exit(1)


def _report(output: Output, name: str, status: ServiceStatus, done: str, past_verb: str) -> None:
    state = status.state
    if state == ServiceState.ACTIVE:
        output.success(f"Service {name} {done}")
        if status.pid:
            output.dim(f"  PID: {status.pid}")
    elif state == ServiceState.ACTIVATING:
        output.warning(f"Service {name} is starting...")
        output.dim("  Check status with: svcman status")
    else:
        output.warning(f"Service {name} may not have {past_verb} correctly")
        output.dim(f"  State: {state.value}")
        output.dim(f"  Check logs with: svcman logs {name}")


def _status_json(command: str, name: str, state: ServiceState, pid: int | None, success: bool) -> dict[str, Any]:
    return {
        "success": success,
        "command": command,
        "service": name,
        "state": state.value,
        "pid": pid,
    }


def _dry_run(
    ctx: click.Context,
    command: str,
    services: list[tuple[str, ServiceDescriptor]],
    as_json: bool,
) -> None:
    output = get_output(ctx)
    manager = get_manager(ctx)

    rendered = [(name, app, manager.generate_config(app.service_id, app)) for name, app in services]

    if as_json:
        output.json({
            "dryRun": True,
            "command": command,
            "backend": manager.get_name(),
            "services": [
                {"service": app_config_json(app), "configContent": content}
                for _, app, content in rendered
            ],
        })
        return

    for name, app, content in rendered:
        output.info(f"[DRY-RUN] Would {command} service: {name}")
        output.dim(f"  Backend: {manager.get_name()}")
        output.dim(f"  Config: {manager.config_path(app.service_id)}")
        output.print()
        output.print("[bold]Generated configuration:[/bold]")
        output.raw(content)


async def _start_one(manager: ServiceManager, app: ServiceDescriptor) -> ServiceStatus:
    await manager.install(app.service_id, app)
    await manager.start(app.service_id)
    return await manager.get_status(app.service_id)


async def _restart_one(manager: ServiceManager, app: ServiceDescriptor) -> ServiceStatus:
    await manager.install(app.service_id, app)
    await manager.restart(app.service_id)
    return await manager.get_status(app.service_id)


@click.command()
@click.argument("names", nargs=-1)
@click.option("--dry-run", is_flag=True, help="Show the generated config without installing")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def start(ctx: click.Context, names: tuple[str, ...], dry_run: bool, as_json: bool) -> None:
    """Install and start services.

    With no NAMES every app in the config is started.

    Examples:
        svcman start              # All apps
        svcman start api          # One app
        svcman start api worker   # Several apps
        svcman start api --dry-run
    """
    config = get_config(ctx)
    services = config.select(names)

    if dry_run:
        _dry_run(ctx, "start", services, as_json)
        return

    if len(names) != 1:
        _run_batch(ctx, "start", services, start_operation(), as_json)
        return

    output = get_output(ctx)
    manager = get_manager(ctx)
    name, app = services[0]

    if not as_json:
        output.step(f"Installing {app.service_id} on {manager.get_name()}...")
    status = run(_start_one(manager, app))

    if as_json:
        success = status.state in (ServiceState.ACTIVE, ServiceState.ACTIVATING)
        output.json(_status_json("start", name, status.state, status.pid, success))
        return
    _report(output, name, status, "is now running", "started")


@click.command()
@click.argument("names", nargs=-1)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def stop(ctx: click.Context, names: tuple[str, ...], as_json: bool) -> None:
    """Stop running services.

    With no NAMES every app in the config is stopped.
    """
    config = get_config(ctx)
    services = config.select(names)

    if len(names) != 1:
        _run_batch(ctx, "stop", services, stop_operation(), as_json)
        return

    output = get_output(ctx)
    manager = get_manager(ctx)
    name, app = services[0]

    async def stop_one() -> tuple[bool, ServiceState]:
        if not await manager.is_active(app.service_id):
            return False, ServiceState.INACTIVE
        await manager.stop(app.service_id)
        status = await manager.get_status(app.service_id)
        return True, status.state

    if not as_json:
        output.step(f"Stopping {app.service_id}...")
    was_running, state = run(stop_one())
    success = state in (ServiceState.INACTIVE, ServiceState.DEACTIVATING)

    if as_json:
        output.json(_status_json("stop", name, state, None, success))
        return

    if not was_running:
        output.warning(f"Service {name} is not running")
    elif state == ServiceState.INACTIVE:
        output.success(f"Service {name} stopped")
    elif state == ServiceState.DEACTIVATING:
        output.info(f"Service {name} is stopping...")
    else:
        output.warning(f"Service {name} may not have stopped correctly")
        output.dim(f"  State: {state.value}")


@click.command()
@click.argument("names", nargs=-1)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def restart(ctx: click.Context, names: tuple[str, ...], as_json: bool) -> None:
    """Restart services, picking up config changes.

    With no NAMES every app in the config is restarted.
    """
    config = get_config(ctx)
    services = config.select(names)

    if len(names) != 1:
        _run_batch(ctx, "restart", services, restart_operation(), as_json)
        return

    output = get_output(ctx)
    manager = get_manager(ctx)
    name, app = services[0]

    if not as_json:
        output.step(f"Restarting {app.service_id}...")
    status = run(_restart_one(manager, app))

    if as_json:
        success = status.state in (ServiceState.ACTIVE, ServiceState.ACTIVATING)
        output.json(_status_json("restart", name, status.state, status.pid, success))
        return
    _report(output, name, status, "restarted", "restarted")
