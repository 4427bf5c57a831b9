"""Apply one service operation to many services.

Services are processed strictly one after another: progress is printed per
service as it completes, and concurrent systemctl daemon-reload calls can
race. Only read-only status fan-out (`ServiceManager.get_all_statuses`) runs
concurrently.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field

from svcman.backend.base import ServiceManager
from svcman.exceptions import ServiceNotFoundError
from svcman.models.app import ServiceDescriptor
from svcman.models.status import ServiceState
from svcman.utils.output import Output

logger = logging.getLogger(__name__)

ServiceAction = Callable[[str, ServiceDescriptor, ServiceManager], Awaitable[None]]
SkipCheck = Callable[[str, ServiceDescriptor, ServiceManager], Awaitable[bool]]

DEFAULT_SUCCESS_STATES = frozenset({ServiceState.ACTIVE, ServiceState.ACTIVATING})
STOPPED_STATES = frozenset({ServiceState.INACTIVE, ServiceState.DEACTIVATING})


@dataclass
class BatchResult:
    """Outcome of a batch operation on a single service."""

    name: str
    success: bool
    skipped: bool = False
    error: str | None = None


@dataclass
class BatchSummary:
    """Aggregate outcome of a batch operation."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    results: list[BatchResult] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: Sequence[BatchResult]) -> "BatchSummary":
        """Count results. Skipped results are never counted as failures."""
        return cls(
            total=len(results),
            succeeded=sum(1 for r in results if r.success),
            failed=sum(1 for r in results if not r.success and not r.skipped),
            skipped=sum(1 for r in results if r.skipped),
            results=list(results),
        )

    @property
    def ok(self) -> bool:
        """Check if no service failed."""
        return self.failed == 0


@dataclass
class BatchOperation:
    """Describes an operation applied by `execute_batch`.

    Attributes:
        present_verb: Progress verb, e.g. "Starting".
        past_verb: Result verb, e.g. "started".
        execute: Performs the operation on one service.
        should_skip: Returns True when a service needs no work.
        skip_message: Shown next to a skipped service.
        success_states: States that confirm the operation took effect.
    """

    present_verb: str
    past_verb: str
    execute: ServiceAction
    should_skip: SkipCheck | None = None
    skip_message: str = "skipped"
    success_states: frozenset[ServiceState] = DEFAULT_SUCCESS_STATES


def validate_service_names(names: Sequence[str], apps: Mapping[str, ServiceDescriptor]) -> None:
    """Ensure every requested name is defined in the config.

    Raises:
        ServiceNotFoundError: For the first unknown name.
    """
    for name in names:
        if name not in apps:
            raise ServiceNotFoundError(name, list(apps))


def _error_message(error: Exception) -> str:
    return str(error) or type(error).__name__


async def _run_one(
    name: str,
    descriptor: ServiceDescriptor,
    manager: ServiceManager,
    operation: BatchOperation,
    output: Output | None,
) -> BatchResult:
    try:
        if operation.should_skip is not None and await operation.should_skip(name, descriptor, manager):
            if output:
                output.dim(f"  {name} {operation.skip_message}")
            return BatchResult(name=name, success=False, skipped=True)

        if output:
            output.step(f"{operation.present_verb} {name}...")
        await operation.execute(name, descriptor, manager)

        status = await manager.get_status(descriptor.service_id)
    except Exception as e:
        message = _error_message(e)
        logger.debug("%s failed for %s", operation.present_verb, name, exc_info=True)
        if output:
            output.error(f"  {name} failed: {message}")
        return BatchResult(name=name, success=False, error=message)

    if status.state in operation.success_states:
        if output:
            output.success(f"  {name} {operation.past_verb}")
        return BatchResult(name=name, success=True)

    if output:
        output.warning(f"  {name} may not have {operation.past_verb} correctly (state: {status.state.value})")
    return BatchResult(name=name, success=False)


async def execute_batch(
    services: Sequence[tuple[str, ServiceDescriptor]],
    manager: ServiceManager,
    operation: BatchOperation,
    output: Output | None = None,
) -> BatchSummary:
    """Run an operation on each service in order.

    A failure on one service is recorded in its result and never stops the
    remaining services from being attempted.

    Args:
        services: `(app name, descriptor)` pairs.
        manager: Backend the operation runs against.
        operation: What to do and how to verify it.
        output: Where progress is printed; silent if omitted.

    Returns:
        Summary with one result per service, in input order.
    """
    if output:
        output.info(f"{operation.present_verb} {len(services)} service(s)...")
        output.print()

    results: list[BatchResult] = []
    for name, descriptor in services:
        results.append(await _run_one(name, descriptor, manager, operation, output))

    summary = BatchSummary.from_results(results)
    if output:
        output.print()
        print_summary(summary, operation.past_verb, output)
    return summary


def print_summary(summary: BatchSummary, past_verb: str, output: Output) -> None:
    """Print the closing line of a batch run."""
    attempted = summary.total - summary.skipped

    if summary.failed == 0:
        if summary.total == 0:
            output.info("No services to process")
        elif summary.skipped == summary.total:
            output.info(f"All services were already {past_verb}")
        else:
            output.success(f"All {summary.succeeded} service(s) {past_verb} successfully")
    else:
        output.warning(
            f"{past_verb.capitalize()} {summary.succeeded}/{attempted} services ({summary.failed} failed)"
        )


async def _install_and_start(name: str, descriptor: ServiceDescriptor, manager: ServiceManager) -> None:
    await manager.install(descriptor.service_id, descriptor)
    await manager.start(descriptor.service_id)


async def _install_and_restart(name: str, descriptor: ServiceDescriptor, manager: ServiceManager) -> None:
    # Rewrite the native config first so config changes take effect
    await manager.install(descriptor.service_id, descriptor)
    await manager.restart(descriptor.service_id)


async def _stop(name: str, descriptor: ServiceDescriptor, manager: ServiceManager) -> None:
    await manager.stop(descriptor.service_id)


async def _not_active(name: str, descriptor: ServiceDescriptor, manager: ServiceManager) -> bool:
    return not await manager.is_active(descriptor.service_id)


def start_operation() -> BatchOperation:
    """Install (or update) and start each service."""
    return BatchOperation(present_verb="Starting", past_verb="started", execute=_install_and_start)


def stop_operation() -> BatchOperation:
    """Stop each running service; services that are not running are skipped."""
    return BatchOperation(
        present_verb="Stopping",
        past_verb="stopped",
        execute=_stop,
        should_skip=_not_active,
        skip_message="is not running",
        success_states=STOPPED_STATES,
    )


def restart_operation() -> BatchOperation:
    """Reinstall and restart each service."""
    return BatchOperation(present_verb="Restarting", past_verb="restarted", execute=_install_and_restart)
