"""
Lifecycle controller — start, stop, restart, rebuild the stack.

Each public operation is one linear pass through the same state
machine, recorded on its ``OperationReport``:

    requested → prechecked → planned → applied → settling → reported

Pre-flight steps (config file, networks, directories, orphan teardown)
are best-effort: they become ``PhaseResult`` entries and a warning.
Engine calls in the *applied* phase are the only fatal ones; a
``RuntimeAdapterError`` raised there propagates untouched and nothing
already done is rolled back. Re-running the operation is the recovery.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from sullivan.adapters.base import RuntimeAdapter, RuntimeAdapterError, RuntimeCommandError
from sullivan.core.context import ExecutionContext
from sullivan.core.models.health import HealthReport
from sullivan.core.models.plan import ALL_SENTINEL, ExecutionPlan, OperationReport, Phase
from sullivan.core.models.result import PhaseResult
from sullivan.core.models.service import ServiceDescriptor, ServiceRegistry, Tier
from sullivan.core.observability.health import HealthEvaluator
from sullivan.core.services.cleanup import CleanupEngine
from sullivan.core.services.env_config import ConfigError, EnvConfig, ensure_directories

logger = logging.getLogger(__name__)


class LifecycleController:
    """Drives the compose project through the runtime adapter.

    Args:
        context: Paths and settle delays for this invocation.
        runtime: The container engine.
        registry: Services, networks and volume policy of the stack.
        config: The ``.env`` resource. Defaults to the context's env file.
        sleep: Settle-delay function, replaceable in tests.
    """

    def __init__(
        self,
        context: ExecutionContext,
        runtime: RuntimeAdapter,
        registry: ServiceRegistry,
        config: EnvConfig | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.context = context
        self.runtime = runtime
        self.registry = registry
        self.config = config or EnvConfig(context.env_file)
        self.evaluator = HealthEvaluator(runtime)
        self.cleanup = CleanupEngine(runtime, registry)
        self._sleep = sleep

    # ── Planning ────────────────────────────────────────────────

    def resolve_plan(self, requested: Sequence[str] = ()) -> ExecutionPlan:
        """Turn command-line service names into an ordered plan.

        No names, or the single name "all", selects the whole registry
        in tier order. Anything else is taken verbatim and in the order
        given; compose resolves ``depends_on`` inside a subset itself.
        """
        names = [n for n in requested if n]
        if not names or names == [ALL_SENTINEL]:
            return ExecutionPlan(services=tuple(self.registry.all_services()), is_full=True)

        services: list[ServiceDescriptor] = []
        for name in names:
            svc = self.registry.get(name)
            if svc is None:
                logger.warning("Service '%s' is not in the registry, passing it to compose as-is", name)
                svc = ServiceDescriptor(name=name, tier=Tier.MONITORING, health_check=False)
            services.append(svc)
        return ExecutionPlan(services=tuple(services), is_full=False)

    # ── Pre-flight (best-effort) ────────────────────────────────

    def ensure_config(self) -> PhaseResult:
        """Create the default ``.env`` (and its secrets) when missing."""
        try:
            created = self.config.ensure()
        except ConfigError as e:
            logger.warning("Cannot prepare %s: %s", self.config.path, e)
            return PhaseResult.soft_failure("config", str(e), errors=[str(e)])
        if created:
            return PhaseResult.success("config", created=[str(self.config.path)])
        return PhaseResult.success("config", kept=[str(self.config.path)])

    def ensure_networks(self) -> PhaseResult:
        """Create every declared network that does not exist yet."""
        logger.info("Setting up Docker networks...")
        created: list[str] = []
        kept: list[str] = []
        errors: list[str] = []

        for network in self.registry.networks:
            try:
                if self.runtime.network_exists(network.name):
                    logger.debug("Network %s already exists", network.name)
                    kept.append(network.name)
                    continue
                logger.info("Creating network: %s", network.name)
                self.runtime.create_network(network)
            except RuntimeCommandError as e:
                if "already exists" in e.stderr:
                    kept.append(network.name)
                    continue
                logger.warning("Failed to create network %s (may already exist)", network.name)
                errors.append(str(e))
                continue
            created.append(network.name)

        logger.info("Docker networks ready")
        return PhaseResult.from_errors("networks", errors, created=created, kept=kept)

    def ensure_directories(self) -> PhaseResult:
        """Create the media and download directories named in ``.env``."""
        logger.info("Creating media directories...")
        try:
            paths = self.config.media_directories()
        except ConfigError as e:
            return PhaseResult.soft_failure("directories", str(e), errors=[str(e)])
        result = ensure_directories(paths)
        if result.soft_failed:
            logger.warning("Continuing anyway (directories may already exist or be mounted)...")
        return result

    def remove_orphans(self) -> PhaseResult:
        """Tear down leftovers of a previous compose state."""
        logger.info("Cleaning up before start...")
        try:
            self.runtime.compose_down(remove_orphans=True)
        except RuntimeCommandError as e:
            logger.debug("Orphan teardown failed: %s", e)
            return PhaseResult.soft_failure("orphans", str(e), errors=[str(e)])
        return PhaseResult.success("orphans")

    # ── Operations ──────────────────────────────────────────────

    def start(self, requested: Sequence[str] = ()) -> OperationReport:
        """Pre-flight, bring the plan up, settle, report."""
        report = OperationReport(operation="start", show_endpoints=True)

        self._record(report, self.ensure_config())
        self._record(report, self.ensure_networks())
        self._record(report, self.ensure_directories())
        self._record(report, self.remove_orphans())
        report.advance(Phase.PRECHECKED)

        report.plan = self.resolve_plan(requested)
        report.advance(Phase.PLANNED)

        self._bring_up(report)
        self._settle(report, self.context.start_settle_seconds)
        self._report(report)
        return report

    def stop(self, requested: Sequence[str] = ()) -> OperationReport:
        """Full plan: tear down and reclaim networks. Subset: stop only."""
        report = OperationReport(operation="stop")
        report.plan = self.resolve_plan(requested)
        report.advance(Phase.PLANNED)

        if report.plan.is_full:
            logger.info("Stopping all services...")
            self.runtime.compose_down(remove_orphans=True)
            report.advance(Phase.APPLIED)
            self._record(report, self.cleanup.reclaim_networks())
        else:
            logger.info("Stopping services: %s", report.plan.describe())
            self.runtime.compose_stop(report.plan.names())
            report.advance(Phase.APPLIED)

        logger.info("Services stopped")
        report.advance(Phase.REPORTED)
        return report

    def restart(self, requested: Sequence[str] = ()) -> OperationReport:
        """Restart in place. Assumes ``start`` already prepared the host."""
        report = OperationReport(operation="restart")
        report.plan = self.resolve_plan(requested)
        report.advance(Phase.PLANNED)

        logger.info("Restarting %s...", report.plan.describe())
        self.runtime.compose_restart(report.plan.names())
        report.advance(Phase.APPLIED)

        self._settle(report, self.context.restart_settle_seconds)
        self._report(report)
        return report

    def rebuild(self, requested: Sequence[str] = ()) -> OperationReport:
        """Teardown, reclaim, pull fresh images, bring up again.

        Cleanup and network setup only warn. The teardown, the pull and
        the bring-up are fatal.
        """
        report = OperationReport(operation="rebuild", show_endpoints=True)
        report.plan = self.resolve_plan(requested)

        if report.plan.is_full:
            logger.info("Stopping all services...")
            self.runtime.compose_down(remove_orphans=True)
        else:
            logger.info("Stopping services: %s", report.plan.describe())
            self.runtime.compose_stop(report.plan.names())

        self._record(report, self.cleanup.reclaim_orphans())
        self._record(report, self.cleanup.reclaim_images())
        self._record(report, self.ensure_networks())
        report.advance(Phase.PRECHECKED)
        report.advance(Phase.PLANNED)

        logger.info("Pulling images for %s...", report.plan.describe())
        self.runtime.compose_pull(report.plan.names(), ignore_failures=False)

        self._bring_up(report)
        self._settle(report, self.context.start_settle_seconds)
        self._report(report)
        return report

    def pull(self, requested: Sequence[str] = ()) -> OperationReport:
        """Pull images only. A failed pull is a warning."""
        report = OperationReport(operation="pull")
        report.plan = self.resolve_plan(requested)
        report.advance(Phase.PLANNED)

        try:
            self.runtime.compose_pull(report.plan.names(), ignore_failures=True)
            self._record(report, PhaseResult.success("pull", kept=report.plan.names()))
        except RuntimeCommandError as e:
            self._record(report, PhaseResult.soft_failure("pull", str(e), errors=[str(e)]))
        report.advance(Phase.APPLIED)

        logger.info("Image pull complete")
        report.advance(Phase.REPORTED)
        return report

    def status(self) -> str:
        """The compose status table."""
        return self.runtime.compose_ps_table()

    def health(self) -> HealthReport:
        return self.evaluator.evaluate()

    def logs(self, requested: Sequence[str] = (), *, follow: bool = True, tail: int = 100) -> int:
        """Stream logs to the terminal. Blocks until interrupted when following."""
        plan = self.resolve_plan(requested)
        return self.runtime.compose_logs(plan.names(), follow=follow, tail=tail)

    # ── Helpers ─────────────────────────────────────────────────

    def _bring_up(self, report: OperationReport) -> None:
        plan = report.plan
        if plan.is_full:
            logger.info("Starting all services...")
        else:
            logger.info("Starting services: %s", plan.describe())
        self.runtime.compose_up(plan.names())
        report.advance(Phase.APPLIED)

    def _settle(self, report: OperationReport, seconds: float) -> None:
        report.advance(Phase.SETTLING)
        if seconds > 0:
            logger.info("Waiting %gs for services to initialize...", seconds)
            self._sleep(seconds)

    def _report(self, report: OperationReport) -> None:
        """Attach status table and health summary. Never fatal."""
        try:
            report.status_table = self.runtime.compose_ps_table()
            report.health = self.evaluator.evaluate()
        except RuntimeAdapterError as e:
            self._record(report, PhaseResult.soft_failure("report", str(e), errors=[str(e)]))
        report.advance(Phase.REPORTED)

    def _record(self, report: OperationReport, result: PhaseResult) -> None:
        report.steps.append(result)
        if result.soft_failed:
            logger.warning("%s: %s", result.phase, result.reason)
