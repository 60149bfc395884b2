"""
Health evaluator — classify the stack's running containers.

Polls the engine once per container and aggregates the result. An
unhealthy or unknown container is data, not an error of the
evaluator; only the ``health`` command turns it into an exit code.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sullivan.adapters.base import RuntimeAdapter, RuntimeCommandError
from sullivan.core.models.health import ContainerHealthRecord, EngineHealth, HealthReport

logger = logging.getLogger(__name__)


class HealthEvaluator:
    """Builds a fresh HealthReport from engine state on every call."""

    def __init__(self, runtime: RuntimeAdapter):
        self._runtime = runtime

    def evaluate(self, container_ids: Sequence[str] | None = None) -> HealthReport:
        """Evaluate a set of containers.

        Args:
            container_ids: Containers to inspect. None means the compose
                project's running containers.

        Returns:
            HealthReport. When there is nothing to evaluate the report is
            marked empty and does not pass.
        """
        ids = list(container_ids) if container_ids is not None else self._runtime.compose_ps_ids()

        if not ids:
            logger.warning("No containers running")
            return HealthReport.nothing_running()

        records = [self._inspect(cid) for cid in ids]
        report = HealthReport(records=records)
        logger.info(
            "Summary: %d healthy, %d unhealthy, %d other",
            report.healthy_count, report.unhealthy_count, report.other_count,
        )
        return report

    def _inspect(self, container_id: str) -> ContainerHealthRecord:
        try:
            state = self._runtime.inspect_health(container_id)
        except RuntimeCommandError as e:
            logger.debug("Inspect failed for %s: %s", container_id, e)
            return ContainerHealthRecord(
                name=container_id,
                engine_health=EngineHealth.UNKNOWN,
                raw_state="unknown",
            )

        return ContainerHealthRecord(
            name=state.name,
            engine_health=EngineHealth.from_inspect(state.health, state.state),
            raw_state=state.state,
            raw_health=state.health or "",
        )
