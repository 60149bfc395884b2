"""
Execution plan and operation report — the controller's per-invocation state.

Nothing here is persisted. A plan is built, applied, reported, and
discarded; container and network state is owned by the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from sullivan.core.models.health import HealthReport
from sullivan.core.models.result import PhaseResult
from sullivan.core.models.service import ServiceDescriptor

ALL_SENTINEL = "all"


class Phase(StrEnum):
    """Lifecycle of one controller invocation."""

    REQUESTED = "requested"
    PRECHECKED = "prechecked"
    PLANNED = "planned"
    APPLIED = "applied"
    SETTLING = "settling"
    REPORTED = "reported"


@dataclass(frozen=True)
class ExecutionPlan:
    """Ordered services to act upon.

    ``is_full`` marks a plan expanded from the "all" sentinel (or from no
    arguments). Only a full plan is guaranteed to be in tier order; an
    explicit subset keeps the order it was requested in.
    """

    services: tuple[ServiceDescriptor, ...]
    is_full: bool = False

    def names(self) -> list[str]:
        return [s.name for s in self.services]

    def __len__(self) -> int:
        return len(self.services)

    def describe(self) -> str:
        if self.is_full:
            return "all services"
        return ", ".join(self.names())


@dataclass
class OperationReport:
    """What a lifecycle operation did, for rendering by the CLI."""

    operation: str
    plan: ExecutionPlan | None = None
    phases: list[Phase] = field(default_factory=lambda: [Phase.REQUESTED])
    steps: list[PhaseResult] = field(default_factory=list)
    status_table: str = ""
    health: HealthReport | None = None
    show_endpoints: bool = False

    def advance(self, phase: Phase) -> None:
        self.phases.append(phase)

    @property
    def phase(self) -> Phase:
        return self.phases[-1]

    @property
    def warnings(self) -> list[PhaseResult]:
        return [s for s in self.steps if s.soft_failed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "plan": {
                "services": self.plan.names(),
                "full": self.plan.is_full,
            } if self.plan else None,
            "phases": [p.value for p in self.phases],
            "steps": [s.model_dump() for s in self.steps],
            "warnings": len(self.warnings),
            "status_table": self.status_table,
            "health": self.health.to_dict() if self.health else None,
        }
