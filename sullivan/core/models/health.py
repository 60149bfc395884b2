"""
Health models — engine-reported state and its classification.

The engine reports health as loose strings ("healthy", "none", ...).
They are parsed once into ``EngineHealth`` and classified by a single
function, ``classify``, so no call site compares raw strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class EngineHealth(StrEnum):
    """Raw container health as reported by the engine."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    STARTING = "starting"
    NONE_RUNNING = "none-running"
    NONE_STOPPED = "none-stopped"
    UNKNOWN = "unknown"

    @classmethod
    def from_inspect(cls, health: str | None, state: str | None) -> EngineHealth:
        """Build from the health status and coarse state of an inspect call.

        ``health`` is None, empty or "none" when no probe is configured;
        the coarse ``state`` then decides between running and stopped.
        """
        value = (health or "").strip().lower()
        if value in ("", "none"):
            if (state or "").strip().lower() == "running":
                return cls.NONE_RUNNING
            return cls.NONE_STOPPED
        if value == "healthy":
            return cls.HEALTHY
        if value == "unhealthy":
            return cls.UNHEALTHY
        if value == "starting":
            return cls.STARTING
        return cls.UNKNOWN


class Classification(StrEnum):
    """Derived health category used for aggregation."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    PENDING = "pending"
    INFORMATIONAL = "informational"
    UNKNOWN = "unknown"


def classify(health: EngineHealth) -> Classification:
    """Map an engine health value to its classification."""
    if health is EngineHealth.HEALTHY:
        return Classification.HEALTHY
    if health is EngineHealth.UNHEALTHY:
        return Classification.UNHEALTHY
    if health is EngineHealth.STARTING:
        return Classification.PENDING
    if health in (EngineHealth.NONE_RUNNING, EngineHealth.NONE_STOPPED):
        return Classification.INFORMATIONAL
    return Classification.UNKNOWN


@dataclass(frozen=True)
class ContainerHealthRecord:
    """Health of one container at the moment of the check."""

    name: str
    engine_health: EngineHealth
    raw_state: str = ""
    raw_health: str = ""

    @property
    def classification(self) -> Classification:
        return classify(self.engine_health)

    @property
    def detail(self) -> str:
        """Human-readable status line for this container."""
        if self.engine_health is EngineHealth.NONE_RUNNING:
            return "running (no healthcheck)"
        if self.engine_health is EngineHealth.NONE_STOPPED:
            return self.raw_state or "stopped"
        if self.engine_health is EngineHealth.UNKNOWN and self.raw_health:
            return self.raw_health
        return self.engine_health.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "engine_health": self.engine_health.value,
            "raw_state": self.raw_state,
            "raw_health": self.raw_health,
            "classification": self.classification.value,
            "detail": self.detail,
        }


@dataclass
class HealthReport:
    """Aggregate of one health evaluation.

    ``passed`` is True only when something was evaluated and nothing is
    unhealthy. Pending and informational containers never fail it.
    An empty report (nothing running) does not pass.
    """

    records: list[ContainerHealthRecord] = field(default_factory=list)
    empty: bool = False

    @classmethod
    def nothing_running(cls) -> HealthReport:
        return cls(records=[], empty=True)

    @property
    def healthy_count(self) -> int:
        return sum(1 for r in self.records if r.classification is Classification.HEALTHY)

    @property
    def unhealthy_count(self) -> int:
        return sum(1 for r in self.records if r.classification is Classification.UNHEALTHY)

    @property
    def other_count(self) -> int:
        return len(self.records) - self.healthy_count - self.unhealthy_count

    @property
    def passed(self) -> bool:
        return not self.empty and self.unhealthy_count == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "empty": self.empty,
            "summary": {
                "healthy": self.healthy_count,
                "unhealthy": self.unhealthy_count,
                "other": self.other_count,
            },
            "containers": [r.to_dict() for r in self.records],
        }
