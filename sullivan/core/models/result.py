"""
Phase results — the outcome of a best-effort step.

Best-effort steps (network setup, directory creation, orphan removal,
prune passes) never raise. They return a ``PhaseResult`` instead, so a
soft failure is recorded with its reason rather than silently dropped.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class PhaseResult(BaseModel):
    """Result of one best-effort phase."""

    phase: str
    status: Literal["ok", "soft_failed", "skipped"] = "ok"
    reason: str = ""
    created: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    kept: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    ended_at: str = Field(default_factory=_now_iso)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def soft_failed(self) -> bool:
        return self.status == "soft_failed"

    @classmethod
    def success(cls, phase: str, **kwargs: Any) -> PhaseResult:
        """Create a success result."""
        return cls(phase=phase, status="ok", **kwargs)

    @classmethod
    def soft_failure(cls, phase: str, reason: str, **kwargs: Any) -> PhaseResult:
        """Create a soft-failure result (warned about, never fatal)."""
        return cls(phase=phase, status="soft_failed", reason=reason, **kwargs)

    @classmethod
    def skip(cls, phase: str, reason: str = "", **kwargs: Any) -> PhaseResult:
        """Create a skip result."""
        return cls(phase=phase, status="skipped", reason=reason, **kwargs)

    @classmethod
    def from_errors(cls, phase: str, errors: list[str], **kwargs: Any) -> PhaseResult:
        """Success when ``errors`` is empty, soft failure otherwise."""
        if not errors:
            return cls.success(phase, **kwargs)
        reason = errors[0] if len(errors) == 1 else f"{len(errors)} errors"
        return cls.soft_failure(phase, reason, errors=errors, **kwargs)


class CleanupResult(BaseModel):
    """Aggregate of a cleanup run. Informational only."""

    phases: list[PhaseResult] = Field(default_factory=list)
    disk_usage: str = ""

    @property
    def ok(self) -> bool:
        return not any(p.soft_failed for p in self.phases)

    @property
    def removed_count(self) -> int:
        return sum(len(p.removed) for p in self.phases)

    def phase(self, name: str) -> PhaseResult | None:
        for p in self.phases:
            if p.phase == name:
                return p
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "removed_count": self.removed_count,
            "phases": [p.model_dump() for p in self.phases],
            "disk_usage": self.disk_usage,
        }
