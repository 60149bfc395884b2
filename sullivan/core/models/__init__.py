"""
Domain models — types for the stack controller.

All models are re-exported here for convenient access:

    from sullivan.core.models import ServiceRegistry, ExecutionPlan, HealthReport
"""

from sullivan.core.models.health import (
    Classification,
    ContainerHealthRecord,
    EngineHealth,
    HealthReport,
    classify,
)
from sullivan.core.models.plan import ALL_SENTINEL, ExecutionPlan, OperationReport, Phase
from sullivan.core.models.result import CleanupResult, PhaseResult
from sullivan.core.models.service import (
    Endpoint,
    NetworkDescriptor,
    ServiceDescriptor,
    ServiceRegistry,
    Tier,
    VolumePolicy,
)

__all__ = [
    "ALL_SENTINEL",
    "Classification",
    "CleanupResult",
    "ContainerHealthRecord",
    "Endpoint",
    "EngineHealth",
    "ExecutionPlan",
    "HealthReport",
    "NetworkDescriptor",
    "OperationReport",
    "Phase",
    "PhaseResult",
    "ServiceDescriptor",
    "ServiceRegistry",
    "Tier",
    "VolumePolicy",
    "classify",
]
