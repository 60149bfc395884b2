"""Adapters — container engine bindings.

Public re-exports for convenient access.
"""

from sullivan.adapters.base import (
    ContainerInfo,
    ContainerState,
    RuntimeAdapter,
    RuntimeAdapterError,
    RuntimeCommandError,
    RuntimeUnavailable,
)
from sullivan.adapters.mock import MockRuntime

__all__ = [
    "ContainerInfo",
    "ContainerState",
    "MockRuntime",
    "RuntimeAdapter",
    "RuntimeAdapterError",
    "RuntimeCommandError",
    "RuntimeUnavailable",
]
