"""
Runtime adapter base — the contract between the controller and the engine.

The controller never shells out itself; everything that touches the
container engine goes through a ``RuntimeAdapter``. The engine owns
container, network and volume state. Adapters only observe and act.

Unlike best-effort phases, adapter calls raise on failure:
``RuntimeUnavailable`` when the engine cannot be reached at all and
``RuntimeCommandError`` when a single call fails. Callers decide which
failures are fatal and which are soft.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from sullivan.core.models.service import NetworkDescriptor


class RuntimeAdapterError(Exception):
    """Base class for container engine failures."""


class RuntimeUnavailable(RuntimeAdapterError):
    """The engine (or its compose executor) is missing or unreachable."""


class RuntimeCommandError(RuntimeAdapterError):
    """A single engine call failed."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = self.stderr or f"exit code {returncode}"
        super().__init__(f"{' '.join(self.command)} failed: {detail}")


@dataclass(frozen=True)
class ContainerInfo:
    """A container as listed by the engine."""

    id: str
    name: str
    state: str = ""
    image: str = ""


@dataclass(frozen=True)
class ContainerState:
    """Inspect result relevant to health evaluation.

    ``health`` is None when the container has no health probe.
    """

    name: str
    health: str | None
    state: str


class RuntimeAdapter(ABC):
    """Abstract container engine.

    Service lists are passed verbatim to the compose executor; an empty
    list means the whole compose project.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'docker', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the engine binary exists. Fast, never raises."""

    @abstractmethod
    def check(self) -> None:
        """Verify the engine and compose executor are reachable.

        Raises:
            RuntimeUnavailable: if they are not.
        """

    @abstractmethod
    def engine_info(self) -> dict[str, str]:
        """Engine and compose versions, for diagnostics."""

    # ── Networks ────────────────────────────────────────────────

    @abstractmethod
    def create_network(self, network: NetworkDescriptor) -> None: ...

    @abstractmethod
    def list_networks(self) -> list[str]: ...

    @abstractmethod
    def network_exists(self, name: str) -> bool: ...

    @abstractmethod
    def network_containers(self, name: str) -> list[str]:
        """Names of containers attached to a network."""

    @abstractmethod
    def remove_network(self, name: str) -> None: ...

    # ── Compose project ─────────────────────────────────────────

    @abstractmethod
    def compose_up(self, services: Sequence[str]) -> None: ...

    @abstractmethod
    def compose_down(self, *, remove_orphans: bool = True) -> None:
        """Remove the project's containers. Volumes are preserved."""

    @abstractmethod
    def compose_stop(self, services: Sequence[str]) -> None: ...

    @abstractmethod
    def compose_restart(self, services: Sequence[str]) -> None: ...

    @abstractmethod
    def compose_pull(self, services: Sequence[str], *, ignore_failures: bool = True) -> str: ...

    @abstractmethod
    def compose_ps_ids(self) -> list[str]:
        """IDs of the project's running containers."""

    @abstractmethod
    def compose_ps_table(self) -> str:
        """Rendered status table of the project's containers."""

    @abstractmethod
    def compose_logs(self, services: Sequence[str], *, follow: bool = True, tail: int = 100) -> int:
        """Stream logs to the terminal. Blocks until interrupted when following."""

    # ── Containers ──────────────────────────────────────────────

    @abstractmethod
    def list_containers(self, statuses: Sequence[str] = ()) -> list[ContainerInfo]:
        """All containers (not only the project's), optionally filtered by status."""

    @abstractmethod
    def remove_container(self, name: str) -> None: ...

    @abstractmethod
    def inspect_health(self, container_id: str) -> ContainerState: ...

    # ── Volumes & reclamation ───────────────────────────────────

    @abstractmethod
    def list_volumes(self) -> list[str]: ...

    @abstractmethod
    def remove_volume(self, name: str) -> None:
        """Remove a named volume. Fails when a container still uses it."""

    @abstractmethod
    def prune_containers(self) -> str: ...

    @abstractmethod
    def prune_networks(self) -> str: ...

    @abstractmethod
    def prune_volumes(self) -> str:
        """Remove dangling anonymous volumes only. Named volumes are untouched."""

    @abstractmethod
    def prune_images(self) -> str: ...

    @abstractmethod
    def prune_system(self) -> str:
        """Engine-wide prune, excluding volumes."""

    @abstractmethod
    def disk_usage(self) -> str: ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
