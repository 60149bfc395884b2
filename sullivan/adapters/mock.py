"""
Mock runtime — in-memory container engine.

Used by tests and by ``--mock`` to exercise the controller without a
docker daemon. It models just enough engine behaviour for the
lifecycle rules to be observable: networks refuse removal while
containers are attached, named volumes survive prunes, compose refuses
to start services whose networks are missing.

Every call is recorded in ``call_log``; any operation can be made to
fail with ``set_failure``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import NoReturn

from sullivan.adapters.base import (
    ContainerInfo,
    ContainerState,
    RuntimeAdapter,
    RuntimeCommandError,
    RuntimeUnavailable,
)
from sullivan.core.models.service import NetworkDescriptor, ServiceRegistry

# Networks every docker engine ships with; never pruned.
_BUILTIN_NETWORKS = ("bridge", "host", "none")


@dataclass
class MockContainer:
    id: str
    name: str
    state: str = "running"
    health: str | None = None
    image: str = ""
    networks: set[str] = field(default_factory=set)
    volumes: set[str] = field(default_factory=set)
    in_project: bool = True


@dataclass
class MockVolume:
    name: str
    anonymous: bool = False


class MockRuntime(RuntimeAdapter):
    """Universal in-memory engine for testing.

    Args:
        registry: When given, ``compose_up`` attaches services to the
            networks their descriptors declare and gives services with
            a health probe a "healthy" status.
        available: When False, ``check`` raises RuntimeUnavailable.
    """

    def __init__(
        self,
        registry: ServiceRegistry | None = None,
        available: bool = True,
    ):
        self._registry = registry
        self._available = available
        self.networks: dict[str, str] = {name: "bridge" for name in _BUILTIN_NETWORKS}
        self.containers: dict[str, MockContainer] = {}
        self.volumes: dict[str, MockVolume] = {}
        self.images: set[str] = set()
        self._failures: dict[str, str] = {}
        self._pull_failures: dict[str, str] = {}
        self._call_log: list[tuple[str, tuple]] = []
        self._next_id = 0

    @property
    def name(self) -> str:
        return "mock"

    # ── Test configuration ──────────────────────────────────────

    @property
    def call_log(self) -> list[tuple[str, tuple]]:
        """Every (operation, args) this mock has received, in order."""
        return self._call_log

    def calls(self, operation: str) -> list[tuple]:
        """Arguments of every call to one operation."""
        return [args for op, args in self._call_log if op == operation]

    def operations(self) -> list[str]:
        return [op for op, _ in self._call_log]

    def set_failure(self, operation: str, error: str = "Mock failure") -> None:
        """Configure an operation to raise RuntimeCommandError."""
        self._failures[operation] = error

    def clear_failure(self, operation: str) -> None:
        self._failures.pop(operation, None)

    def set_pull_failure(self, service: str, error: str = "manifest unknown") -> None:
        """Make one service's image fail to pull, like a missing tag."""
        self._pull_failures[service] = error

    def add_network(self, name: str, driver: str = "bridge") -> None:
        self.networks[name] = driver

    def add_volume(self, name: str, *, anonymous: bool = False) -> None:
        self.volumes[name] = MockVolume(name=name, anonymous=anonymous)

    def add_container(
        self,
        name: str,
        *,
        state: str = "running",
        health: str | None = None,
        image: str = "",
        networks: Sequence[str] = (),
        volumes: Sequence[str] = (),
        in_project: bool = True,
    ) -> MockContainer:
        container = MockContainer(
            id=self._new_id(),
            name=name,
            state=state,
            health=health,
            image=image,
            networks=set(networks),
            volumes=set(volumes),
            in_project=in_project,
        )
        self.containers[name] = container
        if image:
            self.images.add(image)
        return container

    # ── Protocol ────────────────────────────────────────────────

    def is_available(self) -> bool:
        return self._available

    def check(self) -> None:
        self._record("check")
        if not self._available:
            raise RuntimeUnavailable("Docker daemon is not running")

    def engine_info(self) -> dict[str, str]:
        return {"docker": "mock", "compose": "mock"}

    def create_network(self, network: NetworkDescriptor) -> None:
        self._record("create_network", network.name)
        if network.name in self.networks:
            self._fail("create_network", f"network with name {network.name} already exists")
        self.networks[network.name] = network.driver

    def list_networks(self) -> list[str]:
        self._record("list_networks")
        return list(self.networks)

    def network_exists(self, name: str) -> bool:
        self._record("network_exists", name)
        return name in self.networks

    def network_containers(self, name: str) -> list[str]:
        self._record("network_containers", name)
        if name not in self.networks:
            self._fail("network_containers", f"network {name} not found")
        return sorted(c.name for c in self.containers.values() if name in c.networks)

    def remove_network(self, name: str) -> None:
        self._record("remove_network", name)
        if name not in self.networks:
            self._fail("remove_network", f"network {name} not found")
        if any(name in c.networks for c in self.containers.values()):
            self._fail("remove_network", f"error while removing network: network {name} has active endpoints")
        del self.networks[name]

    def compose_up(self, services: Sequence[str]) -> None:
        self._record("compose_up", *services)
        names = list(services) or self._default_services()

        for svc in names:
            for net in self._service_networks(svc):
                if net not in self.networks:
                    self._fail("compose_up", f"network {net} declared as external, but could not be found")

        for svc in names:
            container = self.containers.get(svc)
            if container is None:
                container = self.add_container(
                    svc,
                    networks=self._service_networks(svc),
                    image=f"{svc}:latest",
                )
            container.state = "running"
            container.in_project = True
            container.health = "healthy" if self._has_probe(svc) else None

    def compose_down(self, *, remove_orphans: bool = True) -> None:
        self._record("compose_down", remove_orphans)
        for name in [n for n, c in self.containers.items() if c.in_project]:
            del self.containers[name]

    def compose_stop(self, services: Sequence[str]) -> None:
        self._record("compose_stop", *services)
        for c in self._project_containers(services):
            c.state = "exited"

    def compose_restart(self, services: Sequence[str]) -> None:
        self._record("compose_restart", *services)
        for c in self._project_containers(services):
            c.state = "running"

    def compose_pull(self, services: Sequence[str], *, ignore_failures: bool = True) -> str:
        self._record("compose_pull", *services)
        failed: list[str] = []
        for svc in services or self._default_services():
            if svc in self._pull_failures:
                failed.append(f"{svc} Error {self._pull_failures[svc]}")
                continue
            self.images.add(f"{svc}:latest")
        # Compose exits 0 on failed images only with --ignore-pull-failures.
        if failed and not ignore_failures:
            self._fail("compose_pull", "\n".join(failed))
        return "\n".join(failed)

    def compose_ps_ids(self) -> list[str]:
        self._record("compose_ps_ids")
        return [c.id for c in self.containers.values() if c.in_project and c.state == "running"]

    def compose_ps_table(self) -> str:
        self._record("compose_ps_table")
        lines = ["NAME\tSTATUS\tPORTS"]
        for c in self.containers.values():
            if c.in_project:
                status = c.state if c.health is None else f"{c.state} ({c.health})"
                lines.append(f"{c.name}\t{status}\t")
        return "\n".join(lines)

    def compose_logs(self, services: Sequence[str], *, follow: bool = True, tail: int = 100) -> int:
        self._record("compose_logs", *services)
        return 0

    def list_containers(self, statuses: Sequence[str] = ()) -> list[ContainerInfo]:
        self._record("list_containers", *statuses)
        return [
            ContainerInfo(id=c.id, name=c.name, state=c.state, image=c.image)
            for c in self.containers.values()
            if not statuses or c.state in statuses
        ]

    def remove_container(self, name: str) -> None:
        self._record("remove_container", name)
        container = self._find(name)
        if container is None:
            self._fail("remove_container", f"No such container: {name}")
        else:
            del self.containers[container.name]

    def inspect_health(self, container_id: str) -> ContainerState:
        self._record("inspect_health", container_id)
        container = self._find(container_id)
        if container is None:
            self._fail("inspect_health", f"No such object: {container_id}")
        return ContainerState(name=container.name, health=container.health, state=container.state)

    def list_volumes(self) -> list[str]:
        self._record("list_volumes")
        return list(self.volumes)

    def remove_volume(self, name: str) -> None:
        self._record("remove_volume", name)
        if name not in self.volumes:
            self._fail("remove_volume", f"no such volume: {name}")
        if any(name in c.volumes for c in self.containers.values()):
            self._fail("remove_volume", f"remove {name}: volume is in use")
        del self.volumes[name]

    def prune_containers(self) -> str:
        self._record("prune_containers")
        gone = [n for n, c in self.containers.items() if c.state in ("exited", "dead", "created")]
        for n in gone:
            del self.containers[n]
        return f"Deleted Containers: {len(gone)}"

    def prune_networks(self) -> str:
        self._record("prune_networks")
        attached = {net for c in self.containers.values() for net in c.networks}
        gone = [n for n in self.networks if n not in _BUILTIN_NETWORKS and n not in attached]
        for n in gone:
            del self.networks[n]
        return f"Deleted Networks: {len(gone)}"

    def prune_volumes(self) -> str:
        self._record("prune_volumes")
        used = {v for c in self.containers.values() for v in c.volumes}
        gone = [n for n, v in self.volumes.items() if v.anonymous and n not in used]
        for n in gone:
            del self.volumes[n]
        return f"Deleted Volumes: {len(gone)}"

    def prune_images(self) -> str:
        self._record("prune_images")
        used = {c.image for c in self.containers.values()}
        gone = [i for i in self.images if i not in used]
        for i in gone:
            self.images.discard(i)
        return f"Deleted Images: {len(gone)}"

    def prune_system(self) -> str:
        self._record("prune_system")
        # Bypass the per-operation failure hooks of the individual prunes.
        parts = [self._silent(self.prune_containers), self._silent(self.prune_networks),
                 self._silent(self.prune_images)]
        return "\n".join(parts)

    def disk_usage(self) -> str:
        self._record("disk_usage")
        return (
            "TYPE            TOTAL\n"
            f"Images          {len(self.images)}\n"
            f"Containers      {len(self.containers)}\n"
            f"Local Volumes   {len(self.volumes)}"
        )

    def reset(self) -> None:
        """Clear call log and configured failures (engine state is kept)."""
        self._call_log.clear()
        self._failures.clear()
        self._pull_failures.clear()

    # ── Helpers ─────────────────────────────────────────────────

    def _record(self, operation: str, *args: object) -> None:
        self._call_log.append((operation, args))
        if operation in self._failures:
            self._fail(operation, self._failures[operation])

    def _fail(self, operation: str, error: str) -> NoReturn:
        raise RuntimeCommandError([self.name, operation], 1, error)

    def _silent(self, fn) -> str:
        saved = self._failures
        self._failures = {}
        try:
            return fn()
        finally:
            self._failures = saved

    def _new_id(self) -> str:
        self._next_id += 1
        return f"{self._next_id:012x}"

    def _find(self, name_or_id: str) -> MockContainer | None:
        if name_or_id in self.containers:
            return self.containers[name_or_id]
        for c in self.containers.values():
            if c.id == name_or_id:
                return c
        return None

    def _default_services(self) -> list[str]:
        if self._registry is not None:
            return self._registry.names()
        return [n for n, c in self.containers.items() if c.in_project]

    def _project_containers(self, services: Sequence[str]) -> list[MockContainer]:
        wanted = set(services)
        return [
            c for c in self.containers.values()
            if c.in_project and (not wanted or c.name in wanted)
        ]

    def _service_networks(self, service: str) -> tuple[str, ...]:
        if self._registry is None:
            return ()
        svc = self._registry.get(service)
        return svc.networks if svc else ()

    def _has_probe(self, service: str) -> bool:
        if self._registry is None:
            return False
        svc = self._registry.get(service)
        return bool(svc and svc.health_check)
