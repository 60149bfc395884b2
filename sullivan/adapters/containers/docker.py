"""
Docker runtime — container, network and compose operations.

Uses the docker CLI (and the compose form chosen for this host),
never the Docker API directly. Every call raises on a non-zero exit;
deciding whether that is fatal is the caller's job.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from collections.abc import Sequence

from sullivan.adapters.base import (
    ContainerInfo,
    ContainerState,
    RuntimeAdapter,
    RuntimeCommandError,
    RuntimeUnavailable,
)
from sullivan.core.context import ExecutionContext
from sullivan.core.models.service import NetworkDescriptor
from sullivan.core.services.docker_common import check_engine, run_compose, run_docker

logger = logging.getLogger(__name__)

# Per-call timeouts (seconds)
_T_QUICK = 15
_T_COMPOSE = 300
_T_PULL = 1800
_T_PRUNE = 300


class DockerRuntime(RuntimeAdapter):
    """The docker engine driven through its CLI."""

    def __init__(self, context: ExecutionContext):
        self._ctx = context

    @property
    def name(self) -> str:
        return "docker"

    @property
    def context(self) -> ExecutionContext:
        return self._ctx

    def is_available(self) -> bool:
        return shutil.which("docker") is not None

    def check(self) -> None:
        check_engine(self._ctx.project_root)

    def engine_info(self) -> dict[str, str]:
        info = {"docker": "unknown", "compose": "unknown"}
        r = self._docker("--version", check=False)
        if r.returncode == 0:
            # "Docker version 27.1.1, build 6312585"
            parts = r.stdout.split()
            if len(parts) >= 3:
                info["docker"] = parts[2].rstrip(",")
        r = self._compose("version", "--short", check=False)
        if r.returncode == 0 and r.stdout.strip():
            info["compose"] = r.stdout.strip().splitlines()[0]
        return info

    # ── Networks ────────────────────────────────────────────────

    def create_network(self, network: NetworkDescriptor) -> None:
        self._docker("network", "create", network.name, "--driver", network.driver)

    def list_networks(self) -> list[str]:
        r = self._docker("network", "ls", "--format", "{{.Name}}")
        return [line.strip() for line in r.stdout.splitlines() if line.strip()]

    def network_exists(self, name: str) -> bool:
        r = self._docker("network", "inspect", name, check=False)
        return r.returncode == 0

    def network_containers(self, name: str) -> list[str]:
        r = self._docker("network", "inspect", name, "--format", "{{json .Containers}}")
        output = r.stdout.strip()
        if not output or output == "null":
            return []
        try:
            attached = json.loads(output)
        except json.JSONDecodeError:
            logger.debug("Unparseable network inspect output for %s: %r", name, output)
            return []
        if not isinstance(attached, dict):
            return []
        return [c.get("Name", cid) for cid, c in attached.items()]

    def remove_network(self, name: str) -> None:
        self._docker("network", "rm", name)

    # ── Compose project ─────────────────────────────────────────

    def compose_up(self, services: Sequence[str]) -> None:
        self._compose("up", "-d", *services, timeout=_T_COMPOSE)

    def compose_down(self, *, remove_orphans: bool = True) -> None:
        args = ["down"]
        if remove_orphans:
            args.append("--remove-orphans")
        self._compose(*args, timeout=_T_COMPOSE)

    def compose_stop(self, services: Sequence[str]) -> None:
        self._compose("stop", *services, timeout=_T_COMPOSE)

    def compose_restart(self, services: Sequence[str]) -> None:
        self._compose("restart", *services, timeout=_T_COMPOSE)

    def compose_pull(self, services: Sequence[str], *, ignore_failures: bool = True) -> str:
        args = ["pull"]
        if ignore_failures:
            args.append("--ignore-pull-failures")
        r = self._compose(*args, *services, timeout=_T_PULL)
        # Compose writes progress to stderr; drop the per-layer noise.
        lines = (r.stdout + r.stderr).splitlines()
        return "\n".join(line for line in lines if "Pulling" not in line).strip()

    def compose_ps_ids(self) -> list[str]:
        r = self._compose("ps", "-q")
        return [line.strip() for line in r.stdout.splitlines() if line.strip()]

    def compose_ps_table(self) -> str:
        r = self._compose(
            "ps", "--format", "table {{.Name}}\t{{.Status}}\t{{.Ports}}",
            check=False,
        )
        if r.returncode == 0:
            return r.stdout.rstrip()
        # Older compose releases have no --format
        return self._compose("ps").stdout.rstrip()

    def compose_logs(self, services: Sequence[str], *, follow: bool = True, tail: int = 100) -> int:
        args = ["logs", f"--tail={tail}"]
        if follow:
            args.insert(1, "-f")
        cmd = [*self._ctx.compose_args(), *args, *services]
        logger.debug("Streaming: %s", " ".join(cmd))
        try:
            # Inherit the terminal; blocks until the user interrupts.
            proc = subprocess.run(cmd, cwd=str(self._ctx.project_root))
        except FileNotFoundError as e:
            raise RuntimeUnavailable(f"{cmd[0]} not found") from e
        return proc.returncode

    # ── Containers ──────────────────────────────────────────────

    def list_containers(self, statuses: Sequence[str] = ()) -> list[ContainerInfo]:
        args = ["ps", "-a"]
        for status in statuses:
            args.extend(["--filter", f"status={status}"])
        args.extend(["--format", "{{json .}}"])
        r = self._docker(*args)

        containers = []
        for line in r.stdout.strip().splitlines():
            if not line.strip():
                continue
            try:
                info = json.loads(line)
            except json.JSONDecodeError:
                continue
            containers.append(ContainerInfo(
                id=info.get("ID", ""),
                name=info.get("Names", ""),
                state=info.get("State", ""),
                image=info.get("Image", ""),
            ))
        return containers

    def remove_container(self, name: str) -> None:
        self._docker("rm", "-f", name)

    def inspect_health(self, container_id: str) -> ContainerState:
        r = self._docker("inspect", container_id)
        try:
            data = json.loads(r.stdout)
        except json.JSONDecodeError as e:
            raise RuntimeCommandError(["docker", "inspect", container_id], 0,
                                      "Failed to parse inspect output") from e
        if not isinstance(data, list) or not data:
            raise RuntimeCommandError(["docker", "inspect", container_id], 0,
                                      "Empty inspect result")

        raw = data[0]
        state = raw.get("State") or {}
        health = state.get("Health") or {}
        return ContainerState(
            name=(raw.get("Name", "") or container_id).lstrip("/"),
            health=health.get("Status") if health else None,
            state=state.get("Status", "unknown"),
        )

    # ── Volumes & reclamation ───────────────────────────────────

    def list_volumes(self) -> list[str]:
        r = self._docker("volume", "ls", "--format", "{{.Name}}")
        return [line.strip() for line in r.stdout.splitlines() if line.strip()]

    def remove_volume(self, name: str) -> None:
        self._docker("volume", "rm", name)

    def prune_containers(self) -> str:
        return self._docker("container", "prune", "-f", timeout=_T_PRUNE).stdout.strip()

    def prune_networks(self) -> str:
        return self._docker("network", "prune", "-f", timeout=_T_PRUNE).stdout.strip()

    def prune_volumes(self) -> str:
        # Without --all, only anonymous unreferenced volumes are pruned.
        return self._docker("volume", "prune", "-f", timeout=_T_PRUNE).stdout.strip()

    def prune_images(self) -> str:
        return self._docker("image", "prune", "-f", timeout=_T_PRUNE).stdout.strip()

    def prune_system(self) -> str:
        return self._docker("system", "prune", "-f", timeout=_T_PRUNE).stdout.strip()

    def disk_usage(self) -> str:
        return self._docker("system", "df").stdout.rstrip()

    # ── Helpers ─────────────────────────────────────────────────

    def _docker(
        self, *args: str, timeout: int = _T_QUICK, check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        cmd = ["docker", *args]
        try:
            r = run_docker(*args, cwd=self._ctx.project_root, timeout=timeout)
        except FileNotFoundError as e:
            raise RuntimeUnavailable("Docker is not installed") from e
        except subprocess.TimeoutExpired as e:
            raise RuntimeCommandError(cmd, -1, f"timed out after {timeout}s") from e
        if check and r.returncode != 0:
            raise RuntimeCommandError(cmd, r.returncode, r.stderr)
        return r

    def _compose(
        self, *args: str, timeout: int = _T_QUICK, check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        prefix = self._ctx.compose_args()
        cmd = [*prefix, *args]
        try:
            r = run_compose(prefix, *args, cwd=self._ctx.project_root, timeout=timeout)
        except FileNotFoundError as e:
            raise RuntimeUnavailable(f"{prefix[0]} not found") from e
        except subprocess.TimeoutExpired as e:
            raise RuntimeCommandError(cmd, -1, f"timed out after {timeout}s") from e
        if check and r.returncode != 0:
            raise RuntimeCommandError(cmd, r.returncode, r.stderr)
        return r
