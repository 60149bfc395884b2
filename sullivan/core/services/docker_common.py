"""Docker shared helpers — low-level command runners and engine probes."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from sullivan.adapters.base import RuntimeUnavailable

logger = logging.getLogger(__name__)


# ── Synchronous runners ────────────────────────────────────────────


def run_docker(
    *args: str,
    cwd: Path,
    timeout: int = 60,
) -> subprocess.CompletedProcess[str]:
    """Run a docker command and return the result."""
    logger.debug("docker %s (cwd=%s)", " ".join(args), cwd)
    return subprocess.run(
        ["docker", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def run_compose(
    compose_args: list[str],
    *args: str,
    cwd: Path,
    timeout: int = 120,
) -> subprocess.CompletedProcess[str]:
    """Run a compose command with a prepared prefix and return the result.

    Args:
        compose_args: Invocation prefix, e.g. ``["docker", "compose", "-f", ...]``.
    """
    cmd = [*compose_args, *args]
    logger.debug("%s (cwd=%s)", " ".join(cmd), cwd)
    return subprocess.run(
        cmd,
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout,
    )


# ── Engine probes ─────────────────────────────────────────────────


def check_engine(cwd: Path) -> None:
    """Verify docker is installed and its daemon answers.

    Raises:
        RuntimeUnavailable: with an operator-facing message.
    """
    if shutil.which("docker") is None:
        raise RuntimeUnavailable("Docker is not installed")

    try:
        r = run_docker("info", cwd=cwd, timeout=20)
    except subprocess.TimeoutExpired as e:
        raise RuntimeUnavailable("Docker daemon is not responding") from e
    if r.returncode != 0:
        raise RuntimeUnavailable("Docker daemon is not running")


def detect_compose_command(cwd: Path) -> tuple[str, ...]:
    """Pick the compose invocation form available on this host.

    The standalone ``docker-compose`` binary wins when present;
    otherwise the ``docker compose`` plugin is probed.

    Raises:
        RuntimeUnavailable: if neither form works.
    """
    if shutil.which("docker-compose") is not None:
        return ("docker-compose",)

    try:
        r = run_docker("compose", "version", cwd=cwd, timeout=15)
    except (OSError, subprocess.TimeoutExpired) as e:
        raise RuntimeUnavailable("Docker Compose is not available") from e
    if r.returncode == 0:
        return ("docker", "compose")

    raise RuntimeUnavailable("Docker Compose is not available")
