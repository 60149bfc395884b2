"""
System information — host and engine diagnostics for ``sullivan info``.

Read-only probes: environment markers, /proc/meminfo, disk usage of /,
engine versions and ``docker system df``. Every probe degrades to
"unknown" rather than failing the command.
"""

from __future__ import annotations

import getpass
import logging
import os
import shutil
import socket
from pathlib import Path
from typing import Any

from sullivan.adapters.base import RuntimeAdapter, RuntimeAdapterError

logger = logging.getLogger(__name__)

_CLOUD_MARKER_FILES = ("/etc/cloud-id", "/var/lib/cloud/data/instance-id")
_CLOUD_MARKER_VARS = ("AWS_INSTANCE_ID", "GCP_PROJECT", "AZURE_SUBSCRIPTION_ID")

# Hosts below this much RAM cannot run the full stack comfortably.
_CONSTRAINED_MEMORY_MB = 2048


def _read_meminfo_mb(key: str, meminfo: Path = Path("/proc/meminfo")) -> int:
    """Read one /proc/meminfo entry in MB. 0 when unavailable."""
    try:
        with open(meminfo) as f:
            for line in f:
                if line.startswith(f"{key}:"):
                    return int(line.split()[1]) // 1024
    except (OSError, ValueError):
        pass
    return 0


def detect_environment(
    *,
    root: Path = Path("/"),
    environ: dict[str, str] | None = None,
    total_memory_mb: int | None = None,
) -> str:
    """Classify the host: cloud, container, resource_constrained or server."""
    env = os.environ if environ is None else environ

    if any((root / p.lstrip("/")).exists() for p in _CLOUD_MARKER_FILES) or any(
        env.get(var) for var in _CLOUD_MARKER_VARS
    ):
        return "cloud"

    if (root / ".dockerenv").exists() or env.get("KUBERNETES_SERVICE_HOST"):
        return "container"

    if total_memory_mb is None:
        total_memory_mb = _read_meminfo_mb("MemTotal")
    if 0 < total_memory_mb < _CONSTRAINED_MEMORY_MB:
        return "resource_constrained"

    return "server"


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def _format_mb(mb: int) -> str:
    if mb >= 1024:
        return f"{mb / 1024:.1f}G"
    return f"{mb}M"


def collect_system_info(runtime: RuntimeAdapter) -> dict[str, Any]:
    """Everything ``info`` prints, as a flat dict."""
    total_mb = _read_meminfo_mb("MemTotal")
    available_mb = _read_meminfo_mb("MemAvailable")

    info: dict[str, Any] = {
        "environment": detect_environment(total_memory_mb=total_mb),
        "hostname": socket.gethostname(),
        "user": os.environ.get("USER") or _current_user(),
        "docker": "unknown",
        "compose": "unknown",
        "memory": None,
        "disk_free": None,
        "engine_disk_usage": "",
    }

    try:
        info.update(runtime.engine_info())
    except RuntimeAdapterError as e:
        logger.debug("engine info unavailable: %s", e)

    if total_mb:
        info["memory"] = {
            "total": _format_mb(total_mb),
            "available": _format_mb(available_mb),
        }

    try:
        usage = shutil.disk_usage("/")
        info["disk_free"] = _format_mb(usage.free // (1024 * 1024))
    except OSError as e:
        logger.debug("disk usage of / unavailable: %s", e)

    try:
        info["engine_disk_usage"] = runtime.disk_usage()
    except RuntimeAdapterError as e:
        logger.debug("docker system df failed: %s", e)

    return info
