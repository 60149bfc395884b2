"""
Packaged data — the default service registry catalog.

    from sullivan.core.data import DEFAULT_REGISTRY_PATH
"""

from __future__ import annotations

from pathlib import Path

DATA_DIR = Path(__file__).parent

DEFAULT_REGISTRY_PATH = DATA_DIR / "registry.yml"
