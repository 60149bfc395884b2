"""
Registry loader — reads the service catalog into a validated registry.

The packaged ``registry.yml`` is the default. A project may ship its own
``sullivan.yml`` next to its compose file; that file then replaces the
packaged catalog entirely (no merging).
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from sullivan.core.data import DEFAULT_REGISTRY_PATH
from sullivan.core.models.service import ServiceRegistry

logger = logging.getLogger(__name__)

# Project-level override filename
REGISTRY_OVERRIDE_FILE = "sullivan.yml"


class RegistryError(Exception):
    """Raised when the service catalog is missing or invalid."""


def find_registry_file(project_root: Path) -> Path | None:
    """Return the project's registry override, or None when it has none."""
    candidate = project_root / REGISTRY_OVERRIDE_FILE
    if candidate.is_file():
        return candidate
    return None


def load_registry(path: Path | None = None) -> ServiceRegistry:
    """Load and validate a service catalog.

    Args:
        path: Explicit catalog file. If None, the packaged default is used.

    Returns:
        Validated ServiceRegistry.

    Raises:
        RegistryError: If the file is missing, not YAML, or invalid.
    """
    path = path or DEFAULT_REGISTRY_PATH

    if not path.is_file():
        raise RegistryError(f"Registry file not found: {path}")

    logger.debug("Loading service registry from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RegistryError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise RegistryError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise RegistryError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        registry = ServiceRegistry.model_validate(data)
    except ValidationError as e:
        raise RegistryError(f"Invalid service registry in {path}: {e}") from e

    logger.info(
        "Loaded registry '%s': %d services, %d networks",
        registry.project_name, len(registry.services), len(registry.networks),
    )
    return registry


def load_project_registry(project_root: Path) -> ServiceRegistry:
    """Load the project's override when present, else the packaged catalog."""
    return load_registry(find_registry_file(project_root))
