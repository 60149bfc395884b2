"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from sullivan.adapters.mock import MockRuntime
from sullivan.core.context import ExecutionContext
from sullivan.core.engine.controller import LifecycleController
from sullivan.core.models.service import ServiceRegistry
from sullivan.core.services.env_config import MEDIA_DIRECTORY_KEYS, EnvConfig


@pytest.fixture
def small_registry() -> ServiceRegistry:
    """Four services over three tiers, declared out of tier order."""
    return ServiceRegistry.model_validate({
        "project_name": "demo",
        "networks": [{"name": "media"}, {"name": "database"}],
        "services": [
            {"name": "appA", "tier": 1, "health_check": False, "networks": ["media"]},
            {"name": "util1", "tier": "management", "health_check": False},
            {"name": "db1", "tier": "database", "networks": ["database"]},
            {"name": "appB", "tier": 1, "networks": ["media"]},
        ],
        "volumes": {"protected": ["db1_data"], "cache": ["appa_cache"]},
        "endpoints": [
            {"service": "appA", "label": "App A", "url": "http://localhost:8001", "group": "Apps"},
            {"service": "util1", "label": "Util", "url": "http://localhost:9001", "group": "Utilities"},
        ],
        "orphan_patterns": ["demo", "app*"],
    })


@pytest.fixture
def env_file(tmp_path: Path) -> Path:
    """A .env whose media paths all live under tmp_path."""
    lines = [f"{key}={tmp_path / 'media' / key.lower()}" for key, _ in MEDIA_DIRECTORY_KEYS]
    lines.append("WIKI_DB_PASSWORD=changeme_wiki_password")
    path = tmp_path / ".env"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def context(tmp_path: Path) -> ExecutionContext:
    return ExecutionContext(
        project_root=tmp_path,
        start_settle_seconds=5,
        restart_settle_seconds=3,
    )


@pytest.fixture
def runtime(small_registry: ServiceRegistry) -> MockRuntime:
    return MockRuntime(small_registry)


@pytest.fixture
def sleeps() -> list[float]:
    """Records settle delays instead of sleeping."""
    return []


@pytest.fixture
def controller(
    context: ExecutionContext,
    runtime: MockRuntime,
    small_registry: ServiceRegistry,
    env_file: Path,
    sleeps: list[float],
) -> LifecycleController:
    return LifecycleController(
        context,
        runtime,
        small_registry,
        EnvConfig(env_file),
        sleep=sleeps.append,
    )
