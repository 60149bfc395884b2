"""
Execution context — the one value describing "which stack, run how."

Built once at startup by the CLI and passed into every component at
construction. Nothing reads project paths or the compose invocation
from module globals.

    - CLI:    main.py → ExecutionContext.from_env(root, compose_command=...)
    - Tests:  ExecutionContext(project_root=tmp_path)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, model_validator

logger = logging.getLogger(__name__)

COMPOSE_FILENAME = "docker-compose.yml"
ENV_FILENAME = ".env"

DEFAULT_START_SETTLE = 5
DEFAULT_RESTART_SETTLE = 3


class ExecutionContext(BaseModel):
    """Immutable per-invocation configuration."""

    model_config = ConfigDict(frozen=True)

    project_root: Path
    compose_file: Path | None = None
    env_file: Path | None = None
    compose_command: tuple[str, ...] = ("docker", "compose")
    start_settle_seconds: float = DEFAULT_START_SETTLE
    restart_settle_seconds: float = DEFAULT_RESTART_SETTLE

    @model_validator(mode="before")
    @classmethod
    def _default_paths(cls, data: object) -> object:
        if isinstance(data, dict) and data.get("project_root") is not None:
            root = Path(data["project_root"])
            if data.get("compose_file") is None:
                data = {**data, "compose_file": root / COMPOSE_FILENAME}
            if data.get("env_file") is None:
                data = {**data, "env_file": root / ENV_FILENAME}
        return data

    @classmethod
    def from_env(
        cls,
        project_root: Path | None = None,
        *,
        compose_command: tuple[str, ...] = ("docker", "compose"),
    ) -> ExecutionContext:
        """Build a context, reading SULLIVAN_* variables for unset values.

        Precedence for the root: explicit argument > SULLIVAN_ROOT > cwd.
        """
        if project_root is None:
            env_root = os.environ.get("SULLIVAN_ROOT")
            project_root = Path(env_root) if env_root else Path.cwd()

        return cls(
            project_root=project_root.resolve(),
            compose_command=compose_command,
            start_settle_seconds=_env_seconds("SULLIVAN_SETTLE_START", DEFAULT_START_SETTLE),
            restart_settle_seconds=_env_seconds("SULLIVAN_SETTLE_RESTART", DEFAULT_RESTART_SETTLE),
        )

    def compose_args(self) -> list[str]:
        """The compose invocation prefix: command, compose file, env file."""
        args = [*self.compose_command, "-f", str(self.compose_file)]
        if self.env_file is not None and self.env_file.is_file():
            args.extend(["--env-file", str(self.env_file)])
        return args


def _env_seconds(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not a number)", name, raw)
        return default
    return max(value, 0.0)
