"""
Tests for ExecutionContext — defaults, compose invocation, env overrides.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from sullivan.core.context import ExecutionContext


class TestDefaults:
    def test_paths_derive_from_root(self, tmp_path: Path):
        ctx = ExecutionContext(project_root=tmp_path)
        assert ctx.compose_file == tmp_path / "docker-compose.yml"
        assert ctx.env_file == tmp_path / ".env"
        assert ctx.compose_command == ("docker", "compose")
        assert ctx.start_settle_seconds == 5
        assert ctx.restart_settle_seconds == 3

    def test_explicit_paths_kept(self, tmp_path: Path):
        ctx = ExecutionContext(project_root=tmp_path, env_file=tmp_path / "prod.env")
        assert ctx.env_file == tmp_path / "prod.env"

    def test_frozen(self, tmp_path: Path):
        ctx = ExecutionContext(project_root=tmp_path)
        with pytest.raises(ValidationError):
            ctx.project_root = Path("/")


class TestComposeArgs:
    def test_without_env_file(self, tmp_path: Path):
        ctx = ExecutionContext(project_root=tmp_path)
        assert ctx.compose_args() == ["docker", "compose", "-f", str(tmp_path / "docker-compose.yml")]

    def test_with_env_file(self, tmp_path: Path):
        (tmp_path / ".env").write_text("TZ=UTC\n")
        ctx = ExecutionContext(project_root=tmp_path, compose_command=("docker-compose",))
        assert ctx.compose_args() == [
            "docker-compose",
            "-f", str(tmp_path / "docker-compose.yml"),
            "--env-file", str(tmp_path / ".env"),
        ]


class TestFromEnv:
    def test_explicit_root_wins(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("SULLIVAN_ROOT", "/elsewhere")
        assert ExecutionContext.from_env(tmp_path).project_root == tmp_path.resolve()

    def test_root_from_environment(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("SULLIVAN_ROOT", str(tmp_path))
        assert ExecutionContext.from_env().project_root == tmp_path.resolve()

    def test_root_defaults_to_cwd(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("SULLIVAN_ROOT", raising=False)
        monkeypatch.chdir(tmp_path)
        assert ExecutionContext.from_env().project_root == tmp_path.resolve()

    def test_settle_overrides(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("SULLIVAN_SETTLE_START", "0")
        monkeypatch.setenv("SULLIVAN_SETTLE_RESTART", "7.5")
        ctx = ExecutionContext.from_env(tmp_path)
        assert ctx.start_settle_seconds == 0
        assert ctx.restart_settle_seconds == 7.5

    def test_invalid_settle_falls_back(self, tmp_path: Path, monkeypatch, caplog):
        monkeypatch.setenv("SULLIVAN_SETTLE_START", "soon")
        monkeypatch.setenv("SULLIVAN_SETTLE_RESTART", "-4")
        ctx = ExecutionContext.from_env(tmp_path)
        assert ctx.start_settle_seconds == 5
        assert ctx.restart_settle_seconds == 0
        assert "SULLIVAN_SETTLE_START" in caplog.text

    def test_compose_command_passed_through(self, tmp_path: Path):
        ctx = ExecutionContext.from_env(tmp_path, compose_command=("docker-compose",))
        assert ctx.compose_args()[0] == "docker-compose"
