"""
Tests for CLI commands — dispatch, lifecycle, observation, maintenance.

Commands run against the in-memory engine (``--mock``) inside a
temporary project root.
"""

import json
import logging
import subprocess
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from sullivan.core.services.env_config import MEDIA_DIRECTORY_KEYS
from sullivan.main import cli


@pytest.fixture(autouse=True)
def _restore_logging(monkeypatch):
    """The CLI reconfigures the root logger; put it back afterwards."""
    monkeypatch.setenv("SULLIVAN_SETTLE_START", "0")
    monkeypatch.setenv("SULLIVAN_SETTLE_RESTART", "0")
    monkeypatch.delenv("SULLIVAN_LOG_FILE", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root with a small registry and a .env under tmp_path."""
    (tmp_path / "sullivan.yml").write_text(textwrap.dedent("""\
        project_name: demo
        networks:
          - name: media
        services:
          - name: db
            tier: database
          - name: web
            tier: utility
            health_check: false
            networks: [media]
        endpoints:
          - service: web
            label: Web UI
            url: http://localhost:8080
            group: Utilities
    """))
    lines = [f"{key}={tmp_path / 'media' / key.lower()}" for key, _ in MEDIA_DIRECTORY_KEYS]
    (tmp_path / ".env").write_text("\n".join(lines) + "\n")
    return tmp_path


def _invoke(project: Path, *args: str):
    return CliRunner().invoke(cli, ["--mock", "--root", str(project), *args])


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "SULLIVAN" in result.output
        assert "rebuild" in result.output

    def test_short_help_flag(self):
        assert CliRunner().invoke(cli, ["-h"]).exit_code == 0

    def test_help_command(self):
        result = CliRunner().invoke(cli, ["help"])
        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_no_command_prints_help_and_fails(self):
        result = CliRunner().invoke(cli, [])
        assert result.exit_code == 1
        assert "Usage" in result.output

    def test_unknown_command(self):
        result = CliRunner().invoke(cli, ["foo"])
        assert result.exit_code == 1
        assert "Unknown command: foo" in result.output
        assert "Usage" in result.output

    def test_aliases(self, project: Path):
        assert _invoke(project, "ps").exit_code == 0
        result = _invoke(project, "urls")
        assert result.exit_code == 0
        assert "Web UI" in result.output


class TestEnginePrecheck:
    def test_missing_docker_exits_1(self, project: Path):
        with patch("sullivan.core.services.docker_common.shutil.which", return_value=None):
            result = CliRunner().invoke(cli, ["--root", str(project), "status"])
        assert result.exit_code == 1
        assert "Docker is not installed" in result.output

    def test_engine_checked_once(self, project: Path):
        ok = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        with patch("sullivan.core.services.docker_common.shutil.which", return_value="/usr/bin/docker"), \
                patch("sullivan.core.services.docker_common.subprocess.run", return_value=ok) as mock_run:
            result = CliRunner().invoke(cli, ["--root", str(project), "status"])
        assert result.exit_code == 0, result.output
        commands = [c.args[0] for c in mock_run.call_args_list]
        assert commands.count(["docker", "info"]) == 1

    def test_endpoints_need_no_engine(self, project: Path):
        with patch("sullivan.core.services.docker_common.shutil.which", return_value=None):
            result = CliRunner().invoke(cli, ["--root", str(project), "endpoints"])
        assert result.exit_code == 0
        assert "http://localhost:8080" in result.output

    def test_invalid_registry_exits_1(self, project: Path):
        (project / "sullivan.yml").write_text("services: [unclosed\n")
        result = _invoke(project, "status")
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


class TestLifecycleCommands:
    def test_start(self, project: Path):
        result = _invoke(project, "start")
        assert result.exit_code == 0, result.output
        assert "Starting Sullivan Services" in result.output
        assert "Start complete: all services" in result.output
        assert "Service Endpoints" in result.output

    def test_start_json(self, project: Path):
        result = _invoke(project, "-q", "start", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["operation"] == "start"
        assert data["plan"] == {"services": ["db", "web"], "full": True}
        assert data["phases"][-1] == "reported"
        assert data["warnings"] == 0

    def test_start_subset(self, project: Path):
        result = _invoke(project, "-q", "start", "web", "--json")
        data = json.loads(result.output)
        assert data["plan"] == {"services": ["web"], "full": False}

    def test_stop(self, project: Path):
        result = _invoke(project, "stop", "web")
        assert result.exit_code == 0, result.output
        assert "Stop complete: web" in result.output

    def test_restart_and_rebuild(self, project: Path):
        assert _invoke(project, "restart").exit_code == 0
        result = _invoke(project, "rebuild", "db")
        assert result.exit_code == 0, result.output
        assert "Rebuild complete: db" in result.output

    def test_pull(self, project: Path):
        result = _invoke(project, "pull")
        assert result.exit_code == 0, result.output
        assert "Pulling Docker Images" in result.output


class TestObserveCommands:
    def test_health_with_nothing_running_fails(self, project: Path):
        result = _invoke(project, "health")
        assert result.exit_code == 1
        assert "No containers running" in result.output

    def test_health_json(self, project: Path):
        result = _invoke(project, "-q", "check", "--json")
        assert result.exit_code == 1
        assert json.loads(result.output)["empty"] is True

    def test_status(self, project: Path):
        result = _invoke(project, "status")
        assert result.exit_code == 0
        assert "Service Status" in result.output

    def test_logs(self, project: Path):
        result = _invoke(project, "logs", "web", "--no-follow")
        assert result.exit_code == 0

    def test_endpoints_json(self, project: Path):
        result = _invoke(project, "endpoints", "--json")
        data = json.loads(result.output)
        assert data["Utilities"][0]["url"] == "http://localhost:8080"

    def test_info(self, project: Path):
        result = _invoke(project, "info")
        assert result.exit_code == 0
        assert "System Information" in result.output
        assert "Docker:      mock" in result.output


class TestMaintenanceCommands:
    def test_cleanup(self, project: Path):
        result = _invoke(project, "clean")
        assert result.exit_code == 0, result.output
        assert "Cleanup complete" in result.output

    def test_cleanup_json(self, project: Path):
        result = _invoke(project, "-q", "cleanup", "--json")
        data = json.loads(result.output)
        assert [p["phase"] for p in data["phases"]] == ["orphans", "networks", "volumes", "images", "system"]

    def test_secrets(self, project: Path):
        result = _invoke(project, "secrets")
        assert result.exit_code == 0, result.output
        assert "WIKI_DB_PASSWORD" in result.output
        again = _invoke(project, "secrets")
        assert "All secrets already set" in again.output
