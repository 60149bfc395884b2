"""
Tests for the lifecycle controller — planning, start/stop/restart/rebuild, pull.
"""

import logging
from pathlib import Path

import pytest

from sullivan.adapters.base import RuntimeCommandError
from sullivan.adapters.mock import MockRuntime
from sullivan.core.context import ExecutionContext
from sullivan.core.engine.controller import LifecycleController
from sullivan.core.models.plan import Phase
from sullivan.core.models.result import PhaseResult
from sullivan.core.models.service import ServiceRegistry
from sullivan.core.services.env_config import MEDIA_DIRECTORY_KEYS, EnvConfig

# ── Planning ────────────────────────────────────────────────────────


class TestResolvePlan:
    def test_no_services_is_full_plan_in_tier_order(self, controller: LifecycleController):
        plan = controller.resolve_plan([])
        assert plan.is_full
        assert plan.names() == ["db1", "appA", "appB", "util1"]

    def test_all_sentinel_is_full_plan(self, controller: LifecycleController):
        plan = controller.resolve_plan(["all"])
        assert plan.is_full
        assert plan.names() == ["db1", "appA", "appB", "util1"]

    def test_subset_is_verbatim(self, controller: LifecycleController):
        plan = controller.resolve_plan(["appB", "appA"])
        assert not plan.is_full
        assert plan.names() == ["appB", "appA"]

    def test_subset_is_not_reordered_by_tier(self, controller: LifecycleController):
        assert controller.resolve_plan(["util1", "db1"]).names() == ["util1", "db1"]

    def test_unknown_service_passes_through_with_warning(self, controller: LifecycleController, caplog):
        with caplog.at_level(logging.WARNING):
            plan = controller.resolve_plan(["ghost"])
        assert plan.names() == ["ghost"]
        assert "ghost" in caplog.text

    def test_full_plan_reaches_the_engine_in_order(self, controller, runtime: MockRuntime):
        controller.start()
        assert runtime.calls("compose_up") == [("db1", "appA", "appB", "util1")]


# ── Start ───────────────────────────────────────────────────────────


class TestStart:
    def test_fresh_start(self, controller: LifecycleController, runtime: MockRuntime, sleeps):
        report = controller.start()

        assert report.warnings == []
        assert {"media", "database"} <= set(runtime.networks)
        assert {"db1", "appA", "appB", "util1"} <= set(runtime.containers)
        assert sleeps == [5]
        assert report.health is not None and report.health.passed
        assert report.show_endpoints
        assert "db1" in report.status_table

    def test_records_every_phase(self, controller: LifecycleController):
        report = controller.start()
        assert report.phases == [
            Phase.REQUESTED,
            Phase.PRECHECKED,
            Phase.PLANNED,
            Phase.APPLIED,
            Phase.SETTLING,
            Phase.REPORTED,
        ]

    def test_preflight_runs_before_bring_up(self, controller, runtime: MockRuntime):
        controller.start(["appA"])
        ops = runtime.operations()
        assert ops.index("create_network") < ops.index("compose_down") < ops.index("compose_up")

    def test_creates_media_directories(self, controller, tmp_path: Path):
        controller.start()
        assert (tmp_path / "media" / "media_path_movies").is_dir()
        assert (tmp_path / "media" / "youtube_video_path").is_dir()

    def test_start_twice_is_soft(self, controller: LifecycleController, runtime: MockRuntime):
        controller.start()
        runtime.reset()

        report = controller.start()

        assert report.warnings == []
        assert runtime.calls("create_network") == []
        networks = next(s for s in report.steps if s.phase == "networks")
        assert sorted(networks.kept) == ["database", "media"]

    def test_network_collision_is_not_an_error(self, controller, runtime: MockRuntime):
        runtime.set_failure("create_network", "network with name media already exists")
        report = controller.start(["util1"])
        assert report.warnings == []
        networks = next(s for s in report.steps if s.phase == "networks")
        assert sorted(networks.kept) == ["database", "media"]

    def test_network_failure_only_warns(self, controller, runtime: MockRuntime):
        runtime.set_failure("create_network", "permission denied")
        report = controller.start(["util1"])
        assert [w.phase for w in report.warnings] == ["networks"]
        assert "util1" in runtime.containers

    def test_directory_failure_only_warns(
        self, context, runtime, small_registry, tmp_path: Path, sleeps,
    ):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        values = {key: tmp_path / key.lower() for key, _ in MEDIA_DIRECTORY_KEYS}
        values["MEDIA_PATH"] = blocker / "sub"
        env = tmp_path / "custom.env"
        env.write_text("".join(f"{k}={v}\n" for k, v in values.items()))
        controller = LifecycleController(
            context, runtime, small_registry, EnvConfig(env), sleep=sleeps.append,
        )

        report = controller.start(["util1"])

        directories = next(s for s in report.steps if s.phase == "directories")
        assert directories.soft_failed
        assert str(tmp_path / "media_path_movies") in directories.created
        assert len(directories.errors) == 1
        assert report.phase is Phase.REPORTED

    def test_orphan_teardown_failure_only_warns(self, controller, runtime: MockRuntime):
        runtime.set_failure("compose_down", "no such project")
        report = controller.start()
        assert [w.phase for w in report.warnings] == ["orphans"]
        assert "db1" in runtime.containers

    def test_bring_up_failure_is_fatal(self, controller, runtime: MockRuntime, sleeps):
        runtime.set_failure("compose_up", "image not found")
        with pytest.raises(RuntimeCommandError, match="image not found"):
            controller.start()
        assert sleeps == []

    def test_creates_missing_env_file(
        self, context: ExecutionContext, runtime, small_registry, tmp_path: Path, sleeps, monkeypatch,
    ):
        requested: list[Path] = []

        def fake_ensure_directories(paths):
            requested.extend(paths)
            return PhaseResult.success("directories")

        # The default template points at /mnt; keep the host untouched.
        monkeypatch.setattr(
            "sullivan.core.engine.controller.ensure_directories", fake_ensure_directories,
        )
        env = tmp_path / "fresh" / ".env"
        controller = LifecycleController(
            context, runtime, small_registry, EnvConfig(env), sleep=sleeps.append,
        )

        report = controller.start(["util1"])

        assert env.is_file()
        config = next(s for s in report.steps if s.phase == "config")
        assert config.created == [str(env)]
        assert Path("/mnt/media/movies") in requested


# ── Stop ────────────────────────────────────────────────────────────


class TestStop:
    def test_stop_all_tears_down_and_reclaims_networks(self, controller, runtime: MockRuntime):
        controller.start()
        runtime.reset()

        report = controller.stop()

        assert runtime.calls("compose_down") == [(True,)]
        assert "media" not in runtime.networks
        assert "database" not in runtime.networks
        networks = next(s for s in report.steps if s.phase == "networks")
        assert sorted(networks.removed) == ["database", "media"]

    def test_stop_subset_removes_no_network(self, controller, runtime: MockRuntime):
        controller.start()
        runtime.reset()

        controller.stop(["appA", "db1"])

        assert runtime.calls("compose_stop") == [("appA", "db1")]
        assert runtime.calls("compose_down") == []
        assert runtime.calls("remove_network") == []
        assert runtime.calls("prune_networks") == []
        assert {"media", "database"} <= set(runtime.networks)
        assert runtime.containers["appA"].state == "exited"
        assert runtime.containers["appB"].state == "running"

    def test_stop_keeps_network_used_by_foreign_container(self, controller, runtime: MockRuntime):
        controller.start()
        runtime.add_container("outsider", networks=["media"], in_project=False)

        controller.stop()

        assert "media" in runtime.networks
        assert "database" not in runtime.networks

    def test_teardown_failure_is_fatal(self, controller, runtime: MockRuntime):
        runtime.set_failure("compose_down", "daemon gone")
        with pytest.raises(RuntimeCommandError):
            controller.stop()


# ── Restart ─────────────────────────────────────────────────────────


class TestRestart:
    def test_restart_has_no_preflight(self, controller, runtime: MockRuntime, sleeps):
        controller.start()
        runtime.reset()
        sleeps.clear()

        report = controller.restart(["appA"])

        assert runtime.calls("compose_restart") == [("appA",)]
        assert runtime.calls("create_network") == []
        assert runtime.calls("network_exists") == []
        assert sleeps == [3]
        assert report.phase is Phase.REPORTED
        assert not report.show_endpoints

    def test_settle_delays_come_from_context(self, runtime, small_registry, env_file, tmp_path, sleeps):
        context = ExecutionContext(project_root=tmp_path, start_settle_seconds=0, restart_settle_seconds=1.5)
        controller = LifecycleController(
            context, runtime, small_registry, EnvConfig(env_file), sleep=sleeps.append,
        )
        controller.start()
        controller.restart()
        assert sleeps == [1.5]


# ── Rebuild ─────────────────────────────────────────────────────────


class TestRebuild:
    def test_full_rebuild_order(self, controller, runtime: MockRuntime):
        controller.start()
        runtime.reset()

        report = controller.rebuild()

        ops = runtime.operations()
        assert ops[0] == "compose_down"
        assert ops.index("prune_images") < ops.index("compose_pull") < ops.index("compose_up")
        assert ops.index("network_exists") < ops.index("compose_pull")
        assert runtime.calls("compose_pull") == [("db1", "appA", "appB", "util1")]
        assert report.show_endpoints
        assert report.phase is Phase.REPORTED

    def test_subset_rebuild_stops_instead_of_down(self, controller, runtime: MockRuntime):
        controller.start()
        runtime.reset()

        controller.rebuild(["appA"])

        assert runtime.operations()[0] == "compose_stop"
        assert runtime.calls("compose_up") == [("appA",)]

    def test_cleanup_failures_do_not_abort(self, controller, runtime: MockRuntime):
        runtime.set_failure("prune_images", "busy")
        runtime.set_failure("list_containers", "busy")
        report = controller.rebuild()
        assert {w.phase for w in report.warnings} == {"orphans", "images"}
        assert runtime.calls("compose_up")

    def test_pull_failure_is_fatal(self, controller, runtime: MockRuntime):
        runtime.set_failure("compose_pull", "daemon gone")
        with pytest.raises(RuntimeCommandError, match="daemon gone"):
            controller.rebuild()
        assert runtime.calls("compose_up") == []

    def test_missing_image_aborts_before_bring_up(self, controller, runtime: MockRuntime):
        runtime.set_pull_failure("appB", "manifest unknown")
        with pytest.raises(RuntimeCommandError, match="appB Error manifest unknown"):
            controller.rebuild()
        assert runtime.calls("compose_up") == []
        assert "appB:latest" not in runtime.images


# ── Pull / status / logs / health ───────────────────────────────────


class TestPullAndObserve:
    def test_pull_failure_only_warns(self, controller, runtime: MockRuntime):
        runtime.set_failure("compose_pull", "rate limited")
        report = controller.pull(["appA"])
        assert [w.phase for w in report.warnings] == ["pull"]
        assert report.phase is Phase.REPORTED

    def test_missing_image_only_skips_that_image(self, controller, runtime: MockRuntime):
        runtime.set_pull_failure("appB")
        report = controller.pull()
        assert report.warnings == []
        assert "appA:latest" in runtime.images
        assert "appB:latest" not in runtime.images

    def test_pull_subset(self, controller, runtime: MockRuntime):
        controller.pull(["appB"])
        assert runtime.calls("compose_pull") == [("appB",)]
        assert "appB:latest" in runtime.images

    def test_status_table(self, controller, runtime: MockRuntime):
        runtime.add_container("db1", health="healthy")
        assert "db1" in controller.status()

    def test_logs_subset(self, controller, runtime: MockRuntime):
        assert controller.logs(["appA"], follow=False, tail=10) == 0
        assert runtime.calls("compose_logs") == [("appA",)]

    def test_health_after_start(self, controller):
        controller.start()
        report = controller.health()
        assert report.passed
        assert report.healthy_count == 2
        assert report.other_count == 2

    def test_health_with_nothing_running(self, controller):
        report = controller.health()
        assert report.empty
        assert not report.passed


class TestDefaults:
    def test_config_defaults_to_context_env_file(self, context, runtime, small_registry: ServiceRegistry):
        controller = LifecycleController(context, runtime, small_registry)
        assert controller.config.path == context.env_file
