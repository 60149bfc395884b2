"""
Tests for host diagnostics — environment detection and the info dict.
"""

from pathlib import Path

from sullivan.adapters.mock import MockRuntime
from sullivan.core.services.system_info import (
    _format_mb,
    _read_meminfo_mb,
    collect_system_info,
    detect_environment,
)


class TestDetectEnvironment:
    def test_cloud_marker_file(self, tmp_path: Path):
        (tmp_path / "etc").mkdir()
        (tmp_path / "etc" / "cloud-id").write_text("aws\n")
        assert detect_environment(root=tmp_path, environ={}, total_memory_mb=8192) == "cloud"

    def test_cloud_marker_variable(self, tmp_path: Path):
        env = {"GCP_PROJECT": "my-project"}
        assert detect_environment(root=tmp_path, environ=env, total_memory_mb=8192) == "cloud"

    def test_container(self, tmp_path: Path):
        (tmp_path / ".dockerenv").write_text("")
        assert detect_environment(root=tmp_path, environ={}, total_memory_mb=8192) == "container"

    def test_kubernetes_counts_as_container(self, tmp_path: Path):
        env = {"KUBERNETES_SERVICE_HOST": "10.0.0.1"}
        assert detect_environment(root=tmp_path, environ=env, total_memory_mb=8192) == "container"

    def test_low_memory(self, tmp_path: Path):
        assert detect_environment(root=tmp_path, environ={}, total_memory_mb=1024) == "resource_constrained"

    def test_server(self, tmp_path: Path):
        assert detect_environment(root=tmp_path, environ={}, total_memory_mb=16384) == "server"

    def test_unknown_memory_is_server(self, tmp_path: Path):
        assert detect_environment(root=tmp_path, environ={}, total_memory_mb=0) == "server"


class TestMeminfo:
    def test_reads_key(self, tmp_path: Path):
        meminfo = tmp_path / "meminfo"
        meminfo.write_text("MemTotal:       16318480 kB\nMemAvailable:    8159240 kB\n")
        assert _read_meminfo_mb("MemTotal", meminfo) == 15936
        assert _read_meminfo_mb("MemAvailable", meminfo) == 7968

    def test_missing_file_or_key(self, tmp_path: Path):
        assert _read_meminfo_mb("MemTotal", tmp_path / "nope") == 0
        meminfo = tmp_path / "meminfo"
        meminfo.write_text("SwapTotal: 0 kB\n")
        assert _read_meminfo_mb("MemTotal", meminfo) == 0

    def test_format(self):
        assert _format_mb(512) == "512M"
        assert _format_mb(2048) == "2.0G"


class TestCollect:
    def test_collects_engine_details(self, runtime: MockRuntime):
        info = collect_system_info(runtime)
        assert info["docker"] == "mock"
        assert info["compose"] == "mock"
        assert info["hostname"]
        assert "Images" in info["engine_disk_usage"]

    def test_disk_usage_failure_degrades(self, runtime: MockRuntime):
        runtime.set_failure("disk_usage", "daemon busy")
        info = collect_system_info(runtime)
        assert info["engine_disk_usage"] == ""
