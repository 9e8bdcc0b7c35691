"""Tests for plotstats.environment."""

from __future__ import annotations

from unittest.mock import patch

from plotstats.environment import HostMetadata, detect_environment, normalize_arch


class TestNormalizeArch:
    def test_amd64(self):
        assert normalize_arch("amd64") == "x86_64"
        assert normalize_arch("AMD64") == "x86_64"

    def test_others_unchanged(self):
        assert normalize_arch("aarch64") == "aarch64"
        assert normalize_arch("x86_64") == "x86_64"


class TestDetectEnvironment:
    @patch("plotstats.environment.platform.machine", return_value="AMD64")
    @patch("plotstats.environment.platform.system", return_value="Windows")
    @patch("plotstats.environment.platform.release", return_value="10")
    @patch("plotstats.environment.platform.python_version", return_value="3.11.4")
    @patch("psutil.cpu_count", return_value=12)
    def test_collects_facts(self, mock_cpu, mock_py, mock_release, mock_system, mock_machine):
        facts = detect_environment()
        assert facts.os_name == "Windows"
        assert facts.os_arch == "x86_64"
        assert facts.os_version == "10"
        assert facts.runtime_version == "3.11.4"
        assert facts.cores == 12
        mock_cpu.assert_called_once_with(logical=True)

    @patch("psutil.cpu_count", return_value=None)
    def test_cpu_count_fallback(self, mock_cpu):
        assert detect_environment().cores >= 1


class TestHostMetadata:
    def test_defaults(self):
        host = HostMetadata("App", "1.0", "env")
        assert host.auth_mode is True
        assert host.online_count() == 0
