"""Tests for the heatrank CLI."""

import json
from unittest.mock import patch

from click.testing import CliRunner

from heatrank import __version__
from heatrank.backends.factory import MetricProvider
from heatrank.backends.process import PsutilCounterProvider
from heatrank.cli import heatrank
from heatrank.models.sample_models import ProviderResult, RawProcessSample
from heatrank.utils.logger import Logger


class OneProcess(PsutilCounterProvider):
    """Counter provider that always reports one busy process."""

    def prime(self):
        pass

    def collect(self):
        return ProviderResult.ok(
            [RawProcessSample("busy", 80.0, memory_bytes=100 * 1024 * 1024)],
            provider=self.name,
        )


def fake_provider(include_gpu=True):
    return MetricProvider(process_providers=[OneProcess()], logical_cpu_count=2)


def test_version_command():
    result = CliRunner().invoke(heatrank, ["version"])

    assert result.exit_code == 0
    assert f"heatrank {__version__}" in result.output


def test_invalid_log_level_is_usage_error(monkeypatch):
    Logger.reset()
    monkeypatch.setenv("HEATRANK_LOG_LEVEL", "verbose")

    result = CliRunner().invoke(heatrank, ["version"])

    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert "HEATRANK_LOG_LEVEL" in result.output
    assert "Unknown log level 'verbose'" in result.output


def test_monitor_writes_json_to_stdout_and_files(tmp_path):
    json_path = tmp_path / "heat.json"
    csv_path = tmp_path / "heat.csv"

    with patch(
        "heatrank.commands.monitor_cmd.create_metric_provider",
        side_effect=fake_provider,
    ), patch("heatrank.monitoring.time.sleep") as sleep:
        result = CliRunner().invoke(
            heatrank,
            [
                "monitor",
                "-i", "1",
                "-d", "3",
                "-q",
                "-f", "json",
                "-o", str(json_path),
                "-o", str(csv_path),
            ],
        )

    assert result.exit_code == 0, result.output
    assert sleep.call_count == 2
    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert data["session"]["total_cycles"] == 3
    assert data["processes"][0]["name"] == "busy"
    assert data["processes"][0]["avg_cpu"] == 40.0
    assert csv_path.read_text(encoding="utf-8").startswith("rank,name,heat_score")


def test_monitor_live_lines_and_text_report():
    with patch(
        "heatrank.commands.monitor_cmd.create_metric_provider",
        side_effect=fake_provider,
    ), patch("heatrank.monitoring.time.sleep"):
        result = CliRunner().invoke(heatrank, ["monitor", "-i", "1", "-d", "2"])

    assert result.exit_code == 0, result.output
    assert "Cycle 1/2" in result.output
    assert "Temp:  N/A" in result.output
    assert "HEAT-CAUSING PROCESSES" in result.output
    assert "no clock speed data available" in result.output


def test_monitor_rejects_bad_output_suffix():
    result = CliRunner().invoke(heatrank, ["monitor", "-o", "report.txt"])

    assert result.exit_code != 0
    assert "Cannot infer format" in result.output


def test_monitor_rejects_invalid_config(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("monitor:\n  top_n: 0\n")

    result = CliRunner().invoke(heatrank, ["monitor", "--config", str(path)])

    assert result.exit_code != 0
    assert "Invalid configuration" in result.output


def test_monitor_interrupted_produces_no_report():
    with patch(
        "heatrank.commands.monitor_cmd.create_metric_provider",
        side_effect=fake_provider,
    ), patch("heatrank.monitoring.time.sleep", side_effect=KeyboardInterrupt):
        result = CliRunner().invoke(heatrank, ["monitor", "-i", "1", "-d", "5", "-q"])

    assert result.exit_code == 130
    assert "Session aborted" in result.output
    assert "HEAT-CAUSING PROCESSES" not in result.output


def test_sources_command():
    with patch(
        "heatrank.commands.sources_cmd.create_metric_provider",
        side_effect=fake_provider,
    ):
        result = CliRunner().invoke(heatrank, ["sources"])

    assert result.exit_code == 0, result.output
    assert "psutil_counters" in result.output
    assert "available" in result.output
