"""Tests for layered monitor configuration."""

import pytest

from heatrank.config import (
    ConfigError,
    MonitorConfig,
    build_config,
    compute_total_cycles,
    env_overrides,
    load_config_file,
)
from heatrank.utils.env import EnvVarTypeError


def test_defaults():
    config = MonitorConfig()

    assert config.interval_seconds == 10.0
    assert config.duration_seconds == 300.0
    assert config.top_k == 10
    assert config.top_n == 5
    assert config.throttle_threshold_percent == 85.0
    assert config.high_temperature_c == 85.0
    assert config.include_gpu is True
    assert config.total_cycles == 30


def test_total_cycles_at_least_one():
    assert MonitorConfig(interval_seconds=60, duration_seconds=10).total_cycles == 1


@pytest.mark.parametrize(
    ("duration", "interval", "expected"),
    [
        (300, 10, 30),
        (25, 10, 2),
        (5, 10, 1),
        (60, 7, 8),
        (1.0, 0.1, 10),
        (3.0, 0.3, 10),
        (0.7, 0.1, 7),
    ],
)
def test_compute_total_cycles(duration, interval, expected):
    assert compute_total_cycles(duration, interval) == expected


def test_fractional_interval_counts_every_cycle():
    config = MonitorConfig(duration_seconds=1.0, interval_seconds=0.1)

    assert config.total_cycles == 10


def test_compute_total_cycles_rejects_zero_interval():
    with pytest.raises(ValueError):
        compute_total_cycles(10, 0)


class TestLoadConfigFile:
    """Tests for YAML loading."""

    def test_monitor_section(self, tmp_path):
        path = tmp_path / "heatrank.yaml"
        path.write_text("monitor:\n  interval_seconds: 5\n  top_n: 3\n")

        assert load_config_file(path) == {"interval_seconds": 5, "top_n": 3}

    def test_top_level_keys(self, tmp_path):
        path = tmp_path / "heatrank.yaml"
        path.write_text("duration_seconds: 60\n")

        assert load_config_file(path) == {"duration_seconds": 60}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config_file(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config_file(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("monitor: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config_file(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_config_file(path)


class TestBuildConfig:
    """Tests for precedence and validation."""

    def test_precedence_file_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "heatrank.yaml"
        path.write_text("monitor:\n  interval_seconds: 5\n  top_n: 3\n  top_k: 7\n")
        monkeypatch.setenv("HEATRANK_TOP_N", "4")
        monkeypatch.setenv("HEATRANK_INCLUDE_GPU", "false")

        config = build_config(path, {"top_k": 12, "interval_seconds": None})

        assert config.interval_seconds == 5.0
        assert config.top_n == 4
        assert config.top_k == 12
        assert config.include_gpu is False

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "heatrank.yaml"
        path.write_text("monitor:\n  intervall: 5\n")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            build_config(path)

    def test_invalid_value_rejected(self):
        with pytest.raises(ConfigError):
            build_config(overrides={"interval_seconds": 0})

        with pytest.raises(ConfigError):
            build_config(overrides={"throttle_threshold_percent": 120})

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("HEATRANK_DURATION", "five minutes")

        with pytest.raises(EnvVarTypeError):
            env_overrides()


def test_env_overrides_only_includes_set_variables(monkeypatch):
    monkeypatch.setenv("HEATRANK_INTERVAL", "2.5")

    assert env_overrides() == {"interval_seconds": 2.5}
