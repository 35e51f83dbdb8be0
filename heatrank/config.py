"""Monitoring session configuration.

Values are layered, lowest precedence first:

1. Defaults on ``MonitorConfig``
2. YAML file (``--config``), either top-level keys or a ``monitor:`` section
3. Environment variables (``HEATRANK_INTERVAL``, ``HEATRANK_DURATION``,
   ``HEATRANK_TOP_K``, ``HEATRANK_TOP_N``, ``HEATRANK_INCLUDE_GPU``)
4. Explicit overrides (CLI options)

Example config::

    monitor:
      interval_seconds: 5
      duration_seconds: 120
      top_n: 3
      include_gpu: false
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped, unused-ignore]
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from heatrank.models.constants import (
    DEFAULT_DURATION_SECONDS,
    DEFAULT_HIGH_TEMPERATURE_C,
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_THROTTLE_THRESHOLD_PERCENT,
    DEFAULT_TOP_K,
    DEFAULT_TOP_N,
    ENV_DURATION,
    ENV_INCLUDE_GPU,
    ENV_INTERVAL,
    ENV_TOP_K,
    ENV_TOP_N,
)
from heatrank.utils.env import read_env_settings

CONFIG_SECTION = "monitor"

ENV_SETTINGS: dict[str, tuple[str, type]] = {
    "interval_seconds": (ENV_INTERVAL, float),
    "duration_seconds": (ENV_DURATION, float),
    "top_k": (ENV_TOP_K, int),
    "top_n": (ENV_TOP_N, int),
    "include_gpu": (ENV_INCLUDE_GPU, bool),
}


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or fails validation."""

    pass


def compute_total_cycles(duration_seconds: float, interval_seconds: float) -> int:
    """Return how many cycles fit in the session, never fewer than one.

    The quotient is nudged before flooring so that binary float error
    (``1.0 / 0.1`` style) does not drop the last cycle.
    """
    if interval_seconds <= 0:
        raise ValueError("interval_seconds must be greater than zero")
    return max(1, math.floor(duration_seconds / interval_seconds + 1e-9))


class MonitorConfig(BaseModel):
    """Settings for one bounded monitoring session."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    interval_seconds: float = Field(
        DEFAULT_INTERVAL_SECONDS, gt=0, description="Seconds between cycles"
    )
    duration_seconds: float = Field(
        DEFAULT_DURATION_SECONDS, gt=0, description="Total session length"
    )
    top_k: int = Field(
        DEFAULT_TOP_K, ge=1, description="Processes kept per cycle by the normalizer"
    )
    top_n: int = Field(DEFAULT_TOP_N, ge=1, description="Processes in the final report")
    throttle_threshold_percent: float = Field(
        DEFAULT_THROTTLE_THRESHOLD_PERCENT,
        gt=0,
        le=100,
        description="Clock ratio below which a cycle counts as throttled",
    )
    high_temperature_c: float = Field(
        DEFAULT_HIGH_TEMPERATURE_C,
        description="Session max above which the report flags high temperature",
    )
    include_gpu: bool = Field(True, description="Sample per-process GPU utilization")

    @property
    def total_cycles(self) -> int:
        """Number of cycles the session runs (at least one)."""
        return compute_total_cycles(self.duration_seconds, self.interval_seconds)


def load_config_file(config_path: str | Path) -> dict[str, Any]:
    """Load monitor settings from a YAML file.

    Args:
        config_path: Path to the YAML file.

    Returns:
        Raw settings mapping (the ``monitor:`` section if present).

    Raises:
        ConfigError: If the file is missing, unparsable or not a mapping.
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")

    section = data.get(CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{CONFIG_SECTION}' section must be a mapping")
    return section


def env_overrides() -> dict[str, Any]:
    """Collect settings from HEATRANK_* environment variables that are set.

    Raises:
        EnvVarTypeError: If a variable cannot be converted.
    """
    return read_env_settings(ENV_SETTINGS)


def build_config(
    config_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> MonitorConfig:
    """Build a MonitorConfig from file, environment and overrides.

    Args:
        config_path: Optional YAML file.
        overrides: Highest-precedence values; None entries are ignored so
            unset CLI options fall through.

    Raises:
        ConfigError: If the file is invalid or the merged values fail
            validation.
    """
    values: dict[str, Any] = {}
    if config_path is not None:
        values.update(load_config_file(config_path))
    values.update(env_overrides())
    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return MonitorConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
