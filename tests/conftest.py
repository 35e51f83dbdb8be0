"""Shared pytest fixtures."""

from io import StringIO

import pytest

from heatrank.models.constants import (
    ENV_DURATION,
    ENV_INCLUDE_GPU,
    ENV_INTERVAL,
    ENV_LOG_LEVEL,
    ENV_TOP_K,
    ENV_TOP_N,
)
from heatrank.utils.logger import Logger


@pytest.fixture(autouse=True)
def log_output():
    """Configure the Logger for every test and expose what it wrote."""
    output = StringIO()
    Logger.configure(level="DEBUG", output=output, timestamps=False)
    yield output


@pytest.fixture(autouse=True)
def clean_heatrank_env(monkeypatch):
    """Keep HEATRANK_* variables from the developer's shell out of tests."""
    for name in (
        ENV_LOG_LEVEL,
        ENV_INTERVAL,
        ENV_DURATION,
        ENV_TOP_K,
        ENV_TOP_N,
        ENV_INCLUDE_GPU,
    ):
        monkeypatch.delenv(name, raising=False)
