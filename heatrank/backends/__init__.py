"""Metric providers: processes, GPU, temperature and clock speed.

Example:
    >>> from heatrank.backends import create_metric_provider
    >>> provider = create_metric_provider(include_gpu=False)
    >>> provider.clock_provider.read()
"""

from heatrank.backends.base import (
    ClockProvider,
    GpuProvider,
    ProcessProvider,
    TemperatureSource,
)
from heatrank.backends.factory import (
    MetricProvider,
    MetricProviderFactory,
    SourceStatus,
    create_metric_provider,
    probe_sources,
)

__all__ = [
    "ClockProvider",
    "GpuProvider",
    "MetricProvider",
    "MetricProviderFactory",
    "ProcessProvider",
    "SourceStatus",
    "TemperatureSource",
    "create_metric_provider",
    "probe_sources",
]
