"""Sampling, aggregation and scoring pipeline.

Example:
    >>> from heatrank.core import Session, normalize_samples, record, build_report
    >>> session = Session(total_cycles=3)
    >>> record(session, 0, normalize_samples(raw_samples, logical_cpu_count=8))
    >>> report = build_report(session)
"""

from heatrank.core.history import (
    ProcessHistory,
    Session,
    record,
    record_temperature,
    record_throttle,
)
from heatrank.core.normalizer import logical_name, normalize_samples
from heatrank.core.scorer import HeatBreakdown, build_report, rank_processes
from heatrank.core.temperature import TemperatureAggregator, celsius_to_fahrenheit
from heatrank.core.throttle import detect_throttle, is_throttling

__all__ = [
    "HeatBreakdown",
    "ProcessHistory",
    "Session",
    "TemperatureAggregator",
    "build_report",
    "celsius_to_fahrenheit",
    "detect_throttle",
    "is_throttling",
    "logical_name",
    "normalize_samples",
    "rank_processes",
    "record",
    "record_temperature",
    "record_throttle",
]
