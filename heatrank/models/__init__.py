"""Data models for samples, session events and the heat report."""

from heatrank.models.report_models import (
    HeatReport,
    ProcessHeatEntry,
    SessionInfo,
    TemperatureSummary,
    ThrottleSummary,
)
from heatrank.models.sample_models import (
    ClockReading,
    CycleEvent,
    CycleObservation,
    GpuSample,
    ProcessSample,
    ProviderResult,
    RawProcessSample,
    ResultStatus,
    SensorKind,
    TemperatureSample,
    ThrottleEvent,
)

__all__ = [
    "ClockReading",
    "CycleEvent",
    "CycleObservation",
    "GpuSample",
    "ProcessSample",
    "ProviderResult",
    "RawProcessSample",
    "ResultStatus",
    "SensorKind",
    "TemperatureSample",
    "ThrottleEvent",
    # Report models
    "HeatReport",
    "ProcessHeatEntry",
    "SessionInfo",
    "TemperatureSummary",
    "ThrottleSummary",
]
