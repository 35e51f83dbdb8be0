"""Pydantic models for the end-of-session heat report."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Ranked processes
# ============================================================================


class ProcessHeatEntry(BaseModel):
    """One ranked process in the heat report."""

    model_config = ConfigDict(frozen=True)

    rank: int = Field(..., ge=1, description="1-based position in the ranking")
    name: str = Field(..., description="Logical process name")
    heat_score: float = Field(..., gt=0, description="Heuristic heat score")
    avg_cpu: float = Field(..., ge=0, description="Mean CPU percent while present")
    max_cpu: float = Field(..., ge=0, description="Peak CPU percent")
    avg_memory_mb: float = Field(..., ge=0, description="Mean resident memory in MB")
    frequency_percent: float = Field(
        ..., ge=0, le=100, description="Share of session cycles the process was sampled"
    )
    sample_count: int = Field(..., ge=1, description="Cycles with CPU data")
    avg_gpu: float | None = Field(
        None, ge=0, description="Mean GPU percent, None when no GPU samples exist"
    )


# ============================================================================
# Session-wide summaries
# ============================================================================


class TemperatureSummary(BaseModel):
    """Temperature statistics over the cycles that produced a reading."""

    model_config = ConfigDict(frozen=True)

    available: bool = Field(..., description="False when no source ever returned data")
    sample_count: int = Field(0, ge=0, description="Cycles with a temperature reading")
    average_c: float | None = Field(None, description="Mean of per-cycle averages")
    max_c: float | None = Field(None, description="Max of per-cycle averages")
    peak_c: float | None = Field(None, description="Hottest single zone seen")
    average_f: float | None = Field(None, description="average_c in Fahrenheit")
    max_f: float | None = Field(None, description="max_c in Fahrenheit")
    high_temperature: bool = Field(
        False, description="True when max_c exceeded threshold_c"
    )
    threshold_c: float = Field(..., description="High-temperature threshold")


class ThrottleSummary(BaseModel):
    """Clock-throttling statistics for the session."""

    model_config = ConfigDict(frozen=True)

    clock_data_available: bool = Field(
        ..., description="False when no cycle produced a clock reading"
    )
    clock_cycles: int = Field(0, ge=0, description="Cycles with a clock reading")
    event_count: int = Field(0, ge=0, description="Number of throttled cycles")
    rate_percent: float = Field(
        0.0, ge=0, description="Throttled cycles as a percentage of the session"
    )
    throttled_cycles: list[int] = Field(
        default_factory=list, description="Indices of throttled cycles"
    )
    threshold_percent: float = Field(..., description="Clock ratio threshold")


class SessionInfo(BaseModel):
    """Metadata describing the monitoring session."""

    model_config = ConfigDict(frozen=True)

    total_cycles: int = Field(..., ge=0, description="Configured cycle count")
    cycles_recorded: int = Field(0, ge=0, description="Cycles actually applied")
    degraded_cycles: int = Field(
        0, ge=0, description="Cycles sampled without CPU percent"
    )
    interval_seconds: float | None = Field(None, description="Sampling interval")
    started_at: str | None = Field(None, description="ISO-8601 session start")
    finished_at: str | None = Field(None, description="ISO-8601 session end")
    heatrank_version: str = Field("unknown", description="Tool version")


# ============================================================================
# Top-level report
# ============================================================================


class HeatReport(BaseModel):
    """End-of-session report: ranked processes plus system summaries."""

    model_config = ConfigDict(frozen=True)

    session: SessionInfo
    processes: list[ProcessHeatEntry] = Field(default_factory=list)
    temperature: TemperatureSummary
    throttling: ThrottleSummary

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly dictionary."""
        return self.model_dump(mode="json")
