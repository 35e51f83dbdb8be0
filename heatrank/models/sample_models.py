"""Dataclasses for per-cycle samples, provider results and session events."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ResultStatus(str, Enum):
    """Outcome of a provider call."""

    OK = "ok"
    DEGRADED = "degraded"  # Data present but missing fields the primary would give
    UNAVAILABLE = "unavailable"


class SensorKind(str, Enum):
    """Tier of the temperature source that produced a reading."""

    PRIMARY = "primary_sensor"  # Dedicated hardware-monitoring interface
    FALLBACK = "fallback_sensor"  # OS thermal zones


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """Tagged result returned by every metric provider.

    Consumers branch on ``status`` rather than on the type of ``value``.

    Attributes:
        status: OK, DEGRADED or UNAVAILABLE.
        value: Payload; None when UNAVAILABLE.
        reason: Human-readable explanation for DEGRADED/UNAVAILABLE.
        provider: Name of the strategy that produced the result.
    """

    status: ResultStatus
    value: T | None = None
    reason: str | None = None
    provider: str | None = None

    @classmethod
    def ok(cls, value: T, provider: str | None = None) -> ProviderResult[T]:
        return cls(ResultStatus.OK, value=value, provider=provider)

    @classmethod
    def degraded(
        cls, value: T, reason: str, provider: str | None = None
    ) -> ProviderResult[T]:
        return cls(ResultStatus.DEGRADED, value=value, reason=reason, provider=provider)

    @classmethod
    def unavailable(
        cls, reason: str | None = None, provider: str | None = None
    ) -> ProviderResult[T]:
        return cls(ResultStatus.UNAVAILABLE, reason=reason, provider=provider)

    @property
    def has_value(self) -> bool:
        """True for OK and DEGRADED results."""
        return self.status is not ResultStatus.UNAVAILABLE


@dataclass(frozen=True)
class RawProcessSample:
    """One OS-level process instance as reported by a process provider.

    ``cpu_percent`` is per-core scaled and may exceed 100 on multi-core hosts.
    Providers that cannot measure it leave it None and report cumulative
    ``cpu_seconds`` instead.
    """

    instance_name: str
    cpu_percent: float | None
    memory_bytes: int = 0
    thread_count: int = 0
    handle_count: int = 0
    cpu_seconds: float | None = None


@dataclass(frozen=True)
class GpuSample:
    """GPU utilization attributed to one process instance."""

    instance_name: str
    gpu_percent: float


@dataclass(frozen=True)
class ProcessSample:
    """One logical process for one cycle, after normalization.

    Attributes:
        name: Logical process name (instance suffix stripped).
        cpu_percent: Share of total machine CPU capacity, or None when the
            cycle was sampled by the degraded provider.
        memory_mb: Summed resident memory in MB.
        thread_count: Summed thread count.
        handle_count: Summed handle (or file-descriptor) count.
        gpu_percent: Summed GPU utilization, None when no GPU data exists.
        cpu_seconds: Summed cumulative CPU time (degraded provider only).
    """

    name: str
    cpu_percent: float | None
    memory_mb: float = 0.0
    thread_count: int = 0
    handle_count: int = 0
    gpu_percent: float | None = None
    cpu_seconds: float | None = None


@dataclass(frozen=True)
class TemperatureSample:
    """Aggregated temperature across all zones of one source for one cycle."""

    average_c: float
    max_c: float
    source: SensorKind
    source_name: str = ""
    zone_count: int = 0


@dataclass(frozen=True)
class ClockReading:
    """Current and maximum CPU clock speed in MHz."""

    current_mhz: float
    max_mhz: float


@dataclass(frozen=True)
class ThrottleEvent:
    """A cycle whose clock ratio fell below the throttling threshold."""

    cycle_index: int
    ratio_percent: float


@dataclass(frozen=True)
class CycleObservation:
    """Raw inputs gathered from the metric providers for one cycle."""

    processes: ProviderResult[list[RawProcessSample]]
    gpu: ProviderResult[list[GpuSample]] = field(
        default_factory=lambda: ProviderResult.unavailable("gpu not sampled")
    )
    temperature: ProviderResult[TemperatureSample] = field(
        default_factory=lambda: ProviderResult.unavailable("temperature not sampled")
    )
    clock: ClockReading | None = None


@dataclass(frozen=True)
class CycleEvent:
    """What happened in one cycle, handed to the live display listener."""

    cycle_index: int
    total_cycles: int
    samples: list[ProcessSample]
    temperature: TemperatureSample | None
    clock_ratio_percent: float | None
    throttling: bool
    process_status: ResultStatus
    timestamp: float = 0.0
