"""Factory for assembling platform-appropriate metric providers."""

from __future__ import annotations

import platform
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import psutil

from heatrank.backends.base import (
    ClockProvider,
    GpuProvider,
    ProcessProvider,
    TemperatureSource,
)
from heatrank.backends.clock import PsutilClockProvider
from heatrank.backends.nvidia import NvidiaGpuProvider
from heatrank.backends.process import PsutilCounterProvider, PsutilCpuTimesProvider
from heatrank.backends.temperature import (
    OHM_NAMESPACE,
    AcpiThermalZoneSource,
    HardwareMonitorWmiSource,
    PsutilSensorSource,
    SysfsThermalZoneSource,
)
from heatrank.models.sample_models import (
    ClockReading,
    GpuSample,
    ProviderResult,
    RawProcessSample,
)


class MetricProvider:
    """Bundle of provider strategies the monitor samples each cycle.

    Strategy lists are ordered; the monitor stops at the first one that
    returns data.

    Args:
        process_providers: Process samplers, most precise first.
        temperature_sources: Temperature sources, primary sensors first.
        clock_provider: CPU clock reporter, or None if unsupported.
        gpu_provider: Per-process GPU sampler, or None if unsupported.
        logical_cpu_count: Logical processors; detected when omitted.
    """

    def __init__(
        self,
        process_providers: Sequence[ProcessProvider],
        temperature_sources: Sequence[TemperatureSource] = (),
        clock_provider: ClockProvider | None = None,
        gpu_provider: GpuProvider | None = None,
        logical_cpu_count: int | None = None,
    ) -> None:
        if not process_providers:
            raise ValueError("at least one process provider is required")

        self.process_providers = list(process_providers)
        self.temperature_sources = list(temperature_sources)
        self.clock_provider = clock_provider
        self.gpu_provider = gpu_provider
        self.logical_cpu_count = logical_cpu_count or psutil.cpu_count(logical=True) or 1

    def prime(self) -> None:
        """Prime every process provider's counters."""
        for provider in self.process_providers:
            provider.prime()

    def process_samples(
        self,
        on_unavailable: Callable[[ProviderResult[list[RawProcessSample]]], None]
        | None = None,
    ) -> ProviderResult[list[RawProcessSample]]:
        """Return the first process result that carries data.

        Args:
            on_unavailable: Called with each UNAVAILABLE result before the
                next strategy is tried.

        Returns
        -------
            OK or DEGRADED result from the first working strategy, or the
            last UNAVAILABLE result when every strategy failed.
        """
        result: ProviderResult[list[RawProcessSample]] = ProviderResult.unavailable(
            "no process providers"
        )
        for provider in self.process_providers:
            result = provider.collect()
            if result.has_value:
                return result
            if on_unavailable is not None:
                on_unavailable(result)
        return result

    def gpu_samples(self) -> ProviderResult[list[GpuSample]]:
        """Return per-process GPU samples, UNAVAILABLE without a GPU backend."""
        if self.gpu_provider is None:
            return ProviderResult.unavailable("no supported GPU found", provider="none")
        return self.gpu_provider.collect()

    def clock_speeds(self) -> ClockReading | None:
        """Return the current/max CPU clock, None when unknown."""
        if self.clock_provider is None:
            return None
        return self.clock_provider.read()

    def cleanup(self) -> None:
        """Release library handles held by providers."""
        if self.gpu_provider is not None:
            self.gpu_provider.cleanup()


@dataclass(frozen=True)
class SourceStatus:
    """Availability of one provider, for the ``sources`` command."""

    category: str
    name: str
    available: bool
    detail: str = ""


class MetricProviderFactory:
    """Factory for creating metric providers for the current platform.

    Linux: psutil hwmon, then sysfs thermal zones.
    Windows: LibreHardwareMonitor, OpenHardwareMonitor, then ACPI zones.
    Other platforms: psutil sensors only.
    NVIDIA per-process GPU data is added on any platform where NVML works.
    """

    @staticmethod
    def temperature_sources(system: str | None = None) -> list[TemperatureSource]:
        """Return temperature sources in fallback order for ``system``."""
        system = system or platform.system()

        if system == "Windows":
            return [
                HardwareMonitorWmiSource(),
                HardwareMonitorWmiSource(namespace=OHM_NAMESPACE),
                AcpiThermalZoneSource(),
            ]
        if system == "Linux":
            return [PsutilSensorSource(), SysfsThermalZoneSource()]
        return [PsutilSensorSource()]

    @staticmethod
    def create(include_gpu: bool = True, system: str | None = None) -> MetricProvider:
        """Create a metric provider.

        Args:
            include_gpu: Whether to sample per-process GPU utilization.
            system: Platform name override (defaults to platform.system()).

        Returns:
            MetricProvider wired with the platform's strategies.
        """
        gpu_provider: GpuProvider | None = None
        if include_gpu:
            nvidia = NvidiaGpuProvider()
            if nvidia.is_available():
                gpu_provider = nvidia

        return MetricProvider(
            process_providers=[PsutilCounterProvider(), PsutilCpuTimesProvider()],
            temperature_sources=MetricProviderFactory.temperature_sources(system),
            clock_provider=PsutilClockProvider(),
            gpu_provider=gpu_provider,
        )


def create_metric_provider(include_gpu: bool = True) -> MetricProvider:
    """Create a metric provider for the current platform."""
    return MetricProviderFactory.create(include_gpu=include_gpu)


def probe_sources(provider: MetricProvider) -> list[SourceStatus]:
    """Query every strategy once and report which ones return data.

    Process counters are primed first; their values in this probe are not
    meaningful, only whether enumeration succeeded.
    """
    statuses: list[SourceStatus] = []

    provider.prime()
    for process_provider in provider.process_providers:
        result = process_provider.collect()
        statuses.append(
            SourceStatus(
                category="process",
                name=process_provider.name,
                available=result.has_value,
                detail=result.reason or f"{len(result.value or [])} processes",
            )
        )

    gpu = provider.gpu_samples()
    statuses.append(
        SourceStatus(
            category="gpu",
            name=gpu.provider or "none",
            available=gpu.has_value,
            detail=gpu.reason or f"{len(gpu.value or [])} processes",
        )
    )

    for source in provider.temperature_sources:
        readings = source.read_celsius()
        statuses.append(
            SourceStatus(
                category=f"temperature ({source.kind.value})",
                name=source.name,
                available=bool(readings),
                detail=f"{len(readings)} zones" if readings else "no data",
            )
        )

    clock = provider.clock_speeds()
    statuses.append(
        SourceStatus(
            category="clock",
            name=provider.clock_provider.name if provider.clock_provider else "none",
            available=clock is not None,
            detail=(
                f"{clock.current_mhz:.0f}/{clock.max_mhz:.0f} MHz" if clock else "no data"
            ),
        )
    )
    return statuses
