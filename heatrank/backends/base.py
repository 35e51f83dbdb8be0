"""Abstract base classes for metric providers - implemented per platform."""

from abc import ABC, abstractmethod

from heatrank.models.sample_models import (
    ClockReading,
    GpuSample,
    ProviderResult,
    RawProcessSample,
    SensorKind,
)


class ProcessProvider(ABC):
    """Abstract base class for per-process CPU/memory sampling."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the provider (e.g., 'psutil_counters')."""
        pass

    def prime(self) -> None:
        """Establish counter baselines before the first cycle.

        Providers whose first reading is meaningless (rate counters) override
        this; the default does nothing.
        """
        return None

    @abstractmethod
    def collect(self) -> ProviderResult[list[RawProcessSample]]:
        """Sample every visible process instance.

        Returns
        -------
            OK with samples, DEGRADED when CPU percent is unavailable, or
            UNAVAILABLE when enumeration failed.
        """
        pass


class GpuProvider(ABC):
    """Abstract base class for per-process GPU utilization."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the provider."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the GPU backend can be used on this host."""
        pass

    @abstractmethod
    def collect(self) -> ProviderResult[list[GpuSample]]:
        """Sample per-process GPU utilization since the previous call."""
        pass

    def cleanup(self) -> None:
        """Release library handles. Default does nothing."""
        return None


class TemperatureSource(ABC):
    """Abstract base class for one temperature source in the fallback chain."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the source (e.g., 'sysfs_thermal')."""
        pass

    @property
    @abstractmethod
    def kind(self) -> SensorKind:
        """Return PRIMARY for hardware-monitor interfaces, FALLBACK for zones."""
        pass

    @abstractmethod
    def read_celsius(self) -> list[float] | None:
        """Read every zone/sensor the source exposes.

        Returns
        -------
            Temperatures in Celsius, or None if the source is unavailable or
            failed. Implementations catch their own library errors.
        """
        pass


class ClockProvider(ABC):
    """Abstract base class for CPU clock-speed reporting."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the provider."""
        pass

    @abstractmethod
    def read(self) -> ClockReading | None:
        """Get current and maximum CPU clock in MHz.

        Returns
        -------
            ClockReading, or None if either value is unavailable.
        """
        pass
