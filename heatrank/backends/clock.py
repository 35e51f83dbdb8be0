"""CPU clock-speed reporting for throttle detection."""

from __future__ import annotations

from pathlib import Path

import psutil

from heatrank.backends.base import ClockProvider
from heatrank.models.sample_models import ClockReading


class PsutilClockProvider(ClockProvider):
    """Current/max CPU clock from ``psutil.cpu_freq``.

    Some kernels and VMs report ``max == 0``; the rated maximum is then read
    from cpufreq's ``cpuinfo_max_freq`` (kHz) when present.
    """

    def __init__(
        self,
        cpufreq_max_path: Path | str = (
            "/sys/devices/system/cpu/cpu0/cpufreq/cpuinfo_max_freq"
        ),
    ) -> None:
        """Initialize with the cpufreq max-frequency file (overridable for tests)."""
        self._cpufreq_max_path = Path(cpufreq_max_path)

    @property
    def name(self) -> str:
        """Return the name of the provider."""
        return "psutil_cpu_freq"

    def read(self) -> ClockReading | None:
        """Get current and maximum clock in MHz.

        Returns
        -------
            ClockReading, or None when either value is missing or zero.
        """
        cpu_freq = getattr(psutil, "cpu_freq", None)
        if cpu_freq is None:
            return None

        try:
            freq = cpu_freq()
        except (OSError, NotImplementedError, RuntimeError):
            return None
        if freq is None:
            return None

        current = float(freq.current or 0.0)
        maximum = float(freq.max or 0.0)
        if maximum <= 0:
            maximum = self._read_cpufreq_max() or 0.0

        if current <= 0 or maximum <= 0:
            return None
        return ClockReading(current_mhz=current, max_mhz=maximum)

    def _read_cpufreq_max(self) -> float | None:
        """Read the rated max frequency from cpufreq, in MHz."""
        try:
            freq_khz = int(self._cpufreq_max_path.read_text().strip())
        except (OSError, ValueError):
            return None
        return freq_khz / 1000.0
