"""Per-process sampling through psutil.

Two strategies, tried in order by the monitor:

1. ``PsutilCounterProvider``: CPU percent from psutil's per-process rate
   counters, plus memory, thread and handle counts.
2. ``PsutilCpuTimesProvider``: cumulative CPU time and memory only. Used when
   the counters cannot be read; its result is marked DEGRADED.
"""

from __future__ import annotations

from typing import Any

import psutil

from heatrank.backends.base import ProcessProvider
from heatrank.models.sample_models import ProviderResult, RawProcessSample

# Windows exposes kernel handles; POSIX systems expose open file descriptors
_HANDLE_ATTR = "num_handles" if psutil.WINDOWS else "num_fds"


def _rss_bytes(info: dict[str, Any]) -> int:
    mem_info = info.get("memory_info")
    return int(mem_info.rss) if mem_info is not None else 0


class PsutilCounterProvider(ProcessProvider):
    """Process sampling using psutil's cached per-process CPU counters.

    ``psutil.process_iter`` reuses Process instances between calls, so
    ``cpu_percent`` is measured over the interval since the previous cycle.
    The very first call returns 0.0 for every process; ``prime()`` absorbs it.
    """

    _ATTRS = ["name", "cpu_percent", "memory_info", "num_threads", _HANDLE_ATTR]

    @property
    def name(self) -> str:
        """Return the name of the provider."""
        return "psutil_counters"

    def prime(self) -> None:
        """Take the baseline reading that psutil needs for rate counters."""
        try:
            for _ in psutil.process_iter(["cpu_percent"], ad_value=None):
                pass
        except (psutil.Error, OSError):
            pass

    def collect(self) -> ProviderResult[list[RawProcessSample]]:
        """Sample CPU percent, memory, threads and handles per process."""
        try:
            processes = list(psutil.process_iter(self._ATTRS, ad_value=None))
        except (psutil.Error, OSError) as e:
            return ProviderResult.unavailable(
                f"process counters unavailable: {e}", provider=self.name
            )

        samples: list[RawProcessSample] = []
        for proc in processes:
            info = proc.info
            name = info.get("name")
            if not name:
                continue
            samples.append(
                RawProcessSample(
                    instance_name=name,
                    cpu_percent=float(info.get("cpu_percent") or 0.0),
                    memory_bytes=_rss_bytes(info),
                    thread_count=int(info.get("num_threads") or 0),
                    handle_count=int(info.get(_HANDLE_ATTR) or 0),
                )
            )

        if not samples:
            return ProviderResult.unavailable(
                "no processes reported", provider=self.name
            )
        return ProviderResult.ok(samples, provider=self.name)


class PsutilCpuTimesProvider(ProcessProvider):
    """Coarse process sampling from cumulative CPU time and resident memory.

    Does not measure CPU percent, so the monitor can rank processes within
    the cycle for display but records nothing into scoring history.
    """

    _ATTRS = ["name", "cpu_times", "memory_info"]

    @property
    def name(self) -> str:
        """Return the name of the provider."""
        return "psutil_cpu_times"

    def collect(self) -> ProviderResult[list[RawProcessSample]]:
        """Sample cumulative CPU seconds and memory per process."""
        try:
            processes = list(psutil.process_iter(self._ATTRS, ad_value=None))
        except (psutil.Error, OSError) as e:
            return ProviderResult.unavailable(
                f"process enumeration failed: {e}", provider=self.name
            )

        samples: list[RawProcessSample] = []
        for proc in processes:
            info = proc.info
            name = info.get("name")
            if not name:
                continue
            times = info.get("cpu_times")
            samples.append(
                RawProcessSample(
                    instance_name=name,
                    cpu_percent=None,
                    memory_bytes=_rss_bytes(info),
                    cpu_seconds=float(times.user + times.system) if times else 0.0,
                )
            )

        if not samples:
            return ProviderResult.unavailable(
                "no processes reported", provider=self.name
            )
        return ProviderResult.degraded(
            samples,
            reason="CPU percent unavailable; ranked by cumulative CPU time",
            provider=self.name,
        )
