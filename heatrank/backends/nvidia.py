"""Per-process NVIDIA GPU utilization via NVML.

NVML keeps a short buffer of per-process SM utilization samples. Each call
asks for samples newer than the last timestamp seen on that device, so one
cycle reports the utilization observed since the previous cycle.
"""

from __future__ import annotations

import psutil

from heatrank.backends.base import GpuProvider
from heatrank.models.sample_models import GpuSample, ProviderResult

# Optional pynvml import
try:
    import pynvml

    PYNVML_AVAILABLE = True
except ImportError:  # pragma: no cover - optional dependency
    pynvml = None
    PYNVML_AVAILABLE = False


def _process_name(pid: int) -> str | None:
    """Resolve a PID to its process name, None if it has exited."""
    try:
        return psutil.Process(pid).name()
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return None


class NvidiaGpuProvider(GpuProvider):
    """Backend for per-process GPU utilization on NVIDIA GPUs."""

    def __init__(self) -> None:
        """Initialize provider state; NVML itself is initialized lazily."""
        self._initialized = False
        self._device_count = 0
        self._last_seen: dict[int, int] = {}

    @property
    def name(self) -> str:
        """Return the name of the provider."""
        return "nvml"

    def initialize(self) -> bool:
        """Initialize NVML and count devices.

        Returns:
            True if NVML is usable and at least one GPU was found.
        """
        if self._initialized:
            return self._device_count > 0

        if not PYNVML_AVAILABLE:
            return False

        try:
            pynvml.nvmlInit()
            self._device_count = pynvml.nvmlDeviceGetCount()
        except pynvml.NVMLError:
            return False

        self._initialized = True
        return self._device_count > 0

    def is_available(self) -> bool:
        """Check if NVIDIA GPUs are available."""
        return self.initialize()

    def collect(self) -> ProviderResult[list[GpuSample]]:
        """Get per-process SM utilization across all GPUs.

        A PID that appears on several GPUs yields one sample per GPU; the
        normalizer sums them under the logical process name.
        """
        if not self.initialize():
            return ProviderResult.unavailable("NVML not available", provider=self.name)

        samples: list[GpuSample] = []
        for index in range(self._device_count):
            for pid, utilization in self._device_utilization(index).items():
                name = _process_name(pid)
                if name:
                    samples.append(GpuSample(instance_name=name, gpu_percent=utilization))

        return ProviderResult.ok(samples, provider=self.name)

    def _device_utilization(self, index: int) -> dict[int, float]:
        """Return the peak SM utilization per PID on one device."""
        try:
            handle = pynvml.nvmlDeviceGetHandleByIndex(index)
            entries = pynvml.nvmlDeviceGetProcessUtilization(
                handle, self._last_seen.get(index, 0)
            )
        except pynvml.NVMLError:
            # Includes NVMLError_NotFound: no samples since the last timestamp
            return {}

        per_pid: dict[int, float] = {}
        for entry in entries:
            self._last_seen[index] = max(self._last_seen.get(index, 0), entry.timeStamp)
            per_pid[entry.pid] = max(per_pid.get(entry.pid, 0.0), float(entry.smUtil))
        return per_pid

    def cleanup(self) -> None:
        """Shut down NVML if it was initialized."""
        if not self._initialized:
            return
        try:
            pynvml.nvmlShutdown()
        except pynvml.NVMLError:
            pass
        self._initialized = False
        self._device_count = 0
