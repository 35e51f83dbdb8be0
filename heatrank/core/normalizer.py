"""Collapse raw per-instance samples into one entry per logical process.

Counter-based providers report a process that runs several OS-level
instances as ``name``, ``name#1``, ``name#2`` and so on. The normalizer strips
that suffix, sums the instances, rescales CPU percent from per-core to
whole-machine capacity and keeps the busiest ``top_k`` processes.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from heatrank.models.constants import (
    AGGREGATE_INSTANCE_NAMES,
    BYTES_PER_MB,
    DEFAULT_TOP_K,
    INSTANCE_SUFFIX_SEPARATOR,
)
from heatrank.models.sample_models import GpuSample, ProcessSample, RawProcessSample

_INSTANCE_SUFFIX = re.compile(re.escape(INSTANCE_SUFFIX_SEPARATOR) + r"\d+$")


def logical_name(instance_name: str) -> str:
    """Strip a trailing ``#<n>`` instance suffix.

    Examples:
        >>> logical_name("chrome#3")
        'chrome'
        >>> logical_name("chrome")
        'chrome'
    """
    return _INSTANCE_SUFFIX.sub("", instance_name.strip())


def is_aggregate_instance(name: str) -> bool:
    """Return True for provider pseudo-processes such as ``_Total`` or ``Idle``."""
    return name.strip().lower() in AGGREGATE_INSTANCE_NAMES


@dataclass
class _Totals:
    cpu_percent: float | None = None
    memory_bytes: int = 0
    thread_count: int = 0
    handle_count: int = 0
    cpu_seconds: float | None = None

    def add(self, raw: RawProcessSample) -> None:
        if raw.cpu_percent is not None:
            self.cpu_percent = (self.cpu_percent or 0.0) + raw.cpu_percent
        if raw.cpu_seconds is not None:
            self.cpu_seconds = (self.cpu_seconds or 0.0) + raw.cpu_seconds
        self.memory_bytes += raw.memory_bytes
        self.thread_count += raw.thread_count
        self.handle_count += raw.handle_count


def normalize_gpu_samples(samples: Iterable[GpuSample]) -> dict[str, float]:
    """Sum GPU utilization per logical process name."""
    totals: dict[str, float] = {}
    for sample in samples:
        name = logical_name(sample.instance_name)
        if not name or is_aggregate_instance(name):
            continue
        totals[name] = totals.get(name, 0.0) + max(sample.gpu_percent, 0.0)
    return totals


def normalize_samples(
    raw_samples: Iterable[RawProcessSample],
    logical_cpu_count: int,
    gpu_samples: Iterable[GpuSample] | None = None,
    top_k: int = DEFAULT_TOP_K,
) -> list[ProcessSample]:
    """Aggregate raw instances into the top ``top_k`` logical processes.

    Args:
        raw_samples: Per-instance samples from a process provider.
        logical_cpu_count: Logical processors on the host; CPU percent is
            divided by this so 100 means the whole machine is busy.
        gpu_samples: Optional per-instance GPU samples for the same cycle.
        top_k: Number of processes to keep.

    Returns
    -------
        ProcessSamples sorted by CPU percent descending (cumulative CPU
        seconds when CPU percent is unavailable), at most ``top_k`` long.
    """
    divisor = max(int(logical_cpu_count), 1)
    totals: dict[str, _Totals] = {}

    for raw in raw_samples:
        name = logical_name(raw.instance_name)
        if not name or is_aggregate_instance(name):
            continue
        totals.setdefault(name, _Totals()).add(raw)

    gpu_by_name = normalize_gpu_samples(gpu_samples) if gpu_samples else {}

    samples = [
        ProcessSample(
            name=name,
            cpu_percent=(
                entry.cpu_percent / divisor if entry.cpu_percent is not None else None
            ),
            memory_mb=entry.memory_bytes / BYTES_PER_MB,
            thread_count=entry.thread_count,
            handle_count=entry.handle_count,
            gpu_percent=gpu_by_name.get(name),
            cpu_seconds=entry.cpu_seconds,
        )
        for name, entry in totals.items()
    ]

    samples.sort(
        key=lambda s: (s.cpu_percent or 0.0, s.cpu_seconds or 0.0),
        reverse=True,
    )
    return samples[: max(top_k, 0)]
