"""Per-process history accumulated across the cycles of one session."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from heatrank.models.sample_models import (
    ProcessSample,
    TemperatureSample,
    ThrottleEvent,
)


@dataclass
class ProcessHistory:
    """Time series for one logical process.

    ``cpu`` and ``memory`` always grow together; ``gpu`` only grows on
    cycles where GPU data was attributed to the process, so it may be shorter.
    """

    name: str
    cpu: list[float] = field(default_factory=list)
    memory: list[float] = field(default_factory=list)
    gpu: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.cpu)


@dataclass
class Session:
    """All state accumulated by one bounded monitoring run.

    Created by the runner, mutated once per cycle by the ``record_*``
    functions below, then read once by the scorer.

    Attributes:
        total_cycles: Number of cycles the session is configured to run.
        histories: Per-process series keyed by logical name, in order of
            first appearance.
        temperature_history: Average temperature (C) of each cycle that had
            a reading.
        temperature_peaks: Hottest zone (C) of each cycle that had a reading.
        throttle_events: Throttled cycles in order.
        cycles_recorded: Cycles applied so far.
        clock_cycles: Cycles that produced a usable clock reading.
        degraded_cycles: Cycles whose process data lacked CPU percent.
    """

    total_cycles: int
    histories: dict[str, ProcessHistory] = field(default_factory=dict)
    temperature_history: list[float] = field(default_factory=list)
    temperature_peaks: list[float] = field(default_factory=list)
    throttle_events: list[ThrottleEvent] = field(default_factory=list)
    cycles_recorded: int = 0
    clock_cycles: int = 0
    degraded_cycles: int = 0


def record(
    session: Session, cycle_index: int, samples: Iterable[ProcessSample]
) -> Session:
    """Fold one cycle's normalized samples into the session.

    Samples without a CPU percent (degraded provider) are skipped. Processes
    absent from ``samples`` get nothing for this cycle; presence frequency is
    itself a scoring signal, so absent cycles are never zero-filled.
    """
    seen: set[str] = set()
    for sample in samples:
        if sample.cpu_percent is None or sample.name in seen:
            continue
        seen.add(sample.name)

        history = session.histories.get(sample.name)
        if history is None:
            history = ProcessHistory(name=sample.name)
            session.histories[sample.name] = history

        history.cpu.append(sample.cpu_percent)
        history.memory.append(sample.memory_mb)
        if sample.gpu_percent is not None:
            history.gpu.append(sample.gpu_percent)

    session.cycles_recorded = max(session.cycles_recorded, cycle_index + 1)
    return session


def record_temperature(session: Session, sample: TemperatureSample | None) -> Session:
    """Append a cycle's temperature reading, if there is one."""
    if sample is not None:
        session.temperature_history.append(sample.average_c)
        session.temperature_peaks.append(sample.max_c)
    return session


def record_throttle(session: Session, event: ThrottleEvent | None) -> Session:
    """Append a throttle event, if the cycle throttled."""
    if event is not None:
        session.throttle_events.append(event)
    return session
