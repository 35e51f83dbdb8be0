"""Heat scoring: turn accumulated session history into a ranked report.

Each process is reduced to one heuristic score::

    sustained = avg_cpu * frequency_percent / 100
    peak      = max_cpu * 0.3
    memory    = min(avg_memory_mb / 1000, 10)
    score     = round(sustained + peak + memory, 2)

Sustained load dominates: a process at a steady 30% for the whole session
outranks one that spiked to 100% for a single cycle. Memory is capped so it
mostly separates processes with similar CPU profiles.
"""

from __future__ import annotations

from dataclasses import dataclass
from statistics import fmean

from heatrank.core.history import ProcessHistory, Session
from heatrank.core.temperature import celsius_to_fahrenheit
from heatrank.models.constants import (
    DEFAULT_HIGH_TEMPERATURE_C,
    DEFAULT_THROTTLE_THRESHOLD_PERCENT,
    DEFAULT_TOP_N,
    MEMORY_PRESSURE_CAP,
    MEMORY_PRESSURE_DIVISOR_MB,
    PEAK_LOAD_WEIGHT,
    SCORE_DECIMALS,
)
from heatrank.models.report_models import (
    HeatReport,
    ProcessHeatEntry,
    SessionInfo,
    TemperatureSummary,
    ThrottleSummary,
)


@dataclass(frozen=True)
class HeatBreakdown:
    """Intermediate values of one process's heat score."""

    name: str
    avg_cpu: float
    max_cpu: float
    avg_memory_mb: float
    frequency: int
    frequency_percent: float
    sustained_load: float
    peak_load: float
    memory_pressure: float
    heat_score: float
    avg_gpu: float | None = None


def memory_pressure(avg_memory_mb: float) -> float:
    """Memory contribution to the score, capped at 10 points."""
    return min(avg_memory_mb / MEMORY_PRESSURE_DIVISOR_MB, MEMORY_PRESSURE_CAP)


def score_history(history: ProcessHistory, total_cycles: int) -> HeatBreakdown | None:
    """Compute the heat score for one process.

    Args:
        history: Accumulated series for the process.
        total_cycles: Cycles in the session; the denominator of frequency.

    Returns
    -------
        HeatBreakdown, or None if the process has no CPU samples or the
        session has no cycles.
    """
    if not history.cpu or total_cycles <= 0:
        return None

    avg_cpu = fmean(history.cpu)
    max_cpu = max(history.cpu)
    avg_mem = fmean(history.memory) if history.memory else 0.0
    frequency = len(history.cpu)
    frequency_percent = frequency / total_cycles * 100

    sustained = avg_cpu * (frequency_percent / 100)
    peak = max_cpu * PEAK_LOAD_WEIGHT
    pressure = memory_pressure(avg_mem)

    return HeatBreakdown(
        name=history.name,
        avg_cpu=avg_cpu,
        max_cpu=max_cpu,
        avg_memory_mb=avg_mem,
        frequency=frequency,
        frequency_percent=frequency_percent,
        sustained_load=sustained,
        peak_load=peak,
        memory_pressure=pressure,
        heat_score=round(sustained + peak + pressure, SCORE_DECIMALS),
        avg_gpu=fmean(history.gpu) if history.gpu else None,
    )


def rank_processes(session: Session, top_n: int = DEFAULT_TOP_N) -> list[HeatBreakdown]:
    """Score every process and return the ``top_n`` hottest.

    Processes scoring zero or less are dropped. Ties keep the order in which
    processes first appeared in the session (the sort is stable).
    """
    scored = [
        breakdown
        for breakdown in (
            score_history(history, session.total_cycles)
            for history in session.histories.values()
        )
        if breakdown is not None and breakdown.heat_score > 0
    ]
    scored.sort(key=lambda b: b.heat_score, reverse=True)
    return scored[: max(top_n, 0)]


def summarize_temperature(
    session: Session, high_temperature_c: float = DEFAULT_HIGH_TEMPERATURE_C
) -> TemperatureSummary:
    """Mean/max of the session's per-cycle averages plus the hottest zone."""
    history = session.temperature_history
    if not history:
        return TemperatureSummary(available=False, threshold_c=high_temperature_c)

    average_c = fmean(history)
    max_c = max(history)
    return TemperatureSummary(
        available=True,
        sample_count=len(history),
        average_c=round(average_c, 1),
        max_c=round(max_c, 1),
        peak_c=round(max(session.temperature_peaks), 1)
        if session.temperature_peaks
        else None,
        average_f=celsius_to_fahrenheit(average_c),
        max_f=celsius_to_fahrenheit(max_c),
        high_temperature=max_c > high_temperature_c,
        threshold_c=high_temperature_c,
    )


def summarize_throttling(
    session: Session,
    threshold_percent: float = DEFAULT_THROTTLE_THRESHOLD_PERCENT,
) -> ThrottleSummary:
    """Throttle event count and rate over the configured cycle count."""
    events = session.throttle_events
    rate = (
        len(events) / session.total_cycles * 100 if session.total_cycles > 0 else 0.0
    )
    return ThrottleSummary(
        clock_data_available=session.clock_cycles > 0,
        clock_cycles=session.clock_cycles,
        event_count=len(events),
        rate_percent=round(rate, 1),
        throttled_cycles=[event.cycle_index for event in events],
        threshold_percent=threshold_percent,
    )


def build_report(
    session: Session,
    top_n: int = DEFAULT_TOP_N,
    high_temperature_c: float = DEFAULT_HIGH_TEMPERATURE_C,
    throttle_threshold_percent: float = DEFAULT_THROTTLE_THRESHOLD_PERCENT,
    session_info: SessionInfo | None = None,
) -> HeatReport:
    """Reduce a finished session to a read-only HeatReport.

    The session is not modified, so calling this twice on the same session
    yields equal reports.
    """
    ranked = rank_processes(session, top_n)
    entries = [
        ProcessHeatEntry(
            rank=position,
            name=b.name,
            heat_score=b.heat_score,
            avg_cpu=round(b.avg_cpu, 2),
            max_cpu=round(b.max_cpu, 2),
            avg_memory_mb=round(b.avg_memory_mb, 1),
            frequency_percent=round(b.frequency_percent, 1),
            sample_count=b.frequency,
            avg_gpu=round(b.avg_gpu, 2) if b.avg_gpu is not None else None,
        )
        for position, b in enumerate(ranked, start=1)
    ]

    info = session_info or SessionInfo(total_cycles=session.total_cycles)
    info = info.model_copy(
        update={
            "total_cycles": session.total_cycles,
            "cycles_recorded": session.cycles_recorded,
            "degraded_cycles": session.degraded_cycles,
        }
    )

    return HeatReport(
        session=info,
        processes=entries,
        temperature=summarize_temperature(session, high_temperature_c),
        throttling=summarize_throttling(session, throttle_threshold_percent),
    )
