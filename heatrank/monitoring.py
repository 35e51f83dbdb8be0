"""Bounded monitoring session: the fixed-cadence cycle loop.

Each cycle gathers a ``CycleObservation`` from the metric provider, folds it
into the ``Session`` with ``apply_cycle`` and hands a ``CycleEvent`` to the
optional listener. After the last cycle the session is scored once.

``apply_cycle`` and ``replay`` are pure with respect to the providers, so a
recorded list of observations can be re-scored without touching the host.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from datetime import datetime

from heatrank import __version__
from heatrank.backends.factory import MetricProvider
from heatrank.config import MonitorConfig
from heatrank.core.history import Session, record, record_temperature, record_throttle
from heatrank.core.normalizer import normalize_samples
from heatrank.core.scorer import build_report
from heatrank.core.temperature import TemperatureAggregator
from heatrank.core.throttle import clock_ratio_percent, detect_throttle
from heatrank.models.constants import (
    DEFAULT_HIGH_TEMPERATURE_C,
    DEFAULT_THROTTLE_THRESHOLD_PERCENT,
    DEFAULT_TOP_K,
    DEFAULT_TOP_N,
)
from heatrank.models.report_models import HeatReport, SessionInfo
from heatrank.models.sample_models import (
    CycleEvent,
    CycleObservation,
    ProviderResult,
    RawProcessSample,
    ResultStatus,
)
from heatrank.utils.logger import Logger, LogOnce

CycleListener = Callable[[CycleEvent], None]


def apply_cycle(
    session: Session,
    cycle_index: int,
    observation: CycleObservation,
    logical_cpu_count: int,
    top_k: int = DEFAULT_TOP_K,
    throttle_threshold_percent: float = DEFAULT_THROTTLE_THRESHOLD_PERCENT,
    timestamp: float = 0.0,
) -> CycleEvent:
    """Fold one cycle's observation into the session.

    Args:
        session: Session to mutate.
        cycle_index: Zero-based cycle number.
        observation: Raw provider results for the cycle.
        logical_cpu_count: Logical processors, for CPU normalization.
        top_k: Processes kept by the normalizer.
        throttle_threshold_percent: Clock ratio threshold.
        timestamp: Wall-clock time of the cycle, passed through to the event.

    Returns:
        CycleEvent describing the cycle.
    """
    processes = observation.processes
    gpu_samples = observation.gpu.value if observation.gpu.has_value else None

    if processes.has_value:
        samples = normalize_samples(
            processes.value or [], logical_cpu_count, gpu_samples, top_k
        )
    else:
        samples = []

    # Only OK cycles carry CPU percent; record() skips the rest sample by sample
    if processes.status is not ResultStatus.OK:
        session.degraded_cycles += 1
    record(session, cycle_index, samples)

    temperature = (
        observation.temperature.value if observation.temperature.has_value else None
    )
    record_temperature(session, temperature)

    ratio = None
    if observation.clock is not None:
        ratio = clock_ratio_percent(
            observation.clock.current_mhz, observation.clock.max_mhz
        )
    if ratio is not None:
        session.clock_cycles += 1
    event = detect_throttle(cycle_index, observation.clock, throttle_threshold_percent)
    record_throttle(session, event)

    return CycleEvent(
        cycle_index=cycle_index,
        total_cycles=session.total_cycles,
        samples=samples,
        temperature=temperature,
        clock_ratio_percent=ratio,
        throttling=event is not None,
        process_status=processes.status,
        timestamp=timestamp,
    )


def replay(
    observations: Iterable[CycleObservation],
    logical_cpu_count: int,
    total_cycles: int | None = None,
    top_k: int = DEFAULT_TOP_K,
    top_n: int = DEFAULT_TOP_N,
    throttle_threshold_percent: float = DEFAULT_THROTTLE_THRESHOLD_PERCENT,
    high_temperature_c: float = DEFAULT_HIGH_TEMPERATURE_C,
) -> HeatReport:
    """Score a recorded sequence of observations.

    Replaying the same observations always yields an equal report.

    Args:
        observations: Per-cycle observations in order.
        logical_cpu_count: Logical processors of the recorded host.
        total_cycles: Configured cycle count; defaults to the number of
            observations.
    """
    recorded = list(observations)
    session = Session(
        total_cycles=total_cycles if total_cycles is not None else len(recorded)
    )
    for index, observation in enumerate(recorded):
        apply_cycle(
            session,
            index,
            observation,
            logical_cpu_count,
            top_k=top_k,
            throttle_threshold_percent=throttle_threshold_percent,
        )
    return build_report(
        session,
        top_n=top_n,
        high_temperature_c=high_temperature_c,
        throttle_threshold_percent=throttle_threshold_percent,
    )


class HeatMonitor:
    """Run one bounded monitoring session against a metric provider.

    Args:
        provider: Source of per-cycle metrics.
        config: Session settings; defaults to ``MonitorConfig()``.
        cycle_listener: Optional callback invoked after every cycle.
        sleep: Sleep function; defaults to time.sleep.
        clock: Monotonic clock used to shorten the inter-cycle sleep;
            defaults to time.monotonic.
    """

    def __init__(
        self,
        provider: MetricProvider,
        config: MonitorConfig | None = None,
        cycle_listener: CycleListener | None = None,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or MonitorConfig()
        self._cycle_listener = cycle_listener
        self._sleep = sleep or time.sleep
        self._clock = clock or time.monotonic
        self._log = Logger.get("monitoring")
        self._reset_session_logging()

    def _reset_session_logging(self) -> None:
        self._once = LogOnce(self._log)
        self._temperature = TemperatureAggregator(self.provider.temperature_sources)

    def _on_process_unavailable(
        self, result: ProviderResult[list[RawProcessSample]]
    ) -> None:
        self._once.warning(
            f"process:{result.provider}",
            f"Process provider '{result.provider}' unavailable: {result.reason}",
        )

    def collect_observation(self) -> CycleObservation:
        """Query every provider once."""
        processes = self.provider.process_samples(
            on_unavailable=self._on_process_unavailable
        )
        if processes.status is ResultStatus.DEGRADED:
            self._once.warning(
                f"process:{processes.provider}",
                f"Using fallback process provider '{processes.provider}': "
                f"{processes.reason}",
            )

        if self.config.include_gpu:
            gpu = self.provider.gpu_samples()
            if not gpu.has_value:
                self._once.info(
                    "gpu", f"Per-process GPU data unavailable: {gpu.reason}"
                )
        else:
            gpu = ProviderResult.unavailable("GPU sampling disabled")

        return CycleObservation(
            processes=processes,
            gpu=gpu,
            temperature=self._temperature.read(),
            clock=self.provider.clock_speeds(),
        )

    def run(self) -> HeatReport:
        """Run every cycle and return the scored report.

        ``KeyboardInterrupt`` propagates; the partial session is discarded.
        """
        self._reset_session_logging()
        config = self.config
        total_cycles = config.total_cycles
        session = Session(total_cycles=total_cycles)
        started_at = datetime.now().isoformat(timespec="seconds")

        self._log.info(
            f"Starting session: {total_cycles} cycles every "
            f"{config.interval_seconds}s, {self.provider.logical_cpu_count} logical CPUs"
        )
        self.provider.prime()

        try:
            for cycle_index in range(total_cycles):
                start = self._clock()
                observation = self.collect_observation()
                event = apply_cycle(
                    session,
                    cycle_index,
                    observation,
                    self.provider.logical_cpu_count,
                    top_k=config.top_k,
                    throttle_threshold_percent=config.throttle_threshold_percent,
                    timestamp=time.time(),
                )
                self._log.debug(
                    f"Cycle {cycle_index + 1}/{total_cycles}: "
                    f"{len(event.samples)} processes, status={event.process_status.value}"
                )
                if self._cycle_listener:
                    self._cycle_listener(event)

                if cycle_index == total_cycles - 1:
                    break
                remaining = config.interval_seconds - (self._clock() - start)
                if remaining > 0:
                    self._sleep(remaining)
        finally:
            self.provider.cleanup()

        info = SessionInfo(
            total_cycles=total_cycles,
            interval_seconds=config.interval_seconds,
            started_at=started_at,
            finished_at=datetime.now().isoformat(timespec="seconds"),
            heatrank_version=__version__,
        )
        self._log.info(f"Session finished after {session.cycles_recorded} cycles")
        return build_report(
            session,
            top_n=config.top_n,
            high_temperature_c=config.high_temperature_c,
            throttle_threshold_percent=config.throttle_threshold_percent,
            session_info=info,
        )
