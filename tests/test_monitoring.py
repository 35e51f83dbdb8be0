"""Tests for the bounded monitoring session."""

import pytest

from heatrank.backends.base import ClockProvider, ProcessProvider, TemperatureSource
from heatrank.backends.factory import MetricProvider
from heatrank.config import MonitorConfig
from heatrank.core.history import Session
from heatrank.models.sample_models import (
    ClockReading,
    CycleObservation,
    GpuSample,
    ProviderResult,
    RawProcessSample,
    ResultStatus,
    SensorKind,
    TemperatureSample,
)
from heatrank.monitoring import HeatMonitor, apply_cycle, replay


class ScriptedProcesses(ProcessProvider):
    """Process provider that plays back one result per call."""

    def __init__(self, results, name="scripted"):
        self._results = list(results)
        self._name = name
        self.primed = False
        self.calls = 0

    @property
    def name(self):
        return self._name

    def prime(self):
        self.primed = True

    def collect(self):
        result = self._results[min(self.calls, len(self._results) - 1)]
        self.calls += 1
        return result


class FixedClock(ClockProvider):
    def __init__(self, reading):
        self._reading = reading

    @property
    def name(self):
        return "fixed_clock"

    def read(self):
        return self._reading


class FixedTemperature(TemperatureSource):
    def __init__(self, readings):
        self._readings = readings

    @property
    def name(self):
        return "fixed_sensor"

    @property
    def kind(self):
        return SensorKind.PRIMARY

    def read_celsius(self):
        return self._readings


class FakeTimer:
    """Monotonic clock that advances only when told to."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def clock(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def ok_processes(*samples):
    return ProviderResult.ok(list(samples), provider="scripted")


def observation(processes, temperature=None, clock=None, gpu=None):
    return CycleObservation(
        processes=processes,
        gpu=ProviderResult.ok(gpu, provider="gpu")
        if gpu is not None
        else ProviderResult.unavailable("no gpu"),
        temperature=ProviderResult.ok(temperature, provider="sensor")
        if temperature is not None
        else ProviderResult.unavailable("no sensor"),
        clock=clock,
    )


class TestApplyCycle:
    """Tests for folding one observation into the session."""

    def test_ok_cycle_records_everything(self):
        session = Session(total_cycles=2)
        obs = observation(
            ok_processes(
                RawProcessSample("app", 40.0, memory_bytes=1024 * 1024),
                RawProcessSample("app#1", 40.0),
            ),
            temperature=TemperatureSample(55.0, 70.0, SensorKind.PRIMARY),
            clock=ClockReading(2000.0, 4000.0),
            gpu=[GpuSample("app", 25.0)],
        )

        event = apply_cycle(session, 0, obs, logical_cpu_count=4)

        assert event.process_status is ResultStatus.OK
        assert event.samples[0].name == "app"
        assert event.samples[0].cpu_percent == pytest.approx(20.0)
        assert event.clock_ratio_percent == pytest.approx(50.0)
        assert event.throttling is True
        assert session.histories["app"].cpu == [pytest.approx(20.0)]
        assert session.histories["app"].gpu == [25.0]
        assert session.temperature_history == [55.0]
        assert session.clock_cycles == 1
        assert [e.cycle_index for e in session.throttle_events] == [0]
        assert session.degraded_cycles == 0

    def test_degraded_cycle_not_recorded_into_history(self):
        session = Session(total_cycles=1)
        degraded = ProviderResult.degraded(
            [RawProcessSample("app", None, cpu_seconds=30.0)],
            reason="no counters",
            provider="times",
        )

        event = apply_cycle(session, 0, observation(degraded), logical_cpu_count=4)

        assert event.process_status is ResultStatus.DEGRADED
        assert [s.name for s in event.samples] == ["app"]
        assert session.histories == {}
        assert session.degraded_cycles == 1
        assert session.cycles_recorded == 1

    def test_unavailable_cycle(self):
        session = Session(total_cycles=1)

        event = apply_cycle(
            session,
            0,
            observation(ProviderResult.unavailable("boom")),
            logical_cpu_count=4,
        )

        assert event.samples == []
        assert event.temperature is None
        assert event.clock_ratio_percent is None
        assert event.throttling is False
        assert session.degraded_cycles == 1
        assert session.clock_cycles == 0


class TestReplay:
    """Tests for scoring recorded observations."""

    def _observations(self):
        x = RawProcessSample("X", 200.0, memory_bytes=200 * 1024 * 1024)
        y = RawProcessSample("Y", 360.0)
        return [
            observation(ok_processes(x), clock=ClockReading(3000.0, 3000.0)),
            observation(
                ok_processes(x, y),
                temperature=TemperatureSample(80.0, 90.0, SensorKind.PRIMARY),
                clock=ClockReading(2000.0, 3000.0),
            ),
            observation(ok_processes(x), clock=ClockReading(3000.0, 3000.0)),
        ]

    def test_sustained_process_ranked_first(self):
        report = replay(self._observations(), logical_cpu_count=4)

        assert [p.name for p in report.processes] == ["X", "Y"]
        assert report.processes[0].heat_score == pytest.approx(65.2)
        assert report.processes[1].frequency_percent == pytest.approx(33.3)
        assert report.throttling.event_count == 1
        assert report.throttling.throttled_cycles == [1]
        assert report.temperature.max_c == 80.0

    def test_replay_is_idempotent(self):
        observations = self._observations()

        assert replay(observations, 4) == replay(observations, 4)

    def test_total_cycles_override(self):
        report = replay(self._observations(), logical_cpu_count=4, total_cycles=6)

        by_name = {p.name: p for p in report.processes}

        assert report.session.total_cycles == 6
        assert by_name["X"].frequency_percent == pytest.approx(50.0)
        # X's sustained load halves while Y's peak term does not
        assert by_name["X"].heat_score == pytest.approx(40.2)
        assert by_name["Y"].heat_score == pytest.approx(42.0)
        assert [p.name for p in report.processes] == ["Y", "X"]


class TestHeatMonitor:
    """Tests for the live session loop with injected time."""

    def _provider(self, process_results, clock=None, temps=None):
        return MetricProvider(
            process_providers=[ScriptedProcesses(process_results)],
            temperature_sources=[FixedTemperature(temps)],
            clock_provider=FixedClock(clock),
            logical_cpu_count=2,
        )

    def test_runs_configured_cycles_and_scores(self):
        provider = self._provider(
            [ok_processes(RawProcessSample("busy", 50.0))],
            clock=ClockReading(1000.0, 1000.0),
            temps=[50.0, 60.0],
        )
        timer = FakeTimer()
        events = []
        config = MonitorConfig(interval_seconds=10, duration_seconds=30)

        report = HeatMonitor(
            provider,
            config,
            cycle_listener=events.append,
            sleep=timer.sleep,
            clock=timer.clock,
        ).run()

        assert provider.process_providers[0].primed is True
        assert [e.cycle_index for e in events] == [0, 1, 2]
        # No sleep after the final cycle
        assert timer.sleeps == [10.0, 10.0]
        assert report.session.total_cycles == 3
        assert report.session.cycles_recorded == 3
        assert report.session.interval_seconds == 10.0
        assert report.session.started_at is not None
        assert report.processes[0].name == "busy"
        assert report.processes[0].avg_cpu == pytest.approx(25.0)
        assert report.temperature.average_c == pytest.approx(55.0)
        assert report.throttling.clock_data_available is True
        assert report.throttling.event_count == 0

    def test_sleep_shortened_by_cycle_time(self):
        provider = self._provider([ok_processes(RawProcessSample("a", 1.0))])
        timer = FakeTimer()
        original_collect = provider.process_providers[0].collect

        def slow_collect():
            timer.now += 3.0
            return original_collect()

        provider.process_providers[0].collect = slow_collect
        config = MonitorConfig(interval_seconds=10, duration_seconds=20)

        HeatMonitor(provider, config, sleep=timer.sleep, clock=timer.clock).run()

        assert timer.sleeps == [pytest.approx(7.0)]

    def test_falls_back_to_next_process_provider(self, log_output):
        primary = ScriptedProcesses(
            [ProviderResult.unavailable("counters broken", provider="primary")],
            name="primary",
        )
        fallback = ScriptedProcesses(
            [
                ProviderResult.degraded(
                    [RawProcessSample("a", None, cpu_seconds=5.0)],
                    reason="cpu time only",
                    provider="fallback",
                )
            ],
            name="fallback",
        )
        provider = MetricProvider(
            process_providers=[primary, fallback], logical_cpu_count=1
        )
        timer = FakeTimer()
        config = MonitorConfig(interval_seconds=1, duration_seconds=3)
        events = []

        report = HeatMonitor(
            provider, config, events.append, sleep=timer.sleep, clock=timer.clock
        ).run()

        assert [e.process_status for e in events] == [ResultStatus.DEGRADED] * 3
        assert report.session.degraded_cycles == 3
        assert report.processes == []
        assert report.temperature.available is False
        assert report.throttling.clock_data_available is False
        logs = log_output.getvalue()
        assert logs.count("Process provider 'primary' unavailable") == 1
        assert logs.count("Using fallback process provider 'fallback'") == 1

    def test_keyboard_interrupt_propagates_and_cleans_up(self):
        provider = self._provider([ok_processes(RawProcessSample("a", 1.0))])
        cleaned = []
        provider.cleanup = lambda: cleaned.append(True)

        def interrupt(_seconds):
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            HeatMonitor(
                provider,
                MonitorConfig(interval_seconds=1, duration_seconds=5),
                sleep=interrupt,
                clock=FakeTimer().clock,
            ).run()

        assert cleaned == [True]
