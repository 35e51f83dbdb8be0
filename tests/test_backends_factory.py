"""Tests for the metric provider factory."""

from unittest.mock import MagicMock, patch

import pytest

from heatrank.backends.clock import PsutilClockProvider
from heatrank.backends.factory import (
    MetricProvider,
    MetricProviderFactory,
    probe_sources,
)
from heatrank.backends.process import PsutilCounterProvider, PsutilCpuTimesProvider
from heatrank.backends.temperature import (
    AcpiThermalZoneSource,
    HardwareMonitorWmiSource,
    PsutilSensorSource,
    SysfsThermalZoneSource,
)
from heatrank.models.sample_models import (
    ClockReading,
    ProviderResult,
    RawProcessSample,
    ResultStatus,
)


def test_linux_temperature_chain():
    sources = MetricProviderFactory.temperature_sources("Linux")

    assert [type(s) for s in sources] == [PsutilSensorSource, SysfsThermalZoneSource]


def test_windows_temperature_chain():
    sources = MetricProviderFactory.temperature_sources("Windows")

    assert [type(s) for s in sources] == [
        HardwareMonitorWmiSource,
        HardwareMonitorWmiSource,
        AcpiThermalZoneSource,
    ]
    assert [s.name for s in sources[:2]] == [
        "librehardwaremonitor",
        "openhardwaremonitor",
    ]


def test_other_platform_temperature_chain():
    sources = MetricProviderFactory.temperature_sources("Darwin")

    assert [type(s) for s in sources] == [PsutilSensorSource]


def test_create_without_gpu():
    with patch("heatrank.backends.factory.NvidiaGpuProvider") as nvidia_cls:
        provider = MetricProviderFactory.create(include_gpu=False, system="Linux")

    nvidia_cls.assert_not_called()
    assert provider.gpu_provider is None
    assert [type(p) for p in provider.process_providers] == [
        PsutilCounterProvider,
        PsutilCpuTimesProvider,
    ]
    assert isinstance(provider.clock_provider, PsutilClockProvider)
    assert provider.logical_cpu_count >= 1


def test_create_with_available_gpu():
    mock_instance = MagicMock()
    mock_instance.is_available.return_value = True

    with patch(
        "heatrank.backends.factory.NvidiaGpuProvider", return_value=mock_instance
    ):
        provider = MetricProviderFactory.create(include_gpu=True, system="Linux")

    assert provider.gpu_provider is mock_instance


def test_create_with_unavailable_gpu():
    mock_instance = MagicMock()
    mock_instance.is_available.return_value = False

    with patch(
        "heatrank.backends.factory.NvidiaGpuProvider", return_value=mock_instance
    ):
        provider = MetricProviderFactory.create(include_gpu=True, system="Linux")

    assert provider.gpu_provider is None
    assert provider.gpu_samples().status is ResultStatus.UNAVAILABLE


class TestMetricProvider:
    """Tests for the strategy container."""

    def _process_provider(self, result, name):
        provider = MagicMock()
        provider.name = name
        provider.collect.return_value = result
        return provider

    def test_requires_a_process_provider(self):
        with pytest.raises(ValueError):
            MetricProvider(process_providers=[])

    def test_first_working_strategy_wins(self):
        ok = ProviderResult.ok([RawProcessSample("a", 1.0)], provider="second")
        first = self._process_provider(ProviderResult.unavailable("x"), "first")
        second = self._process_provider(ok, "second")
        third = self._process_provider(ok, "third")
        failures = []

        provider = MetricProvider([first, second, third], logical_cpu_count=2)
        result = provider.process_samples(on_unavailable=failures.append)

        assert result is ok
        assert len(failures) == 1
        third.collect.assert_not_called()

    def test_all_strategies_fail(self):
        last = ProviderResult.unavailable("both broken", provider="second")
        provider = MetricProvider(
            [
                self._process_provider(ProviderResult.unavailable("x"), "first"),
                self._process_provider(last, "second"),
            ],
            logical_cpu_count=1,
        )

        assert provider.process_samples() is last

    def test_prime_and_cleanup(self):
        process = self._process_provider(None, "p")
        gpu = MagicMock()

        provider = MetricProvider([process], gpu_provider=gpu, logical_cpu_count=1)
        provider.prime()
        provider.cleanup()

        process.prime.assert_called_once()
        gpu.cleanup.assert_called_once()

    def test_clock_speeds_without_provider(self):
        provider = MetricProvider(
            [self._process_provider(None, "p")], logical_cpu_count=1
        )

        assert provider.clock_speeds() is None


def test_probe_sources_reports_each_strategy():
    process = MagicMock()
    process.name = "counters"
    process.collect.return_value = ProviderResult.ok(
        [RawProcessSample("a", 1.0)], provider="counters"
    )
    temperature = MagicMock()
    temperature.name = "zones"
    temperature.kind.value = "fallback_sensor"
    temperature.read_celsius.return_value = None
    clock = MagicMock()
    clock.name = "freq"
    clock.read.return_value = ClockReading(1800.0, 3600.0)

    provider = MetricProvider(
        [process],
        temperature_sources=[temperature],
        clock_provider=clock,
        logical_cpu_count=1,
    )
    statuses = probe_sources(provider)

    by_category = {s.category: s for s in statuses}
    assert by_category["process"].available is True
    assert by_category["process"].detail == "1 processes"
    assert by_category["gpu"].available is False
    assert by_category["temperature (fallback_sensor)"].available is False
    assert by_category["clock"].detail == "1800/3600 MHz"
