"""Temperature fallback chain and unit conversions.

Each cycle walks the configured sources in order and stops at the first one
that returns at least one usable reading. Fallback (thermal-zone) readings
are range-checked before they are averaged because ACPI zones commonly report
placeholder values such as -273 or 255.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from heatrank.models.constants import (
    KELVIN_OFFSET,
    PLAUSIBLE_TEMPERATURE_MAX_C,
    PLAUSIBLE_TEMPERATURE_MIN_C,
)
from heatrank.models.sample_models import ProviderResult, SensorKind, TemperatureSample
from heatrank.utils.logger import Logger, LogOnce

if TYPE_CHECKING:
    from heatrank.backends.base import TemperatureSource

NO_SENSORS_REASON = "no temperature sensors accessible"


def celsius_to_fahrenheit(celsius: float) -> float:
    """Convert Celsius to Fahrenheit, rounded to one decimal for display.

    Examples:
        >>> celsius_to_fahrenheit(45.0)
        113.0
    """
    return round(celsius * 9 / 5 + 32, 1)


def deci_kelvin_to_celsius(value: float) -> float:
    """Convert tenths of a Kelvin (ACPI thermal zone units) to Celsius."""
    return value / 10.0 - KELVIN_OFFSET


def filter_plausible(
    readings: Iterable[float],
    minimum: float = PLAUSIBLE_TEMPERATURE_MIN_C,
    maximum: float = PLAUSIBLE_TEMPERATURE_MAX_C,
) -> list[float]:
    """Drop readings outside the physically plausible range (inclusive bounds)."""
    return [value for value in readings if minimum <= value <= maximum]


def summarize_readings(
    readings: Sequence[float], kind: SensorKind, source_name: str = ""
) -> TemperatureSample:
    """Reduce one source's zone readings to an average/max sample."""
    return TemperatureSample(
        average_c=sum(readings) / len(readings),
        max_c=max(readings),
        source=kind,
        source_name=source_name,
        zone_count=len(readings),
    )


class TemperatureAggregator:
    """Run the temperature source chain once per cycle.

    One aggregator lives for one session, so each failing source is logged a
    single time per session no matter how many cycles it stays unavailable.

    Args:
        sources: Sources in priority order (primary sensors first).
        logger: Optional logger; defaults to ``heatrank.core.temperature``.
    """

    def __init__(
        self,
        sources: Sequence[TemperatureSource],
        logger: logging.Logger | None = None,
    ) -> None:
        self._sources = list(sources)
        self._once = LogOnce(logger or Logger.get("core.temperature"))

    @property
    def sources(self) -> list[TemperatureSource]:
        """Sources in the order they are tried."""
        return list(self._sources)

    def read(self) -> ProviderResult[TemperatureSample]:
        """Return the first usable reading in source order.

        Returns
        -------
            OK result with a TemperatureSample, or UNAVAILABLE when every
            source failed or produced only implausible values.
        """
        for source in self._sources:
            readings = source.read_celsius()
            if readings and source.kind is SensorKind.FALLBACK:
                readings = filter_plausible(readings)

            if not readings:
                self._once.info(
                    source.name,
                    f"Temperature source '{source.name}' unavailable, "
                    "trying the next source",
                )
                continue

            return ProviderResult.ok(
                summarize_readings(readings, source.kind, source.name),
                provider=source.name,
            )

        self._once.warning(
            "__no_sensors__",
            "No temperature source returned data; temperature will be "
            "missing for affected cycles",
        )
        return ProviderResult.unavailable(NO_SENSORS_REASON)
