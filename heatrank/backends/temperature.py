"""Temperature sources for the fallback chain.

Primary sensors (dedicated hardware-monitoring interfaces):
- psutil hwmon sensors (Linux/FreeBSD)
- LibreHardwareMonitor / OpenHardwareMonitor WMI providers (Windows)

Fallback sensors (OS thermal zones, range-checked by the aggregator):
- /sys/class/thermal/thermal_zone*/temp (Linux, millidegrees Celsius)
- MSAcpi_ThermalZoneTemperature (Windows, tenths of Kelvin)
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Any

import psutil

from heatrank.backends.base import TemperatureSource
from heatrank.core.temperature import deci_kelvin_to_celsius
from heatrank.models.sample_models import SensorKind

LHM_NAMESPACE = r"root\LibreHardwareMonitor"
OHM_NAMESPACE = r"root\OpenHardwareMonitor"
ACPI_NAMESPACE = r"root\wmi"


class PsutilSensorSource(TemperatureSource):
    """Hardware sensors exposed by psutil (hwmon on Linux)."""

    @property
    def name(self) -> str:
        """Return the name of the source."""
        return "psutil_sensors"

    @property
    def kind(self) -> SensorKind:
        """Return the sensor tier."""
        return SensorKind.PRIMARY

    def read_celsius(self) -> list[float] | None:
        """Read every hwmon temperature entry.

        Returns
        -------
            Current temperatures in Celsius, or None if psutil has no sensor
            support on this platform or reported nothing.
        """
        reader = getattr(psutil, "sensors_temperatures", None)
        if reader is None:
            return None

        try:
            groups = reader()
        except (OSError, RuntimeError, ValueError):
            return None

        readings = [
            float(entry.current)
            for entries in (groups or {}).values()
            for entry in entries
            if entry.current is not None
        ]
        return readings or None


class _WmiSource(TemperatureSource):
    """Shared connection handling for WMI-backed sources.

    The ``wmi`` package only exists on Windows; it is imported on first use
    so the module stays importable elsewhere.
    """

    def __init__(self, namespace: str) -> None:
        self._namespace = namespace
        self._connection: Any = None
        self._errors: tuple[type[Exception], ...] = (OSError,)

    def _connect(self) -> Any:
        if self._connection is not None:
            return self._connection
        try:
            import wmi  # type: ignore[import-not-found, unused-ignore]
        except ImportError:
            return None
        try:
            self._connection = wmi.WMI(namespace=self._namespace)
        except (wmi.x_wmi, OSError):
            return None
        self._errors = (wmi.x_wmi, OSError, AttributeError, ValueError)
        return self._connection

    @abstractmethod
    def _query(self, connection: Any) -> list[float]:
        """Return Celsius readings from an open WMI connection."""

    def read_celsius(self) -> list[float] | None:
        """Query the WMI namespace; None if unreachable or empty."""
        connection = self._connect()
        if connection is None:
            return None
        try:
            readings = self._query(connection)
        except self._errors:
            # Drop the connection so the next cycle reconnects
            self._connection = None
            return None
        return readings or None


class HardwareMonitorWmiSource(_WmiSource):
    """LibreHardwareMonitor (or OpenHardwareMonitor) sensors published over WMI.

    Requires the monitor application to be running; it publishes every
    sensor as a ``Sensor`` instance with ``SensorType='Temperature'``.
    """

    def __init__(self, namespace: str = LHM_NAMESPACE) -> None:
        super().__init__(namespace)

    @property
    def name(self) -> str:
        """Return the name of the source."""
        if self._namespace == OHM_NAMESPACE:
            return "openhardwaremonitor"
        return "librehardwaremonitor"

    @property
    def kind(self) -> SensorKind:
        """Return the sensor tier."""
        return SensorKind.PRIMARY

    def _query(self, connection: Any) -> list[float]:
        sensors = connection.Sensor(SensorType="Temperature")
        return [float(sensor.Value) for sensor in sensors if sensor.Value is not None]


class AcpiThermalZoneSource(_WmiSource):
    """ACPI thermal zones via ``MSAcpi_ThermalZoneTemperature`` (Windows).

    Values arrive in tenths of a Kelvin and usually need administrator rights.
    """

    def __init__(self) -> None:
        super().__init__(ACPI_NAMESPACE)

    @property
    def name(self) -> str:
        """Return the name of the source."""
        return "acpi_thermal_zone"

    @property
    def kind(self) -> SensorKind:
        """Return the sensor tier."""
        return SensorKind.FALLBACK

    def _query(self, connection: Any) -> list[float]:
        zones = connection.MSAcpi_ThermalZoneTemperature()
        return [
            deci_kelvin_to_celsius(float(zone.CurrentTemperature))
            for zone in zones
            if zone.CurrentTemperature is not None
        ]


class SysfsThermalZoneSource(TemperatureSource):
    """Linux thermal zones under /sys/class/thermal.

    Each ``thermal_zone*/temp`` file holds millidegrees Celsius.
    """

    def __init__(self, root: Path | str = "/sys/class/thermal") -> None:
        """Initialize with the sysfs thermal directory (overridable for tests)."""
        self._root = Path(root)

    @property
    def name(self) -> str:
        """Return the name of the source."""
        return "sysfs_thermal"

    @property
    def kind(self) -> SensorKind:
        """Return the sensor tier."""
        return SensorKind.FALLBACK

    def read_celsius(self) -> list[float] | None:
        """Read every thermal zone, skipping unreadable ones."""
        readings: list[float] = []
        for zone in sorted(self._root.glob("thermal_zone*")):
            try:
                temp_mc = int((zone / "temp").read_text().strip())
            except (OSError, ValueError):
                continue
            readings.append(temp_mc / 1000.0)
        return readings or None
