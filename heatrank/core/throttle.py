"""Clock-ratio based throttle detection."""

from __future__ import annotations

from heatrank.models.constants import DEFAULT_THROTTLE_THRESHOLD_PERCENT
from heatrank.models.sample_models import ClockReading, ThrottleEvent


def clock_ratio_percent(current_mhz: float, max_mhz: float) -> float | None:
    """Return current clock as a percentage of max, None when max is unknown."""
    if max_mhz <= 0:
        return None
    return current_mhz / max_mhz * 100


def is_throttling(
    ratio_percent: float | None,
    threshold_percent: float = DEFAULT_THROTTLE_THRESHOLD_PERCENT,
) -> bool:
    """Return True when the ratio is strictly below the threshold.

    Examples:
        >>> is_throttling(85.0)
        False
        >>> is_throttling(84.9)
        True
    """
    if ratio_percent is None:
        return False
    return ratio_percent < threshold_percent


def detect_throttle(
    cycle_index: int,
    clock: ClockReading | None,
    threshold_percent: float = DEFAULT_THROTTLE_THRESHOLD_PERCENT,
) -> ThrottleEvent | None:
    """Classify one cycle.

    Runs independently of temperature data. A missing clock reading is
    classified as not throttling.

    Returns
    -------
        ThrottleEvent for a throttled cycle, otherwise None.
    """
    if clock is None:
        return None
    ratio = clock_ratio_percent(clock.current_mhz, clock.max_mhz)
    if ratio is None or not is_throttling(ratio, threshold_percent):
        return None
    return ThrottleEvent(cycle_index=cycle_index, ratio_percent=ratio)
