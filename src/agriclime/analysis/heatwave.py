"""Extreme-heat and heat-wave detection from daily maximum temperatures.

The threshold is the series' own 95th percentile, a heuristic rather than a
climatological definition; both the percentile and the minimum event length
are overridable.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from agriclime.models import HeatMetrics

HEAT_PERCENTILE = 0.95
MIN_HEATWAVE_DAYS = 3


def heat_threshold(temperatures: Sequence[float], percentile: float = HEAT_PERCENTILE) -> float:
    """Value at ``floor(n * percentile)`` of the sorted series."""
    ordered = sorted(temperatures)
    idx = min(int(math.floor(len(ordered) * percentile)), len(ordered) - 1)
    return float(ordered[idx])


def detect_heat_events(
    daily_max_temps: Sequence[float],
    *,
    percentile: float = HEAT_PERCENTILE,
    min_event_days: int = MIN_HEATWAVE_DAYS,
) -> HeatMetrics:
    """Count extreme-heat days, heat waves and the open hot-day streak.

    Args:
        daily_max_temps: Chronological daily maxima (°C), nulls already removed.
        percentile: Fraction of the sorted series used as the threshold.
        min_event_days: Run length at which a heat wave is counted.

    A day is hot when strictly above the threshold, so ties with the
    threshold never count. A heat wave is counted once per run, at the moment
    the run reaches ``min_event_days``.
    """
    if len(daily_max_temps) == 0:
        return HeatMetrics()

    threshold = heat_threshold(daily_max_temps, percentile)

    extreme_days = 0
    heat_waves = 0
    run = 0
    for temp in daily_max_temps:
        if temp > threshold:
            extreme_days += 1
            run += 1
            if run == min_event_days:
                heat_waves += 1
        else:
            run = 0

    return HeatMetrics(
        extreme_heat_days=extreme_days,
        heat_wave_count=heat_waves,
        current_streak=run,
        max_temperature_c=float(max(daily_max_temps)),
        threshold_c=threshold,
    )
