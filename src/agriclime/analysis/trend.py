"""Climate trend analysis for multi-decade (year, value) series.

Combines an ordinary least-squares slope with a Mann-Kendall test for
monotonic trend significance, and screens for change points with a CUSUM
scan. The CUSUM scan is a heuristic for flagging regime shifts worth a
closer look, not a formal hypothesis test.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
from scipy import stats

from agriclime.errors import InsufficientDataError, ValidationError
from agriclime.models import TrendDirection, TrendPoint, TrendResult

logger = logging.getLogger(__name__)

MIN_TREND_POINTS = 3
SIGNIFICANCE_LEVEL = 0.05
# CUSUM threshold in units of std * sqrt(n)
CUSUM_THRESHOLD_SIGMA = 1.5


@dataclass(frozen=True)
class MannKendall:
    """Mann-Kendall test outcome."""

    s: int
    variance: float
    z: float
    p_value: float
    tau: float


def _prepare_series(series: Iterable[TrendPoint | Sequence[float]]) -> list[tuple[int, float]]:
    """Validate and sort a (year, value) series ascending by year."""
    points: list[tuple[int, float]] = []
    for item in series:
        if isinstance(item, TrendPoint):
            year, value = item.year, item.value
        else:
            try:
                year, value = item
            except (TypeError, ValueError) as exc:
                raise ValidationError(f"Expected (year, value) pair, got {item!r}") from exc
        try:
            year_f, value_f = float(year), float(value)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Non-numeric sample {item!r}") from exc
        if not math.isfinite(year_f) or year_f != int(year_f):
            raise ValidationError(f"Year must be an integer, got {year!r}")
        if not math.isfinite(value_f):
            raise ValidationError(f"Non-finite value for year {int(year_f)}")
        points.append((int(year_f), value_f))

    if len(points) < MIN_TREND_POINTS:
        raise InsufficientDataError(
            f"Trend analysis needs at least {MIN_TREND_POINTS} points, got {len(points)}",
            required=MIN_TREND_POINTS,
            received=len(points),
        )

    points.sort(key=lambda p: p[0])
    years = [p[0] for p in points]
    duplicates = sorted({y for y in years if years.count(y) > 1})
    if duplicates:
        raise ValidationError(f"Duplicate years in series: {duplicates}")
    return points


def linear_fit(years: np.ndarray, values: np.ndarray) -> tuple[float, float]:
    """OLS slope and the fitted value at the first year."""
    if np.ptp(values) == 0:
        return 0.0, float(values[0])
    x_mean = years.mean()
    y_mean = values.mean()
    dx = years - x_mean
    slope = float(np.sum(dx * (values - y_mean)) / np.sum(dx**2))
    intercept = float(y_mean + slope * (years[0] - x_mean))
    return slope, intercept


def mann_kendall(values: np.ndarray) -> MannKendall:
    """Two-sided Mann-Kendall test with the tie-corrected variance of S.

    Var(S) = [n(n-1)(2n+5) - sum_t t(t-1)(2t+5)] / 18, where t runs over the
    sizes of groups of tied values. z uses a continuity correction of 1.
    """
    n = len(values)
    s = 0
    for i in range(n - 1):
        s += int(np.sign(values[i + 1:] - values[i]).sum())

    _, counts = np.unique(values, return_counts=True)
    ties = counts[counts > 1].astype(float)
    variance = (n * (n - 1) * (2 * n + 5) - float(np.sum(ties * (ties - 1) * (2 * ties + 5)))) / 18.0

    if s == 0 or variance <= 0:
        z = 0.0
        p_value = 1.0
    else:
        z = (s - math.copysign(1, s)) / math.sqrt(variance)
        p_value = float(min(1.0, max(0.0, 2.0 * stats.norm.sf(abs(z)))))

    tau = s / (n * (n - 1) / 2)
    return MannKendall(s=s, variance=variance, z=float(z), p_value=p_value, tau=float(tau))


def sen_slope(years: np.ndarray, values: np.ndarray) -> float:
    """Median of all pairwise slopes (Theil-Sen estimator)."""
    slopes = []
    for i in range(len(values) - 1):
        slopes.append((values[i + 1:] - values[i]) / (years[i + 1:] - years[i]))
    return float(np.median(np.concatenate(slopes)))


def detect_change_points(
    years: np.ndarray,
    values: np.ndarray,
    threshold_sigma: float = CUSUM_THRESHOLD_SIGMA,
) -> list[int]:
    """Flag regime shifts from the cumulative deviation from the mean.

    Each contiguous excursion of |CUSUM| above ``threshold_sigma * std *
    sqrt(n)`` yields one year: the year after the excursion's peak, i.e. the
    first year of the new regime.
    """
    n = len(values)
    if n < MIN_TREND_POINTS or np.ptp(values) == 0:
        return []

    cusum = np.cumsum(values - values.mean())
    threshold = threshold_sigma * float(np.std(values)) * math.sqrt(n)
    exceeds = np.abs(cusum) > threshold

    flagged: set[int] = set()
    i = 0
    while i < n:
        if not exceeds[i]:
            i += 1
            continue
        j = i
        while j < n and exceeds[j]:
            j += 1
        peak = i + int(np.argmax(np.abs(cusum[i:j])))
        flagged.add(int(years[min(peak + 1, n - 1)]))
        i = j

    return sorted(flagged)


def _direction(slope: float, significant: bool) -> TrendDirection:
    if significant and slope > 0:
        return TrendDirection.WARMING
    if significant and slope < 0:
        return TrendDirection.COOLING
    return TrendDirection.NO_TREND


def analyze_trend(
    series: Iterable[TrendPoint | Sequence[float]],
    *,
    significance_level: float = SIGNIFICANCE_LEVEL,
    cusum_threshold_sigma: float = CUSUM_THRESHOLD_SIGMA,
) -> TrendResult:
    """Analyze a (year, value) series for a statistically validated trend.

    Raises:
        InsufficientDataError: fewer than 3 points.
        ValidationError: duplicate years, non-integer years or non-finite values.
    """
    points = _prepare_series(series)
    years = np.array([p[0] for p in points], dtype=float)
    values = np.array([p[1] for p in points], dtype=float)

    slope, intercept = linear_fit(years, values)
    mk = mann_kendall(values)
    significant = mk.p_value < significance_level

    mean_value = float(values.mean())
    span = years[-1] - years[0]
    # Fraction of the mean, not scaled to 100
    percent_change = slope * span / mean_value if mean_value != 0 else 0.0

    change_points = detect_change_points(years, values, cusum_threshold_sigma)
    logger.debug(
        "Trend over %d points: slope=%.4f p=%.4f change_points=%s",
        len(points), slope, mk.p_value, change_points,
    )

    return TrendResult(
        series=[TrendPoint(year=y, value=v) for y, v in points],
        slope_per_year=slope,
        intercept_at_first_year=intercept,
        direction=_direction(slope, significant),
        p_value=mk.p_value,
        significant=significant,
        percent_change_over_period=float(percent_change),
        change_points=change_points,
        mean_value=mean_value,
        s_statistic=mk.s,
        z_score=mk.z,
        kendall_tau=mk.tau,
        sen_slope_per_year=sen_slope(years, values),
    )
