"""Tests for climate trend analysis (analysis/trend.py)."""

import numpy as np
import pytest

from agriclime.analysis.trend import analyze_trend, detect_change_points, mann_kendall, sen_slope
from agriclime.errors import InsufficientDataError, ValidationError
from agriclime.models import TrendDirection, TrendPoint


def _linear(slope=0.05, start=1970, end=2025):
    return [(y, slope * (y - start)) for y in range(start, end + 1)]


def test_flat_series():
    """A constant series has zero slope and no trend."""
    result = analyze_trend([(1970, 10), (1980, 10), (1990, 10), (2000, 10)])
    assert result.slope_per_year == 0.0
    assert result.direction == TrendDirection.NO_TREND
    assert result.p_value == 1.0
    assert not result.significant
    assert result.change_points == []
    assert result.percent_change_over_period == 0.0


def test_linear_warming():
    result = analyze_trend(_linear())
    assert result.slope_per_year == pytest.approx(0.05, abs=1e-6)
    assert result.intercept_at_first_year == pytest.approx(0.0, abs=1e-6)
    assert result.direction == TrendDirection.WARMING
    assert result.significant
    assert result.p_value < 0.001
    assert result.kendall_tau == pytest.approx(1.0)
    assert result.sen_slope_per_year == pytest.approx(0.05)


def test_linear_cooling():
    result = analyze_trend(_linear(slope=-0.03))
    assert result.direction == TrendDirection.COOLING
    assert result.slope_per_year == pytest.approx(-0.03, abs=1e-6)


def test_percent_change_over_period_is_a_fraction_of_the_mean():
    """slope * span / mean: 0.05 * 55 / 1.375 = 2.0, with no factor of 100."""
    result = analyze_trend(_linear())
    assert result.percent_change_over_period == pytest.approx(2.0)


def test_not_significant_is_no_trend():
    """An alternating series has a positive slope but no significant trend."""
    series = [(1970 + i, 10.0 + (i % 2)) for i in range(20)]
    result = analyze_trend(series)
    assert result.slope_per_year > 0
    assert not result.significant
    assert result.direction == TrendDirection.NO_TREND


def test_unsorted_input_is_sorted():
    series = list(reversed(_linear()))
    result = analyze_trend(series)
    years = [p.year for p in result.series]
    assert years == sorted(years)
    assert result.slope_per_year == pytest.approx(0.05, abs=1e-6)


def test_accepts_trend_points():
    series = [TrendPoint(year=y, value=v) for y, v in _linear()]
    assert analyze_trend(series).direction == TrendDirection.WARMING


def test_too_few_points():
    with pytest.raises(InsufficientDataError) as excinfo:
        analyze_trend([(2000, 1.0), (2001, 2.0)])
    assert excinfo.value.required == 3
    assert excinfo.value.received == 2


def test_duplicate_years_rejected():
    with pytest.raises(ValidationError, match="Duplicate"):
        analyze_trend([(2000, 1.0), (2001, 2.0), (2001, 3.0)])


def test_fractional_year_rejected():
    with pytest.raises(ValidationError, match="integer"):
        analyze_trend([(2000, 1.0), (2000.5, 2.0), (2001, 3.0)])


def test_non_finite_value_rejected():
    with pytest.raises(ValidationError):
        analyze_trend([(2000, 1.0), (2001, float("nan")), (2002, 3.0)])


def test_mann_kendall_monotonic():
    mk = mann_kendall(np.array([1.0, 2.0, 3.0, 4.0, 5.0]))
    assert mk.s == 10
    assert mk.variance == pytest.approx(5 * 4 * 15 / 18)
    assert mk.tau == pytest.approx(1.0)


def test_mann_kendall_tie_correction():
    """Tied groups reduce Var(S)."""
    mk = mann_kendall(np.array([1.0, 1.0, 2.0, 2.0, 3.0]))
    # n=5: 5*4*15 = 300; two pairs of ties: 2 * (2*1*9) = 36
    assert mk.variance == pytest.approx((300 - 36) / 18)


def test_sen_slope_resists_outlier():
    years = np.arange(2000, 2011, dtype=float)
    values = 0.1 * (years - 2000)
    values[5] = 50.0
    assert sen_slope(years, values) == pytest.approx(0.1)


def test_step_change_point():
    """A level shift is reported at the first year of the new regime."""
    years = np.arange(1970, 2010, dtype=float)
    values = np.where(years < 1990, 10.0, 12.0)
    assert detect_change_points(years, values) == [1990]


def test_no_change_points_for_flat_series():
    years = np.arange(1970, 2000, dtype=float)
    assert detect_change_points(years, np.full(30, 5.0)) == []


def test_idempotent():
    series = [(1970 + i, 10.0 + 0.02 * i + (0.3 if i % 3 else -0.3)) for i in range(40)]
    assert analyze_trend(series) == analyze_trend(series)
