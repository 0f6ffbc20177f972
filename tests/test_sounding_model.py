"""Tests for sounding validation (sounding/model.py)."""

import numpy as np
import pytest

from agriclime.analysis.sounding import build_sounding
from agriclime.errors import ValidationError


def _arrays(**overrides):
    """Three-level sounding as raw arrays, with optional replacements."""
    data = {
        "pressure": [1000, 850, 700],
        "temperature": [25.0, 15.0, 5.0],
        "dewpoint": [20.0, 10.0, -5.0],
        "height": [100.0, 1500.0, 3000.0],
        "wind_speed": [5.0, 10.0, 15.0],
        "wind_direction": [180.0, 220.0, 260.0],
    }
    data.update(overrides)
    return data


def test_valid_sounding():
    """Well-formed arrays build a sounding with matching levels."""
    s = build_sounding(**_arrays())
    assert s.n_levels == 3
    assert list(s.pressure) == [1000, 850, 700]
    assert s.height_agl[0] == 0.0


def test_mismatched_lengths():
    """Arrays of different lengths are rejected."""
    with pytest.raises(ValidationError, match="equal lengths"):
        build_sounding(**_arrays(dewpoint=[20.0, 10.0]))


def test_null_field_rejected():
    """A field that is not an array is a validation error, not a TypeError."""
    with pytest.raises(ValidationError, match="must be arrays"):
        build_sounding(**_arrays(wind_speed=None))


def test_single_level_rejected():
    """At least two levels are required."""
    with pytest.raises(ValidationError, match="at least 2"):
        build_sounding(
            pressure=[1000], temperature=[25.0], dewpoint=[20.0],
            height=[100.0], wind_speed=[5.0], wind_direction=[180.0],
        )


def test_reverse_order_is_sorted():
    """Top-down input is reordered surface first, pairs kept together."""
    s = build_sounding(**{k: list(reversed(v)) for k, v in _arrays().items()})
    assert list(s.pressure) == [1000, 850, 700]
    assert list(s.temperature) == [25.0, 15.0, 5.0]
    assert list(s.wind_direction) == [180.0, 220.0, 260.0]


def test_duplicate_pressure_rejected():
    """Two levels at the same pressure are non-monotonic."""
    with pytest.raises(ValidationError, match="unique"):
        build_sounding(**_arrays(pressure=[1000, 850, 850]))


def test_height_must_increase():
    """Height decreasing with altitude is inconsistent."""
    with pytest.raises(ValidationError, match="height"):
        build_sounding(**_arrays(height=[100.0, 3000.0, 1500.0]))


def test_missing_pressure_rejected():
    """Pressure is the vertical coordinate and cannot be missing."""
    with pytest.raises(ValidationError, match="pressure"):
        build_sounding(**_arrays(pressure=[1000, None, 700]))


def test_non_numeric_rejected():
    """Strings are not silently coerced."""
    with pytest.raises(ValidationError, match="numbers"):
        build_sounding(**_arrays(temperature=[25.0, "warm", 5.0]))


def test_negative_wind_speed_rejected():
    with pytest.raises(ValidationError, match="wind_speed"):
        build_sounding(**_arrays(wind_speed=[5.0, -1.0, 15.0]))


def test_wind_direction_range():
    with pytest.raises(ValidationError, match="wind_direction"):
        build_sounding(**_arrays(wind_direction=[180.0, 400.0, 260.0]))


def test_supersaturation_clamped():
    """Dewpoint above temperature is clamped, not rejected."""
    s = build_sounding(**_arrays(dewpoint=[27.0, 10.0, -5.0]))
    assert s.dewpoint[0] == 25.0
    assert (s.dewpoint <= s.temperature).all()


def test_missing_values_are_nan():
    """None in optional fields becomes NaN."""
    s = build_sounding(**_arrays(temperature=[25.0, None, 5.0]))
    assert np.isnan(s.temperature[1])
    assert s.to_payload().temperature == [25.0, None, 5.0]


def test_arrays_are_read_only():
    """A built sounding cannot be mutated in place."""
    s = build_sounding(**_arrays())
    with pytest.raises(ValueError):
        s.temperature[0] = 40.0
