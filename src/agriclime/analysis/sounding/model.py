"""Canonical sounding representation and validation.

A SoundingModel holds read-only numpy arrays sorted surface-first
(descending pressure). Units: hPa, °C, m, m/s, degrees. Wind speed must
already be in m/s; unit conversion is the fetch client's job.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

import numpy as np

from agriclime.errors import ValidationError
from agriclime.models import SoundingPayload

logger = logging.getLogger(__name__)

MIN_LEVELS = 2

Values = Sequence[Optional[float]]


@dataclass(frozen=True, eq=False)
class SoundingModel:
    """Immutable vertical profile. Missing values are NaN."""

    pressure: np.ndarray  # hPa, strictly decreasing
    temperature: np.ndarray  # degC
    dewpoint: np.ndarray  # degC, <= temperature
    height: np.ndarray  # m (geopotential), strictly increasing
    wind_speed: np.ndarray  # m/s
    wind_direction: np.ndarray  # degrees

    @property
    def n_levels(self) -> int:
        return len(self.pressure)

    @property
    def height_agl(self) -> np.ndarray:
        """Heights above the lowest level (m)."""
        return self.height - self.height[0]

    def to_payload(self) -> SoundingPayload:
        """Plain-number copy for JSON responses."""

        def _opt(arr: np.ndarray) -> list[float | None]:
            return [None if np.isnan(x) else float(x) for x in arr]

        return SoundingPayload(
            pressure=[float(x) for x in self.pressure],
            temperature=_opt(self.temperature),
            dewpoint=_opt(self.dewpoint),
            height=[float(x) for x in self.height],
            wind_speed=_opt(self.wind_speed),
            wind_direction=_opt(self.wind_direction),
        )


def _as_array(name: str, values: Values, *, allow_missing: bool) -> np.ndarray:
    try:
        arr = np.array([np.nan if v is None else v for v in values], dtype=float)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must contain numbers") from exc
    if np.isinf(arr).any():
        raise ValidationError(f"{name} contains infinite values")
    if not allow_missing and np.isnan(arr).any():
        raise ValidationError(f"{name} contains missing values")
    return arr


def build_sounding(
    pressure: Values,
    temperature: Values,
    dewpoint: Values,
    height: Values,
    wind_speed: Values,
    wind_direction: Values,
) -> SoundingModel:
    """Validate raw parallel arrays and build a SoundingModel.

    Levels are sorted by descending pressure, carrying every array along.
    Supersaturated dewpoints are clamped to the temperature.

    Raises:
        ValidationError: mismatched lengths, fewer than 2 levels, missing or
            non-positive pressure, duplicate pressure levels, missing or
            non-increasing heights, negative wind speed, or wind direction
            outside 0-360.
    """
    raw = {
        "pressure": pressure,
        "temperature": temperature,
        "dewpoint": dewpoint,
        "height": height,
        "wind_speed": wind_speed,
        "wind_direction": wind_direction,
    }
    try:
        lengths = {name: len(values) for name, values in raw.items()}
    except TypeError as exc:
        raise ValidationError("Sounding fields must be arrays") from exc
    if len(set(lengths.values())) != 1:
        raise ValidationError(f"Sounding arrays must have equal lengths, got {lengths}")
    if lengths["pressure"] < MIN_LEVELS:
        raise ValidationError(
            f"Sounding needs at least {MIN_LEVELS} levels, got {lengths['pressure']}"
        )

    p = _as_array("pressure", pressure, allow_missing=False)
    z = _as_array("height", height, allow_missing=False)
    t = _as_array("temperature", temperature, allow_missing=True)
    td = _as_array("dewpoint", dewpoint, allow_missing=True)
    ws = _as_array("wind_speed", wind_speed, allow_missing=True)
    wd = _as_array("wind_direction", wind_direction, allow_missing=True)

    if (p <= 0).any():
        raise ValidationError("pressure must be positive")
    if (ws[~np.isnan(ws)] < 0).any():
        raise ValidationError("wind_speed must be non-negative (m/s)")
    wd_valid = wd[~np.isnan(wd)]
    if ((wd_valid < 0) | (wd_valid > 360)).any():
        raise ValidationError("wind_direction must be within 0-360 degrees")

    # Surface first
    order = np.argsort(-p, kind="stable")
    p, z, t, td, ws, wd = (arr[order] for arr in (p, z, t, td, ws, wd))

    if not (np.diff(p) < 0).all():
        raise ValidationError("pressure levels must be unique (strictly decreasing once sorted)")
    if not (np.diff(z) > 0).all():
        raise ValidationError("height must increase strictly as pressure decreases")

    supersaturated = ~np.isnan(t) & ~np.isnan(td) & (td > t)
    if supersaturated.any():
        logger.debug("Clamping %d supersaturated dewpoints", int(supersaturated.sum()))
        td = np.where(supersaturated, t, td)

    for arr in (p, z, t, td, ws, wd):
        arr.flags.writeable = False

    return SoundingModel(
        pressure=p,
        temperature=t,
        dewpoint=td,
        height=z,
        wind_speed=ws,
        wind_direction=wd,
    )
