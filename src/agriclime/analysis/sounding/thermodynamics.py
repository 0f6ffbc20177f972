"""MetPy-based thermodynamic indices: CAPE, K-Index and Total Totals.

All MetPy thermodynamic calls are isolated here. Takes a SoundingModel and
returns plain numbers; anything that cannot be computed comes back as None
(or an invalid CAPE) rather than an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import metpy.calc as mpcalc
import numpy as np
from metpy.units import units

from agriclime.analysis.sounding.model import MIN_LEVELS, SoundingModel

logger = logging.getLogger(__name__)

GRAVITY = 9.80665  # m/s^2
ZERO_CELSIUS_K = 273.15

DEFAULT_MAX_GAP_HPA = 100.0


@dataclass(frozen=True)
class CapeResult:
    """Surface-based CAPE with the parcel levels found along the way."""

    cape_jkg: float = 0.0
    invalid: bool = False
    lcl_pressure_hpa: float | None = None
    el_pressure_hpa: float | None = None


def _environment_profile(
    sounding: SoundingModel, max_gap_hpa: float,
) -> tuple[np.ndarray, np.ndarray, np.ndarray] | None:
    """Environment (pressure, height, temperature) usable for parcel lifting.

    Interior gaps are linearly interpolated in pressure when no wider than
    ``max_gap_hpa``; levels above the last valid temperature are dropped.
    Returns None when the surface temperature is missing, a gap is too wide,
    or fewer than MIN_LEVELS levels remain.
    """
    temps = np.array(sounding.temperature)
    valid = ~np.isnan(temps)
    if not valid[0]:
        return None

    top = int(np.flatnonzero(valid)[-1]) + 1
    if top < MIN_LEVELS:
        return None
    pressure = sounding.pressure[:top]
    height = sounding.height[:top]
    temps = temps[:top]
    valid = valid[:top]

    missing = np.flatnonzero(~valid)
    if missing.size:
        valid_idx = np.flatnonzero(valid)
        for idx in missing:
            below = valid_idx[valid_idx < idx][-1]
            above = valid_idx[valid_idx > idx][0]
            if pressure[below] - pressure[above] > max_gap_hpa:
                logger.debug(
                    "Temperature gap %.0f-%.0f hPa exceeds %.0f hPa",
                    pressure[below], pressure[above], max_gap_hpa,
                )
                return None
        # Negated pressure is ascending, as np.interp requires
        temps[missing] = np.interp(-pressure[missing], -pressure[valid], temps[valid])

    return pressure, height, temps


def _positive_area(height: np.ndarray, buoyancy: np.ndarray) -> float:
    """Trapezoidal integral of the positive part of buoyancy over height."""
    area = 0.0
    for i in range(len(height) - 1):
        b0, b1 = buoyancy[i], buoyancy[i + 1]
        dz = height[i + 1] - height[i]
        if b0 >= 0 and b1 >= 0:
            area += 0.5 * (b0 + b1) * dz
        elif b0 > 0 or b1 > 0:
            # Only the positive triangle up to the zero crossing
            positive = max(b0, b1)
            frac = positive / (abs(b0) + abs(b1))
            area += 0.5 * positive * frac * dz
    return float(area)


def _equilibrium_level(pressure: np.ndarray, buoyancy: np.ndarray) -> float | None:
    """Pressure of the highest positive-to-negative buoyancy crossing."""
    el = None
    for i in range(len(pressure) - 1):
        b0, b1 = buoyancy[i], buoyancy[i + 1]
        if b0 > 0 and b1 <= 0:
            frac = b0 / (b0 - b1)
            el = float(pressure[i] + frac * (pressure[i + 1] - pressure[i]))
    return el


def compute_cape(
    sounding: SoundingModel, max_gap_hpa: float = DEFAULT_MAX_GAP_HPA,
) -> CapeResult:
    """Surface-based CAPE from a parcel lifted dry then moist adiabatically.

    CAPE = integral of g * (T_parcel - T_env) / T_env dz over the positively
    buoyant layers (temperatures in kelvin).
    """
    env = _environment_profile(sounding, max_gap_hpa)
    surface_dewpoint = sounding.dewpoint[0]
    if env is None or np.isnan(surface_dewpoint):
        return CapeResult(invalid=True)
    pressure, height, temps = env

    p = pressure * units.hPa
    t0 = temps[0] * units.degC
    td0 = surface_dewpoint * units.degC

    lcl_hpa = None
    try:
        lcl_p, _ = mpcalc.lcl(p[0], t0, td0)
        lcl_hpa = round(float(lcl_p.to("hPa").magnitude), 1)
    except Exception:
        logger.debug("LCL computation failed", exc_info=True)

    try:
        parcel = mpcalc.parcel_profile(p, t0, td0).to("degC").magnitude
    except Exception:
        logger.debug("Parcel profile computation failed", exc_info=True)
        return CapeResult(invalid=True, lcl_pressure_hpa=lcl_hpa)

    buoyancy = GRAVITY * (parcel - temps) / (temps + ZERO_CELSIUS_K)
    cape = round(_positive_area(height, buoyancy), 1)

    return CapeResult(
        cape_jkg=max(cape, 0.0),
        lcl_pressure_hpa=lcl_hpa,
        el_pressure_hpa=_safe_round(_equilibrium_level(pressure, buoyancy), 1),
    )


def _safe_round(val: float | None, ndigits: int = 0) -> float | None:
    """Round if not None."""
    return round(val, ndigits) if val is not None else None


def _mag(quantity) -> float | None:
    """Extract a finite float magnitude, or None for NaN."""
    val = float(quantity.magnitude)
    return None if np.isnan(val) else val


def _stability_profile(sounding: SoundingModel):
    """(p, T, Td) quantities over levels with both temperature and dewpoint.

    Returns None unless the valid levels span 850-500 hPa, which K-Index and
    Total Totals both require.
    """
    valid = ~np.isnan(sounding.temperature) & ~np.isnan(sounding.dewpoint)
    p = sounding.pressure[valid]
    if p.size < MIN_LEVELS or p[0] < 850 or p[-1] > 500:
        logger.debug("Stability indices unavailable: sounding does not span 850-500 hPa")
        return None
    return (
        p * units.hPa,
        sounding.temperature[valid] * units.degC,
        sounding.dewpoint[valid] * units.degC,
    )


def k_index(sounding: SoundingModel) -> float | None:
    """K = (T850 - T500) + Td850 - (T700 - Td700)."""
    profile = _stability_profile(sounding)
    if profile is None:
        return None
    try:
        ki = _mag(mpcalc.k_index(*profile).to("degC"))
    except Exception:
        logger.debug("K-index failed", exc_info=True)
        return None
    return _safe_round(ki, 1)


def total_totals(sounding: SoundingModel) -> float | None:
    """TT = (T850 + Td850) - 2 * T500."""
    profile = _stability_profile(sounding)
    if profile is None:
        return None
    try:
        tt = _mag(mpcalc.total_totals_index(*profile).to("delta_degC"))
    except Exception:
        logger.debug("Total Totals failed", exc_info=True)
        return None
    return _safe_round(tt, 1)
