"""Wind-profile kinematics: storm motion and storm-relative helicity."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import metpy.calc as mpcalc
import numpy as np
from metpy.units import units

from agriclime.analysis.sounding.model import SoundingModel

logger = logging.getLogger(__name__)

DEFAULT_HELICITY_DEPTH_M = 3000.0
DEFAULT_STORM_MOTION_DEPTH_M = 6000.0


@dataclass(frozen=True)
class HelicityResult:
    """Storm-relative helicity and the storm motion it was computed against."""

    srh_m2s2: float
    storm_u_ms: float
    storm_v_ms: float


def wind_components(sounding: SoundingModel) -> tuple[np.ndarray, np.ndarray]:
    """Eastward (u) and northward (v) wind components in m/s."""
    u, v = mpcalc.wind_components(
        sounding.wind_speed * units("m/s"), sounding.wind_direction * units.degree,
    )
    return u.to("m/s").magnitude, v.to("m/s").magnitude


def mean_wind(
    sounding: SoundingModel, depth_m: float = DEFAULT_STORM_MOTION_DEPTH_M,
) -> tuple[float, float] | None:
    """Mean (u, v) of the levels within ``depth_m`` above the lowest level.

    Used as the storm motion estimate when none is observed.
    """
    u, v = wind_components(sounding)
    mask = (sounding.height_agl <= depth_m) & ~np.isnan(u) & ~np.isnan(v)
    if not mask.any():
        return None
    return float(u[mask].mean()), float(v[mask].mean())


def storm_relative_helicity(
    sounding: SoundingModel,
    depth_m: float = DEFAULT_HELICITY_DEPTH_M,
    storm_motion: tuple[float, float] | None = None,
    storm_motion_depth_m: float = DEFAULT_STORM_MOTION_DEPTH_M,
) -> HelicityResult | None:
    """Storm-relative helicity (m²/s²) from the surface to ``depth_m`` AGL.

    The wind profile must reach ``depth_m``; MetPy interpolates the wind at
    the layer top. Returns None when the valid winds stop short of the top or
    there are fewer than two of them.
    """
    u, v = wind_components(sounding)
    valid = ~np.isnan(u) & ~np.isnan(v)
    z, u, v = sounding.height_agl[valid], u[valid], v[valid]
    if z.size < 2:
        logger.debug("Helicity unavailable: %d valid wind levels", z.size)
        return None
    if z[-1] < depth_m:
        logger.debug("Helicity unavailable: winds end at %.0f m, below %.0f m", z[-1], depth_m)
        return None

    if storm_motion is None:
        storm_motion = mean_wind(sounding, storm_motion_depth_m)
        if storm_motion is None:
            return None
    storm_u, storm_v = storm_motion

    # MetPy measures depth from the lowest height given
    try:
        _, _, total = mpcalc.storm_relative_helicity(
            z * units.m, u * units("m/s"), v * units("m/s"),
            depth=(depth_m - z[0]) * units.m,
            storm_u=storm_u * units("m/s"), storm_v=storm_v * units("m/s"),
        )
        srh = float(total.to("m^2/s^2").magnitude)
    except Exception:
        logger.debug("Storm-relative helicity failed", exc_info=True)
        return None
    if np.isnan(srh):
        return None

    return HelicityResult(
        srh_m2s2=round(srh, 1),
        storm_u_ms=round(float(storm_u), 2),
        storm_v_ms=round(float(storm_v), 2),
    )
