"""Sounding analysis subpackage: severe-weather indices from a profile.

Public API: build_sounding() validates raw parallel arrays into a
SoundingModel; compute_indices() turns it (plus optional heat metrics) into
SevereWeatherIndices.
"""

from __future__ import annotations

import logging

from agriclime.analysis.sounding.model import SoundingModel, build_sounding
from agriclime.config import IndicesPolicy
from agriclime.models import HeatMetrics, SevereWeatherIndices

logger = logging.getLogger(__name__)

__all__ = ["SoundingModel", "build_sounding", "compute_indices"]


def compute_indices(
    sounding: SoundingModel,
    heat: HeatMetrics | None = None,
    *,
    policy: IndicesPolicy | None = None,
    storm_motion: tuple[float, float] | None = None,
) -> SevereWeatherIndices:
    """Compute CAPE, K-Index, Total Totals, SRH and the composite risk.

    Pipeline: CAPE → mandatory-level indices → helicity → categories →
    composite. Indices that cannot be computed are None and named in
    ``unavailable``; this never raises for a valid SoundingModel.

    Args:
        sounding: Validated profile.
        heat: Optional heat metrics feeding the composite risk.
        policy: Thresholds and weights (defaults when None).
        storm_motion: Observed storm motion (u, v) in m/s; estimated from
            the 0-6 km mean wind when None.
    """
    from agriclime.analysis.sounding.kinematics import storm_relative_helicity
    from agriclime.analysis.sounding.severe import (
        CAPE_CATEGORIES,
        COMPOSITE_CATEGORIES,
        HELICITY_CATEGORIES,
        K_INDEX_CATEGORIES,
        TOTAL_TOTALS_CATEGORIES,
        categorize,
        composite_risk,
    )
    from agriclime.analysis.sounding.thermodynamics import compute_cape, k_index, total_totals

    policy = policy or IndicesPolicy()
    unavailable: list[str] = []

    cape = compute_cape(sounding, max_gap_hpa=policy.max_gap_hpa)
    if cape.invalid:
        unavailable.append("cape_jkg")

    ki = k_index(sounding)
    tt = total_totals(sounding)
    if ki is None:
        unavailable.append("k_index")
    if tt is None:
        unavailable.append("total_totals")

    helicity = storm_relative_helicity(
        sounding,
        depth_m=policy.helicity_depth_m,
        storm_motion=storm_motion,
        storm_motion_depth_m=policy.storm_motion_depth_m,
    )
    if helicity is None:
        unavailable.append("storm_relative_helicity_m2s2")
    srh = helicity.srh_m2s2 if helicity else None

    risk, heat_contribution = composite_risk(
        None if cape.invalid else cape.cape_jkg, srh, heat, policy,
    )
    if unavailable:
        logger.debug("Indices unavailable for this sounding: %s", ", ".join(unavailable))

    return SevereWeatherIndices(
        cape_jkg=cape.cape_jkg,
        cape_invalid=cape.invalid,
        lcl_pressure_hpa=cape.lcl_pressure_hpa,
        el_pressure_hpa=cape.el_pressure_hpa,
        k_index=ki,
        total_totals=tt,
        storm_relative_helicity_m2s2=srh,
        storm_motion_u_ms=helicity.storm_u_ms if helicity else None,
        storm_motion_v_ms=helicity.storm_v_ms if helicity else None,
        cape_category=categorize(cape.cape_jkg, CAPE_CATEGORIES),
        k_index_category=categorize(ki, K_INDEX_CATEGORIES) if ki is not None else None,
        total_totals_category=categorize(tt, TOTAL_TOTALS_CATEGORIES) if tt is not None else None,
        helicity_category=categorize(srh, HELICITY_CATEGORIES) if srh is not None else None,
        composite_risk=risk,
        composite_category=categorize(risk, COMPOSITE_CATEGORIES),
        heatwave_contribution=heat_contribution,
        unavailable=unavailable,
    )
