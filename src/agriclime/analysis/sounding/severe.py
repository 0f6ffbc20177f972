"""Severe-weather categorization and composite risk rating.

Pure threshold logic with no MetPy dependency. Each index maps to a
RiskCategory through a lookup table of (lower bound, category) pairs,
checked from the most severe down.
"""

from __future__ import annotations

from agriclime.config import IndicesPolicy
from agriclime.models import HeatMetrics, RiskCategory

CategoryTable = list[tuple[float, RiskCategory]]

# J/kg
CAPE_CATEGORIES: CategoryTable = [
    (4000, RiskCategory.EXTREME),
    (2500, RiskCategory.HIGH),
    (1000, RiskCategory.MODERATE),
    (100, RiskCategory.MARGINAL),
]

# °C; >35 numerous thunderstorms, <20 unlikely
K_INDEX_CATEGORIES: CategoryTable = [
    (40, RiskCategory.EXTREME),
    (35, RiskCategory.HIGH),
    (30, RiskCategory.MODERATE),
    (20, RiskCategory.MARGINAL),
]

# °C; 44 isolated, 50 scattered severe, 55+ widespread severe
TOTAL_TOTALS_CATEGORIES: CategoryTable = [
    (60, RiskCategory.EXTREME),
    (55, RiskCategory.HIGH),
    (50, RiskCategory.MODERATE),
    (44, RiskCategory.MARGINAL),
]

# m²/s², 0-3 km
HELICITY_CATEGORIES: CategoryTable = [
    (400, RiskCategory.EXTREME),
    (250, RiskCategory.HIGH),
    (150, RiskCategory.MODERATE),
    (50, RiskCategory.MARGINAL),
]

# Composite score, 0-100
COMPOSITE_CATEGORIES: CategoryTable = [
    (75, RiskCategory.EXTREME),
    (50, RiskCategory.HIGH),
    (25, RiskCategory.MODERATE),
    (10, RiskCategory.MARGINAL),
]


def categorize(value: float, table: CategoryTable) -> RiskCategory:
    """Map a raw index value to its category."""
    for threshold, category in table:
        if value >= threshold:
            return category
    return RiskCategory.NONE


def heat_score(heat: HeatMetrics, policy: IndicesPolicy) -> float:
    """Heat component in [0, 1]: the worse of extreme-day count and open streak."""
    days = heat.extreme_heat_days / policy.heat_days_reference
    streak = heat.current_streak / policy.heat_streak_reference
    return min(1.0, max(days, streak))


def composite_risk(
    cape_jkg: float | None,
    srh_m2s2: float | None,
    heat: HeatMetrics | None,
    policy: IndicesPolicy,
) -> tuple[float, float | None]:
    """Weighted composite risk (0-100) and the heat share of it.

    Each component is normalized to [0, 1] against its policy reference.
    Only positive (cyclonic) helicity adds risk. Weights are renormalized
    over the components that are available; a None CAPE means it was
    invalid for this sounding.

    Returns:
        (composite_risk, heatwave_contribution); the contribution is None
        when no heat metrics were supplied.
    """
    weights = policy.weights
    components: list[tuple[float, float]] = []
    if cape_jkg is not None:
        components.append((weights.cape, min(1.0, cape_jkg / policy.cape_reference_jkg)))
    if srh_m2s2 is not None:
        components.append(
            (weights.helicity, min(1.0, max(0.0, srh_m2s2) / policy.helicity_reference_m2s2))
        )
    heat_component = None
    if heat is not None:
        heat_component = heat_score(heat, policy)
        components.append((weights.heatwave, heat_component))

    total_weight = sum(w for w, _ in components)
    if total_weight <= 0:
        return 0.0, (0.0 if heat is not None else None)

    risk = 100.0 * sum(w * s for w, s in components) / total_weight
    risk = round(min(100.0, max(0.0, risk)), 1)

    contribution = None
    if heat_component is not None:
        contribution = round(100.0 * weights.heatwave * heat_component / total_weight, 1)
    return risk, contribution
