"""Deterministic sample data used when observed data is unavailable.

Both generators return identical output for identical arguments, so
fallback results stay cacheable.
"""

from __future__ import annotations

import numpy as np

from agriclime.analysis.sounding.model import SoundingModel, build_sounding

SAMPLE_PRESSURE_LEVELS = [
    1000, 975, 950, 925, 900, 850, 800, 750, 700, 650,
    600, 550, 500, 450, 400, 350, 300, 250, 200, 150, 100,
]
SAMPLE_SEED = 1970


def pressure_to_height_m(pressure_hpa: float) -> float:
    """Approximate pressure to height conversion (standard atmosphere)."""
    # ISA: h = (T0/L) * (1 - (P/P0)^(R*L/(g*M)))
    P0, T0, L = 1013.25, 288.15, 0.0065
    g, M, R = 9.80665, 0.0289644, 8.31447
    exp = R * L / (g * M)
    return (T0 / L) * (1 - (pressure_hpa / P0) ** exp)


def generate_sample_sounding(
    surface_temperature_c: float = 30.0,
    lapse_rate_c_per_km: float = 6.5,
    tropopause_temperature_c: float = -56.0,
) -> SoundingModel:
    """Warm-season convective profile with a veering, strengthening wind.

    Dewpoint depression starts at 6 °C and widens by 2 °C/km; wind veers
    from 160° at the surface to 270° at 6 km while speed grows 2.5 m/s per km.
    """
    heights = [pressure_to_height_m(p) for p in SAMPLE_PRESSURE_LEVELS]
    base = heights[0]

    temperature, dewpoint, wind_speed, wind_direction = [], [], [], []
    for z in heights:
        z_km = (z - base) / 1000
        t = max(tropopause_temperature_c, surface_temperature_c - lapse_rate_c_per_km * z_km)
        temperature.append(round(t, 1))
        dewpoint.append(round(t - (6.0 + 2.0 * z_km), 1))
        wind_speed.append(round(min(35.0, 5.0 + 2.5 * z_km), 1))
        wind_direction.append(round(160.0 + 110.0 * min(z_km, 6.0) / 6.0, 0))

    return build_sounding(
        pressure=SAMPLE_PRESSURE_LEVELS,
        temperature=temperature,
        dewpoint=dewpoint,
        height=[round(z, 1) for z in heights],
        wind_speed=wind_speed,
        wind_direction=wind_direction,
    )


def generate_sample_series(
    start_year: int = 1970,
    end_year: int = 2025,
    baseline_c: float = 12.0,
    warming_c: float = 2.5,
    noise_c: float = 0.3,
    seed: int = SAMPLE_SEED,
) -> list[tuple[int, float]]:
    """Annual mean temperatures with linear warming plus seeded noise."""
    years = list(range(start_year, end_year + 1))
    span = max(end_year - start_year, 1)
    noise = np.random.default_rng(seed).normal(0.0, noise_c, len(years))
    return [
        (year, round(baseline_c + warming_c * (year - start_year) / span + float(n), 3))
        for year, n in zip(years, noise)
    ]
