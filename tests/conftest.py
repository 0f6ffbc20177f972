"""Shared test fixtures."""

from __future__ import annotations

import pytest

from agriclime.analysis.sounding import build_sounding
from agriclime.config import AnalysisConfig, FetchPolicy
from agriclime.fetch.synthetic import SAMPLE_PRESSURE_LEVELS, generate_sample_sounding, pressure_to_height_m


@pytest.fixture
def sample_sounding():
    """Deterministic convective sounding."""
    return generate_sample_sounding()


@pytest.fixture
def isothermal_saturated_sounding():
    """20°C everywhere, dewpoint equal to temperature: no buoyancy anywhere."""
    n = len(SAMPLE_PRESSURE_LEVELS)
    return build_sounding(
        pressure=SAMPLE_PRESSURE_LEVELS,
        temperature=[20.0] * n,
        dewpoint=[20.0] * n,
        height=[pressure_to_height_m(p) for p in SAMPLE_PRESSURE_LEVELS],
        wind_speed=[10.0] * n,
        wind_direction=[270.0] * n,
    )


@pytest.fixture
def veering_sounding():
    """Wind veers 30° per km from southerly to westerly at constant 10 m/s."""
    return build_sounding(
        pressure=[1000, 900, 800, 700],
        temperature=[25.0, 18.0, 11.0, 4.0],
        dewpoint=[20.0, 12.0, 4.0, -4.0],
        height=[0.0, 1000.0, 2000.0, 3000.0],
        wind_speed=[10.0, 10.0, 10.0, 10.0],
        wind_direction=[180.0, 210.0, 240.0, 270.0],
    )


@pytest.fixture
def fast_config():
    """Config with short fetch timeouts for orchestrator tests."""
    return AnalysisConfig(fetch=FetchPolicy(timeout_s=0.2, total_deadline_s=1.0))
