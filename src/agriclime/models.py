"""Pydantic v2 result models for agriclime.

All analysis results are frozen value objects, created fresh per call.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DataSource(str, Enum):
    """Provenance of the data an analysis was computed from."""

    OBSERVED = "observed"
    SYNTHETIC_FALLBACK = "synthetic-fallback"


class RiskCategory(str, Enum):
    """Ordinal category shared by all severe-weather indices."""

    NONE = "none"
    MARGINAL = "marginal"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"


class TrendDirection(str, Enum):
    """Climate trend direction, gated on statistical significance."""

    WARMING = "warming"
    COOLING = "cooling"
    NO_TREND = "no-trend"


class HeatMetrics(BaseModel):
    """Extreme-heat summary of a short daily-maximum temperature series."""

    model_config = ConfigDict(frozen=True)

    extreme_heat_days: int = Field(default=0, ge=0)
    heat_wave_count: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    max_temperature_c: float = 0.0
    threshold_c: Optional[float] = None  # percentile threshold used


class SevereWeatherIndices(BaseModel):
    """Severe-weather indices computed from one sounding.

    Fields that could not be computed are None and listed in ``unavailable``.
    CAPE is never None: an invalid computation reports 0 with ``cape_invalid``.
    """

    model_config = ConfigDict(frozen=True)

    cape_jkg: float = Field(default=0.0, ge=0)
    cape_invalid: bool = False
    lcl_pressure_hpa: Optional[float] = None
    el_pressure_hpa: Optional[float] = None
    k_index: Optional[float] = None
    total_totals: Optional[float] = None
    storm_relative_helicity_m2s2: Optional[float] = None
    storm_motion_u_ms: Optional[float] = None
    storm_motion_v_ms: Optional[float] = None

    cape_category: RiskCategory = RiskCategory.NONE
    k_index_category: Optional[RiskCategory] = None
    total_totals_category: Optional[RiskCategory] = None
    helicity_category: Optional[RiskCategory] = None

    composite_risk: float = Field(default=0.0, ge=0, le=100)
    composite_category: RiskCategory = RiskCategory.NONE
    heatwave_contribution: Optional[float] = None  # composite points from heat

    unavailable: list[str] = Field(default_factory=list)


class SoundingPayload(BaseModel):
    """Plain-number echo of a sounding (None marks a missing value)."""

    model_config = ConfigDict(frozen=True)

    pressure: list[float]
    temperature: list[Optional[float]]
    dewpoint: list[Optional[float]]
    height: list[float]
    wind_speed: list[Optional[float]]
    wind_direction: list[Optional[float]]


class Location(BaseModel):
    """Point location the analysis was requested for."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class SevereWeatherReport(BaseModel):
    """Sounding analysis output with provenance."""

    model_config = ConfigDict(frozen=True)

    indices: SevereWeatherIndices
    source: DataSource
    timestamp: datetime
    fallback_reason: Optional[str] = None
    heat_metrics: Optional[HeatMetrics] = None
    location: Optional[Location] = None
    sounding: Optional[SoundingPayload] = None


class TrendPoint(BaseModel):
    """One (year, value) sample of a climate series."""

    model_config = ConfigDict(frozen=True)

    year: int
    value: float


class TrendResult(BaseModel):
    """Linear trend, Mann-Kendall significance and change points of a series."""

    model_config = ConfigDict(frozen=True)

    series: list[TrendPoint]
    slope_per_year: float
    intercept_at_first_year: float
    direction: TrendDirection
    p_value: float = Field(ge=0, le=1)
    significant: bool
    percent_change_over_period: float  # slope * span / mean, as a fraction
    change_points: list[int] = Field(default_factory=list)

    # Supporting statistics
    mean_value: float
    s_statistic: int
    z_score: float
    kendall_tau: float
    sen_slope_per_year: float


class TrendReport(BaseModel):
    """Trend analysis output with provenance."""

    model_config = ConfigDict(frozen=True)

    trend: TrendResult
    source: DataSource
    timestamp: datetime
    fallback_reason: Optional[str] = None
    location: Optional[Location] = None
