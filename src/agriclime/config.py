"""Analysis policy configuration loading from YAML.

Every threshold here is a tunable policy rather than a physical law. The
defaults are reasonable starting points; override them in
``config/analysis.yaml`` or a file named by ``AGRICLIME_CONFIG``.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from agriclime.analysis.heatwave import HEAT_PERCENTILE, MIN_HEATWAVE_DAYS
from agriclime.analysis.trend import CUSUM_THRESHOLD_SIGMA, SIGNIFICANCE_LEVEL

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"
CONFIG_ENV_VAR = "AGRICLIME_CONFIG"


class RiskWeights(BaseModel):
    """Relative weights of the composite severe-weather risk components.

    Weights are renormalized over the components available for a given
    sounding, so a missing heat series or helicity does not cap the score.
    """

    cape: float = Field(default=0.5, ge=0)
    helicity: float = Field(default=0.35, ge=0)
    heatwave: float = Field(default=0.15, ge=0)


class IndicesPolicy(BaseModel):
    """Severe-weather index computation policy."""

    max_gap_hpa: float = Field(default=100.0, gt=0)  # widest interpolated CAPE gap
    helicity_depth_m: float = Field(default=3000.0, gt=0)
    storm_motion_depth_m: float = Field(default=6000.0, gt=0)
    # Values mapped to a full component score of 1.0
    cape_reference_jkg: float = Field(default=4000.0, gt=0)
    helicity_reference_m2s2: float = Field(default=400.0, gt=0)
    heat_days_reference: float = Field(default=10.0, gt=0)
    heat_streak_reference: float = Field(default=5.0, gt=0)
    weights: RiskWeights = RiskWeights()


class HeatPolicy(BaseModel):
    """Heat-wave detection policy."""

    percentile: float = Field(default=HEAT_PERCENTILE, gt=0, lt=1)
    min_event_days: int = Field(default=MIN_HEATWAVE_DAYS, ge=1)


class TrendPolicy(BaseModel):
    """Trend analysis policy."""

    significance_level: float = Field(default=SIGNIFICANCE_LEVEL, gt=0, lt=1)
    cusum_threshold_sigma: float = Field(default=CUSUM_THRESHOLD_SIGMA, gt=0)


class FetchPolicy(BaseModel):
    """Upstream fetch timing and request shaping."""

    timeout_s: float = Field(default=10.0, gt=0)  # per upstream fetch
    total_deadline_s: float = Field(default=15.0, gt=0)  # whole fan-out
    heat_lookback_days: int = Field(default=30, ge=1)
    trend_start_year: int = 1970
    trend_end_year: int | None = None  # None = last complete year
    min_days_per_year: int = Field(default=300, ge=1, le=366)


class AnalysisConfig(BaseModel):
    """Top-level analysis configuration."""

    indices: IndicesPolicy = IndicesPolicy()
    heat: HeatPolicy = HeatPolicy()
    trend: TrendPolicy = TrendPolicy()
    fetch: FetchPolicy = FetchPolicy()


def load_analysis_config(path: Path | str | None = None) -> AnalysisConfig:
    """Load analysis configuration.

    Resolution order:
    1. Explicit path parameter
    2. AGRICLIME_CONFIG environment variable
    3. config/analysis.yaml in the repository
    4. Built-in defaults (when no file exists)

    Raises:
        FileNotFoundError: an explicitly requested file does not exist.
    """
    explicit = path or os.environ.get(CONFIG_ENV_VAR)
    config_path = Path(explicit) if explicit else CONFIG_DIR / "analysis.yaml"

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Analysis config not found: {config_path}")
        return AnalysisConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return AnalysisConfig.model_validate(data)
