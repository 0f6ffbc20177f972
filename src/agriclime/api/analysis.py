"""API endpoints for severe-weather and climate-trend analysis."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from agriclime.analysis.sounding import build_sounding
from agriclime.errors import InsufficientDataError, ValidationError
from agriclime.models import HeatMetrics, SevereWeatherReport, TrendPoint, TrendReport
from agriclime.pipeline import AnalysisOrchestrator, Observed

router = APIRouter(tags=["analysis"])


class SoundingRequest(BaseModel):
    """Sounding as parallel arrays; null marks a missing sample."""

    model_config = ConfigDict(populate_by_name=True)

    pressure: list[float]
    temperature: list[Optional[float]]
    dewpoint: list[Optional[float]]
    height: list[float]
    wind_speed: list[Optional[float]] = Field(alias="windSpeed")  # m/s
    wind_direction: list[Optional[float]] = Field(alias="windDirection")
    heat: Optional[HeatMetrics] = None


class TrendRequest(BaseModel):
    """Ordered (year, value) series."""

    series: list[TrendPoint]


def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    return request.app.state.orchestrator


@contextmanager
def _analysis_errors():
    """Map analysis failures onto HTTP status codes."""
    try:
        yield
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except InsufficientDataError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "required": exc.required, "received": exc.received},
        )


@router.get("/severe-weather", response_model=SevereWeatherReport)
async def get_severe_weather(
    lat: Optional[float] = Query(None),
    lon: Optional[float] = Query(None),
    sample: bool = False,
    include_sounding: bool = False,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Severe-weather indices for a point, with sample-data fallback."""
    with _analysis_errors():
        return await orchestrator.severe_weather(
            lat, lon, force_sample=sample, include_sounding=include_sounding,
        )


@router.post("/severe-weather", response_model=SevereWeatherReport)
def post_severe_weather(
    body: SoundingRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Severe-weather indices for a caller-supplied sounding."""
    with _analysis_errors():
        sounding = build_sounding(
            pressure=body.pressure,
            temperature=body.temperature,
            dewpoint=body.dewpoint,
            height=body.height,
            wind_speed=body.wind_speed,
            wind_direction=body.wind_direction,
        )
        return orchestrator.analyze_sounding(Observed(sounding), body.heat)


@router.get("/climate-trend", response_model=TrendReport)
async def get_climate_trend(
    lat: Optional[float] = Query(None),
    lon: Optional[float] = Query(None),
    start_year: Optional[int] = Query(None),
    end_year: Optional[int] = Query(None),
    sample: bool = False,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Annual mean temperature trend for a point, with sample-data fallback."""
    with _analysis_errors():
        return await orchestrator.climate_trend(
            lat, lon, start_year=start_year, end_year=end_year, force_sample=sample,
        )


@router.post("/climate-trend", response_model=TrendReport)
def post_climate_trend(
    body: TrendRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Trend analysis of a caller-supplied series."""
    with _analysis_errors():
        return orchestrator.analyze_series(Observed(body.series))
