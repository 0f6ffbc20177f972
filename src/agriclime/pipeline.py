"""Analysis orchestration: upstream fetches, fallback policy and provenance.

Each upstream input resolves to either ``Observed(payload)`` or
``Synthetic(payload, reason)``; the tag travels unchanged into the report's
``source`` field. A report is never half observed and half synthetic: when
the sounding falls back to the sample profile, observed heat metrics are
dropped for that call.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar, Union

from agriclime.analysis.heatwave import detect_heat_events
from agriclime.analysis.sounding import SoundingModel, compute_indices
from agriclime.analysis.trend import MIN_TREND_POINTS, analyze_trend
from agriclime.config import AnalysisConfig, load_analysis_config
from agriclime.errors import InsufficientDataError, ValidationError
from agriclime.fetch.mesonet import MesonetSoundingClient
from agriclime.fetch.open_meteo import OpenMeteoArchiveClient
from agriclime.fetch.synthetic import generate_sample_series, generate_sample_sounding
from agriclime.models import (
    DataSource,
    HeatMetrics,
    Location,
    SevereWeatherReport,
    TrendPoint,
    TrendReport,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Blocking HTTP clients run here so a slow upstream never stalls the event loop.
# Not the loop's default executor: asyncio.run() does not wait on abandoned fetches.
_fetch_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="agriclime-fetch")


@dataclass(frozen=True)
class Observed(Generic[T]):
    """Upstream data that was actually obtained."""

    payload: T

    @property
    def source(self) -> DataSource:
        return DataSource.OBSERVED


@dataclass(frozen=True)
class Synthetic(Generic[T]):
    """Generated stand-in for upstream data, with the reason it was needed."""

    payload: T
    reason: str

    @property
    def source(self) -> DataSource:
        return DataSource.SYNTHETIC_FALLBACK


Sourced = Union[Observed[T], Synthetic[T]]


@dataclass(frozen=True)
class FetchFailure:
    """An upstream fetch that produced nothing usable."""

    reason: str


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _location(lat: Optional[float], lon: Optional[float]) -> Optional[Location]:
    if lat is None and lon is None:
        return None
    if lat is None or lon is None:
        raise ValidationError("Both latitude and longitude are required")
    if not -90 <= lat <= 90 or not -180 <= lon <= 180:
        raise ValidationError(f"Coordinates out of range: {lat}, {lon}")
    return Location(latitude=lat, longitude=lon)


class AnalysisOrchestrator:
    """Runs the analyses over observed data, falling back to sample data.

    Args:
        sounding_client: Object with ``fetch_sounding(lat, lon)``.
        climate_client: Object with ``fetch_daily_max(lat, lon, days=)`` and
            ``fetch_annual_means(lat, lon, start_year, end_year, min_days_per_year=)``.
        config: Analysis policy; loaded from YAML/defaults when None.
    """

    def __init__(
        self,
        sounding_client: Any = None,
        climate_client: Any = None,
        config: AnalysisConfig | None = None,
    ):
        self.config = config or load_analysis_config()
        timeout = self.config.fetch.timeout_s
        self.sounding_client = sounding_client or MesonetSoundingClient(timeout=timeout)
        self.climate_client = climate_client or OpenMeteoArchiveClient(timeout=timeout)

    # --- upstream ---

    async def _fetch(self, label: str, fn: Callable[..., Any], *args: Any, **kwargs: Any):
        """Run one blocking fetch with the per-fetch timeout.

        Returns ``Observed(result)`` or a ``FetchFailure``; never raises for
        upstream problems.
        """
        loop = asyncio.get_running_loop()
        timeout = self.config.fetch.timeout_s
        try:
            result = await asyncio.wait_for(
                loop.run_in_executor(_fetch_executor, lambda: fn(*args, **kwargs)),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("%s fetch timed out after %.1fs", label, timeout)
            return FetchFailure(f"{label} fetch timed out after {timeout:g}s")
        except Exception as exc:
            logger.warning("%s fetch failed", label, exc_info=True)
            return FetchFailure(f"{label} fetch failed: {exc}")

        if not result:
            logger.info("%s fetch returned no data", label)
            return FetchFailure(f"{label} returned no data")
        return Observed(result)

    async def _gather(self, fetches: dict[str, Any]) -> dict[str, Any]:
        """Run fetches concurrently under the shared total deadline.

        Fetches still pending at the deadline are cancelled individually and
        resolve to a FetchFailure; finished ones keep their result.
        """
        tasks = {name: asyncio.ensure_future(coro) for name, coro in fetches.items()}
        deadline = self.config.fetch.total_deadline_s
        _, pending = await asyncio.wait(tasks.values(), timeout=deadline)
        for task in pending:
            task.cancel()

        outcomes: dict[str, Any] = {}
        for name, task in tasks.items():
            if task in pending:
                logger.warning("%s fetch exceeded total deadline of %.1fs", name, deadline)
                outcomes[name] = FetchFailure(f"{name} fetch exceeded {deadline:g}s deadline")
            else:
                outcomes[name] = task.result()
        return outcomes

    # --- severe weather ---

    def analyze_sounding(
        self,
        sounding: Sourced[SoundingModel],
        heat: HeatMetrics | None = None,
        *,
        location: Location | None = None,
        include_sounding: bool = False,
    ) -> SevereWeatherReport:
        """Compute indices for a tagged sounding and wrap them in a report."""
        indices = compute_indices(sounding.payload, heat, policy=self.config.indices)
        return SevereWeatherReport(
            indices=indices,
            source=sounding.source,
            timestamp=_now(),
            fallback_reason=getattr(sounding, "reason", None),
            heat_metrics=heat,
            location=location,
            sounding=sounding.payload.to_payload() if include_sounding else None,
        )

    async def severe_weather(
        self,
        lat: float | None = None,
        lon: float | None = None,
        *,
        force_sample: bool = False,
        include_sounding: bool = False,
    ) -> SevereWeatherReport:
        """Severe-weather report for a point, observed when possible.

        The sounding and the recent daily-max series are fetched concurrently.
        A sounding failure selects the sample profile (and drops heat); a heat
        failure only omits heat from the composite.

        Raises:
            ValidationError: incomplete or out-of-range coordinates.
        """
        location = _location(lat, lon)
        if force_sample or location is None:
            reason = "sample data requested" if force_sample else "no location given"
            return self.analyze_sounding(
                Synthetic(generate_sample_sounding(), reason),
                location=location,
                include_sounding=include_sounding,
            )

        outcomes = await self._gather({
            "sounding": self._fetch("sounding", self.sounding_client.fetch_sounding, lat, lon),
            "heat": self._fetch(
                "heat", self.climate_client.fetch_daily_max, lat, lon,
                days=self.config.fetch.heat_lookback_days,
            ),
        })

        sounding_outcome = outcomes["sounding"]
        if isinstance(sounding_outcome, FetchFailure):
            logger.info("Using sample sounding: %s", sounding_outcome.reason)
            return self.analyze_sounding(
                Synthetic(generate_sample_sounding(), sounding_outcome.reason),
                location=location,
                include_sounding=include_sounding,
            )

        heat = None
        heat_outcome = outcomes["heat"]
        if isinstance(heat_outcome, Observed):
            heat = detect_heat_events(
                heat_outcome.payload,
                percentile=self.config.heat.percentile,
                min_event_days=self.config.heat.min_event_days,
            )
        else:
            logger.info("Heat metrics omitted: %s", heat_outcome.reason)

        return self.analyze_sounding(
            sounding_outcome, heat, location=location, include_sounding=include_sounding,
        )

    # --- climate trend ---

    def analyze_series(
        self,
        series: Sourced[Sequence[TrendPoint | Sequence[float]]],
        *,
        location: Location | None = None,
    ) -> TrendReport:
        """Run the trend analysis for a tagged series and wrap it in a report."""
        trend = analyze_trend(
            series.payload,
            significance_level=self.config.trend.significance_level,
            cusum_threshold_sigma=self.config.trend.cusum_threshold_sigma,
        )
        return TrendReport(
            trend=trend,
            source=series.source,
            timestamp=_now(),
            fallback_reason=getattr(series, "reason", None),
            location=location,
        )

    async def climate_trend(
        self,
        lat: float | None = None,
        lon: float | None = None,
        *,
        start_year: int | None = None,
        end_year: int | None = None,
        force_sample: bool = False,
    ) -> TrendReport:
        """Annual mean temperature trend for a point, observed when possible.

        ``end_year`` defaults to the last complete calendar year. An observed
        series too short to analyze falls back to the sample series. The
        sample series always ends at ``end_year`` and reaches back at least
        MIN_TREND_POINTS years, so the fallback itself can always be analyzed.

        Raises:
            ValidationError: bad coordinates or an empty year range.
        """
        location = _location(lat, lon)
        fetch_policy = self.config.fetch
        start_year = start_year if start_year is not None else fetch_policy.trend_start_year
        end_year = end_year if end_year is not None else (
            fetch_policy.trend_end_year or _now().year - 1
        )
        if end_year < start_year:
            raise ValidationError(f"end_year {end_year} is before start_year {start_year}")

        def sample(reason: str) -> TrendReport:
            sample_start = min(start_year, end_year - MIN_TREND_POINTS + 1)
            return self.analyze_series(
                Synthetic(generate_sample_series(sample_start, end_year), reason),
                location=location,
            )

        if force_sample or location is None:
            return sample("sample data requested" if force_sample else "no location given")

        outcome = (await self._gather({
            "climate": self._fetch(
                "climate", self.climate_client.fetch_annual_means, lat, lon,
                start_year, end_year, min_days_per_year=fetch_policy.min_days_per_year,
            ),
        }))["climate"]
        if isinstance(outcome, FetchFailure):
            logger.info("Using sample series: %s", outcome.reason)
            return sample(outcome.reason)

        try:
            return self.analyze_series(outcome, location=location)
        except InsufficientDataError as exc:
            logger.info("Observed series too short (%d points), using sample", exc.received)
            return sample(f"observed series too short: {exc}")


def run_severe_weather(
    lat: float | None = None,
    lon: float | None = None,
    *,
    force_sample: bool = False,
    orchestrator: AnalysisOrchestrator | None = None,
) -> SevereWeatherReport:
    """Synchronous entry point for severe_weather()."""
    orchestrator = orchestrator or AnalysisOrchestrator()
    return asyncio.run(orchestrator.severe_weather(lat, lon, force_sample=force_sample))


def run_climate_trend(
    lat: float | None = None,
    lon: float | None = None,
    *,
    start_year: int | None = None,
    end_year: int | None = None,
    force_sample: bool = False,
    orchestrator: AnalysisOrchestrator | None = None,
) -> TrendReport:
    """Synchronous entry point for climate_trend()."""
    orchestrator = orchestrator or AnalysisOrchestrator()
    return asyncio.run(orchestrator.climate_trend(
        lat, lon, start_year=start_year, end_year=end_year, force_sample=force_sample,
    ))
