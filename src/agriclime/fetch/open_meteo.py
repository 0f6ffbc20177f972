"""Open-Meteo historical archive client for daily temperature series."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone

import requests

logger = logging.getLogger(__name__)

ARCHIVE_URL = "https://archive-api.open-meteo.com/v1/archive"
USER_AGENT = "AgriClime-Sentinel/1.0"


class OpenMeteoArchiveClient:
    """Client for fetching historical daily temperatures from Open-Meteo."""

    def __init__(self, timeout: float = 10):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT

    def _fetch_daily(
        self, lat: float, lon: float, variable: str, start: date, end: date,
    ) -> tuple[list[str], list[float | None]]:
        params = {
            "latitude": lat,
            "longitude": lon,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "daily": variable,
            "timezone": "auto",
        }
        logger.info("Fetching %s for %.3f, %.3f (%s–%s)", variable, lat, lon, start, end)

        resp = self.session.get(ARCHIVE_URL, params=params, timeout=self.timeout)
        resp.raise_for_status()
        daily = resp.json().get("daily") or {}
        return daily.get("time") or [], daily.get(variable) or []

    def fetch_daily_max(
        self, lat: float, lon: float, days: int = 30, end: date | None = None,
    ) -> list[float] | None:
        """Recent daily maximum temperatures (°C), chronological, nulls removed.

        Returns None when the archive has no values for the window.
        """
        end = end or datetime.now(timezone.utc).date()
        start = end - timedelta(days=days)
        _, values = self._fetch_daily(lat, lon, "temperature_2m_max", start, end)
        temps = [float(v) for v in values if v is not None]
        return temps or None

    def fetch_annual_means(
        self,
        lat: float,
        lon: float,
        start_year: int,
        end_year: int,
        min_days_per_year: int = 300,
    ) -> list[tuple[int, float]] | None:
        """Annual mean temperatures (°C) built from daily means.

        Years with fewer than ``min_days_per_year`` valid days are dropped so
        a partial year never biases the trend. Returns None when no year
        qualifies.
        """
        times, values = self._fetch_daily(
            lat, lon, "temperature_2m_mean", date(start_year, 1, 1), date(end_year, 12, 31),
        )
        by_year: dict[int, list[float]] = defaultdict(list)
        for ts, value in zip(times, values):
            if value is not None:
                by_year[int(ts[:4])].append(float(value))

        series = [
            (year, round(sum(vals) / len(vals), 3))
            for year, vals in sorted(by_year.items())
            if len(vals) >= min_days_per_year
        ]
        skipped = len(by_year) - len(series)
        if skipped:
            logger.info("Dropped %d incomplete years from annual series", skipped)
        return series or None
