"""Iowa Environmental Mesonet client for model (HRRR) point soundings."""

from __future__ import annotations

import logging

import requests

from agriclime.analysis.sounding.model import SoundingModel, build_sounding

logger = logging.getLogger(__name__)

SOUNDING_URL = "https://mesonet.agron.iastate.edu/api/1/sounding.json"
USER_AGENT = "AgriClime-Sentinel/1.0"
KNOT_TO_MS = 0.514444


class MesonetSoundingClient:
    """Client for fetching model soundings from the Iowa Mesonet API."""

    def __init__(self, timeout: float = 10, model: str = "hrrr"):
        self.timeout = timeout
        self.model = model
        self.session = requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT

    def fetch_sounding(self, lat: float, lon: float) -> SoundingModel | None:
        """Fetch the most recent model sounding nearest to (lat, lon).

        Returns None when the API has no profile for the point. HTTP errors
        propagate as ``requests`` exceptions; a malformed profile raises
        ValidationError.
        """
        params = {"lat": lat, "lon": lon, "model": self.model}
        logger.info("Fetching %s sounding for %.3f, %.3f", self.model.upper(), lat, lon)

        resp = self.session.get(SOUNDING_URL, params=params, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()

        profiles = data.get("profiles") or []
        if not profiles:
            logger.info("No sounding profiles returned for %.3f, %.3f", lat, lon)
            return None
        return parse_profile(profiles[0].get("profile") or [])


def parse_profile(levels: list[dict]) -> SoundingModel | None:
    """Convert Mesonet profile levels into a SoundingModel.

    Levels missing pressure or height are dropped; wind speed is converted
    from knots to m/s. Returns None with fewer than two usable levels.
    """

    def _kt_to_ms(value: float | None) -> float | None:
        return value * KNOT_TO_MS if value is not None else None

    usable = [lv for lv in levels if lv.get("pres") is not None and lv.get("hght") is not None]
    if len(usable) < 2:
        return None

    return build_sounding(
        pressure=[lv["pres"] for lv in usable],
        temperature=[lv.get("tmpc") for lv in usable],
        dewpoint=[lv.get("dwpc") for lv in usable],
        height=[lv["hght"] for lv in usable],
        wind_speed=[_kt_to_ms(lv.get("sknt")) for lv in usable],
        wind_direction=[lv.get("drct") for lv in usable],
    )
