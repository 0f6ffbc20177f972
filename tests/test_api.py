"""Tests for the FastAPI API endpoints."""

from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from agriclime.api.app import create_app
from agriclime.pipeline import AnalysisOrchestrator
from fakes import FakeClimateClient, FakeSoundingClient

SOUNDING_BODY = {
    "pressure": [1000, 850, 700, 500],
    "temperature": [28.0, 20.0, 8.0, -10.0],
    "dewpoint": [22.0, 14.0, 2.0, -25.0],
    "height": [100.0, 1500.0, 3100.0, 5700.0],
    "windSpeed": [5.0, 10.0, 15.0, 20.0],
    "windDirection": [180.0, 210.0, 240.0, 270.0],
}


@pytest.fixture
def sounding_client(sample_sounding):
    return FakeSoundingClient(sounding=sample_sounding)


@pytest.fixture
def client(fast_config, sounding_client):
    """Test client backed by fake upstream clients."""
    orchestrator = AnalysisOrchestrator(
        sounding_client=sounding_client,
        climate_client=FakeClimateClient(
            daily_max=[30.0] * 100 + [38.0] * 5 + [30.0] * 15,
            annual=[(y, 10.0 + 0.03 * (y - 1980)) for y in range(1980, 2021)],
        ),
        config=fast_config,
    )
    return TestClient(create_app(orchestrator), raise_server_exceptions=False)


# --- Health ---


class TestHealth:
    def test_health_endpoint(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# --- Severe weather ---


class TestSevereWeatherAPI:
    def test_observed_point(self, client):
        resp = client.get("/api/severe-weather", params={"lat": 41.6, "lon": -93.6})
        assert resp.status_code == 200
        data = resp.json()
        assert data["source"] == "observed"
        assert data["heat_metrics"]["heat_wave_count"] == 1
        assert data["indices"]["cape_jkg"] > 0
        assert datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))

    def test_sample(self, client, sounding_client):
        resp = client.get("/api/severe-weather", params={"sample": "true"})
        assert resp.status_code == 200
        assert resp.json()["source"] == "synthetic-fallback"
        assert sounding_client.calls == 0

    def test_upstream_unavailable(self, client, sounding_client):
        sounding_client.sounding = None
        resp = client.get("/api/severe-weather", params={"lat": 41.6, "lon": -93.6})
        assert resp.status_code == 200
        assert resp.json()["source"] == "synthetic-fallback"
        assert resp.json()["heat_metrics"] is None

    def test_partial_coordinates(self, client):
        resp = client.get("/api/severe-weather", params={"lat": 41.6})
        assert resp.status_code == 400

    def test_include_sounding(self, client):
        resp = client.get("/api/severe-weather", params={"sample": "true", "include_sounding": "true"})
        assert resp.json()["sounding"]["pressure"][0] == 1000.0

    def test_post_sounding(self, client):
        resp = client.post("/api/severe-weather", json=SOUNDING_BODY)
        assert resp.status_code == 200
        data = resp.json()
        assert data["source"] == "observed"
        assert data["indices"]["k_index"] == pytest.approx(38.0)
        assert data["indices"]["total_totals"] == pytest.approx(54.0)

    def test_post_sounding_with_heat(self, client):
        body = {**SOUNDING_BODY, "heat": {"extreme_heat_days": 10, "current_streak": 5}}
        resp = client.post("/api/severe-weather", json=body)
        assert resp.status_code == 200
        assert resp.json()["indices"]["heatwave_contribution"] > 0

    def test_post_sounding_snake_case(self, client):
        body = dict(SOUNDING_BODY)
        body["wind_speed"] = body.pop("windSpeed")
        body["wind_direction"] = body.pop("windDirection")
        assert client.post("/api/severe-weather", json=body).status_code == 200

    def test_post_mismatched_lengths(self, client):
        body = {**SOUNDING_BODY, "dewpoint": [22.0, 14.0]}
        resp = client.post("/api/severe-weather", json=body)
        assert resp.status_code == 400
        assert "equal lengths" in resp.json()["detail"]

    def test_post_two_levels(self, client):
        body = {k: v[:2] for k, v in SOUNDING_BODY.items()}
        resp = client.post("/api/severe-weather", json=body)
        assert resp.status_code == 200
        unavailable = resp.json()["indices"]["unavailable"]
        assert "k_index" in unavailable
        assert "total_totals" in unavailable


# --- Climate trend ---


class TestClimateTrendAPI:
    def test_observed_point(self, client):
        resp = client.get(
            "/api/climate-trend",
            params={"lat": 41.6, "lon": -93.6, "start_year": 1980, "end_year": 2020},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["source"] == "observed"
        assert data["trend"]["direction"] == "warming"

    def test_sample(self, client):
        resp = client.get(
            "/api/climate-trend", params={"sample": "true", "start_year": 1990, "end_year": 2000},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["source"] == "synthetic-fallback"
        assert len(data["trend"]["series"]) == 11

    def test_reversed_years(self, client):
        resp = client.get("/api/climate-trend", params={"start_year": 2020, "end_year": 2000})
        assert resp.status_code == 400

    def test_post_series(self, client):
        series = [{"year": 1970 + i, "value": 0.05 * i} for i in range(56)]
        resp = client.post("/api/climate-trend", json={"series": series})
        assert resp.status_code == 200
        data = resp.json()
        assert data["source"] == "observed"
        assert data["trend"]["slope_per_year"] == pytest.approx(0.05, abs=1e-6)
        assert data["trend"]["significant"] is True

    def test_post_too_short(self, client):
        resp = client.post("/api/climate-trend", json={"series": [{"year": 2000, "value": 1.0}]})
        assert resp.status_code == 422
        detail = resp.json()["detail"]
        assert detail["required"] == 3
        assert detail["received"] == 1

    def test_post_duplicate_years(self, client):
        series = [{"year": 2000, "value": 1.0}, {"year": 2000, "value": 2.0}, {"year": 2001, "value": 3.0}]
        resp = client.post("/api/climate-trend", json={"series": series})
        assert resp.status_code == 400
