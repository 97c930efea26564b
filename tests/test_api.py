"""Tests for the FastAPI service."""

from __future__ import annotations

import logging
import time
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from requests.exceptions import ConnectionError as RequestsConnectionError

from hazard_hotspots.api import create_app
from hazard_hotspots.config import HotspotConfig
from hazard_hotspots.models import Hotspot
from hazard_hotspots.store import MemoryHotspotStore


class BrokenStore:
    def load(self) -> list[Hotspot]:
        raise ConnectionError("hotspot store unreachable")

    def swap(self, hotspots: list[Hotspot]) -> None:
        raise ConnectionError("hotspot store unreachable")


def _client(**kwargs) -> TestClient:
    kwargs.setdefault("config", HotspotConfig(schedule_enabled=False))
    return TestClient(create_app(**kwargs))


@pytest.fixture
def client(sample_hotspots, close_reports) -> Generator[TestClient, None, None]:
    """Client over a store pre-loaded with two hotspots."""
    with _client(
        fetch_reports=lambda hours: list(close_reports),
        store=MemoryHotspotStore(sample_hotspots),
    ) as c:
        yield c


class TestHealthEndpoint:
    def test_returns_ok(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert "uptime_seconds" in data
        assert data["recalculation_enabled"] is True
        assert data["cycle_count"] == 0
        assert data["last_cycle_status"] is None

    def test_reports_last_cycle(self, client: TestClient) -> None:
        client.post("/hotspots/recalculate")
        data = client.get("/health").json()
        assert data["cycle_count"] == 1
        assert data["last_cycle_status"] == "completed"


class TestHotspotsEndpoint:
    def test_json_default(self, client: TestClient) -> None:
        resp = client.get("/hotspots")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/json")
        assert "s-maxage=300" in resp.headers["cache-control"]
        data = resp.json()
        assert [h["id"] for h in data] == ["hs-chennai", "hs-vizag"]
        assert data[0]["center_location"] == {"lat": 13.08, "lng": 80.28}

    def test_limit(self, client: TestClient) -> None:
        data = client.get("/hotspots", params={"limit": 1}).json()
        assert [h["id"] for h in data] == ["hs-chennai"]

    def test_geojson_format(self, client: TestClient) -> None:
        resp = client.get("/hotspots", params={"format": "geojson"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/geo+json")
        data = resp.json()
        assert data["type"] == "FeatureCollection"
        assert data["features"][0]["geometry"]["coordinates"] == [80.28, 13.08]

    def test_invalid_format_returns_422(self, client: TestClient) -> None:
        assert client.get("/hotspots", params={"format": "csv"}).status_code == 422

    def test_invalid_limit_returns_422(self, client: TestClient) -> None:
        assert client.get("/hotspots", params={"limit": 0}).status_code == 422

    def test_store_failure_returns_empty_list(self) -> None:
        with _client(store=BrokenStore(), fetch_reports=lambda h: []) as c:
            resp = c.get("/hotspots")
        assert resp.status_code == 200
        assert resp.json() == []


class TestNearbyEndpoint:
    def test_filters_by_radius(self, client: TestClient) -> None:
        resp = client.get(
            "/hotspots/nearby", params={"lat": 13.05, "lng": 80.25, "radius_km": 10}
        )
        assert resp.status_code == 200
        assert [h["id"] for h in resp.json()] == ["hs-chennai"]

    def test_missing_lat_returns_422(self, client: TestClient) -> None:
        assert client.get("/hotspots/nearby", params={"lng": 80.0}).status_code == 422

    def test_out_of_range_lat_returns_422(self, client: TestClient) -> None:
        resp = client.get("/hotspots/nearby", params={"lat": 95, "lng": 80})
        assert resp.status_code == 422

    def test_non_positive_radius_returns_422(self, client: TestClient) -> None:
        resp = client.get(
            "/hotspots/nearby", params={"lat": 13, "lng": 80, "radius_km": 0}
        )
        assert resp.status_code == 422

    def test_unreachable_store_returns_empty_list(self) -> None:
        with _client(store=BrokenStore(), fetch_reports=lambda h: []) as c:
            resp = c.get(
                "/hotspots/nearby", params={"lat": 13.08, "lng": 80.27, "radius_km": 25}
            )
        assert resp.status_code == 200
        assert resp.json() == []


class TestRecalculateEndpoint:
    def test_replaces_hotspots(self, client: TestClient) -> None:
        resp = client.post("/hotspots/recalculate")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "completed"
        assert body["hotspot_count"] == 1

        hotspots = client.get("/hotspots").json()
        assert len(hotspots) == 1
        assert hotspots[0]["report_count"] == 5

    def test_fetch_failure_returns_502_and_keeps_stale(self, sample_hotspots) -> None:
        def failing(hours: float):
            raise RequestsConnectionError("store down")

        with _client(
            fetch_reports=failing, store=MemoryHotspotStore(sample_hotspots)
        ) as c:
            resp = c.post("/hotspots/recalculate")
            assert resp.status_code == 502
            assert resp.json()["status"] == "failed"
            assert len(c.get("/hotspots").json()) == 2

    def test_persist_failure_returns_500(self, close_reports) -> None:
        with _client(
            store=BrokenStore(), fetch_reports=lambda h: list(close_reports)
        ) as c:
            resp = c.post("/hotspots/recalculate")
        assert resp.status_code == 500
        assert resp.json()["status"] == "persist_failed"

    def test_skipped_while_running(self, client: TestClient) -> None:
        scheduler = client.app.state.scheduler
        assert scheduler.guard.try_acquire()
        try:
            resp = client.post("/hotspots/recalculate")
        finally:
            scheduler.guard.release()
        assert resp.status_code == 200
        assert resp.json()["status"] == "skipped"

    def test_crash_is_logged_and_returns_500(
        self, client: TestClient, monkeypatch, caplog
    ) -> None:
        def crash(*args, **kwargs):
            raise RuntimeError("scoring bug")

        monkeypatch.setattr("hazard_hotspots.scheduler.run_cycle", crash)
        with caplog.at_level(logging.ERROR, logger="hazard_hotspots.api"):
            resp = client.post("/hotspots/recalculate")

        assert resp.status_code == 500
        assert resp.json()["status"] == "error"
        assert "scoring bug" in resp.json()["detail"]
        assert "Manual hotspot recalculation crashed" in caplog.text
        assert not client.app.state.scheduler.is_running
        assert len(client.get("/hotspots").json()) == 2

    def test_unconfigured_store_returns_503(self, monkeypatch) -> None:
        monkeypatch.delenv("HAZARD_HOTSPOTS_SUPABASE_URL", raising=False)
        with _client(config=HotspotConfig(schedule_enabled=False, supabase_url="")) as c:
            resp = c.post("/hotspots/recalculate")
            assert c.get("/health").json()["recalculation_enabled"] is False
        assert resp.status_code == 503


class TestScheduledStartup:
    def test_lifespan_runs_first_cycle(self, close_reports) -> None:
        with _client(
            config=HotspotConfig(interval_minutes=60),
            fetch_reports=lambda h: list(close_reports),
            store=MemoryHotspotStore(),
        ) as c:
            scheduler = c.app.state.scheduler
            for _ in range(100):
                if scheduler.cycle_count:
                    break
                time.sleep(0.05)
            assert scheduler.cycle_count == 1
            assert len(c.get("/hotspots").json()) == 1
