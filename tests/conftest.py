"""Shared fixtures for hazard_hotspots tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from hazard_hotspots.config import HotspotConfig
from hazard_hotspots.models import Hotspot, Location, Report
from hazard_hotspots.store import HotspotRepository, MemoryHotspotStore

# Chennai coast
BASE_LAT = 13.0827
BASE_LNG = 80.2707

# Metres per degree of latitude on a 6,371 km sphere.
METERS_PER_DEG_LAT = 111_194.93

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

ReportFactory = Callable[..., Report]


def offset_north(meters: float) -> float:
    """Latitude of a point *meters* north of BASE_LAT."""
    return BASE_LAT + meters / METERS_PER_DEG_LAT


@pytest.fixture
def make_report() -> ReportFactory:
    """Factory for Report objects with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(
        lat: float = BASE_LAT,
        lng: float = BASE_LNG,
        severity: str = "high",
        hazard_type: str = "flooding",
        status: str = "unverified",
        report_id: str | None = None,
        hours_ago: float = 1.0,
    ) -> Report:
        return Report(
            id=report_id or f"r{next(counter)}",
            location=Location(lat=lat, lng=lng),
            severity=severity,  # type: ignore[arg-type]
            hazard_type=hazard_type,
            status=status,
            is_public=True,
            created_at=NOW - timedelta(hours=hours_ago),
        )

    return _make


@pytest.fixture
def close_reports(make_report: ReportFactory) -> list[Report]:
    """Five verified high-severity reports within 2 km of each other."""
    return [
        make_report(lat=offset_north(i * 400), severity="high", status="verified")
        for i in range(5)
    ]


@pytest.fixture
def default_config() -> HotspotConfig:
    return HotspotConfig()


@pytest.fixture
def memory_store() -> MemoryHotspotStore:
    return MemoryHotspotStore()


@pytest.fixture
def repository(memory_store: MemoryHotspotStore) -> HotspotRepository:
    return HotspotRepository(memory_store)


@pytest.fixture
def sample_hotspots() -> list[Hotspot]:
    """Two pre-built hotspots: one off Chennai, one off Visakhapatnam."""
    ts = NOW.isoformat()
    return [
        Hotspot(
            id="hs-chennai",
            center_location=Location(lat=13.08, lng=80.28),
            radius_meters=1800.0,
            report_count=6,
            severity_level="high",
            confidence_score=0.72,
            hazard_types=["flooding", "high_waves"],
            created_at=ts,
            updated_at=ts,
        ),
        Hotspot(
            id="hs-vizag",
            center_location=Location(lat=17.69, lng=83.22),
            radius_meters=900.0,
            report_count=3,
            severity_level="medium",
            confidence_score=0.48,
            hazard_types=["rip_current"],
            created_at=ts,
            updated_at=ts,
        ),
    ]
