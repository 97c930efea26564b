"""Read seam for map, dashboard and alerting consumers."""

from __future__ import annotations

from hazard_hotspots.models import Hotspot
from hazard_hotspots.store import HotspotRepository


class HotspotQueryService:
    """Pass-through to the repository's fail-open read operations."""

    def __init__(self, repository: HotspotRepository) -> None:
        self.repository = repository

    def all_hotspots(self, limit: int | None = None) -> list[Hotspot]:
        hotspots = self.repository.get_all()
        return hotspots[:limit] if limit is not None else hotspots

    def nearby_hotspots(self, lat: float, lng: float, radius_km: float) -> list[Hotspot]:
        return self.repository.get_nearby(lat, lng, radius_km)
