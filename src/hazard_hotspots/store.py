"""Hotspot Store backends and the repository that guards them.

Writes are fail-closed: a failed replace leaves the previous set in place.
Reads are fail-open: a failed read returns an empty list.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

from hazard_hotspots.config import HotspotConfig
from hazard_hotspots.geo import haversine_m
from hazard_hotspots.models import Hotspot

logger = logging.getLogger(__name__)


class HotspotStore(Protocol):
    """Storage backend holding the current hotspot set."""

    def load(self) -> list[Hotspot]: ...

    def swap(self, hotspots: list[Hotspot]) -> None: ...


class MemoryHotspotStore:
    """In-process store; the whole set is swapped as one list reference."""

    def __init__(self, hotspots: list[Hotspot] | None = None) -> None:
        self._lock = threading.Lock()
        self._hotspots: tuple[Hotspot, ...] = tuple(hotspots or ())

    def load(self) -> list[Hotspot]:
        with self._lock:
            return list(self._hotspots)

    def swap(self, hotspots: list[Hotspot]) -> None:
        new_set = tuple(hotspots)
        with self._lock:
            self._hotspots = new_set


class FileHotspotStore:
    """JSON file store.

    The new set is written to a temporary file in the same directory and
    renamed over the live file, so readers see either the old or the new
    complete snapshot.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> list[Hotspot]:
        if not self.path.exists():
            return []
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return [Hotspot.from_dict(item) for item in data]

    def swap(self, hotspots: list[Hotspot]) -> None:
        payload = json.dumps([h.to_dict() for h in hotspots], indent=2, ensure_ascii=False)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            tmp_path = Path(tmp_name)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_path, self.path)
            finally:
                tmp_path.unlink(missing_ok=True)


def make_store(config: HotspotConfig) -> HotspotStore:
    """File store when ``store_path`` is configured, else in-memory."""
    if config.store_path is not None:
        return FileHotspotStore(config.store_path)
    return MemoryHotspotStore()


class HotspotRepository:
    """The only writer of the Hotspot Store, and the read seam for queries."""

    def __init__(self, store: HotspotStore) -> None:
        self.store = store

    def replace_all(self, hotspots: list[Hotspot]) -> bool:
        """Atomically replace the stored set.  Returns False on failure."""
        try:
            self.store.swap(hotspots)
        except Exception:
            logger.exception(
                "Failed to save %d hotspots; keeping previous set", len(hotspots)
            )
            return False
        logger.info("Saved %d hazard hotspots", len(hotspots))
        return True

    def get_all(self) -> list[Hotspot]:
        """All current hotspots, highest confidence first.  Empty on error."""
        try:
            hotspots = self.store.load()
        except Exception:
            logger.warning("Failed to read hotspots; returning empty list", exc_info=True)
            return []
        return sorted(hotspots, key=lambda h: h.confidence_score, reverse=True)

    def get_nearby(self, lat: float, lng: float, radius_km: float) -> list[Hotspot]:
        """Hotspots whose center is within *radius_km* of the point.  Empty on error."""
        limit_m = radius_km * 1000
        return [
            h
            for h in self.get_all()
            if haversine_m(lat, lng, h.center_location.lat, h.center_location.lng) <= limit_m
        ]
