"""GeoJSON exporter for hotspot sets."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from hazard_hotspots.models import Hotspot


def _make_hotspot_feature(hotspot: Hotspot) -> dict[str, Any]:
    """Create a GeoJSON Point Feature for a hotspot centre."""
    return {
        "type": "Feature",
        "id": hotspot.id,
        "geometry": {
            "type": "Point",
            "coordinates": [hotspot.center_location.lng, hotspot.center_location.lat],
        },
        "properties": {
            "feature_type": "hotspot",
            "radius_meters": hotspot.radius_meters,
            "report_count": hotspot.report_count,
            "severity_level": hotspot.severity_level,
            "confidence_score": hotspot.confidence_score,
            "hazard_types": list(hotspot.hazard_types),
            "updated_at": hotspot.updated_at,
        },
    }


def hotspots_to_geojson(hotspots: list[Hotspot]) -> dict[str, Any]:
    """Build a FeatureCollection with one Point per hotspot.

    GeoJSON coordinates are [longitude, latitude] (RFC 7946); map clients draw
    each point as a circle of ``radius_meters``.
    """
    return {
        "type": "FeatureCollection",
        "metadata": {
            "generated": datetime.now(tz=timezone.utc).isoformat(),
            "source": "hazard-hotspots",
            "hotspot_count": len(hotspots),
            "report_count": sum(h.report_count for h in hotspots),
        },
        "features": [_make_hotspot_feature(h) for h in hotspots],
    }


def export_geojson(
    hotspots: list[Hotspot],
    output_path: Path,
) -> Path:
    """Export hotspots as a GeoJSON FeatureCollection."""
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(hotspots_to_geojson(hotspots), f, indent=2, ensure_ascii=False)
    return output_path
