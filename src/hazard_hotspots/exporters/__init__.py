"""Exporters for hotspot sets."""

from hazard_hotspots.exporters.geojson_export import export_geojson, hotspots_to_geojson
from hazard_hotspots.exporters.json_export import export_json

__all__ = ["export_geojson", "export_json", "hotspots_to_geojson"]
