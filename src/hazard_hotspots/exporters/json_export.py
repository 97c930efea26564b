"""JSON exporter for hotspot sets."""

from __future__ import annotations

import json
from pathlib import Path

from hazard_hotspots.models import Hotspot


def export_json(
    hotspots: list[Hotspot],
    output_path: Path,
    indent: int = 2,
) -> Path:
    """Export hotspots to a JSON file."""
    data = [h.to_dict() for h in hotspots]
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)
    return output_path
