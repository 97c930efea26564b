"""Configuration model for the hotspot engine."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from hazard_hotspots.models import SEVERITY_LEVELS

OutputFormat = Literal["json", "geojson"]


class SeverityWeights(BaseModel):
    """Per-severity weights used for the weighted severity score."""

    low: float = Field(default=1.0, gt=0.0)
    medium: float = Field(default=2.0, gt=0.0)
    high: float = Field(default=4.0, gt=0.0)
    critical: float = Field(default=8.0, gt=0.0)

    def weight_for(self, severity: str) -> float:
        """Return the weight for *severity*, falling back to 1.0 when unknown."""
        if severity not in SEVERITY_LEVELS:
            return 1.0
        return float(getattr(self, severity))


class HotspotConfig(BaseSettings):
    """All configurable parameters for hotspot recalculation.

    Values can be set via constructor arguments, environment variables
    prefixed with HAZARD_HOTSPOTS_, or defaults.  Nested severity weights
    use the ``__`` delimiter, e.g. HAZARD_HOTSPOTS_SEVERITY_WEIGHTS__CRITICAL.
    """

    model_config = {"env_prefix": "HAZARD_HOTSPOTS_", "env_nested_delimiter": "__"}

    min_reports: int = Field(
        default=3, ge=1, description="Minimum cluster size to qualify as a hotspot."
    )
    max_radius_meters: float = Field(
        default=10000.0, gt=0.0, description="Clustering distance threshold and radius cap."
    )
    severity_weights: SeverityWeights = Field(default_factory=SeverityWeights)
    time_window_hours: float = Field(
        default=24.0, gt=0.0, le=720.0, description="Age cutoff for eligible reports."
    )
    interval_minutes: float = Field(
        default=30.0, gt=0.0, description="Minutes between scheduled recalculations."
    )
    cycle_timeout_seconds: float = Field(
        default=300.0, gt=0.0, description="Abandon a cycle that runs longer than this."
    )
    request_timeout: int = Field(
        default=30, ge=5, le=300, description="HTTP request timeout in seconds."
    )
    supabase_url: str = Field(default="", description="Report Store base URL.")
    supabase_key: str = Field(default="", description="Report Store API key.")
    reports_table: str = Field(
        default="ocean_hazard_reports", description="Report Store table name."
    )
    store_path: Path | None = Field(
        default=None,
        description="JSON file backing the hotspot store. In-memory when unset.",
    )
    schedule_enabled: bool = Field(
        default=True, description="Start the background scheduler with the API."
    )
