"""Data models for the hotspot engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

Severity = Literal["low", "medium", "high", "critical"]

SEVERITY_LEVELS: tuple[str, ...] = ("low", "medium", "high", "critical")


@dataclass(frozen=True)
class Location:
    """A WGS84 point in decimal degrees."""

    lat: float
    lng: float


@dataclass(frozen=True)
class Report:
    """A single public hazard report from the Report Store."""

    id: str
    location: Location
    severity: Severity
    hazard_type: str
    status: str
    is_public: bool
    created_at: datetime


@dataclass
class Hotspot:
    """A scored cluster of nearby reports, regenerated every cycle."""

    id: str
    center_location: Location
    radius_meters: float
    report_count: int
    severity_level: Severity
    confidence_score: float
    hazard_types: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "center_location": {
                "lat": self.center_location.lat,
                "lng": self.center_location.lng,
            },
            "radius_meters": self.radius_meters,
            "report_count": self.report_count,
            "severity_level": self.severity_level,
            "confidence_score": self.confidence_score,
            "hazard_types": list(self.hazard_types),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Hotspot:
        center = data["center_location"]
        return cls(
            id=str(data["id"]),
            center_location=Location(lat=float(center["lat"]), lng=float(center["lng"])),
            radius_meters=float(data["radius_meters"]),
            report_count=int(data["report_count"]),
            severity_level=data["severity_level"],
            confidence_score=float(data["confidence_score"]),
            hazard_types=list(data.get("hazard_types", [])),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


@dataclass(frozen=True)
class CycleResult:
    """Outcome of one recalculation cycle."""

    status: Literal["completed", "skipped", "failed", "persist_failed", "timed_out"]
    hotspot_count: int = 0
    report_count: int = 0
    started_at: str | None = None
    finished_at: str | None = None
    error: str | None = None
