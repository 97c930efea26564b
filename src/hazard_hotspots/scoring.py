"""Hotspot scoring: centroid, radius, severity level and confidence."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from hazard_hotspots.config import HotspotConfig, SeverityWeights
from hazard_hotspots.geo import distance_between
from hazard_hotspots.models import Hotspot, Location, Report, Severity

# Lower bounds of the average severity weight for each level, highest first.
SEVERITY_THRESHOLDS: tuple[tuple[float, Severity], ...] = (
    (6.0, "critical"),
    (3.0, "high"),
    (1.5, "medium"),
)

_COUNT_SATURATION = 10
_COUNT_WEIGHT = 0.6
_SEVERITY_WEIGHT = 0.4
_VERIFIED_WEIGHT = 0.2
_MAX_SEVERITY_WEIGHT = 8.0


def compute_center(cluster: list[Report]) -> Location:
    """Arithmetic mean of member coordinates."""
    n = len(cluster)
    return Location(
        lat=sum(r.location.lat for r in cluster) / n,
        lng=sum(r.location.lng for r in cluster) / n,
    )


def compute_radius(
    cluster: list[Report],
    center: Location,
    max_radius_meters: float,
) -> float:
    """Distance from *center* to the farthest member, capped at *max_radius_meters*."""
    farthest = max(distance_between(center, r.location) for r in cluster)
    return min(farthest, max_radius_meters)


def weighted_severity_score(cluster: list[Report], weights: SeverityWeights) -> float:
    """Average severity weight across the cluster."""
    return sum(weights.weight_for(r.severity) for r in cluster) / len(cluster)


def classify_severity(score: float) -> Severity:
    """Map an average severity weight onto a severity level."""
    for lower_bound, level in SEVERITY_THRESHOLDS:
        if score >= lower_bound:
            return level
    return "low"


def calculate_confidence(
    cluster: list[Report],
    severity_level: Severity,
    weights: SeverityWeights,
) -> float:
    """Confidence in [0, 1] from cluster size, severity level and verification.

    Size contributes up to 0.6 (saturating at ten reports), the level's
    weight relative to the critical weight contributes up to 0.4, and the
    verified share contributes up to 0.2.
    """
    n = len(cluster)
    confidence = min(n / _COUNT_SATURATION, 1.0) * _COUNT_WEIGHT
    confidence += (weights.weight_for(severity_level) / _MAX_SEVERITY_WEIGHT) * _SEVERITY_WEIGHT

    verified = sum(1 for r in cluster if r.status == "verified")
    confidence += (verified / n) * _VERIFIED_WEIGHT

    return max(0.0, min(confidence, 1.0))


def collect_hazard_types(cluster: list[Report]) -> list[str]:
    """De-duplicated hazard types in first-seen order."""
    return list(dict.fromkeys(r.hazard_type for r in cluster))


def score_cluster(
    cluster: list[Report],
    config: HotspotConfig,
    now: datetime | None = None,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> Hotspot:
    """Turn one cluster into a scored Hotspot."""
    if now is None:
        now = datetime.now(tz=timezone.utc)
    timestamp = now.isoformat()

    center = compute_center(cluster)
    level = classify_severity(weighted_severity_score(cluster, config.severity_weights))

    return Hotspot(
        id=id_factory(),
        center_location=center,
        radius_meters=compute_radius(cluster, center, config.max_radius_meters),
        report_count=len(cluster),
        severity_level=level,
        confidence_score=calculate_confidence(cluster, level, config.severity_weights),
        hazard_types=collect_hazard_types(cluster),
        created_at=timestamp,
        updated_at=timestamp,
    )


def score_clusters(
    clusters: list[list[Report]],
    config: HotspotConfig,
    now: datetime | None = None,
) -> list[Hotspot]:
    """Score every cluster with a shared cycle timestamp."""
    if now is None:
        now = datetime.now(tz=timezone.utc)
    return [score_cluster(c, config, now=now) for c in clusters]
