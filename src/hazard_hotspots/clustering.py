"""Greedy fixed-radius clustering of hazard reports."""

from __future__ import annotations

import logging

from hazard_hotspots.geo import distance_between, is_valid_coordinate
from hazard_hotspots.models import Report

logger = logging.getLogger(__name__)


def drop_invalid_locations(reports: list[Report]) -> list[Report]:
    """Remove reports whose coordinates are non-finite or out of range.

    A single NaN coordinate would otherwise poison a cluster's centroid.
    """
    valid: list[Report] = []
    for report in reports:
        if is_valid_coordinate(report.location.lat, report.location.lng):
            valid.append(report)
        else:
            logger.warning(
                "Excluding report %s with invalid location (%s, %s)",
                report.id,
                report.location.lat,
                report.location.lng,
            )
    return valid


def build_clusters(
    reports: list[Report],
    max_radius_meters: float = 10000.0,
    min_reports: int = 3,
) -> list[list[Report]]:
    """Partition *reports* into clusters around greedily chosen seeds.

    Reports are visited in input order.  Each unprocessed report becomes a
    seed and absorbs every other unprocessed report within
    *max_radius_meters* of it.  Clusters smaller than *min_reports* are
    discarded, but their members stay processed and are never reconsidered.

    Membership is relative to the seed only: two members of one cluster may
    be up to twice the radius apart, and a report in range of two seeds
    belongs to whichever seed comes first.
    """
    clusters: list[list[Report]] = []
    processed: set[int] = set()

    for i, seed in enumerate(reports):
        if i in processed:
            continue

        cluster = [seed]
        processed.add(i)

        for j, other in enumerate(reports):
            if j in processed:
                continue
            if distance_between(seed.location, other.location) <= max_radius_meters:
                cluster.append(other)
                processed.add(j)

        if len(cluster) >= min_reports:
            clusters.append(cluster)
        else:
            logger.debug(
                "Discarding cluster seeded by %s (%d < %d reports)",
                seed.id,
                len(cluster),
                min_reports,
            )

    return clusters
