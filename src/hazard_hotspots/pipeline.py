"""One recalculation cycle: fetch -> validate -> cluster -> score -> replace."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from hazard_hotspots.clustering import build_clusters, drop_invalid_locations
from hazard_hotspots.config import HotspotConfig
from hazard_hotspots.fetchers.reports import ReportSource
from hazard_hotspots.models import CycleResult
from hazard_hotspots.scoring import score_clusters
from hazard_hotspots.store import HotspotRepository

logger = logging.getLogger(__name__)


class CycleTimeoutError(Exception):
    """Raised when a cycle passes its deadline before persisting."""


def _check_deadline(deadline: float, clock: Callable[[], float], stage: str) -> None:
    if clock() > deadline:
        raise CycleTimeoutError(f"cycle exceeded its timeout after {stage}")


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def run_cycle(
    config: HotspotConfig,
    fetch_reports: ReportSource,
    repository: HotspotRepository,
    clock: Callable[[], float] = time.monotonic,
) -> CycleResult:
    """Execute one full hotspot recalculation.

    Steps:
    1. Fetch eligible reports from the Report Store
    2. Exclude reports with invalid coordinates
    3. Build greedy radius clusters
    4. Score each cluster into a hotspot
    5. Replace the stored hotspot set

    A failed fetch or a timeout aborts before step 5, leaving the previous
    hotspots in place.  An empty result still replaces the stored set.
    """
    started_at = _now_iso()
    deadline = clock() + config.cycle_timeout_seconds

    logger.info(
        "Fetching public reports (past %s hours)...", config.time_window_hours
    )
    try:
        reports = fetch_reports(config.time_window_hours)
    except Exception as exc:
        logger.error("Report fetch failed; keeping existing hotspots: %s", exc)
        return CycleResult(
            status="failed", started_at=started_at, finished_at=_now_iso(), error=str(exc)
        )
    logger.info("Retrieved %d reports", len(reports))

    try:
        _check_deadline(deadline, clock, "fetch")

        reports = drop_invalid_locations(reports)
        clusters = build_clusters(
            reports,
            max_radius_meters=config.max_radius_meters,
            min_reports=config.min_reports,
        )
        logger.info(
            "Clusters with >=%d reports within %.0f m: %d",
            config.min_reports,
            config.max_radius_meters,
            len(clusters),
        )
        hotspots = score_clusters(clusters, config)

        _check_deadline(deadline, clock, "scoring")
    except CycleTimeoutError as exc:
        logger.error("Abandoning hotspot cycle: %s", exc)
        return CycleResult(
            status="timed_out",
            report_count=len(reports),
            started_at=started_at,
            finished_at=_now_iso(),
            error=str(exc),
        )

    if not repository.replace_all(hotspots):
        return CycleResult(
            status="persist_failed",
            report_count=len(reports),
            started_at=started_at,
            finished_at=_now_iso(),
            error="failed to persist hotspots",
        )

    return CycleResult(
        status="completed",
        hotspot_count=len(hotspots),
        report_count=len(reports),
        started_at=started_at,
        finished_at=_now_iso(),
    )
