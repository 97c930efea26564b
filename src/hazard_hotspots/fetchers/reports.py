"""Report Store fetcher (Supabase / PostgREST)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from requests import Session

from hazard_hotspots.config import HotspotConfig
from hazard_hotspots.http import create_session
from hazard_hotspots.models import SEVERITY_LEVELS, Location, Report

logger = logging.getLogger(__name__)

ReportSource = Callable[[float], list[Report]]


def _parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_report(row: dict[str, Any]) -> Report | None:
    """Build a Report from a store row, or None if the row is unusable."""
    try:
        loc = row["location"]
        severity = row["severity"]
        if severity not in SEVERITY_LEVELS:
            logger.warning("Skipping report %s: unknown severity %r", row.get("id"), severity)
            return None
        return Report(
            id=str(row["id"]),
            location=Location(lat=float(loc["lat"]), lng=float(loc["lng"])),
            severity=severity,
            hazard_type=str(row.get("hazard_type") or "unknown"),
            status=str(row.get("status") or "unverified"),
            is_public=bool(row.get("is_public", False)),
            created_at=_parse_timestamp(str(row["created_at"])),
        )
    except (KeyError, TypeError, ValueError):
        logger.warning("Skipping malformed report row %r", row.get("id"), exc_info=True)
        return None


class IncompleteFetchError(RuntimeError):
    """Raised when the Report Store returns fewer rows than it advertised."""


def _parse_content_range(value: str | None) -> int | None:
    """Total row count from a PostgREST ``Content-Range`` header, if known.

    The header looks like ``0-999/1500``, ``*/0`` or ``0-999/*``.
    """
    if not value or "/" not in value:
        return None
    total = value.rsplit("/", 1)[1].strip()
    if not total.isdigit():
        return None
    return int(total)


def fetch_eligible_reports(
    time_window_hours: float = 24.0,
    *,
    base_url: str,
    api_key: str = "",
    table: str = "ocean_hazard_reports",
    timeout: int = 30,
    page_size: int = 1000,
    session: Session | None = None,
    now: datetime | None = None,
) -> list[Report]:
    """Fetch public reports created within the trailing time window.

    Reports are ordered by ``created_at`` ascending, then ``id``; clustering
    depends on this order.  Results are paged with ``Range`` headers until
    the ``Content-Range`` total is reached, since the store caps rows per
    response.  HTTP and connection errors propagate to the caller so that a
    failed fetch never looks like an empty window, and a short read raises
    :class:`IncompleteFetchError`.
    """
    if session is None:
        session = create_session(api_key=api_key)

    if now is None:
        now = datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=time_window_hours)

    url = f"{base_url.rstrip('/')}/rest/v1/{table}"
    params: dict[str, str] = {
        "select": "*",
        "is_public": "eq.true",
        "created_at": f"gte.{cutoff.isoformat()}",
        "order": "created_at.asc,id.asc",
    }

    rows: list[dict[str, Any]] = []
    total: int | None = None
    while True:
        offset = len(rows)
        resp = session.get(
            url,
            params=params,
            headers={
                "Range-Unit": "items",
                "Range": f"{offset}-{offset + page_size - 1}",
                "Prefer": "count=exact",
            },
            timeout=timeout,
        )
        resp.raise_for_status()

        page = resp.json()
        rows.extend(page)
        total = _parse_content_range(resp.headers.get("Content-Range"))

        if total is not None:
            if len(rows) >= total:
                break
            if not page:
                raise IncompleteFetchError(
                    f"Report Store returned {len(rows)} of {total} rows"
                )
        elif len(page) < page_size:
            break

    reports: list[Report] = []
    for row in rows:
        report = parse_report(row)
        if report is None:
            continue
        if not report.is_public or report.created_at < cutoff:
            continue
        reports.append(report)

    logger.debug("Report Store returned %d rows, %d eligible", len(rows), len(reports))
    return reports


def make_report_source(
    config: HotspotConfig,
    session: Session | None = None,
) -> ReportSource:
    """Bind :func:`fetch_eligible_reports` to the configured Report Store."""
    if not config.supabase_url:
        raise ValueError(
            "Report Store not configured (set HAZARD_HOTSPOTS_SUPABASE_URL)"
        )
    if session is None:
        session = create_session(api_key=config.supabase_key)

    def _source(time_window_hours: float) -> list[Report]:
        return fetch_eligible_reports(
            time_window_hours,
            base_url=config.supabase_url,
            api_key=config.supabase_key,
            table=config.reports_table,
            timeout=config.request_timeout,
            session=session,
        )

    return _source
