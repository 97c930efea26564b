"""FastAPI service exposing current hotspots and a manual recalculation trigger."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from hazard_hotspots import __version__
from hazard_hotspots.config import HotspotConfig, OutputFormat
from hazard_hotspots.exporters import hotspots_to_geojson
from hazard_hotspots.fetchers.reports import ReportSource, make_report_source
from hazard_hotspots.query import HotspotQueryService
from hazard_hotspots.scheduler import RecalculationScheduler
from hazard_hotspots.store import HotspotRepository, HotspotStore, make_store

logger = logging.getLogger(__name__)

CACHE_HEADERS = {"Cache-Control": "public, s-maxage=300, stale-while-revalidate=600"}

_STATUS_CODES: dict[str, int] = {
    "completed": 200,
    "skipped": 200,
    "failed": 502,
    "persist_failed": 500,
    "timed_out": 504,
}


def create_app(
    config: HotspotConfig | None = None,
    fetch_reports: ReportSource | None = None,
    store: HotspotStore | None = None,
) -> FastAPI:
    """Build the API with its repository, query service and scheduler.

    Without an explicit *fetch_reports*, the configured Report Store is
    used; if none is configured the API serves reads only.
    """

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
        cfg = config if config is not None else HotspotConfig()
        repository = HotspotRepository(store if store is not None else make_store(cfg))

        source = fetch_reports
        if source is None:
            try:
                source = make_report_source(cfg)
            except ValueError as exc:
                logger.warning("Recalculation disabled: %s", exc)

        scheduler = (
            RecalculationScheduler(cfg, source, repository) if source is not None else None
        )

        application.state.start_time = datetime.now(tz=timezone.utc)
        application.state.query = HotspotQueryService(repository)
        application.state.scheduler = scheduler

        if scheduler is not None and cfg.schedule_enabled:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop(timeout=5)

    application = FastAPI(
        title="Hazard Hotspots API",
        description="Geographic hotspots of crowd-sourced ocean hazard reports.",
        version=__version__,
        lifespan=lifespan,
    )

    @application.get("/health")
    def health(request: Request) -> dict[str, Any]:
        """Server health check with uptime, version, and last cycle."""
        state = request.app.state
        scheduler: RecalculationScheduler | None = state.scheduler
        last = scheduler.last_result if scheduler is not None else None
        now = datetime.now(tz=timezone.utc)
        return {
            "status": "ok",
            "version": __version__,
            "uptime_seconds": round((now - state.start_time).total_seconds(), 1),
            "recalculation_enabled": scheduler is not None,
            "cycle_running": scheduler.is_running if scheduler is not None else False,
            "last_cycle_status": last.status if last else None,
            "last_cycle_at": last.finished_at if last else None,
            "cycle_count": scheduler.cycle_count if scheduler is not None else 0,
        }

    @application.get("/hotspots")
    def get_hotspots(
        request: Request,
        format: Annotated[
            OutputFormat, Query(description="Output format."),
        ] = "json",
        limit: Annotated[
            int | None, Query(ge=1, le=1000, description="Maximum hotspots to return."),
        ] = None,
    ) -> JSONResponse:
        """All current hotspots, highest confidence first."""
        hotspots = request.app.state.query.all_hotspots(limit=limit)
        if format == "geojson":
            return JSONResponse(
                content=hotspots_to_geojson(hotspots),
                media_type="application/geo+json",
                headers=CACHE_HEADERS,
            )
        return JSONResponse(content=[h.to_dict() for h in hotspots], headers=CACHE_HEADERS)

    @application.get("/hotspots/nearby")
    def get_nearby_hotspots(
        request: Request,
        lat: Annotated[float, Query(ge=-90.0, le=90.0, description="Latitude.")],
        lng: Annotated[float, Query(ge=-180.0, le=180.0, description="Longitude.")],
        radius_km: Annotated[
            float, Query(gt=0.0, le=20050.0, description="Search radius in km."),
        ] = 50.0,
    ) -> JSONResponse:
        """Hotspots whose centre lies within *radius_km* of the point."""
        hotspots = request.app.state.query.nearby_hotspots(lat, lng, radius_km)
        return JSONResponse(content=[h.to_dict() for h in hotspots])

    @application.post("/hotspots/recalculate")
    def recalculate(request: Request) -> JSONResponse:
        """Force a recalculation under the same single-flight guard as the schedule."""
        scheduler: RecalculationScheduler | None = request.app.state.scheduler
        if scheduler is None:
            return JSONResponse(
                status_code=503,
                content={"detail": "Report Store not configured; recalculation disabled."},
            )
        try:
            result = scheduler.trigger()
        except Exception as exc:
            logger.exception("Manual hotspot recalculation crashed")
            return JSONResponse(
                status_code=500,
                content={"status": "error", "detail": f"Recalculation crashed: {exc}"},
            )
        return JSONResponse(
            status_code=_STATUS_CODES[result.status],
            content=asdict(result),
        )

    return application


app = create_app()
