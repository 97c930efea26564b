"""Periodic recalculation with a single-flight guard."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

from hazard_hotspots.config import HotspotConfig
from hazard_hotspots.fetchers.reports import ReportSource
from hazard_hotspots.models import CycleResult
from hazard_hotspots.pipeline import run_cycle
from hazard_hotspots.store import HotspotRepository

logger = logging.getLogger(__name__)


class CycleGuard:
    """Tracks whether a cycle is running; at most one holder at a time."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def running(self) -> bool:
        return self._lock.locked()


class RecalculationScheduler:
    """Runs a cycle on start and then every ``interval_minutes``.

    Scheduled ticks and manual triggers share one :class:`CycleGuard`.  A
    trigger that arrives while a cycle is running is dropped, not queued,
    and ticks missed because a cycle overran are skipped.
    """

    def __init__(
        self,
        config: HotspotConfig,
        fetch_reports: ReportSource,
        repository: HotspotRepository,
        guard: CycleGuard | None = None,
    ) -> None:
        self._config = config
        self._fetch_reports = fetch_reports
        self.repository = repository
        self.guard = guard if guard is not None else CycleGuard()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.last_result: CycleResult | None = None
        self.cycle_count = 0

    @property
    def config(self) -> HotspotConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self.guard.running

    def update_config(self, **changes: Any) -> HotspotConfig:
        """Replace config values; a cycle already running keeps its snapshot."""
        merged = {**self._config.model_dump(), **changes}
        self._config = HotspotConfig(**merged)
        return self._config

    def trigger(self) -> CycleResult:
        """Run one cycle now unless one is already in flight."""
        if not self.guard.try_acquire():
            logger.warning("Hotspot recalculation already running; skipping trigger")
            return CycleResult(status="skipped")
        try:
            result = run_cycle(self._config, self._fetch_reports, self.repository)
        finally:
            self.guard.release()

        self.last_result = result
        self.cycle_count += 1
        logger.info(
            "Hotspot cycle %s: %d reports -> %d hotspots",
            result.status,
            result.report_count,
            result.hotspot_count,
        )
        return result

    def start(self) -> None:
        """Run one cycle immediately, then repeat on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            # A stop that timed out mid-cycle leaves the loop alive; keep it.
            self._stop.clear()
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run_loop, name="hotspot-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(
            "Started automatic hotspot calculation every %s minutes",
            self._config.interval_minutes,
        )

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is None:
            return
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Hotspot scheduler still finishing a cycle after stop")
        else:
            self._thread = None

    def _run_loop(self) -> None:
        next_run = time.monotonic()
        while not self._stop.is_set():
            try:
                self.trigger()
            except Exception:
                logger.exception("Hotspot cycle crashed")

            interval = self._config.interval_minutes * 60
            next_run += interval
            now = time.monotonic()
            if now > next_run:
                missed = int((now - next_run) // interval) + 1
                logger.warning("Hotspot cycle overran; skipping %d scheduled tick(s)", missed)
                next_run += missed * interval

            if self._stop.wait(next_run - now):
                break
