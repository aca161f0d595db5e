"""Scheduled jobs: hourly inventory refresh and periodic session checks."""

from __future__ import annotations

import logging
logger = logging.getLogger(__name__)


class ConciergeScheduler:
    """Runs the engine's timers on APScheduler.

    Both periodic jobs are read-recompute-write cycles that finish well
    inside their own period, so they share the persisted state without
    locking.
    """

    def __init__(self, config, tracker, guard) -> None:
        """Initialize scheduler.

        Args:
            config: ConciergeConfig instance.
            tracker: InventoryTracker to refresh.
            guard: SessionGuard to check.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.interval import IntervalTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install apscheduler"
            )

        self._config = config
        self._tracker = tracker
        self._guard = guard
        self._scheduler = AsyncIOScheduler()
        self._IntervalTrigger = IntervalTrigger
        self._running = False

    def setup_jobs(self) -> None:
        """Register the periodic jobs based on config."""
        refresh_every = self._config.tracker.refresh_interval
        self._scheduler.add_job(
            self._job_refresh_inventory,
            trigger=self._IntervalTrigger(seconds=refresh_every),
            id="refresh_inventory",
            name="Inventory refresh",
            replace_existing=True,
        )
        logger.info("Inventory refresh job registered: every %ds", refresh_every)

        check_every = self._config.session.check_interval
        self._scheduler.add_job(
            self._job_session_check,
            trigger=self._IntervalTrigger(seconds=check_every),
            id="session_check",
            name="Session check",
            replace_existing=True,
        )
        logger.info("Session check job registered: every %ds", check_every)

    def start(self) -> None:
        """Start the scheduler. Must be called with an asyncio loop running."""
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(job.next_run_time) if getattr(job, "next_run_time", None) else None,
            })
        return jobs

    async def _job_refresh_inventory(self) -> None:
        logger.info("Refreshing inventory...")
        try:
            items = self._tracker.refresh()
            logger.info("Inventory refreshed: %d item(s)", len(items))
        except Exception:
            logger.exception("Inventory refresh failed")

    async def _job_session_check(self) -> None:
        try:
            if not self._guard.check():
                logger.debug("Session check: not authenticated")
        except Exception:
            logger.exception("Session check failed")
