"""Worker setup and lifecycle management for the monitoring pipeline."""

import logging
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from fleetmon.setup import MonitoringServices

logger = logging.getLogger(__name__)

# Global scheduler instance
_scheduler: AsyncIOScheduler | None = None
_services: MonitoringServices | None = None


async def _run_rollup_generation(services: MonitoringServices) -> None:
    """Scheduled job: roll up completed hours."""
    from fleetmon.workers.rollup import RollupGenerator

    try:
        generator = RollupGenerator(services.store, backfill_hours=services.settings.rollup_backfill_hours)
        created = await generator.generate()
        if created > 0:
            logger.info(f"Rollup generation created {created} hourly rows")
    except Exception as e:
        logger.exception(f"Rollup generation failed: {e}")


async def _run_retention_cleanup(services: MonitoringServices) -> None:
    """Scheduled job: delete samples and rollups past the retention horizon."""
    from fleetmon.workers.retention import RetentionReaper

    try:
        reaper = RetentionReaper(services.store, retention_days=services.settings.retention_days)
        await reaper.reap()
    except Exception as e:
        logger.exception(f"Retention cleanup failed: {e}")


async def init_workers(services: MonitoringServices) -> AsyncIOScheduler:
    """Start the status broadcaster and schedule rollup and retention jobs.

    Args:
        services: Initialized monitoring services

    Returns:
        The running scheduler
    """
    global _scheduler, _services

    logger.info("Initializing monitoring workers...")

    config = services.settings
    now = datetime.now(timezone.utc)

    # Status broadcaster: long-running task
    services.broadcaster.start()
    _services = services

    _scheduler = AsyncIOScheduler(timezone=timezone.utc)

    # Rollups: hourly, first run after samples have accumulated
    _scheduler.add_job(
        _run_rollup_generation,
        IntervalTrigger(
            seconds=config.rollup_interval_seconds,
            start_date=now + timedelta(seconds=config.rollup_startup_delay_seconds),
            timezone=timezone.utc,
        ),
        args=[services],
        id="rollup_generation",
        name="Generate hourly health rollups",
        max_instances=1,
        coalesce=True,
    )

    # Retention: hourly, staggered after the first rollup
    _scheduler.add_job(
        _run_retention_cleanup,
        IntervalTrigger(
            seconds=config.retention_interval_seconds,
            start_date=now + timedelta(seconds=config.retention_startup_delay_seconds),
            timezone=timezone.utc,
        ),
        args=[services],
        id="retention_cleanup",
        name="Delete expired health data",
        max_instances=1,
        coalesce=True,
    )

    _scheduler.start()
    logger.info("Monitoring workers initialized")

    return _scheduler


async def shutdown_workers() -> None:
    """Stop scheduled jobs, then let the broadcaster finish its current cycle."""
    global _scheduler, _services

    logger.info("Shutting down monitoring workers...")

    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None

    if _services is not None:
        await _services.broadcaster.stop(timeout=_services.settings.probe_timeout_seconds * 2)
        _services = None

    logger.info("Monitoring workers shutdown complete")
