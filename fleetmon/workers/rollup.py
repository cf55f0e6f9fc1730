"""Hourly rollup generation from raw health samples."""

import logging
from datetime import datetime, timedelta, timezone
from itertools import groupby

from fleetmon.db.types import as_utc
from fleetmon.errors import AggregationSkipped, StoreUnavailable
from fleetmon.metrics.stats import compute_rollup
from fleetmon.metrics.store import MetricsStore

logger = logging.getLogger(__name__)


def hour_floor(moment: datetime) -> datetime:
    """Truncate a datetime to the start of its UTC hour. Naive values are UTC."""
    return as_utc(moment).replace(minute=0, second=0, microsecond=0)


class RollupGenerator:
    """Aggregates completed hours of raw samples into health_hourly rows.

    An hour is only aggregated once it has fully elapsed. Each run looks back
    over the last `backfill_hours` completed hours so a missed or failed run
    is caught up on the next one. A (hour, server) pair that already has a
    rollup is never recomputed.
    """

    DEFAULT_BACKFILL_HOURS = 24

    def __init__(self, store: MetricsStore, backfill_hours: int | None = None):
        self.store = store
        if backfill_hours is None:
            backfill_hours = self.DEFAULT_BACKFILL_HOURS
        if backfill_hours <= 0:
            raise ValueError(f"backfill_hours must be positive, got {backfill_hours}")
        self.backfill_hours = backfill_hours

    def completed_hours(self, now: datetime | None = None) -> list[datetime]:
        """Hour starts to examine, oldest first, ending with the previous hour."""
        current = hour_floor(now or datetime.now(timezone.utc))
        return [current - timedelta(hours=k) for k in range(self.backfill_hours, 0, -1)]

    async def generate_hour(self, hour_start: datetime) -> int:
        """Roll up one hour for every server that has samples in it.

        Returns:
            Number of rollup rows created
        """
        samples = await self.store.load_hour_samples(hour_start)
        if not samples:
            logger.debug(f"No samples for hour {hour_start.isoformat()}")
            return 0

        existing = await self.store.rolled_up_servers(hour_start)

        rollups = []
        for server_name, group in groupby(samples, key=lambda s: s.server_name):
            rows = list(group)
            if server_name in existing:
                continue
            stats = compute_rollup((row.is_healthy, row.latency_ms) for row in rows)
            rollups.append((server_name, rows[-1].protocol, stats))

        if not rollups:
            logger.debug(f"Rollups for {hour_start.isoformat()} already exist, skipping")
            return 0

        created = await self.store.insert_rollups(hour_start, rollups)
        logger.info(f"Generated {created} hourly rollups for {hour_start.isoformat()}")
        return created

    async def generate(self, now: datetime | None = None) -> int:
        """Roll up every completed hour in the backfill window.

        Returns:
            Total rollup rows created

        Raises:
            AggregationSkipped: At least one hour could not be processed
        """
        created = 0
        failed: list[datetime] = []

        for hour_start in self.completed_hours(now):
            try:
                created += await self.generate_hour(hour_start)
            except StoreUnavailable as e:
                logger.warning(f"Rollup for {hour_start.isoformat()} skipped: {e}")
                failed.append(hour_start)

        if failed:
            raise AggregationSkipped(
                f"Rollup skipped {len(failed)} hour(s), first {failed[0].isoformat()}",
                job="rollup",
            )

        return created
