"""Retention reaper for removing expired samples and rollups."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fleetmon.metrics.store import MetricsStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReapResult:
    """Rows removed by one reaper run."""

    cutoff: datetime
    samples_deleted: int
    rollups_deleted: int

    @property
    def total(self) -> int:
        return self.samples_deleted + self.rollups_deleted


class RetentionReaper:
    """Deletes samples and rollups older than the retention horizon.

    Rows strictly older than now - horizon are removed; a row exactly at the
    cutoff is kept.
    """

    DEFAULT_RETENTION_DAYS = 7

    def __init__(self, store: MetricsStore, retention_days: int | None = None):
        self.store = store
        if retention_days is None:
            retention_days = self.DEFAULT_RETENTION_DAYS
        if retention_days <= 0:
            raise ValueError(f"retention_days must be positive, got {retention_days}")
        self.retention_days = retention_days

    def cutoff(self, now: datetime | None = None) -> datetime:
        return (now or datetime.now(timezone.utc)) - timedelta(days=self.retention_days)

    async def reap(self, now: datetime | None = None) -> ReapResult:
        """Remove expired rows.

        Returns:
            ReapResult with per-table delete counts
        """
        cutoff = self.cutoff(now)

        samples_deleted = await self.store.delete_samples_before(cutoff)
        rollups_deleted = await self.store.delete_rollups_before(cutoff)

        result = ReapResult(
            cutoff=cutoff,
            samples_deleted=samples_deleted,
            rollups_deleted=rollups_deleted,
        )

        if result.total > 0:
            logger.info(
                f"Retention cleanup: deleted {samples_deleted} samples, {rollups_deleted} rollups "
                f"older than {cutoff.isoformat()} (retention={self.retention_days} days)"
            )
        else:
            logger.debug(f"Retention cleanup: nothing older than {cutoff.isoformat()}")

        return result
