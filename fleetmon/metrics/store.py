"""Persistence of raw health samples and hourly rollups.

Every public operation opens its own session from the session factory and
closes it before returning; no session is shared between concurrent callers.
SQLAlchemy failures are re-raised as StoreUnavailable.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleetmon.errors import StoreUnavailable
from fleetmon.metrics.stats import RollupStats
from fleetmon.models.health import HealthHourly, HealthSample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerSummary:
    """Data held for one server across the retention window."""

    server_name: str
    protocol: str
    first_sample: datetime
    last_sample: datetime
    total_samples: int


@dataclass(frozen=True)
class HourSample:
    """Projection of a raw sample used for rollup computation."""

    server_name: str
    protocol: str
    is_healthy: bool
    latency_ms: float | None


def validate_sample(sample: HealthSample) -> None:
    """Reject samples whose latency disagrees with their health flag."""
    if sample.is_healthy and sample.latency_ms is None:
        raise ValueError(f"Healthy sample for {sample.server_name} has no latency")
    if not sample.is_healthy and sample.latency_ms is not None:
        raise ValueError(f"Unhealthy sample for {sample.server_name} carries a latency")


class MetricsStore:
    """Read/write access to health_samples and health_hourly."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Metrics store {operation} failed: {e}")
            raise StoreUnavailable(f"Metrics store {operation} failed: {e}", operation=operation) from e

    # -- write path -----------------------------------------------------------

    async def append_sample(self, sample: HealthSample) -> None:
        """Persist one sample."""
        await self.append_samples([sample])

    async def append_samples(self, samples: Sequence[HealthSample]) -> int:
        """Persist one broadcast cycle's samples in a single transaction.

        Raises:
            ValueError: A sample violates the latency/health invariant
            StoreUnavailable: The write failed; nothing was persisted
        """
        if not samples:
            return 0
        for sample in samples:
            validate_sample(sample)

        async with self._session("append_samples") as session:
            session.add_all(samples)
            await session.commit()

        return len(samples)

    # -- read path ------------------------------------------------------------

    async def query_samples(
        self,
        start: datetime,
        end: datetime,
        server: str | None = None,
        protocol: str | None = None,
    ) -> list[HealthSample]:
        """Raw samples with start <= timestamp <= end, newest first.

        Args:
            start: Inclusive lower bound
            end: Inclusive upper bound
            server: Restrict to one server name
            protocol: Restrict to one protocol (case-insensitive)
        """
        stmt = select(HealthSample).where(
            HealthSample.timestamp >= start,
            HealthSample.timestamp <= end,
        )
        if server:
            stmt = stmt.where(HealthSample.server_name == server)
        if protocol:
            stmt = stmt.where(func.lower(HealthSample.protocol) == protocol.lower())
        stmt = stmt.order_by(HealthSample.timestamp.desc(), HealthSample.id.desc())

        async with self._session("query_samples") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def query_rollups(
        self,
        start: datetime,
        end: datetime,
        server: str | None = None,
        protocol: str | None = None,
    ) -> list[HealthHourly]:
        """Hourly rollups with start <= hour_start <= end, newest first."""
        stmt = select(HealthHourly).where(
            HealthHourly.hour_start >= start,
            HealthHourly.hour_start <= end,
        )
        if server:
            stmt = stmt.where(HealthHourly.server_name == server)
        if protocol:
            stmt = stmt.where(func.lower(HealthHourly.protocol) == protocol.lower())
        stmt = stmt.order_by(HealthHourly.hour_start.desc(), HealthHourly.server_name)

        async with self._session("query_rollups") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def list_known_servers(self) -> list[str]:
        """Distinct server names that have at least one raw sample."""
        stmt = select(HealthSample.server_name).distinct().order_by(HealthSample.server_name)

        async with self._session("list_known_servers") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def list_server_summaries(self) -> list[ServerSummary]:
        """Per-server protocol, first/last sample time and sample count."""
        stmt = (
            select(
                HealthSample.server_name,
                func.max(HealthSample.protocol),
                func.min(HealthSample.timestamp),
                func.max(HealthSample.timestamp),
                func.count(HealthSample.id),
            )
            .group_by(HealthSample.server_name)
            .order_by(HealthSample.server_name)
        )

        async with self._session("list_server_summaries") as session:
            result = await session.execute(stmt)
            rows = result.all()

        return [
            ServerSummary(
                server_name=name,
                protocol=protocol,
                first_sample=first,
                last_sample=last,
                total_samples=count,
            )
            for name, protocol, first, last, count in rows
        ]

    # -- rollup primitives ----------------------------------------------------

    async def load_hour_samples(self, hour_start: datetime) -> list[HourSample]:
        """Samples in [hour_start, hour_start + 1h), ordered by server."""
        hour_end = hour_start + timedelta(hours=1)
        stmt = (
            select(
                HealthSample.server_name,
                HealthSample.protocol,
                HealthSample.is_healthy,
                HealthSample.latency_ms,
            )
            .where(HealthSample.timestamp >= hour_start, HealthSample.timestamp < hour_end)
            .order_by(HealthSample.server_name, HealthSample.timestamp)
        )

        async with self._session("load_hour_samples") as session:
            result = await session.execute(stmt)
            rows = result.all()

        return [
            HourSample(server_name=name, protocol=protocol, is_healthy=healthy, latency_ms=latency)
            for name, protocol, healthy, latency in rows
        ]

    async def rolled_up_servers(self, hour_start: datetime) -> set[str]:
        """Servers that already have a rollup row for the hour."""
        stmt = select(HealthHourly.server_name).where(HealthHourly.hour_start == hour_start)

        async with self._session("rolled_up_servers") as session:
            result = await session.execute(stmt)
            return set(result.scalars().all())

    async def insert_rollups(
        self,
        hour_start: datetime,
        rollups: Sequence[tuple[str, str, RollupStats]],
    ) -> int:
        """Insert (server_name, protocol, stats) rollups for one hour.

        Rows that already exist for (hour_start, server_name) are left
        untouched.

        Returns:
            Number of rows actually inserted
        """
        if not rollups:
            return 0

        inserted = 0
        async with self._session("insert_rollups") as session:
            for server_name, protocol, stats in rollups:
                stmt = (
                    sqlite_insert(HealthHourly)
                    .values(
                        hour_start=hour_start,
                        server_name=server_name,
                        protocol=protocol,
                        sample_count=stats.sample_count,
                        healthy_count=stats.healthy_count,
                        avg_latency_ms=stats.avg_latency_ms,
                        min_latency_ms=stats.min_latency_ms,
                        max_latency_ms=stats.max_latency_ms,
                        p95_latency_ms=stats.p95_latency_ms,
                    )
                    .on_conflict_do_nothing(index_elements=["hour_start", "server_name"])
                )
                result = await session.execute(stmt)
                inserted += result.rowcount
            await session.commit()

        return inserted

    # -- retention primitives -------------------------------------------------

    async def delete_samples_before(self, cutoff: datetime) -> int:
        """Delete raw samples with timestamp strictly before cutoff."""
        async with self._session("delete_samples_before") as session:
            result = await session.execute(delete(HealthSample).where(HealthSample.timestamp < cutoff))
            count = result.rowcount
            await session.commit()
        return count

    async def delete_rollups_before(self, cutoff: datetime) -> int:
        """Delete rollups with hour_start strictly before cutoff."""
        async with self._session("delete_rollups_before") as session:
            result = await session.execute(delete(HealthHourly).where(HealthHourly.hour_start < cutoff))
            count = result.rowcount
            await session.commit()
        return count
