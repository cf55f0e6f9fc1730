"""Read-side facade over discovery, the snapshot cache and the metrics store."""

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

from fleetmon.db.types import as_utc
from fleetmon.discovery.models import ServerDescriptor
from fleetmon.health.models import StatusSnapshot
from fleetmon.metrics.store import MetricsStore, ServerSummary
from fleetmon.models.health import HealthHourly, HealthSample

logger = logging.getLogger(__name__)

DEFAULT_MAX_RAW_QUERY_DAYS = 7


class Resolution(str, Enum):
    """Granularity of a history query."""

    RAW = "raw"
    HOURLY = "hourly"


class InvalidRange(ValueError):
    """A query time range was empty, inverted or too wide."""
    pass


class FleetDiscovery(Protocol):
    async def discover(self) -> list[ServerDescriptor]: ...

    async def get_server(self, name: str) -> ServerDescriptor | None: ...


class SnapshotSource(Protocol):
    def get_latest(self) -> StatusSnapshot | None: ...


class QueryService:
    """Answers current-status and historical-metrics queries."""

    def __init__(
        self,
        discovery: FleetDiscovery,
        snapshots: SnapshotSource,
        store: MetricsStore,
        max_raw_query_days: int = DEFAULT_MAX_RAW_QUERY_DAYS,
    ):
        self._discovery = discovery
        self._snapshots = snapshots
        self._store = store
        self._max_raw_range = timedelta(days=max_raw_query_days)

    def latest_status(self) -> StatusSnapshot | None:
        """Cached snapshot; never triggers a probe."""
        return self._snapshots.get_latest()

    async def list_servers(self) -> list[ServerDescriptor]:
        """Fresh discovery of the fleet.

        Raises:
            PlatformUnavailable: Discovery failed
        """
        return await self._discovery.discover()

    async def get_server(self, name: str) -> ServerDescriptor | None:
        return await self._discovery.get_server(name)

    def validate_range(self, start: datetime, end: datetime, raw: bool = False) -> tuple[datetime, datetime]:
        """Normalise a query range to UTC and check it.

        Raises:
            InvalidRange: end is not after start, or a raw range is too wide
        """
        start, end = as_utc(start), as_utc(end)
        if end <= start:
            raise InvalidRange("end must be after start")
        if raw and end - start > self._max_raw_range:
            raise InvalidRange(
                f"Raw sample queries limited to {self._max_raw_range.days} days. "
                "Use /api/metrics/hourly for longer ranges."
            )
        return start, end

    async def samples(
        self,
        start: datetime,
        end: datetime,
        server: str | None = None,
        protocol: str | None = None,
    ) -> list[HealthSample]:
        """Raw samples in [start, end], newest first."""
        start, end = self.validate_range(start, end, raw=True)
        samples = await self._store.query_samples(start, end, server=server, protocol=protocol)
        logger.debug(f"Returned {len(samples)} samples for {server or 'all servers'} in {start} - {end}")
        return samples

    async def hourly(
        self,
        start: datetime,
        end: datetime,
        server: str | None = None,
        protocol: str | None = None,
    ) -> list[HealthHourly]:
        """Hourly rollups with hour_start in [start, end], newest first."""
        start, end = self.validate_range(start, end)
        rollups = await self._store.query_rollups(start, end, server=server, protocol=protocol)
        logger.debug(f"Returned {len(rollups)} hourly rollups for {server or 'all servers'} in {start} - {end}")
        return rollups

    async def history(
        self,
        resolution: Resolution | str,
        start: datetime,
        end: datetime,
        server: str | None = None,
        protocol: str | None = None,
    ) -> list[HealthSample] | list[HealthHourly]:
        """Dispatch a history query to raw samples or hourly rollups."""
        if Resolution(resolution) is Resolution.RAW:
            return await self.samples(start, end, server=server, protocol=protocol)
        return await self.hourly(start, end, server=server, protocol=protocol)

    async def known_servers(self) -> list[str]:
        return await self._store.list_known_servers()

    async def server_summaries(self) -> list[ServerSummary]:
        return await self._store.list_server_summaries()
