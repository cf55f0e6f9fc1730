"""Recurring fleet status collection and broadcast.

Each cycle discovers the fleet, probes every server, swaps the resulting
snapshot into the cache, pushes it to status subscribers and records one
health sample per server.
"""

import asyncio
import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any, Protocol

from fleetmon.discovery.models import ServerDescriptor
from fleetmon.errors import PlatformUnavailable, StoreUnavailable
from fleetmon.health.models import ProbeResult, StatusSnapshot
from fleetmon.health.snapshot import SnapshotCache, build_snapshot, snapshot_to_dict
from fleetmon.health.websocket import METRICS_SAMPLE_MESSAGE, STATUS_UPDATE_MESSAGE
from fleetmon.models.health import HealthSample

logger = logging.getLogger(__name__)


class ServerDiscovery(Protocol):
    """Protocol for fleet discovery."""

    async def discover(self) -> list[ServerDescriptor]: ...


class Prober(Protocol):
    """Protocol for reachability probing."""

    async def probe(
        self, servers: Sequence[ServerDescriptor], timeout: float | None = None
    ) -> list[ProbeResult]: ...


class SampleSink(Protocol):
    """Protocol for sample persistence."""

    async def append_samples(self, samples: Sequence[HealthSample]) -> int: ...


class Channel(Protocol):
    """Protocol for a push channel."""

    async def broadcast(self, message_type: str, data: Any) -> int: ...


class BroadcasterState(str, Enum):
    """Where the broadcaster is within its cycle."""

    IDLE = "idle"
    COLLECTING = "collecting"
    PUBLISHING = "publishing"
    STOPPED = "stopped"


class StatusBroadcaster:
    """Owns the latest StatusSnapshot and refreshes it on a fixed cadence.

    Usage:
        broadcaster = StatusBroadcaster(discovery, prober, store)
        broadcaster.start()
        ...
        snapshot = broadcaster.get_latest()
        ...
        await broadcaster.stop()
    """

    def __init__(
        self,
        discovery: ServerDiscovery,
        prober: Prober,
        store: SampleSink,
        cache: SnapshotCache | None = None,
        status_channel: Channel | None = None,
        metrics_channel: Channel | None = None,
        interval: float = 5.0,
        startup_delay: float = 2.0,
        probe_timeout: float | None = None,
    ) -> None:
        """Initialize the broadcaster.

        Args:
            discovery: Source of the current fleet
            prober: Reachability prober
            store: Sink for per-cycle health samples
            cache: Snapshot cache shared with readers
            status_channel: Receives one status update per cycle
            metrics_channel: Receives the samples written each cycle
            interval: Seconds between cycle starts
            startup_delay: Seconds to wait before the first cycle
            probe_timeout: Per-probe connect timeout, prober default if None
        """
        self._discovery = discovery
        self._prober = prober
        self._store = store
        self._cache = cache or SnapshotCache()
        self._status_channel = status_channel
        self._metrics_channel = metrics_channel
        self._interval = interval
        self._startup_delay = startup_delay
        self._probe_timeout = probe_timeout

        self._state = BroadcasterState.IDLE
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> BroadcasterState:
        return self._state

    @property
    def cache(self) -> SnapshotCache:
        return self._cache

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def get_latest(self) -> StatusSnapshot | None:
        """Most recent snapshot, or None before the first completed cycle."""
        return self._cache.get_latest()

    async def run_cycle(self) -> StatusSnapshot | None:
        """Run one collect-and-publish cycle.

        Returns:
            The new snapshot, or None if discovery failed and the previous
            snapshot was kept
        """
        self._state = BroadcasterState.COLLECTING
        try:
            try:
                servers = await self._discovery.discover()
            except PlatformUnavailable as e:
                logger.warning(f"Discovery failed, keeping previous snapshot: {e}")
                return None

            probes = await self._prober.probe(servers, self._probe_timeout)
            snapshot = build_snapshot(servers, probes)
            self._cache.replace(snapshot)

            self._state = BroadcasterState.PUBLISHING
            if self._status_channel is not None:
                await self._status_channel.broadcast(STATUS_UPDATE_MESSAGE, snapshot_to_dict(snapshot))

            await self._record_samples(snapshot)

            logger.debug(
                f"Broadcast status for {snapshot.total_servers} servers "
                f"({snapshot.healthy_servers} healthy)"
            )
            return snapshot
        finally:
            if self._state is not BroadcasterState.STOPPED:
                self._state = BroadcasterState.IDLE

    async def _record_samples(self, snapshot: StatusSnapshot) -> None:
        if not snapshot.servers:
            return

        samples = [
            HealthSample(
                timestamp=snapshot.taken_at,
                server_name=status.name,
                protocol=status.protocol,
                is_healthy=status.is_healthy,
                latency_ms=status.latency_ms,
            )
            for status in snapshot.servers
        ]

        try:
            await self._store.append_samples(samples)
        except StoreUnavailable as e:
            logger.error(f"Failed to record health samples: {e}")
            return

        if self._metrics_channel is not None:
            await self._metrics_channel.broadcast(
                METRICS_SAMPLE_MESSAGE,
                {
                    "timestamp": snapshot.taken_at.isoformat(),
                    "samples": [
                        {
                            "server_name": s.name,
                            "protocol": s.protocol,
                            "is_healthy": s.is_healthy,
                            "latency_ms": s.latency_ms,
                        }
                        for s in snapshot.servers
                    ],
                },
            )

    async def _wait_for_stop(self, timeout: float) -> bool:
        """Sleep up to timeout; True if a stop was requested meanwhile."""
        if timeout <= 0:
            return self._stop_event.is_set()
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        logger.info(f"Status broadcaster started (interval={self._interval}s)")

        try:
            if await self._wait_for_stop(self._startup_delay):
                return

            while not self._stop_event.is_set():
                started = loop.time()
                try:
                    await self.run_cycle()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.exception(f"Status broadcast cycle failed: {e}")

                remaining = self._interval - (loop.time() - started)
                if await self._wait_for_stop(remaining):
                    break
        except asyncio.CancelledError:
            logger.info("Status broadcaster cancelled")
            raise
        finally:
            self._state = BroadcasterState.STOPPED
            logger.info("Status broadcaster stopped")

    def start(self) -> asyncio.Task:
        """Start the background loop on the running event loop."""
        if self.is_running:
            return self._task
        self._stop_event.clear()
        self._state = BroadcasterState.IDLE
        self._task = asyncio.create_task(self._run(), name="status-broadcaster")
        return self._task

    async def stop(self, timeout: float | None = None) -> None:
        """Request a stop and wait for the in-flight cycle to finish.

        Args:
            timeout: Cancel the loop if it has not finished after this many seconds
        """
        self._stop_event.set()
        if self._task is None:
            self._state = BroadcasterState.STOPPED
            return

        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except TimeoutError:
            logger.warning("Status broadcaster did not stop in time, cancelling")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
