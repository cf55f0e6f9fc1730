"""Building and caching the latest fleet status snapshot."""

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from fleetmon.discovery.models import ServerDescriptor
from fleetmon.health.models import ProbeResult, ServerStatus, StatusSnapshot


def build_status(
    server: ServerDescriptor,
    probe: ProbeResult | None,
    checked_at: datetime,
) -> ServerStatus:
    """Combine a descriptor and its probe result into a published status.

    A server is healthy only when its pod is running and ready AND the TCP
    probe connected. Latency is reported only for healthy servers.
    """
    reachable = probe is not None and probe.is_reachable
    is_healthy = reachable and server.is_running

    if not server.is_running:
        message = f"Pod not ready: {server.lifecycle_state}"
    elif not reachable:
        message = probe.message if probe is not None and probe.message else "TCP connection failed"
    else:
        message = None

    return ServerStatus(
        name=server.name,
        protocol=server.protocol,
        lifecycle_state=server.lifecycle_state,
        is_healthy=is_healthy,
        latency_ms=probe.latency_ms if is_healthy and probe is not None else None,
        message=message,
        checked_at=checked_at,
    )


def build_snapshot(
    servers: Sequence[ServerDescriptor],
    probes: Sequence[ProbeResult],
    taken_at: datetime | None = None,
) -> StatusSnapshot:
    """Build an immutable snapshot from one cycle's discovery and probe results.

    Probe results pair with servers by position, so pods that resolve to the
    same name keep their own outcome. A server without a result is unhealthy.
    """
    taken_at = taken_at or datetime.now(timezone.utc)

    statuses = tuple(
        build_status(server, probes[i] if i < len(probes) else None, taken_at)
        for i, server in enumerate(servers)
    )

    return StatusSnapshot(
        servers=statuses,
        taken_at=taken_at,
        total_servers=len(statuses),
        healthy_servers=sum(1 for s in statuses if s.is_healthy),
    )


class SnapshotCache:
    """Holds the single current StatusSnapshot.

    Readers get whichever snapshot was current at the moment of the call;
    replacement is one reference assignment, so no reader ever sees a
    partially built snapshot.
    """

    def __init__(self) -> None:
        self._latest: StatusSnapshot | None = None

    def get_latest(self) -> StatusSnapshot | None:
        return self._latest

    def replace(self, snapshot: StatusSnapshot) -> None:
        self._latest = snapshot


def status_to_dict(status: ServerStatus) -> dict[str, Any]:
    return {
        "name": status.name,
        "protocol": status.protocol,
        "lifecycle_state": status.lifecycle_state,
        "is_healthy": status.is_healthy,
        "latency_ms": status.latency_ms,
        "message": status.message,
        "checked_at": status.checked_at.isoformat(),
    }


def snapshot_to_dict(snapshot: StatusSnapshot) -> dict[str, Any]:
    """JSON-ready form of a snapshot for push messages."""
    return {
        "servers": [status_to_dict(s) for s in snapshot.servers],
        "taken_at": snapshot.taken_at.isoformat(),
        "total_servers": snapshot.total_servers,
        "healthy_servers": snapshot.healthy_servers,
    }
