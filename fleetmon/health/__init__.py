"""Fleet health probing, snapshotting and broadcasting."""

from fleetmon.health.broadcaster import BroadcasterState, StatusBroadcaster
from fleetmon.health.models import ProbeOutcome, ProbeResult, ServerStatus, StatusSnapshot
from fleetmon.health.prober import TcpProber
from fleetmon.health.snapshot import SnapshotCache, build_snapshot

__all__ = [
    "BroadcasterState",
    "ProbeOutcome",
    "ProbeResult",
    "ServerStatus",
    "SnapshotCache",
    "StatusBroadcaster",
    "StatusSnapshot",
    "TcpProber",
    "build_snapshot",
]
