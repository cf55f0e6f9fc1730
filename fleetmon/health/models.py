"""Fleet health models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ProbeOutcome(str, Enum):
    """Result of a single TCP liveness probe."""

    CONNECTED = "connected"
    REFUSED = "refused"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of probing one server.

    Attributes:
        server_name: Probed server
        is_reachable: Whether a TCP connection was established
        latency_ms: Connect time in milliseconds, None unless reachable
        outcome: Classified probe outcome
        message: Failure detail, None when reachable
    """

    server_name: str
    is_reachable: bool
    latency_ms: float | None
    outcome: ProbeOutcome
    message: str | None = None


@dataclass(frozen=True)
class ServerStatus:
    """Health of one server as published in a snapshot."""

    name: str
    protocol: str
    lifecycle_state: str
    is_healthy: bool
    latency_ms: float | None
    message: str | None
    checked_at: datetime


@dataclass(frozen=True)
class StatusSnapshot:
    """Immutable view of the whole fleet at one point in time.

    Attributes:
        servers: Per-server statuses, in discovery order
        taken_at: When the cycle that produced this snapshot finished probing
        total_servers: len(servers)
        healthy_servers: Number of servers with is_healthy
    """

    servers: tuple[ServerStatus, ...]
    taken_at: datetime
    total_servers: int
    healthy_servers: int
