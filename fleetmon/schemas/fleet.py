"""Pydantic schemas for fleet discovery and live status."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ServerResponse(BaseModel):
    """A discovered server."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    protocol: str
    host: str
    port: int
    lifecycle_state: str
    pod_name: str
    service_name: str
    node_port: int | None
    pod_ready: bool
    is_running: bool
    is_dynamic: bool
    managed_by: str
    discovered_at: datetime


class ServerStatusResponse(BaseModel):
    """Health of one server in a snapshot."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    protocol: str
    lifecycle_state: str
    is_healthy: bool
    latency_ms: float | None
    message: str | None
    checked_at: datetime


class StatusSnapshotResponse(BaseModel):
    """Latest fleet snapshot."""

    model_config = ConfigDict(from_attributes=True)

    servers: list[ServerStatusResponse]
    taken_at: datetime
    total_servers: int
    healthy_servers: int
