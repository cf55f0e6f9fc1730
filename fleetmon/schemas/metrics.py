"""Pydantic schemas for historical health metrics."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class HealthSampleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    server_name: str
    protocol: str
    is_healthy: bool
    latency_ms: float | None


class HealthHourlyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    hour_start: datetime
    server_name: str
    protocol: str
    sample_count: int
    healthy_count: int
    uptime_percent: float
    avg_latency_ms: float | None
    min_latency_ms: float | None
    max_latency_ms: float | None
    p95_latency_ms: float | None


class SamplesResponse(BaseModel):
    """Raw samples for a query range, newest first."""

    samples: list[HealthSampleResponse]
    total_count: int
    query_start: datetime
    query_end: datetime


class HourlyResponse(BaseModel):
    """Hourly rollups for a query range, newest first."""

    hourly: list[HealthHourlyResponse]
    total_count: int
    query_start: datetime
    query_end: datetime


class HistoryResponse(BaseModel):
    """Either raw samples or hourly rollups, depending on resolution."""

    resolution: str
    samples: list[HealthSampleResponse] | None = None
    hourly: list[HealthHourlyResponse] | None = None
    total_count: int
    query_start: datetime
    query_end: datetime


class ServerMetricsSummaryResponse(BaseModel):
    """Range of metrics data held for one server."""

    model_config = ConfigDict(from_attributes=True)

    server_name: str
    protocol: str
    first_sample: datetime
    last_sample: datetime
    total_samples: int
