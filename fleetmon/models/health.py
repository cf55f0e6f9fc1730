# fleetmon/models/health.py
"""SQLAlchemy models for raw health samples and hourly rollups."""

from datetime import datetime

from sqlalchemy import Boolean, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleetmon.db.database import Base
from fleetmon.db.types import UTCDateTime


class HealthSample(Base):
    """One probe result for one server in one broadcast cycle.

    Append-only. latency_ms is NULL exactly when is_healthy is false.
    """

    __tablename__ = "health_samples"
    __table_args__ = (
        # Time-range queries per server
        Index("ix_health_samples_server_timestamp", "server_name", "timestamp"),
        # Range deletes by the retention reaper
        Index("ix_health_samples_timestamp", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    server_name: Mapped[str] = mapped_column(String(63), nullable=False)
    protocol: Mapped[str] = mapped_column(String(20), nullable=False)  # FTP, SFTP, NFS, ...
    is_healthy: Mapped[bool] = mapped_column(Boolean, nullable=False)
    latency_ms: Mapped[float | None] = mapped_column(Float, nullable=True)


class HealthHourly(Base):
    """Hourly aggregate of a server's samples.

    Latency statistics are computed over healthy samples only and are NULL
    when the hour had none.
    """

    __tablename__ = "health_hourly"
    __table_args__ = (
        UniqueConstraint("hour_start", "server_name", name="uq_health_hourly_hour_server"),
        Index("ix_health_hourly_server_hour", "server_name", "hour_start"),
        Index("ix_health_hourly_hour_start", "hour_start"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hour_start: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    server_name: Mapped[str] = mapped_column(String(63), nullable=False)
    protocol: Mapped[str] = mapped_column(String(20), nullable=False)

    sample_count: Mapped[int] = mapped_column(Integer, nullable=False)
    healthy_count: Mapped[int] = mapped_column(Integer, nullable=False)

    avg_latency_ms: Mapped[float | None] = mapped_column(Float, nullable=True)
    min_latency_ms: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_latency_ms: Mapped[float | None] = mapped_column(Float, nullable=True)
    p95_latency_ms: Mapped[float | None] = mapped_column(Float, nullable=True)

    @property
    def uptime_percent(self) -> float:
        """Share of healthy samples in the hour, 0-100 rounded to one decimal."""
        if self.sample_count <= 0:
            return 0.0
        return round(self.healthy_count / self.sample_count * 100, 1)
