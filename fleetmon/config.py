from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FLEETMON_", env_file=".env", extra="ignore")

    # Storage
    data_path: Path = Path("/mnt/control-data")
    database_file: str = "metrics.db"

    # Kubernetes
    k8s_in_cluster: bool = True
    k8s_namespace: str = "file-simulator"
    fleet_label_selector: str = "app.kubernetes.io/name=file-simulator"
    self_name: str = "control-api"
    k8s_request_timeout_seconds: float = Field(default=10.0, gt=0)

    # Probing / broadcast
    probe_timeout_seconds: float = 5.0
    broadcast_interval_seconds: float = 5.0
    broadcast_startup_delay_seconds: float = 2.0

    # Rollups
    rollup_interval_seconds: float = 3600.0
    rollup_startup_delay_seconds: float = 300.0
    rollup_backfill_hours: int = Field(default=24, gt=0)

    # Retention
    retention_days: int = Field(default=7, gt=0)
    retention_interval_seconds: float = 3600.0
    retention_startup_delay_seconds: float = 600.0

    # Query limits
    max_raw_query_days: int = 7

    # App
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    debug: bool = False

    @property
    def database_path(self) -> Path:
        return self.data_path / self.database_file

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.database_path}"


settings = Settings()
