"""Tests for settings defaults and environment overrides."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from fleetmon.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FLEETMON_DATA_PATH", raising=False)
        settings = Settings(_env_file=None)

        assert settings.data_path == Path("/mnt/control-data")
        assert settings.database_path == Path("/mnt/control-data/metrics.db")
        assert settings.probe_timeout_seconds == 5.0
        assert settings.broadcast_interval_seconds == 5.0
        assert settings.rollup_interval_seconds == 3600.0
        assert settings.rollup_startup_delay_seconds == 300.0
        assert settings.retention_days == 7
        assert settings.retention_startup_delay_seconds == 600.0
        assert settings.max_raw_query_days == 7
        assert settings.k8s_request_timeout_seconds == 10.0

    def test_environment_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FLEETMON_DATA_PATH", str(tmp_path))
        monkeypatch.setenv("FLEETMON_RETENTION_DAYS", "3")

        settings = Settings(_env_file=None)

        assert settings.retention_days == 3
        assert settings.database_url == f"sqlite+aiosqlite:///{tmp_path / 'metrics.db'}"

    @pytest.mark.parametrize(
        "field",
        ["retention_days", "rollup_backfill_hours", "k8s_request_timeout_seconds"],
    )
    def test_zero_is_rejected(self, field):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: 0})
