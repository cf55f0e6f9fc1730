"""Tests for historical metrics API endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from fleetmon.metrics.stats import compute_rollup
from fleetmon.models.health import HealthSample

START = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


def params(start: datetime, end: datetime, **extra) -> dict:
    return {"from": start.isoformat(), "to": end.isoformat(), **extra}


@pytest_asyncio.fixture
async def seeded(store):
    await store.append_samples(
        [
            HealthSample(timestamp=START, server_name="ftp", protocol="FTP", is_healthy=True, latency_ms=12.0),
            HealthSample(
                timestamp=START + timedelta(minutes=1), server_name="ftp", protocol="FTP", is_healthy=False, latency_ms=None
            ),
            HealthSample(timestamp=START, server_name="s3", protocol="S3", is_healthy=True, latency_ms=3.0),
        ]
    )
    await store.insert_rollups(START, [("ftp", "FTP", compute_rollup([(True, 12.0), (False, None)]))])
    return store


class TestSamplesEndpoint:
    """Tests for /api/metrics/samples."""

    @pytest.mark.asyncio
    async def test_returns_samples_newest_first(self, client, seeded):
        response = await client.get("/api/metrics/samples", params=params(START, START + timedelta(hours=1)))

        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 3
        assert data["samples"][0]["is_healthy"] is False
        assert data["samples"][0]["latency_ms"] is None

    @pytest.mark.asyncio
    async def test_filters_by_server_and_protocol(self, client, seeded):
        response = await client.get(
            "/api/metrics/samples", params=params(START, START + timedelta(hours=1), protocol="s3")
        )

        assert [s["server_name"] for s in response.json()["samples"]] == ["s3"]

        response = await client.get(
            "/api/metrics/samples", params=params(START, START + timedelta(hours=1), server="ftp")
        )

        assert response.json()["total_count"] == 2

    @pytest.mark.asyncio
    async def test_end_before_start_is_rejected(self, client):
        response = await client.get("/api/metrics/samples", params=params(START, START))

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_raw_range_over_seven_days_is_rejected(self, client):
        response = await client.get("/api/metrics/samples", params=params(START, START + timedelta(days=8)))

        assert response.status_code == 400
        assert "hourly" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_missing_range_is_a_validation_error(self, client):
        response = await client.get("/api/metrics/samples")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_accepts_start_end_as_range_names(self, client, seeded):
        response = await client.get(
            "/api/metrics/samples",
            params={"start": START.isoformat(), "end": (START + timedelta(hours=1)).isoformat(), "server": "ftp"},
        )

        assert response.status_code == 200
        assert response.json()["total_count"] == 2

    @pytest.mark.asyncio
    async def test_half_open_range_is_a_validation_error(self, client):
        response = await client.get("/api/metrics/samples", params={"from": START.isoformat()})

        assert response.status_code == 422


class TestHourlyEndpoint:
    """Tests for /api/metrics/hourly."""

    @pytest.mark.asyncio
    async def test_returns_rollups_with_uptime(self, client, seeded):
        response = await client.get("/api/metrics/hourly", params=params(START, START + timedelta(days=30)))

        assert response.status_code == 200
        [rollup] = response.json()["hourly"]
        assert rollup["server_name"] == "ftp"
        assert rollup["sample_count"] == 2
        assert rollup["healthy_count"] == 1
        assert rollup["uptime_percent"] == 50.0
        assert rollup["p95_latency_ms"] == 12.0

    @pytest.mark.asyncio
    async def test_from_to_with_server_filter(self, client, seeded):
        response = await client.get(
            "/api/metrics/hourly",
            params={"server": "ftp", "from": START.isoformat(), "to": (START + timedelta(days=1)).isoformat()},
        )

        assert response.status_code == 200
        assert [h["server_name"] for h in response.json()["hourly"]] == ["ftp"]
        assert response.json()["query_start"].startswith("2026-03-02T10:00:00")

    @pytest.mark.asyncio
    async def test_end_before_start_is_rejected(self, client):
        response = await client.get("/api/metrics/hourly", params=params(START, START - timedelta(hours=1)))

        assert response.status_code == 400


class TestHistoryEndpoint:
    @pytest.mark.asyncio
    async def test_raw_resolution(self, client, seeded):
        response = await client.get(
            "/api/metrics/history", params=params(START, START + timedelta(hours=1), resolution="raw")
        )

        data = response.json()
        assert data["resolution"] == "raw"
        assert data["total_count"] == 3
        assert data["hourly"] is None

    @pytest.mark.asyncio
    async def test_hourly_resolution_is_default(self, client, seeded):
        response = await client.get("/api/metrics/history", params=params(START, START + timedelta(hours=1)))

        data = response.json()
        assert data["resolution"] == "hourly"
        assert len(data["hourly"]) == 1

    @pytest.mark.asyncio
    async def test_unknown_resolution(self, client):
        response = await client.get(
            "/api/metrics/history", params=params(START, START + timedelta(hours=1), resolution="minute")
        )

        assert response.status_code == 422


class TestServersWithMetrics:
    @pytest.mark.asyncio
    async def test_lists_servers_with_ranges(self, client, seeded):
        response = await client.get("/api/metrics/servers")

        assert response.status_code == 200
        data = {s["server_name"]: s for s in response.json()}
        assert data["ftp"]["total_samples"] == 2
        assert data["s3"]["protocol"] == "S3"
