"""Tests for worker setup and lifecycle."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fleetmon.config import Settings


def make_services():
    services = MagicMock()
    services.settings = Settings()
    services.broadcaster.start = MagicMock()
    services.broadcaster.stop = AsyncMock()
    return services


class TestWorkerSetup:
    """Tests for worker initialization and shutdown."""

    @pytest.mark.asyncio
    async def test_init_workers_starts_broadcaster_and_jobs(self):
        from fleetmon.workers import setup

        setup._scheduler = None
        setup._services = None
        services = make_services()

        scheduler = await setup.init_workers(services)

        try:
            services.broadcaster.start.assert_called_once()
            assert scheduler.running

            jobs = {job.id: job for job in scheduler.get_jobs()}
            assert set(jobs) == {"rollup_generation", "retention_cleanup"}
            assert jobs["rollup_generation"].max_instances == 1
            assert jobs["rollup_generation"].coalesce is True
        finally:
            await setup.shutdown_workers()

    @pytest.mark.asyncio
    async def test_shutdown_workers_stops_everything(self):
        from fleetmon.workers import setup

        setup._scheduler = None
        setup._services = None
        services = make_services()

        await setup.init_workers(services)
        await setup.shutdown_workers()

        assert setup._scheduler is None
        services.broadcaster.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_before_init_is_safe(self):
        from fleetmon.workers import setup

        setup._scheduler = None
        setup._services = None

        await setup.shutdown_workers()

    @pytest.mark.asyncio
    async def test_rollup_job_logs_and_swallows_failures(self):
        from fleetmon.workers import setup

        services = make_services()
        with patch("fleetmon.workers.rollup.RollupGenerator.generate", AsyncMock(side_effect=RuntimeError("boom"))):
            await setup._run_rollup_generation(services)

    @pytest.mark.asyncio
    async def test_retention_job_uses_configured_horizon(self):
        from fleetmon.workers import setup

        services = make_services()
        services.settings = Settings(retention_days=3)
        services.store.delete_samples_before = AsyncMock(return_value=0)
        services.store.delete_rollups_before = AsyncMock(return_value=0)

        await setup._run_retention_cleanup(services)

        services.store.delete_samples_before.assert_awaited_once()
