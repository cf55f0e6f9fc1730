"""Tests for monitoring services setup."""

from unittest.mock import AsyncMock

import pytest

from fleetmon import setup
from fleetmon.config import Settings


@pytest.fixture(autouse=True)
def reset_services():
    setup.set_services(None)
    yield
    setup.set_services(None)


class TestInitMonitoring:
    @pytest.mark.asyncio
    async def test_creates_database_and_wires_services(self, tmp_path):
        config = Settings(_env_file=None, data_path=tmp_path / "data")
        discovery = AsyncMock()

        services = await setup.init_monitoring(config, discovery=discovery)

        try:
            assert config.database_path.exists()
            assert setup.get_services() is services
            assert services.discovery is discovery
            assert services.query.latest_status() is None
            assert await services.store.list_known_servers() == []
        finally:
            await setup.shutdown_monitoring()

        assert setup.get_services() is None

    @pytest.mark.asyncio
    async def test_unwritable_data_path_is_fatal(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        config = Settings(_env_file=None, data_path=blocker / "data")

        with pytest.raises(OSError):
            await setup.init_monitoring(config, discovery=AsyncMock())

    @pytest.mark.asyncio
    async def test_shutdown_before_init_is_safe(self):
        await setup.shutdown_monitoring()
