from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fleetmon.api.dependencies import current_query_service
from fleetmon.health.snapshot import SnapshotCache
from fleetmon.main import app
from fleetmon.query.service import QueryService


@pytest.fixture
def discovery():
    mock = AsyncMock()
    mock.discover = AsyncMock(return_value=[])
    mock.get_server = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def snapshot_cache():
    return SnapshotCache()


@pytest_asyncio.fixture
async def query_service(discovery, snapshot_cache, store):
    return QueryService(discovery=discovery, snapshots=snapshot_cache, store=store)


@pytest_asyncio.fixture
async def client(query_service):
    """HTTP client wired to a test QueryService (lifespan not run)."""
    app.dependency_overrides[current_query_service] = lambda: query_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
