import pytest
import pytest_asyncio

from fleetmon.db.database import create_engine, create_session_factory, init_db
from fleetmon.discovery.models import ServerDescriptor
from fleetmon.metrics.store import MetricsStore


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite engine with the metrics schema.

    A file (not :memory:) so that concurrent sessions share one database in
    WAL mode, as in production.
    """
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'metrics.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def store(session_factory):
    return MetricsStore(session_factory)


@pytest.fixture
def make_server():
    """Factory for ServerDescriptor with running, ready defaults."""

    def _make(
        name: str,
        protocol: str = "FTP",
        host: str = "127.0.0.1",
        port: int = 21,
        lifecycle_state: str = "Running",
        pod_ready: bool = True,
    ) -> ServerDescriptor:
        return ServerDescriptor(
            name=name,
            protocol=protocol,
            host=host,
            port=port,
            lifecycle_state=lifecycle_state,
            pod_name=f"file-sim-file-simulator-{name}-abc12",
            service_name=f"file-sim-file-simulator-{name}",
            pod_ready=pod_ready,
        )

    return _make
