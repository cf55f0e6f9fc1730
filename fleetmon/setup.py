"""Monitoring services setup and initialization.

This module builds and holds the global monitoring services:
- MetricsStore: SQLite-backed samples and rollups
- KubernetesDiscovery: fleet discovery
- StatusBroadcaster: recurring probe cycle and latest-snapshot owner
- QueryService: read-side facade used by the API

Usage:
    from fleetmon.setup import init_monitoring, shutdown_monitoring, get_services

    # During startup:
    services = await init_monitoring()

    # Later, anywhere in the app:
    services = get_services()
    if services:
        snapshot = services.broadcaster.get_latest()

    # During shutdown:
    await shutdown_monitoring()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from fleetmon.config import Settings, settings as default_settings
from fleetmon.db.database import create_engine, create_session_factory, ensure_data_directory, init_db
from fleetmon.discovery.kubernetes import KubernetesDiscovery
from fleetmon.health.broadcaster import ServerDiscovery, StatusBroadcaster
from fleetmon.health.prober import TcpProber
from fleetmon.health.websocket import metrics_ws_manager, status_ws_manager
from fleetmon.metrics.store import MetricsStore
from fleetmon.query.service import QueryService

logger = logging.getLogger(__name__)


@dataclass
class MonitoringServices:
    """Container for all monitoring services.

    Attributes:
        settings: Settings the services were built from
        engine: Async engine for the metrics database
        store: Metrics store
        discovery: Fleet discovery
        prober: TCP prober
        broadcaster: Status broadcaster (not started here)
        query: Query facade
    """

    settings: Settings
    engine: AsyncEngine
    store: MetricsStore
    discovery: ServerDiscovery
    prober: TcpProber
    broadcaster: StatusBroadcaster
    query: QueryService


# Global state for services
_services: MonitoringServices | None = None


async def init_monitoring(
    config: Settings | None = None,
    discovery: ServerDiscovery | None = None,
) -> MonitoringServices:
    """Initialize all monitoring services.

    Creates the data directory and schema before anything else; failures
    there propagate and abort startup. Background work is started separately
    by fleetmon.workers.setup.init_workers().

    If called when services are already initialized, the old services are
    shut down and replaced.

    Args:
        config: Optional settings. If None, uses the module-level settings.
        discovery: Optional discovery override (tests, local runs)

    Returns:
        MonitoringServices containing all initialized services.
    """
    global _services

    if _services is not None:
        logger.info("Replacing existing monitoring services")
        await shutdown_monitoring()

    if config is None:
        config = default_settings

    ensure_data_directory(config.database_path.parent)

    engine = create_engine(config.database_url, echo=config.debug)
    await init_db(engine)

    store = MetricsStore(create_session_factory(engine))

    if discovery is None:
        discovery = KubernetesDiscovery(
            namespace=config.k8s_namespace,
            label_selector=config.fleet_label_selector,
            self_name=config.self_name,
            in_cluster=config.k8s_in_cluster,
            request_timeout=config.k8s_request_timeout_seconds,
        )

    prober = TcpProber(timeout=config.probe_timeout_seconds)

    broadcaster = StatusBroadcaster(
        discovery=discovery,
        prober=prober,
        store=store,
        status_channel=status_ws_manager,
        metrics_channel=metrics_ws_manager,
        interval=config.broadcast_interval_seconds,
        startup_delay=config.broadcast_startup_delay_seconds,
        probe_timeout=config.probe_timeout_seconds,
    )

    query = QueryService(
        discovery=discovery,
        snapshots=broadcaster,
        store=store,
        max_raw_query_days=config.max_raw_query_days,
    )

    _services = MonitoringServices(
        settings=config,
        engine=engine,
        store=store,
        discovery=discovery,
        prober=prober,
        broadcaster=broadcaster,
        query=query,
    )

    logger.info(f"Monitoring services initialized: database={config.database_path}")

    return _services


async def shutdown_monitoring() -> None:
    """Dispose the database engine and clear global state.

    Safe to call multiple times or before initialization.
    """
    global _services

    if _services is None:
        logger.debug("No monitoring services to shutdown")
        return

    await _services.engine.dispose()
    _services = None

    logger.info("Monitoring services shutdown complete")


def get_services() -> MonitoringServices | None:
    """Get the global services, or None if not yet initialized."""
    return _services


def set_services(services: MonitoringServices | None) -> None:
    """Set the global services instance."""
    global _services
    _services = services
