# fleetmon/main.py
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fleetmon import __version__
from fleetmon.api.hubs import router as hubs_router
from fleetmon.api.metrics import router as metrics_router
from fleetmon.api.servers import router as servers_router
from fleetmon.config import settings
from fleetmon.setup import init_monitoring, shutdown_monitoring
from fleetmon.workers.setup import init_workers, shutdown_workers

logger = logging.getLogger(__name__)

ENDPOINTS = [
    "/health",
    "/hubs/status",
    "/hubs/metrics",
    "/api/version",
    "/api/servers",
    "/api/status",
    "/api/servers/{name}",
    "/api/metrics/samples",
    "/api/metrics/hourly",
    "/api/metrics/history",
    "/api/metrics/servers",
]


def configure_logging(level: str = "INFO") -> None:
    """Send application logs to stderr in a uniform format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup: schema before any background task
    configure_logging(settings.log_level)
    services = await init_monitoring(settings)
    await init_workers(services)
    logger.info("Fleet monitor started")
    yield
    # Shutdown
    logger.info("Fleet monitor shutting down...")
    await shutdown_workers()
    await shutdown_monitoring()


app = FastAPI(title="Fleet Monitor", version=__version__, lifespan=lifespan)

# Include routers
app.include_router(servers_router)
app.include_router(metrics_router)
app.include_router(hubs_router)


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {"name": "Fleet Monitor", "version": __version__, "endpoints": ENDPOINTS}
