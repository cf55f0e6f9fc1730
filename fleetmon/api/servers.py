"""Fleet discovery and live status API endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from fleetmon import __version__
from fleetmon.api.dependencies import get_query_service
from fleetmon.errors import PlatformUnavailable
from fleetmon.query.service import QueryService
from fleetmon.schemas.fleet import ServerResponse, StatusSnapshotResponse

router = APIRouter(prefix="/api", tags=["servers"])


@router.get("/version")
async def get_version() -> dict[str, str]:
    return {"api": __version__}


@router.get("/servers", response_model=list[ServerResponse])
async def list_servers(query: QueryService = Depends(get_query_service)) -> list[ServerResponse]:
    """List all servers currently discovered in the cluster."""
    try:
        servers = await query.list_servers()
    except PlatformUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return [ServerResponse.model_validate(s) for s in servers]


@router.get("/status", response_model=StatusSnapshotResponse)
async def get_status(query: QueryService = Depends(get_query_service)) -> StatusSnapshotResponse:
    """Latest cached fleet status; 404 until the first broadcast cycle completes."""
    snapshot = query.latest_status()
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Status not yet available")
    return StatusSnapshotResponse.model_validate(snapshot)


@router.get("/servers/{name}", response_model=ServerResponse)
async def get_server(name: str, query: QueryService = Depends(get_query_service)) -> ServerResponse:
    """Get a single server by name (case-insensitive)."""
    try:
        server = await query.get_server(name)
    except PlatformUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    if server is None:
        raise HTTPException(status_code=404, detail=f"Server '{name}' not found")
    return ServerResponse.model_validate(server)
