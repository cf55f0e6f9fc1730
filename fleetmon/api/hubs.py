"""WebSocket push channels for live status and metrics samples."""

from fastapi import APIRouter, Depends, WebSocket
from starlette.websockets import WebSocketDisconnect

from fleetmon.api.dependencies import current_query_service
from fleetmon.health.snapshot import snapshot_to_dict
from fleetmon.health.websocket import (
    STATUS_UPDATE_MESSAGE,
    metrics_ws_manager,
    status_ws_manager,
)
from fleetmon.query.service import QueryService

router = APIRouter(prefix="/hubs", tags=["hubs"])

REQUEST_STATUS = "request_status"


@router.websocket("/status")
async def status_hub(
    websocket: WebSocket,
    query: QueryService | None = Depends(current_query_service),
):
    """WebSocket for fleet status updates.

    Receives one server_status_update per broadcast cycle. Sending
    "request_status" returns the current snapshot to this client only; any
    other text is answered with a pong.
    """
    await websocket.accept()
    await status_ws_manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            if data.strip() == REQUEST_STATUS:
                snapshot = query.latest_status() if query is not None else None
                if snapshot is None:
                    await websocket.send_json({"type": "status_unavailable"})
                else:
                    await status_ws_manager.send(websocket, STATUS_UPDATE_MESSAGE, snapshot_to_dict(snapshot))
            else:
                await websocket.send_json({"type": "pong", "received": data})
    except WebSocketDisconnect:
        await status_ws_manager.disconnect(websocket)


@router.websocket("/metrics")
async def metrics_hub(websocket: WebSocket):
    """WebSocket for per-cycle metrics samples."""
    await websocket.accept()
    await metrics_ws_manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            await websocket.send_json({"type": "pong", "received": data})
    except WebSocketDisconnect:
        await metrics_ws_manager.disconnect(websocket)
