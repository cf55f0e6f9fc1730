"""WebSocket subscription manager for pushed fleet updates.

Each manager serves one channel: the status channel receives a full snapshot
per broadcast cycle, the metrics channel receives the samples written in that
cycle. Delivery is best-effort; a subscriber whose send fails is dropped.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

STATUS_UPDATE_MESSAGE = "server_status_update"
METRICS_SAMPLE_MESSAGE = "metrics_sample"


class SubscriptionManager:
    """Tracks WebSocket subscribers of one push channel.

    Usage:
        manager = SubscriptionManager("status")

        # In WebSocket endpoint
        await websocket.accept()
        await manager.connect(websocket)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            await manager.disconnect(websocket)

        # In broadcaster loop
        await manager.broadcast(STATUS_UPDATE_MESSAGE, snapshot_data)
    """

    def __init__(self, channel: str):
        self.channel = channel
        self._connections: list[WebSocket] = []
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        """Register an accepted subscriber."""
        async with self._lock:
            self._connections.append(websocket)
        logger.info(f"WebSocket subscribed to {self.channel} ({len(self._connections)} total)")

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a subscriber; unknown sockets are ignored."""
        async with self._lock:
            try:
                self._connections.remove(websocket)
            except ValueError:
                return  # Already removed
        logger.info(f"WebSocket unsubscribed from {self.channel}")

    @staticmethod
    def build_message(message_type: str, data: Any) -> dict[str, Any]:
        return {
            "type": message_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": data,
        }

    async def send(self, websocket: WebSocket, message_type: str, data: Any) -> None:
        """Send a message to a single subscriber."""
        await websocket.send_json(self.build_message(message_type, data))

    async def broadcast(self, message_type: str, data: Any) -> int:
        """Send a message to every subscriber.

        Returns:
            Number of subscribers the message was delivered to
        """
        async with self._lock:
            connections = list(self._connections)

        if not connections:
            return 0

        message = self.build_message(message_type, data)

        disconnected = []
        for websocket in connections:
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Error sending to {self.channel} subscriber: {e}")
                disconnected.append(websocket)

        for websocket in disconnected:
            await self.disconnect(websocket)

        return len(connections) - len(disconnected)

    def get_connection_count(self) -> int:
        return len(self._connections)


# Global instances for use across the application
status_ws_manager = SubscriptionManager("status")
metrics_ws_manager = SubscriptionManager("metrics")
