"""Tests for the WebSocket SubscriptionManager."""

from unittest.mock import AsyncMock

import pytest

from fleetmon.health.websocket import STATUS_UPDATE_MESSAGE, SubscriptionManager


class TestSubscriptionManager:
    """Tests for SubscriptionManager."""

    @pytest.mark.asyncio
    async def test_connect_adds_client(self):
        manager = SubscriptionManager("status")
        mock_ws = AsyncMock()

        await manager.connect(mock_ws)

        assert manager.get_connection_count() == 1

    @pytest.mark.asyncio
    async def test_disconnect_removes_client(self):
        manager = SubscriptionManager("status")
        mock_ws = AsyncMock()

        await manager.connect(mock_ws)
        await manager.disconnect(mock_ws)
        await manager.disconnect(mock_ws)

        assert manager.get_connection_count() == 0

    @pytest.mark.asyncio
    async def test_broadcast_sends_to_all_clients(self):
        manager = SubscriptionManager("status")
        mock_ws1 = AsyncMock()
        mock_ws2 = AsyncMock()
        await manager.connect(mock_ws1)
        await manager.connect(mock_ws2)

        delivered = await manager.broadcast(STATUS_UPDATE_MESSAGE, {"total_servers": 0})

        assert delivered == 2
        message = mock_ws1.send_json.await_args.args[0]
        assert message["type"] == STATUS_UPDATE_MESSAGE
        assert message["data"] == {"total_servers": 0}
        mock_ws2.send_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_client_is_dropped(self):
        manager = SubscriptionManager("status")
        healthy_ws = AsyncMock()
        broken_ws = AsyncMock()
        broken_ws.send_json.side_effect = Exception("Connection closed")
        await manager.connect(healthy_ws)
        await manager.connect(broken_ws)

        delivered = await manager.broadcast(STATUS_UPDATE_MESSAGE, {})

        assert delivered == 1
        assert manager.get_connection_count() == 1
        healthy_ws.send_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_broadcast_without_subscribers(self):
        manager = SubscriptionManager("metrics")

        assert await manager.broadcast("metrics_sample", {}) == 0
