"""Tests for the WebSocket transaction stream."""
import asyncio
import orjson
import pytest
from unittest.mock import AsyncMock
from starlette.testclient import TestClient
from transaction_time.main import app
from transaction_time.event_models import Event
from transaction_time.streaming.websocket import stream_manager, RateLimiter


@pytest.mark.asyncio
async def test_rate_limiter():
    limiter = RateLimiter(max_messages=5, window_seconds=1)

    for _ in range(5):
        assert limiter.check_limit() is True
    assert limiter.check_limit() is False

    await asyncio.sleep(1.1)
    assert limiter.check_limit() is True


@pytest.mark.asyncio
async def test_stream_manager_connection_count():
    initial_count = stream_manager.connection_count

    mock_ws = AsyncMock()
    await stream_manager.connect(mock_ws)
    assert stream_manager.connection_count == initial_count + 1

    stream_manager.disconnect(mock_ws)
    assert stream_manager.connection_count == initial_count


@pytest.mark.asyncio
async def test_broadcast_result():
    mock_ws = AsyncMock()
    await stream_manager.connect(mock_ws)
    try:
        result = Event(timestamp=10, tags=["TransactionTime"], data={"transaction_time": 3})
        await stream_manager.broadcast_result(result)
    finally:
        stream_manager.disconnect(mock_ws)

    message = orjson.loads(mock_ws.send_bytes.call_args[0][0])
    assert message["type"] == "transaction"
    assert message["data"]["data"]["transaction_time"] == 3
    assert message["data"]["id"] == result.id


@pytest.mark.asyncio
async def test_broadcast_drops_failed_clients():
    broken = AsyncMock()
    broken.send_bytes.side_effect = RuntimeError("closed")
    await stream_manager.connect(broken)

    await stream_manager.broadcast_result(Event())

    assert broken not in stream_manager._connections


def test_websocket_welcome():
    client = TestClient(app)
    with client.websocket_connect("/ws") as websocket:
        data = websocket.receive_json()
        assert data["type"] == "welcome"
        assert data["rate_limit"]["max_messages"] == 100


def test_websocket_ping_pong():
    client = TestClient(app)
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_text("ping")
        assert websocket.receive_text() == "pong"

