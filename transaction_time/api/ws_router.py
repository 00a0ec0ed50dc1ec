"""WebSocket route streaming completed transactions."""
from fastapi import APIRouter, WebSocket
from ..config import get_settings
from ..streaming.websocket import handle_websocket_stream

router = APIRouter(tags=["websocket"])
settings = get_settings()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Stream result events as transactions complete.

    Messages are JSON objects `{"type": "transaction", "data": {...}}`.
    The server pings every WS_PING_INTERVAL seconds; clients answer "pong".

    Example client (JavaScript):
    ```javascript
    const ws = new WebSocket('ws://localhost:8080/ws');
    ws.onmessage = (event) => {
        const msg = JSON.parse(event.data);
        if (msg.type === 'transaction') {
            console.log(msg.data.data.transaction_time);
        } else if (msg.type === 'ping') {
            ws.send('pong');
        }
    };
    ```
    """
    await handle_websocket_stream(
        websocket,
        ping_interval=settings.WS_PING_INTERVAL,
        rate_limit_messages=settings.WS_RATE_LIMIT_MESSAGES,
        rate_limit_window=settings.WS_RATE_LIMIT_WINDOW,
    )
