"""
Notifications WebSocket - the client end of the NotificationBus.

Protocol:
  1. Client connects to /ws
  2. Client sends {"type": "auth", "userId": "..."} (no reply is sent)
  3. Server pushes {"type": "new_message", "data": {...}} frames
  4. Either side closes; unauthenticated connections are closed by the
     server after REALTIME_AUTH_TIMEOUT_SECONDS

Liveness of idle connections is checked by the WebSocket protocol ping that
uvicorn sends (WS_PING_INTERVAL / WS_PING_TIMEOUT).
"""

from logging import getLogger
from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

from unilink.config.logging_config import correlation_id_var
from unilink.infrastructure.realtime.notification_bus import NotificationBus

logger = getLogger(__name__)

router = APIRouter(tags=["notifications"])


class WebSocketTransport:
    """ChannelTransport over a Starlette WebSocket."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    async def send_text(self, data: str) -> None:
        await self._websocket.send_text(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        await self._websocket.close(code=code, reason=reason)


@router.websocket("/ws")
async def notifications_socket(websocket: WebSocket):
    bus = await websocket.app.state.dishka_container.get(NotificationBus)

    await websocket.accept()
    channel = await bus.register_channel(WebSocketTransport(websocket))
    correlation_id_var.set(f"ws:{channel.id}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue
            await bus.handle_incoming(channel, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await bus.deregister_channel(channel)
