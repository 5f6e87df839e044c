"""
Realtime Layer - push notifications over WebSocket.

- notification_bus.py → channel registry, auth binding, per-user fan-out
- channel.py          → one connection: state, bounded send queue, writer task
- frames.py           → client/server wire frames
- redis_relay.py      → cross-process fan-out over Redis pub/sub
"""

from unilink.infrastructure.realtime.channel import (
    Channel,
    ChannelState,
    ChannelTransport,
    IdentityAlreadyBoundError,
)
from unilink.infrastructure.realtime.frames import (
    AuthFrame,
    MalformedFrameError,
    encode_event,
    parse_client_frame,
)
from unilink.infrastructure.realtime.notification_bus import NotificationBus

__all__ = [
    "Channel",
    "ChannelState",
    "ChannelTransport",
    "IdentityAlreadyBoundError",
    "AuthFrame",
    "MalformedFrameError",
    "encode_event",
    "parse_client_frame",
    "NotificationBus",
]
