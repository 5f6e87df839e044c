"""
Notification Bus - registry of live channels and per-user fan-out.

Guidelines:
- One instance per process, owned by the DI container (APP scope) and passed
  to whoever needs it. No module-level state.
- All registry mutations happen under one asyncio.Lock: register, bind,
  deregister, eviction. Delivery copies the target set under the lock and
  enqueues outside it.
- Delivery never awaits a peer. Frames go into each channel's bounded queue;
  the channel's writer task does the actual write.

Indexes:
    _channels         channel id → Channel                (every open channel)
    _unauthenticated  channel id → Channel, oldest first  (awaiting auth)
    _by_user          UserId → set[Channel]               (authenticated only)

Flow:
    WebSocket accept → register_channel → handle_incoming(auth) → bind
    SendMessageHandler → broadcast(receiver, event) → enqueue per channel
    WebSocket disconnect / write error / auth timeout → deregister_channel
"""

import asyncio
import logging
from collections import defaultdict
from typing import Callable, Optional, Union

from unilink.config.settings import Config
from unilink.domain.events.notification_event import NotificationEvent
from unilink.domain.ports.notifier import Notifier
from unilink.domain.value_objects.user_id import UserId
from unilink.infrastructure.realtime.channel import (
    Channel,
    ChannelState,
    ChannelTransport,
)
from unilink.infrastructure.realtime.frames import (
    AuthFrame,
    MalformedFrameError,
    encode_event,
    parse_client_frame,
)

logger = logging.getLogger(__name__)

# Application-defined WebSocket close codes (4000-4999)
CLOSE_AUTH_TIMEOUT = 4001
CLOSE_TOO_MANY_PENDING = 4008
CLOSE_WRITE_FAILED = 1011
CLOSE_GOING_AWAY = 1001

IdentityVerifier = Callable[[UserId, Optional[str]], bool]


class NotificationBus(Notifier):
    """
    In-process Notifier backed by live WebSocket channels.

    Args:
        auth_timeout: seconds an unauthenticated channel may stay open
        max_unauthenticated: pending channels allowed before the oldest is evicted
        send_buffer_size: frames queued per channel before new ones are dropped
        identity_verifier: optional check of (userId, token) from the auth frame
    """

    def __init__(
        self,
        auth_timeout: float = Config.REALTIME_AUTH_TIMEOUT_SECONDS,
        max_unauthenticated: int = Config.REALTIME_MAX_UNAUTHENTICATED,
        send_buffer_size: int = Config.REALTIME_SEND_BUFFER,
        identity_verifier: Optional[IdentityVerifier] = None,
    ):
        if auth_timeout <= 0:
            raise ValueError("auth_timeout must be positive")
        if max_unauthenticated < 1:
            raise ValueError("max_unauthenticated must be at least 1")
        if send_buffer_size < 1:
            raise ValueError("send_buffer_size must be at least 1")

        self._auth_timeout = auth_timeout
        self._max_unauthenticated = max_unauthenticated
        self._send_buffer_size = send_buffer_size
        self._identity_verifier = identity_verifier

        self._lock = asyncio.Lock()
        self._channels: dict[str, Channel] = {}
        self._unauthenticated: dict[str, Channel] = {}
        self._by_user: defaultdict[UserId, set[Channel]] = defaultdict(set)

    # ==================== INTROSPECTION ====================

    @property
    def channel_count(self) -> int:
        return len(self._channels)

    @property
    def unauthenticated_count(self) -> int:
        return len(self._unauthenticated)

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        return self._channels.get(channel_id)

    def channels_for(self, user_id: UserId) -> frozenset[Channel]:
        return frozenset(self._by_user.get(user_id, ()))

    def connected_users(self) -> set[UserId]:
        return set(self._by_user)

    # ==================== LIFECYCLE ====================

    async def register_channel(self, transport: ChannelTransport) -> Channel:
        """
        Register a freshly accepted connection as an unauthenticated channel.

        Never fails. When the pending-auth cap is reached the oldest pending
        channel is closed to make room.
        """
        channel = Channel(
            transport,
            send_buffer_size=self._send_buffer_size,
            on_write_failure=self._on_write_failure,
        )
        evicted: list[Channel] = []

        async with self._lock:
            while len(self._unauthenticated) >= self._max_unauthenticated:
                oldest = next(iter(self._unauthenticated.values()))
                self._remove_locked(oldest)
                evicted.append(oldest)
            self._channels[channel.id] = channel
            self._unauthenticated[channel.id] = channel
            channel.start(auth_timer=self._enforce_auth_deadline)

        for old in evicted:
            logger.warning(
                f"[NotificationBus] Evicting pending channel {old.id}: "
                f"more than {self._max_unauthenticated} channels awaiting auth"
            )
            await old.close_transport(CLOSE_TOO_MANY_PENDING, "Too many pending connections")
            await old.wait_closed()

        logger.info(
            f"[NotificationBus] Channel {channel.id} registered "
            f"({len(self._channels)} open)"
        )
        return channel

    async def deregister_channel(self, channel: Channel) -> None:
        """Remove a channel from every index. Safe to call more than once."""
        async with self._lock:
            removed = self._remove_locked(channel)
        await channel.wait_closed()
        if removed:
            logger.info(
                f"[NotificationBus] Channel {channel.id} closed "
                f"(user {channel.user_id}, {len(self._channels)} open)"
            )

    async def close(self) -> None:
        """Close every channel. Called once on application shutdown."""
        async with self._lock:
            channels = list(self._channels.values())
            for channel in channels:
                self._remove_locked(channel)

        for channel in channels:
            await channel.close_transport(CLOSE_GOING_AWAY, "Server shutting down")
            await channel.wait_closed()
        if channels:
            logger.info(f"[NotificationBus] Closed {len(channels)} channel(s) on shutdown")

    # ==================== INBOUND ====================

    async def handle_incoming(self, channel: Channel, raw_frame: Union[str, bytes]) -> None:
        """
        Process one frame received on ``channel``.

        Bad frames are logged and ignored; they never close the channel.
        """
        if not channel.is_open:
            return

        try:
            frame = parse_client_frame(raw_frame)
        except MalformedFrameError as e:
            logger.warning(
                f"[NotificationBus] Ignoring malformed frame on channel {channel.id}: {e}"
            )
            return

        if isinstance(frame, AuthFrame):
            await self._authenticate(channel, frame)
        else:
            logger.debug(
                f"[NotificationBus] Ignoring frame of unknown type {frame.type!r} "
                f"on channel {channel.id}"
            )

    async def _authenticate(self, channel: Channel, frame: AuthFrame) -> None:
        user_id = UserId(frame.user_id)

        if channel.user_id is not None:
            self._log_rebind(channel, user_id)
            return

        if self._identity_verifier is not None and not self._identity_verifier(
            user_id, frame.token
        ):
            logger.warning(
                f"[NotificationBus] Auth rejected on channel {channel.id} "
                f"for user {user_id}: token does not match"
            )
            return

        async with self._lock:
            if channel.id not in self._channels or not channel.is_open:
                return
            # A concurrent auth frame may have won while we waited for the lock
            if channel.user_id is not None:
                self._log_rebind(channel, user_id)
                return
            channel.bind(user_id)
            self._unauthenticated.pop(channel.id, None)
            self._by_user[user_id].add(channel)
            sessions = len(self._by_user[user_id])

        logger.info(
            f"[NotificationBus] Channel {channel.id} authenticated as user {user_id} "
            f"({sessions} open session(s))"
        )

    @staticmethod
    def _log_rebind(channel: Channel, user_id: UserId) -> None:
        if channel.user_id == user_id:
            logger.debug(f"[NotificationBus] Duplicate auth on channel {channel.id}")
        else:
            logger.warning(
                f"[NotificationBus] Ignoring auth as {user_id} on channel {channel.id}: "
                f"already bound to {channel.user_id}"
            )

    # ==================== OUTBOUND ====================

    async def broadcast(self, target_user_id: UserId, event: NotificationEvent) -> int:
        """
        Queue ``event`` on every authenticated channel of ``target_user_id``.

        Returns the number of channels that accepted the frame.
        """
        return await self.deliver_frame(target_user_id, encode_event(event))

    async def deliver_frame(self, target_user_id: UserId, frame: str) -> int:
        """Queue an already-encoded frame for ``target_user_id``."""
        async with self._lock:
            targets = list(self._by_user.get(target_user_id, ()))

        if not targets:
            logger.debug(f"[NotificationBus] No open channel for user {target_user_id}")
            return 0

        delivered = 0
        for channel in targets:
            if channel.enqueue(frame):
                delivered += 1
        return delivered

    # ==================== INTERNALS ====================

    def _remove_locked(self, channel: Channel) -> bool:
        """Drop ``channel`` from all indexes. Caller holds the lock."""
        removed = self._channels.pop(channel.id, None) is not None
        self._unauthenticated.pop(channel.id, None)
        if channel.user_id is not None:
            sessions = self._by_user.get(channel.user_id)
            if sessions is not None:
                sessions.discard(channel)
                if not sessions:
                    del self._by_user[channel.user_id]
        channel.shutdown()
        return removed

    async def _enforce_auth_deadline(self, channel: Channel) -> None:
        await asyncio.sleep(self._auth_timeout)
        if channel.state is not ChannelState.UNAUTHENTICATED:
            return
        logger.info(
            f"[NotificationBus] Channel {channel.id} sent no auth frame within "
            f"{self._auth_timeout}s, closing"
        )
        await self.deregister_channel(channel)
        await channel.close_transport(CLOSE_AUTH_TIMEOUT, "Authentication timeout")

    async def _on_write_failure(self, channel: Channel) -> None:
        await self.deregister_channel(channel)
        await channel.close_transport(CLOSE_WRITE_FAILED, "Delivery failed")
