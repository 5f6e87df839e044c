"""
Redis Notification Relay - share one logical bus across server processes.

A message may be stored by process A while the receiver's WebSocket is held
by process B. The relay publishes every encoded frame to a per-user Redis
channel; each process listens on the pattern and hands frames to its own
NotificationBus, which delivers to whatever channels it holds locally.

Redis keys:
    notify:user:{user_id}   pub/sub channel carrying ready-to-send JSON frames

Failure policy:
- Publish errors fall back to local delivery (the receiver may be here).
- Listener errors are logged; the listener resubscribes after a pause.
- Nothing here raises into the message-send workflow.
"""

import asyncio
import logging
from typing import Optional

from redis.asyncio import Redis
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from unilink.config.settings import Config
from unilink.domain.events.notification_event import NotificationEvent
from unilink.domain.ports.notifier import Notifier
from unilink.domain.value_objects.user_id import UserId
from unilink.infrastructure.realtime.frames import encode_event
from unilink.infrastructure.realtime.notification_bus import NotificationBus

logger = logging.getLogger(__name__)


class RedisNotificationRelay(Notifier):
    CHANNEL_PREFIX = "notify:user:"

    def __init__(
        self,
        redis: Redis,
        bus: NotificationBus,
        retry_seconds: float = Config.REALTIME_RELAY_RETRY_SECONDS,
    ):
        self._redis = redis
        self._bus = bus
        self._retry_seconds = retry_seconds
        self._listener: Optional[asyncio.Task] = None

    @classmethod
    def channel_for(cls, user_id: UserId) -> str:
        return f"{cls.CHANNEL_PREFIX}{user_id.value}"

    @property
    def is_listening(self) -> bool:
        return self._listener is not None and not self._listener.done()

    async def broadcast(self, target_user_id: UserId, event: NotificationEvent) -> int:
        """
        Publish the encoded event for every process to deliver.

        Returns the number of processes that received the publish, or the
        number of local channels when Redis is unavailable.
        """
        frame = encode_event(event)
        try:
            return await self._redis.publish(self.channel_for(target_user_id), frame)
        except RedisError as e:
            logger.warning(
                f"[NotifyRelay] Publish for user {target_user_id} failed ({e}), "
                "delivering locally only"
            )
            return await self._bus.deliver_frame(target_user_id, frame)

    async def start(self) -> None:
        if self.is_listening:
            return
        self._listener = asyncio.create_task(self._listen(), name="notify-relay-listener")
        logger.info(f"[NotifyRelay] Listening on {self.CHANNEL_PREFIX}*")

    async def stop(self) -> None:
        if self._listener is None:
            return
        self._listener.cancel()
        await asyncio.gather(self._listener, return_exceptions=True)
        self._listener = None
        logger.info("[NotifyRelay] Stopped")

    async def _listen(self) -> None:
        while True:
            pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
            try:
                await pubsub.psubscribe(f"{self.CHANNEL_PREFIX}*")
                await self._consume(pubsub)
            except RedisError as e:
                logger.error(
                    f"[NotifyRelay] Subscription lost ({e}), "
                    f"retrying in {self._retry_seconds}s"
                )
            except Exception:
                # The listener is the only path into local sessions and must not die
                logger.exception(
                    f"[NotifyRelay] Listener failed, retrying in {self._retry_seconds}s"
                )
            finally:
                await pubsub.aclose()
            await asyncio.sleep(self._retry_seconds)

    async def _consume(self, pubsub: PubSub) -> None:
        async for item in pubsub.listen():
            if item.get("type") != "pmessage":
                continue
            channel = item.get("channel") or ""
            if isinstance(channel, bytes):
                channel = channel.decode("utf-8")
            raw_user_id = channel[len(self.CHANNEL_PREFIX):]
            frame = item.get("data")
            if isinstance(frame, bytes):
                frame = frame.decode("utf-8")
            try:
                user_id = UserId(raw_user_id)
            except ValueError:
                logger.warning(f"[NotifyRelay] Ignoring frame on bad channel {channel!r}")
                continue
            await self._bus.deliver_frame(user_id, frame)
