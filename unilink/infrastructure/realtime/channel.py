"""
Channel - one live push connection from a client session to the server.

Lifecycle:
    UNAUTHENTICATED --auth frame--> AUTHENTICATED
    UNAUTHENTICATED --timeout-----> CLOSED
    any state ------close/error---> CLOSED   (terminal)

Each channel owns a bounded outbound queue drained by a single writer task, so
frames reach the peer in the order they were enqueued and a slow peer only
ever fills its own queue.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol
from uuid import uuid4

from unilink.domain.value_objects.user_id import UserId

logger = logging.getLogger(__name__)


class ChannelState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class ChannelTransport(Protocol):
    """The write side of a message-framed bidirectional connection."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...


class IdentityAlreadyBoundError(Exception):
    """Raised when a channel that already has a user is bound again."""

    def __init__(self, channel_id: str, user_id: UserId):
        super().__init__(f"Channel {channel_id} is already bound to user {user_id}")
        self.channel_id = channel_id
        self.user_id = user_id


class Channel:
    """
    Registry entry for one connection.

    Created and owned by NotificationBus; other code only reads it.
    """

    def __init__(
        self,
        transport: ChannelTransport,
        send_buffer_size: int,
        on_write_failure: Callable[["Channel"], Awaitable[None]],
    ):
        self.id: str = uuid4().hex
        self.user_id: Optional[UserId] = None
        self.state: ChannelState = ChannelState.UNAUTHENTICATED
        self.dropped_frames: int = 0
        self._transport = transport
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=send_buffer_size)
        self._on_write_failure = on_write_failure
        self._writer: Optional[asyncio.Task] = None
        self._auth_timer: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"Channel(id={self.id}, state={self.state.value}, user_id={self.user_id})"

    @property
    def is_open(self) -> bool:
        return self.state is not ChannelState.CLOSED

    @property
    def is_authenticated(self) -> bool:
        return self.state is ChannelState.AUTHENTICATED

    def start(self, auth_timer: Optional[Callable[["Channel"], Awaitable[None]]] = None) -> None:
        """Start the writer task and, if given, the auth deadline task."""
        self._writer = asyncio.create_task(
            self._pump(), name=f"channel-writer-{self.id}"
        )
        if auth_timer is not None:
            self._auth_timer = asyncio.create_task(
                auth_timer(self), name=f"channel-auth-timer-{self.id}"
            )

    def bind(self, user_id: UserId) -> None:
        """Attach the user identity. Write-once."""
        if self.user_id is not None:
            raise IdentityAlreadyBoundError(self.id, self.user_id)
        if not self.is_open:
            raise RuntimeError(f"Channel {self.id} is closed")
        self.user_id = user_id
        self.state = ChannelState.AUTHENTICATED
        self._cancel(self._auth_timer)

    def enqueue(self, frame: str) -> bool:
        """
        Queue a frame for the writer task without waiting.

        Returns False when the channel cannot take the frame: it is not
        authenticated, it is closed, or its buffer is full. A full buffer
        drops this frame only; the channel stays open.
        """
        if not self.is_authenticated:
            return False
        try:
            self._outbox.put_nowait(frame)
        except asyncio.QueueFull:
            self.dropped_frames += 1
            logger.warning(
                f"[Channel] Send buffer full on channel {self.id} (user {self.user_id}), "
                f"dropping frame ({self.dropped_frames} dropped so far)"
            )
            return False
        return True

    async def flush(self) -> None:
        """Wait until every queued frame has been handed to the transport."""
        await self._outbox.join()

    async def close_transport(self, code: int = 1000, reason: str = "") -> None:
        """Best-effort close of the underlying connection."""
        try:
            await self._transport.close(code=code, reason=reason)
        except Exception as e:
            # The peer is usually already gone when we get here
            logger.debug(f"[Channel] Closing transport of {self.id} failed: {e}")

    def shutdown(self) -> None:
        """Mark CLOSED, stop background tasks and discard queued frames. Idempotent."""
        self.state = ChannelState.CLOSED
        self._cancel(self._auth_timer)
        self._cancel(self._writer)
        self._discard_outbox()

    async def wait_closed(self) -> None:
        """Wait for the background tasks to finish after shutdown()."""
        current = asyncio.current_task()
        tasks = [
            task
            for task in (self._writer, self._auth_timer)
            if task is not None and task is not current and not task.done()
        ]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _pump(self) -> None:
        while True:
            frame = await self._outbox.get()
            try:
                await self._transport.send_text(frame)
            except asyncio.CancelledError:
                self._outbox.task_done()
                raise
            except Exception as e:
                self._outbox.task_done()
                logger.warning(
                    f"[Channel] Write failed on channel {self.id} (user {self.user_id}): "
                    f"{type(e).__name__}: {e}"
                )
                await self._on_write_failure(self)
                return
            self._outbox.task_done()

    def _discard_outbox(self) -> None:
        while True:
            try:
                self._outbox.get_nowait()
            except asyncio.QueueEmpty:
                return
            self._outbox.task_done()

    @staticmethod
    def _cancel(task: Optional[asyncio.Task]) -> None:
        # A task never cancels itself: it is already on its way out
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
