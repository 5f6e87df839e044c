"""In-memory doubles for the persistence ports, the notifier and the socket."""

import asyncio
import json
import time
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from unittest.mock import AsyncMock

from dishka import Provider, Scope, provide

from unilink.domain.entities.conversation import ConversationSummary, MessageWithUsers
from unilink.domain.entities.message import Message
from unilink.domain.entities.user import User
from unilink.domain.events.notification_event import NewMessageEvent, NotificationEvent
from unilink.domain.exceptions import EntityNotFoundError, PersistenceError
from unilink.domain.ports.notifier import Notifier
from unilink.domain.ports.repositories import MessageRepository, UserRepository
from unilink.domain.value_objects.message_id import MessageId
from unilink.domain.value_objects.user_id import UserId

BASE_TIME = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)


def make_user(user_id: str, **fields) -> User:
    return User(id=UserId(user_id), created_at=BASE_TIME, **fields)


def make_message(
    sender: str = "alice",
    receiver: str = "bob",
    content: str = "Hi",
    message_id: str = "msg-1",
) -> Message:
    return Message(
        id=MessageId(message_id),
        sender_id=UserId(sender),
        receiver_id=UserId(receiver),
        content=content,
        created_at=BASE_TIME,
    )


def new_message_event(content: str = "Hi", receiver: str = "bob") -> NewMessageEvent:
    return NewMessageEvent(make_message(receiver=receiver, content=content))


class FakeTransport:
    """
    Records frames written to it.

    ``fail_sends`` makes every write raise; ``gate`` (an unset Event) holds
    writes until it is set.
    """

    def __init__(self, fail_sends: bool = False):
        self.sent: list[str] = []
        self.closed: Optional[tuple[int, str]] = None
        self.fail_sends = fail_sends
        self.gate: Optional[asyncio.Event] = None

    async def send_text(self, data: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_sends:
            raise ConnectionResetError("peer went away")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed = (code, reason)

    @property
    def frames(self) -> list[dict]:
        return [json.loads(raw) for raw in self.sent]


class InMemoryUserRepository(UserRepository):
    def __init__(self, users: Iterable[User] = ()):
        self.users: dict[UserId, User] = {user.id: user for user in users}

    async def get_by_id(self, user_id: UserId) -> Optional[User]:
        return self.users.get(user_id)

    async def get_many(self, user_ids: Iterable[UserId]) -> dict[UserId, User]:
        return {uid: self.users[uid] for uid in user_ids if uid in self.users}


class InMemoryMessageRepository(MessageRepository):
    def __init__(self, user_repository: InMemoryUserRepository):
        self._users = user_repository
        self.messages: list[Message] = []
        self.mark_calls: list[MessageId] = []

    async def send_message(
        self, sender_id: UserId, receiver_id: UserId, content: str
    ) -> Message:
        seq = len(self.messages) + 1
        message = Message(
            id=MessageId(f"msg-{seq}"),
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            created_at=BASE_TIME + timedelta(seconds=seq),
        )
        self.messages.append(message)
        return message

    async def get_by_id(self, message_id: MessageId) -> Optional[Message]:
        return next((m for m in self.messages if m.id == message_id), None)

    async def get_conversation(
        self, user_id: UserId, other_user_id: UserId, limit: int = 200
    ) -> list[MessageWithUsers]:
        pair = {user_id, other_user_id}
        newest_first = sorted(
            (m for m in self.messages if {m.sender_id, m.receiver_id} == pair),
            key=lambda m: m.created_at,
            reverse=True,
        )
        return [
            MessageWithUsers(
                message=m,
                sender=self._users.users[m.sender_id],
                receiver=self._users.users[m.receiver_id],
            )
            for m in newest_first[:limit]
            if m.sender_id in self._users.users and m.receiver_id in self._users.users
        ]

    async def get_user_conversations(
        self, user_id: UserId, limit: int = 50
    ) -> list[ConversationSummary]:
        summaries: dict[UserId, ConversationSummary] = {}
        for message in sorted(self.messages, key=lambda m: m.created_at, reverse=True):
            if not message.involves(user_id):
                continue
            partner = message.other_party(user_id)
            if partner not in summaries:
                if len(summaries) >= limit or partner not in self._users.users:
                    continue
                summaries[partner] = ConversationSummary(
                    other_user=self._users.users[partner], last_message=message
                )
            if message.receiver_id == user_id and not message.is_read:
                summaries[partner].unread_count += 1
        return list(summaries.values())

    async def mark_as_read(self, message_id: MessageId) -> None:
        message = await self.get_by_id(message_id)
        if message is None:
            raise EntityNotFoundError("Message", message_id)
        self.mark_calls.append(message_id)
        message.mark_read()


class FailingMessageRepository(InMemoryMessageRepository):
    """Every write fails as if the database were down."""

    async def send_message(self, sender_id, receiver_id, content) -> Message:
        raise PersistenceError("Failed to store message: connection refused")


class RecordingNotifier(Notifier):
    def __init__(self):
        self.calls: list[tuple[UserId, NotificationEvent]] = []

    async def broadcast(self, target_user_id: UserId, event: NotificationEvent) -> int:
        self.calls.append((target_user_id, event))
        return 1


class FailingNotifier(Notifier):
    async def broadcast(self, target_user_id: UserId, event: NotificationEvent) -> int:
        raise RuntimeError("relay unavailable")


class FakePubSub:
    """Redis PubSub stand-in: yields ``items`` from listen(), then idles."""

    def __init__(self, items=(), subscribe_error=None):
        self.items = list(items)
        self.psubscribe = AsyncMock(side_effect=subscribe_error)
        self.aclose = AsyncMock()

    async def listen(self):
        for item in self.items:
            yield item
        await asyncio.Event().wait()


class InMemoryPersistenceProvider(Provider):
    """Registers already-built repositories in place of the Prisma ones."""

    def __init__(
        self,
        message_repository: MessageRepository,
        user_repository: UserRepository,
    ):
        super().__init__()
        self._message_repository = message_repository
        self._user_repository = user_repository

    @provide(scope=Scope.APP)
    def get_message_repository(self) -> MessageRepository:
        return self._message_repository

    @provide(scope=Scope.APP)
    def get_user_repository(self) -> UserRepository:
        return self._user_repository


async def eventually(predicate, timeout: float = 2.0) -> None:
    """Poll ``predicate`` on the running loop until it is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def wait_for(predicate, timeout: float = 2.0) -> None:
    """Blocking variant for TestClient tests, where the app runs in another thread."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)
