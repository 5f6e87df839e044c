"""
Prisma Message Repository Implementation.

Guidelines:
- Implements MessageRepository port from domain layer
- Uses Prisma client for database operations
- Maps between Prisma models and domain entities
- Wraps PrismaError in PersistenceError so callers never see driver errors
- All methods are async

Prisma Message Model (from prisma/schema.prisma):
    model Message {
        id          String   @id @default(uuid())
        sender_id   String
        receiver_id String
        content     String
        is_read     Boolean  @default(false)
        created_at  DateTime @default(now())
        sender      User     @relation("sender", ...)
        receiver    User     @relation("receiver", ...)
    }

Mapping:
- Prisma: id (str) ←→ Domain: id (MessageId)
- Prisma: sender_id / receiver_id (str) ←→ Domain: UserId
- Other fields map directly
"""

import logging
from typing import TYPE_CHECKING, Optional

from prisma.errors import PrismaError, RecordNotFoundError

from unilink.domain.entities.conversation import ConversationSummary, MessageWithUsers
from unilink.domain.entities.message import Message
from unilink.domain.exceptions import EntityNotFoundError, PersistenceError
from unilink.domain.ports.repositories.message_repository import MessageRepository
from unilink.domain.value_objects.message_id import MessageId
from unilink.domain.value_objects.user_id import UserId
from unilink.infrastructure.persistence.prisma_user_repository import user_to_entity

if TYPE_CHECKING:
    from prisma import Prisma
    from prisma.models import Message as PrismaMessage

logger = logging.getLogger(__name__)

# One row per conversation partner with the time of the latest message
_PARTNERS_SQL = """
SELECT partner_id, MAX(created_at) AS last_at
FROM (
    SELECT CASE WHEN sender_id = $1 THEN receiver_id ELSE sender_id END AS partner_id,
           created_at
    FROM messages
    WHERE sender_id = $1 OR receiver_id = $1
) AS exchanged
GROUP BY partner_id
ORDER BY last_at DESC
LIMIT $2
"""


def _between(user_id: UserId, other_user_id: UserId) -> dict:
    return {
        "OR": [
            {"sender_id": user_id.value, "receiver_id": other_user_id.value},
            {"sender_id": other_user_id.value, "receiver_id": user_id.value},
        ]
    }


class PrismaMessageRepository(MessageRepository):
    """
    Prisma implementation of MessageRepository.

    Handles persistence of Message entities to PostgreSQL via Prisma.
    """

    _prisma: "Prisma"

    def __init__(self, prisma: "Prisma"):
        """
        Initialize repository with Prisma client.

        Args:
            prisma: Connected Prisma client (injected by DI container)
        """
        self._prisma = prisma

    def _to_entity(self, record: "PrismaMessage") -> Message:
        return Message(
            id=MessageId(record.id),
            sender_id=UserId(record.sender_id),
            receiver_id=UserId(record.receiver_id),
            content=record.content,
            created_at=record.created_at,
            is_read=record.is_read,
        )

    async def send_message(
        self, sender_id: UserId, receiver_id: UserId, content: str
    ) -> Message:
        """
        Insert a message; id and created_at come from the database defaults.

        A single INSERT, so it either fully succeeds or raises.
        """
        try:
            record = await self._prisma.message.create(
                data={
                    "sender_id": sender_id.value,
                    "receiver_id": receiver_id.value,
                    "content": content,
                }
            )
        except PrismaError as e:
            logger.error(f"[Messages] Insert from {sender_id} to {receiver_id} failed: {e}")
            raise PersistenceError(f"Failed to store message: {e}") from e
        return self._to_entity(record)

    async def get_by_id(self, message_id: MessageId) -> Optional[Message]:
        try:
            record = await self._prisma.message.find_unique(
                where={"id": message_id.value}
            )
        except PrismaError as e:
            raise PersistenceError(f"Failed to load message {message_id}: {e}") from e
        return self._to_entity(record) if record else None

    async def get_conversation(
        self, user_id: UserId, other_user_id: UserId, limit: int = 200
    ) -> list[MessageWithUsers]:
        """
        Messages between two users with sender/receiver profiles, newest first.
        """
        try:
            records = await self._prisma.message.find_many(
                where=_between(user_id, other_user_id),
                include={"sender": True, "receiver": True},
                order={"created_at": "desc"},
                take=limit,
            )
        except PrismaError as e:
            raise PersistenceError(f"Failed to load conversation: {e}") from e

        return [
            MessageWithUsers(
                message=self._to_entity(record),
                sender=user_to_entity(record.sender),
                receiver=user_to_entity(record.receiver),
            )
            for record in records
            if record.sender and record.receiver
        ]

    async def get_user_conversations(
        self, user_id: UserId, limit: int = 50
    ) -> list[ConversationSummary]:
        """
        One summary per conversation partner, most recent first.

        Partners come from an aggregate over every message the user sent or
        received, so an old conversation is never missed. The last message and
        the unread count are then loaded per partner. Unread counts only
        messages the partner sent to ``user_id``.
        """
        try:
            rows = await self._prisma.query_raw(_PARTNERS_SQL, user_id.value, limit)
            partner_ids = [row["partner_id"] for row in rows]
            if not partner_ids:
                return []
            partners = await self._prisma.user.find_many(
                where={"id": {"in": partner_ids}}
            )
            users_by_id = {record.id: user_to_entity(record) for record in partners}

            summaries: list[ConversationSummary] = []
            for partner_id in partner_ids:
                partner = users_by_id.get(partner_id)
                if partner is None:
                    continue
                last = await self._prisma.message.find_first(
                    where=_between(user_id, partner.id),
                    order={"created_at": "desc"},
                )
                if last is None:
                    continue
                unread = await self._prisma.message.count(
                    where={
                        "sender_id": partner_id,
                        "receiver_id": user_id.value,
                        "is_read": False,
                    }
                )
                summaries.append(
                    ConversationSummary(
                        other_user=partner,
                        last_message=self._to_entity(last),
                        unread_count=unread,
                    )
                )
        except PrismaError as e:
            raise PersistenceError(f"Failed to load conversations: {e}") from e

        return summaries

    async def mark_as_read(self, message_id: MessageId) -> None:
        try:
            record = await self._prisma.message.update(
                where={"id": message_id.value},
                data={"is_read": True},
            )
        except RecordNotFoundError as e:
            raise EntityNotFoundError("Message", message_id) from e
        except PrismaError as e:
            raise PersistenceError(f"Failed to mark message {message_id} read: {e}") from e
        # update() returns None when no row matched
        if record is None:
            raise EntityNotFoundError("Message", message_id)
