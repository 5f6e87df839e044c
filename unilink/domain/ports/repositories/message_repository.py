"""
Message Repository Port - Interface for message persistence.
Implementation: unilink/infrastructure/persistence/prisma_message_repository.py
"""

from abc import ABC, abstractmethod
from typing import Optional

from unilink.domain.entities.conversation import ConversationSummary, MessageWithUsers
from unilink.domain.entities.message import Message
from unilink.domain.value_objects.message_id import MessageId
from unilink.domain.value_objects.user_id import UserId


class MessageRepository(ABC):
    @abstractmethod
    async def send_message(
        self, sender_id: UserId, receiver_id: UserId, content: str
    ) -> Message:
        """
        Durably store a new message and return the stored record.

        The store generates the id and timestamp. Raises PersistenceError if
        nothing was written.
        """
        ...

    @abstractmethod
    async def get_by_id(self, message_id: MessageId) -> Optional[Message]: ...

    @abstractmethod
    async def get_conversation(
        self, user_id: UserId, other_user_id: UserId, limit: int = 200
    ) -> list[MessageWithUsers]:
        """Messages exchanged by the two users, newest first."""
        ...

    @abstractmethod
    async def get_user_conversations(
        self, user_id: UserId, limit: int = 50
    ) -> list[ConversationSummary]:
        """One summary per conversation partner, most recent conversation first."""
        ...

    @abstractmethod
    async def mark_as_read(self, message_id: MessageId) -> None: ...
