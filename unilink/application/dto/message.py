"""
Message DTOs for API responses and realtime frames.

Field names are camelCase on the wire (senderId, receiverId, isRead,
createdAt); the web client reads them that way both from REST responses and
from "new_message" frames.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from unilink.application.dto.user import UserDTO
from unilink.domain.entities.conversation import ConversationSummary, MessageWithUsers
from unilink.domain.entities.message import Message


class MessageDTO(BaseModel):
    """DTO for message data returned to frontend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    sender_id: str
    receiver_id: str
    content: str
    is_read: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, message: Message) -> "MessageDTO":
        return cls(
            id=message.id.value,
            sender_id=message.sender_id.value,
            receiver_id=message.receiver_id.value,
            content=message.content,
            is_read=message.is_read,
            created_at=message.created_at,
        )


class MessageWithUsersDTO(MessageDTO):
    sender: UserDTO
    receiver: UserDTO

    @classmethod
    def from_result(cls, item: MessageWithUsers) -> "MessageWithUsersDTO":
        base = MessageDTO.from_entity(item.message)
        return cls(
            **base.model_dump(),
            sender=UserDTO.from_entity(item.sender),
            receiver=UserDTO.from_entity(item.receiver),
        )


class ConversationSummaryDTO(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    other_user: UserDTO
    last_message: MessageDTO
    unread_count: int

    @classmethod
    def from_summary(cls, summary: ConversationSummary) -> "ConversationSummaryDTO":
        return cls(
            other_user=UserDTO.from_entity(summary.other_user),
            last_message=MessageDTO.from_entity(summary.last_message),
            unread_count=summary.unread_count,
        )
