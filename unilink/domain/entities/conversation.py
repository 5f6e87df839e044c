"""
Conversation read models - derived views over messages between two users.

A conversation is not stored; it is the set of messages exchanged by a pair of
users. These dataclasses carry what the conversation screens need.
"""

from dataclasses import dataclass

from unilink.domain.entities.message import Message
from unilink.domain.entities.user import User


@dataclass
class MessageWithUsers:
    message: Message
    sender: User
    receiver: User


@dataclass
class ConversationSummary:
    other_user: User
    last_message: Message
    unread_count: int = 0
