"""
ENTITIES - Business objects with identity

Each entity:
- Has a unique identifier
- Has behavior (methods)
- Can change state over time
- Pure Python dataclasses (no ORM, no Pydantic)
"""

from unilink.domain.entities.user import User
from unilink.domain.entities.message import Message
from unilink.domain.entities.conversation import ConversationSummary, MessageWithUsers

__all__ = [
    "User",
    "Message",
    "ConversationSummary",
    "MessageWithUsers",
]
