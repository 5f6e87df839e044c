"""
Message Entity - A direct message from one user to another.
"""

from dataclasses import dataclass
from datetime import datetime
from unilink.domain.value_objects.message_id import MessageId
from unilink.domain.value_objects.user_id import UserId


@dataclass
class Message:
    id: MessageId
    sender_id: UserId
    receiver_id: UserId
    content: str
    created_at: datetime
    is_read: bool = False

    def involves(self, user_id: UserId) -> bool:
        return user_id in (self.sender_id, self.receiver_id)

    def other_party(self, user_id: UserId) -> UserId:
        """Return the participant that is not ``user_id``."""
        if not self.involves(user_id):
            raise ValueError(f"User {user_id} is not part of message {self.id}")
        return self.receiver_id if self.sender_id == user_id else self.sender_id

    def mark_read(self) -> None:
        self.is_read = True
