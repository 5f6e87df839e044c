"""
Notification events - ephemeral push notifications for connected clients.

The set of events is closed: every concrete event subclasses NotificationEvent
and declares its wire ``type``. Encoders dispatch on the concrete class and
reject anything they do not know, so adding an event forces the encoder to be
updated.
"""

from dataclasses import dataclass
from typing import ClassVar

from unilink.domain.entities.message import Message


@dataclass(frozen=True)
class NotificationEvent:
    type: ClassVar[str]


@dataclass(frozen=True)
class NewMessageEvent(NotificationEvent):
    type: ClassVar[str] = "new_message"

    message: Message
