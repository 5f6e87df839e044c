"""Message commands."""

from .send_message import SendMessageCommand, SendMessageHandler
from .mark_message_read import MarkMessageReadCommand, MarkMessageReadHandler

__all__ = [
    "SendMessageCommand",
    "SendMessageHandler",
    "MarkMessageReadCommand",
    "MarkMessageReadHandler",
]
