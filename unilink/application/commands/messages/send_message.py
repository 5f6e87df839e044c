"""
SendMessage Command - Persist a direct message, then notify the receiver.

Handler:
1. Validate content (whitespace-only is empty; the stored text is kept as sent)
2. Persist through MessageRepository (source of truth)
3. Broadcast NewMessageEvent to the receiver's open channels
4. Return the stored message

Persistence failures propagate and nothing is broadcast. Broadcast failures
are logged only: the sender's request succeeded once the message is stored,
and an offline or unreachable receiver picks it up on the next fetch.
"""

import logging
from dataclasses import dataclass

from unilink.application.common.interfaces import Command, CommandHandler
from unilink.config.settings import Config
from unilink.domain.entities.message import Message
from unilink.domain.events.notification_event import NewMessageEvent
from unilink.domain.exceptions import DomainValidationError
from unilink.domain.ports.notifier import Notifier
from unilink.domain.ports.repositories import MessageRepository
from unilink.domain.value_objects.user_id import UserId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendMessageCommand(Command[Message]):
    sender_id: UserId
    receiver_id: UserId
    content: str


class SendMessageHandler(CommandHandler[Message]):
    def __init__(
        self,
        message_repository: MessageRepository,
        notifier: Notifier,
        max_length: int = Config.MESSAGE_MAX_LENGTH,
    ):
        self._message_repository = message_repository
        self._notifier = notifier
        self._max_length = max_length

    async def execute(self, command: SendMessageCommand) -> Message:
        # Stripped only for the checks; indentation and newlines are content
        visible = command.content.strip()
        if not visible:
            raise DomainValidationError("Message content cannot be empty.")
        if len(visible) > self._max_length:
            raise DomainValidationError(
                f"Message content cannot exceed {self._max_length} characters."
            )

        message = await self._message_repository.send_message(
            command.sender_id, command.receiver_id, command.content
        )
        logger.info(
            f"[SendMessage] Stored message {message.id} "
            f"from {message.sender_id} to {message.receiver_id}"
        )

        try:
            delivered = await self._notifier.broadcast(
                message.receiver_id, NewMessageEvent(message)
            )
            logger.debug(
                f"[SendMessage] Message {message.id} queued to {delivered} channel(s)"
            )
        except Exception:
            logger.exception(
                f"[SendMessage] Live notification failed for message {message.id}"
            )

        return message
