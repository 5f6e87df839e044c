"""Mark Message Read Command. Only the receiver may mark a message read."""

from dataclasses import dataclass
from unilink.domain.exceptions.access_denied import AccessDeniedError
from unilink.domain.exceptions.entity_not_found import EntityNotFoundError
from unilink.domain.value_objects.message_id import MessageId
from unilink.domain.value_objects.user_id import UserId
from unilink.domain.ports.repositories import MessageRepository
from unilink.application.common.interfaces import Command, CommandHandler


@dataclass(frozen=True)
class MarkMessageReadCommand(Command[None]):
    message_id: MessageId
    user_id: UserId


class MarkMessageReadHandler(CommandHandler[None]):
    def __init__(self, message_repository: MessageRepository):
        self._message_repository = message_repository

    async def execute(self, command: MarkMessageReadCommand) -> None:
        message = await self._message_repository.get_by_id(command.message_id)
        if not message:
            raise EntityNotFoundError("Message", command.message_id)

        if message.receiver_id != command.user_id:
            raise AccessDeniedError(
                "Only the receiver can mark a message as read.", user_id=command.user_id
            )

        if message.is_read:
            return

        await self._message_repository.mark_as_read(command.message_id)
