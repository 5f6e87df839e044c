"""
GetConversation Query - all messages between the current user and another user.

Used by the client after a "new_message" frame arrives to re-fetch the open
conversation.
"""

from dataclasses import dataclass

from unilink.application.common.interfaces import Query, QueryHandler
from unilink.config.settings import Config
from unilink.domain.entities.conversation import MessageWithUsers
from unilink.domain.ports.repositories import MessageRepository
from unilink.domain.value_objects.user_id import UserId


@dataclass(frozen=True)
class GetConversationQuery(Query[list[MessageWithUsers]]):
    user_id: UserId
    other_user_id: UserId
    limit: int = Config.CONVERSATION_MESSAGE_LIMIT


class GetConversationHandler(QueryHandler[list[MessageWithUsers]]):
    def __init__(self, message_repository: MessageRepository):
        self._message_repository = message_repository

    async def execute(self, query: GetConversationQuery) -> list[MessageWithUsers]:
        return await self._message_repository.get_conversation(
            query.user_id, query.other_user_id, limit=query.limit
        )
