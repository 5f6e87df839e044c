"""List Conversations Query."""

from dataclasses import dataclass
from unilink.domain.ports.repositories.message_repository import MessageRepository
from unilink.application.common.interfaces import Query, QueryHandler
from unilink.config.settings import Config
from unilink.domain.entities.conversation import ConversationSummary
from unilink.domain.value_objects.user_id import UserId


@dataclass(frozen=True)
class ListConversationsQuery(Query[list[ConversationSummary]]):
    user_id: UserId
    limit: int = Config.CONVERSATION_USER_LIMIT


class ListConversationsHandler(QueryHandler[list[ConversationSummary]]):
    def __init__(self, message_repository: MessageRepository):
        self._message_repository = message_repository

    async def execute(self, query: ListConversationsQuery) -> list[ConversationSummary]:
        return await self._message_repository.get_user_conversations(
            query.user_id, limit=query.limit
        )
