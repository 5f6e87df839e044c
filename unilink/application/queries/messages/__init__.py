"""Message queries."""

from .get_conversation import GetConversationQuery, GetConversationHandler
from .list_conversations import ListConversationsQuery, ListConversationsHandler

__all__ = [
    "GetConversationQuery",
    "GetConversationHandler",
    "ListConversationsQuery",
    "ListConversationsHandler",
]
