from unilink.application.common.interfaces import (
    Command,
    CommandHandler,
    Query,
    QueryHandler,
)

__all__ = ["Command", "CommandHandler", "Query", "QueryHandler"]
