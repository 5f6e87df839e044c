"""
Base interfaces for CQRS pattern.

Usage:
    @dataclass(frozen=True)
    class MarkMessageReadCommand(Command[None]):
        message_id: MessageId
        user_id: UserId

    class MarkMessageReadHandler(CommandHandler[None]):
        def __init__(self, repo: MessageRepository):
            self.repo = repo

        async def execute(self, cmd: MarkMessageReadCommand) -> None:
            await self.repo.mark_as_read(cmd.message_id)
"""
from abc import ABC, abstractmethod
from typing import TypeVar, Generic

T = TypeVar("T")
class Command(ABC, Generic[T]):
    """Base class for write operations"""
    pass

class CommandHandler(ABC, Generic[T]):
    @abstractmethod
    async def execute(self, command: Command[T]) -> T:
        """Execute the command and return a result of type T"""
        ...

class Query(ABC, Generic[T]):
    """Base class for read operations"""
    pass

class QueryHandler(ABC, Generic[T]):
    @abstractmethod
    async def execute(self, query: Query[T]) -> T:
        """Execute the query and return a result of type T"""
        ...
