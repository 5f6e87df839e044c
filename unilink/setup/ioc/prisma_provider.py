"""
Prisma persistence provider.

Kept apart from container.py because importing ``prisma.Prisma`` requires a
generated client; everything else in the container does not.
"""

from typing import AsyncIterable

from dishka import Provider, Scope, provide
from prisma import Prisma

from unilink.domain.ports.repositories import MessageRepository, UserRepository
from unilink.infrastructure.persistence import (
    PrismaMessageRepository,
    PrismaUserRepository,
)


class PrismaProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_prisma(self) -> AsyncIterable[Prisma]:
        """
        Provide Prisma client (singleton, app-scoped).

        - Scope.APP = created ONCE, shared across all requests
        - Disconnected when the container closes
        """
        prisma = Prisma()
        await prisma.connect()
        yield prisma
        await prisma.disconnect()

    @provide(scope=Scope.REQUEST)
    def get_message_repository(self, prisma: Prisma) -> MessageRepository:
        """
        Provide MessageRepository implementation.

        - Return type is ABSTRACT (MessageRepository)
        - Implementation is CONCRETE (PrismaMessageRepository)
        """
        return PrismaMessageRepository(prisma)

    @provide(scope=Scope.REQUEST)
    def get_user_repository(self, prisma: Prisma) -> UserRepository:
        return PrismaUserRepository(prisma)
