"""
Persistence Layer - Database implementations.

Contains Prisma repository implementations for domain ports. Requires a
generated Prisma client (`prisma generate`).
"""

from unilink.infrastructure.persistence.prisma_message_repository import (
    PrismaMessageRepository,
)
from unilink.infrastructure.persistence.prisma_user_repository import (
    PrismaUserRepository,
)

__all__ = [
    "PrismaMessageRepository",
    "PrismaUserRepository",
]
