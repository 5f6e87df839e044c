"""
Prisma User Repository Implementation.

Prisma User Model (from prisma/schema.prisma):
    model User {
        id                String   @id @default(uuid())
        email             String?  @unique
        first_name        String?
        last_name         String?
        profile_image_url String?
        role              UserRole @default(student)
        ...
    }

Mapping:
- Prisma: id (str) ←→ Domain: id (UserId)
- Prisma: role (enum) ←→ Domain: role (str)
- Other fields map directly
"""

from typing import TYPE_CHECKING, Iterable, Optional

from prisma.errors import PrismaError

from unilink.domain.entities.user import User
from unilink.domain.exceptions import PersistenceError
from unilink.domain.ports.repositories.user_repository import UserRepository
from unilink.domain.value_objects.user_id import UserId

if TYPE_CHECKING:
    from prisma import Prisma
    from prisma.models import User as PrismaUser


def user_to_entity(record: "PrismaUser") -> User:
    """Map a Prisma User record to the domain entity."""
    role = record.role
    return User(
        id=UserId(record.id),
        created_at=record.created_at,
        email=record.email,
        first_name=record.first_name,
        last_name=record.last_name,
        profile_image_url=record.profile_image_url,
        role=getattr(role, "value", role) or "student",
        title=record.title,
        university=record.university,
    )


class PrismaUserRepository(UserRepository):
    """Read access to users for the messaging screens."""

    def __init__(self, prisma: "Prisma"):
        self._prisma = prisma

    async def get_by_id(self, user_id: UserId) -> Optional[User]:
        try:
            record = await self._prisma.user.find_unique(where={"id": user_id.value})
        except PrismaError as e:
            raise PersistenceError(f"Failed to load user {user_id}: {e}") from e
        return user_to_entity(record) if record else None

    async def get_many(self, user_ids: Iterable[UserId]) -> dict[UserId, User]:
        ids = sorted({user_id.value for user_id in user_ids})
        if not ids:
            return {}
        try:
            records = await self._prisma.user.find_many(where={"id": {"in": ids}})
        except PrismaError as e:
            raise PersistenceError(f"Failed to load users: {e}") from e
        return {UserId(record.id): user_to_entity(record) for record in records}
