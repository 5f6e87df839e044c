"""
User Repository Port - Interface for user lookups.
Implementation: unilink/infrastructure/persistence/prisma_user_repository.py
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from unilink.domain.entities.user import User
from unilink.domain.value_objects.user_id import UserId


class UserRepository(ABC):
    @abstractmethod
    async def get_by_id(self, user_id: UserId) -> Optional[User]: ...

    @abstractmethod
    async def get_many(self, user_ids: Iterable[UserId]) -> dict[UserId, User]: ...
