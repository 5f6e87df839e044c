"""Get User Query - profile of the authenticated user."""

from dataclasses import dataclass

from unilink.application.common.interfaces import Query, QueryHandler
from unilink.domain.entities.user import User
from unilink.domain.exceptions import EntityNotFoundError
from unilink.domain.ports.repositories import UserRepository
from unilink.domain.value_objects.user_id import UserId


@dataclass(frozen=True)
class GetUserQuery(Query[User]):
    user_id: UserId


class GetUserHandler(QueryHandler[User]):
    def __init__(self, user_repository: UserRepository):
        self._user_repository = user_repository

    async def execute(self, query: GetUserQuery) -> User:
        user = await self._user_repository.get_by_id(query.user_id)
        if not user:
            raise EntityNotFoundError("User", query.user_id)
        return user
