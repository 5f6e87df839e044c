"""
Users API Router - the authenticated user's own profile.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from dishka.integrations.fastapi import FromDishka, inject

from unilink.application.dto.user import UserDTO
from unilink.application.queries.users import GetUserHandler, GetUserQuery
from unilink.domain.exceptions import EntityNotFoundError, PersistenceError
from unilink.presentation.dependencies.auth import AuthUser, get_current_user

router = APIRouter(prefix="/api/auth", tags=["users"])


@router.get("/user", response_model=UserDTO, status_code=status.HTTP_200_OK)
@inject
async def get_authenticated_user(
    handler: FromDishka[GetUserHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    try:
        user = await handler.execute(GetUserQuery(user_id=current_user.id))
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch user",
        ) from e
    return UserDTO.from_entity(user)
