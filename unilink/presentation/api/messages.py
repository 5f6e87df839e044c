"""
Messages API Router - direct messages between users.

Guidelines:
- Thin layer: only handles HTTP concerns (request/response)
- Receives handlers via Dependency Injection (Dishka)
- Delegates business logic to Application layer handlers
- Maps domain exceptions to HTTP status codes

Flow:
  POST /api/messages → SendMessageCommand → SendMessageHandler
                          → MessageRepository.send_message (durable)
                          → Notifier.broadcast(receiver, new_message)
  HTTP Response ← MessageDTO
"""

from logging import getLogger
from fastapi import APIRouter, Depends, HTTPException, status
from dishka.integrations.fastapi import FromDishka, inject
from pydantic import BaseModel, ConfigDict, Field
from unilink.application.commands.messages import (
    MarkMessageReadCommand,
    MarkMessageReadHandler,
    SendMessageCommand,
    SendMessageHandler,
)
from unilink.application.queries.messages import (
    GetConversationHandler,
    GetConversationQuery,
    ListConversationsHandler,
    ListConversationsQuery,
)
from unilink.application.dto.message import (
    ConversationSummaryDTO,
    MessageDTO,
    MessageWithUsersDTO,
)
from unilink.domain.exceptions import (
    AccessDeniedError,
    DomainValidationError,
    EntityNotFoundError,
    PersistenceError,
)
from unilink.domain.value_objects.message_id import MessageId
from unilink.domain.value_objects.user_id import UserId
from unilink.presentation.dependencies.auth import AuthUser, get_current_user
from unilink.config.settings import Config

logger = getLogger(__name__)


# ==================== REQUEST/RESPONSE MODELS ====================


class SendMessageRequest(BaseModel):
    """
    Request body for sending a message.

    {"receiverId": "<user id>", "content": "Hi!"}
    """

    model_config = ConfigDict(populate_by_name=True)

    receiver_id: str = Field(alias="receiverId", min_length=1, max_length=255)
    content: str = Field(min_length=1)


class MarkReadResponse(BaseModel):
    message: str


# ==================== ROUTER ====================

router = APIRouter(prefix="/api/messages", tags=["messages"])


def _user_id(value: str) -> UserId:
    try:
        return UserId(value)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


# ==================== ENDPOINTS ====================


@router.post(
    "",
    response_model=MessageDTO,
    status_code=status.HTTP_200_OK,
)
@inject
async def send_message(
    request: SendMessageRequest,
    handler: FromDishka[SendMessageHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Send a direct message.

    The message is stored first; the receiver's open sessions then get a
    "new_message" frame. The response does not wait for live delivery.
    """
    command = SendMessageCommand(
        sender_id=current_user.id,
        receiver_id=_user_id(request.receiver_id),
        content=request.content,
    )
    try:
        message = await handler.execute(command)
    except DomainValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except PersistenceError as e:
        logger.error(f"[Messages] Send from {current_user.id} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message",
        ) from e

    return MessageDTO.from_entity(message)


@router.get(
    "/conversations",
    response_model=list[ConversationSummaryDTO],
    status_code=status.HTTP_200_OK,
)
@inject
async def list_conversations(
    handler: FromDishka[ListConversationsHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """
    List the current user's conversations, most recent first.

    [{"otherUser": {...}, "lastMessage": {...}, "unreadCount": 1}, ...]
    """
    query = ListConversationsQuery(
        user_id=current_user.id, limit=Config.CONVERSATION_USER_LIMIT
    )
    try:
        summaries = await handler.execute(query)
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch conversations",
        ) from e

    return [ConversationSummaryDTO.from_summary(summary) for summary in summaries]


@router.get(
    "/conversation/{user_id}",
    response_model=list[MessageWithUsersDTO],
    status_code=status.HTTP_200_OK,
)
@inject
async def get_conversation(
    user_id: str,
    handler: FromDishka[GetConversationHandler],
    current_user: AuthUser = Depends(get_current_user),
    limit: int = Config.CONVERSATION_MESSAGE_LIMIT,
):
    """Messages exchanged with ``user_id``, newest first."""
    query = GetConversationQuery(
        user_id=current_user.id,
        other_user_id=_user_id(user_id),
        limit=max(1, min(limit, Config.CONVERSATION_MESSAGE_LIMIT)),
    )
    try:
        items = await handler.execute(query)
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch conversation",
        ) from e

    return [MessageWithUsersDTO.from_result(item) for item in items]


@router.put(
    "/{message_id}/read",
    response_model=MarkReadResponse,
    status_code=status.HTTP_200_OK,
)
@inject
async def mark_message_read(
    message_id: str,
    handler: FromDishka[MarkMessageReadHandler],
    current_user: AuthUser = Depends(get_current_user),
):
    """Mark a received message as read."""
    try:
        command = MarkMessageReadCommand(
            message_id=MessageId(message_id),
            user_id=current_user.id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    try:
        await handler.execute(command)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except AccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark message as read",
        ) from e

    return MarkReadResponse(message="Message marked as read")
