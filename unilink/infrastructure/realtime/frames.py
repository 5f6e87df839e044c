"""
Wire frames for the notification WebSocket.

Client → Server:
    {"type": "auth", "userId": "<opaque id>", "token": "<jwt, optional>"}

Server → Client:
    {"type": "new_message", "data": {id, senderId, receiverId, content, isRead, createdAt}}

Anything else a client sends with a string "type" parses as a plain
ClientFrame and is ignored by the bus. There is no acknowledgement frame.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from unilink.application.dto.message import MessageDTO
from unilink.domain.events.notification_event import NewMessageEvent, NotificationEvent
from unilink.domain.value_objects.user_id import MAX_ID_LENGTH


class MalformedFrameError(ValueError):
    """Raised when a client frame is not a JSON object with a string "type"."""


# ==================== CLIENT → SERVER ====================


class ClientFrame(BaseModel):
    """Envelope shared by all client frames; unknown fields are kept."""

    model_config = ConfigDict(extra="allow")

    type: str


class AuthFrame(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["auth"]
    user_id: str = Field(alias="userId", max_length=MAX_ID_LENGTH)
    token: Optional[str] = None

    @field_validator("user_id")
    @classmethod
    def _exact_id(cls, value: str) -> str:
        # Ids are matched byte for byte against message receivers
        if not value.strip():
            raise ValueError("userId cannot be empty")
        if value != value.strip():
            raise ValueError("userId cannot have surrounding whitespace")
        return value


def parse_client_frame(raw: Union[str, bytes]) -> Union[AuthFrame, ClientFrame]:
    """
    Parse one text/binary WebSocket message.

    Raises:
        MalformedFrameError: not JSON, not an object, no string "type", or an
            "auth" frame without a usable userId
    """
    try:
        envelope = ClientFrame.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedFrameError(_first_error(e)) from e

    if envelope.type == "auth":
        try:
            return AuthFrame.model_validate_json(raw)
        except ValidationError as e:
            raise MalformedFrameError(f"invalid auth frame: {_first_error(e)}") from e

    return envelope


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "frame"
    return f"{location}: {first.get('msg', 'invalid')}"


# ==================== SERVER → CLIENT ====================


class NewMessageFrame(BaseModel):
    type: Literal["new_message"] = "new_message"
    data: MessageDTO


def encode_event(event: NotificationEvent) -> str:
    """Serialize a notification event to its JSON text frame."""
    if isinstance(event, NewMessageEvent):
        frame = NewMessageFrame(data=MessageDTO.from_entity(event.message))
    else:
        raise TypeError(f"Unsupported notification event: {type(event).__name__}")
    return frame.model_dump_json(by_alias=True)
