"""
DTOs - Data Transfer Objects

DTOs for transferring data between layers:
- message.py → MessageDTO, MessageWithUsersDTO, ConversationSummaryDTO
- user.py → UserDTO

Note: These are different from domain entities.
DTOs are for API input/output, entities are for business logic.
"""

from unilink.application.dto.message import (
    ConversationSummaryDTO,
    MessageDTO,
    MessageWithUsersDTO,
)
from unilink.application.dto.user import UserDTO

__all__ = [
    "MessageDTO",
    "MessageWithUsersDTO",
    "ConversationSummaryDTO",
    "UserDTO",
]
