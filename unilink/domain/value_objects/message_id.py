"""
MessageId Value Object - database-generated message identity.
"""

from dataclasses import dataclass

from unilink.domain.value_objects.user_id import MAX_ID_LENGTH


@dataclass(frozen=True)
class MessageId:
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("Message ID cannot be empty")
        if len(self.value) > MAX_ID_LENGTH:
            raise ValueError(f"Message ID cannot exceed {MAX_ID_LENGTH} characters")

    def __str__(self) -> str:
        return self.value
