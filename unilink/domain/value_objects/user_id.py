"""
UserId Value Object - opaque identifier issued by the identity provider.
"""

from dataclasses import dataclass

MAX_ID_LENGTH = 255


@dataclass(frozen=True)
class UserId:
    value: str  # user_id, opaque (the token "sub" claim)

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("UserId cannot be empty")
        if len(self.value) > MAX_ID_LENGTH:
            raise ValueError(f"UserId cannot exceed {MAX_ID_LENGTH} characters")

    def __str__(self) -> str:
        return self.value
