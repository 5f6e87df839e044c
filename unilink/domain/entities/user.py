"""
User Entity - A member of the university network.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from unilink.domain.value_objects.user_id import UserId

VALID_ROLES = ("student", "alumni", "faculty", "admin")


@dataclass
class User:
    # Required fields (no defaults) - must come first
    id: UserId
    created_at: datetime
    # Optional fields (with defaults) - must come last
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: str = "student"
    title: Optional[str] = None
    university: Optional[str] = None

    def __post_init__(self):
        if self.role not in VALID_ROLES:
            raise ValueError(
                f"Invalid role: {self.role}. Must be one of {list(VALID_ROLES)}."
            )

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email or self.id.value
