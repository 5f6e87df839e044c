"""
AccessDeniedError - Raised when a user acts on a message they may not touch.

Maps to: HTTP 403 Forbidden
"""

from typing import Optional


class AccessDeniedError(Exception):
    def __init__(self, message: str = "Access denied", user_id: Optional[object] = None):
        super().__init__(message)
        self.user_id = None if user_id is None else str(user_id)
