"""User queries."""

from .get_user import GetUserQuery, GetUserHandler

__all__ = ["GetUserQuery", "GetUserHandler"]
