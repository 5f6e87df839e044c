"""
API Routers - FastAPI endpoint definitions.
"""

from unilink.presentation.api.messages import router as messages_router
from unilink.presentation.api.users import router as users_router
from unilink.presentation.api.notifications import router as notifications_router

__all__ = [
    "messages_router",
    "users_router",
    "notifications_router",
]
