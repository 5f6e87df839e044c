"""
REPOSITORY PORTS - Data persistence interfaces

Each repository port:
- Is an abstract base class (ABC)
- Defines methods the domain needs
- Does NOT specify implementation (Prisma, SQLAlchemy, etc.)

Infrastructure layer provides implementations.
"""

from unilink.domain.ports.repositories.message_repository import MessageRepository
from unilink.domain.ports.repositories.user_repository import UserRepository

__all__ = [
    "MessageRepository",
    "UserRepository",
]
