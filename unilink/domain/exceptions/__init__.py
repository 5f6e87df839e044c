"""
DOMAIN EXCEPTIONS - Business rule violations

These exceptions are raised by domain logic and caught by presentation layer.
Presentation layer maps them to HTTP status codes.
"""

from unilink.domain.exceptions.entity_not_found import EntityNotFoundError
from unilink.domain.exceptions.access_denied import AccessDeniedError
from unilink.domain.exceptions.validation_error import DomainValidationError
from unilink.domain.exceptions.persistence_error import PersistenceError

__all__ = [
    "EntityNotFoundError",
    "AccessDeniedError",
    "DomainValidationError",
    "PersistenceError",
]
