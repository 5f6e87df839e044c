"""
EntityNotFoundError - Raised when a message or user does not exist.

Maps to: HTTP 404 Not Found
"""


class EntityNotFoundError(Exception):
    """A lookup by id found nothing. ``entity`` is "Message" or "User"."""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} {entity_id} not found.")
        self.entity = entity
        self.entity_id = str(entity_id)
