"""
PersistenceError - Raised when the durable store rejects or fails a write/read.
Maps to: HTTP 500 Internal Server Error

Repositories raise it instead of leaking driver exceptions, so callers can tell
a failed write apart from a successful one without knowing the driver.
"""


class PersistenceError(Exception):
    """Exception raised when a repository operation fails."""

    def __init__(self, message: str = "Persistence operation failed."):
        super().__init__(message)
