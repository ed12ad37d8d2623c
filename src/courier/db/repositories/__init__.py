"""Repository classes for database operations."""

from courier.db.repositories.config import AutoReplyConfigRepository

__all__ = [
    "AutoReplyConfigRepository",
]
