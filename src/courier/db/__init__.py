"""Database module for Courier."""

from courier.db.engine import create_engine, create_session_factory, get_session
from courier.db.models import Base, AutoReplyConfigModel, WhitelistEntryModel

__all__ = [
    "create_engine",
    "create_session_factory",
    "get_session",
    "Base",
    "AutoReplyConfigModel",
    "WhitelistEntryModel",
]
