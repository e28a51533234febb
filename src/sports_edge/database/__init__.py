"""Database models and operations."""

from .models import Base, StoredBlob, utc_now
from .session import create_db_engine, create_session_factory, init_db, session_scope

__all__ = [
    "Base",
    "StoredBlob",
    "create_db_engine",
    "create_session_factory",
    "init_db",
    "session_scope",
    "utc_now",
]
