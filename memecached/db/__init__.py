"""Database package for memecached."""

from memecached.db.base import Base
from memecached.db.session import async_session_maker, enable_sqlite_pragmas, engine, get_db

__all__ = [
    "Base",
    "async_session_maker",
    "enable_sqlite_pragmas",
    "engine",
    "get_db",
]
