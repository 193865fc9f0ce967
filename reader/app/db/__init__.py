"""Database package for the reader service.

This package provides:
- Database models (Feed, Article, SavedFilter)
- Asynchronous session management
- CRUD operations
- FastAPI dependency injection support
"""

from reader.app.db.async_session import (
    close_async_engine,
    get_async_engine,
    get_async_session,
    get_async_session_maker,
    get_db,
    make_session_maker,
)
from reader.app.db.models import Article, Base, Feed, SavedFilter

__all__ = [
    "Article",
    "Base",
    "Feed",
    "SavedFilter",
    "close_async_engine",
    "get_async_engine",
    "get_async_session",
    "get_async_session_maker",
    "get_db",
    "make_session_maker",
]
