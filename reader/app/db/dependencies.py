"""Database dependencies for FastAPI dependency injection.

Usage:
    from reader.app.db.dependencies import SessionDep

    @router.get("/items")
    async def get_items(session: SessionDep):
        ...

Request handlers use SessionDep for their own reads and writes. Services
that open one short session per unit of work (article scans, rule actions)
take the session maker through SessionMakerDep instead.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reader.app.db.async_session import get_async_session_maker, get_db


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    return get_async_session_maker()


SessionDep = Annotated[AsyncSession, Depends(get_db)]
SessionMakerDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)]

__all__ = ["SessionDep", "SessionMakerDep", "get_db", "get_session_maker"]
