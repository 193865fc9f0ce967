"""Action execution against the article store."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reader.app.db.crud.article import delete_article, relabel_article, set_article_flags
from reader.app.exceptions import NotFoundError
from reader.app.services.rule_engine.models import Action, ActionKind


class ActionExecutor(Protocol):
    """Executes one action on one article identified by its key."""

    async def execute(self, article_id: int, action: Action) -> None:
        """Apply the action.

        Raises:
            Exception: Any failure; the caller records it and moves on
        """
        ...


_FLAG_UPDATES: dict[ActionKind, dict[str, bool]] = {
    ActionKind.MARK_READ: {"is_read": True},
    ActionKind.MARK_UNREAD: {"is_read": False},
    ActionKind.FAVORITE: {"is_favorite": True},
    ActionKind.UNFAVORITE: {"is_favorite": False},
    ActionKind.HIDE: {"is_hidden": True},
    ActionKind.UNHIDE: {"is_hidden": False},
    ActionKind.READ_LATER: {"is_read_later": True},
    ActionKind.REMOVE_READ_LATER: {"is_read_later": False},
}


class DatabaseActionExecutor:
    """ActionExecutor writing to the `articles` table.

    Every action runs in its own session and transaction, so actions on
    different articles can run concurrently.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def execute(self, article_id: int, action: Action) -> None:
        async with self._session_maker() as session:
            async with session.begin():
                found = await self._apply(session, article_id, action)
        if not found:
            raise NotFoundError("Article", article_id)

    async def _apply(self, session: AsyncSession, article_id: int, action: Action) -> bool:
        flags = _FLAG_UPDATES.get(action.kind)
        if flags is not None:
            return await set_article_flags(session, article_id, **flags)

        if action.kind is ActionKind.DELETE:
            return await delete_article(session, article_id)

        if action.kind is ActionKind.RELABEL:
            params = action.parameters
            return await relabel_article(
                session,
                article_id,
                labels=params.get("labels"),
                add=params.get("add", ()),
                remove=params.get("remove", ()),
            )

        raise ValueError(f"Unsupported action: {action.kind}")
