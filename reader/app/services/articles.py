"""Article corpus access for filtering and rule application."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reader.app.core.logging import get_logger
from reader.app.db.crud.article import ScanCursor, fetch_article_batch
from reader.app.exceptions import ArticleSourceError
from reader.app.services.filtering import (
    ArticleRecord,
    Condition,
    evaluate,
    prepare_conditions,
)

logger = get_logger(__name__)


class ArticleSource(Protocol):
    """Enumerates the article corpus in a stable order."""

    def iter_batches(self, batch_size: int) -> AsyncGenerator[list[ArticleRecord], None]:
        """Yield the corpus as consecutive batches of article snapshots.

        Raises:
            ArticleSourceError: If the corpus cannot be read
        """
        ...


class DatabaseArticleSource:
    """ArticleSource over the `articles` table.

    Each batch is read in its own short session, so no read transaction is
    held open while callers write to the articles between batches.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def iter_batches(
        self, batch_size: int
    ) -> AsyncGenerator[list[ArticleRecord], None]:
        cursor: Optional[ScanCursor] = None
        while True:
            try:
                async with self._session_maker() as session:
                    batch = await fetch_article_batch(session, batch_size, after=cursor)
            except SQLAlchemyError as e:
                logger.error(f"Failed to read article batch: {e}")
                raise ArticleSourceError(f"Failed to read articles: {e}") from e

            if not batch:
                return
            yield batch
            if len(batch) < batch_size:
                return
            last = batch[-1]
            cursor = (last.published_at, last.id)


@dataclass
class FilteredPage:
    """One page of articles matching a filter."""
    articles: list[ArticleRecord]
    total: int
    has_more: bool


async def filter_articles(
    source: ArticleSource,
    conditions: Sequence[Condition],
    page: int,
    limit: int,
    batch_size: int,
    now: Optional[datetime] = None,
) -> FilteredPage:
    """Evaluate conditions over the corpus and return one page of matches.

    The corpus is scanned batch by batch in the source's stable order, so
    consecutive page requests neither skip nor repeat articles. When no
    valid condition remains after preparation no filter is active and every
    article matches.

    Args:
        source: Article corpus
        conditions: Raw conditions, invalid ones are dropped
        page: 1-based page number
        limit: Page size
        batch_size: Articles read from the source per batch
        now: Reference time for relative temporal conditions
    """
    prepared = prepare_conditions(conditions)
    now = now or datetime.now(timezone.utc)

    start = (page - 1) * limit
    end = start + limit
    total = 0
    articles: list[ArticleRecord] = []

    async for batch in source.iter_batches(batch_size):
        for article in batch:
            if prepared and not evaluate(article, prepared, now):
                continue
            if start <= total < end:
                articles.append(article)
            total += 1

    return FilteredPage(articles=articles, total=total, has_more=total > end)
