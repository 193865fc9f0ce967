"""Article read and mutation operations.

Reads return ArticleRecord snapshots joined with their feed, in the stable
scan order `published_at DESC, id DESC`. Batches are fetched by keyset so
rows are neither skipped nor repeated between consecutive batches.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reader.app.db.models import Article, Feed
from reader.app.services.filtering.models import ArticleRecord

# (published_at, id) of the last article of the previous batch
ScanCursor = Tuple[datetime, int]


def _as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)


def to_record(article: Article, feed: Optional[Feed]) -> ArticleRecord:
    """Snapshot an ORM article and its feed for evaluation."""
    return ArticleRecord(
        id=article.id,
        feed_id=article.feed_id,
        title=article.title,
        url=article.url,
        author=article.author,
        summary=article.summary,
        content=article.content,
        categories=tuple(article.categories or ()),
        published_at=_as_utc(article.published_at),
        is_read=bool(article.is_read),
        is_favorite=bool(article.is_favorite),
        is_hidden=bool(article.is_hidden),
        is_read_later=bool(article.is_read_later),
        feed_title=feed.title if feed is not None else None,
        feed_category=feed.category if feed is not None else None,
        feed_type=feed.feed_type if feed is not None else None,
        feed_tags=tuple(feed.tags or ()) if feed is not None else (),
        is_image_mode_feed=bool(feed.is_image_mode) if feed is not None else False,
    )


async def fetch_article_batch(
    session: AsyncSession,
    limit: int,
    after: Optional[ScanCursor] = None
) -> List[ArticleRecord]:
    """Fetch the next batch of articles in scan order.

    Args:
        session: Database session
        limit: Maximum number of articles to return
        after: Cursor of the last article already seen, None to start

    Returns:
        Up to `limit` article snapshots
    """
    query = select(Article, Feed).outerjoin(Feed, Article.feed_id == Feed.id)
    if after is not None:
        last_published, last_id = after
        query = query.where(
            or_(
                Article.published_at < last_published,
                and_(Article.published_at == last_published, Article.id < last_id),
            )
        )
    query = query.order_by(Article.published_at.desc(), Article.id.desc()).limit(limit)
    result = await session.execute(query)
    return [to_record(article, feed) for article, feed in result.all()]


async def get_article(
    session: AsyncSession,
    article_id: int
) -> Optional[ArticleRecord]:
    """Get an article snapshot by ID."""
    result = await session.execute(
        select(Article, Feed)
        .outerjoin(Feed, Article.feed_id == Feed.id)
        .where(Article.id == article_id)
    )
    row = result.first()
    return to_record(row[0], row[1]) if row is not None else None


async def set_article_flags(
    session: AsyncSession,
    article_id: int,
    **flags: bool
) -> bool:
    """Set boolean flags (is_read, is_favorite, ...) on one article.

    Returns:
        True if the article exists, False otherwise
    """
    result = await session.execute(
        update(Article).where(Article.id == article_id).values(**flags)
    )
    return result.rowcount > 0


async def delete_article(session: AsyncSession, article_id: int) -> bool:
    """Delete one article. Returns False if it did not exist."""
    result = await session.execute(delete(Article).where(Article.id == article_id))
    return result.rowcount > 0


async def relabel_article(
    session: AsyncSession,
    article_id: int,
    labels: Optional[Iterable[str]] = None,
    add: Iterable[str] = (),
    remove: Iterable[str] = ()
) -> bool:
    """Change an article's category set.

    `labels` replaces the whole set; otherwise `add` and `remove` are
    applied to the current set, keeping its order.

    Returns:
        True if the article exists, False otherwise
    """
    article = await session.get(Article, article_id)
    if article is None:
        return False

    if labels is not None:
        categories = list(dict.fromkeys(labels))
    else:
        removed = set(remove)
        categories = [c for c in (article.categories or []) if c not in removed]
        categories.extend(c for c in add if c not in categories and c not in removed)

    # Assign a new list so the JSON column is flagged as modified
    article.categories = categories
    return True
