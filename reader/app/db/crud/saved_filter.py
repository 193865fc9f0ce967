"""Saved filter CRUD operations.

Name uniqueness is enforced by the table's UNIQUE constraint rather than by
reading existing names first, so concurrent creates cannot both succeed.
"""
from datetime import datetime, timezone
from typing import Iterable, List, NamedTuple, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reader.app.core.logging import get_logger
from reader.app.db.models import SavedFilter
from reader.app.exceptions import ConflictError, NotFoundError

logger = get_logger(__name__)


class PositionUpdate(NamedTuple):
    """New display position for one saved filter."""
    id: int
    position: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def list_saved_filters(session: AsyncSession) -> List[SavedFilter]:
    """Get all saved filters ordered by position (ties broken by id)."""
    result = await session.execute(
        select(SavedFilter).order_by(SavedFilter.position.asc(), SavedFilter.id.asc())
    )
    return list(result.scalars().all())


async def get_saved_filter(
    session: AsyncSession,
    filter_id: int
) -> Optional[SavedFilter]:
    """Get a saved filter by ID, None if it does not exist."""
    result = await session.execute(
        select(SavedFilter).where(SavedFilter.id == filter_id)
    )
    return result.scalar_one_or_none()


async def get_next_position(session: AsyncSession) -> int:
    """Return max(position) + 1, or 1 when no filter exists."""
    result = await session.execute(
        select(func.coalesce(func.max(SavedFilter.position), 0))
    )
    return int(result.scalar_one()) + 1


async def create_saved_filter(
    session: AsyncSession,
    name: str,
    conditions: str,
    auto_commit: bool = True
) -> SavedFilter:
    """Create a saved filter at the end of the display order.

    Args:
        session: Database session
        name: Unique filter name
        conditions: Serialized condition sequence
        auto_commit: Whether to commit the transaction

    Returns:
        The created SavedFilter

    Raises:
        ConflictError: If a filter with the same name already exists
    """
    now = _utcnow()
    saved = SavedFilter(
        name=name,
        conditions=conditions,
        position=await get_next_position(session),
        created_at=now,
        updated_at=now,
    )
    session.add(saved)
    try:
        await session.flush()
        if auto_commit:
            await session.commit()
            await session.refresh(saved)
    except IntegrityError as e:
        await session.rollback()
        logger.info(f"Saved filter name already taken: {name!r}")
        raise ConflictError(name) from e
    return saved


async def update_saved_filter(
    session: AsyncSession,
    filter_id: int,
    name: str,
    conditions: str,
    auto_commit: bool = True
) -> SavedFilter:
    """Replace a saved filter's name and conditions.

    The position is left untouched and updated_at is refreshed.

    Raises:
        NotFoundError: If no filter has this ID
        ConflictError: If another filter already uses the new name
    """
    saved = await get_saved_filter(session, filter_id)
    if saved is None:
        raise NotFoundError("Saved filter", filter_id)

    saved.name = name
    saved.conditions = conditions
    saved.updated_at = _utcnow()
    try:
        await session.flush()
        if auto_commit:
            await session.commit()
            await session.refresh(saved)
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError(name) from e
    return saved


async def delete_saved_filter(
    session: AsyncSession,
    filter_id: int,
    auto_commit: bool = True
) -> bool:
    """Delete a saved filter by ID.

    Deleting an unknown ID is not an error.

    Returns:
        True if a row was removed, False if none existed
    """
    result = await session.execute(
        delete(SavedFilter).where(SavedFilter.id == filter_id)
    )
    if auto_commit:
        await session.commit()
    return result.rowcount > 0


async def reorder_saved_filters(
    session: AsyncSession,
    items: Iterable[PositionUpdate],
    auto_commit: bool = True
) -> int:
    """Apply a batch of position changes atomically.

    Either every position in the batch is written or, on any failure, the
    transaction is rolled back and no position changes.

    Returns:
        Number of filters updated

    Raises:
        NotFoundError: If an ID in the batch does not exist
    """
    updated = 0
    try:
        for item in items:
            result = await session.execute(
                update(SavedFilter)
                .where(SavedFilter.id == item.id)
                .values(position=item.position)
            )
            if result.rowcount == 0:
                raise NotFoundError("Saved filter", item.id)
            updated += 1
        if auto_commit:
            await session.commit()
    except Exception:
        await session.rollback()
        raise
    return updated
