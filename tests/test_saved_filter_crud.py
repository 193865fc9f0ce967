"""Tests for saved filter CRUD operations against SQLite."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from reader.app.db.crud import saved_filter as saved_filter_crud
from reader.app.db.crud.saved_filter import (
    PositionUpdate,
    create_saved_filter,
    delete_saved_filter,
    get_next_position,
    get_saved_filter,
    list_saved_filters,
    reorder_saved_filters,
    update_saved_filter,
)
from reader.app.exceptions import ConflictError, NotFoundError

CONDITIONS = '{"version": 1, "conditions": []}'


def _naive(moment: datetime) -> datetime:
    return moment.replace(tzinfo=None)


async def _positions(session_maker) -> dict[str, int]:
    async with session_maker() as session:
        return {f.name: f.position for f in await list_saved_filters(session)}


class TestCreate:
    """Test create_saved_filter."""

    @pytest.mark.asyncio
    async def test_positions_are_appended(self, session):
        assert await get_next_position(session) == 1

        first = await create_saved_filter(session, "Unread Go", CONDITIONS)
        second = await create_saved_filter(session, "Favorites", CONDITIONS)

        assert first.position == 1
        assert second.position == 2
        assert await get_next_position(session) == 3

    @pytest.mark.asyncio
    async def test_timestamps_are_equal_on_create(self, session):
        saved = await create_saved_filter(session, "Unread Go", CONDITIONS)
        assert saved.created_at == saved.updated_at

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts_without_new_row(self, session):
        await create_saved_filter(session, "Unread Go", CONDITIONS)
        before = len(await list_saved_filters(session))

        with pytest.raises(ConflictError) as exc_info:
            await create_saved_filter(session, "Unread Go", '{"version": 1, "conditions": [{}]}')

        assert "already exists" in exc_info.value.message
        assert len(await list_saved_filters(session)) == before

    @pytest.mark.asyncio
    async def test_position_after_deleting_last(self, session):
        await create_saved_filter(session, "A", CONDITIONS)
        b = await create_saved_filter(session, "B", CONDITIONS)
        await delete_saved_filter(session, b.id)

        c = await create_saved_filter(session, "C", CONDITIONS)
        assert c.position == 2


class TestUpdate:
    """Test update_saved_filter."""

    @pytest.mark.asyncio
    async def test_update_keeps_position_and_refreshes_updated_at(self, session, monkeypatch):
        await create_saved_filter(session, "First", CONDITIONS)
        saved = await create_saved_filter(session, "Second", CONDITIONS)
        created_at = saved.created_at

        later = datetime.now(timezone.utc) + timedelta(hours=1)
        monkeypatch.setattr(saved_filter_crud, "_utcnow", lambda: later)

        updated = await update_saved_filter(session, saved.id, "Renamed", '{"version": 1, "conditions": [{"field": "author", "value": "x"}]}')

        assert updated.name == "Renamed"
        assert "author" in updated.conditions
        assert updated.position == 2
        assert _naive(updated.created_at) == _naive(created_at)
        assert _naive(updated.updated_at) == _naive(later)

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, session):
        with pytest.raises(NotFoundError):
            await update_saved_filter(session, 999, "Nope", CONDITIONS)

    @pytest.mark.asyncio
    async def test_rename_onto_existing_name_conflicts(self, session):
        await create_saved_filter(session, "Taken", CONDITIONS)
        other = await create_saved_filter(session, "Other", CONDITIONS)

        with pytest.raises(ConflictError):
            await update_saved_filter(session, other.id, "Taken", CONDITIONS)

        reloaded = await get_saved_filter(session, other.id)
        assert reloaded.name == "Other"

    @pytest.mark.asyncio
    async def test_update_keeping_own_name(self, session):
        saved = await create_saved_filter(session, "Same", CONDITIONS)
        updated = await update_saved_filter(session, saved.id, "Same", CONDITIONS)
        assert updated.name == "Same"


class TestDelete:
    """Test delete_saved_filter."""

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, session):
        saved = await create_saved_filter(session, "Temp", CONDITIONS)

        assert await delete_saved_filter(session, saved.id) is True
        assert await delete_saved_filter(session, saved.id) is False
        assert await get_saved_filter(session, saved.id) is None


class TestReorder:
    """Test reorder_saved_filters atomicity."""

    @pytest.mark.asyncio
    async def test_reorder_applies_all_positions(self, session):
        a = await create_saved_filter(session, "A", CONDITIONS)
        b = await create_saved_filter(session, "B", CONDITIONS)
        c = await create_saved_filter(session, "C", CONDITIONS)

        updated = await reorder_saved_filters(
            session,
            [PositionUpdate(c.id, 1), PositionUpdate(a.id, 2), PositionUpdate(b.id, 3)],
        )

        assert updated == 3
        assert [f.name for f in await list_saved_filters(session)] == ["C", "A", "B"]

    @pytest.mark.asyncio
    async def test_equal_positions_are_ordered_by_id(self, session):
        a = await create_saved_filter(session, "A", CONDITIONS)
        b = await create_saved_filter(session, "B", CONDITIONS)

        await reorder_saved_filters(session, [PositionUpdate(b.id, 5), PositionUpdate(a.id, 5)])

        assert [f.name for f in await list_saved_filters(session)] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_unknown_id_leaves_positions_unchanged(self, session, session_maker):
        a = await create_saved_filter(session, "A", CONDITIONS)
        b = await create_saved_filter(session, "B", CONDITIONS)

        with pytest.raises(NotFoundError):
            await reorder_saved_filters(
                session,
                [PositionUpdate(a.id, 10), PositionUpdate(999, 11), PositionUpdate(b.id, 12)],
            )

        assert await _positions(session_maker) == {"A": 1, "B": 2}

    @pytest.mark.asyncio
    async def test_mid_batch_failure_leaves_positions_unchanged(self, session, session_maker):
        a = await create_saved_filter(session, "A", CONDITIONS)
        b = await create_saved_filter(session, "B", CONDITIONS)
        c = await create_saved_filter(session, "C", CONDITIONS)

        original_execute = session.execute
        calls = 0

        async def failing_execute(*args, **kwargs):
            nonlocal calls
            calls += 1
            if calls == 2:
                raise OperationalError("UPDATE saved_filters", {}, Exception("disk I/O error"))
            return await original_execute(*args, **kwargs)

        with patch.object(session, "execute", side_effect=failing_execute):
            with pytest.raises(OperationalError):
                await reorder_saved_filters(
                    session,
                    [PositionUpdate(a.id, 3), PositionUpdate(b.id, 2), PositionUpdate(c.id, 1)],
                )

        assert calls == 2
        assert await _positions(session_maker) == {"A": 1, "B": 2, "C": 3}
