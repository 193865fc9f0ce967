"""CRUD operations package.

- saved_filter.py: Saved filter persistence and ordering
- article.py: Article scans and per-article mutations
"""

from reader.app.db.crud.article import (
    delete_article,
    fetch_article_batch,
    get_article,
    relabel_article,
    set_article_flags,
    to_record,
)
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

__all__ = [
    # Saved filter operations
    "PositionUpdate",
    "create_saved_filter",
    "delete_saved_filter",
    "get_next_position",
    "get_saved_filter",
    "list_saved_filters",
    "reorder_saved_filters",
    "update_saved_filter",
    # Article operations
    "delete_article",
    "fetch_article_batch",
    "get_article",
    "relabel_article",
    "set_article_flags",
    "to_record",
]
