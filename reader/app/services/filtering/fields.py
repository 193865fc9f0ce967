"""Known article fields and the operators each field kind accepts."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from reader.app.services.filtering.models import ArticleRecord


class FieldKind(str, Enum):
    TEXT = "text"
    MULTI_SELECT = "multi_select"
    BOOLEAN = "boolean"
    TEMPORAL = "temporal"


TEXT_OPERATORS = frozenset(
    {"contains", "exact", "equals", "starts_with", "ends_with", "regex"}
)
TEMPORAL_OPERATORS = frozenset({"before", "after", "within_days"})


@dataclass(frozen=True)
class FieldSpec:
    """How a condition field reads an article and which operators apply.

    `fixed_operator` is set for fields whose operator is implied by the
    field itself; the condition's own operator is then ignored.
    """

    name: str
    kind: FieldKind
    accessor: Callable[[ArticleRecord], Any]
    default_operator: Optional[str] = None
    fixed_operator: Optional[str] = None

    @property
    def operators(self) -> frozenset[str]:
        if self.kind is FieldKind.TEXT:
            return TEXT_OPERATORS
        if self.kind is FieldKind.TEMPORAL:
            return TEMPORAL_OPERATORS
        return frozenset()

    def resolve_operator(self, operator: Optional[str]) -> Optional[str]:
        """Return the operator to evaluate with, or None if it is not allowed."""
        if self.fixed_operator is not None:
            return self.fixed_operator
        if self.kind in (FieldKind.MULTI_SELECT, FieldKind.BOOLEAN):
            return None
        operator = operator or self.default_operator
        return operator if operator in self.operators else None


def _scalar_set(value: Optional[str]) -> tuple[str, ...]:
    return (value,) if value else ()


def _feed_id_set(feed_id: Optional[int]) -> tuple[str, ...]:
    return (str(feed_id),) if feed_id is not None else ()


FIELDS: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        # Text fields
        FieldSpec("article_title", FieldKind.TEXT, lambda a: a.title, "contains"),
        FieldSpec(
            "article_content",
            FieldKind.TEXT,
            lambda a: a.content if a.content else a.summary,
            "contains",
        ),
        FieldSpec("article_summary", FieldKind.TEXT, lambda a: a.summary, "contains"),
        FieldSpec("author", FieldKind.TEXT, lambda a: a.author, "contains"),
        FieldSpec("url", FieldKind.TEXT, lambda a: a.url, "contains"),
        # Multi-select fields, matched against a set of candidate values
        FieldSpec("feed_id", FieldKind.MULTI_SELECT, lambda a: _feed_id_set(a.feed_id)),
        FieldSpec("feed_name", FieldKind.MULTI_SELECT, lambda a: _scalar_set(a.feed_title)),
        FieldSpec(
            "feed_category", FieldKind.MULTI_SELECT, lambda a: _scalar_set(a.feed_category)
        ),
        FieldSpec("feed_type", FieldKind.MULTI_SELECT, lambda a: _scalar_set(a.feed_type)),
        FieldSpec("feed_tags", FieldKind.MULTI_SELECT, lambda a: a.feed_tags),
        FieldSpec("article_category", FieldKind.MULTI_SELECT, lambda a: a.categories),
        # Boolean flags
        FieldSpec("is_read", FieldKind.BOOLEAN, lambda a: a.is_read),
        FieldSpec("is_favorite", FieldKind.BOOLEAN, lambda a: a.is_favorite),
        FieldSpec("is_hidden", FieldKind.BOOLEAN, lambda a: a.is_hidden),
        FieldSpec("is_read_later", FieldKind.BOOLEAN, lambda a: a.is_read_later),
        FieldSpec("is_image_mode_feed", FieldKind.BOOLEAN, lambda a: a.is_image_mode_feed),
        FieldSpec(
            "is_freshrss_feed", FieldKind.BOOLEAN, lambda a: a.feed_type == "freshrss"
        ),
        # Temporal fields
        FieldSpec("published_at", FieldKind.TEMPORAL, lambda a: a.published_at, "after"),
        FieldSpec(
            "published_after",
            FieldKind.TEMPORAL,
            lambda a: a.published_at,
            fixed_operator="after",
        ),
        FieldSpec(
            "published_before",
            FieldKind.TEMPORAL,
            lambda a: a.published_at,
            fixed_operator="before",
        ),
    )
}

# Short attribute names accepted alongside the registry names
FIELD_ALIASES: dict[str, str] = {
    "title": "article_title",
    "content": "article_content",
    "summary": "article_summary",
    "link": "url",
    "categories": "article_category",
    "category": "article_category",
    "read": "is_read",
    "favorite": "is_favorite",
    "hidden": "is_hidden",
    "read_later": "is_read_later",
    "published": "published_at",
}
FIELDS.update({alias: FIELDS[name] for alias, name in FIELD_ALIASES.items()})


def get_field(name: str) -> Optional[FieldSpec]:
    """Look up a field by registry name or alias, None if the field is unknown."""
    return FIELDS.get(name.strip().lower())
