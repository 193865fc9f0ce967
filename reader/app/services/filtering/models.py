"""Filtering data models."""
from dataclasses import dataclass, field as dataclass_field
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOGIC_TOKENS = ("and", "or")
# Spellings of an absent combinator
NO_LOGIC = ("", "none", "null")


class Condition(BaseModel):
    """One predicate of a filter chain plus its combinator.

    `logic` combines this condition with the result accumulated so far and
    is None for the condition that starts the chain. `negate` inverts only
    this condition's own match. A logic token other than `and` or `or`
    leaves the condition invalid rather than failing the whole payload.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = 0
    logic: Optional[str] = None
    negate: bool = False
    field: str = ""
    operator: Optional[str] = None
    value: str = ""
    values: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if v is None:
            return 0
        if isinstance(v, float):
            return int(v)
        return v

    @field_validator("logic", mode="before")
    @classmethod
    def normalize_logic(cls, v: Any) -> Any:
        if v is None:
            return None
        v = str(v).strip().lower()
        if v in NO_LOGIC:
            return None
        return v

    @field_validator("operator", mode="before")
    @classmethod
    def normalize_operator(cls, v: Any) -> Any:
        if v is None:
            return None
        v = str(v).strip().lower()
        return v or None

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator("values", mode="before")
    @classmethod
    def stringify_values(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v if item is not None]
        return v


@dataclass(frozen=True)
class ArticleRecord:
    """Read-only snapshot of an article and its feed, as seen by filters."""

    id: int
    feed_id: Optional[int] = None
    title: Optional[str] = None
    url: Optional[str] = None
    author: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    categories: tuple[str, ...] = ()
    published_at: Optional[datetime] = None
    is_read: bool = False
    is_favorite: bool = False
    is_hidden: bool = False
    is_read_later: bool = False
    feed_title: Optional[str] = None
    feed_category: Optional[str] = None
    feed_type: Optional[str] = None
    feed_tags: tuple[str, ...] = dataclass_field(default=())
    is_image_mode_feed: bool = False
