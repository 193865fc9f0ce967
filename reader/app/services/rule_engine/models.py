"""Rule engine models."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from reader.app.services.filtering.models import Condition


class ActionKind(str, Enum):
    MARK_READ = "mark_read"
    MARK_UNREAD = "mark_unread"
    FAVORITE = "favorite"
    UNFAVORITE = "unfavorite"
    HIDE = "hide"
    UNHIDE = "unhide"
    READ_LATER = "read_later"
    REMOVE_READ_LATER = "remove_read_later"
    DELETE = "delete"
    RELABEL = "relabel"


class Action(BaseModel):
    """A named mutation applied to one matching article.

    A bare string such as "mark_read" (or "mark-read") is accepted as an
    action without parameters.
    """

    model_config = ConfigDict(frozen=True)

    kind: ActionKind
    parameters: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def from_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"kind": data}
        return data

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower().replace("-", "_")
        return v

    @model_validator(mode="after")
    def check_relabel_parameters(self) -> "Action":
        if self.kind is not ActionKind.RELABEL:
            return self
        keys = [k for k in ("labels", "add", "remove") if k in self.parameters]
        if not keys:
            raise ValueError("relabel requires 'labels', 'add' or 'remove'")
        for key in keys:
            value = self.parameters[key]
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ValueError(f"relabel parameter '{key}' must be a list of strings")
        return self


class Rule(BaseModel):
    """Conditions selecting articles plus the actions to run on each match.

    `enabled` and `position` only matter when several rules are applied to
    the same batch of articles; see RuleEngine.apply_rules().
    """

    id: Optional[int] = None
    name: str = ""
    enabled: bool = True
    position: int = 0
    conditions: list[Condition] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)

    @field_validator("conditions", "actions", mode="before")
    @classmethod
    def default_empty(cls, v: Any) -> Any:
        return [] if v is None else v


@dataclass
class RuleApplyResult:
    """Outcome of applying a rule to the corpus.

    `affected` counts articles with at least one successful action.
    """
    affected: int = 0
    matched: int = 0
    failed_actions: int = 0
    cancelled: bool = False
