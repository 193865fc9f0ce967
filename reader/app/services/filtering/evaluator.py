"""Condition chain evaluation.

A condition sequence is reduced strictly left to right: the first
condition's match seeds the result and every later condition folds into it
with its own `and`/`or`. There is no precedence and no grouping, so
`A or B and C` means `(A or B) and C`.

Evaluation is pure. The only shared state is the compiled regex cache,
which is safe to use from any number of threads or tasks.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from typing import Iterable, Optional, Sequence

from reader.app.core.config import settings
from reader.app.core.logging import get_logger
from reader.app.services.filtering.fields import FieldKind, FieldSpec, get_field
from reader.app.services.filtering.models import LOGIC_TOKENS, ArticleRecord, Condition

logger = get_logger(__name__)

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})

_RELATIVE_RE = re.compile(r"^\s*(\d+)\s*([mhdw])\s*$", re.IGNORECASE)
_RELATIVE_UNITS = {"m": "minutes", "h": "hours", "d": "days", "w": "weeks"}


def coerce_bool(value: str) -> Optional[bool]:
    """Coerce a condition value to a boolean, None if it is not one."""
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def parse_boundary(value: str, now: datetime) -> date | datetime | None:
    """Parse a temporal condition value.

    Accepts an ISO date (compared by calendar day), an ISO datetime
    (compared as an instant) or a relative duration such as `7d`, `12h`,
    `2w` or `30m`, meaning that long before `now`.
    """
    value = value.strip()
    match = _RELATIVE_RE.match(value)
    if match:
        amount, unit = int(match.group(1)), match.group(2).lower()
        return now - timedelta(**{_RELATIVE_UNITS[unit]: amount})
    if len(value) == 10:
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
    try:
        return _as_utc(datetime.fromisoformat(value))
    except ValueError:
        return None


def _parse_days(value: str) -> Optional[int]:
    try:
        days = int(value.strip())
    except ValueError:
        return None
    return days if days >= 0 else None


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@lru_cache(maxsize=512)
def _compile_regex(pattern: str) -> Optional[re.Pattern[str]]:
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.debug(f"Invalid regex pattern {pattern!r}: {e}")
        return None


def is_valid(condition: Condition) -> bool:
    """Check whether a condition can take part in evaluation.

    Multi-select fields need at least one candidate value; every other field
    needs a non-empty value that makes sense for its kind and operator.
    """
    if condition.logic is not None and condition.logic not in LOGIC_TOKENS:
        return False

    spec = get_field(condition.field)
    if spec is None:
        return False

    if spec.kind is FieldKind.MULTI_SELECT:
        return any(v.strip() for v in condition.values)

    if not condition.value.strip():
        return False

    if spec.kind is FieldKind.BOOLEAN:
        return coerce_bool(condition.value) is not None

    operator = spec.resolve_operator(condition.operator)
    if operator is None:
        return False

    if spec.kind is FieldKind.TEMPORAL:
        if operator == "within_days":
            return _parse_days(condition.value) is not None
        return parse_boundary(condition.value, datetime.now(timezone.utc)) is not None

    if operator == "regex":
        if len(condition.value) > settings.filter_regex_max_length:
            return False
        return _compile_regex(condition.value) is not None

    return True


def prepare_conditions(conditions: Iterable[Condition]) -> list[Condition]:
    """Drop invalid conditions and re-anchor the chain.

    The returned list is a fresh copy: its first condition has no logic and
    every later condition has an explicit `and`/`or` (missing logic means
    `and`). An empty result means no filter is active.
    """
    prepared: list[Condition] = []
    for condition in conditions:
        if not is_valid(condition):
            logger.debug(
                f"Skipping invalid condition id={condition.id} field={condition.field!r}"
            )
            continue
        if not prepared:
            if condition.logic is not None:
                condition = condition.model_copy(update={"logic": None})
        elif condition.logic is None:
            condition = condition.model_copy(update={"logic": "and"})
        prepared.append(condition)
    return prepared


def _match_text(text: Optional[str], operator: str, value: str) -> bool:
    text = text or ""
    if operator == "regex":
        pattern = _compile_regex(value)
        return pattern is not None and pattern.search(text) is not None

    haystack = text.lower()
    needle = value.lower()
    if operator in ("exact", "equals"):
        return haystack == needle
    if operator == "starts_with":
        return haystack.startswith(needle)
    if operator == "ends_with":
        return haystack.endswith(needle)
    return needle in haystack


def _match_multi_select(actual: Iterable[str], values: Sequence[str]) -> bool:
    wanted = {v.strip().casefold() for v in values if v.strip()}
    return any(item.strip().casefold() in wanted for item in actual if item)


def _match_temporal(
    published: Optional[datetime], operator: str, value: str, now: datetime
) -> bool:
    if published is None:
        return False
    published = _as_utc(published)

    if operator == "within_days":
        days = _parse_days(value)
        return days is not None and published >= now - timedelta(days=days)

    boundary = parse_boundary(value, now)
    if boundary is None:
        return False
    if isinstance(boundary, datetime):
        return published >= boundary if operator == "after" else published <= boundary
    # Date-only values compare whole days, inclusive on both sides
    day = published.date()
    return day >= boundary if operator == "after" else day <= boundary


def match_condition(
    article: ArticleRecord, condition: Condition, now: datetime
) -> bool:
    """Atomic match of one condition against an article, ignoring negate."""
    spec: Optional[FieldSpec] = get_field(condition.field)
    if spec is None:
        return False

    actual = spec.accessor(article)

    if spec.kind is FieldKind.MULTI_SELECT:
        return _match_multi_select(actual or (), condition.values)

    if spec.kind is FieldKind.BOOLEAN:
        wanted = coerce_bool(condition.value)
        return wanted is not None and bool(actual) == wanted

    operator = spec.resolve_operator(condition.operator)
    if operator is None:
        return False

    if spec.kind is FieldKind.TEMPORAL:
        return _match_temporal(actual, operator, condition.value, now)

    return _match_text(actual, operator, condition.value)


def evaluate(
    article: ArticleRecord,
    conditions: Sequence[Condition],
    now: Optional[datetime] = None,
) -> bool:
    """Evaluate a prepared condition chain against one article.

    Args:
        article: Article snapshot to test
        conditions: Non-empty sequence of valid conditions, see
            prepare_conditions()
        now: Reference time for relative temporal values; pass the same
            value for a whole batch to keep results consistent

    Returns:
        True if the article matches the chain

    Raises:
        ValueError: If conditions is empty
    """
    if not conditions:
        raise ValueError("evaluate() requires at least one condition")

    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)

    first = conditions[0]
    result = match_condition(article, first, now) != first.negate
    for condition in conditions[1:]:
        matched = match_condition(article, condition, now) != condition.negate
        if condition.logic == "or":
            result = result or matched
        else:
            result = result and matched
    return result
