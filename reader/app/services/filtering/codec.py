"""Versioned serialization of condition sequences.

Saved filters store their conditions as a JSON envelope::

    {"version": 1, "conditions": [{"id": 1, "logic": null, ...}, ...]}

A bare JSON array of conditions is accepted as the legacy (version 0) form.
Anything else fails loudly with MalformedConditionsError instead of being
treated as an empty filter.
"""

import json
from typing import Any, Iterable

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from reader.app.exceptions import MalformedConditionsError
from reader.app.services.filtering.models import Condition

SCHEMA_VERSION = 1

_conditions_adapter = TypeAdapter(list[Condition])


def encode_conditions(conditions: Iterable[Condition]) -> str:
    """Serialize conditions into the current envelope format."""
    return json.dumps(
        {
            "version": SCHEMA_VERSION,
            "conditions": [c.model_dump(mode="json") for c in conditions],
        },
        ensure_ascii=False,
    )


def parse_conditions(items: Any) -> list[Condition]:
    """Validate already-decoded JSON into Condition objects."""
    if not isinstance(items, list):
        raise MalformedConditionsError("conditions must be a list")
    try:
        return _conditions_adapter.validate_python(items)
    except PydanticValidationError as e:
        raise MalformedConditionsError(
            f"{e.error_count()} invalid condition entries"
        ) from e


def decode_conditions(raw: str | bytes | None) -> list[Condition]:
    """Decode a serialized condition sequence.

    Raises:
        MalformedConditionsError: If the payload is empty, not JSON, of an
            unknown version, or does not describe a list of conditions.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedConditionsError("payload is not UTF-8") from e
    if raw is None or not raw.strip():
        raise MalformedConditionsError("conditions are empty")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedConditionsError(f"invalid JSON: {e.msg}") from e

    if isinstance(data, list):
        return parse_conditions(data)

    if not isinstance(data, dict):
        raise MalformedConditionsError("expected an object or a list")

    version = data.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        raise MalformedConditionsError("missing schema version")
    if version < 1 or version > SCHEMA_VERSION:
        raise MalformedConditionsError(f"unsupported schema version {version}")
    return parse_conditions(data.get("conditions"))


def canonicalize_conditions(raw: str) -> str:
    """Decode any accepted form and re-encode it as the current envelope."""
    return encode_conditions(decode_conditions(raw))
