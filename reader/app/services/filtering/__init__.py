"""Article filtering package.

- models.py: Condition and ArticleRecord
- fields.py: Known article fields and their operators
- evaluator.py: Chain evaluation
- codec.py: Versioned condition serialization
"""

from reader.app.services.filtering.codec import (
    SCHEMA_VERSION,
    canonicalize_conditions,
    decode_conditions,
    encode_conditions,
    parse_conditions,
)
from reader.app.services.filtering.evaluator import (
    evaluate,
    is_valid,
    match_condition,
    prepare_conditions,
)
from reader.app.services.filtering.fields import (
    FIELD_ALIASES,
    FIELDS,
    FieldKind,
    FieldSpec,
    get_field,
)
from reader.app.services.filtering.models import ArticleRecord, Condition

__all__ = [
    "ArticleRecord",
    "Condition",
    "FIELDS",
    "FIELD_ALIASES",
    "FieldKind",
    "FieldSpec",
    "SCHEMA_VERSION",
    "canonicalize_conditions",
    "decode_conditions",
    "encode_conditions",
    "evaluate",
    "get_field",
    "is_valid",
    "match_condition",
    "parse_conditions",
    "prepare_conditions",
]
