"""Rule engine package.

- models.py: Action, Rule and RuleApplyResult
- executor.py: ActionExecutor protocol and its database implementation
- engine.py: RuleEngine
"""

from reader.app.services.rule_engine.engine import RuleEngine
from reader.app.services.rule_engine.executor import ActionExecutor, DatabaseActionExecutor
from reader.app.services.rule_engine.models import (
    Action,
    ActionKind,
    Rule,
    RuleApplyResult,
)

__all__ = [
    "Action",
    "ActionExecutor",
    "ActionKind",
    "DatabaseActionExecutor",
    "Rule",
    "RuleApplyResult",
    "RuleEngine",
]
