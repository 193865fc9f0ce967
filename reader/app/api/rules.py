"""API endpoint for applying a rule to existing articles."""

import asyncio

from fastapi import APIRouter

from reader.app.api.dependencies import RuleEngineDep
from reader.app.core.config import settings
from reader.app.core.logging import get_logger
from reader.app.services.rule_engine import Rule

router = APIRouter(prefix="/api/rules", tags=["rules"])
logger = get_logger(__name__)


@router.post("/apply")
async def apply_rule(rule: Rule, engine: RuleEngineDep) -> dict:
    """Run a rule's actions on every matching article.

    When `rule_apply_timeout_seconds` is set, the run stops starting new
    work after the timeout and reports what it applied so far.
    """
    cancel_event = asyncio.Event()
    timer = None
    if settings.rule_apply_timeout_seconds > 0:
        timer = asyncio.get_running_loop().call_later(
            settings.rule_apply_timeout_seconds, cancel_event.set
        )
    try:
        result = await engine.apply_rule(rule, cancel_event=cancel_event)
    finally:
        if timer is not None:
            timer.cancel()

    if result.cancelled:
        logger.warning(
            f"Rule application timed out after "
            f"{settings.rule_apply_timeout_seconds}s; affected={result.affected}"
        )
    return {"success": True, "affected": result.affected}
