"""RuleEngine: bulk application of rule actions to matching articles."""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from reader.app.core.config import settings
from reader.app.core.logging import get_log_context, get_logger
from reader.app.exceptions import ValidationError
from reader.app.services.articles import ArticleSource
from reader.app.services.filtering import (
    ArticleRecord,
    Condition,
    evaluate,
    prepare_conditions,
)
from reader.app.services.rule_engine.executor import ActionExecutor
from reader.app.services.rule_engine.models import Action, Rule, RuleApplyResult

logger = get_logger(__name__)


class RuleEngine:
    """Applies rule actions to every article matching the rule's conditions.

    Articles within a batch are processed concurrently, bounded by
    `max_workers`; the actions of one article always run in order. Delivery
    is at-least-once: a cancelled or interrupted run keeps the actions it
    already applied, and re-running a rule is safe because every action is
    idempotent except `delete`, which reports the vanished article as a
    failed action.
    """

    def __init__(
        self,
        source: ArticleSource,
        executor: ActionExecutor,
        max_workers: Optional[int] = None,
        batch_size: Optional[int] = None,
    ):
        self.source = source
        self.executor = executor
        self.max_workers = max_workers or settings.rule_max_workers
        self.batch_size = batch_size or settings.article_scan_batch_size

    async def apply_rule(
        self,
        rule: Rule,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RuleApplyResult:
        """Apply a rule to the whole corpus.

        Args:
            rule: Conditions and actions to apply; conditions that fail
                validation are dropped, and a rule left with none matches
                every article
            cancel_event: When set, no further batch or article is started

        Returns:
            RuleApplyResult with the number of affected articles

        Raises:
            ValidationError: If the rule has no actions
            ArticleSourceError: If the corpus cannot be read
        """
        if not rule.actions:
            raise ValidationError("Rule must have at least one action", field="actions")

        conditions = prepare_conditions(rule.conditions)
        now = datetime.now(timezone.utc)
        semaphore = asyncio.Semaphore(self.max_workers)
        result = RuleApplyResult()

        logger.info(
            f"Applying rule with {len(conditions)} condition(s) "
            f"and {len(rule.actions)} action(s)",
            extra=get_log_context(rule_name=rule.name or None),
        )

        async def process(article: ArticleRecord) -> None:
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                return
            if not self._matches(article, conditions, now):
                return
            result.matched += 1
            async with semaphore:
                if await self._run_actions(rule, article, rule.actions, result):
                    result.affected += 1

        async with aclosing(self.source.iter_batches(self.batch_size)) as batches:
            async for batch in batches:
                if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    break
                await asyncio.gather(*(process(article) for article in batch))

        if result.cancelled:
            logger.warning(
                f"Rule application cancelled after {result.affected} affected article(s)",
                extra=get_log_context(rule_name=rule.name or None),
            )
        else:
            logger.info(
                f"Rule applied: matched={result.matched} affected={result.affected} "
                f"failed_actions={result.failed_actions}",
                extra=get_log_context(rule_name=rule.name or None),
            )
        return result

    async def apply_rules(
        self,
        rules: Iterable[Rule],
        articles: Sequence[ArticleRecord],
    ) -> RuleApplyResult:
        """Apply a rule set to the given articles, first match wins.

        Enabled rules are tried in position order; each article gets the
        actions of the first rule it matches and no other. Rules without
        actions are skipped.
        """
        ordered = sorted(
            (r for r in rules if r.enabled and r.actions),
            key=lambda r: r.position,
        )
        prepared = [(rule, prepare_conditions(rule.conditions)) for rule in ordered]
        now = datetime.now(timezone.utc)
        semaphore = asyncio.Semaphore(self.max_workers)
        result = RuleApplyResult()

        async def process(article: ArticleRecord) -> None:
            for rule, conditions in prepared:
                if not self._matches(article, conditions, now):
                    continue
                result.matched += 1
                async with semaphore:
                    if await self._run_actions(rule, article, rule.actions, result):
                        result.affected += 1
                return

        if prepared:
            await asyncio.gather(*(process(article) for article in articles))
        return result

    @staticmethod
    def _matches(
        article: ArticleRecord, conditions: Sequence[Condition], now: datetime
    ) -> bool:
        return not conditions or evaluate(article, conditions, now)

    async def _run_actions(
        self,
        rule: Rule,
        article: ArticleRecord,
        actions: Sequence[Action],
        result: RuleApplyResult,
    ) -> bool:
        succeeded = False
        for action in actions:
            try:
                await self.executor.execute(article.id, action)
                succeeded = True
            except Exception as e:
                result.failed_actions += 1
                logger.warning(
                    f"Action {action.kind.value} failed for article {article.id}: {e}",
                    extra=get_log_context(
                        rule_name=rule.name or None,
                        article_id=article.id,
                        action=action.kind.value,
                    ),
                )
        return succeeded
