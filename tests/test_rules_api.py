"""API integration tests for POST /api/rules/apply."""

import asyncio

import pytest

from reader.app.api.dependencies import get_rule_engine
from reader.app.core.config import settings
from reader.app.db.crud.article import get_article
from reader.app.services.rule_engine import RuleApplyResult

GO_CONDITIONS = [{"field": "article_title", "operator": "contains", "value": "go"}]


class TestApplyRule:
    """Test POST /api/rules/apply against the database."""

    @pytest.mark.asyncio
    async def test_apply_marks_matching_articles(self, client, add_article, session_maker):
        go_ids = [await add_article(f"Go {i}") for i in range(3)]
        rust_id = await add_article("Rust")

        response = await client.post(
            "/api/rules/apply",
            json={"conditions": GO_CONDITIONS, "actions": ["mark_read", "favorite"]},
        )

        assert response.status_code == 200, response.text
        assert response.json() == {"success": True, "affected": 3}
        async with session_maker() as session:
            for article_id in go_ids:
                record = await get_article(session, article_id)
                assert record.is_read and record.is_favorite
            assert (await get_article(session, rust_id)).is_read is False

    @pytest.mark.asyncio
    async def test_no_matches(self, client, add_article):
        await add_article("Rust")

        response = await client.post(
            "/api/rules/apply",
            json={"conditions": [{"field": "article_title", "value": "haskell"}], "actions": ["hide"]},
        )

        assert response.json() == {"success": True, "affected": 0}

    @pytest.mark.asyncio
    async def test_short_field_names_and_logic_none(self, client, add_article):
        await add_article("Go 1.22 released")
        await add_article("Go 1.21 released", is_read=True)
        conditions = [
            {"logic": "none", "field": "title", "operator": "contains", "value": "go"},
            {"logic": "and", "field": "read", "operator": "equals", "value": "false"},
        ]

        response = await client.post(
            "/api/rules/apply", json={"conditions": conditions, "actions": ["favorite"]}
        )

        assert response.status_code == 200, response.text
        assert response.json() == {"success": True, "affected": 1}

    @pytest.mark.asyncio
    async def test_empty_actions_return_400(self, client):
        response = await client.post(
            "/api/rules/apply", json={"conditions": GO_CONDITIONS, "actions": []}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_unknown_action_returns_400(self, client):
        response = await client.post(
            "/api/rules/apply", json={"conditions": GO_CONDITIONS, "actions": ["archive"]}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_relabel_action(self, client, add_article, session_maker):
        article_id = await add_article("Go generics", categories=["inbox"])

        response = await client.post(
            "/api/rules/apply",
            json={
                "conditions": GO_CONDITIONS,
                "actions": [{"kind": "relabel", "parameters": {"labels": ["golang"]}}],
            },
        )

        assert response.json()["affected"] == 1
        async with session_maker() as session:
            assert (await get_article(session, article_id)).categories == ("golang",)


class TestApplyRuleTimeout:
    """The configured timeout cancels the run through the cancel event."""

    @pytest.mark.asyncio
    async def test_timeout_sets_cancel_event(self, app, client, monkeypatch):
        monkeypatch.setattr(settings, "rule_apply_timeout_seconds", 0.01)
        seen = {}

        class SlowEngine:
            async def apply_rule(self, rule, cancel_event=None):
                await asyncio.wait_for(cancel_event.wait(), timeout=1)
                seen["cancelled"] = cancel_event.is_set()
                return RuleApplyResult(affected=2, matched=5, cancelled=True)

        app.dependency_overrides[get_rule_engine] = lambda: SlowEngine()

        response = await client.post(
            "/api/rules/apply", json={"conditions": GO_CONDITIONS, "actions": ["hide"]}
        )

        assert response.json() == {"success": True, "affected": 2}
        assert seen["cancelled"] is True

    @pytest.mark.asyncio
    async def test_no_timeout_by_default(self, app, client, monkeypatch):
        monkeypatch.setattr(settings, "rule_apply_timeout_seconds", 0.0)
        seen = {}

        class RecordingEngine:
            async def apply_rule(self, rule, cancel_event=None):
                await asyncio.sleep(0.02)
                seen["cancelled"] = cancel_event.is_set()
                return RuleApplyResult(affected=1)

        app.dependency_overrides[get_rule_engine] = lambda: RecordingEngine()

        response = await client.post(
            "/api/rules/apply", json={"conditions": GO_CONDITIONS, "actions": ["hide"]}
        )

        assert response.json()["affected"] == 1
        assert seen["cancelled"] is False
