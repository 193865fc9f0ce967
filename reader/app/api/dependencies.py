"""Service dependencies for the API routers.

Tests replace these through app.dependency_overrides to inject fake
article sources and action executors.
"""

from typing import Annotated

from fastapi import Depends

from reader.app.db.dependencies import SessionMakerDep
from reader.app.services.articles import ArticleSource, DatabaseArticleSource
from reader.app.services.rule_engine import DatabaseActionExecutor, RuleEngine


def get_article_source(session_maker: SessionMakerDep) -> ArticleSource:
    return DatabaseArticleSource(session_maker)


ArticleSourceDep = Annotated[ArticleSource, Depends(get_article_source)]


def get_rule_engine(
    session_maker: SessionMakerDep,
    source: ArticleSourceDep,
) -> RuleEngine:
    return RuleEngine(source, DatabaseActionExecutor(session_maker))


RuleEngineDep = Annotated[RuleEngine, Depends(get_rule_engine)]

__all__ = [
    "ArticleSourceDep",
    "RuleEngineDep",
    "get_article_source",
    "get_rule_engine",
]
