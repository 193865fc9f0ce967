"""HTTP API routers."""

from reader.app.api.articles import router as articles_router
from reader.app.api.rules import router as rules_router
from reader.app.api.saved_filters import router as saved_filters_router

__all__ = ["articles_router", "rules_router", "saved_filters_router"]
