"""API endpoint for filtering articles by condition chains."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reader.app.api.dependencies import ArticleSourceDep
from reader.app.core.config import settings
from reader.app.core.logging import get_log_context, get_logger
from reader.app.db.crud.saved_filter import get_saved_filter
from reader.app.db.dependencies import SessionDep
from reader.app.exceptions import MalformedConditionsError, NotFoundError
from reader.app.services.articles import filter_articles
from reader.app.services.filtering import Condition, decode_conditions

router = APIRouter(prefix="/api/articles", tags=["articles"])
logger = get_logger(__name__)


class ArticleFilterRequest(BaseModel):
    """Filter request: inline conditions or the ID of a saved filter."""

    conditions: Optional[List[Condition]] = None
    saved_filter_id: Optional[int] = None
    page: int = Field(1, ge=1)
    limit: int = Field(default_factory=lambda: settings.filter_default_page_size, ge=1)

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if v > settings.filter_max_page_size:
            raise ValueError(f"limit must be <= {settings.filter_max_page_size}")
        return v

    @model_validator(mode="after")
    def validate_source(self) -> "ArticleFilterRequest":
        if self.saved_filter_id is not None and self.conditions:
            raise ValueError("Pass either conditions or saved_filter_id, not both")
        return self


class ArticleResponse(BaseModel):
    """Schema for one article in a filter response."""

    id: int
    feed_id: Optional[int]
    feed_title: Optional[str]
    title: str
    url: str
    author: str
    summary: str
    content: Optional[str]
    categories: List[str]
    published_at: datetime
    is_read: bool
    is_favorite: bool
    is_hidden: bool
    is_read_later: bool

    model_config = ConfigDict(from_attributes=True)


class ArticleFilterResponse(BaseModel):
    articles: List[ArticleResponse]
    has_more: bool
    total: int


async def _load_saved_conditions(session: AsyncSession, filter_id: int) -> List[Condition]:
    try:
        saved = await get_saved_filter(session, filter_id)
    except SQLAlchemyError as e:
        logger.error(f"Database error loading saved filter {filter_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error occurred while loading the saved filter",
        )
    if saved is None:
        raise NotFoundError("Saved filter", filter_id)

    try:
        return decode_conditions(saved.conditions)
    except MalformedConditionsError as e:
        logger.warning(
            f"Saved filter has malformed conditions: {e.detail}",
            extra=get_log_context(filter_id=filter_id),
        )
        raise MalformedConditionsError(e.detail, filter_id=filter_id) from e


@router.post("/filter", response_model=ArticleFilterResponse)
async def filter_article_list(
    data: ArticleFilterRequest,
    session: SessionDep,
    source: ArticleSourceDep,
) -> ArticleFilterResponse:
    """Return one page of the articles matching the conditions.

    With no valid condition the unfiltered article list is paged.
    """
    if data.saved_filter_id is not None:
        conditions = await _load_saved_conditions(session, data.saved_filter_id)
    else:
        conditions = data.conditions or []

    page = await filter_articles(
        source,
        conditions,
        page=data.page,
        limit=data.limit,
        batch_size=settings.article_scan_batch_size,
    )
    return ArticleFilterResponse(
        articles=[ArticleResponse.model_validate(a) for a in page.articles],
        has_more=page.has_more,
        total=page.total,
    )
