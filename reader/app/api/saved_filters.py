"""API endpoints for managing saved filters."""

from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError

from reader.app.core.logging import get_log_context, get_logger
from reader.app.db.crud.saved_filter import (
    PositionUpdate,
    create_saved_filter,
    delete_saved_filter,
    list_saved_filters,
    reorder_saved_filters,
    update_saved_filter,
)
from reader.app.db.dependencies import SessionDep
from reader.app.db.models import SavedFilter
from reader.app.exceptions import MalformedConditionsError, ValidationError
from reader.app.services.filtering import (
    canonicalize_conditions,
    encode_conditions,
    parse_conditions,
)

router = APIRouter(prefix="/api/saved-filters", tags=["saved-filters"])
logger = get_logger(__name__)


class SavedFilterWrite(BaseModel):
    """Schema for creating or updating a saved filter.

    `conditions` is normally the JSON string the client stores verbatim; a
    JSON array of conditions is accepted as well.
    """

    name: Optional[str] = None
    conditions: Optional[str | List[Any]] = None


class SavedFilterResponse(BaseModel):
    """Schema for saved filter response."""

    id: int
    name: str
    conditions: str
    position: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PositionUpdateRequest(BaseModel):
    """One entry of a reorder request; other saved filter fields are ignored."""

    id: int
    position: int = Field(..., ge=0)

    model_config = ConfigDict(extra="ignore")


def _validated_write(data: SavedFilterWrite) -> tuple[str, str]:
    """Check a write request and return (name, canonical conditions)."""
    name = (data.name or "").strip()
    if not name:
        raise ValidationError("Name is required", field="name")

    conditions = data.conditions
    if conditions is None or (isinstance(conditions, str) and not conditions.strip()):
        raise ValidationError("Conditions are required", field="conditions")

    try:
        if isinstance(conditions, str):
            return name, canonicalize_conditions(conditions)
        return name, encode_conditions(parse_conditions(conditions))
    except MalformedConditionsError as e:
        raise ValidationError(e.message, field="conditions") from e


@router.get("", response_model=List[SavedFilterResponse])
async def list_filters(session: SessionDep) -> List[SavedFilter]:
    """List all saved filters in display order."""
    try:
        return await list_saved_filters(session)
    except SQLAlchemyError as e:
        logger.error(f"Database error listing saved filters: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error occurred while listing saved filters",
        )


@router.post(
    "", response_model=SavedFilterResponse, status_code=status.HTTP_201_CREATED
)
async def create_filter(
    data: SavedFilterWrite,
    session: SessionDep,
) -> SavedFilter:
    """Create a saved filter at the end of the list."""
    name, conditions = _validated_write(data)
    try:
        saved = await create_saved_filter(session, name=name, conditions=conditions)
    except SQLAlchemyError as e:
        logger.error(f"Database error creating saved filter: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error occurred while creating the saved filter",
        )
    logger.info(
        f"Saved filter created: {saved.name!r}",
        extra=get_log_context(filter_id=saved.id),
    )
    return saved


@router.put("/filter")
async def update_filter(
    data: SavedFilterWrite,
    session: SessionDep,
    filter_id: int = Query(..., alias="id"),
) -> dict[str, str]:
    """Replace a saved filter's name and conditions."""
    name, conditions = _validated_write(data)
    try:
        await update_saved_filter(session, filter_id, name=name, conditions=conditions)
    except SQLAlchemyError as e:
        logger.error(f"Database error updating saved filter {filter_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error occurred while updating the saved filter",
        )
    return {"status": "ok"}


@router.delete("/filter")
async def delete_filter(
    session: SessionDep,
    filter_id: int = Query(..., alias="id"),
) -> dict[str, str]:
    """Delete a saved filter. Unknown IDs succeed as well."""
    try:
        deleted = await delete_saved_filter(session, filter_id)
    except SQLAlchemyError as e:
        logger.error(f"Database error deleting saved filter {filter_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error occurred while deleting the saved filter",
        )
    if not deleted:
        logger.debug(
            "Delete of unknown saved filter ignored",
            extra=get_log_context(filter_id=filter_id),
        )
    return {"status": "ok"}


@router.post("/reorder")
async def reorder_filters(
    items: List[PositionUpdateRequest],
    session: SessionDep,
) -> dict[str, str]:
    """Set the positions of several saved filters in one transaction."""
    try:
        await reorder_saved_filters(
            session, [PositionUpdate(item.id, item.position) for item in items]
        )
    except SQLAlchemyError as e:
        logger.error(f"Database error reordering saved filters: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error occurred while reordering saved filters",
        )
    return {"status": "ok"}
