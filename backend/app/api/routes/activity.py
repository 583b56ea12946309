"""Activity feed endpoints - POST /webhook/sync receiver and GET /activity."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel, ValidationError

from backend.app.api.auth import get_current_context
from backend.app.api.dependencies import get_activity_repository
from backend.app.config import get_settings
from backend.app.db.context import RequestContext
from backend.app.db.repositories import ActivityRepository
from backend.app.models.events import ActivityEntry, activity_event_adapter

router = APIRouter(tags=["activity"])


class ActivityListResponse(BaseModel):
    """Response for GET /activity."""

    entries: list[ActivityEntry]


@router.post("/webhook/sync", response_model=ActivityEntry, status_code=status.HTTP_201_CREATED)
async def receive_sync_event(
    payload: Annotated[dict[str, Any], Body()],
    activity: Annotated[ActivityRepository, Depends(get_activity_repository)],
) -> ActivityEntry:
    """Store a survey activity event sent by the notifier.

    The payload must match one of the event variants for its `type`.

    Raises:
        HTTPException: 422 if the payload is not a valid activity event
    """
    try:
        event = activity_event_adapter.validate_python(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False),
        ) from e

    return await activity.append(event)


@router.get("/activity", response_model=ActivityListResponse)
async def list_activity(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    activity: Annotated[ActivityRepository, Depends(get_activity_repository)],
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> ActivityListResponse:
    """List the organization's most recent activity, newest first."""
    page_size = limit or get_settings().activity_page_size
    entries = await activity.list_recent(ctx.org_id, limit=page_size)
    return ActivityListResponse(entries=entries)
