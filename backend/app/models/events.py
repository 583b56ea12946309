"""Activity events - what happened to a survey, as sent to the activity feed.

Each event type carries only the fields relevant to it. The union is
discriminated on `type`, so payloads are checked when constructed or parsed.
"""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter

EventType = Literal["SURVEY_CREATED", "SURVEY_EDITED", "SURVEY_DELETED"]


class _ActivityEventBase(BaseModel):
    org_id: UUID
    survey_id: UUID | None = None


class SurveyCreatedEvent(_ActivityEventBase):
    """A new root survey was published."""

    type: Literal["SURVEY_CREATED"] = "SURVEY_CREATED"
    survey_title: str
    question_count: int = Field(..., ge=0)
    audience: str


class SurveyEditedEvent(_ActivityEventBase):
    """A new version was created from an edit or a restore."""

    type: Literal["SURVEY_EDITED"] = "SURVEY_EDITED"
    survey_title: str
    version: float
    parent_id: UUID
    changelog: str
    question_count: int = Field(..., ge=0)
    restored_from: float | None = None


class SurveyDeletedEvent(_ActivityEventBase):
    """A survey version and its questions were removed."""

    type: Literal["SURVEY_DELETED"] = "SURVEY_DELETED"
    survey_title: str
    question_count: int = Field(..., ge=0)


ActivityEvent = Annotated[
    SurveyCreatedEvent | SurveyEditedEvent | SurveyDeletedEvent,
    Field(discriminator="type"),
]

activity_event_adapter: TypeAdapter[ActivityEvent] = TypeAdapter(ActivityEvent)


class ActivityEntry(BaseModel):
    """Stored activity feed row."""

    id: int
    org_id: UUID
    type: EventType
    survey_id: UUID | None
    details: dict[str, object]
    created_at: datetime

    @classmethod
    def details_of(cls, event: ActivityEvent) -> dict[str, object]:
        """Event fields that belong in the `details` column."""
        return event.model_dump(mode="json", exclude={"type", "org_id", "survey_id"})
