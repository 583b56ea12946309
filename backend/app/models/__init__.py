"""Models package - re-exports for convenience."""

from backend.app.models.events import (
    ActivityEntry,
    ActivityEvent,
    EventType,
    SurveyCreatedEvent,
    SurveyDeletedEvent,
    SurveyEditedEvent,
    activity_event_adapter,
)
from backend.app.models.survey import QuestionDraft, QuestionType, SurveyDraft

__all__ = [
    # Survey content
    "SurveyDraft",
    "QuestionDraft",
    "QuestionType",
    # Activity events
    "ActivityEvent",
    "EventType",
    "SurveyCreatedEvent",
    "SurveyEditedEvent",
    "SurveyDeletedEvent",
    "ActivityEntry",
    "activity_event_adapter",
]
