"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Protocol
from uuid import UUID

from backend.app.models.events import ActivityEntry, ActivityEvent
from backend.app.models.survey import QuestionType


class StorageError(Exception):
    """A storage call failed (network, constraint or engine error)."""

    pass


@dataclass(frozen=True)
class SurveyRecord:
    """Stored survey version."""

    id: UUID
    org_id: UUID
    parent_id: UUID | None
    version: float
    title: str
    audience: str
    description: str | None
    changelog: str | None
    created_at: datetime


@dataclass(frozen=True)
class NewSurvey:
    """Survey row to insert (id and created_at are assigned by storage)."""

    org_id: UUID
    parent_id: UUID | None
    version: float
    title: str
    audience: str
    description: str | None = None
    changelog: str | None = None


@dataclass(frozen=True)
class QuestionRecord:
    """Stored question, owned by exactly one survey version."""

    id: int
    survey_id: UUID
    position: int
    text: str
    type: QuestionType
    options: list[str] | None
    required: bool


@dataclass(frozen=True)
class NewQuestion:
    """Question row to insert."""

    survey_id: UUID
    position: int
    text: str
    type: QuestionType
    options: list[str] | None = None
    required: bool = True


SurveyOrder = Literal["created_at", "version"]


class SurveyStorage(Protocol):
    """Storage for survey versions and their questions.

    No multi-statement transaction is exposed: each call commits on its own.
    Failed writes raise StorageError.
    """

    async def insert_survey(self, survey: NewSurvey) -> SurveyRecord:
        """Insert a survey row.

        Args:
            survey: Row to insert

        Returns:
            Stored record with id and created_at populated
        """
        ...

    async def get_survey(self, survey_id: UUID) -> SurveyRecord | None:
        """Get survey by ID, or None if not found."""
        ...

    async def list_surveys(
        self,
        org_id: UUID,
        *,
        parent_id: UUID | None = None,
        order_by: SurveyOrder = "created_at",
        descending: bool = False,
    ) -> list[SurveyRecord]:
        """List an organization's surveys.

        Args:
            org_id: Organization scope
            parent_id: Only surveys whose parent is this id (no filter when None)
            order_by: Sort column
            descending: Sort direction
        """
        ...

    async def delete_survey(self, survey_id: UUID) -> bool:
        """Delete a survey and, by cascade, its questions.

        Returns:
            True if a row was deleted, False if it did not exist
        """
        ...

    async def insert_questions(self, questions: list[NewQuestion]) -> list[QuestionRecord]:
        """Insert questions in one call; either all rows are stored or none."""
        ...

    async def list_questions(self, survey_id: UUID) -> list[QuestionRecord]:
        """List a survey's questions ordered by position."""
        ...


class ActivityRepository(Protocol):
    """Repository for the activity feed."""

    async def append(self, event: ActivityEvent) -> ActivityEntry:
        """Store an activity event."""
        ...

    async def list_recent(self, org_id: UUID, limit: int = 20) -> list[ActivityEntry]:
        """List an organization's most recent activity, newest first."""
        ...
