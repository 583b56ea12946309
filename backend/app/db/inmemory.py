"""In-memory implementations of repository interfaces."""

import itertools
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from backend.app.db.repositories import (
    NewQuestion,
    NewSurvey,
    QuestionRecord,
    StorageError,
    SurveyOrder,
    SurveyRecord,
)
from backend.app.models.events import ActivityEntry, ActivityEvent


class InMemorySurveyStorage:
    """In-memory implementation of SurveyStorage."""

    def __init__(self) -> None:
        self._surveys: dict[uuid.UUID, SurveyRecord] = {}
        self._questions: dict[uuid.UUID, list[QuestionRecord]] = {}
        self._question_ids = itertools.count(1)

    async def insert_survey(self, survey: NewSurvey) -> SurveyRecord:
        """Insert a survey row."""
        if survey.parent_id is not None and survey.parent_id not in self._surveys:
            raise StorageError(f"parent survey {survey.parent_id} does not exist")

        record = SurveyRecord(
            id=uuid.uuid4(),
            org_id=survey.org_id,
            parent_id=survey.parent_id,
            version=survey.version,
            title=survey.title,
            audience=survey.audience,
            description=survey.description,
            changelog=survey.changelog,
            created_at=datetime.now(timezone.utc),
        )

        self._surveys[record.id] = record
        self._questions[record.id] = []
        return record

    async def get_survey(self, survey_id: uuid.UUID) -> SurveyRecord | None:
        """Get survey by ID."""
        return self._surveys.get(survey_id)

    async def list_surveys(
        self,
        org_id: uuid.UUID,
        *,
        parent_id: uuid.UUID | None = None,
        order_by: SurveyOrder = "created_at",
        descending: bool = False,
    ) -> list[SurveyRecord]:
        """List an organization's surveys."""
        results = [
            record
            for record in self._surveys.values()
            if record.org_id == org_id and (parent_id is None or record.parent_id == parent_id)
        ]

        # Insertion order breaks timestamp ties
        inserted = {survey_id: i for i, survey_id in enumerate(self._surveys)}

        if order_by == "version":
            results.sort(
                key=lambda r: (r.version, r.created_at, inserted[r.id]), reverse=descending
            )
        else:
            results.sort(key=lambda r: (r.created_at, inserted[r.id]), reverse=descending)

        return results

    async def delete_survey(self, survey_id: uuid.UUID) -> bool:
        """Delete a survey and its questions."""
        if survey_id not in self._surveys:
            return False

        del self._surveys[survey_id]
        self._questions.pop(survey_id, None)

        # Children keep existing with a null parent (ON DELETE SET NULL)
        for child_id, child in list(self._surveys.items()):
            if child.parent_id == survey_id:
                self._surveys[child_id] = replace(child, parent_id=None)

        return True

    async def insert_questions(self, questions: list[NewQuestion]) -> list[QuestionRecord]:
        """Insert questions; all or nothing."""
        for question in questions:
            if question.survey_id not in self._surveys:
                raise StorageError(f"survey {question.survey_id} does not exist")

        positions = [(q.survey_id, q.position) for q in questions]
        existing = {
            (survey_id, q.position)
            for survey_id, stored in self._questions.items()
            for q in stored
        }
        if len(set(positions)) != len(positions) or existing.intersection(positions):
            raise StorageError("duplicate question position")

        records = [
            QuestionRecord(
                id=next(self._question_ids),
                survey_id=q.survey_id,
                position=q.position,
                text=q.text,
                type=q.type,
                options=list(q.options) if q.options is not None else None,
                required=q.required,
            )
            for q in questions
        ]

        for record in records:
            self._questions[record.survey_id].append(record)

        return records

    async def list_questions(self, survey_id: uuid.UUID) -> list[QuestionRecord]:
        """List a survey's questions ordered by position."""
        return sorted(self._questions.get(survey_id, []), key=lambda q: q.position)


class InMemoryActivityRepository:
    """In-memory implementation of ActivityRepository."""

    def __init__(self) -> None:
        self._entries: list[ActivityEntry] = []
        self._ids = itertools.count(1)

    async def append(self, event: ActivityEvent) -> ActivityEntry:
        """Store an activity event."""
        entry = ActivityEntry(
            id=next(self._ids),
            org_id=event.org_id,
            type=event.type,
            survey_id=event.survey_id,
            details=ActivityEntry.details_of(event),
            created_at=datetime.now(timezone.utc),
        )
        self._entries.append(entry)
        return entry

    async def list_recent(self, org_id: uuid.UUID, limit: int = 20) -> list[ActivityEntry]:
        """List recent activity, newest first."""
        results = [entry for entry in self._entries if entry.org_id == org_id]
        results.sort(key=lambda e: (e.created_at, e.id), reverse=True)
        return results[:limit]
