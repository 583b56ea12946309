"""SQL implementations of repository interfaces."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.models import ActivityFeed, Survey, SurveyQuestion
from backend.app.db.repositories import (
    NewQuestion,
    NewSurvey,
    QuestionRecord,
    StorageError,
    SurveyOrder,
    SurveyRecord,
)
from backend.app.models.events import ActivityEntry, ActivityEvent
from backend.app.models.survey import QuestionType


def _survey_record(row: Survey) -> SurveyRecord:
    return SurveyRecord(
        id=row.id,
        org_id=row.org_id,
        parent_id=row.parent_id,
        version=float(row.version),
        title=row.title,
        audience=row.audience,
        description=row.description,
        changelog=row.changelog,
        created_at=row.created_at,
    )


def _question_record(row: SurveyQuestion) -> QuestionRecord:
    return QuestionRecord(
        id=row.id,
        survey_id=row.survey_id,
        position=row.position,
        text=row.question,
        type=QuestionType(row.type),
        options=row.options,
        required=row.required,
    )


class SqlSurveyStorage:
    """SQL implementation of SurveyStorage.

    Every write commits on its own, mirroring a remote store that offers no
    multi-statement transactions to the caller.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _commit(self, action: str) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StorageError(f"{action} failed: {type(e).__name__}") from e

    async def insert_survey(self, survey: NewSurvey) -> SurveyRecord:
        """Insert a survey row."""
        row = Survey(
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

        try:
            self._session.add(row)
            await self._session.flush()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StorageError(f"insert survey failed: {type(e).__name__}") from e

        record = _survey_record(row)
        await self._commit("insert survey")
        return record

    async def get_survey(self, survey_id: uuid.UUID) -> SurveyRecord | None:
        """Get survey by ID."""
        result = await self._session.execute(select(Survey).where(Survey.id == survey_id))
        row = result.scalar_one_or_none()

        if row is None:
            return None

        return _survey_record(row)

    async def list_surveys(
        self,
        org_id: uuid.UUID,
        *,
        parent_id: uuid.UUID | None = None,
        order_by: SurveyOrder = "created_at",
        descending: bool = False,
    ) -> list[SurveyRecord]:
        """List an organization's surveys."""
        query = select(Survey).where(Survey.org_id == org_id)

        if parent_id is not None:
            query = query.where(Survey.parent_id == parent_id)

        column = Survey.version if order_by == "version" else Survey.created_at
        query = query.order_by(column.desc() if descending else column.asc())

        result = await self._session.execute(query)
        return [_survey_record(row) for row in result.scalars().all()]

    async def delete_survey(self, survey_id: uuid.UUID) -> bool:
        """Delete a survey, its questions, and detach its child versions."""
        try:
            # Explicit cascade: SQLite does not enforce FK actions without a pragma
            await self._session.execute(
                delete(SurveyQuestion).where(SurveyQuestion.survey_id == survey_id)
            )
            await self._session.execute(
                update(Survey).where(Survey.parent_id == survey_id).values(parent_id=None)
            )
            result = await self._session.execute(delete(Survey).where(Survey.id == survey_id))
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StorageError(f"delete survey failed: {type(e).__name__}") from e

        await self._commit("delete survey")
        return bool(result.rowcount)

    async def insert_questions(self, questions: list[NewQuestion]) -> list[QuestionRecord]:
        """Insert questions in a single commit."""
        rows = [
            SurveyQuestion(
                survey_id=q.survey_id,
                position=q.position,
                type=q.type.value,
                question=q.text,
                options=q.options,
                required=q.required,
                created_at=datetime.now(timezone.utc),
            )
            for q in questions
        ]

        try:
            self._session.add_all(rows)
            await self._session.flush()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StorageError(f"insert questions failed: {type(e).__name__}") from e

        records = [_question_record(row) for row in rows]
        await self._commit("insert questions")
        return records

    async def list_questions(self, survey_id: uuid.UUID) -> list[QuestionRecord]:
        """List a survey's questions ordered by position."""
        result = await self._session.execute(
            select(SurveyQuestion)
            .where(SurveyQuestion.survey_id == survey_id)
            .order_by(SurveyQuestion.position.asc())
        )
        return [_question_record(row) for row in result.scalars().all()]


class SqlActivityRepository:
    """SQL implementation of ActivityRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, event: ActivityEvent) -> ActivityEntry:
        """Store an activity event."""
        row = ActivityFeed(
            org_id=event.org_id,
            type=event.type,
            survey_id=event.survey_id,
            details=ActivityEntry.details_of(event),
            created_at=datetime.now(timezone.utc),
        )

        try:
            self._session.add(row)
            await self._session.flush()
            entry = ActivityEntry(
                id=row.id,
                org_id=row.org_id,
                type=event.type,
                survey_id=row.survey_id,
                details=row.details,
                created_at=row.created_at,
            )
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StorageError(f"append activity failed: {type(e).__name__}") from e

        return entry

    async def list_recent(self, org_id: uuid.UUID, limit: int = 20) -> list[ActivityEntry]:
        """List recent activity, newest first."""
        result = await self._session.execute(
            select(ActivityFeed)
            .where(ActivityFeed.org_id == org_id)
            .order_by(ActivityFeed.created_at.desc(), ActivityFeed.id.desc())
            .limit(limit)
        )

        return [
            ActivityEntry(
                id=row.id,
                org_id=row.org_id,
                type=row.type,  # type: ignore[arg-type]
                survey_id=row.survey_id,
                details=row.details,
                created_at=row.created_at,
            )
            for row in result.scalars().all()
        ]
