"""Compensating writer for survey versions.

A survey version is stored as two separate writes: the survey row, then its
questions. Storage offers no transaction spanning both, so when the second
write fails the first is undone with a compensating delete. Every workflow
returns a `WriteSucceeded` or `WriteFailed` result instead of raising.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, cast
from uuid import UUID

from backend.app.config import Settings, get_settings
from backend.app.db.repositories import (
    NewQuestion,
    NewSurvey,
    QuestionRecord,
    StorageError,
    SurveyRecord,
    SurveyStorage,
)
from backend.app.models.events import SurveyCreatedEvent, SurveyDeletedEvent, SurveyEditedEvent
from backend.app.models.survey import QuestionDraft, SurveyDraft
from backend.app.notifications.notifier import Notifier, emit_best_effort
from backend.app.utils.logging import StructuredWorkflowLogger
from backend.app.utils.metrics import PrometheusWorkflowMetrics
from backend.app.versioning.calculator import (
    INITIAL_VERSION,
    calculate_next_version,
    format_version,
    is_valid_version,
)
from backend.app.versioning.errors import (
    DocumentNotFoundError,
    FieldError,
    InvalidVersionError,
    LineageIntegrityError,
    SurveyValidationError,
)
from backend.app.versioning.lineage import summarize_lineage
from backend.app.versioning.validation import validate_survey_content

logger = logging.getLogger(__name__)

# Collaborator timeouts surface as ordinary write failures
_WRITE_ERRORS = (StorageError, TimeoutError)


class WriteState(str, Enum):
    """Progress of a two-step (survey, then questions) write."""

    PENDING = "pending"
    PARENT_CREATED = "parent_created"
    COMPLETE = "complete"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"
    ORPHANED = "orphaned"


_TRANSITIONS: dict[WriteState, frozenset[WriteState]] = {
    WriteState.PENDING: frozenset({WriteState.PARENT_CREATED, WriteState.FAILED}),
    WriteState.PARENT_CREATED: frozenset(
        {WriteState.COMPLETE, WriteState.ROLLED_BACK, WriteState.ORPHANED}
    ),
}


class TwoStepWrite:
    """State machine for one survey + questions write.

    PENDING -> PARENT_CREATED -> COMPLETE on success. PENDING -> FAILED when
    nothing was written. PARENT_CREATED -> ROLLED_BACK when the compensating
    delete succeeded, or ORPHANED when it failed and the survey row remains.
    """

    def __init__(self) -> None:
        self.state = WriteState.PENDING
        self.parent_id: UUID | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state not in _TRANSITIONS

    def _advance(self, target: WriteState) -> None:
        if target not in _TRANSITIONS.get(self.state, frozenset()):
            raise RuntimeError(f"Illegal write transition {self.state.value} -> {target.value}")
        self.state = target

    def parent_created(self, parent_id: UUID) -> None:
        self._advance(WriteState.PARENT_CREATED)
        self.parent_id = parent_id

    def complete(self) -> None:
        self._advance(WriteState.COMPLETE)

    def fail(self) -> None:
        self._advance(WriteState.FAILED)

    def rolled_back(self) -> None:
        self._advance(WriteState.ROLLED_BACK)

    def orphaned(self) -> None:
        self._advance(WriteState.ORPHANED)


FailureKind = Literal["validation", "not_found", "lineage", "write"]


@dataclass(frozen=True)
class WriteSucceeded:
    """Workflow finished; the new (or deleted) survey is identified here."""

    document_id: UUID
    version: float
    parent_id: UUID | None = None
    state: WriteState = WriteState.COMPLETE
    branched: bool = False
    restored_from: float | None = None

    ok: Literal[True] = True

    @property
    def version_label(self) -> str:
        return format_version(self.version)


@dataclass(frozen=True)
class WriteFailed:
    """Workflow stopped. `field_errors` is only populated for validation failures."""

    kind: FailureKind
    reason: str
    state: WriteState = WriteState.PENDING
    field_errors: list[FieldError] = field(default_factory=list)

    ok: Literal[False] = False


WriteResult = WriteSucceeded | WriteFailed


class CompensatingWriter:
    """Runs the publish, edit-save and restore workflows against storage."""

    def __init__(
        self,
        storage: SurveyStorage,
        notifier: Notifier,
        settings: Settings | None = None,
        metrics: PrometheusWorkflowMetrics | None = None,
    ) -> None:
        self._storage = storage
        self._notifier = notifier
        self._settings = settings or get_settings()
        self._metrics = metrics or PrometheusWorkflowMetrics()
        self._log = StructuredWorkflowLogger()

    def _fail(
        self,
        workflow: str,
        kind: FailureKind,
        reason: str,
        write: TwoStepWrite | None = None,
        field_errors: list[FieldError] | None = None,
    ) -> WriteFailed:
        state = write.state if write is not None else WriteState.PENDING
        self._log.log_step(
            workflow,
            "finish",
            kind,
            survey_id=write.parent_id if write is not None else None,
            state=state.value,
            error_reason=reason,
        )
        self._metrics.inc_workflow(workflow, kind)
        return WriteFailed(kind=kind, reason=reason, state=state, field_errors=field_errors or [])

    def _succeed(self, workflow: str, result: WriteSucceeded) -> WriteSucceeded:
        self._log.log_step(
            workflow,
            "finish",
            "success",
            survey_id=result.document_id,
            version=result.version,
            state=result.state.value,
        )
        self._metrics.inc_workflow(workflow, "success")
        return result

    def _validation_failure(self, workflow: str, draft: SurveyDraft) -> WriteFailed | None:
        limit = self._settings.max_questions_per_survey
        try:
            validate_survey_content(draft, max_questions=limit)
        except SurveyValidationError as e:
            return self._fail(workflow, "validation", str(e), field_errors=e.field_errors)
        return None

    def _invalid_stored_version(self, workflow: str, survey: SurveyRecord) -> WriteFailed | None:
        if is_valid_version(survey.version):
            return None
        return self._fail(
            workflow,
            "lineage",
            f"Survey {survey.id} has invalid stored version {survey.version!r}",
        )

    async def _compensate(self, workflow: str, write: TwoStepWrite, survey_id: UUID) -> None:
        """Delete the survey row left behind by a failed question write."""
        try:
            await self._storage.delete_survey(survey_id)
        except _WRITE_ERRORS as e:
            write.orphaned()
            self._log.log_step(
                workflow,
                "compensate",
                "orphaned",
                survey_id=survey_id,
                state=write.state.value,
                error_reason=f"{type(e).__name__}: {e}",
            )
            self._metrics.inc_compensation("orphaned")
            return

        write.rolled_back()
        self._log.log_step(
            workflow, "compensate", "success", survey_id=survey_id, state=write.state.value
        )
        self._metrics.inc_compensation("rolled_back")

    async def _write_version(
        self,
        workflow: str,
        write: TwoStepWrite,
        survey: NewSurvey,
        questions: Sequence[QuestionDraft | QuestionRecord],
    ) -> SurveyRecord | WriteFailed:
        """Insert the survey row, then its questions, compensating on failure."""
        try:
            parent = await self._storage.insert_survey(survey)
        except _WRITE_ERRORS as e:
            write.fail()
            return self._fail(workflow, "write", f"Failed to create survey: {e}", write)

        write.parent_created(parent.id)
        self._log.log_step(
            workflow,
            "insert_survey",
            "success",
            survey_id=parent.id,
            version=parent.version,
            state=write.state.value,
        )

        rows = [
            NewQuestion(
                survey_id=parent.id,
                position=position,
                text=q.text,
                type=q.type,
                options=list(q.options) if q.options is not None else None,
                required=q.required,
            )
            for position, q in enumerate(questions)
        ]

        try:
            await self._storage.insert_questions(rows)
        except asyncio.CancelledError:
            self._log.log_step(
                workflow,
                "insert_questions",
                "cancelled",
                survey_id=parent.id,
                state=write.state.value,
            )
            # The survey row exists, so it is removed before the cancellation propagates
            await asyncio.shield(self._compensate(workflow, write, parent.id))
            self._metrics.inc_workflow(workflow, "cancelled")
            raise
        except _WRITE_ERRORS as e:
            self._log.log_step(
                workflow,
                "insert_questions",
                "error",
                survey_id=parent.id,
                state=write.state.value,
                error_reason=f"{type(e).__name__}: {e}",
            )
            # Runs to completion even if the caller is cancelled meanwhile
            await asyncio.shield(self._compensate(workflow, write, parent.id))
            return self._fail(workflow, "write", f"Failed to create questions: {e}", write)

        write.complete()
        return parent

    async def publish(self, content: SurveyDraft, org_id: UUID) -> WriteResult:
        """Publish a new root survey at version 1.0.

        Args:
            content: Survey content with at least one question
            org_id: Owning organization

        Returns:
            WriteSucceeded with the new survey id, or WriteFailed
        """
        workflow = "publish"

        invalid = self._validation_failure(workflow, content)
        if invalid is not None:
            return invalid

        write = TwoStepWrite()
        created = await self._write_version(
            workflow,
            write,
            NewSurvey(
                org_id=org_id,
                parent_id=None,
                version=INITIAL_VERSION,
                title=content.title,
                audience=content.audience,
                description=content.description,
            ),
            content.questions,
        )
        if isinstance(created, WriteFailed):
            return created

        await emit_best_effort(
            self._notifier,
            SurveyCreatedEvent(
                org_id=org_id,
                survey_id=created.id,
                survey_title=created.title,
                question_count=len(content.questions),
                audience=created.audience,
            ),
            self._metrics,
        )

        return self._succeed(
            workflow,
            WriteSucceeded(document_id=created.id, version=created.version, state=write.state),
        )

    async def create_next_version(
        self,
        reference_id: UUID,
        content: SurveyDraft,
        is_major: bool = False,
        changelog: str | None = None,
    ) -> WriteResult:
        """Save edited content as a new child version of the reference survey.

        The reference is never modified. If it already has child versions the
        new survey becomes a sibling branch; this is reported via
        `branched=True` and a warning, not prevented.

        Args:
            reference_id: Survey the edit was made from
            content: Edited survey content
            is_major: Bump the major version instead of the minor
            changelog: Description of the change (defaults from settings)
        """
        workflow = "create_next_version"

        invalid = self._validation_failure(workflow, content)
        if invalid is not None:
            return invalid

        write = TwoStepWrite()

        try:
            reference = await self._storage.get_survey(reference_id)
        except _WRITE_ERRORS as e:
            write.fail()
            return self._fail(workflow, "write", f"Failed to load reference survey: {e}", write)

        if reference is None:
            missing = DocumentNotFoundError(reference_id, "reference survey")
            return self._fail(workflow, "not_found", str(missing))

        invalid = self._invalid_stored_version(workflow, reference)
        if invalid is not None:
            return invalid

        try:
            next_version = calculate_next_version(reference.version, is_major=is_major)
        except InvalidVersionError as e:
            return self._fail(workflow, "lineage", str(e))

        try:
            siblings = await self._storage.list_surveys(reference.org_id, parent_id=reference.id)
        except _WRITE_ERRORS as e:
            write.fail()
            return self._fail(workflow, "write", f"Failed to load child versions: {e}", write)

        branched = bool(siblings)
        if branched:
            logger.warning(
                f"Survey {reference.id} already has {len(siblings)} child version(s); branching",
                extra={
                    "structured": {
                        "workflow": workflow,
                        "survey_id": str(reference.id),
                        "existing_children": [str(s.id) for s in siblings],
                    }
                },
            )

        resolved_changelog = (changelog or "").strip() or self._settings.default_changelog

        created = await self._write_version(
            workflow,
            write,
            NewSurvey(
                org_id=reference.org_id,
                parent_id=reference.id,
                version=next_version,
                title=content.title,
                audience=content.audience,
                description=content.description,
                changelog=resolved_changelog,
            ),
            content.questions,
        )
        if isinstance(created, WriteFailed):
            return created

        await emit_best_effort(
            self._notifier,
            SurveyEditedEvent(
                org_id=reference.org_id,
                survey_id=created.id,
                survey_title=created.title,
                version=created.version,
                parent_id=reference.id,
                changelog=resolved_changelog,
                question_count=len(content.questions),
            ),
            self._metrics,
        )

        return self._succeed(
            workflow,
            WriteSucceeded(
                document_id=created.id,
                version=created.version,
                parent_id=reference.id,
                state=write.state,
                branched=branched,
            ),
        )

    async def _resolve_latest(self, old: SurveyRecord, org_id: UUID) -> SurveyRecord:
        """Numeric latest of the old survey's family.

        Raises:
            StorageError: If the organization's surveys cannot be listed
            LineageIntegrityError: If the family cannot be resolved
        """
        documents = await self._storage.list_surveys(org_id)
        try:
            summary = summarize_lineage(
                old.id,
                documents,
                max_depth=self._settings.lineage_max_depth,
                max_size=self._settings.family_max_size,
            )
        except DocumentNotFoundError as e:
            raise LineageIntegrityError(str(e)) from e

        if summary.is_branched:
            logger.warning(
                f"Family {summary.root_id} has {len(summary.tips)} latest candidates; "
                f"restoring onto highest version",
                extra={
                    "structured": {
                        "workflow": "restore_version",
                        "root_id": str(summary.root_id),
                        "tips": [str(tip.id) for tip in summary.tips],
                    }
                },
            )

        return cast(SurveyRecord, summary.latest)

    async def restore_version(
        self,
        old_id: UUID,
        current_latest_id: UUID | None = None,
        org_id: UUID | None = None,
    ) -> WriteResult:
        """Copy an older version's content into a new version on top of the latest.

        Args:
            old_id: Version whose content is restored
            current_latest_id: Version to attach the copy to; when None the
                numeric latest of the old survey's family is used
            org_id: Organization of the new version (defaults to the old survey's)
        """
        workflow = "restore_version"
        write = TwoStepWrite()

        try:
            old = await self._storage.get_survey(old_id)
            old_questions = await self._storage.list_questions(old_id) if old else []
        except _WRITE_ERRORS as e:
            write.fail()
            return self._fail(workflow, "write", f"Failed to load survey to restore: {e}", write)

        if old is None:
            missing = DocumentNotFoundError(old_id, "old version")
            return self._fail(workflow, "not_found", str(missing))

        owner_id = org_id or old.org_id

        try:
            if current_latest_id is None:
                latest = await self._resolve_latest(old, owner_id)
            else:
                found = await self._storage.get_survey(current_latest_id)
                if found is None:
                    return self._fail(
                        workflow,
                        "not_found",
                        str(DocumentNotFoundError(current_latest_id, "current version")),
                    )
                latest = found
        except LineageIntegrityError as e:
            return self._fail(workflow, "lineage", str(e))
        except _WRITE_ERRORS as e:
            write.fail()
            return self._fail(workflow, "write", f"Failed to load current version: {e}", write)

        if not old_questions:
            error = FieldError(field="questions", message="version to restore has no questions")
            return self._fail(workflow, "validation", str(error), field_errors=[error])

        invalid = self._invalid_stored_version(workflow, latest)
        if invalid is not None:
            return invalid

        try:
            next_version = calculate_next_version(latest.version)
            changelog = f"Restored from {format_version(old.version)}"
        except InvalidVersionError as e:
            return self._fail(workflow, "lineage", str(e))

        created = await self._write_version(
            workflow,
            write,
            NewSurvey(
                org_id=owner_id,
                parent_id=latest.id,
                version=next_version,
                title=old.title,
                audience=old.audience,
                description=old.description,
                changelog=changelog,
            ),
            old_questions,
        )
        if isinstance(created, WriteFailed):
            return created

        await emit_best_effort(
            self._notifier,
            SurveyEditedEvent(
                org_id=owner_id,
                survey_id=created.id,
                survey_title=created.title,
                version=created.version,
                parent_id=latest.id,
                changelog=changelog,
                question_count=len(old_questions),
                restored_from=old.version,
            ),
            self._metrics,
        )

        return self._succeed(
            workflow,
            WriteSucceeded(
                document_id=created.id,
                version=created.version,
                parent_id=latest.id,
                state=write.state,
                restored_from=old.version,
            ),
        )

    async def delete_survey(self, survey_id: UUID) -> WriteResult:
        """Delete one survey version; its questions go with it.

        Child versions are kept and become roots of their own.
        """
        workflow = "delete_survey"

        try:
            survey = await self._storage.get_survey(survey_id)
            if survey is None:
                return self._fail(workflow, "not_found", str(DocumentNotFoundError(survey_id)))

            questions = await self._storage.list_questions(survey_id)
            deleted = await self._storage.delete_survey(survey_id)
        except _WRITE_ERRORS as e:
            return self._fail(workflow, "write", f"Failed to delete survey: {e}")

        if not deleted:
            return self._fail(workflow, "not_found", str(DocumentNotFoundError(survey_id)))

        await emit_best_effort(
            self._notifier,
            SurveyDeletedEvent(
                org_id=survey.org_id,
                survey_id=survey.id,
                survey_title=survey.title,
                question_count=len(questions),
            ),
            self._metrics,
        )

        return self._succeed(
            workflow,
            WriteSucceeded(
                document_id=survey.id, version=survey.version, parent_id=survey.parent_id
            ),
        )
