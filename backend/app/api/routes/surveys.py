"""Survey endpoints - publish, list, history, new versions, restore and delete."""

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from backend.app.api.auth import get_current_context
from backend.app.api.dependencies import get_survey_storage, get_writer
from backend.app.config import Settings, get_settings
from backend.app.db.context import RequestContext
from backend.app.db.repositories import QuestionRecord, SurveyRecord, SurveyStorage
from backend.app.models.survey import QuestionType, SurveyDraft
from backend.app.versioning.calculator import format_version
from backend.app.versioning.errors import DocumentNotFoundError, LineageIntegrityError
from backend.app.versioning.lineage import is_latest, summarize_lineage
from backend.app.versioning.writer import CompensatingWriter, WriteFailed, WriteResult

router = APIRouter(prefix="/surveys", tags=["surveys"])

_FAILURE_STATUS = {
    "validation": 422,
    "not_found": 404,
    "lineage": 409,
    "write": 502,
}


class CreateVersionRequest(BaseModel):
    """Request body for POST /surveys/{survey_id}/versions."""

    survey: SurveyDraft
    is_major: bool = Field(False, description="Bump the major version instead of the minor")
    changelog: str | None = Field(None, description="What changed in this version")


class RestoreRequest(BaseModel):
    """Request body for POST /surveys/{survey_id}/restore."""

    current_latest_id: uuid.UUID | None = Field(
        None, description="Version to attach the restored copy to (defaults to numeric latest)"
    )


class WriteResponse(BaseModel):
    """Response for successful write workflows."""

    ok: bool = True
    document_id: str
    version: float
    version_label: str
    parent_id: str | None
    branched: bool = False
    restored_from: float | None = None


class SurveyResponse(BaseModel):
    """One survey version."""

    id: str
    parent_id: str | None
    version: float
    version_label: str
    title: str
    audience: str
    description: str | None
    changelog: str | None
    created_at: datetime
    is_latest: bool


class QuestionResponse(BaseModel):
    """One survey question."""

    position: int
    text: str
    type: QuestionType
    options: list[str] | None
    required: bool


class SurveyListResponse(BaseModel):
    """Response for GET /surveys."""

    surveys: list[SurveyResponse]


class SurveyDetailResponse(BaseModel):
    """Response for GET /surveys/{survey_id}."""

    survey: SurveyResponse
    questions: list[QuestionResponse]


class HistoryResponse(BaseModel):
    """Response for GET /surveys/{survey_id}/history."""

    root_id: str
    latest_id: str
    tip_ids: list[str]
    is_branched: bool
    versions: list[SurveyResponse]


def _survey_response(record: SurveyRecord, latest: bool) -> SurveyResponse:
    return SurveyResponse(
        id=str(record.id),
        parent_id=str(record.parent_id) if record.parent_id else None,
        version=record.version,
        version_label=format_version(record.version),
        title=record.title,
        audience=record.audience,
        description=record.description,
        changelog=record.changelog,
        created_at=record.created_at,
        is_latest=latest,
    )


def _question_response(record: QuestionRecord) -> QuestionResponse:
    return QuestionResponse(
        position=record.position,
        text=record.text,
        type=record.type,
        options=record.options,
        required=record.required,
    )


def _write_response(result: WriteResult) -> WriteResponse:
    """Map a workflow result onto the HTTP response.

    Raises:
        HTTPException: 422 validation, 404 not found, 409 lineage, 502 write
    """
    if isinstance(result, WriteFailed):
        raise HTTPException(
            status_code=_FAILURE_STATUS[result.kind],
            detail={
                "ok": False,
                "kind": result.kind,
                "reason": result.reason,
                "state": result.state.value,
                "field_errors": [
                    {"field": err.field, "message": err.message} for err in result.field_errors
                ],
            },
        )

    return WriteResponse(
        document_id=str(result.document_id),
        version=result.version,
        version_label=result.version_label,
        parent_id=str(result.parent_id) if result.parent_id else None,
        branched=result.branched,
        restored_from=result.restored_from,
    )


async def _get_owned_survey(
    storage: SurveyStorage, survey_id: uuid.UUID, ctx: RequestContext
) -> SurveyRecord:
    """Fetch a survey the caller's organization owns.

    Raises:
        HTTPException: 404 if not found, 403 if owned by another org
    """
    survey = await storage.get_survey(survey_id)

    if not survey:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(DocumentNotFoundError(survey_id)),
        )

    if not ctx.owns(survey.org_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this survey",
        )

    return survey


@router.post("", response_model=WriteResponse, status_code=status.HTTP_201_CREATED)
async def publish_survey(
    request: SurveyDraft,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    writer: Annotated[CompensatingWriter, Depends(get_writer)],
) -> WriteResponse:
    """Publish a new survey at v1.0.

    Args:
        request: Survey content
        ctx: Request context (org_id, user_id)
        writer: Versioning writer

    Returns:
        New survey id and version
    """
    result = await writer.publish(request, ctx.org_id)
    return _write_response(result)


@router.get("", response_model=SurveyListResponse)
async def list_surveys(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    storage: Annotated[SurveyStorage, Depends(get_survey_storage)],
) -> SurveyListResponse:
    """List the organization's surveys, newest first, flagging latest versions."""
    surveys = await storage.list_surveys(ctx.org_id, descending=True)

    return SurveyListResponse(
        surveys=[_survey_response(s, is_latest(s, surveys)) for s in surveys]
    )


@router.get("/{survey_id}", response_model=SurveyDetailResponse)
async def get_survey(
    survey_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    storage: Annotated[SurveyStorage, Depends(get_survey_storage)],
) -> SurveyDetailResponse:
    """Get one survey version with its questions.

    Raises:
        HTTPException: 404 if not found, 403 if owned by another org
    """
    survey = await _get_owned_survey(storage, survey_id, ctx)
    questions = await storage.list_questions(survey_id)
    children = await storage.list_surveys(ctx.org_id, parent_id=survey_id)

    return SurveyDetailResponse(
        survey=_survey_response(survey, latest=not children),
        questions=[_question_response(q) for q in questions],
    )


@router.get("/{survey_id}/history", response_model=HistoryResponse)
async def get_survey_history(
    survey_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    storage: Annotated[SurveyStorage, Depends(get_survey_storage)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HistoryResponse:
    """Get the full version family of a survey, oldest first.

    Branched families (several childless versions) are reported through
    `is_branched` and `tip_ids`.

    Raises:
        HTTPException: 404 if not found, 403 if owned by another org,
            409 if parent links are corrupted
    """
    await _get_owned_survey(storage, survey_id, ctx)
    documents = await storage.list_surveys(ctx.org_id)

    try:
        summary = summarize_lineage(
            survey_id,
            documents,
            max_depth=settings.lineage_max_depth,
            max_size=settings.family_max_size,
        )
    except LineageIntegrityError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    tip_ids = {tip.id for tip in summary.tips}

    return HistoryResponse(
        root_id=str(summary.root_id),
        latest_id=str(summary.latest.id),
        tip_ids=[str(tip_id) for tip_id in sorted(tip_ids, key=str)],
        is_branched=summary.is_branched,
        versions=[
            _survey_response(doc, latest=doc.id in tip_ids)  # type: ignore[arg-type]
            for doc in summary.history
        ],
    )


@router.post(
    "/{survey_id}/versions", response_model=WriteResponse, status_code=status.HTTP_201_CREATED
)
async def create_survey_version(
    survey_id: uuid.UUID,
    request: CreateVersionRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    storage: Annotated[SurveyStorage, Depends(get_survey_storage)],
    writer: Annotated[CompensatingWriter, Depends(get_writer)],
) -> WriteResponse:
    """Save edited content as a new version derived from survey_id.

    Raises:
        HTTPException: 403 if the reference survey belongs to another org,
            plus the workflow failure mapping
    """
    await _get_owned_survey(storage, survey_id, ctx)

    result = await writer.create_next_version(
        survey_id,
        request.survey,
        is_major=request.is_major,
        changelog=request.changelog,
    )
    return _write_response(result)


@router.post(
    "/{survey_id}/restore", response_model=WriteResponse, status_code=status.HTTP_201_CREATED
)
async def restore_survey_version(
    survey_id: uuid.UUID,
    request: RestoreRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    storage: Annotated[SurveyStorage, Depends(get_survey_storage)],
    writer: Annotated[CompensatingWriter, Depends(get_writer)],
) -> WriteResponse:
    """Restore survey_id's content as a new version on top of the current latest.

    Raises:
        HTTPException: 403 if either survey belongs to another org,
            plus the workflow failure mapping
    """
    await _get_owned_survey(storage, survey_id, ctx)
    if request.current_latest_id is not None:
        await _get_owned_survey(storage, request.current_latest_id, ctx)

    result = await writer.restore_version(survey_id, request.current_latest_id, ctx.org_id)
    return _write_response(result)


@router.delete("/{survey_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_survey(
    survey_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    storage: Annotated[SurveyStorage, Depends(get_survey_storage)],
    writer: Annotated[CompensatingWriter, Depends(get_writer)],
) -> Response:
    """Delete one survey version and its questions.

    Raises:
        HTTPException: 404 if not found, 403 if owned by another org,
            502 if storage failed
    """
    await _get_owned_survey(storage, survey_id, ctx)

    result = await writer.delete_survey(survey_id)
    if isinstance(result, WriteFailed):
        raise HTTPException(status_code=_FAILURE_STATUS[result.kind], detail=result.reason)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
