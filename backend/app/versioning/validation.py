"""Survey content validation.

Checks run through a strict pydantic model so that all violations are
collected in one pass and reported together as `FieldError`s.
"""

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints, ValidationError

from backend.app.models.survey import QuestionType, SurveyDraft
from backend.app.versioning.errors import FieldError, SurveyValidationError

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_FRIENDLY_MESSAGES = {
    "string_too_short": "must not be empty",
    "too_short": "at least one question is required",
}


class _CheckedQuestion(BaseModel):
    text: NonBlankStr
    type: QuestionType
    options: list[str] | None = None
    required: bool = True


class _CheckedSurvey(BaseModel):
    title: NonBlankStr
    audience: NonBlankStr
    description: str | None = None
    questions: Annotated[list[_CheckedQuestion], Field(min_length=1)]


def _to_field_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"])
        message = _FRIENDLY_MESSAGES.get(err["type"], err["msg"])
        errors.append(FieldError(field=field, message=message))
    return errors


def collect_content_errors(
    draft: SurveyDraft, max_questions: int | None = None
) -> list[FieldError]:
    """Return every violation in the draft (empty list when valid).

    Args:
        draft: Submitted survey content
        max_questions: Optional upper bound on the number of questions
    """
    errors: list[FieldError] = []

    try:
        _CheckedSurvey.model_validate(draft.model_dump())
    except ValidationError as e:
        errors.extend(_to_field_errors(e))

    if max_questions is not None and len(draft.questions) > max_questions:
        errors.append(
            FieldError(
                field="questions",
                message=f"a survey cannot have more than {max_questions} questions",
            )
        )

    return errors


def validate_survey_content(draft: SurveyDraft, max_questions: int | None = None) -> None:
    """Raise SurveyValidationError listing every violation, if any."""
    errors = collect_content_errors(draft, max_questions=max_questions)
    if errors:
        raise SurveyValidationError(errors)
