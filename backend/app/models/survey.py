"""Survey content models - what authors submit when publishing or editing."""

from enum import Enum

from pydantic import BaseModel, Field


class QuestionType(str, Enum):
    """Question answer format."""

    short_text = "short_text"
    long_text = "long_text"
    multiple_choice = "multiple_choice"
    rating = "rating"
    yes_no = "yes_no"


class QuestionDraft(BaseModel):
    """Question as authored in the survey builder (position is implied by list order)."""

    text: str = ""
    type: QuestionType = QuestionType.short_text
    options: list[str] | None = None
    required: bool = True


class SurveyDraft(BaseModel):
    """Survey content submitted for publish or edit-save.

    Intentionally lenient: required-field checks happen in the versioning
    workflows so that every violation can be reported at once.
    """

    title: str = ""
    audience: str = ""
    description: str | None = None
    questions: list[QuestionDraft] = Field(default_factory=list)
