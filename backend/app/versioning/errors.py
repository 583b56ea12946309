"""Error taxonomy for survey versioning workflows."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class FieldError:
    """Single validation violation.

    `field` is a dotted path into the submitted content, e.g. "questions.2.text".
    """

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}" if self.field else self.message


class VersioningError(Exception):
    """Base class for versioning failures."""

    pass


class InvalidVersionError(VersioningError, ValueError):
    """Version value is not a finite number in the major.minor scheme."""

    pass


class SurveyValidationError(VersioningError):
    """Submitted survey content failed required-field or cardinality checks."""

    def __init__(self, field_errors: list[FieldError]) -> None:
        self.field_errors = field_errors
        super().__init__("; ".join(str(err) for err in field_errors))


class DocumentNotFoundError(VersioningError):
    """Referenced survey id does not resolve."""

    def __init__(self, survey_id: UUID, role: str = "survey") -> None:
        self.survey_id = survey_id
        self.role = role
        super().__init__(f"{role.capitalize()} {survey_id} not found")


class LineageIntegrityError(VersioningError):
    """Parent links are corrupted: cycle suspicion, dangling parent or missing root."""

    pass
