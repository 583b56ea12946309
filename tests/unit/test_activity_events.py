"""Unit tests for activity event payloads."""

import uuid

import pytest
from pydantic import ValidationError

from backend.app.models.events import (
    ActivityEntry,
    SurveyCreatedEvent,
    SurveyDeletedEvent,
    SurveyEditedEvent,
    activity_event_adapter,
)

ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


def test_payload_is_parsed_into_variant_for_its_type() -> None:
    survey_id = uuid.uuid4()
    parent_id = uuid.uuid4()

    event = activity_event_adapter.validate_python(
        {
            "type": "SURVEY_EDITED",
            "org_id": str(ORG_ID),
            "survey_id": str(survey_id),
            "survey_title": "Pulse",
            "version": 1.3,
            "parent_id": str(parent_id),
            "changelog": "Restored from v1.0",
            "question_count": 4,
            "restored_from": 1.0,
        }
    )

    assert isinstance(event, SurveyEditedEvent)
    assert event.parent_id == parent_id
    assert event.restored_from == 1.0


def test_unknown_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        activity_event_adapter.validate_python(
            {"type": "SURVEY_ARCHIVED", "org_id": str(ORG_ID), "survey_title": "Pulse"}
        )


def test_variant_specific_fields_are_required() -> None:
    """An edit event without a version or parent is not accepted."""
    with pytest.raises(ValidationError) as exc_info:
        activity_event_adapter.validate_python(
            {
                "type": "SURVEY_EDITED",
                "org_id": str(ORG_ID),
                "survey_title": "Pulse",
                "changelog": "x",
                "question_count": 1,
            }
        )

    missing = {err["loc"][-1] for err in exc_info.value.errors()}
    assert {"version", "parent_id"} <= missing


def test_question_count_cannot_be_negative() -> None:
    with pytest.raises(ValidationError):
        SurveyDeletedEvent(org_id=ORG_ID, survey_title="Pulse", question_count=-1)


def test_dump_round_trips_through_the_union() -> None:
    event = SurveyCreatedEvent(
        org_id=ORG_ID,
        survey_id=uuid.uuid4(),
        survey_title="Pulse",
        question_count=2,
        audience="All",
    )

    payload = activity_event_adapter.dump_python(event, mode="json")

    assert payload["type"] == "SURVEY_CREATED"
    assert activity_event_adapter.validate_python(payload) == event


def test_details_exclude_routing_fields() -> None:
    event = SurveyDeletedEvent(
        org_id=ORG_ID, survey_id=uuid.uuid4(), survey_title="Pulse", question_count=3
    )

    details = ActivityEntry.details_of(event)

    assert details == {"survey_title": "Pulse", "question_count": 3}
