"""Integration tests for dev seeding helper."""

import uuid

import pytest

from backend.app.db.inmemory import InMemorySurveyStorage
from backend.app.db.seed_dev import DEV_ORG_ID, DEV_SURVEY, DEV_USER_ID, seed_dev_surveys


def test_dev_ids_match_stub_auth() -> None:
    """Test that dev IDs match the stub auth defaults."""
    assert DEV_ORG_ID == uuid.UUID("00000000-0000-0000-0000-000000000001")
    assert DEV_USER_ID == uuid.UUID("00000000-0000-0000-0000-000000000002")


@pytest.mark.asyncio
async def test_seed_creates_two_version_family(storage: InMemorySurveyStorage) -> None:
    created = await seed_dev_surveys(storage)

    assert len(created) == 2
    root, child = [await storage.get_survey(survey_id) for survey_id in created]
    assert root is not None and child is not None
    assert root.version == 1.0
    assert child.version == 1.1
    assert child.parent_id == root.id
    assert child.changelog == "Added open feedback"
    assert len(await storage.list_questions(root.id)) == len(DEV_SURVEY.questions)
    assert len(await storage.list_questions(child.id)) == len(DEV_SURVEY.questions) + 1


@pytest.mark.asyncio
async def test_seed_is_idempotent(storage: InMemorySurveyStorage) -> None:
    await seed_dev_surveys(storage)

    assert await seed_dev_surveys(storage) == []
    assert len(await storage.list_surveys(DEV_ORG_ID)) == 2


@pytest.mark.asyncio
async def test_seed_targets_given_org(storage: InMemorySurveyStorage) -> None:
    org_id = uuid.uuid4()

    await seed_dev_surveys(storage, org_id=org_id)

    assert len(await storage.list_surveys(org_id)) == 2
    assert await storage.list_surveys(DEV_ORG_ID) == []
