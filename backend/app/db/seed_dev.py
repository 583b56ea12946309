"""Dev seeding helper - a small survey family for the stub-auth dev org."""

import asyncio
import uuid

from backend.app.api.auth import DEV_ORG_ID, DEV_USER_ID
from backend.app.db.engine import create_session_factory, get_async_engine
from backend.app.db.repositories import SurveyStorage
from backend.app.db.sql_repositories import SqlSurveyStorage
from backend.app.models.survey import QuestionDraft, QuestionType, SurveyDraft
from backend.app.notifications.notifier import LoggingNotifier
from backend.app.versioning.writer import CompensatingWriter, WriteFailed

__all__ = ["DEV_ORG_ID", "DEV_USER_ID", "DEV_SURVEY", "seed_dev_surveys", "seed_dev_database"]

DEV_SURVEY = SurveyDraft(
    title="Team Pulse",
    audience="All employees",
    description="Monthly check-in on workload and morale.",
    questions=[
        QuestionDraft(
            text="How manageable was your workload this month?", type=QuestionType.rating
        ),
        QuestionDraft(text="Do you feel supported by your team?", type=QuestionType.yes_no),
        QuestionDraft(
            text="Which area needs the most attention?",
            type=QuestionType.multiple_choice,
            options=["Tooling", "Process", "Communication"],
        ),
    ],
)


async def seed_dev_surveys(
    storage: SurveyStorage, org_id: uuid.UUID = DEV_ORG_ID
) -> list[uuid.UUID]:
    """Seed a v1.0 -> v1.1 survey family for the dev org.

    This function is idempotent: nothing is written if the org already has
    surveys.

    Returns:
        Ids of the surveys created (empty when already seeded)

    Raises:
        RuntimeError: If a seeding write fails
    """
    if await storage.list_surveys(org_id):
        print(f"Dev org {org_id} already has surveys")
        return []

    writer = CompensatingWriter(storage, LoggingNotifier())

    root = await writer.publish(DEV_SURVEY, org_id)
    if isinstance(root, WriteFailed):
        raise RuntimeError(f"Seeding v1.0 failed: {root.reason}")

    edited = DEV_SURVEY.model_copy(
        update={
            "questions": [
                *DEV_SURVEY.questions,
                QuestionDraft(
                    text="Anything else we should know?",
                    type=QuestionType.long_text,
                    required=False,
                ),
            ]
        }
    )
    child = await writer.create_next_version(
        root.document_id, edited, changelog="Added open feedback"
    )
    if isinstance(child, WriteFailed):
        raise RuntimeError(f"Seeding v1.1 failed: {child.reason}")

    print(f"Seeded {root.version_label} and {child.version_label} for dev org {org_id}")
    return [root.document_id, child.document_id]


async def seed_dev_database() -> None:
    """Seed the configured database."""
    async with create_session_factory(get_async_engine())() as session:
        await seed_dev_surveys(SqlSurveyStorage(session))


if __name__ == "__main__":
    asyncio.run(seed_dev_database())
