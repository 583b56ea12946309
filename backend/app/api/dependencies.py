"""FastAPI providers for storage, notifier and writer.

Integration tests swap these through `app.dependency_overrides`.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import Settings, get_settings
from backend.app.db.engine import get_session
from backend.app.db.repositories import ActivityRepository, SurveyStorage
from backend.app.db.sql_repositories import SqlActivityRepository, SqlSurveyStorage
from backend.app.notifications.notifier import Notifier, notifier_from_settings
from backend.app.versioning.writer import CompensatingWriter


async def get_survey_storage(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SurveyStorage:
    return SqlSurveyStorage(session)


async def get_activity_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ActivityRepository:
    return SqlActivityRepository(session)


async def get_notifier(settings: Annotated[Settings, Depends(get_settings)]) -> Notifier:
    return notifier_from_settings(settings)


async def get_writer(
    storage: Annotated[SurveyStorage, Depends(get_survey_storage)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CompensatingWriter:
    return CompensatingWriter(storage, notifier, settings=settings)
