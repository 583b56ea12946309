"""Unit tests for activity notifiers."""

import json
import logging
import uuid
from typing import Any

import httpx
import pytest

from backend.app.config import Settings
from backend.app.db.inmemory import InMemoryActivityRepository
from backend.app.models.events import SurveyCreatedEvent
from backend.app.notifications.notifier import (
    ActivityFeedNotifier,
    HttpWebhookNotifier,
    LoggingNotifier,
    NotificationError,
    emit_best_effort,
    notifier_from_settings,
)

ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


def created_event() -> SurveyCreatedEvent:
    return SurveyCreatedEvent(
        org_id=ORG_ID,
        survey_id=uuid.uuid4(),
        survey_title="Pulse",
        question_count=2,
        audience="Engineering",
    )


@pytest.mark.asyncio
async def test_webhook_notifier_posts_event_json() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(201, json={"id": 1})

    event = created_event()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        notifier = HttpWebhookNotifier("http://hooks.local/", client=client)
        await notifier.send(event)

    assert len(requests) == 1
    assert requests[0].method == "POST"
    assert str(requests[0].url) == "http://hooks.local/webhook/sync"

    body = json.loads(requests[0].content)
    assert body["type"] == "SURVEY_CREATED"
    assert body["survey_id"] == str(event.survey_id)
    assert body["question_count"] == 2


@pytest.mark.asyncio
async def test_webhook_notifier_non_2xx_raises() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(500))

    async with httpx.AsyncClient(transport=transport) as client:
        notifier = HttpWebhookNotifier("http://hooks.local", client=client)
        with pytest.raises(NotificationError, match="500"):
            await notifier.send(created_event())


@pytest.mark.asyncio
async def test_webhook_notifier_network_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        notifier = HttpWebhookNotifier("http://hooks.local", client=client)
        with pytest.raises(NotificationError, match="unreachable"):
            await notifier.send(created_event())


@pytest.mark.asyncio
async def test_emit_best_effort_swallows_and_logs_failure(
    failing_notifier: Any, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="backend.app.notifications.notifier"):
        delivered = await emit_best_effort(failing_notifier, created_event())

    assert delivered is False
    assert any("Notification failed" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_emit_best_effort_does_not_retry(failing_notifier: Any) -> None:
    await emit_best_effort(failing_notifier, created_event())

    assert len(failing_notifier.events) == 1


@pytest.mark.asyncio
async def test_emit_best_effort_success(notifier: Any) -> None:
    event = created_event()

    assert await emit_best_effort(notifier, event) is True
    assert notifier.events == [event]


@pytest.mark.asyncio
async def test_activity_feed_notifier_stores_event() -> None:
    repo = InMemoryActivityRepository()
    event = created_event()

    await ActivityFeedNotifier(repo).send(event)

    entries = await repo.list_recent(ORG_ID)
    assert len(entries) == 1
    assert entries[0].type == "SURVEY_CREATED"
    assert entries[0].survey_id == event.survey_id
    assert entries[0].details["audience"] == "Engineering"


@pytest.mark.asyncio
async def test_logging_notifier_logs_structured_payload(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="backend.app.notifications.notifier"):
        await LoggingNotifier().send(created_event())

    record = caplog.records[-1]
    assert record.getMessage() == "Activity event: SURVEY_CREATED"
    assert record.structured["survey_title"] == "Pulse"  # type: ignore[attr-defined]


def test_notifier_from_settings() -> None:
    assert isinstance(notifier_from_settings(Settings(webhook_base_url=None)), LoggingNotifier)

    webhook = notifier_from_settings(Settings(webhook_base_url="http://hooks.local"))
    assert isinstance(webhook, HttpWebhookNotifier)
