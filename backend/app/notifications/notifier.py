"""Activity notifications for survey changes.

Notifications are fire-and-forget: a failed send is logged and counted, but
it never changes the outcome of the write that triggered it.
"""

import logging
from typing import Protocol

import httpx

from backend.app.config import Settings, get_settings
from backend.app.db.repositories import ActivityRepository
from backend.app.models.events import ActivityEvent, activity_event_adapter
from backend.app.utils.metrics import PrometheusWorkflowMetrics

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Notification delivery failed."""

    pass


class Notifier(Protocol):
    """Delivers activity events to a downstream consumer."""

    async def send(self, event: ActivityEvent) -> None:
        """Deliver one event.

        Raises:
            NotificationError: If delivery failed
        """
        ...


class HttpWebhookNotifier:
    """POSTs events to the webhook receiver at {base_url}/webhook/sync."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 4.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/webhook/sync"
        self._timeout = timeout_seconds
        self._client = client

    async def send(self, event: ActivityEvent) -> None:
        """POST the event as JSON.

        Raises:
            NotificationError: On network errors or a non-2xx response
        """
        payload = activity_event_adapter.dump_python(event, mode="json")

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout)
            close_client = True

        try:
            response = await client.post(self._url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationError(
                f"webhook returned {e.response.status_code} for {event.type}"
            ) from e
        except httpx.HTTPError as e:
            raise NotificationError(f"webhook unreachable: {type(e).__name__}") from e
        finally:
            if close_client:
                await client.aclose()


class LoggingNotifier:
    """Writes events to the log. Used when no webhook is configured."""

    async def send(self, event: ActivityEvent) -> None:
        logger.info(
            f"Activity event: {event.type}",
            extra={"structured": activity_event_adapter.dump_python(event, mode="json")},
        )


class ActivityFeedNotifier:
    """Stores events directly in the activity feed."""

    def __init__(self, activity: ActivityRepository) -> None:
        self._activity = activity

    async def send(self, event: ActivityEvent) -> None:
        await self._activity.append(event)


def notifier_from_settings(settings: Settings | None = None) -> Notifier:
    """Build the configured notifier.

    Returns HttpWebhookNotifier when webhook_base_url is set, else
    LoggingNotifier.
    """
    settings = settings or get_settings()

    if settings.webhook_base_url:
        return HttpWebhookNotifier(
            settings.webhook_base_url,
            timeout_seconds=settings.webhook_timeout_seconds,
        )

    return LoggingNotifier()


async def emit_best_effort(
    notifier: Notifier,
    event: ActivityEvent,
    metrics: PrometheusWorkflowMetrics | None = None,
) -> bool:
    """Send an event, logging any failure instead of raising.

    No retries are attempted.

    Returns:
        True if the notifier accepted the event
    """
    try:
        await notifier.send(event)
    except Exception as e:
        logger.warning(
            f"Notification failed: {event.type}",
            extra={
                "structured": {
                    "event_type": event.type,
                    "survey_id": str(event.survey_id) if event.survey_id else None,
                    "error_reason": f"{type(e).__name__}: {e}",
                }
            },
        )
        (metrics or PrometheusWorkflowMetrics()).inc_notification_failure(event.type)
        return False

    return True
