"""Helper functions for UI clients - survey API calls and activity feed view."""

from typing import Any

import httpx

from backend.app.versioning.calculator import format_version

DEV_ORG_ID = "00000000-0000-0000-0000-000000000001"
DEV_USER_ID = "00000000-0000-0000-0000-000000000002"


def get_auth_header(org_id: str = DEV_ORG_ID, user_id: str = DEV_USER_ID) -> dict[str, str]:
    """Get auth header for API calls (stub bearer format "<org_id>:<user_id>")."""
    return {"Authorization": f"Bearer {org_id}:{user_id}"}


async def list_surveys(
    backend_url: str,
    client: httpx.AsyncClient | None = None,
) -> list[dict[str, Any]]:
    """Fetch the organization's surveys from GET /surveys.

    Args:
        backend_url: Backend base URL (e.g. http://localhost:8000)
        client: Optional httpx client (for testing with mocks)

    Returns:
        List of survey dicts, newest first

    Raises:
        httpx.HTTPStatusError: If request fails
    """
    close_client = False
    if client is None:
        client = httpx.AsyncClient(timeout=10.0)
        close_client = True

    try:
        response = await client.get(f"{backend_url}/surveys", headers=get_auth_header())
        response.raise_for_status()
        surveys: list[dict[str, Any]] = response.json()["surveys"]
        return surveys
    finally:
        if close_client:
            await client.aclose()


async def delete_survey(
    backend_url: str,
    survey_id: str,
    client: httpx.AsyncClient | None = None,
) -> None:
    """Call DELETE /surveys/{survey_id}.

    Used as the remote call behind `OptimisticSyncController.delete`.

    Raises:
        httpx.HTTPStatusError: If the server rejected the delete
        httpx.HTTPError: On network errors
    """
    close_client = False
    if client is None:
        client = httpx.AsyncClient(timeout=10.0)
        close_client = True

    try:
        response = await client.delete(
            f"{backend_url}/surveys/{survey_id}", headers=get_auth_header()
        )
        response.raise_for_status()
    finally:
        if close_client:
            await client.aclose()


def build_activity_feed(entries: list[dict[str, Any]]) -> list[str]:
    """Build activity feed lines from GET /activity entries.

    Args:
        entries: Activity entry dicts with type and details

    Returns:
        List of formatted activity strings
    """
    activity = []
    for entry in entries:
        details = entry.get("details", {})
        title = details.get("survey_title", "Untitled survey")
        event_type = entry.get("type", "unknown")

        if event_type == "SURVEY_CREATED":
            line = f"Published \"{title}\" ({details.get('question_count', 0)} questions)"
        elif event_type == "SURVEY_EDITED":
            label = format_version(details["version"]) if "version" in details else "new version"
            if details.get("restored_from") is not None:
                origin = format_version(details["restored_from"])
                line = f"Restored \"{title}\" {origin} as {label}"
            else:
                line = f"Edited \"{title}\" -> {label}: {details.get('changelog', '')}"
        elif event_type == "SURVEY_DELETED":
            line = f"Deleted \"{title}\""
        else:
            line = f"{event_type}: {title}"

        activity.append(line)
    return activity
