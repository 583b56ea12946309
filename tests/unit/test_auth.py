"""Unit tests for stub bearer auth and survey ownership checks."""

import uuid

import pytest
from fastapi import HTTPException

from backend.app.api.auth import DEV_ORG_ID, DEV_USER_ID, get_current_context
from backend.app.db.context import RequestContext


@pytest.mark.asyncio
async def test_missing_header_is_the_dev_org() -> None:
    ctx = await get_current_context(authorization=None)

    assert ctx == RequestContext(org_id=DEV_ORG_ID, user_id=DEV_USER_ID)
    assert ctx.owns(uuid.UUID("00000000-0000-0000-0000-000000000001"))


@pytest.mark.asyncio
async def test_token_selects_org_and_user() -> None:
    org_id, user_id = uuid.uuid4(), uuid.uuid4()

    ctx = await get_current_context(authorization=f"Bearer {org_id}:{user_id}")

    assert (ctx.org_id, ctx.user_id) == (org_id, user_id)


@pytest.mark.asyncio
async def test_context_owns_only_its_org_surveys() -> None:
    survey_org = uuid.uuid4()
    owner = await get_current_context(authorization=f"Bearer {survey_org}:{uuid.uuid4()}")
    colleague = await get_current_context(authorization=f"Bearer {survey_org}:{uuid.uuid4()}")
    outsider = await get_current_context(authorization=None)

    assert owner.owns(survey_org)
    assert colleague.owns(survey_org)
    assert not outsider.owns(survey_org)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("header", "message"),
    [
        ("Token abc", "Invalid authorization header format"),
        ("Bearer opaque-session-token", "expected org_id:user_id"),
        ("Bearer not-a-uuid:also-not", "Invalid token format"),
        (f"Bearer {uuid.uuid4()}:", "Invalid token format"),
    ],
)
async def test_malformed_headers_are_rejected(header: str, message: str) -> None:
    with pytest.raises(HTTPException) as exc_info:
        await get_current_context(authorization=header)

    assert exc_info.value.status_code == 401
    assert message in exc_info.value.detail
