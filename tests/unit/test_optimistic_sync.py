"""Unit tests for the optimistic delete controller."""

import asyncio

import httpx
import pytest

from ui.optimistic import ListSnapshot, OptimisticSyncController

SURVEYS = [
    {"id": "a", "title": "Pulse v1.0"},
    {"id": "b", "title": "Pulse v1.1"},
    {"id": "c", "title": "Onboarding v1.0"},
]


class RemoteDelete:
    """Remote delete double; fails when `error` is set."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[str] = []
        self.release = asyncio.Event()
        self.release.set()

    async def __call__(self, survey_id: str) -> None:
        self.calls.append(survey_id)
        await self.release.wait()
        if self.error is not None:
            raise self.error


def test_apply_delete_records_snapshot() -> None:
    controller = OptimisticSyncController(SURVEYS, RemoteDelete())

    change = controller.apply_delete("b")

    assert [item["id"] for item in controller.items] == ["a", "c"]
    assert change.snapshot == ListSnapshot.of(SURVEYS)
    assert change.applied.items == controller.items
    assert change.target_id == "b"


def test_rollback_restores_exact_snapshot() -> None:
    controller = OptimisticSyncController(SURVEYS, RemoteDelete())
    change = controller.apply_delete("a")

    controller.rollback(change)

    assert controller.items == tuple(SURVEYS)


def test_snapshot_is_immutable_copy() -> None:
    items = list(SURVEYS)
    controller = OptimisticSyncController(items, RemoteDelete())
    change = controller.apply_delete("c")

    items.clear()

    assert len(change.snapshot) == 3


@pytest.mark.asyncio
async def test_delete_success_keeps_optimistic_state() -> None:
    remote = RemoteDelete()
    controller = OptimisticSyncController(SURVEYS, remote)

    signal = await controller.delete("a")

    assert signal.ok
    assert signal.kind == "success"
    assert signal.target_id == "a"
    assert remote.calls == ["a"]
    assert [item["id"] for item in controller.items] == ["b", "c"]
    assert controller.deleting_id is None


@pytest.mark.asyncio
async def test_delete_failure_rolls_back_with_reason() -> None:
    remote = RemoteDelete(error=RuntimeError("server said no"))
    controller = OptimisticSyncController(SURVEYS, remote)

    signal = await controller.delete("b")

    assert not signal.ok
    assert signal.kind == "error"
    assert signal.reason == "server said no"
    assert controller.items == tuple(SURVEYS)
    assert controller.deleting_id is None


@pytest.mark.asyncio
async def test_item_is_hidden_while_request_is_in_flight() -> None:
    remote = RemoteDelete(error=RuntimeError("timeout"))
    remote.release.clear()
    controller = OptimisticSyncController(SURVEYS, remote)

    task = asyncio.create_task(controller.delete("c"))
    await asyncio.sleep(0)

    assert controller.deleting_id == "c"
    assert [item["id"] for item in controller.items] == ["a", "b"]

    remote.release.set()
    signal = await task

    assert signal.kind == "error"
    assert controller.items == tuple(SURVEYS)


@pytest.mark.asyncio
async def test_rollback_discards_changes_made_during_flight() -> None:
    """Rollback is a full replace: a list refresh during the request is lost."""
    remote = RemoteDelete(error=RuntimeError("boom"))
    remote.release.clear()
    controller = OptimisticSyncController(SURVEYS, remote)

    task = asyncio.create_task(controller.delete("a"))
    await asyncio.sleep(0)
    controller.replace_items([{"id": "z", "title": "Fresh"}])

    remote.release.set()
    await task

    assert controller.items == tuple(SURVEYS)


@pytest.mark.asyncio
async def test_http_status_error_reason_is_surfaced() -> None:
    request = httpx.Request("DELETE", "http://api.local/surveys/a")
    response = httpx.Response(403, request=request)
    error = httpx.HTTPStatusError("403 Forbidden", request=request, response=response)
    controller = OptimisticSyncController(SURVEYS, RemoteDelete(error=error))

    signal = await controller.delete("a")

    assert signal.reason == "403 Forbidden"


def test_items_with_id_attribute() -> None:
    class Row:
        def __init__(self, id: str) -> None:
            self.id = id

    rows = [Row("x"), Row("y")]
    controller = OptimisticSyncController(rows, RemoteDelete())

    controller.apply_delete("x")

    assert [row.id for row in controller.items] == ["y"]


@pytest.mark.asyncio
async def test_cancelled_delete_rolls_back_and_propagates() -> None:
    remote = RemoteDelete()
    remote.release.clear()
    controller = OptimisticSyncController(SURVEYS, remote)

    task = asyncio.create_task(controller.delete("b"))
    await asyncio.sleep(0)
    assert [item["id"] for item in controller.items] == ["a", "c"]

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert controller.items == tuple(SURVEYS)
    assert controller.deleting_id is None


@pytest.mark.asyncio
async def test_finished_delete_keeps_newer_in_flight_id() -> None:
    first = RemoteDelete()
    first.release.clear()
    second = RemoteDelete()
    second.release.clear()
    remotes = {"a": first, "b": second}

    async def remote_delete(survey_id: str) -> None:
        await remotes[survey_id](survey_id)

    controller = OptimisticSyncController(SURVEYS, remote_delete)

    first_task = asyncio.create_task(controller.delete("a"))
    await asyncio.sleep(0)
    second_task = asyncio.create_task(controller.delete("b"))
    await asyncio.sleep(0)

    first.release.set()
    await first_task

    assert controller.deleting_id == "b"

    second.release.set()
    await second_task

    assert controller.deleting_id is None
    assert [item["id"] for item in controller.items] == ["c"]
