"""Optimistic delete for the survey list.

The visible list is updated before the server confirms the delete. Every
change records the snapshot taken just before it, so rolling back is a full
replace with that snapshot: edits made to the list while the request was in
flight are discarded along with the failed delete.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar

T = TypeVar("T")


def item_id(item: Any) -> str:
    """Id of a list item: the "id" key of a mapping, else the `id` attribute."""
    if isinstance(item, Mapping):
        return str(item["id"])
    return str(item.id)


@dataclass(frozen=True)
class ListSnapshot(Generic[T]):
    """Immutable copy of the visible list."""

    items: tuple[T, ...]

    @classmethod
    def of(cls, items: Iterable[T]) -> "ListSnapshot[T]":
        return cls(tuple(items))

    def without(self, target_id: str, key: Callable[[T], str] = item_id) -> "ListSnapshot[T]":
        return ListSnapshot(tuple(item for item in self.items if key(item) != target_id))

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class OptimisticChange(Generic[T]):
    """A local change that the server has not confirmed yet."""

    snapshot: ListSnapshot[T]
    applied: ListSnapshot[T]
    target_id: str


@dataclass(frozen=True)
class SyncSignal:
    """Outcome shown to the user after the remote call settles."""

    kind: Literal["success", "error"]
    target_id: str
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind == "success"


RemoteDelete = Callable[[str], Awaitable[object]]


class OptimisticSyncController(Generic[T]):
    """Holds the visible list and applies deletes optimistically.

    Single-threaded use is assumed: snapshots are taken between the
    controller's own mutations, never concurrently with them.
    """

    def __init__(
        self,
        items: Iterable[T],
        remote_delete: RemoteDelete,
        key: Callable[[T], str] = item_id,
    ) -> None:
        self._current: ListSnapshot[T] = ListSnapshot.of(items)
        self._remote_delete = remote_delete
        self._key = key
        self._deleting_id: str | None = None

    @property
    def items(self) -> tuple[T, ...]:
        return self._current.items

    @property
    def deleting_id(self) -> str | None:
        """Id whose delete request is in flight, if any."""
        return self._deleting_id

    def replace_items(self, items: Iterable[T]) -> None:
        """Swap in a fresh list, e.g. after reloading from the server."""
        self._current = ListSnapshot.of(items)

    def apply_delete(self, target_id: str) -> OptimisticChange[T]:
        """Remove target_id from the visible list, recording the prior snapshot."""
        snapshot = self._current
        applied = snapshot.without(target_id, self._key)
        self._current = applied
        return OptimisticChange(snapshot=snapshot, applied=applied, target_id=target_id)

    def rollback(self, change: OptimisticChange[T]) -> None:
        """Restore the list exactly as it was before `change`."""
        self._current = change.snapshot

    async def delete(self, target_id: str) -> SyncSignal:
        """Delete optimistically; keep the change on success, roll back on failure.

        Returns:
            SyncSignal with kind "success", or "error" carrying the failure reason
        """
        change = self.apply_delete(target_id)
        self._deleting_id = target_id

        try:
            await self._remote_delete(target_id)
        except asyncio.CancelledError:
            self.rollback(change)
            raise
        except Exception as e:
            self.rollback(change)
            return SyncSignal(kind="error", target_id=target_id, reason=str(e) or type(e).__name__)
        finally:
            # A newer delete may have started meanwhile
            if self._deleting_id == target_id:
                self._deleting_id = None

        return SyncSignal(kind="success", target_id=target_id)
