"""Lineage resolution over survey version families.

Surveys form a forest linked by ``parent_id``. A family is a root plus every
survey reachable from it by following parent links downward. The helpers here
operate on records already fetched from storage; callers supply a complete
candidate set (typically every survey of an organization).

The forest may branch: two edits issued from the same reference version
produce siblings that are both childless. Such ambiguity is reported
(``LineageSummary.is_branched``), never resolved here.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, TypeVar
from uuid import UUID

from backend.app.versioning.calculator import major_of
from backend.app.versioning.errors import DocumentNotFoundError, LineageIntegrityError

DEFAULT_MAX_DEPTH = 100


class VersionedRecord(Protocol):
    """Minimal shape of a record the resolver can traverse."""

    @property
    def id(self) -> UUID: ...

    @property
    def parent_id(self) -> UUID | None: ...

    @property
    def version(self) -> float: ...

    @property
    def created_at(self) -> datetime: ...


R = TypeVar("R", bound=VersionedRecord)


def _index_by_id(documents: Iterable[R]) -> dict[UUID, R]:
    return {doc.id: doc for doc in documents}


def _sort_key(doc: VersionedRecord) -> tuple[float, datetime, str]:
    return (doc.version, doc.created_at, str(doc.id))


def find_root(
    survey_id: UUID, documents: Sequence[R], max_depth: int = DEFAULT_MAX_DEPTH
) -> UUID:
    """Walk parent links upward until a survey without parent is found.

    Args:
        survey_id: Starting survey
        documents: Candidate set to traverse
        max_depth: Maximum number of parent hops before giving up

    Returns:
        Root survey id

    Raises:
        DocumentNotFoundError: If survey_id is not in documents
        LineageIntegrityError: On a dangling parent or when max_depth is exceeded
    """
    by_id = _index_by_id(documents)

    current = by_id.get(survey_id)
    if current is None:
        raise DocumentNotFoundError(survey_id)

    for _ in range(max_depth):
        if current.parent_id is None:
            return current.id

        parent = by_id.get(current.parent_id)
        if parent is None:
            raise LineageIntegrityError(
                f"Survey {current.id} references missing parent {current.parent_id}"
            )
        current = parent

    if current.parent_id is None:
        return current.id

    raise LineageIntegrityError(
        f"Lineage of survey {survey_id} exceeds {max_depth} levels (possible cycle)"
    )


def collect_family(
    root_id: UUID, documents: Sequence[R], max_size: int | None = None
) -> list[R]:
    """Return the root plus every transitive descendant.

    Args:
        root_id: Family root
        documents: Candidate set
        max_size: Optional guard against pathological fan-out

    Raises:
        LineageIntegrityError: If the root is missing or the family exceeds max_size
    """
    by_id = _index_by_id(documents)
    root = by_id.get(root_id)
    if root is None:
        raise LineageIntegrityError(f"Family root {root_id} cannot be located")

    children: dict[UUID, list[R]] = defaultdict(list)
    for doc in documents:
        if doc.parent_id is not None:
            children[doc.parent_id].append(doc)

    family: list[R] = [root]
    seen: set[UUID] = {root.id}
    frontier = [root.id]

    while frontier:
        next_frontier: list[UUID] = []
        for parent_id in frontier:
            for child in children.get(parent_id, []):
                if child.id in seen:
                    continue
                seen.add(child.id)
                family.append(child)
                next_frontier.append(child.id)

        if max_size is not None and len(family) > max_size:
            raise LineageIntegrityError(
                f"Family of {root_id} exceeds {max_size} surveys"
            )
        frontier = next_frontier

    return family


def get_version_history(
    survey_id: UUID,
    documents: Sequence[R],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_size: int | None = None,
) -> list[R]:
    """Family containing survey_id, sorted by version ascending (oldest first)."""
    root_id = find_root(survey_id, documents, max_depth=max_depth)
    family = collect_family(root_id, documents, max_size=max_size)
    return sorted(family, key=_sort_key)


def is_latest(doc: VersionedRecord, documents: Iterable[VersionedRecord]) -> bool:
    """True iff no survey in the candidate set names doc as its parent."""
    return not any(other.parent_id == doc.id for other in documents)


def find_latest_version(documents: Sequence[R], root_id: UUID) -> R | None:
    """Highest-numbered survey in the family rooted at root_id.

    This is a numeric maximum. Under branching it can differ from the set of
    childless surveys reported by `latest_candidates`.

    Returns:
        Survey with the maximum version, or None if the root is absent
    """
    if not any(doc.id == root_id for doc in documents):
        return None

    family = collect_family(root_id, documents)
    return max(family, key=_sort_key)


def latest_candidates(documents: Sequence[R], root_id: UUID) -> list[R]:
    """Every childless survey of the family, sorted by version ascending."""
    family = collect_family(root_id, documents)
    parent_ids = {doc.parent_id for doc in documents if doc.parent_id is not None}
    return sorted((doc for doc in family if doc.id not in parent_ids), key=_sort_key)


def group_by_major(documents: Iterable[R], major: int | None = None) -> dict[int, list[R]]:
    """Group surveys by major version (v1.x, v2.x, ...), each group sorted by version.

    Args:
        documents: Surveys to group
        major: If given, only that major version is returned
    """
    groups: dict[int, list[R]] = defaultdict(list)
    for doc in documents:
        doc_major = major_of(doc.version)
        if major is None or doc_major == major:
            groups[doc_major].append(doc)

    return {key: sorted(group, key=_sort_key) for key, group in sorted(groups.items())}


@dataclass(frozen=True)
class LineageSummary:
    """Resolved view of one survey family."""

    root_id: UUID
    history: list[VersionedRecord]
    latest: VersionedRecord
    tips: list[VersionedRecord]

    @property
    def is_branched(self) -> bool:
        """More than one childless survey: concurrent edits produced siblings."""
        return len(self.tips) > 1


def summarize_lineage(
    survey_id: UUID,
    documents: Sequence[R],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_size: int | None = None,
) -> LineageSummary:
    """Resolve root, ordered history, numeric latest and tips for a survey's family."""
    root_id = find_root(survey_id, documents, max_depth=max_depth)
    family = collect_family(root_id, documents, max_size=max_size)
    history = sorted(family, key=_sort_key)

    parent_ids = {doc.parent_id for doc in family if doc.parent_id is not None}
    tips = [doc for doc in history if doc.id not in parent_ids]

    return LineageSummary(root_id=root_id, history=list(history), latest=history[-1], tips=tips)
