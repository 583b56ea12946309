"""Request context for tenancy enforcement."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class RequestContext:
    """Caller identity for one request.

    Surveys belong to an organization; routes reject reads and writes on
    surveys owned by a different org.
    """

    org_id: UUID
    user_id: UUID

    def owns(self, org_id: UUID) -> bool:
        """True if a resource scoped to org_id belongs to this caller."""
        return self.org_id == org_id
