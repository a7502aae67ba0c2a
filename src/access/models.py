"""Access Ledger models and Cassandra schema.

Each purchase appends one entry per (user, course, transaction). Entries
are never deleted; only their status moves from ``pending`` to ``active``.
Expiry is decided at read time by comparing ``access_expiry`` with now.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from src.auth.models import ensure_utc_aware


if TYPE_CHECKING:
    from cassandra.cluster import Row


class AccessStatus(str, Enum):
    """Status of a ledger entry."""

    PENDING = "pending"  # Awaiting activation
    ACTIVE = "active"  # Access granted
    EXPIRED = "expired"  # Access period over


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_ACCESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_access (
    user_id UUID,
    course_id TEXT,
    transaction_id TEXT,
    purchase_date TIMESTAMP,
    status TEXT,
    access_expiry TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((user_id), course_id, transaction_id)
) WITH CLUSTERING ORDER BY (course_id ASC, transaction_id ASC)
"""

ACCESS_TABLES_CQL = [
    COURSE_ACCESS_TABLE_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


@dataclass
class CourseAccessEntry:
    """One purchase record in a user's Access Ledger."""

    user_id: UUID
    course_id: str
    transaction_id: str
    status: AccessStatus = AccessStatus.PENDING
    purchase_date: datetime = field(default_factory=lambda: datetime.now(UTC))
    access_expiry: datetime | None = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: "Row") -> "CourseAccessEntry":
        """Create instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            course_id=row.course_id,
            transaction_id=row.transaction_id,
            status=AccessStatus(row.status),
            purchase_date=ensure_utc_aware(row.purchase_date) or datetime.now(UTC),
            access_expiry=ensure_utc_aware(row.access_expiry),
            updated_at=ensure_utc_aware(row.updated_at) or datetime.now(UTC),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the access period has elapsed."""
        if self.access_expiry is None:
            return False
        return (now or datetime.now(UTC)) > self.access_expiry


def create_pending_entry(
    user_id: UUID,
    course_id: str,
    transaction_id: str,
    validity_days: int,
    now: datetime | None = None,
) -> CourseAccessEntry:
    """Create the pending entry recorded at purchase time.

    ``access_expiry`` is fixed here and never recomputed on activation.
    """
    now = now or datetime.now(UTC)
    return CourseAccessEntry(
        user_id=user_id,
        course_id=course_id,
        transaction_id=transaction_id,
        status=AccessStatus.PENDING,
        purchase_date=now,
        access_expiry=now + timedelta(days=validity_days),
        updated_at=now,
    )


# ==============================================================================
# Evaluator
# ==============================================================================


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of evaluating a ledger for one course."""

    has_access: bool
    status: AccessStatus | None = None
    entry: CourseAccessEntry | None = None


def find_entry(
    entries: Iterable[CourseAccessEntry], course_id: str
) -> CourseAccessEntry | None:
    """First entry for the course, by purchase order."""
    matching = [e for e in entries if e.course_id == course_id]
    if not matching:
        return None
    return min(matching, key=lambda e: e.purchase_date)


def evaluate(
    entries: Iterable[CourseAccessEntry],
    course_id: str,
    now: datetime | None = None,
) -> AccessDecision:
    """Decide access to a course from a user's ledger.

    Expiry is checked before status, so an elapsed ``active`` entry reads
    as expired without the stored status being rewritten.
    """
    entry = find_entry(entries, course_id)
    if entry is None:
        return AccessDecision(has_access=False)

    if entry.is_expired(now):
        return AccessDecision(has_access=False, status=AccessStatus.EXPIRED, entry=entry)

    if entry.status == AccessStatus.ACTIVE:
        return AccessDecision(has_access=True, status=AccessStatus.ACTIVE, entry=entry)

    return AccessDecision(has_access=False, status=entry.status, entry=entry)
