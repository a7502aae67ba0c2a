"""Transaction models and Cassandra schema.

The transaction id is supplied by the buyer (the payment reference shown
by the mobile wallet) and is unique across the store; inserts use a
lightweight transaction so concurrent duplicates cannot both succeed.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from src.auth.models import ensure_utc_aware


if TYPE_CHECKING:
    from cassandra.cluster import Row


class TransactionStatus(str, Enum):
    """Payment transaction status."""

    PENDING = "pending"  # Awaiting confirmation
    COMPLETED = "completed"  # Confirmed, access granted
    FAILED = "failed"
    REFUNDED = "refunded"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

TRANSACTIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.transactions (
    transaction_id TEXT PRIMARY KEY,
    user_id UUID,
    course_id TEXT,
    amount DECIMAL,
    payment_method TEXT,
    status TEXT,
    payment_details MAP<TEXT, TEXT>,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

TRANSACTIONS_USER_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS transactions_user_idx ON {keyspace}.transactions (user_id)
"""

PURCHASES_TABLES_CQL = [
    TRANSACTIONS_TABLE_CQL,
    TRANSACTIONS_USER_INDEX_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


@dataclass
class Transaction:
    """A buyer-declared payment for one course."""

    transaction_id: str
    user_id: UUID
    course_id: str
    amount: Decimal
    payment_method: str
    status: TransactionStatus = TransactionStatus.PENDING
    payment_details: dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: "Row") -> "Transaction":
        """Create instance from Cassandra row."""
        return cls(
            transaction_id=row.transaction_id,
            user_id=row.user_id,
            course_id=row.course_id,
            amount=row.amount if row.amount is not None else Decimal(0),
            payment_method=row.payment_method or "",
            status=TransactionStatus(row.status),
            payment_details=dict(row.payment_details or {}),
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            updated_at=ensure_utc_aware(row.updated_at) or datetime.now(UTC),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == TransactionStatus.COMPLETED
