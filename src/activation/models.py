"""Activation outbox models and Cassandra schema.

A purchase writes one outbox row; the activation worker picks rows whose
``run_at`` has passed. Rows live in a single partition (``shard = 0``)
clustered by ``run_at`` so due work is a range read.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from src.auth.models import ensure_utc_aware


if TYPE_CHECKING:
    from cassandra.cluster import Row


DEFAULT_SHARD = 0


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

ACTIVATION_OUTBOX_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.activation_outbox (
    shard INT,
    run_at TIMESTAMP,
    transaction_id TEXT,
    user_id UUID,
    attempts INT,
    last_error TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY ((shard), run_at, transaction_id)
) WITH CLUSTERING ORDER BY (run_at ASC, transaction_id ASC)
"""

ACTIVATION_FAILURES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.activation_failures (
    transaction_id TEXT PRIMARY KEY,
    user_id UUID,
    attempts INT,
    last_error TEXT,
    failed_at TIMESTAMP
)
"""

ACTIVATION_TABLES_CQL = [
    ACTIVATION_OUTBOX_TABLE_CQL,
    ACTIVATION_FAILURES_TABLE_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


@dataclass
class ActivationJob:
    """Pending activation of one transaction."""

    transaction_id: str
    user_id: UUID
    run_at: datetime
    attempts: int = 0
    last_error: str | None = None
    shard: int = DEFAULT_SHARD
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: "Row") -> "ActivationJob":
        """Create instance from Cassandra row."""
        return cls(
            transaction_id=row.transaction_id,
            user_id=row.user_id,
            run_at=ensure_utc_aware(row.run_at) or datetime.now(UTC),
            attempts=row.attempts or 0,
            last_error=row.last_error,
            shard=row.shard,
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
        )
