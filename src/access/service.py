# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Access Ledger service layer.

Business logic for:
- Appending pending ledger entries at purchase time
- Activating entries once a transaction completes
- Evaluating access, with an optional Redis cache of the decision
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from src.access.models import (
    AccessDecision,
    AccessStatus,
    CourseAccessEntry,
    evaluate,
)
from src.core.exceptions import ValidationFailedError
from src.core.logging import get_logger
from src.core.redis import access_cache_key


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis


logger = get_logger(__name__)


class EmailRequiredError(ValidationFailedError):
    """Anonymous access check without an email."""

    default_code = "EMAIL_REQUIRED"
    default_message = "Email is required"


class AccessService:
    """Service for the per-user Access Ledger."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "Redis | None" = None,
        cache_ttl_seconds: int = 300,
    ):
        """Initialize with Cassandra session and optional Redis."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self.cache_ttl_seconds = cache_ttl_seconds
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_entry = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_access
            (user_id, course_id, transaction_id, purchase_date, status,
             access_expiry, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_user_entries = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_access
            WHERE user_id = ?
        """)

        self._get_user_course_entries = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_access
            WHERE user_id = ? AND course_id = ?
        """)

        # Only a pending entry moves; a missing one is never created
        self._activate_entry = self.session.prepare(f"""
            UPDATE {self.keyspace}.course_access
            SET status = ?, updated_at = ?
            WHERE user_id = ? AND course_id = ? AND transaction_id = ?
            IF status = ?
        """)

    # ==========================================================================
    # Ledger writes
    # ==========================================================================

    async def append_entry(self, entry: CourseAccessEntry) -> CourseAccessEntry:
        """Append an entry to the user's ledger."""
        self.session.execute(
            self._insert_entry,
            [
                entry.user_id,
                entry.course_id,
                entry.transaction_id,
                entry.purchase_date,
                entry.status.value,
                entry.access_expiry,
                entry.updated_at,
            ],
        )
        await self.invalidate(entry.user_id, entry.course_id)

        logger.info(
            "access_entry_appended",
            user_id=str(entry.user_id),
            course_id=entry.course_id,
            transaction_id=entry.transaction_id,
            status=entry.status.value,
        )
        return entry

    async def activate_entry(
        self,
        user_id: UUID,
        course_id: str,
        transaction_id: str,
    ) -> bool:
        """Move the entry for this transaction from pending to active.

        The write is conditional on the stored status, so when several
        activators race on one entry exactly one of them wins.

        Returns:
            True if this call moved the entry to active, False if it was
            not pending or does not exist
        """
        result = self.session.execute(
            self._activate_entry,
            [
                AccessStatus.ACTIVE.value,
                datetime.now(UTC),
                user_id,
                course_id,
                transaction_id,
                AccessStatus.PENDING.value,
            ],
        )
        if not result.was_applied:
            # A failed LWT returns the current row; no row means no entry
            current = getattr(result.one(), "status", None)
            log = logger.warning if current is None else logger.debug
            log(
                "access_entry_not_activated",
                user_id=str(user_id),
                course_id=course_id,
                transaction_id=transaction_id,
                current_status=current,
            )
            return False

        await self.invalidate(user_id, course_id)

        logger.info(
            "access_entry_activated",
            user_id=str(user_id),
            course_id=course_id,
            transaction_id=transaction_id,
        )
        return True

    # ==========================================================================
    # Ledger reads
    # ==========================================================================

    def list_entries(self, user_id: UUID) -> list[CourseAccessEntry]:
        """Get the user's whole ledger."""
        rows = self.session.execute(self._get_user_entries, [user_id])
        return [CourseAccessEntry.from_row(row) for row in rows]

    def check_access(self, user_id: UUID, course_id: str) -> AccessDecision:
        """Evaluate the user's access to a course from the ledger."""
        rows = self.session.execute(
            self._get_user_course_entries,
            [user_id, course_id],
        )
        entries = [CourseAccessEntry.from_row(row) for row in rows]
        return evaluate(entries, course_id)

    async def has_access(self, user_id: UUID, course_id: str) -> bool:
        """Boolean access decision, served from Redis when cached."""
        cache_key = access_cache_key(user_id, course_id)
        if self.redis:
            cached = await self.redis.get(cache_key)
            if cached is not None:
                return cached == "1"

        decision = self.check_access(user_id, course_id)

        if self.redis:
            await self.redis.setex(
                cache_key,
                self._cache_ttl(decision),
                "1" if decision.has_access else "0",
            )

        return decision.has_access

    def _cache_ttl(self, decision: AccessDecision) -> int:
        """TTL that never outlives the entry's access period."""
        ttl = self.cache_ttl_seconds
        entry = decision.entry
        if decision.has_access and entry and entry.access_expiry:
            remaining = int((entry.access_expiry - datetime.now(UTC)).total_seconds())
            ttl = max(1, min(ttl, remaining))
        return ttl

    async def invalidate(self, user_id: UUID, course_id: str) -> None:
        """Drop the cached decision for a user/course pair."""
        if self.redis:
            await self.redis.delete(access_cache_key(user_id, course_id))
