# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Purchase service layer.

Business logic for:
- Guest checkout: transaction + pending ledger entry + scheduled activation
- Idempotent activation of a transaction
- Manual payment verification
- Transaction listing and lookup
"""

import heapq
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from uuid import UUID

from src.access.models import create_pending_entry
from src.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from src.core.logging import get_logger
from src.purchases.models import Transaction, TransactionStatus
from src.purchases.schemas import (
    PurchaseRequest,
    PurchaseResponse,
    TransactionResponse,
    VerifyPaymentResponse,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from src.access.service import AccessService
    from src.activation.outbox import ActivationOutbox
    from src.auth.service import AuthService
    from src.courses.service import CourseService


logger = get_logger(__name__)


PURCHASE_ACCEPTED_MESSAGE = "Payment received. The course will be activated shortly."

REQUIRED_PURCHASE_FIELDS = (
    ("name", "name"),
    ("email", "email"),
    ("transaction_id", "transactionId"),
    ("payment_method", "paymentMethod"),
    ("course_id", "courseId"),
)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class MissingFieldsError(ValidationFailedError):
    """Required purchase fields are absent."""

    default_code = "MISSING_FIELDS"
    default_message = "Please provide all required information"

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"Missing required fields: {', '.join(fields)}")


class DuplicateTransactionError(ConflictError):
    """Transaction id was already used."""

    default_code = "DUPLICATE_TRANSACTION"
    default_message = "This transaction id has already been used"


class TransactionNotFoundError(NotFoundError):
    """Transaction not found."""

    default_code = "TRANSACTION_NOT_FOUND"
    default_message = "Transaction not found"


# ==============================================================================
# Purchase Service
# ==============================================================================


class PurchaseService:
    """Checkout, activation and transaction reads."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        auth_service: "AuthService",
        course_service: "CourseService",
        access_service: "AccessService",
        outbox: "ActivationOutbox",
        access_validity_days: int = 365,
        activation_delay_seconds: float = 10.0,
    ):
        self.session = session
        self.keyspace = keyspace
        self.auth_service = auth_service
        self.course_service = course_service
        self.access_service = access_service
        self.outbox = outbox
        self.access_validity_days = access_validity_days
        self.activation_delay_seconds = activation_delay_seconds
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_transaction = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.transactions
            (transaction_id, user_id, course_id, amount, payment_method, status,
             payment_details, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)
        self._get_transaction = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.transactions
            WHERE transaction_id = ?
        """)
        self._list_transactions = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.transactions"
        )
        self._update_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.transactions
            SET status = ?, updated_at = ?
            WHERE transaction_id = ?
        """)

    # ==========================================================================
    # Checkout
    # ==========================================================================

    async def purchase(self, data: PurchaseRequest) -> PurchaseResponse:
        """Record a guest purchase and schedule its activation.

        Raises:
            MissingFieldsError: If a required field is absent or blank
            CourseNotFoundError: If the course is absent or inactive
            DuplicateTransactionError: If the transaction id is taken
        """
        missing = [
            label for attr, label in REQUIRED_PURCHASE_FIELDS if not getattr(data, attr)
        ]
        if missing:
            raise MissingFieldsError(missing)

        course = self.course_service.require_active_course(data.course_id)

        user, created = self.auth_service.get_or_create_guest(
            name=data.name,
            email=data.email,
            phone=data.phone,
        )

        if self.get_transaction(data.transaction_id) is not None:
            raise DuplicateTransactionError

        now = datetime.now(UTC)
        details = {"name": data.name, "email": data.email}
        if data.phone:
            details["phone"] = data.phone

        txn = Transaction(
            transaction_id=data.transaction_id,
            user_id=user.id,
            course_id=course.course_id,
            amount=data.amount if data.amount else course.effective_price,
            payment_method=data.payment_method,
            status=TransactionStatus.PENDING,
            payment_details=details,
            created_at=now,
            updated_at=now,
        )
        result = self.session.execute(
            self._insert_transaction,
            [
                txn.transaction_id,
                txn.user_id,
                txn.course_id,
                txn.amount,
                txn.payment_method,
                txn.status.value,
                txn.payment_details,
                txn.created_at,
                txn.updated_at,
            ],
        )
        # Lost the race against a concurrent purchase with the same id
        if not result.was_applied:
            raise DuplicateTransactionError

        await self.access_service.append_entry(
            create_pending_entry(
                user_id=user.id,
                course_id=course.course_id,
                transaction_id=txn.transaction_id,
                validity_days=self.access_validity_days,
                now=now,
            )
        )

        self.outbox.enqueue(
            transaction_id=txn.transaction_id,
            user_id=user.id,
            run_at=now + timedelta(seconds=self.activation_delay_seconds),
        )

        logger.info(
            "purchase_accepted",
            transaction_id=txn.transaction_id,
            user_id=str(user.id),
            course_id=course.course_id,
            amount=str(txn.amount),
            payment_method=txn.payment_method,
            guest_created=created,
        )

        return PurchaseResponse(
            message=PURCHASE_ACCEPTED_MESSAGE,
            transaction_id=txn.transaction_id,
        )

    # ==========================================================================
    # Activation
    # ==========================================================================

    async def activate(self, transaction_id: str) -> bool:
        """Complete a transaction and activate its ledger entry.

        Safe to run any number of times, from any number of processes: the
        student counter only moves for the caller whose conditional write
        took the entry out of pending.

        Returns:
            True if anything changed, False if already activated

        Raises:
            TransactionNotFoundError: If the transaction does not exist
        """
        txn = self.require_transaction(transaction_id)

        if txn.status in (TransactionStatus.FAILED, TransactionStatus.REFUNDED):
            logger.warning(
                "activation_skipped",
                transaction_id=transaction_id,
                status=txn.status.value,
            )
            return False

        changed = False
        if not txn.is_completed:
            self.session.execute(
                self._update_status,
                [TransactionStatus.COMPLETED.value, datetime.now(UTC), transaction_id],
            )
            changed = True

        entry_activated = await self.access_service.activate_entry(
            txn.user_id, txn.course_id, txn.transaction_id
        )
        if entry_activated:
            self.course_service.increment_students(txn.course_id)

        if changed or entry_activated:
            logger.info(
                "transaction_activated",
                transaction_id=transaction_id,
                user_id=str(txn.user_id),
                course_id=txn.course_id,
            )
        return changed or entry_activated

    async def verify_payment(self, transaction_id: str) -> VerifyPaymentResponse:
        """Activate a transaction now and cancel its scheduled activation."""
        activated = await self.activate(transaction_id)
        removed = self.outbox.remove(transaction_id)

        logger.info(
            "payment_verified",
            transaction_id=transaction_id,
            activated=activated,
            jobs_removed=removed,
        )

        txn = self.require_transaction(transaction_id)
        return VerifyPaymentResponse(
            activated=activated,
            transaction=TransactionResponse.from_transaction(txn),
        )

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        """Find transaction by id."""
        row = self.session.execute(self._get_transaction, [transaction_id]).one()
        return Transaction.from_row(row) if row else None

    def require_transaction(self, transaction_id: str) -> Transaction:
        """Find transaction by id or raise TransactionNotFoundError."""
        txn = self.get_transaction(transaction_id)
        if txn is None:
            raise TransactionNotFoundError
        return txn

    def get_user_transaction(self, transaction_id: str, user_id: UUID) -> Transaction:
        """Find a transaction owned by ``user_id``.

        Another user's transaction reads as not found.
        """
        txn = self.get_transaction(transaction_id)
        if txn is None or txn.user_id != user_id:
            raise TransactionNotFoundError
        return txn

    def list_transactions(self, limit: int = 100) -> list[Transaction]:
        """The ``limit`` newest transactions, newest first.

        The table is keyed by transaction id, so recency is not a storage
        order: every row is paged through and only the newest are kept.
        """
        rows = self.session.execute(self._list_transactions)
        return heapq.nlargest(
            limit,
            (Transaction.from_row(row) for row in rows),
            key=lambda t: t.created_at,
        )
