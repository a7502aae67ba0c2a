"""Tests for PurchaseService with a mocked store and collaborators."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.access.models import AccessStatus
from src.courses.models import Course
from src.courses.seed import sample_course
from src.courses.service import CourseNotFoundError
from src.purchases.models import TransactionStatus
from src.purchases.schemas import PurchaseRequest
from src.purchases.service import (
    DuplicateTransactionError,
    MissingFieldsError,
    PurchaseService,
    TransactionNotFoundError,
)
from tests.fakes import KEYSPACE, TransactionTable, executed


@pytest.fixture
def table() -> TransactionTable:
    return TransactionTable()


@pytest.fixture
def buyer():
    return MagicMock(id=uuid4())


@pytest.fixture
def collaborators(buyer):
    auth = MagicMock()
    auth.get_or_create_guest.return_value = (buyer, True)

    courses = MagicMock()
    courses.require_active_course.return_value = sample_course()

    access = MagicMock()
    access.append_entry = AsyncMock()
    access.activate_entry = AsyncMock(return_value=True)

    outbox = MagicMock()
    outbox.remove.return_value = 1
    return auth, courses, access, outbox


@pytest.fixture
def service(make_session, table, collaborators) -> PurchaseService:
    auth, courses, access, outbox = collaborators
    return PurchaseService(
        session=make_session(table),
        keyspace=KEYSPACE,
        auth_service=auth,
        course_service=courses,
        access_service=access,
        outbox=outbox,
        access_validity_days=365,
        activation_delay_seconds=10,
    )


def purchase_request(**overrides) -> PurchaseRequest:
    fields = {
        "name": "Rahim",
        "email": "rahim@example.com",
        "phone": "01712345678",
        "transactionId": "8N7A6B5C",
        "paymentMethod": "bkash",
        "courseId": "practical-ibarot",
    }
    fields.update(overrides)
    return PurchaseRequest.model_validate(fields)


class TestPurchase:
    """Tests for purchase."""

    async def test_records_pending_purchase(
        self, service, table, collaborators, buyer
    ) -> None:
        _, _, access, outbox = collaborators
        before = datetime.now(UTC)

        response = await service.purchase(purchase_request())

        assert response.success is True
        assert response.transaction_id == "8N7A6B5C"
        assert response.status == TransactionStatus.PENDING

        stored = table.rows["8N7A6B5C"]
        assert stored.user_id == buyer.id
        assert stored.status == "pending"
        assert stored.payment_details == {
            "name": "Rahim",
            "email": "rahim@example.com",
            "phone": "01712345678",
        }

        entry = access.append_entry.await_args.args[0]
        assert entry.status == AccessStatus.PENDING
        assert entry.transaction_id == "8N7A6B5C"
        assert entry.access_expiry - entry.purchase_date == timedelta(days=365)

        job = outbox.enqueue.call_args.kwargs
        assert job["transaction_id"] == "8N7A6B5C"
        assert job["run_at"] >= before + timedelta(seconds=10)

    async def test_amount_defaults_to_discounted_price(self, service, table) -> None:
        await service.purchase(purchase_request())
        assert table.rows["8N7A6B5C"].amount == Decimal(1500)

    async def test_amount_defaults_to_list_price(
        self, service, table, collaborators
    ) -> None:
        _, courses, _, _ = collaborators
        courses.require_active_course.return_value = Course(
            course_id="practical-ibarot", title="Practical Ibarot", price=3000
        )

        await service.purchase(purchase_request())

        assert table.rows["8N7A6B5C"].amount == Decimal(3000)

    async def test_declared_amount_kept(self, service, table) -> None:
        await service.purchase(purchase_request(amount="1200"))
        assert table.rows["8N7A6B5C"].amount == Decimal(1200)

    async def test_phone_optional(self, service, table) -> None:
        await service.purchase(purchase_request(phone=None))
        assert "phone" not in table.rows["8N7A6B5C"].payment_details

    async def test_missing_fields(self, service, collaborators) -> None:
        auth, _, _, _ = collaborators
        with pytest.raises(MissingFieldsError) as exc_info:
            await service.purchase(purchase_request(name="", transactionId=None))

        assert exc_info.value.code == "MISSING_FIELDS"
        assert exc_info.value.fields == ["name", "transactionId"]
        assert exc_info.value.status_code == 400
        auth.get_or_create_guest.assert_not_called()

    async def test_unknown_course(self, service, collaborators, table) -> None:
        _, courses, _, _ = collaborators
        courses.require_active_course.side_effect = CourseNotFoundError

        with pytest.raises(CourseNotFoundError):
            await service.purchase(purchase_request(courseId="nope"))
        assert table.rows == {}

    async def test_duplicate_transaction(self, service, collaborators) -> None:
        _, _, access, outbox = collaborators
        await service.purchase(purchase_request())

        with pytest.raises(DuplicateTransactionError) as exc_info:
            await service.purchase(purchase_request(email="other@example.com"))

        assert exc_info.value.status_code == 400
        assert access.append_entry.await_count == 1
        assert outbox.enqueue.call_count == 1

    async def test_lost_insert_race(self, service, table, collaborators) -> None:
        _, _, access, outbox = collaborators
        table.lose_insert_race = True

        with pytest.raises(DuplicateTransactionError):
            await service.purchase(purchase_request())

        access.append_entry.assert_not_awaited()
        outbox.enqueue.assert_not_called()


class TestActivate:
    """Tests for activate and verify_payment."""

    async def test_activates_once(self, service, table, collaborators) -> None:
        _, courses, access, _ = collaborators
        await service.purchase(purchase_request())

        assert await service.activate("8N7A6B5C") is True
        assert table.rows["8N7A6B5C"].status == "completed"
        courses.increment_students.assert_called_once_with("practical-ibarot")

        access.activate_entry.return_value = False
        assert await service.activate("8N7A6B5C") is False
        courses.increment_students.assert_called_once()
        assert len(executed(service.session, f"UPDATE {KEYSPACE}.transactions")) == 1

    async def test_unknown_transaction(self, service) -> None:
        with pytest.raises(TransactionNotFoundError):
            await service.activate("missing")

    @pytest.mark.parametrize("status", ["failed", "refunded"])
    async def test_closed_transactions_skipped(
        self, service, table, collaborators, status
    ) -> None:
        _, _, access, _ = collaborators
        await service.purchase(purchase_request())
        table.rows["8N7A6B5C"].status = status

        assert await service.activate("8N7A6B5C") is False
        access.activate_entry.assert_not_awaited()

    async def test_verify_payment(self, service, collaborators) -> None:
        _, _, _, outbox = collaborators
        await service.purchase(purchase_request())

        response = await service.verify_payment("8N7A6B5C")

        assert response.activated is True
        assert response.transaction.status == TransactionStatus.COMPLETED
        outbox.remove.assert_called_once_with("8N7A6B5C")


class TestQueries:
    """Tests for transaction reads."""

    async def test_owner_only(self, service, buyer) -> None:
        await service.purchase(purchase_request())

        assert service.get_user_transaction("8N7A6B5C", buyer.id).course_id == (
            "practical-ibarot"
        )
        with pytest.raises(TransactionNotFoundError):
            service.get_user_transaction("8N7A6B5C", uuid4())

    async def test_list_newest_first(self, service) -> None:
        await service.purchase(purchase_request(transactionId="FIRST"))
        await service.purchase(purchase_request(transactionId="SECOND"))

        listed = service.list_transactions(limit=10)

        assert [t.transaction_id for t in listed] == ["SECOND", "FIRST"]

    async def test_list_keeps_the_newest(self, service, table) -> None:
        for txn_id, day in (("OLD", 1), ("NEWEST", 3), ("MIDDLE", 2)):
            await service.purchase(purchase_request(transactionId=txn_id))
            table.rows[txn_id].created_at = datetime(2026, 5, day)

        listed = service.list_transactions(limit=2)

        assert [t.transaction_id for t in listed] == ["NEWEST", "MIDDLE"]
