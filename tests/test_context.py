"""Tests for log context scoping."""

from uuid import uuid4

from src.core.context import (
    get_context,
    get_request_id,
    request_scope,
    set_user_id,
    transaction_scope,
)


class TestRequestScope:
    """Request id and user id live for one request."""

    def test_generates_id(self) -> None:
        with request_scope() as request_id:
            assert request_id
            assert get_request_id() == request_id
        assert get_request_id() is None

    def test_user_cleared_on_exit(self) -> None:
        user_id = uuid4()
        with request_scope("req-1"):
            set_user_id(user_id)
            assert get_context() == {"request_id": "req-1", "user_id": str(user_id)}
        assert get_context() == {}


class TestTransactionScope:
    def test_nested_in_request(self) -> None:
        with request_scope("req-2"), transaction_scope("8N7A6B5C"):
            assert get_context()["transaction_id"] == "8N7A6B5C"
        assert "transaction_id" not in get_context()

    def test_absent_transaction_not_logged(self) -> None:
        with transaction_scope(None):
            assert "transaction_id" not in get_context()
