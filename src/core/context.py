"""Log context carried in contextvars.

Three values are tracked: the request id (set by the request middleware),
the signed-in user id (set once the session token is decoded) and the
transaction id (bound while a purchase or an activation job runs). Log
processors read them through ``get_context()``.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
transaction_id_var: ContextVar[str | None] = ContextVar("transaction_id", default=None)


def get_request_id() -> str | None:
    return request_id_var.get()


@contextmanager
def request_scope(request_id: str | None = None) -> Iterator[str]:
    """Bind a request id (generated when absent) for the duration of a request.

    The user id is reset on exit together with the request id.
    """
    rid = request_id or str(uuid4())
    rid_token = request_id_var.set(rid)
    user_token = user_id_var.set(None)
    try:
        yield rid
    finally:
        user_id_var.reset(user_token)
        request_id_var.reset(rid_token)


def set_user_id(user_id: str | UUID | None) -> None:
    """Attach the authenticated user to the current request's logs."""
    user_id_var.set(str(user_id) if user_id is not None else None)


@contextmanager
def transaction_scope(transaction_id: str | None) -> Iterator[None]:
    """Bind a transaction id to every log line emitted inside the block."""
    token = transaction_id_var.set(transaction_id)
    try:
        yield
    finally:
        transaction_id_var.reset(token)


def get_context() -> dict[str, Any]:
    """Non-empty context values, keyed by log field name."""
    values = {
        "request_id": request_id_var.get(),
        "user_id": user_id_var.get(),
        "transaction_id": transaction_id_var.get(),
    }
    return {key: value for key, value in values.items() if value}
