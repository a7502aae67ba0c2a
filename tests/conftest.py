"""Shared fixtures.

The app is exercised without a live Cassandra: the lifespan is not run
(TestClient is used without a context manager) and each test installs an
AppContext holding mocked services.
"""

import os


os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections.abc import Callable, Iterator  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.auth.permissions import UserRole  # noqa: E402
from src.auth.security import create_access_token  # noqa: E402
from src.config import get_settings  # noqa: E402
from src.core.state import AppContext  # noqa: E402
from src.main import app  # noqa: E402
from tests.fakes import FakeResult  # noqa: E402


@pytest.fixture
def make_session() -> Callable[..., MagicMock]:
    """Factory for a mocked Session whose prepared statements are the CQL text.

    ``handler(cql, params)`` decides the result of each execute call;
    by default every statement returns an empty result.
    """

    def _make(handler: Callable[[str, list], FakeResult] | None = None) -> MagicMock:
        session = MagicMock()
        session.prepare.side_effect = lambda cql: " ".join(cql.split())
        session.execute.side_effect = lambda stmt, params=None: (
            handler(stmt, params or []) if handler else FakeResult()
        )
        return session

    return _make


# ==============================================================================
# App / client
# ==============================================================================


@pytest.fixture
def app_context() -> Iterator[AppContext]:
    """AppContext installed on the app for the duration of a test."""
    context = AppContext(settings=get_settings())
    app.state.context = context
    yield context
    app.state.context = None


@pytest.fixture
def client(app_context: AppContext) -> TestClient:
    """Test client without lifespan (no store connection)."""
    return TestClient(app)


# ==============================================================================
# Tokens
# ==============================================================================


@pytest.fixture
def token_factory() -> Callable[..., str]:
    """Create session tokens for arbitrary users."""

    def _create(
        user_id: UUID | None = None,
        email: str = "student@example.com",
        role: UserRole = UserRole.USER,
    ) -> str:
        return create_access_token(
            {"sub": str(user_id or uuid4()), "email": email, "role": role.value}
        )

    return _create


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def auth_headers(token_factory, user_id) -> dict[str, str]:
    """Bearer header for ``user_id``."""
    return {"Authorization": f"Bearer {token_factory(user_id)}"}
