"""Database models for authentication.

Cassandra table definition for users. Email is unique by convention
(checked before insert) and looked up through a secondary index.
Users created by guest checkout carry an unusable credential and
``is_guest=True`` until they register with the same email.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from src.auth.permissions import UserRole


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    email TEXT,
    phone TEXT,
    name TEXT,
    password_hash TEXT,
    role TEXT,
    is_guest BOOLEAN,
    is_active BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

USER_EMAIL_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_email_idx ON {keyspace}.users (email)
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USER_EMAIL_INDEX_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class User:
    """User entity.

    Attributes:
        id: Unique identifier (UUID)
        email: Unique email address (stored lower-case)
        phone: Phone number
        name: Full name
        password_hash: Argon2id hash
        role: user or admin
        is_guest: Created by guest checkout, no usable credential yet
        is_active: Account status
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        email: str = "",
        phone: str | None = None,
        name: str = "",
        password_hash: str = "",
        role: str = UserRole.USER.value,
        is_guest: bool = False,
        is_active: bool = True,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.email = email.lower().strip()
        self.phone = phone
        self.name = name
        self.password_hash = password_hash
        self.role = role
        self.is_guest = is_guest
        self.is_active = is_active
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            email=row.email,
            phone=row.phone,
            name=row.name or "",
            password_hash=row.password_hash or "",
            role=row.role or UserRole.USER.value,
            is_guest=bool(getattr(row, "is_guest", False)),
            is_active=row.is_active if row.is_active is not None else True,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
