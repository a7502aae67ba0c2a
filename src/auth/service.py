# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Authentication service layer.

Business logic for:
- User registration
- Login with Argon2id credential check
- Guest user creation for checkout
- Session token issuing
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from src.auth.models import User
from src.auth.permissions import UserRole
from src.auth.schemas import AuthResponse, RegisterRequest, UserResponse
from src.auth.security import (
    create_access_token,
    hash_password,
    token_lifetime_seconds,
    unusable_password_hash,
    verify_password,
)
from src.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from src.core.logging import get_logger


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password."""

    default_code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class EmailExistsError(ConflictError):
    """Email is already registered."""

    default_code = "EMAIL_EXISTS"
    default_message = "Email already registered"


class UserNotFoundError(NotFoundError):
    """User not found."""

    default_code = "USER_NOT_FOUND"
    default_message = "User not found"


# ==============================================================================
# Auth Service
# ==============================================================================


class AuthService:
    """User management and session token operations."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra driver session
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_user_by_email = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE email = ?"
        )
        self._get_user_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id = ?"
        )
        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users
            (id, email, phone, name, password_hash, role, is_guest, is_active,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_user_password = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET password_hash = ?, updated_at = ?
            WHERE id = ?
        """)

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_user_by_email(self, email: str) -> User | None:
        """Find user by email address (case-insensitive)."""
        row = self.session.execute(
            self._get_user_by_email, [email.lower().strip()]
        ).one()
        return User.from_row(row) if row else None

    def get_user_by_id(self, user_id: UUID) -> User | None:
        """Find user by ID."""
        row = self.session.execute(self._get_user_by_id, [user_id]).one()
        return User.from_row(row) if row else None

    def require_user(self, user_id: UUID) -> User:
        """Find user by ID or raise UserNotFoundError."""
        user = self.get_user_by_id(user_id)
        if not user:
            raise UserNotFoundError
        return user

    # ==========================================================================
    # Registration / Login
    # ==========================================================================

    def register_user(self, data: RegisterRequest) -> User:
        """Register a new user.

        Guest accounts created at checkout hold the email too, so a buyer
        cannot take one over by registering with its address.

        Raises:
            EmailExistsError: If any account, guest or not, uses the email
        """
        if self.get_user_by_email(data.email):
            raise EmailExistsError

        user = User(
            email=data.email,
            phone=data.phone,
            name=data.name,
            password_hash=hash_password(data.password),
            role=UserRole.USER.value,
        )
        self._insert_user_to_db(user)
        logger.info("user_registered", user_id=str(user.id))
        return user

    def authenticate_user(self, email: str, password: str) -> User:
        """Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If email or password is wrong, or the
                account is inactive
        """
        user = self.get_user_by_email(email)
        if not user or not user.is_active:
            raise InvalidCredentialsError

        is_valid, new_hash = verify_password(password, user.password_hash)
        if not is_valid:
            raise InvalidCredentialsError

        if new_hash:
            self.session.execute(
                self._update_user_password,
                [new_hash, datetime.now(UTC), user.id],
            )
            user.password_hash = new_hash

        return user

    def get_or_create_guest(
        self,
        name: str,
        email: str,
        phone: str | None = None,
    ) -> tuple[User, bool]:
        """Find the user for a checkout email, creating a guest if absent.

        The guest gets a random credential nobody knows, never anything
        derived from the request.

        Returns:
            Tuple of (user, created)
        """
        user = self.get_user_by_email(email)
        if user:
            return user, False

        user = User(
            email=email,
            phone=phone,
            name=name,
            password_hash=unusable_password_hash(),
            role=UserRole.USER.value,
            is_guest=True,
        )
        self._insert_user_to_db(user)
        logger.info("guest_user_created", user_id=str(user.id))
        return user, True

    def _insert_user_to_db(self, user: User) -> None:
        """Insert user into database."""
        self.session.execute(
            self._insert_user,
            [
                user.id,
                user.email,
                user.phone,
                user.name,
                user.password_hash,
                user.role,
                user.is_guest,
                user.is_active,
                user.created_at,
                user.updated_at,
            ],
        )

    # ==========================================================================
    # Tokens / Responses
    # ==========================================================================

    def issue_token(self, user: User) -> AuthResponse:
        """Create a session token for the user."""
        token = create_access_token(
            {"sub": str(user.id), "email": user.email, "role": user.role}
        )
        return AuthResponse(
            token=token,
            expires_in=token_lifetime_seconds(),
            user=self.to_response(user),
        )

    def to_response(self, user: User) -> UserResponse:
        """Convert User model to response schema."""
        return UserResponse.from_user(user)
