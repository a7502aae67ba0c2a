"""Security utilities for authentication.

Provides:
- Password hashing with Argon2id
- Unusable placeholder credentials for guest accounts
- Session token (JWT) creation and validation
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from jose import JWTError, jwt

from src.config.settings import get_settings


# Argon2id configuration (OWASP recommended parameters)
_password_hasher = PasswordHasher(
    time_cost=2,
    memory_cost=19456,  # 19 MiB
    parallelism=1,
    hash_len=32,
    salt_len=16,
)

TOKEN_TYPE = "access"


def hash_password(password: str) -> str:
    """Hash a password using Argon2id.

    The returned hash includes the algorithm parameters and salt.

    Example:
        >>> hash_password("my-secure-password").startswith("$argon2id$")
        True
    """
    return _password_hasher.hash(password)


def unusable_password_hash() -> str:
    """Hash of a random secret that is never disclosed.

    Used for accounts created by guest checkout: nothing the user can
    type will ever verify against it.
    """
    return hash_password(secrets.token_urlsafe(32))


def verify_password(password: str, password_hash: str) -> tuple[bool, str | None]:
    """Verify a password against its hash.

    Returns:
        Tuple of (is_valid, new_hash). ``new_hash`` is set when the stored
        hash uses outdated parameters and should be replaced.
    """
    if not password_hash:
        return False, None
    try:
        _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False, None

    if _password_hasher.check_needs_rehash(password_hash):
        return True, hash_password(password)

    return True, None


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token.

    Args:
        data: Claims, typically {"sub": user_id, "email": email, "role": role}
        expires_delta: Token lifetime (default ``auth_access_token_expire_days``)

    Returns:
        Encoded JWT string with ``exp``, ``iat`` and ``type`` claims added
    """
    settings = get_settings()

    now = datetime.now(UTC)
    to_encode = data.copy()
    to_encode.update(
        {
            "exp": now
            + (expires_delta or timedelta(days=settings.auth_access_token_expire_days)),
            "iat": now,
            "type": TOKEN_TYPE,
        }
    )

    return jwt.encode(
        to_encode,
        settings.auth_secret_key,
        algorithm=settings.auth_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate a session token.

    Raises:
        JWTError: If token is invalid, expired, of the wrong type or has no subject
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    if payload.get("type") != TOKEN_TYPE:
        msg = "Invalid token type: expected 'access'"
        raise JWTError(msg)

    if not payload.get("sub"):
        msg = "Token missing subject"
        raise JWTError(msg)

    return payload


def token_lifetime_seconds() -> int:
    """Lifetime of a freshly issued session token."""
    return get_settings().auth_access_token_expire_days * 24 * 60 * 60
