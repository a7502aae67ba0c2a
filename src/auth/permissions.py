"""Roles and the admin guard policy.

Two roles exist: USER (every registered or guest account) and ADMIN.
Whether admin endpoints actually check the role is a deployment setting,
see ``Settings.admin_require_role``.
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles."""

    USER = "user"
    ADMIN = "admin"


def is_admin(role: UserRole | str) -> bool:
    """Check if the role is ADMIN."""
    if isinstance(role, str):
        return role == UserRole.ADMIN.value
    return role == UserRole.ADMIN


def may_use_admin_endpoints(role: UserRole | str, require_role: bool) -> bool:
    """Decide whether a signed-in caller may use admin endpoints.

    With ``require_role`` off, any authenticated caller is treated as admin.

    Examples:
        >>> may_use_admin_endpoints("user", require_role=False)
        True
        >>> may_use_admin_endpoints("user", require_role=True)
        False
    """
    if not require_role:
        return True
    return is_admin(role)
