"""Domain error hierarchy.

Services raise these; the application exception handler turns them into
the JSON error payload with a stable ``code``.
"""

from fastapi import status


class ServiceError(Exception):
    """Base error for all domain failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str = "INTERNAL_ERROR"
    default_message: str = "Unexpected error"

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        super().__init__(self.message)


class ValidationFailedError(ServiceError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "VALIDATION_FAILED"
    default_message = "Invalid request"


class NotFoundError(ServiceError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"
    default_message = "Not found"


class ConflictError(ServiceError):
    """Uniqueness violation. The public API reports these as 400."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "CONFLICT"
    default_message = "Already exists"


class ForbiddenError(ServiceError):
    """Caller is authenticated but may not perform the action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"
    default_message = "Action not allowed"


class AuthenticationError(ServiceError):
    """Bad credential or session token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"
    default_message = "Authentication required"


# Codes used for plain HTTPExceptions raised by FastAPI/Starlette
HTTP_STATUS_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def code_for_status(status_code: int) -> str:
    """Stable error code for a bare HTTP status."""
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return "INTERNAL_ERROR"
    return HTTP_STATUS_CODES.get(status_code, "HTTP_ERROR")


class StoreUnavailableError(ServiceError):
    """The backing store is not connected."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "STORE_UNAVAILABLE"
    default_message = "Service temporarily unavailable"
