"""Application context shared by request handlers.

One ``AppContext`` lives on ``app.state.context``. The lifespan fills it
with the store session and the services built on it; dependencies read
it from the request instead of from module globals.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from fastapi import Request

from src.config.settings import Settings, get_settings
from src.core.exceptions import StoreUnavailableError


if TYPE_CHECKING:
    from src.access.service import AccessService
    from src.activation.worker import ActivationWorker
    from src.auth.service import AuthService
    from src.courses.service import CourseService
    from src.purchases.service import PurchaseService
    from src.reviews.service import ReviewService


@dataclass
class AppContext:
    """Store handle, configuration and services for one running app."""

    settings: Settings
    cassandra_session: Any = None
    redis: Any = None
    auth_service: "AuthService | None" = None
    course_service: "CourseService | None" = None
    access_service: "AccessService | None" = None
    purchase_service: "PurchaseService | None" = None
    review_service: "ReviewService | None" = None
    activation_worker: "ActivationWorker | None" = None

    def require(self, name: str) -> Any:
        """Return a service, or fail with 503 when the store never came up."""
        service = getattr(self, name)
        if service is None:
            raise StoreUnavailableError
        return service


def get_app_context(request: Request) -> AppContext:
    """Get the AppContext of the application serving this request."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        context = AppContext(settings=get_settings())
        request.app.state.context = context
    return context
