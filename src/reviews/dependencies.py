"""FastAPI dependencies for course reviews."""

from typing import Annotated

from fastapi import Depends

from src.core.state import AppContext, get_app_context
from src.reviews.service import ReviewService


def get_review_service(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> ReviewService:
    """Get ReviewService instance from the application context."""
    return context.require("review_service")


ReviewServiceDep = Annotated[ReviewService, Depends(get_review_service)]
