"""FastAPI dependencies for the course catalog."""

from typing import Annotated

from fastapi import Depends

from src.core.state import AppContext, get_app_context
from src.courses.service import CourseService


def get_course_service(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> CourseService:
    """Get CourseService instance from the application context."""
    return context.require("course_service")


CourseServiceDep = Annotated[CourseService, Depends(get_course_service)]
