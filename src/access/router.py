"""Access API endpoints.

Provides routes for:
- Checking access to a course (session token or email)
- Listing the caller's purchased courses
"""

from fastapi import APIRouter, Query

from src.access.dependencies import AccessServiceDep
from src.access.models import evaluate
from src.access.schemas import (
    CheckAccessResponse,
    UserCourseResponse,
    UserCoursesResponse,
)
from src.access.service import EmailRequiredError
from src.auth.dependencies import AuthServiceDep, CurrentUser, OptionalUser
from src.courses.dependencies import CourseServiceDep


router = APIRouter(prefix="/api", tags=["access"])


@router.get(
    "/check-access/{course_id}",
    response_model=CheckAccessResponse,
    summary="Check course access",
    responses={400: {"description": "Neither session token nor email given"}},
)
async def check_access(
    course_id: str,
    access_service: AccessServiceDep,
    auth_service: AuthServiceDep,
    user: OptionalUser,
    email: str | None = Query(None, description="Email used at checkout"),
) -> CheckAccessResponse:
    """Evaluate access for the signed-in user, or for a checkout email.

    An unknown email is not an error: it simply has no access.
    """
    if user is not None:
        user_id = user.id
    elif email and email.strip():
        found = auth_service.get_user_by_email(email)
        if found is None:
            return CheckAccessResponse(has_access=False)
        user_id = found.id
    else:
        raise EmailRequiredError

    decision = access_service.check_access(user_id, course_id)
    return CheckAccessResponse.from_decision(decision)


@router.get(
    "/user/courses",
    response_model=UserCoursesResponse,
    summary="List my courses",
)
async def list_my_courses(
    user: CurrentUser,
    access_service: AccessServiceDep,
    course_service: CourseServiceDep,
) -> UserCoursesResponse:
    """List the caller's ledger entries with their evaluated status."""
    entries = access_service.list_entries(user.id)
    titles: dict[str, str | None] = {}
    items = []
    for entry in entries:
        if entry.course_id not in titles:
            course = course_service.get_course(entry.course_id)
            titles[entry.course_id] = course.title if course else None
        items.append(
            UserCourseResponse.from_entry(
                entry,
                evaluate([entry], entry.course_id),
                title=titles[entry.course_id],
            )
        )
    return UserCoursesResponse(items=items, total=len(items))
