"""Course catalog API endpoints.

Provides routes for:
- Course listing and detail
- Course videos and notes
"""

from fastapi import APIRouter, Query

from src.courses.dependencies import CourseServiceDep
from src.courses.schemas import (
    CourseListResponse,
    CourseResponse,
    NoteListResponse,
    VideoListResponse,
)


router = APIRouter(prefix="/api/courses", tags=["courses"])


@router.get(
    "",
    response_model=CourseListResponse,
    summary="List courses",
)
async def list_courses(
    course_service: CourseServiceDep,
    limit: int = Query(100, ge=1, le=1000),
) -> CourseListResponse:
    """List active courses (public)."""
    courses = course_service.list_courses(limit=limit)
    items = [course_service.to_response(c) for c in courses]
    return CourseListResponse(items=items, total=len(items))


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course",
    responses={404: {"description": "Course not found"}},
)
async def get_course(
    course_id: str,
    course_service: CourseServiceDep,
) -> CourseResponse:
    """Get an active course with its stats."""
    course = course_service.require_active_course(course_id)
    return course_service.to_response(course)


@router.get(
    "/{course_id}/videos",
    response_model=VideoListResponse,
    summary="List course videos",
)
async def list_videos(
    course_id: str,
    course_service: CourseServiceDep,
) -> VideoListResponse:
    """Videos of the course in display order."""
    videos = course_service.list_videos(course_id)
    items = [course_service.video_response(v) for v in videos]
    return VideoListResponse(course_id=course_id, items=items, total=len(items))


@router.get(
    "/{course_id}/notes",
    response_model=NoteListResponse,
    summary="List course notes",
)
async def list_notes(
    course_id: str,
    course_service: CourseServiceDep,
) -> NoteListResponse:
    """Notes of the course in display order."""
    notes = course_service.list_notes(course_id)
    items = [course_service.note_response(n) for n in notes]
    return NoteListResponse(course_id=course_id, items=items, total=len(items))
