"""Pydantic schemas for the course catalog."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class CourseStatsResponse(BaseModel):
    """Course counters."""

    total_students: int = 0
    total_videos: int = 0
    total_hours: int = 0
    total_notes: int = 0


class CourseResponse(BaseModel):
    """Course response."""

    model_config = ConfigDict(from_attributes=True)

    course_id: str
    title: str
    description: str | None = None
    price: Decimal
    discounted_price: Decimal | None = None
    instructor: str | None = None
    duration: str | None = None
    lessons: int = 0
    thumbnail: str | None = None
    is_active: bool = True
    stats: CourseStatsResponse
    created_at: datetime


class CourseListResponse(BaseModel):
    """Course list response."""

    items: list[CourseResponse]
    total: int


class VideoResponse(BaseModel):
    """Course video response."""

    video_id: str
    position: int
    title: str
    description: str | None = None
    video_url: str | None = None
    duration_seconds: int | None = None
    is_preview: bool = False


class VideoListResponse(BaseModel):
    """Videos of a course in display order."""

    course_id: str
    items: list[VideoResponse]
    total: int


class NoteResponse(BaseModel):
    """Course note response."""

    note_id: str
    position: int
    title: str
    content: str | None = None
    file_url: str | None = None


class NoteListResponse(BaseModel):
    """Notes of a course in display order."""

    course_id: str
    items: list[NoteResponse]
    total: int
