"""Database models for the course catalog.

Cassandra table definitions for:
- Courses: catalog entries keyed by a human-readable course id
- Course stats: counter table (students, videos, hours, notes)
- Videos and notes: per-course content ordered by position
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from src.auth.models import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    course_id TEXT PRIMARY KEY,
    title TEXT,
    description TEXT,
    price DECIMAL,
    discounted_price DECIMAL,
    instructor TEXT,
    duration TEXT,
    lessons INT,
    thumbnail TEXT,
    is_active BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Counter columns must live in a table of their own
COURSE_STATS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_stats (
    course_id TEXT PRIMARY KEY,
    total_students COUNTER,
    total_videos COUNTER,
    total_hours COUNTER,
    total_notes COUNTER
)
"""

COURSE_VIDEOS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_videos (
    course_id TEXT,
    position INT,
    video_id TEXT,
    title TEXT,
    description TEXT,
    video_url TEXT,
    duration_seconds INT,
    is_preview BOOLEAN,
    created_at TIMESTAMP,
    PRIMARY KEY ((course_id), position, video_id)
) WITH CLUSTERING ORDER BY (position ASC, video_id ASC)
"""

COURSE_NOTES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_notes (
    course_id TEXT,
    position INT,
    note_id TEXT,
    title TEXT,
    content TEXT,
    file_url TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY ((course_id), position, note_id)
) WITH CLUSTERING ORDER BY (position ASC, note_id ASC)
"""


COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    COURSE_STATS_TABLE_CQL,
    COURSE_VIDEOS_TABLE_CQL,
    COURSE_NOTES_TABLE_CQL,
]


# ==============================================================================
# Entities
# ==============================================================================


class CourseStats:
    """Aggregated course counters."""

    def __init__(
        self,
        total_students: int = 0,
        total_videos: int = 0,
        total_hours: int = 0,
        total_notes: int = 0,
    ):
        self.total_students = total_students
        self.total_videos = total_videos
        self.total_hours = total_hours
        self.total_notes = total_notes

    @classmethod
    def from_row(cls, row: Any) -> "CourseStats":
        """Create CourseStats from a Cassandra row (counters may be null)."""
        if row is None:
            return cls()
        return cls(
            total_students=row.total_students or 0,
            total_videos=row.total_videos or 0,
            total_hours=row.total_hours or 0,
            total_notes=row.total_notes or 0,
        )

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary."""
        return {
            "total_students": self.total_students,
            "total_videos": self.total_videos,
            "total_hours": self.total_hours,
            "total_notes": self.total_notes,
        }


class Course:
    """Course entity.

    Attributes:
        course_id: Human-readable unique identifier (e.g. ``practical-ibarot``)
        title: Course title
        description: Course description
        price: List price
        discounted_price: Sale price, never above ``price``
        instructor: Instructor name
        duration: Free-text duration label
        lessons: Number of lessons
        thumbnail: Thumbnail URL
        is_active: Whether the course can be bought
        stats: Aggregated counters (loaded separately)
    """

    def __init__(
        self,
        course_id: str,
        title: str = "",
        description: str | None = None,
        price: Decimal | int | float = 0,
        discounted_price: Decimal | int | float | None = None,
        instructor: str | None = None,
        duration: str | None = None,
        lessons: int = 0,
        thumbnail: str | None = None,
        is_active: bool = True,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        stats: CourseStats | None = None,
    ):
        price = Decimal(str(price))
        if price < 0:
            raise ValueError("price must not be negative")
        if discounted_price is not None:
            discounted_price = Decimal(str(discounted_price))
            if discounted_price > price:
                raise ValueError("discounted_price must not exceed price")

        self.course_id = course_id.strip()
        self.title = title.strip()
        self.description = description
        self.price = price
        self.discounted_price = discounted_price
        self.instructor = instructor
        self.duration = duration
        self.lessons = lessons
        self.thumbnail = thumbnail
        self.is_active = is_active
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)
        self.stats = stats or CourseStats()

    @property
    def effective_price(self) -> Decimal:
        """Price charged when a purchase names no amount."""
        if self.discounted_price is not None:
            return self.discounted_price
        return self.price

    @classmethod
    def from_row(cls, row: Any, stats: CourseStats | None = None) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            title=row.title or "",
            description=row.description,
            price=row.price or 0,
            discounted_price=row.discounted_price,
            instructor=row.instructor,
            duration=row.duration,
            lessons=row.lessons or 0,
            thumbnail=row.thumbnail,
            is_active=row.is_active if row.is_active is not None else True,
            created_at=row.created_at,
            updated_at=row.updated_at,
            stats=stats,
        )

    def __repr__(self) -> str:
        return f"<Course {self.course_id} ({'active' if self.is_active else 'inactive'})>"


class CourseVideo:
    """Video belonging to a course, ordered by position."""

    def __init__(
        self,
        course_id: str,
        video_id: str,
        position: int,
        title: str = "",
        description: str | None = None,
        video_url: str | None = None,
        duration_seconds: int | None = None,
        is_preview: bool = False,
        created_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.video_id = video_id
        self.position = position
        self.title = title
        self.description = description
        self.video_url = video_url
        self.duration_seconds = duration_seconds
        self.is_preview = is_preview
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "CourseVideo":
        """Create CourseVideo instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            video_id=row.video_id,
            position=row.position,
            title=row.title or "",
            description=row.description,
            video_url=row.video_url,
            duration_seconds=row.duration_seconds,
            is_preview=bool(row.is_preview),
            created_at=row.created_at,
        )


class CourseNote:
    """Study note belonging to a course, ordered by position."""

    def __init__(
        self,
        course_id: str,
        note_id: str,
        position: int,
        title: str = "",
        content: str | None = None,
        file_url: str | None = None,
        created_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.note_id = note_id
        self.position = position
        self.title = title
        self.content = content
        self.file_url = file_url
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "CourseNote":
        """Create CourseNote instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            note_id=row.note_id,
            position=row.position,
            title=row.title or "",
            content=row.content,
            file_url=row.file_url,
            created_at=row.created_at,
        )
