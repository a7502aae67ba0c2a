# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Course catalog service layer.

Business logic for:
- Course lookup and listing
- Videos and notes in display order
- Counter updates on course_stats
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from src.core.exceptions import NotFoundError
from src.core.logging import get_logger
from src.courses.models import Course, CourseNote, CourseStats, CourseVideo
from src.courses.schemas import (
    CourseResponse,
    CourseStatsResponse,
    NoteResponse,
    VideoResponse,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class CourseNotFoundError(NotFoundError):
    """Course does not exist or is not active."""

    default_code = "COURSE_NOT_FOUND"
    default_message = "Course not found"


class CourseService:
    """Catalog reads and counter updates."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_course = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE course_id = ?"
        )
        self._list_courses = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses LIMIT ?"
        )
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (course_id, title, description, price, discounted_price, instructor,
             duration, lessons, thumbnail, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_stats = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_stats WHERE course_id = ?"
        )
        self._add_stats = self.session.prepare(f"""
            UPDATE {self.keyspace}.course_stats
            SET total_students = total_students + ?,
                total_videos = total_videos + ?,
                total_hours = total_hours + ?,
                total_notes = total_notes + ?
            WHERE course_id = ?
        """)
        self._increment_students = self.session.prepare(f"""
            UPDATE {self.keyspace}.course_stats
            SET total_students = total_students + 1
            WHERE course_id = ?
        """)
        self._list_videos = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_videos WHERE course_id = ?"
        )
        self._list_notes = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_notes WHERE course_id = ?"
        )

    # ==========================================================================
    # Courses
    # ==========================================================================

    def get_course(self, course_id: str) -> Course | None:
        """Get course by id, with its counters, regardless of status."""
        row = self.session.execute(self._get_course, [course_id]).one()
        if not row:
            return None
        return Course.from_row(row, stats=self.get_stats(course_id))

    def require_active_course(self, course_id: str) -> Course:
        """Get an active course or raise CourseNotFoundError."""
        course = self.get_course(course_id)
        if not course or not course.is_active:
            raise CourseNotFoundError
        return course

    def list_courses(self, limit: int = 100) -> list[Course]:
        """List active courses."""
        rows = self.session.execute(self._list_courses, [limit])
        courses = []
        for row in rows:
            if row.is_active is False:
                continue
            courses.append(
                Course.from_row(row, stats=self.get_stats(row.course_id))
            )
        return courses

    def has_courses(self) -> bool:
        """Whether the catalog holds at least one course."""
        return self.session.execute(self._list_courses, [1]).one() is not None

    def create_course(self, course: Course) -> Course:
        """Insert a course and seed its counters."""
        now = datetime.now(UTC)
        self.session.execute(
            self._insert_course,
            [
                course.course_id,
                course.title,
                course.description,
                course.price,
                course.discounted_price,
                course.instructor,
                course.duration,
                course.lessons,
                course.thumbnail,
                course.is_active,
                course.created_at,
                now,
            ],
        )
        stats = course.stats
        self.session.execute(
            self._add_stats,
            [
                stats.total_students,
                stats.total_videos,
                stats.total_hours,
                stats.total_notes,
                course.course_id,
            ],
        )
        logger.info("course_created", course_id=course.course_id)
        return course

    # ==========================================================================
    # Stats
    # ==========================================================================

    def get_stats(self, course_id: str) -> CourseStats:
        """Read course counters (zeros when no row exists)."""
        row = self.session.execute(self._get_stats, [course_id]).one()
        return CourseStats.from_row(row)

    def increment_students(self, course_id: str) -> None:
        """Count one more enrolled student."""
        self.session.execute(self._increment_students, [course_id])

    # ==========================================================================
    # Videos / Notes
    # ==========================================================================

    def list_videos(self, course_id: str) -> list[CourseVideo]:
        """Videos of an active course, ordered by position."""
        self.require_active_course(course_id)
        rows = self.session.execute(self._list_videos, [course_id])
        videos = [CourseVideo.from_row(row) for row in rows]
        return sorted(videos, key=lambda v: v.position)

    def list_notes(self, course_id: str) -> list[CourseNote]:
        """Notes of an active course, ordered by position."""
        self.require_active_course(course_id)
        rows = self.session.execute(self._list_notes, [course_id])
        notes = [CourseNote.from_row(row) for row in rows]
        return sorted(notes, key=lambda n: n.position)

    # ==========================================================================
    # Responses
    # ==========================================================================

    def to_response(self, course: Course) -> CourseResponse:
        """Convert Course model to response schema."""
        return CourseResponse(
            course_id=course.course_id,
            title=course.title,
            description=course.description,
            price=course.price,
            discounted_price=course.discounted_price,
            instructor=course.instructor,
            duration=course.duration,
            lessons=course.lessons,
            thumbnail=course.thumbnail,
            is_active=course.is_active,
            stats=CourseStatsResponse(**course.stats.to_dict()),
            created_at=course.created_at,
        )

    @staticmethod
    def video_response(video: CourseVideo) -> VideoResponse:
        return VideoResponse(
            video_id=video.video_id,
            position=video.position,
            title=video.title,
            description=video.description,
            video_url=video.video_url,
            duration_seconds=video.duration_seconds,
            is_preview=video.is_preview,
        )

    @staticmethod
    def note_response(note: CourseNote) -> NoteResponse:
        return NoteResponse(
            note_id=note.note_id,
            position=note.position,
            title=note.title,
            content=note.content,
            file_url=note.file_url,
        )
