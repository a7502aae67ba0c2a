# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Course review service layer."""

from typing import TYPE_CHECKING
from uuid import UUID

from src.core.exceptions import ForbiddenError
from src.core.logging import get_logger
from src.reviews.models import RatingSummary, Review


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from src.access.service import AccessService
    from src.courses.service import CourseService


logger = get_logger(__name__)


class AccessRequiredError(ForbiddenError):
    """Reviewer does not currently have access to the course."""

    default_code = "ACCESS_REQUIRED"
    default_message = "Only students with access to this course can review it"


class ReviewService:
    """List and submit course reviews."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        access_service: "AccessService",
        list_limit: int = 50,
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.access_service = access_service
        self.list_limit = list_limit
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._insert_review = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_reviews
            (course_id, created_at, review_id, user_id, user_name, rating, comment)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._list_reviews = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_reviews
            WHERE course_id = ?
            LIMIT ?
        """)
        self._add_rating = self.session.prepare(f"""
            UPDATE {self.keyspace}.course_rating_stats
            SET review_count = review_count + 1, rating_total = rating_total + ?
            WHERE course_id = ?
        """)
        self._get_rating_summary = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_rating_stats WHERE course_id = ?"
        )

    def list_reviews(self, course_id: str) -> list[Review]:
        """Newest reviews of an active course, capped at ``list_limit``."""
        self.course_service.require_active_course(course_id)
        rows = self.session.execute(self._list_reviews, [course_id, self.list_limit])
        return [Review.from_row(row) for row in rows]

    def rating_summary(self, course_id: str) -> RatingSummary:
        """Count and total of every rating the course has received."""
        row = self.session.execute(self._get_rating_summary, [course_id]).one()
        return RatingSummary.from_row(row)

    async def submit_review(
        self,
        course_id: str,
        user_id: UUID,
        rating: int,
        comment: str | None = None,
        user_name: str | None = None,
    ) -> Review:
        """Store a review from a user who currently has access.

        Raises:
            CourseNotFoundError: If the course is absent or inactive
            AccessRequiredError: If the user has no current access
        """
        self.course_service.require_active_course(course_id)

        if not await self.access_service.has_access(user_id, course_id):
            raise AccessRequiredError

        review = Review(
            course_id=course_id,
            user_id=user_id,
            rating=rating,
            comment=comment,
            user_name=user_name,
        )
        self.session.execute(
            self._insert_review,
            [
                review.course_id,
                review.created_at,
                review.review_id,
                review.user_id,
                review.user_name,
                review.rating,
                review.comment,
            ],
        )
        self.session.execute(self._add_rating, [rating, course_id])
        logger.info(
            "review_submitted",
            course_id=course_id,
            user_id=str(user_id),
            rating=rating,
        )
        return review
