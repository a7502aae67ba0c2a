"""Database models for course reviews.

Partitioned by course, clustered newest first so a listing is a single
partition read with a LIMIT. The rating average comes from a counter
table, since the listing only holds the newest reviews.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from src.auth.models import ensure_utc_aware


MIN_RATING = 1
MAX_RATING = 5


COURSE_REVIEWS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_reviews (
    course_id TEXT,
    created_at TIMESTAMP,
    review_id UUID,
    user_id UUID,
    user_name TEXT,
    rating INT,
    comment TEXT,
    PRIMARY KEY ((course_id), created_at, review_id)
) WITH CLUSTERING ORDER BY (created_at DESC, review_id ASC)
"""

COURSE_RATING_STATS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_rating_stats (
    course_id TEXT PRIMARY KEY,
    review_count COUNTER,
    rating_total COUNTER
)
"""

REVIEWS_TABLES_CQL = [
    COURSE_REVIEWS_TABLE_CQL,
    COURSE_RATING_STATS_TABLE_CQL,
]


@dataclass
class Review:
    """A student's rating of a course."""

    course_id: str
    user_id: UUID
    rating: int
    comment: str | None = None
    user_name: str | None = None
    review_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not MIN_RATING <= self.rating <= MAX_RATING:
            msg = f"rating must be between {MIN_RATING} and {MAX_RATING}"
            raise ValueError(msg)

    @classmethod
    def from_row(cls, row: Any) -> "Review":
        """Create instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            user_id=row.user_id,
            rating=row.rating,
            comment=row.comment,
            user_name=row.user_name,
            review_id=row.review_id,
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
        )


@dataclass
class RatingSummary:
    """Every rating a course has received, not only the listed ones."""

    review_count: int = 0
    rating_total: int = 0

    @classmethod
    def from_row(cls, row: Any) -> "RatingSummary":
        if row is None:
            return cls()
        return cls(
            review_count=row.review_count or 0,
            rating_total=row.rating_total or 0,
        )

    @property
    def average_rating(self) -> float | None:
        if not self.review_count:
            return None
        return round(self.rating_total / self.review_count, 2)
