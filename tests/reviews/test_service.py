"""Tests for ReviewService."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.courses.service import CourseNotFoundError
from src.reviews.models import Review
from src.reviews.service import AccessRequiredError, ReviewService
from tests.fakes import KEYSPACE, FakeResult, executed, row


@pytest.fixture
def access_service() -> MagicMock:
    service = MagicMock()
    service.has_access = AsyncMock(return_value=True)
    return service


@pytest.fixture
def course_service() -> MagicMock:
    return MagicMock()


@pytest.fixture
def stored_reviews() -> list:
    return []


@pytest.fixture
def rating_stats() -> dict:
    return {}


@pytest.fixture
def review_service(
    make_session, course_service, access_service, stored_reviews, rating_stats
):
    def handler(cql: str, params: list) -> FakeResult:
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.course_rating_stats"):
            found = rating_stats.get(params[0])
            return FakeResult([found] if found else [])
        if cql.startswith(f"UPDATE {KEYSPACE}.course_rating_stats"):
            rating, course_id = params
            current = rating_stats.setdefault(
                course_id, row(review_count=0, rating_total=0)
            )
            current.review_count += 1
            current.rating_total += rating
            return FakeResult()
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.course_reviews"):
            course_id, limit = params
            return FakeResult([r for r in stored_reviews if r.course_id == course_id][:limit])
        return FakeResult()

    return ReviewService(
        make_session(handler),
        KEYSPACE,
        course_service=course_service,
        access_service=access_service,
        list_limit=2,
    )


class TestSubmitReview:
    """Only students with current access may review."""

    async def test_stores_review(self, review_service) -> None:
        user_id = uuid4()

        review = await review_service.submit_review(
            "practical-ibarot", user_id, rating=5, comment="চমৎকার", user_name="Rahim"
        )

        assert review.rating == 5
        inserts = executed(review_service.session, f"INSERT INTO {KEYSPACE}.course_reviews")
        assert len(inserts) == 1
        assert inserts[0][0] == "practical-ibarot"
        assert inserts[0][3:] == [user_id, "Rahim", 5, "চমৎকার"]
        assert executed(review_service.session, "rating_total = rating_total + ?") == [
            [5, "practical-ibarot"]
        ]

    async def test_no_access(self, review_service, access_service) -> None:
        access_service.has_access.return_value = False

        with pytest.raises(AccessRequiredError) as exc_info:
            await review_service.submit_review("practical-ibarot", uuid4(), rating=4)

        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "ACCESS_REQUIRED"
        assert not executed(review_service.session, "INSERT")
        assert not executed(review_service.session, "UPDATE")

    async def test_unknown_course(self, review_service, course_service) -> None:
        course_service.require_active_course.side_effect = CourseNotFoundError

        with pytest.raises(CourseNotFoundError):
            await review_service.submit_review("missing", uuid4(), rating=4)


class TestListReviews:
    def test_capped_at_limit(self, review_service, stored_reviews) -> None:
        for rating in (5, 4, 3):
            stored_reviews.append(
                row(
                    course_id="practical-ibarot",
                    user_id=uuid4(),
                    rating=rating,
                    comment=None,
                    user_name=None,
                    review_id=uuid4(),
                    created_at=datetime.now(UTC),
                )
            )

        reviews = review_service.list_reviews("practical-ibarot")

        assert [r.rating for r in reviews] == [5, 4]

    async def test_average_counts_reviews_beyond_the_listing(
        self, review_service
    ) -> None:
        for rating in (5, 4, 3):
            await review_service.submit_review("practical-ibarot", uuid4(), rating)

        summary = review_service.rating_summary("practical-ibarot")

        assert summary.review_count == 3
        assert summary.average_rating == 4.0

    def test_no_ratings(self, review_service) -> None:
        summary = review_service.rating_summary("practical-ibarot")
        assert summary.review_count == 0
        assert summary.average_rating is None


class TestReviewModel:
    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_bounds(self, rating: int) -> None:
        with pytest.raises(ValueError, match="rating"):
            Review(course_id="c", user_id=uuid4(), rating=rating)
