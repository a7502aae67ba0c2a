"""Pydantic schemas for course reviews."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from src.reviews.models import MAX_RATING, MIN_RATING, Review


class CreateReviewRequest(BaseModel):
    """Request to review a purchased course."""

    model_config = ConfigDict(populate_by_name=True)

    course_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("courseId", "course_id"),
    )
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING, description="1 to 5 stars")
    comment: str | None = Field(None, max_length=5000)

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class ReviewResponse(BaseModel):
    """Response schema for a review."""

    review_id: UUID
    course_id: str
    user_id: UUID
    user_name: str | None = None
    rating: int
    comment: str | None = None
    created_at: datetime

    @classmethod
    def from_review(cls, review: Review) -> "ReviewResponse":
        return cls(
            review_id=review.review_id,
            course_id=review.course_id,
            user_id=review.user_id,
            user_name=review.user_name,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
        )


class ReviewListResponse(BaseModel):
    """Reviews of a course, newest first."""

    course_id: str
    items: list[ReviewResponse]
    total: int = Field(..., description="Reviews in this listing")
    review_count: int = Field(0, description="Reviews the course has received")
    average_rating: float | None = Field(
        None, description="Average over every review of the course"
    )
