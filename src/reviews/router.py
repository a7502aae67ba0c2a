"""Course review API endpoints."""

from fastapi import APIRouter, status

from src.auth.dependencies import AuthServiceDep, CurrentUser
from src.reviews.dependencies import ReviewServiceDep
from src.reviews.schemas import CreateReviewRequest, ReviewListResponse, ReviewResponse


router = APIRouter(prefix="/api", tags=["reviews"])


@router.get(
    "/courses/{course_id}/reviews",
    response_model=ReviewListResponse,
    summary="List course reviews",
)
async def list_reviews(
    course_id: str,
    review_service: ReviewServiceDep,
) -> ReviewListResponse:
    """Newest reviews of a course, with the average over all its ratings."""
    reviews = review_service.list_reviews(course_id)
    summary = review_service.rating_summary(course_id)
    items = [ReviewResponse.from_review(r) for r in reviews]
    return ReviewListResponse(
        course_id=course_id,
        items=items,
        total=len(items),
        review_count=summary.review_count,
        average_rating=summary.average_rating,
    )


@router.post(
    "/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review a course",
    responses={
        403: {"description": "No current access to the course"},
        404: {"description": "Course not found"},
    },
)
async def create_review(
    data: CreateReviewRequest,
    user: CurrentUser,
    review_service: ReviewServiceDep,
    auth_service: AuthServiceDep,
) -> ReviewResponse:
    """Submit a review; only students with current access may review."""
    profile = auth_service.get_user_by_id(user.id)
    review = await review_service.submit_review(
        course_id=data.course_id,
        user_id=user.id,
        rating=data.rating,
        comment=data.comment,
        user_name=profile.name if profile else None,
    )
    return ReviewResponse.from_review(review)
