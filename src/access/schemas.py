"""Pydantic schemas for access checks and the user's course list."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.access.models import AccessDecision, AccessStatus, CourseAccessEntry


class CheckAccessResponse(BaseModel):
    """Access decision for one course."""

    has_access: bool = Field(..., description="Whether the course can be used now")
    status: AccessStatus | None = Field(
        None, description="Evaluated status (absent when never purchased)"
    )
    purchase_date: datetime | None = None
    access_expiry: datetime | None = None

    @classmethod
    def from_decision(cls, decision: AccessDecision) -> "CheckAccessResponse":
        entry = decision.entry
        return cls(
            has_access=decision.has_access,
            status=decision.status,
            purchase_date=entry.purchase_date if entry else None,
            access_expiry=entry.access_expiry if entry else None,
        )


class UserCourseResponse(BaseModel):
    """One ledger entry with its evaluated status."""

    course_id: str
    title: str | None = None
    transaction_id: str
    status: AccessStatus = Field(..., description="Evaluated status")
    has_access: bool
    purchase_date: datetime
    access_expiry: datetime | None = None

    @classmethod
    def from_entry(
        cls,
        entry: CourseAccessEntry,
        decision: AccessDecision,
        title: str | None = None,
    ) -> "UserCourseResponse":
        """Build the row for ``entry``; ``decision`` is its own evaluation."""
        return cls(
            course_id=entry.course_id,
            title=title,
            transaction_id=entry.transaction_id,
            status=decision.status or entry.status,
            has_access=decision.has_access,
            purchase_date=entry.purchase_date,
            access_expiry=entry.access_expiry,
        )


class UserCoursesResponse(BaseModel):
    """The caller's Access Ledger."""

    items: list[UserCourseResponse]
    total: int
