"""Tests for course entities."""

from decimal import Decimal

import pytest

from src.courses.models import Course, CourseStats


class TestCoursePrice:
    """Price invariants."""

    def test_discount_is_effective_price(self) -> None:
        course = Course("practical-ibarot", price=3000, discounted_price=1500)
        assert course.effective_price == Decimal(1500)

    def test_no_discount(self) -> None:
        assert Course("c", price=999).effective_price == Decimal(999)

    def test_discount_above_price_rejected(self) -> None:
        with pytest.raises(ValueError, match="discounted_price"):
            Course("c", price=100, discounted_price=150)

    def test_negative_price_rejected(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            Course("c", price=-1)


class TestCourseStats:
    def test_missing_counter_row_reads_as_zero(self) -> None:
        assert CourseStats.from_row(None).to_dict() == {
            "total_students": 0,
            "total_videos": 0,
            "total_hours": 0,
            "total_notes": 0,
        }
