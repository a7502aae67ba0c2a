"""Tests for CourseService."""

import pytest

from src.courses.seed import sample_course, seed_sample_data
from src.courses.service import CourseNotFoundError
from tests.fakes import KEYSPACE, executed


class TestCourses:
    """Lookup and listing."""

    def test_get_course_with_stats(self, course_service, catalog) -> None:
        catalog.add_course()
        course_service.increment_students("practical-ibarot")

        course = course_service.get_course("practical-ibarot")

        assert course.title == "প্রাকটিকাল ইবারত শিক্ষা"
        assert course.stats.total_students == 1

    def test_inactive_course_not_found(self, course_service, catalog) -> None:
        catalog.add_course(is_active=False)

        assert course_service.get_course("practical-ibarot") is not None
        with pytest.raises(CourseNotFoundError) as exc_info:
            course_service.require_active_course("practical-ibarot")
        assert exc_info.value.code == "COURSE_NOT_FOUND"

    def test_list_skips_inactive(self, course_service, catalog) -> None:
        catalog.add_course("a")
        catalog.add_course("b", is_active=False)
        catalog.add_course("c")

        assert [c.course_id for c in course_service.list_courses()] == ["a", "c"]

    def test_videos_in_position_order(self, course_service, catalog) -> None:
        catalog.add_course()
        catalog.add_video("practical-ibarot", 2, "Second")
        catalog.add_video("practical-ibarot", 1, "First")
        catalog.add_video("other", 1, "Elsewhere")

        videos = course_service.list_videos("practical-ibarot")

        assert [v.title for v in videos] == ["First", "Second"]
        assert videos[0].is_preview is True

    def test_notes_need_active_course(self, course_service) -> None:
        with pytest.raises(CourseNotFoundError):
            course_service.list_notes("missing")


class TestSeed:
    """Sample catalog seeding."""

    def test_seeds_empty_catalog(self, course_service, catalog) -> None:
        assert seed_sample_data(course_service) is True

        assert executed(course_service.session, f"INSERT INTO {KEYSPACE}.courses")
        stats = catalog.stats["practical-ibarot"]
        assert stats.total_students == 12500
        assert stats.total_videos == 10

    def test_skips_non_empty_catalog(self, course_service, catalog) -> None:
        catalog.add_course("existing")

        assert seed_sample_data(course_service) is False
        assert not executed(course_service.session, f"INSERT INTO {KEYSPACE}.courses")

    def test_sample_course_prices(self) -> None:
        course = sample_course()
        assert course.price == 3000
        assert course.effective_price == 1500
