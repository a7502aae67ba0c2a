"""Sample catalog data for development installs."""

from src.core.logging import get_logger
from src.courses.models import Course, CourseStats
from src.courses.service import CourseService


logger = get_logger(__name__)


def sample_course() -> Course:
    """The practical-ibarot demo course."""
    return Course(
        course_id="practical-ibarot",
        title="প্রাকটিকাল ইবারত শিক্ষা",
        description="আরবি ইবারত সহজে পড়া ও বুঝার কোর্স",
        price=3000,
        discounted_price=1500,
        instructor="মাওলানা মুনতাহা আহমদ",
        duration="৮ ঘন্টা",
        lessons=10,
        thumbnail="https://images.unsplash.com/photo-1481627834876-b7833e8f5570?w=400&h=250&fit=crop",
        stats=CourseStats(
            total_students=12500,
            total_videos=10,
            total_hours=8,
            total_notes=8,
        ),
    )


def seed_sample_data(course_service: CourseService) -> bool:
    """Insert the sample course when the catalog is empty.

    Returns:
        True if the sample course was created
    """
    if course_service.has_courses():
        return False

    course_service.create_course(sample_course())
    logger.info("sample_data_seeded", course_id="practical-ibarot")
    return True
