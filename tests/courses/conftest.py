"""Catalog fixtures: an in-memory course store behind a mocked session."""

import pytest

from src.courses.service import CourseService
from tests.fakes import KEYSPACE, CatalogStore


@pytest.fixture
def catalog() -> CatalogStore:
    return CatalogStore()


@pytest.fixture
def course_service(make_session, catalog) -> CourseService:
    return CourseService(make_session(catalog), KEYSPACE)
