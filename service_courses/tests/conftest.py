"""Shared fixtures for Course Library service tests."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from shared.config import get_config
from service_courses.app.caching.response_store import InMemoryResponseStore
from service_courses.app.main import CourseLibraryService


FIXED_TODAY = date(2024, 1, 1)


@pytest.fixture
def config():
    """Service configuration with seeded demo data and the in-memory store."""
    return get_config("courses", 8000, seed_data=True, redis_url=None)


@pytest.fixture
def store():
    return InMemoryResponseStore()


@pytest.fixture
def service(config, store):
    """CourseLibraryService with a fixed calendar so ages are stable."""
    return CourseLibraryService(config, store=store, today=lambda: FIXED_TODAY)


@pytest.fixture
def client(service):
    return TestClient(service.app)
