"""
Integration tests for conditional revalidation across service instances.
"""

from datetime import date

import httpx
import pytest

from shared.config import get_config
from service_courses.app.caching.response_store import InMemoryResponseStore
from service_courses.app.domain.repository import CourseLibraryRepository
from service_courses.app.domain.seed import BERRY_ID, seed_library
from service_courses.app.main import CourseLibraryService


COURSES_URL = f"/api/authors/{BERRY_ID}/courses"


class TestConditionalFlow:
    """Two instances behind a load balancer sharing one repository and response store."""

    @pytest.fixture
    def shared_store(self):
        return InMemoryResponseStore()

    @pytest.fixture
    def shared_repository(self):
        authors, courses = seed_library()
        return CourseLibraryRepository(authors, courses)

    @pytest.fixture
    def instances(self, shared_store, shared_repository):
        config = get_config("courses", 8000, seed_data=False, redis_url=None)
        return [
            CourseLibraryService(
                config,
                repository=shared_repository,
                store=shared_store,
                today=lambda: date(2024, 1, 1),
            )
            for _ in range(2)
        ]

    def client_for(self, service):
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=service.app), base_url="http://courses")

    @pytest.mark.asyncio
    async def test_validator_issued_by_one_instance_is_honoured_by_another(self, instances):
        """Test instance B answers 304 for a validator issued by instance A."""
        a, b = instances
        async with self.client_for(a) as client_a, self.client_for(b) as client_b:
            first = await client_a.get(COURSES_URL)
            second = await client_b.get(COURSES_URL, headers={"If-None-Match": first.headers["ETag"]})

        assert first.status_code == 200
        assert second.status_code == 304
        assert second.headers["ETag"] == first.headers["ETag"]
        assert b.metrics.sample_value(
            "conditional_responses_total", {"route": "courses.list", "outcome": "fresh", "source": "store"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_write_on_one_instance_invalidates_for_all(self, instances):
        """Test a course added through A makes B's revalidation stale."""
        a, b = instances
        async with self.client_for(a) as client_a, self.client_for(b) as client_b:
            etag = (await client_b.get(COURSES_URL)).headers["ETag"]

            created = await client_a.post(COURSES_URL, json={"title": "Parley", "description": "Talk first."})
            revalidated = await client_b.get(COURSES_URL, headers={"If-None-Match": etag})
            repeated = await client_b.get(COURSES_URL, headers={"If-None-Match": revalidated.headers["ETag"]})

        assert created.status_code == 201
        assert revalidated.status_code == 200
        assert revalidated.headers["ETag"] != etag
        assert "Parley" in [c["title"] for c in revalidated.json()]
        assert repeated.status_code == 304

    @pytest.mark.asyncio
    async def test_shaped_and_sorted_views_revalidate_independently(self, instances):
        """Test each URI keeps its own validator."""
        a, _ = instances
        async with self.client_for(a) as client:
            titles = await client.get(COURSES_URL, params={"fields": "title", "orderBy": "-title"})
            full = await client.get(COURSES_URL)

            cross = await client.get(COURSES_URL, headers={"If-None-Match": titles.headers["ETag"]})
            same = await client.get(
                COURSES_URL,
                params={"fields": "title", "orderBy": "-title"},
                headers={"If-None-Match": titles.headers["ETag"]},
            )

        assert titles.json() == [{"title": "Overthrowing Mutiny"}, {"title": "Commandeering a Ship Without Getting Caught"}]
        assert titles.headers["ETag"] != full.headers["ETag"]
        assert cross.status_code == 200
        assert same.status_code == 304

    @pytest.mark.asyncio
    async def test_write_invalidates_upper_case_uri_on_other_instance(self, instances):
        """Test a validator issued for an upper-case author id goes stale after a write elsewhere."""
        a, b = instances
        upper_url = f"/api/authors/{str(BERRY_ID).upper()}/courses"
        async with self.client_for(a) as client_a, self.client_for(b) as client_b:
            etag = (await client_b.get(upper_url)).headers["ETag"]

            await client_a.post(COURSES_URL, json={"title": "Parley", "description": "Talk first."})
            revalidated = await client_b.get(upper_url, headers={"If-None-Match": etag})

        assert revalidated.status_code == 200
        assert "Parley" in [c["title"] for c in revalidated.json()]

    @pytest.mark.asyncio
    async def test_xml_validator_honoured_across_instances(self, instances):
        """Test an XML validator from A is fresh on B for XML only."""
        a, b = instances
        xml = {"Accept": "application/xml"}
        async with self.client_for(a) as client_a, self.client_for(b) as client_b:
            etag = (await client_a.get(COURSES_URL, headers=xml)).headers["ETag"]

            as_xml = await client_b.get(COURSES_URL, headers={**xml, "If-None-Match": etag})
            as_json = await client_b.get(COURSES_URL, headers={"If-None-Match": etag})

        assert as_xml.status_code == 304
        assert as_json.status_code == 200
        assert as_json.headers["Content-Type"].startswith("application/json")
