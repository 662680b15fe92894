"""
Unit tests for the in-memory Course Library repository.
"""

from datetime import date
from types import SimpleNamespace

import pytest

from service_courses.app.domain.mappings import build_property_mappings
from service_courses.app.domain.models import (
    Author,
    AuthorDto,
    AuthorsFilter,
    Course,
    CourseDto,
    PagedList,
    PageRequest,
)
from service_courses.app.domain.repository import CourseLibraryRepository, apply_sort
from service_courses.app.domain.seed import BERRY_ID, NANCY_ID, seed_library
from service_courses.app.mapping.property_mapping import SortField


def first_names(page):
    return [author.first_name for author in page.items]


class TestApplySort:
    """Test cases for apply_sort."""

    def test_multiple_keys_with_independent_directions(self):
        """Test secondary keys order ties of the primary key."""
        items = [
            SimpleNamespace(group="b", rank=1),
            SimpleNamespace(group="a", rank=1),
            SimpleNamespace(group="a", rank=2),
        ]

        ordered = apply_sort(items, [SortField("group"), SortField("rank", descending=True)])

        assert [(i.group, i.rank) for i in ordered] == [("a", 2), ("a", 1), ("b", 1)]

    def test_strings_compare_case_insensitively(self):
        """Test string keys ignore case."""
        items = [SimpleNamespace(title="beta"), SimpleNamespace(title="Alpha")]

        assert [i.title for i in apply_sort(items, [SortField("title")])] == ["Alpha", "beta"]

    def test_none_sorts_first(self):
        """Test missing values sort before present ones."""
        items = [SimpleNamespace(description="x"), SimpleNamespace(description=None)]

        ordered = apply_sort(items, [SortField("description")])

        assert ordered[0].description is None

    def test_no_sort_fields_keeps_order(self):
        """Test an empty sort is a no-op."""
        items = [SimpleNamespace(n=2), SimpleNamespace(n=1)]

        assert apply_sort(items, []) == items


class TestCourseLibraryRepository:
    """Test cases for CourseLibraryRepository."""

    @pytest.fixture
    def repository(self):
        authors, courses = seed_library()
        return CourseLibraryRepository(authors, courses)

    @pytest.fixture
    def registry(self):
        return build_property_mappings()

    def test_default_order_is_by_name(self, repository, registry):
        """Test authors page sorted by first then last name."""
        page = repository.get_authors(AuthorsFilter(), registry.get_default(AuthorDto), PageRequest(1, 10))

        assert first_names(page) == ["Arnold", "Atherton", "Berry", "Eli", "Nancy", "Rutherford", "Seabury"]

    def test_age_descending(self, repository, registry):
        """Test '-age' orders oldest authors first."""
        sort_fields = registry.resolve(AuthorDto, "age", descending=True)

        page = repository.get_authors(AuthorsFilter(), sort_fields, PageRequest(1, 10))

        assert first_names(page) == ["Berry", "Nancy", "Seabury", "Eli", "Arnold", "Atherton", "Rutherford"]

    def test_filter_by_main_category(self, repository, registry):
        """Test main category filter is an exact, case-insensitive match."""
        page = repository.get_authors(
            AuthorsFilter(main_category=" rum "), registry.get_default(AuthorDto), PageRequest(1, 10)
        )

        assert first_names(page) == ["Atherton", "Nancy"]
        assert page.total_count == 2

    def test_search_query(self, repository, registry):
        """Test search matches names and category."""
        page = repository.get_authors(
            AuthorsFilter(search_query="bones"), registry.get_default(AuthorDto), PageRequest(1, 10)
        )

        assert first_names(page) == ["Atherton", "Eli"]

    def test_paging(self, repository, registry):
        """Test page slicing and totals."""
        page = repository.get_authors(AuthorsFilter(), registry.get_default(AuthorDto), PageRequest(2, 2))

        assert first_names(page) == ["Berry", "Eli"]
        assert page.metadata() == {"totalCount": 7, "pageSize": 2, "currentPage": 2, "totalPages": 4}
        assert page.has_previous and page.has_next

    def test_page_past_the_end_is_empty(self, repository, registry):
        """Test requesting beyond the last page yields no items."""
        page = repository.get_authors(AuthorsFilter(), registry.get_default(AuthorDto), PageRequest(9, 2))

        assert page.items == []
        assert not page.has_next

    def test_courses_for_author(self, repository, registry):
        """Test courses are scoped to their author and sorted by title."""
        courses = repository.get_courses(BERRY_ID, registry.get_default(CourseDto))

        assert [c.title for c in courses] == [
            "Commandeering a Ship Without Getting Caught",
            "Overthrowing Mutiny",
        ]

    def test_get_course_checks_author(self, repository):
        """Test a course is not found through another author."""
        course = repository.get_courses(BERRY_ID, [])[0]

        assert repository.get_course(BERRY_ID, course.id) is course
        assert repository.get_course(NANCY_ID, course.id) is None

    def test_add_course(self, repository):
        """Test added courses are attached to the author."""
        course = Course(title="Knots", author_id=NANCY_ID)

        repository.add_course(NANCY_ID, course)

        assert course in repository.get_courses(NANCY_ID, [])

    def test_delete_author_cascades(self, repository):
        """Test deleting an author removes their courses."""
        berry = repository.get_author(BERRY_ID)

        repository.delete_author(berry)

        assert not repository.author_exists(BERRY_ID)
        assert repository.get_courses(BERRY_ID, []) == []

    def test_add_author(self, repository):
        """Test a new author is retrievable."""
        author = Author(first_name="Anne", last_name="Bonny", date_of_birth=date(1697, 3, 8), main_category="Rum")

        repository.add_author(author)

        assert repository.get_author(author.id) is author


class TestPagedList:
    """Test cases for PagedList."""

    def test_total_pages_rounds_up(self):
        assert PagedList(items=[], total_count=7, current_page=1, page_size=3).total_pages == 3

    def test_map_keeps_metadata(self):
        """Test mapping items preserves paging totals."""
        page = PagedList(items=[1, 2], total_count=5, current_page=1, page_size=2).map(str)

        assert page.items == ["1", "2"]
        assert page.metadata()["totalCount"] == 5

    def test_bounded_page_size(self):
        """Test page size is capped."""
        assert PageRequest.bounded(1, 50, 20).page_size == 20
