"""
In-memory Course Library repository.

Stands in for the persistence layer: it filters, orders by resolved
storage fields and pages, the way the database query would.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from shared.logging import get_logger
from ..mapping.property_mapping import SortField
from .models import Author, AuthorsFilter, Course, PagedList, PageRequest


def _sort_value(value: Any):
    # None first, strings case-insensitively
    if value is None:
        return (0, "")
    if isinstance(value, str):
        return (1, value.casefold())
    return (1, value)


def apply_sort(items: Iterable[Any], sort_fields: Sequence[SortField]) -> List[Any]:
    """Order items by several storage fields with independent directions."""
    ordered = list(items)
    # Stable sorts applied from the least to the most significant key.
    for sort_field in reversed(sort_fields):
        ordered.sort(key=lambda item: _sort_value(getattr(item, sort_field.path)), reverse=sort_field.descending)
    return ordered


class CourseLibraryRepository:
    """Authors and courses held in process memory."""

    def __init__(self, authors: Iterable[Author] = (), courses: Iterable[Course] = ()):
        self.logger = get_logger("courses.repository")
        self._authors: Dict[UUID, Author] = {author.id: author for author in authors}
        self._courses: Dict[UUID, Course] = {course.id: course for course in courses}

    # Authors

    def get_authors(
        self,
        filters: AuthorsFilter,
        sort_fields: Sequence[SortField],
        page: PageRequest,
    ) -> PagedList[Author]:
        authors: Iterable[Author] = self._authors.values()

        if filters.main_category:
            category = filters.main_category.strip().casefold()
            authors = [a for a in authors if a.main_category.casefold() == category]

        if filters.search_query:
            needle = filters.search_query.strip().casefold()
            authors = [
                a for a in authors
                if needle in a.main_category.casefold()
                or needle in a.first_name.casefold()
                or needle in a.last_name.casefold()
            ]

        ordered = apply_sort(authors, sort_fields)
        start = (page.page_number - 1) * page.page_size
        return PagedList(
            items=ordered[start:start + page.page_size],
            total_count=len(ordered),
            current_page=page.page_number,
            page_size=page.page_size,
        )

    def get_author(self, author_id: UUID) -> Optional[Author]:
        return self._authors.get(author_id)

    def author_exists(self, author_id: UUID) -> bool:
        return author_id in self._authors

    def add_author(self, author: Author) -> Author:
        self._authors[author.id] = author
        self.logger.info("Author added", author_id=str(author.id))
        return author

    def delete_author(self, author: Author) -> None:
        self._authors.pop(author.id, None)
        for course_id in [c.id for c in self._courses.values() if c.author_id == author.id]:
            del self._courses[course_id]
        self.logger.info("Author deleted", author_id=str(author.id))

    # Courses

    def get_courses(self, author_id: UUID, sort_fields: Sequence[SortField]) -> List[Course]:
        courses = [c for c in self._courses.values() if c.author_id == author_id]
        return apply_sort(courses, sort_fields)

    def get_course(self, author_id: UUID, course_id: UUID) -> Optional[Course]:
        course = self._courses.get(course_id)
        if course is None or course.author_id != author_id:
            return None
        return course

    def add_course(self, author_id: UUID, course: Course) -> Course:
        course.author_id = author_id
        self._courses[course.id] = course
        self.logger.info("Course added", author_id=str(author_id), course_id=str(course.id))
        return course

    def delete_course(self, course: Course) -> None:
        self._courses.pop(course.id, None)
        self.logger.info("Course deleted", author_id=str(course.author_id), course_id=str(course.id))
