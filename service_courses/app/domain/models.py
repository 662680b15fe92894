"""
Entities, DTOs and query parameters for the Course Library.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Generic, List, Optional, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


@dataclass
class Author:
    """Stored author record."""
    first_name: str
    last_name: str
    date_of_birth: date
    main_category: str
    id: UUID = field(default_factory=uuid4)


@dataclass
class Course:
    """Stored course record."""
    title: str
    author_id: UUID
    description: Optional[str] = None
    id: UUID = field(default_factory=uuid4)


def age_on(date_of_birth: date, today: date) -> int:
    """Completed years between a birth date and ``today``."""
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthorDto(_CamelModel):
    """Public author representation."""
    id: UUID
    name: str
    age: int
    main_category: str

    @classmethod
    def from_author(cls, author: Author, today: Optional[date] = None) -> "AuthorDto":
        return cls(
            id=author.id,
            name=f"{author.first_name} {author.last_name}",
            age=age_on(author.date_of_birth, today or date.today()),
            main_category=author.main_category,
        )


class CourseDto(_CamelModel):
    """Public course representation."""
    id: UUID
    title: str
    description: Optional[str] = None

    @classmethod
    def from_course(cls, course: Course) -> "CourseDto":
        return cls(id=course.id, title=course.title, description=course.description)


class CourseForCreation(_CamelModel):
    """Request body for creating a course."""
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1500)

    @model_validator(mode="after")
    def title_differs_from_description(self) -> "CourseForCreation":
        if self.description is not None and self.title == self.description:
            raise ValueError("The provided description should be different from the title.")
        return self


class AuthorForCreation(_CamelModel):
    """Request body for creating an author, optionally with courses."""
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    date_of_birth: date
    main_category: str = Field(..., min_length=1, max_length=50)
    courses: List[CourseForCreation] = Field(default_factory=list)


@dataclass(frozen=True)
class AuthorsFilter:
    """Filtering part of the authors resource parameters."""
    main_category: Optional[str] = None
    search_query: Optional[str] = None


@dataclass(frozen=True)
class PageRequest:
    page_number: int = 1
    page_size: int = 10

    @classmethod
    def bounded(cls, page_number: int, page_size: int, max_page_size: int) -> "PageRequest":
        """Clamp the page size to ``max_page_size``."""
        return cls(page_number=page_number, page_size=min(page_size, max_page_size))


T = TypeVar("T")


@dataclass
class PagedList(Generic[T]):
    """One page of results plus the totals needed for pagination metadata."""
    items: List[T]
    total_count: int
    current_page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total_count + self.page_size - 1) // self.page_size

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def map(self, func) -> "PagedList":
        return PagedList(
            items=[func(item) for item in self.items],
            total_count=self.total_count,
            current_page=self.current_page,
            page_size=self.page_size,
        )

    def metadata(self) -> dict:
        return {
            "totalCount": self.total_count,
            "pageSize": self.page_size,
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
        }
