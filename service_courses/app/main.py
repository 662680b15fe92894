"""
Course Library service: authors and courses with sorting, field shaping
and conditional (ETag) revalidation.
"""

from datetime import date
from typing import Callable, Dict, List, Optional
from uuid import UUID

from fastapi import Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import ResourceNotFound
from .caching.freshness import CacheDirectives, CacheProfile, build_directives, load_profile
from .caching.representation import negotiate
from .caching.response_store import InMemoryResponseStore, RedisResponseStore, ResponseStore
from .domain.mappings import build_property_mappings, build_shape_validator
from .domain.models import (
    Author,
    AuthorDto,
    AuthorForCreation,
    AuthorsFilter,
    Course,
    CourseDto,
    CourseForCreation,
    PageRequest,
)
from .domain.pipeline import ConditionalRequest, PipelineResult, ResourceQuery, ResponsePipeline
from .domain.repository import CourseLibraryRepository
from .domain.seed import seed_library
from .mapping.property_mapping import SortField


SERVICE_NAME = "courses"
DEFAULT_PROFILE = "default"
COURSES_PROFILE = "240SecondsCacheProfile"


def representation(request: Request) -> str:
    """Negotiated media type; 406 when the Accept header admits neither JSON nor XML."""
    return negotiate(request.headers.get("accept"))


def canonical_path(request: Request, **path_params) -> str:
    """Route template filled with parsed path parameters.

    FastAPI accepts several spellings of one UUID (upper case, no hyphens);
    formatting the parsed values yields the one spelling writes invalidate.
    """
    route = request.scope.get("route")
    path_format = getattr(route, "path_format", None)
    if path_format is None:
        return request.url.path
    return path_format.format(**{**request.path_params, **{k: str(v) for k, v in path_params.items()}})


def conditional_request(request: Request, media_type: str, **path_params) -> ConditionalRequest:
    path = canonical_path(request, **path_params)
    uri = f"{path}?{request.url.query}" if request.url.query else path
    token = request.headers.get("if-none-match")
    return ConditionalRequest(
        method=request.method,
        uri=uri,
        path=path,
        if_none_match=token.strip() if token else None,
        media_type=media_type,
    )


def to_response(result: PipelineResult) -> Response:
    if result.status_code == 304:
        return Response(status_code=304, headers=result.headers)
    return Response(
        content=result.body,
        status_code=result.status_code,
        headers=result.headers,
        media_type=result.media_type,
    )


class CourseLibraryService(BaseService):
    """Course Library service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        repository: Optional[CourseLibraryRepository] = None,
        store: Optional[ResponseStore] = None,
        today: Callable[[], date] = date.today,
    ):
        super().__init__(SERVICE_NAME, 8000, config or get_config(SERVICE_NAME, 8000))
        self.today = today

        # Built once; any misconfiguration stops the service here.
        self.property_mappings = build_property_mappings()
        self.shape_validator = build_shape_validator()
        self.cache_profiles = self._build_cache_profiles()
        self.directives: Dict[str, CacheDirectives] = {
            name: build_directives(profile) for name, profile in self.cache_profiles.items()
        }

        self.repository = repository or self._build_repository()
        self.store = store or self._build_store()
        self.pipeline = ResponsePipeline(
            self.property_mappings,
            self.shape_validator,
            self.store,
            metrics=self.metrics,
        )

        self._setup_library_routes()

        self.app.state.course_library_service = self
        self.logger.info(
            "Course library service initialized",
            store=type(self.store).__name__,
            cache_profiles={name: d.header_value for name, d in self.directives.items()},
        )

    def _build_cache_profiles(self) -> Dict[str, CacheProfile]:
        shared_settings = dict(
            location=self.config.cache_location,
            must_revalidate=self.config.cache_must_revalidate,
            no_store=self.config.cache_no_store,
        )
        return {
            DEFAULT_PROFILE: load_profile(
                DEFAULT_PROFILE,
                max_age=self.config.cache_max_age,
                user_scoped=self.config.cache_user_scoped,
                **shared_settings,
            ),
            COURSES_PROFILE: load_profile(
                COURSES_PROFILE,
                max_age=self.config.courses_cache_max_age,
                user_scoped=self.config.courses_cache_user_scoped,
                **shared_settings,
            ),
        }

    def _build_repository(self) -> CourseLibraryRepository:
        if not self.config.seed_data:
            return CourseLibraryRepository()
        authors, courses = seed_library()
        return CourseLibraryRepository(authors, courses)

    def _build_store(self) -> ResponseStore:
        if self.config.redis_url:
            return RedisResponseStore(self.config.redis_url)
        return InMemoryResponseStore()

    async def _shutdown(self) -> None:
        await self.store.close()
        await super()._shutdown()

    async def _check_dependencies(self) -> Dict[str, str]:
        if isinstance(self.store, RedisResponseStore):
            await self.store.ping()
            return {"response_store": "redis"}
        return {"response_store": "memory"}

    def _author_dto(self, author: Author) -> AuthorDto:
        return AuthorDto.from_author(author, self.today())

    def _require_author(self, author_id: UUID) -> Author:
        author = self.repository.get_author(author_id)
        if author is None:
            raise ResourceNotFound("Author", author_id)
        return author

    def _require_course(self, author_id: UUID, course_id: UUID) -> Course:
        self._require_author(author_id)
        course = self.repository.get_course(author_id, course_id)
        if course is None:
            raise ResourceNotFound("Course", course_id)
        return course

    async def _serve(
        self, request: Request, media_type: str, query: ResourceQuery, profile: str, **path_params
    ) -> Response:
        conditional = conditional_request(request, media_type, **path_params)
        result = await self.pipeline.run(query, conditional, self.directives[profile])
        return to_response(result)

    def _setup_library_routes(self):
        """Set up author and course routes."""

        @self.app.get("/")
        async def root():
            return {
                "service": SERVICE_NAME,
                "message": "Course Library API",
                "version": "1.0.0",
                "cache_profiles": {name: d.header_value for name, d in self.directives.items()},
            }

        @self.app.get("/api/authors")
        async def get_authors(
            request: Request,
            media_type: str = Depends(representation),
            main_category: Optional[str] = Query(None, alias="mainCategory"),
            search_query: Optional[str] = Query(None, alias="searchQuery"),
            order_by: Optional[str] = Query(None, alias="orderBy"),
            fields: Optional[str] = Query(None),
            page_number: int = Query(1, alias="pageNumber", ge=1),
            page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
        ):
            filters = AuthorsFilter(main_category=main_category, search_query=search_query)
            page = PageRequest.bounded(
                page_number,
                page_size or self.config.default_page_size,
                self.config.max_page_size,
            )

            def execute(sort_fields: List[SortField]):
                return self.repository.get_authors(filters, sort_fields, page).map(self._author_dto)

            query = ResourceQuery(
                route="authors.list",
                entity_type=AuthorDto,
                execute=execute,
                order_by=order_by,
                fields=fields,
            )
            return await self._serve(request, media_type, query, DEFAULT_PROFILE)

        @self.app.get("/api/authors/{author_id}")
        async def get_author(
            request: Request,
            author_id: UUID,
            fields: Optional[str] = Query(None),
            media_type: str = Depends(representation),
        ):
            query = ResourceQuery(
                route="authors.detail",
                entity_type=AuthorDto,
                execute=lambda _: self._author_dto(self._require_author(author_id)),
                fields=fields,
                sortable=False,
            )
            return await self._serve(request, media_type, query, DEFAULT_PROFILE, author_id=author_id)

        @self.app.post("/api/authors", status_code=201)
        async def create_author(author_in: AuthorForCreation):
            author = Author(
                first_name=author_in.first_name,
                last_name=author_in.last_name,
                date_of_birth=author_in.date_of_birth,
                main_category=author_in.main_category,
            )
            self.repository.add_author(author)
            for course_in in author_in.courses:
                self.repository.add_course(
                    author.id,
                    Course(title=course_in.title, description=course_in.description, author_id=author.id),
                )
            await self.store.invalidate("/api/authors")

            dto = self._author_dto(author)
            return JSONResponse(
                status_code=201,
                content=dto.model_dump(by_alias=True, mode="json"),
                headers={"Location": f"/api/authors/{author.id}"},
            )

        @self.app.delete("/api/authors/{author_id}", status_code=204)
        async def delete_author(author_id: UUID):
            author = self._require_author(author_id)
            self.repository.delete_author(author)
            await self.store.invalidate("/api/authors")
            return Response(status_code=204)

        @self.app.get("/api/authors/{author_id}/courses")
        async def get_courses_for_author(
            request: Request,
            author_id: UUID,
            media_type: str = Depends(representation),
            order_by: Optional[str] = Query(None, alias="orderBy"),
            fields: Optional[str] = Query(None),
        ):
            def execute(sort_fields: List[SortField]):
                self._require_author(author_id)
                return [
                    CourseDto.from_course(course)
                    for course in self.repository.get_courses(author_id, sort_fields)
                ]

            query = ResourceQuery(
                route="courses.list",
                entity_type=CourseDto,
                execute=execute,
                order_by=order_by,
                fields=fields,
            )
            return await self._serve(request, media_type, query, COURSES_PROFILE, author_id=author_id)

        @self.app.get("/api/authors/{author_id}/courses/{course_id}")
        async def get_course_for_author(
            request: Request,
            author_id: UUID,
            course_id: UUID,
            media_type: str = Depends(representation),
            fields: Optional[str] = Query(None),
        ):
            query = ResourceQuery(
                route="courses.detail",
                entity_type=CourseDto,
                execute=lambda _: CourseDto.from_course(self._require_course(author_id, course_id)),
                fields=fields,
                sortable=False,
            )
            return await self._serve(
                request, media_type, query, COURSES_PROFILE, author_id=author_id, course_id=course_id
            )

        @self.app.post("/api/authors/{author_id}/courses", status_code=201)
        async def create_course_for_author(author_id: UUID, course_in: CourseForCreation):
            self._require_author(author_id)
            course = self.repository.add_course(
                author_id,
                Course(title=course_in.title, description=course_in.description, author_id=author_id),
            )
            await self.store.invalidate(f"/api/authors/{author_id}/courses")

            return JSONResponse(
                status_code=201,
                content=CourseDto.from_course(course).model_dump(by_alias=True, mode="json"),
                headers={"Location": f"/api/authors/{author_id}/courses/{course.id}"},
            )

        @self.app.delete("/api/authors/{author_id}/courses/{course_id}", status_code=204)
        async def delete_course_for_author(author_id: UUID, course_id: UUID):
            course = self._require_course(author_id, course_id)
            self.repository.delete_course(course)
            await self.store.invalidate(f"/api/authors/{author_id}/courses")
            return Response(status_code=204)


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = CourseLibraryService(config, **kwargs)
    return service.app


if __name__ == "__main__":
    service = CourseLibraryService()
    service.run()
