"""
Response pipeline for cacheable resource reads.

A request runs through an ordered list of stages. Each stage either
enriches the shared context and returns None, or returns a
``PipelineResult`` that ends the pipeline. Invalid sort/field requests are
rejected by the first stage, and a validator already known to the response
store lets the second stage answer 304 before the query runs.
"""

import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from shared.errors import MalformedExpression, UnknownShapeField, UnknownSortField
from shared.logging import bind_route, get_logger
from shared.metrics import MetricsCollector
from shared.tracing import add_span_attributes, trace_operation
from ..caching.conditional import ConditionalOutcome, coordinate
from ..caching.freshness import CacheDirectives, compute_validator, route_identity
from ..caching.representation import JSON_MEDIA_TYPE, render
from ..caching.response_store import ResponseStore, StoredValidator
from ..mapping.expressions import parse_fields_expression, parse_sort_expression
from ..mapping.property_checker import PropertyShapeValidator
from ..mapping.property_mapping import PropertyMappingRegistry, SortField
from .models import PagedList


@dataclass
class ResourceQuery:
    """A logical read: what to fetch and how the client wants it sorted and shaped."""
    route: str
    entity_type: type
    execute: Callable[[List[SortField]], Any]
    order_by: Optional[str] = None
    fields: Optional[str] = None
    sortable: bool = True


@dataclass(frozen=True)
class ConditionalRequest:
    """Transport-neutral view of the incoming request.

    ``uri`` is the canonical resource path plus query string, so every
    spelling of the same resource shares one response store entry.
    """
    method: str
    uri: str
    path: str
    if_none_match: Optional[str] = None
    media_type: str = JSON_MEDIA_TYPE

    @property
    def store_key(self) -> str:
        return f"{self.uri}#{self.media_type}"


@dataclass
class PipelineResult:
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    outcome: Optional[ConditionalOutcome] = None
    source: str = "computed"
    media_type: str = JSON_MEDIA_TYPE


@dataclass
class PipelineContext:
    query: ResourceQuery
    request: ConditionalRequest
    directives: CacheDirectives
    sort_fields: List[SortField] = field(default_factory=list)
    requested_fields: List[str] = field(default_factory=list)
    result: Any = None
    payload: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


class PipelineStage(ABC):
    name = "stage"

    @abstractmethod
    async def __call__(self, context: PipelineContext) -> Optional[PipelineResult]:
        """Advance the context, or return a result to stop the pipeline."""


class QueryValidationStage(PipelineStage):
    """Resolves the sort expression and validates the field shape."""

    name = "validate_query"

    def __init__(self, registry: PropertyMappingRegistry, shape_validator: PropertyShapeValidator):
        self.registry = registry
        self.shape_validator = shape_validator

    async def __call__(self, context: PipelineContext) -> Optional[PipelineResult]:
        query = context.query
        if query.sortable:
            terms = parse_sort_expression(query.order_by)
            context.sort_fields = self.registry.resolve_terms(query.entity_type, terms)

        requested = parse_fields_expression(query.fields)
        self.shape_validator.validate(query.entity_type, requested)
        context.requested_fields = requested
        return None


class StoredValidatorStage(PipelineStage):
    """Answers 304 from the store when the client already holds the current validator."""

    name = "stored_validator"

    def __init__(self, store: ResponseStore):
        self.store = store

    async def __call__(self, context: PipelineContext) -> Optional[PipelineResult]:
        request = context.request
        if request.method != "GET" or not request.if_none_match or not context.directives.storable:
            return None

        stored = await self.store.get(request.store_key)
        if stored is None:
            return None

        decision = coordinate(request.if_none_match, stored.validator, context.directives)
        add_span_attributes(cache_outcome=decision.outcome.value, validator_source="store")
        if decision.outcome is not ConditionalOutcome.FRESH:
            return None
        return PipelineResult(
            status_code=decision.status_code,
            headers=dict(decision.headers),
            outcome=decision.outcome,
            source="store",
        )


class QueryExecutionStage(PipelineStage):
    name = "execute_query"

    async def __call__(self, context: PipelineContext) -> Optional[PipelineResult]:
        context.result = context.query.execute(context.sort_fields)
        return None


class ShapingStage(PipelineStage):
    """Projects the query result onto the requested fields."""

    name = "shape"

    def __init__(self, shape_validator: PropertyShapeValidator):
        self.shape_validator = shape_validator

    async def __call__(self, context: PipelineContext) -> Optional[PipelineResult]:
        entity_type = context.query.entity_type
        fields = context.requested_fields
        result = context.result

        if isinstance(result, PagedList):
            context.payload = self.shape_validator.shape_many(entity_type, result.items, fields)
            context.headers["X-Pagination"] = json.dumps(result.metadata(), separators=(",", ":"))
        elif isinstance(result, (list, tuple)):
            context.payload = self.shape_validator.shape_many(entity_type, result, fields)
        else:
            context.payload = self.shape_validator.shape(entity_type, result, fields)
        return None


class ConditionalEmissionStage(PipelineStage):
    """Fingerprints the payload, records the validator and emits 200 or 304."""

    name = "emit"

    def __init__(self, store: ResponseStore, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock

    async def __call__(self, context: PipelineContext) -> Optional[PipelineResult]:
        request = context.request
        directives = context.directives
        query = context.query

        body = render(context.payload, request.media_type, query.entity_type.__name__)
        validator = compute_validator(body, route_identity(query.route, directives, request.media_type))
        decision = coordinate(request.if_none_match, validator, directives)
        add_span_attributes(cache_outcome=decision.outcome.value, validator=validator)

        if request.method == "GET" and directives.storable:
            await self.store.set(request.store_key, StoredValidator(validator, self.clock()), directives.max_age)

        if decision.outcome is ConditionalOutcome.FRESH:
            return PipelineResult(
                status_code=decision.status_code,
                headers=dict(decision.headers),
                outcome=decision.outcome,
            )
        return PipelineResult(
            status_code=decision.status_code,
            headers={**context.headers, **decision.headers},
            body=body,
            outcome=decision.outcome,
            media_type=request.media_type,
        )


class ResponsePipeline:
    """Runs resource reads through the stage list."""

    def __init__(
        self,
        registry: PropertyMappingRegistry,
        shape_validator: PropertyShapeValidator,
        store: ResponseStore,
        metrics: Optional[MetricsCollector] = None,
        stages: Optional[Sequence[PipelineStage]] = None,
    ):
        self.registry = registry
        self.shape_validator = shape_validator
        self.store = store
        self.metrics = metrics
        self.logger = get_logger("courses.pipeline")
        self.stages: List[PipelineStage] = list(stages) if stages is not None else [
            QueryValidationStage(registry, shape_validator),
            StoredValidatorStage(store),
            QueryExecutionStage(),
            ShapingStage(shape_validator),
            ConditionalEmissionStage(store),
        ]

    async def run(
        self,
        query: ResourceQuery,
        request: ConditionalRequest,
        directives: CacheDirectives,
    ) -> PipelineResult:
        context = PipelineContext(query=query, request=request, directives=directives)
        bind_route(query.route)
        start_time = time.time()
        try:
            result = await self._run_stages(context)
        except (UnknownSortField, UnknownShapeField, MalformedExpression) as exc:
            if self.metrics:
                self.metrics.record_query_rejection(query.route, exc.code)
            raise

        if self.metrics:
            self.metrics.observe_pipeline(query.route, time.time() - start_time)
            if result.outcome is not None:
                self.metrics.record_conditional_outcome(query.route, result.outcome.value, result.source)

        self.logger.debug(
            "Pipeline completed",
            route=query.route,
            uri=request.uri,
            status_code=result.status_code,
            outcome=result.outcome.value if result.outcome else None,
            source=result.source,
        )
        return result

    async def _run_stages(self, context: PipelineContext) -> PipelineResult:
        for stage in self.stages:
            with trace_operation(f"pipeline.{stage.name}", route=context.query.route):
                result = await stage(context)
            if result is not None:
                return result
        raise RuntimeError(f"Response pipeline for {context.query.route} emitted no response")
