"""
Shared error handling for the Course Library Access Service.

Per-request failures derive from ``CourseLibraryException`` and are rendered
as ``application/problem+json`` payloads. Startup failures derive from
``ConfigurationError`` and are never caught by request handlers.
"""

from typing import Dict, Any, List, Optional, Sequence

from opentelemetry import trace
from pydantic import BaseModel, ConfigDict, Field

from .logging import get_request_id


PROBLEM_CONTENT_TYPE = "application/problem+json"

MODEL_VALIDATION_PROBLEM = "https://courselibrary.com/modelvalidationproblem"
INVALID_QUERY_PROBLEM = "https://courselibrary.com/invalidqueryproblem"
NOT_FOUND_PROBLEM = "https://courselibrary.com/notfoundproblem"
NOT_ACCEPTABLE_PROBLEM = "https://courselibrary.com/notacceptableproblem"

MODEL_VALIDATION_TITLE = "One or more model validation errors occurred."
MODEL_VALIDATION_DETAIL = "See the errors property for details."
UNEXPECTED_FAULT_MESSAGE = "An unexpected fault happened. Try again later."


class ProblemDetails(BaseModel):
    """Problem details payload returned for every handled error."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    title: str
    status: int
    detail: Optional[str] = None
    instance: Optional[str] = None
    trace_id: Optional[str] = Field(default=None, alias="traceId")
    errors: Dict[str, List[str]] = Field(default_factory=dict)
    invalid_fields: Optional[List[str]] = Field(default=None, alias="invalidFields")

    def to_content(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def current_trace_id() -> Optional[str]:
    """Trace identifier for the current request: span trace id, else request id."""
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        span_context = current_span.get_span_context()
        if span_context.trace_id != 0:
            return f"{span_context.trace_id:032x}"
    return get_request_id()


class CourseLibraryException(Exception):
    """Base exception for per-request failures."""

    status_code = 400
    problem_type = INVALID_QUERY_PROBLEM
    title = "The request could not be processed."

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def errors(self) -> Dict[str, List[str]]:
        return {}

    def to_problem(self, instance: Optional[str] = None, trace_id: Optional[str] = None) -> ProblemDetails:
        """Convert to a problem details payload."""
        return ProblemDetails(
            type=self.problem_type,
            title=self.title,
            status=self.status_code,
            detail=self.message,
            instance=instance,
            trace_id=trace_id or current_trace_id(),
            errors=self.errors(),
        )


class _InvalidFieldsError(CourseLibraryException):
    """Failure that names every offending field of one request parameter."""

    parameter = "fields"

    def __init__(self, code: str, entity: str, invalid_fields: Sequence[str], message: str):
        self.entity = entity
        self.invalid_fields = list(invalid_fields)
        super().__init__(code, message, {"entity": entity, "invalid_fields": self.invalid_fields})

    def errors(self) -> Dict[str, List[str]]:
        return {
            self.parameter: [
                f"'{name}' is not a valid field of {self.entity}." for name in self.invalid_fields
            ]
        }

    def to_problem(self, instance: Optional[str] = None, trace_id: Optional[str] = None) -> ProblemDetails:
        problem = super().to_problem(instance, trace_id)
        problem.invalid_fields = self.invalid_fields
        return problem


class UnknownSortField(_InvalidFieldsError):
    """One or more requested sort fields have no property mapping."""

    status_code = 400
    problem_type = INVALID_QUERY_PROBLEM
    title = "One or more sort fields are invalid."
    parameter = "orderBy"

    def __init__(self, entity: str, invalid_fields: Sequence[str]):
        super().__init__(
            "UNKNOWN_SORT_FIELD",
            entity,
            invalid_fields,
            f"Cannot sort {entity} by: {', '.join(invalid_fields)}.",
        )


class UnknownShapeField(_InvalidFieldsError):
    """One or more requested output fields do not exist on the entity."""

    status_code = 422
    problem_type = MODEL_VALIDATION_PROBLEM
    title = MODEL_VALIDATION_TITLE

    def __init__(self, entity: str, invalid_fields: Sequence[str]):
        super().__init__(
            "UNKNOWN_SHAPE_FIELD",
            entity,
            invalid_fields,
            MODEL_VALIDATION_DETAIL,
        )


class MalformedExpression(CourseLibraryException):
    """A sort or field-shape expression could not be parsed."""

    status_code = 400
    problem_type = INVALID_QUERY_PROBLEM
    title = "The query expression is malformed."

    def __init__(self, parameter: str, expression: str, reason: str):
        self.parameter = parameter
        self.expression = expression
        super().__init__(
            "MALFORMED_EXPRESSION",
            f"Invalid {parameter} expression '{expression}': {reason}",
            {"parameter": parameter, "expression": expression},
        )

    def errors(self) -> Dict[str, List[str]]:
        return {self.parameter: [self.message]}


class ResourceNotFound(CourseLibraryException):
    """Requested resource does not exist."""

    status_code = 404
    problem_type = NOT_FOUND_PROBLEM
    title = "The requested resource was not found."

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' was not found.",
            {"resource": resource, "id": str(resource_id)},
        )


class NotAcceptable(CourseLibraryException):
    """The client accepts no media type this service produces."""

    status_code = 406
    problem_type = NOT_ACCEPTABLE_PROBLEM
    title = "The requested media type is not supported."

    def __init__(self, accept: str):
        super().__init__("NOT_ACCEPTABLE", f"Cannot produce a representation for Accept: {accept}")


class ConfigurationError(Exception):
    """Raised while building the service; the process must not start serving."""


class MisconfiguredDefaultSort(ConfigurationError):
    """An entity type has zero or several default sort mappings."""

    def __init__(self, entity: str, defaults: Sequence[str]):
        self.entity = entity
        self.defaults = list(defaults)
        if defaults:
            reason = f"multiple default sort fields ({', '.join(defaults)})"
        else:
            reason = "no default sort field"
        super().__init__(f"Property mapping for {entity} has {reason}")


class MisconfiguredPropertyMapping(ConfigurationError):
    """A property mapping set is structurally invalid."""


class MisconfiguredCacheDirectives(ConfigurationError):
    """A cache profile combines directives that cannot be served safely."""
