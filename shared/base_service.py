"""
Base service class for Course Library services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from contextlib import asynccontextmanager
from typing import Dict, List, Optional
import time
import os

from prometheus_client import CONTENT_TYPE_LATEST

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import get_metrics_collector
from shared.errors import (
    CourseLibraryException,
    MODEL_VALIDATION_DETAIL,
    MODEL_VALIDATION_PROBLEM,
    MODEL_VALIDATION_TITLE,
    PROBLEM_CONTENT_TYPE,
    ProblemDetails,
    UNEXPECTED_FAULT_MESSAGE,
    current_trace_id,
)


def _trace_id_for(request: Request) -> Optional[str]:
    return current_trace_id() or getattr(request.state, "request_id", None)


def _validation_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        key = ".".join(location) or "request"
        errors.setdefault(key, []).append(error.get("msg", "Invalid value"))
    return errors


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, port: int, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.port = port
        self.config = config or get_config(service_name, port)
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name)
        self._start_time = time.time()

        configure_logging(service_name, self.config.log_level)

        if self.config.enable_tracing:
            from shared.tracing import configure_tracing
            configure_tracing(
                service_name,
                self.config.otel_exporter,
                self.config.enable_console_tracing,
            )

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"Course Library - {self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=self._lifespan,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if self.config.env == "local" else [],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["ETag", "X-Pagination", "X-Request-ID"],
        )

        @self.app.middleware("http")
        async def add_request_context(request: Request, call_next):
            request_id = set_request_id(request.headers.get("X-Request-ID"))
            request.state.request_id = request_id
            start_time = time.time()

            try:
                response = await call_next(request)
            finally:
                clear_context()

            duration = time.time() - start_time
            self.metrics.record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status_code=response.status_code,
                duration=duration
            )
            self.logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
                request_id=request_id,
            )

            response.headers["X-Request-ID"] = request_id
            return response

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            try:
                dependencies = await self._check_dependencies()
                self.metrics.record_health_check("ok")

                return {
                    "service": self.service_name,
                    "status": "ok",
                    "uptime_seconds": self._get_uptime(),
                    "dependencies": dependencies,
                    "version": "1.0.0",
                    "commit": os.getenv("GIT_COMMIT", "unknown")
                }
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                self.metrics.record_health_check("error")
                return JSONResponse(
                    status_code=503,
                    content={
                        "service": self.service_name,
                        "status": "error",
                        "error": str(e)
                    }
                )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(content=self.metrics.render(), media_type=CONTENT_TYPE_LATEST)

        @self.app.exception_handler(CourseLibraryException)
        async def course_library_exception_handler(request: Request, exc: CourseLibraryException):
            """Render handled request failures as problem details."""
            trace_id = _trace_id_for(request)
            self.logger.warning(
                "Request rejected",
                code=exc.code,
                message=exc.message,
                details=exc.details,
                path=request.url.path,
                trace_id=trace_id,
            )
            self.metrics.record_error(exc.code)
            problem = exc.to_problem(instance=request.url.path, trace_id=trace_id)
            return JSONResponse(
                status_code=exc.status_code,
                content=problem.to_content(),
                media_type=PROBLEM_CONTENT_TYPE,
            )

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
            """Request model failures are reported as 422 model validation problems."""
            trace_id = _trace_id_for(request)
            self.metrics.record_error("MODEL_VALIDATION")
            problem = ProblemDetails(
                type=MODEL_VALIDATION_PROBLEM,
                title=MODEL_VALIDATION_TITLE,
                status=422,
                detail=MODEL_VALIDATION_DETAIL,
                instance=request.url.path,
                trace_id=trace_id,
                errors=_validation_errors(exc),
            )
            return JSONResponse(
                status_code=422,
                content=problem.to_content(),
                media_type=PROBLEM_CONTENT_TYPE,
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Unexpected faults never leak details to the client."""
            self.logger.error(
                "Unhandled exception",
                error=str(exc),
                path=request.url.path,
                trace_id=_trace_id_for(request),
                exc_info=True,
            )
            self.metrics.record_error("INTERNAL_ERROR")
            return PlainTextResponse(UNEXPECTED_FAULT_MESSAGE, status_code=500)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        yield
        await self._shutdown()

    async def _shutdown(self) -> None:
        """Release service resources. Override in subclasses."""
        self.logger.info("Service shutting down", service=self.service_name)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
