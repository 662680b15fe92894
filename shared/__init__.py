"""
Shared utilities for the Course Library Access Service.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- tracing: OpenTelemetry tracing config
- errors: Canonical error types and problem-details payloads
- base_service: FastAPI application scaffolding

Do not import from service_* packages into shared/.
"""
