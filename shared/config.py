"""
Shared configuration management for the Course Library Access Service.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="COURSELIB_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Response store; in-memory when unset
    redis_url: Optional[str] = Field(default=None)

    # Default cache profile
    cache_max_age: int = Field(default=60)
    cache_location: str = Field(default="private")
    cache_must_revalidate: bool = Field(default=True)
    cache_no_store: bool = Field(default=False)
    cache_user_scoped: bool = Field(default=False)

    # Named cache profile used by the course routes
    courses_cache_max_age: int = Field(default=240)
    courses_cache_user_scoped: bool = Field(default=False)

    # Paging
    max_page_size: int = Field(default=20)
    default_page_size: int = Field(default=10)

    # Seed the in-memory repository with demo authors and courses
    seed_data: bool = Field(default=True)

    # Observability
    enable_tracing: bool = Field(default=False)
    otel_exporter: str = Field(default="http://localhost:4318/v1/traces")
    enable_console_tracing: bool = Field(default=False)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
