"""
Cache directives and response validators.

Directives are built once per cache profile at startup; validators are
computed per response from the exact bytes sent to the client.
"""

import hashlib
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from shared.errors import MisconfiguredCacheDirectives


class CacheLocation(str, Enum):
    """Cache-Control visibility directive."""
    PRIVATE = "private"
    PUBLIC = "public"


class CacheProfile(BaseModel):
    """Configured cache settings for one group of routes."""
    name: str
    max_age: int = Field(default=60, description="max-age in seconds")
    location: CacheLocation = CacheLocation.PRIVATE
    must_revalidate: bool = True
    no_store: bool = False
    user_scoped: bool = Field(default=False, description="Response content depends on the caller")

    @field_validator("location", mode="before")
    @classmethod
    def normalize_location(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


@dataclass(frozen=True)
class CacheDirectives:
    """Validated, immutable Cache-Control settings for a route."""
    max_age: int
    location: CacheLocation
    must_revalidate: bool
    no_store: bool
    vary: Tuple[str, ...] = ("Accept",)

    @property
    def header_value(self) -> str:
        """Cache-Control header value."""
        if self.no_store:
            return "no-store"
        parts = [self.location.value, f"max-age={self.max_age}"]
        if self.must_revalidate:
            parts.append("must-revalidate")
        return ", ".join(parts)

    @property
    def storable(self) -> bool:
        """Whether issued validators may be retained by the response store."""
        return not self.no_store and self.max_age > 0


def load_profile(name: str, **settings: Any) -> CacheProfile:
    """Build a cache profile from configuration values; invalid values are fatal."""
    try:
        return CacheProfile(name=name, **settings)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise MisconfiguredCacheDirectives(f"Cache profile '{name}' is invalid ({problems})") from exc


def build_directives(profile: CacheProfile) -> CacheDirectives:
    """Validate a cache profile and freeze it into directives.

    Raises MisconfiguredCacheDirectives at startup for a negative max-age or
    a shared (public) cache location on a per-user response.
    """
    if profile.max_age < 0:
        raise MisconfiguredCacheDirectives(
            f"Cache profile '{profile.name}' has a negative max-age ({profile.max_age})"
        )
    if profile.location is CacheLocation.PUBLIC and profile.user_scoped:
        raise MisconfiguredCacheDirectives(
            f"Cache profile '{profile.name}' marks a user-scoped response as public"
        )
    return CacheDirectives(
        max_age=profile.max_age,
        location=profile.location,
        must_revalidate=profile.must_revalidate,
        no_store=profile.no_store,
    )


def route_identity(route_name: str, directives: CacheDirectives, media_type: str = "application/json") -> str:
    """Identity of a route's cache policy and representation folded into its validators."""
    return f"{route_name}|{directives.header_value}|{media_type}"


def serialize_payload(payload: Any) -> bytes:
    """Compact, deterministic JSON encoding used both for the body and the fingerprint."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str).encode("utf-8")


def compute_validator(payload: bytes, identity: str) -> str:
    """Strong entity tag: quoted SHA-256 hex digest of payload bytes plus route identity."""
    digest = hashlib.sha256()
    digest.update(payload)
    digest.update(b"\x00")
    digest.update(identity.encode("utf-8"))
    return f'"{digest.hexdigest()}"'
