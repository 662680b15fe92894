"""
Response caching package.

Builds cache directives from configured profiles, fingerprints response
payloads into strong validators, and decides between 304 and 200 for
conditional requests. Representations are negotiated from
``Accept`` (JSON or XML). Validators issued per request URI are kept in a
response store so a matching ``If-None-Match`` can be answered without
running the query again.
"""

from .conditional import ConditionalDecision, ConditionalOutcome, coordinate
from .freshness import (
    CacheDirectives,
    CacheLocation,
    CacheProfile,
    build_directives,
    compute_validator,
    load_profile,
    route_identity,
    serialize_payload,
)
from .representation import JSON_MEDIA_TYPE, XML_MEDIA_TYPE, negotiate, render, serialize_xml
from .response_store import InMemoryResponseStore, RedisResponseStore, ResponseStore, StoredValidator

__all__ = [
    "CacheDirectives",
    "CacheLocation",
    "CacheProfile",
    "ConditionalDecision",
    "ConditionalOutcome",
    "InMemoryResponseStore",
    "JSON_MEDIA_TYPE",
    "RedisResponseStore",
    "ResponseStore",
    "StoredValidator",
    "XML_MEDIA_TYPE",
    "build_directives",
    "compute_validator",
    "coordinate",
    "load_profile",
    "negotiate",
    "render",
    "route_identity",
    "serialize_payload",
    "serialize_xml",
]
