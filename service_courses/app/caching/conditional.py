"""
Conditional request decisions.

``coordinate`` is a pure function of the client's validator token, the
validator of the current representation and the route's directives.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from .freshness import CacheDirectives


class ConditionalOutcome(str, Enum):
    """Result of comparing the client's validator with the current one."""
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class ConditionalDecision:
    """What to emit for a conditional request."""
    outcome: ConditionalOutcome
    validator: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def status_code(self) -> int:
        return 304 if self.outcome is ConditionalOutcome.FRESH else 200

    @property
    def include_body(self) -> bool:
        return self.outcome is ConditionalOutcome.STALE


def validator_headers(validator: str, directives: CacheDirectives) -> Dict[str, str]:
    headers = {
        "ETag": validator,
        "Cache-Control": directives.header_value,
    }
    if directives.vary:
        headers["Vary"] = ", ".join(directives.vary)
    return headers


def coordinate(
    supplied_token: Optional[str],
    computed_validator: str,
    directives: CacheDirectives,
) -> ConditionalDecision:
    """Fresh when the supplied token equals the computed validator byte for byte.

    Both outcomes re-assert the validator and the cache directives so
    downstream caches refresh their freshness lifetime.
    """
    if supplied_token is not None and supplied_token == computed_validator:
        outcome = ConditionalOutcome.FRESH
    else:
        outcome = ConditionalOutcome.STALE

    return ConditionalDecision(
        outcome=outcome,
        validator=computed_validator,
        headers=validator_headers(computed_validator, directives),
    )
