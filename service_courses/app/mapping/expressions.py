"""
Parsing of client sort and field-shape expressions.

Sort: ``orderBy=-age,name`` or ``orderBy=age desc, name``.
Shape: ``fields=id,name``.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from shared.errors import MalformedExpression

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_DIRECTIONS = {"asc": False, "desc": True}


@dataclass(frozen=True)
class SortTerm:
    """One client-facing sort key and its requested direction."""
    field: str
    descending: bool = False


def parse_sort_expression(expression: Optional[str], parameter: str = "orderBy") -> List[SortTerm]:
    """Split a sort expression into terms; blank means "use the default sort"."""
    if expression is None or not expression.strip():
        return []

    terms: List[SortTerm] = []
    for raw in expression.split(","):
        term = raw.strip()
        if not term:
            raise MalformedExpression(parameter, expression, "empty sort term")

        descending = False
        if term.startswith("-"):
            descending = True
            name = term[1:].strip()
            if " " in name:
                raise MalformedExpression(parameter, expression, f"'{term}' mixes '-' with a direction")
        else:
            parts = term.split()
            name = parts[0]
            if len(parts) == 2:
                direction = parts[1].lower()
                if direction not in _DIRECTIONS:
                    raise MalformedExpression(parameter, expression, f"unknown direction '{parts[1]}'")
                descending = _DIRECTIONS[direction]
            elif len(parts) > 2:
                raise MalformedExpression(parameter, expression, f"cannot parse '{term}'")

        if not _FIELD_NAME.match(name):
            raise MalformedExpression(parameter, expression, f"'{name or term}' is not a field name")
        terms.append(SortTerm(field=name, descending=descending))

    return terms


def parse_fields_expression(expression: Optional[str], parameter: str = "fields") -> List[str]:
    """Split a field-shape expression; duplicates (case-insensitive) collapse to the first."""
    if expression is None or not expression.strip():
        return []

    fields: List[str] = []
    seen = set()
    for raw in expression.split(","):
        name = raw.strip()
        if not name:
            raise MalformedExpression(parameter, expression, "empty field name")
        if not _FIELD_NAME.match(name):
            raise MalformedExpression(parameter, expression, f"'{name}' is not a field name")
        if name.lower() in seen:
            continue
        seen.add(name.lower())
        fields.append(name)

    return fields
