"""
Field mapping package.

- expressions: parsing of ``orderBy`` and ``fields`` query parameters.
- property_mapping: client sort keys to storage fields, per DTO type.
- property_checker: requested output fields against each DTO's public
  shape, and projection of DTOs onto the requested fields.

Both lookups are built once when the service starts and never change.
"""

from .expressions import SortTerm, parse_fields_expression, parse_sort_expression
from .property_checker import PropertyShapeValidator, public_field_names
from .property_mapping import (
    EntityMapping,
    FieldMapping,
    PropertyMappingRegistry,
    SortField,
    SourceField,
)

__all__ = [
    "EntityMapping",
    "FieldMapping",
    "PropertyMappingRegistry",
    "PropertyShapeValidator",
    "SortField",
    "SortTerm",
    "SourceField",
    "parse_fields_expression",
    "parse_sort_expression",
    "public_field_names",
]
