"""
Property mapping registry.

Translates client-facing sort keys on a DTO into storage fields of the
entity behind it. One client key may expand to several storage fields
("name" -> first_name, last_name) and a storage field may sort in the
opposite direction of its client key ("age" -> date_of_birth).
"""

import dataclasses
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Type

from shared.errors import (
    MalformedExpression,
    MisconfiguredDefaultSort,
    MisconfiguredPropertyMapping,
    UnknownSortField,
)
from shared.logging import get_logger
from .expressions import SortTerm, parse_sort_expression


@dataclass(frozen=True)
class SourceField:
    """Storage field backing a client sort key."""
    path: str
    revert_order: bool = False


@dataclass(frozen=True)
class FieldMapping:
    """Client sort key and the ordered storage fields it expands to."""
    client_field: str
    source_fields: Tuple[SourceField, ...]
    is_default_sort: bool = False


@dataclass(frozen=True)
class SortField:
    """Resolved storage-level sort key."""
    path: str
    descending: bool = False


@dataclass(frozen=True)
class EntityMapping:
    """All sort mappings of one DTO type onto its storage type."""
    entity_type: type
    mappings: Tuple[FieldMapping, ...]
    source_type: Optional[type] = None


def _declared_source_fields(source_type: type) -> Optional[set]:
    if dataclasses.is_dataclass(source_type):
        return {f.name for f in dataclasses.fields(source_type)}
    model_fields = getattr(source_type, "model_fields", None)
    if model_fields is not None:
        return set(model_fields)
    return None


class _ResolvedEntity:
    __slots__ = ("name", "by_field", "default")

    def __init__(self, name: str, by_field: Dict[str, FieldMapping], default: FieldMapping):
        self.name = name
        self.by_field = by_field
        self.default = default


class PropertyMappingRegistry:
    """Read-only lookup of sort mappings, validated when constructed."""

    def __init__(self, entity_mappings: Iterable[EntityMapping]):
        self.logger = get_logger("courses.property_mapping")
        self._entities: Dict[type, _ResolvedEntity] = {}
        for entity_mapping in entity_mappings:
            self._register(entity_mapping)

    def _register(self, entity_mapping: EntityMapping) -> None:
        name = entity_mapping.entity_type.__name__
        if entity_mapping.entity_type in self._entities:
            raise MisconfiguredPropertyMapping(f"Property mapping for {name} is registered twice")

        known_paths = None
        if entity_mapping.source_type is not None:
            known_paths = _declared_source_fields(entity_mapping.source_type)

        by_field: Dict[str, FieldMapping] = {}
        defaults: List[FieldMapping] = []
        for mapping in entity_mapping.mappings:
            key = mapping.client_field.lower()
            if key in by_field:
                raise MisconfiguredPropertyMapping(
                    f"Property mapping for {name} declares '{mapping.client_field}' more than once"
                )
            if not mapping.source_fields:
                raise MisconfiguredPropertyMapping(
                    f"Property mapping {name}.{mapping.client_field} has no source fields"
                )
            if known_paths is not None:
                missing = [s.path for s in mapping.source_fields if s.path not in known_paths]
                if missing:
                    raise MisconfiguredPropertyMapping(
                        f"Property mapping {name}.{mapping.client_field} targets unknown "
                        f"fields of {entity_mapping.source_type.__name__}: {', '.join(missing)}"
                    )
            by_field[key] = mapping
            if mapping.is_default_sort:
                defaults.append(mapping)

        if len(defaults) != 1:
            raise MisconfiguredDefaultSort(name, [m.client_field for m in defaults])

        self._entities[entity_mapping.entity_type] = _ResolvedEntity(name, by_field, defaults[0])
        self.logger.debug(
            "Registered property mapping",
            entity=name,
            fields=sorted(by_field),
            default=defaults[0].client_field,
        )

    def _entity(self, entity_type: Type) -> _ResolvedEntity:
        try:
            return self._entities[entity_type]
        except KeyError:
            raise MisconfiguredPropertyMapping(
                f"No property mapping registered for {getattr(entity_type, '__name__', entity_type)}"
            ) from None

    @staticmethod
    def _expand(mapping: FieldMapping, descending: bool) -> List[SortField]:
        return [
            SortField(path=source.path, descending=descending != source.revert_order)
            for source in mapping.source_fields
        ]

    def resolve(self, entity_type: Type, client_field: str, descending: bool = False) -> List[SortField]:
        """Expand one client sort key; raises UnknownSortField when it has no mapping."""
        entity = self._entity(entity_type)
        mapping = entity.by_field.get(client_field.lower())
        if mapping is None:
            raise UnknownSortField(entity.name, [client_field])
        return self._expand(mapping, descending)

    def resolve_terms(self, entity_type: Type, terms: Sequence[SortTerm]) -> List[SortField]:
        """Expand a parsed sort expression, reporting every unknown key at once.

        An empty expression resolves to the entity's default sort.
        """
        entity = self._entity(entity_type)
        if not terms:
            return self._expand(entity.default, False)

        invalid = [term.field for term in terms if term.field.lower() not in entity.by_field]
        if invalid:
            raise UnknownSortField(entity.name, invalid)

        resolved: List[SortField] = []
        for term in terms:
            resolved.extend(self._expand(entity.by_field[term.field.lower()], term.descending))
        return resolved

    def get_default(self, entity_type: Type) -> List[SortField]:
        """Default sort of an entity type, ascending."""
        return self._expand(self._entity(entity_type).default, False)

    def default_field(self, entity_type: Type) -> str:
        return self._entity(entity_type).default.client_field

    def has_valid_mapping(self, entity_type: Type, expression: Optional[str]) -> bool:
        """True when every key of a sort expression maps onto the entity."""
        entity = self._entity(entity_type)
        try:
            terms = parse_sort_expression(expression)
        except MalformedExpression:
            return False
        return all(term.field.lower() in entity.by_field for term in terms)

    def sortable_fields(self, entity_type: Type) -> List[str]:
        return [mapping.client_field for mapping in self._entity(entity_type).by_field.values()]
