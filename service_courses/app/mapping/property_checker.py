"""
Field-shape validation and data shaping.

The public field set of every DTO is computed once, from the pydantic
model's serialized (camelCase) field names, so each request only does
set lookups.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type

from pydantic import BaseModel

from shared.errors import MisconfiguredPropertyMapping, UnknownShapeField


def public_field_names(model_type: Type[BaseModel]) -> List[str]:
    """Serialized field names of a pydantic model, in declaration order."""
    generator = model_type.model_config.get("alias_generator")
    names = []
    for name, info in model_type.model_fields.items():
        alias = info.serialization_alias or info.alias
        if alias is None and callable(generator):
            alias = generator(name)
        names.append(alias or name)
    return names


class EntityShape:
    """Declared public fields of one entity type."""

    __slots__ = ("name", "fields", "_by_lower")

    def __init__(self, name: str, fields: Sequence[str]):
        self.name = name
        self.fields = tuple(fields)
        self._by_lower = {field.lower(): field for field in self.fields}

    def canonical(self, requested: str) -> Optional[str]:
        return self._by_lower.get(requested.lower())


class PropertyShapeValidator:
    """Checks requested output fields and projects DTOs onto them."""

    def __init__(
        self,
        models: Iterable[Type[BaseModel]] = (),
        declared: Optional[Mapping[type, Sequence[str]]] = None,
    ):
        self._shapes: Dict[type, EntityShape] = {}
        for model in models:
            self._shapes[model] = EntityShape(model.__name__, public_field_names(model))
        for entity_type, fields in (declared or {}).items():
            self._shapes[entity_type] = EntityShape(getattr(entity_type, "__name__", str(entity_type)), fields)

    def _shape(self, entity_type: type) -> EntityShape:
        try:
            return self._shapes[entity_type]
        except KeyError:
            raise MisconfiguredPropertyMapping(
                f"No field shape registered for {getattr(entity_type, '__name__', entity_type)}"
            ) from None

    def declared_fields(self, entity_type: type) -> List[str]:
        return list(self._shape(entity_type).fields)

    def has_properties(self, entity_type: type, requested_fields: Sequence[str]) -> bool:
        shape = self._shape(entity_type)
        return all(shape.canonical(field) is not None for field in requested_fields)

    def validate(self, entity_type: type, requested_fields: Sequence[str]) -> None:
        """Raise UnknownShapeField naming every requested field the entity lacks."""
        if not requested_fields:
            return
        shape = self._shape(entity_type)
        invalid = [field for field in requested_fields if shape.canonical(field) is None]
        if invalid:
            raise UnknownShapeField(shape.name, invalid)

    def shape(self, entity_type: type, item: Any, requested_fields: Sequence[str]) -> Dict[str, Any]:
        """Project one item onto the requested fields, in request order."""
        data = _as_dict(item)
        if not requested_fields:
            return data
        self.validate(entity_type, requested_fields)
        shape = self._shape(entity_type)
        shaped: Dict[str, Any] = {}
        for field in requested_fields:
            name = shape.canonical(field)
            shaped[name] = data.get(name)
        return shaped

    def shape_many(self, entity_type: type, items: Iterable[Any], requested_fields: Sequence[str]) -> List[Dict[str, Any]]:
        self.validate(entity_type, requested_fields)
        return [self.shape(entity_type, item, requested_fields) for item in items]


def _as_dict(item: Any) -> Dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=True, mode="json")
    return dict(item)
