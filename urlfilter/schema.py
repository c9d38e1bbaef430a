# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

from typing import Iterable, Literal, Protocol, TypeAlias, runtime_checkable

from pydantic import BaseModel, Field

from urlfilter.types import FieldOption, FieldOptions
from urlfilter.utils import humanize


RelationKind: TypeAlias = Literal["belongs_to", "has_one", "has_many"]

DISCOVERY_RELATIONS: tuple[RelationKind, ...] = ("belongs_to", "has_one")

DEFAULT_SENSITIVE_FIELDS = frozenset({"passwd", "password"})


@runtime_checkable
class SchemaProvider(Protocol):
    def fields_of(self, entity: str) -> dict[str, str]: ...

    def related_entities(
        self, entity: str, kinds: Iterable[RelationKind] = DISCOVERY_RELATIONS
    ) -> list[str]: ...

    def display_field(self, entity: str) -> str | None: ...


class EntitySchema(BaseModel):
    fields: dict[str, str] = Field(default_factory=dict)
    display_field: str | None = None
    belongs_to: list[str] = Field(default_factory=list)
    has_one: list[str] = Field(default_factory=list)
    has_many: list[str] = Field(default_factory=list)


class StaticSchemaProvider:
    """
    Schema provider backed by a plain mapping of entity descriptions.

    Example:
        ```python
        schema = StaticSchemaProvider({
            "Post": {
                "fields": {"id": "integer", "title": "string"},
                "display_field": "title",
                "belongs_to": ["Category"],
            },
            "Category": {"fields": {"id": "integer", "name": "string"}},
        })
        ```
    """

    def __init__(self, entities: dict[str, EntitySchema | dict] | None = None):
        self._entities: dict[str, EntitySchema] = {
            name: entity if isinstance(entity, EntitySchema) else EntitySchema.model_validate(entity)
            for name, entity in (entities or {}).items()
        }

    def fields_of(self, entity: str) -> dict[str, str]:
        schema = self._entities.get(entity)

        return dict(schema.fields) if schema else {}

    def related_entities(
        self, entity: str, kinds: Iterable[RelationKind] = DISCOVERY_RELATIONS
    ) -> list[str]:
        schema = self._entities.get(entity)

        if not schema:
            return []

        related: list[str] = []

        for kind in kinds:
            for name in getattr(schema, kind):
                if name not in related:
                    related.append(name)

        return related

    def display_field(self, entity: str) -> str | None:
        schema = self._entities.get(entity)

        if not schema:
            return None

        if schema.display_field:
            return schema.display_field

        for candidate in ("name", "title"):
            if candidate in schema.fields:
                return candidate

        return next(iter(schema.fields), None)

    def __contains__(self, entity: object) -> bool:
        return entity in self._entities


def field_options_from_schema(
    entity: str,
    fields: dict[str, str],
    sensitive_fields: Iterable[str] = DEFAULT_SENSITIVE_FIELDS,
) -> FieldOptions:
    """
    Convert schema fields into ``Entity.field`` options.

    Args:
        entity: The entity owning the fields
        fields: Ordered mapping of field name to data type
        sensitive_fields: Field names never offered for filtering

    Returns:
        Ordered mapping of ``Entity.field`` to its option, labelled with the
        humanized entity and field names
    """
    excluded = set(sensitive_fields)
    entity_label = humanize(entity)
    options: FieldOptions = {}

    for name, data_type in fields.items():
        if name in excluded or not data_type:
            continue

        options[f"{entity}.{name}"] = FieldOption(
            label=f"{entity_label} {humanize(name)}",
            type=data_type,
        )

    return options


__all__ = [
    "RelationKind",
    "DISCOVERY_RELATIONS",
    "DEFAULT_SENSITIVE_FIELDS",
    "SchemaProvider",
    "EntitySchema",
    "StaticSchemaProvider",
    "field_options_from_schema",
]
