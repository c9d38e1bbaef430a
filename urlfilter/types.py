# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict


class FilterError(Exception): ...


class InvalidTypeConfigError(FilterError): ...


class UnknownOperatorError(FilterError, KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


FilterRole: TypeAlias = Literal["field", "operator", "value"]

FILTER_ROLES: tuple[FilterRole, ...] = ("field", "operator", "value")


class FieldOptionsMode(str, Enum):
    ALL = "all"
    PRIMARY_ONLY = "primary_only"
    DISPLAY_FIELD_ONLY = "display_field_only"


class ParamCodes(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str = "f"
    operator: str = "o"
    value: str = "v"

    def items(self) -> list[tuple[FilterRole, str]]:
        return [(role, getattr(self, role)) for role in FILTER_ROLES]

    def codes(self) -> tuple[str, str, str]:
        return self.field, self.operator, self.value

    def role_of(self, code: str) -> FilterRole | None:
        for role, role_code in self.items():
            if role_code == code:
                return role

        return None


class FieldOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    type: str = "string"
    options: dict[str, str] | None = None


FieldOptions: TypeAlias = dict[str, FieldOption]


class TypeConfig(BaseModel):
    """Canonical, read-only configuration of one filter type (namespace)."""

    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    params: ParamCodes = ParamCodes()
    field_options: FieldOptions | FieldOptionsMode | None = None
    operator_options: dict[str, str] | str | None = None

    def token(self, role: FilterRole, index: int | str) -> str:
        return f"{self.name}{getattr(self.params, role)}{index}"


@dataclass
class FilterEntry:
    type: str
    index: int
    field_key: str | None = None
    operator_id: str | None = None
    value: str | None = None

    def get(self, role: FilterRole) -> str | None:
        return getattr(self, _ENTRY_ATTRIBUTES[role])

    def set(self, role: FilterRole, value: str | None) -> None:
        setattr(self, _ENTRY_ATTRIBUTES[role], value)

    def is_complete(self) -> bool:
        return all(self.get(role) for role in FILTER_ROLES)


_ENTRY_ATTRIBUTES: dict[FilterRole, str] = {
    "field": "field_key",
    "operator": "operator_id",
    "value": "value",
}


class FilterSet:
    """
    Filters decoded from a URL, grouped by type and ordered by index.

    Entries may be incomplete, validation happens afterwards.
    """

    def __init__(self):
        self._entries: dict[str, dict[int, FilterEntry]] = {}

    def set(self, type_name: str, index: int, role: FilterRole, value: str) -> None:
        entries = self._entries.setdefault(type_name, {})

        if index not in entries:
            entries[index] = FilterEntry(type=type_name, index=index)

        entries[index].set(role, value)

    def add(self, entry: FilterEntry) -> None:
        self._entries.setdefault(entry.type, {})[entry.index] = entry

    def types(self) -> list[str]:
        return list(self._entries)

    def entries(self, type_name: str) -> list[FilterEntry]:
        entries = self._entries.get(type_name, {})

        return [entries[index] for index in sorted(entries)]

    def indexes(self, type_name: str) -> list[int]:
        return sorted(self._entries.get(type_name, {}))

    def max_index(self, type_name: str) -> int | None:
        indexes = self.indexes(type_name)

        return indexes[-1] if indexes else None

    def get(self, type_name: str, index: int) -> FilterEntry | None:
        return self._entries.get(type_name, {}).get(index)

    def to_form_data(self, codes: dict[str, "ParamCodes"]) -> dict[str, dict[int, dict[str, str]]]:
        """Raw filters in the posted shape, ready to repopulate a filter form."""
        data: dict[str, dict[int, dict[str, str]]] = {}

        for type_name in self._entries:
            params = codes.get(type_name)

            if params is None:
                continue

            for entry in self.entries(type_name):
                data.setdefault(type_name, {})[entry.index] = {
                    code: value
                    for role, code in params.items()
                    if (value := entry.get(role)) is not None
                }

        return data

    def __iter__(self) -> Iterator[FilterEntry]:
        for type_name in self._entries:
            yield from self.entries(type_name)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def __bool__(self) -> bool:
        return len(self) > 0

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._entries

    def __repr__(self) -> str:
        return f"FilterSet({list(self)!r})"


@dataclass(frozen=True)
class ConditionDescriptor:
    target_entity: str
    key: str
    value: str

    def as_dict(self) -> dict[str, str]:
        return {self.key: self.value}


@dataclass
class FilterConditions:
    conditions: dict[str, list[ConditionDescriptor]] = field(default_factory=dict)
    defaults: dict[str, str] = field(default_factory=dict)

    def for_entity(self, entity: str) -> list[ConditionDescriptor]:
        return self.conditions.get(entity, [])

    def to_dict(self) -> dict[str, Any]:
        return {
            "conditions": {
                entity: [descriptor.as_dict() for descriptor in descriptors]
                for entity, descriptors in self.conditions.items()
            },
            "defaults": dict(self.defaults),
        }

    def __bool__(self) -> bool:
        return bool(self.conditions)


__all__ = [
    "FilterError",
    "InvalidTypeConfigError",
    "UnknownOperatorError",
    "FilterRole",
    "FILTER_ROLES",
    "FieldOptionsMode",
    "ParamCodes",
    "FieldOption",
    "FieldOptions",
    "TypeConfig",
    "FilterEntry",
    "FilterSet",
    "ConditionDescriptor",
    "FilterConditions",
]
