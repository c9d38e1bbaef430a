# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

from typing import Any

from pydantic import BaseModel, Field

from urlfilter.codec import ADD_MARKER, DEFAULT_ADD_FILTER_PARAM, REMOVE_MARKER
from urlfilter.links import form_action_url
from urlfilter.registry import TypeRegistry
from urlfilter.types import FieldOption, FilterRole, FilterSet, ParamCodes
from urlfilter.url import NamedUrl, RequestContext, as_named_url


DEFAULT_VALUE_LABEL = "Value"


class FilterFormInput(BaseModel):
    """Rendering metadata of one of the 3 inputs of a filter."""

    code: str
    label: str
    hidden: bool = False
    value: str | None = None
    options: dict[str, str] | None = None


class FilterFormType(BaseModel):
    name: str
    label: str
    params: ParamCodes
    field_options: dict[str, FieldOption] = Field(default_factory=dict)
    operator_options: dict[str, str] = Field(default_factory=dict)
    field: FilterFormInput
    operator: FilterFormInput
    value: FilterFormInput

    def input(self, role: FilterRole) -> FilterFormInput:
        return getattr(self, role)

    def input_name(self, role: FilterRole, index: int) -> str:
        return f"data[{self.name}][{index}][{getattr(self.params, role)}]"

    def remove_name(self, index: int) -> str:
        return f"data[{self.name}][{index}][{REMOVE_MARKER}]"

    def add_name(self) -> str:
        return f"data[{self.name}][{ADD_MARKER}]"


class FilterForm(BaseModel):
    action_url: str
    types: list[FilterFormType] = Field(default_factory=list)
    data: dict[str, dict[int, dict[str, str]]] = Field(default_factory=dict)
    add_filter: str | None = None

    def get_type(self, name: str) -> FilterFormType:
        for form_type in self.types:
            if form_type.name == name:
                return form_type

        raise ValueError(f"Filter type '{name}' not found in form")

    def indexes(self, name: str) -> list[int]:
        """
        Indexes of the filters to render for a type: the filters in the URL,
        or a single blank one, plus one more when the add filter directive
        targets the type.
        """
        indexes = sorted(self.data.get(name, {})) or [0]

        if self.add_filter == name:
            indexes.append(max(indexes) + 1)

        return indexes


def build_form_type(registry: TypeRegistry, name: str, primary_entity: str | None = None) -> FilterFormType:
    """
    Rendering metadata of a filter type.

    A parameter with exactly one option is hidden with that option as value.
    When the type has a single field, the value input takes the field's label
    and, if the field declares options, becomes a select (hidden when only one
    option remains).
    """
    config = registry.get(name)
    field_options = registry.resolve_field_options(name, primary_entity)
    operator_options = registry.resolve_operator_options(name)

    field_input = FilterFormInput(code=config.params.field, label="Field")

    if len(field_options) == 1:
        field_input.hidden = True
        field_input.value = next(iter(field_options))
    else:
        field_input.options = {key: option.label for key, option in field_options.items()}

    operator_input = FilterFormInput(code=config.params.operator, label="Operator")

    if len(operator_options) == 1:
        operator_input.hidden = True
        operator_input.value = next(iter(operator_options))
    else:
        operator_input.options = dict(operator_options)

    value_input = FilterFormInput(code=config.params.value, label=DEFAULT_VALUE_LABEL)

    if len(field_options) == 1:
        single_field = next(iter(field_options.values()))
        value_input.label = single_field.label or DEFAULT_VALUE_LABEL

        if single_field.options:
            if len(single_field.options) == 1:
                value_input.hidden = True
                value_input.value = next(iter(single_field.options))
            else:
                value_input.options = dict(single_field.options)

    return FilterFormType(
        name=name,
        label=config.label,
        params=config.params,
        field_options=field_options,
        operator_options=operator_options,
        field=field_input,
        operator=operator_input,
        value=value_input,
    )


def build_filter_form(
    registry: TypeRegistry,
    url: str | NamedUrl | RequestContext,
    filter_set: FilterSet | None = None,
    primary_entity: str | None = None,
    add_filter_param: str = DEFAULT_ADD_FILTER_PARAM,
) -> FilterForm:
    named_url = as_named_url(url)

    return FilterForm(
        action_url=form_action_url(named_url, add_filter_param),
        types=[build_form_type(registry, name, primary_entity) for name in registry.names()],
        data=filter_set.to_form_data(registry.param_codes()) if filter_set else {},
        add_filter=named_url.named.get(add_filter_param),
    )


def merge_form_data(data: dict[str, Any] | None, filter_data: dict[str, Any]) -> dict[str, Any]:
    """Merge decoded filters over existing form data, recursively."""
    merged = dict(data or {})

    for key, value in filter_data.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_form_data(merged[key], value)
        else:
            merged[key] = value

    return merged


__all__ = [
    "DEFAULT_VALUE_LABEL",
    "FilterFormInput",
    "FilterFormType",
    "FilterForm",
    "build_form_type",
    "build_filter_form",
    "merge_form_data",
]
