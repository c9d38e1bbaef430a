"""Pytest configuration and shared fixtures."""

import pytest

from urlfilter.operators import OperatorRegistry
from urlfilter.registry import TypeRegistry
from urlfilter.schema import StaticSchemaProvider
from urlfilter.types import ParamCodes, TypeConfig


@pytest.fixture
def operators():
    return OperatorRegistry()


@pytest.fixture
def schema():
    return StaticSchemaProvider({
        "Post": {
            "fields": {
                "id": "integer",
                "title": "string",
                "body": "text",
                "published": "datetime",
                "password": "string",
            },
            "display_field": "title",
            "belongs_to": ["Category"],
            "has_one": ["Author"],
            "has_many": ["Comment"],
        },
        "Category": {"fields": {"id": "integer", "name": "string"}},
        "Author": {"fields": {"id": "integer", "name": "string", "passwd": "string"}},
        "Comment": {"fields": {"id": "integer", "body": "text"}},
    })


@pytest.fixture
def registry(operators):
    """Registry with the type F of the default codes, and equals/contains only."""
    registry = TypeRegistry(operators)
    registry.register(TypeConfig(
        name="F",
        label="Filter",
        params=ParamCodes(field="f", operator="o", value="v"),
        operator_options={"equals": "Equals", "contains": "Contains"},
    ))

    return registry


@pytest.fixture
def shop_registry(operators):
    """Registry with the types Product and Order using different codes."""
    registry = TypeRegistry(operators)
    registry.register(TypeConfig(name="Product", label="Product", params=ParamCodes()))
    registry.register(TypeConfig(
        name="Order",
        label="Order",
        params=ParamCodes(field="mf", operator="op", value="val"),
    ))

    return registry
