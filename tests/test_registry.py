"""Tests for the filter type registry."""

import pytest

from urlfilter.registry import TypeRegistry
from urlfilter.types import (
    FieldOption,
    FieldOptionsMode,
    InvalidTypeConfigError,
    ParamCodes,
    TypeConfig,
)


def test_register_and_get(registry):
    config = registry.get("F")

    assert config.label == "Filter"
    assert "F" in registry
    assert registry.names() == ["F"]
    assert len(registry) == 1


def test_get_unknown_type(registry):
    with pytest.raises(ValueError):
        registry.get("Unknown")


def test_duplicate_type_name_is_an_error(registry):
    with pytest.raises(InvalidTypeConfigError):
        registry.register(TypeConfig(name="F", label="Again"))


@pytest.mark.parametrize(
    "params",
    [
        ParamCodes(field="f", operator="f", value="v"),
        ParamCodes(field="", operator="o", value="v"),
        ParamCodes(field="f1", operator="o", value="v"),
        ParamCodes(field="1f", operator="o", value="v"),
        ParamCodes(field="f-x", operator="o", value="v"),
    ],
)
def test_invalid_param_codes(params):
    registry = TypeRegistry()

    with pytest.raises(InvalidTypeConfigError):
        registry.register(TypeConfig(name="T", label="T", params=params))


@pytest.mark.parametrize("name", ["", "1T", "T-1", "T x"])
def test_invalid_type_names(name):
    with pytest.raises(InvalidTypeConfigError):
        TypeRegistry().register(TypeConfig(name=name, label="T"))


def test_token_collision_between_types():
    registry = TypeRegistry()
    registry.register(TypeConfig(name="F", label="F", params=ParamCodes(field="xo", operator="o", value="v")))

    with pytest.raises(InvalidTypeConfigError) as excinfo:
        registry.register(TypeConfig(name="Fx", label="Fx", params=ParamCodes(field="f", operator="o", value="v")))

    assert "Fxo" in str(excinfo.value)


def test_unknown_operator_option_is_an_error():
    with pytest.raises(InvalidTypeConfigError):
        TypeRegistry().register(TypeConfig(name="T", label="T", operator_options="doesNotContain"))

    with pytest.raises(InvalidTypeConfigError):
        TypeRegistry().register(TypeConfig(name="T", label="T", operator_options={"nope": "Nope"}))


def test_malformed_field_option_is_an_error():
    with pytest.raises(InvalidTypeConfigError):
        TypeRegistry().register(TypeConfig(
            name="T",
            label="T",
            field_options={"title": FieldOption(label="Title")},
        ))


def test_match_param(registry):
    match = registry.match_param("Fo12")

    assert match.type == "F"
    assert match.role == "operator"
    assert match.index == 12


@pytest.mark.parametrize("key", ["Fx0", "F0", "Ff", "page", "Ff0x", "Gf0", "fF0"])
def test_match_param_ignores_other_keys(registry, key):
    assert registry.match_param(key) is None


def test_match_param_is_scoped_by_type(shop_registry):
    assert shop_registry.match_param("Productf0").type == "Product"
    assert shop_registry.match_param("Ordermf0").type == "Order"
    # "f" is a Product code only, "mf" an Order code only
    assert shop_registry.match_param("Orderf0") is None
    assert shop_registry.match_param("Productmf0") is None


def test_prefix_type_names_do_not_cross_match():
    registry = TypeRegistry()
    registry.register(TypeConfig(name="F", label="F"))
    registry.register(TypeConfig(name="Fo", label="Fo"))

    assert registry.match_param("Fo0").type == "F"
    assert registry.match_param("Fo0").role == "operator"
    assert registry.match_param("Foo0").type == "Fo"
    assert registry.match_param("Fof3").index == 3


def test_is_filter_param(shop_registry):
    assert shop_registry.is_filter_param("Productv3")
    assert shop_registry.is_filter_param("Orderval0")
    assert not shop_registry.is_filter_param("page")
    assert not shop_registry.is_filter_param("Productv")


def test_operator_options_default_to_all(operators):
    registry = TypeRegistry(operators)
    registry.register(TypeConfig(name="F", label="F"))

    assert registry.resolve_operator_options("F") == operators.options()
    assert registry.allowed_operator_ids("F") == operators.ids()


def test_single_operator_option_narrows(operators):
    registry = TypeRegistry(operators)
    registry.register(TypeConfig(name="F", label="F", operator_options="contains"))

    assert registry.resolve_operator_options("F") == {"contains": "Contains"}
    assert registry.allowed_operator_ids("F") == frozenset({"contains"})


def test_explicit_operator_options_keep_labels(registry):
    assert registry.resolve_operator_options("F") == {"equals": "Equals", "contains": "Contains"}


def test_explicit_field_options(operators):
    registry = TypeRegistry(operators)
    registry.register(TypeConfig(
        name="Date",
        label="Date",
        field_options={"Post.published": FieldOption(label="Published", type="date")},
    ))

    options = registry.resolve_field_options("Date", "Post")

    assert list(options) == ["Post.published"]
    assert registry.allowed_fields("Date") == frozenset({"Post.published"})


def test_discover_all_fields(operators, schema):
    registry = TypeRegistry(operators, schema)
    registry.register(TypeConfig(name="F", label="F"))

    options = registry.resolve_field_options("F", "Post")

    assert list(options) == [
        "Post.id",
        "Post.title",
        "Post.body",
        "Post.published",
        "Category.id",
        "Category.name",
        "Author.id",
        "Author.name",
    ]
    assert options["Post.title"].label == "Post Title"
    assert options["Post.published"].type == "datetime"


def test_discovery_excludes_sensitive_fields(operators, schema):
    registry = TypeRegistry(operators, schema)
    registry.register(TypeConfig(name="F", label="F"))

    options = registry.resolve_field_options("F", "Post")

    assert "Post.password" not in options
    assert "Author.passwd" not in options


def test_discovery_ignores_has_many(operators, schema):
    registry = TypeRegistry(operators, schema)
    registry.register(TypeConfig(name="F", label="F"))

    assert not any(key.startswith("Comment.") for key in registry.resolve_field_options("F", "Post"))


def test_discover_primary_only(operators, schema):
    registry = TypeRegistry(operators, schema)
    registry.register(TypeConfig(name="F", label="F", field_options=FieldOptionsMode.PRIMARY_ONLY))

    assert list(registry.resolve_field_options("F", "Post")) == [
        "Post.id",
        "Post.title",
        "Post.body",
        "Post.published",
    ]


def test_discover_display_field_only(operators, schema):
    registry = TypeRegistry(operators, schema)
    registry.register(TypeConfig(name="Search", label="Search", field_options="display_field_only"))

    assert list(registry.resolve_field_options("Search", "Post")) == ["Post.title"]


def test_discovery_without_schema(registry):
    assert registry.resolve_field_options("F", "Post") == {}
    assert registry.allowed_fields("F", "Post") is None


def test_discovery_is_cached(operators, schema):
    registry = TypeRegistry(operators, schema)
    registry.register(TypeConfig(name="F", label="F"))

    first = registry.resolve_field_options("F", "Post")
    first.clear()

    assert registry.resolve_field_options("F", "Post")
    assert ("all", "Post") in registry._field_options
