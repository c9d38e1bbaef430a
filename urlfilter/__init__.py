# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

__version__ = "0.1.0"

# Types
from urlfilter.types import (
    FilterError,
    InvalidTypeConfigError,
    UnknownOperatorError,
    FieldOptionsMode,
    ParamCodes,
    FieldOption,
    TypeConfig,
    FilterEntry,
    FilterSet,
    ConditionDescriptor,
    FilterConditions,
)

# Operators
from urlfilter.operators import (
    ValueFormat,
    OperatorDef,
    OperatorRegistry,
    EQUALS,
    default_operators,
)

# Config
from urlfilter.config import (
    FilterSettings,
    normalize_types,
)

# Schema
from urlfilter.schema import (
    SchemaProvider,
    StaticSchemaProvider,
)

# Registry
from urlfilter.registry import TypeRegistry

# URL
from urlfilter.url import (
    RequestContext,
    NamedUrl,
)

# Codec
from urlfilter.codec import (
    filters_in_post,
    clean_url,
    encode_filters,
    decode_filters,
    validate_filters,
)

# Builder
from urlfilter.builder import build_conditions

# Links
from urlfilter.links import (
    remove_filter_rewrites,
    add_filter_tokens,
    remove_filter_url,
    add_filter_url,
    form_action_url,
)

# Form
from urlfilter.form import (
    FilterForm,
    FilterFormType,
    build_filter_form,
)

# Component
from urlfilter.component import (
    FilterComponent,
    FilterResult,
    FilterState,
)


__all__ = [
    # Types
    "FilterError",
    "InvalidTypeConfigError",
    "UnknownOperatorError",
    "FieldOptionsMode",
    "ParamCodes",
    "FieldOption",
    "TypeConfig",
    "FilterEntry",
    "FilterSet",
    "ConditionDescriptor",
    "FilterConditions",
    # Operators
    "ValueFormat",
    "OperatorDef",
    "OperatorRegistry",
    "EQUALS",
    "default_operators",
    # Config
    "FilterSettings",
    "normalize_types",
    # Schema
    "SchemaProvider",
    "StaticSchemaProvider",
    # Registry
    "TypeRegistry",
    # URL
    "RequestContext",
    "NamedUrl",
    # Codec
    "filters_in_post",
    "clean_url",
    "encode_filters",
    "decode_filters",
    "validate_filters",
    # Builder
    "build_conditions",
    # Links
    "remove_filter_rewrites",
    "add_filter_tokens",
    "remove_filter_url",
    "add_filter_url",
    "form_action_url",
    # Form
    "FilterForm",
    "FilterFormType",
    "build_filter_form",
    # Component
    "FilterComponent",
    "FilterResult",
    "FilterState",
]
