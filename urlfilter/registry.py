# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

import logging
import re

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Iterator

from urlfilter.operators import OperatorRegistry, default_operators
from urlfilter.schema import (
    DEFAULT_SENSITIVE_FIELDS,
    DISCOVERY_RELATIONS,
    SchemaProvider,
    field_options_from_schema,
)
from urlfilter.types import (
    FieldOptions,
    FieldOptionsMode,
    FilterRole,
    InvalidTypeConfigError,
    ParamCodes,
    TypeConfig,
)

if TYPE_CHECKING:
    from urlfilter.config import FilterSettings


logger = logging.getLogger("urlfilter.registry")


TYPE_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

PARAM_CODE_PATTERN = re.compile(r"^[A-Za-z_](?:[A-Za-z0-9_]*[A-Za-z_])?$")

FIELD_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\.[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class ParamMatch:
    type: str
    role: FilterRole
    index: int


class TypeRegistry:
    """
    Registry of the filter types allowed in URLs.

    Built once from configuration, then only read. Every type owns three
    param codes, and ``<type name><param code>`` must identify a single
    (type, role) pair across the whole registry so that URL tokens can never
    be matched against the wrong type.
    """

    def __init__(
        self,
        operators: OperatorRegistry = default_operators,
        schema: SchemaProvider | None = None,
        sensitive_fields: Iterable[str] = DEFAULT_SENSITIVE_FIELDS,
    ):
        self.operators = operators
        self.schema = schema
        self.sensitive_fields = frozenset(sensitive_fields)
        self._types: dict[str, TypeConfig] = {}
        self._tokens: dict[str, tuple[str, FilterRole]] = {}
        self._patterns: dict[str, re.Pattern] = {}
        self._filter_param_pattern: re.Pattern | None = None
        self._field_options: dict[tuple[str, str | None], FieldOptions] = {}

    @classmethod
    def from_settings(
        cls,
        settings: "FilterSettings",
        operators: OperatorRegistry = default_operators,
        schema: SchemaProvider | None = None,
    ) -> "TypeRegistry":
        registry = cls(operators, schema, settings.sensitive_fields)

        for config in settings.type_configs():
            registry.register(config)

        return registry

    def register(self, config: TypeConfig) -> None:
        """
        Register a filter type.

        Raises:
            InvalidTypeConfigError: If the name is invalid or already
                registered, if the param codes are not 3 distinct valid tokens,
                if a token collides with another type, or if the options
                reference unknown operators or malformed field keys
        """
        name = config.name

        if not TYPE_NAME_PATTERN.fullmatch(name):
            raise InvalidTypeConfigError(f"Invalid filter type name: '{name}'")

        if name in self._types:
            raise InvalidTypeConfigError(f"Filter type '{name}' is already registered")

        codes = config.params.codes()

        for code in codes:
            if not code or not PARAM_CODE_PATTERN.fullmatch(code):
                raise InvalidTypeConfigError(
                    f"Invalid param code '{code}' for filter type '{name}'"
                )

        if len(set(codes)) != len(codes):
            raise InvalidTypeConfigError(
                f"Param codes of filter type '{name}' must be distinct: {', '.join(codes)}"
            )

        tokens = {f"{name}{code}": role for role, code in config.params.items()}

        for token in tokens:
            if token in self._tokens:
                raise InvalidTypeConfigError(
                    f"Param '{token}' of filter type '{name}' collides with "
                    f"filter type '{self._tokens[token][0]}'"
                )

        self._validate_operator_options(config)
        self._validate_field_options(config)

        self._types[name] = config

        for token, role in tokens.items():
            self._tokens[token] = (name, role)

        self._patterns[name] = re.compile(
            rf"^{re.escape(name)}(?P<param>{'|'.join(re.escape(code) for code in codes)})(?P<index>[0-9]+)$"
        )
        self._filter_param_pattern = None

        logger.debug(f"Registered filter type '{name}' with params {', '.join(tokens)}")

    def get(self, name: str) -> TypeConfig:
        if name not in self._types:
            raise ValueError(f"Filter type '{name}' not found in registry")

        return self._types[name]

    def names(self) -> list[str]:
        return list(self._types)

    def param_codes(self) -> dict[str, ParamCodes]:
        return {name: config.params for name, config in self._types.items()}

    def match_param(self, key: str) -> ParamMatch | None:
        """
        Match a named URL param against the ``<type><param><index>`` grammar.

        Only the codes of the matched type are accepted, a code borrowed from
        another type never matches.
        """
        for name, pattern in self._patterns.items():
            match = pattern.fullmatch(key)

            if not match:
                continue

            role = self._types[name].params.role_of(match.group("param"))

            if role is None:
                continue

            return ParamMatch(type=name, role=role, index=int(match.group("index")))

        return None

    def filter_param_pattern(self) -> re.Pattern:
        """Pattern matching any filter shaped param, used to clean URLs."""
        if self._filter_param_pattern is None:
            types = sorted(self._types, key=len, reverse=True)
            codes = sorted(
                {code for config in self._types.values() for code in config.params.codes()},
                key=len,
                reverse=True,
            )

            if not types:
                self._filter_param_pattern = re.compile(r"(?!)")
            else:
                self._filter_param_pattern = re.compile(
                    rf"^(?:{'|'.join(map(re.escape, types))})"
                    rf"(?:{'|'.join(map(re.escape, codes))})[0-9]+$"
                )

        return self._filter_param_pattern

    def is_filter_param(self, key: str) -> bool:
        return bool(self.filter_param_pattern().fullmatch(key))

    def resolve_operator_options(self, name: str) -> dict[str, str]:
        """
        Operator id to label options of a type.

        Defaults to every registered operator, a single operator id narrows the
        options to that operator.
        """
        options = self.get(name).operator_options

        if isinstance(options, str):
            return {options: self.operators.get(options).label}

        if options:
            return dict(options)

        return self.operators.options()

    def allowed_operator_ids(self, name: str) -> frozenset[str]:
        return frozenset(self.resolve_operator_options(name)) & self.operators.ids()

    def resolve_field_options(self, name: str, primary_entity: str | None = None) -> FieldOptions:
        """
        ``Entity.field`` options of a type.

        Explicit options are returned as configured. Otherwise they are
        discovered from the schema of the primary entity according to the
        type's mode, sensitive fields excluded. Discovery needs both a schema
        provider and a primary entity, without them no option is returned.
        """
        config = self.get(name)

        if isinstance(config.field_options, dict) and config.field_options:
            return dict(config.field_options)

        if self.schema is None or not primary_entity:
            return {}

        mode = config.field_options if isinstance(config.field_options, FieldOptionsMode) else FieldOptionsMode.ALL
        cache_key = (mode.value, primary_entity)

        if cache_key not in self._field_options:
            self._field_options[cache_key] = self._discover_field_options(mode, primary_entity)

        return dict(self._field_options[cache_key])

    def allowed_fields(self, name: str, primary_entity: str | None = None) -> frozenset[str] | None:
        """
        Field keys a type may filter on, ``None`` when they cannot be
        determined (no explicit options and no schema to discover them).
        """
        config = self.get(name)
        explicit = isinstance(config.field_options, dict) and bool(config.field_options)

        if not explicit and (self.schema is None or not primary_entity):
            return None

        return frozenset(self.resolve_field_options(name, primary_entity))

    def _discover_field_options(self, mode: FieldOptionsMode, entity: str) -> FieldOptions:
        schema = self.schema

        if mode == FieldOptionsMode.DISPLAY_FIELD_ONLY:
            display_field = schema.display_field(entity)
            fields = schema.fields_of(entity)

            if not display_field or display_field not in fields:
                return {}

            return field_options_from_schema(
                entity, {display_field: fields[display_field]}, self.sensitive_fields
            )

        options = field_options_from_schema(entity, schema.fields_of(entity), self.sensitive_fields)

        if mode == FieldOptionsMode.PRIMARY_ONLY:
            return options

        for related in schema.related_entities(entity, DISCOVERY_RELATIONS):
            related_options = field_options_from_schema(
                related, schema.fields_of(related), self.sensitive_fields
            )

            for key, option in related_options.items():
                options.setdefault(key, option)

        logger.debug(f"Discovered {len(options)} filter fields for entity '{entity}'")

        return options

    def _validate_operator_options(self, config: TypeConfig) -> None:
        options = config.operator_options

        if options is None:
            return

        operator_ids = [options] if isinstance(options, str) else list(options)

        for operator_id in operator_ids:
            if operator_id not in self.operators:
                raise InvalidTypeConfigError(
                    f"Unknown operator '{operator_id}' for filter type '{config.name}'"
                )

    def _validate_field_options(self, config: TypeConfig) -> None:
        if not isinstance(config.field_options, dict):
            return

        for field_key in config.field_options:
            if not FIELD_KEY_PATTERN.fullmatch(field_key):
                raise InvalidTypeConfigError(
                    f"Invalid field '{field_key}' for filter type '{config.name}', "
                    "expected 'Entity.field'"
                )

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[TypeConfig]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)


__all__ = [
    "TYPE_NAME_PATTERN",
    "PARAM_CODE_PATTERN",
    "FIELD_KEY_PATTERN",
    "ParamMatch",
    "TypeRegistry",
]
