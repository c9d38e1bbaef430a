# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

import json
import logging

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from urlfilter.operators import EQUALS
from urlfilter.types import InvalidTypeConfigError, TypeConfig
from urlfilter.utils import humanize


logger = logging.getLogger("urlfilter.config")


DEFAULT_TYPE_NAME = "F"

DEFAULT_TYPE: dict[str, Any] = {
    "label": "Filter",
    "params": {
        "field": "f",
        "operator": "o",
        "value": "v",
    },
}


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FilterSettings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_prefix="URLFILTER_",
        extra="ignore",
    )

    # Behaviour
    auto: bool = True

    # Types
    defaults: dict[str, Any] = {}
    types: dict[str, Any] | list[str] | None = None

    # URL
    pagination_params: list[str] = ["page"]
    add_filter_param: str = "add_filter"

    # Conditions
    equality_operator: str = EQUALS
    sensitive_fields: list[str] = ["passwd", "password"]

    # Logging
    log_level: LogLevel = LogLevel.INFO

    @classmethod
    def from_env_file(cls, env_file: str):
        """Create settings with custom env file path."""
        return cls(_env_file=env_file)

    @classmethod
    def from_json_file(cls, path: str | Path, **overrides: Any):
        with open(path, encoding="utf-8") as fp:
            data = json.load(fp)

        if not isinstance(data, dict):
            raise ValueError(f"Filter settings in {path} must be a JSON object")

        data.update(overrides)

        return cls(**data)

    @field_validator("log_level", mode="before")
    def validate_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()

        return v

    @field_validator("add_filter_param")
    def validate_add_filter_param(cls, v):
        if v:
            return v

        raise ValueError("add_filter_param cannot be empty")

    def type_configs(self) -> list[TypeConfig]:
        return normalize_types(self.types, self.defaults)


def normalize_types(
    types: dict[str, Any] | list[str] | None,
    defaults: dict[str, Any] | None = None,
) -> list[TypeConfig]:
    """
    Normalize the declared filter types into canonical type configs.

    Supported declarations:
        - ``None`` or empty: the single default type ``F``
        - ``["Simple", "Advanced"]``: names, labels are humanized names
        - ``{"S": "Simple"}``: name to label
        - ``{"S": False}``: the type is switched off
        - ``{"S": {...}}``: settings merged over the defaults

    Raises:
        InvalidTypeConfigError: If a declaration cannot be normalized
    """
    defaults = defaults or {}

    if not types:
        return [_create_type_config(DEFAULT_TYPE_NAME, _deep_merge(DEFAULT_TYPE, defaults))]

    base = _deep_merge({"params": DEFAULT_TYPE["params"]}, defaults)
    declarations: list[tuple[str, dict[str, Any]]] = []

    if isinstance(types, list):
        for name in types:
            if not isinstance(name, str):
                raise InvalidTypeConfigError(f"Invalid filter type declaration: {name!r}")

            declarations.append((name, {"label": humanize(name)}))
    elif isinstance(types, dict):
        for name, declaration in types.items():
            if declaration is False or declaration is None:
                logger.debug(f"Filter type '{name}' is disabled")
                continue

            if isinstance(declaration, str):
                declarations.append((name, {"label": declaration}))
            elif isinstance(declaration, dict):
                declarations.append((name, declaration))
            else:
                raise InvalidTypeConfigError(
                    f"Invalid declaration for filter type '{name}': {declaration!r}"
                )
    else:
        raise InvalidTypeConfigError(f"Invalid filter types declaration: {types!r}")

    configs = []

    for name, declaration in declarations:
        settings = _deep_merge(base, declaration)
        settings.setdefault("label", humanize(name))
        configs.append(_create_type_config(name, settings))

    return configs


def _create_type_config(name: str, settings: dict[str, Any]) -> TypeConfig:
    try:
        return TypeConfig(name=name, **settings)
    except (ValidationError, TypeError) as e:
        raise InvalidTypeConfigError(f"Invalid configuration for filter type '{name}': {e}")


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)

    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict) and key == "params":
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value

    return merged


__all__ = [
    "DEFAULT_TYPE_NAME",
    "DEFAULT_TYPE",
    "LogLevel",
    "FilterSettings",
    "normalize_types",
]
