# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

import logging

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, NamedTuple

from urlfilter.registry import FIELD_KEY_PATTERN, TypeRegistry
from urlfilter.types import FILTER_ROLES, FilterEntry, FilterSet
from urlfilter.url import NamedUrl, RequestContext, as_named_url
from urlfilter.utils import to_index


logger = logging.getLogger("urlfilter.codec")


ADD_MARKER = "ADD"

REMOVE_MARKER = "REMOVE"

DEFAULT_PAGINATION_PARAMS = ("page",)

DEFAULT_ADD_FILTER_PARAM = "add_filter"


@dataclass
class EncodedFilters:
    params: dict[str, str] = field(default_factory=dict)
    add_filter: str | None = None


@dataclass(frozen=True)
class RejectedEntry:
    entry: FilterEntry
    reason: str


class ValidationResult(NamedTuple):
    valid: list[FilterEntry]
    rejected: list[RejectedEntry]


def filters_in_post(posted: Mapping[str, Any] | None, registry: TypeRegistry) -> bool:
    if not posted:
        return False

    return any(type_name in registry for type_name in posted)


def clean_url(
    url: str | NamedUrl | RequestContext,
    registry: TypeRegistry,
    pagination_params: Iterable[str] = DEFAULT_PAGINATION_PARAMS,
    add_filter_param: str | None = DEFAULT_ADD_FILTER_PARAM,
) -> NamedUrl:
    """
    Remove pagination, filter params and any add filter directive from a URL,
    so a new set of filters can be appended to it.
    """
    cleaned = as_named_url(url)
    removed_params = set(pagination_params)

    if add_filter_param:
        removed_params.add(add_filter_param)

    cleaned.named = {
        key: value
        for key, value in cleaned.named.items()
        if key not in removed_params and not registry.is_filter_param(key)
    }

    return cleaned


def encode_filter_params(posted: Mapping[str, Any] | None, registry: TypeRegistry) -> EncodedFilters:
    """
    Convert posted filter data into named URL params.

    The posted data looks like ``{type: {index: {code: value}, "ADD": ...}}``.
    Entries with a ``REMOVE`` marker and entries missing one of their three
    values are skipped, the remaining ones are renumbered from 0 without gaps
    in the order of their original index.
    """
    encoded = EncodedFilters()

    for type_name, entries in (posted or {}).items():
        if type_name not in registry or not isinstance(entries, Mapping):
            continue

        config = registry.get(type_name)

        if ADD_MARKER in entries:
            encoded.add_filter = type_name

        indexed_entries = sorted(
            (
                (index, params)
                for key, params in entries.items()
                if (index := to_index(key)) is not None
            ),
            key=lambda item: item[0],
        )
        out_index = 0

        for index, params in indexed_entries:
            if not isinstance(params, Mapping):
                continue

            if REMOVE_MARKER in params:
                logger.debug(f"Removing filter {type_name}[{index}]")
                continue

            values = {
                role: str(params[code])
                for role, code in config.params.items()
                if params.get(code) not in (None, "")
            }

            if len(values) < len(FILTER_ROLES):
                logger.debug(f"Skipping incomplete filter {type_name}[{index}]")
                continue

            for role in FILTER_ROLES:
                encoded.params[config.token(role, out_index)] = values[role]

            out_index += 1

    return encoded


def encode_filters(
    posted: Mapping[str, Any] | None,
    url: str | NamedUrl | RequestContext,
    registry: TypeRegistry,
    pagination_params: Iterable[str] = DEFAULT_PAGINATION_PARAMS,
    add_filter_param: str = DEFAULT_ADD_FILTER_PARAM,
) -> str:
    """
    Build the canonical URL holding the posted filters.

    Args:
        posted: The nested posted filter data
        url: The current URL
        registry: The registry of filter types
        pagination_params: Named params dropped from the current URL
        add_filter_param: Named param carrying the add filter directive

    Returns:
        The current URL cleaned of pagination and prior filters, with the
        posted filters and the add filter directive appended
    """
    target = clean_url(url, registry, pagination_params, add_filter_param)
    encoded = encode_filter_params(posted, registry)

    target.named.update(encoded.params)

    if encoded.add_filter:
        target.named[add_filter_param] = encoded.add_filter

    return target.build()


def decode_filters(named_params: Mapping[str, Any], registry: TypeRegistry) -> FilterSet:
    """
    Extract the raw filters from named URL params.

    Params that do not match the ``<type><param><index>`` grammar of a
    registered type are ignored. No validation happens here.
    """
    filter_set = FilterSet()

    for key, value in named_params.items():
        match = registry.match_param(key)

        if match is None:
            if registry.is_filter_param(key):
                logger.debug(f"Ignoring param '{key}' not allowed for its filter type")

            continue

        filter_set.set(match.type, match.index, match.role, "" if value is None else str(value))

    return filter_set


def validate_filters(
    filter_set: FilterSet,
    registry: TypeRegistry,
    primary_entity: str | None = None,
) -> ValidationResult:
    """
    Split decoded filters into valid and rejected entries.

    An entry is rejected when one of its values is missing, when its operator
    is not allowed for its type, or when its field is malformed or not one of
    the type's fields. Rejections are never errors.
    """
    valid: list[FilterEntry] = []
    rejected: list[RejectedEntry] = []
    allowed_fields: dict[str, frozenset[str] | None] = {}

    for entry in filter_set:
        if entry.type not in registry:
            reason = "unknown type"
        elif not entry.is_complete():
            reason = "incomplete"
        elif entry.operator_id not in registry.allowed_operator_ids(entry.type):
            reason = f"operator '{entry.operator_id}' not allowed"
        elif not FIELD_KEY_PATTERN.fullmatch(entry.field_key):
            reason = f"malformed field '{entry.field_key}'"
        else:
            if entry.type not in allowed_fields:
                allowed_fields[entry.type] = registry.allowed_fields(entry.type, primary_entity)

            fields = allowed_fields[entry.type]

            if fields is not None and entry.field_key not in fields:
                reason = f"field '{entry.field_key}' not allowed"
            else:
                valid.append(entry)
                continue

        logger.debug(f"Dropping filter {entry.type}[{entry.index}]: {reason}")
        rejected.append(RejectedEntry(entry=entry, reason=reason))

    return ValidationResult(valid=valid, rejected=rejected)


__all__ = [
    "ADD_MARKER",
    "REMOVE_MARKER",
    "DEFAULT_PAGINATION_PARAMS",
    "DEFAULT_ADD_FILTER_PARAM",
    "EncodedFilters",
    "RejectedEntry",
    "ValidationResult",
    "filters_in_post",
    "clean_url",
    "encode_filter_params",
    "encode_filters",
    "decode_filters",
    "validate_filters",
]
