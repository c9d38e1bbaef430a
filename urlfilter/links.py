# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

from dataclasses import dataclass

from urlfilter.codec import DEFAULT_ADD_FILTER_PARAM, decode_filters
from urlfilter.registry import TypeRegistry
from urlfilter.types import FILTER_ROLES
from urlfilter.url import NamedUrl, RequestContext, as_named_url


@dataclass(frozen=True)
class TokenRewrite:
    source: str
    target: str | None = None

    @property
    def is_drop(self) -> bool:
        return self.target is None


def remove_filter_rewrites(
    type_name: str, index: int, max_index: int, registry: TypeRegistry
) -> list[TokenRewrite]:
    """
    Rewrite rules removing the filter at ``index`` of a type.

    The 3 params at ``index`` are dropped and every filter after it, up to
    ``max_index``, moves one index down, so indexes stay contiguous.
    """
    config = registry.get(type_name)
    rewrites = [TokenRewrite(config.token(role, index)) for role in FILTER_ROLES]

    for i in range(index + 1, max_index + 1):
        for role in FILTER_ROLES:
            rewrites.append(TokenRewrite(config.token(role, i), config.token(role, i - 1)))

    return rewrites


def apply_rewrites(named: dict[str, str], rewrites: list[TokenRewrite]) -> dict[str, str]:
    rules = {rewrite.source: rewrite.target for rewrite in rewrites}
    rewritten: dict[str, str] = {}

    for key, value in named.items():
        if key not in rules:
            rewritten[key] = value
        elif rules[key] is not None:
            rewritten[rules[key]] = value

    return rewritten


def add_filter_tokens(type_name: str, next_index: int, registry: TypeRegistry) -> dict[str, str]:
    """Empty params extending a URL with a blank filter at ``next_index``."""
    config = registry.get(type_name)

    return {config.token(role, next_index): "" for role in FILTER_ROLES}


def remove_filter_url(
    url: str | NamedUrl | RequestContext,
    type_name: str,
    index: int,
    registry: TypeRegistry,
    max_index: int | None = None,
) -> str:
    target = as_named_url(url)

    if max_index is None:
        max_index = decode_filters(target.named, registry).max_index(type_name)

        if max_index is None:
            max_index = index

    target.named = apply_rewrites(target.named, remove_filter_rewrites(type_name, index, max_index, registry))

    return target.build()


def add_filter_url(
    url: str | NamedUrl | RequestContext,
    type_name: str,
    registry: TypeRegistry,
    next_index: int | None = None,
) -> str:
    target = as_named_url(url)

    if next_index is None:
        max_index = decode_filters(target.named, registry).max_index(type_name)
        next_index = 0 if max_index is None else max_index + 1

    target.named.update(add_filter_tokens(type_name, next_index, registry))

    return target.build()


def form_action_url(
    url: str | NamedUrl | RequestContext,
    add_filter_param: str = DEFAULT_ADD_FILTER_PARAM,
) -> str:
    """The current URL without the add filter directive, used as filter form action."""
    return as_named_url(url).without(add_filter_param).build()


__all__ = [
    "TokenRewrite",
    "remove_filter_rewrites",
    "apply_rewrites",
    "add_filter_tokens",
    "remove_filter_url",
    "add_filter_url",
    "form_action_url",
]
