# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

import re

from typing import Any, Iterable


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

_FORM_NAME = re.compile(r"^(?P<root>[^\[\]]+)(?P<keys>(\[[^\[\]]*\])*)$")

_FORM_KEY = re.compile(r"\[([^\[\]]*)\]")


def underscore(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def humanize(name: str) -> str:
    """
    Human readable label from a CamelCased or underscored name.

    Example:
        ``humanize("BlogPost")`` and ``humanize("blog_post")`` both give
        ``"Blog Post"``.
    """
    words = [word for word in underscore(name).split("_") if word]

    return " ".join(word.capitalize() for word in words)


def to_index(key: Any) -> int | None:
    if isinstance(key, bool):
        return None

    if isinstance(key, int):
        return key if key >= 0 else None

    if isinstance(key, str) and key.isascii() and key.isdigit():
        return int(key)

    return None


def nest_form_data(items: Iterable[tuple[str, Any]], prefix: str = "data") -> dict[str, Any]:
    """
    Nest flat form field names into dictionaries.

    ``data[Post][0][f]`` and ``Post[0][f]`` both land in
    ``{"Post": {"0": {"f": value}}}``. Names without brackets are kept at the
    root. When a name is repeated the last value wins.
    """
    nested: dict[str, Any] = {}

    for name, value in items:
        match = _FORM_NAME.match(name)

        if not match:
            continue

        keys = [match.group("root")] + _FORM_KEY.findall(match.group("keys"))

        if prefix and keys[0] == prefix and len(keys) > 1:
            keys = keys[1:]

        if any(key == "" for key in keys):
            continue

        current = nested

        for key in keys[:-1]:
            child = current.get(key)

            if not isinstance(child, dict):
                child = {}
                current[key] = child

            current = child

        current[keys[-1]] = value

    return nested


__all__ = [
    "underscore",
    "humanize",
    "to_index",
    "nest_form_data",
]
