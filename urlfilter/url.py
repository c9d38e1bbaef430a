# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable
from urllib.parse import quote, unquote, urlsplit, urlunsplit


NAMED_SEPARATOR = ":"


@runtime_checkable
class RequestContext(Protocol):
    def named_params(self) -> dict[str, str]: ...

    def url_with(self, named: dict[str, str]) -> str: ...


@dataclass
class NamedUrl:
    """
    URL whose path carries named params as ``/key:value`` segments.

    Example:
        ``/posts/index/Ff0:Post.title/page:2`` has the pass segments
        ``["posts", "index"]`` and the named params
        ``{"Ff0": "Post.title", "page": "2"}``.
    """

    segments: list[str] = field(default_factory=list)
    named: dict[str, str] = field(default_factory=dict)
    query: str = ""
    origin: str = ""

    @classmethod
    def parse(cls, url: str) -> "NamedUrl":
        parts = urlsplit(url)
        origin = urlunsplit((parts.scheme, parts.netloc, "", "", "")) if parts.netloc else ""
        segments: list[str] = []
        named: dict[str, str] = {}

        for segment in parts.path.split("/"):
            if not segment:
                continue

            if NAMED_SEPARATOR in segment:
                key, value = segment.split(NAMED_SEPARATOR, 1)

                if key:
                    named[unquote(key)] = unquote(value)
                    continue

            segments.append(unquote(segment))

        return cls(segments=segments, named=named, query=parts.query, origin=origin)

    def build(self) -> str:
        parts = [quote(segment, safe="") for segment in self.segments]
        parts += [
            f"{quote(key, safe='')}{NAMED_SEPARATOR}{quote(str(value), safe='')}"
            for key, value in self.named.items()
        ]
        url = self.origin + "/" + "/".join(parts)

        if self.query:
            url += "?" + self.query

        return url

    def copy(self) -> "NamedUrl":
        return NamedUrl(
            segments=list(self.segments),
            named=dict(self.named),
            query=self.query,
            origin=self.origin,
        )

    def named_params(self) -> dict[str, str]:
        return dict(self.named)

    def url_with(self, named: dict[str, str]) -> str:
        url = self.copy()
        url.named = dict(named)

        return url.build()

    def without(self, *keys: str) -> "NamedUrl":
        url = self.copy()

        for key in keys:
            url.named.pop(key, None)

        return url

    def __str__(self) -> str:
        return self.build()


def as_named_url(url: "str | NamedUrl | RequestContext") -> NamedUrl:
    if isinstance(url, NamedUrl):
        return url.copy()

    if isinstance(url, str):
        return NamedUrl.parse(url)

    return NamedUrl.parse(url.url_with(url.named_params()))


__all__ = [
    "NAMED_SEPARATOR",
    "RequestContext",
    "NamedUrl",
    "as_named_url",
]
