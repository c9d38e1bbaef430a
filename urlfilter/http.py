# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

import logging

from typing import Any
from urllib.parse import quote

from fastapi import Depends, HTTPException
from starlette.requests import Request
from starlette.responses import RedirectResponse

from urlfilter.component import FilterComponent, FilterState
from urlfilter.url import NamedUrl
from urlfilter.utils import nest_form_data


logger = logging.getLogger("urlfilter.http")


POST_METHODS = ("POST", "PUT", "PATCH")


class StarletteRequestContext:
    """Named params of the URL of a Starlette request."""

    def __init__(self, request: Request):
        self.request = request
        raw_path = request.scope.get("raw_path")

        # scope["path"] is percent-decoded, raw_path is not
        if raw_path:
            url = raw_path.decode("latin-1").split("?", 1)[0]
        else:
            url = quote(request.url.path, safe="/:")

        if request.url.query:
            url += "?" + request.url.query

        self.url = NamedUrl.parse(url)

    def named_params(self) -> dict[str, str]:
        return self.url.named_params()

    def url_with(self, named: dict[str, str]) -> str:
        return self.url.url_with(named)


async def read_posted_filters(request: Request) -> dict[str, Any]:
    if request.method not in POST_METHODS:
        return {}

    form = await request.form()

    return nest_form_data(form.multi_items())


async def filter_response(
    request: Request,
    component: FilterComponent,
    primary_entity: str | None = None,
) -> RedirectResponse | None:
    """
    Run the filter component for a request.

    Returns a redirect to the URL holding the posted filters, or ``None`` after
    storing the filter state on ``request.state.filters``.
    """
    posted = await read_posted_filters(request)
    result = component.process(StarletteRequestContext(request), posted, primary_entity)

    if result.is_redirect:
        logger.debug(f"Redirecting posted filters to {result.redirect_url}")

        return RedirectResponse(result.redirect_url, status_code=303)

    request.state.filters = result.state

    return None


def FilterStateDepends(
    component: FilterComponent, primary_entity: str | None = None
) -> Any:
    """Use in FastAPI signatures: filters: FilterState = FilterStateDepends(component, "Post")"""

    async def dep(request: Request) -> FilterState:
        response = await filter_response(request, component, primary_entity)

        if response is not None:
            raise HTTPException(status_code=303, headers={"Location": response.headers["location"]})

        return request.state.filters or FilterState()

    return Depends(dep)


__all__ = [
    "POST_METHODS",
    "StarletteRequestContext",
    "read_posted_filters",
    "filter_response",
    "FilterStateDepends",
]
