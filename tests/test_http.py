"""Tests for the Starlette and FastAPI adapters."""

import asyncio

from urllib.parse import unquote, urlencode

import pytest

from fastapi import HTTPException
from starlette.requests import Request
from starlette.responses import RedirectResponse

from urlfilter.component import FilterComponent, FilterState
from urlfilter.config import FilterSettings
from urlfilter.http import (
    FilterStateDepends,
    StarletteRequestContext,
    filter_response,
    read_posted_filters,
)


def make_request(path: str, method: str = "GET", form: list[tuple[str, str]] | None = None, query: str = "") -> Request:
    """Request for an encoded path, decoded into scope["path"] like ASGI servers do."""
    body = urlencode(form or []).encode()
    headers = []

    if method != "GET":
        headers = [
            (b"content-type", b"application/x-www-form-urlencoded"),
            (b"content-length", str(len(body)).encode()),
        ]

    scope = {
        "type": "http",
        "method": method,
        "scheme": "http",
        "server": ("testserver", 80),
        "path": unquote(path),
        "raw_path": path.encode(),
        "query_string": query.encode(),
        "root_path": "",
        "headers": headers,
    }
    sent = False

    async def receive():
        nonlocal sent

        if sent:
            return {"type": "http.disconnect"}

        sent = True

        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


@pytest.fixture
def component():
    return FilterComponent.from_settings(FilterSettings())


def test_request_context():
    context = StarletteRequestContext(make_request("/posts/Ff0:Post.title/page:2", query="lang=en"))

    assert context.named_params() == {"Ff0": "Post.title", "page": "2"}
    assert context.url_with({"sort": "id"}) == "/posts/sort:id?lang=en"


def test_request_context_keeps_encoded_values():
    context = StarletteRequestContext(make_request("/posts/Ff0:Post.title/Fo0:equals/Fv0:a%2Fb/Fv1:%2541"))

    assert context.named_params() == {"Ff0": "Post.title", "Fo0": "equals", "Fv0": "a/b", "Fv1": "%41"}


def test_request_context_without_raw_path():
    request = make_request("/posts/Ff0:Post.title/Fo0:equals/Fv0:cake")
    del request.scope["raw_path"]

    context = StarletteRequestContext(request)

    assert context.named_params() == {"Ff0": "Post.title", "Fo0": "equals", "Fv0": "cake"}


def test_read_posted_filters():
    request = make_request(
        "/posts",
        "POST",
        [("data[F][0][f]", "Post.title"), ("data[F][0][o]", "contains"), ("data[F][0][v]", "cake")],
    )

    posted = asyncio.run(read_posted_filters(request))

    assert posted == {"F": {"0": {"f": "Post.title", "o": "contains", "v": "cake"}}}


def test_read_posted_filters_ignores_get():
    assert asyncio.run(read_posted_filters(make_request("/posts"))) == {}


def test_filter_response_redirects(component):
    request = make_request(
        "/posts/page:3",
        "POST",
        [("data[F][0][f]", "Post.title"), ("data[F][0][o]", "equals"), ("data[F][0][v]", "cake"), ("data[F][ADD]", "+")],
    )

    response = asyncio.run(filter_response(request, component))

    assert isinstance(response, RedirectResponse)
    assert response.status_code == 303
    assert response.headers["location"] == "/posts/Ff0:Post.title/Fo0:equals/Fv0:cake/add_filter:F"


def test_filter_response_stores_state(component):
    request = make_request("/posts/Ff0:Post.title/Fo0:equals/Fv0:cake")

    assert asyncio.run(filter_response(request, component, "Post")) is None

    state = request.state.filters

    assert isinstance(state, FilterState)
    assert state.add_form_defaults == {"title": "cake"}


def test_dependency_returns_state(component):
    dependency = FilterStateDepends(component, "Post").dependency

    state = asyncio.run(dependency(make_request("/posts/Ff0:Post.id/Fo0:greaterThan/Fv0:3")))

    assert state.conditions.for_entity("Post")[0].as_dict() == {"Post.id >": "3"}


def test_dependency_redirects_posted_filters(component):
    dependency = FilterStateDepends(component).dependency
    request = make_request(
        "/posts", "POST", [("data[F][0][f]", "Post.id"), ("data[F][0][o]", "equals"), ("data[F][0][v]", "1")]
    )

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(dependency(request))

    assert excinfo.value.status_code == 303
    assert excinfo.value.headers["Location"] == "/posts/Ff0:Post.id/Fo0:equals/Fv0:1"


def test_encoded_values_survive_the_redirect(component):
    posted = [
        ("data[F][0][f]", "Post.title"), ("data[F][0][o]", "equals"), ("data[F][0][v]", "a/b"),
        ("data[F][1][f]", "Post.slug"), ("data[F][1][o]", "equals"), ("data[F][1][v]", "x:y"),
        ("data[F][2][f]", "Post.body"), ("data[F][2][o]", "contains"), ("data[F][2][v]", "50%"),
        ("data[F][3][f]", "Post.code"), ("data[F][3][o]", "equals"), ("data[F][3][v]", "%41"),
    ]
    response = asyncio.run(filter_response(make_request("/posts", "POST", posted), component))
    location = response.headers["location"]

    assert "Fv0:a%2Fb" in location
    assert "Fv3:%2541" in location

    request = make_request(location)

    assert asyncio.run(filter_response(request, component, "Post")) is None

    state = request.state.filters

    assert state.conditions.to_dict()["conditions"] == {
        "Post": [
            {"Post.title": "a/b"},
            {"Post.slug": "x:y"},
            {"Post.body LIKE": "%50%%"},
            {"Post.code": "%41"},
        ]
    }
    assert state.add_form_defaults == {"title": "a/b", "slug": "x:y", "code": "%41"}
