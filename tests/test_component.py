"""Tests for the request level filter component."""

from urlfilter.component import FilterComponent, FilterResult, FilterState
from urlfilter.config import FilterSettings


def make_component(schema=None, **settings) -> FilterComponent:
    return FilterComponent.from_settings(FilterSettings(**settings), schema)


def test_posted_filters_redirect():
    component = make_component()
    posted = {"F": {"0": {"f": "Post.title", "o": "contains", "v": "cake"}}}

    result = component.process("/posts/page:2", posted, "Post")

    assert result.is_redirect
    assert result.redirect_url == "/posts/Ff0:Post.title/Fo0:contains/Fv0:cake"
    assert result.state is None


def test_unrelated_post_does_not_redirect():
    component = make_component()

    result = component.process("/posts", {"Post": {"title": "New post"}}, "Post")

    assert not result.is_redirect
    assert result.state.valid == []


def test_url_filters_become_conditions(schema):
    component = make_component(schema)

    result = component.process(
        "/posts/Ff0:Post.title/Fo0:contains/Fv0:cake/Ff1:Category.id/Fo1:equals/Fv1:3"
        "/Ff2:Post.id/Fo2:equals/Fv2:7/Ff3:Post.password/Fo3:equals/Fv3:x",
        primary_entity="Post",
    )
    state = result.state

    assert state.conditions.to_dict() == {
        "conditions": {
            "Post": [{"Post.title LIKE": "%cake%"}, {"Post.id": "7"}],
            "Category": [{"Category.id": "3"}],
        },
        "defaults": {"id": "7"},
    }
    assert state.add_form_defaults == {"id": "7"}
    assert [item.entry.field_key for item in state.rejected] == ["Post.password"]
    assert state.form.data["F"][3] == {"f": "Post.password", "o": "equals", "v": "x"}


def test_form_is_built_without_filters():
    component = make_component(types=["Simple"])

    state = component.process("/posts/add_filter:Simple").state

    assert state.conditions.to_dict() == {"conditions": {}, "defaults": {}}
    assert state.form.action_url == "/posts"
    assert state.form.indexes("Simple") == [0, 1]


def test_custom_codes_and_types():
    component = make_component(types={"Order": {"params": {"field": "mf", "operator": "op", "value": "val"}}})
    posted = {"Order": {"0": {"mf": "Order.total", "op": "greaterThan", "val": "100"}}}

    url = component.process("/orders/page:9/sort:date", posted).redirect_url

    assert url == "/orders/sort:date/Ordermf0:Order.total/Orderop0:greaterThan/Orderval0:100"

    state = component.process(url, primary_entity="Order").state

    assert state.conditions.for_entity("Order")[0].as_dict() == {"Order.total >": "100"}


def test_auto_disabled():
    component = make_component(auto=False)

    result = component.process("/posts/Ff0:Post.title/Fo0:equals/Fv0:x", {"F": {}})

    assert result == FilterResult()
    assert not result.is_redirect


def test_manual_steps():
    component = make_component(auto=False)
    filter_set = component.extract("/posts/Ff0:Post.title/Fo0:equals/Fv0:cake")

    state = component.apply(filter_set, "Post")

    assert state.add_form_defaults == {"title": "cake"}
    assert state.form is None


def test_form_data_merges_filters():
    state = FilterState()

    assert state.form_data({"Post": {"title": "x"}}) == {"Post": {"title": "x"}}


def test_pagination_settings_are_used():
    component = make_component(pagination_params=["page", "limit"])
    posted = {"F": {"0": {"f": "Post.id", "o": "equals", "v": "1"}}}

    assert component.redirect_url(posted, "/posts/limit:10/page:2") == "/posts/Ff0:Post.id/Fo0:equals/Fv0:1"
