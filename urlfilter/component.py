# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

import logging

from dataclasses import dataclass, field
from typing import Any, Mapping

from urlfilter.builder import build_conditions
from urlfilter.codec import (
    RejectedEntry,
    decode_filters,
    encode_filters,
    filters_in_post,
    validate_filters,
)
from urlfilter.config import FilterSettings
from urlfilter.form import FilterForm, build_filter_form, merge_form_data
from urlfilter.operators import OperatorRegistry, default_operators
from urlfilter.registry import TypeRegistry
from urlfilter.schema import SchemaProvider
from urlfilter.types import FilterConditions, FilterEntry, FilterSet
from urlfilter.url import NamedUrl, RequestContext, as_named_url


logger = logging.getLogger("urlfilter.component")


@dataclass
class FilterState:
    filter_set: FilterSet = field(default_factory=FilterSet)
    valid: list[FilterEntry] = field(default_factory=list)
    rejected: list[RejectedEntry] = field(default_factory=list)
    conditions: FilterConditions = field(default_factory=FilterConditions)
    form: FilterForm | None = None

    @property
    def add_form_defaults(self) -> dict[str, str]:
        return self.conditions.defaults

    def form_data(self, data: dict[str, Any] | None = None) -> dict[str, Any]:
        """Existing form data with the decoded filters merged over it."""
        return merge_form_data(data, self.form.data if self.form else {})


@dataclass
class FilterResult:
    redirect_url: str | None = None
    state: FilterState | None = None

    @property
    def is_redirect(self) -> bool:
        return self.redirect_url is not None


class FilterComponent:
    """
    Request level entry point of URL filters.

    When filters are posted, the request should be redirected to the URL
    holding them. Otherwise the filters in the URL are decoded, validated and
    compiled into conditions for the listed entity.
    """

    def __init__(self, registry: TypeRegistry, settings: FilterSettings | None = None):
        self.registry = registry
        self.settings = settings or FilterSettings()

    @classmethod
    def from_settings(
        cls,
        settings: FilterSettings,
        schema: SchemaProvider | None = None,
        operators: OperatorRegistry = default_operators,
    ) -> "FilterComponent":
        return cls(TypeRegistry.from_settings(settings, operators, schema), settings)

    @property
    def operators(self) -> OperatorRegistry:
        return self.registry.operators

    def filters_in_post(self, posted: Mapping[str, Any] | None) -> bool:
        return filters_in_post(posted, self.registry)

    def redirect_url(self, posted: Mapping[str, Any] | None, url: str | NamedUrl | RequestContext) -> str:
        return encode_filters(
            posted,
            url,
            self.registry,
            self.settings.pagination_params,
            self.settings.add_filter_param,
        )

    def extract(self, url: str | NamedUrl | RequestContext) -> FilterSet:
        return decode_filters(as_named_url(url).named, self.registry)

    def apply(self, filter_set: FilterSet, primary_entity: str | None = None) -> FilterState:
        valid, rejected = validate_filters(filter_set, self.registry, primary_entity)
        conditions = build_conditions(
            valid,
            self.operators,
            primary_entity,
            self.settings.equality_operator,
        )

        if rejected:
            logger.debug(f"{len(rejected)} filter(s) dropped from the URL")

        return FilterState(
            filter_set=filter_set,
            valid=valid,
            rejected=rejected,
            conditions=conditions,
        )

    def form(
        self,
        url: str | NamedUrl | RequestContext,
        filter_set: FilterSet | None = None,
        primary_entity: str | None = None,
    ) -> FilterForm:
        return build_filter_form(
            self.registry,
            url,
            filter_set,
            primary_entity,
            self.settings.add_filter_param,
        )

    def process(
        self,
        url: str | NamedUrl | RequestContext,
        posted: Mapping[str, Any] | None = None,
        primary_entity: str | None = None,
    ) -> FilterResult:
        if not self.settings.auto:
            return FilterResult()

        if self.filters_in_post(posted):
            return FilterResult(redirect_url=self.redirect_url(posted, url))

        filter_set = self.extract(url)
        state = self.apply(filter_set, primary_entity) if filter_set else FilterState()
        state.form = self.form(url, filter_set, primary_entity)

        return FilterResult(state=state)


__all__ = [
    "FilterState",
    "FilterResult",
    "FilterComponent",
]
