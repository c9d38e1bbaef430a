# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from urlfilter.types import UnknownOperatorError


class ValueFormat(str, Enum):
    """How a filter value is wrapped before it is bound to a condition."""

    EXACT = "exact"
    WILDCARD_PREFIX = "wildcard_prefix"
    WILDCARD_SUFFIX = "wildcard_suffix"
    WILDCARD_BOTH = "wildcard_both"

    @property
    def template(self) -> str:
        return VALUE_FORMAT_TEMPLATES[self]

    def apply(self, value: str) -> str:
        if self is ValueFormat.WILDCARD_PREFIX:
            return f"%{value}"

        if self is ValueFormat.WILDCARD_SUFFIX:
            return f"{value}%"

        if self is ValueFormat.WILDCARD_BOTH:
            return f"%{value}%"

        return value


VALUE_FORMAT_TEMPLATES = {
    ValueFormat.EXACT: "%s",
    ValueFormat.WILDCARD_PREFIX: "%%%s",
    ValueFormat.WILDCARD_SUFFIX: "%s%%",
    ValueFormat.WILDCARD_BOTH: "%%%s%%",
}


@dataclass(frozen=True)
class OperatorDef:
    id: str
    label: str
    condition_operator: str
    value_format: ValueFormat = ValueFormat.EXACT

    def format_value(self, value: str) -> str:
        return self.value_format.apply(value)


EQUALS = "equals"


DEFAULT_OPERATORS = (
    OperatorDef(EQUALS, "Equals", ""),
    OperatorDef("doesNotEqual", "Does not equal", " !="),
    OperatorDef("lessThan", "Less than", " <"),
    OperatorDef("lessThanOrEqual", "Less than or equal", " <="),
    OperatorDef("greaterThan", "Greater than", " >"),
    OperatorDef("greaterThanOrEqual", "Greater than or equal", " >="),
    OperatorDef("contains", "Contains", " LIKE", ValueFormat.WILDCARD_BOTH),
    OperatorDef("startsWith", "Starts with", " LIKE", ValueFormat.WILDCARD_SUFFIX),
    OperatorDef("endsWith", "Ends with", " LIKE", ValueFormat.WILDCARD_PREFIX),
)


class OperatorRegistry:
    """
    Immutable catalog of the comparison operators a filter may use.

    Operators keep their declaration order, which is the order used for the
    default operator options of a filter type.
    """

    def __init__(self, operators: tuple[OperatorDef, ...] = DEFAULT_OPERATORS):
        operators_map: dict[str, OperatorDef] = {}

        for operator in operators:
            if operator.id in operators_map:
                raise ValueError(f"Operator '{operator.id}' is declared twice")

            operators_map[operator.id] = operator

        self._operators = operators_map

    def get(self, operator_id: str) -> OperatorDef:
        try:
            return self._operators[operator_id]
        except KeyError:
            raise UnknownOperatorError(f"Operator '{operator_id}' is not supported")

    def all(self) -> tuple[OperatorDef, ...]:
        return tuple(self._operators.values())

    def ids(self) -> frozenset[str]:
        return frozenset(self._operators)

    def options(self) -> dict[str, str]:
        return {operator.id: operator.label for operator in self._operators.values()}

    def __contains__(self, operator_id: object) -> bool:
        return operator_id in self._operators

    def __iter__(self) -> Iterator[OperatorDef]:
        return iter(self._operators.values())

    def __len__(self) -> int:
        return len(self._operators)


default_operators = OperatorRegistry()


__all__ = [
    "ValueFormat",
    "VALUE_FORMAT_TEMPLATES",
    "OperatorDef",
    "EQUALS",
    "DEFAULT_OPERATORS",
    "OperatorRegistry",
    "default_operators",
]
