# Copyright Krafter SAS <developer@krafter.io>
# MIT License (see LICENSE file).

import logging

from typing import Iterable

from urlfilter.operators import EQUALS, OperatorRegistry, default_operators
from urlfilter.types import (
    ConditionDescriptor,
    FilterConditions,
    FilterEntry,
    UnknownOperatorError,
)


logger = logging.getLogger("urlfilter.builder")


FIELD_SEPARATOR = "."


def split_field_key(field_key: str) -> tuple[str, str]:
    entity, _, field = field_key.partition(FIELD_SEPARATOR)

    return entity, field


def build_condition(entry: FilterEntry, operators: OperatorRegistry = default_operators) -> ConditionDescriptor:
    """
    Build the query condition of a single valid entry.

    The key is the qualified field followed by the operator, e.g.
    ``Post.title LIKE``, the value is formatted by the operator, e.g.
    ``%cake%``. Values are not escaped, they must be bound by the query layer.

    Raises:
        UnknownOperatorError: If the entry's operator is not registered
    """
    operator = operators.get(entry.operator_id)
    entity, _ = split_field_key(entry.field_key)

    return ConditionDescriptor(
        target_entity=entity,
        key=f"{entry.field_key}{operator.condition_operator}",
        value=operator.format_value(entry.value),
    )


def build_conditions(
    entries: Iterable[FilterEntry],
    operators: OperatorRegistry = default_operators,
    primary_entity: str | None = None,
    equality_operator: str = EQUALS,
) -> FilterConditions:
    """
    Compile validated entries into conditions grouped by entity, and into the
    defaults of an add form.

    Args:
        entries: Validated filter entries, in encounter order
        operators: The operator registry
        primary_entity: The entity listed by the current request
        equality_operator: The operator whose filters become add form defaults

    Returns:
        The conditions by entity and the ``field -> value`` defaults taken from
        equality filters on the primary entity, last one wins
    """
    result = FilterConditions()

    for entry in entries:
        try:
            condition = build_condition(entry, operators)
        except UnknownOperatorError:
            logger.debug(f"Skipping filter {entry.type}[{entry.index}] with unknown operator '{entry.operator_id}'")
            continue

        result.conditions.setdefault(condition.target_entity, []).append(condition)

        entity, field = split_field_key(entry.field_key)

        if primary_entity and entity == primary_entity and entry.operator_id == equality_operator:
            result.defaults[field] = entry.value

    return result


__all__ = [
    "FIELD_SEPARATOR",
    "split_field_key",
    "build_condition",
    "build_conditions",
]
