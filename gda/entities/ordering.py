##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
In-memory ordering of entities for backends that cannot sort themselves.
"""
from functools import cmp_to_key
from typing import Any, Dict, List, Type

from gda.entities.entity import Entity
from gda.exceptions import GdaError


def _compare_values(first: Any, second: Any, field: str, error_class: Type[GdaError]) -> int:
    if isinstance(first, (list, tuple, dict, set)) or isinstance(second, (list, tuple, dict, set)):
        raise error_class(f"Ordering by the composite field '{field}' is not supported")
    try:
        if first < second:
            return -1
        if first > second:
            return 1
    except TypeError as exc:
        raise error_class(f"Values of field '{field}' cannot be compared: {first!r}, {second!r}") from exc
    return 0


def sort_entities(
    entities: List[Entity], order: Dict[str, bool], error_class: Type[GdaError] = GdaError
) -> List[Entity]:
    """
    Sort entities by several fields.

    Missing values come before present values whatever the direction. Present
    values are compared natively and the comparison is reversed for descending
    fields. Ties fall through to the next field.

    Args:
        entities: The entities to sort.
        order: Field names mapped to True for ascending or False for descending order.
        error_class: The error raised for unknown fields and values that cannot be ordered.

    Returns:
        A new, sorted list.
    """
    if not order or not entities:
        return list(entities)

    for field in order:
        if not all(entity.has_field(field) for entity in entities):
            raise error_class(f"Cannot order by unknown field '{field}'")

    def compare(first: Entity, second: Entity) -> int:
        for field, ascending in order.items():
            first_value = first.get_value(field)
            second_value = second.get_value(field)
            if first_value is None and second_value is None:
                continue
            if first_value is None:
                return -1
            if second_value is None:
                return 1
            result = _compare_values(first_value, second_value, field, error_class)
            if result:
                return result if ascending else -result
        return 0

    return sorted(entities, key=cmp_to_key(compare))
