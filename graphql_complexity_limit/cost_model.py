# Copyright 2026-present Kensho Technologies, LLC.
from dataclasses import dataclass
from numbers import Real
from typing import Optional, Tuple, Union

from .exceptions import ConfigurationError


Number = Union[int, float]

DEFAULT_MAX_COST = 1000
DEFAULT_SCALAR_COST = 1
DEFAULT_OBJECT_COST = 0
DEFAULT_LIST_FACTOR = 10
DEFAULT_INTROSPECTION_LIST_FACTOR = 2
DEFAULT_MAX_SELECTIONS = 10000


def validate_cost(name: str, value: Number) -> None:
    """Raise ConfigurationError unless the value is a non-negative number."""
    # bool is a subclass of int, but a True/False weight is always a configuration mistake.
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ConfigurationError(
            'Expected "{}" to be a number, but got {} of type {}.'.format(name, value, type(value))
        )
    if value != value:  # NaN
        raise ConfigurationError('Expected "{}" to be a number, but got NaN.'.format(name))
    if value < 0:
        raise ConfigurationError(
            'Expected "{}" to be non-negative, but got {}.'.format(name, value)
        )


def validate_limit(name: str, value: int) -> None:
    """Raise ConfigurationError unless the value is an int no smaller than 1."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            'Expected "{}" to be an int, but got {} of type {}.'.format(name, value, type(value))
        )
    if value < 1:
        raise ConfigurationError('Expected "{}" to be at least 1, but got {}.'.format(name, value))


def validate_cost_factor(name: str, value: Number) -> None:
    """Raise ConfigurationError unless the value is a number no smaller than 1."""
    validate_cost(name, value)
    if value < 1:
        raise ConfigurationError(
            'Expected "{}" to be at least 1, but got {}. A factor below 1 would make selections '
            "nested inside lists cheaper than the same selections outside of them.".format(
                name, value
            )
        )


@dataclass(frozen=True)
class CostModel:
    """The weights used to price a query, together with the limits the query must respect.

    Attributes:
        scalar_cost: cost of each selected leaf (scalar or enum typed) field
        object_cost: cost of each selected composite field, exclusive of its sub-selections
        list_factor: factor applied to the cost of a list-typed field and everything nested in it,
                     compounding once per list level
        introspection_list_factor: the list_factor used for list-typed fields of the
                                   introspection schema (__Schema, __Type, etc.)
        max_cost: the largest total cost an accepted query may have
        max_depth: if set, the deepest field nesting an accepted query may have; top-level
                   fields are at depth 1, and fragments do not add depth
        max_selections: the most selections an accepted query may expand into, counting every
                        field, inline fragment and fragment spread once per time it is reached
                        while expanding fragments
    """

    scalar_cost: Number = DEFAULT_SCALAR_COST
    object_cost: Number = DEFAULT_OBJECT_COST
    list_factor: Number = DEFAULT_LIST_FACTOR
    introspection_list_factor: Number = DEFAULT_INTROSPECTION_LIST_FACTOR
    max_cost: Number = DEFAULT_MAX_COST
    max_depth: Optional[int] = None
    max_selections: int = DEFAULT_MAX_SELECTIONS

    def __post_init__(self) -> None:
        """Validate the weights, raising ConfigurationError if any of them is invalid."""
        validate_cost("scalar_cost", self.scalar_cost)
        validate_cost("object_cost", self.object_cost)
        validate_cost_factor("list_factor", self.list_factor)
        validate_cost_factor("introspection_list_factor", self.introspection_list_factor)
        validate_cost("max_cost", self.max_cost)

        if self.max_depth is not None:
            validate_limit("max_depth", self.max_depth)
        validate_limit("max_selections", self.max_selections)


# A path of response keys (aliases or field names) from the operation root to a selected field.
FieldPath = Tuple[str, ...]


@dataclass(frozen=True)
class FieldCost:
    """The cost a single selected field adds to the query, exclusive of its sub-selections."""

    path: FieldPath
    cost: Number


@dataclass(frozen=True)
class CostReport:
    """The estimated cost of a query, with the per-field breakdown in document order."""

    total: Number
    field_costs: Tuple[FieldCost, ...] = ()
