# Copyright 2026-present Kensho Technologies, LLC.
from typing import Callable, Optional

from .cost_model import Number
from .exceptions import ComplexityExceededError, NodesType


# Called with the computed cost of every validated operation, whether accepted or not.
OnCostCallback = Callable[[Number], None]

# Called with (cost, max_cost) to produce the message of the error rejecting an operation.
ErrorMessageFormatter = Callable[[Number, Number], str]


def format_complexity_error_message(cost: Number, max_cost: Number) -> str:
    """Return the default message for a query whose cost exceeds the limit."""
    return "query with cost {} exceeds complexity limit {}".format(cost, max_cost)


def enforce_budget(
    cost: Number,
    max_cost: Number,
    on_cost: Optional[OnCostCallback] = None,
    format_error_message: Optional[ErrorMessageFormatter] = None,
    nodes: NodesType = None,
) -> Optional[ComplexityExceededError]:
    """Report the cost of a query, and return the error rejecting it if it is over budget.

    Args:
        cost: the computed cost of the query
        max_cost: the largest cost an accepted query may have
        on_cost: optional callback, always called with the cost before comparing to the budget
        format_error_message: optional function (cost, max_cost) -> str producing the message of
                              the error. Defaults to format_complexity_error_message.
        nodes: optional AST node(s) to attach to the error, for locating it in the query

    Returns:
        ComplexityExceededError if cost > max_cost, and None otherwise
    """
    if on_cost is not None:
        on_cost(cost)

    if cost <= max_cost:
        return None

    if format_error_message is None:
        format_error_message = format_complexity_error_message
    message = format_error_message(cost, max_cost)
    return ComplexityExceededError(message, cost, max_cost, nodes=nodes)
