# Copyright 2026-present Kensho Technologies, LLC.
"""Query cost estimator.

Purpose
=======

Some GraphQL queries are too expensive to execute: a query selecting lists nested within lists
can ask for a result whose size grows exponentially in the size of the query itself. If such
queries are executed, they can overload the server and every system it depends on.

To prevent this, we price each query before executing it, and reject queries whose price exceeds
a configured budget.

Pricing
=======

Every selected field has a cost of its own:
- a leaf (scalar or enum) field costs scalar_cost;
- a composite (object, interface or union) field costs object_cost, not counting the cost of
  its sub-selections;
- the schema may override either of these for a particular field.

A field's own cost is then multiplied by the factors of the field itself and of every field it is
nested in. The factor of a list-typed field is list_factor, and the factor of any other field is 1,
unless the schema overrides it. Since each list level can multiply the number of results, factors
compound: a leaf nested inside three lists costs scalar_cost * list_factor ** 3.

Example:
    With scalar_cost=1, object_cost=1 and list_factor=10, and given the query
    {
        arr {            # object field:               1
            arr2 {       # list of objects:       1 * 10 = 10
                name     # leaf inside one list:  1 * 10 = 10
                id       # leaf inside one list:  1 * 10 = 10
            }
        }
    }
    the total cost is 1 + 10 + 10 + 10 = 31.

The root of the operation (the query, mutation or subscription type) costs nothing by itself.
"""
from typing import List, Sequence, Tuple

from .cost_model import CostModel, CostReport, FieldCost, FieldPath, Number
from .selection_tree import CompositeSelection, LeafSelection, SelectionNode


def get_cost_factor(selection: SelectionNode, cost_model: CostModel) -> Number:
    """Return the factor the selection applies to its own cost and to that of its sub-selections."""
    if selection.cost_factor is not None:
        return selection.cost_factor
    elif selection.is_list:
        if selection.is_introspection:
            return cost_model.introspection_list_factor
        return cost_model.list_factor
    else:
        return 1


def get_own_cost(selection: SelectionNode, cost_model: CostModel) -> Number:
    """Return the cost of the selection, exclusive of its sub-selections, before any factors."""
    if selection.cost is not None:
        return selection.cost
    elif isinstance(selection, LeafSelection):
        return cost_model.scalar_cost
    elif isinstance(selection, CompositeSelection):
        return cost_model.object_cost
    else:
        raise AssertionError(
            "Unexpected selection type received: {} {}".format(type(selection), selection)
        )


def estimate_cost(
    root_selections: Sequence[SelectionNode],
    cost_model: CostModel,
    include_field_costs: bool = False,
) -> CostReport:
    """Estimate the cost of the given selection tree.

    The walk always runs to completion, even once the running total exceeds the budget, so that
    the reported cost is exact and does not depend on the traversal order.

    Args:
        root_selections: the root fields of the operation, as returned by build_selection_tree
        cost_model: CostModel whose weights to use
        include_field_costs: whether to record the cost of each individual field in the report

    Returns:
        CostReport with the total cost, and if requested, the per-field costs in document order
    """
    total: Number = 0
    field_costs: List[FieldCost] = []

    # Iterative depth-first walk with an explicit stack of (selection, inherited factor, path),
    # since recursion depth would be under the control of whoever wrote the query.
    stack: List[Tuple[SelectionNode, Number, FieldPath]] = [
        (selection, 1, (selection.response_key,)) for selection in reversed(root_selections)
    ]
    while stack:
        selection, inherited_factor, path = stack.pop()

        factor = inherited_factor * get_cost_factor(selection, cost_model)
        own_cost = get_own_cost(selection, cost_model) * factor
        total += own_cost
        if include_field_costs:
            field_costs.append(FieldCost(path, own_cost))

        if isinstance(selection, CompositeSelection):
            for child in reversed(selection.children):
                child_path = path + (child.response_key,) if include_field_costs else path
                stack.append((child, factor, child_path))

    return CostReport(total=total, field_costs=tuple(field_costs))
