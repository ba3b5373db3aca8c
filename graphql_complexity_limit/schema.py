# Copyright 2026-present Kensho Technologies, LLC.
from typing import Any, NamedTuple, Optional

from graphql import (
    DirectiveLocation,
    GraphQLArgument,
    GraphQLDirective,
    GraphQLField,
    GraphQLFloat,
    GraphQLInterfaceType,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLSchema,
    is_introspection_type,
)
from graphql.execution.values import get_directive_values

from .cost_model import Number, validate_cost, validate_cost_factor
from .exceptions import ConfigurationError


# Extension keys that may be set on a GraphQLField to override its cost.
COST_EXTENSION_KEY = "cost"
COST_FACTOR_EXTENSION_KEY = "cost_factor"


# Constraints:
# - the value must be non-negative;
# - replaces the scalar or object cost of the field it is applied to, but does not affect the
#   cost of the field's sub-selections.
CostDirective = GraphQLDirective(
    name="cost",
    args={
        "value": GraphQLArgument(
            type_=GraphQLNonNull(GraphQLFloat),
            description="The cost of selecting this field, exclusive of its sub-selections.",
        ),
    },
    locations=[
        DirectiveLocation.FIELD_DEFINITION,
    ],
)


# Constraints:
# - the value must be at least 1;
# - replaces the list factor of the field it is applied to, and applies even to fields that are
#   not list-typed, e.g. connections that wrap a list inside an object type.
CostFactorDirective = GraphQLDirective(
    name="costFactor",
    args={
        "value": GraphQLArgument(
            type_=GraphQLNonNull(GraphQLFloat),
            description=(
                "The factor applied to the cost of this field and everything nested within it."
            ),
        ),
    },
    locations=[
        DirectiveLocation.FIELD_DEFINITION,
    ],
)


COMPLEXITY_DIRECTIVES = (
    CostDirective,
    CostFactorDirective,
)


# Prepend this to a schema SDL document to be able to use the directives on field definitions.
COMPLEXITY_DIRECTIVES_SCHEMA_TEXT = """
directive @cost(value: Float!) on FIELD_DEFINITION

directive @costFactor(value: Float!) on FIELD_DEFINITION
"""


class FieldCostOverrides(NamedTuple):
    """The schema-defined cost settings for a field, None where the CostModel applies."""

    cost: Optional[Number]
    cost_factor: Optional[Number]


NO_COST_OVERRIDES = FieldCostOverrides(None, None)


def _get_directive_value(directive: GraphQLDirective, field: GraphQLField) -> Optional[Any]:
    """Return the "value" argument of the directive on the field's SDL definition, if any."""
    if field.ast_node is None:
        return None
    directive_values = get_directive_values(directive, field.ast_node)
    if directive_values is None:
        return None
    return directive_values["value"]


def _get_override(
    field: GraphQLField, extension_key: str, directive: GraphQLDirective
) -> Optional[Number]:
    """Return the override from the field's extensions, falling back to the SDL directive."""
    extensions = field.extensions or {}
    if extension_key in extensions:
        return extensions[extension_key]
    return _get_directive_value(directive, field)


def get_field_cost_overrides(field: GraphQLField) -> FieldCostOverrides:
    """Return the cost and cost factor the schema defines for the given field.

    Overrides may be set either through the field's extensions, e.g.
    GraphQLField(GraphQLString, extensions={"cost": 5, "cost_factor": 2}), or through the
    @cost(value: ...) and @costFactor(value: ...) directives in schema SDL. If both are present,
    the extensions win.

    Args:
        field: GraphQLField definition from the schema

    Returns:
        FieldCostOverrides, with None for each setting the field does not override

    Raises:
        ConfigurationError if an override is not a valid cost or cost factor
    """
    cost = _get_override(field, COST_EXTENSION_KEY, CostDirective)
    cost_factor = _get_override(field, COST_FACTOR_EXTENSION_KEY, CostFactorDirective)

    if cost is None and cost_factor is None:
        return NO_COST_OVERRIDES

    if cost is not None:
        validate_cost("cost", cost)
    if cost_factor is not None:
        validate_cost_factor("cost_factor", cost_factor)

    return FieldCostOverrides(cost, cost_factor)


def validate_schema_cost_overrides(schema: GraphQLSchema) -> None:
    """Check the cost overrides of every field in the schema, so that invalid ones fail early.

    Invalid overrides are otherwise only found when a query first selects the field.

    Args:
        schema: GraphQL schema object whose field cost overrides to check

    Raises:
        ConfigurationError naming the first field whose cost override is invalid
    """
    for type_name, graphql_type in schema.type_map.items():
        if is_introspection_type(graphql_type):
            continue
        if not isinstance(graphql_type, (GraphQLObjectType, GraphQLInterfaceType)):
            continue

        for field_name, field in graphql_type.fields.items():
            try:
                get_field_cost_overrides(field)
            except ConfigurationError as e:
                raise ConfigurationError(
                    "Invalid cost override on field {} of type {}: {}".format(
                        field_name, type_name, e
                    )
                ) from e
