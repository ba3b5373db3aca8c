# Copyright 2026-present Kensho Technologies, LLC.
"""Tests that vet the cost directives against schemas using them."""
import unittest

from graphql import GraphQLField, GraphQLString, build_schema

from .. import schema
from ..exceptions import ConfigurationError
from ..schema import (
    NO_COST_OVERRIDES,
    FieldCostOverrides,
    get_field_cost_overrides,
    validate_schema_cost_overrides,
)
from .test_helpers import get_schema


def _get_query_field(schema_text: str, field_name: str) -> GraphQLField:
    """Build a schema from SDL with the cost directives, and return one of its Query fields."""
    built_schema = build_schema(schema.COMPLEXITY_DIRECTIVES_SCHEMA_TEXT + schema_text)
    return built_schema.query_type.fields[field_name]


class CostDirectiveTests(unittest.TestCase):
    def test_directives_match_schema_text(self) -> None:
        # Directives don't implement an equality operator, so compare their signatures instead.
        def _get_directive_signatures(directives):
            """Return a set of (name, locations, arguments) describing the given directives."""
            return {
                (
                    directive.name,
                    frozenset(directive.locations),
                    frozenset(
                        (arg_name, str(argument.type))
                        for arg_name, argument in directive.args.items()
                    ),
                )
                for directive in directives
            }

        test_directives = _get_directive_signatures(get_schema().directives)
        actual_directives = _get_directive_signatures(schema.COMPLEXITY_DIRECTIVES)
        self.assertEqual(2, len(actual_directives))
        self.assertTrue(actual_directives.issubset(test_directives))

    def test_no_overrides(self) -> None:
        field = _get_query_field("type Query { name: String }", "name")
        self.assertIs(NO_COST_OVERRIDES, get_field_cost_overrides(field))

    def test_directive_overrides(self) -> None:
        field = _get_query_field(
            "type Query { items: [String] @cost(value: 3) @costFactor(value: 2.5) }", "items"
        )
        self.assertEqual(FieldCostOverrides(3, 2.5), get_field_cost_overrides(field))

        field = _get_query_field("type Query { name: String @cost(value: 0) }", "name")
        self.assertEqual(FieldCostOverrides(0, None), get_field_cost_overrides(field))

    def test_extension_overrides(self) -> None:
        field = GraphQLField(GraphQLString, extensions={"cost": 7})
        self.assertEqual(FieldCostOverrides(7, None), get_field_cost_overrides(field))

        field = GraphQLField(GraphQLString, extensions={"cost_factor": 4, "unrelated": True})
        self.assertEqual(FieldCostOverrides(None, 4), get_field_cost_overrides(field))

    def test_extensions_take_precedence_over_directives(self) -> None:
        field = _get_query_field(
            "type Query { name: String @cost(value: 3) @costFactor(value: 2) }", "name"
        )
        field.extensions = {"cost": 9}
        self.assertEqual(FieldCostOverrides(9, 2), get_field_cost_overrides(field))

    def test_invalid_overrides(self) -> None:
        invalid_extensions = [
            {"cost": -1},
            {"cost": "expensive"},
            {"cost_factor": 0.5},
            {"cost_factor": False},
        ]
        for extensions in invalid_extensions:
            field = GraphQLField(GraphQLString, extensions=extensions)
            with self.assertRaises(ConfigurationError):
                get_field_cost_overrides(field)

        field = _get_query_field("type Query { name: String @cost(value: -2) }", "name")
        with self.assertRaises(ConfigurationError):
            get_field_cost_overrides(field)

    def test_schema_overrides_are_checked_eagerly(self) -> None:
        validate_schema_cost_overrides(get_schema())

        invalid_schema = build_schema(
            schema.COMPLEXITY_DIRECTIVES_SCHEMA_TEXT
            + """
            interface Named {
                name: String @costFactor(value: 0.5)
            }

            type Query {
                named: Named
            }
            """
        )
        with self.assertRaises(ConfigurationError) as context:
            validate_schema_cost_overrides(invalid_schema)
        self.assertIn("field name of type Named", str(context.exception))
