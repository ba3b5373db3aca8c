# Copyright 2026-present Kensho Technologies, LLC.
from typing import Any, List
import unittest

from graphql import GraphQLError, build_schema, parse, specified_rules, validate

from ..cost_model import Number
from ..exceptions import (
    ComplexityExceededError,
    ConfigurationError,
    DepthExceededError,
    SelectionLimitExceededError,
)
from ..validation_rule import create_complexity_limit_rule
from ..schema import COMPLEXITY_DIRECTIVES_SCHEMA_TEXT
from .test_helpers import (
    get_deep_query,
    get_doubling_fragment_query,
    get_query_only_schema,
    get_schema,
)


def _validate_with_rule(query: str, schema: Any = None, **rule_kwargs: Any) -> List[GraphQLError]:
    """Validate the query with the standard rules plus a complexity limit rule."""
    if schema is None:
        schema = get_schema()
    rule = create_complexity_limit_rule(**rule_kwargs)
    return validate(schema, parse(query), [*specified_rules, rule])


class ComplexityLimitRuleTests(unittest.TestCase):
    def _assert_cost(self, query: str, expected_cost: Number, **rule_kwargs: Any) -> None:
        """Assert the query validates at exactly its expected cost, and fails just below it."""
        reported_costs: List[Number] = []
        errors = _validate_with_rule(
            query, max_cost=expected_cost, on_cost=reported_costs.append, **rule_kwargs
        )
        self.assertEqual([], errors)
        self.assertEqual([expected_cost], reported_costs)

        errors = _validate_with_rule(query, max_cost=expected_cost - 1, **rule_kwargs)
        self.assertEqual(1, len(errors))
        self.assertIsInstance(errors[0], ComplexityExceededError)

    def test_object_cost(self) -> None:
        test_data = (
            ("{ a { a1a } }", (1, 2, 3)),
            ("{ a { a1b { b1a b1b } } }", (2, 4, 6)),
            ("{ a { a1a a1b { b1a b1b } } }", (3, 5, 7)),
        )
        for query, expected_costs in test_data:
            for object_cost, expected_cost in enumerate(expected_costs):
                self._assert_cost(query, expected_cost, object_cost=object_cost)

    def test_scalar_cost(self) -> None:
        query = "{ a { a1a a1b { b1a b1b } } }"
        for scalar_cost, expected_cost in ((2, 8), (3, 11), (4, 14)):
            self._assert_cost(query, expected_cost, object_cost=1, scalar_cost=scalar_cost)

    def test_list_factor(self) -> None:
        self._assert_cost("{ arr { arr1 { name } } }", 10)
        self._assert_cost("{ arr { arr2 { name id } } }", 20)
        self._assert_cost(
            "{ a { a1a a1b { b1a b1b } } arr { arr1 { name } arr2 { name id } } }",
            106,
            object_cost=1,
            list_factor=20,
        )

    def test_error_contents(self) -> None:
        query = "query Expensive { arr { arr2 { name id } } }"
        errors = _validate_with_rule(query, max_cost=15)

        self.assertEqual(1, len(errors))
        error = errors[0]
        self.assertIsInstance(error, ComplexityExceededError)
        self.assertEqual("query with cost 20 exceeds complexity limit 15", error.message)
        self.assertEqual(
            {"code": "COMPLEXITY_EXCEEDED", "cost": 20, "maxCost": 15}, error.extensions
        )
        self.assertEqual(1, len(error.locations))
        self.assertEqual(1, error.locations[0].line)

    def test_custom_error_message(self) -> None:
        errors = _validate_with_rule(
            "{ arr { arr1 { name } } }",
            max_cost=5,
            format_error_message=lambda cost, max_cost: "cost {} over {}".format(cost, max_cost),
        )
        self.assertEqual(["cost 10 over 5"], [error.message for error in errors])

    def test_default_limit(self) -> None:
        # 1 * 10 * 10 * 10 = 1000 is still allowed, one more level of lists is not.
        within_limit = "{ node { children { children { children { id } } } } }"
        over_limit = "{ node { children { children { children { children { id } } } } } }"
        self.assertEqual([], _validate_with_rule(within_limit))

        errors = _validate_with_rule(over_limit)
        self.assertEqual(1, len(errors))
        self.assertEqual(10000, errors[0].cost)

    def test_each_operation_is_priced_separately(self) -> None:
        query = """
        query Cheap {
            a {
                a1a
            }
        }

        query Expensive {
            arr {
                arr2 {
                    name
                }
            }
        }
        """
        reported_costs: List[Number] = []
        errors = _validate_with_rule(query, max_cost=5, on_cost=reported_costs.append)
        self.assertEqual([1, 10], reported_costs)
        self.assertEqual(1, len(errors))
        self.assertEqual(10, errors[0].cost)

    def test_fragments(self) -> None:
        query = """
        query {
            arr {
                ...ArrFields
            }
        }

        fragment ArrFields on Arr {
            arr2 {
                ... on Arr2 {
                    name
                    id
                }
            }
        }
        """
        self._assert_cost(query, 20)

    def test_depth_limit_is_checked_before_cost(self) -> None:
        query = get_deep_query(4)
        reported_costs: List[Number] = []

        # The query is cheap enough, but too deep.
        errors = _validate_with_rule(
            query, max_cost=1000, max_depth=3, on_cost=reported_costs.append
        )
        self.assertEqual(1, len(errors))
        self.assertIsInstance(errors[0], DepthExceededError)
        self.assertEqual(
            {"code": "DEPTH_EXCEEDED", "depth": 4, "maxDepth": 3}, errors[0].extensions
        )
        self.assertEqual([0], reported_costs)

        # Also too expensive: only the depth error is reported.
        errors = _validate_with_rule(query, max_cost=0, max_depth=3)
        self.assertEqual(1, len(errors))
        self.assertIsInstance(errors[0], DepthExceededError)

        # Within the depth limit, the cost is checked as usual.
        errors = _validate_with_rule(query, max_cost=0, max_depth=4)
        self.assertEqual(1, len(errors))
        self.assertIsInstance(errors[0], ComplexityExceededError)

    def test_errors_from_other_rules_are_kept(self) -> None:
        # "missing" is reported by the standard rules, and skipped when pricing the query.
        reported_costs: List[Number] = []
        errors = _validate_with_rule(
            "{ arr { arr1 { name missing } } }", max_cost=5, on_cost=reported_costs.append
        )
        self.assertEqual([10], reported_costs)
        self.assertEqual(2, len(errors))
        self.assertEqual(
            1, len([error for error in errors if isinstance(error, ComplexityExceededError)])
        )

    def test_unsupported_operation_type(self) -> None:
        reported_costs: List[Number] = []
        errors = _validate_with_rule(
            "mutation { rename }",
            schema=get_query_only_schema(),
            on_cost=reported_costs.append,
        )
        self.assertEqual([0], reported_costs)
        self.assertFalse(any(isinstance(error, ComplexityExceededError) for error in errors))

    def test_introspection_query(self) -> None:
        self._assert_cost("{ __schema { types { name fields { name } } } }", 6)

    def test_invalid_configuration(self) -> None:
        invalid_kwargs: List[Any] = [
            {"max_cost": -1},
            {"scalar_cost": -1},
            {"object_cost": "1"},
            {"list_factor": 0.5},
            {"introspection_list_factor": 0},
            {"max_depth": 0},
            {"max_selections": 0},
            {"max_selections": None},
        ]
        for kwargs in invalid_kwargs:
            with self.assertRaises(ConfigurationError):
                create_complexity_limit_rule(**kwargs)

    def test_meta_fields(self) -> None:
        query = """{
            __typename
            a {
                __typename
                a1a
            }
            __type(name: "A1") {
                name
                fields {
                    name
                }
            }
            __schema {
                queryType {
                    name
                }
            }
        }"""
        # Both __typename leaves, a1a, __type.name, the names in the introspection list of
        # fields (factor 2) and __schema.queryType.name: 1 + 1 + 1 + 1 + 2 + 1.
        self._assert_cost(query, 7)

    def test_selection_limit_is_checked_before_cost(self) -> None:
        # 1 + 2 + 4 + 8 + 16 = 31 fragment spreads, "a", and 16 copies of "a1a".
        query = get_doubling_fragment_query(4)
        self._assert_cost(query, 16, max_selections=48)

        reported_costs: List[Number] = []
        errors = _validate_with_rule(
            query, max_cost=1000, max_selections=47, on_cost=reported_costs.append
        )
        self.assertEqual(1, len(errors))
        self.assertIsInstance(errors[0], SelectionLimitExceededError)
        self.assertEqual(
            {"code": "SELECTION_LIMIT_EXCEEDED", "maxSelections": 47}, errors[0].extensions
        )
        self.assertEqual([0], reported_costs)

    def test_doubling_fragments_are_rejected_by_default(self) -> None:
        # Fully expanded, this query would contain 2 ** 30 selections.
        document_ast = parse(get_doubling_fragment_query(30))
        reported_costs: List[Number] = []
        rule = create_complexity_limit_rule(on_cost=reported_costs.append)

        errors = validate(get_schema(), document_ast, [rule])
        self.assertEqual(1, len(errors))
        self.assertIsInstance(errors[0], SelectionLimitExceededError)
        self.assertEqual(10000, errors[0].max_selections)
        self.assertEqual([0], reported_costs)

    def test_invalid_schema_cost_override(self) -> None:
        schema = build_schema(
            COMPLEXITY_DIRECTIVES_SCHEMA_TEXT
            + """
            type Query {
                name: String @costFactor(value: 0.5)
            }
            """
        )
        with self.assertRaises(ConfigurationError):
            create_complexity_limit_rule(schema=schema)

        # Schemas with valid overrides are accepted.
        rule = create_complexity_limit_rule(schema=get_schema())
        self.assertEqual([], validate(get_schema(), parse("{ expensive }"), [rule]))
