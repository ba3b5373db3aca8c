# Copyright 2026-present Kensho Technologies, LLC.
import logging
from typing import Any, Dict, Mapping, Optional, Type, Union

from graphql import GraphQLSchema, ValidationContext, ValidationRule
from graphql.language.ast import DocumentNode, FragmentDefinitionNode, OperationDefinitionNode
from graphql.language.visitor import SKIP

from .ast_manipulation import get_document_ast, get_operation_definition
from .budget import ErrorMessageFormatter, OnCostCallback, enforce_budget
from .cost_model import (
    DEFAULT_INTROSPECTION_LIST_FACTOR,
    DEFAULT_LIST_FACTOR,
    DEFAULT_MAX_COST,
    DEFAULT_MAX_SELECTIONS,
    DEFAULT_OBJECT_COST,
    DEFAULT_SCALAR_COST,
    CostModel,
    CostReport,
    Number,
)
from .estimator import estimate_cost
from .exceptions import DepthExceededError, SelectionLimitExceededError
from .schema import validate_schema_cost_overrides
from .selection_tree import build_selection_tree, get_fragment_definitions


logger = logging.getLogger(__name__)


def create_complexity_limit_rule(
    max_cost: Number = DEFAULT_MAX_COST,
    *,
    scalar_cost: Number = DEFAULT_SCALAR_COST,
    object_cost: Number = DEFAULT_OBJECT_COST,
    list_factor: Number = DEFAULT_LIST_FACTOR,
    introspection_list_factor: Number = DEFAULT_INTROSPECTION_LIST_FACTOR,
    max_depth: Optional[int] = None,
    max_selections: int = DEFAULT_MAX_SELECTIONS,
    on_cost: Optional[OnCostCallback] = None,
    format_error_message: Optional[ErrorMessageFormatter] = None,
    schema: Optional[GraphQLSchema] = None,
) -> Type[ValidationRule]:
    """Create a GraphQL validation rule that rejects operations costing more than max_cost.

    The returned rule is meant to be passed to graphql-core's validate() together with the
    standard rules, e.g. validate(schema, document, [*specified_rules, rule]). Each operation in
    the document is priced separately and contributes at most one validation error.

    Args:
        max_cost: the largest cost an accepted operation may have
        scalar_cost: cost of each selected leaf field
        object_cost: cost of each selected composite field, exclusive of its sub-selections
        list_factor: factor applied to the cost of list-typed fields and their sub-selections
        introspection_list_factor: the list_factor for list-typed introspection fields
        max_depth: optional int, the deepest field nesting an accepted operation may have.
                   Deeper operations are rejected with DepthExceededError without being priced.
        max_selections: the most selections an operation may expand into while its fragments
                        are expanded. Operations expanding into more are rejected with
                        SelectionLimitExceededError without being priced.
        on_cost: optional callback, called with the cost of every operation, accepted or not.
                 Operations rejected for their depth or their number of selections are
                 reported with a cost of 0.
        format_error_message: optional function (cost, max_cost) -> str for the error message
        schema: optional GraphQLSchema the rule will validate queries against. If given, the cost
                overrides it defines are checked right away instead of when first used.

    Returns:
        ValidationRule subclass enforcing the limit

    Raises:
        ConfigurationError if any of the weights, or any cost override in the given schema,
        is invalid
    """
    cost_model = CostModel(
        scalar_cost=scalar_cost,
        object_cost=object_cost,
        list_factor=list_factor,
        introspection_list_factor=introspection_list_factor,
        max_cost=max_cost,
        max_depth=max_depth,
        max_selections=max_selections,
    )
    if schema is not None:
        validate_schema_cost_overrides(schema)

    class ComplexityLimitRule(ValidationRule):
        """Reject operations whose estimated cost exceeds the configured maximum."""

        def __init__(self, context: ValidationContext) -> None:
            """Initialize the rule for validating a single document."""
            super().__init__(context)
            self._fragments: Optional[Dict[str, FragmentDefinitionNode]] = None

        def enter_operation_definition(self, node: OperationDefinitionNode, *_args: Any) -> Any:
            """Price the operation, reporting an error if it is too deep or too expensive."""
            if self._fragments is None:
                self._fragments = get_fragment_definitions(self.context.document)

            try:
                root_selections = build_selection_tree(
                    self.context.schema,
                    node,
                    self._fragments,
                    max_depth=cost_model.max_depth,
                    strict=False,
                    max_selections=cost_model.max_selections,
                )
            except (DepthExceededError, SelectionLimitExceededError) as e:
                # The operation is rejected without being priced, but still reported.
                if on_cost is not None:
                    on_cost(0)
                self.report_error(e)
                return SKIP

            cost = estimate_cost(root_selections, cost_model).total
            logger.debug(
                "Estimated cost of operation %s: %s (limit %s).",
                node.name.value if node.name is not None else "<anonymous>",
                cost,
                cost_model.max_cost,
            )

            error = enforce_budget(
                cost,
                cost_model.max_cost,
                on_cost=on_cost,
                format_error_message=format_error_message,
                nodes=node,
            )
            if error is not None:
                self.report_error(error)

            # The selections were already walked above, no need to visit them again.
            return SKIP

    return ComplexityLimitRule


def get_query_cost(
    schema: GraphQLSchema,
    query: Union[str, DocumentNode],
    cost_model: Optional[CostModel] = None,
    operation_name: Optional[str] = None,
    variable_values: Optional[Mapping[str, Any]] = None,
) -> CostReport:
    """Return the estimated cost of the query, with a breakdown of the cost per field.

    Unlike the validation rule, this function expects a query that is valid against the schema.

    Args:
        schema: GraphQL schema object the query is written against
        query: the query as a string or as an already-parsed DocumentNode
        cost_model: optional CostModel, defaulting to CostModel() with the default weights
        operation_name: optional name of the operation to price, required if the document
                        contains more than one operation
        variable_values: optional dict of variable name -> value, used to evaluate @skip and
                         @include directives that take their condition from a variable

    Returns:
        CostReport for the operation. It is not compared against the cost model's max_cost.

    Raises:
        GraphQLParsingError if the query string cannot be parsed
        GraphQLInvalidOperationError if the operation to price cannot be determined
        TypeResolutionError if the query does not match the schema
        DepthExceededError if the query is nested more deeply than the cost model's max_depth
        SelectionLimitExceededError if the query expands into more than the cost model's
                                    max_selections selections
    """
    if cost_model is None:
        cost_model = CostModel()

    document_ast = get_document_ast(query)
    operation = get_operation_definition(document_ast, operation_name)
    root_selections = build_selection_tree(
        schema,
        operation,
        get_fragment_definitions(document_ast),
        variable_values=variable_values,
        max_depth=cost_model.max_depth,
        max_selections=cost_model.max_selections,
    )
    return estimate_cost(root_selections, cost_model, include_field_costs=True)
