# Copyright 2026-present Kensho Technologies, LLC.
"""Commonly-used functions and data types from this package."""
from .budget import enforce_budget, format_complexity_error_message  # noqa
from .cost_model import CostModel, CostReport, FieldCost  # noqa
from .estimator import estimate_cost  # noqa
from .exceptions import (  # noqa
    ComplexityExceededError,
    ConfigurationError,
    DepthExceededError,
    GraphQLComplexityError,
    GraphQLInvalidOperationError,
    GraphQLParsingError,
    QueryRejectedError,
    SelectionLimitExceededError,
    TypeResolutionError,
)
from .schema import (  # noqa
    COMPLEXITY_DIRECTIVES,
    COMPLEXITY_DIRECTIVES_SCHEMA_TEXT,
    CostDirective,
    CostFactorDirective,
    get_field_cost_overrides,
    validate_schema_cost_overrides,
)
from .selection_tree import (  # noqa
    CompositeSelection,
    LeafSelection,
    SelectionNode,
    build_selection_tree,
    get_fragment_definitions,
)
from .validation_rule import create_complexity_limit_rule, get_query_cost  # noqa


__package_name__ = "graphql-complexity-limit"
__version__ = "1.0.0"
