# Copyright 2026-present Kensho Technologies, LLC.
from typing import Any, Collection, Dict, Optional, Union

from graphql import GraphQLError
from graphql.language.ast import Node


class GraphQLComplexityError(Exception):
    """Generic error when setting up or running the complexity limit."""


class ConfigurationError(GraphQLComplexityError):
    """Exception raised when the cost weights or per-field cost overrides are invalid.

    For example:
    - a negative scalar or object cost;
    - a list factor below 1, which would make nesting inside lists cheaper instead of costlier;
    - a non-numeric weight, such as a string or a bool.
    """


class TypeResolutionError(GraphQLComplexityError):
    """Exception raised when a selected field cannot be resolved against the schema.

    This indicates that the schema and the query are inconsistent with each other in a way that
    validation should have caught, e.g. a field missing from its parent type or a leaf-typed field
    with a sub-selection. It is not a per-query condition.
    """


class GraphQLParsingError(GraphQLComplexityError):
    """Exception raised when the provided GraphQL string could not be parsed."""


class GraphQLInvalidOperationError(GraphQLComplexityError):
    """Exception raised when the operation to estimate cannot be determined from the document."""


NodesType = Optional[Union[Collection[Node], Node]]


class QueryRejectedError(GraphQLError):
    """Validation error that rejects a single query, leaving the server free to serve others."""

    code: str = "QUERY_REJECTED"

    def __init__(
        self, message: str, nodes: NodesType = None, extensions: Optional[Dict[str, Any]] = None
    ) -> None:
        """Initialize the error, tagging its extensions with the error code."""
        all_extensions = {"code": self.code}
        if extensions:
            all_extensions.update(extensions)
        super().__init__(message, nodes, extensions=all_extensions)


class DepthExceededError(QueryRejectedError):
    """Exception raised when the selections of a query are nested deeper than allowed."""

    code = "DEPTH_EXCEEDED"

    def __init__(self, depth: int, max_depth: int, nodes: NodesType = None) -> None:
        """Initialize the error with the offending depth and the configured limit."""
        self.depth = depth
        self.max_depth = max_depth
        super().__init__(
            "query with depth {} exceeds depth limit {}".format(depth, max_depth),
            nodes,
            extensions={"depth": depth, "maxDepth": max_depth},
        )


class ComplexityExceededError(QueryRejectedError):
    """Exception raised when the estimated cost of a query exceeds the configured maximum."""

    code = "COMPLEXITY_EXCEEDED"

    def __init__(
        self, message: str, cost: float, max_cost: float, nodes: NodesType = None
    ) -> None:
        """Initialize the error with a rendered message, the computed cost and the limit."""
        self.cost = cost
        self.max_cost = max_cost
        super().__init__(message, nodes, extensions={"cost": cost, "maxCost": max_cost})


class SelectionLimitExceededError(QueryRejectedError):
    """Exception raised when a query expands into more selections than allowed.

    Fragments are expanded once per spread, so a short query whose fragments spread each other
    repeatedly can expand into exponentially many selections. Such queries are rejected once the
    limit is reached, before they are expanded any further.
    """

    code = "SELECTION_LIMIT_EXCEEDED"

    def __init__(self, max_selections: int, nodes: NodesType = None) -> None:
        """Initialize the error with the configured limit."""
        self.max_selections = max_selections
        super().__init__(
            "query expands into more than {} selections".format(max_selections),
            nodes,
            extensions={"maxSelections": max_selections},
        )
