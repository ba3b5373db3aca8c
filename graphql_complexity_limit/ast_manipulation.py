# Copyright 2026-present Kensho Technologies, LLC.
from typing import List, Optional, Union

import funcy
from graphql.error import GraphQLSyntaxError
from graphql.language.ast import DocumentNode, OperationDefinitionNode
from graphql.language.parser import parse

from .exceptions import GraphQLInvalidOperationError, GraphQLParsingError


def safe_parse_graphql(graphql_string: str) -> DocumentNode:
    """Return an AST representation of the given GraphQL input, reraising GraphQL library errors."""
    try:
        ast = parse(graphql_string)
    except GraphQLSyntaxError as e:
        raise GraphQLParsingError(e) from e

    return ast


def get_document_ast(query: Union[str, DocumentNode]) -> DocumentNode:
    """Return the DocumentNode for the query, parsing it first if it is a string."""
    if isinstance(query, DocumentNode):
        return query
    elif isinstance(query, str):
        return safe_parse_graphql(query)
    else:
        raise AssertionError(
            'Received an unexpected value for "query": {} {}'.format(type(query), query)
        )


def get_operation_definition(
    document_ast: DocumentNode, operation_name: Optional[str] = None
) -> OperationDefinitionNode:
    """Return the operation with the given name, or the only operation if no name is given."""
    operations: List[OperationDefinitionNode] = funcy.lfilter(
        funcy.isa(OperationDefinitionNode), document_ast.definitions
    )

    if operation_name is None:
        if len(operations) != 1:
            raise GraphQLInvalidOperationError(
                "Expected a GraphQL document with exactly one operation when no operation name "
                "is given, but found {} operations.".format(len(operations))
            )
        return funcy.first(operations)

    matching_operations = [
        operation
        for operation in operations
        if operation.name is not None and operation.name.value == operation_name
    ]
    if len(matching_operations) != 1:
        raise GraphQLInvalidOperationError(
            'Expected a GraphQL document with exactly one operation named "{}", but found '
            "{}.".format(operation_name, len(matching_operations))
        )
    return funcy.first(matching_operations)
