# Copyright 2026-present Kensho Technologies, LLC.
"""Convert GraphQL query ASTs into selection trees that can be priced by the cost estimator.

The selection tree contains one node per selected field, and nothing else: fragments are
flattened into the selections that use them, and selections excluded by @skip / @include are
pruned. Each node records whether the field is a leaf or has sub-selections, whether its declared
type is a list, and any cost overrides the schema defines for it.

Since the whole point of estimating the cost of a query is to defend against adversarially-shaped
queries, the conversion is iterative and uses an explicit stack: arbitrarily deep queries cannot
exhaust the Python call stack. Queries deeper than the configured maximum depth are rejected
with DepthExceededError as soon as the too-deep field is reached.

Fragments are expanded once per spread. To keep adversarial fragment spreads from expanding
into exponentially many selections, the expansion stops with SelectionLimitExceededError once
the configured number of selections is reached.
"""
from dataclasses import dataclass, field
import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from graphql import (
    GraphQLCompositeType,
    GraphQLField,
    GraphQLIncludeDirective,
    GraphQLInterfaceType,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLOutputType,
    GraphQLSchema,
    GraphQLSkipDirective,
    SchemaMetaFieldDef,
    TypeMetaFieldDef,
    TypeNameMetaFieldDef,
    get_named_type,
    is_composite_type,
    is_introspection_type,
    is_leaf_type,
    value_from_ast_untyped,
)
from graphql.language.ast import (
    BooleanValueNode,
    DirectiveNode,
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    VariableNode,
)
from graphql.language.ast import SelectionNode as SelectionASTNode

from .cost_model import Number
from .exceptions import DepthExceededError, SelectionLimitExceededError, TypeResolutionError
from .schema import get_field_cost_overrides


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeafSelection:
    """A selected field whose type has no selectable sub-fields, i.e. a scalar or enum field."""

    name: str
    is_list: bool = False
    alias: Optional[str] = None
    is_introspection: bool = False
    cost: Optional[Number] = None
    cost_factor: Optional[Number] = None

    @property
    def response_key(self) -> str:
        """Return the key under which the field appears in the query result."""
        return self.alias or self.name


@dataclass(frozen=True)
class CompositeSelection:
    """A selected field whose type is an object, interface or union, with its sub-selections."""

    name: str
    children: Tuple["SelectionNode", ...] = ()
    is_list: bool = False
    alias: Optional[str] = None
    is_introspection: bool = False
    cost: Optional[Number] = None
    cost_factor: Optional[Number] = None

    @property
    def response_key(self) -> str:
        """Return the key under which the field appears in the query result."""
        return self.alias or self.name


SelectionNode = Union[LeafSelection, CompositeSelection]


# Meta field definitions carry no name of their own, so they are looked up by these.
TYPENAME_FIELD_NAME = "__typename"
SCHEMA_FIELD_NAME = "__schema"
TYPE_FIELD_NAME = "__type"


_ROOT_TYPE_ATTRIBUTES = {
    OperationType.QUERY: "query_type",
    OperationType.MUTATION: "mutation_type",
    OperationType.SUBSCRIPTION: "subscription_type",
}


@dataclass
class _PendingComposite:
    """A composite field whose sub-selections are still being converted."""

    name: str
    alias: Optional[str]
    is_list: bool
    is_introspection: bool
    cost: Optional[Number]
    cost_factor: Optional[Number]
    children: List[SelectionNode] = field(default_factory=list)

    def build(self) -> CompositeSelection:
        """Freeze the pending field into a CompositeSelection."""
        return CompositeSelection(
            name=self.name,
            children=tuple(self.children),
            is_list=self.is_list,
            alias=self.alias,
            is_introspection=self.is_introspection,
            cost=self.cost,
            cost_factor=self.cost_factor,
        )


@dataclass(frozen=True)
class _ConvertSelection:
    """Work item: convert one AST selection, appending the result(s) to the output list."""

    selection: SelectionASTNode
    parent_type: GraphQLCompositeType
    depth: int
    output: List[SelectionNode]
    expanded_fragments: FrozenSet[str]


@dataclass(frozen=True)
class _FinishComposite:
    """Work item: all sub-selections of the pending field are done, emit the field itself."""

    pending: _PendingComposite
    output: List[SelectionNode]


_WorkItem = Union[_ConvertSelection, _FinishComposite]


def get_fragment_definitions(document_ast: DocumentNode) -> Dict[str, FragmentDefinitionNode]:
    """Return a dict of fragment name -> fragment definition for the given document."""
    return {
        definition.name.value: definition
        for definition in document_ast.definitions
        if isinstance(definition, FragmentDefinitionNode)
    }


def get_operation_root_type(
    schema: GraphQLSchema, operation: OperationDefinitionNode
) -> Optional[GraphQLObjectType]:
    """Return the schema's root type for the operation, or None if the schema lacks one."""
    return getattr(schema, _ROOT_TYPE_ATTRIBUTES[operation.operation])


def _get_condition_value(
    directive: DirectiveNode, variable_values: Optional[Mapping[str, Any]]
) -> Optional[bool]:
    """Return the value of the directive's "if" argument, or None if it is not known yet."""
    for argument in directive.arguments:
        if argument.name.value != "if":
            continue

        value_node = argument.value
        if isinstance(value_node, BooleanValueNode):
            return value_node.value
        elif isinstance(value_node, VariableNode) and variable_values is not None:
            value = variable_values.get(value_node.name.value)
            if isinstance(value, bool):
                return value

    return None


def _apply_default_values(
    operation: OperationDefinitionNode, variable_values: Mapping[str, Any]
) -> Mapping[str, Any]:
    """Return the variable values, with the operation's defaults for variables not provided."""
    default_values = {
        definition.variable.name.value: value_from_ast_untyped(definition.default_value)
        for definition in operation.variable_definitions or ()
        if definition.default_value is not None
    }
    if not default_values:
        return variable_values
    return {**default_values, **variable_values}


def _is_selection_included(
    selection: SelectionASTNode, variable_values: Optional[Mapping[str, Any]]
) -> bool:
    """Return False if @skip or @include exclude the selection, and True otherwise.

    Conditions whose value is not known, i.e. variables with neither a provided nor a default
    value, keep the selection: a query must not be able to look cheaper than it may turn out to be.
    """
    for directive in selection.directives or ():
        directive_name = directive.name.value
        if directive_name not in (GraphQLSkipDirective.name, GraphQLIncludeDirective.name):
            continue

        condition = _get_condition_value(directive, variable_values)
        if condition is None:
            continue
        if directive_name == GraphQLSkipDirective.name and condition:
            return False
        if directive_name == GraphQLIncludeDirective.name and not condition:
            return False

    return True


def _get_field_definition(
    schema: GraphQLSchema, parent_type: GraphQLCompositeType, field_name: str
) -> Optional[GraphQLField]:
    """Return the definition of the field on the parent type, including meta fields."""
    if field_name == TYPENAME_FIELD_NAME:
        return TypeNameMetaFieldDef
    if parent_type is schema.query_type:
        if field_name == SCHEMA_FIELD_NAME:
            return SchemaMetaFieldDef
        if field_name == TYPE_FIELD_NAME:
            return TypeMetaFieldDef
    if isinstance(parent_type, (GraphQLObjectType, GraphQLInterfaceType)):
        return parent_type.fields.get(field_name)
    return None


def _is_list_type(field_type: GraphQLOutputType) -> bool:
    """Return True if the type is a list, possibly wrapped in a GraphQLNonNull."""
    if isinstance(field_type, GraphQLNonNull):
        field_type = field_type.of_type
    return isinstance(field_type, GraphQLList)


def _handle_unresolvable(message: str, strict: bool) -> None:
    """Raise TypeResolutionError in strict mode, otherwise log and let the caller skip."""
    if strict:
        raise TypeResolutionError(message)
    # Running alongside the standard validation rules, which report this to the user.
    logger.debug("Skipping selection in cost estimation: %s", message)


def _get_type_condition(
    schema: GraphQLSchema,
    fragment: Union[InlineFragmentNode, FragmentDefinitionNode],
    parent_type: GraphQLCompositeType,
    strict: bool,
) -> Optional[GraphQLCompositeType]:
    """Return the type the fragment's selections apply to, or None if it cannot be resolved."""
    if fragment.type_condition is None:
        return parent_type

    type_name = fragment.type_condition.name.value
    condition_type = schema.get_type(type_name)
    if not is_composite_type(condition_type):
        _handle_unresolvable(
            "Fragment type condition {} does not name a composite type in the schema: "
            "{}".format(type_name, condition_type),
            strict,
        )
        return None
    return condition_type


def _push_selection_set(
    stack: List[_WorkItem],
    selection_set: Optional[SelectionSetNode],
    parent_type: GraphQLCompositeType,
    depth: int,
    output: List[SelectionNode],
    expanded_fragments: FrozenSet[str],
) -> None:
    """Schedule the conversion of every selection in the selection set, in document order."""
    if selection_set is None:
        return

    # The stack is last-in-first-out, so push in reverse to pop in document order.
    for selection in reversed(selection_set.selections):
        stack.append(
            _ConvertSelection(selection, parent_type, depth, output, expanded_fragments)
        )


def build_selection_tree(
    schema: GraphQLSchema,
    operation: OperationDefinitionNode,
    fragments: Mapping[str, FragmentDefinitionNode],
    variable_values: Optional[Mapping[str, Any]] = None,
    max_depth: Optional[int] = None,
    strict: bool = True,
    max_selections: Optional[int] = None,
) -> Tuple[SelectionNode, ...]:
    """Return the selection tree of the fields the operation selects, one tree per root field.

    Args:
        schema: GraphQL schema object the operation is written against
        operation: the OperationDefinitionNode whose selections to convert
        fragments: dict of fragment name -> FragmentDefinitionNode for the operation's document
        variable_values: optional dict of variable name -> value, used to evaluate @skip and
                         @include conditions given as variables. Without it, only conditions
                         given as literals prune selections.
        max_depth: optional int, the deepest field nesting allowed. Root fields are at depth 1.
        strict: bool, whether selections that cannot be resolved against the schema raise
                TypeResolutionError (the default), or are skipped. Skipping is appropriate when
                the standard GraphQL validation rules run alongside, and report such selections.
        max_selections: optional int, the most selections the operation may expand into. Every
                        field, inline fragment and fragment spread counts once per time it is
                        reached, so fragments spread many times count many times over.

    Returns:
        tuple of SelectionNode objects, the operation's root fields in document order

    Raises:
        DepthExceededError if a field is nested more deeply than max_depth
        SelectionLimitExceededError if the operation expands into more than max_selections
                                    selections
        TypeResolutionError in strict mode, if a selection cannot be resolved against the schema
    """
    root_type = get_operation_root_type(schema, operation)
    if root_type is None:
        _handle_unresolvable(
            "The schema does not define a root type for {} operations.".format(
                operation.operation.value
            ),
            strict,
        )
        return ()

    if variable_values is not None:
        variable_values = _apply_default_values(operation, variable_values)

    root_fields: List[SelectionNode] = []
    stack: List[_WorkItem] = []
    _push_selection_set(stack, operation.selection_set, root_type, 1, root_fields, frozenset())

    expanded_selections = 0
    while stack:
        work_item = stack.pop()

        if isinstance(work_item, _FinishComposite):
            work_item.output.append(work_item.pending.build())
            continue

        selection = work_item.selection
        parent_type = work_item.parent_type
        expanded_selections += 1
        if max_selections is not None and expanded_selections > max_selections:
            raise SelectionLimitExceededError(max_selections, nodes=selection)

        if not _is_selection_included(selection, variable_values):
            continue

        if isinstance(selection, FieldNode):
            _convert_field(schema, stack, work_item, max_depth, strict)
        elif isinstance(selection, InlineFragmentNode):
            condition_type = _get_type_condition(schema, selection, parent_type, strict)
            if condition_type is not None:
                _push_selection_set(
                    stack,
                    selection.selection_set,
                    condition_type,
                    work_item.depth,
                    work_item.output,
                    work_item.expanded_fragments,
                )
        elif isinstance(selection, FragmentSpreadNode):
            fragment_name = selection.name.value
            if fragment_name in work_item.expanded_fragments:
                # Cyclic fragments are rejected by the NoFragmentCycles validation rule.
                logger.debug("Skipping cyclic spread of fragment %s.", fragment_name)
                continue

            fragment = fragments.get(fragment_name)
            if fragment is None:
                _handle_unresolvable("Unknown fragment {}.".format(fragment_name), strict)
                continue

            condition_type = _get_type_condition(schema, fragment, parent_type, strict)
            if condition_type is not None:
                _push_selection_set(
                    stack,
                    fragment.selection_set,
                    condition_type,
                    work_item.depth,
                    work_item.output,
                    work_item.expanded_fragments | {fragment_name},
                )
        else:
            raise AssertionError(
                "Unexpected selection type received: {} {}".format(type(selection), selection)
            )

    return tuple(root_fields)


def _convert_field(
    schema: GraphQLSchema,
    stack: List[_WorkItem],
    work_item: _ConvertSelection,
    max_depth: Optional[int],
    strict: bool,
) -> None:
    """Convert a single FieldNode, scheduling the conversion of its sub-selections if any."""
    field_ast = work_item.selection
    if not isinstance(field_ast, FieldNode):
        raise AssertionError("Expected a FieldNode, but got: {}".format(field_ast))

    field_name = field_ast.name.value
    parent_type = work_item.parent_type
    field_definition = _get_field_definition(schema, parent_type, field_name)
    if field_definition is None:
        _handle_unresolvable(
            "Field {} does not exist on type {}.".format(field_name, parent_type), strict
        )
        return

    if max_depth is not None and work_item.depth > max_depth:
        raise DepthExceededError(work_item.depth, max_depth, nodes=field_ast)

    field_type = field_definition.type
    named_type = get_named_type(field_type)
    overrides = get_field_cost_overrides(field_definition)
    alias = field_ast.alias.value if field_ast.alias is not None else None
    is_list = _is_list_type(field_type)
    is_introspection = (
        is_introspection_type(parent_type)
        or field_definition is SchemaMetaFieldDef
        or field_definition is TypeMetaFieldDef
    )

    if is_leaf_type(named_type):
        if field_ast.selection_set is not None:
            _handle_unresolvable(
                "Field {} of leaf type {} unexpectedly has a selection set.".format(
                    field_name, field_type
                ),
                strict,
            )
        work_item.output.append(
            LeafSelection(
                name=field_name,
                is_list=is_list,
                alias=alias,
                is_introspection=is_introspection,
                cost=overrides.cost,
                cost_factor=overrides.cost_factor,
            )
        )
    elif is_composite_type(named_type):
        if field_ast.selection_set is None:
            _handle_unresolvable(
                "Field {} of composite type {} unexpectedly has no selection set.".format(
                    field_name, field_type
                ),
                strict,
            )
        pending = _PendingComposite(
            name=field_name,
            alias=alias,
            is_list=is_list,
            is_introspection=is_introspection,
            cost=overrides.cost,
            cost_factor=overrides.cost_factor,
        )
        stack.append(_FinishComposite(pending, work_item.output))
        _push_selection_set(
            stack,
            field_ast.selection_set,
            named_type,
            work_item.depth + 1,
            pending.children,
            work_item.expanded_fragments,
        )
    else:
        raise TypeResolutionError(
            "Field {} on type {} has type {}, which is neither a leaf nor a composite "
            "type.".format(field_name, parent_type, field_type)
        )
