import logging

from graphql import build_schema, execute_sync, parse, specified_rules, validate

from graphql_complexity_limit import COMPLEXITY_DIRECTIVES_SCHEMA_TEXT, create_complexity_limit_rule


logging.basicConfig(level=logging.DEBUG)

# Build the schema. The @cost and @costFactor directives are optional.
schema = build_schema(
    COMPLEXITY_DIRECTIVES_SCHEMA_TEXT
    + """
    type B1 {
        b1a: String!
        b1b: String!
    }

    type A1 {
        a1a: String!
        a1b: B1
    }

    type Arr1 {
        name: String!
    }

    type Arr2 {
        name: String!
        id: Int!
    }

    type Arr {
        arr1: [Arr1]
        arr2: [Arr2]
    }

    type Query {
        a: A1
        arr: Arr
    }
"""
)
root_value = {
    "a": {"a1a": "a1a", "a1b": {"b1a": "b1a", "b1b": "b1b"}},
    "arr": {
        "arr1": [{"name": "name_{}".format(i)} for i in range(10)],
        "arr2": [{"name": "name_{}".format(i), "id": i} for i in range(10)],
    },
}

# Create the rule once, and use it to validate every incoming query.
complexity_limit_rule = create_complexity_limit_rule(
    1000,
    object_cost=0,
    on_cost=lambda cost: print("query cost:", cost),
    format_error_message=lambda cost, max_cost: (
        "query with cost {} exceeds complexity limit".format(cost)
    ),
    schema=schema,
)

graphql_query = """
{
    a {
        a1a
    }
    arr {
        arr2 {
            name
            id
        }
    }
}
"""

# Validate, and only execute queries that pass validation.
document_ast = parse(graphql_query)
errors = validate(schema, document_ast, [*specified_rules, complexity_limit_rule])
if errors:
    print([error.formatted for error in errors])
else:
    print(execute_sync(schema, document_ast, root_value=root_value).data)
