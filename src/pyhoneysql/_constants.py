"""Clause ordering and resource limit constants."""

DEFAULT_MAX_RECURSION_DEPTH = 100
"""Maximum expression nesting depth while formatting (CWE-674 prevention)."""

DEFAULT_MAX_PARSE_DEPTH = 150
"""Maximum parse-tree nesting depth while building clause maps."""

DEFAULT_CLAUSE_ORDER: tuple[str, ...] = (
    # DDL
    "alter-table",
    "add-column",
    "drop-column",
    "create-table",
    "with-columns",
    "drop-table",
    # statement wrappers and set operations
    "raw",
    "nest",
    "with",
    "with-recursive",
    "intersect",
    "union",
    "union-all",
    "except",
    "except-all",
    # DML heads
    "insert-into",
    "replace-into",
    "update",
    "delete",
    "delete-from",
    "truncate",
    "columns",
    # query body
    "select",
    "select-distinct",
    "select-distinct-on",
    "set",
    "from",
    "using",
    "join-by",
    "join",
    "left-join",
    "right-join",
    "inner-join",
    "outer-join",
    "full-join",
    "cross-join",
    "where",
    "group-by",
    "having",
    "order-by",
    "limit",
    "offset",
    "for",
    "lock",
    # upsert
    "values",
    "on-conflict",
    "on-constraint",
    "do-nothing",
    "do-update-set",
    "returning",
)
"""Priority order in which clauses of one statement are emitted."""

JOIN_CLAUSES: tuple[str, ...] = (
    "join",
    "left-join",
    "right-join",
    "inner-join",
    "outer-join",
    "full-join",
)

SET_OPERATION_CLAUSES: tuple[str, ...] = (
    "union",
    "union-all",
    "intersect",
    "except",
    "except-all",
)

CTE_CLAUSES: tuple[str, ...] = ("with", "with-recursive")

SELECT_CLAUSES: tuple[str, ...] = ("select", "select-distinct", "select-distinct-on")
