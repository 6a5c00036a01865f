"""Built-in operator vocabulary."""

# Operators rendered as `left OP right`
INFIX_OPERATORS: frozenset[str] = frozenset({
    "and", "or", "xor",
    "=", "<>", "<", ">", "<=", ">=",
    "+", "-", "*", "/", "%", "|", "&", "^",
    "||", "<->", "~", "&&",
    "like", "not-like", "ilike", "not-ilike",
    "similar-to", "not-similar-to",
    "regexp",
    "is", "is-not",
    "is-distinct-from", "is-not-distinct-from",
    "with-ordinality",
})

# Alternate spellings -> canonical operator
OPERATOR_ALIASES: dict[str, str] = {
    "not=": "<>",
    "!=": "<>",
    "regex": "regexp",
}

# Operators that may take a single operand (`- x`)
UNARY_OPERATORS: frozenset[str] = frozenset({"+", "-", "~"})

# Operators whose None operands are dropped before rendering
IGNORE_NIL_OPERATORS: frozenset[str] = frozenset({"and", "or"})

# Equality operators that get the IS [NOT] NULL rewrite
EQUALITY_OPERATORS: frozenset[str] = frozenset({"=", "<>"})

MEMBERSHIP_OPERATORS: frozenset[str] = frozenset({"in", "not-in"})

# Value rendered when and/or have no operands left
EMPTY_OPERAND_RESULTS: dict[str, str] = {
    "and": "TRUE",
    "or": "FALSE",
}
