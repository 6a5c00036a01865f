"""SQL text to clause-map parsing.

SQL is parsed with a lark grammar for a PostgreSQL subset and the tree is
walked by ``ClauseBuilder``, which produces the same clause-map shapes the
formatter consumes. Grammar rules without a dedicated method become raw
SQL fragments (``{"__raw": ...}``) sliced from the source text.
"""

from __future__ import annotations

import functools
import logging
import re
from typing import Any

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput
from lark.visitors import Interpreter

from pyhoneysql._constants import (
    CTE_CLAUSES,
    DEFAULT_CLAUSE_ORDER,
    DEFAULT_MAX_PARSE_DEPTH,
)
from pyhoneysql._errors import MaxDepthExceededError, SqlParseError
from pyhoneysql._grammar import SQL_GRAMMAR
from pyhoneysql._types import RAW_KEY, VALUE_KEY

logger = logging.getLogger(__name__)

_PLAIN_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_LOWER_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]*$")
_E_STRING_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f"}
_E_STRING_RE = re.compile(r"\\(.)", re.DOTALL)

_SET_OPS = {
    "union_op": "union",
    "union_all_op": "union-all",
    "intersect_op": "intersect",
    "except_op": "except",
    "except_all_op": "except-all",
}

_JOIN_KEYS = {
    "inner_join": "join",
    "left_join": "left-join",
    "right_join": "right-join",
    "full_join": "full-join",
    "cross_join": "cross-join",
}

_BINARY_PREDICATES = {
    "like": "like",
    "not_like": "not-like",
    "ilike": "ilike",
    "not_ilike": "not-ilike",
    "similar_to": "similar-to",
    "not_similar_to": "not-similar-to",
    "is_distinct_from": "is-distinct-from",
    "is_not_distinct_from": "is-not-distinct-from",
}

_IS_TESTS = {
    "is_null": ("is", None),
    "is_not_null": ("is-not", None),
    "is_true": ("is", True),
    "is_not_true": ("is-not", True),
    "is_false": ("is", False),
    "is_not_false": ("is-not", False),
}

_LOCK_STRENGTHS = {
    "lock_update": "update",
    "lock_no_key_update": "no-key-update",
    "lock_share": "share",
    "lock_key_share": "key-share",
}

_LOCK_WAITS = {"lock_nowait": "nowait", "lock_skip_locked": "skip-locked"}

_COLUMN_CONSTRAINTS = {
    "primary_key": "primary-key",
    "not_null": "not-null",
    "nullable": "null",
    "unique": "unique",
}

# Typed-literal prefixes that have no typed-value equivalent
_RAW_LITERAL_PREFIXES = frozenset({"b", "x", "u"})


@functools.cache
def _get_parser() -> Lark:
    return Lark(
        SQL_GRAMMAR,
        parser="earley",
        lexer="basic",
        propagate_positions=True,
    )


def _unquote_string(text: str) -> str:
    return text[1:-1].replace("''", "'")


def _unescape_e_string(text: str) -> str:
    return _E_STRING_RE.sub(
        lambda m: _E_STRING_ESCAPES.get(m.group(1), m.group(1)), text
    )


def _number(text: str) -> int | float:
    if any(c in text for c in ".eE"):
        return float(text)
    return int(text)


def _typed(value: Any) -> dict[str, Any]:
    return {VALUE_KEY: value}


def _is_typed_literal(value: Any) -> bool:
    return isinstance(value, dict) and len(value) == 1 and VALUE_KEY in value


def _has_ctes(clause: dict[str, Any]) -> bool:
    return any(key in clause for key in CTE_CLAUSES)


class ClauseBuilder(Interpreter):
    """Builds clause maps from a parse tree of ``SQL_GRAMMAR``.

    Literal numbers, strings and booleans become typed values ``{"$": v}``,
    NULL becomes ``None`` and column references become identifier strings.
    """

    def __init__(self, text: str, max_depth: int = DEFAULT_MAX_PARSE_DEPTH) -> None:
        self._text = text
        self._max_depth = max_depth
        self._depth = 0

    def visit(self, tree: Tree) -> Any:
        self._depth += 1
        try:
            if self._depth > self._max_depth:
                raise MaxDepthExceededError(
                    "SQL nesting exceeds maximum parse depth",
                    f"depth {self._depth} exceeds limit {self._max_depth}",
                )
            return super().visit(tree)
        finally:
            self._depth -= 1

    def __default__(self, tree: Tree) -> dict[str, Any]:
        logger.debug("no mapping for %s, keeping raw SQL", tree.data)
        return self._raw(tree)

    def _raw(self, tree: Tree) -> dict[str, Any]:
        return {RAW_KEY: self._text[tree.meta.start_pos:tree.meta.end_pos]}

    def _visit_all(self, children: list[Any]) -> list[Any]:
        return [self.visit(child) for child in children]

    # --- Names ---

    def _name(self, token: Token) -> tuple[str, bool]:
        """Return ``(name, plain)``; plain names render correctly unquoted."""
        if token.type == "QUOTED_NAME":
            name = token.value[1:-1].replace('""', '"')
            return name, _LOWER_NAME_RE.match(name) is not None
        return token.value, _PLAIN_NAME_RE.match(token.value) is not None

    def _ident(self, token: Token) -> str:
        return self._name(token)[0]

    def _qualified(self, tokens: list[Token]) -> str | list[str]:
        parts = [self._name(t) for t in tokens]
        name = ".".join(p for p, _ in parts)
        if all(plain for _, plain in parts):
            return name
        return ["entity", name]

    def _alias(self, token: Token) -> str:
        name, plain = self._name(token)
        if plain:
            return name
        return "'\"" + name.replace('"', '""') + '"'

    def qualified_name(self, tree: Tree) -> str | list[str]:
        return self._qualified(tree.children)

    def column_ref(self, tree: Tree) -> str | list[str]:
        return self._qualified(tree.children)

    def ident_list(self, tree: Tree) -> list[str]:
        return [self._ident(t) for t in tree.children]

    def alias_clause(self, tree: Tree) -> str:
        return self._alias(tree.children[0])

    # --- Statements ---

    def start(self, tree: Tree) -> list[dict[str, Any]]:
        return self._visit_all(tree.children)

    def query(self, tree: Tree) -> dict[str, Any]:
        ctes = None
        body: dict[str, Any] = {}
        tail: dict[str, Any] = {}
        for child in tree.children:
            kind = child.data
            if kind in ("with_clause", "with_recursive_clause"):
                ctes = self.visit(child)
            elif kind == "order_clause":
                tail["order-by"] = self.visit(child)
            elif kind == "limit_part":
                tail["limit"] = self.visit(child.children[0])
            elif kind == "limit_all":
                continue
            elif kind == "offset_part":
                tail["offset"] = self.visit(child.children[0])
            elif kind == "fetch_part":
                tail["limit"] = (
                    self.visit(child.children[0]) if child.children else _typed(1)
                )
            elif kind == "for_clause":
                tail["for"] = self.visit(child)
            else:
                body = self.visit(child)
        if any(key in body for key in tail) or (ctes and _has_ctes(body)):
            body = {"nest": body}
        if ctes:
            body = {ctes[0]: ctes[1], **body}
        body.update(tail)
        return body

    def select_core(self, tree: Tree) -> dict[str, Any]:
        clause: dict[str, Any] = {}
        select_key = "select"
        on_exprs = None
        for child in tree.children:
            kind = child.data
            if kind == "distinct_all":
                select_key = "select-distinct"
            elif kind == "distinct_on":
                select_key = "select-distinct-on"
                on_exprs = self.visit(child.children[0])
            elif kind == "select_all":
                continue
            elif kind == "select_list":
                items = self.visit(child)
                clause[select_key] = items if on_exprs is None else [on_exprs, *items]
            elif kind == "from_clause":
                clause.update(self.visit(child))
            else:
                key, value = self.visit(child)
                clause[key] = value
        return clause

    def _set_op(self, tree: Tree) -> dict[str, Any]:
        key = _SET_OPS[tree.data]
        left, right = self._visit_all(tree.children)
        if list(left) == [key]:
            return {key: [*left[key], right]}
        return {key: [left, right]}

    union_op = _set_op
    union_all_op = _set_op
    intersect_op = _set_op
    except_op = _set_op
    except_all_op = _set_op

    def with_clause(self, tree: Tree) -> tuple[str, list[Any]]:
        return "with", self._visit_all(tree.children)

    def with_recursive_clause(self, tree: Tree) -> tuple[str, list[Any]]:
        return "with-recursive", self._visit_all(tree.children)

    def cte(self, tree: Tree) -> list[Any]:
        name = self._ident(tree.children[0])
        if len(tree.children) == 3:
            columns = self.visit(tree.children[1].children[0])
            return [[name, columns], self.visit(tree.children[2])]
        return [name, self.visit(tree.children[1])]

    # --- SELECT list ---

    def select_list(self, tree: Tree) -> list[Any]:
        return self._visit_all(tree.children)

    def select_star(self, tree: Tree) -> str:
        return "*"

    def select_qualified_star(self, tree: Tree) -> Any:
        name = self.visit(tree.children[0])
        if isinstance(name, str):
            return f"{name}.*"
        return self._raw(tree)

    def select_expr(self, tree: Tree) -> Any:
        return self.visit(tree.children[0])

    def select_aliased(self, tree: Tree) -> list[Any]:
        expr, alias = tree.children
        return [self.visit(expr), self._alias(alias)]

    # --- FROM and joins ---

    def from_clause(self, tree: Tree) -> dict[str, Any]:
        """Split FROM items into base tables and join clauses.

        Joins are grouped under their own clause keys when that keeps their
        written order; otherwise they are kept in order under ``join-by``.
        When an item other than the last carries joins, the whole list is
        read as one join chain: ``a JOIN b ON x, c`` becomes ``a JOIN b ON x
        CROSS JOIN c``.
        """
        items = tree.children
        chained = any(len(item.children) > 1 for item in items[:-1])
        tables: list[Any] = []
        joins: list[tuple[str, Any]] = []
        for index, item in enumerate(items):
            table_ref, *join_parts = item.children
            table = self.visit(table_ref)
            if chained and index > 0:
                joins.append(("cross-join", table))
            else:
                tables.append(table)
            joins.extend(self._join(part) for part in join_parts)
        clause: dict[str, Any] = {}
        if len(tables) == 1 and isinstance(tables[0], str):
            clause["from"] = tables[0]
        else:
            clause["from"] = tables
        clause.update(self._group_joins(joins))
        return clause

    def _join(self, tree: Tree) -> tuple[str, Any]:
        key = _JOIN_KEYS[tree.data]
        table = self.visit(tree.children[0])
        if key == "cross-join":
            return key, table
        return key, [table, self.visit(tree.children[1])]

    def _group_joins(self, joins: list[tuple[str, Any]]) -> dict[str, Any]:
        if not joins:
            return {}
        positions = [DEFAULT_CLAUSE_ORDER.index(key) for key, _ in joins]
        if positions != sorted(positions):
            return {"join-by": [part for join in joins for part in join]}
        grouped: dict[str, list[Any]] = {}
        for key, entry in joins:
            grouped.setdefault(key, []).append(entry)
        return grouped

    def join_on(self, tree: Tree) -> Any:
        return self.visit(tree.children[0])

    def join_using(self, tree: Tree) -> list[str]:
        return ["using", *self.visit(tree.children[0])]

    def _aliased(self, value: Any, children: list[Any]) -> Any:
        for child in children:
            if isinstance(child, Tree) and child.data == "alias_clause":
                return [value, self.visit(child)]
        return value

    def relation_ref(self, tree: Tree) -> Any:
        return self._aliased(self.visit(tree.children[0]), tree.children[1:])

    def subquery_ref(self, tree: Tree) -> Any:
        return self._aliased(self.visit(tree.children[0]), tree.children[1:])

    def lateral_ref(self, tree: Tree) -> Any:
        value = ["lateral", self.visit(tree.children[0])]
        return self._aliased(value, tree.children[1:])

    def function_ref(self, tree: Tree) -> Any:
        return self._aliased(self.visit(tree.children[0]), tree.children[1:])

    def using_clause(self, tree: Tree) -> tuple[str, list[Any]]:
        return "using", self._visit_all(tree.children)

    # --- WHERE / GROUP BY / HAVING / ORDER BY / FOR ---

    def where_clause(self, tree: Tree) -> tuple[str, Any]:
        return "where", self.visit(tree.children[0])

    def group_clause(self, tree: Tree) -> tuple[str, list[Any]]:
        return "group-by", self.visit(tree.children[0])

    def having_clause(self, tree: Tree) -> tuple[str, Any]:
        return "having", self.visit(tree.children[0])

    def order_clause(self, tree: Tree) -> list[Any]:
        return self._visit_all(tree.children)

    def order_item(self, tree: Tree) -> list[Any]:
        expr, *modifiers = tree.children
        item = [self.visit(expr), "asc"]
        for modifier in modifiers:
            if modifier.data == "order_desc":
                item[1] = "desc"
            elif modifier.data == "nulls_first":
                item.append("nulls-first")
            elif modifier.data == "nulls_last":
                item.append("nulls-last")
        return item

    def for_clause(self, tree: Tree) -> str | list[str]:
        strength, *wait = tree.children
        words = [_LOCK_STRENGTHS[strength.data]]
        words.extend(_LOCK_WAITS[w.data] for w in wait)
        return words[0] if len(words) == 1 else words

    # --- INSERT ---

    def insert_stmt(self, tree: Tree) -> dict[str, Any]:
        clause: dict[str, Any] = {}
        table: Any = None
        columns = None
        source: Any = None
        for child in tree.children:
            kind = child.data
            if kind in ("with_clause", "with_recursive_clause"):
                key, ctes = self.visit(child)
                clause[key] = ctes
            elif kind == "qualified_name":
                table = self.visit(child)
            elif kind == "insert_alias":
                table = [table, self._alias(child.children[0])]
            elif kind == "insert_columns":
                columns = self.visit(child.children[0])
            elif kind == "values_source":
                source = ("values", [self.visit(row.children[0]) for row in child.children])
            elif kind == "query_source":
                source = ("query", self.visit(child.children[0]))
            elif kind == "default_values_source":
                source = ("values", "default")
            elif kind == "on_conflict":
                clause.update(self.visit(child))
            elif kind == "returning_clause":
                clause["returning"] = self.visit(child.children[0])
        source_kind, source_value = source
        if source_kind == "query":
            parts = [table] if columns is None else [table, columns]
            clause["insert-into"] = [*parts, source_value]
        else:
            clause["insert-into"] = table
            if columns is not None:
                clause["columns"] = columns
            clause["values"] = source_value
        return clause

    def on_conflict(self, tree: Tree) -> dict[str, Any]:
        clause: dict[str, Any] = {"on-conflict": []}
        for child in tree.children:
            kind = child.data
            if kind == "conflict_columns":
                clause["on-conflict"] = self.visit(child.children[0])
            elif kind == "conflict_constraint":
                clause["on-constraint"] = self._ident(child.children[0])
            elif kind == "do_nothing":
                clause["do-nothing"] = True
            elif kind == "do_update":
                fields = self.visit(child.children[0])
                if len(child.children) == 2:
                    _, where = self.visit(child.children[1])
                    clause["do-update-set"] = {"fields": fields, "where": where}
                else:
                    clause["do-update-set"] = fields
        return clause

    # --- UPDATE / DELETE ---

    def set_list(self, tree: Tree) -> dict[str, Any]:
        return dict(self._visit_all(tree.children))

    def set_item(self, tree: Tree) -> tuple[str, Any]:
        column, expr = tree.children
        return self._ident(column), self.visit(expr)

    def _dml(self, head: str, tree: Tree) -> dict[str, Any]:
        clause: dict[str, Any] = {}
        table: Any = None
        for child in tree.children:
            kind = child.data
            if kind in ("with_clause", "with_recursive_clause"):
                key, ctes = self.visit(child)
                clause[key] = ctes
            elif kind == "qualified_name":
                table = self.visit(child)
                clause[head] = table
            elif kind == "alias_clause":
                clause[head] = [table, self.visit(child)]
            elif kind == "set_list":
                clause["set"] = self.visit(child)
            elif kind == "from_clause":
                clause.update(self.visit(child))
            elif kind == "returning_clause":
                clause["returning"] = self.visit(child.children[0])
            else:
                key, value = self.visit(child)
                clause[key] = value
        return clause

    def update_stmt(self, tree: Tree) -> dict[str, Any]:
        return self._dml("update", tree)

    def delete_stmt(self, tree: Tree) -> dict[str, Any]:
        return self._dml("delete-from", tree)

    # --- DDL ---

    def create_table_stmt(self, tree: Tree) -> dict[str, Any]:
        children = tree.children
        if_not_exists = children[0].data == "if_not_exists"
        if if_not_exists:
            children = children[1:]
        table = self.visit(children[0])
        return {
            "create-table": [table, "if-not-exists"] if if_not_exists else table,
            "with-columns": self._visit_all(children[1:]),
        }

    def column_def(self, tree: Tree) -> list[str]:
        name, type_name, *constraints = tree.children
        return [
            self._ident(name),
            self.visit(type_name),
            *(_COLUMN_CONSTRAINTS[c.data] for c in constraints),
        ]

    def drop_table_stmt(self, tree: Tree) -> dict[str, Any]:
        children = tree.children
        if_exists = children[0].data == "if_exists"
        tables = self._visit_all(children[1:] if if_exists else children)
        if if_exists:
            tables.append("if-exists")
        return {"drop-table": tables[0] if len(tables) == 1 else tables}

    def truncate_stmt(self, tree: Tree) -> dict[str, Any]:
        tables = self._visit_all(tree.children)
        return {"truncate": tables[0] if len(tables) == 1 else tables}

    def alter_table_stmt(self, tree: Tree) -> dict[str, Any]:
        table, *actions = tree.children
        name = self.visit(table)
        built = self._visit_all(actions)
        if len(built) == 1:
            return {"alter-table": name, **built[0]}
        return {"alter-table": [name, *built]}

    def add_column(self, tree: Tree) -> dict[str, Any]:
        return {"add-column": self.visit(tree.children[0])}

    def drop_column(self, tree: Tree) -> dict[str, Any]:
        return {"drop-column": self._ident(tree.children[0])}

    # --- Types ---

    def type_name(self, tree: Tree) -> str:
        base, *rest = tree.children
        name = self.visit(base)
        for child in rest:
            if child.data == "type_modifier":
                name += "(" + ",".join(t.value for t in child.children) + ")"
            else:
                name += "[]"
        return name

    def type_simple(self, tree: Tree) -> str:
        return ".".join(t.value.lower() for t in tree.children)

    def type_precision(self, tree: Tree) -> str:
        return f"{tree.children[0].value.lower()}-precision"

    def type_varying(self, tree: Tree) -> str:
        return f"{tree.children[0].value.lower()}-varying"

    def type_with_time_zone(self, tree: Tree) -> str:
        return f"{tree.children[0].value.lower()}-with-time-zone"

    def type_without_time_zone(self, tree: Tree) -> str:
        return f"{tree.children[0].value.lower()}-without-time-zone"

    # --- Boolean and comparison operators ---

    def _flatten(self, op: str, tree: Tree) -> list[Any]:
        # walk the left spine iteratively; long AND/OR chains are left-deep
        operands: list[Tree] = []
        node = tree
        while isinstance(node, Tree) and node.data == tree.data:
            operands.append(node.children[1])
            node = node.children[0]
        operands.append(node)
        return [op, *self._visit_all(reversed(operands))]

    def or_op(self, tree: Tree) -> list[Any]:
        return self._flatten("or", tree)

    def and_op(self, tree: Tree) -> list[Any]:
        return self._flatten("and", tree)

    def not_op(self, tree: Tree) -> list[Any]:
        return ["not", self.visit(tree.children[0])]

    def comparison(self, tree: Tree) -> list[Any]:
        left, op, right = tree.children
        name = "<>" if op.value == "!=" else op.value
        return [name, self.visit(left), self.visit(right)]

    def binary_op(self, tree: Tree) -> list[Any]:
        left, op, right = tree.children
        return [op.value, self.visit(left), self.visit(right)]

    def _is_test(self, tree: Tree) -> list[Any]:
        op, value = _IS_TESTS[tree.data]
        return [op, self.visit(tree.children[0]), value]

    is_null = _is_test
    is_not_null = _is_test
    is_true = _is_test
    is_not_true = _is_test
    is_false = _is_test
    is_not_false = _is_test

    def _binary_predicate(self, tree: Tree) -> list[Any]:
        return [_BINARY_PREDICATES[tree.data], *self._visit_all(tree.children)]

    like = _binary_predicate
    not_like = _binary_predicate
    ilike = _binary_predicate
    not_ilike = _binary_predicate
    similar_to = _binary_predicate
    not_similar_to = _binary_predicate
    is_distinct_from = _binary_predicate
    is_not_distinct_from = _binary_predicate

    def between(self, tree: Tree) -> list[Any]:
        return ["between", *self._visit_all(tree.children)]

    def not_between(self, tree: Tree) -> list[Any]:
        return ["not-between", *self._visit_all(tree.children)]

    def in_op(self, tree: Tree) -> list[Any]:
        return ["in", *self._visit_all(tree.children)]

    def not_in_op(self, tree: Tree) -> list[Any]:
        return ["not-in", *self._visit_all(tree.children)]

    def in_subquery(self, tree: Tree) -> dict[str, Any]:
        return self.visit(tree.children[0])

    def in_list(self, tree: Tree) -> list[Any]:
        items = self.visit(tree.children[0])
        if isinstance(items[0], (str, list)):
            return ["composite", *items]
        return items

    # --- Arithmetic and postfix ---

    def negate(self, tree: Tree) -> Any:
        value = self.visit(tree.children[1])
        if _is_typed_literal(value) and isinstance(value[VALUE_KEY], (int, float)):
            return _typed(-value[VALUE_KEY])
        return ["-", value]

    def unary_plus(self, tree: Tree) -> list[Any]:
        return ["+", self.visit(tree.children[1])]

    def at_time_zone(self, tree: Tree) -> list[Any]:
        return ["at-time-zone", *self._visit_all(tree.children)]

    def typecast(self, tree: Tree) -> Any:
        value = self.visit(tree.children[0])
        sql_type = self.visit(tree.children[1])
        if (
            _is_typed_literal(value)
            and isinstance(value[VALUE_KEY], str)
            and sql_type not in DEFAULT_CLAUSE_ORDER
        ):
            return {sql_type: value[VALUE_KEY]}
        return ["cast", value, sql_type]

    def cast_expr(self, tree: Tree) -> list[Any]:
        return ["cast", self.visit(tree.children[0]), self.visit(tree.children[1])]

    def subscript(self, tree: Tree) -> list[Any]:
        return ["at", *self._visit_all(tree.children)]

    def field_access(self, tree: Tree) -> list[Any]:
        return [".", self.visit(tree.children[0]), self._ident(tree.children[1])]

    # --- Primaries ---

    def number(self, tree: Tree) -> dict[str, Any]:
        return _typed(_number(tree.children[0].value))

    def string(self, tree: Tree) -> dict[str, Any]:
        return _typed(_unquote_string(tree.children[0].value))

    def true(self, tree: Tree) -> dict[str, Any]:
        return _typed(True)

    def false(self, tree: Tree) -> dict[str, Any]:
        return _typed(False)

    def null(self, tree: Tree) -> None:
        return None

    def typed_literal(self, tree: Tree) -> Any:
        prefix, text = tree.children
        kind = prefix.value.lower()
        value = _unquote_string(text.value)
        if kind == "e":
            return _typed(_unescape_e_string(value))
        if kind == "interval":
            return ["interval", value]
        if kind in _RAW_LITERAL_PREFIXES:
            return self._raw(tree)
        return {kind: value}

    def param_ref(self, tree: Tree) -> list[str]:
        return ["param", tree.children[0].value[1:]]

    def paren_expr(self, tree: Tree) -> Any:
        return self.visit(tree.children[0])

    def row_expr(self, tree: Tree) -> list[Any]:
        items: list[Any] = []
        for child in tree.children:
            if child.data == "expr_list":
                items.extend(self.visit(child))
            else:
                items.append(self.visit(child))
        return ["composite", *items]

    def subquery_expr(self, tree: Tree) -> dict[str, Any]:
        return self.visit(tree.children[0])

    def exists_expr(self, tree: Tree) -> list[Any]:
        return ["exists", self.visit(tree.children[0])]

    def array_literal(self, tree: Tree) -> list[Any]:
        items = self.visit(tree.children[0]) if tree.children else []
        return ["array", items]

    def array_subquery(self, tree: Tree) -> list[Any]:
        return ["array", self.visit(tree.children[0])]

    def extract_expr(self, tree: Tree) -> list[Any]:
        field_name, value = tree.children
        return ["extract", self._ident(field_name).lower(), self.visit(value)]

    def all_expr(self, tree: Tree) -> list[Any]:
        return ["%all", self.visit(tree.children[0])]

    def any_expr(self, tree: Tree) -> list[Any]:
        return ["%any", self.visit(tree.children[0])]

    def default_value(self, tree: Tree) -> list[str]:
        return ["default"]

    def expr_list(self, tree: Tree) -> list[Any]:
        return self._visit_all(tree.children)

    # --- CASE ---

    def _case_branches(self, children: list[Tree]) -> list[Any]:
        branches: list[Any] = []
        for child in children:
            if child.data == "when_clause":
                branches.extend(self._visit_all(child.children))
            else:
                branches.extend(["else", self.visit(child.children[0])])
        return branches

    def case_searched(self, tree: Tree) -> list[Any]:
        return ["case", *self._case_branches(tree.children)]

    def case_simple(self, tree: Tree) -> list[Any]:
        subject, *branches = tree.children
        return ["case-expr", self.visit(subject), *self._case_branches(branches)]

    # --- Function calls ---

    def func_call(self, tree: Tree) -> Any:
        name_tree, *rest = tree.children
        name = "%" + ".".join(t.value.lower() for t in name_tree.children)
        args: list[Any] = []
        fn_filter = None
        window: Any = None
        windowed = False
        for child in rest:
            kind = child.data
            if kind == "args_star":
                args = ["*"]
            elif kind in ("args_list", "args_distinct"):
                if len(child.children) > 1:
                    # ordered-set aggregate arguments have no clause-map form
                    return self._raw(tree)
                args = self.visit(child.children[0])
                if kind == "args_distinct":
                    name += "-distinct"
            elif kind == "filter_clause":
                fn_filter = self.visit(child.children[0])
            elif kind == "over_named":
                windowed = True
                window = self._ident(child.children[0])
            elif kind == "over_clause":
                windowed = True
                window = self.visit(child.children[0])
        call: Any = [name, *args]
        if fn_filter is not None:
            call = ["filter", call, fn_filter]
        if windowed:
            call = ["over", call] if window is None else ["over", call, window]
        return call

    def window_spec(self, tree: Tree) -> dict[str, Any] | None:
        spec: dict[str, Any] = {}
        for child in tree.children:
            if child.data == "partition_clause":
                spec["partition-by"] = self.visit(child.children[0])
            elif child.data == "order_clause":
                spec["order-by"] = self.visit(child)
            else:
                spec["frame"] = self._raw(child)
        return spec or None


def _parse(text: str, max_depth: int | None) -> list[dict[str, Any]]:
    try:
        tree = _get_parser().parse(text)
    except UnexpectedInput as exc:
        line = getattr(exc, "line", None)
        column = getattr(exc, "column", None)
        # lark reports -1 for errors at end of input
        if line is None or line < 0:
            line = column = None
            message = "could not parse SQL: unexpected end of input"
        else:
            message = f"could not parse SQL at line {line}, column {column}"
        raise SqlParseError(
            message,
            str(exc),
            wrapped=exc,
            line=line,
            column=column,
        ) from exc
    builder = ClauseBuilder(
        text, max_depth if max_depth is not None else DEFAULT_MAX_PARSE_DEPTH
    )
    return builder.visit(tree)


def from_sql(text: str, *, max_depth: int | None = None) -> dict[str, Any]:
    """Parse SQL text into a clause map.

    Only the first statement is returned when ``text`` holds several.

    Args:
        text: SQL text in the supported PostgreSQL subset.
        max_depth: Maximum parse-tree nesting depth.

    Returns:
        The clause map of the first statement.

    Raises:
        SqlParseError: If the text cannot be parsed.
    """
    if not text.strip(" \t\r\n;"):
        raise SqlParseError(
            "could not parse SQL: empty input",
            f"no statement found in {text!r}",
        )
    return _parse(text, max_depth)[0]


def from_sql_multi(text: str, *, max_depth: int | None = None) -> list[dict[str, Any]]:
    """Parse every ``;``-separated statement in ``text`` into clause maps."""
    if not text.strip(" \t\r\n;"):
        return []
    return _parse(text, max_depth)


def normalize_sql(text: str, *, dialect: str | None = None) -> str:
    """Re-serialize SQL text through parsing and inline formatting.

    Useful for comparing SQL text modulo whitespace, keyword case and
    redundant parentheses. Statements are joined with ``"; "``.

    The text is rendered back by this package's own formatter, not by an
    independent SQL printer, so comparing ``normalize_sql`` output only
    shows that the parser and formatter agree with each other. Constructs
    the parser keeps as raw fragments are passed through unchanged.
    """
    from pyhoneysql import format as format_sql

    statements = from_sql_multi(text)
    return "; ".join(
        format_sql(statement, dialect=dialect, inline=True)[0]
        for statement in statements
    )
