"""Built-in clause formatters.

Each formatter receives the clause key, the clause value and the context
(whose ``statement`` is the whole clause map), and returns ``[sql, *params]``.
An empty SQL fragment means the clause renders to nothing.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pyhoneysql._constants import SET_OPERATION_CLAUSES
from pyhoneysql._context import FormatContext
from pyhoneysql._errors import (
    ERR_MSG_DANGEROUS_STATEMENT,
    ERR_MSG_SUSPICIOUS_ENTITY,
    DangerousStatementError,
    IllegalShapeError,
    InvalidIdentifierError,
)
from pyhoneysql._format import (
    format_dsl,
    format_entity,
    format_expr,
    format_expr_list,
    format_order_items,
    format_raw,
)
from pyhoneysql._types import ExprKind, classify, is_ident
from pyhoneysql._utils import format_type_name, sql_kw

_TABLE_CLAUSES = frozenset({"from", "using", "delete"})

# Keys that force a set-operation branch into parentheses
_BRANCH_PAREN_KEYS = frozenset({
    *SET_OPERATION_CLAUSES,
    "order-by", "limit", "offset", "for", "lock", "with", "with-recursive",
})


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _is_clause(value: Any, ctx: FormatContext) -> bool:
    return classify(value, ctx.registry.clause_keys) is ExprKind.CLAUSE


def _is_alias_pair(item: Any, ctx: FormatContext) -> bool:
    """True for ``[expr, alias]``, as opposed to a two-element operation."""
    if not isinstance(item, (list, tuple)) or len(item) != 2:
        return False
    first, alias = item
    if not isinstance(alias, str) or alias == "*" or alias.startswith("%"):
        return False
    if not (is_ident(alias) or alias.startswith("'")):
        return False
    if isinstance(first, str) and (
        first.startswith("%") or ctx.registry.is_operator(first)
    ):
        return False
    return True


def _format_name(name: Any, ctx: FormatContext) -> str:
    """Render a bare table or column name, rejecting anything not identifier-shaped."""
    if not isinstance(name, str) or not is_ident(name):
        if isinstance(name, str) and ";" in name:
            raise InvalidIdentifierError(f"{ERR_MSG_SUSPICIOUS_ENTITY}: {name}")
        raise InvalidIdentifierError(
            f"invalid identifier: {name!r}",
            f"expected a table or column name, got {name!r}",
        )
    return format_entity(name, ctx)


def _alias_separator(ctx: FormatContext, table: bool) -> str:
    if table and not ctx.dialect.supports_table_alias_as():
        return " "
    return " AS "


def format_item(item: Any, ctx: FormatContext, *, table: bool = False) -> list[Any]:
    """Render one select/from item, handling the ``[expr, alias]`` form."""
    if _is_alias_pair(item, ctx):
        expr, alias = item
        if table and isinstance(expr, str):
            sql, params = _format_name(expr, ctx), []
        else:
            sql, *params = format_expr(expr, ctx)
        alias_sql = format_entity(alias, ctx, aliased=True)
        return [f"{sql}{_alias_separator(ctx, table)}{alias_sql}", *params]
    if isinstance(item, str):
        if not is_ident(item):
            _format_name(item, ctx)
        if table:
            return [_format_name(item, ctx)]
    return format_expr(item, ctx)


def _format_items(items: Any, ctx: FormatContext, *, table: bool = False) -> tuple[list[str], list[Any]]:
    sqls: list[str] = []
    params: list[Any] = []
    for item in _as_list(items):
        sql, *p = format_item(item, ctx, table=table)
        sqls.append(sql)
        params.extend(p)
    return sqls, params


def format_table(table: Any, ctx: FormatContext) -> list[Any]:
    return format_item(table, ctx, table=True)


# --- SELECT / FROM ---


def format_selects(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    sqls, params = _format_items(value, ctx, table=key in _TABLE_CLAUSES)
    if not sqls:
        return [""]
    return [f"{sql_kw(key)} {', '.join(sqls)}", *params]


def format_select_distinct_on(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    """``[on_exprs, *columns]`` -> ``SELECT DISTINCT ON (a) b, c``."""
    items = _as_list(value)
    if not items:
        raise IllegalShapeError("select-distinct-on needs [on-expressions, *columns]")
    on_exprs, *columns = items
    on_sqls, params = format_expr_list(_as_list(on_exprs), ctx)
    sqls, cparams = _format_items(columns, ctx)
    return [
        f"SELECT DISTINCT ON ({', '.join(on_sqls)}) {', '.join(sqls)}",
        *params,
        *cparams,
    ]


# --- DML heads ---


def format_insert(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    """INSERT/REPLACE INTO.

    Accepts ``table``, ``[table, alias]``, ``[table, [cols]]``,
    ``[table, query]`` and ``[table, [cols], query]``.
    """
    kw = sql_kw(key)
    if isinstance(value, (list, tuple)) and _is_alias_pair(value, ctx):
        sql, *params = format_table(value, ctx)
        return [f"{kw} {sql}", *params]
    table, *rest = _as_list(value)
    sql, *params = format_table(table, ctx)
    parts = [f"{kw} {sql}"]
    if rest and isinstance(rest[0], (list, tuple)):
        columns = rest.pop(0)
        parts.append(f"({', '.join(_format_name(c, ctx) for c in columns)})")
    if rest:
        query = rest.pop(0)
        if _is_clause(query, ctx):
            qsql, *qparams = format_dsl(query, ctx)
        else:
            qsql, *qparams = format_expr(query, ctx)
        parts.append(qsql)
        params.extend(qparams)
    if rest:
        raise IllegalShapeError(
            f"unexpected {key} arguments",
            f"{key} given extra items {rest!r}",
        )
    return [" ".join(parts), *params]


def _has_where(statement: Mapping[str, Any] | None) -> bool:
    if not statement:
        return False
    where = statement.get("where")
    if where is None:
        return False
    if isinstance(where, (list, tuple, Mapping, str)) and not where:
        return False
    if isinstance(where, (list, tuple)) and len(where) == 1 and where[0] in ("and", "or"):
        return False
    return True


def _check_where(kw: str, table_sql: str, ctx: FormatContext) -> None:
    if ctx.checking_enabled and not _has_where(ctx.statement):
        raise DangerousStatementError(
            f"{kw} {table_sql} {ERR_MSG_DANGEROUS_STATEMENT}",
            f"{kw} {table_sql} has no WHERE clause with checking={ctx.checking}",
        )


def format_update(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    sql, *params = format_table(value, ctx)
    _check_where("UPDATE", sql, ctx)
    return [f"UPDATE {sql}", *params]


def format_delete_from(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    sql, *params = format_table(value, ctx)
    _check_where("DELETE FROM", sql, ctx)
    return [f"DELETE FROM {sql}", *params]


def format_delete(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    sqls, params = _format_items(value, ctx, table=True)
    _check_where("DELETE", ", ".join(sqls), ctx)
    return [f"DELETE {', '.join(sqls)}", *params]


def format_truncate(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    tables = ", ".join(_format_name(t, ctx) for t in _as_list(value))
    return [f"TRUNCATE TABLE {tables}"]


def format_columns(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    columns = _as_list(value)
    if not columns:
        return [""]
    return [f"({', '.join(_format_name(c, ctx) for c in columns)})"]


def _format_assignments(value: Any, ctx: FormatContext, clause: str) -> list[Any]:
    if not isinstance(value, Mapping) or not value:
        raise IllegalShapeError(
            f"{clause} expects a non-empty mapping of column to value",
            f"{clause} given {value!r}",
        )
    sqls: list[str] = []
    params: list[Any] = []
    for column, expr in value.items():
        sql, *p = format_expr(expr, ctx)
        sqls.append(f"{_format_name(column, ctx)} = {sql}")
        params.extend(p)
    return [", ".join(sqls), *params]


def format_set(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    sql, *params = _format_assignments(value, ctx, key)
    return [f"SET {sql}", *params]


# --- Joins ---


def _format_join_entry(kw: str, entry: Any, ctx: FormatContext) -> list[Any]:
    if not isinstance(entry, (list, tuple)) or len(entry) not in (1, 2):
        raise IllegalShapeError(
            f"{kw} entries must be [table, condition]",
            f"unsupported join entry {entry!r}",
        )
    table = entry[0]
    cond = entry[1] if len(entry) == 2 else None
    tsql, *params = format_table(table, ctx)
    if cond is None:
        return [f"{kw} {tsql}", *params]
    if isinstance(cond, (list, tuple)) and cond and cond[0] == "using":
        columns = ", ".join(_format_name(c, ctx) for c in cond[1:])
        return [f"{kw} {tsql} USING ({columns})", *params]
    csql, *cparams = format_expr(cond, ctx)
    return [f"{kw} {tsql} ON {csql}", *params, *cparams]


def _join_keyword(key: str) -> str:
    return "INNER JOIN" if key == "join" else sql_kw(key)


def format_join(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    """``[[table, cond], ...]`` -> ``INNER JOIN table ON cond ...``."""
    kw = _join_keyword(key)
    sqls: list[str] = []
    params: list[Any] = []
    for entry in _as_list(value):
        sql, *p = _format_join_entry(kw, entry, ctx)
        sqls.append(sql)
        params.extend(p)
    return [" ".join(sqls), *params]


def format_cross_join(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    sqls: list[str] = []
    params: list[Any] = []
    for table in _as_list(value):
        sql, *p = format_item(table, ctx, table=True)
        sqls.append(f"CROSS JOIN {sql}")
        params.extend(p)
    return [" ".join(sqls), *params]


def format_join_by(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    """Explicitly ordered joins: ``[join_key, entry, join_key, entry, ...]``."""
    items = _as_list(value)
    if len(items) % 2:
        raise IllegalShapeError(
            "join-by expects alternating join types and join entries",
            f"join-by given {len(items)} items",
        )
    sqls: list[str] = []
    params: list[Any] = []
    for join_key, entry in zip(items[::2], items[1::2]):
        join_key = str(join_key).lower()
        if not join_key.endswith("join"):
            join_key = f"{join_key}-join"
        if join_key == "cross-join":
            sql, *p = format_cross_join(join_key, [entry], ctx)
        else:
            sql, *p = _format_join_entry(_join_keyword(join_key), entry, ctx)
        sqls.append(sql)
        params.extend(p)
    return [" ".join(sqls), *params]


# --- Filtering, grouping, ordering ---


def format_on_expr(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    if value is None or (isinstance(value, (list, tuple)) and not value):
        return [""]
    sql, *params = format_expr(value, ctx)
    if not sql:
        return [""]
    return [f"{sql_kw(key)} {sql}", *params]


def format_group_by(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    sqls, params = format_expr_list(_as_list(value), ctx)
    if not sqls:
        return [""]
    return [f"GROUP BY {', '.join(sqls)}", *params]


def format_order_by(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    sqls, params = format_order_items(value, ctx)
    if not sqls:
        return [""]
    return [f"ORDER BY {', '.join(sqls)}", *params]


# --- VALUES / upsert ---


def format_values(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    """Row lists, or mappings whose columns come from the keys in first-seen order."""
    if value == "default":
        return ["DEFAULT VALUES"]
    rows = _as_list(value)
    if not rows:
        return ["VALUES ()"]
    params: list[Any] = []
    row_sqls: list[str] = []
    if isinstance(rows[0], Mapping):
        columns: list[str] = []
        for row in rows:
            columns.extend(c for c in row if c not in columns)
        for row in rows:
            sqls, p = format_expr_list([row.get(c) for c in columns], ctx)
            row_sqls.append(f"({', '.join(sqls)})")
            params.extend(p)
        cols_sql = ", ".join(_format_name(c, ctx) for c in columns)
        return [f"({cols_sql}) VALUES {', '.join(row_sqls)}", *params]
    for row in rows:
        sqls, p = format_expr_list(_as_list(row), ctx)
        row_sqls.append(f"({', '.join(sqls)})")
        params.extend(p)
    return [f"VALUES {', '.join(row_sqls)}", *params]


def format_on_conflict(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    items = [] if value is True else _as_list(value)
    targets = [i for i in items if not _is_clause(i, ctx)]
    clauses = [i for i in items if _is_clause(i, ctx)]
    parts = ["ON CONFLICT"]
    sqls, params = format_expr_list(targets, ctx)
    if sqls:
        parts.append(f"({', '.join(sqls)})")
    for clause in clauses:
        sql, *p = format_dsl(clause, ctx)
        parts.append(sql)
        params.extend(p)
    return [" ".join(parts), *params]


def format_on_constraint(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    return [f"ON CONSTRAINT {_format_name(value, ctx)}"]


def format_do_nothing(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    return ["DO NOTHING"]


def _excluded(columns: Any, ctx: FormatContext) -> str:
    sqls = []
    for column in _as_list(columns):
        name = _format_name(column, ctx)
        sqls.append(f"{name} = EXCLUDED.{name}")
    return ", ".join(sqls)


def format_do_update_set(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    """DO UPDATE SET from a column list, a SET mapping, or ``{fields, where}``."""
    params: list[Any] = []
    where = None
    fields = value
    if isinstance(value, Mapping) and "fields" in value:
        fields = value["fields"]
        where = value.get("where")
    if isinstance(fields, Mapping):
        sql, *params = _format_assignments(fields, ctx, key)
    else:
        sql = _excluded(fields, ctx)
    sql = f"DO UPDATE SET {sql}"
    if where is not None:
        wsql, *wparams = format_on_expr("where", where, ctx)
        if wsql:
            sql = f"{sql} {wsql}"
            params.extend(wparams)
    return [sql, *params]


# --- CTEs and set operations ---


def format_with(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    """``[[name, query], ...]``; ``name`` may be ``[name, [cols]]``."""
    sqls: list[str] = []
    params: list[Any] = []
    for entry in _as_list(value):
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise IllegalShapeError(
                f"{key} entries must be [name, query]",
                f"unsupported CTE entry {entry!r}",
            )
        name, query = entry
        if isinstance(name, (list, tuple)):
            cte_name, columns = name
            name_sql = (
                f"{_format_name(cte_name, ctx)} "
                f"({', '.join(_format_name(c, ctx) for c in columns)})"
            )
        else:
            name_sql = _format_name(name, ctx)
        if _is_clause(query, ctx):
            qsql, *p = format_dsl(query, ctx, nested=True)
        else:
            qsql, *p = format_expr(query, ctx)
            qsql = f"({qsql})"
        sqls.append(f"{name_sql} AS {qsql}")
        params.extend(p)
    return [f"{sql_kw(key)} {', '.join(sqls)}", *params]


def format_set_op(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    sqls: list[str] = []
    params: list[Any] = []
    for branch in _as_list(value):
        if _is_clause(branch, ctx):
            nested = any(k in branch for k in _BRANCH_PAREN_KEYS)
            sql, *p = format_dsl(branch, ctx, nested=nested)
        else:
            sql, *p = format_expr(branch, ctx)
        sqls.append(sql)
        params.extend(p)
    return [f" {sql_kw(key)} ".join(sqls), *params]


# --- Wrappers and locking ---


def format_raw_clause(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    return format_raw(value, ctx)


def format_nest_clause(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    if _is_clause(value, ctx):
        return format_dsl(value, ctx, nested=True)
    sql, *params = format_expr(value, ctx)
    return [f"({sql})", *params]


def format_lock(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    """``["update", "skip-locked"]`` -> ``FOR UPDATE SKIP LOCKED``."""
    items = _as_list(value)
    words = [sql_kw(key)]
    for item in items:
        if not isinstance(item, str) or not is_ident(item.replace("-", "_")):
            raise IllegalShapeError(
                f"{key} expects lock strength and option keywords",
                f"unsupported {key} item {item!r}",
            )
        words.append(sql_kw(item))
    return [" ".join(words)]


# --- DDL ---


def _format_column_spec(spec: Any, ctx: FormatContext) -> str:
    if isinstance(spec, str):
        return _format_name(spec, ctx)
    name, *types = spec
    for t in types:
        if not isinstance(t, str):
            raise IllegalShapeError(
                "column types and constraints must be strings",
                f"column {name!r} given {t!r}",
            )
    type_sql = " ".join(format_type_name(t) for t in types)
    return f"{_format_name(name, ctx)} {type_sql}".rstrip()


def _is_single_column_spec(value: Any) -> bool:
    return isinstance(value, str) or (
        isinstance(value, (list, tuple)) and bool(value) and isinstance(value[0], str)
    )


def format_create_table(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    table, *options = _as_list(value)
    opts = "".join(f" {sql_kw(o)}" for o in options)
    return [f"CREATE TABLE{opts} {_format_name(table, ctx)}"]


def format_with_columns(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    columns = ", ".join(_format_column_spec(c, ctx) for c in _as_list(value))
    return [f"({columns})"]


def format_drop_table(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    items = _as_list(value)
    if_exists = "IF EXISTS " if "if-exists" in items else ""
    tables = ", ".join(_format_name(t, ctx) for t in items if t != "if-exists")
    return [f"DROP TABLE {if_exists}{tables}"]


def format_alter_table(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    """``table`` or ``[table, {action}, ...]`` with add-column/drop-column maps."""
    table, *actions = _as_list(value)
    sql = f"ALTER TABLE {_format_name(table, ctx)}"
    params: list[Any] = []
    action_sqls: list[str] = []
    for action in actions:
        if _is_clause(action, ctx):
            asql, *p = format_dsl(action, ctx)
            params.extend(p)
        else:
            asql = sql_kw(action)
        action_sqls.append(asql)
    if action_sqls:
        sql = f"{sql} {', '.join(action_sqls)}"
    return [sql, *params]


def format_add_column(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    specs = [value] if _is_single_column_spec(value) else _as_list(value)
    return [", ".join(f"ADD COLUMN {_format_column_spec(s, ctx)}" for s in specs)]


def format_drop_column(key: str, value: Any, ctx: FormatContext) -> list[Any]:
    return [", ".join(f"DROP COLUMN {_format_name(c, ctx)}" for c in _as_list(value))]


CLAUSE_FORMATTERS = {
    "alter-table": format_alter_table,
    "add-column": format_add_column,
    "drop-column": format_drop_column,
    "create-table": format_create_table,
    "with-columns": format_with_columns,
    "drop-table": format_drop_table,
    "raw": format_raw_clause,
    "nest": format_nest_clause,
    "with": format_with,
    "with-recursive": format_with,
    "intersect": format_set_op,
    "union": format_set_op,
    "union-all": format_set_op,
    "except": format_set_op,
    "except-all": format_set_op,
    "insert-into": format_insert,
    "replace-into": format_insert,
    "update": format_update,
    "delete": format_delete,
    "delete-from": format_delete_from,
    "truncate": format_truncate,
    "columns": format_columns,
    "select": format_selects,
    "select-distinct": format_selects,
    "select-distinct-on": format_select_distinct_on,
    "set": format_set,
    "from": format_selects,
    "using": format_selects,
    "join-by": format_join_by,
    "join": format_join,
    "left-join": format_join,
    "right-join": format_join,
    "inner-join": format_join,
    "outer-join": format_join,
    "full-join": format_join,
    "cross-join": format_cross_join,
    "where": format_on_expr,
    "group-by": format_group_by,
    "having": format_on_expr,
    "order-by": format_order_by,
    "limit": format_on_expr,
    "offset": format_on_expr,
    "for": format_lock,
    "lock": format_lock,
    "values": format_values,
    "on-conflict": format_on_conflict,
    "on-constraint": format_on_constraint,
    "do-nothing": format_do_nothing,
    "do-update-set": format_do_update_set,
    "returning": format_selects,
}
