"""Expression and statement formatting.

Every formatter returns a list ``[sql, *params]``: the SQL fragment followed
by the parameter values it consumed, in placeholder order.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from pyhoneysql._context import FormatContext
from pyhoneysql._errors import (
    ERR_MSG_EMPTY_IN,
    ERR_MSG_MISSING_PARAMETER,
    ERR_MSG_SUSPICIOUS_ENTITY,
    ERR_MSG_UNKNOWN_CLAUSE,
    ERR_MSG_UNKNOWN_OPERATOR,
    IllegalShapeError,
    InvalidIdentifierError,
    MaxDepthExceededError,
    MissingParameterError,
    UnknownClauseError,
    UnknownOperatorError,
)
from pyhoneysql._operators import (
    EMPTY_OPERAND_RESULTS,
    EQUALITY_OPERATORS,
    MEMBERSHIP_OPERATORS,
)
from pyhoneysql._types import (
    LIFT_KEY,
    LITERAL_KEY,
    PARAM_KEY,
    RAW_KEY,
    VALUE_KEY,
    ExprKind,
    classify,
    is_ident,
)
from pyhoneysql._utils import (
    format_type_name,
    json_dumps,
    needs_quoting,
    snake_case,
    sql_kw,
    sqlize_value,
    validate_identifier,
)

_JSON_TYPES = frozenset({"json", "jsonb"})
# function heads: "coalesce", "count-distinct", "%date-trunc", "pg_catalog.now"
_FN_NAME_RE = re.compile(r"^%?[a-zA-Z_][a-zA-Z0-9_$]*(?:[-.][a-zA-Z0-9_$]+)*$")


def format_expr(expr: Any, ctx: FormatContext, *, nested: bool = False) -> list[Any]:
    """Render a single expression.

    Args:
        expr: Identifier, literal, typed value, wrapper, operation array or
            nested clause map.
        ctx: The formatting context.
        nested: Whether the expression is embedded in a larger expression;
            infix results are parenthesized when True.

    Returns:
        ``[sql, *params]``.

    Raises:
        MaxDepthExceededError: If nesting exceeds ``ctx.max_depth``.
    """
    state = ctx.state
    state.depth += 1
    try:
        if state.depth > ctx.max_depth:
            raise MaxDepthExceededError(
                f"expression exceeds maximum nesting depth of {ctx.max_depth}",
                f"depth {state.depth} > {ctx.max_depth}",
            )
        return _dispatch(expr, ctx, nested)
    finally:
        state.depth -= 1


def _dispatch(expr: Any, ctx: FormatContext, nested: bool) -> list[Any]:
    kind = classify(expr, ctx.registry.clause_keys)
    if kind is ExprKind.IDENT:
        return format_var(expr, ctx)
    if kind is ExprKind.CLAUSE:
        return format_dsl(expr, ctx, nested=True)
    if kind is ExprKind.ARRAY:
        return format_array(expr, ctx, nested=nested)
    if kind is ExprKind.RAW:
        return format_raw(expr[RAW_KEY], ctx)
    if kind is ExprKind.PARAM:
        return format_param_ref(expr[PARAM_KEY], ctx)
    if kind is ExprKind.LIFT:
        return format_value(expr[LIFT_KEY], ctx)
    if kind is ExprKind.INLINE:
        return [sqlize_value(expr[LITERAL_KEY], ctx.dialect)]
    if kind is ExprKind.TYPED:
        return format_typed(expr, ctx)
    return format_literal(expr, ctx)


# --- Values ---


def format_value(value: Any, ctx: FormatContext) -> list[Any]:
    """Render a value inline or as a placeholder, depending on ``ctx.inline``."""
    if ctx.inline:
        return [sqlize_value(value, ctx.dialect)]
    return [ctx.next_placeholder(), value]


def format_literal(value: Any, ctx: FormatContext) -> list[Any]:
    # booleans and NULL are keywords, never bound parameters
    if value is None or isinstance(value, bool):
        return [sqlize_value(value, ctx.dialect)]
    return format_value(value, ctx)


def format_typed(expr: Mapping[str, Any], ctx: FormatContext) -> list[Any]:
    ((sql_type, value),) = expr.items()
    if sql_type == VALUE_KEY:
        return format_literal(value, ctx)
    if sql_type.lower() in _JSON_TYPES and isinstance(value, (dict, list)):
        value = json_dumps(value)
    sql, *params = format_literal(value, ctx)
    return [f"{sql}::{format_type_name(sql_type)}", *params]


def format_param_ref(name: Any, ctx: FormatContext) -> list[Any]:
    return format_value(resolve_param(name, ctx), ctx)


def resolve_param(name: Any, ctx: FormatContext) -> Any:
    key = str(name)
    if key not in ctx.params:
        raise MissingParameterError(
            f"{ERR_MSG_MISSING_PARAMETER} {key}",
            f"params has keys {sorted(ctx.params)}",
        )
    return ctx.params[key]


def format_raw(raw: Any, ctx: FormatContext) -> list[Any]:
    """Splice raw SQL; list parts that are not strings are formatted."""
    if isinstance(raw, str):
        return [raw]
    sqls: list[str] = []
    params: list[Any] = []
    for part in raw:
        if isinstance(part, str):
            sqls.append(part)
        else:
            sql, *p = format_expr(part, ctx)
            sqls.append(sql)
            params.extend(p)
    return ["".join(sqls), *params]


# --- Identifiers ---


def format_entity(name: Any, ctx: FormatContext, *, aliased: bool = False) -> str:
    """Render a column, table or alias name, quoting parts that need it.

    Raises:
        InvalidIdentifierError: If the name is not a string, contains a
            semicolon or null byte, or has an over-long part.
    """
    if not isinstance(name, str):
        raise InvalidIdentifierError(
            f"expected an identifier, got {type(name).__name__}",
            f"non-string identifier {name!r}",
        )
    if aliased and name.startswith("'"):
        alias = name[1:]
        if ";" in alias:
            raise InvalidIdentifierError(f"{ERR_MSG_SUSPICIOUS_ENTITY}: {alias}")
        return alias
    if ctx.quoted_snake:
        name = snake_case(name)
    if aliased:
        parts = [name]
    else:
        parts = name.replace("/", ".").split(".")
    max_length = ctx.dialect.max_identifier_length()
    rendered = []
    for part in parts:
        if part == "*":
            rendered.append(part)
            continue
        validate_identifier(part, max_length)
        if ctx.quoted or needs_quoting(part):
            rendered.append(ctx.dialect.quote_identifier(part))
        else:
            rendered.append(part)
    return ".".join(rendered)


def quote_entity(name: str, ctx: FormatContext) -> str:
    """Always quote every dotted part of ``name``, preserving case."""
    max_length = ctx.dialect.max_identifier_length()
    parts = []
    for part in name.split("."):
        validate_identifier(part, max_length)
        parts.append(ctx.dialect.quote_identifier(part))
    return ".".join(parts)


def format_var(name: str, ctx: FormatContext) -> list[Any]:
    # %fn.a.b -> FN(a, b)
    if name.startswith("%"):
        fn, *args = name[1:].split(".")
        fn_sql = sql_kw(fn).replace(" ", "_")
        return [f"{fn_sql}({', '.join(format_entity(a, ctx) for a in args)})"]
    return [format_entity(name, ctx)]


# --- Operation arrays ---


def format_array(expr: Sequence[Any], ctx: FormatContext, *, nested: bool = False) -> list[Any]:
    if not expr:
        return [""]
    head = expr[0]
    args = list(expr[1:])
    if not isinstance(head, str):
        sqls, params = format_expr_list(expr, ctx)
        return [f"({', '.join(sqls)})", *params]

    registry = ctx.registry
    op = registry.normalize_op(head)
    if op in EQUALITY_OPERATORS and registry.is_infix(op):
        return format_equality(op, args, ctx, nested=nested)
    if registry.is_infix(op):
        return format_infix(op, args, ctx, nested=nested)
    if op in MEMBERSHIP_OPERATORS:
        return format_in(op, args, ctx, nested=nested)
    handler = registry.special_syntax(op)
    if handler is not None:
        return handler(op, args, ctx)
    if is_ident(head) or _FN_NAME_RE.match(head):
        return format_fn_call(head, args, ctx)
    raise UnknownOperatorError(
        f"{ERR_MSG_UNKNOWN_OPERATOR}: {head}",
        f"no infix operator, special syntax or function named {head!r}",
    )


def format_expr_list(
    exprs: Sequence[Any], ctx: FormatContext, *, nested: bool = False
) -> tuple[list[str], list[Any]]:
    sqls: list[str] = []
    params: list[Any] = []
    for expr in exprs:
        sql, *p = format_expr(expr, ctx, nested=nested)
        sqls.append(sql)
        params.extend(p)
    return sqls, params


def format_equality(
    op: str, args: list[Any], ctx: FormatContext, *, nested: bool = False
) -> list[Any]:
    if len(args) != 2:
        raise IllegalShapeError(
            f"Only binary {op} is supported",
            f"{op} given {len(args)} operands",
        )
    left, right = args
    if ctx.transform_null_equals and (left is None or right is None):
        operand = right if left is None else left
        sql, *params = format_expr(operand, ctx, nested=True)
        sql = f"{sql} IS NULL" if op == "=" else f"{sql} IS NOT NULL"
    else:
        lsql, *lparams = format_expr(left, ctx, nested=True)
        rsql, *rparams = format_expr(right, ctx, nested=True)
        sql = f"{lsql} {op} {rsql}"
        params = [*lparams, *rparams]
    if nested:
        sql = f"({sql})"
    return [sql, *params]


def format_infix(
    op: str, args: list[Any], ctx: FormatContext, *, nested: bool = False
) -> list[Any]:
    registry = ctx.registry
    if registry.ignores_nil(op):
        args = [a for a in args if a is not None]
    if not args:
        if op in EMPTY_OPERAND_RESULTS:
            return [EMPTY_OPERAND_RESULTS[op]]
        raise IllegalShapeError(f"No operands found for {op}")
    if len(args) == 1:
        if registry.is_unary(op):
            sql, *params = format_expr(args[0], ctx, nested=True)
            sql = f"{sql_kw(op)} {sql}"
            return [f"({sql})" if nested else sql, *params]
        return format_expr(args[0], ctx, nested=nested)
    sqls, params = format_expr_list(args, ctx, nested=True)
    sql = f" {sql_kw(op)} ".join(sqls)
    if nested:
        sql = f"({sql})"
    return [sql, *params]


def _is_value_list(items: Sequence[Any]) -> bool:
    first = items[0]
    return not (is_ident(first) or isinstance(first, (list, tuple)))


def format_in(
    op: str, args: list[Any], ctx: FormatContext, *, nested: bool = False
) -> list[Any]:
    """Render ``x IN (...)``, expanding plain value lists element by element."""
    if len(args) != 2:
        raise IllegalShapeError(
            f"{sql_kw(op)} takes exactly two operands",
            f"{op} given {len(args)} operands",
        )
    lhs, rhs = args
    kw = sql_kw(op)
    lsql, *params = format_expr(lhs, ctx, nested=True)

    bound = None
    if isinstance(rhs, Mapping) and PARAM_KEY in rhs:
        value = resolve_param(rhs[PARAM_KEY], ctx)
        if isinstance(value, (list, tuple)):
            rhs = bound = list(value)

    if isinstance(rhs, (list, tuple)) and not rhs:
        if ctx.checking_enabled:
            raise IllegalShapeError(
                ERR_MSG_EMPTY_IN,
                f"{lsql} {kw} () with checking={ctx.checking}",
            )
        sql = f"{lsql} {kw} ()"
    elif bound is not None:
        # parameter values are always bound, never read as expressions
        sqls = []
        for value in bound:
            vsql, *vparams = format_value(value, ctx)
            sqls.append(vsql)
            params.extend(vparams)
        sql = f"{lsql} {kw} ({', '.join(sqls)})"
    elif isinstance(rhs, (list, tuple)) and _is_value_list(rhs):
        sqls, rparams = format_expr_list(rhs, ctx)
        sql = f"{lsql} {kw} ({', '.join(sqls)})"
        params.extend(rparams)
    else:
        rsql, *rparams = format_expr(rhs, ctx, nested=True)
        sql = f"{lsql} {kw} {rsql}"
        params.extend(rparams)
    if nested:
        sql = f"({sql})"
    return [sql, *params]


def format_fn_call(name: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """Render ``FN(arg, ...)``; a ``-distinct`` suffix becomes ``FN(DISTINCT ...)``."""
    for part in name.removeprefix("%").split("."):
        validate_identifier(part, ctx.dialect.max_identifier_length())
    fn_sql = sql_kw(name).replace(" ", "_")
    prefix = ""
    if fn_sql.endswith("_DISTINCT"):
        fn_sql = fn_sql.removesuffix("_DISTINCT")
        prefix = "DISTINCT "
    if not args:
        return [f"{fn_sql}()"]
    if len(args) == 1 and classify(args[0], ctx.registry.clause_keys) is ExprKind.CLAUSE:
        sql, *params = format_dsl(args[0], ctx)
        return [f"{fn_sql}({prefix}{sql})", *params]
    sqls, params = format_expr_list(args, ctx)
    return [f"{fn_sql}({prefix}{', '.join(sqls)})", *params]


def format_order_items(items: Any, ctx: FormatContext) -> tuple[list[str], list[Any]]:
    """Render ORDER BY items: ``expr`` or ``[expr, asc|desc, nulls-first|nulls-last]``.

    Only DESC is emitted; ascending is the SQL default.
    """
    if not isinstance(items, (list, tuple)):
        items = [items]
    sqls: list[str] = []
    params: list[Any] = []
    for item in items:
        modifiers: list[str] = []
        if (
            isinstance(item, (list, tuple))
            and len(item) in (2, 3)
            and all(isinstance(m, str) for m in item[1:])
            and item[1].lower() in ("asc", "desc", "nulls-first", "nulls-last")
        ):
            expr = item[0]
            modifiers = [m.lower() for m in item[1:]]
        else:
            expr = item
        sql, *p = format_expr(expr, ctx)
        for modifier in modifiers:
            if modifier == "desc":
                sql += " DESC"
            elif modifier.startswith("nulls-"):
                sql += f" {sql_kw(modifier)}"
        sqls.append(sql)
        params.extend(p)
    return sqls, params


# --- Statements ---


def format_dsl(
    statement: Mapping[str, Any], ctx: FormatContext, *, nested: bool = False
) -> list[Any]:
    """Render a clause map as one SQL statement.

    Clauses are emitted in ``ctx.clause_order``; empty fragments are skipped.

    Raises:
        UnknownClauseError: If the map has a key with no registered formatter.
    """
    registry = ctx.registry
    known = registry.clause_keys
    unknown = [str(key) for key in statement if key not in known]
    if unknown:
        raise UnknownClauseError(
            f"{ERR_MSG_UNKNOWN_CLAUSE}: {', '.join(unknown)}",
            f"registered clauses: {', '.join(sorted(known))}",
        )
    stmt_ctx = ctx.with_statement(statement)
    sqls: list[str] = []
    params: list[Any] = []
    for key in ctx.clause_order:
        if key not in statement or statement[key] is None:
            continue
        formatter = registry.clause_formatter(key)
        sql, *p = formatter(key, statement[key], stmt_ctx)
        if sql:
            sqls.append(sql)
            params.extend(p)
    sql = " ".join(sqls)
    if nested:
        sql = f"({sql})"
    return [sql, *params]
