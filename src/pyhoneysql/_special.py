"""Built-in special-syntax handlers.

Each handler receives the normalized operator name, the un-evaluated
arguments and the formatting context, and returns ``[sql, *params]``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pyhoneysql._context import FormatContext
from pyhoneysql._errors import IllegalShapeError
from pyhoneysql._format import (
    format_dsl,
    format_entity,
    format_expr,
    format_expr_list,
    format_order_items,
    format_param_ref,
    format_raw,
    format_value,
    quote_entity,
)
from pyhoneysql._types import VALUE_KEY, ExprKind, classify, is_ident, is_typed_value
from pyhoneysql._utils import format_type_name, sql_kw, sqlize_value


def _arity(op: str, args: list[Any], *counts: int) -> None:
    if len(args) not in counts:
        expected = " or ".join(str(c) for c in counts)
        raise IllegalShapeError(
            f"{op} takes {expected} argument(s)",
            f"{op} given {len(args)} arguments: {args!r}",
        )


def _is_clause(value: Any, ctx: FormatContext) -> bool:
    return classify(value, ctx.registry.clause_keys) is ExprKind.CLAUSE


def _unwrap_value(value: Any) -> Any:
    if is_typed_value(value) and VALUE_KEY in value:
        return value[VALUE_KEY]
    return value


def _is_else(marker: Any) -> bool:
    return isinstance(marker, str) and marker.lower() in ("else", ":else")


def _format_when_pairs(op: str, pairs: list[Any], ctx: FormatContext) -> list[Any]:
    if len(pairs) % 2:
        raise IllegalShapeError(
            f"{op} needs condition/value pairs",
            f"{op} given an odd number of branch arguments",
        )
    parts: list[str] = []
    params: list[Any] = []
    for cond, value in zip(pairs[::2], pairs[1::2]):
        if _is_else(cond):
            vsql, *vsql_params = format_expr(value, ctx)
            parts.append(f"ELSE {vsql}")
            params.extend(vsql_params)
        else:
            csql, *cparams = format_expr(cond, ctx)
            vsql, *vsql_params = format_expr(value, ctx)
            parts.append(f"WHEN {csql} THEN {vsql}")
            params.extend(cparams)
            params.extend(vsql_params)
    return [" ".join(parts), *params]


def format_case(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """``["case", cond, val, ..., "else", val]`` -> ``CASE WHEN ... END``."""
    sql, *params = _format_when_pairs(op, args, ctx)
    return [f"CASE {sql} END", *params]


def format_case_expr(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """``["case-expr", subject, match, val, ...]`` -> ``CASE subject WHEN ... END``."""
    if not args:
        raise IllegalShapeError("case-expr needs a subject expression")
    subject, *pairs = args
    ssql, *params = format_expr(subject, ctx)
    sql, *pparams = _format_when_pairs(op, pairs, ctx)
    return [f"CASE {ssql} {sql} END", *params, *pparams]


def format_cast(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 2)
    value, sql_type = args
    sql, *params = format_expr(value, ctx)
    if isinstance(sql_type, str):
        type_sql = format_type_name(sql_type)
    else:
        type_sql, *tparams = format_expr(sql_type, ctx)
        params.extend(tparams)
    return [f"CAST({sql} AS {type_sql})", *params]


def format_between(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 3)
    sqls, params = format_expr_list(args, ctx, nested=True)
    x, lo, hi = sqls
    return [f"{x} {sql_kw(op)} {lo} AND {hi}", *params]


def format_not(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 1)
    sql, *params = format_expr(args[0], ctx, nested=True)
    return [f"NOT {sql}", *params]


def format_distinct(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    sqls, params = format_expr_list(args, ctx, nested=True)
    return [f"DISTINCT {', '.join(sqls)}", *params]


def format_filter(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """``["filter", fn_call, cond]`` -> ``FN(...) FILTER (WHERE cond)``."""
    _arity(op, args, 2)
    fn_call, cond = args
    fsql, *params = format_expr(fn_call, ctx)
    csql, *cparams = format_expr(cond, ctx)
    return [f"{fsql} FILTER (WHERE {csql})", *params, *cparams]


def format_composite(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    sqls, params = format_expr_list(args, ctx)
    return [f"({', '.join(sqls)})", *params]


def format_array_ctor(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """Array constructor.

    ``["array", {subquery}]`` renders ``ARRAY(SELECT ...)``,
    ``["array", [a, b], "text"]`` renders ``ARRAY[a, b]::TEXT[]`` and
    ``["array", a, b]`` renders ``ARRAY[a, b]``.
    """
    if len(args) == 1 and _is_clause(args[0], ctx):
        sql, *params = format_dsl(args[0], ctx)
        return [f"ARRAY({sql})", *params]
    if args and isinstance(args[0], (list, tuple)):
        _arity(op, args, 1, 2)
        sqls, params = format_expr_list(args[0], ctx)
        suffix = f"::{format_type_name(args[1])}[]" if len(args) == 2 else ""
        return [f"ARRAY[{', '.join(sqls)}]{suffix}", *params]
    sqls, params = format_expr_list(args, ctx)
    return [f"ARRAY[{', '.join(sqls)}]", *params]


def format_nest(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 1)
    value = args[0]
    if _is_clause(value, ctx):
        return format_dsl(value, ctx, nested=True)
    sql, *params = format_expr(value, ctx)
    return [f"({sql})", *params]


def format_raw_syntax(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    if len(args) == 1:
        return format_raw(args[0], ctx)
    return format_raw(args, ctx)


def format_inline(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """Render every argument as inline literal text; strings become SQL strings."""
    inline_ctx = ctx.with_inline()
    sqls: list[str] = []
    for arg in args:
        if isinstance(arg, str):
            sqls.append(sqlize_value(arg, ctx.dialect))
        else:
            sqls.append(format_expr(arg, inline_ctx)[0])
    return [" ".join(sqls)]


def format_param(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 1)
    return format_param_ref(args[0], ctx)


def format_lift(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 1)
    return format_value(args[0], ctx)


def format_lateral(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 1)
    value = args[0]
    if _is_clause(value, ctx):
        sql, *params = format_dsl(value, ctx, nested=True)
    else:
        sql, *params = format_expr(value, ctx)
    return [f"LATERAL {sql}", *params]


def format_over(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """Window function: ``["over", fn_call, spec]``.

    ``spec`` is None (``OVER ()``), a window name, or a mapping with
    ``partition-by``, ``order-by`` and an optional ``frame`` expression.
    """
    _arity(op, args, 1, 2)
    fn_call = args[0]
    spec = args[1] if len(args) == 2 else None
    fsql, *params = format_expr(fn_call, ctx)
    if isinstance(spec, str):
        return [f"{fsql} OVER {format_entity(spec, ctx)}", *params]
    parts: list[str] = []
    if isinstance(spec, Mapping):
        partition_by = spec.get("partition-by")
        if partition_by:
            if not isinstance(partition_by, (list, tuple)):
                partition_by = [partition_by]
            sqls, pparams = format_expr_list(partition_by, ctx)
            parts.append(f"PARTITION BY {', '.join(sqls)}")
            params.extend(pparams)
        order_by = spec.get("order-by")
        if order_by:
            sqls, oparams = format_order_items(order_by, ctx)
            parts.append(f"ORDER BY {', '.join(sqls)}")
            params.extend(oparams)
        frame = spec.get("frame")
        if frame is not None:
            fr_sql, *fr_params = format_expr(frame, ctx)
            parts.append(fr_sql)
            params.extend(fr_params)
    elif spec is not None:
        raise IllegalShapeError(
            "over expects a window name or a partition-by/order-by mapping",
            f"unsupported window spec {spec!r}",
        )
    return [f"{fsql} OVER ({' '.join(parts)})", *params]


def format_interval(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """``["interval", "1 day"]`` or ``["interval", 30, "days"]``."""
    if not args:
        raise IllegalShapeError("interval needs a quantity")
    quantity, *units = args
    quantity = _unwrap_value(quantity)
    if isinstance(quantity, (str, int, float)) and not isinstance(quantity, bool):
        qsql = sqlize_value(quantity, ctx.dialect)
    else:
        qsql = format_expr(quantity, ctx.with_inline())[0]
    if units:
        return [f"INTERVAL {qsql} {' '.join(sql_kw(u) for u in units)}"]
    return [f"INTERVAL {qsql}"]


def format_entity_syntax(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 1)
    return [quote_entity(args[0], ctx)]


def format_alias(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 1)
    return [format_entity(args[0], ctx, aliased=True)]


def format_field_access(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """``[".", expr, field, ...]`` -> ``(expr).field``."""
    if len(args) < 2:
        raise IllegalShapeError(". needs an expression and at least one field")
    value, *fields = args
    sql, *params = format_expr(value, ctx)
    names = ".".join(format_entity(f, ctx) for f in fields)
    return [f"({sql}).{names}", *params]


def format_at_time_zone(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 2)
    value, tz = args
    sql, *params = format_expr(value, ctx, nested=True)
    tz = _unwrap_value(tz)
    if isinstance(tz, str):
        tz_sql = sqlize_value(tz, ctx.dialect)
    else:
        tz_sql = format_expr(tz, ctx.with_inline())[0]
    return [f"{sql} AT TIME ZONE {tz_sql}", *params]


def format_exists(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 1)
    value = args[0]
    if _is_clause(value, ctx):
        sql, *params = format_dsl(value, ctx, nested=True)
    else:
        sql, *params = format_expr(value, ctx, nested=True)
    return [f"EXISTS {sql}", *params]


def format_subscript(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """``["at", arr, idx]`` -> ``arr[idx]``."""
    _arity(op, args, 2)
    value, index = args
    sql, *params = format_expr(value, ctx)
    if not is_ident(value):
        sql = f"({sql})"
    isql, *iparams = format_expr(index, ctx)
    return [f"{sql}[{isql}]", *params, *iparams]


def format_extract(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    """``["extract", "year", x]`` -> ``EXTRACT(YEAR FROM x)``."""
    _arity(op, args, 2)
    field_name, value = args
    if not is_ident(field_name):
        raise IllegalShapeError(
            "extract needs a field name such as year or epoch",
            f"invalid extract field {field_name!r}",
        )
    sql, *params = format_expr(value, ctx)
    return [f"EXTRACT({sql_kw(field_name)} FROM {sql})", *params]


def format_default(op: str, args: list[Any], ctx: FormatContext) -> list[Any]:
    _arity(op, args, 0)
    return ["DEFAULT"]


SPECIAL_SYNTAX = {
    "case": format_case,
    "case-expr": format_case_expr,
    "cast": format_cast,
    "between": format_between,
    "not-between": format_between,
    "not": format_not,
    "distinct": format_distinct,
    "filter": format_filter,
    "composite": format_composite,
    "array": format_array_ctor,
    "nest": format_nest,
    "raw": format_raw_syntax,
    "inline": format_inline,
    "param": format_param,
    "lift": format_lift,
    "lateral": format_lateral,
    "over": format_over,
    "interval": format_interval,
    "entity": format_entity_syntax,
    "alias": format_alias,
    ".": format_field_access,
    "at-time-zone": format_at_time_zone,
    "exists": format_exists,
    "at": format_subscript,
    "extract": format_extract,
    "default": format_default,
}
