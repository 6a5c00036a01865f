"""pyhoneysql - SQL as data: format clause maps to SQL and parse SQL back."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyhoneysql")
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0.dev0"

import logging
from collections.abc import Mapping
from typing import Any

import sqlparse

from pyhoneysql._context import Checking, build_context
from pyhoneysql._errors import (
    DangerousStatementError,
    IllegalShapeError,
    InvalidIdentifierError,
    MaxDepthExceededError,
    MissingParameterError,
    RegistrationError,
    SqlDataError,
    SqlParseError,
    UnknownClauseError,
    UnknownOperatorError,
)
from pyhoneysql._format import format_dsl, format_expr
from pyhoneysql._types import (
    LIFT_KEY,
    LITERAL_KEY,
    PARAM_KEY,
    RAW_KEY,
    VALUE_KEY,
    ExprKind,
    classify,
    is_ident,
    lift,
    literal,
    param,
    raw,
    typed,
)
from pyhoneysql.dialect import (
    AnsiDialect,
    Dialect,
    DialectName,
    MySQLDialect,
    OracleDialect,
    PostgresDialect,
    SQLiteDialect,
    SQLServerDialect,
    get_dialect,
)
from pyhoneysql.helpers import (
    AliasScope,
    get_table_aliases,
    inject_where,
    map_equals,
    override_selects,
    walk_clauses,
)
from pyhoneysql.parser import from_sql, from_sql_multi, normalize_sql
from pyhoneysql.registry import (
    DEFAULT_REGISTRY,
    Registry,
    clause_order,
    register_clause,
    register_fn,
    register_op,
)

__all__ = [
    "format",
    "from_sql",
    "from_sql_multi",
    "normalize_sql",
    "walk_clauses",
    "inject_where",
    "map_equals",
    "get_table_aliases",
    "override_selects",
    "AliasScope",
    "register_op",
    "register_fn",
    "register_clause",
    "clause_order",
    "Registry",
    "DEFAULT_REGISTRY",
    "raw",
    "param",
    "lift",
    "literal",
    "typed",
    "classify",
    "is_ident",
    "ExprKind",
    "Checking",
    "Dialect",
    "DialectName",
    "AnsiDialect",
    "MySQLDialect",
    "OracleDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "SQLServerDialect",
    "get_dialect",
    "SqlDataError",
    "UnknownClauseError",
    "UnknownOperatorError",
    "InvalidIdentifierError",
    "IllegalShapeError",
    "MissingParameterError",
    "DangerousStatementError",
    "RegistrationError",
    "MaxDepthExceededError",
    "SqlParseError",
]

logger = logging.getLogger(__name__)

_WRAPPER_KEYS = (RAW_KEY, PARAM_KEY, LIFT_KEY, LITERAL_KEY)


def _is_statement(data: Any) -> bool:
    if not isinstance(data, Mapping):
        return False
    if any(key in data for key in _WRAPPER_KEYS):
        return False
    return list(data) != [VALUE_KEY]


def format(
    data: Any,
    *,
    dialect: str | Dialect | None = None,
    quoted: bool = False,
    quoted_snake: bool = False,
    inline: bool = False,
    numbered: bool | None = None,
    params: Mapping[str, Any] | None = None,
    checking: str | Checking = Checking.NONE,
    transform_null_equals: bool = True,
    pretty: bool = False,
    max_depth: int | None = None,
    registry: Registry | None = None,
) -> list[Any]:
    """Format a clause map (or a single expression) as SQL.

    Args:
        data: A clause map such as ``{"select": ["id"], "from": "users"}``,
            or any expression. Top-level mappings other than raw, param,
            lift, literal and ``{"$": v}`` wrappers are statements.
        dialect: Dialect name or instance. Defaults to PostgreSQL.
        quoted: Quote every identifier.
        quoted_snake: Quote identifiers and convert ``-`` to ``_``.
        inline: Render values as SQL literals instead of placeholders.
        numbered: Use ``$N`` placeholders instead of ``?``. Defaults to the
            dialect's preference.
        params: Values for named parameters (``{"__param": name}``,
            ``["param", name]``).
        checking: ``"none"``, ``"basic"`` or ``"strict"``. Any mode other
            than ``"none"`` rejects UPDATE/DELETE without WHERE and empty
            IN lists.
        transform_null_equals: Rewrite ``= NULL`` / ``<> NULL`` to
            ``IS [NOT] NULL``.
        pretty: Reindent the SQL text with sqlparse.
        max_depth: Maximum expression nesting depth. Defaults to 100.
        registry: Operator/clause registry. Defaults to ``DEFAULT_REGISTRY``.

    Returns:
        ``[sql, *params]``; params is empty when ``inline`` is set.

    Raises:
        SqlDataError: If formatting fails. The subclass names the problem:
            unknown clause or operator, invalid identifier, illegal shape,
            missing parameter, dangerous statement or excessive depth.
        ValueError: If the dialect or checking mode is unknown.
    """
    ctx = build_context(
        registry=registry if registry is not None else DEFAULT_REGISTRY,
        dialect=dialect,
        quoted=quoted,
        quoted_snake=quoted_snake,
        inline=inline,
        numbered=numbered,
        params=params,
        checking=checking,
        transform_null_equals=transform_null_equals,
        max_depth=max_depth,
    )
    if _is_statement(data):
        sql, *values = format_dsl(data, ctx)
    else:
        sql, *values = format_expr(data, ctx)
    if pretty:
        logger.debug("pretty-printing %d characters of SQL", len(sql))
        sql = sqlparse.format(sql, reindent=True, keyword_case="upper").strip()
    return [sql, *values]
