"""Keyword rendering, identifier validation and literal rendering helpers."""

from __future__ import annotations

import datetime
import decimal
import json
import re
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pyhoneysql._errors import (
    ERR_MSG_SUSPICIOUS_ENTITY,
    IllegalShapeError,
    InvalidIdentifierError,
)

if TYPE_CHECKING:
    from pyhoneysql.dialect._base import Dialect

MAX_POSTGRESQL_IDENTIFIER_LENGTH = 63

SAFE_PART_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

_DEHYPHEN_RE = re.compile(r"(\w)-(?=\w)")

RESERVED_SQL_KEYWORDS: set[str] = {
    "add", "all", "alter", "and", "any", "array", "as", "asc", "at",
    "between", "by", "case", "cast", "check", "column", "constraint",
    "create", "cross", "current", "default", "delete", "desc", "distinct",
    "drop", "else", "end", "except", "exists", "extract", "false", "fetch",
    "filter", "following", "for", "foreign", "from", "full", "grant",
    "group", "having", "if", "ilike", "in", "index", "inner", "insert",
    "intersect", "into", "is", "isnull", "join", "lateral", "left", "like",
    "limit", "locked", "no", "not", "notnull", "nowait", "null", "offset",
    "on", "or", "order", "outer", "over", "partition", "preceding",
    "precision", "primary", "range", "recursive", "references",
    "returning", "right", "row", "select", "set", "share", "similar",
    "skip", "some", "table", "then", "to", "true", "truncate", "unbounded",
    "union", "unique", "update", "user", "using", "values", "varying",
    "when", "where", "with", "without",
}


def sql_kw(name: str) -> str:
    """Render a clause key, operator or function name as a SQL keyword.

    ``"not-in"`` becomes ``NOT IN``, ``"%count"`` becomes ``COUNT``. A name
    starting with ``'`` is returned verbatim without the quote.
    """
    if name.startswith("'"):
        return name[1:]
    name = name.removeprefix("%")
    return _DEHYPHEN_RE.sub(r"\1 ", name).upper()


def validate_no_null_bytes(value: str, context: str = "identifiers") -> None:
    """Reject strings containing null bytes."""
    if "\x00" in value:
        raise InvalidIdentifierError(
            f"{context} cannot contain null bytes",
            f"null byte found in {context}: {value!r}",
        )


def validate_identifier(
    name: str, max_length: int = MAX_POSTGRESQL_IDENTIFIER_LENGTH
) -> None:
    """Validate one part of a (possibly qualified) identifier.

    Raises:
        InvalidIdentifierError: If the part is empty, too long, or contains
            a semicolon or null byte.
    """
    if not name:
        raise InvalidIdentifierError(
            "identifier cannot be empty",
            "empty identifier part provided",
        )
    if ";" in name:
        raise InvalidIdentifierError(
            f"{ERR_MSG_SUSPICIOUS_ENTITY}: {name}",
            f"semicolon found in identifier {name!r}",
        )
    validate_no_null_bytes(name)
    if len(name) > max_length:
        raise InvalidIdentifierError(
            "identifier too long",
            f"identifier '{name}' exceeds {max_length} characters",
        )


def needs_quoting(part: str) -> bool:
    return part != "*" and (
        not SAFE_PART_RE.match(part) or part.lower() in RESERVED_SQL_KEYWORDS
    )


def strop(open_quote: str, name: str, close_quote: str) -> str:
    """Wrap ``name`` in quote characters, doubling any embedded close quote."""
    return open_quote + name.replace(close_quote, close_quote * 2) + close_quote


def snake_case(name: str) -> str:
    return name.replace("-", "_")


def format_type_name(sql_type: str) -> str:
    """Render a cast target such as ``"double-precision"`` or ``"text[]"``."""
    if ";" in sql_type or "--" in sql_type:
        raise InvalidIdentifierError(
            f"{ERR_MSG_SUSPICIOUS_ENTITY}: {sql_type}",
            f"suspicious characters in type name {sql_type!r}",
        )
    validate_no_null_bytes(sql_type, "type names")
    return sql_kw(sql_type)


def json_dumps(value: Any) -> str:
    """Compact JSON encoding used for json/jsonb payloads."""
    return json.dumps(value, separators=(",", ":"), default=str)


def sqlize_value(value: Any, dialect: Dialect) -> str:
    """Render a Python value as inline SQL literal text.

    Args:
        value: The value to render.
        dialect: Dialect supplying string and bytes literal syntax.

    Returns:
        SQL literal text.

    Raises:
        IllegalShapeError: If the value has no SQL literal representation.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, decimal.Decimal)):
        return str(value)
    if isinstance(value, str):
        return dialect.string_literal(value)
    if isinstance(value, (bytes, bytearray)):
        return dialect.bytes_literal(bytes(value))
    if isinstance(value, datetime.datetime):
        return dialect.string_literal(value.isoformat(sep=" "))
    if isinstance(value, (datetime.date, datetime.time)):
        return dialect.string_literal(value.isoformat())
    if isinstance(value, uuid.UUID):
        return dialect.string_literal(str(value))
    if isinstance(value, (list, tuple)):
        return "ARRAY[" + ", ".join(sqlize_value(v, dialect) for v in value) + "]"
    if isinstance(value, Mapping):
        return dialect.string_literal(json_dumps(value))
    raise IllegalShapeError(
        f"cannot render value of type {type(value).__name__} as SQL",
        f"no SQL literal form for {value!r}",
    )
