"""PostgreSQL-specific operators.

Importing this module registers JSON/JSONB, regex, array, range,
full-text and named-argument operators on the default registry. Use
``register_pg_ops(registry)`` to add them to another ``Registry``.
"""

from __future__ import annotations

from typing import Any

from pyhoneysql._types import lift
from pyhoneysql._utils import json_dumps
from pyhoneysql.registry import DEFAULT_REGISTRY, Registry

# --- JSON / JSONB ---
JSON_GET = "->"
JSON_GET_TEXT = "->>"
JSON_PATH = "#>"
JSON_PATH_TEXT = "#>>"
JSON_CONTAINS = "@>"
JSON_CONTAINED_BY = "<@"
JSON_EXISTS = "?"
JSON_EXISTS_ANY = "?|"
JSON_EXISTS_ALL = "?&"
JSON_DELETE_PATH = "#-"
JSON_PATH_EXISTS = "@?"
JSON_PATH_MATCH = "@@"

# --- Regex ---
REGEX = "~"
IREGEX = "~*"
NOT_REGEX = "!~"
NOT_IREGEX = "!~*"

# --- Arrays, ranges, networks ---
ARRAY_OVERLAP = "&&"
DISTANCE = "<->"
SHIFT_LEFT = "<<"
SHIFT_RIGHT = ">>"

# --- Function calls ---
NAMED_ARG = "=>"

PG_OPERATORS: tuple[str, ...] = (
    JSON_GET, JSON_GET_TEXT, JSON_PATH, JSON_PATH_TEXT,
    JSON_CONTAINS, JSON_CONTAINED_BY,
    JSON_EXISTS, JSON_EXISTS_ANY, JSON_EXISTS_ALL,
    JSON_DELETE_PATH, JSON_PATH_EXISTS, JSON_PATH_MATCH,
    REGEX, IREGEX, NOT_REGEX, NOT_IREGEX,
    ARRAY_OVERLAP, DISTANCE, SHIFT_LEFT, SHIFT_RIGHT,
    NAMED_ARG,
)


def register_pg_ops(registry: Registry = DEFAULT_REGISTRY) -> None:
    """Register every PostgreSQL operator on ``registry``."""
    for op in PG_OPERATORS:
        registry.register_op(op)


register_pg_ops()


# --- Builders ---


def jsonb_contains(column: Any, value: Any) -> list[Any]:
    """``column @> CAST($1 AS JSONB)`` with ``value`` bound as JSON text.

    >>> jsonb_contains("data", {"status": "active"})
    ['@>', 'data', ['cast', {'__lift': '{"status":"active"}'}, 'jsonb']]
    """
    return [JSON_CONTAINS, column, ["cast", lift(json_dumps(value)), "jsonb"]]


def jsonb_path(column: Any, *path: str) -> list[Any]:
    """``column #>> ARRAY[...]``: the text at a nested JSON path."""
    return [JSON_PATH_TEXT, column, ["array", [{"$": p} for p in path]]]


def array_overlaps(column: Any, values: list[Any]) -> list[Any]:
    return [ARRAY_OVERLAP, column, ["array", [{"$": v} for v in values]]]


def regex_match(column: Any, pattern: str, case_insensitive: bool = False) -> list[Any]:
    return [IREGEX if case_insensitive else REGEX, column, {"$": pattern}]


def text_search(column: Any, query: str) -> list[Any]:
    """``column @@ TO_TSQUERY($1)``."""
    return [JSON_PATH_MATCH, column, ["%to_tsquery", {"$": query}]]
