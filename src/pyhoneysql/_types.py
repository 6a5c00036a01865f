"""Value and identifier classification for clause-map expressions."""

from __future__ import annotations

import enum
import re
from collections.abc import Collection, Mapping
from typing import Any

from pyhoneysql._constants import DEFAULT_CLAUSE_ORDER

IDENT_RE = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_]*(?:[./][a-zA-Z_][a-zA-Z0-9_]*)*(?:\.\*)?$"
)

RAW_KEY = "__raw"
PARAM_KEY = "__param"
LIFT_KEY = "__lift"
LITERAL_KEY = "__literal"
VALUE_KEY = "$"

_WRAPPER_KEYS = (RAW_KEY, PARAM_KEY, LIFT_KEY, LITERAL_KEY)
_DEFAULT_CLAUSE_KEYS = frozenset(DEFAULT_CLAUSE_ORDER)


class ExprKind(enum.StrEnum):
    IDENT = "ident"
    RAW = "raw"
    PARAM = "param"
    LIFT = "lift"
    INLINE = "inline"
    TYPED = "typed"
    CLAUSE = "clause"
    ARRAY = "array"
    LITERAL = "literal"


def is_ident(value: Any) -> bool:
    """Return True if ``value`` is a string usable in identifier position.

    Accepts ``"*"``, dotted or slash-qualified names (``"u.id"``,
    ``"schema/table"``, ``"t.*"``) and ``%``-prefixed function shorthand.
    """
    if not isinstance(value, str):
        return False
    if value == "*":
        return True
    if value.startswith("%"):
        return len(value) > 1
    return IDENT_RE.match(value) is not None


def is_typed_value(value: Any, clause_keys: Collection[str] | None = None) -> bool:
    """Return True for a one-key mapping whose key is ``$`` or a SQL type name."""
    if not isinstance(value, Mapping) or len(value) != 1:
        return False
    (key,) = value
    if not isinstance(key, str):
        return False
    if key == VALUE_KEY:
        return True
    if key.startswith("__"):
        return False
    keys = _DEFAULT_CLAUSE_KEYS if clause_keys is None else clause_keys
    return key not in keys


def classify(value: Any, clause_keys: Collection[str] | None = None) -> ExprKind:
    """Classify an expression value into exactly one ``ExprKind``.

    Mappings are checked in a strict order: raw, param, lift, inline
    literal, typed value, then clause map. Lists and tuples are arrays;
    strings are identifiers when they match the identifier pattern and
    literals otherwise.

    Args:
        value: Any clause-map expression value.
        clause_keys: Registered clause keys. Defaults to the built-in set.

    Returns:
        The expression kind.
    """
    if isinstance(value, str):
        return ExprKind.IDENT if is_ident(value) else ExprKind.LITERAL
    if isinstance(value, Mapping):
        if RAW_KEY in value:
            return ExprKind.RAW
        if PARAM_KEY in value:
            return ExprKind.PARAM
        if LIFT_KEY in value:
            return ExprKind.LIFT
        if LITERAL_KEY in value:
            return ExprKind.INLINE
        if is_typed_value(value, clause_keys):
            return ExprKind.TYPED
        return ExprKind.CLAUSE
    if isinstance(value, (list, tuple)):
        return ExprKind.ARRAY
    return ExprKind.LITERAL


def is_clause(value: Any, clause_keys: Collection[str] | None = None) -> bool:
    return isinstance(value, Mapping) and classify(value, clause_keys) is ExprKind.CLAUSE


# --- Constructors ---


def raw(sql: str | list[Any]) -> dict[str, Any]:
    """Wrap SQL text (or a list of text and expressions) to splice verbatim."""
    return {RAW_KEY: sql}


def param(name: str) -> dict[str, Any]:
    """Reference a named parameter resolved from ``format(params=...)``."""
    return {PARAM_KEY: name}


def lift(value: Any) -> dict[str, Any]:
    """Force ``value`` to be bound as a parameter, even if it is a list or dict."""
    return {LIFT_KEY: value}


def literal(value: Any) -> dict[str, Any]:
    """Force ``value`` to be rendered inline as SQL literal text."""
    return {LITERAL_KEY: value}


def typed(value: Any, sql_type: str = VALUE_KEY) -> dict[str, Any]:
    """Build a typed value ``{sql_type: value}``; ``$`` means no cast."""
    return {sql_type: value}
