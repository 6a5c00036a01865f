"""Operator, special-syntax and clause registries."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pyhoneysql._errors import RegistrationError
from pyhoneysql._operators import (
    IGNORE_NIL_OPERATORS,
    INFIX_OPERATORS,
    OPERATOR_ALIASES,
    UNARY_OPERATORS,
)

if TYPE_CHECKING:
    from pyhoneysql._context import FormatContext

logger = logging.getLogger(__name__)

SpecialSyntaxFn = Callable[[str, list[Any], "FormatContext"], list[Any]]
"""Renders ``[op, *args]``: receives the operator, raw arguments and context."""

ClauseFn = Callable[[str, Any, "FormatContext"], list[Any]]
"""Renders one clause: receives the clause key, its value and context."""


class Registry:
    """Tables that map names to formatting behavior.

    A registry holds the infix operator set, special-syntax handlers,
    per-clause formatters and the clause priority order. The process-wide
    ``DEFAULT_REGISTRY`` is what ``format()`` uses unless another registry
    is passed in.
    """

    def __init__(self) -> None:
        self._infix: set[str] = set(INFIX_OPERATORS)
        self._unary: set[str] = set(UNARY_OPERATORS)
        self._ignore_nil: set[str] = set(IGNORE_NIL_OPERATORS)
        self._aliases: dict[str, str] = dict(OPERATOR_ALIASES)
        self._special: dict[str, SpecialSyntaxFn] = {}
        self._clauses: dict[str, ClauseFn] = {}
        self._order: list[str] = []

    # --- Lookups ---

    def normalize_op(self, name: str) -> str:
        op = name.lower()
        return self._aliases.get(op, op)

    def is_infix(self, op: str) -> bool:
        return op in self._infix

    def is_unary(self, op: str) -> bool:
        return op in self._unary

    def ignores_nil(self, op: str) -> bool:
        return op in self._ignore_nil

    def is_operator(self, name: str) -> bool:
        """True if ``name`` is an infix operator or special syntax."""
        op = self.normalize_op(name)
        return op in self._infix or op in self._special or op in ("in", "not-in")

    def special_syntax(self, op: str) -> SpecialSyntaxFn | None:
        return self._special.get(op)

    def clause_formatter(self, key: str) -> ClauseFn | None:
        return self._clauses.get(key)

    @property
    def clause_keys(self) -> frozenset[str]:
        return frozenset(self._clauses)

    def clause_order(self) -> tuple[str, ...]:
        return tuple(self._order)

    # --- Registration ---

    def register_op(
        self, name: str, *, ignore_nil: bool = False, unary: bool = False
    ) -> None:
        """Register an infix operator rendered as ``left OP right``."""
        if not name:
            raise RegistrationError("operator name cannot be empty")
        op = name.lower()
        self._infix.add(op)
        self._special.pop(op, None)
        if ignore_nil:
            self._ignore_nil.add(op)
        if unary:
            self._unary.add(op)
        logger.debug("registered operator %s", op)

    def register_fn(self, name: str, fn: SpecialSyntaxFn) -> None:
        """Register a special-syntax handler for ``[name, *args]`` arrays."""
        if not callable(fn):
            raise RegistrationError(
                f"special syntax {name!r} needs a callable formatter",
                f"got {type(fn).__name__} for {name!r}",
            )
        op = name.lower()
        self._special[op] = fn
        self._infix.discard(op)
        logger.debug("registered special syntax %s", op)

    def register_clause(
        self, name: str, fn: ClauseFn, before: str | None = None
    ) -> None:
        """Register a clause formatter and splice it into the clause order.

        Args:
            name: Clause key, e.g. ``"qualify"``.
            fn: Clause formatter.
            before: Existing clause key to insert ``name`` in front of.
                Appends to the end of the order when None.

        Raises:
            RegistrationError: If ``before`` is not a known clause or ``fn``
                is not callable.
        """
        if not callable(fn):
            raise RegistrationError(
                f"clause {name!r} needs a callable formatter",
                f"got {type(fn).__name__} for {name!r}",
            )
        if before is not None and before not in self._order:
            raise RegistrationError(
                f"Unrecognized clause: {before}",
                f"cannot insert {name!r} before unknown clause {before!r}",
            )
        order = [key for key in self._order if key != name]
        if before is None:
            order.append(name)
        else:
            order.insert(order.index(before), name)
        self._order = order
        self._clauses[name] = fn
        logger.debug("registered clause %s before %s", name, before)

    def copy(self) -> Registry:
        """Return an independent registry with the same entries."""
        other = Registry.__new__(Registry)
        other._infix = set(self._infix)
        other._unary = set(self._unary)
        other._ignore_nil = set(self._ignore_nil)
        other._aliases = dict(self._aliases)
        other._special = dict(self._special)
        other._clauses = dict(self._clauses)
        other._order = list(self._order)
        return other


def create_default_registry() -> Registry:
    """Build a registry holding every built-in special syntax and clause."""
    from pyhoneysql._clauses import CLAUSE_FORMATTERS
    from pyhoneysql._constants import DEFAULT_CLAUSE_ORDER
    from pyhoneysql._special import SPECIAL_SYNTAX

    registry = Registry()
    registry._special.update(SPECIAL_SYNTAX)
    for key in DEFAULT_CLAUSE_ORDER:
        registry._clauses[key] = CLAUSE_FORMATTERS[key]
    registry._order = list(DEFAULT_CLAUSE_ORDER)
    return registry


DEFAULT_REGISTRY = create_default_registry()


def register_op(name: str, *, ignore_nil: bool = False, unary: bool = False) -> None:
    """Register an infix operator on the default registry."""
    DEFAULT_REGISTRY.register_op(name, ignore_nil=ignore_nil, unary=unary)


def register_fn(name: str, fn: SpecialSyntaxFn) -> None:
    """Register a special-syntax handler on the default registry."""
    DEFAULT_REGISTRY.register_fn(name, fn)


def register_clause(name: str, fn: ClauseFn, before: str | None = None) -> None:
    """Register a clause formatter on the default registry."""
    DEFAULT_REGISTRY.register_clause(name, fn, before)


def clause_order() -> list[str]:
    """Current clause priority order of the default registry."""
    return list(DEFAULT_REGISTRY.clause_order())
