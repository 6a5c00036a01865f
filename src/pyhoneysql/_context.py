"""Per-call formatting context."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pyhoneysql._constants import DEFAULT_MAX_RECURSION_DEPTH
from pyhoneysql.dialect import Dialect, DialectName, get_dialect

if TYPE_CHECKING:
    from pyhoneysql.registry import Registry


class Checking(enum.StrEnum):
    NONE = "none"
    BASIC = "basic"
    STRICT = "strict"


@dataclass
class FormatState:
    """Mutable counters shared by every context derived from one format() call."""

    param_count: int = 0
    depth: int = 0


@dataclass(frozen=True)
class FormatContext:
    """Configuration threaded through a single format() call.

    Derived contexts (``with_statement``, ``with_inline``) share the same
    ``state`` so placeholder numbering runs across the whole statement.
    """

    dialect: Dialect
    registry: Registry
    clause_order: tuple[str, ...]
    quoted: bool = False
    quoted_snake: bool = False
    inline: bool = False
    numbered: bool = True
    params: Mapping[str, Any] = field(default_factory=dict)
    checking: Checking = Checking.NONE
    transform_null_equals: bool = True
    max_depth: int = DEFAULT_MAX_RECURSION_DEPTH
    statement: Mapping[str, Any] | None = None
    state: FormatState = field(default_factory=FormatState)

    @property
    def checking_enabled(self) -> bool:
        return self.checking is not Checking.NONE

    def with_statement(self, statement: Mapping[str, Any]) -> FormatContext:
        return dataclasses.replace(self, statement=statement)

    def with_inline(self) -> FormatContext:
        if self.inline:
            return self
        return dataclasses.replace(self, inline=True)

    def next_placeholder(self) -> str:
        self.state.param_count += 1
        return self.dialect.param_placeholder(self.state.param_count, self.numbered)


def build_context(
    *,
    registry: Registry,
    dialect: str | Dialect | None = None,
    quoted: bool = False,
    quoted_snake: bool = False,
    inline: bool = False,
    numbered: bool | None = None,
    params: Mapping[str, Any] | None = None,
    checking: str | Checking = Checking.NONE,
    transform_null_equals: bool = True,
    max_depth: int | None = None,
) -> FormatContext:
    """Resolve keyword options into a FormatContext.

    Raises:
        ValueError: If the dialect or checking mode is unknown.
    """
    if dialect is None:
        dialect = DialectName.POSTGRES
    if not isinstance(dialect, Dialect):
        dialect = get_dialect(dialect)
    if numbered is None:
        numbered = dialect.numbered_by_default()
    return FormatContext(
        dialect=dialect,
        registry=registry,
        clause_order=dialect.clause_order(registry.clause_order()),
        quoted=quoted or quoted_snake,
        quoted_snake=quoted_snake,
        inline=inline,
        numbered=numbered,
        params=params or {},
        checking=Checking(checking),
        transform_null_equals=transform_null_equals,
        max_depth=max_depth if max_depth is not None else DEFAULT_MAX_RECURSION_DEPTH,
    )
