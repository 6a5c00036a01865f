"""MySQL dialect implementation."""

from __future__ import annotations

from pyhoneysql._utils import strop
from pyhoneysql.dialect._base import Dialect, DialectName

MAX_MYSQL_IDENTIFIER_LENGTH = 64


class MySQLDialect(Dialect):
    """MySQL dialect: backtick identifiers, SET rendered right before WHERE."""

    name = DialectName.MYSQL

    # --- Identifiers ---

    def quote_identifier(self, name: str) -> str:
        return strop("`", name, "`")

    def max_identifier_length(self) -> int:
        return MAX_MYSQL_IDENTIFIER_LENGTH

    # --- Literals ---

    def bytes_literal(self, value: bytes) -> str:
        return f"X'{value.hex().upper()}'"

    # --- Clauses ---

    def clause_order(self, order: tuple[str, ...]) -> tuple[str, ...]:
        # UPDATE t JOIN u ON ... SET ... WHERE ...
        if "set" not in order or "where" not in order:
            return order
        moved = [key for key in order if key != "set"]
        moved.insert(moved.index("where"), "set")
        return tuple(moved)
