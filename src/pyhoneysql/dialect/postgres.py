"""PostgreSQL dialect implementation."""

from __future__ import annotations

from pyhoneysql._utils import strop
from pyhoneysql.dialect._base import Dialect, DialectName


class PostgresDialect(Dialect):
    """PostgreSQL dialect, the default. Uses ``$N`` placeholders."""

    name = DialectName.POSTGRES

    # --- Identifiers ---

    def quote_identifier(self, name: str) -> str:
        return strop('"', name, '"')

    # --- Literals ---

    def bytes_literal(self, value: bytes) -> str:
        hex_str = value.hex().upper()
        return f"'\\x{hex_str}'"

    # --- Placeholders ---

    def numbered_by_default(self) -> bool:
        return True
