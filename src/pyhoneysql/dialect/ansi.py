"""ANSI SQL dialect implementation."""

from __future__ import annotations

from pyhoneysql._utils import strop
from pyhoneysql.dialect._base import Dialect, DialectName


class AnsiDialect(Dialect):
    """Standard SQL: double-quoted identifiers, ``X'..'`` byte strings."""

    name = DialectName.ANSI

    def quote_identifier(self, name: str) -> str:
        return strop('"', name, '"')

    def bytes_literal(self, value: bytes) -> str:
        return f"X'{value.hex().upper()}'"
