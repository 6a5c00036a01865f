"""Microsoft SQL Server dialect implementation."""

from __future__ import annotations

from pyhoneysql._utils import strop
from pyhoneysql.dialect._base import Dialect, DialectName

MAX_SQLSERVER_IDENTIFIER_LENGTH = 128


class SQLServerDialect(Dialect):
    """SQL Server dialect: bracketed identifiers, ``0x..`` binary literals."""

    name = DialectName.SQLSERVER

    def quote_identifier(self, name: str) -> str:
        return strop("[", name, "]")

    def max_identifier_length(self) -> int:
        return MAX_SQLSERVER_IDENTIFIER_LENGTH

    def bytes_literal(self, value: bytes) -> str:
        return f"0x{value.hex().upper()}"
