"""Oracle dialect implementation."""

from __future__ import annotations

from pyhoneysql._utils import strop
from pyhoneysql.dialect._base import Dialect, DialectName

MAX_ORACLE_IDENTIFIER_LENGTH = 128


class OracleDialect(Dialect):
    """Oracle dialect. Table aliases are written without ``AS``."""

    name = DialectName.ORACLE

    def quote_identifier(self, name: str) -> str:
        return strop('"', name, '"')

    def max_identifier_length(self) -> int:
        return MAX_ORACLE_IDENTIFIER_LENGTH

    def bytes_literal(self, value: bytes) -> str:
        return f"X'{value.hex().upper()}'"

    def supports_table_alias_as(self) -> bool:
        return False
