"""Abstract base class for SQL dialects."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod

from pyhoneysql._utils import MAX_POSTGRESQL_IDENTIFIER_LENGTH


class DialectName(enum.StrEnum):
    ANSI = "ansi"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    SQLSERVER = "sqlserver"
    ORACLE = "oracle"


class Dialect(ABC):
    """Abstract base class defining the SQL dialect interface.

    A dialect decides how identifiers are quoted, how string and byte
    literals are spelled, which placeholder style is the default and how
    the clause priority order is adjusted.
    """

    name: DialectName

    # --- Identifiers ---

    @abstractmethod
    def quote_identifier(self, name: str) -> str: ...

    def max_identifier_length(self) -> int:
        return MAX_POSTGRESQL_IDENTIFIER_LENGTH

    # --- Literals ---

    def string_literal(self, value: str) -> str:
        escaped = value.replace("'", "''")
        return f"'{escaped}'"

    @abstractmethod
    def bytes_literal(self, value: bytes) -> str: ...

    # --- Placeholders ---

    def numbered_by_default(self) -> bool:
        return False

    def param_placeholder(self, index: int, numbered: bool) -> str:
        return f"${index}" if numbered else "?"

    # --- Clauses ---

    def supports_table_alias_as(self) -> bool:
        return True

    def clause_order(self, order: tuple[str, ...]) -> tuple[str, ...]:
        """Adjust the registry's clause priority order for this dialect."""
        return order

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
