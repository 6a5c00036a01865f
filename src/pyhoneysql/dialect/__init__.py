"""SQL dialect system for clause-map formatting."""

from pyhoneysql.dialect._base import Dialect, DialectName
from pyhoneysql.dialect.ansi import AnsiDialect
from pyhoneysql.dialect.mysql import MySQLDialect
from pyhoneysql.dialect.oracle import OracleDialect
from pyhoneysql.dialect.postgres import PostgresDialect
from pyhoneysql.dialect.sqlite import SQLiteDialect
from pyhoneysql.dialect.sqlserver import SQLServerDialect

__all__ = [
    "Dialect",
    "DialectName",
    "AnsiDialect",
    "MySQLDialect",
    "OracleDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "SQLServerDialect",
    "get_dialect",
]

_REGISTRY: dict[str, type[Dialect]] = {
    DialectName.ANSI: AnsiDialect,
    DialectName.POSTGRES: PostgresDialect,
    DialectName.MYSQL: MySQLDialect,
    DialectName.SQLITE: SQLiteDialect,
    DialectName.SQLSERVER: SQLServerDialect,
    DialectName.ORACLE: OracleDialect,
}


def get_dialect(name: str) -> Dialect:
    """Get a dialect instance by name.

    Args:
        name: Dialect name (e.g., "postgres", "mysql", "sqlite", "sqlserver").

    Returns:
        A Dialect instance.

    Raises:
        ValueError: If the dialect name is unknown.
    """
    cls = _REGISTRY.get(name)
    if cls is None:
        raise ValueError(
            f"unknown dialect: {name!r}. "
            f"Available: {', '.join(sorted(_REGISTRY))}"
        )
    return cls()
