"""Shared test fixtures."""

import pytest

from pyhoneysql.dialect.ansi import AnsiDialect
from pyhoneysql.dialect.mysql import MySQLDialect
from pyhoneysql.dialect.oracle import OracleDialect
from pyhoneysql.dialect.postgres import PostgresDialect
from pyhoneysql.dialect.sqlite import SQLiteDialect
from pyhoneysql.dialect.sqlserver import SQLServerDialect
from pyhoneysql.pg_ops import register_pg_ops  # importing registers PostgreSQL operators
from pyhoneysql.registry import create_default_registry


@pytest.fixture
def pg_dialect():
    return PostgresDialect()


@pytest.fixture
def ansi_dialect():
    return AnsiDialect()


@pytest.fixture
def mysql_dialect():
    return MySQLDialect()


@pytest.fixture
def sqlite_dialect():
    return SQLiteDialect()


@pytest.fixture
def sqlserver_dialect():
    return SQLServerDialect()


@pytest.fixture
def oracle_dialect():
    return OracleDialect()


@pytest.fixture
def registry():
    """A private registry so tests can register without touching the default."""
    reg = create_default_registry()
    register_pg_ops(reg)
    return reg

