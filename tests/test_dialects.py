"""Dialect-specific formatting tests."""

import pytest

from pyhoneysql import format as format_sql
from pyhoneysql._errors import InvalidIdentifierError
from pyhoneysql.dialect import DialectName, get_dialect
from pyhoneysql.dialect.ansi import AnsiDialect
from pyhoneysql.dialect.mysql import MySQLDialect
from pyhoneysql.dialect.oracle import OracleDialect
from pyhoneysql.dialect.postgres import PostgresDialect
from pyhoneysql.dialect.sqlite import SQLiteDialect
from pyhoneysql.dialect.sqlserver import SQLServerDialect

ALL_DIALECTS = [
    pytest.param(AnsiDialect(), id="ansi"),
    pytest.param(PostgresDialect(), id="postgres"),
    pytest.param(MySQLDialect(), id="mysql"),
    pytest.param(SQLiteDialect(), id="sqlite"),
    pytest.param(SQLServerDialect(), id="sqlserver"),
    pytest.param(OracleDialect(), id="oracle"),
]


class TestGetDialect:
    @pytest.mark.parametrize("name", [n.value for n in DialectName])
    def test_known_names(self, name):
        assert get_dialect(name).name == name

    def test_instance_passed_through(self, pg_dialect):
        assert format_sql({"select": ["a"], "from": "t"}, dialect=pg_dialect) == ["SELECT a FROM t"]

    def test_repr(self):
        assert repr(PostgresDialect()) == "PostgresDialect()"


class TestQuoting:
    @pytest.mark.parametrize("dialect_fixture,expected", [
        pytest.param("pg_dialect", '"a""b"', id="postgres"),
        pytest.param("ansi_dialect", '"a""b"', id="ansi"),
        pytest.param("mysql_dialect", '`a"b`', id="mysql"),
        pytest.param("sqlserver_dialect", '[a"b]', id="sqlserver"),
    ])
    def test_quote_identifier(self, request, dialect_fixture, expected):
        dialect = request.getfixturevalue(dialect_fixture)
        assert dialect.quote_identifier('a"b') == expected

    def test_closing_quote_doubled(self, mysql_dialect, sqlserver_dialect):
        assert mysql_dialect.quote_identifier("a`b") == "`a``b`"
        assert sqlserver_dialect.quote_identifier("a]b") == "[a]]b]"

    @pytest.mark.parametrize("dialect,expected", [
        pytest.param("postgres", 'SELECT "user" FROM t', id="postgres"),
        pytest.param("mysql", "SELECT `user` FROM t", id="mysql"),
        pytest.param("sqlserver", "SELECT [user] FROM t", id="sqlserver"),
        pytest.param("oracle", 'SELECT "user" FROM t', id="oracle"),
    ])
    def test_reserved_word_quoted(self, dialect, expected):
        assert format_sql({"select": ["user"], "from": "t"}, dialect=dialect) == [expected]

    def test_quoted_option(self):
        assert format_sql({"select": ["id"], "from": "users"}, dialect="mysql", quoted=True) == [
            "SELECT `id` FROM `users`"
        ]


class TestPlaceholders:
    def test_postgres_numbered(self):
        assert format_sql(["=", "a", 1]) == ["a = $1", 1]

    @pytest.mark.parametrize("dialect", ["ansi", "mysql", "sqlite", "sqlserver", "oracle"])
    def test_question_marks(self, dialect):
        assert format_sql(["and", ["=", "a", 1], ["=", "b", 2]], dialect=dialect) == [
            "(a = ?) AND (b = ?)", 1, 2,
        ]

    def test_numbered_override(self):
        assert format_sql(["=", "a", 1], dialect="sqlite", numbered=True) == ["a = $1", 1]

    def test_postgres_unnumbered(self):
        assert format_sql(["=", "a", 1], numbered=False) == ["a = ?", 1]


class TestLiterals:
    @pytest.mark.parametrize("dialect,expected", [
        pytest.param("postgres", "'\\xDEAD'", id="postgres"),
        pytest.param("mysql", "X'DEAD'", id="mysql"),
        pytest.param("sqlserver", "0xDEAD", id="sqlserver"),
        pytest.param("oracle", "X'DEAD'", id="oracle"),
    ])
    def test_bytes(self, dialect, expected):
        clause = ["=", "a", {"$": b"\xde\xad"}]
        assert format_sql(clause, dialect=dialect, inline=True) == [f"a = {expected}"]

    def test_string_escaping(self, ansi_dialect):
        assert ansi_dialect.string_literal("it's") == "'it''s'"


class TestTableAliases:
    def test_as_by_default(self):
        assert format_sql({"select": ["*"], "from": [["users", "u"]]}) == ["SELECT * FROM users AS u"]

    def test_oracle_omits_as(self):
        assert format_sql({"select": ["*"], "from": [["users", "u"]]}, dialect="oracle") == [
            "SELECT * FROM users u"
        ]

    def test_oracle_keeps_as_for_columns(self):
        assert format_sql({"select": [["id", "i"]], "from": "t"}, dialect="oracle") == [
            "SELECT id AS i FROM t"
        ]


class TestClauseOrder:
    def test_mysql_update_join_sets_before_where(self):
        clause = {
            "update": "orders",
            "join": [["users", ["=", "orders.user_id", "users.id"]]],
            "set": {"status": {"$": "x"}},
            "where": ["=", "users.active", True],
        }
        assert format_sql(clause, dialect="mysql") == [
            "UPDATE orders INNER JOIN users ON orders.user_id = users.id SET status = ? WHERE users.active = TRUE",
            "x",
        ]

    def test_postgres_sets_after_update(self):
        clause = {"update": "orders", "set": {"status": {"$": "x"}}, "where": ["=", "id", 1]}
        assert format_sql(clause) == ["UPDATE orders SET status = $1 WHERE id = $2", "x", 1]


class TestIdentifierLength:
    def test_sqlserver_allows_longer(self):
        name = "c" * 70
        assert format_sql({"select": [name], "from": "t"}, dialect="sqlserver") == [
            f"SELECT {name} FROM t"
        ]

    def test_postgres_rejects(self):
        with pytest.raises(InvalidIdentifierError, match="too long"):
            format_sql({"select": ["c" * 70], "from": "t"})


class TestAllDialects:
    @pytest.mark.parametrize("dialect", ALL_DIALECTS)
    def test_boolean_inline(self, dialect):
        clause = {"select": ["id"], "from": "users", "where": ["=", "active", True]}
        assert format_sql(clause, dialect=dialect) == ["SELECT id FROM users WHERE active = TRUE"]

    @pytest.mark.parametrize("dialect", ALL_DIALECTS)
    def test_null_rewrite(self, dialect):
        assert format_sql(["<>", "a", None], dialect=dialect) == ["a IS NOT NULL"]
