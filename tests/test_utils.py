"""Utility function tests."""

import datetime
import decimal
import uuid

import pytest

from pyhoneysql._errors import IllegalShapeError, InvalidIdentifierError
from pyhoneysql._utils import (
    format_type_name,
    json_dumps,
    needs_quoting,
    snake_case,
    sql_kw,
    sqlize_value,
    strop,
    validate_identifier,
    validate_no_null_bytes,
)
from pyhoneysql.dialect.postgres import PostgresDialect


class TestSqlKw:
    @pytest.mark.parametrize("name,expected", [
        pytest.param("select", "SELECT", id="plain"),
        pytest.param("not-in", "NOT IN", id="hyphenated"),
        pytest.param("left-join", "LEFT JOIN", id="join"),
        pytest.param("%count", "COUNT", id="function"),
        pytest.param("'Raw", "Raw", id="verbatim"),
        pytest.param("->>", "->>", id="symbolic"),
    ])
    def test_sql_kw(self, name, expected):
        assert sql_kw(name) == expected


class TestValidateIdentifier:
    def test_valid(self):
        validate_identifier("users")

    def test_empty(self):
        with pytest.raises(InvalidIdentifierError, match="cannot be empty"):
            validate_identifier("")

    def test_semicolon(self):
        with pytest.raises(InvalidIdentifierError, match="Suspicious character"):
            validate_identifier("a;drop")

    def test_too_long(self):
        with pytest.raises(InvalidIdentifierError):
            validate_identifier("a" * 64)

    def test_custom_max_length(self):
        validate_identifier("a" * 100, max_length=128)

    def test_null_byte(self):
        with pytest.raises(InvalidIdentifierError, match="null bytes"):
            validate_no_null_bytes("a\x00b")


class TestNeedsQuoting:
    @pytest.mark.parametrize("part,expected", [
        pytest.param("users", False, id="plain"),
        pytest.param("*", False, id="star"),
        pytest.param("order", True, id="reserved"),
        pytest.param("ORDER", True, id="reserved_upper"),
        pytest.param("first name", True, id="space"),
        pytest.param("1st", True, id="leading_digit"),
    ])
    def test_needs_quoting(self, part, expected):
        assert needs_quoting(part) is expected


class TestSmallHelpers:
    def test_strop(self):
        assert strop('"', 'a"b', '"') == '"a""b"'

    def test_snake_case(self):
        assert snake_case("created-at") == "created_at"

    @pytest.mark.parametrize("sql_type,expected", [
        pytest.param("text", "TEXT", id="simple"),
        pytest.param("double-precision", "DOUBLE PRECISION", id="multi_word"),
        pytest.param("text[]", "TEXT[]", id="array"),
        pytest.param("numeric(10,2)", "NUMERIC(10,2)", id="modifier"),
    ])
    def test_format_type_name(self, sql_type, expected):
        assert format_type_name(sql_type) == expected

    def test_format_type_name_rejects_comment(self):
        with pytest.raises(InvalidIdentifierError):
            format_type_name("int--")

    def test_json_dumps_compact(self):
        assert json_dumps({"a": [1, 2], "b": None}) == '{"a":[1,2],"b":null}'


class TestSqlizeValue:
    @pytest.mark.parametrize("value,expected", [
        pytest.param(None, "NULL", id="none"),
        pytest.param(True, "TRUE", id="true"),
        pytest.param(False, "FALSE", id="false"),
        pytest.param(42, "42", id="int"),
        pytest.param(1.5, "1.5", id="float"),
        pytest.param(decimal.Decimal("9.99"), "9.99", id="decimal"),
        pytest.param("it's", "'it''s'", id="string"),
        pytest.param(datetime.datetime(2024, 1, 2, 3, 4, 5), "'2024-01-02 03:04:05'", id="datetime"),
        pytest.param(datetime.date(2024, 1, 2), "'2024-01-02'", id="date"),
        pytest.param(
            uuid.UUID("12345678-1234-5678-1234-567812345678"),
            "'12345678-1234-5678-1234-567812345678'",
            id="uuid",
        ),
        pytest.param([1, "a"], "ARRAY[1, 'a']", id="list"),
        pytest.param({"k": 1}, "'{\"k\":1}'", id="mapping"),
    ])
    def test_sqlize_value(self, value, expected):
        assert sqlize_value(value, PostgresDialect()) == expected

    def test_unsupported(self):
        with pytest.raises(IllegalShapeError, match="cannot render value of type object"):
            sqlize_value(object(), PostgresDialect())
