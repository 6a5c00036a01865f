"""Expression formatting tests."""

import datetime
import re

import pytest

from pyhoneysql import format as format_sql
from pyhoneysql import lift, literal, param, raw
from pyhoneysql._errors import (
    IllegalShapeError,
    InvalidIdentifierError,
    MaxDepthExceededError,
    MissingParameterError,
    UnknownOperatorError,
)


class TestScenarios:
    def test_select_with_where(self):
        result = format_sql({"select": ["id", "name"], "from": "users", "where": ["=", "id", {"$": 1}]})
        assert result == ["SELECT id, name FROM users WHERE id = $1", 1]

    def test_null_equals_rewrite(self):
        assert format_sql(["=", "x", None]) == ["x IS NULL"]

    def test_null_not_equals_rewrite(self):
        assert format_sql(["<>", "x", None]) == ["x IS NOT NULL"]

    def test_null_equals_rewrite_disabled(self):
        assert format_sql(["=", "x", None], transform_null_equals=False) == ["x = NULL"]

    def test_null_on_left(self):
        assert format_sql(["=", None, "x"]) == ["x IS NULL"]

    @pytest.mark.parametrize("inline", [
        pytest.param(False, id="parameterized"),
        pytest.param(True, id="inline"),
    ])
    def test_boolean_never_parameterized(self, inline):
        assert format_sql(["=", "active", True], inline=inline) == ["active = TRUE"]

    def test_in_list_expansion(self):
        result = format_sql(["in", "id", [{"$": 1}, {"$": 2}, {"$": 3}]])
        assert result == ["id IN ($1, $2, $3)", 1, 2, 3]


class TestValues:
    def test_bare_number(self):
        assert format_sql(["=", "age", 30]) == ["age = $1", 30]

    def test_non_identifier_string_is_bound(self):
        assert format_sql(["=", "name", "hello world"]) == ["name = $1", "hello world"]

    def test_positional_placeholders(self):
        result = format_sql(["=", "id", {"$": 1}], numbered=False)
        assert result == ["id = ?", 1]

    def test_inline_string_escaped(self):
        result = format_sql(
            {"select": ["*"], "from": "users", "where": ["=", "name", {"$": "O'Brien"}]},
            inline=True,
        )
        assert result == ["SELECT * FROM users WHERE name = 'O''Brien'"]

    def test_typed_value_cast(self):
        assert format_sql(["=", "d", {"date": "2024-01-01"}]) == ["d = $1::DATE", "2024-01-01"]

    def test_typed_value_cast_inline(self):
        assert format_sql(["=", "d", {"date": "2024-01-01"}], inline=True) == ["d = '2024-01-01'::DATE"]

    def test_typed_multiword_type(self):
        assert format_sql(["=", "x", {"double-precision": 1.5}]) == ["x = $1::DOUBLE PRECISION", 1.5]

    def test_jsonb_payload_encoded(self):
        assert format_sql(["=", "data", {"jsonb": {"a": 1}}]) == ["data = $1::JSONB", '{"a":1}']

    def test_lift_binds_list(self):
        assert format_sql(["=", "tags", lift([1, 2])]) == ["tags = $1", [1, 2]]

    def test_literal_always_inline(self):
        assert format_sql(["=", "name", literal("it's")]) == ["name = 'it''s'"]

    def test_inline_date(self):
        assert format_sql(literal(datetime.date(2024, 1, 2))) == ["'2024-01-02'"]

    def test_raw_text(self):
        assert format_sql(["<", "created_at", raw("NOW()")]) == ["created_at < NOW()"]

    def test_raw_with_embedded_value(self):
        assert format_sql(raw(["a > ", {"$": 1}])) == ["a > $1", 1]

    def test_plain_tuple(self):
        assert format_sql([1, 2, 3]) == ["($1, $2, $3)", 1, 2, 3]


class TestNamedParameters:
    def test_param_wrapper(self):
        assert format_sql(["=", "id", param("uid")], params={"uid": 7}) == ["id = $1", 7]

    def test_param_syntax(self):
        assert format_sql(["=", "id", ["param", "uid"]], params={"uid": 7}) == ["id = $1", 7]

    def test_param_list_expands_in(self):
        result = format_sql(["in", "id", param("ids")], params={"ids": [1, 2]})
        assert result == ["id IN ($1, $2)", 1, 2]

    @pytest.mark.parametrize("values", [
        pytest.param(["active", "pending"], id="identifier_like"),
        pytest.param(["a b", "c"], id="mixed"),
        pytest.param([["x", "y"], "z"], id="nested_list"),
    ])
    def test_param_list_values_always_bound(self, values):
        result = format_sql(["in", "status", param("xs")], params={"xs": values})
        assert result == ["status IN ($1, $2)", *values]

    def test_param_list_inline(self):
        result = format_sql(["in", "status", param("xs")], params={"xs": ["active", "o'k"]}, inline=True)
        assert result == ["status IN ('active', 'o''k')"]

    def test_missing_param(self):
        with pytest.raises(MissingParameterError, match="Missing parameter value for uid"):
            format_sql(["=", "id", param("uid")])


class TestOperators:
    def test_and_drops_nil_operands(self):
        result = format_sql(["and", ["=", "a", {"$": 1}], None, ["=", "b", {"$": 2}]])
        assert result == ["(a = $1) AND (b = $2)", 1, 2]

    def test_or(self):
        result = format_sql(["or", ["=", "a", {"$": 1}], [">", "b", {"$": 2}]])
        assert result == ["(a = $1) OR (b > $2)", 1, 2]

    @pytest.mark.parametrize("expr,expected", [
        pytest.param(["and"], "TRUE", id="empty_and"),
        pytest.param(["or"], "FALSE", id="empty_or"),
        pytest.param(["and", None, None], "TRUE", id="all_nil_and"),
    ])
    def test_vacuous(self, expr, expected):
        assert format_sql(expr) == [expected]

    def test_single_operand_and(self):
        assert format_sql(["and", ["=", "a", 1]]) == ["a = $1", 1]

    def test_unary_minus(self):
        assert format_sql(["-", "x"]) == ["- x"]

    def test_variadic_plus(self):
        assert format_sql(["+", "a", "b", "c"]) == ["a + b + c"]

    def test_nested_arithmetic_parenthesized(self):
        assert format_sql(["*", ["+", "a", 1], 2]) == ["(a + $1) * $2", 1, 2]

    def test_not_equals_alias(self):
        assert format_sql(["!=", "a", {"$": 1}]) == ["a <> $1", 1]

    def test_like(self):
        assert format_sql(["like", "name", {"$": "A%"}]) == ["name LIKE $1", "A%"]

    def test_not_ilike(self):
        assert format_sql(["not-ilike", "name", {"$": "a%"}]) == ["name NOT ILIKE $1", "a%"]

    def test_is_null(self):
        assert format_sql(["is", "deleted_at", None]) == ["deleted_at IS NULL"]

    def test_binary_equality_only(self):
        with pytest.raises(IllegalShapeError, match="Only binary = is supported"):
            format_sql(["=", "a", "b", "c"])

    def test_unknown_operator(self):
        with pytest.raises(UnknownOperatorError, match="Unknown SQL operator: @@@"):
            format_sql(["@@@", "a", "b"])


class TestInOperator:
    def test_bare_values(self):
        assert format_sql(["in", "id", [1, 2]]) == ["id IN ($1, $2)", 1, 2]

    def test_not_in(self):
        assert format_sql(["not-in", "id", [1]]) == ["id NOT IN ($1)", 1]

    def test_subquery(self):
        result = format_sql(["in", "id", {"select": ["user_id"], "from": "orders"}])
        assert result == ["id IN (SELECT user_id FROM orders)"]

    def test_empty_list_allowed_without_checking(self):
        assert format_sql(["in", "id", []]) == ["id IN ()"]

    @pytest.mark.parametrize("checking", ["basic", "strict"])
    def test_empty_list_rejected_with_checking(self, checking):
        with pytest.raises(IllegalShapeError, match=r"IN \(\) empty collection is illegal"):
            format_sql(["in", "id", []], checking=checking)

    def test_in_nested_in_and(self):
        result = format_sql({
            "select": ["*"],
            "from": "t",
            "where": ["and",
                      ["=", "a", {"$": 1}],
                      ["in", "b", {"select": ["b"], "from": "u", "where": ["=", "c", {"$": 2}]}]],
        })
        assert result == [
            "SELECT * FROM t WHERE (a = $1) AND (b IN (SELECT b FROM u WHERE c = $2))",
            1,
            2,
        ]


class TestFunctions:
    def test_count_star(self):
        assert format_sql(["%count", "*"]) == ["COUNT(*)"]

    def test_named_function(self):
        assert format_sql(["coalesce", "a", {"$": 0}]) == ["COALESCE(a, $1)", 0]

    def test_no_args(self):
        assert format_sql(["now"]) == ["NOW()"]

    def test_distinct_suffix(self):
        assert format_sql(["count-distinct", "user_id"]) == ["COUNT(DISTINCT user_id)"]

    @pytest.mark.parametrize("expr,expected", [
        pytest.param(["date-trunc", {"$": "day"}, "created_at"], ["DATE_TRUNC($1, created_at)", "day"], id="date_trunc"),
        pytest.param(["string-agg", "name", {"$": ","}], ["STRING_AGG(name, $1)", ","], id="string_agg"),
        pytest.param(["%sum-distinct", "amount"], ["SUM(DISTINCT amount)"], id="percent_distinct"),
        pytest.param(["pg_catalog.now"], ["PG_CATALOG.NOW()"], id="qualified"),
    ])
    def test_hyphenated_names(self, expr, expected):
        assert format_sql(expr) == expected

    def test_name_with_semicolon_rejected(self):
        with pytest.raises(UnknownOperatorError, match="Unknown SQL operator: now;drop"):
            format_sql(["now;drop"])

    def test_percent_shorthand(self):
        assert format_sql({"select": ["%now", "%lower.name"]}) == ["SELECT NOW(), LOWER(name)"]


class TestSpecialSyntax:
    def test_case(self):
        result = format_sql(["case", ["<", "age", {"$": 18}], {"$": "minor"}, "else", {"$": "adult"}])
        assert result == ["CASE WHEN age < $1 THEN $2 ELSE $3 END", 18, "minor", "adult"]

    def test_case_expr(self):
        result = format_sql(["case-expr", "status", {"$": "a"}, {"$": 1}, "else", {"$": 0}])
        assert result == ["CASE status WHEN $1 THEN $2 ELSE $3 END", "a", 1, 0]

    def test_case_odd_arguments(self):
        with pytest.raises(IllegalShapeError, match="condition/value pairs"):
            format_sql(["case", ["=", "a", 1]])

    def test_cast(self):
        assert format_sql(["cast", "price", "numeric"]) == ["CAST(price AS NUMERIC)"]

    def test_between(self):
        result = format_sql(["between", "age", {"$": 18}, {"$": 65}])
        assert result == ["age BETWEEN $1 AND $2", 18, 65]

    def test_not_between(self):
        result = format_sql(["not-between", "age", {"$": 18}, {"$": 65}])
        assert result == ["age NOT BETWEEN $1 AND $2", 18, 65]

    def test_between_arity(self):
        with pytest.raises(IllegalShapeError, match="between takes 3 argument"):
            format_sql(["between", "age", 1])

    def test_not(self):
        assert format_sql(["not", ["=", "a", {"$": 1}]]) == ["NOT (a = $1)", 1]

    def test_distinct(self):
        assert format_sql(["distinct", "a"]) == ["DISTINCT a"]

    def test_filter(self):
        result = format_sql(["filter", ["%count", "*"], ["=", "status", {"$": "paid"}]])
        assert result == ["COUNT(*) FILTER (WHERE status = $1)", "paid"]

    def test_over_partition_order(self):
        result = format_sql(
            ["over", ["%row_number"], {"partition-by": ["dept"], "order-by": [["salary", "desc"]]}]
        )
        assert result == ["ROW_NUMBER() OVER (PARTITION BY dept ORDER BY salary DESC)"]

    def test_over_empty(self):
        assert format_sql(["over", ["%rank"]]) == ["RANK() OVER ()"]

    def test_over_named_window(self):
        assert format_sql(["over", ["%rank"], "w"]) == ["RANK() OVER w"]

    def test_interval_text(self):
        assert format_sql(["interval", "1 day"]) == ["INTERVAL '1 day'"]

    def test_interval_quantity_unit(self):
        assert format_sql(["interval", 30, "days"]) == ["INTERVAL 30 DAYS"]

    def test_array_values(self):
        assert format_sql(["array", [{"$": 1}, {"$": 2}]]) == ["ARRAY[$1, $2]", 1, 2]

    def test_array_typed(self):
        assert format_sql(["array", ["a", "b"], "text"]) == ["ARRAY[a, b]::TEXT[]"]

    def test_array_subquery(self):
        result = format_sql(["array", {"select": ["id"], "from": "t"}])
        assert result == ["ARRAY(SELECT id FROM t)"]

    def test_composite(self):
        assert format_sql(["composite", "a", "b"]) == ["(a, b)"]

    def test_exists(self):
        assert format_sql(["exists", {"select": ["*"], "from": "t"}]) == ["EXISTS (SELECT * FROM t)"]

    def test_subscript(self):
        assert format_sql(["at", "tags", {"$": 1}]) == ["tags[$1]", 1]

    def test_extract(self):
        assert format_sql(["extract", "year", "created_at"]) == ["EXTRACT(YEAR FROM created_at)"]

    def test_at_time_zone(self):
        assert format_sql(["at-time-zone", "created_at", {"$": "UTC"}]) == [
            "created_at AT TIME ZONE 'UTC'"
        ]

    def test_field_access(self):
        assert format_sql([".", ["%get_point"], "x"]) == ["(GET_POINT()).x"]

    def test_default(self):
        assert format_sql(["default"]) == ["DEFAULT"]

    def test_inline_syntax(self):
        assert format_sql(["inline", "x"]) == ["'x'"]

    def test_entity(self):
        assert format_sql(["entity", "My Table"]) == ['"My Table"']

    def test_nest(self):
        assert format_sql(["nest", ["+", "a", "b"]]) == ["(a + b)"]


class TestIdentifiers:
    def test_qualified(self):
        assert format_sql({"select": ["u.id", "t.*"], "from": "users"}) == ["SELECT u.id, t.* FROM users"]

    def test_slash_namespace(self):
        assert format_sql({"select": ["*"], "from": "sales/orders"}) == ["SELECT * FROM sales.orders"]

    def test_quoted(self):
        assert format_sql({"select": ["u.id"], "from": "users"}, quoted=True) == [
            'SELECT "u"."id" FROM "users"'
        ]

    def test_quoted_snake(self):
        assert format_sql({"select": ["id"], "from": "users"}, quoted_snake=True) == [
            'SELECT "id" FROM "users"'
        ]

    def test_reserved_word_quoted(self):
        assert format_sql({"select": ["order"], "from": "t"}) == ['SELECT "order" FROM t']

    def test_semicolon_rejected(self):
        with pytest.raises(InvalidIdentifierError, match="Suspicious character found in entity"):
            format_sql({"select": ["a;b"], "from": "t"})

    def test_semicolon_in_table_rejected(self):
        with pytest.raises(InvalidIdentifierError, match="Suspicious character"):
            format_sql({"select": ["*"], "from": "users; DROP TABLE users"})

    def test_too_long(self):
        with pytest.raises(InvalidIdentifierError, match="identifier too long"):
            format_sql({"select": ["a" * 70], "from": "t"})

    def test_null_byte(self):
        with pytest.raises(InvalidIdentifierError, match="null bytes"):
            format_sql(["entity", "a\x00b"])

    def test_select_alias(self):
        assert format_sql({"select": [[["%count", "*"], "total"]], "from": "t"}) == [
            "SELECT COUNT(*) AS total FROM t"
        ]

    def test_verbatim_alias(self):
        assert format_sql({"select": [["name", "'\"Full Name\""]], "from": "t"}) == [
            'SELECT name AS "Full Name" FROM t'
        ]


class TestLimits:
    def test_max_depth(self):
        expr = "x"
        for _ in range(10):
            expr = ["not", expr]
        with pytest.raises(MaxDepthExceededError, match="maximum nesting depth"):
            format_sql(expr, max_depth=3)

    def test_within_depth(self):
        assert format_sql(["not", ["not", "x"]], max_depth=5) == ["NOT NOT x"]


class TestParameterCount:
    def test_placeholders_match_params(self):
        sql, *params = format_sql({
            "with": [["recent", {"select": ["*"], "from": "orders", "where": [">", "total", {"$": 10}]}]],
            "select": ["id", ["case", ["=", "status", {"$": "a"}], {"$": 1}, "else", {"$": 0}]],
            "from": "recent",
            "where": ["and", ["in", "kind", [{"$": "x"}, {"$": "y"}]], ["like", "name", {"$": "A%"}]],
            "limit": {"$": 5},
        })
        numbers = [int(n) for n in re.findall(r"\$(\d+)", sql)]
        assert numbers == list(range(1, len(params) + 1))
        assert params == [10, "a", 1, 0, "x", "y", "A%", 5]


class TestPretty:
    def test_pretty_reindents(self):
        sql, *params = format_sql(
            {"select": ["id", "name"], "from": "users", "where": ["=", "id", {"$": 1}]},
            pretty=True,
        )
        assert "\nFROM users" in sql
        assert sql.startswith("SELECT")
        assert params == [1]
