"""Format -> parse -> format round trips."""

import pytest

from pyhoneysql import format as format_sql
from pyhoneysql import from_sql, inject_where


def _inline(clause):
    return format_sql(clause, inline=True)[0]


ROUND_TRIP_CASES = [
    pytest.param(
        {
            "select": ["id", "name"],
            "from": "users",
            "where": ["and", ["=", "status", {"$": "active"}], [">", "age", 18]],
        },
        id="where_and",
    ),
    pytest.param(
        {"select": ["*"], "from": "users", "where": ["in", "id", [1, 2, 3]]},
        id="in_list",
    ),
    pytest.param(
        {
            "select": ["u.id", "o.total"],
            "from": [["users", "u"]],
            "join": [[["orders", "o"], ["=", "u.id", "o.user_id"]]],
        },
        id="join_with_aliases",
    ),
    pytest.param(
        {
            "select": ["*"],
            "from": [["users", "u"]],
            "join": [[["orders", "o"], ["=", "u.id", "o.user_id"]]],
            "left-join": [[["payments", "p"], ["=", "p.order_id", "o.id"]]],
        },
        id="join_and_left_join",
    ),
    pytest.param(
        {"select": ["*"], "from": "t", "order-by": [["a", "desc"]], "limit": 10, "offset": 20},
        id="order_limit_offset",
    ),
    pytest.param(
        {
            "select": ["dept", [["%count", "*"], "n"]],
            "from": "emp",
            "group-by": ["dept"],
            "having": [">", ["%count", "*"], 5],
        },
        id="group_having",
    ),
    pytest.param(
        {"insert-into": "users", "columns": ["name", "age"], "values": [[{"$": "a"}, 30]]},
        id="insert",
    ),
    pytest.param(
        {
            "insert-into": "users",
            "columns": ["id", "name"],
            "values": [[1, {"$": "a"}]],
            "on-conflict": ["id"],
            "do-update-set": {"name": "EXCLUDED.name"},
        },
        id="upsert",
    ),
    pytest.param(
        {"update": "users", "set": {"name": {"$": "x"}}, "where": ["=", "id", 1]},
        id="update",
    ),
    pytest.param(
        {"delete-from": "users", "where": ["<", "age", 18]},
        id="delete",
    ),
    pytest.param(
        {"union": [{"select": ["a"], "from": "x"}, {"select": ["a"], "from": "y"}]},
        id="union",
    ),
    pytest.param(
        {
            "with": [["active", {"select": ["*"], "from": "users", "where": ["=", "active", True]}]],
            "select": ["id"],
            "from": "active",
        },
        id="cte",
    ),
    pytest.param(
        {
            "select": [["case", [">", "x", 0], {"$": "pos"}, "else", {"$": "neg"}]],
            "from": "t",
        },
        id="case",
    ),
    pytest.param(
        {"select": [["cast", "price", "numeric"]], "from": "t"},
        id="cast",
    ),
    pytest.param(
        {
            "select": [["over", ["%row_number"], {"partition-by": ["dept"], "order-by": [["salary", "desc"]]}]],
            "from": "emp",
        },
        id="window",
    ),
    pytest.param(
        {"select": ["*"], "from": "t", "where": ["=", "deleted_at", None]},
        id="is_null",
    ),
    pytest.param(
        {"select": ["*"], "from": "t", "where": ["between", "age", 18, 65]},
        id="between",
    ),
    pytest.param(
        {"select": ["*"], "from": "t", "where": ["not", "active"]},
        id="not",
    ),
    pytest.param(
        {"select": ["*"], "from": "t", "where": ["exists", {"select": [1], "from": "u"}]},
        id="exists",
    ),
    pytest.param(
        {"select": [["->>", "data", {"$": "name"}]], "from": "t"},
        id="json_get_text",
    ),
    pytest.param(
        {"select": [["entity", "First Name"]], "from": [["entity", "Users"]]},
        id="quoted_entities",
    ),
    pytest.param(
        {"select": ["*"], "from": "jobs", "for": ["update", "skip-locked"]},
        id="for_update_skip_locked",
    ),
    pytest.param(
        {"select-distinct-on": [["a"], "a", "b"], "from": "t"},
        id="distinct_on",
    ),
]


class TestRoundTrip:
    @pytest.mark.parametrize("clause", ROUND_TRIP_CASES)
    def test_inline_sql_is_stable(self, clause):
        sql = _inline(clause)
        assert _inline(from_sql(sql)) == sql

    @pytest.mark.parametrize("clause", ROUND_TRIP_CASES)
    def test_parsed_clause_is_stable(self, clause):
        parsed = from_sql(_inline(clause))
        assert from_sql(_inline(parsed)) == parsed


class TestTenantInjection:
    def test_parsed_query_gets_filter_in_every_block(self):
        clause = from_sql(
            "SELECT * FROM orders WHERE user_id IN (SELECT id FROM users)"
        )
        sql, *params = format_sql(inject_where(clause, ["=", "tenant_id", {"$": 42}]))
        assert sql == (
            "SELECT * FROM orders WHERE (user_id IN (SELECT id FROM users WHERE tenant_id = $1))"
            " AND (tenant_id = $2)"
        )
        assert params == [42, 42]
        assert sql.count("tenant_id = $") == 2

    def test_subquery_joined_before_comma_is_filtered(self):
        clause = from_sql("SELECT * FROM a JOIN (SELECT * FROM secrets) s ON TRUE, c")
        sql, *params = format_sql(inject_where(clause, ["=", "tenant_id", {"$": 42}]))
        assert "FROM secrets WHERE tenant_id = $1" in sql
        assert sql.endswith("CROSS JOIN c WHERE tenant_id = $2")
        assert sql.count("tenant_id = $") == 2
        assert params == [42, 42]

    def test_joined_items_on_both_sides_of_comma_are_filtered(self):
        clause = from_sql(
            "SELECT * FROM a LEFT JOIN (SELECT * FROM b) x ON TRUE, "
            "c JOIN (SELECT * FROM d) y ON TRUE"
        )
        sql, *params = format_sql(inject_where(clause, ["=", "tenant_id", {"$": 7}]))
        assert sql.count("tenant_id = $") == 3
        assert params == [7, 7, 7]
