"""Clause-tree rewriting and inspection helpers."""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass, field
from typing import Any

from pyhoneysql._constants import (
    CTE_CLAUSES,
    JOIN_CLAUSES,
    SELECT_CLAUSES,
    SET_OPERATION_CLAUSES,
)
from pyhoneysql._types import is_clause
from pyhoneysql.registry import DEFAULT_REGISTRY, Registry

ClauseTransform = Callable[[dict[str, Any]], dict[str, Any]]

# Keys a FROM-bearing clause can match in inject_where
_FILTERED_HEADS = ("from", "delete-from", "update")


# --- Walking ---

Walker = Callable[[Any, ClauseTransform, Collection[str]], Any]


def _walk_expr(expr: Any, transform: ClauseTransform, keys: Collection[str]) -> Any:
    if is_clause(expr, keys):
        return walk_clauses(expr, transform, registry=keys)
    if isinstance(expr, (list, tuple)):
        return [_walk_expr(e, transform, keys) for e in expr]
    return expr


def _walk_ctes(ctes: Any, transform: ClauseTransform, keys: Collection[str]) -> Any:
    walked = []
    for entry in ctes:
        name, query = entry
        walked.append([name, _walk_expr(query, transform, keys)])
    return walked


def _walk_branches(branches: Any, transform: ClauseTransform, keys: Collection[str]) -> Any:
    return [_walk_expr(branch, transform, keys) for branch in branches]


_WALKERS: dict[str, Walker] = {
    **{key: _walk_ctes for key in CTE_CLAUSES},
    **{key: _walk_branches for key in SET_OPERATION_CLAUSES},
    **{key: _walk_expr for key in SELECT_CLAUSES},
    **{key: _walk_expr for key in JOIN_CLAUSES},
    "from": _walk_expr,
    "using": _walk_expr,
    "cross-join": _walk_expr,
    "join-by": _walk_expr,
    "where": _walk_expr,
    "having": _walk_expr,
    "returning": _walk_expr,
    "nest": _walk_expr,
    "insert-into": _walk_expr,
}


def _clause_keys(registry: Registry | Collection[str] | None) -> Collection[str]:
    if registry is None:
        return DEFAULT_REGISTRY.clause_keys
    if isinstance(registry, Registry):
        return registry.clause_keys
    return registry


def walk_clauses(
    clause: Mapping[str, Any],
    transform: ClauseTransform,
    *,
    registry: Registry | Collection[str] | None = None,
) -> dict[str, Any]:
    """Rebuild a clause tree bottom-up, applying ``transform`` to every clause.

    Nested clauses in CTE bodies, set-operation branches and the FROM, JOIN,
    WHERE, SELECT, HAVING, RETURNING and INSERT source expressions are
    walked first; ``transform`` then receives the current clause with its
    children already rewritten. The input is never mutated.

    Args:
        clause: The clause map to walk.
        transform: Called once per clause map; returns its replacement.
        registry: Registry (or set of clause keys) deciding which nested
            mappings are clauses. Defaults to the process default registry,
            so clauses added with ``register_clause`` are walked too.

    Returns:
        The rewritten clause map.
    """
    keys = _clause_keys(registry)
    processed = dict(clause)
    for key, value in clause.items():
        walker = _WALKERS.get(key)
        if walker is not None and value is not None:
            processed[key] = walker(value, transform, keys)
    return transform(processed)


def inject_where(
    clause: Mapping[str, Any],
    condition: Any,
    *,
    registry: Registry | Collection[str] | None = None,
) -> dict[str, Any]:
    """AND ``condition`` into every clause in the tree that reads from a table.

    Clauses with ``from``, ``delete-from`` or ``update`` receive
    ``["and", existing, condition]``, or just ``condition`` when they have no
    WHERE yet. Tenant-isolation filters are the typical use.
    """

    def add_condition(c: dict[str, Any]) -> dict[str, Any]:
        if not any(c.get(key) for key in _FILTERED_HEADS):
            return c
        existing = c.get("where")
        if existing:
            return {**c, "where": ["and", existing, condition]}
        return {**c, "where": condition}

    return walk_clauses(clause, add_condition, registry=registry)


def map_equals(data: Mapping[str, Any]) -> Any:
    """``{"a": x, "b": y}`` -> ``["and", ["=", "a", x], ["=", "b", y]]``."""
    conditions = [["=", column, value] for column, value in data.items()]
    if len(conditions) == 1:
        return conditions[0]
    return ["and", *conditions]


# --- Table aliases ---


@dataclass
class AliasScope:
    """Table aliases of one query block and its nested blocks.

    Attributes:
        aliases: Table name to alias for this block. An unaliased table
            maps to itself.
        location: Where the block sits in its parent: ``"root"``,
            ``"with:<name>"``, ``"union[0]"``, ``"from"``, ``"where[1]"``, ...
        children: Scopes of CTEs, set-operation branches and subqueries.
    """

    aliases: dict[str, str] = field(default_factory=dict)
    location: str = "root"
    children: list[AliasScope] = field(default_factory=list)


def _table_items(clause: Mapping[str, Any]) -> list[Any]:
    items: list[Any] = []
    from_value = clause.get("from")
    if from_value:
        items.extend(from_value if isinstance(from_value, list) else [from_value])
    for key in JOIN_CLAUSES:
        for entry in clause.get(key) or []:
            if isinstance(entry, (list, tuple)) and entry:
                items.append(entry[0])
    return items


def _table_to_alias(clause: Mapping[str, Any]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for item in _table_items(clause):
        if isinstance(item, str):
            mapping[item] = item
        elif (
            isinstance(item, (list, tuple))
            and len(item) == 2
            and all(isinstance(part, str) for part in item)
        ):
            mapping[item[0]] = item[1]
    return mapping


def _collect_scopes(expr: Any, base: str, children: list[AliasScope], counter: list[int]) -> None:
    if is_clause(expr):
        location = base if counter[0] == 0 else f"{base}[{counter[0]}]"
        counter[0] += 1
        children.append(get_table_aliases(expr, location))
    elif isinstance(expr, (list, tuple)):
        for item in expr:
            _collect_scopes(item, base, children, counter)


def get_table_aliases(clause: Mapping[str, Any], location: str = "root") -> AliasScope:
    """Collect table aliases per query block as a tree of ``AliasScope``.

    Aliases are scoped to their query block, so each CTE, set-operation
    branch and subquery gets its own child scope.
    """
    scope = AliasScope(_table_to_alias(clause), location)
    for key in CTE_CLAUSES:
        for name, query in clause.get(key) or []:
            if isinstance(name, (list, tuple)):
                name = name[0]
            if is_clause(query):
                scope.children.append(get_table_aliases(query, f"{key}:{name}"))
    for key in SET_OPERATION_CLAUSES:
        for index, branch in enumerate(clause.get(key) or []):
            if is_clause(branch):
                scope.children.append(get_table_aliases(branch, f"{key}[{index}]"))
    for key in ("from", "where", "select", "having"):
        if clause.get(key):
            _collect_scopes(clause[key], key, scope.children, [0])
    return scope


# --- Select overrides ---


def _alias_to_table(clause: Mapping[str, Any]) -> dict[str, str]:
    aliases: dict[str, str] = {}
    for item in _table_items(clause):
        if isinstance(item, str):
            aliases[item] = item
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            table, alias = item
            if isinstance(table, str) and isinstance(alias, str):
                aliases[alias] = table
                aliases[table] = table
            elif isinstance(alias, str):
                aliases[alias] = alias
    return aliases


def _resolve_select_item(item: Any, aliases: Mapping[str, str]) -> tuple[str, str] | None:
    """Return ``(resolved_name, output_name)`` for a select item.

    ``"u.email"`` with ``u -> users`` resolves to ``("users.email", "email")``.
    """
    if isinstance(item, str):
        if "." in item:
            table, column = item.split(".", 1)
            return f"{aliases.get(table, table)}.{column}", column
        return item, item
    if isinstance(item, (list, tuple)) and len(item) == 2:
        expr, alias = item
        if isinstance(alias, str) and not alias.startswith("%"):
            if isinstance(expr, str):
                resolved, _ = _resolve_select_item(expr, aliases)
                return resolved, alias
            return alias, alias
    return None


def _override_items(items: list[Any], overrides: Mapping[str, Any], aliases: Mapping[str, str]) -> list[Any]:
    result = []
    for item in items:
        resolved = _resolve_select_item(item, aliases)
        if resolved is None:
            result.append(item)
            continue
        name, output = resolved
        candidates = [name]
        if "." in name:
            column = name.split(".", 1)[1]
            if column not in candidates:
                candidates.append(column)
        if output not in candidates:
            candidates.append(output)
        for candidate in candidates:
            if candidate in overrides:
                result.append([overrides[candidate], output])
                break
        else:
            result.append(item)
    return result


def override_selects(clause: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Replace select items with new expressions, keeping their output names.

    Keys of ``overrides`` are matched against each select item in order:
    the alias-resolved ``table.column``, the bare column, then the output
    alias. Table aliases are resolved from FROM and JOIN, so
    ``"users.email"`` matches ``u.email`` in ``SELECT u.email FROM users u``.

    Args:
        clause: A clause map with ``select``, ``select-distinct`` or
            ``select-distinct-on``.
        overrides: Match key to replacement expression.

    Returns:
        A new clause map; the replaced item becomes ``[expr, output_name]``.
    """
    result = dict(clause)
    aliases = _alias_to_table(clause)
    for key in SELECT_CLAUSES:
        value = result.get(key)
        if not value:
            continue
        if key == "select-distinct-on":
            on_exprs, *items = value
            result[key] = [on_exprs, *_override_items(items, overrides, aliases)]
        else:
            items = value if isinstance(value, list) else [value]
            result[key] = _override_items(items, overrides, aliases)
    return result
