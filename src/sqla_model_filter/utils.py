"""
SQLAlchemy statement introspection helpers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.schema import Table
from sqlalchemy.sql.selectable import Join

if TYPE_CHECKING:
    from sqlalchemy.sql import Select


def joined_table_names(stmt: Select[Any]) -> list[str]:
    """
    Return the names of all tables joined into ``stmt``.

    Only the right-hand side of each ``JOIN`` counts; the base FROM
    table is not reported. Aliases resolve to their underlying table,
    so ``join(aliased(Comment))`` reports ``"comments"``.
    """
    names: list[str] = []
    for from_obj in stmt.get_final_froms():
        _collect_joined(from_obj, names)
    return names


def _collect_joined(from_obj: object, names: list[str]) -> None:
    """Recursively collect joined table names from a FROM object."""
    if not isinstance(from_obj, Join):
        return
    _collect_joined(from_obj.left, names)
    if isinstance(from_obj.right, Join):
        # Every table of a parenthesised join is joined in, left side included.
        _collect_tables(from_obj.right, names)
        return
    _append_name(from_obj.right, names)


def _collect_tables(from_obj: object, names: list[str]) -> None:
    if isinstance(from_obj, Join):
        _collect_tables(from_obj.left, names)
        _collect_tables(from_obj.right, names)
        return
    _append_name(from_obj, names)


def _append_name(from_obj: object, names: list[str]) -> None:
    name = table_name_of(from_obj)
    if name is not None and name not in names:
        names.append(name)


def table_name_of(from_obj: object) -> str | None:
    """Resolve a Table, Alias or mapped class to its table name."""
    if isinstance(from_obj, Table):
        return str(from_obj.name)
    element = getattr(from_obj, "element", None)  # Alias / aliased()
    if element is not None and element is not from_obj:
        return table_name_of(element)
    table = getattr(from_obj, "__table__", None)  # DeclarativeBase model
    if isinstance(table, Table):
        return str(table.name)
    return None
