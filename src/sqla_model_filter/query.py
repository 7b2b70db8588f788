"""
Query handles that model filters mutate.

``IFilterQuery`` is the capability set a ``ModelFilter`` needs from the
object it narrows. ``SelectQuery`` implements it over a SQLAlchemy 2.0
``Select``: since ``Select`` is generative, the handle keeps the current
statement and swaps it on every mutation, so filters sharing one handle
all see each other's changes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import select, tuple_

from .exceptions import InvalidPaginationError
from .utils import joined_table_names

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import InstrumentedAttribute


@runtime_checkable
class IFilterQuery(Protocol):
    """Minimal query interface consumed by ``ModelFilter``."""

    @property
    def model(self) -> type[Any]:
        """Mapped class the query selects from."""
        ...

    @property
    def statement(self) -> Select[Any]:
        """Current SQLAlchemy statement."""
        ...

    def where(self, *criteria: Any) -> IFilterQuery:
        """Append WHERE criteria."""
        ...

    def join(
        self, target: Any, onclause: Any = None, *, isouter: bool = False
    ) -> IFilterQuery:
        """Add a JOIN to the statement."""
        ...

    def joined_tables(self) -> list[str]:
        """Names of the tables already joined into the statement."""
        ...

    def related_model(
        self, relation: str | InstrumentedAttribute[Any]
    ) -> type[Any]:
        """Mapped class on the other side of ``relation``."""
        ...

    def related_table(
        self, relation: str | InstrumentedAttribute[Any]
    ) -> str:
        """Table name of the class on the other side of ``relation``."""
        ...

    def where_has(
        self,
        relation: str | InstrumentedAttribute[Any],
        callback: Callable[[IFilterQuery], object] | None = None,
    ) -> IFilterQuery:
        """Require related rows to exist, narrowed by ``callback``."""
        ...


class SelectQuery:
    """Mutable handle around a ``Select`` statement for one mapped model."""

    def __init__(self, model: type[Any], statement: Select[Any] | None = None) -> None:
        self._model = model
        self._statement = statement if statement is not None else select(model)

    def __repr__(self) -> str:
        return f"<SelectQuery model={self._model.__name__}>"

    @property
    def model(self) -> type[Any]:
        return self._model

    @property
    def statement(self) -> Select[Any]:
        return self._statement

    @property
    def whereclause(self) -> ColumnElement[Any] | None:
        """Combined WHERE criteria added so far, or ``None``."""
        return self._statement.whereclause

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def where(self, *criteria: Any) -> SelectQuery:
        self._statement = self._statement.where(*criteria)
        return self

    def join(
        self, target: Any, onclause: Any = None, *, isouter: bool = False
    ) -> SelectQuery:
        if onclause is None:
            self._statement = self._statement.join(target, isouter=isouter)
        else:
            self._statement = self._statement.join(target, onclause, isouter=isouter)
        return self

    def order_by(self, *clauses: Any) -> SelectQuery:
        self._statement = self._statement.order_by(*clauses)
        return self

    def limit(self, limit: int | None) -> SelectQuery:
        self._statement = self._statement.limit(limit)
        return self

    def offset(self, offset: int | None) -> SelectQuery:
        self._statement = self._statement.offset(offset)
        return self

    def distinct(self) -> SelectQuery:
        self._statement = self._statement.distinct()
        return self

    def paginate(self, page: int, per_page: int) -> SelectQuery:
        """Apply LIMIT/OFFSET for a 1-based page number."""
        if page < 1:
            raise InvalidPaginationError(f"Page must be at least 1, got {page}")
        if per_page < 1:
            raise InvalidPaginationError(f"per_page must be at least 1, got {per_page}")
        return self.limit(per_page).offset((page - 1) * per_page)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def joined_tables(self) -> list[str]:
        return joined_table_names(self._statement)

    def relationship(
        self, relation: str | InstrumentedAttribute[Any]
    ) -> InstrumentedAttribute[Any]:
        """
        Return the relationship attribute for ``relation``.

        Names are looked up on the handle's model; unknown names raise
        ``AttributeError``. Attributes (e.g. ``Comment.author``) pass
        through, which lets a related model's filter add ``EXISTS``
        clauses over its own relations to a shared handle.
        """
        if isinstance(relation, str):
            return getattr(self._model, relation)  # type: ignore[no-any-return]
        return relation

    def related_model(
        self, relation: str | InstrumentedAttribute[Any]
    ) -> type[Any]:
        mapper = self.relationship(relation).property.mapper
        return mapper.class_  # type: ignore[no-any-return]

    def related_table(
        self, relation: str | InstrumentedAttribute[Any]
    ) -> str:
        mapper = self.relationship(relation).property.mapper
        return str(mapper.local_table.name)

    def where_has(
        self,
        relation: str | InstrumentedAttribute[Any],
        callback: Callable[[IFilterQuery], object] | None = None,
    ) -> SelectQuery:
        """
        Add an ``EXISTS`` clause over ``relation``.

        ``callback`` receives a nested ``SelectQuery`` for the related
        model; what it accumulates becomes the sub-query criterion
        (``any()`` for collections, ``has()`` for scalar relations). Plain
        WHERE criteria are inlined; once the nested handle has joins, the
        related rows are matched by primary key against the whole nested
        statement so its joined tables stay inside it.
        """
        rel_attr = self.relationship(relation)
        mapper = rel_attr.property.mapper
        nested = type(self)(mapper.class_)
        if callback is not None:
            callback(nested)
        criterion = nested.whereclause
        if criterion is not None and nested.joined_tables():
            pks = list(mapper.primary_key)
            subquery = nested.statement.with_only_columns(*pks).correlate(None)
            target = pks[0] if len(pks) == 1 else tuple_(*pks)
            criterion = target.in_(subquery)
        if rel_attr.property.uselist:
            return self.where(rel_attr.any(criterion))
        return self.where(rel_attr.has(criterion))
