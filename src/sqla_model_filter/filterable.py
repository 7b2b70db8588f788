"""
Entry points tying a mapped model to its filter.

``apply_filter`` runs a filter over a model, statement or query handle.
The ``Filterable`` mixin exposes the same on declarative models::

    class Post(Filterable, Base):
        __tablename__ = "posts"
        __model_filter__ = PostFilter

    Post.filter({"title": "hello"}).statement
    Post.paginate_filter(session, request_args, page=2)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import Select

from .exceptions import FilterNotRegisteredError
from .pagination import paginate
from .query import IFilterQuery, SelectQuery

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.orm import Session

    from .config import ModelFilterConfig
    from .pagination import Page
    from .registry import FilterFactory, FilterRegistry


def as_query(target: Any) -> IFilterQuery:
    """Wrap a mapped class or ``Select`` in a ``SelectQuery``; handles pass through."""
    if isinstance(target, Select):
        entity = target.column_descriptions[0]["entity"]
        if entity is None:
            raise TypeError("Cannot filter a statement that selects no mapped entity")
        return SelectQuery(entity, target)
    if isinstance(target, IFilterQuery):
        return target
    return SelectQuery(target)


def resolve_filter_class(
    model: type[Any],
    *,
    filter_class: FilterFactory | None = None,
    registry: FilterRegistry | None = None,
) -> FilterFactory:
    """
    Pick the filter for ``model``.

    Order: explicit ``filter_class``, the model's ``__model_filter__``,
    then ``registry``.

    Raises:
        FilterNotRegisteredError: If none of them yields a filter.
    """
    if filter_class is not None:
        return filter_class
    declared = getattr(model, "__model_filter__", None)
    if declared is not None:
        return declared  # type: ignore[no-any-return]
    if registry is None:
        raise FilterNotRegisteredError(model)
    return registry.resolve(model)


def apply_filter(
    target: Any,
    input: Mapping[str, Any] | None = None,  # noqa: A002
    *,
    filter_class: FilterFactory | None = None,
    registry: FilterRegistry | None = None,
) -> IFilterQuery:
    """Run the model's filter over ``target`` and return the query handle."""
    query = as_query(target)
    factory = resolve_filter_class(
        query.model, filter_class=filter_class, registry=registry
    )
    factory(query, input or {}, registry=registry, model=query.model).handle()
    return query


class Filterable:
    """Mixin for declarative models with a model filter."""

    __model_filter__: ClassVar[FilterFactory | None] = None

    @classmethod
    def filter(
        cls,
        input: Mapping[str, Any] | None = None,  # noqa: A002
        *,
        filter_class: FilterFactory | None = None,
        registry: FilterRegistry | None = None,
        statement: Select[Any] | None = None,
    ) -> IFilterQuery:
        """Return a filtered ``SelectQuery`` over this model."""
        return apply_filter(
            SelectQuery(cls, statement),
            input,
            filter_class=filter_class,
            registry=registry,
        )

    @classmethod
    def paginate_filter(
        cls,
        session: Session,
        input: Mapping[str, Any] | None = None,  # noqa: A002
        *,
        page: Any = 1,
        per_page: Any = None,
        filter_class: FilterFactory | None = None,
        registry: FilterRegistry | None = None,
        config: ModelFilterConfig | None = None,
    ) -> Page[Any]:
        """Filter, then fetch one page with a total count."""
        query = cls.filter(input, filter_class=filter_class, registry=registry)
        return paginate(session, query, page=page, per_page=per_page, config=config)

    @classmethod
    def simple_paginate_filter(
        cls,
        session: Session,
        input: Mapping[str, Any] | None = None,  # noqa: A002
        *,
        page: Any = 1,
        per_page: Any = None,
        filter_class: FilterFactory | None = None,
        registry: FilterRegistry | None = None,
        config: ModelFilterConfig | None = None,
    ) -> Page[Any]:
        """Filter, then fetch one page without counting the total."""
        query = cls.filter(input, filter_class=filter_class, registry=registry)
        return paginate(
            session,
            query,
            page=page,
            per_page=per_page,
            config=config,
            with_count=False,
        )
