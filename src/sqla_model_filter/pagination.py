"""Offset pagination over filtered statements."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import Select, func, select

from .config import DEFAULT_CONFIG
from .exceptions import InvalidPaginationError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from .config import ModelFilterConfig
    from .query import IFilterQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    One page of results.

    Attributes:
        items: Rows on this page.
        page: 1-based page number.
        per_page: Page size that was applied.
        total: Total matching rows, or ``None`` for simple pagination.
        has_more: Whether another page follows.
    """

    items: list[T] = field(default_factory=list)
    page: int = 1
    per_page: int = DEFAULT_CONFIG.paginate_limit
    total: int | None = None
    has_more: bool = False

    @property
    def pages(self) -> int | None:
        if self.total is None:
            return None
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_next(self) -> bool:
        return self.has_more

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def resolve_per_page(per_page: Any, config: ModelFilterConfig | None = None) -> int:
    """Default and clamp a caller-supplied page size."""
    cfg = config or DEFAULT_CONFIG
    if per_page is None:
        return cfg.paginate_limit
    try:
        value = int(per_page)
    except (TypeError, ValueError):
        return cfg.paginate_limit
    return min(cfg.max_paginate_limit, max(1, value))


def resolve_page(page: Any) -> int:
    """
    Convert a page parameter to a 1-based page number.

    Raises:
        InvalidPaginationError: If ``page`` is not an integer of at least 1.
    """
    try:
        value = int(page)
    except (TypeError, ValueError) as e:
        raise InvalidPaginationError(f"Invalid page number: {page!r}") from e
    if value < 1:
        raise InvalidPaginationError(f"Page must be at least 1, got {value}")
    return value


def paginate(
    session: Session,
    query: IFilterQuery | Select[Any],
    *,
    page: Any = 1,
    per_page: Any = None,
    config: ModelFilterConfig | None = None,
    with_count: bool = True,
) -> Page[Any]:
    """
    Execute ``query`` for one page.

    With ``with_count=False`` no COUNT query is issued: one extra row is
    fetched to tell whether another page follows and ``total`` is ``None``.
    """
    stmt = query if isinstance(query, Select) else query.statement
    number = resolve_page(page)
    size = resolve_per_page(per_page, config)
    offset = (number - 1) * size

    total: int | None = None
    if with_count:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = session.execute(count_stmt).scalar_one()

    fetch = size if with_count else size + 1
    items = list(session.scalars(stmt.limit(fetch).offset(offset)).all())
    if with_count:
        has_more = total is not None and offset + len(items) < total
    else:
        has_more = len(items) > size
        items = items[:size]

    logger.debug(
        "Paginated page=%s per_page=%s total=%s rows=%s",
        number,
        size,
        total,
        len(items),
    )
    return Page(items=items, page=number, per_page=size, total=total, has_more=has_more)
