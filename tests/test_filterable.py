"""Tests for apply_filter and the Filterable mixin."""

from __future__ import annotations

from typing import Any

import pytest
from blog_models import (
    ArticleRecord,
    CommentRecord,
    PostRecord,
    TagRecord,
    UserFilter,
    UserRecord,
)
from sqlalchemy import select
from sqlalchemy.orm import Session

from sqla_model_filter import (
    FilterNotRegisteredError,
    FilterRegistry,
    ModelFilter,
    SelectQuery,
    apply_filter,
)
from sqla_model_filter.filterable import as_query, resolve_filter_class


def test_model_filter_declared_on_model(session: Session) -> None:
    query = PostRecord.filter({"status": "published", "title": ""})
    ids = sorted(p.id for p in session.scalars(query.statement))
    assert ids == [1, 3, 5, 6]


def test_filter_with_unfiltered_relation_needs_registry() -> None:
    # CommentRecord declares no __model_filter__ and no registry is given.
    with pytest.raises(FilterNotRegisteredError) as exc_info:
        PostRecord.filter({"body": "great"})
    assert exc_info.value.model is CommentRecord


def test_related_model_filter_resolves_without_registry(session: Session) -> None:
    query = ArticleRecord.filter({"label": "sql"})
    assert [a.headline for a in session.scalars(query.statement)] == ["roadmap"]


def test_registry_takes_precedence_over_model_filter(session: Session) -> None:
    class NeverMatchingTagFilter(ModelFilter):
        def label(self, value: Any) -> None:
            self.query.where(TagRecord.id.is_(None))

    registry = FilterRegistry()
    registry.register(TagRecord, NeverMatchingTagFilter)
    query = ArticleRecord.filter({"label": "sql"}, registry=registry)
    assert list(session.scalars(query.statement)) == []


def test_filter_with_registry(session: Session, registry: FilterRegistry) -> None:
    query = PostRecord.filter({"name": "bob"}, registry=registry)
    assert [p.title for p in session.scalars(query.statement)] == ["bob's post"]


def test_filter_on_existing_statement(session: Session) -> None:
    stmt = select(PostRecord).where(PostRecord.id > 4)
    query = PostRecord.filter({"status": "published"}, statement=stmt)
    assert sorted(p.id for p in session.scalars(query.statement)) == [5, 6]


def test_apply_filter_resolves_through_registry(
    session: Session, registry: FilterRegistry
) -> None:
    query = apply_filter(UserRecord, {"status": "banned"}, registry=registry)
    assert [u.name for u in session.scalars(query.statement)] == ["bob"]


def test_apply_filter_without_filter_raises() -> None:
    with pytest.raises(FilterNotRegisteredError):
        apply_filter(UserRecord, {"name": "alice"})


def test_apply_filter_explicit_class_wins(registry: FilterRegistry) -> None:
    assert (
        resolve_filter_class(PostRecord, filter_class=UserFilter, registry=registry)
        is UserFilter
    )


def test_as_query() -> None:
    handle = SelectQuery(UserRecord)
    assert as_query(handle) is handle
    assert as_query(UserRecord).model is UserRecord
    stmt = select(PostRecord)
    wrapped = as_query(stmt)
    assert wrapped.model is PostRecord
    assert wrapped.statement is stmt


def test_paginate_filter(session: Session, registry: FilterRegistry) -> None:
    page = PostRecord.paginate_filter(
        session, {"name": "alice"}, page=1, per_page=2, registry=registry
    )
    assert page.total == 5
    assert len(page.items) == 2
    assert page.has_next


def test_simple_paginate_filter(session: Session) -> None:
    page = PostRecord.simple_paginate_filter(
        session, {"status": "draft"}, page=1, per_page=5
    )
    assert page.total is None
    assert sorted(p.id for p in page.items) == [2, 4]
    assert not page.has_next
