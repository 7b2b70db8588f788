"""Shared fixtures: filter registry and a seeded in-memory SQLite session."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from blog_models import (
    ArticleRecord,
    Base,
    CommentRecord,
    PostRecord,
    TagRecord,
    UserRecord,
    build_registry,
)
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from sqla_model_filter import FilterRegistry


@pytest.fixture
def registry() -> FilterRegistry:
    return build_registry()


@pytest.fixture
def session() -> Iterator[Session]:
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as s:
        alice = UserRecord(id=1, name="alice", status="active")
        bob = UserRecord(id=2, name="bob", status="banned")
        s.add_all([alice, bob])
        for i in range(1, 6):
            s.add(
                PostRecord(
                    id=i,
                    title=f"post-{i}",
                    status="published" if i % 2 else "draft",
                    author=alice,
                )
            )
        s.add(PostRecord(id=6, title="bob's post", status="published", author=bob))
        s.add_all(
            [
                CommentRecord(id=1, body="great", post_id=1, author_id=2),
                CommentRecord(id=2, body="meh", post_id=2, author_id=1),
                CommentRecord(id=3, body="great", post_id=6, author_id=1),
            ]
        )
        s.add_all(
            [
                ArticleRecord(id=1, headline="release notes"),
                ArticleRecord(id=2, headline="roadmap"),
                TagRecord(id=1, label="python", article_id=1),
                TagRecord(id=2, label="sql", article_id=2),
            ]
        )
        s.commit()
        yield s
    engine.dispose()
