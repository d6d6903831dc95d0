"""Shared fixtures: an in-memory SQLite schema with books and authors."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from crudscope import ModelHandle, ModelRegistry

from .models import Author, Base, Book


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine) -> Iterator[Session]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def book_handle() -> ModelHandle:
    return ModelHandle.for_model(Book, name="books")


@pytest.fixture
def registry() -> ModelRegistry:
    registry = ModelRegistry()
    registry.register("books", Book)
    registry.register("authors", Author)
    return registry


@pytest.fixture
def seeded(session: Session) -> Session:
    """Five books by two authors, ids 1..5."""
    ada = Author(id=1, name="Ada")
    alan = Author(id=2, name="Alan")
    session.add_all(
        [
            ada,
            alan,
            Book(
                id=1,
                title="Python Basics",
                status="active",
                category_id=1,
                tags=["sale", "new"],
                flags="featured,sale",
                created_at=datetime(2024, 1, 1, 9, 30),
                author=ada,
            ),
            Book(
                id=2,
                title="Advanced Python",
                status="active",
                category_id=2,
                tags=["new"],
                flags="presale",
                created_at=datetime(2024, 1, 15, 12, 0),
                author=ada,
            ),
            Book(
                id=3,
                title="50% off SQL",
                status="archived",
                category_id=1,
                tags=["sale"],
                flags="sale",
                created_at=datetime(2024, 1, 31, 23, 0),
                author=alan,
            ),
            Book(
                id=4,
                title="500 pages of SQL",
                status="draft",
                category_id=3,
                tags=[],
                flags="",
                created_at=datetime(2024, 2, 1, 0, 0),
                author=alan,
            ),
            Book(
                id=5,
                title="Untagged",
                status="active",
                category_id=None,
                tags=["rare"],
                flags="featured",
                created_at=datetime(2023, 12, 31, 23, 59, 59),
                author=None,
            ),
        ]
    )
    session.flush()
    return session
