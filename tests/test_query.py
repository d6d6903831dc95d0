"""Tests for QuerySpec, normalize_order and QueryComposer."""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from crudscope import (
    FieldNotAllowedError,
    MalformedConditionError,
    ModelHandle,
    QueryComposer,
    QuerySpec,
    ScopeSettings,
    SortDirection,
    normalize_order,
)
from crudscope.query import relation_paths

from .models import Book


def _sql(query: QuerySpec) -> str:
    return str(query.to_select().compile())


# ── normalize_order ─────────────────────────────────────────────────


def test_none_uses_default_order() -> None:
    assert normalize_order(None) == (("id", SortDirection.DESC),)


def test_empty_order_means_no_ordering() -> None:
    assert normalize_order({}) == ()
    assert normalize_order([]) == ()


def test_mapping_keeps_insertion_order() -> None:
    assert normalize_order({"status": "asc", "created_at": "DESC"}) == (
        ("status", SortDirection.ASC),
        ("created_at", SortDirection.DESC),
    )


def test_prefixed_strings_and_pairs() -> None:
    assert normalize_order(["-created_at", "title", ("id", "asc")]) == (
        ("created_at", SortDirection.DESC),
        ("title", SortDirection.ASC),
        ("id", SortDirection.ASC),
    )
    assert normalize_order("-id") == (("id", SortDirection.DESC),)


def test_invalid_direction_raises() -> None:
    with pytest.raises(MalformedConditionError):
        normalize_order({"id": "sideways"})


# ── QuerySpec ───────────────────────────────────────────────────────


def test_spec_is_immutable(book_handle: ModelHandle) -> None:
    base = QuerySpec(book_handle)
    ordered = base.order_by("title")
    assert base.ordering == ()
    assert ordered.ordering == (("title", SortDirection.ASC),)


def test_order_by_rejects_unsortable_field() -> None:
    handle = ModelHandle.for_model(Book, sortable={"id"})
    with pytest.raises(FieldNotAllowedError) as exc_info:
        QuerySpec(handle).order_by("title")
    assert exc_info.value.purpose == "sortable"


def test_to_count_ignores_ordering(book_handle: ModelHandle) -> None:
    query = QuerySpec(book_handle).where(Book.status == "active").order_by("id", "desc")
    sql = str(query.to_count().compile())
    assert "count(*)" in sql
    assert "ORDER BY" not in sql
    assert "books.status" in sql


def test_with_rejects_non_relationship(book_handle: ModelHandle) -> None:
    with pytest.raises(FieldNotAllowedError):
        QuerySpec(book_handle).with_("title")


# ── QueryComposer ───────────────────────────────────────────────────


def test_compose_default_order_is_id_desc(book_handle: ModelHandle) -> None:
    query = QueryComposer().compose(book_handle)
    assert _sql(query).endswith("ORDER BY books.id DESC")


def test_compose_applies_multi_column_order(book_handle: ModelHandle) -> None:
    query = QueryComposer().compose(
        book_handle, order_by={"status": "asc", "created_at": "desc"}
    )
    assert _sql(query).endswith("ORDER BY books.status ASC, books.created_at DESC")


def test_compose_accepts_model_class() -> None:
    query = QueryComposer().compose(Book, {"status": "active"}, order_by={})
    sql = _sql(query)
    assert "WHERE books.status = :status_1" in sql
    assert "ORDER BY" not in sql


def test_compose_extends_base_query(book_handle: ModelHandle) -> None:
    scoped = QuerySpec(book_handle).where(Book.category_id == 1)
    query = QueryComposer().compose(scoped, {"status": "active"})
    assert len(query.criteria) == 2
    assert len(scoped.criteria) == 1


def test_compose_settings_default_order(book_handle: ModelHandle) -> None:
    composer = QueryComposer(settings=ScopeSettings(default_order=(("title", "asc"),)))
    assert _sql(composer.compose(book_handle)).endswith("ORDER BY books.title ASC")


def test_compose_eager_loads_author(seeded: Session, book_handle: ModelHandle) -> None:
    query = QueryComposer().compose(book_handle, {"id": [1, 2]}, eager_loads="author")
    assert len(query.options) == 1
    books = seeded.scalars(query.to_select()).all()
    assert [b.id for b in books] == [2, 1]
    assert {b.author.name for b in books} == {"Ada"}


def test_compose_runs_against_database(seeded: Session, book_handle: ModelHandle) -> None:
    query = QueryComposer().compose(
        book_handle,
        {
            "status": "active",
            "whereLike": {"title": "python"},
            "whereJsonContains": {"tags": "new"},
        },
        order_by=["id"],
    )
    assert [b.id for b in seeded.scalars(query.to_select())] == [1, 2]


def test_relation_paths_treats_string_as_one_path() -> None:
    assert relation_paths("author") == ("author",)
    assert relation_paths(["author", "author.books"]) == ("author", "author.books")
    assert relation_paths(None) == ()
    assert relation_paths("") == ()
