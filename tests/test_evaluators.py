"""Tests for clause evaluators and their registry."""

from __future__ import annotations

import warnings
from datetime import date, datetime

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import mysql, postgresql, sqlite

from crudscope.conditions import ConditionKind
from crudscope.evaluators import (
    DEFAULT_EVALUATORS,
    BetweenEvaluator,
    ClauseEvaluatorRegistry,
    EqualsEvaluator,
    InEvaluator,
    InSetEvaluator,
    JsonContainsEvaluator,
    LikeEvaluator,
    build_default_registry,
    day_bounds,
    json_contains,
)

from .models import Book


def _ids(session, expr) -> list[int]:
    return list(session.scalars(select(Book.id).where(expr).order_by(Book.id)))


# ── registry ────────────────────────────────────────────────────────


def test_default_registry_covers_every_kind() -> None:
    assert DEFAULT_EVALUATORS.supported_kinds == set(ConditionKind)


def test_registry_apply_unknown_kind_raises() -> None:
    registry = ClauseEvaluatorRegistry()
    with pytest.raises(ValueError, match="No evaluator registered"):
        registry.apply(ConditionKind.LIKE, Book.title, "x")


def test_registry_register_replaces_by_kind() -> None:
    registry = build_default_registry()
    custom = EqualsEvaluator(">=")
    registry.register(custom)
    assert registry.get(ConditionKind.EQUALS) is custom
    registry.unregister(ConditionKind.EQUALS)
    assert not registry.has(ConditionKind.EQUALS)


# ── equals ──────────────────────────────────────────────────────────


def test_equals_compiles_with_bound_value() -> None:
    expr = EqualsEvaluator().apply(Book.status, "active")
    assert str(expr.compile()) == "books.status = :status_1"


def test_equals_other_operator() -> None:
    expr = EqualsEvaluator(">=").apply(Book.category_id, 2)
    assert str(expr.compile()) == "books.category_id >= :category_id_1"


def test_equals_unknown_operator_raises() -> None:
    with pytest.raises(ValueError, match="Unsupported comparison operator"):
        EqualsEvaluator("~")


def test_equals_absent_value_adds_nothing() -> None:
    assert EqualsEvaluator().apply(Book.status, None) is None
    assert EqualsEvaluator().apply(Book.status, "") is None


# ── in ──────────────────────────────────────────────────────────────


def test_in_matches_members(seeded) -> None:
    expr = InEvaluator().apply(Book.category_id, [1, 3])
    assert _ids(seeded, expr) == [1, 3, 4]


def test_in_empty_collection_adds_nothing() -> None:
    assert InEvaluator().apply(Book.category_id, []) is None


def test_in_rejects_scalar() -> None:
    with pytest.raises(TypeError):
        InEvaluator().apply(Book.category_id, "1,2")


# ── like ────────────────────────────────────────────────────────────


def test_like_is_substring_match(seeded) -> None:
    expr = LikeEvaluator().apply(Book.title, "Python")
    assert _ids(seeded, expr) == [1, 2]


def test_like_escapes_wildcards(seeded) -> None:
    expr = LikeEvaluator().apply(Book.title, "50%")
    assert _ids(seeded, expr) == [3]
    assert "ESCAPE" in str(expr.compile())


# ── between ─────────────────────────────────────────────────────────


def test_day_bounds_cover_whole_days() -> None:
    assert day_bounds("2024-01-01,2024-01-31") == (
        datetime(2024, 1, 1, 0, 0, 0),
        datetime(2024, 1, 31, 23, 59, 59),
    )


def test_day_bounds_accept_dates_and_timestamps() -> None:
    assert day_bounds([date(2024, 3, 1), "2024-03-02T10:00:00Z"]) == (
        datetime(2024, 3, 1, 0, 0, 0),
        datetime(2024, 3, 2, 23, 59, 59),
    )


@pytest.mark.parametrize(
    "value",
    ["2024-01-01", ["2024-01-01"], "not,dates", 20240101],
)
def test_day_bounds_unrecognised(value: object) -> None:
    assert day_bounds(value) is None


def test_between_filters_inclusive_days(seeded) -> None:
    expr = BetweenEvaluator().apply(Book.created_at, "2024-01-01,2024-01-31")
    assert _ids(seeded, expr) == [1, 2, 3]


def test_between_without_separator_adds_nothing() -> None:
    assert BetweenEvaluator().apply(Book.created_at, "2024-01-01") is None


# ── json contains ───────────────────────────────────────────────────


def test_json_contains_compiles_per_dialect() -> None:
    expr = json_contains(Book.tags, "sale")
    pg = str(expr.compile(dialect=postgresql.dialect()))
    assert pg.startswith("CAST(books.tags AS JSONB) @> CAST(")
    my = str(expr.compile(dialect=mysql.dialect()))
    assert my.startswith("JSON_CONTAINS(books.tags, ")
    lite = str(expr.compile(dialect=sqlite.dialect()))
    assert "json_each(books.tags)" in lite


def test_json_contains_value_is_bound(seeded) -> None:
    expr = json_contains(Book.tags, "sale")
    compiled = expr.compile(dialect=sqlite.dialect())
    assert '"sale"' in compiled.params.values()
    assert "sale" not in str(compiled)


def test_json_contains_single_value(seeded) -> None:
    expr = JsonContainsEvaluator().apply(Book.tags, "sale")
    assert _ids(seeded, expr) == [1, 3]


def test_json_contains_list_requires_every_item(seeded) -> None:
    expr = JsonContainsEvaluator().apply(Book.tags, ["sale", "new"])
    assert _ids(seeded, expr) == [1]


def test_json_contains_empty_list_adds_nothing() -> None:
    assert JsonContainsEvaluator().apply(Book.tags, []) is None


# ── in set ──────────────────────────────────────────────────────────


def test_in_set_matches_whole_members_only(seeded) -> None:
    expr = InSetEvaluator().apply(Book.flags, "sale")
    # "presale" on book 2 is not a member
    assert _ids(seeded, expr) == [1, 3]


def test_in_set_single_member_column(seeded) -> None:
    expr = InSetEvaluator().apply(Book.flags, "featured")
    assert _ids(seeded, expr) == [1, 5]


def test_in_set_value_with_separator_never_matches(seeded) -> None:
    expr = InSetEvaluator().apply(Book.flags, "featured,sale")
    assert _ids(seeded, expr) == []


def test_in_set_rejects_identifier_strings() -> None:
    with pytest.raises(TypeError):
        InSetEvaluator().apply("flags", "sale")


# ── absent values, evaluator level ──────────────────────────────────


@pytest.mark.parametrize("absent", [None, ""])
@pytest.mark.parametrize(
    ("evaluator", "column"),
    [
        (EqualsEvaluator(), Book.status),
        (InEvaluator(), Book.category_id),
        (LikeEvaluator(), Book.title),
        (BetweenEvaluator(), Book.created_at),
        (JsonContainsEvaluator(), Book.tags),
        (InSetEvaluator(), Book.flags),
    ],
)
def test_every_evaluator_skips_absent_values(evaluator, column, absent) -> None:
    assert evaluator.apply(column, absent) is None


# ── non-string columns ──────────────────────────────────────────────


def test_like_casts_numeric_columns(seeded) -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        expr = LikeEvaluator().apply(Book.category_id, 1)
    assert "CAST(books.category_id AS VARCHAR)" in str(expr.compile())
    assert _ids(seeded, expr) == [1, 3]


def test_like_leaves_string_columns_uncast() -> None:
    expr = LikeEvaluator().apply(Book.title, "py")
    assert "CAST" not in str(expr.compile())


def test_in_set_casts_numeric_columns(seeded) -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        expr = InSetEvaluator().apply(Book.category_id, 3)
    assert "CAST(books.category_id AS VARCHAR)" in str(expr.compile())
    assert _ids(seeded, expr) == [4]


# ── sqlite json containment scope ───────────────────────────────────


def test_sqlite_json_contains_matches_top_level_elements_only(seeded) -> None:
    seeded.add(Book(id=6, title="Object tags", tags={"a": 1, "b": 2}))
    seeded.flush()
    assert _ids(seeded, json_contains(Book.tags, {"a": 1})) == []
    assert _ids(seeded, json_contains(Book.tags, 1)) == [6]
