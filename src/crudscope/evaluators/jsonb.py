"""JSON containment evaluator.

``JsonContains`` is a SQL construct compiled per dialect:

- PostgreSQL: ``CAST(column AS JSONB) @> CAST(:value AS JSONB)``
- SQLite: ``EXISTS (SELECT 1 FROM json_each(column)
  WHERE json_each.value = json_extract(:value, '$'))``
- anything else (MySQL): ``JSON_CONTAINS(column, :value)``

The value is serialized with ``json.dumps`` and always bound.

SQLite only matches whole top-level elements: ``"sale"`` is found in
``["sale", "new"]`` but an object needle such as ``{"a": 1}`` never
matches inside ``{"a": 1, "b": 2}`` the way PostgreSQL ``@>`` or MySQL
``JSON_CONTAINS`` would.  Use one of those dialects for substructure
containment.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import Boolean, String, and_, literal
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

from ..conditions import ConditionKind, is_absent
from .strategy import ClauseEvaluator

if TYPE_CHECKING:
    from sqlalchemy.sql.compiler import SQLCompiler
    from sqlalchemy.sql.elements import ColumnElement


class JsonContains(FunctionElement):  # type: ignore[type-arg]
    """``column`` holds ``value`` as an element (or is equal to it)."""

    type = Boolean()
    name = "json_contains"
    inherit_cache = True


@compiles(JsonContains)
def _json_contains_default(element: Any, compiler: SQLCompiler, **kw: Any) -> str:
    column, value = list(element.clauses)
    return (
        f"JSON_CONTAINS({compiler.process(column, **kw)}, "
        f"{compiler.process(value, **kw)})"
    )


@compiles(JsonContains, "postgresql")
def _json_contains_postgresql(element: Any, compiler: SQLCompiler, **kw: Any) -> str:
    column, value = list(element.clauses)
    return (
        f"CAST({compiler.process(column, **kw)} AS JSONB) @> "
        f"CAST({compiler.process(value, **kw)} AS JSONB)"
    )


@compiles(JsonContains, "sqlite")
def _json_contains_sqlite(element: Any, compiler: SQLCompiler, **kw: Any) -> str:
    """SQLite has no containment operator; scan the array with json_each."""
    column, value = list(element.clauses)
    return (
        f"EXISTS (SELECT 1 FROM json_each({compiler.process(column, **kw)}) "
        f"WHERE json_each.value = json_extract({compiler.process(value, **kw)}, '$'))"
    )


def json_contains(column: Any, value: Any) -> ColumnElement[bool]:
    """Build a :class:`JsonContains` predicate for one JSON value."""
    return cast(
        "ColumnElement[bool]",
        JsonContains(column, literal(json.dumps(value), String())),
    )


class JsonContainsEvaluator(ClauseEvaluator):
    """JSON column contains the value.

    A list value means every item must be contained.
    """

    @property
    def kind(self) -> ConditionKind:
        return ConditionKind.JSON_CONTAINS

    def apply(self, column: Any, value: Any) -> ColumnElement[bool] | None:
        if is_absent(value):
            return None
        if isinstance(value, (list, tuple)):
            items = list(value)
            if not items:
                return None
            return and_(*(json_contains(column, item) for item in items))
        return json_contains(column, value)
