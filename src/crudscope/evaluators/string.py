"""Substring evaluator."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import String
from sqlalchemy import cast as sql_cast

from ..conditions import ConditionKind, is_absent
from .strategy import ClauseEvaluator

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


def as_text(column: Any) -> Any:
    """``column`` itself when it is string-typed, else ``CAST(column AS VARCHAR)``.

    LIKE-based evaluators need a string operand; the default allow-list
    also exposes numeric and date columns.
    """
    if isinstance(getattr(column, "type", None), String):
        return column
    return sql_cast(column, String())


class LikeEvaluator(ClauseEvaluator):
    """``column LIKE '%' || :value || '%'``

    The value is always bound; ``%`` and ``_`` inside it are escaped so
    they match literally.  Non-string columns are cast to text first.
    """

    @property
    def kind(self) -> ConditionKind:
        return ConditionKind.LIKE

    def apply(self, column: Any, value: Any) -> ColumnElement[bool] | None:
        if is_absent(value):
            return None
        return cast(
            "ColumnElement[bool]", as_text(column).contains(str(value), autoescape=True)
        )
