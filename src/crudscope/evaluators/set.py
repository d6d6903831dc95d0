"""Membership evaluators: in, in-set."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import String, false, literal

from ..conditions import ConditionKind, is_absent
from .strategy import ClauseEvaluator
from .string import as_text

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement

SET_SEPARATOR = ","


class InEvaluator(ClauseEvaluator):
    """``column IN (values)``; an empty collection adds nothing."""

    @property
    def kind(self) -> ConditionKind:
        return ConditionKind.IN

    def apply(self, column: Any, value: Any) -> ColumnElement[bool] | None:
        if is_absent(value):
            return None
        if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            raise TypeError(f"IN needs a collection of values, got {type(value).__name__}")
        items = list(value)
        if not items:
            return None
        return cast("ColumnElement[bool]", column.in_(items))


class InSetEvaluator(ClauseEvaluator):
    """
    Membership of a value in a comma-separated string column.

    Compiles to ``(',' || column || ',') LIKE '%,' || :value || ',%'``
    with the value bound and escaped.  A value that itself contains the
    separator can never be a set member.
    """

    @property
    def kind(self) -> ConditionKind:
        return ConditionKind.IN_SET

    def apply(self, column: Any, value: Any) -> ColumnElement[bool] | None:
        if isinstance(column, str):
            raise TypeError(
                "InSetEvaluator needs a resolved column, not an identifier string"
            )
        if is_absent(value):
            return None
        needle = str(value)
        if SET_SEPARATOR in needle:
            return false()
        padded = (
            literal(SET_SEPARATOR, String())
            .concat(as_text(column))
            .concat(literal(SET_SEPARATOR, String()))
        )
        return cast(
            "ColumnElement[bool]",
            padded.contains(f"{SET_SEPARATOR}{needle}{SET_SEPARATOR}", autoescape=True),
        )
