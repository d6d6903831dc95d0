"""Equality / comparison evaluator."""

from __future__ import annotations

import operator as op_module
from typing import TYPE_CHECKING, Any, cast

from ..conditions import ConditionKind, is_absent
from .strategy import ClauseEvaluator

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.sql.elements import ColumnElement

COMPARATORS: dict[str, Callable[[Any, Any], Any]] = {
    "=": op_module.eq,
    "!=": op_module.ne,
    "<>": op_module.ne,
    ">": op_module.gt,
    ">=": op_module.ge,
    "<": op_module.lt,
    "<=": op_module.le,
}


class EqualsEvaluator(ClauseEvaluator):
    """``column <operator> value``; the operator defaults to ``=``."""

    def __init__(self, operator: str = "=") -> None:
        if operator not in COMPARATORS:
            raise ValueError(
                f"Unsupported comparison operator {operator!r}; "
                f"expected one of {', '.join(COMPARATORS)}"
            )
        self.operator = operator
        self._compare = COMPARATORS[operator]

    @property
    def kind(self) -> ConditionKind:
        return ConditionKind.EQUALS

    def apply(self, column: Any, value: Any) -> ColumnElement[bool] | None:
        if is_absent(value):
            return None
        return cast("ColumnElement[bool]", self._compare(column, value))
