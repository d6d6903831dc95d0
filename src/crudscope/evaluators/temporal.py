"""Date-range evaluator with whole-day bounds."""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any, cast

from ..conditions import ConditionKind, is_absent
from .strategy import ClauseEvaluator

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement

logger = logging.getLogger(__name__)

RANGE_SEPARATOR = ","
START_OF_DAY = time(0, 0, 0)
END_OF_DAY = time(23, 59, 59)


def _parse_day(raw: Any) -> date | None:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        return None


def day_bounds(value: Any) -> tuple[datetime, datetime] | None:
    """
    Turn ``"start,end"`` into an inclusive ``(start 00:00:00, end 23:59:59)``.

    Lists and tuples use their first and last elements.  A string without
    a comma, a collection with fewer than two items, or an unparseable
    date gives ``None``.
    """
    if isinstance(value, str):
        if RANGE_SEPARATOR not in value:
            return None
        parts = value.split(RANGE_SEPARATOR)
    elif isinstance(value, (list, tuple)):
        parts = list(value)
        if len(parts) < 2:
            return None
    else:
        return None

    first = _parse_day(parts[0])
    last = _parse_day(parts[-1])
    if first is None or last is None:
        return None
    return datetime.combine(first, START_OF_DAY), datetime.combine(last, END_OF_DAY)


class BetweenEvaluator(ClauseEvaluator):
    """``column BETWEEN :start AND :end`` over whole calendar days."""

    @property
    def kind(self) -> ConditionKind:
        return ConditionKind.BETWEEN

    def apply(self, column: Any, value: Any) -> ColumnElement[bool] | None:
        if is_absent(value):
            return None
        bounds = day_bounds(value)
        if bounds is None:
            logger.debug("No date range recognised in %r; skipping", value)
            return None
        start, end = bounds
        return cast("ColumnElement[bool]", column.between(start, end))
