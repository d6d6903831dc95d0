"""
Condition model and payload decoding.

A filter payload is an untyped mapping.  ``decode_conditions`` turns it
into a :class:`ConditionSet` of tagged :class:`Condition` values once, at
the boundary, so the router and evaluators only ever see well-formed
variants.

Payload shape::

    {
        "status": "active",                   # implicit equality
        "id": [1, 2, 3],                      # implicit membership
        "where": {"type": "book"},
        "whereIn": {"category_id": [4, 5]},
        "whereLike": {"title": "python"},
        "whereBetween": {"created_at": "2024-01-01,2024-01-31"},
        "whereJsonContains": {"tags": "sale"},
        "whereInSet": {"flags": "featured"},
        "page": 2,                            # never a filter
        "page_size": 20,                      # never a filter
    }

Implicit conditions come first, then the scoped kinds in the order they
are declared on :class:`ConditionKind`.  Every condition adds an AND-ed
predicate; nothing overrides anything.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from .exceptions import MalformedConditionError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)


class ConditionKind(str, Enum):
    """Supported condition kinds, keyed by their payload name.

    Declaration order is the application order.
    """

    EQUALS = "where"
    IN = "whereIn"
    LIKE = "whereLike"
    BETWEEN = "whereBetween"
    JSON_CONTAINS = "whereJsonContains"
    IN_SET = "whereInSet"


CONDITION_ORDER: tuple[ConditionKind, ...] = tuple(ConditionKind)
RESERVED_KEYS: frozenset[str] = frozenset(kind.value for kind in ConditionKind)
DEFAULT_PAGINATION_KEYS: frozenset[str] = frozenset({"page", "page_size"})

_SCALAR_TYPES = (str, int, float, bool, Decimal, date, UUID)
_LIST_TYPES = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class Condition:
    """One decoded predicate request."""

    kind: ConditionKind
    field: str
    value: Any
    implicit: bool = False


@dataclass(frozen=True)
class ConditionSet:
    """Ordered, immutable collection of decoded conditions."""

    conditions: tuple[Condition, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Condition]:
        return iter(self.conditions)

    def __len__(self) -> int:
        return len(self.conditions)

    def __bool__(self) -> bool:
        return bool(self.conditions)

    @property
    def implicit(self) -> tuple[Condition, ...]:
        return tuple(c for c in self.conditions if c.implicit)

    @property
    def scoped(self) -> tuple[Condition, ...]:
        return tuple(c for c in self.conditions if not c.implicit)

    def of_kind(self, kind: ConditionKind) -> tuple[Condition, ...]:
        return tuple(c for c in self.conditions if c.kind is kind)

    def fields(self) -> list[str]:
        return [c.field for c in self.conditions]


def is_absent(value: Any) -> bool:
    """``None`` and the empty string never produce a predicate."""
    return value is None or (isinstance(value, str) and value == "")


def decode_conditions(
    payload: Mapping[str, Any] | None,
    *,
    exclude: Iterable[str] = DEFAULT_PAGINATION_KEYS,
    strict: bool = False,
) -> ConditionSet:
    """
    Decode a raw filter payload into a :class:`ConditionSet`.

    Args:
        payload: The caller-supplied mapping.  ``None`` decodes to an
            empty set.
        exclude: Top-level keys that are never filters (pagination
            controls).  They are skipped, not removed from *payload*.
        strict: When ``True`` malformed sub-maps and values raise
            :class:`MalformedConditionError`; otherwise they are logged
            and skipped.

    Returns:
        The decoded conditions, implicit ones first.
    """
    if payload is None:
        return ConditionSet()
    if not isinstance(payload, Mapping):
        raise MalformedConditionError(
            f"Filter payload must be a mapping, got {type(payload).__name__}"
        )

    excluded = frozenset(exclude)
    decoded: list[Condition] = []

    for key, value in payload.items():
        if key in RESERVED_KEYS or key in excluded:
            continue
        condition = _decode_implicit(key, value, strict=strict)
        if condition is not None:
            decoded.append(condition)

    for kind in CONDITION_ORDER:
        if kind.value not in payload:
            continue
        sub_map = payload[kind.value]
        if sub_map is None:
            continue
        if not isinstance(sub_map, Mapping):
            _reject(
                f"{kind.value!r} must map field names to values, "
                f"got {type(sub_map).__name__}",
                kind.value,
                strict=strict,
            )
            continue
        for field_name, raw in sub_map.items():
            condition = _decode_scoped(kind, field_name, raw, strict=strict)
            if condition is not None:
                decoded.append(condition)

    return ConditionSet(tuple(decoded))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reject(message: str, path: str, *, strict: bool) -> None:
    if strict:
        raise MalformedConditionError(message, path=path)
    logger.debug("Skipping malformed condition at %s: %s", path, message)


def _check_field_name(name: Any, path: str, *, strict: bool) -> bool:
    if isinstance(name, str) and name:
        return True
    _reject(f"Field names must be non-empty strings, got {name!r}", path, strict=strict)
    return False


def _decode_implicit(key: Any, value: Any, *, strict: bool) -> Condition | None:
    if not _check_field_name(key, str(key), strict=strict):
        return None
    if is_absent(value):
        return None
    if isinstance(value, _LIST_TYPES):
        items = list(value)
        if not items:
            return None
        return Condition(ConditionKind.IN, key, items, implicit=True)
    if isinstance(value, Mapping):
        _reject(
            "Implicit equality needs a scalar or a list, got a mapping",
            key,
            strict=strict,
        )
        return None
    return Condition(ConditionKind.EQUALS, key, value, implicit=True)


def _decode_scoped(
    kind: ConditionKind, field_name: Any, raw: Any, *, strict: bool
) -> Condition | None:
    path = f"{kind.value}.{field_name}"
    if not _check_field_name(field_name, path, strict=strict):
        return None
    if is_absent(raw):
        return None

    if kind is ConditionKind.IN:
        if not isinstance(raw, _LIST_TYPES):
            _reject("whereIn values must be lists", path, strict=strict)
            return None
        items = list(raw)
        if not items:
            return None
        return Condition(kind, field_name, items)

    if kind is ConditionKind.BETWEEN:
        if isinstance(raw, str):
            return Condition(kind, field_name, raw)
        if isinstance(raw, (list, tuple)):
            return Condition(kind, field_name, tuple(raw))
        _reject(
            "whereBetween values must be 'start,end' strings or pairs",
            path,
            strict=strict,
        )
        return None

    if kind is ConditionKind.JSON_CONTAINS:
        return Condition(kind, field_name, raw)

    # EQUALS, LIKE, IN_SET take a single scalar.
    if not isinstance(raw, _SCALAR_TYPES):
        _reject(
            f"{kind.value} values must be scalars, got {type(raw).__name__}",
            path,
            strict=strict,
        )
        return None
    return Condition(kind, field_name, raw)
