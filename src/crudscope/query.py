"""
Query composition.

``QuerySpec`` is an immutable query builder: every call returns a new
spec with one more predicate, loader option or order term.  Nothing is
executed until the spec is finalized with :meth:`QuerySpec.to_select`
or :meth:`QuerySpec.to_count`.

``QueryComposer.compose`` applies eager loads, then conditions (through
:class:`~crudscope.router.ConditionRouter`), then ordering.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import asc, desc, func, select

from .exceptions import MalformedConditionError
from .registry import ModelHandle
from .router import ConditionRouter
from .settings import DEFAULT_SETTINGS

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import ColumnElement, Select

    from .conditions import ConditionSet
    from .settings import ScopeSettings

OrderSpec = Mapping[str, str] | Sequence[tuple[str, str] | str]


def relation_paths(with_: str | Iterable[str] | None) -> tuple[str, ...]:
    """Eager-load paths as a tuple; a bare string is one path, not characters."""
    if not with_:
        return ()
    if isinstance(with_, str):
        return (with_,)
    return tuple(with_)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _direction(raw: Any, field: str) -> SortDirection:
    try:
        return SortDirection(str(raw).strip().lower())
    except ValueError:
        raise MalformedConditionError(
            f"Order direction must be 'asc' or 'desc', got {raw!r}", path=field
        ) from None


def normalize_order(
    order_by: OrderSpec | None,
    default: Iterable[tuple[str, str]] = DEFAULT_SETTINGS.default_order,
) -> tuple[tuple[str, SortDirection], ...]:
    """
    Normalize an order spec into ``((field, direction), ...)``.

    Accepts ``{"status": "asc", "created_at": "desc"}``, a sequence of
    ``(field, direction)`` pairs, or ``"field"`` / ``"-field"`` strings.
    ``None`` yields *default*; an empty spec yields no ordering.
    """
    if order_by is None:
        return tuple((field, _direction(d, field)) for field, d in default)

    if isinstance(order_by, Mapping):
        return tuple((field, _direction(d, field)) for field, d in order_by.items())

    if isinstance(order_by, str):
        order_by = [order_by]

    terms: list[tuple[str, SortDirection]] = []
    for item in order_by:
        if isinstance(item, str):
            if item.startswith("-"):
                terms.append((item[1:], SortDirection.DESC))
            else:
                terms.append((item, SortDirection.ASC))
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            field, raw_dir = item
            terms.append((field, _direction(raw_dir, field)))
        else:
            raise MalformedConditionError(f"Unrecognised order term: {item!r}")
    return tuple(terms)


@dataclass(frozen=True, eq=False)
class QuerySpec:
    """
    Immutable, in-progress query against one model.

    Attributes:
        handle: Model handle used to resolve and validate identifiers.
        criteria: AND-ed predicates, in application order.
        options: Loader options (eager loads).
        ordering: ``(field, direction)`` terms; earlier terms take priority.
    """

    handle: ModelHandle
    criteria: tuple[ColumnElement[bool], ...] = ()
    options: tuple[Any, ...] = ()
    ordering: tuple[tuple[str, SortDirection], ...] = ()

    @classmethod
    def for_model(cls, model: type[Any] | ModelHandle) -> QuerySpec:
        handle = model if isinstance(model, ModelHandle) else ModelHandle.for_model(model)
        return cls(handle=handle)

    def where(self, *exprs: ColumnElement[bool]) -> QuerySpec:
        return replace(self, criteria=self.criteria + tuple(exprs))

    def with_(self, *relations: str) -> QuerySpec:
        """Eager-load the given relationship paths."""
        loaded = tuple(self.handle.loader_option(path) for path in relations)
        return replace(self, options=self.options + loaded)

    def order_by(self, field: str, direction: str = "asc") -> QuerySpec:
        self.handle.sort_column(field)
        term = (field, _direction(direction, field))
        return replace(self, ordering=self.ordering + (term,))

    def to_select(self) -> Select[Any]:
        stmt = select(self.handle.model)
        if self.options:
            stmt = stmt.options(*self.options)
        if self.criteria:
            stmt = stmt.where(*self.criteria)
        order_clauses = [
            asc(self.handle.sort_column(field))
            if direction is SortDirection.ASC
            else desc(self.handle.sort_column(field))
            for field, direction in self.ordering
        ]
        if order_clauses:
            stmt = stmt.order_by(*order_clauses)
        return stmt

    def to_count(self) -> Select[Any]:
        """Count over the full filtered set; ordering and loads are ignored."""
        stmt = select(func.count()).select_from(self.handle.model)
        if self.criteria:
            stmt = stmt.where(*self.criteria)
        return stmt


class QueryComposer:
    """Build a :class:`QuerySpec` from loads, conditions and ordering."""

    def __init__(
        self,
        router: ConditionRouter | None = None,
        settings: ScopeSettings | None = None,
    ) -> None:
        self._settings = settings or (router.settings if router else DEFAULT_SETTINGS)
        self._router = router or ConditionRouter(settings=self._settings)

    @property
    def settings(self) -> ScopeSettings:
        return self._settings

    @property
    def router(self) -> ConditionRouter:
        return self._router

    def compose(
        self,
        target: type[Any] | ModelHandle | QuerySpec,
        conditions: Mapping[str, Any] | ConditionSet | None = None,
        eager_loads: Sequence[str] = (),
        order_by: OrderSpec | None = None,
    ) -> QuerySpec:
        """
        Compose a query.

        Args:
            target: A model, a model handle, or a base ``QuerySpec`` to
                extend (e.g. one already scoped to a tenant).
            conditions: Filter payload or decoded ``ConditionSet``.
            eager_loads: Relationship paths to eager-load.
            order_by: Order spec; ``None`` means the configured default.

        Returns:
            A new ``QuerySpec``.
        """
        query = target if isinstance(target, QuerySpec) else QuerySpec.for_model(target)
        paths = relation_paths(eager_loads)
        if paths:
            query = query.with_(*paths)
        query = self._router.apply(query, conditions)
        for field, direction in normalize_order(order_by, self._settings.default_order):
            query = query.order_by(field, direction.value)
        return query
