"""Page-number pagination over composed queries."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, NamedTuple, TypeVar

from .conditions import ConditionSet
from .query import QueryComposer
from .settings import DEFAULT_SETTINGS

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy.orm import Session

    from .query import OrderSpec, QuerySpec
    from .registry import ModelHandle
    from .settings import ScopeSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PageRequest(NamedTuple):
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def _positive_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        return max(1, int(raw))
    except (TypeError, ValueError):
        return default


def parse_page_request(
    conditions: Mapping[str, Any] | None,
    settings: ScopeSettings = DEFAULT_SETTINGS,
) -> PageRequest:
    """
    Read page number and size from a filter payload.

    The payload is left untouched.  Missing or unparseable values fall
    back to page 1 and ``settings.default_page_size``; values below 1
    become 1, and ``settings.max_page_size`` caps the size when set.
    """
    source: Mapping[str, Any] = conditions if conditions is not None else {}
    page = _positive_int(source.get(settings.page_key), 1)
    page_size = _positive_int(
        source.get(settings.page_size_key), settings.default_page_size
    )
    if settings.max_page_size is not None:
        page_size = min(page_size, settings.max_page_size)
    return PageRequest(page=page, page_size=page_size)


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    One page of results.

    ``total`` counts the full filtered set, not just ``items``.
    """

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = DEFAULT_SETTINGS.default_page_size

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))

    @property
    def has_more(self) -> bool:
        return self.page < self.last_page

    def __len__(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": list(self.items),
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "last_page": self.last_page,
        }


class Paginator:
    """Compose a query from a payload and return one :class:`Page` of it."""

    def __init__(
        self,
        composer: QueryComposer | None = None,
        settings: ScopeSettings | None = None,
    ) -> None:
        self._settings = settings or (
            composer.settings if composer else DEFAULT_SETTINGS
        )
        self._composer = composer or QueryComposer(settings=self._settings)

    def paginate(
        self,
        session: Session,
        target: type[Any] | ModelHandle | QuerySpec,
        conditions: Mapping[str, Any] | ConditionSet | None = None,
        eager_loads: Sequence[str] = (),
        order_by: OrderSpec | None = None,
    ) -> Page[Any]:
        # page/page_size stay in the payload; the router skips them.
        payload = None if isinstance(conditions, ConditionSet) else conditions
        request = parse_page_request(payload, self._settings)
        query = self._composer.compose(target, conditions, eager_loads, order_by)
        return self.fetch(session, query, request)

    def fetch(self, session: Session, query: QuerySpec, request: PageRequest) -> Page[Any]:
        """Execute an already composed *query* for one page."""
        total = session.scalar(query.to_count()) or 0
        stmt = query.to_select().limit(request.page_size).offset(request.offset)
        items = list(session.scalars(stmt).all())
        logger.debug(
            "Fetched page %d (%d/%d rows) of %s",
            request.page,
            len(items),
            total,
            query.handle.name,
        )
        return Page(
            items=items, total=total, page=request.page, page_size=request.page_size
        )

