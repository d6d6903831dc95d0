"""
Model registry and per-resource allow-lists.

Models are resolved explicitly: callers register a SQLAlchemy mapped
class under a logical name and get back a :class:`ModelHandle`.  The
handle owns the filterable, sortable and loadable identifiers of the
resource; every field name coming from a payload is checked against it
before a column object is produced, so no caller-supplied identifier
ever reaches SQL text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect
from sqlalchemy.orm import selectinload

from .exceptions import FieldNotAllowedError, ModelNotRegisteredError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from sqlalchemy.orm import InstrumentedAttribute
    from sqlalchemy.orm.strategy_options import _AbstractLoad

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelHandle:
    """
    Queryable handle for one mapped model.

    Attributes:
        name: Logical entity name.
        model: The SQLAlchemy mapped class.
        columns: All mapped column attribute keys.
        filterable: Keys allowed in filter payloads.
        sortable: Keys allowed in order specs.
        relationships: Relationship keys available for eager loading.
    """

    name: str
    model: type[Any]
    columns: frozenset[str]
    filterable: frozenset[str]
    sortable: frozenset[str]
    relationships: frozenset[str]

    @classmethod
    def for_model(
        cls,
        model: type[Any],
        *,
        name: str | None = None,
        filterable: Iterable[str] | None = None,
        sortable: Iterable[str] | None = None,
    ) -> ModelHandle:
        """Build a handle from the model's mapper.

        ``filterable`` and ``sortable`` default to every mapped column and
        must be subsets of them.
        """
        mapper = inspect(model)
        columns = frozenset(attr.key for attr in mapper.column_attrs)
        relationships = frozenset(mapper.relationships.keys())
        model_name = name or model.__name__

        allowed_filters = _subset(columns, filterable, model_name, "filterable")
        allowed_sorts = _subset(columns, sortable, model_name, "sortable")

        return cls(
            name=model_name,
            model=model,
            columns=columns,
            filterable=allowed_filters,
            sortable=allowed_sorts,
            relationships=relationships,
        )

    # -- column resolution ----------------------------------------------------

    def column(self, field: str) -> InstrumentedAttribute[Any]:
        """Return the column attribute for a filterable *field*."""
        if field not in self.filterable:
            raise FieldNotAllowedError(field, self.name, list(self.filterable))
        return getattr(self.model, field)  # type: ignore[no-any-return]

    def sort_column(self, field: str) -> InstrumentedAttribute[Any]:
        """Return the column attribute for a sortable *field*."""
        if field not in self.sortable:
            raise FieldNotAllowedError(
                field, self.name, list(self.sortable), purpose="sortable"
            )
        return getattr(self.model, field)  # type: ignore[no-any-return]

    @property
    def primary_key(self) -> InstrumentedAttribute[Any]:
        keys = inspect(self.model).primary_key
        if len(keys) != 1:
            raise ValueError(
                f"{self.name} must have exactly one primary key column, "
                f"found {len(keys)}"
            )
        attr = inspect(self.model).get_property_by_column(keys[0])
        return getattr(self.model, attr.key)  # type: ignore[no-any-return]

    def writable(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Return *data* as a dict, rejecting keys that are not columns."""
        for key in data:
            if key not in self.columns:
                raise FieldNotAllowedError(
                    key, self.name, list(self.columns), purpose="writable"
                )
        return dict(data)

    # -- eager loading --------------------------------------------------------

    def loader_option(self, path: str) -> _AbstractLoad:
        """
        Build a ``selectinload`` option for a relationship *path*.

        Dotted paths (``"author.publisher"``) chain through related models;
        every segment must be a relationship of the model it is read from.
        """
        segments = path.split(".")
        current = self.model
        current_name = self.name
        option: _AbstractLoad | None = None
        for segment in segments:
            mapper = inspect(current)
            if segment not in mapper.relationships:
                raise FieldNotAllowedError(
                    segment,
                    current_name,
                    list(mapper.relationships.keys()),
                    purpose="a relationship",
                )
            attr = getattr(current, segment)
            option = (
                selectinload(attr) if option is None else option.selectinload(attr)
            )
            current = mapper.relationships[segment].mapper.class_
            current_name = current.__name__
        if option is None:
            raise FieldNotAllowedError(
                path, self.name, list(self.relationships), purpose="a relationship"
            )
        return option


class ModelRegistry:
    """Injected mapping from logical entity name to :class:`ModelHandle`."""

    def __init__(self) -> None:
        self._handles: dict[str, ModelHandle] = {}

    def register(
        self,
        name: str,
        model: type[Any],
        *,
        filterable: Iterable[str] | None = None,
        sortable: Iterable[str] | None = None,
    ) -> ModelHandle:
        handle = ModelHandle.for_model(
            model, name=name, filterable=filterable, sortable=sortable
        )
        if name in self._handles:
            logger.warning("Replacing model registered as %r", name)
        self._handles[name] = handle
        return handle

    def unregister(self, name: str) -> None:
        self._handles.pop(name, None)

    def resolve(self, name: str) -> ModelHandle:
        handle = self._handles.get(name)
        if handle is None:
            raise ModelNotRegisteredError(name, list(self._handles))
        return handle

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    @property
    def names(self) -> list[str]:
        return sorted(self._handles)


def _subset(
    columns: frozenset[str],
    requested: Iterable[str] | None,
    model_name: str,
    purpose: str,
) -> frozenset[str]:
    if requested is None:
        return columns
    wanted = frozenset(requested)
    unknown = wanted - columns
    if unknown:
        raise FieldNotAllowedError(
            sorted(unknown)[0], model_name, list(columns), purpose=f"a column ({purpose})"
        )
    return wanted
