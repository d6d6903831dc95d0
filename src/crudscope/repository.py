"""
CrudRepository: CRUD verbs over one model on a synchronous session.

The model is given explicitly (constructor argument or ``model`` class
attribute) or resolved from a :class:`~crudscope.registry.ModelRegistry`
by logical name::

    registry = ModelRegistry()
    registry.register("books", Book, filterable={"title", "status"})

    repo = CrudRepository(session, registry=registry, entity="books")
    page = repo.paginate({"whereLike": {"title": "python"}, "page_size": 5})

The repository flushes so that failures surface immediately, but never
commits or rolls back; the caller owns the transaction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from .batch import BatchLoader
from .exceptions import (
    DEFAULT_CODE,
    FormValidationError,
    RepositoryError,
    create_exception,
)
from .pagination import Paginator
from .query import QueryComposer, QuerySpec, relation_paths
from .registry import ModelHandle
from .settings import DEFAULT_SETTINGS
from .validation import PydanticFormValidator

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from pydantic import BaseModel
    from sqlalchemy.orm import Session

    from .conditions import ConditionSet
    from .pagination import Page
    from .query import OrderSpec
    from .registry import ModelRegistry
    from .settings import ScopeSettings

logger = logging.getLogger(__name__)

M = TypeVar("M")


class CrudRepository(Generic[M]):
    """
    Generic repository exposing ``store``, ``show``, ``destroy``,
    ``all``, ``paginate``, the validated create/update variants and
    ``batch_insert``.

    Subclasses may set ``model``, ``entity`` and ``form_schema`` as class
    attributes, and override :meth:`validate_form` or
    :meth:`create_exception`.
    """

    model: ClassVar[type[Any] | None] = None
    entity: ClassVar[str | None] = None
    form_schema: ClassVar[type[BaseModel] | None] = None

    def __init__(
        self,
        session: Session,
        model: type[M] | None = None,
        *,
        registry: ModelRegistry | None = None,
        entity: str | None = None,
        settings: ScopeSettings = DEFAULT_SETTINGS,
        composer: QueryComposer | None = None,
        paginator: Paginator | None = None,
        batch_loader: BatchLoader | None = None,
    ) -> None:
        self.session = session
        self.settings = settings
        self.handle = self._resolve_handle(model, registry, entity)
        self._composer = composer or QueryComposer(settings=settings)
        self._paginator = paginator or Paginator(self._composer, settings)
        self._batch_loader = batch_loader or BatchLoader(settings.default_chunk_size)

    def _resolve_handle(
        self,
        model: type[Any] | None,
        registry: ModelRegistry | None,
        entity: str | None,
    ) -> ModelHandle:
        model = model or type(self).model
        entity = entity or type(self).entity
        if registry is not None and entity is not None:
            # The registered handle carries the allow-lists; it wins.
            handle = registry.resolve(entity)
            if model is not None and handle.model is not model:
                raise ValueError(
                    f"{entity!r} is registered for {handle.model.__name__}, "
                    f"not {model.__name__}"
                )
            return handle
        if model is not None:
            return ModelHandle.for_model(model, name=entity)
        raise ValueError(
            f"{type(self).__name__} needs a model, or a registry and an entity name"
        )

    # -- failures -----------------------------------------------------------

    def create_exception(self, message: str, code: int = DEFAULT_CODE) -> RepositoryError:
        """Build the failure raised by lookups and writes."""
        return create_exception(message, code)

    def _not_found(self, message: str | None) -> RepositoryError:
        return self.create_exception(
            message or self.settings.not_found_message, self.settings.not_found_code
        )

    def _write_failed(self, message: str | None, default: str) -> RepositoryError:
        return self.create_exception(message or default, self.settings.write_failed_code)

    # -- query helpers ------------------------------------------------------

    def query(self) -> QuerySpec:
        """Start a new query on the repository's model."""
        return QuerySpec(handle=self.handle)

    # -- reads --------------------------------------------------------------

    def find(
        self,
        entity_id: Any,
        message: str | None = None,
        with_: Sequence[str] = (),
        query: QuerySpec | None = None,
    ) -> M:
        """Return the row with primary key *entity_id* or raise ``NotFoundError``."""
        spec = (query or self.query()).where(self.handle.primary_key == entity_id)
        paths = relation_paths(with_)
        if paths:
            spec = spec.with_(*paths)
        result = self.session.scalars(spec.to_select().limit(1)).first()
        if result is None:
            raise self._not_found(message)
        return result  # type: ignore[no-any-return]

    def find_where(
        self,
        conditions: Mapping[str, Any],
        message: str | None = None,
        with_: Sequence[str] = (),
        query: QuerySpec | None = None,
    ) -> M:
        """Return the first row equal on every key of *conditions*.

        A ``None`` value matches ``IS NULL``.
        """
        spec = query or self.query()
        for field, value in conditions.items():
            spec = spec.where(self.handle.column(field) == value)
        paths = relation_paths(with_)
        if paths:
            spec = spec.with_(*paths)
        result = self.session.scalars(spec.to_select().limit(1)).first()
        if result is None:
            raise self._not_found(message)
        return result  # type: ignore[no-any-return]

    def show(
        self, entity_id: Any, message: str | None = None, with_: Sequence[str] = ()
    ) -> M:
        return self.find(entity_id, message, with_)

    def all(
        self,
        conditions: Mapping[str, Any] | ConditionSet | None = None,
        with_: Sequence[str] = (),
        order_by: OrderSpec | None = None,
        query: QuerySpec | None = None,
    ) -> list[M]:
        spec = self._composer.compose(query or self.handle, conditions, with_, order_by)
        return list(self.session.scalars(spec.to_select()).all())

    def paginate(
        self,
        conditions: Mapping[str, Any] | ConditionSet | None = None,
        with_: Sequence[str] = (),
        order_by: OrderSpec | None = None,
        query: QuerySpec | None = None,
    ) -> Page[M]:
        return self._paginator.paginate(
            self.session, query or self.handle, conditions, with_, order_by
        )

    # -- writes -------------------------------------------------------------

    def create(self, data: Mapping[str, Any], message: str | None = None) -> M:
        values = self.handle.writable(data)
        instance = self.handle.model(**values)
        try:
            self.session.add(instance)
            self.session.flush()
        except SQLAlchemyError as exc:
            logger.warning("Create on %s failed: %s", self.handle.name, exc)
            raise self._write_failed(
                message, self.settings.create_failed_message
            ) from exc
        return instance  # type: ignore[no-any-return]

    def update(
        self,
        entity_id: Any,
        data: Mapping[str, Any],
        message: str | None = None,
        query: QuerySpec | None = None,
    ) -> M:
        instance = self.find(entity_id, message, query=query)
        values = self.handle.writable(data)
        try:
            for key, value in values.items():
                setattr(instance, key, value)
            self.session.flush()
        except SQLAlchemyError as exc:
            logger.warning(
                "Update of %s %r failed: %s", self.handle.name, entity_id, exc
            )
            raise self._write_failed(
                message, self.settings.update_failed_message
            ) from exc
        return instance

    def delete(
        self,
        entity_id: Any,
        message: str | None = None,
        query: QuerySpec | None = None,
    ) -> bool:
        instance = self.find(entity_id, message, query=query)
        try:
            self.session.delete(instance)
            self.session.flush()
        except SQLAlchemyError as exc:
            logger.warning(
                "Delete of %s %r failed: %s", self.handle.name, entity_id, exc
            )
            raise self._write_failed(
                message, self.settings.delete_failed_message
            ) from exc
        return True

    def store(self, data: Mapping[str, Any], message: str | None = None) -> M:
        return self.create(data, message)

    def destroy(self, entity_id: Any, message: str | None = None) -> bool:
        return self.delete(entity_id, message)

    def batch_insert(
        self, items: Sequence[Mapping[str, Any]], chunk_size: int | None = None
    ) -> bool:
        """Insert *items* in chunks; ``False`` when there is nothing to insert."""
        for row in items:
            self.handle.writable(row)
        return self._batch_loader.insert(
            self.session, self.handle.model, items, chunk_size
        )

    # -- validated writes ---------------------------------------------------

    def validate_form(self, data: Mapping[str, Any], entity_id: Any | None = None) -> None:
        """Validation hook run before validated writes.

        Does nothing unless ``form_schema`` is set; override for
        domain-specific rules.
        """
        if self.form_schema is None:
            return
        errors = PydanticFormValidator(self.form_schema).validate(data, entity_id)
        if errors:
            raise FormValidationError(errors)

    def validate_store(self, data: Mapping[str, Any], message: str | None = None) -> M:
        self.validate_form(data)
        return self.create(data, message)

    def validate_update(
        self, entity_id: Any, data: Mapping[str, Any], message: str | None = None
    ) -> M:
        self.validate_form(data, entity_id)
        return self.update(entity_id, data, message)
