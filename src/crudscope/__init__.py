"""Condition-to-query translation, pagination and CRUD on SQLAlchemy."""

from __future__ import annotations

from .batch import BatchLoader
from .conditions import (
    CONDITION_ORDER,
    RESERVED_KEYS,
    Condition,
    ConditionKind,
    ConditionSet,
    decode_conditions,
)
from .evaluators import (
    DEFAULT_EVALUATORS,
    ClauseEvaluator,
    ClauseEvaluatorRegistry,
    build_default_registry,
    day_bounds,
)
from .exceptions import (
    ConditionError,
    CrudScopeError,
    FieldNotAllowedError,
    FormValidationError,
    MalformedConditionError,
    ModelNotRegisteredError,
    NotFoundError,
    RepositoryError,
    WriteFailedError,
    create_exception,
)
from .pagination import Page, PageRequest, Paginator, parse_page_request
from .query import QueryComposer, QuerySpec, SortDirection, normalize_order
from .registry import ModelHandle, ModelRegistry
from .repository import CrudRepository
from .router import ConditionRouter
from .settings import DEFAULT_SETTINGS, ScopeSettings
from .validation import PydanticFormValidator

__all__ = [
    # Conditions
    "CONDITION_ORDER",
    "RESERVED_KEYS",
    "Condition",
    "ConditionKind",
    "ConditionSet",
    "decode_conditions",
    # Evaluators
    "DEFAULT_EVALUATORS",
    "ClauseEvaluator",
    "ClauseEvaluatorRegistry",
    "build_default_registry",
    "day_bounds",
    # Composition
    "ConditionRouter",
    "QueryComposer",
    "QuerySpec",
    "SortDirection",
    "normalize_order",
    # Pagination / batch
    "Page",
    "PageRequest",
    "Paginator",
    "parse_page_request",
    "BatchLoader",
    # Models / repository
    "ModelHandle",
    "ModelRegistry",
    "CrudRepository",
    "PydanticFormValidator",
    # Settings
    "DEFAULT_SETTINGS",
    "ScopeSettings",
    # Exceptions
    "ConditionError",
    "CrudScopeError",
    "FieldNotAllowedError",
    "FormValidationError",
    "MalformedConditionError",
    "ModelNotRegisteredError",
    "NotFoundError",
    "RepositoryError",
    "WriteFailedError",
    "create_exception",
]
