"""
Condition routing: payload, decoded conditions, evaluators, query.

The router owns no state beyond its evaluator registry and settings, so
one instance can serve any number of independent queries.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .conditions import ConditionSet, decode_conditions
from .evaluators import DEFAULT_EVALUATORS
from .settings import DEFAULT_SETTINGS

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .evaluators import ClauseEvaluatorRegistry
    from .query import QuerySpec
    from .settings import ScopeSettings

logger = logging.getLogger(__name__)


class ConditionRouter:
    """Dispatch each decoded condition to the evaluator for its kind."""

    def __init__(
        self,
        registry: ClauseEvaluatorRegistry | None = None,
        settings: ScopeSettings = DEFAULT_SETTINGS,
    ) -> None:
        self._registry = registry or DEFAULT_EVALUATORS
        self._settings = settings

    @property
    def settings(self) -> ScopeSettings:
        return self._settings

    def decode(self, conditions: Mapping[str, Any] | ConditionSet | None) -> ConditionSet:
        """Decode a raw payload; an already decoded set passes through."""
        if isinstance(conditions, ConditionSet):
            return conditions
        return decode_conditions(
            conditions,
            exclude=self._settings.pagination_keys,
            strict=self._settings.strict_conditions,
        )

    def apply(
        self,
        query: QuerySpec,
        conditions: Mapping[str, Any] | ConditionSet | None,
    ) -> QuerySpec:
        """
        Extend *query* with one AND-ed predicate per effective condition.

        Fields are resolved through the query's model handle, so an
        identifier outside the allow-list raises
        :class:`~crudscope.exceptions.FieldNotAllowedError` before any SQL
        is built.
        """
        decoded = self.decode(conditions)
        applied = 0
        for condition in decoded:
            column = query.handle.column(condition.field)
            expr = self._registry.apply(condition.kind, column, condition.value)
            if expr is None:
                continue
            query = query.where(expr)
            applied += 1
        logger.debug(
            "Applied %d of %d conditions to %s", applied, len(decoded), query.handle.name
        )
        return query
