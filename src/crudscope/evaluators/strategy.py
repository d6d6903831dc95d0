"""
Evaluator interface and the kind-to-evaluator lookup table.

An evaluator owns exactly one :class:`~crudscope.conditions.ConditionKind`.
It receives a column that the model handle has already approved and the
decoded payload value, and answers with a predicate or with ``None`` when
the value asks for nothing (absent values, empty lists, unparseable
ranges).  The router never inspects values itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

    from ..conditions import ConditionKind


class ClauseEvaluator(ABC):
    """Turns one kind of condition into a WHERE predicate."""

    @property
    @abstractmethod
    def kind(self) -> ConditionKind: ...

    @abstractmethod
    def apply(self, column: Any, value: Any) -> ColumnElement[bool] | None:
        """
        Return the predicate for ``column`` matched against ``value``.

        ``column`` is always a mapped attribute taken from the allow-list,
        never a name.  ``None`` means the condition contributes nothing
        and the query is left as it was.
        """


class ClauseEvaluatorRegistry:
    """One evaluator per condition kind; registering a kind again replaces it."""

    def __init__(self) -> None:
        self._by_kind: dict[ConditionKind, ClauseEvaluator] = {}

    def register(self, evaluator: ClauseEvaluator) -> None:
        self._by_kind[evaluator.kind] = evaluator

    def register_all(self, *evaluators: ClauseEvaluator) -> None:
        for evaluator in evaluators:
            self.register(evaluator)

    def unregister(self, kind: ConditionKind) -> None:
        self._by_kind.pop(kind, None)

    def get(self, kind: ConditionKind) -> ClauseEvaluator | None:
        return self._by_kind.get(kind)

    def has(self, kind: ConditionKind) -> bool:
        return kind in self._by_kind

    @property
    def supported_kinds(self) -> set[ConditionKind]:
        return set(self._by_kind)

    def apply(
        self, kind: ConditionKind, column: Any, value: Any
    ) -> ColumnElement[bool] | None:
        """Dispatch to the evaluator for ``kind``.

        Raises:
            ValueError: Nothing is registered for ``kind``; a router built
                with a partial registry fails loudly instead of dropping
                the condition.
        """
        evaluator = self._by_kind.get(kind)
        if evaluator is None:
            raise ValueError(f"No evaluator registered for condition kind: {kind}")
        return evaluator.apply(column, value)
