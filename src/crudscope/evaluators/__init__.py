"""
Clause evaluator implementations and default registry.

Usage::

    from crudscope.evaluators import DEFAULT_EVALUATORS

    expr = DEFAULT_EVALUATORS.apply(ConditionKind.LIKE, Book.title, "python")
"""

from __future__ import annotations

from .jsonb import JsonContains, JsonContainsEvaluator, json_contains
from .set import InEvaluator, InSetEvaluator
from .standard import COMPARATORS, EqualsEvaluator
from .strategy import ClauseEvaluator, ClauseEvaluatorRegistry
from .string import LikeEvaluator
from .temporal import BetweenEvaluator, day_bounds


def build_default_registry() -> ClauseEvaluatorRegistry:
    """Create a registry with one evaluator per condition kind."""
    registry = ClauseEvaluatorRegistry()
    registry.register_all(
        EqualsEvaluator(),
        InEvaluator(),
        LikeEvaluator(),
        BetweenEvaluator(),
        JsonContainsEvaluator(),
        InSetEvaluator(),
    )
    return registry


DEFAULT_EVALUATORS: ClauseEvaluatorRegistry = build_default_registry()

__all__ = [
    "COMPARATORS",
    "DEFAULT_EVALUATORS",
    "BetweenEvaluator",
    "ClauseEvaluator",
    "ClauseEvaluatorRegistry",
    "EqualsEvaluator",
    "InEvaluator",
    "InSetEvaluator",
    "JsonContains",
    "JsonContainsEvaluator",
    "LikeEvaluator",
    "build_default_registry",
    "day_bounds",
    "json_contains",
]
