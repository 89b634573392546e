"""Index advisor and plan cost estimator."""

from .classifier import classify, partition, ClassifiedPredicates
from .selectivity import SelectivityEstimator, clamp_fraction, clamp_rows
from .index_planner import (
    CompositeIndexPlanner,
    IndexKeySequence,
    IndexRecommendation,
)
from .cost import JoinCostModel, JoinComparison, JoinStrategy
from .plan_analyzer import (
    PlanTreeAnalyzer,
    AnnotatedPlan,
    AnnotatedNode,
    PlanFlag,
    FlagKind,
)

__all__ = [
    "classify",
    "partition",
    "ClassifiedPredicates",
    "SelectivityEstimator",
    "clamp_fraction",
    "clamp_rows",
    "CompositeIndexPlanner",
    "IndexKeySequence",
    "IndexRecommendation",
    "JoinCostModel",
    "JoinComparison",
    "JoinStrategy",
    "PlanTreeAnalyzer",
    "AnnotatedPlan",
    "AnnotatedNode",
    "PlanFlag",
    "FlagKind",
]
