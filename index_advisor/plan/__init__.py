"""Predicate and plan tree representations."""

from .predicates import (
    Predicate,
    PredicateKind,
    PredicateSet,
    InvalidPredicateSet,
)
from .physical import (
    PlanNode,
    PlanNodeKind,
    TableScan,
    IndexAccess,
    Filter,
    Sort,
    NestedLoopJoin,
    HashJoin,
    MalformedPlanTree,
)

__all__ = [
    # Predicates
    "Predicate",
    "PredicateKind",
    "PredicateSet",
    "InvalidPredicateSet",
    # Plan nodes
    "PlanNode",
    "PlanNodeKind",
    "TableScan",
    "IndexAccess",
    "Filter",
    "Sort",
    "NestedLoopJoin",
    "HashJoin",
    "MalformedPlanTree",
]
