"""Predicate classification into Equality, Sort and Range groups."""

from dataclasses import dataclass, field
from typing import List, Tuple

from ..plan.predicates import Predicate, PredicateKind, PredicateSet

# (clause position, predicate)
Positioned = Tuple[int, Predicate]


def classify(predicate: Predicate) -> PredicateKind:
    """Return the kind a predicate plays in index design.

    Driven solely by the stored operator, so it never fails.
    """
    return predicate.kind


@dataclass(frozen=True)
class ClassifiedPredicates:
    """Predicates partitioned by kind, each group in clause order."""

    equality: Tuple[Positioned, ...] = field(default_factory=tuple)
    sort: Tuple[Positioned, ...] = field(default_factory=tuple)
    range: Tuple[Positioned, ...] = field(default_factory=tuple)


def partition(predicate_set: PredicateSet) -> ClassifiedPredicates:
    """Split a predicate set into equality, sort and range groups."""
    groups: dict = {
        PredicateKind.EQUALITY: [],
        PredicateKind.SORT_KEY: [],
        PredicateKind.RANGE: [],
    }
    position = 0
    for predicate in predicate_set:
        bucket: List[Positioned] = groups[classify(predicate)]
        bucket.append((position, predicate))
        position += 1

    return ClassifiedPredicates(
        equality=tuple(groups[PredicateKind.EQUALITY]),
        sort=tuple(groups[PredicateKind.SORT_KEY]),
        range=tuple(groups[PredicateKind.RANGE]),
    )
