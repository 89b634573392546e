"""Composite index key ordering using the Equality, Sort, Range rule.

Equality columns go first: they pin the search to one contiguous key range
and are only usable as a leftmost prefix. The sort column comes next so the
index order can satisfy ORDER BY. Range columns go last, because once a range
is applied the index order of every later column is lost.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from ..catalog.schema import TableStatistics
from ..plan.predicates import Predicate, PredicateSet
from .classifier import partition
from .selectivity import SelectivityEstimator

logger = logging.getLogger(__name__)

PLACEMENT_EQUALITY = "equality"
PLACEMENT_SORT = "sort"
PLACEMENT_RANGE = "range"


@dataclass(frozen=True)
class IndexKeySequence:
    """Ordered key columns of a composite index."""

    table_name: str
    columns: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "columns", tuple(self.columns))
        if len(set(self.columns)) != len(self.columns):
            raise ValueError(f"Duplicate columns in index key: {self.columns}")

    def is_empty(self) -> bool:
        return not self.columns

    def __iter__(self) -> Iterator[str]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def __repr__(self) -> str:
        return f"IndexKeySequence({self.table_name}, {list(self.columns)})"


@dataclass(frozen=True)
class IndexRecommendation:
    """A recommended index with the reason for each key placement."""

    key_sequence: IndexKeySequence
    placements: Dict[str, str] = field(default_factory=dict)
    estimated_rows: float = 0.0
    table_rows: float = 0.0

    @property
    def has_benefit(self) -> bool:
        return not self.key_sequence.is_empty()

    @property
    def reasoning(self) -> str:
        if not self.has_benefit:
            return "no index benefit"
        parts = []
        for column in self.key_sequence:
            parts.append(f"{column} ({self.placements[column]})")
        return "key order: " + ", ".join(parts)

    def to_dict(self) -> dict:
        return {
            "table": self.key_sequence.table_name,
            "columns": list(self.key_sequence.columns),
            "placements": [
                {"column": column, "placement": self.placements[column]}
                for column in self.key_sequence
            ],
            "has_benefit": self.has_benefit,
            "estimated_rows": self.estimated_rows,
            "table_rows": self.table_rows,
            "reasoning": self.reasoning,
        }


class CompositeIndexPlanner:
    """Orders a predicate set into a recommended index key sequence."""

    def __init__(self, estimator: SelectivityEstimator):
        """Initialize planner.

        Args:
            estimator: Estimator used to rank equality predicates
        """
        self.estimator = estimator

    def plan_index(
        self, predicate_set: PredicateSet, statistics: TableStatistics
    ) -> IndexKeySequence:
        """Recommend an index key order for a predicate set.

        Args:
            predicate_set: Predicates over one table
            statistics: Statistics of that table

        Returns:
            Key sequence, empty when no predicate benefits from an index

        Raises:
            UnknownColumn: If a predicate column has no statistics
        """
        ordered = self._ordered_placements(predicate_set, statistics)
        columns = [column for column, _ in ordered]
        return IndexKeySequence(table_name=statistics.table_name, columns=tuple(columns))

    def recommend(
        self, predicate_set: PredicateSet, statistics: TableStatistics
    ) -> IndexRecommendation:
        """Recommend an index and explain each key placement."""
        ordered = self._ordered_placements(predicate_set, statistics)
        key_sequence = IndexKeySequence(
            table_name=statistics.table_name,
            columns=tuple(column for column, _ in ordered),
        )
        placements = dict(ordered)
        estimated_rows = self.estimator.estimate_rows(predicate_set.filters(), statistics)
        recommendation = IndexRecommendation(
            key_sequence=key_sequence,
            placements=placements,
            estimated_rows=estimated_rows,
            table_rows=float(statistics.row_count),
        )
        logger.debug("%s: %s", statistics.table_name, recommendation.reasoning)
        return recommendation

    def _ordered_placements(
        self, predicate_set: PredicateSet, statistics: TableStatistics
    ) -> List[Tuple[str, str]]:
        # Resolve every column up front so unknown columns fail regardless of kind
        for column in predicate_set.columns():
            statistics.get_column(column)

        groups = partition(predicate_set)
        placed: Set[str] = set()
        ordered: List[Tuple[str, str]] = []

        for predicate in self._rank_equalities(groups.equality, statistics):
            self._place(predicate.column, PLACEMENT_EQUALITY, placed, ordered)

        sort_key = self._single_sort_key(groups.sort)
        if sort_key is not None:
            self._place(sort_key.column, PLACEMENT_SORT, placed, ordered)

        for _, predicate in groups.range:
            self._place(predicate.column, PLACEMENT_RANGE, placed, ordered)

        return ordered

    def _rank_equalities(
        self,
        equalities: Tuple[Tuple[int, Predicate], ...],
        statistics: TableStatistics,
    ) -> List[Predicate]:
        """Most selective equality first; ties keep clause order."""
        ranked = []
        for position, predicate in equalities:
            column = statistics.get_column(predicate.column)
            rows = self.estimator.estimate(predicate, column)
            ranked.append((rows, position, predicate))
        ranked.sort(key=lambda item: (item[0], item[1]))
        return [predicate for _, _, predicate in ranked]

    def _single_sort_key(
        self, sorts: Tuple[Tuple[int, Predicate], ...]
    ) -> Optional[Predicate]:
        if not sorts:
            return None
        return sorts[0][1]

    def _place(
        self,
        column: str,
        placement: str,
        placed: Set[str],
        ordered: List[Tuple[str, str]],
    ) -> None:
        if column in placed:
            return
        placed.add(column)
        ordered.append((column, placement))

    def __repr__(self) -> str:
        return "CompositeIndexPlanner()"
