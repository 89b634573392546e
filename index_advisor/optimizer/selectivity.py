"""Selectivity and row-count estimation for predicates."""

import logging
import math
from typing import Iterable, List

from ..catalog.schema import ColumnStatistics, TableStatistics
from ..config.config import CostConfig
from ..plan.predicates import Predicate, PredicateKind

logger = logging.getLogger(__name__)


def clamp_fraction(value: float) -> float:
    """Clamp a selectivity fraction to [0, 1]; NaN keeps every row."""
    if math.isnan(value):
        return 1.0
    return min(1.0, max(0.0, value))


def clamp_rows(value: float, upper: float = math.inf) -> float:
    """Clamp a row estimate to [0, upper]; NaN becomes 0."""
    if math.isnan(value):
        return 0.0
    return min(upper, max(0.0, value))


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class SelectivityEstimator:
    """Estimates how many rows survive predicates.

    Uses the uniform-distribution assumption within a column and the
    independence assumption across columns.
    """

    def __init__(self, config: CostConfig):
        """Initialize estimator.

        Args:
            config: Cost configuration (supplies the open-range default)
        """
        self.config = config

    def selectivity(self, predicate: Predicate, column: ColumnStatistics) -> float:
        """Estimate the fraction of rows a predicate retains.

        Args:
            predicate: Predicate to estimate
            column: Statistics of the predicate's column

        Returns:
            Estimated selectivity (0.0 to 1.0)
        """
        if predicate.kind == PredicateKind.EQUALITY:
            return self._equality_selectivity(column)
        if predicate.kind == PredicateKind.RANGE:
            return self._range_selectivity(predicate, column)

        # Ordering keeps every row
        return 1.0

    def _equality_selectivity(self, column: ColumnStatistics) -> float:
        if column.num_distinct == 0:
            return 0.0
        return clamp_fraction(1.0 / column.num_distinct)

    def _range_selectivity(self, predicate: Predicate, column: ColumnStatistics) -> float:
        default = clamp_fraction(self.config.default_open_range_fraction)
        if not predicate.is_bounded():
            return default
        if not (_is_number(predicate.low) and _is_number(predicate.high)):
            return default
        if not column.has_span():
            return default

        low = float(predicate.low)
        high = float(predicate.high)
        col_min = float(column.min_value)
        col_max = float(column.max_value)
        span = col_max - col_min

        if span <= 0:
            if low <= col_min <= high:
                return 1.0
            return 0.0

        overlap = min(high, col_max) - max(low, col_min)
        return clamp_fraction(overlap / span)

    def estimate(self, predicate: Predicate, column: ColumnStatistics) -> float:
        """Estimate rows of the column's table that satisfy one predicate."""
        total = float(column.row_count)
        fraction = self.selectivity(predicate, column)
        return clamp_rows(total * fraction, total)

    def estimate_chain(
        self, predicates: Iterable[Predicate], statistics: TableStatistics
    ) -> List[float]:
        """Estimate surviving rows after each predicate in sequence.

        Args:
            predicates: Predicates in application order
            statistics: Table statistics

        Returns:
            Running estimates, one per predicate

        Raises:
            UnknownColumn: If a predicate's column has no statistics
        """
        running = float(statistics.row_count)
        estimates: List[float] = []
        for predicate in predicates:
            column = statistics.get_column(predicate.column)
            fraction = self.selectivity(predicate, column)
            running = clamp_rows(running * fraction, running)
            logger.debug(
                "%s: selectivity=%.6f rows=%.2f", predicate, fraction, running
            )
            estimates.append(running)
        return estimates

    def estimate_rows(
        self, predicates: Iterable[Predicate], statistics: TableStatistics
    ) -> float:
        """Estimate rows surviving all predicates."""
        chain = self.estimate_chain(predicates, statistics)
        if not chain:
            return float(statistics.row_count)
        return chain[-1]

    def __repr__(self) -> str:
        return f"SelectivityEstimator(open_range={self.config.default_open_range_fraction})"
