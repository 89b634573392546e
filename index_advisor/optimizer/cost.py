"""Cost model for choosing between nested-loop and hash joins."""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from ..config.config import CostConfig
from .selectivity import clamp_rows

logger = logging.getLogger(__name__)


class JoinStrategy(Enum):
    """Physical join strategies the model compares."""

    NESTED_LOOP = "NestedLoopJoin"
    HASH = "HashJoin"


@dataclass(frozen=True)
class JoinComparison:
    """Both candidate costs and the strategy that wins."""

    recommended: JoinStrategy
    nested_loop_cost: float
    hash_join_cost: float
    hash_build_spilled: bool = False

    def cost_of(self, strategy: JoinStrategy) -> float:
        if strategy == JoinStrategy.NESTED_LOOP:
            return self.nested_loop_cost
        return self.hash_join_cost

    @property
    def margin(self) -> float:
        """Absolute cost difference between the two strategies."""
        return abs(self.nested_loop_cost - self.hash_join_cost)

    def to_dict(self) -> dict:
        return {
            "recommended": self.recommended.value,
            "nested_loop_cost": self.nested_loop_cost,
            "hash_join_cost": self.hash_join_cost,
            "hash_build_spilled": self.hash_build_spilled,
            "margin": self.margin,
        }


class JoinCostModel:
    """Cost model for estimating two-input join cost."""

    def __init__(self, config: CostConfig):
        """Initialize cost model.

        Args:
            config: Cost model configuration
        """
        self.config = config

    def index_lookup_touches(self, rows: float) -> float:
        """Rows touched by one B-tree descent into ``rows`` rows."""
        return max(1.0, math.log2(clamp_rows(rows) + 1.0))

    def nested_loop_cost(
        self, outer_rows: float, inner_rows: float, inner_has_supporting_index: bool
    ) -> float:
        """Cost of probing the inner side once per outer row."""
        outer_rows = clamp_rows(outer_rows)
        inner_rows = clamp_rows(inner_rows)
        if inner_has_supporting_index:
            per_lookup = self.config.indexed_lookup_unit * self.index_lookup_touches(inner_rows)
        else:
            per_lookup = self.config.scan_unit * inner_rows
        return outer_rows * per_lookup

    def hash_build_spills(self, outer_rows: float, inner_rows: float) -> bool:
        build_rows = min(clamp_rows(outer_rows), clamp_rows(inner_rows))
        return build_rows > self.config.spill_threshold_rows

    def hash_join_cost(self, outer_rows: float, inner_rows: float) -> float:
        """Cost of building on the smaller input and probing with the larger."""
        outer_rows = clamp_rows(outer_rows)
        inner_rows = clamp_rows(inner_rows)
        build_rows = min(outer_rows, inner_rows)
        probe_rows = max(outer_rows, inner_rows)

        build_cost = self.config.hash_build_unit * build_rows
        if self.hash_build_spills(outer_rows, inner_rows):
            build_cost *= self.config.spill_penalty_multiplier
        probe_cost = self.config.hash_probe_unit * probe_rows
        return build_cost + probe_cost

    def compare_joins(
        self, outer_rows: float, inner_rows: float, inner_has_supporting_index: bool
    ) -> JoinComparison:
        """Compare nested-loop and hash join for two row sets.

        Args:
            outer_rows: Estimated rows of the outer (driving) input
            inner_rows: Estimated rows of the inner input
            inner_has_supporting_index: Whether the inner join key is indexed

        Returns:
            Comparison carrying both costs and the cheaper strategy. Exact
            ties go to nested loop when the inner side is indexed.
        """
        nested = self.nested_loop_cost(outer_rows, inner_rows, inner_has_supporting_index)
        hashed = self.hash_join_cost(outer_rows, inner_rows)

        if nested < hashed:
            recommended = JoinStrategy.NESTED_LOOP
        elif hashed < nested:
            recommended = JoinStrategy.HASH
        elif inner_has_supporting_index:
            recommended = JoinStrategy.NESTED_LOOP
        else:
            recommended = JoinStrategy.HASH

        logger.debug(
            "join outer=%.2f inner=%.2f indexed=%s nested=%.4f hash=%.4f -> %s",
            clamp_rows(outer_rows),
            clamp_rows(inner_rows),
            inner_has_supporting_index,
            nested,
            hashed,
            recommended.value,
        )
        return JoinComparison(
            recommended=recommended,
            nested_loop_cost=nested,
            hash_join_cost=hashed,
            hash_build_spilled=self.hash_build_spills(outer_rows, inner_rows),
        )

    def __repr__(self) -> str:
        return "JoinCostModel()"
