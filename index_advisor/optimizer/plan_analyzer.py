"""Bottom-up cost and cardinality annotation of explain-plan trees."""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..catalog.schema import TableStatistics
from ..config.config import CostConfig
from ..plan.physical import (
    Filter,
    HashJoin,
    IndexAccess,
    MalformedPlanTree,
    NestedLoopJoin,
    PlanNode,
    PlanNodeKind,
    Sort,
    TableScan,
)
from .cost import JoinCostModel, JoinStrategy
from .selectivity import SelectivityEstimator, clamp_fraction, clamp_rows

logger = logging.getLogger(__name__)


class FlagKind(Enum):
    """Inefficiencies the analyzer reports."""

    INDEX_NOT_FULLY_COVERING = "index not fully covering"
    SORT_NOT_ELIMINATED = "sort not eliminated by index"
    JOIN_STRATEGY_MISMATCH = "join strategy mismatch"


@dataclass(frozen=True)
class PlanFlag:
    """An inefficiency found at one node."""

    kind: FlagKind
    node_path: str
    message: str
    costs: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "node": self.node_path,
            "message": self.message,
            "costs": dict(sorted(self.costs.items())),
        }


@dataclass(frozen=True)
class AnnotatedNode:
    """A plan node with its estimated output rows and cumulative cost."""

    kind: PlanNodeKind
    path: str
    row_estimate: float
    cost: float
    own_cost: float
    children: Tuple["AnnotatedNode", ...] = ()
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "path": self.path,
            "row_estimate": self.row_estimate,
            "cost": self.cost,
            "own_cost": self.own_cost,
            "details": dict(sorted(self.details.items())),
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class AnnotatedPlan:
    """Annotated mirror of a plan tree plus the flags raised on it."""

    root: AnnotatedNode
    flags: Tuple[PlanFlag, ...] = ()

    @property
    def total_cost(self) -> float:
        return self.root.cost

    def find(self, path: str) -> Optional[AnnotatedNode]:
        """Look up an annotated node by path ("0", "0.1", ...)."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.path == path:
                return node
            stack.extend(node.children)
        return None

    def flags_of(self, kind: FlagKind) -> List[PlanFlag]:
        return [flag for flag in self.flags if flag.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_cost": self.total_cost,
            "root": self.root.to_dict(),
            "flags": [flag.to_dict() for flag in self.flags],
        }


def _is_row_count(value: float) -> bool:
    return math.isfinite(value) and value >= 0


def _source_table(node: Optional[PlanNode]) -> Optional[str]:
    """Table a single-input chain reads from; None above a join."""
    while isinstance(node, (Filter, Sort)):
        node = node.input
    if isinstance(node, (TableScan, IndexAccess)):
        return node.table_name
    return None


class PlanTreeAnalyzer:
    """Propagates row and cost estimates through a plan tree."""

    def __init__(
        self,
        config: CostConfig,
        statistics: Optional[TableStatistics] = None,
    ):
        """Initialize analyzer.

        Args:
            config: Cost model configuration
            statistics: Optional statistics used to estimate residual filters
        """
        self.config = config
        self.statistics = statistics
        self.estimator = SelectivityEstimator(config)
        self.join_model = JoinCostModel(config)
        self._annotators: Dict[type, Callable] = {
            TableScan: self._annotate_table_scan,
            IndexAccess: self._annotate_index_access,
            Filter: self._annotate_filter,
            Sort: self._annotate_sort,
            NestedLoopJoin: self._annotate_join,
            HashJoin: self._annotate_join,
        }

    def analyze(self, tree: PlanNode) -> AnnotatedPlan:
        """Annotate a plan tree bottom-up and collect inefficiency flags.

        Args:
            tree: Root of the plan tree

        Returns:
            Annotated plan; ``total_cost`` is the root's cumulative cost

        Raises:
            MalformedPlanTree: If a join lacks an input, a unary node has no
                input, or a leaf declares negative or non-finite rows
        """
        flags: List[PlanFlag] = []
        root = self._annotate(tree, "0", flags)
        logger.debug("Analyzed plan: cost=%.4f rows=%.2f flags=%d", root.cost, root.row_estimate, len(flags))
        return AnnotatedPlan(root=root, flags=tuple(flags))

    def _annotate(self, node: PlanNode, path: str, flags: List[PlanFlag]) -> AnnotatedNode:
        annotator = self._annotators.get(type(node))
        if annotator is None:
            raise MalformedPlanTree(f"Unsupported plan node: {type(node).__name__}")
        return annotator(node, path, flags)

    def _annotate_children(
        self, node: PlanNode, path: str, flags: List[PlanFlag]
    ) -> Tuple[AnnotatedNode, ...]:
        annotated = []
        for index, child in enumerate(node.children()):
            annotated.append(self._annotate(child, f"{path}.{index}", flags))
        return tuple(annotated)

    def _leaf_rows(self, node, path: str) -> float:
        if not _is_row_count(node.total_rows):
            raise MalformedPlanTree(
                f"{node.kind.value} at {path} declares invalid total rows {node.total_rows}"
            )
        if node.row_estimate is not None:
            if not _is_row_count(node.row_estimate):
                raise MalformedPlanTree(
                    f"{node.kind.value} at {path} declares invalid row estimate {node.row_estimate}"
                )
            return float(node.row_estimate)
        fraction = clamp_fraction(node.predicate_selectivity)
        return clamp_rows(node.total_rows * fraction, node.total_rows)

    def _annotate_table_scan(
        self, node: TableScan, path: str, flags: List[PlanFlag]
    ) -> AnnotatedNode:
        rows = self._leaf_rows(node, path)
        cost = self.config.scan_unit * node.total_rows
        return AnnotatedNode(
            kind=node.kind,
            path=path,
            row_estimate=rows,
            cost=cost,
            own_cost=cost,
            details={"table": node.table_name},
        )

    def _annotate_index_access(
        self, node: IndexAccess, path: str, flags: List[PlanFlag]
    ) -> AnnotatedNode:
        rows = self._leaf_rows(node, path)
        touches = self.join_model.index_lookup_touches(node.total_rows) + rows
        cost = self.config.indexed_lookup_unit * touches
        return AnnotatedNode(
            kind=node.kind,
            path=path,
            row_estimate=rows,
            cost=cost,
            own_cost=cost,
            details={
                "table": node.table_name,
                "key_sequence": list(node.key_sequence),
            },
        )

    def _unary_input(self, node, path: str) -> PlanNode:
        if node.input is None:
            raise MalformedPlanTree(f"{node.kind.value} at {path} has no input")
        return node.input

    def _annotate_filter(
        self, node: Filter, path: str, flags: List[PlanFlag]
    ) -> AnnotatedNode:
        self._unary_input(node, path)
        (child,) = self._annotate_children(node, path, flags)

        has_residual = bool(node.residual_predicates)
        fraction = self._filter_selectivity(node)
        rows = clamp_rows(child.row_estimate * fraction, child.row_estimate)
        own_cost = 0.0
        if has_residual:
            own_cost = self.config.filter_unit * child.row_estimate

        if has_residual and child.kind == PlanNodeKind.INDEX_ACCESS:
            flags.append(
                PlanFlag(
                    kind=FlagKind.INDEX_NOT_FULLY_COVERING,
                    node_path=child.path,
                    message=(
                        f"index access at {child.path} returns {child.row_estimate:.2f} rows "
                        f"that a filter reduces to {rows:.2f}"
                    ),
                    costs={"access_cost": child.own_cost, "filter_cost": own_cost},
                )
            )

        return AnnotatedNode(
            kind=node.kind,
            path=path,
            row_estimate=rows,
            cost=child.cost + own_cost,
            own_cost=own_cost,
            children=(child,),
            details={
                "residual_predicates": [str(p) for p in node.residual_predicates],
                "selectivity": fraction,
            },
        )

    def _filter_selectivity(self, node: Filter) -> float:
        if node.selectivity is not None:
            return clamp_fraction(node.selectivity)
        if not node.residual_predicates or self.statistics is None:
            return 1.0
        if _source_table(node.input) != self.statistics.table_name:
            return 1.0

        total = float(self.statistics.row_count)
        if total <= 0:
            return 0.0
        remaining = self.estimator.estimate_rows(node.residual_predicates, self.statistics)
        return clamp_fraction(remaining / total)

    def _annotate_sort(
        self, node: Sort, path: str, flags: List[PlanFlag]
    ) -> AnnotatedNode:
        source = self._unary_input(node, path)
        (child,) = self._annotate_children(node, path, flags)

        rows = child.row_estimate
        eliminated = self._input_is_ordered(source, node.sort_columns)
        own_cost = 0.0
        if not eliminated:
            own_cost = self._sort_cost(rows)
            flags.append(
                PlanFlag(
                    kind=FlagKind.SORT_NOT_ELIMINATED,
                    node_path=path,
                    message=(
                        f"sort on {list(node.sort_columns)} at {path} is not satisfied "
                        f"by the input order"
                    ),
                    costs={"sort_cost": own_cost},
                )
            )

        return AnnotatedNode(
            kind=node.kind,
            path=path,
            row_estimate=rows,
            cost=child.cost + own_cost,
            own_cost=own_cost,
            children=(child,),
            details={
                "sort_columns": list(node.sort_columns),
                "eliminated": eliminated,
            },
        )

    def _sort_cost(self, rows: float) -> float:
        if rows <= 1:
            return 0.0
        return self.config.sort_unit * rows * math.log2(rows)

    def _input_is_ordered(self, source: PlanNode, sort_columns: Tuple[str, ...]) -> bool:
        """Check whether rows already arrive in ``sort_columns`` order.

        Filters keep their input order; only index access and sorts provide one.
        """
        if not sort_columns:
            return True
        while isinstance(source, Filter) and source.input is not None:
            source = source.input

        if isinstance(source, Sort):
            return tuple(source.sort_columns[: len(sort_columns)]) == tuple(sort_columns)
        if isinstance(source, IndexAccess):
            return self._key_order_satisfies(source, sort_columns)
        return False

    def _key_order_satisfies(self, access: IndexAccess, sort_columns: Tuple[str, ...]) -> bool:
        """Match sort columns against a leftmost prefix of the index key.

        Key columns pinned by an equality access predicate are constant and may
        be skipped; a range-bound key column is not, so it breaks the match.
        """
        keys = access.key_sequence
        pinned = access.equality_columns()
        position = 0
        for column in sort_columns:
            if column in pinned:
                continue
            while position < len(keys) and keys[position] != column and keys[position] in pinned:
                position += 1
            if position >= len(keys) or keys[position] != column:
                return False
            position += 1
        return True

    def _annotate_join(
        self, node, path: str, flags: List[PlanFlag]
    ) -> AnnotatedNode:
        if node.left is None or node.right is None:
            raise MalformedPlanTree(
                f"{node.kind.value} at {path} has {len(node.children())} children, expected 2"
            )
        outer, inner = self._annotate_children(node, path, flags)

        comparison = self.join_model.compare_joins(
            outer.row_estimate, inner.row_estimate, node.inner_has_supporting_index
        )
        strategy = JoinStrategy.NESTED_LOOP
        if isinstance(node, HashJoin):
            strategy = JoinStrategy.HASH
        own_cost = comparison.cost_of(strategy)

        if comparison.recommended != strategy:
            flags.append(
                PlanFlag(
                    kind=FlagKind.JOIN_STRATEGY_MISMATCH,
                    node_path=path,
                    message=(
                        f"{strategy.value} at {path} costs {own_cost:.2f}; "
                        f"{comparison.recommended.value} would cost "
                        f"{comparison.cost_of(comparison.recommended):.2f}"
                    ),
                    costs={
                        "nested_loop_cost": comparison.nested_loop_cost,
                        "hash_join_cost": comparison.hash_join_cost,
                    },
                )
            )

        rows = self._join_rows(node, outer.row_estimate, inner.row_estimate)
        return AnnotatedNode(
            kind=node.kind,
            path=path,
            row_estimate=rows,
            cost=outer.cost + inner.cost + own_cost,
            own_cost=own_cost,
            children=(outer, inner),
            details={
                "inner_has_supporting_index": node.inner_has_supporting_index,
                "recommended": comparison.recommended.value,
            },
        )

    def _join_rows(self, node, outer_rows: float, inner_rows: float) -> float:
        if node.join_selectivity is None:
            return max(outer_rows, inner_rows)
        fraction = clamp_fraction(node.join_selectivity)
        return clamp_rows(outer_rows * inner_rows * fraction)

    def __repr__(self) -> str:
        return "PlanTreeAnalyzer()"
