"""Physical plan nodes of an explain-plan tree."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Set, Tuple

from .predicates import Predicate, PredicateKind


class MalformedPlanTree(ValueError):
    """Raised when a plan tree cannot be analyzed."""

    pass


class PlanNodeKind(Enum):
    """Plan node kinds."""

    INDEX_ACCESS = "IndexAccess"
    TABLE_SCAN = "TableScan"
    FILTER = "Filter"
    NESTED_LOOP_JOIN = "NestedLoopJoin"
    HASH_JOIN = "HashJoin"
    SORT = "Sort"


class PlanNode(ABC):
    """Base class for plan nodes."""

    @abstractmethod
    def children(self) -> List["PlanNode"]:
        """Return child nodes."""
        pass

    @property
    @abstractmethod
    def kind(self) -> PlanNodeKind:
        pass

    def __repr__(self) -> str:
        return self.__class__.__name__


@dataclass(frozen=True)
class TableScan(PlanNode):
    """Read every row of a table."""

    table_name: str
    total_rows: float
    predicate_selectivity: float = 1.0
    row_estimate: Optional[float] = None  # Declared output rows, if known

    @property
    def kind(self) -> PlanNodeKind:
        return PlanNodeKind.TABLE_SCAN

    def children(self) -> List[PlanNode]:
        return []

    def __repr__(self) -> str:
        return f"TableScan({self.table_name})"


@dataclass(frozen=True)
class IndexAccess(PlanNode):
    """Navigate an index with access predicates.

    ``access_predicates`` are the predicates satisfied by index navigation;
    their equality columns are constant within the returned key range.
    """

    table_name: str
    total_rows: float
    predicate_selectivity: float = 1.0
    row_estimate: Optional[float] = None
    key_sequence: Tuple[str, ...] = ()
    access_predicates: Tuple[Predicate, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "key_sequence", tuple(self.key_sequence))
        object.__setattr__(self, "access_predicates", tuple(self.access_predicates))

    @property
    def kind(self) -> PlanNodeKind:
        return PlanNodeKind.INDEX_ACCESS

    def children(self) -> List[PlanNode]:
        return []

    def equality_columns(self) -> Set[str]:
        return {
            p.column for p in self.access_predicates if p.kind == PredicateKind.EQUALITY
        }

    def range_columns(self) -> Set[str]:
        return {
            p.column for p in self.access_predicates if p.kind == PredicateKind.RANGE
        }

    def __repr__(self) -> str:
        return f"IndexAccess({self.table_name}, keys={list(self.key_sequence)})"


@dataclass(frozen=True)
class Filter(PlanNode):
    """Evaluate residual predicates over fetched rows.

    ``selectivity`` overrides estimation of the residual predicates.
    """

    input: Optional[PlanNode]
    residual_predicates: Tuple[Predicate, ...] = ()
    selectivity: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "residual_predicates", tuple(self.residual_predicates))

    @property
    def kind(self) -> PlanNodeKind:
        return PlanNodeKind.FILTER

    def children(self) -> List[PlanNode]:
        if self.input is None:
            return []
        return [self.input]


@dataclass(frozen=True)
class Sort(PlanNode):
    """Order rows by one or more columns."""

    input: Optional[PlanNode]
    sort_columns: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "sort_columns", tuple(self.sort_columns))

    @property
    def kind(self) -> PlanNodeKind:
        return PlanNodeKind.SORT

    def children(self) -> List[PlanNode]:
        if self.input is None:
            return []
        return [self.input]

    def __repr__(self) -> str:
        return f"Sort({list(self.sort_columns)})"


@dataclass(frozen=True)
class _JoinNode(PlanNode):
    """Join of an outer (left) and inner (right) input."""

    left: Optional[PlanNode] = None
    right: Optional[PlanNode] = None
    inner_has_supporting_index: bool = False
    join_selectivity: Optional[float] = None  # None means key/foreign-key join

    def children(self) -> List[PlanNode]:
        nodes = []
        if self.left is not None:
            nodes.append(self.left)
        if self.right is not None:
            nodes.append(self.right)
        return nodes


@dataclass(frozen=True)
class NestedLoopJoin(_JoinNode):
    """Probe the inner input once per outer row."""

    @property
    def kind(self) -> PlanNodeKind:
        return PlanNodeKind.NESTED_LOOP_JOIN


@dataclass(frozen=True)
class HashJoin(_JoinNode):
    """Build a hash table on the smaller input and probe with the larger."""

    @property
    def kind(self) -> PlanNodeKind:
        return PlanNodeKind.HASH_JOIN
