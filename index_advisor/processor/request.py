"""Advisory request and response records."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..catalog.schema import TableStatistics
from ..optimizer.cost import JoinComparison
from ..optimizer.index_planner import IndexRecommendation
from ..optimizer.plan_analyzer import AnnotatedPlan
from ..plan.physical import PlanNode
from ..plan.predicates import PredicateSet


@dataclass(frozen=True)
class JoinRequest:
    """Two row sets to compare join strategies for.

    When ``outer_rows`` is None the request table, after its predicates,
    drives the join.
    """

    inner_rows: float
    inner_has_supporting_index: bool = False
    outer_rows: Optional[float] = None


@dataclass(frozen=True)
class AdvisoryRequest:
    """Everything needed to advise on one table's query."""

    statistics: TableStatistics
    predicates: PredicateSet = field(default_factory=PredicateSet)
    join: Optional[JoinRequest] = None
    plan: Optional[PlanNode] = None
    request_id: Optional[str] = None

    @property
    def identifier(self) -> str:
        return self.request_id or self.statistics.table_name


@dataclass(frozen=True)
class AdvisoryResponse:
    """Index recommendation, join comparison and annotated plan."""

    request_id: str
    index: IndexRecommendation
    join: Optional[JoinComparison] = None
    plan: Optional[AnnotatedPlan] = None

    def to_dict(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "request_id": self.request_id,
            "index": self.index.to_dict(),
            "join": None,
            "plan": None,
        }
        if self.join is not None:
            document["join"] = self.join.to_dict()
        if self.plan is not None:
            document["plan"] = self.plan.to_dict()
        return document
