"""IndexAdvisor orchestrates the estimators for one or many requests."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..config.config import Config
from ..optimizer.cost import JoinComparison, JoinCostModel
from ..optimizer.index_planner import CompositeIndexPlanner
from ..optimizer.plan_analyzer import AnnotatedPlan, PlanTreeAnalyzer
from ..optimizer.selectivity import SelectivityEstimator
from ..utils.logging import get_request_logger
from .request import AdvisoryRequest, AdvisoryResponse


class IndexAdvisor:
    """Runs classification, index planning, join costing and plan analysis."""

    def __init__(self, config: Optional[Config] = None):
        """Initialize advisor.

        Args:
            config: Configuration; defaults apply when omitted
        """
        if config is None:
            config = Config()
        self.config = config
        self.estimator = SelectivityEstimator(config.cost)
        self.planner = CompositeIndexPlanner(self.estimator)
        self.join_model = JoinCostModel(config.cost)

    def advise(self, request: AdvisoryRequest) -> AdvisoryResponse:
        """Produce the advisory response for one request.

        Raises:
            UnknownColumn: If a predicate references an unknown column
            MalformedPlanTree: If the supplied plan tree is malformed
        """
        request_logger = get_request_logger(__name__, request.identifier)

        recommendation = self.planner.recommend(request.predicates, request.statistics)
        join = self._compare_joins(request, recommendation.estimated_rows)
        plan = self._analyze_plan(request)

        request_logger.info(
            "Advised %s: %s; join=%s; plan_flags=%d",
            request.identifier,
            recommendation.reasoning,
            join.recommended.value if join else "n/a",
            len(plan.flags) if plan else 0,
        )
        return AdvisoryResponse(
            request_id=request.identifier,
            index=recommendation,
            join=join,
            plan=plan,
        )

    def _compare_joins(
        self, request: AdvisoryRequest, filtered_rows: float
    ) -> Optional[JoinComparison]:
        if request.join is None:
            return None
        outer_rows = request.join.outer_rows
        if outer_rows is None:
            outer_rows = filtered_rows
        return self.join_model.compare_joins(
            outer_rows,
            request.join.inner_rows,
            request.join.inner_has_supporting_index,
        )

    def _analyze_plan(self, request: AdvisoryRequest) -> Optional[AnnotatedPlan]:
        if request.plan is None:
            return None
        analyzer = PlanTreeAnalyzer(self.config.cost, statistics=request.statistics)
        return analyzer.analyze(request.plan)

    def __repr__(self) -> str:
        return "IndexAdvisor()"


class OutcomeStatus(Enum):
    """How a batch task ended."""

    EVALUATED = "evaluated"
    FAILED = "failed"
    NOT_EVALUATED = "not_evaluated"


@dataclass(frozen=True)
class BatchOutcome:
    """Result of one request within a batch."""

    request_id: str
    status: OutcomeStatus
    response: Optional[AdvisoryResponse] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "request_id": self.request_id,
            "status": self.status.value,
        }
        if self.response is not None:
            document["response"] = self.response.to_dict()
        if self.error_kind is not None:
            document["error"] = {"kind": self.error_kind, "message": self.error_message}
        return document


class BatchAdvisor:
    """Fans independent requests out to worker threads and collects outcomes."""

    def __init__(
        self,
        advisor: IndexAdvisor,
        max_workers: int = 4,
        timeout_seconds: Optional[float] = None,
    ):
        """Initialize batch advisor.

        Args:
            advisor: Advisor evaluating each request
            max_workers: Worker thread count
            timeout_seconds: Deadline for the whole batch; unfinished requests
                are reported as not evaluated
        """
        self.advisor = advisor
        self.max_workers = max(1, max_workers)
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config: Config) -> "BatchAdvisor":
        return cls(
            IndexAdvisor(config),
            max_workers=config.batch.max_workers,
            timeout_seconds=config.batch.timeout_seconds,
        )

    def advise_all(self, requests: Sequence[AdvisoryRequest]) -> List[BatchOutcome]:
        """Advise on every request; outcomes follow input order."""
        pool = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = [pool.submit(self.advisor.advise, request) for request in requests]
            wait(futures, timeout=self.timeout_seconds)
        finally:
            # Abandon whatever is still running once the deadline passed
            pool.shutdown(wait=False, cancel_futures=True)

        outcomes = []
        for request, future in zip(requests, futures):
            outcomes.append(self._collect(request, future))
        return outcomes

    def _collect(self, request: AdvisoryRequest, future: Future) -> BatchOutcome:
        request_id = request.identifier
        request_logger = get_request_logger(__name__, request_id)
        if not future.done() or future.cancelled():
            request_logger.with_fields(status=OutcomeStatus.NOT_EVALUATED.value).warning(
                "%s: not evaluated before the batch deadline", request_id
            )
            return BatchOutcome(request_id=request_id, status=OutcomeStatus.NOT_EVALUATED)

        error = future.exception()
        if error is not None:
            request_logger.with_fields(
                status=OutcomeStatus.FAILED.value, error_kind=type(error).__name__
            ).error("%s: advisory failed: %s", request_id, error)
            return BatchOutcome(
                request_id=request_id,
                status=OutcomeStatus.FAILED,
                error_kind=type(error).__name__,
                error_message=str(error),
            )

        return BatchOutcome(
            request_id=request_id,
            status=OutcomeStatus.EVALUATED,
            response=future.result(),
        )

    def __repr__(self) -> str:
        return f"BatchAdvisor(workers={self.max_workers})"
