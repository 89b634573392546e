"""Advisory request processing (single and batch)."""

from .request import AdvisoryRequest, AdvisoryResponse, JoinRequest
from .advisor import IndexAdvisor, BatchAdvisor, BatchOutcome, OutcomeStatus
from .request_loader import (
    RequestFormatError,
    load_requests,
    parse_plan,
    parse_request,
    parse_requests,
)

__all__ = [
    "AdvisoryRequest",
    "AdvisoryResponse",
    "JoinRequest",
    "IndexAdvisor",
    "BatchAdvisor",
    "BatchOutcome",
    "OutcomeStatus",
    "RequestFormatError",
    "load_requests",
    "parse_plan",
    "parse_request",
    "parse_requests",
]
