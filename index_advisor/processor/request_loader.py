"""Load advisory requests from YAML or JSON documents.

Example YAML format:
    tables:
      - request_id: recent-orders
        table: orders
        columns:
          - {name: status, num_distinct: 5, row_count: 1000000}
          - {name: created_at, num_distinct: 900000, row_count: 1000000,
             min_value: 0, max_value: 86400}
        predicates:
          - {column: status, kind: equality, value: shipped}
          - {column: created_at, kind: sort_key, descending: true}
        join:
          inner_rows: 10
          inner_has_supporting_index: true
        plan:
          kind: sort
          sort_columns: [created_at]
          children:
            - kind: index_access
              table: orders
              total_rows: 1000000
              predicate_selectivity: 0.2
              key_sequence: [status, created_at]
              access_predicates:
                - {column: status, kind: equality, value: shipped}
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..catalog.schema import ColumnStatistics, TableStatistics
from ..plan.physical import (
    Filter,
    HashJoin,
    IndexAccess,
    MalformedPlanTree,
    NestedLoopJoin,
    PlanNode,
    Sort,
    TableScan,
)
from ..plan.predicates import Predicate, PredicateKind, PredicateSet
from .request import AdvisoryRequest, JoinRequest


class RequestFormatError(ValueError):
    """Raised when a request document is missing required fields."""

    pass


_PREDICATE_KINDS = {
    "equality": PredicateKind.EQUALITY,
    "eq": PredicateKind.EQUALITY,
    "range": PredicateKind.RANGE,
    "sort_key": PredicateKind.SORT_KEY,
    "sort": PredicateKind.SORT_KEY,
    "order_by": PredicateKind.SORT_KEY,
}


def _normalize_kind(kind: str) -> str:
    return kind.replace("_", "").replace("-", "").lower()


def _require(data: Dict[str, Any], key: str, context: str) -> Any:
    if not isinstance(data, dict):
        raise RequestFormatError(f"{context} must be a mapping, got {type(data).__name__}")
    if key not in data:
        raise RequestFormatError(f"{context} is missing required field {key!r}")
    return data[key]


def _number(value: Any, field_name: str, context: str, convert=float) -> Any:
    try:
        return convert(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise RequestFormatError(
            f"{context}: field {field_name!r} must be numeric, got {value!r}"
        ) from exc


def _optional_number(data: Dict[str, Any], key: str, context: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    return _number(value, key, context)


def parse_statistics(table_name: str, columns: List[Dict[str, Any]]) -> TableStatistics:
    """Parse column statistics entries of one table."""
    parsed = []
    for entry in columns or []:
        context = f"column of table {table_name!r}"
        parsed.append(
            ColumnStatistics(
                name=_require(entry, "name", context),
                num_distinct=_number(
                    _require(entry, "num_distinct", context), "num_distinct", context, int
                ),
                row_count=_number(
                    _require(entry, "row_count", context), "row_count", context, int
                ),
                nullable=bool(entry.get("nullable", True)),
                min_value=entry.get("min_value"),
                max_value=entry.get("max_value"),
            )
        )
    return TableStatistics.from_columns(table_name, parsed)


def parse_predicate(data: Dict[str, Any]) -> Predicate:
    """Parse one predicate entry."""
    column = _require(data, "column", "predicate")
    raw_kind = str(_require(data, "kind", f"predicate on {column!r}"))
    kind = _PREDICATE_KINDS.get(raw_kind.lower())
    if kind is None:
        raise RequestFormatError(f"Unknown predicate kind {raw_kind!r} on {column!r}")
    return Predicate(
        column=column,
        kind=kind,
        value=data.get("value"),
        low=data.get("low"),
        high=data.get("high"),
        descending=bool(data.get("descending", False)),
    )


def parse_predicates(entries: Optional[List[Dict[str, Any]]]) -> PredicateSet:
    """Parse a predicate list, keeping clause order.

    Raises:
        InvalidPredicateSet: If the parsed set is ambiguous or incomplete
    """
    return PredicateSet(tuple(parse_predicate(entry) for entry in entries or []))


def parse_join(data: Optional[Dict[str, Any]]) -> Optional[JoinRequest]:
    if data is None:
        return None
    return JoinRequest(
        inner_rows=_number(_require(data, "inner_rows", "join"), "inner_rows", "join"),
        inner_has_supporting_index=bool(data.get("inner_has_supporting_index", False)),
        outer_rows=_optional_number(data, "outer_rows", "join"),
    )


def parse_plan(data: Dict[str, Any]) -> PlanNode:
    """Parse a nested plan tree document.

    Raises:
        RequestFormatError: If a node kind is unknown or a field is missing
        MalformedPlanTree: If a node has more children than its kind allows
    """
    kind = _normalize_kind(str(_require(data, "kind", "plan node")))
    children = [parse_plan(child) for child in data.get("children") or []]

    if kind in ("indexaccess", "tablescan"):
        return _parse_leaf(kind, data, children)
    if kind == "filter":
        return Filter(
            input=_single_input("Filter", children),
            residual_predicates=tuple(
                parse_predicate(p) for p in data.get("residual_predicates") or []
            ),
            selectivity=_optional_number(data, "selectivity", "Filter node"),
        )
    if kind == "sort":
        return Sort(
            input=_single_input("Sort", children),
            sort_columns=tuple(data.get("sort_columns") or []),
        )
    if kind in ("nestedloopjoin", "hashjoin"):
        return _parse_join_node(kind, data, children)

    raise RequestFormatError(f"Unknown plan node kind: {data['kind']!r}")


def _parse_leaf(kind: str, data: Dict[str, Any], children: List[PlanNode]) -> PlanNode:
    if children:
        raise MalformedPlanTree(f"Leaf node {data['kind']!r} cannot have children")
    table_name = data.get("table", "")
    context = f"{data['kind']} node"
    total_rows = _number(_require(data, "total_rows", context), "total_rows", context)
    selectivity = _number(data.get("predicate_selectivity", 1.0), "predicate_selectivity", context)
    row_estimate = _optional_number(data, "row_estimate", context)

    if kind == "tablescan":
        return TableScan(
            table_name=table_name,
            total_rows=total_rows,
            predicate_selectivity=selectivity,
            row_estimate=row_estimate,
        )
    return IndexAccess(
        table_name=table_name,
        total_rows=total_rows,
        predicate_selectivity=selectivity,
        row_estimate=row_estimate,
        key_sequence=tuple(data.get("key_sequence") or []),
        access_predicates=tuple(
            parse_predicate(p) for p in data.get("access_predicates") or []
        ),
    )


def _single_input(name: str, children: List[PlanNode]) -> Optional[PlanNode]:
    if len(children) > 1:
        raise MalformedPlanTree(f"{name} takes one input, got {len(children)}")
    if not children:
        return None
    return children[0]


def _parse_join_node(kind: str, data: Dict[str, Any], children: List[PlanNode]) -> PlanNode:
    if len(children) > 2:
        raise MalformedPlanTree(f"Join takes two inputs, got {len(children)}")
    left = children[0] if len(children) > 0 else None
    right = children[1] if len(children) > 1 else None
    node_class = HashJoin if kind == "hashjoin" else NestedLoopJoin
    return node_class(
        left=left,
        right=right,
        inner_has_supporting_index=bool(data.get("inner_has_supporting_index", False)),
        join_selectivity=_optional_number(data, "join_selectivity", f"{data['kind']} node"),
    )


def parse_request(data: Dict[str, Any]) -> AdvisoryRequest:
    """Parse one table's advisory request."""
    table_name = _require(data, "table", "request")
    statistics = parse_statistics(table_name, _require(data, "columns", f"request for {table_name!r}"))
    plan_data = data.get("plan")
    return AdvisoryRequest(
        statistics=statistics,
        predicates=parse_predicates(data.get("predicates")),
        join=parse_join(data.get("join")),
        plan=parse_plan(plan_data) if plan_data is not None else None,
        request_id=data.get("request_id"),
    )


def parse_requests(document: Dict[str, Any]) -> List[AdvisoryRequest]:
    """Parse a document holding either ``tables: [...]`` or a single request."""
    if not isinstance(document, dict):
        raise RequestFormatError("Request document must be a mapping")
    if "tables" in document:
        entries = document["tables"] or []
        if not isinstance(entries, list):
            raise RequestFormatError("'tables' must be a list of requests")
        return [parse_request(entry) for entry in entries]
    return [parse_request(document)]


def load_requests(request_path: str) -> List[AdvisoryRequest]:
    """Load requests from a YAML or JSON file.

    Args:
        request_path: Path to the request document

    Returns:
        Parsed requests in document order
    """
    path = Path(request_path)
    if not path.exists():
        raise FileNotFoundError(f"Request file not found: {request_path}")

    # JSON is a subset of YAML, so one loader covers both
    with open(path, "r") as f:
        try:
            document = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise RequestFormatError(f"Cannot parse {request_path}: {exc}") from exc

    return parse_requests(document)
