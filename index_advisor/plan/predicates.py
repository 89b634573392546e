"""Predicates extracted from a query over a single table."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Optional, Set, Tuple


class InvalidPredicateSet(ValueError):
    """Raised when a predicate set cannot be advised on."""

    pass


class PredicateKind(Enum):
    """Operator kinds a predicate can carry."""

    EQUALITY = "equality"
    RANGE = "range"
    SORT_KEY = "sort_key"


@dataclass(frozen=True)
class Predicate:
    """A single predicate on one column.

    Range predicates carry ``low``/``high`` bounds; either may be None for an
    open-ended range. ``value`` holds the equality literal, or the literal of
    a one-sided comparison whose direction was not recorded.
    """

    column: str
    kind: PredicateKind
    value: Optional[Any] = None
    low: Optional[Any] = None
    high: Optional[Any] = None
    descending: bool = False  # Sort keys only

    @classmethod
    def equality(cls, column: str, value: Any = None) -> "Predicate":
        return cls(column=column, kind=PredicateKind.EQUALITY, value=value)

    @classmethod
    def range(cls, column: str, low: Any = None, high: Any = None, value: Any = None) -> "Predicate":
        return cls(column=column, kind=PredicateKind.RANGE, value=value, low=low, high=high)

    @classmethod
    def sort_key(cls, column: str, descending: bool = False) -> "Predicate":
        return cls(column=column, kind=PredicateKind.SORT_KEY, descending=descending)

    def is_bounded(self) -> bool:
        """Check whether both range bounds are present."""
        return self.low is not None and self.high is not None

    def is_open_ended(self) -> bool:
        return self.kind == PredicateKind.RANGE and not self.is_bounded()

    def __str__(self) -> str:
        if self.kind == PredicateKind.EQUALITY:
            return f"{self.column} = {self.value!r}"
        if self.kind == PredicateKind.SORT_KEY:
            direction = "DESC" if self.descending else "ASC"
            return f"ORDER BY {self.column} {direction}"
        low = "-inf" if self.low is None else repr(self.low)
        high = "+inf" if self.high is None else repr(self.high)
        return f"{self.column} IN [{low}, {high}]"


@dataclass(frozen=True)
class PredicateSet:
    """Ordered predicates over one table, in original clause order."""

    predicates: Tuple[Predicate, ...] = ()

    def __post_init__(self):
        # Accept any iterable but store a tuple so the set stays immutable
        object.__setattr__(self, "predicates", tuple(self.predicates))
        self._validate()

    @classmethod
    def of(cls, *predicates: Predicate) -> "PredicateSet":
        return cls(predicates)

    def _validate(self) -> None:
        sort_keys = [p for p in self.predicates if p.kind == PredicateKind.SORT_KEY]
        if len(sort_keys) > 1:
            columns = ", ".join(p.column for p in sort_keys)
            raise InvalidPredicateSet(
                f"Ambiguous sort order: {len(sort_keys)} sort keys ({columns})"
            )

        for predicate in self.predicates:
            if predicate.kind != PredicateKind.RANGE:
                continue
            if predicate.low is None and predicate.high is None and predicate.value is None:
                raise InvalidPredicateSet(
                    f"Range predicate on {predicate.column!r} has no bounds and no literal"
                )

    def sort_key(self) -> Optional[Predicate]:
        """Return the single sort key predicate, if any."""
        for predicate in self.predicates:
            if predicate.kind == PredicateKind.SORT_KEY:
                return predicate
        return None

    def columns(self) -> List[str]:
        """Distinct referenced columns in first-appearance order."""
        seen: Set[str] = set()
        names: List[str] = []
        for predicate in self.predicates:
            if predicate.column not in seen:
                seen.add(predicate.column)
                names.append(predicate.column)
        return names

    def filters(self) -> List[Predicate]:
        """Predicates that remove rows (everything but the sort key)."""
        return [p for p in self.predicates if p.kind != PredicateKind.SORT_KEY]

    def __iter__(self) -> Iterator[Predicate]:
        return iter(self.predicates)

    def __len__(self) -> int:
        return len(self.predicates)

    def __repr__(self) -> str:
        return f"PredicateSet({len(self.predicates)} predicates)"
