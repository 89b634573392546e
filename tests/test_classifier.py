"""Tests for predicate classification and predicate set validation."""

import pytest

from index_advisor.optimizer import classify, partition
from index_advisor.plan import (
    Predicate,
    PredicateKind,
    PredicateSet,
    InvalidPredicateSet,
)


class TestClassify:
    """Classification follows the stored operator only."""

    def test_equality(self):
        assert classify(Predicate.equality("status", "shipped")) == PredicateKind.EQUALITY

    def test_range(self):
        assert classify(Predicate.range("amount", low=10)) == PredicateKind.RANGE

    def test_sort_key(self):
        assert classify(Predicate.sort_key("created_at")) == PredicateKind.SORT_KEY

    def test_equality_without_literal_is_still_equality(self):
        assert classify(Predicate.equality("status")) == PredicateKind.EQUALITY


class TestPartition:
    """Partitioning keeps clause order and positions."""

    def test_groups_by_kind(self):
        predicates = PredicateSet.of(
            Predicate.range("amount", low=1, high=2),
            Predicate.equality("status", "a"),
            Predicate.sort_key("created_at"),
            Predicate.equality("region", "eu"),
        )
        groups = partition(predicates)

        assert [(pos, p.column) for pos, p in groups.equality] == [(1, "status"), (3, "region")]
        assert [(pos, p.column) for pos, p in groups.sort] == [(2, "created_at")]
        assert [(pos, p.column) for pos, p in groups.range] == [(0, "amount")]

    def test_empty_set(self):
        groups = partition(PredicateSet())
        assert groups.equality == ()
        assert groups.sort == ()
        assert groups.range == ()


class TestPredicateSetValidation:
    """Invalid predicate sets fail at construction."""

    def test_multiple_sort_keys_rejected(self):
        with pytest.raises(InvalidPredicateSet):
            PredicateSet.of(
                Predicate.sort_key("created_at"),
                Predicate.sort_key("amount"),
            )

    def test_range_without_bounds_or_literal_rejected(self):
        with pytest.raises(InvalidPredicateSet):
            PredicateSet.of(Predicate.range("amount"))

    def test_range_with_only_literal_accepted(self):
        predicates = PredicateSet.of(Predicate.range("amount", value=100))
        assert len(predicates) == 1

    def test_columns_are_distinct_in_order(self):
        predicates = PredicateSet.of(
            Predicate.equality("status", "a"),
            Predicate.range("amount", low=1),
            Predicate.range("status", high=3),
        )
        assert predicates.columns() == ["status", "amount"]

    def test_sort_key_lookup(self):
        predicates = PredicateSet.of(
            Predicate.equality("status", "a"),
            Predicate.sort_key("created_at", descending=True),
        )
        assert predicates.sort_key().column == "created_at"
        assert predicates.sort_key().descending is True
        assert [p.column for p in predicates.filters()] == ["status"]

    def test_accepts_list_and_stores_tuple(self):
        predicates = PredicateSet([Predicate.equality("status", "a")])
        assert isinstance(predicates.predicates, tuple)
