"""Tests for selectivity and row-count estimation."""

import math

import pytest

from index_advisor.catalog import ColumnStatistics, TableStatistics, UnknownColumn
from index_advisor.config import CostConfig
from index_advisor.optimizer import SelectivityEstimator, clamp_fraction, clamp_rows
from index_advisor.plan import Predicate


@pytest.fixture
def estimator(cost_config):
    """Create estimator with default configuration."""
    return SelectivityEstimator(cost_config)


class TestEqualitySelectivity:
    """Equality assumes values are uniformly distributed."""

    def test_equality_selectivity(self, estimator, orders_stats):
        column = orders_stats.get_column("status")
        predicate = Predicate.equality("status", "shipped")
        assert estimator.selectivity(predicate, column) == pytest.approx(1.0 / 5)

    def test_equality_estimate(self, estimator, orders_stats):
        column = orders_stats.get_column("customer_id")
        predicate = Predicate.equality("customer_id", 42)
        assert estimator.estimate(predicate, column) == pytest.approx(20.0)

    def test_no_distinct_values_matches_nothing(self, estimator):
        column = ColumnStatistics(name="empty", num_distinct=0, row_count=0)
        predicate = Predicate.equality("empty", 1)
        assert estimator.selectivity(predicate, column) == 0.0
        assert estimator.estimate(predicate, column) == 0.0

    def test_estimate_never_exceeds_total_rows(self, estimator):
        column = ColumnStatistics(name="flag", num_distinct=1, row_count=10)
        predicate = Predicate.equality("flag", True)
        assert estimator.estimate(predicate, column) == 10.0


class TestRangeSelectivity:
    """Range selectivity is linear over the observed span."""

    def test_bounded_range_is_linear(self, estimator, orders_stats):
        column = orders_stats.get_column("created_at")
        predicate = Predicate.range("created_at", low=250, high=750)
        assert estimator.selectivity(predicate, column) == pytest.approx(0.5)
        assert estimator.estimate(predicate, column) == pytest.approx(500_000)

    def test_bounds_are_clipped_to_span(self, estimator, orders_stats):
        column = orders_stats.get_column("amount")
        predicate = Predicate.range("amount", low=-100, high=250)
        assert estimator.selectivity(predicate, column) == pytest.approx(0.5)

    def test_range_outside_span_matches_nothing(self, estimator, orders_stats):
        column = orders_stats.get_column("created_at")
        predicate = Predicate.range("created_at", low=2000, high=3000)
        assert estimator.selectivity(predicate, column) == 0.0
        assert estimator.estimate(predicate, column) == 0.0

    def test_inverted_bounds_match_nothing(self, estimator, orders_stats):
        column = orders_stats.get_column("created_at")
        predicate = Predicate.range("created_at", low=200, high=100)
        assert estimator.selectivity(predicate, column) == 0.0

    def test_open_range_uses_default_fraction(self, estimator, orders_stats):
        column = orders_stats.get_column("created_at")
        predicate = Predicate.range("created_at", low=100)
        assert estimator.selectivity(predicate, column) == pytest.approx(0.33)

    def test_literal_only_range_uses_default_fraction(self, estimator, orders_stats):
        column = orders_stats.get_column("amount")
        predicate = Predicate.range("amount", value=100)
        assert estimator.selectivity(predicate, column) == pytest.approx(0.33)

    def test_bounded_range_without_span_uses_default(self, estimator, orders_stats):
        column = orders_stats.get_column("status")
        predicate = Predicate.range("status", low=1, high=3)
        assert estimator.selectivity(predicate, column) == pytest.approx(0.33)

    def test_non_numeric_bounds_use_default(self, estimator, orders_stats):
        column = orders_stats.get_column("created_at")
        predicate = Predicate.range("created_at", low="2024-01-01", high="2024-02-01")
        assert estimator.selectivity(predicate, column) == pytest.approx(0.33)

    def test_zero_width_span(self, estimator):
        column = ColumnStatistics(name="v", num_distinct=1, row_count=100, min_value=7, max_value=7)
        inside = Predicate.range("v", low=5, high=10)
        outside = Predicate.range("v", low=8, high=10)
        assert estimator.selectivity(inside, column) == 1.0
        assert estimator.selectivity(outside, column) == 0.0

    def test_open_range_fraction_is_configurable(self, orders_stats):
        estimator = SelectivityEstimator(CostConfig(default_open_range_fraction=0.5))
        column = orders_stats.get_column("amount")
        predicate = Predicate.range("amount", high=10)
        assert estimator.selectivity(predicate, column) == pytest.approx(0.5)

    def test_out_of_range_default_is_clamped(self, orders_stats):
        estimator = SelectivityEstimator(CostConfig(default_open_range_fraction=1.7))
        column = orders_stats.get_column("amount")
        predicate = Predicate.range("amount", high=10)
        assert estimator.selectivity(predicate, column) == 1.0

    def test_nan_bound_never_produces_nan(self, estimator, orders_stats):
        column = orders_stats.get_column("amount")
        predicate = Predicate.range("amount", low=float("nan"), high=10)
        estimate = estimator.estimate(predicate, column)
        assert not math.isnan(estimate)
        assert 0.0 <= estimate <= column.row_count


class TestSortKeySelectivity:
    """Ordering does not remove rows."""

    def test_sort_key_keeps_every_row(self, estimator, orders_stats):
        column = orders_stats.get_column("created_at")
        predicate = Predicate.sort_key("created_at")
        assert estimator.selectivity(predicate, column) == 1.0
        assert estimator.estimate(predicate, column) == 1_000_000


class TestChainedEstimates:
    """Chained predicates multiply under the independence assumption."""

    def test_chain_multiplies_selectivities(self, estimator, orders_stats):
        predicates = [
            Predicate.equality("status", "shipped"),
            Predicate.range("created_at", low=250, high=750),
            Predicate.equality("customer_id", 42),
        ]
        chain = estimator.estimate_chain(predicates, orders_stats)
        assert chain == pytest.approx([200_000, 100_000, 2])

    def test_chain_is_non_increasing_and_non_negative(self, estimator, orders_stats):
        predicates = [
            Predicate.sort_key("created_at"),
            Predicate.range("amount", low=100),
            Predicate.equality("region", "eu"),
            Predicate.range("created_at", low=-50, high=5000),
            Predicate.equality("status", "new"),
            Predicate.range("amount", low=600, high=700),
            Predicate.equality("id", 7),
        ]
        for count in range(1, len(predicates) + 1):
            chain = estimator.estimate_chain(predicates[:count], orders_stats)
            previous = float(orders_stats.row_count)
            for estimate in chain:
                assert estimate >= 0.0
                assert not math.isnan(estimate)
                assert estimate <= previous
                previous = estimate

    def test_estimate_rows_of_empty_chain_is_table_size(self, estimator, orders_stats):
        assert estimator.estimate_rows([], orders_stats) == 1_000_000

    def test_estimate_rows_is_last_chain_value(self, estimator, orders_stats):
        predicates = [
            Predicate.equality("status", "shipped"),
            Predicate.equality("region", "eu"),
        ]
        assert estimator.estimate_rows(predicates, orders_stats) == pytest.approx(40_000)

    def test_unknown_column_fails(self, estimator, orders_stats):
        with pytest.raises(UnknownColumn):
            estimator.estimate_chain([Predicate.equality("missing", 1)], orders_stats)

    def test_empty_table(self, estimator):
        stats = TableStatistics.from_columns("t", [ColumnStatistics("a", 0, 0)])
        chain = estimator.estimate_chain([Predicate.equality("a", 1)], stats)
        assert chain == [0.0]


class TestClamps:
    """Clamps are silent."""

    def test_clamp_fraction(self):
        assert clamp_fraction(-0.5) == 0.0
        assert clamp_fraction(1.5) == 1.0
        assert clamp_fraction(float("nan")) == 1.0
        assert clamp_fraction(0.25) == 0.25

    def test_clamp_rows(self):
        assert clamp_rows(-3.0) == 0.0
        assert clamp_rows(float("nan")) == 0.0
        assert clamp_rows(50.0, 10.0) == 10.0
        assert clamp_rows(5.0) == 5.0
