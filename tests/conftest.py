"""Shared fixtures for advisor tests."""

import pytest

from index_advisor.catalog import ColumnStatistics, TableStatistics
from index_advisor.config import CostConfig


@pytest.fixture
def cost_config():
    """Create cost configuration with default units."""
    return CostConfig()


@pytest.fixture
def orders_stats():
    """Create sample statistics for a one-million-row orders table.

    Tables:
    - orders: id, status, region, customer_id, created_at, amount
    """
    rows = 1_000_000
    return TableStatistics.from_columns(
        "orders",
        [
            ColumnStatistics(name="id", num_distinct=rows, row_count=rows, nullable=False),
            ColumnStatistics(name="status", num_distinct=5, row_count=rows, nullable=False),
            ColumnStatistics(name="region", num_distinct=5, row_count=rows),
            ColumnStatistics(name="customer_id", num_distinct=50_000, row_count=rows),
            ColumnStatistics(
                name="created_at",
                num_distinct=900_000,
                row_count=rows,
                min_value=0,
                max_value=1000,
            ),
            ColumnStatistics(
                name="amount",
                num_distinct=10_000,
                row_count=rows,
                min_value=0,
                max_value=500,
            ),
        ],
    )
