"""Statistics model."""

from .schema import ColumnStatistics, TableStatistics, UnknownColumn, InvalidStatistics

__all__ = ["ColumnStatistics", "TableStatistics", "UnknownColumn", "InvalidStatistics"]
