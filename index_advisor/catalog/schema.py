"""Column and table statistics supplied with an advisory request."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

Number = Union[int, float]


class UnknownColumn(KeyError):
    """Raised when a predicate references a column missing from the statistics."""

    def __init__(self, table_name: str, column_name: str):
        super().__init__(column_name)
        self.table_name = table_name
        self.column_name = column_name

    def __str__(self) -> str:
        return f"Unknown column {self.column_name!r} in table {self.table_name!r}"


class InvalidStatistics(ValueError):
    """Raised when column statistics contradict themselves."""

    pass


@dataclass(frozen=True)
class ColumnStatistics:
    """Statistics about a column."""

    name: str
    num_distinct: int
    row_count: int
    nullable: bool = True
    min_value: Optional[Number] = None  # Observed span, ranged columns only
    max_value: Optional[Number] = None

    def __post_init__(self):
        if self.row_count < 0:
            raise InvalidStatistics(
                f"Column {self.name!r} has negative row count {self.row_count}"
            )
        if self.num_distinct < 0:
            raise InvalidStatistics(
                f"Column {self.name!r} has negative distinct count {self.num_distinct}"
            )
        if self.num_distinct > self.row_count:
            raise InvalidStatistics(
                f"Column {self.name!r} has {self.num_distinct} distinct values "
                f"but only {self.row_count} rows"
            )

    def has_span(self) -> bool:
        """Check whether a numeric min/max span was observed."""
        for bound in (self.min_value, self.max_value):
            if isinstance(bound, bool) or not isinstance(bound, (int, float)):
                return False
        return True

    def __repr__(self) -> str:
        return f"ColumnStatistics({self.name}, ndv={self.num_distinct}, rows={self.row_count})"


@dataclass(frozen=True)
class TableStatistics:
    """Statistics about a table, keyed by column name."""

    table_name: str
    columns: Dict[str, ColumnStatistics] = field(default_factory=dict)

    @classmethod
    def from_columns(
        cls, table_name: str, columns: Iterable[ColumnStatistics]
    ) -> "TableStatistics":
        """Build table statistics from a column list.

        Raises:
            InvalidStatistics: If two entries share a column name
        """
        mapping: Dict[str, ColumnStatistics] = {}
        for column in columns:
            if column.name in mapping:
                raise InvalidStatistics(
                    f"Duplicate column {column.name!r} in table {table_name!r}"
                )
            mapping[column.name] = column
        return cls(table_name=table_name, columns=mapping)

    @property
    def row_count(self) -> int:
        """Total rows, taken as the largest column row count."""
        if not self.columns:
            return 0
        return max(col.row_count for col in self.columns.values())

    def get_column(self, name: str) -> ColumnStatistics:
        """Get column statistics by name.

        Raises:
            UnknownColumn: If the column is absent
        """
        column = self.columns.get(name)
        if column is None:
            raise UnknownColumn(self.table_name, name)
        return column

    def has_column(self, name: str) -> bool:
        return name in self.columns

    def column_names(self) -> List[str]:
        return list(self.columns)

    def __repr__(self) -> str:
        return f"TableStatistics({self.table_name}, cols={len(self.columns)}, rows={self.row_count})"
