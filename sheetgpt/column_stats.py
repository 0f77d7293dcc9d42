"""
Per-column statistics used by the narrative summary.

Each column is classified as numeric, mixed or text by how many of its
non-empty values parse as numbers, and gets min/max/mean/median, unique and
null counts, the most common value, and the first records holding its
extremes.
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from sheetgpt.loader import Dataset, coerce_numeric

# Share of parseable values above which a column counts as numeric
NUMERIC_SHARE = 0.7
SAMPLE_SIZE = 5


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass
class ColumnStats:
    """Statistics for a single column."""
    name: str
    kind: str  # "numeric", "mixed" or "text"
    unique_count: int
    null_count: int
    most_common: Optional[Any] = None
    sample_values: List[Any] = field(default_factory=list)
    # Numeric fields
    min_val: Optional[float] = None
    max_val: Optional[float] = None
    mean_val: Optional[float] = None
    median_val: Optional[float] = None
    # First records holding the extremes
    min_record: Optional[Dict[str, Any]] = None
    max_record: Optional[Dict[str, Any]] = None

    @property
    def has_range(self) -> bool:
        return self.min_val is not None and self.max_val is not None

    @property
    def value_range(self) -> float:
        return (self.max_val - self.min_val) if self.has_range else 0.0


@dataclass
class DatasetAnalysis:
    """Column statistics for a whole dataset."""
    total_rows: int
    total_columns: int
    column_stats: List[ColumnStats]

    @property
    def numeric_columns(self) -> List[ColumnStats]:
        return [c for c in self.column_stats if c.kind == "numeric"]

    @property
    def text_columns(self) -> List[ColumnStats]:
        return [c for c in self.column_stats if c.kind == "text"]

    @property
    def complete_field_percent(self) -> float:
        if not self.column_stats:
            return 0.0
        complete = sum(1 for c in self.column_stats if c.null_count == 0)
        return complete / len(self.column_stats) * 100


# ============================================================================
# STATISTICS COMPUTATION
# ============================================================================

def compute_column_stats(df: pd.DataFrame, column: str, records: List[Dict[str, Any]]) -> ColumnStats:
    """Compute statistics for one column of ``df``."""
    series = df[column]
    present = series[series.notna()]
    values = present.tolist()

    frequency = Counter(values)
    most_common = frequency.most_common(1)[0][0] if frequency else None

    stats = ColumnStats(
        name=str(column),
        kind="text",
        unique_count=len(frequency),
        null_count=len(series) - len(values),
        most_common=most_common,
        sample_values=list(frequency.keys())[:SAMPLE_SIZE],
    )

    parsed = coerce_numeric(series)
    numbers = parsed.dropna()
    if numbers.empty:
        return stats

    stats.kind = "numeric" if len(numbers) > len(values) * NUMERIC_SHARE else "mixed"
    stats.min_val = float(numbers.min())
    stats.max_val = float(numbers.max())
    stats.mean_val = float(numbers.mean())
    stats.median_val = float(numbers.median())

    # idxmax/idxmin return the first occurrence
    stats.min_record = records[parsed.index.get_loc(numbers.idxmin())]
    stats.max_record = records[parsed.index.get_loc(numbers.idxmax())]
    return stats


def analyze_dataset(dataset: Dataset) -> DatasetAnalysis:
    """
    Compute statistics for every column of a dataset.

    Args:
        dataset: Dataset to analyze

    Returns:
        DatasetAnalysis with one ColumnStats per column, in column order
    """
    if dataset.is_empty:
        return DatasetAnalysis(total_rows=0, total_columns=0, column_stats=[])

    df = dataset.frame
    records = dataset.records
    column_stats = [compute_column_stats(df, col, records) for col in df.columns]

    return DatasetAnalysis(
        total_rows=len(df),
        total_columns=len(df.columns),
        column_stats=column_stats,
    )
