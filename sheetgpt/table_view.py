"""
Searchable, filterable, sortable and paginated view of the dataset.

All operations return new frames; the dataset itself is never touched.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

import pandas as pd

from sheetgpt.config import CELL_DISPLAY_LIMIT, ROWS_PER_PAGE
from sheetgpt.loader import Dataset, coerce_numeric, parse_number

TYPE_SAMPLE_SIZE = 10

FILTER_OPERATORS = {
    "equals": "Equals",
    "contains": "Contains",
    "starts_with": "Starts with",
    "ends_with": "Ends with",
    "greater_than": "Greater than",
    "less_than": "Less than",
}


# ============================================================================
# COLUMN TYPES
# ============================================================================

def column_type(dataset: Dataset, column: str) -> str:
    """Guess "number", "boolean" or "text" from the first ten rows."""
    if dataset.is_empty:
        return "text"

    sample = [v for v in dataset.df[column].head(TYPE_SAMPLE_SIZE).tolist() if not _is_blank(v)]

    if all(parse_number(v) is not None for v in sample):
        return "number"
    if all(isinstance(v, bool) or v in ("true", "false") for v in sample):
        return "boolean"
    return "text"


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    return bool(pd.isna(value))


def _cell_text(series: pd.Series) -> pd.Series:
    """Lower-cased text of each cell, missing cells as ''."""
    return series.astype(object).where(series.notna(), "").map(_display).str.lower()


def _display(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ============================================================================
# FILTERS
# ============================================================================

@dataclass
class FilterCondition:
    column: str
    operator: str
    value: str

    def __post_init__(self):
        if self.operator not in FILTER_OPERATORS:
            raise ValueError(f"Unknown filter operator: {self.operator}")

    def describe(self) -> str:
        return f'{self.column} {self.operator} "{self.value}"'

    def mask(self, df: pd.DataFrame) -> pd.Series:
        """Boolean mask of the rows that satisfy this condition."""
        if self.column not in df.columns:
            return pd.Series(False, index=df.index)

        if self.operator in ("greater_than", "less_than"):
            threshold = parse_number(self.value)
            numbers = coerce_numeric(df[self.column])
            if threshold is None:
                return pd.Series(False, index=df.index)
            if self.operator == "greater_than":
                return (numbers > threshold).fillna(False)
            return (numbers < threshold).fillna(False)

        cells = _cell_text(df[self.column])
        needle = self.value.lower()
        if self.operator == "equals":
            return cells == needle
        if self.operator == "contains":
            return cells.str.contains(needle, regex=False)
        if self.operator == "starts_with":
            return cells.str.startswith(needle)
        return cells.str.endswith(needle)


# ============================================================================
# TABLE STATE
# ============================================================================

@dataclass
class TableState:
    search_term: str = ""
    filters: List[FilterCondition] = field(default_factory=list)
    sort_column: Optional[str] = None
    sort_direction: str = "asc"
    page: int = 1

    def toggle_sort(self, column: str) -> None:
        if self.sort_column == column:
            self.sort_direction = "desc" if self.sort_direction == "asc" else "asc"
        else:
            self.sort_column = column
            self.sort_direction = "asc"
        self.page = 1

    def add_filter(self, condition: FilterCondition) -> None:
        self.filters.append(condition)
        self.page = 1

    def remove_filter(self, index: int) -> None:
        if 0 <= index < len(self.filters):
            del self.filters[index]
            self.page = 1


def search(df: pd.DataFrame, term: str) -> pd.DataFrame:
    """Rows where any cell contains ``term`` (case-insensitive)."""
    if not term:
        return df
    needle = term.lower()
    hits = pd.Series(False, index=df.index)
    for col in df.columns:
        hits |= _cell_text(df[col]).str.contains(needle, regex=False)
    return df[hits]


def sort_frame(df: pd.DataFrame, column: str, direction: str = "asc") -> pd.DataFrame:
    """
    Sort by one column: numerically when the cells parse as numbers,
    otherwise by case-insensitive text. Unparseable cells sort as text
    after the numbers.
    """
    if column not in df.columns or df.empty:
        return df

    ascending = direction == "asc"
    numbers = coerce_numeric(df[column])
    texts = _cell_text(df[column])

    keyed = pd.DataFrame({
        "is_text": numbers.isna(),
        "number": numbers.fillna(0.0),
        "text": texts,
    }, index=df.index)
    order = keyed.sort_values(
        by=["is_text", "number", "text"],
        ascending=[True, ascending, ascending],
        kind="stable",
    ).index
    return df.loc[order]


def filter_and_sort(dataset: Dataset, state: TableState) -> pd.DataFrame:
    """Apply search, then every filter, then the sort."""
    df = dataset.frame
    df = search(df, state.search_term)
    for condition in state.filters:
        df = df[condition.mask(df)]
    if state.sort_column:
        df = sort_frame(df, state.sort_column, state.sort_direction)
    return df


# ============================================================================
# PAGINATION & EXPORT
# ============================================================================

@dataclass
class Page:
    rows: pd.DataFrame
    page: int
    total_pages: int
    start: int
    end: int
    total: int

    @property
    def caption(self) -> str:
        return f"Showing {self.start} to {self.end} of {self.total} results"


def paginate(df: pd.DataFrame, page: int = 1, rows_per_page: int = ROWS_PER_PAGE) -> Page:
    """Slice one page out of ``df``; ``page`` is clamped to the valid range."""
    total = len(df)
    total_pages = max(1, -(-total // rows_per_page))
    page = min(max(1, page), total_pages)
    offset = (page - 1) * rows_per_page
    rows = df.iloc[offset:offset + rows_per_page]
    return Page(
        rows=rows,
        page=page,
        total_pages=total_pages,
        start=offset + 1 if total else 0,
        end=min(offset + rows_per_page, total),
        total=total,
    )


def truncate_cell(value: Any, limit: int = CELL_DISPLAY_LIMIT) -> str:
    if _is_blank(value):
        return ""
    text = _display(value)
    return text[:limit] + "..." if len(text) > limit else text


def display_frame(df: pd.DataFrame, limit: int = CELL_DISPLAY_LIMIT) -> pd.DataFrame:
    """Copy of ``df`` with every cell rendered as truncated text."""
    if df.empty:
        return df.copy()
    return df.apply(lambda col: col.map(lambda v: truncate_cell(v, limit)))


def export_csv(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")
