"""
Core package for the SheetGPT spreadsheet viewer.
Contains loading, statistics, narrative, dashboard, query dispatch and table components.

Key modules:
- loader: CSV/Excel parsing into an immutable Dataset
- column_stats: Per-column statistics
- narrative: Data story and strategic insights
- dashboard: Summary cards and chart data
- query_router: Keyword-matched question answering
- table_view: Search, filters, sorting, pagination, export
"""
from sheetgpt.errors import (
    SheetGPTError,
    DatasetLoadError,
    UnsupportedFileError,
    FileTooLargeError,
    EmptyDatasetError,
    EmptyQueryError,
)
from sheetgpt.loader import Dataset, load_dataset, coerce_numeric, parse_number
from sheetgpt.column_stats import ColumnStats, DatasetAnalysis, analyze_dataset
from sheetgpt.narrative import generate_narrative, generate_insights, insight_severity
from sheetgpt.dashboard import SummaryCards, ChartData, summary_cards, chart_data
from sheetgpt.query_router import (
    QueryIntent,
    QueryResponse,
    QueryHistory,
    SUGGESTED_QUERIES,
    answer_query,
    classify_query,
)
from sheetgpt.table_view import (
    FilterCondition,
    TableState,
    column_type,
    filter_and_sort,
    paginate,
    export_csv,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "SheetGPTError",
    "DatasetLoadError",
    "UnsupportedFileError",
    "FileTooLargeError",
    "EmptyDatasetError",
    "EmptyQueryError",
    # Loading
    "Dataset",
    "load_dataset",
    "coerce_numeric",
    "parse_number",
    # Statistics
    "ColumnStats",
    "DatasetAnalysis",
    "analyze_dataset",
    # Narrative
    "generate_narrative",
    "generate_insights",
    "insight_severity",
    # Dashboard
    "SummaryCards",
    "ChartData",
    "summary_cards",
    "chart_data",
    # Query
    "QueryIntent",
    "QueryResponse",
    "QueryHistory",
    "SUGGESTED_QUERIES",
    "answer_query",
    "classify_query",
    # Table
    "FilterCondition",
    "TableState",
    "column_type",
    "filter_and_sort",
    "paginate",
    "export_csv",
]
