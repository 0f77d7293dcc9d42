"""
Dashboard summary cards and chart-ready aggregates.

Column roles here follow the dashboard's own rule: a column is numeric when
any of its values parses as a number, categorical when it is not numeric and
has at least one non-empty value. Unparseable numeric cells count as 0.
"""
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from sheetgpt.config import (
    BAR_GROUP_LIMIT,
    CHART_COLORS,
    LINE_ROW_LIMIT,
    PIE_GROUP_LIMIT,
    SCATTER_ROW_LIMIT,
)
from sheetgpt.loader import Dataset, coerce_numeric
from sheetgpt.utils import first_or_none

BLANK_LABEL = "(blank)"


@dataclass
class SummaryCards:
    total_rows: int
    columns: int
    average: str
    maximum: str
    metric_column: Optional[str] = None


@dataclass
class ChartData:
    bar: pd.DataFrame
    pie: pd.DataFrame
    line: pd.DataFrame
    scatter: pd.DataFrame
    category_column: Optional[str] = None
    value_column: Optional[str] = None
    y_column: Optional[str] = None


# ============================================================================
# COLUMN ROLES
# ============================================================================

def numeric_columns(df: pd.DataFrame) -> List[str]:
    return [c for c in df.columns if coerce_numeric(df[c]).notna().any()]


def categorical_columns(df: pd.DataFrame, numeric: Optional[List[str]] = None) -> List[str]:
    numeric = numeric_columns(df) if numeric is None else numeric
    return [c for c in df.columns if c not in numeric and df[c].notna().any()]


def _values(df: pd.DataFrame, column: str) -> pd.Series:
    return coerce_numeric(df[column]).fillna(0.0)


def _labels(df: pd.DataFrame, column: str) -> pd.Series:
    return df[column].astype(object).where(df[column].notna(), BLANK_LABEL).astype(str)


# ============================================================================
# SUMMARY CARDS
# ============================================================================

def summary_cards(dataset: Dataset) -> SummaryCards:
    """Total records, column count, and average/maximum of the first numeric column."""
    if dataset.is_empty:
        return SummaryCards(total_rows=0, columns=0, average="0.00", maximum="0.00")

    df = dataset.frame
    metric = first_or_none(numeric_columns(df))
    if metric is None:
        return SummaryCards(total_rows=len(df), columns=len(df.columns), average="0.00", maximum="0.00")

    values = _values(df, metric)
    return SummaryCards(
        total_rows=len(df),
        columns=len(df.columns),
        average=f"{values.mean():.2f}",
        maximum=f"{values.max():.2f}",
        metric_column=metric,
    )


# ============================================================================
# CHART DATA
# ============================================================================

def chart_data(dataset: Dataset) -> ChartData:
    """
    Build the four dashboard chart frames.

    - bar: sum of the first numeric column per first-categorical value (first 10 groups)
    - pie: record count per first-categorical value (first 6 groups)
    - line: first 20 rows of the first numeric column against a 1-based index
    - scatter: first 50 rows, first numeric column vs second
    """
    empty = ChartData(
        bar=pd.DataFrame(columns=["name", "value"]),
        pie=pd.DataFrame(columns=["name", "value"]),
        line=pd.DataFrame(columns=["index", "value"]),
        scatter=pd.DataFrame(columns=["x", "y"]),
    )
    if dataset.is_empty:
        return empty

    df = dataset.frame
    numeric = numeric_columns(df)
    categorical = categorical_columns(df, numeric)
    category_col = first_or_none(categorical)
    value_col = first_or_none(numeric)
    y_col = numeric[1] if len(numeric) >= 2 else None

    bar = empty.bar
    pie = empty.pie
    line = empty.line
    scatter = empty.scatter

    if category_col is not None and value_col is not None:
        sums = _values(df, value_col).groupby(_labels(df, category_col), sort=False).sum()
        bar = sums.head(BAR_GROUP_LIMIT).rename_axis("name").reset_index(name="value")

    if category_col is not None:
        counts = _labels(df, category_col).groupby(_labels(df, category_col), sort=False).size()
        pie = counts.head(PIE_GROUP_LIMIT).rename_axis("name").reset_index(name="value")

    if value_col is not None:
        head = _values(df.head(LINE_ROW_LIMIT), value_col)
        line = pd.DataFrame({"index": range(1, len(head) + 1), "value": head.to_numpy()})

    if y_col is not None:
        head = df.head(SCATTER_ROW_LIMIT)
        scatter = pd.DataFrame({"x": _values(head, value_col).to_numpy(), "y": _values(head, y_col).to_numpy()})

    return ChartData(
        bar=bar,
        pie=pie,
        line=line,
        scatter=scatter,
        category_column=category_col,
        value_column=value_col,
        y_column=y_col,
    )


# ============================================================================
# FIGURES
# ============================================================================

def bar_figure(charts: ChartData) -> go.Figure:
    fig = px.bar(
        charts.bar,
        x="name",
        y="value",
        title="Category Distribution",
        labels={"name": charts.category_column or "", "value": charts.value_column or ""},
        color_discrete_sequence=CHART_COLORS[:1],
    )
    fig.update_layout(height=300, xaxis_tickangle=-45)
    return fig


def pie_figure(charts: ChartData) -> go.Figure:
    fig = px.pie(
        charts.pie,
        values="value",
        names="name",
        title="Composition",
        color_discrete_sequence=CHART_COLORS,
    )
    fig.update_traces(textposition="inside", textinfo="percent+label")
    fig.update_layout(height=300)
    return fig


def line_figure(charts: ChartData) -> go.Figure:
    fig = px.line(
        charts.line,
        x="index",
        y="value",
        title="Trend Analysis",
        labels={"index": "Row", "value": charts.value_column or ""},
        color_discrete_sequence=CHART_COLORS[1:2],
    )
    fig.update_layout(height=300)
    return fig


def scatter_figure(charts: ChartData) -> go.Figure:
    fig = px.scatter(
        charts.scatter,
        x="x",
        y="y",
        title="Correlation Analysis",
        labels={"x": charts.value_column or "", "y": charts.y_column or ""},
        color_discrete_sequence=CHART_COLORS[4:5],
    )
    fig.update_layout(height=300)
    return fig
