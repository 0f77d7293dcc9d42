"""
Unit tests for dashboard summary cards and chart data.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sheetgpt.dashboard import (
    bar_figure,
    categorical_columns,
    chart_data,
    line_figure,
    numeric_columns,
    pie_figure,
    scatter_figure,
    summary_cards,
)
from sheetgpt.loader import Dataset


def test_column_roles(cars):
    numeric = numeric_columns(cars.df)
    assert numeric == ["Price", "Horsepower"]
    assert categorical_columns(cars.df, numeric) == ["Make", "Model", "Fuel"]


def test_any_parseable_value_makes_a_column_numeric():
    dataset = Dataset.from_records([{"code": "A1"}, {"code": "7"}])
    assert numeric_columns(dataset.df) == ["code"]


def test_summary_cards(cars):
    cards = summary_cards(cars)
    assert cards.total_rows == 6
    assert cards.columns == 5
    assert cards.average == "35833.33"
    assert cards.maximum == "70000.00"
    assert cards.metric_column == "Price"


def test_summary_cards_without_numbers():
    cards = summary_cards(Dataset.from_records([{"a": "x"}, {"a": "y"}]))
    assert (cards.total_rows, cards.average, cards.maximum) == (2, "0.00", "0.00")
    assert cards.metric_column is None


def test_chart_data_for_cars(cars):
    charts = chart_data(cars)
    assert (charts.category_column, charts.value_column, charts.y_column) == ("Make", "Price", "Horsepower")

    assert charts.bar["name"].tolist() == ["Toyota", "Honda", "Ford", "Tesla", "BMW", "Nissan"]
    assert charts.bar["value"].tolist() == [20000, 22000, 35000, 40000, 70000, 28000]
    assert charts.pie["value"].tolist() == [1] * 6
    assert charts.line["index"].tolist() == [1, 2, 3, 4, 5, 6]
    assert charts.scatter.iloc[4].tolist() == [70000, 473]


def test_chart_group_and_row_limits():
    records = [{"cat": f"c{i % 12}", "val": i} for i in range(60)]
    charts = chart_data(Dataset.from_records(records))

    assert len(charts.bar) == 10
    assert len(charts.pie) == 6
    assert charts.bar["name"].tolist()[:3] == ["c0", "c1", "c2"]
    # c0 holds 0, 12, 24, 36, 48
    assert charts.bar["value"].iloc[0] == 120
    assert charts.pie["value"].iloc[0] == 5
    assert len(charts.line) == 20
    assert charts.scatter.empty


def test_scatter_row_limit():
    records = [{"x": i, "y": i * 2} for i in range(80)]
    charts = chart_data(Dataset.from_records(records))
    assert len(charts.scatter) == 50
    assert charts.bar.empty and charts.pie.empty


def test_missing_category_is_labelled():
    dataset = Dataset.from_records([{"cat": "a", "v": 1}, {"cat": None, "v": 2}])
    charts = chart_data(dataset)
    assert charts.pie["name"].tolist() == ["a", "(blank)"]


def test_chart_data_on_empty_dataset():
    charts = chart_data(Dataset.from_records([]))
    assert charts.bar.empty and charts.pie.empty and charts.line.empty and charts.scatter.empty


def test_figures(cars):
    charts = chart_data(cars)
    assert bar_figure(charts).layout.title.text == "Category Distribution"
    assert bar_figure(charts).data[0].type == "bar"
    assert pie_figure(charts).data[0].type == "pie"
    assert line_figure(charts).layout.title.text == "Trend Analysis"
    assert scatter_figure(charts).layout.title.text == "Correlation Analysis"
