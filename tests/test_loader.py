"""
Unit tests for file loading and number coercion.
"""

import io
import math
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sheetgpt.errors import (
    DatasetLoadError,
    EmptyDatasetError,
    FileTooLargeError,
    UnsupportedFileError,
)
from sheetgpt.loader import Dataset, coerce_numeric, load_dataset, parse_number


# ============================================================================
# NUMBER PARSING
# ============================================================================

def test_parse_number_accepts_numbers_and_numeric_text():
    assert parse_number("12") == 12.0
    assert parse_number(" 3.5 ") == 3.5
    assert parse_number(7) == 7.0
    assert parse_number("-1e3") == -1000.0


def test_parse_number_rejects_everything_else():
    for value in ("abc", "", "  ", None, True, False, float("nan"), "inf", "12 apples"):
        assert parse_number(value) is None, f"{value!r} should not parse"


def test_coerce_numeric_keeps_index_and_marks_failures():
    series = pd.Series(["1", "x", None, "2.5"], index=[10, 11, 12, 13])
    result = coerce_numeric(series)
    assert list(result.index) == [10, 11, 12, 13]
    assert result[10] == 1.0
    assert math.isnan(result[11]) and math.isnan(result[12])
    assert result[13] == 2.5


# ============================================================================
# CSV
# ============================================================================

def test_load_csv_infers_numbers(cars):
    assert cars.filename == "cars.csv"
    assert cars.columns == ["Make", "Model", "Price", "Horsepower", "Fuel"]
    assert cars.row_count == 6
    assert pd.api.types.is_numeric_dtype(cars.df["Price"])
    assert not pd.api.types.is_numeric_dtype(cars.df["Make"])
    assert cars.records[0] == {
        "Make": "Toyota", "Model": "Corolla", "Price": 20000, "Horsepower": 139, "Fuel": "Gas",
    }


def test_load_csv_trims_and_drops_blank_rows():
    data = b"name, score\n Alice ,10\nBob,\n,\n"
    dataset = load_dataset(data, "scores.csv")
    assert dataset.columns == ["name", "score"]
    assert dataset.records == [{"name": "Alice", "score": 10}, {"name": "Bob", "score": None}]


def test_load_csv_keeps_mixed_column_as_text():
    dataset = load_dataset(b"id,code\n1,A1\n2,7\n", "codes.csv")
    assert dataset.records[1]["code"] == "7"
    assert dataset.records[1]["id"] == 2


def test_load_csv_decimal_column_is_float():
    dataset = load_dataset(b"x\n1\n2.5\n", "x.csv")
    assert dataset.records == [{"x": 1.0}, {"x": 2.5}]


def test_load_csv_single_byte_fallback():
    dataset = load_dataset(b"name,city\nAna,Caf\xe9\n", "latin.csv")
    assert dataset.records[0]["city"] == "Café"


def test_load_csv_prefers_cp1252_over_latin1():
    """Test: 0x80 is the euro sign in cp1252, a control code in latin-1"""
    dataset = load_dataset(b"item,price\nLamp,\x80 5\n", "euro.csv")
    assert dataset.records[0]["price"] == "\u20ac 5"


def test_load_csv_latin1_is_last_resort():
    """Test: 0x81 is undefined in cp1252, so only latin-1 can read it"""
    dataset = load_dataset(b"code\nx\x81y\n", "odd.csv")
    assert dataset.records[0]["code"] == "x\x81y"


def test_malformed_csv_is_not_retried(monkeypatch):
    """Test: a ragged table fails once instead of once per encoding"""
    calls = []
    real_read_csv = pd.read_csv

    def counting_read_csv(*args, **kwargs):
        calls.append(kwargs.get("encoding"))
        return real_read_csv(*args, **kwargs)

    monkeypatch.setattr(pd, "read_csv", counting_read_csv)
    with pytest.raises(DatasetLoadError):
        load_dataset(b"a,b\n1,2\n3,4,5,6\n", "ragged.csv")
    assert calls == ["utf-8"]


def test_load_path_like_filename(cars_csv):
    dataset = load_dataset(cars_csv, Path("/tmp/uploads/Cars.CSV"))
    assert dataset.filename == "Cars.CSV"
    assert dataset.row_count == 6


# ============================================================================
# EXCEL
# ============================================================================

def test_load_xlsx_first_sheet():
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame({"item": ["pen", "ink"], "qty": [3, 4]}).to_excel(writer, sheet_name="Stock", index=False)
        pd.DataFrame({"other": [1]}).to_excel(writer, sheet_name="Ignored", index=False)

    dataset = load_dataset(buffer.getvalue(), "stock.xlsx")
    assert dataset.columns == ["item", "qty"]
    assert dataset.records == [{"item": "pen", "qty": 3}, {"item": "ink", "qty": 4}]


def test_corrupt_xlsx_raises_load_error():
    with pytest.raises(DatasetLoadError):
        load_dataset(b"definitely not a workbook", "broken.xlsx")


# ============================================================================
# REJECTIONS
# ============================================================================

def test_unsupported_extension():
    with pytest.raises(UnsupportedFileError, match="Please upload a CSV or Excel file"):
        load_dataset(b"a,b\n1,2\n", "notes.txt")


def test_file_too_large(monkeypatch):
    monkeypatch.setattr("sheetgpt.loader.MAX_UPLOAD_MB", 0)
    with pytest.raises(FileTooLargeError):
        load_dataset(b"a\n1\n", "big.csv")


def test_empty_file():
    with pytest.raises(EmptyDatasetError):
        load_dataset(b"", "empty.csv")


def test_header_only_file():
    with pytest.raises(EmptyDatasetError):
        load_dataset(b"a,b\n", "header.csv")


def test_load_errors_share_a_base_class():
    assert issubclass(UnsupportedFileError, DatasetLoadError)
    assert issubclass(EmptyDatasetError, DatasetLoadError)


# ============================================================================
# DATASET
# ============================================================================

def test_frame_is_a_copy(cars):
    frame = cars.frame
    frame.loc[0, "Make"] = "Changed"
    assert cars.records[0]["Make"] == "Toyota"


def test_from_records():
    dataset = Dataset.from_records([{"a": "1", "b": "x"}, {"a": "2", "b": None}], "inline")
    assert dataset.filename == "inline"
    assert dataset.records == [{"a": 1, "b": "x"}, {"a": 2, "b": None}]
    assert Dataset.from_records([]).is_empty
