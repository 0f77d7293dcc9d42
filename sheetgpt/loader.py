"""
Dataset loading for uploaded spreadsheets.

This module handles:
- Reading CSV files (with encoding fallback) and the first sheet of Excel files
- Header and cell cleanup (whitespace, empty cells become missing)
- "Try to parse as a number" coercion, column by column
- The immutable Dataset wrapper every view reads from

Dependencies: pandas, numpy, openpyxl (xlsx), xlrd (xls)
"""
import io
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd

from sheetgpt.config import CSV_ENCODINGS, MAX_UPLOAD_MB, SUPPORTED_EXTENSIONS
from sheetgpt.errors import (
    DatasetLoadError,
    EmptyDatasetError,
    FileTooLargeError,
    UnsupportedFileError,
)
from sheetgpt.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# DATASET
# ============================================================================

@dataclass(frozen=True, eq=False)
class Dataset:
    """The parsed records of one uploaded file.

    Never mutated after load. Use ``frame`` to get a copy to work on.
    """
    df: pd.DataFrame
    filename: str = ""

    @property
    def columns(self) -> List[str]:
        return [str(c) for c in self.df.columns]

    @property
    def row_count(self) -> int:
        return len(self.df)

    @property
    def is_empty(self) -> bool:
        return self.df.empty

    @property
    def frame(self) -> pd.DataFrame:
        return self.df.copy()

    @property
    def records(self) -> List[Dict[str, Any]]:
        """Rows as column-name-to-value dicts, missing cells as None."""
        clean = self.df.astype(object).where(self.df.notna(), None)
        return [{str(k): _to_python(v) for k, v in row.items()} for row in clean.to_dict(orient="records")]

    @classmethod
    def from_records(cls, records: List[Dict[str, Any]], filename: str = "") -> "Dataset":
        df = pd.DataFrame.from_records(records) if records else pd.DataFrame()
        return cls(df=_infer_numeric_columns(df), filename=filename)


def _to_python(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value


# ============================================================================
# NUMBER PARSING
# ============================================================================

def parse_number(value: Any) -> Optional[float]:
    """Parse a single cell as a float, or None when it is not a number."""
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        if pd.isna(value):
            return None
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def coerce_numeric(series: pd.Series) -> pd.Series:
    """Per-value number parse; unparseable cells become NaN."""
    return series.map(parse_number).astype(float)


def is_text_column(series: pd.Series) -> bool:
    return pd.api.types.is_object_dtype(series.dtype) or pd.api.types.is_string_dtype(series.dtype)


def _infer_numeric_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Convert text columns to numbers when every non-missing cell parses."""
    for col in df.columns:
        if not is_text_column(df[col]):
            continue
        present = df[col].dropna()
        if present.empty:
            continue
        parsed = coerce_numeric(present)
        if parsed.notna().all():
            numeric = coerce_numeric(df[col])
            whole = numeric.dropna()
            if (whole == whole.round()).all():
                df[col] = numeric.astype("Int64")
            else:
                df[col] = numeric
    return df


# ============================================================================
# FILE READERS
# ============================================================================

def read_csv_bytes(file_bytes: bytes) -> pd.DataFrame:
    """Read CSV bytes as text cells, trying each configured encoding.

    Only decoding failures move on to the next encoding; a malformed
    table fails the same way in every encoding and is reported at once.
    """
    last_error: Optional[Exception] = None

    for encoding in CSV_ENCODINGS:
        try:
            df = pd.read_csv(
                io.BytesIO(file_bytes),
                encoding=encoding,
                dtype=str,
                keep_default_na=False,
                na_values=[""],
                skip_blank_lines=True,
            )
            logger.debug("Parsed CSV with encoding %s", encoding)
            return df
        except pd.errors.EmptyDataError as e:
            raise EmptyDatasetError("The file contains no data.") from e
        except pd.errors.ParserError as e:
            logger.warning("CSV parse failed: %s", e)
            raise DatasetLoadError("Error reading file. Please try again.") from e
        except UnicodeDecodeError as e:
            logger.debug("CSV decode with %s failed: %s", encoding, e)
            last_error = e

    raise DatasetLoadError("Error reading file. Please try again.") from last_error


def read_excel_bytes(file_bytes: bytes, extension: str = ".xlsx") -> pd.DataFrame:
    """Read the first sheet of an Excel workbook."""
    engine = "xlrd" if extension == ".xls" else "openpyxl"
    try:
        return pd.read_excel(io.BytesIO(file_bytes), sheet_name=0, engine=engine)
    except Exception as e:
        raise DatasetLoadError("Error reading file. Please try again.") from e


def _clean_frame(df: pd.DataFrame) -> pd.DataFrame:
    df.columns = [str(c).strip().strip('"') for c in df.columns]

    for col in df.columns:
        if is_text_column(df[col]):
            df[col] = df[col].map(lambda v: v.strip() if isinstance(v, str) else v)
            df[col] = df[col].replace("", np.nan)

    # Drop completely empty rows and columns
    df = df.dropna(how="all", axis=0)
    df = df.dropna(how="all", axis=1)
    return df.reset_index(drop=True)


def load_dataset(file_bytes: bytes, filename: Union[str, Path]) -> Dataset:
    """
    Parse an uploaded CSV or Excel file into a Dataset.

    Args:
        file_bytes: Raw file content
        filename: Original file name; the extension picks the parser

    Returns:
        Dataset holding the parsed records

    Raises:
        UnsupportedFileError: extension is not .csv, .xlsx or .xls
        FileTooLargeError: content exceeds MAX_UPLOAD_MB
        EmptyDatasetError: no rows or no columns after cleanup
        DatasetLoadError: the parser failed
    """
    name = Path(filename).name
    ext = Path(name).suffix.lower()

    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileError("Please upload a CSV or Excel file")

    size_mb = len(file_bytes) / (1024 * 1024)
    if size_mb > MAX_UPLOAD_MB:
        raise FileTooLargeError(f"{name} is {size_mb:.1f} MB; the limit is {MAX_UPLOAD_MB} MB")

    logger.info("Loading %s (%.2f MB)", name, size_mb)

    if ext == ".csv":
        df = read_csv_bytes(file_bytes)
    else:
        df = read_excel_bytes(file_bytes, ext)

    df = _clean_frame(df)
    if df.empty or len(df.columns) == 0:
        logger.warning("%s parsed to an empty table", name)
        raise EmptyDatasetError("The file contains no data.")

    df = _infer_numeric_columns(df)
    logger.info("Loaded %s: %d rows x %d columns", name, len(df), len(df.columns))
    return Dataset(df=df, filename=name)
