"""
Exception types raised by the sheetgpt package.

Library code raises these; the Streamlit layer catches SheetGPTError,
shows the message to the user and stops the current action.
"""


class SheetGPTError(Exception):
    """Base class for all sheetgpt errors."""


class DatasetLoadError(SheetGPTError):
    """The uploaded file could not be turned into a dataset."""


class UnsupportedFileError(DatasetLoadError):
    """The file extension is not CSV or Excel."""


class FileTooLargeError(DatasetLoadError):
    """The file exceeds the configured upload limit."""


class EmptyDatasetError(DatasetLoadError):
    """The file parsed but holds no rows or no columns."""


class EmptyQueryError(SheetGPTError):
    """A blank question was submitted to the query dispatcher."""
