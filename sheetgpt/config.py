"""
Runtime settings, read once at import.

Values come from Streamlit secrets when available, otherwise from
environment variables, otherwise the defaults below.
"""
import os


def get_setting(name: str, default: str) -> str:
    """Get a setting from Streamlit secrets or environment."""
    try:
        import streamlit as st
        if hasattr(st, "secrets") and name in st.secrets:
            return str(st.secrets[name])
    except Exception:
        # No secrets.toml outside of a Streamlit run
        pass
    return os.environ.get(name, default)


def _get_int(name: str, default: int) -> int:
    raw = get_setting(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


LOG_LEVEL = get_setting("LOG_LEVEL", "INFO").upper()

# Upload limits
MAX_UPLOAD_MB = _get_int("SHEETGPT_MAX_UPLOAD_MB", 10)
SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".xls")
# latin-1 decodes any byte sequence, so it goes last
CSV_ENCODINGS = ("utf-8", "cp1252", "latin-1")

# Data table
ROWS_PER_PAGE = _get_int("SHEETGPT_ROWS_PER_PAGE", 10)
CELL_DISPLAY_LIMIT = 50

# Dashboard chart sizes
BAR_GROUP_LIMIT = 10
PIE_GROUP_LIMIT = 6
LINE_ROW_LIMIT = _get_int("SHEETGPT_LINE_ROW_LIMIT", 20)
SCATTER_ROW_LIMIT = _get_int("SHEETGPT_SCATTER_ROW_LIMIT", 50)
CHART_COLORS = ["#3B82F6", "#10B981", "#F59E0B", "#EF4444", "#8B5CF6", "#F97316"]
