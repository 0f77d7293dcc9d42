"""
Number formatting and column-name helpers shared by the views.
"""
import numbers
import re
from typing import Any, Iterable, List, Optional

import pandas as pd


def format_number(value: float, max_decimals: int = 3) -> str:
    """
    Format a number with thousands separators and at most ``max_decimals``
    fraction digits, dropping trailing zeros (1234.5 -> "1,234.5").
    """
    text = f"{value:,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_money(value: float) -> str:
    """Two fixed decimals with separators (1234.5 -> "1,234.50")."""
    return f"{value:,.2f}"


def format_fixed(value: float, decimals: int = 2) -> str:
    """Fixed decimals, no separators (1234.5 -> "1234.50")."""
    return f"{value:.{decimals}f}"


def format_value(value: Any) -> str:
    """Format a cell for display in a sentence."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, numbers.Real):
        return format_number(float(value))
    return str(value)


def normalize_name(name: str) -> str:
    """Lower-case a column name and treat underscores as spaces."""
    return str(name).lower().replace("_", " ").strip()


def _name_pattern(candidate: str) -> "re.Pattern":
    # Whole words only; a trailing "s"/"es" still counts ("prices" names "price")
    return re.compile(rf"(?<!\w){re.escape(candidate)}(?:e?s)?(?!\w)")


def find_mentioned_columns(text: str, columns: Iterable[str]) -> List[str]:
    """
    Return the columns whose name appears in ``text``, in order of appearance.

    Names match as whole words, case-insensitively, and underscores in column
    names also match spaces. Longer names win when one name contains another.
    """
    q = text.lower()
    hits = []
    for col in sorted(columns, key=lambda c: len(str(c)), reverse=True):
        match = None
        for candidate in (str(col).lower().strip(), normalize_name(col)):
            if candidate:
                match = _name_pattern(candidate).search(q)
            if match:
                break
        if match is None:
            continue
        # Skip names fully covered by an earlier, longer hit
        if any(start <= match.start() < end for _, start, end in hits):
            continue
        hits.append((col, match.start(), match.end()))
    return [col for col, _, _ in sorted(hits, key=lambda h: h[1])]


def first_or_none(items: List[Any]) -> Optional[Any]:
    return items[0] if items else None
