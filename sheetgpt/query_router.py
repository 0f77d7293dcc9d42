"""
Query Classification and Dispatch

Every question typed into the query panel is classified into EXACTLY ONE
intent by keyword matching, then answered by recomputing a simple aggregate
over the dataset. There is no parser and no language model: the keywords
below are the whole grammar.

INTENT PRIORITY (first match wins):
1. RANGE        - "range", or both "min" and "max"
2. TOP_N        - "top" (N is the number or number word right after it, default 5)
3. CORRELATION  - "correlation", "relationship", "related"
4. MOST_COMMON  - "most common", "most frequent", "mode", "popular"
5. AVERAGE      - "average", "mean"
6. MAXIMUM      - "max", "highest", "largest"
7. MINIMUM      - "min", "lowest", "smallest"
8. UNIQUE       - "unique", "distinct", "categories"
9. COUNT        - "how many", "count", "records"
10. SUMMARY     - "summary", "overview", "stats"
11. FALLBACK    - anything else

A column named in the question (whole word, case-insensitive, plural "s"/"es"
allowed, underscores match spaces) becomes the target of the aggregate.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import pandas as pd

from sheetgpt.errors import EmptyQueryError
from sheetgpt.loader import Dataset, is_text_column
from sheetgpt.logger import get_logger
from sheetgpt.utils import find_mentioned_columns, format_money, format_number, format_value

logger = get_logger(__name__)

NO_DATA_MESSAGE = "No data available to analyze. Please upload a dataset first."
DEFAULT_TOP_N = 5
UNIQUE_PREVIEW = 10
SUMMARY_COLUMNS = 3

SUGGESTED_QUERIES = [
    "What is the average price?",
    "What is the maximum horsepower?",
    "Show me the top 5 highest values",
    "What is the minimum and maximum of each column?",
    "How many records are there?",
    "What are the unique categories?",
    "Is there a correlation between the numeric columns?",
    "What is the most common value?",
]


# ============================================================================
# INTENTS
# ============================================================================

class QueryIntent:
    RANGE = "range"
    TOP_N = "top_n"
    CORRELATION = "correlation"
    MOST_COMMON = "most_common"
    AVERAGE = "average"
    MAXIMUM = "maximum"
    MINIMUM = "minimum"
    UNIQUE = "unique"
    COUNT = "count"
    SUMMARY = "summary"
    FALLBACK = "fallback"


# Checked in this order; the first pattern that matches decides the intent
INTENT_PATTERNS: List[Tuple[str, List[str]]] = [
    (QueryIntent.TOP_N, [r"\btop\b"]),
    (QueryIntent.CORRELATION, [r"correlat", r"\brelationship", r"\brelated\b"]),
    (QueryIntent.MOST_COMMON, [r"\bmost common\b", r"\bmost frequent\b", r"\bmode\b", r"\bpopular\b"]),
    (QueryIntent.AVERAGE, [r"\baverage\b", r"\bavg\b", r"\bmean\b"]),
    (QueryIntent.MAXIMUM, [r"\bmax", r"\bhighest\b", r"\blargest\b"]),
    (QueryIntent.MINIMUM, [r"\bmin\b", r"\bminimum\b", r"\blowest\b", r"\bsmallest\b"]),
    (QueryIntent.UNIQUE, [r"\bunique\b", r"\bdistinct\b", r"\bcategories\b"]),
    (QueryIntent.COUNT, [r"\bhow many\b", r"\bcount\b", r"\brecords\b"]),
    (QueryIntent.SUMMARY, [r"\bsummary\b", r"\boverview\b", r"\bstats\b", r"\bstatistics\b"]),
]

RANGE_PATTERN = r"\brange\b"
MIN_PATTERN = r"\bmin(imum)?\b|\blowest\b"
MAX_PATTERN = r"\bmax(imum)?\b|\bhighest\b"

NUMBER_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19, "twenty": 20,
}

TOP_N_PATTERN = re.compile(r"\btop[\s-]+(\d+|" + "|".join(NUMBER_WORDS) + r")\b")


@dataclass
class QueryPlan:
    """The classified form of a question."""
    intent: str
    reason: str
    columns: List[str] = field(default_factory=list)
    top_n: int = DEFAULT_TOP_N


@dataclass
class QueryResponse:
    query: str
    intent: str
    response: str
    timestamp: datetime = field(default_factory=datetime.now)


# ============================================================================
# CLASSIFICATION
# ============================================================================

def detect_intent(query: str) -> Tuple[str, str]:
    """
    Pick one intent for a question.

    Args:
        query: User's question

    Returns:
        Tuple of (intent, reason) where reason names the matched keyword
    """
    q = query.lower().strip()

    if re.search(RANGE_PATTERN, q):
        return QueryIntent.RANGE, "Query asks for a range"
    if re.search(MIN_PATTERN, q) and re.search(MAX_PATTERN, q):
        return QueryIntent.RANGE, "Query asks for both minimum and maximum"

    for intent, patterns in INTENT_PATTERNS:
        for pattern in patterns:
            match = re.search(pattern, q)
            if match:
                return intent, f"Matched keyword '{match.group(0)}'"

    return QueryIntent.FALLBACK, "No keyword matched"


def extract_top_n(query: str, default: int = DEFAULT_TOP_N) -> int:
    """Read N from the word after "top" ("top 10", "top ten"); otherwise ``default``."""
    match = TOP_N_PATTERN.search(query.lower())
    if not match:
        return default
    token = match.group(1)
    value = int(token) if token.isdigit() else NUMBER_WORDS[token]
    return value if value > 0 else default


def classify_query(query: str, columns: Optional[List[str]] = None) -> QueryPlan:
    """Classify a question and attach the columns it mentions."""
    intent, reason = detect_intent(query)
    mentioned = find_mentioned_columns(query, columns or [])
    plan = QueryPlan(intent=intent, reason=reason, columns=mentioned)
    if intent == QueryIntent.TOP_N:
        plan.top_n = extract_top_n(query)
    return plan


# ============================================================================
# COLUMN ROLES
# ============================================================================

def numeric_columns(df: pd.DataFrame) -> List[str]:
    """Columns that actually hold numbers (not text that looks numeric)."""
    return [
        c for c in df.columns
        if pd.api.types.is_numeric_dtype(df[c]) and not pd.api.types.is_bool_dtype(df[c]) and df[c].notna().any()
    ]


def text_columns(df: pd.DataFrame) -> List[str]:
    return [c for c in df.columns if is_text_column(df[c]) and df[c].notna().any()]


def _numbers(df: pd.DataFrame, column: str) -> pd.Series:
    return pd.to_numeric(df[column], errors="coerce").dropna().astype(float)


def _all_numbers(df: pd.DataFrame, columns: List[str]) -> pd.Series:
    if not columns:
        return pd.Series(dtype=float)
    return pd.concat([_numbers(df, c) for c in columns], ignore_index=True)


def _target(plan: QueryPlan, candidates: List[str]) -> Optional[str]:
    for col in plan.columns:
        if col in candidates:
            return col
    return None


# ============================================================================
# ANSWER HANDLERS
# ============================================================================
# Each handler returns None when it cannot apply, and the fallback answers instead.

def _answer_average(df: pd.DataFrame, plan: QueryPlan) -> Optional[str]:
    numeric = numeric_columns(df)
    col = _target(plan, numeric)
    if col:
        return f"The average {col.lower()} is {format_money(_numbers(df, col).mean())}."
    values = _all_numbers(df, numeric)
    if values.empty:
        return None
    return f"The overall average across all numeric columns is {format_money(values.mean())}."


def _answer_maximum(df: pd.DataFrame, plan: QueryPlan) -> Optional[str]:
    numeric = numeric_columns(df)
    col = _target(plan, numeric)
    if col:
        return f"The maximum {col.lower()} in the dataset is {format_number(_numbers(df, col).max())}."
    values = _all_numbers(df, numeric)
    if values.empty:
        return None
    return f"The highest value in the dataset is {format_number(values.max())}."


def _answer_minimum(df: pd.DataFrame, plan: QueryPlan) -> Optional[str]:
    numeric = numeric_columns(df)
    col = _target(plan, numeric)
    if col:
        return f"The minimum {col.lower()} in the dataset is {format_number(_numbers(df, col).min())}."
    values = _all_numbers(df, numeric)
    if values.empty:
        return None
    return f"The lowest value in the dataset is {format_number(values.min())}."


def _answer_count(df: pd.DataFrame, plan: QueryPlan) -> Optional[str]:
    return f"The dataset contains {len(df)} records with {len(df.columns)} columns."


def _row_label(row: pd.Series) -> str:
    """First text value in the row, used to name it in lists."""
    for value in row:
        if isinstance(value, str) and value:
            return f" ({value})"
    return ""


def _answer_top_n(df: pd.DataFrame, plan: QueryPlan) -> Optional[str]:
    numeric = numeric_columns(df)
    if not numeric:
        return None
    col = _target(plan, numeric) or numeric[0]

    ranked = df[df[col].notna()].copy()
    ranked["__value"] = pd.to_numeric(ranked[col], errors="coerce")
    ranked = ranked.sort_values("__value", ascending=False, kind="stable").head(plan.top_n)

    lines = []
    for rank, (_, row) in enumerate(ranked.iterrows(), start=1):
        label = _row_label(row.drop(labels="__value"))
        lines.append(f"{rank}. {format_number(row['__value'])}{label}")
    return f"Top {plan.top_n} highest {col} values:\n" + "\n".join(lines)


def _answer_range(df: pd.DataFrame, plan: QueryPlan) -> Optional[str]:
    numeric = numeric_columns(df)
    if not numeric:
        return None
    targets = [c for c in plan.columns if c in numeric] or numeric
    lines = []
    for col in targets:
        values = _numbers(df, col)
        lines.append(f"{col}: {format_number(values.min())} - {format_number(values.max())}")
    return "Value ranges by column:\n" + "\n".join(lines)


def _answer_unique(df: pd.DataFrame, plan: QueryPlan) -> Optional[str]:
    texts = text_columns(df)
    col = _target(plan, list(df.columns)) or (texts[0] if texts else None)
    if col is None:
        return None
    uniques = pd.unique(df[col].dropna())
    preview = ", ".join(format_value(v) for v in uniques[:UNIQUE_PREVIEW])
    more = "..." if len(uniques) > UNIQUE_PREVIEW else ""
    return f"Found {len(uniques)} unique values in {col}: {preview}{more}"


def _correlation_strength(r: float) -> str:
    strength = abs(r)
    if strength >= 0.7:
        label = "strong"
    elif strength >= 0.4:
        label = "moderate"
    elif strength >= 0.2:
        label = "weak"
    else:
        return "no meaningful linear relationship"
    direction = "positive" if r > 0 else "negative"
    return f"{label} {direction} relationship"


def _answer_correlation(df: pd.DataFrame, plan: QueryPlan) -> Optional[str]:
    numeric = numeric_columns(df)
    named = [c for c in plan.columns if c in numeric]
    pair = named[:2]
    for col in numeric:
        if len(pair) == 2:
            break
        if col not in pair:
            pair.append(col)
    if len(pair) < 2:
        return None

    x_col, y_col = pair
    both = pd.DataFrame({
        "x": pd.to_numeric(df[x_col], errors="coerce"),
        "y": pd.to_numeric(df[y_col], errors="coerce"),
    }).dropna().astype(float)

    if len(both) < 2:
        return f"There are not enough records with both {x_col} and {y_col} to compute a correlation."

    r = both["x"].corr(both["y"])
    if pd.isna(r):
        return f"The correlation between {x_col} and {y_col} cannot be computed because one of them never varies."
    return (
        f"The correlation between {x_col} and {y_col} is {r:.2f} "
        f"({_correlation_strength(r)}) across {len(both)} records."
    )


def _answer_most_common(df: pd.DataFrame, plan: QueryPlan) -> Optional[str]:
    texts = text_columns(df)
    col = _target(plan, list(df.columns)) or (texts[0] if texts else df.columns[0])
    values = df[col].dropna()
    if values.empty:
        return None
    # value_counts keeps first-seen order among ties
    counts = values.value_counts(sort=False)
    top_value = counts.idxmax()
    top_count = int(counts.max())
    share = top_count / len(df) * 100
    return (
        f"The most common {col} is \"{format_value(top_value)}\", appearing in "
        f"{top_count} of {len(df)} records ({share:.1f}%)."
    )


def _answer_summary(df: pd.DataFrame, plan: QueryPlan) -> Optional[str]:
    numeric = numeric_columns(df)
    targets = [c for c in plan.columns if c in numeric] or numeric[:SUMMARY_COLUMNS]
    lines = []
    for col in targets:
        values = _numbers(df, col)
        lines.append(
            f"{col}: Avg {values.mean():.2f}, Min {format_value(values.min())}, Max {format_value(values.max())}"
        )
    body = ("\n" + "\n".join(lines)) if lines else ""
    return f"Dataset summary ({len(df)} records):{body}"


def _answer_fallback(df: pd.DataFrame, query: str) -> str:
    numeric = numeric_columns(df)
    if numeric:
        col = numeric[0]
        values = _numbers(df, col)
        return (
            f"Based on your query about \"{query}\", here's what I found in the {col} column: "
            f"Average is {values.mean():.2f}, ranging from {format_value(values.min())} to "
            f"{format_value(values.max())} across {len(df)} records."
        )

    columns = [str(c) for c in df.columns]
    listed = ", ".join(columns[:5]) + ("..." if len(columns) > 5 else "")
    return (
        f"I analyzed your query \"{query}\" but couldn't find specific numeric data to calculate. "
        f"The dataset has {len(df)} records with columns: {listed}."
    )


HANDLERS: Dict[str, Callable[[pd.DataFrame, QueryPlan], Optional[str]]] = {
    QueryIntent.RANGE: _answer_range,
    QueryIntent.TOP_N: _answer_top_n,
    QueryIntent.CORRELATION: _answer_correlation,
    QueryIntent.MOST_COMMON: _answer_most_common,
    QueryIntent.AVERAGE: _answer_average,
    QueryIntent.MAXIMUM: _answer_maximum,
    QueryIntent.MINIMUM: _answer_minimum,
    QueryIntent.UNIQUE: _answer_unique,
    QueryIntent.COUNT: _answer_count,
    QueryIntent.SUMMARY: _answer_summary,
}


# ============================================================================
# DISPATCH
# ============================================================================

def answer_query(query: str, dataset: Optional[Dataset]) -> QueryResponse:
    """
    Answer a question about the dataset.

    Args:
        query: User's question
        dataset: The loaded dataset, or None when nothing is uploaded

    Returns:
        QueryResponse with the intent that ran and the answer text

    Raises:
        EmptyQueryError: the question is blank
    """
    if not query or not query.strip():
        raise EmptyQueryError("Please enter a question")

    if dataset is None or dataset.is_empty:
        return QueryResponse(query=query, intent=QueryIntent.FALLBACK, response=NO_DATA_MESSAGE)

    df = dataset.frame
    plan = classify_query(query, dataset.columns)
    logger.debug("Query %r -> %s (%s) columns=%s", query, plan.intent, plan.reason, plan.columns)

    handler = HANDLERS.get(plan.intent)
    text = handler(df, plan) if handler else None
    intent = plan.intent
    if text is None:
        intent = QueryIntent.FALLBACK
        text = _answer_fallback(df, query)

    return QueryResponse(query=query, intent=intent, response=text)


class QueryHistory:
    """Answered questions, newest first."""

    def __init__(self) -> None:
        self._responses: List[QueryResponse] = []

    def add(self, response: QueryResponse) -> None:
        self._responses.insert(0, response)

    def clear(self) -> None:
        self._responses.clear()

    def __iter__(self) -> Iterator[QueryResponse]:
        return iter(self._responses)

    def __len__(self) -> int:
        return len(self._responses)

    def __getitem__(self, index: int) -> QueryResponse:
        return self._responses[index]
