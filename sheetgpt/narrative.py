"""
Narrative summary ("data story") and strategic insights.

Everything here is template text filled from DatasetAnalysis; there is no
language model involved.
"""
from typing import List, Optional

import pandas as pd

from sheetgpt.column_stats import ColumnStats, DatasetAnalysis
from sheetgpt.loader import Dataset, coerce_numeric
from sheetgpt.utils import format_fixed, format_number, format_value

NO_DATA_MESSAGE = "No data available for analysis."
MAX_INSIGHTS = 4


# ============================================================================
# NARRATIVE
# ============================================================================

def _numeric_story(analysis: DatasetAnalysis) -> List[str]:
    parts = []
    numeric = analysis.numeric_columns
    text = analysis.text_columns

    by_range = sorted((c for c in numeric if c.has_range), key=lambda c: c.value_range, reverse=True)
    by_mean = sorted((c for c in numeric if c.mean_val is not None), key=lambda c: c.mean_val, reverse=True)

    if len(by_range) >= 2:
        most, least = by_range[0], by_range[-1]
        parts.append(
            f"The data reveals striking contrasts: while {most.name} shows dramatic variation ranging from "
            f"{format_number(most.min_val)} to {format_number(most.max_val)}, {least.name} remains relatively "
            f"stable between {format_number(least.min_val)} and {format_number(least.max_val)}."
        )

    if len(by_mean) >= 2:
        highest, lowest = by_mean[0], by_mean[-1]
        context = []
        if text:
            context_col = text[0].name
            max_context = highest.max_record.get(context_col) if highest.max_record else None
            if max_context:
                context.append(
                    f"The peak {highest.name} of {format_number(highest.max_val)} belongs to {format_value(max_context)},"
                )
            min_context = lowest.min_record.get(context_col) if lowest.min_record else None
            if min_context:
                context.append(
                    f"while the lowest {lowest.name} of {format_number(lowest.min_val)} is found in {format_value(min_context)}."
                )
        if context:
            parts.append(" ".join(context))
        else:
            parts.append(
                f"The highest values cluster around {highest.name} (averaging {format_fixed(highest.mean_val, 1)}), "
                f"significantly outpacing {lowest.name} which averages just {format_fixed(lowest.mean_val, 1)}."
            )

    first = numeric[0]
    if first.mean_val is not None and first.median_val is not None:
        skew = first.mean_val - first.median_val
        if abs(skew) > abs(first.mean_val) * 0.1:
            direction = "higher" if skew > 0 else "lower"
            reason = (
                "a few exceptionally high outliers pull the average up" if skew > 0
                else "some notably low values drag the average down"
            )
            parts.append(
                f"Interestingly, {first.name} shows an asymmetric distribution with most values clustered "
                f"{direction} than the average, suggesting {reason}."
            )
    return parts


def _category_averages(dataset: Dataset, numeric_col: str, text_col: str) -> pd.Series:
    """Mean of ``numeric_col`` per ``text_col`` value, highest first, ties in appearance order."""
    df = dataset.frame
    values = coerce_numeric(df[numeric_col])
    categories = df[text_col]
    mask = values.notna() & categories.notna()
    averages = values[mask].groupby(categories[mask], sort=False).mean()
    return averages.sort_values(ascending=False, kind="stable")


def _categorical_story(analysis: DatasetAnalysis, dataset: Dataset) -> List[str]:
    parts = []
    text = analysis.text_columns
    numeric = analysis.numeric_columns
    total_rows = analysis.total_rows

    # max/min keep the first column on ties
    most_diverse = max(text, key=lambda c: c.unique_count)
    most_concentrated = min(text, key=lambda c: c.unique_count)

    if most_diverse.unique_count > 10:
        parts.append(
            f"The dataset showcases remarkable diversity in {most_diverse.name}, with {most_diverse.unique_count} "
            f"distinct categories creating a rich tapestry of variation."
        )

    if most_concentrated.unique_count <= 10 and most_concentrated.most_common is not None:
        matches = int((dataset.df[most_concentrated.name] == most_concentrated.most_common).sum())
        dominance = round(matches / total_rows * 100)
        parts.append(
            f"In stark contrast, {most_concentrated.name} shows clear patterns of concentration, with "
            f"\"{format_value(most_concentrated.most_common)}\" dominating {dominance}% of all records."
        )

    if numeric:
        num_col, text_col = numeric[0].name, text[0].name
        averages = _category_averages(dataset, num_col, text_col)
        if len(averages) >= 2:
            top_name, top_avg = averages.index[0], float(averages.iloc[0])
            bottom_name, bottom_avg = averages.index[-1], float(averages.iloc[-1])
            sentence = (
                f"Examining {num_col} across different {text_col} categories reveals compelling disparities: "
                f"{format_value(top_name)} leads with an average of {format_fixed(top_avg, 1)}, while "
                f"{format_value(bottom_name)} trails at {format_fixed(bottom_avg, 1)}"
            )
            if bottom_avg != 0:
                ratio = top_avg / bottom_avg
                sentence += f", a {format_fixed(ratio, 1)}x difference that suggests significant categorical influence."
            else:
                sentence += "."
            parts.append(sentence)
    return parts


def _completeness_story(analysis: DatasetAnalysis) -> str:
    missing_cols = [c for c in analysis.column_stats if c.null_count > 0]
    if not missing_cols:
        return (
            "This dataset exemplifies data quality excellence: every single field is complete across all "
            "records, indicating systematic and thorough data collection processes."
        )

    total_missing = sum(c.null_count for c in missing_cols)
    missing_percent = total_missing / (analysis.total_rows * analysis.total_columns) * 100

    if round(missing_percent, 1) > 5:
        worst = max(missing_cols, key=lambda c: c.null_count)
        worst_percent = worst.null_count / analysis.total_rows * 100
        return (
            f"The data's completeness tells its own story: while most information is well-documented, "
            f"{worst.name} stands out with {format_fixed(worst_percent, 1)}% missing entries, possibly "
            f"indicating this information is harder to collect or less consistently tracked."
        )
    return (
        f"What's particularly impressive is the dataset's completeness, with less than "
        f"{format_fixed(missing_percent, 1)}% missing information overall, it reflects meticulous data "
        f"collection practices."
    )


def generate_narrative(analysis: Optional[DatasetAnalysis], dataset: Dataset) -> str:
    """
    Build the data story paragraph.

    Args:
        analysis: Column statistics from analyze_dataset()
        dataset: The dataset the analysis was computed from

    Returns:
        One paragraph of text
    """
    if analysis is None or analysis.total_rows == 0:
        return NO_DATA_MESSAGE

    parts = [
        f"Diving into this dataset of {format_number(analysis.total_rows)} records, we uncover a fascinating "
        f"story across {analysis.total_columns} different dimensions."
    ]

    if len(analysis.numeric_columns) >= 2:
        parts.extend(_numeric_story(analysis))

    if analysis.text_columns:
        parts.extend(_categorical_story(analysis, dataset))

    parts.append(_completeness_story(analysis))
    return " ".join(parts)


# ============================================================================
# INSIGHTS
# ============================================================================

def _is_skewed(col: ColumnStats) -> bool:
    if not col.mean_val or not col.median_val:
        return False
    return abs(col.mean_val - col.median_val) > col.mean_val * 0.3


def generate_insights(analysis: Optional[DatasetAnalysis]) -> List[str]:
    """Return up to four short insights about scale, structure, ranges and completeness."""
    if analysis is None or analysis.total_rows == 0:
        return []

    insights = []
    total_rows = analysis.total_rows

    # Scale
    if total_rows > 50000:
        insights.append(
            f"Massive dataset scale: With {format_number(total_rows)} records, this dataset provides exceptional "
            f"statistical power for trend analysis and pattern detection"
        )
    elif total_rows > 10000:
        insights.append(
            f"Robust dataset size: {format_number(total_rows)} records offer strong analytical confidence and "
            f"reliable statistical insights"
        )
    elif total_rows < 500:
        insights.append(
            f"Focused dataset: {total_rows} carefully curated records ideal for detailed examination and "
            f"case-by-case analysis"
        )

    # Complexity
    avg_unique = sum(c.unique_count for c in analysis.column_stats) / len(analysis.column_stats)
    uniqueness_ratio = avg_unique / total_rows
    if uniqueness_ratio > 0.8:
        insights.append(
            "Exceptionally diverse data: Most fields contain unique values, suggesting rich individual-level "
            "detail and minimal redundancy"
        )
    elif uniqueness_ratio < 0.1:
        insights.append(
            "Pattern-rich structure: Strong categorical groupings indicate clear classification systems and "
            "repeating patterns"
        )
    else:
        insights.append(
            "Balanced complexity: Mix of unique identifiers and categorical patterns provides both detail and "
            "structure"
        )

    # Numeric ranges
    numeric = analysis.numeric_columns
    if numeric:
        if any(c.has_range and c.max_val / max(c.min_val, 1) > 1000 for c in numeric):
            insights.append(
                "Extreme value ranges detected: Some measurements span several orders of magnitude, suggesting "
                "diverse scales that may benefit from logarithmic analysis"
            )
        if any(_is_skewed(c) for c in numeric):
            insights.append(
                "Asymmetric distributions identified: Several metrics show significant skewness, indicating the "
                "presence of influential outliers worth investigating"
            )

    # Completeness
    completion = analysis.complete_field_percent
    if completion == 100:
        insights.append(
            "Perfect data integrity: Complete information across all fields demonstrates exceptional data "
            "quality standards"
        )
    elif completion > 90:
        insights.append(
            f"High data quality: {completion:.0f}% of fields are complete, indicating robust data collection "
            f"processes"
        )
    elif completion < 70:
        insights.append(
            f"Selective data collection: {completion:.0f}% field completion suggests optional or conditional "
            f"data gathering"
        )

    return insights[:MAX_INSIGHTS]


def insight_severity(insight: str) -> str:
    """Classify an insight as "warning", "success" or "info" for its icon."""
    text = insight.lower()
    if any(word in text for word in ("missing", "incomplete", "selective")):
        return "warning"
    if any(word in text for word in ("perfect", "exceptional", "robust")):
        return "success"
    return "info"
