"""
Unit tests for query classification and dispatch.
Tests whether questions pick the right intent and get the right canned answer.
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sheetgpt.errors import EmptyQueryError
from sheetgpt.loader import Dataset, load_dataset
from sheetgpt.query_router import (
    NO_DATA_MESSAGE,
    QueryHistory,
    QueryIntent,
    QueryResponse,
    answer_query,
    classify_query,
    detect_intent,
    extract_top_n,
)


# ============================================================================
# CLASSIFICATION
# ============================================================================

def test_intent_average():
    """Test: 'average' and 'mean' route to AVERAGE"""
    assert detect_intent("What is the average price?")[0] == QueryIntent.AVERAGE
    assert detect_intent("mean horsepower please")[0] == QueryIntent.AVERAGE


def test_intent_min_and_max_is_range():
    """Test: asking for both extremes is a RANGE, not a MAXIMUM"""
    intent, _ = detect_intent("What is the minimum and maximum of each column?")
    assert intent == QueryIntent.RANGE, f"Expected 'range' but got '{intent}'"
    assert detect_intent("show the range of prices")[0] == QueryIntent.RANGE


def test_intent_top_beats_highest():
    """Test: 'top 5 highest' is a TOP_N list, not a single maximum"""
    assert detect_intent("Show me the top 5 highest values")[0] == QueryIntent.TOP_N


def test_intent_keywords_use_word_boundaries():
    """Test: 'model' does not trigger the 'mode' keyword"""
    intent, _ = detect_intent("What is the average price per model?")
    assert intent == QueryIntent.AVERAGE


def test_intent_unique_beats_count():
    """Test: 'how many unique' asks for distinct values"""
    assert detect_intent("How many unique categories are there?")[0] == QueryIntent.UNIQUE


def test_intent_count_and_summary_and_fallback():
    assert detect_intent("How many records are there?")[0] == QueryIntent.COUNT
    assert detect_intent("Give me an overview")[0] == QueryIntent.SUMMARY
    assert detect_intent("tell me something interesting")[0] == QueryIntent.FALLBACK


def test_intent_reason_names_keyword():
    _, reason = detect_intent("What is the LOWEST price?")
    assert "lowest" in reason


def test_extract_top_n():
    assert extract_top_n("top 10 prices") == 10
    assert extract_top_n("top ten prices") == 10
    assert extract_top_n("show the top prices") == 5
    assert extract_top_n("show the top thirteen prices") == 13
    assert extract_top_n("top nineteen") == 19
    assert extract_top_n("top seventeen rows") == 17


def test_top_n_reads_the_number_after_top():
    """Test: other numbers in the question do not set N"""
    assert extract_top_n("show top prices over 30000") == 5
    assert extract_top_n("in 2024, what were the top 3 sales?") == 3
    assert extract_top_n("top-4 makes") == 4
    assert classify_query("show the top thirteen prices", ["price"]).top_n == 13


def test_classify_attaches_mentioned_columns():
    plan = classify_query("Is horsepower related to price?", ["Make", "Price", "Horsepower"])
    assert plan.intent == QueryIntent.CORRELATION
    assert plan.columns == ["Horsepower", "Price"]


def test_classify_matches_underscored_column_names():
    plan = classify_query("average unit price", ["unit_price", "qty"])
    assert plan.columns == ["unit_price"]


def test_column_names_match_whole_words_only():
    """Test: "age" inside "average" and "id" inside "did" are not mentions"""
    assert classify_query("What is the average price?", ["name", "age", "price"]).columns == ["price"]
    assert classify_query("Which id did best?", ["id", "score"]).columns == ["id"]
    assert classify_query("How did it go?", ["id", "x"]).columns == []


def test_column_names_match_plurals():
    assert classify_query("top 3 prices", ["price"]).columns == ["price"]
    assert classify_query("sum of boxes", ["box"]).columns == ["box"]


def test_average_ignores_column_hidden_in_keyword():
    dataset = load_dataset(b"name,age,price\na,30,100\nb,40,300\n", "people.csv")
    result = answer_query("What is the average price?", dataset)
    assert result.response == "The average price is 200.00."


# ============================================================================
# ANSWERS
# ============================================================================

def test_average_of_named_column(cars):
    result = answer_query("What is the average price?", cars)
    assert result.intent == QueryIntent.AVERAGE
    assert result.response == "The average price is 35,833.33."


def test_overall_average(cars):
    result = answer_query("What is the average?", cars)
    # (215000 + 1510) / 12
    assert result.response == "The overall average across all numeric columns is 18,042.50."


def test_maximum_of_named_column(cars):
    result = answer_query("What is the maximum horsepower?", cars)
    assert result.intent == QueryIntent.MAXIMUM
    assert result.response == "The maximum horsepower in the dataset is 473."


def test_minimum_across_dataset(cars):
    result = answer_query("What is the lowest value?", cars)
    assert result.response == "The lowest value in the dataset is 139."


def test_count(cars):
    result = answer_query("How many records are there?", cars)
    assert result.response == "The dataset contains 6 records with 5 columns."


def test_top_n_with_labels(cars):
    result = answer_query("Show me the top 3 highest prices", cars)
    lines = result.response.splitlines()
    assert lines[0] == "Top 3 highest Price values:"
    assert lines[1:] == ["1. 70,000 (BMW)", "2. 40,000 (Tesla)", "3. 35,000 (Ford)"]


def test_range(cars):
    result = answer_query("What is the minimum and maximum of each column?", cars)
    assert result.intent == QueryIntent.RANGE
    assert result.response == "Value ranges by column:\nPrice: 20,000 - 70,000\nHorsepower: 139 - 473"


def test_unique_of_named_column(cars):
    result = answer_query("What are the unique fuel types?", cars)
    assert result.response == "Found 2 unique values in Fuel: Gas, Electric"


def test_unique_preview_is_capped():
    dataset = Dataset.from_records([{"city": f"City {i}"} for i in range(12)])
    result = answer_query("distinct values?", dataset)
    assert result.response.startswith("Found 12 unique values in city: City 0, City 1")
    assert result.response.endswith("City 9...")


def test_correlation(cars):
    result = answer_query("Is price correlated with horsepower?", cars)
    assert result.intent == QueryIntent.CORRELATION
    assert result.response.startswith("The correlation between Price and Horsepower is 0.96")
    assert "strong positive relationship" in result.response


def test_correlation_needs_two_numeric_columns():
    dataset = Dataset.from_records([{"name": "a", "score": 1}, {"name": "b", "score": 2}])
    result = answer_query("any correlation?", dataset)
    assert result.intent == QueryIntent.FALLBACK
    assert "score column" in result.response


def test_most_common(cars):
    result = answer_query("What is the most common fuel?", cars)
    assert result.response == 'The most common Fuel is "Gas", appearing in 4 of 6 records (66.7%).'


def test_summary(cars):
    result = answer_query("Give me a summary", cars)
    lines = result.response.splitlines()
    assert lines[0] == "Dataset summary (6 records):"
    assert lines[1] == "Price: Avg 35833.33, Min 20,000, Max 70,000"
    assert lines[2] == "Horsepower: Avg 251.67, Min 139, Max 473"


def test_fallback_uses_first_numeric_column(cars):
    result = answer_query("tell me something", cars)
    assert result.intent == QueryIntent.FALLBACK
    assert result.response == (
        'Based on your query about "tell me something", here\'s what I found in the Price column: '
        "Average is 35833.33, ranging from 20,000 to 70,000 across 6 records."
    )


def test_numeric_question_on_text_only_data_falls_back():
    dataset = Dataset.from_records([{"a": "x", "b": "y"}, {"a": "z", "b": "w"}])
    result = answer_query("What is the average?", dataset)
    assert result.intent == QueryIntent.FALLBACK
    assert "couldn't find specific numeric data" in result.response
    assert "columns: a, b." in result.response


def test_no_dataset():
    assert answer_query("What is the average?", None).response == NO_DATA_MESSAGE
    assert answer_query("What is the average?", Dataset.from_records([])).response == NO_DATA_MESSAGE


def test_blank_query_rejected(cars):
    with pytest.raises(EmptyQueryError):
        answer_query("   ", cars)


def test_answer_does_not_mutate_dataset(cars):
    before = cars.records
    answer_query("Show me the top 5 highest values", cars)
    assert cars.records == before


# ============================================================================
# HISTORY
# ============================================================================

def test_history_is_newest_first():
    history = QueryHistory()
    history.add(QueryResponse(query="first", intent="count", response="1"))
    history.add(QueryResponse(query="second", intent="count", response="2"))
    assert [r.query for r in history] == ["second", "first"]
    assert len(history) == 2
    history.clear()
    assert len(history) == 0
