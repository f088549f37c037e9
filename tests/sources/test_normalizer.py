"""Unit tests for the series normalizer."""

import pytest
import numpy as np
import pandas as pd

from sources.normalizer import DatedObservation, normalize, normalize_observations, observations_to_frame
from utils.exceptions import DecodeError

DESCENDING_RECORDS = [
    {"date": "2024-03-01", "value": "3.93"},
    {"date": "2024-02-01", "value": "4.50"},
    {"date": "2024-01-01", "value": "4.51"},
]


# --- Ordering and parsing ---

def test_descending_records_become_oldest_first():
    """
    Scenario: Records arrive newest first, as requested from the provider.
    Assumptions: Observations come out oldest first with exactly parsed values.
    """
    observations = normalize_observations(DESCENDING_RECORDS)

    assert [obs.date for obs in observations] == ["2024-01-01", "2024-02-01", "2024-03-01"]
    assert observations[0] == DatedObservation(date="2024-01-01", value=4.51)
    assert observations[-1].value == 3.93


def test_ascending_records_keep_their_order():
    ascending = list(reversed(DESCENDING_RECORDS))
    observations = normalize_observations(ascending, source_order="asc")
    assert [obs.date for obs in observations] == ["2024-01-01", "2024-02-01", "2024-03-01"]


def test_normalize_returns_read_only_float_series():
    """Tests that the numeric series has one value per record and cannot be modified."""
    series = normalize(DESCENDING_RECORDS)

    assert series.dtype == np.float64
    assert series.size == len(DESCENDING_RECORDS)
    np.testing.assert_array_equal(series, np.array([4.51, 4.50, 3.93]))
    with pytest.raises(ValueError):
        series[0] = 0.0


@pytest.mark.parametrize("raw_value, expected", [
    ("4.5", 4.5),
    ("-0.25", -0.25),
    ("10", 10.0),
    ("1.5e1", 15.0),
    ("+.5", 0.5),
    ("3.", 3.0),
])
def test_value_strings_are_parsed_exactly(raw_value, expected):
    observations = normalize_observations([{"date": "2024-01-01", "value": raw_value}])
    assert observations[0].value == expected


def test_empty_input_gives_empty_output():
    assert normalize_observations([]) == []
    assert normalize([]).size == 0


def test_input_records_are_not_mutated():
    records = [dict(r) for r in DESCENDING_RECORDS]
    normalize_observations(records)
    assert records == DESCENDING_RECORDS


# --- Failures ---

@pytest.mark.parametrize("raw_value, error_msg", [
    ("abc", "Record 1: value 'abc' is not a valid number"),
    ("1_000", "is not a valid number"),
    (" 2.5 ", "is not a valid number"),
    ("\t3\n", "is not a valid number"),
    ("\u0661\u0662", "is not a valid number"),
    ("1e", "is not a valid number"),
    ("-Infinity", "not a finite number"),
    ("", "is not a valid number"),
    ("nan", "not a finite number"),
    ("inf", "not a finite number"),
    (4.5, "must be a string-encoded number"),
    (None, "must be a string-encoded number"),
])
def test_bad_value_raises_decode_error(raw_value, error_msg):
    """Tests that one undecodable value fails the whole normalization."""
    records = [
        {"date": "2024-02-01", "value": "4.50"},
        {"date": "2024-01-01", "value": raw_value},
    ]
    with pytest.raises(DecodeError, match=error_msg):
        normalize_observations(records)


@pytest.mark.parametrize("record", [
    {"date": "2024-01-01"},
    {"value": "4.5"},
    "2024-01-01,4.5",
])
def test_malformed_record_raises_decode_error(record):
    with pytest.raises(DecodeError, match="Record 0: expected a mapping"):
        normalize_observations([record])


def test_unknown_source_order_raises_value_error():
    with pytest.raises(ValueError, match="source_order must be one of"):
        normalize_observations(DESCENDING_RECORDS, source_order="newest")


# --- Tabulation ---

def test_observations_to_frame():
    """Tests that the frame keeps the observation order and the date and value columns."""
    frame = observations_to_frame(normalize_observations(DESCENDING_RECORDS))

    assert isinstance(frame, pd.DataFrame)
    assert list(frame.columns) == ["date", "value"]
    assert frame["date"].tolist() == ["2024-01-01", "2024-02-01", "2024-03-01"]
    assert frame["value"].dtype == np.float64
