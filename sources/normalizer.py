"""Module for normalizing raw provider records into a model-ready series.

The provider encodes values as strings and returns them newest first. This module parses every
value to float64 and produces observations ordered oldest to newest, which is the order the
autoregression requires.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from utils.exceptions import DecodeError

logger = logging.getLogger(__name__)

SOURCE_ORDERS = ("asc", "desc")

# ASCII decimal or exponent notation: no underscores, padding or non-ASCII digits.
# The nan and inf words match here and are rejected as non-finite after parsing.
_NUMBER_PATTERN = re.compile(
    r"[+-]?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class DatedObservation:
    """A single provider observation. The date is kept as the provider's opaque string."""

    date: str
    value: float


def _parse_value(raw_value: Any, index: int) -> float:
    if not isinstance(raw_value, str):
        raise DecodeError(f"Record {index}: value must be a string-encoded number, got {type(raw_value).__name__}.")
    if _NUMBER_PATTERN.fullmatch(raw_value) is None:
        raise DecodeError(f"Record {index}: value {raw_value!r} is not a valid number.")
    value = float(raw_value)
    if not math.isfinite(value):
        raise DecodeError(f"Record {index}: value {raw_value!r} is not a finite number.")
    return value


def normalize_observations(raw: Sequence[Dict[str, Any]], source_order: str = "desc") -> List[DatedObservation]:
    """
    Parse raw records into observations ordered oldest first.

    Normalization is all-or-nothing: a single bad record fails the whole call.

    Args:
        raw: Raw provider records with 'date' and 'value' keys.
        source_order: Date order of the raw records, 'desc' (newest first, as requested from
            the provider) or 'asc'. Defaults to 'desc'.

    Returns:
        List of observations, oldest first, one per input record.

    Raises:
        ValueError: If source_order is not 'asc' or 'desc'.
        DecodeError: If a record is malformed or a value is not a finite number.
    """
    if source_order not in SOURCE_ORDERS:
        raise ValueError(f"source_order must be one of {SOURCE_ORDERS}, got {source_order!r}.")

    observations = []
    for index, record in enumerate(raw):
        if not isinstance(record, dict) or "date" not in record or "value" not in record:
            raise DecodeError(f"Record {index}: expected a mapping with 'date' and 'value'.")
        observations.append(DatedObservation(date=str(record["date"]), value=_parse_value(record["value"], index)))

    if source_order == "desc":
        observations.reverse()

    logger.debug(f"Normalized {len(observations)} records from {source_order} provider order")
    return observations


def normalize(raw: Sequence[Dict[str, Any]], source_order: str = "desc") -> np.ndarray:
    """
    Parse raw records into the numeric series fed to the forecast engine.

    Args:
        raw: Raw provider records with 'date' and 'value' keys.
        source_order: Date order of the raw records ('desc' or 'asc'). Defaults to 'desc'.

    Returns:
        Read-only float64 array, oldest first, with one value per input record.

    Raises:
        ValueError: If source_order is invalid.
        DecodeError: If any record cannot be decoded.
    """
    observations = normalize_observations(raw, source_order=source_order)
    values = np.array([obs.value for obs in observations], dtype=np.float64)
    values.setflags(write=False)
    return values


def observations_to_frame(observations: Sequence[DatedObservation]) -> pd.DataFrame:
    """
    Tabulate observations for inspection and logging.

    Args:
        observations: Observations, oldest first.

    Returns:
        DataFrame with 'date' and 'value' columns in the given order.
    """
    return pd.DataFrame(
        {
            "date": [obs.date for obs in observations],
            "value": np.array([obs.value for obs in observations], dtype=np.float64),
        }
    )
