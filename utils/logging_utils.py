"""Module for logging pipeline events in the inflation forecaster.

This module configures the process-wide logging handlers and provides helpers that log data
acquisition and forecast recomputation events with consistent, model-tagged messages.
"""

import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "dashboard.log"


def setup_logging(log_dir: str = "results/logs", level: str = "INFO") -> None:
    """
    Configure logging to file and console.

    Args:
        log_dir: Directory to store log files. Defaults to 'results/logs'.
        level: Logging level name. Defaults to 'INFO'.

    Raises:
        ValueError: If level is not a known logging level name.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown logging level: {level}")

    os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(os.path.join(log_dir, LOG_FILE_NAME)),
            logging.StreamHandler(),
        ],
    )


def log_fetch_success(country: str, n_records: int) -> None:
    """
    Log a completed historical series acquisition.

    Args:
        country: Country code the series was requested for.
        n_records: Number of records received.

    Raises:
        ValueError: If country is empty or n_records is negative.
    """
    if not country:
        raise ValueError("country cannot be empty.")
    if not isinstance(n_records, int) or n_records < 0:
        raise ValueError("n_records must be a non-negative integer.")

    logger.info(f"[{country}] Historical series loaded with {n_records} observations")


def log_recompute_start(model_name: str, order: Any, n_observations: int) -> None:
    """
    Log the start of a forecast recomputation.

    Args:
        model_name: Name of the model (e.g., 'arima').
        order: Model order used for the fit.
        n_observations: Length of the historical series.

    Raises:
        ValueError: If model_name is empty or n_observations is negative.
    """
    if not model_name:
        raise ValueError("model_name cannot be empty.")
    if not isinstance(n_observations, int) or n_observations < 0:
        raise ValueError("n_observations must be a non-negative integer.")

    logger.info(f"[{model_name}] Recomputing forecast with order={order} on {n_observations} observations")


def log_recompute_success(model_name: str, order: Any, horizon: int, elapsed_seconds: float) -> None:
    """
    Log a successful forecast recomputation.

    Args:
        model_name: Name of the model (e.g., 'arima').
        order: Model order used for the fit.
        horizon: Number of forecast steps published.
        elapsed_seconds: Wall-clock duration of the fit and forecast.

    Raises:
        ValueError: If model_name is empty, horizon is not positive, or elapsed_seconds is negative.
    """
    if not model_name:
        raise ValueError("model_name cannot be empty.")
    if not isinstance(horizon, int) or horizon < 1:
        raise ValueError("horizon must be a positive integer.")
    if not isinstance(elapsed_seconds, (int, float)) or elapsed_seconds < 0:
        raise ValueError("elapsed_seconds must be a non-negative number.")

    logger.info(
        f"[{model_name}] Forecast published for order={order}: {horizon} steps in {float(elapsed_seconds):.3f}s"
    )


def log_recompute_failure(model_name: str, order: Any, exception: Exception) -> None:
    """
    Log a failed forecast recomputation. The previous forecast stays in place.

    Args:
        model_name: Name of the model (e.g., 'arima').
        order: Model order used for the fit.
        exception: Exception that caused the failure.

    Raises:
        ValueError: If model_name is empty or exception is not an exception instance.
    """
    if not model_name:
        raise ValueError("model_name cannot be empty.")
    if not isinstance(exception, BaseException):
        raise ValueError("exception must be an exception instance.")

    logger.warning(f"[{model_name}] No forecast available for order={order}: {str(exception)}")
