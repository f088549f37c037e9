"""Module for the one-time startup sequence of a forecasting session.

Fetches the historical series, normalizes it oldest first and builds the ForecastSession before
the display starts. Any failure here is fatal for the session.
"""

import logging
from typing import Optional

from models.arima import ARIMAForecastEngine
from models.base import ForecastEngine
from session.forecast_session import ForecastSession
from sources.inflation_api import InflationSeriesFetcher
from sources.normalizer import normalize_observations, observations_to_frame
from utils.config_utils import Settings
from utils.exceptions import DecodeError
from utils.logging_utils import log_fetch_success

logger = logging.getLogger(__name__)


def build_session(
    settings: Settings,
    fetcher: Optional[InflationSeriesFetcher] = None,
    engine: Optional[ForecastEngine] = None,
) -> ForecastSession:
    """
    Acquire the historical series and create the session that serves the display.

    Args:
        settings: Startup settings.
        fetcher: Optional fetcher. Defaults to an InflationSeriesFetcher built from settings.
        engine: Optional forecast engine. Defaults to an ARIMAForecastEngine built from settings.

    Returns:
        A session in the idle state holding the normalized history.

    Raises:
        ConfigError: If provider credentials are missing.
        NetworkError: If the provider cannot be reached.
        DecodeError: If the payload or a value cannot be decoded.
    """
    if fetcher is None:
        fetcher = InflationSeriesFetcher(
            base_url=settings.base_url,
            api_token=settings.api_token,
            timeout_seconds=settings.timeout_seconds,
        )
    if engine is None:
        engine = ARIMAForecastEngine(require_convergence=settings.require_convergence)

    raw = fetcher.fetch(settings.country)
    observations = normalize_observations(raw, source_order=fetcher.sort_order)
    if not observations:
        raise DecodeError(f"No observations available for '{settings.country}'.")
    log_fetch_success(settings.country, len(observations))

    frame = observations_to_frame(observations)
    logger.info(
        f"[{settings.country}] History covers {frame['date'].iloc[0]} to {frame['date'].iloc[-1]} "
        f"(last value {frame['value'].iloc[-1]:.2f})"
    )

    return ForecastSession(
        frame["value"].to_numpy(),
        engine,
        horizon=settings.horizon,
        order=settings.initial_order,
    )
