"""Exception hierarchy for the inflation forecasting pipeline.

Startup errors (configuration, network, decoding) are fatal for a session, while
model errors are recoverable and are absorbed by the forecast session.
"""


class ForecasterError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(ForecasterError):
    """Required configuration (API base URL, token, config file) is missing or invalid."""


class NetworkError(ForecasterError):
    """The data provider could not be reached or answered with a non-success status."""


class DecodeError(ForecasterError):
    """The provider payload or one of its values could not be decoded."""


class ModelError(ForecasterError):
    """An ARIMA fit or forecast could not produce a usable result."""
