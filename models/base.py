"""Base module for forecast engines.

This module defines the ModelOrder value type and the ForecastEngine abstract base class.
The engine exposes a single stateless operation, fit_and_forecast, which validates its inputs,
delegates fitting and projection to subclass hooks, and checks the produced forecast.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union

import numpy as np

from utils.exceptions import ModelError

logger = logging.getLogger(__name__)

ORDER_MIN = 0
ORDER_MAX = 10
DEFAULT_HORIZON = 150


@dataclass(frozen=True)
class ModelOrder:
    """The (p, d, q) order of an ARIMA model, each term bounded to ORDER_MIN..ORDER_MAX."""

    p: int
    d: int
    q: int

    def __post_init__(self) -> None:
        for name in ("p", "d", "q"):
            value = getattr(self, name)
            # bool is an int subclass but never a meaningful order
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"Parameter {name} must be an integer.")
            if not ORDER_MIN <= value <= ORDER_MAX:
                raise ValueError(f"Parameter {name} must be between {ORDER_MIN} and {ORDER_MAX}.")

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "ModelOrder":
        """
        Build an order from a mapping with 'p', 'd' and 'q' keys.

        Args:
            params: Mapping holding the three order terms.

        Returns:
            The corresponding ModelOrder.

        Raises:
            ValueError: If a key is missing or a term is out of range.
        """
        missing = [key for key in ("p", "d", "q") if key not in params]
        if missing:
            raise ValueError(f"Missing required parameter(s): {missing}")
        return cls(p=params["p"], d=params["d"], q=params["q"])

    @property
    def is_trivial(self) -> bool:
        return self.p == 0 and self.d == 0 and self.q == 0

    def as_tuple(self) -> tuple:
        return (self.p, self.d, self.q)

    def __str__(self) -> str:
        return f"({self.p}, {self.d}, {self.q})"


class ForecastEngine(ABC):
    """Abstract base class for engines that fit a model and project a fixed horizon."""

    model_name: str = "base"

    @staticmethod
    def min_observations(order: ModelOrder) -> int:
        """
        Smallest series length for which a fit of the given order is well-defined.

        After d differences, n - d observations must exceed the p + q coefficients plus the
        innovation variance.

        Args:
            order: Model order to check.

        Returns:
            Minimum number of observations.
        """
        return order.p + order.d + order.q + 2

    def fit_and_forecast(
        self, series: Union[Sequence[float], np.ndarray], order: ModelOrder, horizon: int = DEFAULT_HORIZON
    ) -> np.ndarray:
        """
        Fit a model of the given order to the series and forecast the next steps.

        The engine keeps no state between calls and never mutates the input series.

        Args:
            series: Historical observations, oldest first.
            order: Model order (p, d, q).
            horizon: Number of steps to forecast. Defaults to DEFAULT_HORIZON.

        Returns:
            Read-only float64 array of length horizon, step 1 first.

        Raises:
            ValueError: If order is not a ModelOrder or horizon is not a positive integer.
            ModelError: If the series does not support the fit, the fit fails, or the
                forecast is not usable.
        """
        if not isinstance(order, ModelOrder):
            raise ValueError("order must be a ModelOrder.")
        if not isinstance(horizon, int) or isinstance(horizon, bool) or horizon < 1:
            raise ValueError("horizon must be a positive integer.")

        values = self._prepare_series(series, order)
        self._validate_model_specific_inputs(values, order)

        fitted = self._fit(values, order)
        forecast = np.asarray(self._forecast(fitted, horizon), dtype=np.float64).reshape(-1)

        if forecast.size != horizon:
            raise ModelError(f"Forecast returned {forecast.size} values, expected {horizon}.")
        if not np.all(np.isfinite(forecast)):
            raise ModelError(f"Forecast for order {order} contains non-finite values.")

        # Copy so the caller owns a buffer nobody else references
        result = forecast.copy()
        result.setflags(write=False)
        logger.debug(f"[{self.model_name}] Produced {horizon} forecast steps for order {order}")
        return result

    def _prepare_series(self, series: Union[Sequence[float], np.ndarray], order: ModelOrder) -> np.ndarray:
        """
        Convert the input series to a private 1-D float64 array and check its preconditions.

        Raises:
            ModelError: If the series cannot be converted, is empty, contains non-finite
                values, or is too short for the order.
        """
        try:
            values = np.array(series, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ModelError(f"Series could not be converted to float64: {str(e)}") from e

        if values.ndim != 1:
            raise ModelError(f"Series must be one-dimensional, got shape {values.shape}.")
        if values.size == 0:
            raise ModelError("Cannot fit a model to an empty series.")
        if not np.all(np.isfinite(values)):
            raise ModelError("Series cannot contain NaN or infinite values.")

        required = self.min_observations(order)
        if values.size < required:
            raise ModelError(
                f"Series too short ({values.size}) for order {order}; at least {required} observations required."
            )
        return values

    def _validate_model_specific_inputs(self, values: np.ndarray, order: ModelOrder) -> None:
        """
        Validate inputs specific to a model family.

        Note:
            Placeholder method to be implemented by subclasses if needed.
        """
        pass

    @abstractmethod
    def _fit(self, values: np.ndarray, order: ModelOrder) -> Any:
        """
        Estimate the model parameters.

        Args:
            values: Validated observations, oldest first.
            order: Model order.

        Returns:
            A fitted model object understood by _forecast.

        Raises:
            ModelError: If estimation fails.
        """
        pass

    @abstractmethod
    def _forecast(self, fitted: Any, horizon: int) -> np.ndarray:
        """
        Project the fitted model forward.

        Args:
            fitted: Object returned by _fit.
            horizon: Number of steps to forecast.

        Returns:
            Point forecasts, step 1 first.

        Raises:
            ModelError: If projection fails.
        """
        pass
