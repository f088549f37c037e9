"""Module for the ARIMA forecast engine.

This module defines ARIMAForecastEngine, which fits non-seasonal ARIMA models with the
statsmodels state-space implementation and projects point forecasts, extending the
ForecastEngine base class.
"""

import logging
import warnings
from typing import Any

import numpy as np
from statsmodels.tools.sm_exceptions import ConvergenceWarning
from statsmodels.tsa.arima.model import ARIMA

from models.base import ForecastEngine, ModelOrder
from utils.exceptions import ModelError

logger = logging.getLogger(__name__)

# Numeric faults statsmodels and numpy raise for degenerate specifications
_NUMERIC_FAULTS = (ValueError, IndexError, ArithmeticError, np.linalg.LinAlgError)


class ARIMAForecastEngine(ForecastEngine):
    """ARIMA(p, d, q) engine estimated by maximum likelihood."""

    model_name = "arima"

    def __init__(
        self,
        require_convergence: bool = False,
        enforce_stationarity: bool = True,
        enforce_invertibility: bool = True,
    ) -> None:
        """
        Initialize the ARIMA engine.

        Args:
            require_convergence: Whether a fit whose optimizer did not converge is rejected
                with ModelError. When False it is only logged. Defaults to False.
            enforce_stationarity: Whether to constrain the AR parameters to stationarity. Defaults to True.
            enforce_invertibility: Whether to constrain the MA parameters to invertibility. Defaults to True.
        """
        self.require_convergence = require_convergence
        self.enforce_stationarity = enforce_stationarity
        self.enforce_invertibility = enforce_invertibility
        logger.info(
            f"Initialized {self.__class__.__name__} with require_convergence={require_convergence}, "
            f"enforce_stationarity={enforce_stationarity}, enforce_invertibility={enforce_invertibility}"
        )

    def _validate_model_specific_inputs(self, values: np.ndarray, order: ModelOrder) -> None:
        """
        Reject orders that do not describe an ARIMA model.

        Raises:
            ModelError: If all order terms are zero.
        """
        if order.is_trivial:
            raise ModelError("Order (0, 0, 0) is not a valid ARIMA specification.")

    def _fit(self, values: np.ndarray, order: ModelOrder) -> Any:
        """
        Fit the ARIMA model to the observations.

        Raises:
            ModelError: If estimation fails, or if it did not converge while require_convergence is set.
        """
        logger.info(f"Fitting ARIMA with order={order.as_tuple()} on {values.size} observations")
        try:
            with warnings.catch_warnings(record=True) as captured:
                warnings.simplefilter("always")
                model = ARIMA(
                    values,
                    order=order.as_tuple(),
                    enforce_stationarity=self.enforce_stationarity,
                    enforce_invertibility=self.enforce_invertibility,
                )
                result = model.fit()
        except _NUMERIC_FAULTS as e:
            logger.error(f"Failed to fit ARIMA model with order {order}: {str(e)}", exc_info=True)
            raise ModelError(f"ARIMA fitting failed for order {order}: {str(e)}") from e

        converged = True
        retvals = getattr(result, "mle_retvals", None)
        if isinstance(retvals, dict):
            converged = bool(retvals.get("converged", True))
        for caught in captured:
            if issubclass(caught.category, ConvergenceWarning):
                converged = False
            else:
                logger.debug(f"ARIMA fit warning for order {order}: {caught.message}")

        if not converged:
            if self.require_convergence:
                raise ModelError(f"ARIMA order {order} failed to converge.")
            logger.warning(f"ARIMA order {order} did not converge; keeping the last optimizer estimate")

        logger.info("ARIMA model fitted successfully")
        return result

    def _forecast(self, fitted: Any, horizon: int) -> np.ndarray:
        """
        Generate point forecasts from the fitted model.

        Raises:
            ModelError: If the projection fails.
        """
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                predictions = fitted.forecast(steps=horizon)
        except _NUMERIC_FAULTS as e:
            logger.error(f"ARIMA forecast failed: {str(e)}", exc_info=True)
            raise ModelError(f"ARIMA forecast failed: {str(e)}") from e

        if predictions is None:
            raise ModelError("ARIMA forecast returned no values.")
        return np.asarray(predictions, dtype=np.float64)
