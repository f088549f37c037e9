"""Module for the shared forecast session.

The session connects the control surface to the forecast engine. It owns the write-once
historical series, the current model order and the latest published forecast, and guarantees
that only one fit writes the forecast at a time and that readers always see a complete result.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np

from models.base import DEFAULT_HORIZON, ForecastEngine, ModelOrder
from utils.exceptions import ModelError
from utils.logging_utils import log_recompute_failure, log_recompute_start, log_recompute_success

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    COMPUTED = "computed"


def _empty_forecast() -> np.ndarray:
    empty = np.empty(0, dtype=np.float64)
    empty.setflags(write=False)
    return empty


class ForecastSession:
    """Shared state between the control surface, the forecast engine and the display."""

    def __init__(
        self,
        historical: Union[Sequence[float], np.ndarray],
        engine: ForecastEngine,
        horizon: int = DEFAULT_HORIZON,
        order: Optional[ModelOrder] = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            historical: Historical observations, oldest first. Copied once and never mutated.
            engine: Engine used for every recompute.
            horizon: Number of forecast steps per recompute. Defaults to DEFAULT_HORIZON.
            order: Initial model order. Defaults to (1, 1, 1).

        Raises:
            ValueError: If historical is empty, horizon is not positive, or order is not a ModelOrder.
        """
        values = np.array(historical, dtype=np.float64).reshape(-1)
        if values.size == 0:
            raise ValueError("historical series cannot be empty.")
        if not isinstance(horizon, int) or horizon < 1:
            raise ValueError("horizon must be a positive integer.")
        order = order if order is not None else ModelOrder(1, 1, 1)
        if not isinstance(order, ModelOrder):
            raise ValueError("order must be a ModelOrder.")

        values.setflags(write=False)
        self._historical = values
        self.engine = engine
        self.horizon = horizon
        self._order = order

        self._recompute_lock = threading.Lock()
        self.forecast_lock = threading.Lock()
        self._forecast = _empty_forecast()
        self._forecast_order: Optional[ModelOrder] = None
        self._state = SessionState.IDLE
        self._last_error: Optional[Exception] = None
        self.recompute_count = 0
        self.failure_count = 0

        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Optional[Future] = None
        self._executor_lock = threading.Lock()
        self._closed = False

        logger.info(
            f"ForecastSession initialized with {values.size} observations, horizon={horizon}, order={order}"
        )

    @property
    def historical(self) -> np.ndarray:
        return self._historical

    @property
    def order(self) -> ModelOrder:
        return self._order

    def set_order(self, order: ModelOrder) -> None:
        """
        Replace the current order. Takes effect at the start of the next recompute.

        Raises:
            ValueError: If order is not a ModelOrder.
        """
        if not isinstance(order, ModelOrder):
            raise ValueError("order must be a ModelOrder.")
        self._order = order

    @property
    def forecast(self) -> np.ndarray:
        """Latest published forecast (read-only), empty until the first successful recompute."""
        with self.forecast_lock:
            return self._forecast

    @property
    def forecast_order(self) -> Optional[ModelOrder]:
        """Order that produced the published forecast, or None."""
        with self.forecast_lock:
            return self._forecast_order

    @property
    def state(self) -> SessionState:
        with self.forecast_lock:
            return self._state

    @property
    def last_error(self) -> Optional[Exception]:
        """Error of the latest failed recompute, or None after a success."""
        return self._last_error

    @property
    def is_busy(self) -> bool:
        pending = self._pending
        return pending is not None and not pending.done()

    def recompute(self, order: Optional[ModelOrder] = None) -> bool:
        """
        Fit the engine on the historical series and publish the forecast on success.

        Recomputes are serialized: a second caller blocks until the running fit finishes. A
        ModelError is logged and recorded in last_error; the published forecast and the state
        are left untouched. Any other exception is recorded the same way and then re-raised.

        Args:
            order: Order to fit. Defaults to the session's current order, read once at the start.

        Returns:
            True if a new forecast was published, False if the fit failed.

        Raises:
            ValueError: If order is given and is not a ModelOrder.
        """
        with self._recompute_lock:
            snapshot = order if order is not None else self._order
            if not isinstance(snapshot, ModelOrder):
                raise ValueError("order must be a ModelOrder.")

            self.recompute_count += 1
            log_recompute_start(self.engine.model_name, snapshot, int(self._historical.size))
            started = time.perf_counter()
            try:
                result = self.engine.fit_and_forecast(self._historical, snapshot, self.horizon)
            except ModelError as e:
                self.failure_count += 1
                self._last_error = e
                log_recompute_failure(self.engine.model_name, snapshot, e)
                return False
            except Exception as e:
                # Recorded for the status line, then propagated to the caller
                self.failure_count += 1
                self._last_error = e
                log_recompute_failure(self.engine.model_name, snapshot, e)
                raise

            with self.forecast_lock:
                self._forecast = result
                self._forecast_order = snapshot
                self._state = SessionState.COMPUTED
            self._last_error = None
            log_recompute_success(self.engine.model_name, snapshot, int(result.size), time.perf_counter() - started)
            return True

    def submit_recompute(self, order: Optional[ModelOrder] = None) -> Future:
        """
        Queue a recompute on the session's worker thread.

        Triggers run one at a time in submission order. The order is resolved when the
        trigger is submitted.

        Args:
            order: Order to fit. Defaults to the session's current order.

        Returns:
            Future resolving to the result of recompute().

        Raises:
            RuntimeError: If the session has been closed.
        """
        snapshot = order if order is not None else self._order
        with self._executor_lock:
            if self._closed:
                raise RuntimeError("ForecastSession is closed.")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="recompute")
            future = self._executor.submit(self.recompute, snapshot)
            self._pending = future
        return future

    def close(self, wait: bool = True) -> None:
        """Shut down the worker thread, optionally waiting for queued recomputes."""
        with self._executor_lock:
            self._closed = True
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
            logger.info("ForecastSession worker stopped")

    def __enter__(self) -> "ForecastSession":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
