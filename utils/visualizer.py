"""Module for the interactive forecast dashboard.

This module provides the ForecastDashboard class, a matplotlib window with p/d/q sliders, a
recompute button, a plot of the history and forecast, and a scrollable list of forecast steps.
The dashboard only reads the session's published forecast; fitting runs on the session worker.
"""

import logging
from concurrent.futures import Future
from typing import List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.widgets import Button, Slider

from models.base import ORDER_MAX, ORDER_MIN, ModelOrder
from session.forecast_session import ForecastSession, SessionState

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "ARIMA Model Visualization"

SLIDER_LABELS = {"p": "p (AR)", "d": "d (I)", "q": "q (MA)"}
SLIDER_HELP = (
    "p: number of past values used to predict the next one.   "
    "d: number of differences applied to make the series stationary.   "
    "q: number of past errors used to adjust the current prediction."
)


def format_forecast_steps(forecast: Sequence[float]) -> List[str]:
    """
    Render forecast values as display lines.

    Args:
        forecast: Forecast values, step 1 first.

    Returns:
        One 'Step {i}: {value}' line per value, 1-based, values with two decimals.
    """
    return [f"Step {i}: {value:.2f}" for i, value in enumerate(forecast, start=1)]


def clamp_offset(offset: int, total: int, size: int) -> int:
    """Clamp a scroll offset so the window of the given size stays inside total lines."""
    return max(0, min(offset, max(total - size, 0)))


def visible_window(lines: Sequence[str], offset: int, size: int) -> List[str]:
    """
    Return the lines visible in a scroll window.

    Args:
        lines: All lines.
        offset: Index of the first visible line; clamped to the valid range.
        size: Number of visible lines.

    Returns:
        The visible slice of lines.

    Raises:
        ValueError: If size is not positive.
    """
    if size < 1:
        raise ValueError("size must be positive.")
    start = clamp_offset(offset, len(lines), size)
    return list(lines[start : start + size])


class ForecastDashboard:
    """Matplotlib control and display surface for a ForecastSession."""

    def __init__(
        self,
        session: ForecastSession,
        refresh_interval_ms: int = 250,
        visible_steps: int = 20,
        title: str = DEFAULT_TITLE,
    ) -> None:
        """
        Initialize the dashboard.

        Args:
            session: Session providing history, order and forecast.
            refresh_interval_ms: Interval of the display refresh timer. Defaults to 250.
            visible_steps: Number of forecast lines visible at once. Defaults to 20.
            title: Window heading. Defaults to DEFAULT_TITLE.

        Raises:
            ValueError: If refresh_interval_ms or visible_steps is not positive.
        """
        if refresh_interval_ms < 1:
            raise ValueError("refresh_interval_ms must be positive.")
        if visible_steps < 1:
            raise ValueError("visible_steps must be positive.")

        self.session = session
        self.refresh_interval_ms = refresh_interval_ms
        self.visible_steps = visible_steps
        self.title = title

        self.fig = None
        self.ax_plot = None
        self.ax_list = None
        self.sliders = {}
        self.button = None
        self._forecast_line = None
        self._list_text = None
        self._status_text = None
        self._timer = None

        self._lines: List[str] = []
        self._scroll_offset = 0
        self._shown_forecast: Optional[np.ndarray] = None
        self._shown_status = ""
        self._future: Optional[Future] = None

    def build(self):
        """
        Create the figure, widgets and artists.

        Returns:
            The matplotlib Figure.
        """
        fig = plt.figure(figsize=(12, 7))
        fig.suptitle(self.title, fontsize=14)

        self.ax_plot = fig.add_axes([0.06, 0.42, 0.56, 0.48])
        history = self.session.historical
        self.ax_plot.plot(np.arange(history.size), history, label="History", marker=".")
        (self._forecast_line,) = self.ax_plot.plot([], [], label="Forecast", linestyle="--")
        self.ax_plot.set_xlabel("Observation")
        self.ax_plot.set_ylabel("Inflation")
        self.ax_plot.legend()
        self.ax_plot.grid(True)

        self.ax_list = fig.add_axes([0.68, 0.42, 0.28, 0.48])
        self.ax_list.set_title("Forecasts")
        self.ax_list.set_xticks([])
        self.ax_list.set_yticks([])
        self._list_text = self.ax_list.text(
            0.03, 0.97, "", va="top", ha="left", family="monospace", transform=self.ax_list.transAxes
        )

        order = self.session.order
        for i, name in enumerate(("p", "d", "q")):
            ax_slider = fig.add_axes([0.18, 0.28 - i * 0.05, 0.55, 0.03])
            slider = Slider(
                ax_slider,
                SLIDER_LABELS[name],
                valmin=ORDER_MIN,
                valmax=ORDER_MAX,
                valinit=getattr(order, name),
                valstep=1,
                valfmt="%d",
            )
            slider.on_changed(self._on_order_changed)
            self.sliders[name] = slider
        fig.text(0.06, 0.12, SLIDER_HELP, fontsize=8, wrap=True)

        ax_button = fig.add_axes([0.78, 0.18, 0.18, 0.07])
        self.button = Button(ax_button, "Recompute forecast")
        self.button.on_clicked(self._on_recompute)

        self._status_text = fig.text(0.06, 0.36, "", fontsize=10)
        fig.canvas.mpl_connect("scroll_event", self._on_scroll)

        self.fig = fig
        self.refresh(force=True)
        return fig

    def current_order(self) -> ModelOrder:
        """Order currently selected on the sliders."""
        return ModelOrder(*(int(round(float(self.sliders[name].val))) for name in ("p", "d", "q")))

    def status_message(self) -> str:
        if self.session.is_busy:
            return "Computing forecast..."
        error = self.session.last_error
        if error is not None:
            return f"No forecast available: {error}"
        if self.session.state is SessionState.COMPUTED:
            forecast = self.session.forecast
            return f"Forecast for order {self.session.forecast_order}: {forecast.size} steps"
        return "Press 'Recompute forecast' to fit the model"

    def refresh(self, force: bool = False) -> bool:
        """
        Redraw the forecast and status if they changed since the last refresh.

        Args:
            force: Redraw even if nothing changed. Defaults to False.

        Returns:
            True if a newly published forecast was drawn.
        """
        self._collect_worker_failure()

        forecast = self.session.forecast
        changed = forecast is not self._shown_forecast
        status = self.status_message()
        if not (changed or force or status != self._shown_status):
            return False

        if changed or force:
            start = self.session.historical.size
            self._forecast_line.set_data(np.arange(start, start + forecast.size), forecast)
            self.ax_plot.relim()
            self.ax_plot.autoscale_view()
            self._lines = format_forecast_steps(forecast)
            self._scroll_offset = 0
            self._shown_forecast = forecast
            self._render_list()

        self._status_text.set_text(status)
        self._shown_status = status
        self.fig.canvas.draw_idle()
        return changed

    def show(self) -> None:
        """Build the window if needed, start the refresh timer and block until it is closed."""
        if self.fig is None:
            self.build()
        self._timer = self.fig.canvas.new_timer(interval=self.refresh_interval_ms)
        self._timer.add_callback(self.refresh)
        self._timer.start()
        logger.info("Dashboard started")
        plt.show()

    def _collect_worker_failure(self) -> None:
        # ModelError is absorbed by the session; anything else surfaces on the future
        future = self._future
        if future is None or not future.done():
            return
        self._future = None
        exception = future.exception()
        if exception is not None:
            logger.error(f"Recompute worker failed: {str(exception)}", exc_info=exception)

    def _render_list(self) -> None:
        window = visible_window(self._lines, self._scroll_offset, self.visible_steps)
        self._list_text.set_text("\n".join(window))

    def _on_order_changed(self, _value) -> None:
        self.session.set_order(self.current_order())

    def _on_recompute(self, _event) -> None:
        order = self.current_order()
        if self.session.is_busy:
            logger.info(f"Recompute for order {order} queued behind the running fit")
        self._future = self.session.submit_recompute(order)
        self.refresh()

    def _on_scroll(self, event) -> None:
        if event.inaxes is not self.ax_list or not self._lines:
            return
        step = -1 if event.button == "up" else 1
        self._scroll_offset = clamp_offset(self._scroll_offset + step, len(self._lines), self.visible_steps)
        self._render_list()
        self.fig.canvas.draw_idle()
