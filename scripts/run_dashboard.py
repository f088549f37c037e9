"""
Entry point for the interactive inflation forecast dashboard.

Loads the configuration and provider credentials, acquires the historical inflation series once,
and opens the dashboard where the ARIMA order can be tuned and the forecast recomputed.
"""

import argparse
import logging
import sys
from typing import List, Optional

from utils.dependencies import check_dependencies
from utils.exceptions import ConfigError, DecodeError, NetworkError
from utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive ARIMA forecast of a country's inflation series.")
    parser.add_argument("--config", default="config.yaml", help="Path to the YAML configuration file.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the dashboard until its window is closed.

    Args:
        argv: Command-line arguments. Defaults to sys.argv[1:].

    Returns:
        Process exit code: 0 on a normal exit, 1 if startup failed.
    """
    args = parse_args(argv)
    try:
        check_dependencies()
    except ImportError:
        return 1

    # Imported after the check so a missing library is reported instead of failing the import
    from session.startup import build_session
    from utils.config_utils import load_settings

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Invalid configuration: {str(e)}")
        return 1

    setup_logging(settings.log_dir, settings.log_level)
    try:
        session = build_session(settings)
    except (ConfigError, NetworkError, DecodeError) as e:
        logger.error(f"Startup failed, no historical series available: {str(e)}")
        return 1

    # Imported late so a missing GUI backend does not break startup diagnostics
    from utils.visualizer import ForecastDashboard

    with session:
        dashboard = ForecastDashboard(
            session,
            refresh_interval_ms=settings.refresh_interval_ms,
            visible_steps=settings.visible_steps,
        )
        dashboard.show()
    return 0


if __name__ == "__main__":
    sys.exit(main())
