"""Module for loading and validating configuration for the inflation forecaster.

This module loads the YAML configuration file, validates its structure with schema, and merges it
with the provider credentials read from the environment (optionally from a .env file) into a
single Settings object used at startup.
"""

import copy
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from schema import Schema, And, Optional as SchemaOptional, SchemaError

from models.base import DEFAULT_HORIZON, ORDER_MAX, ORDER_MIN, ModelOrder
from utils.exceptions import ConfigError

logger = logging.getLogger(__name__)

URL_BASE_ENV = "URL_BASE"
API_TOKEN_ENV = "API_TOKEN"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_CONFIG: Dict[str, Any] = {
    "source": {"country": "brazil", "timeout_seconds": 30.0},
    "forecast": {
        "horizon": DEFAULT_HORIZON,
        "order": {"p": 1, "d": 1, "q": 1},
        "require_convergence": False,
    },
    "dashboard": {"refresh_interval_ms": 250, "visible_steps": 20},
    "logging": {"log_dir": "results/logs", "level": "INFO"},
}


def _compact_schema_error(err: SchemaError) -> str:
    """
    Turn a verbose SchemaError into a short, readable message.
    We try err.code first (often the clearest), then fallback to str(err).
    """
    msg = (err.code or str(err) or "").strip()
    msg = " ".join(msg.split())
    return msg


def _order_term() -> And:
    return And(
        lambda x: isinstance(x, int) and not isinstance(x, bool) and ORDER_MIN <= x <= ORDER_MAX,
        error=f"order terms must be integers between {ORDER_MIN} and {ORDER_MAX}",
    )


def _define_config_schema() -> Schema:
    """
    Define the schema for the configuration file.

    Returns:
        Schema for validating the configuration. Every section is optional.
    """
    return Schema({
        SchemaOptional("source"): {
            SchemaOptional("country"): And(str, lambda s: len(s.strip()) > 0, error="`source.country` cannot be empty"),
            SchemaOptional("timeout_seconds"): And(
                lambda x: isinstance(x, (int, float)) and not isinstance(x, bool) and x > 0,
                error="`source.timeout_seconds` must be a positive number",
            ),
        },
        SchemaOptional("forecast"): {
            SchemaOptional("horizon"): And(int, lambda x: x > 0, error="`forecast.horizon` must be a positive integer"),
            SchemaOptional("order"): {
                "p": _order_term(),
                "d": _order_term(),
                "q": _order_term(),
            },
            SchemaOptional("require_convergence"): bool,
        },
        SchemaOptional("dashboard"): {
            SchemaOptional("refresh_interval_ms"): And(int, lambda x: x > 0),
            SchemaOptional("visible_steps"): And(int, lambda x: x > 0),
        },
        SchemaOptional("logging"): {
            SchemaOptional("log_dir"): And(str, len),
            SchemaOptional("level"): And(
                str,
                lambda x: x.upper() in LOG_LEVELS,
                error=f"`logging.level` must be one of {LOG_LEVELS}",
            ),
        },
    })


def validate_config(config: Dict) -> Dict:
    """
    Validate a configuration dictionary and fill in defaults for omitted keys.

    Args:
        config: Configuration dictionary loaded from YAML.

    Returns:
        Validated configuration with every section and key present.

    Raises:
        SchemaError: If the configuration does not match the schema.
    """
    try:
        validated = _define_config_schema().validate(config)
    except SchemaError as e:
        logger.error(f"Configuration validation failed: {_compact_schema_error(e)}")
        raise

    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in validated.items():
        merged[section].update(values)
    logger.info("Configuration validation passed successfully")
    return merged


def load_config(config_path: str = "config.yaml") -> Dict:
    """
    Load and validate a configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file. Defaults to 'config.yaml'.

    Returns:
        Validated configuration dictionary.

    Raises:
        ConfigError: If the file does not exist, is not valid YAML, or does not match the schema.
    """
    if not os.path.exists(config_path):
        logger.error(f"Configuration file not found: {config_path}")
        raise ConfigError(f"Configuration file not found: {config_path}")
    try:
        with open(config_path, "r") as file:
            config = yaml.safe_load(file)
    except yaml.YAMLError as e:
        message = " ".join(str(e).split())
        raise ConfigError(f"Failed to parse YAML file {config_path}: {message}") from e

    if config is None:
        logger.warning(f"Configuration file {config_path} is empty. Using defaults.")
        config = {}
    if not isinstance(config, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a mapping.")

    try:
        return validate_config(config)
    except SchemaError as e:
        raise ConfigError(_compact_schema_error(e)) from e


@dataclass(frozen=True)
class Settings:
    """Startup inputs of a forecasting session."""

    base_url: str
    api_token: str
    country: str
    timeout_seconds: float
    horizon: int
    initial_order: ModelOrder
    require_convergence: bool
    refresh_interval_ms: int
    visible_steps: int
    log_dir: str
    log_level: str


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        logger.error(f"Required environment variable {name} is not set")
        raise ConfigError(f"{name} not found. Set it in the environment or in a .env file.")
    return value.strip()


def load_settings(config_path: Optional[str] = None, env_file: Optional[str] = None) -> Settings:
    """
    Build the startup settings from the configuration file and the environment.

    Provider credentials come from the URL_BASE and API_TOKEN environment variables. A .env
    file is loaded first without overriding variables already set in the process.

    Args:
        config_path: Optional YAML configuration path. Defaults to built-in defaults when None.
        env_file: Optional .env path. Defaults to python-dotenv's lookup of '.env'.

    Returns:
        Settings for the session.

    Raises:
        ConfigError: If credentials are missing or the configuration file is invalid.
    """
    load_dotenv(dotenv_path=env_file, override=False)

    config = load_config(config_path) if config_path is not None else copy.deepcopy(DEFAULT_CONFIG)

    base_url = _require_env(URL_BASE_ENV)
    api_token = _require_env(API_TOKEN_ENV)

    source = config["source"]
    forecast = config["forecast"]
    dashboard = config["dashboard"]
    logging_config = config["logging"]

    return Settings(
        base_url=base_url,
        api_token=api_token,
        country=source["country"].strip(),
        timeout_seconds=float(source["timeout_seconds"]),
        horizon=forecast["horizon"],
        initial_order=ModelOrder.from_mapping(forecast["order"]),
        require_convergence=forecast["require_convergence"],
        refresh_interval_ms=dashboard["refresh_interval_ms"],
        visible_steps=dashboard["visible_steps"],
        log_dir=logging_config["log_dir"],
        log_level=logging_config["level"].upper(),
    )
