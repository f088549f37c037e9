"""Module for retrieving historical inflation series from the remote data provider.

This module provides InflationSeriesFetcher, which issues a single GET request per call for the
full historical series of a country and validates the payload shape before handing the raw
records to the normalizer.
"""

import logging
from typing import Dict, List, Optional

import requests
from schema import Schema, And, Optional as SchemaOptional, SchemaError

from utils.exceptions import ConfigError, DecodeError, NetworkError

logger = logging.getLogger(__name__)

INFLATION_ENDPOINT = "inflation"

# The provider returns values as strings; numeric parsing belongs to the normalizer.
PAYLOAD_SCHEMA = Schema(
    {
        "inflation": [
            {
                "date": And(str, len, error="`date` must be a non-empty string"),
                "value": And(str, error="`value` must be a string-encoded number"),
                SchemaOptional(str): object,
            }
        ],
        SchemaOptional(str): object,
    }
)


class InflationSeriesFetcher:
    """HTTP client for the provider's historical inflation endpoint."""

    # The request asks for descending dates; the normalizer reverses them.
    sort_order: str = "desc"

    def __init__(
        self,
        base_url: Optional[str],
        api_token: Optional[str],
        timeout_seconds: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            base_url: Provider base URL (e.g., 'https://api.example.com/v1/').
            api_token: Provider credential sent as the 'token' query parameter.
            timeout_seconds: Request timeout in seconds. Defaults to 30.0.
            session: Optional requests session, injected in tests. Defaults to a new session.

        Raises:
            ConfigError: If base_url or api_token is missing.
            ValueError: If timeout_seconds is not positive.
        """
        if not base_url or not base_url.strip():
            raise ConfigError("API base URL is not configured (URL_BASE).")
        if not api_token or not api_token.strip():
            raise ConfigError("API token is not configured (API_TOKEN).")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive.")

        self.base_url = base_url.strip()
        self._api_token = api_token.strip()
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/{INFLATION_ENDPOINT}"

    def build_params(self, country_code: str) -> Dict[str, str]:
        """
        Build the query parameters for a full historical series request.

        Args:
            country_code: Provider country identifier (e.g., 'brazil').

        Returns:
            Query parameters including the credential.
        """
        return {
            "country": country_code,
            "historical": "true",
            "sortBy": "date",
            "sortOrder": self.sort_order,
            "token": self._api_token,
        }

    def fetch(self, country_code: str) -> List[Dict[str, str]]:
        """
        Retrieve the raw historical series for a country.

        A single attempt is made; the caller decides whether failure is fatal.

        Args:
            country_code: Provider country identifier (e.g., 'brazil').

        Returns:
            Raw records ({'date': str, 'value': str, ...}) in provider order (descending by date).

        Raises:
            ValueError: If country_code is empty.
            NetworkError: On transport failure or a non-success status code.
            DecodeError: If the body is not JSON, does not match the expected schema, or holds no records.
        """
        if not country_code or not country_code.strip():
            raise ValueError("country_code cannot be empty.")
        country_code = country_code.strip()

        logger.info(f"Requesting historical inflation for '{country_code}' from {self.endpoint}")
        try:
            response = self._session.get(
                self.endpoint,
                params=self.build_params(country_code),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.error(f"Request to {self.endpoint} failed: {self._redact(str(e))}")
            raise NetworkError(f"Could not reach inflation provider: {self._redact(str(e))}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Inflation provider answered status={response.status_code} for '{country_code}'")
            raise NetworkError(f"Inflation provider returned HTTP {response.status_code} for '{country_code}'.")

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError("Inflation provider response was not valid JSON.") from e

        try:
            validated = PAYLOAD_SCHEMA.validate(payload)
        except SchemaError as e:
            message = " ".join((e.code or str(e)).split())
            logger.error(f"Unexpected inflation payload shape: {message}")
            raise DecodeError(f"Unexpected inflation payload shape: {message}") from e

        records = validated["inflation"]
        if not records:
            raise DecodeError(f"Inflation provider returned an empty series for '{country_code}'.")

        logger.info(f"Received {len(records)} inflation records for '{country_code}'")
        return records

    def _redact(self, text: str) -> str:
        return text.replace(self._api_token, "***")
