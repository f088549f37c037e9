"""Unit tests for the inflation series fetcher.

The requests session is replaced with a MagicMock so no network access happens.
"""

import pytest
import requests
from unittest.mock import MagicMock

from sources.inflation_api import InflationSeriesFetcher
from utils.exceptions import ConfigError, DecodeError, NetworkError

BASE_URL = "https://api.example.com/v1/"
TOKEN = "secret-token"


def _response(status_code=200, payload=None, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def http():
    """Mock requests session returning a two-record descending payload."""
    session = MagicMock()
    session.get.return_value = _response(payload={
        "inflation": [
            {"date": "2024-02-01", "value": "4.50", "country": "brazil"},
            {"date": "2024-01-01", "value": "4.51", "country": "brazil"},
        ]
    })
    return session


@pytest.fixture
def fetcher(http):
    return InflationSeriesFetcher(BASE_URL, TOKEN, timeout_seconds=5.0, session=http)


# --- Construction ---

@pytest.mark.parametrize("base_url, token, error_msg", [
    (None, TOKEN, "URL_BASE"),
    ("   ", TOKEN, "URL_BASE"),
    (BASE_URL, None, "API_TOKEN"),
    (BASE_URL, "", "API_TOKEN"),
])
def test_missing_credentials_raise_config_error(base_url, token, error_msg):
    """Tests that a missing base URL or token is reported before any request is made."""
    with pytest.raises(ConfigError, match=error_msg):
        InflationSeriesFetcher(base_url, token, session=MagicMock())


def test_non_positive_timeout_raises_value_error():
    with pytest.raises(ValueError, match="timeout_seconds must be positive"):
        InflationSeriesFetcher(BASE_URL, TOKEN, timeout_seconds=0, session=MagicMock())


# --- Request ---

def test_fetch_sends_historical_descending_request(fetcher, http):
    """
    Scenario: A series is requested for a country.
    Assumptions: One GET to {base}/inflation with the historical, sort and token parameters.
    """
    fetcher.fetch("brazil")

    http.get.assert_called_once()
    args, kwargs = http.get.call_args
    assert args[0] == "https://api.example.com/v1/inflation"
    assert kwargs["params"] == {
        "country": "brazil",
        "historical": "true",
        "sortBy": "date",
        "sortOrder": "desc",
        "token": TOKEN,
    }
    assert kwargs["timeout"] == 5.0


def test_fetch_returns_records_in_provider_order(fetcher):
    """Tests that records are returned untouched, newest first, extra keys included."""
    records = fetcher.fetch("brazil")
    assert [r["date"] for r in records] == ["2024-02-01", "2024-01-01"]
    assert records[0]["value"] == "4.50"
    assert records[0]["country"] == "brazil"


def test_empty_country_raises_value_error(fetcher, http):
    with pytest.raises(ValueError, match="country_code cannot be empty"):
        fetcher.fetch(" ")
    http.get.assert_not_called()


# --- Failures ---

def test_transport_failure_raises_network_error_without_token(fetcher, http):
    """Tests that transport errors become NetworkError and never leak the credential."""
    http.get.side_effect = requests.ConnectionError(f"failed to reach {BASE_URL}inflation?token={TOKEN}")

    with pytest.raises(NetworkError) as excinfo:
        fetcher.fetch("brazil")

    assert TOKEN not in str(excinfo.value)
    assert "***" in str(excinfo.value)


def test_timeout_raises_network_error(fetcher, http):
    http.get.side_effect = requests.Timeout("read timed out")
    with pytest.raises(NetworkError, match="read timed out"):
        fetcher.fetch("brazil")


@pytest.mark.parametrize("status_code", [401, 404, 500, 503])
def test_error_status_raises_network_error(fetcher, http, status_code):
    """Tests that any non-2xx status is a NetworkError naming the status code."""
    http.get.return_value = _response(status_code=status_code, payload={"error": "nope"})
    with pytest.raises(NetworkError, match=f"HTTP {status_code}"):
        fetcher.fetch("brazil")


def test_invalid_json_raises_decode_error(fetcher, http):
    http.get.return_value = _response(json_error=ValueError("Expecting value"))
    with pytest.raises(DecodeError, match="not valid JSON"):
        fetcher.fetch("brazil")


@pytest.mark.parametrize("payload", [
    {"data": []},
    {"inflation": "4.5"},
    {"inflation": [{"date": "2024-01-01"}]},
    {"inflation": [{"date": "2024-01-01", "value": 4.5}]},
    {"inflation": [{"date": "", "value": "4.5"}]},
    ["not", "a", "mapping"],
])
def test_unexpected_payload_shape_raises_decode_error(fetcher, http, payload):
    """Tests that payloads not matching {'inflation': [{date, value}]} are rejected."""
    http.get.return_value = _response(payload=payload)
    with pytest.raises(DecodeError, match="Unexpected inflation payload shape"):
        fetcher.fetch("brazil")


def test_empty_series_raises_decode_error(fetcher, http):
    http.get.return_value = _response(payload={"inflation": []})
    with pytest.raises(DecodeError, match="empty series"):
        fetcher.fetch("brazil")
