"""Tests for the PayPal Orders API client."""

from unittest.mock import MagicMock

import pytest
import requests

from config import PAYPAL_LIVE_URL, PAYPAL_SANDBOX_URL
from funnel.errors import ConfigurationError, UpstreamError
from utils.clients.paypal import PayPalClient


def _response(payload, status: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.text = "paypal says no"
    response.json.return_value = payload
    return response


def _client(settings, *responses) -> PayPalClient:
    session = MagicMock()
    session.post.side_effect = list(responses)
    return PayPalClient(settings, session=session)


def test_api_url_follows_environment(settings):
    assert settings.paypal_api_url == PAYPAL_SANDBOX_URL

    settings.ENVIRONMENT = "production"
    assert settings.paypal_api_url == PAYPAL_LIVE_URL

    settings.PAYPAL_API_URL = "https://paypal.test/"
    assert settings.paypal_api_url == "https://paypal.test"


def test_get_access_token_uses_client_credentials(settings):
    client = _client(settings, _response({"access_token": "tok"}))

    assert client.get_access_token() == "tok"

    args, kwargs = client.session.post.call_args
    assert args[0] == f"{PAYPAL_SANDBOX_URL}/v1/oauth2/token"
    assert kwargs["data"] == {"grant_type": "client_credentials"}
    assert kwargs["auth"].username == "paypal-id"
    assert kwargs["auth"].password == "paypal-secret"


def test_missing_credentials_raise_configuration_error(settings):
    settings.PAYPAL_CLIENT_SECRET = None
    client = _client(settings)

    assert client.configured is False
    with pytest.raises(ConfigurationError):
        client.create_order("499.00")
    client.session.post.assert_not_called()


def test_create_order_posts_capture_intent(settings):
    client = _client(settings, _response({"access_token": "tok"}), _response({"id": "ORDER-1"}, status=201))

    assert client.create_order("499.00") == "ORDER-1"

    args, kwargs = client.session.post.call_args
    assert args[0] == f"{PAYPAL_SANDBOX_URL}/v2/checkout/orders"
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["json"] == {
        "intent": "CAPTURE",
        "purchase_units": [{"amount": {"currency_code": "USD", "value": "499.00"}}],
    }


def test_create_order_without_id_is_an_upstream_error(settings):
    client = _client(settings, _response({"access_token": "tok"}), _response({}))

    with pytest.raises(UpstreamError):
        client.create_order("499.00")


def test_capture_order_returns_payload(settings):
    client = _client(
        settings,
        _response({"access_token": "tok"}),
        _response({"id": "ORDER-1", "status": "COMPLETED"}),
    )

    data = client.capture_order("ORDER-1")

    assert data["status"] == "COMPLETED"
    args, _ = client.session.post.call_args
    assert args[0] == f"{PAYPAL_SANDBOX_URL}/v2/checkout/orders/ORDER-1/capture"


def test_rejected_token_request_is_an_upstream_error(settings):
    client = _client(settings, _response({"error": "invalid_client"}, status=401))

    with pytest.raises(UpstreamError):
        client.get_access_token()


def test_timeout_is_an_upstream_error(settings):
    client = _client(settings, requests.ReadTimeout("slow"))

    with pytest.raises(UpstreamError):
        client.get_access_token()
    assert client.session.post.call_count == 1
