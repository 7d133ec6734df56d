"""
PayPal Orders API client for the Speed Funnel.

Creates and captures one-time checkout orders. Each call fetches a fresh
OAuth client-credentials token first.
"""

import logging
from typing import Any, Dict, Optional

import requests
from requests.auth import HTTPBasicAuth
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    retry_if_not_exception_type,
)

from config import Settings
from funnel.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


class PayPalClient:
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.client_id = settings.PAYPAL_CLIENT_ID
        self.client_secret = settings.PAYPAL_CLIENT_SECRET
        self.api_url = settings.paypal_api_url
        self.currency = settings.PAYPAL_CURRENCY
        self.timeout = settings.PAYPAL_TIMEOUT
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def get_access_token(self) -> str:
        """
        Fetch an OAuth access token with the client-credentials grant.

        Raises:
            ConfigurationError: If client ID or secret is missing
            UpstreamError: If PayPal rejects the request or returns no token
        """
        if not self.configured:
            raise ConfigurationError("PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET must be set")

        data = self._request(
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=HTTPBasicAuth(self.client_id, self.client_secret),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        token = data.get("access_token")
        if not token:
            raise UpstreamError("PayPal token response had no access_token")
        return token

    def create_order(self, amount: str) -> str:
        """Create a CAPTURE-intent order for amount and return its ID."""
        token = self.get_access_token()
        data = self._request(
            "/v2/checkout/orders",
            json={
                "intent": "CAPTURE",
                "purchase_units": [
                    {"amount": {"currency_code": self.currency, "value": amount}}
                ],
            },
            headers=self._bearer(token),
        )
        order_id = data.get("id")
        if not order_id:
            raise UpstreamError("PayPal order response had no id")

        logger.info(f"Created PayPal order {order_id} for {amount} {self.currency}")
        return order_id

    def capture_order(self, order_id: str) -> Dict[str, Any]:
        """Capture a previously created order and return PayPal's payload."""
        token = self.get_access_token()
        data = self._request(
            f"/v2/checkout/orders/{order_id}/capture",
            headers=self._bearer(token),
        )
        logger.info(f"Captured PayPal order {order_id}: status={data.get('status')}")
        return data

    @staticmethod
    def _bearer(token: str) -> Dict[str, str]:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}

    def _request(self, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._post(f"{self.api_url}{path}", **kwargs)
        except requests.RequestException as e:
            raise UpstreamError(f"PayPal request to {path} failed: {str(e)}") from e

        if not response.ok:
            logger.error(f"PayPal API error on {path}: {response.status_code} {response.text}")
            raise UpstreamError(f"PayPal API returned {response.status_code} for {path}")

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"PayPal response for {path} was not JSON") from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=(
            retry_if_exception_type(requests.ConnectionError)
            & retry_if_not_exception_type(requests.Timeout)
        ),
        reraise=True,
    )
    def _post(self, url: str, **kwargs: Any) -> requests.Response:
        return self.session.post(url, timeout=self.timeout, **kwargs)
