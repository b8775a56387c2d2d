"""
Razorpay payment gateway client.

Talks to the Orders REST API with HTTP basic auth (key_id / key_secret) and
computes the checkout signature Razorpay expects clients to verify:
HMAC-SHA256(key_secret, "<order_id>|<payment_id>") as lowercase hex.

Order creation is not idempotent on the gateway side, so it is never retried.
"""

import hashlib
import hmac
import logging

import requests

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised when the payment gateway rejects or fails a request."""


class RazorpayClient:
    """Minimal Razorpay Orders API client."""

    BASE_URL = "https://api.razorpay.com/v1"

    def __init__(self, key_id: str, key_secret: str, timeout: float = 15):
        if not key_id:
            raise ValueError("key_id is required")
        if not key_secret:
            raise ValueError("key_secret is required")

        self.key_id = key_id
        self._key_secret = key_secret
        self._timeout = timeout

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> dict:
        """
        Create an order.

        Args:
            amount: Amount in the smallest currency unit (paise for INR)
            currency: ISO currency code
            receipt: Caller-chosen receipt id
            notes: Free-form key/value metadata stored on the order

        Returns:
            Gateway order dict (id, amount, currency, receipt, status, ...)

        Raises:
            PaymentGatewayError: On connection failure or non-2xx response
        """
        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
            "notes": notes or {},
        }

        try:
            response = requests.post(
                f"{self.BASE_URL}/orders",
                json=payload,
                auth=(self.key_id, self._key_secret),
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Razorpay connection failed: {e}")
            raise PaymentGatewayError(f"Connection failed: {e}")

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Razorpay returned invalid JSON: {response.text}")
            raise PaymentGatewayError("Invalid response from gateway")

        if not response.ok:
            description = (data.get("error") or {}).get("description", "Unknown error")
            logger.error(f"Razorpay order creation failed ({response.status_code}): {description}")
            raise PaymentGatewayError(f"Gateway error: {description}")

        logger.info(f"Razorpay order created: {data.get('id')}")
        return data

    def payment_signature(self, order_id: str, payment_id: str) -> str:
        """Expected checkout signature for an order/payment pair."""
        return hmac.new(
            self._key_secret.encode("utf-8"),
            f"{order_id}|{payment_id}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
