"""
Razorpay adapter.

Wraps the SDK so the rest of the app only sees storefront errors:
configuration problems become ``ConfigurationError`` and network trouble
becomes ``UpstreamUnavailableError``. Every HTTP call carries a timeout.
"""
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import razorpay
import requests

from storefront.config import settings
from storefront.errors import ConfigurationError, UpstreamUnavailableError, ValidationError

logger = logging.getLogger(__name__)


def _looks_like_placeholder(value: Optional[str]) -> bool:
    if not value:
        return True
    value = value.strip()
    return value in ("your_key_id", "your_key_secret") or value.startswith("your_")


class RazorpayGateway:
    def __init__(self, key_id: Optional[str], key_secret: Optional[str],
                 currency: str = "INR", timeout: float = 10.0):
        self.key_id = key_id
        self.key_secret = key_secret
        self.currency = currency
        self.timeout = timeout
        self.client = razorpay.Client(auth=(key_id or "", key_secret or ""))

    def _ensure_configured(self):
        if _looks_like_placeholder(self.key_id) or _looks_like_placeholder(self.key_secret):
            raise ConfigurationError(
                "Razorpay keys missing/placeholder. Set real RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET"
            )

    def create_order(self, amount: int, receipt: str, notes: Dict[str, Any]) -> Dict[str, Any]:
        """Create a gateway order for ``amount`` minor units and return its payload."""
        self._ensure_configured()

        try:
            order = self.client.order.create(
                {
                    "amount": amount,
                    "currency": self.currency,
                    "receipt": receipt,
                    "notes": notes,
                },
                timeout=self.timeout,
            )
        except razorpay.errors.BadRequestError as e:
            if "authentication" in str(e).lower():
                logger.error("Razorpay rejected our credentials")
                raise ConfigurationError(
                    "Razorpay authentication failed. Check RAZORPAY_KEY_ID/RAZORPAY_KEY_SECRET"
                ) from e
            raise ValidationError(f"Payment gateway rejected the order: {e}") from e
        except (razorpay.errors.ServerError, razorpay.errors.GatewayError) as e:
            logger.warning(f"Razorpay unavailable: {e}")
            raise UpstreamUnavailableError("Payment gateway unavailable. Please try again later.") from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"Razorpay unreachable: {e}")
            raise UpstreamUnavailableError("Payment gateway unavailable. Please try again later.") from e

        return order

    def verify_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        """HMAC-SHA256(secret, "<order_id>|<payment_id>") compared in constant time."""
        if not self.key_secret:
            raise ConfigurationError("Server misconfigured: RAZORPAY_KEY_SECRET missing")

        # hex digests are ascii; anything else cannot match
        if not signature.isascii():
            return False

        try:
            return self.client.utility.verify_payment_signature({
                "razorpay_order_id": gateway_order_id,
                "razorpay_payment_id": gateway_payment_id,
                "razorpay_signature": signature,
            })
        except razorpay.errors.SignatureVerificationError:
            return False


@lru_cache(maxsize=1)
def get_payment_gateway() -> RazorpayGateway:
    return RazorpayGateway(
        settings.razorpay_key_id,
        settings.razorpay_key_secret,
        currency=settings.currency,
        timeout=settings.gateway_timeout_seconds,
    )
