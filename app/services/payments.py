"""Stripe Checkout wrapper.

Creates hosted checkout sessions for a single engraving and verifies the
signature of webhook deliveries. The API key is passed on every call so
no module-level ``stripe.api_key`` is needed.
"""
from __future__ import annotations

import json
import logging
from typing import Any

import stripe

from app.config import Settings
from app.errors import ConfigurationError
from app.models import CheckoutSession

logger = logging.getLogger(__name__)

PRODUCT_NAME = "Custom Laser Engraving"
PRODUCT_DESCRIPTION = "Custom photo laser-engraved on wood"
UNIT_AMOUNT_CENTS = 4000  # $40.00
CURRENCY = "usd"


class PaymentService:
    """Minimal Stripe client for one fixed product."""

    def __init__(
        self,
        *,
        secret_key: str,
        webhook_secret: str | None = None,
        api_version: str | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self._api_version = api_version

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentService":
        if not settings.stripe_secret_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not configured")
        return cls(
            secret_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            api_version=settings.stripe_api_version,
        )

    @property
    def can_verify_webhooks(self) -> bool:
        return bool(self._webhook_secret)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def create_checkout_session(
        self,
        *,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        params: dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": CURRENCY,
                        "product_data": {
                            "name": PRODUCT_NAME,
                            "description": PRODUCT_DESCRIPTION,
                        },
                        "unit_amount": UNIT_AMOUNT_CENTS,
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            "api_key": self._secret_key,
        }
        if self._api_version:
            params["stripe_version"] = self._api_version

        session = stripe.checkout.Session.create(**params)
        logger.info("Created checkout session %s", session.id)
        return CheckoutSession(id=session.id, url=session.url)

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def construct_event(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify *signature* over the raw *payload* and return the event.

        Raises ``stripe.SignatureVerificationError`` on a bad signature and
        ``ValueError`` when the body is not valid JSON.
        """

        if not self._webhook_secret:
            raise ConfigurationError("STRIPE_WEBHOOK_SECRET is not configured")
        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(body, signature, self._webhook_secret)
        return json.loads(body)
