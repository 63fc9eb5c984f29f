"""Stripe adapter: Checkout Session creation and webhook verification.

Both go through the official SDK. SDK errors are translated into AppErrors
here so the services never import stripe themselves.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import stripe

from config.settings import settings
from src.tc_common.errors import ExternalServiceError, PaymentSignatureError
from src.tc_common.money import HUNDRED, to_usd

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSession:
    id: str
    url: str


def verify_webhook(
    payload: bytes, header: str | None, secret: str, tolerance_seconds: int = 300
) -> dict[str, Any]:
    """Check the Stripe-Signature header against the raw body, then return the event.

    Fails closed: no secret, no header, a bad or stale signature and a body
    that is not JSON all raise PaymentSignatureError.
    """
    if not secret:
        raise PaymentSignatureError("Webhook secret not configured")
    if not header:
        raise PaymentSignatureError("Missing Stripe-Signature header")
    try:
        stripe.Webhook.construct_event(payload, header, secret, tolerance=tolerance_seconds)
    except stripe.SignatureVerificationError as exc:
        logger.warning("Stripe webhook signature rejected: %s", exc)
        raise PaymentSignatureError() from None
    except ValueError:
        raise PaymentSignatureError("Webhook body is not valid JSON") from None
    event = json.loads(payload)
    if not isinstance(event, dict):
        raise PaymentSignatureError("Webhook body is not a JSON object")
    return event


class StripeClient:
    def __init__(
        self,
        secret_key: str | None = None,
        public_base_url: str | None = None,
        sdk: Any = stripe,
    ) -> None:
        self._secret_key = secret_key if secret_key is not None else settings.STRIPE_SECRET_KEY
        self._public_base = (public_base_url or settings.PUBLIC_BASE_URL).rstrip("/")
        self._sdk = sdk

    @property
    def enabled(self) -> bool:
        return bool(self._secret_key)

    async def create_checkout_session(
        self, order_id: str, description: str, total_usd: Decimal
    ) -> CheckoutSession:
        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "quantity": 1,
                    "price_data": {
                        "currency": "usd",
                        "unit_amount": int(to_usd(total_usd) * HUNDRED),
                        "product_data": {"name": description},
                    },
                }
            ],
            "success_url": f"{self._public_base}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self._public_base}/checkout/cancel",
            "client_reference_id": order_id,
            "metadata": {"purchase_order_id": order_id},
            # copied onto the charge so charge.refunded events can be matched
            "payment_intent_data": {"metadata": {"purchase_order_id": order_id}},
            "idempotency_key": f"checkout_{order_id}",
        }
        try:
            # the SDK call is blocking
            session = await asyncio.to_thread(
                self._sdk.checkout.Session.create, api_key=self._secret_key, **params
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe checkout for %s failed: %s", order_id, exc)
            raise ExternalServiceError("stripe", type(exc).__name__) from exc

        session_id = getattr(session, "id", None)
        url = getattr(session, "url", None)
        if not session_id or not url:
            logger.warning("Stripe checkout for %s returned no session id or url", order_id)
            raise ExternalServiceError("stripe", "malformed checkout session")
        return CheckoutSession(id=session_id, url=url)
