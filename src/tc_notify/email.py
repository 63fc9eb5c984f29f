"""Transactional email over the Resend HTTP API.

Only the request/response contract is implemented here: one POST per message.
Disabled (logged and skipped) when RESEND_API_KEY is empty. Callers treat
every send as best effort.
"""

import base64
import logging
from datetime import datetime
from decimal import Decimal

import httpx

from config.settings import settings
from src.tc_common.money import usd_display

logger = logging.getLogger(__name__)

_RESEND_URL = "https://api.resend.com/emails"
_TIMEOUT = 10.0


class EmailSender:
    def __init__(self, api_key: str | None = None, sender: str | None = None) -> None:
        self._api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self._from = sender or settings.EMAIL_FROM

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        attachment: tuple[str, bytes] | None = None,
    ) -> bool:
        if not self._api_key:
            logger.info("Email disabled; would send %r to %s", subject, to)
            return False
        body: dict[str, object] = {"from": self._from, "to": [to], "subject": subject, "html": html}
        if attachment is not None:
            filename, content = attachment
            body["attachments"] = [
                {"filename": filename, "content": base64.b64encode(content).decode()}
            ]
        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
                response = await client.post(
                    _RESEND_URL,
                    json=body,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Email to %s failed: %s", to, exc)
            return False
        return True

    async def send_hold_confirmation(
        self, to: str, credit_type: str, amount_usd: Decimal, expires_at: datetime
    ) -> bool:
        html = (
            "<h1>Credit Hold Confirmed</h1>"
            f"<p>Your hold on <strong>{usd_display(amount_usd)}</strong> of "
            f"<strong>{credit_type}</strong> credits has been placed.</p>"
            f"<p>This hold expires at {expires_at.strftime('%Y-%m-%d %H:%M UTC')}.</p>"
        )
        return await self.send(to, "Credit Hold Confirmed", html)

    async def send_payment_confirmation(self, to: str, order_id: str) -> bool:
        html = (
            "<h1>Payment Confirmed</h1>"
            f"<p>Payment for purchase order <strong>{order_id}</strong> was received.</p>"
            "<p>Your broker package is being prepared for compliance review.</p>"
        )
        return await self.send(to, f"Payment Confirmed - PO {order_id}", html)

    async def send_closing_certificate(self, to: str, order_id: str, certificate: bytes) -> bool:
        html = (
            "<h1>Closing Certificate</h1>"
            f"<p>Purchase order <strong>{order_id}</strong> has been approved.</p>"
            "<p>The closing certificate is attached.</p>"
        )
        return await self.send(
            to,
            f"Closing Certificate - PO {order_id}",
            html,
            attachment=(f"closing-certificate-{order_id}.txt", certificate),
        )
