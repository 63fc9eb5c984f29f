"""Telegram notifier for ops alerts (audit events, daily summary).

Best effort: disabled unless ENABLE_TELEGRAM and both credentials are set,
and delivery failures are logged, never raised.
"""

import logging
from typing import Any

import httpx

from config.settings import settings

logger = logging.getLogger(__name__)

_API_BASE = "https://api.telegram.org"
_TIMEOUT = 10.0

_NOTABLE_ACTIONS = {
    "REGISTER",
    "PAYMENT_SUBMITTED",
    "PAYMENT_CONFIRMED",
    "PAYMENT_FAILED",
    "PAYMENT_REFUNDED",
    "UPDATE_BROKER_STATUS",
    "BLOCK_COMPANY",
}


class TelegramNotifier:
    def __init__(
        self,
        bot_token: str | None = None,
        chat_id: str | None = None,
        enabled: bool | None = None,
    ) -> None:
        self._token = bot_token if bot_token is not None else settings.TELEGRAM_BOT_TOKEN
        self._chat_id = chat_id if chat_id is not None else settings.TELEGRAM_CHAT_ID
        self._enabled = enabled if enabled is not None else settings.ENABLE_TELEGRAM

    @property
    def configured(self) -> bool:
        return self._enabled and bool(self._token) and bool(self._chat_id)

    async def send(self, message: str) -> bool:
        """Send an HTML-formatted message. Returns True on delivery."""
        if not self.configured:
            logger.info("Telegram disabled; skipping message")
            return False
        url = f"{_API_BASE}/bot{self._token}/sendMessage"
        payload = {
            "chat_id": self._chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
                response = await client.post(url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Telegram delivery failed: %s", exc)
            return False
        return True

    async def notify_audit_event(self, action: str, entity: str, **fields: Any) -> bool:
        if action not in _NOTABLE_ACTIONS:
            return False
        return await self.send(format_audit_message(action, entity, **fields))


def format_audit_message(action: str, entity: str, **fields: Any) -> str:
    actor = fields.get("actor_email") or "System"
    amount = fields.get("amount_usd")
    amount_text = f"${amount:,.2f}" if amount is not None else ""
    tx_hash = (fields.get("details") or {}).get("tx_hash")
    short_tx = f" (tx {tx_hash[:6]}…{tx_hash[-4:]})" if tx_hash else ""

    if action == "REGISTER":
        name = (fields.get("details") or {}).get("company_name") or entity.title()
        return f"<b>New {entity.title()} Registered</b>\n{name} by {actor}"
    if action in ("PAYMENT_CONFIRMED", "PAYMENT_SUBMITTED"):
        label = "Confirmed" if action == "PAYMENT_CONFIRMED" else "Submitted"
        return f"<b>Payment {label}</b>\n{amount_text}{short_tx}\nBy: {actor}"
    if action == "PAYMENT_FAILED":
        return f"<b>Payment Failed</b>\n{amount_text}\nOrder: {fields.get('entity_id')}"
    return f"<b>{action}</b> {entity} {fields.get('entity_id') or ''}\nBy: {actor}"
