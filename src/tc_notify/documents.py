"""Closing document generation: broker package and closing certificate.

Rendering is plain text; the artifact is stored under
DOCUMENT_DIR and referenced from the purchase order by its relative key.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from config.settings import settings
from src.tc_common.datetime_utils import utc_now
from src.tc_common.money import usd_display

logger = logging.getLogger(__name__)


@dataclass
class SettlementDocumentInput:
    order_id: str
    buyer_name: str
    credit_type: str
    tax_year: int
    amount_usd: Decimal
    price_per_dollar: Decimal
    total_usd: Decimal


def render_broker_package(doc: SettlementDocumentInput) -> bytes:
    lines = [
        "BROKER PACKAGE",
        f"PO Number:        {doc.order_id}",
        f"Buyer:            {doc.buyer_name}",
        f"Credit:           {doc.credit_type} ({doc.tax_year})",
        f"Face Amount:      {usd_display(doc.amount_usd)}",
        f"Price per Dollar: {doc.price_per_dollar}",
        f"Total Paid:       {usd_display(doc.total_usd)}",
    ]
    return ("\n".join(lines) + "\n").encode("utf-8")


def render_closing_certificate(doc: SettlementDocumentInput, approved_at: datetime) -> bytes:
    lines = [
        "CERTIFICATE OF CLOSING",
        f"This certifies that {doc.buyer_name} has acquired",
        f"{usd_display(doc.amount_usd)} face value of {doc.credit_type} tax credits",
        f"for tax year {doc.tax_year} at {doc.price_per_dollar} per dollar",
        f"(total {usd_display(doc.total_usd)}), purchase order {doc.order_id}.",
        f"Approved: {approved_at.strftime('%Y-%m-%d')}",
    ]
    return ("\n".join(lines) + "\n").encode("utf-8")


class DocumentGenerator:
    def __init__(self, base_dir: str | None = None) -> None:
        self._base = Path(base_dir or settings.DOCUMENT_DIR)

    async def _store(self, key: str, content: bytes) -> str:
        path = self._base / key
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(path.write_bytes, content)
        return key

    async def broker_package(self, doc: SettlementDocumentInput) -> str:
        return await self._store(f"broker-package/{doc.order_id}.txt", render_broker_package(doc))

    async def closing_certificate(self, doc: SettlementDocumentInput) -> tuple[str, bytes]:
        content = render_closing_certificate(doc, utc_now())
        key = await self._store(f"closing-certificate/{doc.order_id}.txt", content)
        return key, content
