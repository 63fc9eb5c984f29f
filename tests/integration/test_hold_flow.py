"""Integration tests for 72-hour holds against live inventory."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")


async def _available(client: AsyncClient, lot_id: str, headers: dict[str, str]) -> Decimal:
    resp = await client.get(f"/api/v1/inventory/{lot_id}", headers=headers)
    return Decimal(resp.json()["data"]["available_usd"])


async def test_hold_reserves_then_cancel_restores(client: AsyncClient, lot: dict, new_user) -> None:
    buyer = await new_user()

    created = await client.post(
        "/api/v1/holds", json={"lot_id": lot["id"], "amount_usd": "30.00"}, headers=buyer["headers"]
    )
    assert created.status_code == 201, created.text
    hold = created.json()["data"]
    assert hold["status"] == "ACTIVE"
    window = datetime.fromisoformat(hold["expires_at"]) - datetime.fromisoformat(hold["created_at"])
    assert window == timedelta(hours=72)
    assert await _available(client, lot["id"], buyer["headers"]) == Decimal("70.00")

    canceled = await client.post(f"/api/v1/holds/{hold['id']}/cancel", headers=buyer["headers"])
    assert canceled.status_code == 200
    assert canceled.json()["data"]["status"] == "CANCELLED"
    assert await _available(client, lot["id"], buyer["headers"]) == Decimal("100.00")

    twice = await client.post(f"/api/v1/holds/{hold['id']}/cancel", headers=buyer["headers"])
    assert twice.status_code == 422


async def test_checkout_consumes_hold(client: AsyncClient, lot: dict, new_user) -> None:
    buyer = await new_user()
    hold = (
        await client.post(
            "/api/v1/holds", json={"lot_id": lot["id"], "amount_usd": "25.00"}, headers=buyer["headers"]
        )
    ).json()["data"]

    resp = await client.post(
        "/api/v1/checkout",
        json={"lot_id": lot["id"], "amount_usd": "25.00", "hold_id": hold["id"]},
        headers=buyer["headers"],
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["order"]["hold_id"] == hold["id"]
    # The hold already took the inventory; settlement does not take it twice
    assert await _available(client, lot["id"], buyer["headers"]) == Decimal("75.00")

    consumed = await client.get(f"/api/v1/holds/{hold['id']}", headers=buyer["headers"])
    assert consumed.json()["data"]["status"] == "CONSUMED"


async def test_hold_over_available_rejected(client: AsyncClient, lot: dict, new_user) -> None:
    buyer = await new_user()
    resp = await client.post(
        "/api/v1/holds", json={"lot_id": lot["id"], "amount_usd": "150.00"}, headers=buyer["headers"]
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == 3003
