"""Integration tests for checkout against live inventory.

Requires a migrated PostgreSQL with STRIPE_SECRET_KEY unset so checkout
settles in demo mode (PAID_TEST).
"""

import asyncio
from decimal import Decimal

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")


async def test_concurrent_checkouts_never_oversell(
    client: AsyncClient, lot: dict, new_user, admin_headers: dict[str, str]
) -> None:
    alice = await new_user()
    bob = await new_user()

    responses = await asyncio.gather(
        client.post(
            "/api/v1/checkout",
            json={"lot_id": lot["id"], "amount_usd": "60.00"},
            headers=alice["headers"],
        ),
        client.post(
            "/api/v1/checkout",
            json={"lot_id": lot["id"], "amount_usd": "60.00"},
            headers=bob["headers"],
        ),
    )

    codes = sorted(r.status_code for r in responses)
    assert codes == [201, 400]
    rejected = next(r for r in responses if r.status_code == 400)
    assert rejected.json()["code"] == 3003

    after = await client.get(f"/api/v1/inventory/{lot['id']}", headers=alice["headers"])
    assert Decimal(after.json()["data"]["available_usd"]) == Decimal("40.00")

    report = await client.get("/api/v1/admin/invariants", headers=admin_headers)
    assert report.status_code == 200
    assert all(row["lot_id"] != lot["id"] for row in report.json()["data"]["violations"])


async def test_demo_checkout_is_paid_and_priced(client: AsyncClient, lot: dict, new_user) -> None:
    buyer = await new_user()
    resp = await client.post(
        "/api/v1/checkout",
        json={"lot_id": lot["id"], "amount_usd": "10.00"},
        headers=buyer["headers"],
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["demo_mode"] is True
    assert data["checkout_url"] is None
    order = data["order"]
    assert order["payment_status"] == "PAID_TEST"
    assert order["company_id"] == buyer["company_id"]
    assert Decimal(order["subtotal_usd"]) == Decimal("9.00")
    assert Decimal(order["total_usd"]) == Decimal(order["subtotal_usd"]) + Decimal(order["fees_usd"])

    listed = await client.get("/api/v1/purchases", headers=buyer["headers"])
    assert [o["id"] for o in listed.json()["data"]["items"]] == [order["id"]]


async def test_other_company_cannot_read_purchase(client: AsyncClient, lot: dict, new_user) -> None:
    buyer = await new_user()
    outsider = await new_user()
    created = await client.post(
        "/api/v1/checkout",
        json={"lot_id": lot["id"], "amount_usd": "5.00"},
        headers=buyer["headers"],
    )
    order_id = created.json()["data"]["order"]["id"]

    resp = await client.get(f"/api/v1/purchases/{order_id}", headers=outsider["headers"])
    assert resp.status_code == 403


async def test_checkout_beyond_available_rejected(client: AsyncClient, lot: dict, new_user) -> None:
    buyer = await new_user()
    resp = await client.post(
        "/api/v1/checkout",
        json={"lot_id": lot["id"], "amount_usd": "100.01"},
        headers=buyer["headers"],
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == 3003
