"""Integration tests for accountant linking and the company access gate."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")


async def test_accountant_sees_company_only_after_link(
    client: AsyncClient, new_user, admin_headers: dict[str, str]
) -> None:
    company = await new_user()
    accountant = await new_user("ACCOUNTANT")
    company_url = f"/api/v1/companies/{company['company_id']}"

    before = await client.get(company_url, headers=accountant["headers"])
    assert before.status_code == 403

    link = await client.post(
        "/api/v1/admin/accountants/link",
        json={"accountant_id": accountant["user_id"], "company_id": company["company_id"]},
        headers=admin_headers,
    )
    assert link.status_code == 200, link.text
    assert link.json()["data"]["linked"] is True
    assert link.json()["data"]["changed"] is True

    again = await client.post(
        "/api/v1/admin/accountants/link",
        json={"accountant_id": accountant["user_id"], "company_id": company["company_id"]},
        headers=admin_headers,
    )
    assert again.json()["data"]["changed"] is False

    after = await client.get(company_url, headers=accountant["headers"])
    assert after.status_code == 200
    assert after.json()["data"]["id"] == company["company_id"]

    clients = await client.get("/api/v1/accountant/companies", headers=accountant["headers"])
    assert [c["id"] for c in clients.json()["data"]["items"]] == [company["company_id"]]

    unlink = await client.post(
        "/api/v1/admin/accountants/unlink",
        json={"accountant_id": accountant["user_id"], "company_id": company["company_id"]},
        headers=admin_headers,
    )
    assert unlink.json()["data"]["linked"] is False
    revoked = await client.get(company_url, headers=accountant["headers"])
    assert revoked.status_code == 403


async def test_blocked_company_cannot_check_out(
    client: AsyncClient, lot: dict, new_user, admin_headers: dict[str, str]
) -> None:
    company = await new_user()
    blocked = await client.post(
        f"/api/v1/admin/companies/{company['company_id']}/block", headers=admin_headers
    )
    assert blocked.status_code == 200, blocked.text

    resp = await client.post(
        "/api/v1/checkout",
        json={"lot_id": lot["id"], "amount_usd": "5.00"},
        headers=company["headers"],
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == 2002

    audit = await client.post(
        "/api/v1/admin/audit/query",
        json={"q": company["company_id"], "actions": ["BLOCK_COMPANY"]},
        headers=admin_headers,
    )
    assert audit.status_code == 200
    assert "BLOCK_COMPANY" in [e["action"] for e in audit.json()["data"]["items"]]


async def test_admin_routes_reject_company_users(client: AsyncClient, new_user) -> None:
    company = await new_user()
    resp = await client.get("/api/v1/admin/stats", headers=company["headers"])
    assert resp.status_code == 403
