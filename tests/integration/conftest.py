"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Requires a migrated PostgreSQL (alembic upgrade head) and a running Redis.
The seed migration provides the admin@taxcredit.local account.
"""

import os
import random
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from src.main import app

ADMIN_EMAIL = "admin@taxcredit.local"
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "ChangeMe_2025")
PASSWORD = "TestPass123!"


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if "integration" in item.path.parts:
            item.add_marker(pytest.mark.integration)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def _login(client: AsyncClient, email: str, password: str = PASSWORD) -> str:
    resp = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return str(resp.json()["data"]["access_token"])


async def _register(client: AsyncClient, role: str) -> dict:
    uid = uuid.uuid4().hex[:8]
    email = f"{role.lower()}_{uid}@example.com"
    body: dict = {"email": email, "password": PASSWORD, "name": f"Test {uid}", "role": role}
    if role == "COMPANY":
        body.update(
            company_legal_name=f"Test Holdings {uid}",
            ein=f"{random.randint(10, 99)}-{random.randint(0, 9_999_999):07d}",
            state="CA",
        )
    resp = await client.post("/api/v1/auth/register", json=body)
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    return {
        "email": email,
        "headers": _bearer(await _login(client, email)),
        "user_id": data["user_id"],
        "company_id": data["company_id"],
    }


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client; keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    return _bearer(await _login(client, ADMIN_EMAIL, ADMIN_PASSWORD))


@pytest_asyncio.fixture(loop_scope="session")
async def lot(client: AsyncClient, admin_headers: dict[str, str]) -> dict:
    """A fresh ACTIVE lot with 100 USD of face value and a 1 USD minimum block."""
    resp = await client.post(
        "/api/v1/admin/inventory",
        json={
            "credit_type": "ITC",
            "tax_year": 2025,
            "face_value_usd": "100.00",
            "min_block_usd": "1.00",
            "price_per_dollar": "0.9000",
            "broker_name": "Integration Broker",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
def new_user(client: AsyncClient):
    """Factory: register a fresh user and return {email, headers, user_id, company_id}."""

    async def _make(role: str = "COMPANY") -> dict:
        return await _register(client, role)

    return _make
