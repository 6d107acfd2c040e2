from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient

from advancia_pay.core.database.repositories import LedgerRepository, UserRepository

pytestmark = pytest.mark.asyncio

IDEMPOTENCY_KEY = "5b1f6a0e-3c1d-4c8e-9f0a-2d7e4b6c8a90"


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("admin@example.com", role="ADMIN")


@pytest_asyncio.fixture
async def holder(make_user):
    return await make_user("holder@example.com", balance="100")


def _body(user_id: str, **overrides) -> dict:
    return {"userId": user_id, "amount": "25", "currency": "USD", "reason": "Support goodwill credit", **overrides}


async def test_credit_is_idempotent(client: AsyncClient, session, admin, holder, auth_headers):
    headers = {**auth_headers(admin), "Idempotency-Key": IDEMPOTENCY_KEY}

    first = await client.post("/api/ledger/admin/credit", json=_body(holder.id), headers=headers)
    second = await client.post("/api/ledger/admin/credit", json=_body(holder.id), headers=headers)

    assert first.status_code == 200
    assert first.json()["entry"]["entry_type"] == "ADJUSTMENT"
    assert second.headers["idempotency-replay"] == "true"
    assert (await UserRepository(session).get_by_id(holder.id, fresh=True)).balance == Decimal("125")
    assert len(await LedgerRepository(session).list_for_user(holder.id)) == 1


async def test_deduction_overdraft(client: AsyncClient, admin, holder, auth_headers):
    response = await client.post(
        "/api/ledger/admin/deduction", json=_body(holder.id, amount="250"), headers=auth_headers(admin)
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient balance"


async def test_deduction_short_reason(client: AsyncClient, admin, holder, auth_headers):
    response = await client.post(
        "/api/ledger/admin/deduction", json=_body(holder.id, reason="fee"), headers=auth_headers(admin)
    )
    assert response.status_code == 400


async def test_non_admin_is_forbidden(client: AsyncClient, holder, auth_headers):
    response = await client.post("/api/ledger/admin/credit", json=_body(holder.id), headers=auth_headers(holder))
    assert response.status_code == 403


async def test_user_ledger(client: AsyncClient, admin, holder, auth_headers):
    await client.post("/api/ledger/admin/credit", json=_body(holder.id), headers=auth_headers(admin))

    response = await client.get(f"/api/ledger/admin/users/{holder.id}", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["total"]) == Decimal("25")
    assert Decimal(body["balance"]) == Decimal("125")
    assert len(body["entries"]) == 1


async def test_user_ledger_unknown_user(client: AsyncClient, admin, auth_headers):
    response = await client.get("/api/ledger/admin/users/missing", headers=auth_headers(admin))
    assert response.status_code == 404


async def test_freeze_blocks_login_until_unfrozen(client: AsyncClient, admin, holder, auth_headers):
    holder_headers = auth_headers(holder)
    admin_headers = auth_headers(admin)

    frozen = await client.post(
        f"/api/ledger/admin/users/{holder.id}/freeze", json={"reason": "Fraud review"}, headers=admin_headers
    )
    assert frozen.status_code == 200
    assert frozen.json()["user"]["active"] is False
    assert "password_hash" not in frozen.json()["user"]
    assert (await client.get("/api/users/me", headers=holder_headers)).status_code == 401

    unfrozen = await client.post(f"/api/ledger/admin/users/{holder.id}/unfreeze", headers=admin_headers)
    assert unfrozen.json()["user"]["active"] is True
    assert (await client.get("/api/users/me", headers=holder_headers)).status_code == 200


async def test_adjustment_accepts_negative_amounts(client: AsyncClient, session, admin, holder, auth_headers):
    response = await client.post(
        "/api/ledger/admin/adjustment",
        json={"userId": holder.id, "amount": "-40", "currency": "USD", "reason": "Reverse duplicate credit"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert Decimal(response.json()["entry"]["amount"]) == Decimal("-40")
    assert (await UserRepository(session).get_by_id(holder.id, fresh=True)).balance == Decimal("60")


async def test_history_page(client: AsyncClient, admin, holder, auth_headers):
    headers = auth_headers(admin)
    await client.post("/api/ledger/admin/credit", json=_body(holder.id), headers=headers)

    response = await client.get("/api/ledger/admin/history", params={"userId": holder.id}, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"]["total"] == 1
    assert body["items"][0]["entry_type"] == "ADJUSTMENT"
