from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient

from advancia_pay.core.database.repositories import UserRepository

pytestmark = pytest.mark.asyncio

BOOKING = {"chamber": "hyperbaric-1", "sessionDate": "2026-11-02T10:00:00Z", "durationMinutes": 30}


@pytest_asyncio.fixture
async def customer(make_user):
    return await make_user("patient@example.com", balance="100")


async def _book(client: AsyncClient, headers, **overrides):
    return await client.post("/api/bookings", json={**BOOKING, **overrides}, headers=headers)


async def test_create_and_list(client: AsyncClient, session, customer, auth_headers):
    headers = auth_headers(customer)

    response = await _book(client, headers)

    assert response.status_code == 201
    booking = response.json()["booking"]
    assert booking["status"] == "PENDING"
    assert Decimal(booking["cost"]) == Decimal("75")
    user = await UserRepository(session).get_by_id(customer.id, fresh=True)
    assert user.balance == Decimal("25")

    listed = await client.get("/api/bookings", headers=headers)
    assert [b["id"] for b in listed.json()["bookings"]] == [booking["id"]]


async def test_insufficient_balance(client: AsyncClient, customer, auth_headers):
    response = await _book(client, auth_headers(customer), durationMinutes=120)

    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient balance"


async def test_invalid_duration(client: AsyncClient, customer, auth_headers):
    response = await _book(client, auth_headers(customer), durationMinutes=0)

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "durationMinutes"


async def test_cancel_refunds(client: AsyncClient, session, customer, auth_headers):
    headers = auth_headers(customer)
    booking_id = (await _book(client, headers)).json()["booking"]["id"]

    response = await client.put(f"/api/bookings/{booking_id}/cancel", headers=headers)

    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "CANCELLED"
    user = await UserRepository(session).get_by_id(customer.id, fresh=True)
    assert user.balance == Decimal("100")

    again = await client.put(f"/api/bookings/{booking_id}/cancel", headers=headers)
    assert again.status_code == 400


async def test_cancel_someone_elses_booking(client: AsyncClient, customer, make_user, auth_headers):
    booking_id = (await _book(client, auth_headers(customer))).json()["booking"]["id"]
    other = await make_user("other@example.com")

    response = await client.put(f"/api/bookings/{booking_id}/cancel", headers=auth_headers(other))

    assert response.status_code == 403


async def test_admin_confirms_then_completes(client: AsyncClient, customer, make_user, auth_headers):
    booking_id = (await _book(client, auth_headers(customer))).json()["booking"]["id"]
    admin_headers = auth_headers(await make_user("admin@example.com", role="ADMIN"))

    url = f"/api/bookings/{booking_id}/status"
    confirmed = await client.post(url, json={"status": "CONFIRMED"}, headers=admin_headers)
    completed = await client.post(url, json={"status": "COMPLETED"}, headers=admin_headers)
    reopened = await client.post(url, json={"status": "CONFIRMED"}, headers=admin_headers)

    assert confirmed.json()["booking"]["status"] == "CONFIRMED"
    assert completed.json()["booking"]["status"] == "COMPLETED"
    assert reopened.status_code == 400
    assert reopened.json()["detail"] == "Booking is already completed"


async def test_status_rejects_unknown_value(client: AsyncClient, make_user, auth_headers):
    admin_headers = auth_headers(await make_user("admin@example.com", role="ADMIN"))
    response = await client.post("/api/bookings/any/status", json={"status": "CANCELLED"}, headers=admin_headers)
    assert response.status_code == 400


async def test_status_requires_admin(client: AsyncClient, customer, auth_headers):
    response = await client.post(
        "/api/bookings/any/status", json={"status": "CONFIRMED"}, headers=auth_headers(customer)
    )
    assert response.status_code == 403
