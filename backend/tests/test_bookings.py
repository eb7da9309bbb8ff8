"""
Tests for booking endpoints including concurrency scenarios.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient


async def _book(client: AsyncClient, headers: dict, event_id: int, tickets: int = 1):
    return await client.post(
        "/api/v1/bookings/",
        json={"event_id": event_id, "ticket_count": tickets},
        headers=headers,
    )


async def _remaining(client: AsyncClient, event_id: int) -> int:
    response = await client.get(f"/api/v1/events/{event_id}")
    return response.json()["remaining_seats"]


@pytest.mark.asyncio
async def test_book_tickets(client: AsyncClient, auth_headers, test_event):
    """Successful booking reduces remaining seats."""
    response = await client.post(
        "/api/v1/bookings/",
        json={
            "event_id": test_event.id,
            "ticket_count": 2,
            "contact_phone": "+1-555-0100",
            "payment_method": "card",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["event_id"] == test_event.id
    assert data["user_email"] == "test@example.com"
    assert data["ticket_count"] == 2
    assert data["status"] == "confirmed"
    assert data["contact_phone"] == "+1-555-0100"
    assert data["payment_method"] == "card"

    assert await _remaining(client, test_event.id) == 98


@pytest.mark.asyncio
async def test_book_unauthenticated(client: AsyncClient, test_event):
    """Unauthenticated booking returns 401."""
    response = await client.post(
        "/api/v1/bookings/",
        json={"event_id": test_event.id, "ticket_count": 1},
    )
    assert response.status_code == 401
    assert response.json()["code"] == "unauthenticated"


@pytest.mark.asyncio
async def test_book_with_invalid_token(client: AsyncClient, test_event):
    response = await _book(client, {"Authorization": "Bearer not-a-jwt"}, test_event.id)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_book_more_than_remaining(client: AsyncClient, auth_headers, small_event):
    """Requesting more tickets than remain returns 409 and books nothing."""
    response = await _book(client, auth_headers, small_event.id, tickets=3)
    assert response.status_code == 409
    assert response.json()["code"] == "capacity_exceeded"
    assert await _remaining(client, small_event.id) == 2


@pytest.mark.asyncio
async def test_book_zero_tickets(client: AsyncClient, auth_headers, test_event):
    response = await _book(client, auth_headers, test_event.id, tickets=0)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_book_nonexistent_event(client: AsyncClient, auth_headers):
    response = await _book(client, auth_headers, 99999)
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_book_after_registration_deadline(client: AsyncClient, auth_headers, make_event):
    """A passed deadline rejects bookings even though seats remain."""
    event = await make_event(
        capacity=50,
        registration_deadline=datetime.now(timezone.utc) - timedelta(hours=1),
    )
    response = await _book(client, auth_headers, event.id)
    assert response.status_code == 410
    assert response.json()["code"] == "deadline_expired"


@pytest.mark.asyncio
async def test_book_before_registration_deadline(client: AsyncClient, auth_headers, make_event):
    event = await make_event(
        capacity=50,
        registration_deadline=datetime.now(timezone.utc) + timedelta(days=1),
    )
    response = await _book(client, auth_headers, event.id)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_same_user_can_hold_several_bookings(client: AsyncClient, auth_headers, test_event):
    assert (await _book(client, auth_headers, test_event.id, tickets=1)).status_code == 201
    assert (await _book(client, auth_headers, test_event.id, tickets=2)).status_code == 201
    assert await _remaining(client, test_event.id) == 97


@pytest.mark.asyncio
async def test_cancel_booking(client: AsyncClient, auth_headers, test_event):
    """Cancellation frees the booking's seats."""
    book_response = await _book(client, auth_headers, test_event.id, tickets=3)
    booking_id = book_response.json()["id"]

    cancel_response = await client.delete(f"/api/v1/bookings/{booking_id}", headers=auth_headers)
    assert cancel_response.status_code == 200
    assert cancel_response.json()["status"] == "cancelled"

    assert await _remaining(client, test_event.id) == 100


@pytest.mark.asyncio
async def test_cancel_already_cancelled(client: AsyncClient, auth_headers, test_event):
    """Cancelling twice succeeds both times and frees the seats once."""
    book_response = await _book(client, auth_headers, test_event.id, tickets=1)
    booking_id = book_response.json()["id"]
    await _book(client, auth_headers, test_event.id, tickets=4)

    first = await client.delete(f"/api/v1/bookings/{booking_id}", headers=auth_headers)
    second = await client.delete(f"/api/v1/bookings/{booking_id}", headers=auth_headers)

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["status"] == "cancelled"
    assert await _remaining(client, test_event.id) == 96


@pytest.mark.asyncio
async def test_cancel_someone_elses_booking(client: AsyncClient, auth_headers, other_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id)).json()["id"]

    response = await client.delete(f"/api/v1/bookings/{booking_id}", headers=other_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"
    assert await _remaining(client, test_event.id) == 99


@pytest.mark.asyncio
async def test_admin_can_cancel_any_booking(client: AsyncClient, auth_headers, admin_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id, tickets=2)).json()["id"]

    response = await client.delete(f"/api/v1/bookings/{booking_id}", headers=admin_headers)
    assert response.status_code == 200
    assert await _remaining(client, test_event.id) == 100


@pytest.mark.asyncio
async def test_cancel_nonexistent_booking(client: AsyncClient, auth_headers):
    response = await client.delete("/api/v1/bookings/424242", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_user_bookings(client: AsyncClient, auth_headers, test_event):
    """Users see their own bookings, newest first, with an event summary."""
    first = (await _book(client, auth_headers, test_event.id, tickets=1)).json()
    second = (await _book(client, auth_headers, test_event.id, tickets=2)).json()

    response = await client.get("/api/v1/bookings/", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert [b["id"] for b in data] == [second["id"], first["id"]]
    assert data[0]["event"]["id"] == test_event.id
    assert data[0]["event"]["title"] == "Test Concert"


@pytest.mark.asyncio
async def test_list_includes_cancelled_bookings(client: AsyncClient, auth_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id)).json()["id"]
    await client.delete(f"/api/v1/bookings/{booking_id}", headers=auth_headers)

    data = (await client.get("/api/v1/bookings/", headers=auth_headers)).json()
    assert len(data) == 1
    assert data[0]["status"] == "cancelled"
    assert data[0]["cancelled_at"] is not None


@pytest.mark.asyncio
async def test_list_other_users_bookings_forbidden(client: AsyncClient, auth_headers, other_headers, test_event):
    await _book(client, auth_headers, test_event.id)

    response = await client.get("/api/v1/bookings/user/test@example.com", headers=other_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_lists_any_users_bookings(client: AsyncClient, auth_headers, admin_headers, test_event):
    await _book(client, auth_headers, test_event.id)

    response = await client.get("/api/v1/bookings/user/test@example.com", headers=admin_headers)
    assert response.status_code == 200
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_cancellation_frees_seats_for_next_booking(client: AsyncClient, auth_headers, other_headers, small_event):
    """Capacity 2: A takes 2, B is refused, A cancels, B gets 1 and 1 remains."""
    booking_a = await _book(client, auth_headers, small_event.id, tickets=2)
    assert booking_a.status_code == 201
    assert await _remaining(client, small_event.id) == 0

    assert (await _book(client, other_headers, small_event.id, tickets=1)).status_code == 409

    cancel = await client.delete(f"/api/v1/bookings/{booking_a.json()['id']}", headers=auth_headers)
    assert cancel.status_code == 200

    assert (await _book(client, other_headers, small_event.id, tickets=1)).status_code == 201
    assert await _remaining(client, small_event.id) == 1


@pytest.mark.asyncio
async def test_concurrent_requests_never_overbook(client: AsyncClient, auth_headers, make_event):
    """Ten simultaneous single-ticket requests for three seats: three win."""
    event = await make_event(capacity=3)

    responses = await asyncio.gather(*(_book(client, auth_headers, event.id) for _ in range(10)))
    codes = sorted(r.status_code for r in responses)

    assert codes.count(201) == 3
    assert codes.count(409) == 7
    assert await _remaining(client, event.id) == 0


@pytest.mark.asyncio
async def test_email_case_variant_cannot_register_twice(client: AsyncClient):
    first = await client.post("/api/v1/auth/register", json={
        "email": "victim@example.com",
        "name": "Victim",
        "password": "securepassword123",
    })
    second = await client.post("/api/v1/auth/register", json={
        "email": "VICTIM@example.com",
        "name": "Impostor",
        "password": "securepassword123",
    })
    assert first.status_code == 201
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_email_case_variant_gets_no_access(client: AsyncClient, auth_headers, other_headers, test_event):
    """Another account addressing the owner's email in a different case is still refused."""
    booking_id = (await _book(client, auth_headers, test_event.id, tickets=2)).json()["id"]

    listing = await client.get("/api/v1/bookings/user/TEST@Example.com", headers=other_headers)
    cancel = await client.delete(f"/api/v1/bookings/{booking_id}", headers=other_headers)

    assert listing.status_code == 403
    assert cancel.status_code == 403
    assert await _remaining(client, test_event.id) == 98


@pytest.mark.asyncio
async def test_owner_lookup_ignores_email_case(client: AsyncClient, auth_headers, test_event):
    await _book(client, auth_headers, test_event.id)

    response = await client.get("/api/v1/bookings/user/TEST@Example.com", headers=auth_headers)
    assert response.status_code == 200
    assert [b["user_email"] for b in response.json()] == ["test@example.com"]


@pytest.mark.asyncio
async def test_unknown_event_reported_before_ticket_count(client: AsyncClient, auth_headers):
    response = await _book(client, auth_headers, 99999, tickets=0)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_book_negative_tickets(client: AsyncClient, auth_headers, test_event):
    response = await _book(client, auth_headers, test_event.id, tickets=-1)
    assert response.status_code == 422
    assert response.json()["code"] == "invalid_request"
