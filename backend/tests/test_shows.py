"""
Tests for show listings, seat maps and block previews.
"""

import pytest
from httpx import AsyncClient

from theater.services.show_service import ensure_schedule, today


@pytest.mark.asyncio
async def test_ensure_schedule_is_idempotent(db_session):
    created = await ensure_schedule(db_session, days=3)
    assert len(created) == 3
    assert [show.show_date for show in created] == sorted(show.show_date for show in created)
    assert created[0].show_date == today()

    assert await ensure_schedule(db_session, days=3) == []


@pytest.mark.asyncio
async def test_list_shows(client: AsyncClient, read_headers, show):
    response = await client.get("/api/v1/shows", headers=read_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total_shows"] == 1
    assert data["shows"][0]["id"] == show.id
    assert data["shows"][0]["title"] == "Hamilton"
    assert data["shows"][0]["availability"] is None
    assert data["period"]["days_requested"] == 3
    assert data["cached"] is False


@pytest.mark.asyncio
async def test_list_shows_with_stats(client: AsyncClient, auth_headers, booking_payload, show):
    await client.post("/api/v1/bookings", json=booking_payload(seatIds=["seat-1"]), headers=auth_headers)

    response = await client.get("/api/v1/shows?include_stats=true", headers=auth_headers)
    assert response.status_code == 200
    availability = response.json()["shows"][0]["availability"]
    assert availability["total"] == 100
    assert availability["sold"] == 1
    assert availability["available"] == 99


@pytest.mark.asyncio
async def test_seat_map(client: AsyncClient, read_headers, show):
    response = await client.get(f"/api/v1/shows/{show.show_date.isoformat()}/seats", headers=read_headers)
    assert response.status_code == 200
    data = response.json()
    assert len(data["seats"]) == 100
    assert data["seats"][0] == {
        "id": "seat-1",
        "number": 1,
        "row": 1,
        "section": "A",
        "category": "premium",
        "price": 150,
        "status": "available",
    }
    assert data["statistics"]["available"] == 100
    assert data["categories"] == {"premium": 30, "standard": 40, "economy": 30}
    assert data["filters_applied"]["category"] == "all"


@pytest.mark.asyncio
async def test_seat_map_filters(client: AsyncClient, read_headers, show):
    date = show.show_date.isoformat()

    response = await client.get(f"/api/v1/shows/{date}/seats?category=economy", headers=read_headers)
    assert len(response.json()["seats"]) == 30

    response = await client.get(f"/api/v1/shows/{date}/seats?min_price=100", headers=read_headers)
    data = response.json()
    assert len(data["seats"]) == 70
    assert data["filters_applied"]["price_range"] == "100-inf"

    response = await client.get(f"/api/v1/shows/{date}/seats?status=sold", headers=read_headers)
    assert response.json()["seats"] == []


@pytest.mark.asyncio
async def test_seat_map_reflects_sales(client: AsyncClient, auth_headers, booking_payload, show):
    await client.post(
        "/api/v1/bookings",
        json=booking_payload(seatIds=["seat-41", "seat-42"]),
        headers=auth_headers,
    )
    response = await client.get(
        f"/api/v1/shows/{show.show_date.isoformat()}/seats?status=sold",
        headers=auth_headers,
    )
    assert [seat["id"] for seat in response.json()["seats"]] == ["seat-41", "seat-42"]


@pytest.mark.asyncio
async def test_seat_map_unknown_date(client: AsyncClient, read_headers, show):
    response = await client.get("/api/v1/shows/1999-01-01/seats", headers=read_headers)
    assert response.status_code == 404
    assert "No show found for date 1999-01-01" in response.json()["detail"]


@pytest.mark.asyncio
async def test_seat_map_bad_date(client: AsyncClient, read_headers, show):
    response = await client.get("/api/v1/shows/tomorrow/seats", headers=read_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_block_preview(client: AsyncClient, read_headers, show):
    response = await client.get(f"/api/v1/shows/{show.id}/seats/seat-5/block?count=4", headers=read_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["seat_ids"] == ["seat-4", "seat-5", "seat-6", "seat-7"]
    assert data["total_price"] == 600
    assert data["available"] is True
    assert data["row"] == 1


@pytest.mark.asyncio
async def test_block_preview_without_room(client: AsyncClient, auth_headers, booking_payload, show):
    await client.post(
        "/api/v1/bookings",
        json=booking_payload(seatIds=["seat-8", "seat-9"]),
        headers=auth_headers,
    )
    response = await client.get(f"/api/v1/shows/{show.id}/seats/seat-10/block?count=3", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["seat_ids"] == []
    assert response.json()["available"] is False


@pytest.mark.asyncio
async def test_block_preview_party_too_large(client: AsyncClient, read_headers, show):
    response = await client.get(f"/api/v1/shows/{show.id}/seats/seat-5/block?count=11", headers=read_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_block_preview_unknown_seat(client: AsyncClient, read_headers, show):
    response = await client.get(f"/api/v1/shows/{show.id}/seats/seat-500/block?count=2", headers=read_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_block_preview_unknown_show(client: AsyncClient, read_headers):
    response = await client.get("/api/v1/shows/no-such-show/seats/seat-5/block", headers=read_headers)
    assert response.status_code == 404
