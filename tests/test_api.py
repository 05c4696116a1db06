"""HTTP API tests against the in-memory database."""

import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

API = "/api/v1"


def at(days: float = 0, hours: float = 0) -> str:
    """ISO timestamp relative to the wall clock; request handlers use real time."""
    base = datetime.now(UTC).replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    return (base + timedelta(days=days, hours=hours)).isoformat()


async def create_booking(client, vehicle_id, start, end, **fields):
    fields.setdefault("renter_id", str(uuid.uuid4()))
    response = await client.post(
        f"{API}/bookings/",
        json={"vehicle_id": str(vehicle_id), "start_date": start, "end_date": end, **fields},
    )
    return response


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers


class TestVehicles:
    async def test_create_and_get(self, client, platform):
        response = await client.post(
            f"{API}/vehicles/",
            json={"make": "Tesla", "model": "Model 3", "plate_number": "gh-789-ij", "price_per_day": "150"},
        )
        assert response.status_code == 201
        vehicle = response.json()
        assert vehicle["plate_number"] == "GH-789-IJ"
        assert vehicle["status"] == "AVAILABLE"

        response = await client.get(f"{API}/vehicles/{vehicle['id']}")
        assert response.status_code == 200
        assert response.json()["make"] == "Tesla"

    async def test_duplicate_plate(self, client, vehicle):
        response = await client.post(
            f"{API}/vehicles/",
            json={"make": "Peugeot", "model": "208", "plate_number": "AB-123-CD", "price_per_day": "80"},
        )
        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_INPUT"

    async def test_vehicle_needs_a_rate(self, client):
        response = await client.post(
            f"{API}/vehicles/",
            json={"make": "Fiat", "model": "500", "plate_number": "KL-012-MN"},
        )
        assert response.status_code == 422

    async def test_unknown_vehicle(self, client):
        response = await client.get(f"{API}/vehicles/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_quote(self, client, vehicle):
        response = await client.post(
            f"{API}/vehicles/{vehicle.id}/quote",
            json={"start_date": at(1), "end_date": at(3)},
        )
        assert response.status_code == 200
        quote = response.json()
        assert Decimal(quote["base_price"]) == Decimal("200")
        assert Decimal(quote["tax_amount"]) == Decimal("40")
        assert Decimal(quote["total_price"]) == Decimal("240")
        assert Decimal(quote["deposit_amount"]) == Decimal("500")
        assert quote["available"] is True

    async def test_quote_for_missing_rate(self, client, daily_only_vehicle):
        response = await client.post(
            f"{API}/vehicles/{daily_only_vehicle.id}/quote",
            json={"start_date": at(1), "end_date": at(1, hours=4), "rental_type": "HOUR"},
        )
        assert response.status_code == 422
        assert response.json()["code"] == "RATE_UNAVAILABLE"

    async def test_fleet_search_by_window(self, client, vehicle, daily_only_vehicle):
        response = await create_booking(client, vehicle.id, at(1), at(3))
        assert response.status_code == 201

        response = await client.get(f"{API}/vehicles/", params={"start_date": at(2), "end_date": at(4)})
        assert response.status_code == 200
        assert [v["plate_number"] for v in response.json()] == ["EF-456-GH"]

        response = await client.get(f"{API}/vehicles/")
        assert len(response.json()) == 2

        response = await client.get(f"{API}/vehicles/", params={"start_date": at(2)})
        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_INPUT"

    async def test_update_vehicle(self, client, vehicle):
        response = await client.patch(
            f"{API}/vehicles/{vehicle.id}", json={"price_per_day": "110", "price_per_km": None}
        )
        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["price_per_day"]) == Decimal("110")
        assert body["price_per_km"] is None

    async def test_delete_vehicle(self, client, vehicle):
        booking = (await create_booking(client, vehicle.id, at(1), at(3))).json()

        response = await client.delete(f"{API}/vehicles/{vehicle.id}")
        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_INPUT"

        await client.post(f"{API}/bookings/{booking['id']}/cancel")
        response = await client.delete(f"{API}/vehicles/{vehicle.id}")
        assert response.status_code == 204

        response = await client.get(f"{API}/vehicles/{vehicle.id}")
        assert response.status_code == 404


class TestAvailability:
    async def test_overlap_is_refused_and_adjacent_is_accepted(self, client, vehicle):
        response = await create_booking(client, vehicle.id, at(1), at(3))
        assert response.status_code == 201
        first_id = response.json()["id"]

        response = await client.get(
            f"{API}/vehicles/{vehicle.id}/availability",
            params={"start_date": at(2), "end_date": at(4)},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["available"] is False
        assert [c["id"] for c in body["conflicts"]] == [first_id]

        response = await create_booking(client, vehicle.id, at(2), at(4))
        assert response.status_code == 409
        assert response.json()["code"] == "SLOT_UNAVAILABLE"

        response = await create_booking(client, vehicle.id, at(3), at(5))
        assert response.status_code == 201

    async def test_blocked_vehicle(self, client, vehicle):
        response = await client.patch(f"{API}/vehicles/{vehicle.id}/availability", json={"is_available": False})
        assert response.status_code == 200

        response = await client.get(
            f"{API}/vehicles/{vehicle.id}/availability",
            params={"start_date": at(1), "end_date": at(2)},
        )
        assert response.json()["available"] is False

        response = await create_booking(client, vehicle.id, at(1), at(2))
        assert response.status_code == 409

    async def test_reversed_window(self, client, vehicle):
        response = await client.get(
            f"{API}/vehicles/{vehicle.id}/availability",
            params={"start_date": at(3), "end_date": at(1)},
        )
        assert response.status_code == 422


class TestBookingLifecycle:
    async def test_rental_from_reservation_to_return(self, client, vehicle):
        renter_id = str(uuid.uuid4())
        # Starts shortly so the vehicle can be handed over right away
        start = datetime.now(UTC) + timedelta(minutes=10)
        response = await create_booking(
            client,
            vehicle.id,
            start.isoformat(),
            (start + timedelta(days=1)).isoformat(),
            renter_id=renter_id,
        )
        assert response.status_code == 201
        booking = response.json()
        booking_id = booking["id"]
        assert booking["status"] == "DRAFT"

        response = await client.post(f"{API}/bookings/{booking_id}/confirm-reservation")
        assert response.json()["status"] == "PENDING"

        response = await client.post(f"{API}/bookings/{booking_id}/verify")
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_TRANSITION"

        await client.post(f"{API}/platform/verifications", json={"subject_id": renter_id, "status": "APPROVED"})
        response = await client.post(f"{API}/bookings/{booking_id}/verify")
        assert response.status_code == 200
        assert response.json()["status"] == "VERIFIED"

        response = await client.post(f"{API}/bookings/{booking_id}/confirm-payment")
        assert response.status_code == 409

        await client.post(f"{API}/platform/settlements", json={"booking_id": booking_id, "reference": "TRF-001"})
        response = await client.post(f"{API}/bookings/{booking_id}/confirm-payment")
        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"

        response = await client.post(
            f"{API}/bookings/{booking_id}/start-trip", json={"start_odometer": "10000"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "ONGOING"

        response = await client.get(f"{API}/vehicles/{vehicle.id}")
        assert response.json()["status"] == "RENTED"

        response = await client.post(
            f"{API}/bookings/{booking_id}/complete-trip",
            json={"end_odometer": "10150", "return_notes": "Clean"},
        )
        assert response.status_code == 200
        completed = response.json()
        assert completed["status"] == "COMPLETED"
        assert Decimal(completed["total_price"]) == Decimal("120")

        response = await client.post(f"{API}/bookings/{booking_id}/cancel")
        assert response.status_code == 409

        response = await client.get(f"{API}/bookings/{booking_id}/history")
        assert [h["to_status"] for h in response.json()] == [
            "DRAFT",
            "PENDING",
            "VERIFIED",
            "CONFIRMED",
            "ONGOING",
            "COMPLETED",
        ]

        response = await client.post(f"{API}/vehicles/{vehicle.id}/finish-maintenance")
        assert response.json()["status"] == "AVAILABLE"

    async def test_cancel_with_stale_version(self, client, vehicle):
        booking = (await create_booking(client, vehicle.id, at(1), at(3))).json()

        response = await client.post(
            f"{API}/bookings/{booking['id']}/cancel",
            json={"expected_version": booking["version"] + 1},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICTING_UPDATE"

        response = await client.post(
            f"{API}/bookings/{booking['id']}/cancel",
            json={"expected_version": booking["version"], "reason": "no longer needed"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"

        # The window is free again
        response = await create_booking(client, vehicle.id, at(1), at(3))
        assert response.status_code == 201

    async def test_edit_and_delete_draft(self, client, vehicle):
        booking = (await create_booking(client, vehicle.id, at(1), at(3))).json()

        response = await client.patch(f"{API}/bookings/{booking['id']}", json={"end_date": at(4)})
        assert response.status_code == 200
        assert Decimal(response.json()["total_price"]) == Decimal("360")

        response = await client.delete(f"{API}/bookings/{booking['id']}")
        assert response.status_code == 204

        response = await client.get(f"{API}/bookings/{booking['id']}")
        assert response.status_code == 404

    async def test_list_by_status(self, client, vehicle):
        await create_booking(client, vehicle.id, at(1), at(3))
        await create_booking(client, vehicle.id, at(4), at(6), initial_status="PENDING")

        response = await client.get(f"{API}/bookings/", params={"status": "PENDING"})
        body = response.json()
        assert body["total"] == 1
        assert body["bookings"][0]["status"] == "PENDING"

        response = await client.get(f"{API}/bookings/", params={"vehicle_id": str(vehicle.id)})
        assert response.json()["total"] == 2

    async def test_invalid_window(self, client, vehicle):
        response = await create_booking(client, vehicle.id, at(1), at(1, hours=1))
        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_INPUT"


class TestPlatform:
    async def test_settings(self, client, platform):
        response = await client.get(f"{API}/platform/settings")
        assert response.status_code == 200
        assert Decimal(response.json()["tax_percentage"]) == Decimal("20")

        response = await client.patch(f"{API}/platform/settings", json={"tax_percentage": "5.5"})
        assert response.status_code == 200
        assert Decimal(response.json()["tax_percentage"]) == Decimal("5.5")

        response = await client.patch(f"{API}/platform/settings", json={"tax_percentage": "150"})
        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_INPUT"

    async def test_maintenance_jobs(self, client, platform):
        response = await client.post(f"{API}/platform/expire")
        assert response.json() == {"affected": 0}

        response = await client.post(f"{API}/platform/cleanup", params={"days_old": 30})
        assert response.json() == {"affected": 0}

    async def test_settlement_for_unknown_booking(self, client, platform):
        response = await client.post(f"{API}/platform/settlements", json={"booking_id": str(uuid.uuid4())})
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"
