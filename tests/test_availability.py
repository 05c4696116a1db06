"""Availability checker tests."""

import itertools

import pytest

from app.core.exceptions import InvalidInput, SlotUnavailable
from app.domain.booking_state import BookingStatus
from app.schemas.booking import BookingCancelRequest
from app.services.availability_service import availability_service, intervals_overlap
from app.services.booking_service import booking_service
from tests.conftest import NOW, day
from tests.helpers import make_booking


class TestIntervalsOverlap:
    def test_overlapping(self):
        assert intervals_overlap(day(1), day(3), day(2), day(4))

    def test_contained(self):
        assert intervals_overlap(day(1), day(5), day(2), day(3))

    def test_touching_boundaries_do_not_overlap(self):
        assert not intervals_overlap(day(1), day(3), day(3), day(5))
        assert not intervals_overlap(day(3), day(5), day(1), day(3))

    def test_disjoint(self):
        assert not intervals_overlap(day(1), day(2), day(4), day(5))


async def test_overlapping_request_is_rejected(db, vehicle):
    existing = await make_booking(db, vehicle, day(1), day(3))

    with pytest.raises(SlotUnavailable) as exc_info:
        await make_booking(db, vehicle, day(2), day(4))

    assert exc_info.value.vehicle_id == vehicle.id
    assert exc_info.value.conflicts == [(existing.start_date, existing.end_date)]


async def test_back_to_back_request_succeeds(db, vehicle):
    await make_booking(db, vehicle, day(1), day(3))
    booking = await make_booking(db, vehicle, day(3), day(5))
    assert booking.status == BookingStatus.DRAFT


async def test_other_vehicle_is_unaffected(db, vehicle, daily_only_vehicle):
    await make_booking(db, vehicle, day(1), day(3))
    booking = await make_booking(db, daily_only_vehicle, day(2), day(4))
    assert booking.vehicle_id == daily_only_vehicle.id


async def test_cancelled_booking_frees_the_window(db, vehicle):
    booking = await make_booking(db, vehicle, day(1), day(3), initial_status=BookingStatus.PENDING)
    await booking_service.cancel_booking(db, booking.id, BookingCancelRequest(reason="changed plans"), now=NOW)
    await db.commit()

    result = await availability_service.check_available(db, vehicle.id, day(2), day(4))
    assert result.available
    assert result.conflicts == []

    replacement = await make_booking(db, vehicle, day(2), day(4))
    assert replacement.status == BookingStatus.DRAFT


async def test_completed_bookings_still_block(db, vehicle):
    booking = await make_booking(db, vehicle, day(1), day(3))
    booking.status = BookingStatus.COMPLETED
    await db.commit()

    result = await availability_service.check_available(db, vehicle.id, day(2), day(4))
    assert not result.available


async def test_exclude_booking_ignores_itself(db, vehicle):
    booking = await make_booking(db, vehicle, day(1), day(3))

    result = await availability_service.check_available(
        db, vehicle.id, day(1), day(4), exclude_booking_id=booking.id
    )
    assert result.available


async def test_conflicts_are_ordered_by_start(db, vehicle):
    second = await make_booking(db, vehicle, day(4), day(5))
    first = await make_booking(db, vehicle, day(1), day(2))

    result = await availability_service.check_available(db, vehicle.id, day(1), day(6))
    assert [b.id for b in result.conflicts] == [first.id, second.id]


async def test_reversed_window_is_invalid(db, vehicle):
    with pytest.raises(InvalidInput):
        await availability_service.check_available(db, vehicle.id, day(3), day(1))


async def test_no_live_bookings_overlap_after_mixed_operations(db, vehicle):
    windows = [(1, 3), (2, 4), (3, 5), (4, 6), (5, 7), (1, 7), (6, 8)]
    created = []
    for start, end in windows:
        try:
            created.append(await make_booking(db, vehicle, day(start), day(end)))
        except SlotUnavailable:
            pass

    # Free the middle of the calendar and retry the rejected windows
    await booking_service.cancel_booking(db, created[1].id, BookingCancelRequest(), now=NOW)
    await db.commit()
    for start, end in windows:
        try:
            await make_booking(db, vehicle, day(start), day(end))
        except SlotUnavailable:
            pass

    live = await availability_service.find_conflicts(db, vehicle.id, day(0), day(10))
    for a, b in itertools.combinations(live, 2):
        assert not intervals_overlap(a.start_date, a.end_date, b.start_date, b.end_date)
