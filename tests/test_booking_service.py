"""
Tests for the application-facing booking operations over the in-memory store.
"""

from __future__ import annotations

import itertools
import logging
import threading
from datetime import date, time
from decimal import Decimal

import pytest

from conftest import BOOKING_DAY
from lensbook.application.exceptions import (
    ConcurrencyConflictError,
    InvalidDateError,
    InvalidServiceError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    SlotUnavailableError,
)
from lensbook.application.ports.event_publisher import BookingEventPublisherPort
from lensbook.application.use_cases.booking_service import BookingService
from lensbook.domain.entities.actor import Actor
from lensbook.domain.entities.booking import Booking, BookingStatus
from lensbook.infrastructure.store.memory_store import MemoryBookingStore

OWNER = Actor("client-1")


def _create(uc: BookingService, start: time = time(10, 0), **kwargs) -> Booking:
    params = {
        "service_id": "portrait",
        "client_id": "client-1",
        "booking_date": BOOKING_DAY,
        "start": start,
        "photographer_id": "ph-1",
    }
    params.update(kwargs)
    return uc.create_booking(**params)


class FlakyStore(MemoryBookingStore):
    """Reports a concurrent write for the first `failures` saves."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.save_calls = 0

    def save_booking(self, booking, expected_version=None):
        self.save_calls += 1
        if self.save_calls <= self.failures:
            raise ConcurrencyConflictError("simulated race")
        return super().save_booking(booking, expected_version)


class BrokenPublisher(BookingEventPublisherPort):
    def publish(self, event):
        raise RuntimeError("notifier down")


def test_create_booking_starts_pending(booking_service, publisher):
    booking = _create(booking_service, participants_count=2, client_notes="  Bring props  ")

    assert booking.status == BookingStatus.PENDING
    assert booking.end_time == time(11, 0)
    assert booking.total_price == Decimal("120.00")
    assert booking.client_notes == "Bring props"
    assert booking.version == 1
    assert booking_service.get_booking(booking.id) == booking
    assert [e.event_type for e in publisher.published] == ["created"]


def test_create_on_pending_slot_is_unavailable(booking_service):
    _create(booking_service)
    with pytest.raises(SlotUnavailableError):
        _create(booking_service, client_id="client-2")


def test_create_for_another_photographer_is_allowed(booking_service):
    _create(booking_service)
    other = _create(booking_service, photographer_id="ph-2")
    assert other.status == BookingStatus.PENDING


def test_unassigned_booking_blocks_the_service(booking_service):
    _create(booking_service, photographer_id=None)
    with pytest.raises(SlotUnavailableError):
        _create(booking_service, start=time(10, 30), photographer_id=None)
    with pytest.raises(SlotUnavailableError):
        _create(booking_service, start=time(10, 30), photographer_id="ph-3")


def test_create_validation_failures(booking_service):
    with pytest.raises(InvalidDateError):
        _create(booking_service, booking_date=date(2025, 6, 1))
    with pytest.raises(InvalidServiceError):
        _create(booking_service, participants_count=4)
    with pytest.raises(ValueError):
        _create(booking_service, client_notes="x" * 501)
    with pytest.raises(NotFoundError):
        _create(booking_service, service_id="unknown")
    with pytest.raises(NotFoundError):
        _create(booking_service, service_id="retired")
    with pytest.raises(SlotUnavailableError):
        _create(booking_service, start=time(17, 30))


def test_available_slots_reflect_created_bookings(booking_service):
    before = booking_service.compute_available_slots("portrait", BOOKING_DAY, "ph-1")
    _create(booking_service)
    after = booking_service.compute_available_slots("portrait", BOOKING_DAY, "ph-1")
    assert len(before) == 17
    assert len(after) == 14


def test_no_double_booking_across_many_requests(booking_service, store):
    for hour, minute in itertools.product(range(9, 18), (0, 30)):
        try:
            _create(booking_service, start=time(hour, minute))
        except SlotUnavailableError:
            pass

    bookings = store.list_bookings("portrait", BOOKING_DAY, "ph-1")
    assert len(bookings) == 9
    for a, b in itertools.combinations(bookings, 2):
        assert not a.window.overlaps(b.window)


def test_concurrent_creates_yield_one_booking(booking_service, store):
    barrier = threading.Barrier(8)
    outcomes: list[str] = []

    def worker(n: int) -> None:
        barrier.wait()
        try:
            _create(booking_service, client_id=f"client-{n}")
            outcomes.append("ok")
        except SlotUnavailableError:
            outcomes.append("taken")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert len(store.list_bookings("portrait", BOOKING_DAY, "ph-1")) == 1


def test_reschedule_confirmed_booking_reverts_to_pending(booking_service, publisher):
    booking = _create(booking_service)
    booking_service.accept_booking(booking.id)

    moved = booking_service.reschedule_booking(
        booking.id, date(2025, 6, 11), time(14, 0), OWNER, notes="New date works better"
    )

    assert moved.status == BookingStatus.PENDING
    assert moved.booking_date == date(2025, 6, 11)
    assert (moved.start_time, moved.end_time) == (time(14, 0), time(15, 0))
    assert moved.client_notes == "New date works better"
    assert len(booking_service.compute_available_slots("portrait", BOOKING_DAY, "ph-1")) == 17
    assert publisher.published[-1].event_type == "rescheduled"


def test_reschedule_into_taken_slot(booking_service):
    first = _create(booking_service)
    _create(booking_service, start=time(14, 0), client_id="client-2")

    with pytest.raises(SlotUnavailableError):
        booking_service.reschedule_booking(first.id, BOOKING_DAY, time(13, 30), OWNER)
    assert booking_service.get_booking(first.id).start_time == time(10, 0)


def test_reschedule_into_the_past(booking_service):
    booking = _create(booking_service)
    with pytest.raises(InvalidDateError):
        booking_service.reschedule_booking(booking.id, date(2025, 5, 1), time(10, 0), OWNER)


def test_complete_pending_booking_fails(booking_service):
    booking = _create(booking_service)
    with pytest.raises(InvalidTransitionError):
        booking_service.complete_booking(booking.id)
    assert booking_service.get_booking(booking.id).status == BookingStatus.PENDING


def test_reject_pending_booking(booking_service):
    booking = _create(booking_service)
    rejected = booking_service.reject_booking(booking.id, "schedule conflict")
    assert rejected.status == BookingStatus.CANCELLED
    assert rejected.cancellation_reason == "schedule conflict"

    replacement = _create(booking_service, client_id="client-2")
    assert replacement.start_time == time(10, 0)


def test_full_lifecycle_and_closure(booking_service):
    booking = _create(booking_service)
    booking_service.accept_booking(booking.id)
    done = booking_service.complete_booking(booking.id)
    assert done.status == BookingStatus.COMPLETED
    assert done.version == 3

    with pytest.raises(InvalidTransitionError):
        booking_service.cancel_booking(booking.id, OWNER)
    with pytest.raises(InvalidTransitionError):
        booking_service.reschedule_booking(booking.id, BOOKING_DAY, time(15, 0), OWNER)
    assert booking_service.get_booking(booking.id).status == BookingStatus.COMPLETED


def test_cancel_by_stranger_is_denied(booking_service):
    booking = _create(booking_service)
    with pytest.raises(PermissionDeniedError):
        booking_service.cancel_booking(booking.id, Actor("client-2"))
    cancelled = booking_service.cancel_booking(booking.id, OWNER, "Changed plans")
    assert cancelled.cancellation_reason == "Changed plans"


def test_delete_booking(booking_service, publisher):
    booking = _create(booking_service)
    with pytest.raises(PermissionDeniedError):
        booking_service.delete_booking(booking.id, Actor("client-2"))

    booking_service.delete_booking(booking.id, Actor.admin())

    with pytest.raises(NotFoundError):
        booking_service.get_booking(booking.id)
    with pytest.raises(NotFoundError):
        booking_service.delete_booking(booking.id, OWNER)
    assert publisher.published[-1].event_type == "deleted"


def test_unknown_booking(booking_service):
    with pytest.raises(NotFoundError):
        booking_service.accept_booking("missing")


def test_conflicts_are_retried(catalog, engine):
    store = FlakyStore(failures=2)
    uc = BookingService(store=store, catalog=catalog, engine=engine, retry_attempts=3)

    booking = _create(uc)

    assert store.save_calls == 3
    assert store.get_booking(booking.id) is not None


def test_retries_are_bounded(catalog, engine):
    store = FlakyStore(failures=5)
    uc = BookingService(store=store, catalog=catalog, engine=engine, retry_attempts=3)

    with pytest.raises(ConcurrencyConflictError):
        _create(uc)
    assert store.save_calls == 3


def test_publisher_failure_does_not_undo_write(store, catalog, engine, caplog):
    uc = BookingService(store=store, catalog=catalog, engine=engine, publisher=BrokenPublisher())

    with caplog.at_level(logging.ERROR):
        booking = _create(uc)

    assert store.get_booking(booking.id) is not None
    assert "Failed to publish booking event" in caplog.text


def test_is_modifiable(booking_service):
    soon = _create(booking_service)  # 22h ahead of the fixed clock
    later = _create(booking_service, booking_date=date(2025, 6, 20))
    assert not booking_service.is_modifiable(soon)
    assert booking_service.is_modifiable(later)


def test_off_grid_start_does_not_fragment_the_day(booking_service):
    with pytest.raises(SlotUnavailableError):
        _create(booking_service, start=time(10, 7))
    assert len(booking_service.compute_available_slots("portrait", BOOKING_DAY, "ph-1")) == 17


def test_start_with_seconds_is_rejected(booking_service, store):
    with pytest.raises(ValueError):
        _create(booking_service, start=time(10, 0, 30))
    assert store.list_bookings("portrait", BOOKING_DAY, "ph-1") == []


def test_list_client_bookings(booking_service):
    later = _create(booking_service, booking_date=date(2025, 6, 12))
    earlier = _create(booking_service, start=time(9, 0))
    _create(booking_service, start=time(14, 0), client_id="client-2")

    assert [b.id for b in booking_service.list_client_bookings("client-1")] == [earlier.id, later.id]
    assert booking_service.list_client_bookings("nobody") == []
