from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from datetime import date

from lensbook.application.exceptions import ConcurrencyConflictError
from lensbook.application.ports.booking_store import BookingStorePort
from lensbook.application.use_cases.slot_availability import find_conflicts
from lensbook.domain.entities.booking import Booking, shares_resource


class MemoryBookingStore(BookingStorePort):
    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}
        self._by_date: dict[date, set[str]] = {}
        self._data_lock = threading.RLock()
        self._scope_locks: dict[str, threading.RLock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict

    def _get_lock(self, scope: str) -> threading.RLock:
        with self._lock_lock:
            if scope not in self._scope_locks:
                self._scope_locks[scope] = threading.RLock()
            return self._scope_locks[scope]

    @contextmanager
    def atomic(self, *scopes: str) -> Iterator[None]:
        # Sorted acquisition keeps two multi-scope writers from deadlocking.
        with ExitStack() as stack:
            for scope in sorted(set(scopes)):
                stack.enter_context(self._get_lock(scope))
            yield

    def list_bookings(
        self,
        service_id: str,
        booking_date: date,
        photographer_id: str | None = None,
    ) -> list[Booking]:
        with self._data_lock:
            bookings = [self._bookings[i] for i in self._by_date.get(booking_date, set())]
        return sorted(
            (b for b in bookings if shares_resource(b, service_id, photographer_id)),
            key=lambda b: (b.start_time, b.id),
        )

    def list_client_bookings(self, client_id: str) -> list[Booking]:
        with self._data_lock:
            owned = [b for b in self._bookings.values() if b.client_id == client_id]
        return sorted(owned, key=lambda b: (b.booking_date, b.start_time, b.id))

    def get_booking(self, booking_id: str) -> Booking | None:
        with self._data_lock:
            return self._bookings.get(booking_id)

    def save_booking(self, booking: Booking, expected_version: int | None = None) -> Booking:
        with self._data_lock:
            existing = self._bookings.get(booking.id)
            _check_version(booking.id, existing, expected_version)

            same_day = [self._bookings[i] for i in self._by_date.get(booking.booking_date, set())]
            _check_overlap(booking, same_day)

            stored = booking.with_changes(version=(existing.version if existing else 0) + 1)
            if existing is not None and existing.booking_date != stored.booking_date:
                self._by_date[existing.booking_date].discard(stored.id)
            self._bookings[stored.id] = stored
            self._by_date.setdefault(stored.booking_date, set()).add(stored.id)
            return stored

    def delete_booking(self, booking_id: str) -> bool:
        with self._data_lock:
            existing = self._bookings.pop(booking_id, None)
            if existing is None:
                return False
            self._by_date.get(existing.booking_date, set()).discard(booking_id)
            return True


def _check_version(booking_id: str, existing: Booking | None, expected_version: int | None) -> None:
    if expected_version is None:
        if existing is not None:
            raise ConcurrencyConflictError(f"Booking {booking_id} already exists")
        return
    if existing is None or existing.version != expected_version:
        raise ConcurrencyConflictError(f"Booking {booking_id} was modified concurrently")


def _check_overlap(booking: Booking, same_day: list[Booking]) -> None:
    if not booking.blocks_slot:
        return
    rivals = [b for b in same_day if shares_resource(b, booking.service_id, booking.photographer_id)]
    conflicts = find_conflicts(booking.window, rivals, exclude_booking_id=booking.id)
    if conflicts:
        raise ConcurrencyConflictError(
            f"Booking {booking.id} overlaps {', '.join(b.id for b in conflicts)}"
        )
