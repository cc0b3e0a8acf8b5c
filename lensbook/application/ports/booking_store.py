from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date

from lensbook.domain.entities.booking import Booking


class BookingStorePort(ABC):
    @abstractmethod
    def list_bookings(
        self,
        service_id: str,
        booking_date: date,
        photographer_id: str | None = None,
    ) -> list[Booking]:
        """
        Return every booking on exactly booking_date for the contended resource:
        the photographer when given, otherwise the service. Cancelled bookings
        are included; callers filter by status.
        """
        raise NotImplementedError

    @abstractmethod
    def list_client_bookings(self, client_id: str) -> list[Booking]:
        """Every booking owned by client_id, ordered by date then start time."""
        raise NotImplementedError

    @abstractmethod
    def get_booking(self, booking_id: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    def save_booking(self, booking: Booking, expected_version: int | None = None) -> Booking:
        """
        Atomically create or update a booking and return the stored copy with
        its version bumped.

        expected_version is the version the caller read; None means the booking
        must not exist yet. Raises ConcurrencyConflictError when the stored
        version differs or when the write would overlap another non-cancelled
        booking on the same resource and date.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_booking(self, booking_id: str) -> bool:
        """Hard-delete a booking. Returns False when it did not exist."""
        raise NotImplementedError

    @abstractmethod
    def atomic(self, *scopes: str) -> AbstractContextManager[None]:
        """
        Serialize read-check-write sequences over the given scopes, one per
        booking date touched. The conflict check must be repeated inside this
        boundary right before save_booking.
        """
        raise NotImplementedError
