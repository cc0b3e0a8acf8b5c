from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum

from lensbook.domain.entities.time_window import TimeWindow


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class Booking:
    id: str
    service_id: str
    client_id: str
    booking_date: date
    start_time: time
    end_time: time
    created_at: datetime
    updated_at: datetime
    photographer_id: str | None = None  # None means "to be determined"
    participants_count: int = 1
    status: BookingStatus = BookingStatus.PENDING
    cancellation_reason: str | None = None  # only set when cancelled
    client_notes: str | None = None
    location: str | None = None
    total_price: Decimal = Decimal("0")
    version: int = 0

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(date=self.booking_date, start=self.start_time, end=self.end_time)

    @property
    def blocks_slot(self) -> bool:
        return self.status != BookingStatus.CANCELLED

    def with_changes(self, **changes) -> Booking:
        return replace(self, **changes)


def shares_resource(booking: Booking, service_id: str, photographer_id: str | None) -> bool:
    """
    Whether booking competes for the same resource as a request for
    (service_id, photographer_id). Two assigned photographers are compared
    directly; when either side is unassigned the photographer is still "to be
    determined" and the service itself is treated as the contended resource.
    """
    if photographer_id and booking.photographer_id:
        return booking.photographer_id == photographer_id
    return booking.service_id == service_id
