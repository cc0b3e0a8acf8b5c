from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime
from zoneinfo import ZoneInfo

from lensbook.application.exceptions import InvalidDateError, InvalidServiceError, SlotUnavailableError
from lensbook.domain.entities.booking import Booking, shares_resource
from lensbook.domain.entities.operating_hours import OperatingHours
from lensbook.domain.entities.service import Service
from lensbook.domain.entities.time_window import TimeWindow, minutes_to_time, time_to_minutes


def find_conflicts(
    window: TimeWindow,
    bookings: Iterable[Booking],
    exclude_booking_id: str | None = None,
) -> list[Booking]:
    """Every non-cancelled booking whose window overlaps the candidate."""
    return [
        booking
        for booking in bookings
        if booking.blocks_slot
        and booking.id != exclude_booking_id
        and booking.window.overlaps(window)
    ]


def validate_service(service: Service, participants: int | None = None) -> None:
    if service.duration_minutes <= 0:
        raise InvalidServiceError(f"Service {service.id} has a non-positive duration")
    if service.max_participants < 1:
        raise InvalidServiceError(f"Service {service.id} must allow at least one participant")
    if participants is not None:
        if participants < 1:
            raise InvalidServiceError("At least one participant is required")
        if participants > service.max_participants:
            raise InvalidServiceError(
                f"Service {service.id} allows at most {service.max_participants} participants"
            )


class SlotAvailabilityEngine:
    """
    Computes bookable windows for a (service, date, photographer) triple.

    Pure over the bookings it is handed: the caller supplies the snapshot and
    owns the atomicity around acting on the result.
    """

    def __init__(
        self,
        hours: OperatingHours,
        timezone: ZoneInfo,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._hours = hours
        self._timezone = timezone
        self._now = now or (lambda: datetime.now(self._timezone))
        self._logger = logging.getLogger(__name__)

    @property
    def hours(self) -> OperatingHours:
        return self._hours

    def local_now(self) -> datetime:
        current = self._now()
        if current.tzinfo is None:
            return current.replace(tzinfo=self._timezone)
        return current.astimezone(self._timezone)

    def ensure_not_past(self, booking_date: date) -> None:
        today = self.local_now().date()
        if booking_date < today:
            raise InvalidDateError(f"{booking_date.isoformat()} is in the past")

    def has_started(self, window: TimeWindow) -> bool:
        now = self.local_now()
        if window.date != now.date():
            return window.date < now.date()
        return window.start <= now.time().replace(second=0, microsecond=0)

    def compute_slots(
        self,
        service: Service,
        booking_date: date,
        existing_bookings: Iterable[Booking],
        photographer_id: str | None = None,
        participants: int | None = None,
    ) -> list[TimeWindow]:
        self.ensure_not_past(booking_date)
        validate_service(service, participants)

        if service.duration_minutes > self._hours.length_minutes:
            return []

        relevant = [
            booking
            for booking in existing_bookings
            if booking.booking_date == booking_date
            and shares_resource(booking, service.id, photographer_id)
        ]

        slots: list[TimeWindow] = []
        last_start = time_to_minutes(self._hours.day_end) - service.duration_minutes
        offset = time_to_minutes(self._hours.day_start)
        while offset <= last_start:
            start = minutes_to_time(offset)
            window = TimeWindow.starting_at(booking_date, start, service.duration_minutes)
            offset += self._hours.step_minutes

            if self.has_started(window):
                continue
            if find_conflicts(window, relevant):
                continue
            slots.append(window)

        self._logger.debug(
            "Computed available slots",
            extra={
                "service": service.id,
                "booking_date": booking_date.isoformat(),
                "photographer_id": photographer_id,
                "slot_count": len(slots),
            },
        )
        return slots

    def check_slot(
        self,
        service: Service,
        window: TimeWindow,
        existing_bookings: Iterable[Booking],
        photographer_id: str | None = None,
        exclude_booking_id: str | None = None,
    ) -> None:
        """Raise SlotUnavailableError unless window could be booked right now."""
        self.ensure_not_past(window.date)

        if window.duration_minutes != service.duration_minutes:
            raise SlotUnavailableError(
                f"Window {window} does not match the {service.duration_minutes} minute duration"
            )
        if window.start < self._hours.day_start or window.end > self._hours.day_end:
            raise SlotUnavailableError(f"Window {window} is outside operating hours")
        if not self._hours.on_grid(window.start):
            raise SlotUnavailableError(
                f"Window {window} does not start on the {self._hours.step_minutes} minute grid"
            )
        if self.has_started(window):
            raise SlotUnavailableError(f"Window {window} has already started")

        relevant = [
            booking
            for booking in existing_bookings
            if booking.booking_date == window.date
            and shares_resource(booking, service.id, photographer_id)
        ]
        conflicts = find_conflicts(window, relevant, exclude_booking_id=exclude_booking_id)
        if conflicts:
            raise SlotUnavailableError(
                f"Window {window} overlaps an existing booking",
                conflicting_ids=[booking.id for booking in conflicts],
            )