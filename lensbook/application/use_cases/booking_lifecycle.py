from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from lensbook.application.exceptions import InvalidTransitionError, PermissionDeniedError
from lensbook.application.use_cases.slot_availability import SlotAvailabilityEngine
from lensbook.domain.entities.actor import Actor
from lensbook.domain.entities.booking import Booking, BookingStatus
from lensbook.domain.entities.booking_event import BookingEvent
from lensbook.domain.entities.service import Service
from lensbook.domain.entities.time_window import TimeWindow

DEFAULT_REJECT_REASON = "Rejected by admin"
DEFAULT_CANCEL_REASON = "Cancelled by client"

# Reschedule re-enters PENDING from either active state.
TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.PENDING}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.PENDING}
    ),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class TransitionResult:
    booking: Booking
    event: BookingEvent


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS[current]


def can_modify(booking: Booking, now: datetime, min_notice_hours: int = 24) -> bool:
    """
    Whether a client should still be offered cancel/reschedule: the booking is
    active and starts at least min_notice_hours from now. Advisory only.
    """
    if booking.status.is_terminal:
        return False
    starts_at = booking.window.starts_at_datetime()
    if now.tzinfo is not None:
        now = now.replace(tzinfo=None)
    return starts_at - now > timedelta(hours=min_notice_hours)


class BookingLifecycleManager:
    """
    Owns the booking status state machine.

    Every operation is a pure function of the booking it receives and returns
    the updated copy together with the event describing the change; nothing
    is persisted here.
    """

    def __init__(self, engine: SlotAvailabilityEngine) -> None:
        self._engine = engine
        self._logger = logging.getLogger(__name__)

    def accept(self, booking: Booking, actor_id: str | None = None) -> TransitionResult:
        return self._transition(booking, BookingStatus.CONFIRMED, "accept", "accepted", actor_id)

    def reject(
        self,
        booking: Booking,
        reason: str | None = None,
        actor_id: str | None = None,
    ) -> TransitionResult:
        return self._transition(
            booking,
            BookingStatus.CANCELLED,
            "reject",
            "rejected",
            actor_id,
            reason=reason or DEFAULT_REJECT_REASON,
        )

    def cancel(self, booking: Booking, actor: Actor, reason: str | None = None) -> TransitionResult:
        self.ensure_owner_or_admin(booking, actor)
        return self._transition(
            booking,
            BookingStatus.CANCELLED,
            "cancel",
            "cancelled",
            actor.actor_id,
            reason=reason or DEFAULT_CANCEL_REASON,
        )

    def complete(self, booking: Booking, actor_id: str | None = None) -> TransitionResult:
        return self._transition(booking, BookingStatus.COMPLETED, "complete", "completed", actor_id)

    def reschedule(
        self,
        booking: Booking,
        actor: Actor,
        service: Service,
        new_window: TimeWindow,
        existing_bookings: Iterable[Booking],
        notes: str | None = None,
    ) -> TransitionResult:
        """
        Move booking to new_window. The window is re-validated against every
        other non-cancelled booking on the same resource, and the booking always
        falls back to PENDING for re-approval.
        """
        self.ensure_owner_or_admin(booking, actor)
        self._ensure_allowed(booking, BookingStatus.PENDING, "reschedule")
        self._engine.check_slot(
            service,
            new_window,
            existing_bookings,
            photographer_id=booking.photographer_id,
            exclude_booking_id=booking.id,
        )

        now = self._engine.local_now()
        changes = {
            "booking_date": new_window.date,
            "start_time": new_window.start,
            "end_time": new_window.end,
            "status": BookingStatus.PENDING,
            "updated_at": now,
        }
        if notes is not None:
            changes["client_notes"] = notes
        updated = booking.with_changes(**changes)
        event = BookingEvent(
            booking_id=booking.id,
            event_type="rescheduled",
            occurred_at=now,
            actor_id=actor.actor_id,
            from_status=booking.status,
            to_status=BookingStatus.PENDING,
        )
        self._logger.info(
            "Booking rescheduled",
            extra={"booking_id": booking.id, "status": updated.status.value, "window": str(new_window)},
        )
        return TransitionResult(booking=updated, event=event)

    def ensure_owner_or_admin(self, booking: Booking, actor: Actor) -> None:
        if actor.is_admin or actor.actor_id == booking.client_id:
            return
        raise PermissionDeniedError(f"{actor.actor_id} may not modify booking {booking.id}")

    def deletion_event(self, booking: Booking, actor: Actor) -> BookingEvent:
        """Deletion is not a status edge: allowed from any status for owner or admin."""
        self.ensure_owner_or_admin(booking, actor)
        return BookingEvent(
            booking_id=booking.id,
            event_type="deleted",
            occurred_at=self._engine.local_now(),
            actor_id=actor.actor_id,
            from_status=booking.status,
        )

    def _ensure_allowed(self, booking: Booking, target: BookingStatus, action: str) -> None:
        if not can_transition(booking.status, target):
            raise InvalidTransitionError(booking.id, booking.status.value, action)

    def _transition(
        self,
        booking: Booking,
        target: BookingStatus,
        action: str,
        event_type: str,
        actor_id: str | None,
        reason: str | None = None,
    ) -> TransitionResult:
        self._ensure_allowed(booking, target, action)
        now = self._engine.local_now()
        updated = booking.with_changes(
            status=target,
            cancellation_reason=reason if target == BookingStatus.CANCELLED else None,
            updated_at=now,
        )
        event = BookingEvent(
            booking_id=booking.id,
            event_type=event_type,
            occurred_at=now,
            actor_id=actor_id,
            from_status=booking.status,
            to_status=target,
            reason=reason,
        )
        self._logger.info(
            "Booking status changed",
            extra={
                "booking_id": booking.id,
                "action": action,
                "status": target.value,
                "reason": reason,
            },
        )
        return TransitionResult(booking=updated, event=event)
