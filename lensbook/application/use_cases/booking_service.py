from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import date, time

from lensbook.application.exceptions import ConcurrencyConflictError, NotFoundError
from lensbook.application.ports.booking_store import BookingStorePort
from lensbook.application.ports.event_publisher import BookingEventPublisherPort
from lensbook.application.ports.service_catalog import ServiceCatalogPort
from lensbook.application.use_cases.booking_lifecycle import (
    BookingLifecycleManager,
    TransitionResult,
    can_modify,
)
from lensbook.application.use_cases.slot_availability import SlotAvailabilityEngine, validate_service
from lensbook.application.utils.retry import retry_on_conflict
from lensbook.domain.entities.actor import Actor
from lensbook.domain.entities.booking import Booking, BookingStatus
from lensbook.domain.entities.booking_event import BookingEvent
from lensbook.domain.entities.service import Service
from lensbook.domain.entities.time_window import TimeWindow


def date_scope(booking_date: date) -> str:
    return f"date:{booking_date.isoformat()}"


class BookingService:
    """
    Application-facing booking operations.

    Each write re-reads its snapshot and re-runs the conflict check inside the
    store's atomic boundary, then saves against the version it read. Conflicts
    reported by the store re-run the whole operation a bounded number of times.
    """

    def __init__(
        self,
        store: BookingStorePort,
        catalog: ServiceCatalogPort,
        engine: SlotAvailabilityEngine,
        lifecycle: BookingLifecycleManager | None = None,
        publisher: BookingEventPublisherPort | None = None,
        retry_attempts: int = 3,
        notes_max_length: int = 500,
        modify_notice_hours: int = 24,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._engine = engine
        self._lifecycle = lifecycle or BookingLifecycleManager(engine)
        self._publisher = publisher
        self._retry_attempts = retry_attempts
        self._notes_max_length = notes_max_length
        self._modify_notice_hours = modify_notice_hours
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._logger = logging.getLogger(__name__)

    def compute_available_slots(
        self,
        service_id: str,
        booking_date: date,
        photographer_id: str | None = None,
        participants: int | None = None,
    ) -> list[TimeWindow]:
        service = self._require_service(service_id)
        self._engine.ensure_not_past(booking_date)
        existing = self._store.list_bookings(service_id, booking_date, photographer_id)
        return self._engine.compute_slots(
            service,
            booking_date,
            existing,
            photographer_id=photographer_id,
            participants=participants,
        )

    def get_booking(self, booking_id: str) -> Booking:
        return self._require_booking(booking_id)

    def list_client_bookings(self, client_id: str) -> list[Booking]:
        return self._store.list_client_bookings(client_id)

    def is_modifiable(self, booking: Booking) -> bool:
        return can_modify(booking, self._engine.local_now(), self._modify_notice_hours)

    def create_booking(
        self,
        service_id: str,
        client_id: str,
        booking_date: date,
        start: time,
        participants_count: int = 1,
        photographer_id: str | None = None,
        client_notes: str | None = None,
        location: str | None = None,
    ) -> Booking:
        service = self._require_service(service_id)
        self._engine.ensure_not_past(booking_date)
        validate_service(service, participants_count)
        notes = self._clean_notes(client_notes)
        window = TimeWindow.starting_at(booking_date, start, service.duration_minutes)

        def attempt() -> Booking:
            with self._store.atomic(date_scope(booking_date)):
                existing = self._store.list_bookings(service_id, booking_date, photographer_id)
                self._engine.check_slot(service, window, existing, photographer_id=photographer_id)
                now = self._engine.local_now()
                booking = Booking(
                    id=self._id_factory(),
                    service_id=service.id,
                    client_id=client_id,
                    booking_date=window.date,
                    start_time=window.start,
                    end_time=window.end,
                    created_at=now,
                    updated_at=now,
                    photographer_id=photographer_id,
                    participants_count=participants_count,
                    status=BookingStatus.PENDING,
                    client_notes=notes,
                    location=location.strip() if location else None,
                    total_price=service.price,
                )
                return self._store.save_booking(booking, expected_version=None)

        saved = retry_on_conflict(attempt, self._retry_attempts)
        self._logger.info(
            "Booking created",
            extra={"booking_id": saved.id, "service": service.id, "window": str(saved.window)},
        )
        self._publish(
            BookingEvent(
                booking_id=saved.id,
                event_type="created",
                occurred_at=saved.created_at,
                actor_id=client_id,
                to_status=saved.status,
            )
        )
        return saved

    def accept_booking(self, booking_id: str, actor_id: str | None = None) -> Booking:
        return self._apply(booking_id, lambda b: self._lifecycle.accept(b, actor_id))

    def reject_booking(
        self,
        booking_id: str,
        reason: str | None = None,
        actor_id: str | None = None,
    ) -> Booking:
        return self._apply(booking_id, lambda b: self._lifecycle.reject(b, reason, actor_id))

    def cancel_booking(self, booking_id: str, actor: Actor, reason: str | None = None) -> Booking:
        return self._apply(booking_id, lambda b: self._lifecycle.cancel(b, actor, reason))

    def complete_booking(self, booking_id: str, actor_id: str | None = None) -> Booking:
        return self._apply(booking_id, lambda b: self._lifecycle.complete(b, actor_id))

    def reschedule_booking(
        self,
        booking_id: str,
        new_date: date,
        new_start: time,
        actor: Actor,
        notes: str | None = None,
    ) -> Booking:
        self._engine.ensure_not_past(new_date)
        cleaned_notes = self._clean_notes(notes)

        def attempt() -> tuple[Booking, BookingEvent]:
            booking = self._require_booking(booking_id)
            service = self._require_service(booking.service_id, active_only=False)
            window = TimeWindow.starting_at(new_date, new_start, service.duration_minutes)
            with self._store.atomic(date_scope(booking.booking_date), date_scope(new_date)):
                current = self._require_booking(booking_id)
                if current.booking_date != booking.booking_date:
                    raise ConcurrencyConflictError(f"Booking {booking_id} moved while rescheduling")
                existing = self._store.list_bookings(
                    current.service_id, new_date, current.photographer_id
                )
                result = self._lifecycle.reschedule(
                    current, actor, service, window, existing, notes=cleaned_notes
                )
                saved = self._store.save_booking(result.booking, expected_version=current.version)
            return saved, result.event

        saved, event = retry_on_conflict(attempt, self._retry_attempts)
        self._publish(event)
        return saved

    def delete_booking(self, booking_id: str, actor: Actor) -> None:
        def attempt() -> BookingEvent:
            booking = self._require_booking(booking_id)
            with self._store.atomic(date_scope(booking.booking_date)):
                current = self._require_booking(booking_id)
                event = self._lifecycle.deletion_event(current, actor)
                if not self._store.delete_booking(booking_id):
                    raise NotFoundError(f"Booking {booking_id} not found")
            return event

        event = retry_on_conflict(attempt, self._retry_attempts)
        self._logger.info("Booking deleted", extra={"booking_id": booking_id, "actor_id": actor.actor_id})
        self._publish(event)

    def _apply(self, booking_id: str, step: Callable[[Booking], TransitionResult]) -> Booking:
        def attempt() -> tuple[Booking, BookingEvent]:
            booking = self._require_booking(booking_id)
            with self._store.atomic(date_scope(booking.booking_date)):
                current = self._require_booking(booking_id)
                result = step(current)
                saved = self._store.save_booking(result.booking, expected_version=current.version)
            return saved, result.event

        saved, event = retry_on_conflict(attempt, self._retry_attempts)
        self._publish(event)
        return saved

    def _publish(self, event: BookingEvent) -> None:
        if self._publisher is None:
            return
        try:
            self._publisher.publish(event)
        except Exception as e:
            # Already committed; notification failures are only logged.
            self._logger.exception(
                "Failed to publish booking event",
                extra={"booking_id": event.booking_id, "action": event.event_type, "error": str(e)},
            )

    def _require_booking(self, booking_id: str) -> Booking:
        booking = self._store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def _require_service(self, service_id: str, active_only: bool = True) -> Service:
        service = self._catalog.get_service(service_id)
        if service is None or (active_only and not service.is_active):
            raise NotFoundError(f"Service {service_id} not found")
        return service

    def _clean_notes(self, notes: str | None) -> str | None:
        if notes is None:
            return None
        cleaned = notes.strip()
        if len(cleaned) > self._notes_max_length:
            raise ValueError(f"Notes cannot exceed {self._notes_max_length} characters")
        return cleaned or None
