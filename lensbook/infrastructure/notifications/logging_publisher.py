from __future__ import annotations

import logging

from lensbook.application.ports.event_publisher import BookingEventPublisherPort
from lensbook.domain.entities.booking_event import BookingEvent


class LoggingEventPublisher(BookingEventPublisherPort):
    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def publish(self, event: BookingEvent) -> None:
        self._logger.info(
            "Booking event",
            extra={
                "booking_id": event.booking_id,
                "action": event.event_type,
                "status": event.to_status.value if event.to_status else None,
                "actor_id": event.actor_id,
                "reason": event.reason,
            },
        )
