from __future__ import annotations

from abc import ABC, abstractmethod

from lensbook.domain.entities.booking_event import BookingEvent


class BookingEventPublisherPort(ABC):
    @abstractmethod
    def publish(self, event: BookingEvent) -> None:
        """Hand a lifecycle event to an external notifier."""
        raise NotImplementedError
