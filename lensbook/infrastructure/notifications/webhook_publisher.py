from __future__ import annotations

import logging

import httpx

from lensbook.application.ports.event_publisher import BookingEventPublisherPort
from lensbook.domain.entities.booking_event import BookingEvent


class WebhookEventPublisher(BookingEventPublisherPort):
    """POSTs each lifecycle event as JSON to an external notifier."""

    def __init__(
        self,
        url: str,
        secret: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._secret = secret
        self._client = client or httpx.Client(timeout=10.0)
        self._logger = logging.getLogger(__name__)

    def publish(self, event: BookingEvent) -> None:
        headers = {"X-Lensbook-Event": event.event_type}
        if self._secret:
            headers["Authorization"] = f"Bearer {self._secret}"
        resp = self._client.post(self._url, json=event.to_dict(), headers=headers)
        if resp.status_code >= 400:
            self._logger.error(
                "Booking event webhook failed",
                extra={
                    "status": resp.status_code,
                    "booking_id": event.booking_id,
                    "action": event.event_type,
                    "error": resp.text[:200],
                },
            )
            resp.raise_for_status()
