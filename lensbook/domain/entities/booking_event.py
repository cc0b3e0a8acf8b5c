from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from lensbook.domain.entities.booking import BookingStatus


@dataclass(frozen=True)
class BookingEvent:
    booking_id: str
    event_type: str  # "created", "accepted", "rejected", "cancelled", "completed", "rescheduled", "deleted"
    occurred_at: datetime
    actor_id: str | None = None
    from_status: BookingStatus | None = None
    to_status: BookingStatus | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "booking_id": self.booking_id,
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "actor_id": self.actor_id,
            "from_status": self.from_status.value if self.from_status else None,
            "to_status": self.to_status.value if self.to_status else None,
            "reason": self.reason,
        }
