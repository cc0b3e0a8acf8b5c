class BookingError(Exception):
    """Base class for booking core failures surfaced to the calling layer."""
    pass


class InvalidDateError(BookingError):
    """Raised when a booking or availability date lies in the past."""
    pass


class InvalidServiceError(BookingError):
    """Raised for malformed service configuration or too many participants."""
    pass


class SlotUnavailableError(BookingError):
    """Raised when a requested window conflicts with an existing booking."""

    def __init__(self, message: str, conflicting_ids: list[str] | None = None) -> None:
        super().__init__(message)
        self.conflicting_ids = list(conflicting_ids or [])


class InvalidTransitionError(BookingError):
    """Raised when a lifecycle operation is not permitted from the current status."""

    def __init__(self, booking_id: str, status: str, action: str) -> None:
        super().__init__(f"Cannot {action} booking {booking_id} while it is {status}")
        self.booking_id = booking_id
        self.status = status
        self.action = action


class PermissionDeniedError(BookingError):
    """Raised when the actor is neither the booking owner nor an admin."""
    pass


class NotFoundError(BookingError):
    """Raised when a referenced booking or service does not exist."""
    pass


class ConcurrencyConflictError(BookingError):
    """Raised by the store when a concurrent writer got there first. Retryable."""
    pass
