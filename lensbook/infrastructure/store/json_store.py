from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from lensbook.application.exceptions import ConcurrencyConflictError
from lensbook.application.ports.booking_store import BookingStorePort
from lensbook.application.use_cases.slot_availability import find_conflicts
from lensbook.domain.entities.booking import Booking, BookingStatus, shares_resource
from lensbook.domain.entities.time_window import format_hhmm, parse_hhmm


class JsonBookingStore(BookingStorePort):
    """
    Bookings persisted as one JSON file per booking date.

    The file for a date doubles as the (date) secondary index used by conflict
    checks; an in-memory id -> date map is rebuilt from the files on startup.
    """

    def __init__(self, data_dir: str = "./data/bookings") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.RLock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._index_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)
        self._index: dict[str, date] = self._build_index()

    def _get_lock(self, scope: str) -> threading.RLock:
        """Get or create a lock for a scope."""
        with self._lock_lock:
            if scope not in self._locks:
                self._locks[scope] = threading.RLock()
            return self._locks[scope]

    def _date_lock(self, booking_date: date) -> threading.RLock:
        return self._get_lock(f"date:{booking_date.isoformat()}")

    @contextmanager
    def atomic(self, *scopes: str) -> Iterator[None]:
        with ExitStack() as stack:
            for scope in sorted(set(scopes)):
                stack.enter_context(self._get_lock(scope))
            yield

    def _get_file_path(self, booking_date: date) -> Path:
        return self._data_dir / f"{booking_date.isoformat()}.json"

    def _build_index(self) -> dict[str, date]:
        index: dict[str, date] = {}
        for file_path in self._data_dir.glob("*.json"):
            try:
                booking_date = date.fromisoformat(file_path.stem)
            except ValueError:
                continue
            for booking_id in self._load_day(booking_date).get("bookings", {}):
                index[booking_id] = booking_date
        return index

    def _load_day(self, booking_date: date) -> dict[str, Any]:
        """Load a day file, return an empty day if missing or unreadable."""
        file_path = self._get_file_path(booking_date)
        empty = {"date": booking_date.isoformat(), "bookings": {}, "version": 1}
        if not file_path.exists():
            return empty

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
                if "bookings" not in data:
                    data["bookings"] = {}
                return data
        except (json.JSONDecodeError, IOError) as e:
            self._logger.warning(
                "Unreadable bookings file, treating as empty",
                extra={"path": str(file_path), "error": str(e)},
            )
            return empty

    def _save_day(self, booking_date: date, data: dict[str, Any]) -> None:
        """Save a day file atomically."""
        file_path = self._get_file_path(booking_date)
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            # Atomic rename
            temp_path.replace(file_path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise

    def list_bookings(
        self,
        service_id: str,
        booking_date: date,
        photographer_id: str | None = None,
    ) -> list[Booking]:
        with self._date_lock(booking_date):
            bookings = self._day_bookings(booking_date)
        return sorted(
            (b for b in bookings if shares_resource(b, service_id, photographer_id)),
            key=lambda b: (b.start_time, b.id),
        )

    def list_client_bookings(self, client_id: str) -> list[Booking]:
        with self._index_lock:
            dates = sorted(set(self._index.values()))
        owned: list[Booking] = []
        for booking_date in dates:
            with self._date_lock(booking_date):
                bookings = self._day_bookings(booking_date)
            owned.extend(b for b in bookings if b.client_id == client_id)
        return sorted(owned, key=lambda b: (b.booking_date, b.start_time, b.id))

    def get_booking(self, booking_id: str) -> Booking | None:
        with self._index_lock:
            booking_date = self._index.get(booking_id)
        if booking_date is None:
            return None
        with self._date_lock(booking_date):
            raw = self._load_day(booking_date)["bookings"].get(booking_id)
        return self._deserialize_booking(raw) if raw else None

    def save_booking(self, booking: Booking, expected_version: int | None = None) -> Booking:
        existing = self.get_booking(booking.id)
        old_date = existing.booking_date if existing else booking.booking_date
        with self.atomic(f"date:{old_date.isoformat()}", f"date:{booking.booking_date.isoformat()}"):
            existing = self.get_booking(booking.id)
            if existing is not None and existing.booking_date != old_date:
                raise ConcurrencyConflictError(f"Booking {booking.id} moved concurrently")
            if expected_version is None and existing is not None:
                raise ConcurrencyConflictError(f"Booking {booking.id} already exists")
            if expected_version is not None and (existing is None or existing.version != expected_version):
                raise ConcurrencyConflictError(f"Booking {booking.id} was modified concurrently")

            if booking.blocks_slot:
                rivals = [
                    b
                    for b in self._day_bookings(booking.booking_date)
                    if shares_resource(b, booking.service_id, booking.photographer_id)
                ]
                conflicts = find_conflicts(booking.window, rivals, exclude_booking_id=booking.id)
                if conflicts:
                    raise ConcurrencyConflictError(
                        f"Booking {booking.id} overlaps {', '.join(b.id for b in conflicts)}"
                    )

            stored = booking.with_changes(version=(existing.version if existing else 0) + 1)
            if existing is not None and existing.booking_date != stored.booking_date:
                old_day = self._load_day(existing.booking_date)
                old_day["bookings"].pop(stored.id, None)
                self._save_day(existing.booking_date, old_day)

            day = self._load_day(stored.booking_date)
            day["bookings"][stored.id] = self._serialize_booking(stored)
            self._save_day(stored.booking_date, day)
            with self._index_lock:
                self._index[stored.id] = stored.booking_date
            return stored

    def delete_booking(self, booking_id: str) -> bool:
        with self._index_lock:
            booking_date = self._index.get(booking_id)
        if booking_date is None:
            return False
        with self._date_lock(booking_date):
            day = self._load_day(booking_date)
            if day["bookings"].pop(booking_id, None) is None:
                return False
            self._save_day(booking_date, day)
            with self._index_lock:
                self._index.pop(booking_id, None)
            return True

    def _day_bookings(self, booking_date: date) -> list[Booking]:
        raw = self._load_day(booking_date)["bookings"]
        return [self._deserialize_booking(item) for item in raw.values()]

    def _serialize_booking(self, booking: Booking) -> dict[str, Any]:
        """Serialize Booking to dict with ISO string conversion."""
        return {
            "id": booking.id,
            "service_id": booking.service_id,
            "client_id": booking.client_id,
            "booking_date": booking.booking_date.isoformat(),
            "start_time": format_hhmm(booking.start_time),
            "end_time": format_hhmm(booking.end_time),
            "photographer_id": booking.photographer_id,
            "participants_count": booking.participants_count,
            "status": booking.status.value,
            "cancellation_reason": booking.cancellation_reason,
            "client_notes": booking.client_notes,
            "location": booking.location,
            "total_price": str(booking.total_price),
            "created_at": booking.created_at.isoformat(),
            "updated_at": booking.updated_at.isoformat(),
            "version": booking.version,
        }

    def _deserialize_booking(self, data: dict[str, Any]) -> Booking:
        """Deserialize dict to Booking."""
        return Booking(
            id=data["id"],
            service_id=data["service_id"],
            client_id=data["client_id"],
            booking_date=date.fromisoformat(data["booking_date"]),
            start_time=parse_hhmm(data["start_time"]),
            end_time=parse_hhmm(data["end_time"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            photographer_id=data.get("photographer_id"),
            participants_count=data.get("participants_count", 1),
            status=BookingStatus(data.get("status", BookingStatus.PENDING.value)),
            cancellation_reason=data.get("cancellation_reason"),
            client_notes=data.get("client_notes"),
            location=data.get("location"),
            total_price=Decimal(data.get("total_price") or "0"),
            version=data.get("version", 0),
        )