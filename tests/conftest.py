from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from lensbook.application.use_cases.booking_lifecycle import BookingLifecycleManager
from lensbook.application.use_cases.booking_service import BookingService
from lensbook.application.use_cases.slot_availability import SlotAvailabilityEngine
from lensbook.domain.entities.booking import Booking, BookingStatus
from lensbook.domain.entities.booking_event import BookingEvent
from lensbook.domain.entities.operating_hours import OperatingHours
from lensbook.domain.entities.service import Service
from lensbook.infrastructure.catalog.service_catalog_store import ServiceCatalogStore
from lensbook.infrastructure.notifications.logging_publisher import LoggingEventPublisher
from lensbook.infrastructure.store.memory_store import MemoryBookingStore

TZ = ZoneInfo("Europe/Paris")
# Fixed "now": the day before the reference booking date used across tests.
NOW = datetime(2025, 6, 9, 12, 0, tzinfo=TZ)
BOOKING_DAY = date(2025, 6, 10)


class FakeClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_booking(
    booking_id: str,
    start: time,
    end: time,
    booking_date: date = BOOKING_DAY,
    service_id: str = "portrait",
    client_id: str = "client-1",
    photographer_id: str | None = "ph-1",
    status: BookingStatus = BookingStatus.CONFIRMED,
    version: int = 1,
) -> Booking:
    return Booking(
        id=booking_id,
        service_id=service_id,
        client_id=client_id,
        booking_date=booking_date,
        start_time=start,
        end_time=end,
        created_at=NOW,
        updated_at=NOW,
        photographer_id=photographer_id,
        status=status,
        version=version,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def portrait() -> Service:
    return Service(
        id="portrait",
        name="Portrait Session",
        duration_minutes=60,
        max_participants=3,
        price=Decimal("120.00"),
    )


@pytest.fixture
def catalog(portrait: Service) -> ServiceCatalogStore:
    return ServiceCatalogStore(
        {
            "portrait": portrait,
            "wedding": Service(id="wedding", name="Wedding", duration_minutes=600),
            "retired": Service(id="retired", name="Retired", duration_minutes=60, is_active=False),
        }
    )


@pytest.fixture
def engine(clock: FakeClock) -> SlotAvailabilityEngine:
    return SlotAvailabilityEngine(hours=OperatingHours(), timezone=TZ, now=clock)


@pytest.fixture
def lifecycle(engine: SlotAvailabilityEngine) -> BookingLifecycleManager:
    return BookingLifecycleManager(engine)


@pytest.fixture
def store() -> MemoryBookingStore:
    return MemoryBookingStore()


class RecordingPublisher(LoggingEventPublisher):
    """Logs like the default publisher and keeps what it sent for assertions."""

    def __init__(self) -> None:
        super().__init__()
        self.published: list[BookingEvent] = []

    def publish(self, event: BookingEvent) -> None:
        self.published.append(event)
        super().publish(event)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def booking_service(
    store: MemoryBookingStore,
    catalog: ServiceCatalogStore,
    engine: SlotAvailabilityEngine,
    lifecycle: BookingLifecycleManager,
    publisher: RecordingPublisher,
) -> BookingService:
    return BookingService(
        store=store,
        catalog=catalog,
        engine=engine,
        lifecycle=lifecycle,
        publisher=publisher,
    )
