from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from lensbook.core.config import settings
from lensbook.application.ports.booking_store import BookingStorePort
from lensbook.application.ports.event_publisher import BookingEventPublisherPort
from lensbook.application.ports.service_catalog import ServiceCatalogPort
from lensbook.application.use_cases.booking_lifecycle import BookingLifecycleManager
from lensbook.application.use_cases.booking_service import BookingService
from lensbook.application.use_cases.slot_availability import SlotAvailabilityEngine
from lensbook.domain.entities.operating_hours import OperatingHours
from lensbook.domain.entities.time_window import parse_hhmm
from lensbook.infrastructure.catalog.service_catalog_store import ServiceCatalogStore
from lensbook.infrastructure.notifications.logging_publisher import LoggingEventPublisher
from lensbook.infrastructure.notifications.webhook_publisher import WebhookEventPublisher
from lensbook.infrastructure.store.json_store import JsonBookingStore
from lensbook.infrastructure.store.memory_store import MemoryBookingStore


logger = logging.getLogger(__name__)


def get_timezone() -> ZoneInfo:
    try:
        return ZoneInfo(settings.BUSINESS_TIMEZONE)
    except Exception:
        logger.warning("Unknown BUSINESS_TIMEZONE, falling back to UTC", extra={"reason": settings.BUSINESS_TIMEZONE})
        return ZoneInfo("UTC")


@lru_cache
def get_booking_store() -> BookingStorePort:
    if settings.STORE_PROVIDER.lower() == "json":
        logger.info("Using JsonBookingStore at %s", settings.DATA_DIR)
        return JsonBookingStore(data_dir=settings.DATA_DIR)
    return MemoryBookingStore()


@lru_cache
def get_service_catalog() -> ServiceCatalogPort:
    return ServiceCatalogStore()


@lru_cache
def get_event_publisher() -> BookingEventPublisherPort:
    if settings.EVENTS_WEBHOOK_URL:
        logger.info("Using WebhookEventPublisher")
        return WebhookEventPublisher(
            url=settings.EVENTS_WEBHOOK_URL,
            secret=settings.EVENTS_WEBHOOK_SECRET,
        )
    return LoggingEventPublisher()


def get_operating_hours() -> OperatingHours:
    return OperatingHours(
        day_start=parse_hhmm(settings.DAY_START),
        day_end=parse_hhmm(settings.DAY_END),
        step_minutes=settings.SLOT_STEP_MINUTES,
    )


def get_availability_engine() -> SlotAvailabilityEngine:
    return SlotAvailabilityEngine(hours=get_operating_hours(), timezone=get_timezone())


def get_booking_service() -> BookingService:
    engine = get_availability_engine()
    return BookingService(
        store=get_booking_store(),
        catalog=get_service_catalog(),
        engine=engine,
        lifecycle=BookingLifecycleManager(engine),
        publisher=get_event_publisher(),
        retry_attempts=settings.CONFLICT_RETRY_ATTEMPTS,
        notes_max_length=settings.CLIENT_NOTES_MAX_LENGTH,
        modify_notice_hours=settings.MODIFY_NOTICE_HOURS,
    )
