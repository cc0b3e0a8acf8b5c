from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lensbook.domain.entities.booking import Booking, BookingStatus
from lensbook.domain.entities.service import Service
from lensbook.domain.entities.time_window import TimeWindow, ensure_wall_minute, format_hhmm


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ServiceSchema(CamelModel):
    id: str
    name: str
    duration: int
    max_participants: int = Field(alias="maxParticipants")
    price: Decimal
    is_active: bool = Field(alias="isActive")
    category: str | None = None
    description: str | None = None

    @classmethod
    def from_entity(cls, service: Service) -> ServiceSchema:
        return cls(
            id=service.id,
            name=service.name,
            duration=service.duration_minutes,
            max_participants=service.max_participants,
            price=service.price,
            is_active=service.is_active,
            category=service.category,
            description=service.description,
        )


class SlotSchema(CamelModel):
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    duration: int

    @classmethod
    def from_window(cls, window: TimeWindow) -> SlotSchema:
        return cls(
            start_time=format_hhmm(window.start),
            end_time=format_hhmm(window.end),
            duration=window.duration_minutes,
        )


class AvailableSlotsResponseSchema(CamelModel):
    service_id: str = Field(alias="serviceId")
    booking_date: date = Field(alias="date")
    photographer: str | None = None
    slots: list[SlotSchema] = Field(default_factory=list)


class CreateBookingRequestSchema(CamelModel):
    service_id: str = Field(alias="serviceId")
    booking_date: date = Field(alias="bookingDate")
    start_time: time = Field(alias="startTime")
    participants_count: int = Field(default=1, alias="participantsCount")
    photographer: str | None = None
    client_notes: str | None = Field(default=None, alias="clientNotes")
    location: str | None = None

    @field_validator("start_time")
    @classmethod
    def start_on_whole_minute(cls, value: time) -> time:
        return ensure_wall_minute(value)


class ReasonRequestSchema(CamelModel):
    reason: str | None = None


class RescheduleRequestSchema(CamelModel):
    booking_date: date = Field(alias="bookingDate")
    start_time: time = Field(alias="startTime")
    notes: str | None = None

    @field_validator("start_time")
    @classmethod
    def start_on_whole_minute(cls, value: time) -> time:
        return ensure_wall_minute(value)


class BookingSchema(CamelModel):
    id: str
    service_id: str = Field(alias="serviceId")
    client_id: str = Field(alias="clientId")
    booking_date: date = Field(alias="bookingDate")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    photographer: str | None = None
    participants_count: int = Field(alias="participantsCount")
    status: BookingStatus
    status_label: str = Field(alias="statusLabel")
    cancellation_reason: str | None = Field(default=None, alias="cancellationReason")
    client_notes: str | None = Field(default=None, alias="clientNotes")
    location: str | None = None
    total_price: Decimal = Field(alias="totalPrice")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    version: int
    modifiable: bool = False

    @classmethod
    def from_entity(cls, booking: Booking, modifiable: bool = False) -> BookingSchema:
        return cls(
            id=booking.id,
            service_id=booking.service_id,
            client_id=booking.client_id,
            booking_date=booking.booking_date,
            start_time=format_hhmm(booking.start_time),
            end_time=format_hhmm(booking.end_time),
            photographer=booking.photographer_id,
            participants_count=booking.participants_count,
            status=booking.status,
            status_label=booking.status.label,
            cancellation_reason=booking.cancellation_reason,
            client_notes=booking.client_notes,
            location=booking.location,
            total_price=booking.total_price,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            version=booking.version,
            modifiable=modifiable,
        )
