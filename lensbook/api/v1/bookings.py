from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response

from lensbook.api.v1.schemas import (
    AvailableSlotsResponseSchema,
    BookingSchema,
    CreateBookingRequestSchema,
    ReasonRequestSchema,
    RescheduleRequestSchema,
    ServiceSchema,
    SlotSchema,
)
from lensbook.application.exceptions import (
    BookingError,
    ConcurrencyConflictError,
    InvalidDateError,
    InvalidServiceError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    SlotUnavailableError,
)
from lensbook.application.ports.service_catalog import ServiceCatalogPort
from lensbook.application.use_cases.booking_service import BookingService
from lensbook.domain.entities.actor import ROLE_ADMIN, ROLE_CLIENT, Actor
from lensbook.domain.entities.booking import Booking
from lensbook.wiring.dependencies import get_booking_service, get_service_catalog

router = APIRouter()
logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[BookingError], int]] = [
    (InvalidDateError, 400),
    (InvalidServiceError, 400),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (SlotUnavailableError, 409),
    (InvalidTransitionError, 409),
    (ConcurrencyConflictError, 409),
]


def get_actor(
    x_actor_id: str | None = Header(None),
    x_actor_role: str = Header(ROLE_CLIENT),
) -> Actor:
    if not x_actor_id:
        raise HTTPException(status_code=401, detail="X-Actor-Id header is required")
    role = x_actor_role.lower().strip()
    if role not in (ROLE_CLIENT, ROLE_ADMIN):
        raise HTTPException(status_code=400, detail=f"Unknown role {x_actor_role}")
    return Actor(actor_id=x_actor_id, role=role)


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return actor


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(e, error_type):
            return HTTPException(status_code=status_code, detail=str(e))
    logger.error("Unmapped booking error", extra={"error": str(e)})
    return HTTPException(status_code=500, detail="Internal error")


def _render(uc: BookingService, booking: Booking) -> BookingSchema:
    return BookingSchema.from_entity(booking, modifiable=uc.is_modifiable(booking))


@router.get("/services", response_model=list[ServiceSchema])
def list_services(catalog: ServiceCatalogPort = Depends(get_service_catalog)):
    return [ServiceSchema.from_entity(s) for s in catalog.list_services()]


@router.get("/bookings/available-slots", response_model=AvailableSlotsResponseSchema)
def available_slots(
    service_id: str = Query(..., alias="serviceId"),
    booking_date: date = Query(..., alias="date"),
    photographer: str | None = Query(None),
    participants: int | None = Query(None, ge=1),
    uc: BookingService = Depends(get_booking_service),
):
    try:
        windows = uc.compute_available_slots(
            service_id,
            booking_date,
            photographer_id=photographer,
            participants=participants,
        )
    except (BookingError, ValueError) as e:
        raise _to_http(e)

    return AvailableSlotsResponseSchema(
        service_id=service_id,
        booking_date=booking_date,
        photographer=photographer,
        slots=[SlotSchema.from_window(w) for w in windows],
    )


@router.post("/bookings", response_model=BookingSchema, status_code=201)
def create_booking(
    req: CreateBookingRequestSchema,
    actor: Actor = Depends(get_actor),
    uc: BookingService = Depends(get_booking_service),
):
    try:
        booking = uc.create_booking(
            service_id=req.service_id,
            client_id=actor.actor_id,
            booking_date=req.booking_date,
            start=req.start_time,
            participants_count=req.participants_count,
            photographer_id=req.photographer,
            client_notes=req.client_notes,
            location=req.location,
        )
    except (BookingError, ValueError) as e:
        raise _to_http(e)
    return _render(uc, booking)


@router.get("/bookings/my-bookings", response_model=list[BookingSchema])
def my_bookings(
    actor: Actor = Depends(get_actor),
    uc: BookingService = Depends(get_booking_service),
):
    return [_render(uc, b) for b in uc.list_client_bookings(actor.actor_id)]


@router.get("/bookings/{booking_id}", response_model=BookingSchema)
def get_booking(
    booking_id: str,
    actor: Actor = Depends(get_actor),
    uc: BookingService = Depends(get_booking_service),
):
    try:
        booking = uc.get_booking(booking_id)
    except BookingError as e:
        raise _to_http(e)
    if not actor.is_admin and booking.client_id != actor.actor_id:
        raise HTTPException(status_code=403, detail="Not your booking")
    return _render(uc, booking)


@router.patch("/bookings/{booking_id}/accept", response_model=BookingSchema)
def accept_booking(
    booking_id: str,
    actor: Actor = Depends(require_admin),
    uc: BookingService = Depends(get_booking_service),
):
    try:
        booking = uc.accept_booking(booking_id, actor_id=actor.actor_id)
    except BookingError as e:
        raise _to_http(e)
    return _render(uc, booking)


@router.patch("/bookings/{booking_id}/reject", response_model=BookingSchema)
def reject_booking(
    booking_id: str,
    req: ReasonRequestSchema | None = None,
    actor: Actor = Depends(require_admin),
    uc: BookingService = Depends(get_booking_service),
):
    try:
        booking = uc.reject_booking(
            booking_id,
            reason=req.reason if req else None,
            actor_id=actor.actor_id,
        )
    except BookingError as e:
        raise _to_http(e)
    return _render(uc, booking)


@router.patch("/bookings/{booking_id}/cancel", response_model=BookingSchema)
def cancel_booking(
    booking_id: str,
    req: ReasonRequestSchema | None = None,
    actor: Actor = Depends(get_actor),
    uc: BookingService = Depends(get_booking_service),
):
    try:
        booking = uc.cancel_booking(booking_id, actor, reason=req.reason if req else None)
    except BookingError as e:
        raise _to_http(e)
    return _render(uc, booking)


@router.patch("/bookings/{booking_id}/complete", response_model=BookingSchema)
def complete_booking(
    booking_id: str,
    actor: Actor = Depends(require_admin),
    uc: BookingService = Depends(get_booking_service),
):
    try:
        booking = uc.complete_booking(booking_id, actor_id=actor.actor_id)
    except BookingError as e:
        raise _to_http(e)
    return _render(uc, booking)


@router.patch("/bookings/{booking_id}/reschedule", response_model=BookingSchema)
def reschedule_booking(
    booking_id: str,
    req: RescheduleRequestSchema,
    actor: Actor = Depends(get_actor),
    uc: BookingService = Depends(get_booking_service),
):
    try:
        booking = uc.reschedule_booking(
            booking_id,
            new_date=req.booking_date,
            new_start=req.start_time,
            actor=actor,
            notes=req.notes,
        )
    except (BookingError, ValueError) as e:
        raise _to_http(e)
    return _render(uc, booking)


@router.delete("/bookings/{booking_id}", status_code=204)
def delete_booking(
    booking_id: str,
    actor: Actor = Depends(get_actor),
    uc: BookingService = Depends(get_booking_service),
) -> Response:
    try:
        uc.delete_booking(booking_id, actor)
    except BookingError as e:
        raise _to_http(e)
    return Response(status_code=204)
