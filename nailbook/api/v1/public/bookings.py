from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, status

from nailbook.api.deps import get_coordinator
from nailbook.scheduling.reservation import ReservationCoordinator, ServiceRequest
from nailbook.scheduling.services import required_slot_count
from nailbook.schemas.booking import (
    Booking as BookingSchema,
    CancelRequest,
    ReserveRequest,
    ResolveChainRequest,
    ResolveChainResponse,
    StatusUpdate,
)
from nailbook.schemas.common import ChainGapError, ErrorResponse, ReservationRaceLostError

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post(
    "/resolve-chain",
    response_model=ResolveChainResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ChainGapError},
        422: {"model": ErrorResponse},
    },
)
def resolve_chain(
    data: ResolveChainRequest,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    """
    Find the slots a multi-slot service needs after the selected one.

    ``required_count`` wins over ``service_type`` when both are given.
    """
    required = data.required_count or required_slot_count(data.service_type)
    chain = coordinator.resolve_chain(data.anchor_slot_id, required)
    return ResolveChainResponse(
        anchor_slot_id=data.anchor_slot_id,
        required_count=required,
        chain=chain,
    )


@router.post(
    "/",
    response_model=BookingSchema,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ReservationRaceLostError},
        422: {"model": ErrorResponse},
    },
)
def reserve(
    data: ReserveRequest,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    """
    Reserve the selected slot and its chain. Every slot goes to ``pending``
    or, when any of them was taken meanwhile, nothing changes and the
    response is 409 ``reservation_race_lost``.
    """
    request = ServiceRequest(
        service_type=data.service_type,
        nail_tech_id=data.nail_tech_id,
        client_type=data.client_type,
        service_location=data.service_location,
        notes=data.notes,
    )
    return coordinator.reserve(data.anchor_slot_id, data.chain_slot_ids, request)


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(
    booking_id: UUID,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    return coordinator.get_booking(booking_id)


@router.post("/{booking_id}/release", response_model=BookingSchema)
def release_booking(
    booking_id: UUID,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    """Cancel the booking and return its slots to the availability pool."""
    return coordinator.release(booking_id)


@router.patch("/{booking_id}/status", response_model=BookingSchema)
def update_booking_status(
    booking_id: UUID,
    data: StatusUpdate,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    return coordinator.advance(booking_id, data.status)


@router.post("/{booking_id}/cancel", response_model=BookingSchema)
def cancel_booking(
    booking_id: UUID,
    data: Optional[CancelRequest] = None,
    coordinator: ReservationCoordinator = Depends(get_coordinator),
):
    """Cancel a booking. Its slots stay blocked unless ``release_slots`` is set."""
    release_slots = data.release_slots if data else False
    return coordinator.cancel(booking_id, release_slots=release_slots)
