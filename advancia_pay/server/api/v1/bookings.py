"""
Booking Endpoints.
"""

from fastapi import APIRouter, status

from advancia_pay.realtime import events
from advancia_pay.server.schemas import BookingCreate, BookingStatusUpdate
from advancia_pay.server.services.deps import AdminUser, BookingServiceDep, CurrentUser

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create Booking",
    description="Book a chamber session and pay for it from the fiat balance.",
    response_description="The created booking.",
    responses={400: {"description": "Validation failed or insufficient balance"}},
)
async def create_booking(body: BookingCreate, user: CurrentUser, service: BookingServiceDep):
    booking = await service.create(
        user,
        chamber=body.chamber,
        session_date=body.session_date,
        duration_minutes=body.duration_minutes,
        notes=body.notes,
    )
    return {"success": True, "booking": events.serialize(booking)}


@router.get(
    "",
    summary="My Bookings",
    description="The caller's bookings, newest session first.",
    response_description="A list of bookings.",
)
async def my_bookings(user: CurrentUser, service: BookingServiceDep):
    return {"bookings": [events.serialize(b) for b in await service.list_mine(user)]}


@router.put(
    "/{booking_id}/cancel",
    summary="Cancel Booking",
    description="Cancel an open booking and refund its cost.",
    response_description="The cancelled booking.",
    responses={
        400: {"description": "Booking is already cancelled or completed"},
        403: {"description": "Not the owner of the booking"},
        404: {"description": "Booking not found"},
    },
)
async def cancel_booking(booking_id: str, user: CurrentUser, service: BookingServiceDep):
    booking = await service.cancel(user, booking_id)
    return {"success": True, "booking": events.serialize(booking)}


@router.post(
    "/{booking_id}/status",
    summary="Update Booking Status",
    description="Confirm or complete a booking.",
    response_description="The updated booking.",
    responses={
        400: {"description": "Transition not allowed"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Booking not found"},
    },
)
async def update_status(booking_id: str, body: BookingStatusUpdate, admin: AdminUser, service: BookingServiceDep):
    booking = await service.update_status(booking_id, body.status)
    return {"success": True, "booking": events.serialize(booking)}
