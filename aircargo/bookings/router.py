from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from aircargo.auth.dependencies import get_current_user
from aircargo.config import API_PREFIX
from aircargo.database import get_db
from aircargo.errors import InvalidTransition
from aircargo.models.user import User
from aircargo.schemas.booking import BookingSchema, CreateBookingRequest, TransitionRequest
from aircargo.schemas.route import AirlineSchema, FlightSchema
from aircargo.services import bookings
from aircargo.services.timeline import format_timeline, get_history

router = APIRouter(prefix=f"{API_PREFIX}/bookings", tags=["bookings"])


def _dump(schema, obj):
    return schema.model_validate(obj).model_dump(mode="json")


def _transition_response(db: Session, ref_id: str, message: str):
    history = get_history(db, ref_id)
    return {
        "message": message,
        "data": {
            "booking": {
                "ref_id": history.booking.ref_id,
                "status": history.booking.status.value,
                "updated_at": history.booking.updated_at,
            },
            "timeline": format_timeline(history.timeline),
        },
    }


# --- POST /bookings ---
@router.post("", status_code=201)
def create_booking(
    req: CreateBookingRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    booking = bookings.create_booking(
        db,
        user_id=current_user.id,
        origin=req.origin,
        destination=req.destination,
        pieces=req.pieces,
        weight_kg=req.weight_kg,
        flight_ids=req.flight_ids,
    )
    history = get_history(db, booking.ref_id)
    return {
        "message": "Booking created successfully",
        "data": {
            "booking": _dump(BookingSchema, history.booking),
            "flights": [_dump(FlightSchema, f) for f in history.flight_details],
            "timeline": format_timeline(history.timeline),
        },
    }


@router.get("/my-bookings")
def my_bookings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = bookings.list_user_bookings(db, current_user.id)
    return {
        "message": "User bookings retrieved successfully",
        "data": {
            "bookings": [_dump(BookingSchema, b) for b in rows],
            "count": len(rows),
        },
    }


# Consulta pública: qualsevol amb la referència pot seguir l'enviament
@router.get("/{ref_id}/history")
def booking_history(
    ref_id: str = Path(...),
    db: Session = Depends(get_db),
):
    history = get_history(db, ref_id)
    return {
        "message": "Booking history retrieved successfully",
        "data": {
            "booking": _dump(BookingSchema, history.booking),
            "flights": [_dump(FlightSchema, f) for f in history.flight_details],
            "airlines": [_dump(AirlineSchema, a) for a in history.airline_details],
            "timeline": format_timeline(history.timeline),
        },
    }


@router.put("/{ref_id}/depart")
def depart_booking(
    req: TransitionRequest,
    ref_id: str = Path(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not bookings.depart(db, ref_id, req.location, req.flight_info):
        raise InvalidTransition("Booking not found, already departed, or in invalid state for departure")
    return _transition_response(db, ref_id, "Booking marked as departed successfully")


@router.put("/{ref_id}/arrive")
def arrive_booking(
    req: TransitionRequest,
    ref_id: str = Path(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not bookings.arrive(db, ref_id, req.location, req.flight_info):
        raise InvalidTransition("Booking not found, not departed yet, or in invalid state for arrival")
    return _transition_response(db, ref_id, "Booking marked as arrived successfully")


@router.put("/{ref_id}/deliver")
def deliver_booking(
    req: TransitionRequest,
    ref_id: str = Path(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not bookings.deliver(db, ref_id, req.location, req.flight_info):
        raise InvalidTransition("Booking not found, not arrived yet, or in invalid state for delivery")
    return _transition_response(db, ref_id, "Booking marked as delivered successfully")


@router.put("/{ref_id}/cancel")
def cancel_booking(
    ref_id: str = Path(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not bookings.cancel(db, ref_id):
        raise InvalidTransition("Booking not found, already arrived/delivered, or cannot be cancelled")
    return _transition_response(db, ref_id, "Booking cancelled successfully")
