"""
Booking lifecycle.

    BOOKED -> DEPARTED -> ARRIVED -> DELIVERED
    BOOKED | DEPARTED -> CANCELLED

Every transition is one conditional UPDATE keyed on the booking's current
status. When several requests race on the same booking exactly one UPDATE
matches a row; the others see zero rows changed and report False.
"""

import json
import logging
from typing import List

from sqlalchemy import update
from sqlalchemy.orm import Session

from aircargo.errors import InvalidRoute, InvalidFlights, RouteMismatch
from aircargo.models.booking import Booking
from aircargo.models.enums import BookingStatus, TimelineEventType
from aircargo.models.timestamps import utcnow
from aircargo.services.reference import next_reference
from aircargo.services.route_finder import get_flight_details, validate_flight_sequence
from aircargo.services.timeline import add_event

logger = logging.getLogger(__name__)

CANCEL_BLOCKED = (BookingStatus.ARRIVED, BookingStatus.DELIVERED, BookingStatus.CANCELLED)


def create_booking(db: Session, user_id: int, origin: str, destination: str,
                   pieces: int, weight_kg: int, flight_ids: List[int]) -> Booking:
    if origin == destination:
        raise InvalidRoute()

    validate_flight_sequence(db, flight_ids)

    flights = get_flight_details(db, flight_ids)
    if not flights:
        raise InvalidFlights()
    if flights[0].origin != origin or flights[-1].destination != destination:
        raise RouteMismatch()

    now = utcnow()
    try:
        ref_id = next_reference(db, now.date())
        booking = Booking(
            ref_id=ref_id,
            user_id=user_id,
            origin=origin,
            destination=destination,
            pieces=pieces,
            weight_kg=weight_kg,
            status=BookingStatus.BOOKED,
            flight_ids=json.dumps([f.id for f in flights]),
            created_at=now,
            updated_at=now,
        )
        db.add(booking)
        db.flush()
        add_event(
            db, booking.id, TimelineEventType.CREATED,
            location=origin,
            notes=f"Booking created for {pieces} pieces, {weight_kg}kg",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Booking %s created for user %s (%s -> %s)", ref_id, user_id, origin, destination)
    return booking


def _transition(db: Session, ref_id: str, condition, new_status: BookingStatus,
                event_type: TimelineEventType, location=None, flight_info=None, notes=None) -> bool:
    try:
        result = db.execute(
            update(Booking)
            .where(Booking.ref_id == ref_id, condition)
            .values(status=new_status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            logger.info("Booking %s: transition to %s rejected", ref_id, new_status.value)
            return False

        booking = find_by_ref_id(db, ref_id)
        add_event(db, booking.id, event_type, location=location, flight_info=flight_info, notes=notes)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Booking %s is now %s", ref_id, new_status.value)
    return True


def depart(db: Session, ref_id: str, location: str, flight_info=None) -> bool:
    return _transition(
        db, ref_id, Booking.status == BookingStatus.BOOKED,
        BookingStatus.DEPARTED, TimelineEventType.DEPARTED,
        location=location, flight_info=flight_info,
        notes=f"Cargo departed from {location}",
    )


def arrive(db: Session, ref_id: str, location: str, flight_info=None) -> bool:
    return _transition(
        db, ref_id, Booking.status == BookingStatus.DEPARTED,
        BookingStatus.ARRIVED, TimelineEventType.ARRIVED,
        location=location, flight_info=flight_info,
        notes=f"Cargo arrived at {location}",
    )


def deliver(db: Session, ref_id: str, location: str, flight_info=None) -> bool:
    return _transition(
        db, ref_id, Booking.status == BookingStatus.ARRIVED,
        BookingStatus.DELIVERED, TimelineEventType.DELIVERED,
        location=location, flight_info=flight_info,
        notes=f"Cargo delivered at {location}",
    )


def cancel(db: Session, ref_id: str) -> bool:
    return _transition(
        db, ref_id, Booking.status.notin_(CANCEL_BLOCKED),
        BookingStatus.CANCELLED, TimelineEventType.CANCELLED,
        notes="Booking cancelled by user",
    )


def find_by_ref_id(db: Session, ref_id: str):
    return db.query(Booking).filter(Booking.ref_id == ref_id).first()


def list_user_bookings(db: Session, user_id: int) -> List[Booking]:
    return (
        db.query(Booking)
          .filter(Booking.user_id == user_id)
          .order_by(Booking.created_at.desc(), Booking.id.desc())
          .all()
    )
