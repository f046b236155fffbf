"""
Booking history: timeline events plus the flights and carriers of the itinerary.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from aircargo.errors import NotFound
from aircargo.models.airline import Airline
from aircargo.models.booking import Booking, TimelineEvent
from aircargo.models.enums import TimelineEventType
from aircargo.models.flight import Flight
from aircargo.services.route_finder import get_flight_details

logger = logging.getLogger(__name__)


@dataclass
class BookingHistory:
    booking: Booking
    timeline: List[TimelineEvent]
    flight_details: List[Flight] = field(default_factory=list)
    airline_details: List[Airline] = field(default_factory=list)


def add_event(db: Session, booking_id: int, event_type: TimelineEventType,
              location: str = None, flight_info=None, notes: str = None) -> TimelineEvent:
    # No commit: the event belongs to the caller's transaction
    event = TimelineEvent(
        booking_id=booking_id,
        event_type=event_type,
        location=location or None,
        flight_info=json.dumps(flight_info) if flight_info is not None else None,
        notes=notes,
    )
    db.add(event)
    db.flush()
    return event


def get_timeline(db: Session, booking_id: int) -> List[TimelineEvent]:
    return (
        db.query(TimelineEvent)
          .filter(TimelineEvent.booking_id == booking_id)
          .order_by(TimelineEvent.created_at.asc(), TimelineEvent.id.asc())
          .all()
    )


def get_latest_event(db: Session, booking_id: int, event_type: TimelineEventType) -> Optional[TimelineEvent]:
    return (
        db.query(TimelineEvent)
          .filter(TimelineEvent.booking_id == booking_id,
                  TimelineEvent.event_type == event_type)
          .order_by(TimelineEvent.created_at.desc(), TimelineEvent.id.desc())
          .first()
    )


def get_history(db: Session, ref_id: str) -> BookingHistory:
    booking = (
        db.query(Booking)
          .filter(Booking.ref_id == ref_id)
          .populate_existing()
          .first()
    )
    if not booking:
        raise NotFound()

    flights = get_flight_details(db, booking.itinerary)

    # Aerolínies úniques, en l'ordre dels vols
    airlines = {}
    for f in flights:
        if f.airline is not None:
            airlines.setdefault(f.airline.id, f.airline)

    return BookingHistory(
        booking=booking,
        timeline=get_timeline(db, booking.id),
        flight_details=flights,
        airline_details=list(airlines.values()),
    )


def display_text(event: TimelineEvent) -> str:
    stamp = event.created_at.strftime("%Y-%m-%d %H:%M:%S")
    kind = event.event_type
    loc = event.location

    if kind == TimelineEventType.CREATED:
        text = "Booking created" + (f" at {loc}" if loc else "")
    elif kind == TimelineEventType.DEPARTED:
        text = "Cargo departed" + (f" from {loc}" if loc else "")
    elif kind == TimelineEventType.ARRIVED:
        text = "Cargo arrived" + (f" at {loc}" if loc else "")
    elif kind == TimelineEventType.DELIVERED:
        text = "Cargo delivered" + (f" at {loc}" if loc else "")
    elif kind == TimelineEventType.CANCELLED:
        text = "Booking cancelled"
    else:
        name = getattr(kind, "value", kind)
        text = f"{name}" + (f" at {loc}" if loc else "")
    return f"{stamp} - {text}"


def format_timeline(timeline: List[TimelineEvent]) -> List[dict]:
    return [
        {
            "id": e.id,
            "event_type": getattr(e.event_type, "value", e.event_type),
            "location": e.location,
            "flight_info": e.flight_info_data,
            "notes": e.notes,
            "timestamp": e.created_at,
            "display_text": display_text(e),
        }
        for e in timeline
    ]
