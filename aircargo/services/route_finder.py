"""
Direct and one-stop route search over the flights table.

A transit route is exactly two legs joined at a hub airport. The second leg
must leave on the same calendar day as the first leg lands or the day after,
and no sooner than MIN_CONNECTION after landing. Connections longer than
MAX_CONNECTION are dropped.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List

from sqlalchemy.orm import Session

from aircargo.errors import (
    InvalidSequence, RouteBreak, InsufficientConnection, ConnectionTooLong
)
from aircargo.models.flight import Flight

logger = logging.getLogger(__name__)

MIN_CONNECTION = timedelta(hours=2)
MAX_CONNECTION = timedelta(hours=24)
SECOND_LEG_CANDIDATES = 5  # per hub
MAX_TRANSIT_ROUTES = 10


@dataclass
class TransitRoute:
    first_flight: Flight
    second_flight: Flight

    @property
    def transit_hub(self) -> str:
        return self.first_flight.destination

    @property
    def connection_time(self) -> timedelta:
        return self.second_flight.departure_datetime - self.first_flight.arrival_datetime

    @property
    def total_duration(self) -> timedelta:
        return self.second_flight.arrival_datetime - self.first_flight.departure_datetime

    @property
    def connection_time_minutes(self) -> int:
        return round(self.connection_time.total_seconds() / 60)

    @property
    def total_duration_minutes(self) -> int:
        return round(self.total_duration.total_seconds() / 60)


@dataclass
class RouteSearchResult:
    direct_flights: List[Flight]
    transit_routes: List[TransitRoute]

    @property
    def total_options(self) -> int:
        return len(self.direct_flights) + len(self.transit_routes)


def _day_bounds(day: date):
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def find_routes(db: Session, origin: str, destination: str, departure_date: date) -> RouteSearchResult:
    return RouteSearchResult(
        direct_flights=find_direct_flights(db, origin, destination, departure_date),
        transit_routes=find_transit_routes(db, origin, destination, departure_date),
    )


def find_direct_flights(db: Session, origin: str, destination: str, departure_date: date) -> List[Flight]:
    start, end = _day_bounds(departure_date)
    return (
        db.query(Flight)
          .filter(Flight.origin == origin,
                  Flight.destination == destination,
                  Flight.departure_datetime >= start,
                  Flight.departure_datetime < end)
          .order_by(Flight.departure_datetime.asc(), Flight.id.asc())
          .all()
    )


def find_transit_routes(db: Session, origin: str, destination: str, departure_date: date) -> List[TransitRoute]:
    start, end = _day_bounds(departure_date)
    first_legs = (
        db.query(Flight)
          .filter(Flight.origin == origin,
                  Flight.destination != destination,
                  Flight.departure_datetime >= start,
                  Flight.departure_datetime < end)
          .order_by(Flight.departure_datetime.asc(), Flight.id.asc())
          .all()
    )

    routes = []
    for first in first_legs:
        landed = first.arrival_datetime
        # same calendar day as the landing, or the next one
        window_end = _day_bounds(landed.date())[0] + timedelta(days=2)

        second_legs = (
            db.query(Flight)
              .filter(Flight.origin == first.destination,
                      Flight.destination == destination,
                      Flight.departure_datetime >= landed + MIN_CONNECTION,
                      Flight.departure_datetime < window_end)
              .order_by(Flight.departure_datetime.asc(), Flight.id.asc())
              .limit(SECOND_LEG_CANDIDATES)
              .all()
        )

        for second in second_legs:
            route = TransitRoute(first_flight=first, second_flight=second)
            if MIN_CONNECTION <= route.connection_time <= MAX_CONNECTION:
                routes.append(route)

    routes.sort(key=lambda r: r.total_duration)
    logger.debug("Transit search %s->%s on %s: %d candidates", origin, destination, departure_date, len(routes))
    return routes[:MAX_TRANSIT_ROUTES]


def get_flight_details(db: Session, flight_ids) -> List[Flight]:
    if not flight_ids:
        return []
    return (
        db.query(Flight)
          .filter(Flight.id.in_(list(flight_ids)))
          .order_by(Flight.departure_datetime.asc(), Flight.id.asc())
          .all()
    )


def validate_flight_sequence(db: Session, flight_ids) -> List[Flight]:
    """
    Check that `flight_ids` form a flyable itinerary.

    Legs are taken in departure order. Each leg must land where the next one
    leaves, with a connection between MIN_CONNECTION and MAX_CONNECTION.
    Returns the legs in order; raises an InvalidSequence subclass naming the
    broken rule. Nothing is written.
    """
    if not flight_ids:
        raise InvalidSequence("No flights provided")

    flights = get_flight_details(db, flight_ids)
    if len(flights) != len(flight_ids):
        raise InvalidSequence("Some flights not found")

    for current, following in zip(flights, flights[1:]):
        if current.destination != following.origin:
            raise RouteBreak(f"Route break: {current.destination} != {following.origin}")

        connection = following.departure_datetime - current.arrival_datetime
        if connection < MIN_CONNECTION:
            raise InsufficientConnection()
        if connection > MAX_CONNECTION:
            raise ConnectionTooLong()

    return flights
