"""
Seed the database with demo users, carriers and 30 days of flights.

Run with ``python -m aircargo.seed``. Everything is inserted in a single
transaction; rows that already exist are skipped, so re-running is safe.
"""

import logging
import random
from datetime import datetime, time, timedelta

from sqlalchemy.orm import Session

from aircargo.auth.argon import hash_password
from aircargo.config import setup_logging
from aircargo.database import SessionLocal, init_db
from aircargo.models.airline import Airline
from aircargo.models.flight import Flight
from aircargo.models.user import User

logger = logging.getLogger(__name__)

USERS = [
    {"username": "john_doe", "email": "john@example.com", "password": "password123"},
    {"username": "jane_smith", "email": "jane@example.com", "password": "password123"},
    {"username": "admin_user", "email": "admin@aircargo.com", "password": "admin123"},
]

AIRLINES = [
    {"code": "AI", "name": "Air India"},
    {"code": "6E", "name": "IndiGo"},
    {"code": "SG", "name": "SpiceJet"},
    {"code": "UK", "name": "Vistara"},
    {"code": "G8", "name": "GoAir"},
    {"code": "I5", "name": "AirAsia India"},
]

AIRPORTS = ["DEL", "BOM", "BLR", "HYD", "MAA", "CCU", "AMD", "COK", "GOI", "JAI"]
DAYS = 30


def seed_users(db: Session):
    existing = {email for (email,) in db.query(User.email).all()}
    added = 0
    for u in USERS:
        if u["email"] in existing:
            continue
        db.add(User(username=u["username"], email=u["email"], password_hash=hash_password(u["password"])))
        added += 1
    db.flush()
    logger.info("Seeded %d users", added)


def seed_airlines(db: Session):
    existing = {code for (code,) in db.query(Airline.code).all()}
    for a in AIRLINES:
        if a["code"] not in existing:
            db.add(Airline(code=a["code"], name=a["name"]))
    db.flush()
    logger.info("Seeded %d airlines", len(AIRLINES))


def generate_flights(airline_ids: dict, start: datetime, days: int = DAYS, rng=random):
    """Yield flight rows: 2-3 per ordered airport pair per day, spread from 06:00."""
    counter = 1
    for day in range(days):
        current = datetime.combine((start + timedelta(days=day)).date(), time.min)
        for origin in AIRPORTS:
            for destination in AIRPORTS:
                if origin == destination:
                    continue
                for f in range(rng.randint(2, 3)):
                    code = rng.choice(sorted(airline_ids))
                    departure = current + timedelta(
                        hours=6 + f * 6 + rng.randint(0, 3),
                        minutes=rng.randint(0, 59),
                    )
                    arrival = departure + timedelta(hours=rng.randint(1, 4))
                    yield {
                        "flight_number": f"{code}{counter:03d}",
                        "airline_id": airline_ids[code],
                        "origin": origin,
                        "destination": destination,
                        "departure_datetime": departure,
                        "arrival_datetime": arrival,
                    }
                    counter += 1


def seed_flights(db: Session, start: datetime = None, days: int = DAYS, rng=random):
    airline_ids = {code: id_ for id_, code in db.query(Airline.id, Airline.code).all()}
    existing = {(n, d) for n, d in db.query(Flight.flight_number, Flight.departure_datetime).all()}

    added = skipped = 0
    for row in generate_flights(airline_ids, start or datetime.now(), days, rng):
        if (row["flight_number"], row["departure_datetime"]) in existing:
            skipped += 1
            continue
        db.add(Flight(**row))
        added += 1
    db.flush()
    logger.info("Seeded %d flights across %d days (%d duplicates skipped)", added, days, skipped)


def seed_database(db: Session, start: datetime = None, days: int = DAYS, rng=random):
    try:
        seed_users(db)
        seed_airlines(db)
        seed_flights(db, start, days, rng)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Seeding failed")
        raise
    logger.info("Database seeding completed successfully!")


if __name__ == "__main__":
    setup_logging()
    init_db()
    db = SessionLocal()
    try:
        seed_database(db)
    finally:
        db.close()
