"""
Shared fixtures: a throwaway SQLite database per test with a small flight
network around DEL, BOM, HYD and BLR, plus an API client bound to it.

SQLite transactions start with BEGIN IMMEDIATE, so a session that has read
anything holds the write lock until it commits or rolls back. Tests that hand
work to other sessions (threads, API requests) must end the `db` session's
transaction first.
"""

from datetime import date, datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from aircargo.auth.argon import hash_password
from aircargo.database import get_db, init_db, make_engine
from aircargo.main import app
from aircargo.models.airline import Airline
from aircargo.models.flight import Flight
from aircargo.models.user import User
from aircargo.services.auth import generate_token

# Dia de vol de referència, sempre en el futur
TRAVEL_DAY = date.today() + timedelta(days=7)


def at(hour, minute=0, day_offset=0):
    return datetime.combine(TRAVEL_DAY + timedelta(days=day_offset), time(hour, minute))


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'cargo_test.db'}")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def user(session_factory):
    session = session_factory()
    try:
        u = User(username="john_doe", email="john@example.com", password_hash=hash_password("password123"))
        session.add(u)
        session.commit()
        return u
    finally:
        session.close()


@pytest.fixture
def network(session_factory):
    """
    Flights on TRAVEL_DAY (D):

        F1   DEL->BOM  D 08:00-10:00
        F2   BOM->BLR  D 12:30-14:00   150 min after F1
        F3   BOM->BLR  D 11:30-13:00   90 min after F1, too tight
        F4   DEL->BLR  D 09:00-11:45   direct
        F5   DEL->BLR  D 06:00-08:45   direct
        F6   BOM->BLR  D+1 11:00-12:30 25 h after F1, too long
        F7   BOM->BLR  D+1 09:30-11:00 23.5 h after F1
        F8   HYD->BLR  D 14:00-15:30
        F10  DEL->HYD  D 07:00-09:00
    """
    session = session_factory()
    try:
        ai = Airline(code="AI", name="Air India")
        indigo = Airline(code="6E", name="IndiGo")
        session.add_all([ai, indigo])
        session.flush()

        rows = {
            "F1": Flight(flight_number="AI101", airline_id=ai.id, origin="DEL", destination="BOM",
                         departure_datetime=at(8), arrival_datetime=at(10)),
            "F2": Flight(flight_number="6E202", airline_id=indigo.id, origin="BOM", destination="BLR",
                         departure_datetime=at(12, 30), arrival_datetime=at(14)),
            "F3": Flight(flight_number="6E203", airline_id=indigo.id, origin="BOM", destination="BLR",
                         departure_datetime=at(11, 30), arrival_datetime=at(13)),
            "F4": Flight(flight_number="AI105", airline_id=ai.id, origin="DEL", destination="BLR",
                         departure_datetime=at(9), arrival_datetime=at(11, 45)),
            "F5": Flight(flight_number="AI104", airline_id=ai.id, origin="DEL", destination="BLR",
                         departure_datetime=at(6), arrival_datetime=at(8, 45)),
            "F6": Flight(flight_number="6E206", airline_id=indigo.id, origin="BOM", destination="BLR",
                         departure_datetime=at(11, day_offset=1), arrival_datetime=at(12, 30, day_offset=1)),
            "F7": Flight(flight_number="6E207", airline_id=indigo.id, origin="BOM", destination="BLR",
                         departure_datetime=at(9, 30, day_offset=1), arrival_datetime=at(11, day_offset=1)),
            "F8": Flight(flight_number="AI308", airline_id=ai.id, origin="HYD", destination="BLR",
                         departure_datetime=at(14), arrival_datetime=at(15, 30)),
            "F10": Flight(flight_number="6E110", airline_id=indigo.id, origin="DEL", destination="HYD",
                          departure_datetime=at(7), arrival_datetime=at(9)),
        }
        session.add_all(rows.values())
        session.commit()
        return {name: f.id for name, f in rows.items()}
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {generate_token(user)}"}
