"""
HTTP surface: auth, route search and the booking endpoints.
"""

from datetime import datetime, timedelta

from aircargo import main
from aircargo.config import API_PREFIX
from aircargo.models.timestamps import utcnow
from conftest import TRAVEL_DAY


def _url(path):
    return f"{API_PREFIX}{path}"


def _travel_day():
    return TRAVEL_DAY.isoformat()


class TestInfo:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"

    def test_api_root_and_docs(self, client):
        assert client.get(API_PREFIX).json()["documentation"] == _url("/docs")
        assert "bookings" in client.get(_url("/docs")).json()["endpoints"]

    def test_unknown_route(self, client):
        r = client.get(_url("/nowhere"))
        assert r.status_code == 404
        body = r.json()
        assert body["error"] == "NOT_FOUND"
        assert body["message"] == f"Route GET {_url('/nowhere')} not found"
        assert body["path"] == _url("/nowhere")


class TestAuth:

    def test_signup_then_login(self, client):
        payload = {"username": "cargo1", "email": "cargo1@example.com", "password": "secret99"}
        r = client.post(_url("/auth/signup"), json=payload)
        assert r.status_code == 201
        data = r.json()["data"]
        assert data["user"]["username"] == "cargo1"
        assert data["token"]

        r = client.post(_url("/auth/login"), json={"email": "cargo1@example.com", "password": "secret99"})
        assert r.status_code == 200
        assert r.json()["data"]["user"]["email"] == "cargo1@example.com"

    def test_duplicate_signup(self, client, user):
        payload = {"username": "another", "email": "john@example.com", "password": "secret99"}
        r = client.post(_url("/auth/signup"), json=payload)
        assert r.status_code == 409
        assert r.json()["error"] == "DUPLICATE_RESOURCE"

    def test_signup_validation(self, client):
        r = client.post(_url("/auth/signup"), json={"username": "a b", "email": "nope", "password": "1"})
        assert r.status_code == 400
        body = r.json()
        assert body["error"] == "Validation failed"
        assert {d["field"] for d in body["details"]} == {"username", "email", "password"}

    def test_wrong_password(self, client, user):
        r = client.post(_url("/auth/login"), json={"email": "john@example.com", "password": "wrongpass"})
        assert r.status_code == 401

    def test_profile(self, client, auth_headers):
        r = client.get(_url("/auth/profile"), headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["data"]["user"]["username"] == "john_doe"

    def test_profile_requires_token(self, client):
        assert client.get(_url("/auth/profile")).status_code == 401

    def test_validate(self, client, auth_headers):
        assert client.get(_url("/auth/validate"), headers=auth_headers).json()["data"]["valid"] is True

        r = client.get(_url("/auth/validate"), headers={"Authorization": "Bearer garbage"})
        assert r.status_code == 200
        assert r.json()["data"] == {"valid": False, "user": None}


class TestRoutes:

    def test_search(self, client, network):
        r = client.get(_url("/routes"), params={"origin": "DEL", "destination": "BLR", "departure_date": _travel_day()})
        assert r.status_code == 200
        data = r.json()["data"]
        direct = data["results"]["direct_flights"]
        transit = data["results"]["transit_routes"]

        assert [f["flight_number"] for f in direct["flights"]] == ["AI104", "AI105"]
        assert transit["routes"][0]["connection_time_minutes"] == 150
        assert transit["routes"][0]["transit_hub"] == "BOM"
        assert data["total_options"] == direct["count"] + transit["count"]

    def test_search_lowercase_codes(self, client, network):
        r = client.get(_url("/routes"), params={"origin": "del", "destination": "blr", "departure_date": _travel_day()})
        assert r.status_code == 200
        assert r.json()["data"]["search_criteria"]["origin"] == "DEL"

    def test_same_airports(self, client):
        r = client.get(_url("/routes"), params={"origin": "DEL", "destination": "del", "departure_date": _travel_day()})
        assert r.status_code == 400
        assert r.json()["error"] == "INVALID_ROUTE"

    def test_past_date(self, client):
        yesterday = (utcnow().date() - timedelta(days=1)).isoformat()
        r = client.get(_url("/routes"), params={"origin": "DEL", "destination": "BLR", "departure_date": yesterday})
        assert r.status_code == 400
        assert r.json()["message"] == "Departure date cannot be in the past"

    def test_past_date_follows_utc_clock(self, monkeypatch, client, network):
        # 00:30 UTC on Jan 1st, still Dec 31st west of Greenwich
        monkeypatch.setattr(main, "utcnow", lambda: datetime(2030, 1, 1, 0, 30))
        params = {"origin": "DEL", "destination": "BLR"}

        r = client.get(_url("/routes"), params={**params, "departure_date": "2030-01-01"})
        assert r.status_code == 200
        r = client.get(_url("/routes"), params={**params, "departure_date": "2029-12-31"})
        assert r.status_code == 400

    def test_validate_sequence(self, client, network):
        r = client.post(_url("/routes/validate"), json={"flight_ids": [network["F2"], network["F1"]]})
        assert r.status_code == 200
        assert [f["id"] for f in r.json()["data"]["flights"]] == [network["F1"], network["F2"]]

    def test_validate_sequence_too_tight(self, client, network):
        r = client.post(_url("/routes/validate"), json={"flight_ids": [network["F1"], network["F3"]]})
        assert r.status_code == 400
        assert r.json()["error"] == "INSUFFICIENT_CONNECTION"


class TestBookings:

    def _create(self, client, headers, network, **overrides):
        payload = {
            "origin": "DEL",
            "destination": "BLR",
            "pieces": 3,
            "weight_kg": 90,
            "flight_ids": [network["F1"], network["F2"]],
        }
        payload.update(overrides)
        return client.post(_url("/bookings"), json=payload, headers=headers)

    def test_create(self, client, auth_headers, network):
        r = self._create(client, auth_headers, network)
        assert r.status_code == 201
        data = r.json()["data"]
        assert data["booking"]["status"] == "BOOKED"
        assert data["booking"]["ref_id"].startswith("AC-")
        assert [f["id"] for f in data["flights"]] == [network["F1"], network["F2"]]
        assert data["timeline"][0]["event_type"] == "CREATED"

    def test_create_requires_auth(self, client, network):
        assert self._create(client, {}, network).status_code == 401

    def test_create_validation(self, client, auth_headers, network):
        r = self._create(client, auth_headers, network, pieces=0)
        assert r.status_code == 400
        assert r.json()["error"] == "Validation failed"

    def test_create_route_mismatch(self, client, auth_headers, network):
        r = self._create(client, auth_headers, network, destination="HYD")
        assert r.status_code == 400
        assert r.json()["error"] == "ROUTE_MISMATCH"

    def test_unknown_history(self, client):
        r = client.get(_url("/bookings/AC-20000101-0001/history"))
        assert r.status_code == 404
        assert r.json()["error"] == "NOT_FOUND"

    def test_history_is_public(self, client, auth_headers, network):
        ref_id = self._create(client, auth_headers, network).json()["data"]["booking"]["ref_id"]
        for headers in ({}, {"Authorization": "Bearer garbage"}):
            r = client.get(_url(f"/bookings/{ref_id}/history"), headers=headers)
            assert r.status_code == 200
            assert r.json()["data"]["booking"]["ref_id"] == ref_id

    def test_lifecycle(self, client, auth_headers, network):
        ref_id = self._create(client, auth_headers, network).json()["data"]["booking"]["ref_id"]

        r = client.put(_url(f"/bookings/{ref_id}/depart"), json={"location": "DEL", "flight_info": {"flight": "AI101"}},
                       headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["data"]["booking"]["status"] == "DEPARTED"

        r = client.put(_url(f"/bookings/{ref_id}/arrive"), json={"location": "BLR"}, headers=auth_headers)
        assert r.json()["data"]["booking"]["status"] == "ARRIVED"

        r = client.put(_url(f"/bookings/{ref_id}/cancel"), headers=auth_headers)
        assert r.status_code == 400
        assert r.json()["error"] == "INVALID_TRANSITION"

        r = client.put(_url(f"/bookings/{ref_id}/deliver"), json={"location": "BLR"}, headers=auth_headers)
        assert r.json()["data"]["booking"]["status"] == "DELIVERED"

        history = client.get(_url(f"/bookings/{ref_id}/history")).json()["data"]
        assert [e["event_type"] for e in history["timeline"]] == ["CREATED", "DEPARTED", "ARRIVED", "DELIVERED"]
        assert history["timeline"][1]["flight_info"] == {"flight": "AI101"}
        assert sorted(a["code"] for a in history["airlines"]) == ["6E", "AI"]

    def test_depart_twice(self, client, auth_headers, network):
        ref_id = self._create(client, auth_headers, network).json()["data"]["booking"]["ref_id"]
        body = {"location": "DEL"}
        assert client.put(_url(f"/bookings/{ref_id}/depart"), json=body, headers=auth_headers).status_code == 200
        assert client.put(_url(f"/bookings/{ref_id}/depart"), json=body, headers=auth_headers).status_code == 400

    def test_cancel(self, client, auth_headers, network):
        ref_id = self._create(client, auth_headers, network).json()["data"]["booking"]["ref_id"]
        r = client.put(_url(f"/bookings/{ref_id}/cancel"), headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["data"]["booking"]["status"] == "CANCELLED"

    def test_my_bookings(self, client, auth_headers, network):
        first = self._create(client, auth_headers, network).json()["data"]["booking"]["ref_id"]
        second = self._create(client, auth_headers, network).json()["data"]["booking"]["ref_id"]

        data = client.get(_url("/bookings/my-bookings"), headers=auth_headers).json()["data"]
        assert data["count"] == 2
        assert [b["ref_id"] for b in data["bookings"]] == [second, first]
