"""
Tests for the HTTP API

Routes run against the in-memory store from conftest; weather and places
clients are swapped for ones backed by httpx.MockTransport.
"""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import httpx
import pytest

import main
from main import app, get_places_client, get_weather_client, local_today
from models import Event
from places import PlacesClient
from weather import WeatherClient

IN_THREE_DAYS = local_today() + timedelta(days=3)


def headers(user_id):
    return {"X-User-Id": user_id}


def rsvp(client, event_id, user_id, status="available", **prefs):
    body = {"status": status}
    if prefs:
        body["preferences"] = prefs
    return client.put(f"/api/events/{event_id}/responses/me", json=body, headers=headers(user_id))


def weather_returning(handler):
    transport = httpx.MockTransport(handler)
    app.dependency_overrides[get_weather_client] = lambda: WeatherClient(
        http_client=httpx.Client(transport=transport)
    )


@pytest.fixture
def players(make_user):
    return {uid: make_user(uid) for uid in ["alice", "bob", "carol", "dave", "erin", "frank"]}


@pytest.fixture
def admin(make_user):
    return make_user("admin", is_admin=True)


@pytest.fixture
def event_id(client, players):
    response = client.post("/api/events", json={
        "event_date": IN_THREE_DAYS.isoformat(),
        "tee_time": "07:30",
        "course_name": "Moore Park Golf",
        "notes": "Meet at the pro shop",
        "preferences": {"time_preference": "AM", "transport_preference": "Walk"},
    }, headers=headers("alice"))
    assert response.status_code == 200
    return response.json()["id"]


class TestBasics:
    """Health, config and users"""

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}

    def test_config(self, client):
        data = client.get("/api/config").json()

        assert data["max_players"] == 4
        assert data["preferences"]["transport"] == ["Walk", "Cart", "Any"]
        assert data["forecast_horizon_days"] == 16

    def test_register_user_is_idempotent(self, client):
        first = client.post("/api/users", json={"id": "u1", "username": "sam", "email": "sam@example.com"})
        second = client.post("/api/users", json={"id": "u1"})

        assert first.status_code == 200
        assert second.json()["username"] == "sam"
        assert second.json()["is_admin"] is False

    def test_unknown_user_lookup(self, client):
        response = client.get("/api/users/nobody")

        assert response.status_code == 404
        assert response.json() == {
            "error": True, "status_code": 404, "message": "User not found", "path": "/api/users/nobody"
        }

    def test_set_admin_requires_admin(self, client, players, admin):
        denied = client.put("/api/users/bob/admin", json={"is_admin": True}, headers=headers("alice"))
        granted = client.put("/api/users/bob/admin", json={"is_admin": True}, headers=headers("admin"))

        assert denied.status_code == 403
        assert granted.status_code == 200
        assert granted.json()["is_admin"] is True


class TestEvents:
    """Creating, listing and editing events"""

    def test_create_requires_sign_in(self, client):
        response = client.post("/api/events", json={"event_date": IN_THREE_DAYS.isoformat()})

        assert response.status_code == 401
        assert response.json()["message"] == "Sign in required"

    def test_create_with_unknown_user(self, client):
        response = client.post("/api/events", json={"event_date": IN_THREE_DAYS.isoformat()},
                               headers=headers("stranger"))

        assert response.status_code == 401

    def test_proposer_is_auto_confirmed(self, client, event_id):
        data = client.get(f"/api/events/{event_id}").json()

        assert data["title"].startswith(IN_THREE_DAYS.strftime("%A"))
        assert data["proposer_id"] == "alice"
        assert data["proposer_name"] == "Alice"
        assert data["capacity"] == 4
        assert data["confirmed_count"] == 1
        assert data["booked"] is False
        assert data["is_full"] is False

    def test_invalid_tee_time(self, client, players):
        response = client.post("/api/events", json={
            "event_date": IN_THREE_DAYS.isoformat(), "tee_time": "25:00"
        }, headers=headers("alice"))

        assert response.status_code == 422

    def test_missing_event(self, client):
        assert client.get("/api/events/nope").status_code == 404

    def test_edit_requires_proposer_or_admin(self, client, event_id, admin):
        body = {"tee_time": "08:00", "course_name": "Bondi Golf", "notes": ""}

        assert client.put(f"/api/events/{event_id}", json=body, headers=headers("bob")).status_code == 403

        by_proposer = client.put(f"/api/events/{event_id}", json=body, headers=headers("alice"))
        assert by_proposer.status_code == 200
        assert by_proposer.json()["tee_time"] == "08:00"
        assert by_proposer.json()["notes"] is None

        body["course_name"] = "Long Reef"
        assert client.put(f"/api/events/{event_id}", json=body, headers=headers("admin")).json()["course_name"] == "Long Reef"

    def test_delete(self, client, event_id):
        assert client.delete(f"/api/events/{event_id}", headers=headers("bob")).status_code == 403
        assert client.delete(f"/api/events/{event_id}", headers=headers("alice")).status_code == 200
        assert client.get(f"/api/events/{event_id}").status_code == 404

    def test_list_scopes(self, client, store, players):
        today = local_today()
        for offset in (-20, -10, -3, -2, -1, -30, 2, 9):
            event_id = f"ev{offset}"
            store.events[event_id] = Event(id=event_id, event_date=today + timedelta(days=offset))

        upcoming = client.get("/api/events").json()
        past = client.get("/api/events", params={"scope": "past"}).json()
        everything = client.get("/api/events", params={"scope": "all"}).json()

        assert [e["id"] for e in upcoming] == ["ev2", "ev9"]
        assert [e["id"] for e in past] == ["ev-1", "ev-2", "ev-3", "ev-10", "ev-20"]
        assert len(everything) == 8
        assert client.get("/api/events", params={"scope": "soon"}).status_code == 422


class TestResponses:
    """RSVP and roster behaviour"""

    def test_fifth_player_is_reserve(self, client, event_id):
        for uid in ["bob", "carol", "dave"]:
            assert rsvp(client, event_id, uid).json()["placement"] == "confirmed"

        result = rsvp(client, event_id, "erin").json()

        assert result["placement"] == "reserve"
        assert result["confirmed_count"] == 4
        assert result["capacity"] == 4

        roster = client.get(f"/api/events/{event_id}/roster").json()
        assert [p["user_id"] for p in roster["confirmed"]] == ["alice", "bob", "carol", "dave"]
        assert [p["user_id"] for p in roster["reserve"]] == ["erin"]
        assert roster["confirmed"][0]["name"] == "Alice"
        assert roster["is_full"] is True

    def test_declining_promotes_reserve(self, client, event_id):
        for uid in ["bob", "carol", "dave", "erin"]:
            rsvp(client, event_id, uid)

        assert rsvp(client, event_id, "bob", "unavailable").json()["placement"] == "declined"

        roster = client.get(f"/api/events/{event_id}/roster").json()
        assert [p["user_id"] for p in roster["confirmed"]] == ["alice", "carol", "dave", "erin"]
        assert roster["reserve"] == []
        assert [p["user_id"] for p in roster["declined"]] == ["bob"]

    def test_updating_preferences_keeps_place(self, client, event_id):
        for uid in ["bob", "carol", "dave", "erin"]:
            rsvp(client, event_id, uid)

        result = rsvp(client, event_id, "bob", time_preference="PM", format_preference="Scramble")

        assert result.json()["placement"] == "confirmed"
        roster = client.get(f"/api/events/{event_id}/roster").json()
        assert [p["user_id"] for p in roster["confirmed"]][:2] == ["alice", "bob"]
        assert roster["confirmed"][1]["preferences"]["time_preference"] == "PM"

    def test_invalid_status(self, client, event_id):
        assert rsvp(client, event_id, "bob", "maybe").status_code == 422

    def test_invalid_preference(self, client, event_id):
        assert rsvp(client, event_id, "bob", time_preference="Evening").status_code == 422

    def test_booked_event_rejects_rsvp(self, client, event_id):
        assert client.post(f"/api/events/{event_id}/booking", headers=headers("alice")).status_code == 200

        response = rsvp(client, event_id, "bob")

        assert response.status_code == 409
        assert response.json()["message"] == "Event is already booked"

    def test_withdraw_own_response(self, client, event_id):
        rsvp(client, event_id, "bob")

        response = client.delete(f"/api/events/{event_id}/responses/bob", headers=headers("bob"))

        assert response.status_code == 200
        assert client.get(f"/api/events/{event_id}").json()["confirmed_count"] == 1
        assert client.delete(f"/api/events/{event_id}/responses/bob", headers=headers("bob")).status_code == 404

    def test_only_admin_removes_others(self, client, event_id, admin):
        rsvp(client, event_id, "bob")

        assert client.delete(f"/api/events/{event_id}/responses/bob", headers=headers("carol")).status_code == 403
        assert client.delete(f"/api/events/{event_id}/responses/bob", headers=headers("admin")).status_code == 200

    def test_preference_summary(self, client, event_id):
        rsvp(client, event_id, "bob", time_preference="AM", transport_preference="Cart",
             course_note="Somewhere near the city")
        rsvp(client, event_id, "carol", format_preference="Stroke")
        rsvp(client, event_id, "dave")
        rsvp(client, event_id, "erin", time_preference="PM")

        data = client.get(f"/api/events/{event_id}/preferences").json()

        assert data["time_counts"] == {"AM": 2}
        assert data["transport_counts"] == {"Walk": 1, "Cart": 1}
        assert data["format_counts"] == {"Stroke": 1}
        assert data["course_notes"] == [{"user_id": "bob", "name": "Bob", "note": "Somewhere near the city"}]


class TestBooking:
    """Locking in a round"""

    def test_book_and_unbook(self, client, event_id):
        booked = client.post(f"/api/events/{event_id}/booking", headers=headers("alice")).json()
        assert booked["booked"] is True
        assert booked["booked_at"] is not None

        unbooked = client.delete(f"/api/events/{event_id}/booking", headers=headers("alice")).json()
        assert unbooked["booked"] is False
        assert unbooked["booked_at"] is None

    def test_only_editor_books(self, client, event_id):
        assert client.post(f"/api/events/{event_id}/booking", headers=headers("bob")).status_code == 403

    def test_cannot_book_empty_roster(self, client, event_id):
        client.delete(f"/api/events/{event_id}/responses/alice", headers=headers("alice"))

        response = client.post(f"/api/events/{event_id}/booking", headers=headers("alice"))

        assert response.status_code == 409


class TestConditions:
    """Weather endpoints"""

    def test_event_conditions(self, client, event_id):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"daily": {
                "temperature_2m_max": [38.0], "temperature_2m_min": [20.0],
                "precipitation_sum": [0.0], "windspeed_10m_max": [10.0], "weathercode": [0],
            }})

        weather_returning(handler)
        data = client.get(f"/api/events/{event_id}/conditions").json()

        assert data["available"] is True
        assert data["score"] == 8
        assert data["label"] == "Excellent"
        assert data["color"] == "#10b981"
        assert data["temperature"] == 29
        assert data["conditions"] == "Clear"
        assert requests[0].url.params["start_date"] == IN_THREE_DAYS.isoformat()

    def test_outside_horizon_is_not_a_zero_score(self, client, players):
        far = (local_today() + timedelta(days=40)).isoformat()
        event_id = client.post("/api/events", json={"event_date": far}, headers=headers("alice")).json()["id"]
        weather_returning(lambda request: pytest.fail("no forecast request expected"))

        data = client.get(f"/api/events/{event_id}/conditions").json()

        assert data["available"] is False
        assert data["score"] is None

    def test_provider_failure(self, client, event_id):
        weather_returning(lambda request: httpx.Response(500))

        response = client.get(f"/api/events/{event_id}/conditions")

        assert response.status_code == 502
        assert response.json()["message"] == "Weather service unavailable, please try again"

    def test_upcoming_conditions_keyed_by_date(self, client, players):
        for offset in (2, 2, 40):
            day = (local_today() + timedelta(days=offset)).isoformat()
            client.post("/api/events", json={"event_date": day}, headers=headers("alice"))
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"daily": {
                "temperature_2m_max": [22.0], "temperature_2m_min": [15.0],
                "precipitation_sum": [12.0], "windspeed_10m_max": [45.0], "weathercode": [63],
            }})

        weather_returning(handler)
        data = client.get("/api/conditions").json()

        key = (local_today() + timedelta(days=2)).isoformat()
        assert list(data) == [key]
        assert data[key]["score"] == 5
        assert data[key]["label"] == "Fair"
        assert len(requests) == 1


class TestCalendarAndSharing:
    """Calendar export and share text"""

    def test_ics_download(self, client, event_id):
        response = client.get(f"/api/events/{event_id}/calendar.ics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/calendar")
        assert response.headers["content-disposition"] == 'attachment; filename="moore-park-golf.ics"'
        assert f"DTSTART:{IN_THREE_DAYS:%Y%m%d}T073000" in response.text
        assert f"DTEND:{IN_THREE_DAYS:%Y%m%d}T120000" in response.text

    def test_calendar_links(self, client, event_id):
        data = client.get(f"/api/events/{event_id}/calendar-links").json()

        assert data["google_url"].startswith("https://calendar.google.com/calendar/render?action=TEMPLATE")
        assert data["ics_url"] == f"/api/events/{event_id}/calendar.ics"

    def test_share_lists_confirmed_players(self, client, event_id):
        for uid in ["bob", "carol", "dave", "erin"]:
            rsvp(client, event_id, uid)

        message = client.get(f"/api/events/{event_id}/share").json()["message"]

        assert message.startswith("⛳ Golf - Proposed!")
        assert "🏌️ Alice, Bob, Carol, Dave\n" in message
        assert "Erin" not in message
        assert f"/event/{event_id}" in message


class TestCourses:
    """Course search"""

    def test_not_configured(self, client):
        app.dependency_overrides[get_places_client] = lambda: PlacesClient(api_key="")

        response = client.get("/api/courses/search", params={"q": "Moore Park"})

        assert response.status_code == 503
        assert response.json()["message"] == "Places lookup is not configured"

    def test_search(self, client):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={
            "status": "OK",
            "results": [{"name": "Moore Park Golf", "place_id": "p1", "types": ["golf_course"]}],
        }))
        app.dependency_overrides[get_places_client] = lambda: PlacesClient(
            api_key="key", http_client=httpx.Client(transport=transport)
        )

        data = client.get("/api/courses/search", params={"q": "Moore"}).json()

        assert data[0]["name"] == "Moore Park Golf"
        assert data[0]["place_id"] == "p1"

    def test_query_too_short(self, client):
        assert client.get("/api/courses/search", params={"q": "M"}).status_code == 422

    def test_garbled_provider_reply(self, client):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>quota</html>"))
        app.dependency_overrides[get_places_client] = lambda: PlacesClient(
            api_key="key", http_client=httpx.Client(transport=transport)
        )

        response = client.get("/api/courses/search", params={"q": "Moore"})

        assert response.status_code == 502
        assert response.json()["message"] == "Places service unavailable, please try again"


class TestLocalDate:
    """Upcoming/past split follows the event timezone"""

    @pytest.mark.parametrize("tz", ["Pacific/Kiritimati", "Pacific/Pago_Pago", "Australia/Sydney"])
    def test_local_today(self, monkeypatch, tz):
        monkeypatch.setattr(main, "EVENT_TIMEZONE", tz)

        before = datetime.now(ZoneInfo(tz)).date()
        today = local_today()
        after = datetime.now(ZoneInfo(tz)).date()

        assert today in (before, after)

    def test_split_uses_local_today(self, client, store, monkeypatch):
        local = local_today()
        monkeypatch.setattr(main, "local_today", lambda: local + timedelta(days=1))
        store.events["yesterday"] = Event(id="yesterday", event_date=local)
        store.events["tomorrow"] = Event(id="tomorrow", event_date=local + timedelta(days=1))

        upcoming = client.get("/api/events").json()
        past = client.get("/api/events", params={"scope": "past"}).json()

        assert [e["id"] for e in upcoming] == ["tomorrow"]
        assert [e["id"] for e in past] == ["yesterday"]


class TestStoredData:
    """Records written outside the API"""

    def test_ics_with_unparseable_tee_time(self, client, store):
        store.events["seeded"] = Event(id="seeded", event_date=IN_THREE_DAYS, tee_time="7:30 AM")

        response = client.get("/api/events/seeded/calendar.ics")

        assert response.status_code == 200
        assert f"DTSTART:{IN_THREE_DAYS:%Y%m%d}T000000" in response.text
