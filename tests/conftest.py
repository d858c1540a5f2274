"""
Shared fixtures.

API tests run against an in-memory EventStore stand-in so no PostgreSQL
server is needed.
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from main import app, get_store
from models import Event, Response, User


class InMemoryStore:
    """Same interface as store.EventStore, held in dicts."""

    def __init__(self):
        self.users = {}
        self.events = {}
        self._clock = datetime(2026, 1, 1, 9, 0)

    def _tick(self) -> datetime:
        self._clock += timedelta(minutes=1)
        return self._clock

    # users
    def upsert_user(self, user):
        existing = self.users.get(user.id)
        if existing:
            existing.username = user.username or existing.username
            existing.email = user.email or existing.email
            return existing
        self.users[user.id] = User(id=user.id, username=user.username, email=user.email, created_at=self._tick())
        return self.users[user.id]

    def get_user(self, user_id):
        return self.users.get(user_id)

    def list_users(self):
        return list(self.users.values())

    def set_admin(self, user_id, is_admin):
        user = self.users.get(user_id)
        if user:
            user.is_admin = is_admin
        return user

    # events
    def create_event(self, event_id, title, event, proposer_id):
        self.events[event_id] = Event(
            id=event_id,
            title=title,
            event_date=event.event_date,
            tee_time=event.tee_time,
            course_name=event.course_name,
            course_id=event.course_id,
            course_address=event.course_address,
            coordinates=event.coordinates,
            notes=event.notes,
            proposer_id=proposer_id,
            created_at=self._tick(),
        )
        self.upsert_response(event_id, proposer_id, "available", event.preferences)
        return self.get_event(event_id)

    def get_event(self, event_id):
        event = self.events.get(event_id)
        return event.model_copy(deep=True) if event else None

    def list_events(self):
        return [e.model_copy(deep=True) for e in sorted(self.events.values(), key=lambda e: e.event_date)]

    def update_event(self, event_id, update):
        event = self.events.get(event_id)
        if not event:
            return None
        for field in type(update).model_fields:
            setattr(event, field, getattr(update, field))
        return self.get_event(event_id)

    def set_booked(self, event_id, booked):
        event = self.events.get(event_id)
        if not event:
            return None
        event.booked = booked
        event.booked_at = self._tick() if booked else None
        return self.get_event(event_id)

    def delete_event(self, event_id):
        return self.events.pop(event_id, None) is not None

    # responses
    def upsert_response(self, event_id, user_id, status, preferences):
        responses = self.events[event_id].responses
        if status != "available" or (preferences is not None and preferences.is_empty()):
            preferences = None
        existing = responses.get(user_id)
        if existing and existing.status == status:
            responded_at = existing.responded_at
        else:
            responded_at = self._tick()
        responses[user_id] = Response(
            user_id=user_id, status=status, responded_at=responded_at, preferences=preferences
        )
        return responses[user_id]

    def delete_response(self, event_id, user_id):
        return self.events[event_id].responses.pop(user_id, None) is not None


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(store):
    def _make(user_id, username=None, is_admin=False):
        user = User(id=user_id, username=username or user_id.capitalize(), is_admin=is_admin)
        store.users[user_id] = user
        return user
    return _make
