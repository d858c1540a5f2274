"""Event store - users, events and RSVP responses in PostgreSQL."""

from typing import Optional

import structlog
from psycopg2.extras import Json

from database import get_db
from models import (
    Coordinates, Event, EventCreate, EventUpdate, Preferences, Response, User, UserCreate
)

logger = structlog.get_logger(__name__)


def _row_to_response(row) -> Response:
    prefs = row["preferences"]
    return Response(
        user_id=row["user_id"],
        status=row["status"],
        responded_at=row["responded_at"],
        preferences=Preferences(**prefs) if prefs else None,
    )


def _row_to_event(row, responses: dict) -> Event:
    coordinates = None
    if row["course_lat"] is not None and row["course_lng"] is not None:
        coordinates = Coordinates(lat=row["course_lat"], lng=row["course_lng"])
    return Event(
        id=row["id"],
        title=row["title"],
        event_date=row["event_date"],
        tee_time=row["tee_time"],
        course_name=row["course_name"],
        course_id=row["course_id"],
        course_address=row["course_address"],
        coordinates=coordinates,
        notes=row["notes"],
        proposer_id=row["proposer_id"],
        booked=row["booked"],
        booked_at=row["booked_at"],
        created_at=row["created_at"],
        responses=responses,
    )


def _preferences_json(preferences: Optional[Preferences]):
    if preferences is None or preferences.is_empty():
        return None
    return Json(preferences.model_dump(exclude_none=True))


def _fetch_responses(cursor, event_ids: list) -> dict:
    """Responses per event, keyed by user in first-response order."""
    by_event = {event_id: {} for event_id in event_ids}
    if not event_ids:
        return by_event
    cursor.execute("""
        SELECT * FROM responses
        WHERE event_id = ANY(%s)
        ORDER BY id
    """, (list(event_ids),))
    for row in cursor.fetchall():
        by_event[row["event_id"]][row["user_id"]] = _row_to_response(row)
    return by_event


def _load_event(cursor, event_id: str) -> Optional[Event]:
    cursor.execute("SELECT * FROM events WHERE id = %s", (event_id,))
    row = cursor.fetchone()
    if not row:
        return None
    responses = _fetch_responses(cursor, [event_id])[event_id]
    return _row_to_event(row, responses)


class EventStore:
    """Reads and writes for the API; each method is one transaction."""

    def __init__(self):
        self.logger = logger.bind(component="event_store")

    # ============ USERS ============

    def upsert_user(self, user: UserCreate) -> User:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO users (id, username, email)
                VALUES (%s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET
                    username = COALESCE(EXCLUDED.username, users.username),
                    email = COALESCE(EXCLUDED.email, users.email)
                RETURNING *
            """, (user.id, user.username, user.email))
            return User(**dict(cursor.fetchone()))

    def get_user(self, user_id: str) -> Optional[User]:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM users WHERE id = %s", (user_id,))
            row = cursor.fetchone()
            return User(**dict(row)) if row else None

    def list_users(self) -> list[User]:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM users ORDER BY created_at")
            return [User(**dict(row)) for row in cursor.fetchall()]

    def set_admin(self, user_id: str, is_admin: bool) -> Optional[User]:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE users SET is_admin = %s WHERE id = %s RETURNING *",
                (is_admin, user_id)
            )
            row = cursor.fetchone()
            return User(**dict(row)) if row else None

    # ============ EVENTS ============

    def create_event(self, event_id: str, title: str, event: EventCreate, proposer_id: str) -> Event:
        """Insert the event and the proposer's own 'available' reply together."""
        coords = event.coordinates
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO events (id, title, event_date, tee_time, course_name, course_id, course_address,
                                    course_lat, course_lng, notes, proposer_id)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """, (event_id, title, event.event_date, event.tee_time, event.course_name, event.course_id,
                  event.course_address, coords.lat if coords else None, coords.lng if coords else None,
                  event.notes, proposer_id))
            cursor.execute("""
                INSERT INTO responses (event_id, user_id, status, preferences)
                VALUES (%s, %s, 'available', %s)
            """, (event_id, proposer_id, _preferences_json(event.preferences)))
            created = _load_event(cursor, event_id)
        self.logger.info("Event created", event_id=event_id, proposer_id=proposer_id)
        return created

    def get_event(self, event_id: str) -> Optional[Event]:
        with get_db() as conn:
            return _load_event(conn.cursor(), event_id)

    def list_events(self) -> list[Event]:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM events ORDER BY event_date ASC, created_at DESC")
            rows = cursor.fetchall()
            responses = _fetch_responses(cursor, [row["id"] for row in rows])
            return [_row_to_event(row, responses[row["id"]]) for row in rows]

    def update_event(self, event_id: str, event: EventUpdate) -> Optional[Event]:
        coords = event.coordinates
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE events SET tee_time=%s, course_name=%s, course_id=%s, course_address=%s,
                                  course_lat=%s, course_lng=%s, notes=%s
                WHERE id = %s
            """, (event.tee_time, event.course_name, event.course_id, event.course_address,
                  coords.lat if coords else None, coords.lng if coords else None, event.notes, event_id))
            if cursor.rowcount == 0:
                return None
            return _load_event(cursor, event_id)

    def set_booked(self, event_id: str, booked: bool) -> Optional[Event]:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE events
                SET booked = %s, booked_at = CASE WHEN %s THEN CURRENT_TIMESTAMP ELSE NULL END
                WHERE id = %s
            """, (booked, booked, event_id))
            if cursor.rowcount == 0:
                return None
            return _load_event(cursor, event_id)

    def delete_event(self, event_id: str) -> bool:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM events WHERE id = %s", (event_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            self.logger.info("Event deleted", event_id=event_id)
        return deleted

    # ============ RESPONSES ============

    def upsert_response(self, event_id: str, user_id: str, status: str,
                        preferences: Optional[Preferences]) -> Response:
        """
        Write one user's reply as a single keyed upsert.

        Concurrent replies from different users touch different rows, so none
        is lost. Repeating the same status keeps the original responded_at
        (the user's place in the queue); changing status starts it afresh.
        """
        if status != "available":
            preferences = None
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO responses (event_id, user_id, status, preferences, responded_at)
                VALUES (%s, %s, %s, %s, CURRENT_TIMESTAMP)
                ON CONFLICT (event_id, user_id)
                DO UPDATE SET
                    status = EXCLUDED.status,
                    preferences = EXCLUDED.preferences,
                    responded_at = CASE WHEN responses.status = EXCLUDED.status
                                        THEN responses.responded_at
                                        ELSE EXCLUDED.responded_at END
                RETURNING *
            """, (event_id, user_id, status, _preferences_json(preferences)))
            return _row_to_response(cursor.fetchone())

    def delete_response(self, event_id: str, user_id: str) -> bool:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM responses WHERE event_id = %s AND user_id = %s",
                (event_id, user_id)
            )
            return cursor.rowcount > 0
