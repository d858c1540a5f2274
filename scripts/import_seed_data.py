#!/usr/bin/env python3
"""
Import seed data into local database for testing.

Usage:
    python scripts/import_seed_data.py

Reads from data/seed_data.json and imports into local database.
Requires DATABASE_URL to be set in .env file.
"""

import json
import sys
from pathlib import Path

from psycopg2.extras import Json

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from database import get_db, init_db


def import_data():
    """Import seed data from JSON file."""
    seed_file = Path(__file__).parent.parent / "data" / "seed_data.json"

    if not seed_file.exists():
        print(f"Error: {seed_file} not found")
        print("Run export_prod_data.py first to create seed data")
        sys.exit(1)

    with open(seed_file) as f:
        data = json.load(f)

    print(f"Loading seed data from {seed_file}")
    print(f"  Users: {len(data.get('users', []))}")
    print(f"  Events: {len(data.get('events', []))}")
    print(f"  Responses: {len(data.get('responses', []))}")

    print("\nInitializing database schema...")
    init_db()

    with get_db() as conn:
        cursor = conn.cursor()

        for user in data.get("users", []):
            cursor.execute("""
                INSERT INTO users (id, username, email, is_admin, created_at)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET
                    username = EXCLUDED.username,
                    email = EXCLUDED.email,
                    is_admin = EXCLUDED.is_admin
            """, (user["id"], user.get("username"), user.get("email"),
                  user.get("is_admin", False), user.get("created_at")))
        print(f"Imported {len(data.get('users', []))} users")

        for event in data.get("events", []):
            cursor.execute("""
                INSERT INTO events (id, title, event_date, tee_time, course_name, course_id, course_address,
                                    course_lat, course_lng, notes, proposer_id, booked, booked_at, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET
                    tee_time = EXCLUDED.tee_time,
                    course_name = EXCLUDED.course_name,
                    notes = EXCLUDED.notes,
                    booked = EXCLUDED.booked,
                    booked_at = EXCLUDED.booked_at
            """, (
                event["id"],
                event["title"],
                event["event_date"],
                event.get("tee_time"),
                event.get("course_name"),
                event.get("course_id"),
                event.get("course_address"),
                event.get("course_lat"),
                event.get("course_lng"),
                event.get("notes"),
                event.get("proposer_id"),
                event.get("booked", False),
                event.get("booked_at"),
                event.get("created_at")
            ))
        print(f"Imported {len(data.get('events', []))} events")

        # Exported in first-response order, so inserting in file order keeps it
        for response in data.get("responses", []):
            prefs = response.get("preferences")
            cursor.execute("""
                INSERT INTO responses (event_id, user_id, status, preferences, responded_at)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (event_id, user_id)
                DO UPDATE SET status = EXCLUDED.status, preferences = EXCLUDED.preferences
            """, (
                response["event_id"],
                response["user_id"],
                response["status"],
                Json(prefs) if prefs else None,
                response.get("responded_at")
            ))
        print(f"Imported {len(data.get('responses', []))} responses")

    print("\nSeed data imported successfully!")


if __name__ == "__main__":
    import_data()
