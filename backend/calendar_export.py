"""
Calendar export for booked rounds.

Produces an ICS payload (Apple Calendar, Outlook) and a Google Calendar
template link. Times are the course's local wall-clock time.
"""

from __future__ import annotations

import re
import secrets
from datetime import datetime, time, timedelta
from typing import Optional
from urllib.parse import urlencode

import config
from constants import ROUND_DURATION_HOURS, REMINDER_TRIGGER, ICS_PRODID, ICS_UID_DOMAIN
from models import Event

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"


def _format_local(d: datetime) -> str:
    return d.strftime("%Y%m%dT%H%M%S")


def escape_ics_text(text: Optional[str]) -> str:
    if not text:
        return ""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def sanitize_filename(name: Optional[str]) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-")[:50]
    return slug or "golf-event"


def parse_tee_time(value: Optional[str]) -> Optional[time]:
    """HH:MM as a time, or None when unset or unparseable."""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        return None


def round_start(event: Event) -> datetime:
    """Tee time on the event date, or midnight when no usable tee time is set."""
    return datetime.combine(event.event_date, parse_tee_time(event.tee_time) or time(0, 0))


def round_end(start: datetime) -> datetime:
    return start + timedelta(hours=ROUND_DURATION_HOURS)


def round_title(event: Event) -> str:
    return f"⛳ {event.tee_time or 'Golf'} - {event.course_name or 'Golf Round'}"


def generate_ics(event: Event, event_url: Optional[str] = None,
                 now: Optional[datetime] = None, uid: Optional[str] = None) -> str:
    """Build the ICS file content for an event."""
    start = round_start(event)
    end = round_end(start)
    now = now or datetime.now()
    uid = uid or f"{int(now.timestamp() * 1000)}-{secrets.token_hex(5)}@{ICS_UID_DOMAIN}"

    title = round_title(event)
    location = event.course_address or event.course_name or ""
    description = "\n\n".join(part for part in (event.notes, event_url and f"Event link: {event_url}") if part)

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICS_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{_format_local(now)}",
        f"DTSTART:{_format_local(start)}",
        f"DTEND:{_format_local(end)}",
        f"SUMMARY:{escape_ics_text(title)}",
    ]
    if location:
        lines.append(f"LOCATION:{escape_ics_text(location)}")
    if description:
        lines.append(f"DESCRIPTION:{escape_ics_text(description)}")
    if event_url:
        lines.append(f"URL:{event_url}")

    lines.extend([
        "BEGIN:VALARM",
        f"TRIGGER:{REMINDER_TRIGGER}",
        "ACTION:DISPLAY",
        f"DESCRIPTION:{escape_ics_text(title)} starts in 1 hour",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ])
    return "\r\n".join(lines)


def google_calendar_url(event: Event, event_url: str, timezone: str = config.EVENT_TIMEZONE) -> str:
    start = round_start(event)
    end = round_end(start)
    details = f"{event.notes}\n\nEvent: {event_url}" if event.notes else f"Event: {event_url}"
    params = {
        "action": "TEMPLATE",
        "text": round_title(event),
        "dates": f"{_format_local(start)}/{_format_local(end)}",
        "details": details,
        "location": event.course_name or "",
        "ctz": timezone,
    }
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"
