"""Human-readable event titles, links and share messages."""

from datetime import date
from typing import Sequence

import config
from calendar_export import google_calendar_url
from models import Event


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_event_title(d: date) -> str:
    """e.g. 'Saturday 25th October'."""
    return f"{d:%A} {ordinal(d.day)} {d:%B}"


def format_event_date(d: date) -> str:
    return f"{d:%A} {d.day} {d:%B}"


def event_link(event_id: str) -> str:
    return f"{config.PUBLIC_BASE_URL}/event/{event_id}"


def build_share_message(event: Event, player_names: Sequence[str]) -> str:
    link = event_link(event.id)

    lines = [
        f"⛳ Golf - {'Booked' if event.booked else 'Proposed'}!",
        f"📅 {event.title or format_event_date(event.event_date)}",
    ]
    if event.tee_time:
        lines.append(f"🕐 {event.tee_time}")
    if event.course_name:
        lines.append(f"📍 {event.course_name}")
    if player_names:
        lines.append(f"🏌️ {', '.join(player_names)}")
    message = "\n".join(lines) + "\n"

    if event.notes:
        message += f"\n📝 {event.notes}\n"
    message += f"\n🔗 {link}"

    if event.booked:
        message += f"\n\n📅 Add to Calendar:\n{google_calendar_url(event, link)}"
    return message
