"""Group preference summaries for the confirmed roster."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from models import Response


@dataclass
class PreferenceSummary:
    time_counts: dict[str, int] = field(default_factory=dict)
    transport_counts: dict[str, int] = field(default_factory=dict)
    format_counts: dict[str, int] = field(default_factory=dict)
    course_notes: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.time_counts or self.transport_counts or self.format_counts or self.course_notes)


def summarize(confirmed_user_ids: Iterable[str], responses: Mapping[str, Response]) -> PreferenceSummary:
    """
    Count the confirmed players' time, transport and format choices.

    Unset fields are skipped rather than counted as "Any".
    """
    time_counts: Counter = Counter()
    transport_counts: Counter = Counter()
    format_counts: Counter = Counter()
    course_notes = {}

    for user_id in confirmed_user_ids:
        response = responses.get(user_id)
        prefs = response.preferences if response else None
        if prefs is None:
            continue
        if prefs.time_preference:
            time_counts[prefs.time_preference] += 1
        if prefs.transport_preference:
            transport_counts[prefs.transport_preference] += 1
        if prefs.format_preference:
            format_counts[prefs.format_preference] += 1
        if prefs.course_note:
            course_notes[user_id] = prefs.course_note

    return PreferenceSummary(
        time_counts=dict(time_counts),
        transport_counts=dict(transport_counts),
        format_counts=dict(format_counts),
        course_notes=course_notes,
    )
