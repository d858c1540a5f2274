"""First-come-first-served roster assignment."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from constants import MAX_PLAYERS
from errors import InvalidArgument
from models import Response

CONFIRMED = "confirmed"
RESERVE = "reserve"
DECLINED = "declined"


@dataclass(frozen=True)
class RosterResult:
    """Partition of an event's responders."""

    confirmed: list[str] = field(default_factory=list)
    reserve: list[str] = field(default_factory=list)
    declined: list[str] = field(default_factory=list)

    @property
    def available_count(self) -> int:
        return len(self.confirmed) + len(self.reserve)


def _arrival_key(response: Response):
    # Missing timestamps rank after every timestamped reply
    return (response.responded_at is None, response.responded_at)


def assign_roster(responses: Mapping[str, Response], capacity: int = MAX_PLAYERS) -> RosterResult:
    """
    Split available responders into a confirmed group and a reserve queue.

    Responders are ordered by ``responded_at``; the sort is stable so equal
    or missing timestamps keep the mapping's iteration order. The first
    ``capacity`` are confirmed and the remainder wait in reserve.
    Unavailable responders are returned separately as ``declined``.
    """
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise InvalidArgument(f"capacity must be a positive integer, got {capacity!r}")

    available = [(user_id, r) for user_id, r in responses.items() if r.status == "available"]
    available.sort(key=lambda item: _arrival_key(item[1]))
    ordered = [user_id for user_id, _ in available]

    declined = [user_id for user_id, r in responses.items() if r.status == "unavailable"]

    return RosterResult(
        confirmed=ordered[:capacity],
        reserve=ordered[capacity:],
        declined=declined,
    )


def placement_of(result: RosterResult, user_id: str) -> Optional[str]:
    """Where a user ended up in a roster, or None if they have not replied."""
    if user_id in result.confirmed:
        return CONFIRMED
    if user_id in result.reserve:
        return RESERVE
    if user_id in result.declined:
        return DECLINED
    return None
