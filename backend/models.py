from datetime import date, datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from constants import (
    MAX_PLAYERS, EVENT_TITLE_DEFAULT,
    COURSE_NOTE_MAX_LENGTH, COURSE_NAME_MAX_LENGTH, NOTES_MAX_LENGTH, USERNAME_MAX_LENGTH
)


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v.strip() if isinstance(v, str) else v


# ============ CORE TYPES ============

class Preferences(BaseModel):
    time_preference: Optional[str] = Field(default=None, pattern=r"^(AM|PM|Any)$")
    transport_preference: Optional[str] = Field(default=None, pattern=r"^(Walk|Cart|Any)$")
    format_preference: Optional[str] = Field(default=None, pattern=r"^(Stroke|Scramble|Any)$")
    course_note: Optional[str] = Field(default=None, max_length=COURSE_NOTE_MAX_LENGTH)

    @field_validator('time_preference', 'transport_preference', 'format_preference', 'course_note', mode='before')
    @classmethod
    def unset_when_blank(cls, v):
        return _blank_to_none(v)

    def is_empty(self) -> bool:
        return not any((self.time_preference, self.transport_preference,
                        self.format_preference, self.course_note))


class Response(BaseModel):
    """One user's reply to an event invitation."""
    user_id: str
    status: Optional[str] = Field(default=None, pattern=r"^(available|unavailable)$")
    responded_at: Optional[datetime] = None
    preferences: Optional[Preferences] = None

    @field_validator('responded_at')
    @classmethod
    def naive_utc(cls, v):
        # Aware values become naive UTC so every responded_at sorts together
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Event(BaseModel):
    """A proposed or booked round as held by the event store."""
    id: str
    title: str = EVENT_TITLE_DEFAULT
    event_date: date
    tee_time: Optional[str] = None
    course_name: Optional[str] = None
    course_id: Optional[str] = None
    course_address: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    notes: Optional[str] = None
    proposer_id: Optional[str] = None
    booked: bool = False
    booked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    capacity: int = MAX_PLAYERS
    # Iteration order is first-response order
    responses: dict[str, Response] = Field(default_factory=dict)


class WeatherObservation(BaseModel):
    """A single day's forecast for one location."""
    temperature_max: float
    temperature_min: float
    precipitation_total: float = 0.0
    wind_speed_max: float = 0.0
    weather_code: int = 0
    observation_date: Optional[date] = None


class User(BaseModel):
    id: str
    username: Optional[str] = None
    email: Optional[str] = None
    is_admin: bool = False
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        if self.username:
            return self.username
        if self.email:
            return self.email.split("@")[0]
        return "Unknown"


# ============ REQUESTS ============

class UserCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=128)
    username: Optional[str] = Field(default=None, max_length=USERNAME_MAX_LENGTH)
    email: Optional[str] = Field(default=None, max_length=254)

    @field_validator('username', 'email', mode='before')
    @classmethod
    def cleaned(cls, v):
        return _blank_to_none(v)


class AdminUpdate(BaseModel):
    is_admin: bool


class EventDetails(BaseModel):
    """Fields a proposer or admin may edit after creation."""
    tee_time: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    course_name: Optional[str] = Field(default=None, max_length=COURSE_NAME_MAX_LENGTH)
    course_id: Optional[str] = Field(default=None, max_length=256)
    course_address: Optional[str] = Field(default=None, max_length=256)
    coordinates: Optional[Coordinates] = None
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)

    @field_validator('tee_time', 'course_name', 'course_id', 'course_address', 'notes', mode='before')
    @classmethod
    def unset_when_blank(cls, v):
        return _blank_to_none(v)

    @field_validator('tee_time')
    @classmethod
    def valid_clock_time(cls, v):
        if v is None:
            return v
        hours, minutes = (int(part) for part in v.split(":"))
        if hours > 23 or minutes > 59:
            raise ValueError(f"Invalid tee time '{v}'")
        return v


class EventCreate(EventDetails):
    event_date: date
    preferences: Optional[Preferences] = None


class EventUpdate(EventDetails):
    pass


class RsvpRequest(BaseModel):
    status: str = Field(..., pattern=r"^(available|unavailable)$")
    preferences: Optional[Preferences] = None


# ============ RESPONSES ============

class EventResponse(BaseModel):
    id: str
    title: str
    event_date: date
    tee_time: Optional[str] = None
    course_name: Optional[str] = None
    course_id: Optional[str] = None
    course_address: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    notes: Optional[str] = None
    proposer_id: Optional[str] = None
    proposer_name: Optional[str] = None
    booked: bool
    booked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    capacity: int
    confirmed_count: int
    reserve_count: int
    declined_count: int
    is_full: bool


class RosterPlayer(BaseModel):
    user_id: str
    name: str
    responded_at: Optional[datetime] = None
    preferences: Optional[Preferences] = None


class RosterResponse(BaseModel):
    event_id: str
    capacity: int
    is_full: bool
    confirmed: list[RosterPlayer]
    reserve: list[RosterPlayer]
    declined: list[RosterPlayer]


class RsvpResult(BaseModel):
    event_id: str
    user_id: str
    status: str
    placement: Optional[str] = None
    confirmed_count: int
    capacity: int


class CourseNote(BaseModel):
    user_id: str
    name: str
    note: str


class PreferenceSummaryResponse(BaseModel):
    event_id: str
    time_counts: dict[str, int]
    transport_counts: dict[str, int]
    format_counts: dict[str, int]
    course_notes: list[CourseNote]


class ConditionsResponse(BaseModel):
    event_date: date
    available: bool
    temperature: Optional[int] = None
    temperature_max: Optional[int] = None
    temperature_min: Optional[int] = None
    precipitation: Optional[float] = None
    wind_speed: Optional[int] = None
    weather_code: Optional[int] = None
    conditions: Optional[str] = None
    icon: Optional[str] = None
    score: Optional[int] = None
    label: Optional[str] = None
    color: Optional[str] = None


class CalendarLinks(BaseModel):
    google_url: str
    ics_url: str


class ShareResponse(BaseModel):
    message: str


class CourseResult(BaseModel):
    name: str
    address: Optional[str] = None
    place_id: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    photo_reference: Optional[str] = None
