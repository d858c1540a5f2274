import secrets
from datetime import date, datetime
from zoneinfo import ZoneInfo
from typing import Optional
import structlog
from fastapi import FastAPI, HTTPException, Request, Header, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
from config import CORS_ORIGINS, PORT, HOST, DEBUG, LOG_LEVEL, EVENT_TIMEZONE
from constants import (
    MAX_PLAYERS, TIME_PREFERENCES, TRANSPORT_PREFERENCES, FORMAT_PREFERENCES,
    FORECAST_HORIZON_DAYS, PAST_EVENTS_LIMIT, ROUND_DURATION_HOURS
)
from database import init_db
from errors import InvalidArgument, ProviderError, ProviderNotConfigured
from log_config import configure_logging
from models import (
    User, UserCreate, AdminUpdate,
    Event, EventCreate, EventUpdate, EventResponse,
    RsvpRequest, RsvpResult, RosterPlayer, RosterResponse,
    CourseNote, PreferenceSummaryResponse,
    WeatherObservation, ConditionsResponse,
    CalendarLinks, ShareResponse, CourseResult
)
import conditions
from roster import assign_roster, placement_of
from preferences import summarize
from calendar_export import generate_ics, google_calendar_url, sanitize_filename
from sharing import format_event_title, event_link, build_share_message
from store import EventStore
from weather import WeatherClient
from places import PlacesClient

configure_logging(LOG_LEVEL)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Golf Gang API",
    version="1.0.0",
    docs_url="/api/docs" if DEBUG else None,
    redoc_url="/api/redoc" if DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(request: Request, status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": True, "status_code": status_code, "message": message, "path": str(request.url.path)}
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error(request, exc.status_code, exc.detail)


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    logger.error("Invalid argument", path=str(request.url.path), error=str(exc))
    return _error(request, 400, str(exc))


@app.exception_handler(ProviderNotConfigured)
async def provider_not_configured_handler(request: Request, exc: ProviderNotConfigured):
    return _error(request, 503, f"{exc.provider.capitalize()} lookup is not configured")


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    return _error(request, 502, f"{exc.provider.capitalize()} service unavailable, please try again")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", path=str(request.url.path))
    return _error(request, 500, "Internal server error")


@app.on_event("startup")
def startup():
    init_db()


def generate_event_id() -> str:
    return secrets.token_urlsafe(6)


def local_today() -> date:
    """Today's date where the rounds are played."""
    return datetime.now(ZoneInfo(EVENT_TIMEZONE)).date()


# ============ DEPENDENCIES ============

def get_store() -> EventStore:
    return EventStore()


def get_weather_client() -> WeatherClient:
    return WeatherClient()


def get_places_client() -> PlacesClient:
    return PlacesClient()


def current_user(x_user_id: Optional[str] = Header(None), store: EventStore = Depends(get_store)) -> User:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Sign in required")
    user = store.get_user(x_user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def require_admin(user: User = Depends(current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin only")
    return user


def load_event(store: EventStore, event_id: str) -> Event:
    event = store.get_event(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def require_editor(event: Event, user: User):
    """Proposer or admin."""
    if not (user.is_admin or user.id == event.proposer_id):
        raise HTTPException(status_code=403, detail="Not authorized to change this event")


def user_names(store: EventStore) -> dict[str, str]:
    return {u.id: u.display_name for u in store.list_users()}


def to_event_response(event: Event, names: dict[str, str]) -> EventResponse:
    roster = assign_roster(event.responses, event.capacity)
    return EventResponse(
        **event.model_dump(exclude={"responses"}),
        proposer_name=names.get(event.proposer_id) if event.proposer_id else None,
        confirmed_count=len(roster.confirmed),
        reserve_count=len(roster.reserve),
        declined_count=len(roster.declined),
        is_full=len(roster.confirmed) >= event.capacity,
    )


# ============ USERS ============

@app.post("/api/users", response_model=User)
def register_user(user: UserCreate, store: EventStore = Depends(get_store)):
    return store.upsert_user(user)


@app.get("/api/users", response_model=list[User])
def list_users(store: EventStore = Depends(get_store)):
    return store.list_users()


@app.get("/api/users/{user_id}", response_model=User)
def get_user(user_id: str, store: EventStore = Depends(get_store)):
    user = store.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@app.put("/api/users/{user_id}/admin", response_model=User)
def set_admin(user_id: str, update: AdminUpdate, admin: User = Depends(require_admin),
              store: EventStore = Depends(get_store)):
    user = store.set_admin(user_id, update.is_admin)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Admin status changed", user_id=user_id, is_admin=update.is_admin, by=admin.id)
    return user


# ============ EVENTS ============

@app.post("/api/events", response_model=EventResponse)
def create_event(event: EventCreate, user: User = Depends(current_user), store: EventStore = Depends(get_store)):
    created = store.create_event(generate_event_id(), format_event_title(event.event_date), event, user.id)
    return to_event_response(created, user_names(store))


@app.get("/api/events", response_model=list[EventResponse])
def list_events(scope: str = Query("upcoming", pattern=r"^(upcoming|past|all)$"),
                store: EventStore = Depends(get_store)):
    today = local_today()
    events = store.list_events()
    if scope == "upcoming":
        events = sorted((e for e in events if e.event_date >= today), key=lambda e: e.event_date)
    elif scope == "past":
        events = sorted((e for e in events if e.event_date < today), key=lambda e: e.event_date, reverse=True)
        events = events[:PAST_EVENTS_LIMIT]

    names = user_names(store)
    return [to_event_response(e, names) for e in events]


@app.get("/api/events/{event_id}", response_model=EventResponse)
def get_event(event_id: str, store: EventStore = Depends(get_store)):
    return to_event_response(load_event(store, event_id), user_names(store))


@app.put("/api/events/{event_id}", response_model=EventResponse)
def update_event(event_id: str, update: EventUpdate, user: User = Depends(current_user),
                 store: EventStore = Depends(get_store)):
    require_editor(load_event(store, event_id), user)
    updated = store.update_event(event_id, update)
    if not updated:
        raise HTTPException(status_code=404, detail="Event not found")
    return to_event_response(updated, user_names(store))


@app.delete("/api/events/{event_id}")
def delete_event(event_id: str, user: User = Depends(current_user), store: EventStore = Depends(get_store)):
    require_editor(load_event(store, event_id), user)
    store.delete_event(event_id)
    return {"message": "Event deleted"}


@app.post("/api/events/{event_id}/booking", response_model=EventResponse)
def book_event(event_id: str, user: User = Depends(current_user), store: EventStore = Depends(get_store)):
    event = load_event(store, event_id)
    require_editor(event, user)

    roster = assign_roster(event.responses, event.capacity)
    if not roster.confirmed:
        raise HTTPException(status_code=409, detail="No confirmed players to book")

    booked = store.set_booked(event_id, True)
    logger.info("Round booked", event_id=event_id, by=user.id, players=len(roster.confirmed))
    return to_event_response(booked, user_names(store))


@app.delete("/api/events/{event_id}/booking", response_model=EventResponse)
def unbook_event(event_id: str, user: User = Depends(current_user), store: EventStore = Depends(get_store)):
    require_editor(load_event(store, event_id), user)
    unbooked = store.set_booked(event_id, False)
    logger.info("Booking removed", event_id=event_id, by=user.id)
    return to_event_response(unbooked, user_names(store))


# ============ RESPONSES ============

@app.put("/api/events/{event_id}/responses/me", response_model=RsvpResult)
def submit_response(event_id: str, rsvp: RsvpRequest, user: User = Depends(current_user),
                    store: EventStore = Depends(get_store)):
    event = load_event(store, event_id)
    if event.booked:
        raise HTTPException(status_code=409, detail="Event is already booked")

    store.upsert_response(event_id, user.id, rsvp.status, rsvp.preferences)

    event = load_event(store, event_id)
    roster = assign_roster(event.responses, event.capacity)
    placement = placement_of(roster, user.id)
    logger.info("RSVP saved", event_id=event_id, user_id=user.id, status=rsvp.status, placement=placement)
    return RsvpResult(
        event_id=event_id,
        user_id=user.id,
        status=rsvp.status,
        placement=placement,
        confirmed_count=len(roster.confirmed),
        capacity=event.capacity,
    )


@app.delete("/api/events/{event_id}/responses/{user_id}")
def delete_response(event_id: str, user_id: str, user: User = Depends(current_user),
                    store: EventStore = Depends(get_store)):
    load_event(store, event_id)
    if user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Not authorized to remove this player")

    if not store.delete_response(event_id, user_id):
        raise HTTPException(status_code=404, detail="Response not found")
    logger.info("Response removed", event_id=event_id, user_id=user_id, by=user.id)
    return {"message": "Response removed"}


@app.get("/api/events/{event_id}/roster", response_model=RosterResponse)
def get_roster(event_id: str, store: EventStore = Depends(get_store)):
    event = load_event(store, event_id)
    roster = assign_roster(event.responses, event.capacity)
    names = user_names(store)

    def players(user_ids):
        return [
            RosterPlayer(
                user_id=uid,
                name=names.get(uid, "Unknown"),
                responded_at=event.responses[uid].responded_at,
                preferences=event.responses[uid].preferences,
            )
            for uid in user_ids
        ]

    return RosterResponse(
        event_id=event_id,
        capacity=event.capacity,
        is_full=len(roster.confirmed) >= event.capacity,
        confirmed=players(roster.confirmed),
        reserve=players(roster.reserve),
        declined=players(roster.declined),
    )


@app.get("/api/events/{event_id}/preferences", response_model=PreferenceSummaryResponse)
def get_preferences(event_id: str, store: EventStore = Depends(get_store)):
    event = load_event(store, event_id)
    roster = assign_roster(event.responses, event.capacity)
    summary = summarize(roster.confirmed, event.responses)
    names = user_names(store)
    return PreferenceSummaryResponse(
        event_id=event_id,
        time_counts=summary.time_counts,
        transport_counts=summary.transport_counts,
        format_counts=summary.format_counts,
        course_notes=[
            CourseNote(user_id=uid, name=names.get(uid, "Unknown"), note=note)
            for uid, note in summary.course_notes.items()
        ],
    )


# ============ CONDITIONS ============

def conditions_view(event_date: date, observation: Optional[WeatherObservation]) -> ConditionsResponse:
    if observation is None:
        return ConditionsResponse(event_date=event_date, available=False)

    playability = conditions.score(observation)
    return ConditionsResponse(
        event_date=event_date,
        available=True,
        temperature=round((observation.temperature_max + observation.temperature_min) / 2),
        temperature_max=round(observation.temperature_max),
        temperature_min=round(observation.temperature_min),
        precipitation=observation.precipitation_total,
        wind_speed=round(observation.wind_speed_max),
        weather_code=observation.weather_code,
        conditions=conditions.describe_weather_code(observation.weather_code),
        icon=conditions.weather_icon(observation.weather_code),
        score=playability.value,
        label=playability.label,
        color=playability.color,
    )


@app.get("/api/events/{event_id}/conditions", response_model=ConditionsResponse)
def get_event_conditions(event_id: str, store: EventStore = Depends(get_store),
                         weather: WeatherClient = Depends(get_weather_client)):
    event = load_event(store, event_id)
    coords = event.coordinates
    observation = weather.fetch_observation(
        event.event_date,
        coords.lat if coords else None,
        coords.lng if coords else None,
        today=local_today(),
    )
    return conditions_view(event.event_date, observation)


@app.get("/api/conditions", response_model=dict[str, ConditionsResponse])
def get_upcoming_conditions(store: EventStore = Depends(get_store),
                            weather: WeatherClient = Depends(get_weather_client)):
    today = local_today()
    upcoming = sorted((e for e in store.list_events() if e.event_date >= today), key=lambda e: e.event_date)
    observations = weather.fetch_for_events(upcoming, today=today)
    return {d.isoformat(): conditions_view(d, obs) for d, obs in observations.items()}


# ============ CALENDAR & SHARING ============

@app.get("/api/events/{event_id}/calendar.ics")
def download_calendar(event_id: str, store: EventStore = Depends(get_store)):
    event = load_event(store, event_id)
    filename = sanitize_filename(event.course_name or event.title)
    return Response(
        content=generate_ics(event, event_link(event.id)),
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}.ics"'},
    )


@app.get("/api/events/{event_id}/calendar-links", response_model=CalendarLinks)
def calendar_links(event_id: str, store: EventStore = Depends(get_store)):
    event = load_event(store, event_id)
    return CalendarLinks(
        google_url=google_calendar_url(event, event_link(event.id)),
        ics_url=f"/api/events/{event.id}/calendar.ics",
    )


@app.get("/api/events/{event_id}/share", response_model=ShareResponse)
def share_event(event_id: str, store: EventStore = Depends(get_store)):
    event = load_event(store, event_id)
    roster = assign_roster(event.responses, event.capacity)
    names = user_names(store)
    return ShareResponse(message=build_share_message(event, [names.get(uid, "Unknown") for uid in roster.confirmed]))


# ============ COURSES ============

@app.get("/api/courses/search", response_model=list[CourseResult])
def search_courses(q: str = Query(..., min_length=2, max_length=100),
                   places: PlacesClient = Depends(get_places_client)):
    return places.search_courses(q)


@app.get("/api/courses/photo")
def course_photo(ref: str = Query(..., min_length=1), max_width: int = Query(800, ge=100, le=1600),
                 places: PlacesClient = Depends(get_places_client)):
    return RedirectResponse(places.photo_url(ref, max_width))


# ============ CONFIGURATION ============

@app.get("/api/config")
def get_config():
    return {
        "max_players": MAX_PLAYERS,
        "preferences": {
            "time": TIME_PREFERENCES,
            "transport": TRANSPORT_PREFERENCES,
            "format": FORMAT_PREFERENCES,
        },
        "forecast_horizon_days": FORECAST_HORIZON_DAYS,
        "round_duration_hours": ROUND_DURATION_HOURS,
    }


# ============ HEALTH CHECK ============

@app.get("/api/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT, reload=DEBUG)
