# backend/constants.py
"""Application constants - single source of truth for configuration values."""

# A golf group is a physical four-ball; not configurable per event
MAX_PLAYERS = 4

RESPONSE_STATUSES = ["available", "unavailable"]

# RSVP preference options
TIME_PREFERENCES = ["AM", "PM", "Any"]
TRANSPORT_PREFERENCES = ["Walk", "Cart", "Any"]
FORMAT_PREFERENCES = ["Stroke", "Scramble", "Any"]
COURSE_NOTE_MAX_LENGTH = 200

NOTES_MAX_LENGTH = 500
COURSE_NAME_MAX_LENGTH = 120
USERNAME_MAX_LENGTH = 30

EVENT_TITLE_DEFAULT = "Golf Round"
PAST_EVENTS_LIMIT = 5

# Weather
FORECAST_HORIZON_DAYS = 16
CONDITIONS_MAX_DATES = 7

# Playability thresholds (deg C, mm, km/h)
HOT_SEVERE_C = 35
HOT_MILD_C = 30
COLD_SEVERE_C = 5
COLD_MILD_C = 10
RAIN_HEAVY_MM = 10
RAIN_MODERATE_MM = 5
RAIN_LIGHT_MM = 1
WIND_STRONG_KMH = 40
WIND_MODERATE_KMH = 25

# Calendar export
ROUND_DURATION_HOURS = 4.5
REMINDER_TRIGGER = "-PT1H"
ICS_PRODID = "-//GolfGang//Event//EN"
ICS_UID_DOMAIN = "golfgang.app"
