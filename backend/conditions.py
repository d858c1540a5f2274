"""
Golf playability scoring.

Every page that shows a forecast scores it through ``score`` so the same
observation always yields the same number and label.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from constants import (
    HOT_SEVERE_C, HOT_MILD_C, COLD_SEVERE_C, COLD_MILD_C,
    RAIN_HEAVY_MM, RAIN_MODERATE_MM, RAIN_LIGHT_MM,
    WIND_STRONG_KMH, WIND_MODERATE_KMH,
)
from errors import InvalidArgument
from models import WeatherObservation

PERFECT_SCORE = 10

EXCELLENT = "Excellent"
GOOD = "Good"
FAIR = "Fair"
POOR = "Poor"


@dataclass(frozen=True)
class PlayabilityScore:
    value: int
    label: str

    @property
    def color(self) -> str:
        return playability_color(self.value)


def temperature_penalty(temperature_max: float) -> int:
    penalty = 0
    if temperature_max > HOT_SEVERE_C:
        penalty += 2
    elif temperature_max > HOT_MILD_C:
        penalty += 1
    if temperature_max < COLD_SEVERE_C:
        penalty += 2
    elif temperature_max < COLD_MILD_C:
        penalty += 1
    return penalty


def precipitation_penalty(precipitation_total: float) -> int:
    if precipitation_total > RAIN_HEAVY_MM:
        return 3
    if precipitation_total > RAIN_MODERATE_MM:
        return 2
    if precipitation_total > RAIN_LIGHT_MM:
        return 1
    return 0


def wind_penalty(wind_speed_max: float) -> int:
    if wind_speed_max > WIND_STRONG_KMH:
        return 2
    if wind_speed_max > WIND_MODERATE_KMH:
        return 1
    return 0


def playability_label(value: int) -> str:
    if value >= 8:
        return EXCELLENT
    if value >= 6:
        return GOOD
    if value >= 4:
        return FAIR
    return POOR


def playability_color(value: int) -> str:
    if value >= 8:
        return "#10b981"  # green
    if value >= 6:
        return "#f59e0b"  # orange
    return "#ef4444"  # red


def score(observation: Optional[WeatherObservation]) -> PlayabilityScore:
    """
    Score a day's forecast from 0 (unplayable) to 10 (perfect).

    Penalties for heat/cold, rain and wind are subtracted independently from
    a perfect 10 and the result is clamped. A missing observation is not a
    zero score; callers must handle "no forecast" before scoring.
    """
    if observation is None:
        raise InvalidArgument("cannot score a missing weather observation")

    value = PERFECT_SCORE
    value -= temperature_penalty(observation.temperature_max)
    value -= precipitation_penalty(observation.precipitation_total)
    value -= wind_penalty(observation.wind_speed_max)
    value = max(0, min(PERFECT_SCORE, value))

    return PlayabilityScore(value=value, label=playability_label(value))


def describe_weather_code(code: int) -> str:
    """Short description for a WMO weather code."""
    if code == 0:
        return "Clear"
    if code <= 3:
        return "Partly Cloudy"
    if code <= 48:
        return "Foggy"
    if code <= 67:
        return "Rainy"
    if code <= 77:
        return "Snow"
    if code <= 82:
        return "Rain Showers"
    if code <= 86:
        return "Snow Showers"
    if code <= 99:
        return "Thunderstorm"
    return "Unknown"


def weather_icon(code: int) -> str:
    if code == 0:
        return "☀️"
    if code <= 3:
        return "⛅"
    if code <= 48:
        return "🌫️"
    if code <= 67:
        return "🌧️"
    if code <= 77:
        return "🌨️"
    if code <= 82:
        return "🌦️"
    if code <= 86:
        return "🌨️"
    if code <= 99:
        return "⛈️"
    return "🌤️"
