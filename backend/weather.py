"""
Weather provider - daily forecasts from Open-Meteo.

Open-Meteo needs no API key and serves forecasts up to 16 days ahead. Dates
outside that window have no observation and ``fetch_observation`` returns
None without calling the provider.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, Optional

import httpx
import structlog

import config
from constants import FORECAST_HORIZON_DAYS, CONDITIONS_MAX_DATES
from errors import ProviderError
from models import Event, WeatherObservation

logger = structlog.get_logger(__name__)

DAILY_FIELDS = "temperature_2m_max,temperature_2m_min,precipitation_sum,weathercode,windspeed_10m_max"


def within_forecast_horizon(target_date: date, today: Optional[date] = None,
                            horizon_days: int = FORECAST_HORIZON_DAYS) -> bool:
    today = today or date.today()
    days_from_now = (target_date - today).days
    return 0 <= days_from_now <= horizon_days


def _first(daily: Dict[str, Any], key: str) -> float:
    values = daily.get(key) or []
    if not values or values[0] is None:
        return 0
    return values[0]


class WeatherClient:
    """Fetches single-day forecasts for a date and location."""

    def __init__(
        self,
        base_url: str = config.WEATHER_BASE_URL,
        timeout: float = config.WEATHER_TIMEOUT_SECONDS,
        horizon_days: int = FORECAST_HORIZON_DAYS,
        http_client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.horizon_days = horizon_days
        self._http = http_client
        self.logger = logger.bind(component="weather_client")

    def _get(self, params: Dict[str, Any]) -> httpx.Response:
        if self._http is not None:
            return self._http.get(self.base_url, params=params, timeout=self.timeout)
        with httpx.Client() as client:
            return client.get(self.base_url, params=params, timeout=self.timeout)

    def fetch_observation(
        self,
        target_date: date,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        today: Optional[date] = None,
    ) -> Optional[WeatherObservation]:
        """
        Fetch the forecast for one day.

        Returns None when the date is outside the forecast horizon. Raises
        ProviderError when the provider cannot be reached or answers with
        something unusable.
        """
        if not within_forecast_horizon(target_date, today, self.horizon_days):
            self.logger.debug("Date outside forecast horizon", date=target_date.isoformat())
            return None

        latitude = lat if lat is not None else config.DEFAULT_LAT
        longitude = lng if lng is not None else config.DEFAULT_LNG
        date_str = target_date.isoformat()
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "daily": DAILY_FIELDS,
            "timezone": "auto",
            "start_date": date_str,
            "end_date": date_str,
        }

        self.logger.info("Fetching forecast", date=date_str, lat=latitude, lng=longitude)
        try:
            response = self._get(params)
        except httpx.HTTPError as e:
            self.logger.error("Weather request failed", error=str(e), date=date_str)
            raise ProviderError("weather", "forecast service unreachable") from e

        if response.status_code != 200:
            self.logger.error("Weather API error", status_code=response.status_code, date=date_str)
            raise ProviderError("weather", f"forecast service returned {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError("weather", "invalid forecast payload") from e

        daily = data.get("daily") if isinstance(data, dict) else None
        if not daily:
            self.logger.error("Forecast payload missing daily data", date=date_str)
            raise ProviderError("weather", "invalid forecast payload")

        return WeatherObservation(
            temperature_max=_first(daily, "temperature_2m_max"),
            temperature_min=_first(daily, "temperature_2m_min"),
            precipitation_total=_first(daily, "precipitation_sum"),
            wind_speed_max=_first(daily, "windspeed_10m_max"),
            weather_code=int(_first(daily, "weathercode")),
            observation_date=target_date,
        )

    def fetch_for_events(
        self,
        events: Iterable[Event],
        today: Optional[date] = None,
        max_dates: int = CONDITIONS_MAX_DATES,
    ) -> Dict[date, WeatherObservation]:
        """
        Fetch forecasts for upcoming events, one request per distinct date.

        The first event seen on a date supplies the coordinates. Dates that
        fail or fall outside the horizon are left out of the result.
        """
        today = today or date.today()
        locations: Dict[date, tuple] = {}
        for event in events:
            if event.event_date < today or event.event_date in locations:
                continue
            coords = event.coordinates
            locations[event.event_date] = (coords.lat, coords.lng) if coords else (None, None)

        observations = {}
        for event_date, (lat, lng) in list(locations.items())[:max_dates]:
            try:
                observation = self.fetch_observation(event_date, lat, lng, today=today)
            except ProviderError as e:
                self.logger.warning("Skipping forecast", date=event_date.isoformat(), error=str(e))
                continue
            if observation is not None:
                observations[event_date] = observation
        return observations
