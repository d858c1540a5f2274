"""Golf course lookup through the Google Places text search API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import structlog

import config
from errors import ProviderError, ProviderNotConfigured
from models import Coordinates, CourseResult

logger = structlog.get_logger(__name__)

COURSE_TYPES = {"golf_course", "establishment"}
MAX_RESULTS = 8


def _to_course(place: Dict[str, Any]) -> CourseResult:
    location = (place.get("geometry") or {}).get("location") or {}
    coordinates = None
    if location.get("lat") is not None and location.get("lng") is not None:
        coordinates = Coordinates(lat=location["lat"], lng=location["lng"])
    photos = place.get("photos") or []
    return CourseResult(
        name=place.get("name", ""),
        address=place.get("formatted_address"),
        place_id=place.get("place_id"),
        coordinates=coordinates,
        photo_reference=photos[0].get("photo_reference") if photos else None,
    )


class PlacesClient:
    """Searches golf courses by free text."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = config.PLACES_BASE_URL,
        region: str = config.PLACES_REGION,
        timeout: float = config.PLACES_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key if api_key is not None else config.GOOGLE_MAPS_API_KEY
        self.base_url = base_url.rstrip("/")
        self.region = region
        self.timeout = timeout
        self._http = http_client
        self.logger = logger.bind(component="places_client")

    def _get(self, url: str, params: Dict[str, Any]) -> httpx.Response:
        if self._http is not None:
            return self._http.get(url, params=params, timeout=self.timeout)
        with httpx.Client() as client:
            return client.get(url, params=params, timeout=self.timeout)

    def search_courses(self, query: str) -> List[CourseResult]:
        query = query.strip()
        if not query:
            return []
        if not self.api_key:
            raise ProviderNotConfigured("places", "GOOGLE_MAPS_API_KEY is not set")

        params = {
            "query": query if "golf" in query.lower() else f"{query} golf",
            "region": self.region,
            "key": self.api_key,
        }
        try:
            response = self._get(f"{self.base_url}/textsearch/json", params)
        except httpx.HTTPError as e:
            self.logger.error("Places request failed", error=str(e))
            raise ProviderError("places", "course search unreachable") from e

        if response.status_code != 200:
            self.logger.error("Places API error", status_code=response.status_code)
            raise ProviderError("places", f"course search returned {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            self.logger.error("Places payload not JSON", error=str(e))
            raise ProviderError("places", "invalid search payload") from e
        if not isinstance(data, dict):
            self.logger.error("Places payload not an object", payload_type=type(data).__name__)
            raise ProviderError("places", "invalid search payload")

        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            self.logger.error("Places search rejected", status=status, message=data.get("error_message"))
            raise ProviderError("places", f"course search failed ({status})")

        courses = [
            _to_course(place)
            for place in data.get("results", [])
            if COURSE_TYPES.intersection(place.get("types") or [])
        ]
        self.logger.info("Course search", query=query, results=len(courses))
        return courses[:MAX_RESULTS]

    def photo_url(self, photo_reference: str, max_width: int = 800) -> str:
        if not self.api_key:
            raise ProviderNotConfigured("places", "GOOGLE_MAPS_API_KEY is not set")
        return str(httpx.URL(
            f"{self.base_url}/photo",
            params={"maxwidth": max_width, "photo_reference": photo_reference, "key": self.api_key},
        ))
