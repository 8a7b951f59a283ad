"""
Route lookup for dispatch moves.

Looks up driving distance and duration between a move's origin and
destination with the Google Maps Directions API and builds a shareable map
link. Lookups never fail a move: any error degrades to an empty RouteInfo.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urlencode

import requests

logger = logging.getLogger(__name__)

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
MAP_LINK_URL = "https://www.google.com/maps/dir/"

DEFAULT_PLACEHOLDER_TOKENS = ("tbc", "unknown", "to be confirmed")

# Full or outward-only UK postcode: "SW1A 1AA", "M1 1AE", "LS1"
POSTCODE_RE = re.compile(r"\b[A-Z]{1,2}\d[A-Z\d]?(?:\s*\d[A-Z]{2})?\b", re.IGNORECASE)


class RouteLookupError(Exception):
    """Raised when the directions API cannot produce a route."""
    pass


@dataclass
class RouteInfo:
    distance: str = ""
    duration: str = ""
    map_url: str = ""

    def is_empty(self) -> bool:
        return not (self.distance or self.duration or self.map_url)


def has_placeholder(place: str, tokens: Iterable[str] = DEFAULT_PLACEHOLDER_TOKENS) -> bool:
    """True when the place text is a stand-in such as "TBC" or "unknown"."""
    text = (place or "").lower()
    return any(re.search(rf"\b{re.escape(token.lower())}\b", text) for token in tokens)


def augment_place(place: str, suffix: str) -> str:
    """Append the regional suffix unless the place already looks specific.

    A comma or a postcode-shaped token counts as specific enough.
    """
    place = (place or "").strip()
    if not place or not suffix:
        return place
    if "," in place or POSTCODE_RE.search(place):
        return place
    return f"{place}{suffix}"


def build_map_url(origin: str, destination: str, mode: str = "driving") -> str:
    query = urlencode({"api": 1, "origin": origin, "destination": destination, "travelmode": mode})
    return f"{MAP_LINK_URL}?{query}"


class RouteService:
    """Distance/duration lookups against the Google Maps Directions API."""

    def __init__(
        self,
        api_key: str,
        regional_suffix: str = "",
        travel_mode: str = "driving",
        placeholder_tokens: Optional[Iterable[str]] = None,
        timeout: int = 10,
        session=None,
    ):
        self.api_key = api_key
        self.regional_suffix = regional_suffix
        self.travel_mode = travel_mode
        self.placeholder_tokens = tuple(placeholder_tokens or DEFAULT_PLACEHOLDER_TOKENS)
        self.timeout = timeout
        self.session = session or requests.Session()

    def should_lookup(self, origin: str, destination: str) -> bool:
        if not origin or not destination:
            return False
        return not (
            has_placeholder(origin, self.placeholder_tokens)
            or has_placeholder(destination, self.placeholder_tokens)
        )

    def fetch_route(self, origin: str, destination: str) -> RouteInfo:
        """Call the directions API for already-augmented place strings.

        Raises:
            RouteLookupError: On HTTP failure, a non-OK API status or a
                response without legs.
        """
        params = {
            "origin": origin,
            "destination": destination,
            "mode": self.travel_mode,
            "key": self.api_key,
        }
        try:
            response = self.session.get(DIRECTIONS_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise RouteLookupError(f"Directions request failed: {e}")
        except ValueError as e:
            raise RouteLookupError(f"Directions response was not JSON: {e}")

        status = data.get("status")
        if status != "OK":
            raise RouteLookupError(f"Directions API status {status}: {data.get('error_message', '')}")

        try:
            leg = data["routes"][0]["legs"][0]
            distance = leg["distance"]["text"]
            duration = leg["duration"]["text"]
        except (KeyError, IndexError, TypeError):
            raise RouteLookupError("Directions response had no route legs")

        return RouteInfo(
            distance=distance,
            duration=duration,
            map_url=build_map_url(origin, destination, self.travel_mode),
        )

    def lookup(self, origin: str, destination: str) -> RouteInfo:
        """Return the route for a move, or an empty RouteInfo.

        Skipped when either place is missing or a placeholder, or when no API
        key is configured.
        """
        if not self.api_key or not self.should_lookup(origin, destination):
            return RouteInfo()

        start = augment_place(origin, self.regional_suffix)
        end = augment_place(destination, self.regional_suffix)
        try:
            return self.fetch_route(start, end)
        except RouteLookupError as e:
            logger.warning("Route lookup failed for %r -> %r: %s", start, end, e)
            return RouteInfo()
