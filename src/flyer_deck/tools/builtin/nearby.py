"""Nearby facilities via Google Places (New) searchNearby, with a marker map."""

import asyncio
import base64
from typing import Any

import httpx
from hyx.circuitbreaker.exceptions import BreakerFailing

from flyer_deck.core.exceptions import ToolError
from flyer_deck.core.resilience import (
    MaxTimeoutExceeded,
    PermanentError,
    RateLimitError,
    TransientError,
)
from flyer_deck.tools.base import HttpTool
from flyer_deck.tools.geo import distance_meters, format_distance, walk_minutes
from flyer_deck.utils.logging import get_logger


logger = get_logger(__name__)

# Failures of the optional map request; the facility list is still returned
MAP_ERRORS = (
    BreakerFailing,
    MaxTimeoutExceeded,
    PermanentError,
    RateLimitError,
    TransientError,
    httpx.HTTPError,
)

# (key, label, place type, marker color)
FACILITY_CATEGORIES: tuple[tuple[str, str, str, str], ...] = (
    ("supermarket", "スーパー", "supermarket", "#7dabfd"),
    ("convenience", "コンビニ", "convenience_store", "#8aae02"),
    ("park", "公園", "park", "#dc8501"),
    ("hospital", "病院", "hospital", "#926da6"),
)

FIELD_MASK = "places.displayName,places.location"


def marker_label(number: int) -> str:
    """Static Maps labels are a single character: 1-9, then A-Z."""
    if number <= 9:
        return str(number)
    return chr(ord("A") + number - 10)


def static_map_params(
    latitude: float,
    longitude: float,
    groups: list[dict[str, Any]],
    api_key: str,
) -> list[tuple[str, str]]:
    """Query parameters for a Static Maps image with the property and numbered facilities."""
    params = [
        ("center", f"{latitude},{longitude}"),
        ("zoom", "15"),
        ("size", "640x480"),
        ("format", "png"),
        ("maptype", "roadmap"),
        ("language", "ja"),
        ("markers", f"color:red|label:P|{latitude},{longitude}"),
    ]
    for group in groups:
        color = group["color"].replace("#", "0x")
        for facility in group["facilities"]:
            params.append(
                (
                    "markers",
                    f"color:{color}|label:{marker_label(facility['number'])}"
                    f"|{facility['latitude']},{facility['longitude']}",
                )
            )
    params.append(("key", api_key))
    return params


class NearbyFacilitiesTool(HttpTool):
    """Closest supermarkets, convenience stores, parks and hospitals."""

    name = "nearby_facilities"
    description = "Find everyday facilities within walking distance of a point"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        api_key: str,
        radius_meters: int = 1000,
        per_category: int = 3,
        static_map_url: str | None = None,
    ):
        super().__init__(client)
        self._url = url
        self._api_key = api_key
        self._radius = radius_meters
        self._per_category = per_category
        self._static_map_url = static_map_url

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        latitude, longitude = self.require(params, "latitude", "longitude")
        if not self._api_key:
            raise ToolError(
                "Places API key not configured (GOOGLE_MAPS_API_KEY)",
                tool_name=self.name,
                recoverable=False,
            )

        results = await asyncio.gather(
            *(
                self._search(latitude, longitude, place_type)
                for _, _, place_type, _ in FACILITY_CATEGORIES
            ),
            return_exceptions=True,
        )

        groups = []
        failures = []
        number = 1
        for (key, label, _, color), result in zip(FACILITY_CATEGORIES, results):
            if isinstance(result, BaseException):
                failures.append(key)
                logger.warning("Facility search failed", category=key, error=str(result))
                continue
            facilities = []
            for place in result:
                facilities.append(
                    {
                        "name": place["name"],
                        "distance": f"徒歩{walk_minutes(place['meters'])}分 ({format_distance(place['meters'])})",
                        "meters": place["meters"],
                        "number": number,
                        "latitude": place["latitude"],
                        "longitude": place["longitude"],
                    }
                )
                number += 1
            if facilities:
                groups.append(
                    {"key": key, "category": label, "color": color, "facilities": facilities}
                )

        if len(failures) == len(FACILITY_CATEGORIES):
            raise ToolError("All facility searches failed", tool_name=self.name)

        payload: dict[str, Any] = {
            "groups": groups,
            "sources": ["https://developers.google.com/maps/documentation/places"],
        }
        if self._static_map_url:
            map_image_url = await self._map_image(latitude, longitude, groups)
            if map_image_url:
                payload["map_image_url"] = map_image_url
        return payload

    async def _search(
        self, latitude: float, longitude: float, place_type: str
    ) -> list[dict[str, Any]]:
        response = await self.post(
            self._url,
            json={
                "includedTypes": [place_type],
                "maxResultCount": self._per_category,
                "rankPreference": "DISTANCE",
                "languageCode": "ja",
                "locationRestriction": {
                    "circle": {
                        "center": {"latitude": latitude, "longitude": longitude},
                        "radius": float(self._radius),
                    }
                },
            },
            headers={"X-Goog-Api-Key": self._api_key, "X-Goog-FieldMask": FIELD_MASK},
        )

        places = []
        for place in response.json().get("places", []):
            location = place.get("location") or {}
            name = (place.get("displayName") or {}).get("text")
            if not name or "latitude" not in location:
                continue
            meters = distance_meters(
                latitude, longitude, location["latitude"], location["longitude"]
            )
            places.append(
                {
                    "name": name,
                    "meters": round(meters),
                    "latitude": location["latitude"],
                    "longitude": location["longitude"],
                }
            )
        places.sort(key=lambda p: p["meters"])
        return places[: self._per_category]

    async def _map_image(
        self, latitude: float, longitude: float, groups: list[dict[str, Any]]
    ) -> str | None:
        """The marker map as a data URL, so the API key never reaches the deck."""
        try:
            response = await self.get(
                self._static_map_url,
                params=static_map_params(latitude, longitude, groups, self._api_key),
            )
        except MAP_ERRORS as e:
            logger.warning("Static map request failed", error=str(e))
            return None
        media_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not media_type.startswith("image/"):
            logger.warning("Static map response is not an image", content_type=media_type)
            return None
        return f"data:{media_type};base64,{base64.b64encode(response.content).decode('ascii')}"
