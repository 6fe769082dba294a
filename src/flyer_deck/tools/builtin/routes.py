"""Public transport travel times via the Google Routes API (computeRoutes)."""

import asyncio
import math
from typing import Any

import httpx

from flyer_deck.core.exceptions import ToolError
from flyer_deck.tools.base import HttpTool
from flyer_deck.tools.geo import distance_meters
from flyer_deck.utils.logging import get_logger


logger = get_logger(__name__)

# Major terminals of the Tokyo area: name -> (latitude, longitude)
TERMINAL_STATIONS: dict[str, tuple[float, float]] = {
    "東京": (35.6812, 139.7671),
    "新宿": (35.6896, 139.7006),
    "渋谷": (35.6580, 139.7016),
    "池袋": (35.7295, 139.7109),
    "品川": (35.6284, 139.7387),
    "上野": (35.7141, 139.7774),
    "横浜": (35.4657, 139.6224),
    "川崎": (35.5314, 139.6969),
    "新横浜": (35.5065, 139.6176),
    "大宮": (35.9063, 139.6240),
    "千葉": (35.6131, 140.1136),
    "船橋": (35.7017, 139.9855),
}

AIRPORTS: dict[str, tuple[float, float]] = {
    "羽田空港": (35.5494, 139.7798),
    "成田空港": (35.7720, 140.3929),
}

# Terminals within walking distance are not worth a route
MIN_TERMINAL_DISTANCE_M = 1500

FIELD_MASK = ",".join(
    (
        "routes.duration",
        "routes.legs.steps.travelMode",
        "routes.legs.steps.transitDetails.transitLine.name",
        "routes.legs.steps.transitDetails.transitLine.nameShort",
    )
)


def summarize_route(route: dict[str, Any]) -> dict[str, Any]:
    """Travel time, transfers and line names of one computeRoutes route."""
    seconds = float(str(route.get("duration", "0s")).rstrip("s") or 0)
    lines: list[str] = []
    for leg in route.get("legs", []):
        for step in leg.get("steps", []):
            if step.get("travelMode") != "TRANSIT":
                continue
            line = (step.get("transitDetails") or {}).get("transitLine") or {}
            name = line.get("nameShort") or line.get("name")
            if name:
                lines.append(name)
    return {
        "total_minutes": math.ceil(seconds / 60),
        "transfer_count": max(0, len(lines) - 1),
        "route_summary": " → ".join(lines) or None,
    }


class TransitRoutesTool(HttpTool):
    """Transit routes from a point to the nearest major terminals and both Tokyo airports."""

    name = "transit_routes"
    description = "Public transport travel times to major terminal stations and airports"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        api_key: str,
        terminals: int = 4,
    ):
        super().__init__(client)
        self._url = url
        self._api_key = api_key
        self._terminals = terminals

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        latitude, longitude = self.require(params, "latitude", "longitude")
        if not self._api_key:
            raise ToolError(
                "Routes API key not configured (GOOGLE_MAPS_API_KEY)",
                tool_name=self.name,
                recoverable=False,
            )

        destinations = [
            *self.nearest_terminals(latitude, longitude),
            *AIRPORTS.items(),
        ]
        results = await asyncio.gather(
            *(self._route(latitude, longitude, point) for _, point in destinations),
            return_exceptions=True,
        )

        station_routes = []
        airport_routes = []
        failures = 0
        for (name, _), result in zip(destinations, results):
            if isinstance(result, BaseException):
                failures += 1
                logger.warning("Route computation failed", destination=name, error=str(result))
                continue
            if result is None:
                continue
            route = {"destination": name, **result}
            if name in AIRPORTS:
                airport_routes.append(route)
            else:
                station_routes.append(route)

        if failures == len(destinations):
            raise ToolError("All route computations failed", tool_name=self.name)

        return {
            "station_routes": sorted(station_routes, key=lambda r: r["total_minutes"]),
            "airport_routes": airport_routes,
            "sources": ["https://developers.google.com/maps/documentation/routes"],
        }

    def nearest_terminals(
        self, latitude: float, longitude: float
    ) -> list[tuple[str, tuple[float, float]]]:
        by_distance = sorted(
            TERMINAL_STATIONS.items(),
            key=lambda entry: distance_meters(latitude, longitude, *entry[1]),
        )
        return [
            (name, point)
            for name, point in by_distance
            if distance_meters(latitude, longitude, *point) >= MIN_TERMINAL_DISTANCE_M
        ][: self._terminals]

    async def _route(
        self, latitude: float, longitude: float, destination: tuple[float, float]
    ) -> dict[str, Any] | None:
        response = await self.post(
            self._url,
            json={
                "origin": {"location": {"latLng": {"latitude": latitude, "longitude": longitude}}},
                "destination": {
                    "location": {
                        "latLng": {"latitude": destination[0], "longitude": destination[1]}
                    }
                },
                "travelMode": "TRANSIT",
                "computeAlternativeRoutes": False,
                "languageCode": "ja-JP",
                "units": "METRIC",
            },
            headers={"X-Goog-Api-Key": self._api_key, "X-Goog-FieldMask": FIELD_MASK},
        )
        routes = response.json().get("routes", [])
        if not routes:
            return None
        return summarize_route(routes[0])
