"""Nearest railway stations via the HeartRails Express API."""

from typing import Any

import httpx

from flyer_deck.core.exceptions import ToolError
from flyer_deck.tools.base import HttpTool
from flyer_deck.tools.geo import walk_minutes


class NearestStationsTool(HttpTool):
    """List the stations nearest to a point, one entry per station name."""

    name = "nearest_stations"
    description = "Find the nearest railway stations and the lines serving them"

    def __init__(self, client: httpx.AsyncClient, url: str, limit: int = 3):
        super().__init__(client)
        self._url = url
        self._limit = limit

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        latitude, longitude = self.require(params, "latitude", "longitude")
        response = await self.get(
            self._url,
            params={"method": "getStations", "x": longitude, "y": latitude},
        )
        body = response.json().get("response", {})
        if "error" in body:
            raise ToolError(f"Station lookup failed: {body['error']}", tool_name=self.name)

        # The API returns one row per (station, line); merge rows by station name
        stations: dict[str, dict[str, Any]] = {}
        for row in body.get("station", []):
            name = row.get("name")
            if not name:
                continue
            meters = _parse_meters(row.get("distance", ""))
            entry = stations.setdefault(
                name,
                {"name": name, "lines": [], "distance_m": meters},
            )
            line = row.get("line")
            if line and line not in entry["lines"]:
                entry["lines"].append(line)
            entry["distance_m"] = min(entry["distance_m"], meters)

        if not stations:
            raise ToolError("No stations found near the property", tool_name=self.name)

        ordered = sorted(stations.values(), key=lambda s: s["distance_m"])[: self._limit]
        for station in ordered:
            station["walk_minutes"] = walk_minutes(station["distance_m"])

        return {
            "stations": ordered,
            "sources": ["https://express.heartrails.com/"],
        }


def _parse_meters(text: str) -> int:
    """Parse distances such as ``"160m"`` or ``"1.2km"``."""
    text = text.strip().lower()
    try:
        if text.endswith("km"):
            return round(float(text[:-2]) * 1000)
        if text.endswith("m"):
            return round(float(text[:-1]))
        return round(float(text))
    except ValueError:
        return 0
