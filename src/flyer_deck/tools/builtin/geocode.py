"""Address geocoding via the CSIS simple geocoder."""

import xml.etree.ElementTree as ET
from typing import Any

import httpx

from flyer_deck.core.exceptions import ToolError
from flyer_deck.tools.base import HttpTool


class GeocodeTool(HttpTool):
    """Resolve a Japanese address to latitude and longitude."""

    name = "geocode"
    description = "Convert a Japanese address into WGS84 coordinates"

    def __init__(self, client: httpx.AsyncClient, url: str):
        super().__init__(client)
        self._url = url

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        (address,) = self.require(params, "address")
        response = await self.get(self._url, params={"addr": address, "charset": "UTF8"})

        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            raise ToolError(f"Unreadable geocoder response: {e}", tool_name=self.name) from e

        candidate = root.find("candidate")
        if candidate is None:
            raise ToolError(f"No geocoding candidate for {address!r}", tool_name=self.name)

        try:
            latitude = float(candidate.findtext("latitude", ""))
            longitude = float(candidate.findtext("longitude", ""))
        except ValueError as e:
            raise ToolError("Geocoder returned invalid coordinates", tool_name=self.name) from e

        return {
            "address": candidate.findtext("address") or address,
            "latitude": latitude,
            "longitude": longitude,
            "sources": ["https://geocode.csis.u-tokyo.ac.jp/"],
        }
