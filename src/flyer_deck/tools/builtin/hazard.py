"""Hazard map tiles and designated emergency shelters."""

from typing import Any

import httpx

from flyer_deck.core.exceptions import ToolError
from flyer_deck.tools.base import HttpTool, Tool
from flyer_deck.tools.geo import distance_meters, format_distance, tile_for, walk_minutes


HAZARD_TILE_BASE = "https://disaportaldata.gsi.go.jp/raster"
BASE_MAP_URL = "https://cyberjapandata.gsi.go.jp/xyz/pale"

# key -> (label, layer directory)
HAZARD_LAYERS: dict[str, tuple[str, str]] = {
    "flood_l2": ("洪水（想定最大規模）", "01_flood_l2_shinsuishin_data"),
    "high_tide": ("高潮", "03_hightide_l2_shinsuishin_data"),
    "tsunami": ("津波", "04_tsunami_newlegend_data"),
    "dosekiryu": ("土石流", "05_dosekiryukeikaikuiki"),
    "kyukeisha": ("急傾斜地の崩壊", "05_kyukeishakeikaikuiki"),
    "jisuberi": ("地すべり", "05_jisuberikeikaikuiki"),
}

DEFAULT_LAYERS = ("flood_l2", "dosekiryu", "kyukeisha", "jisuberi")


class HazardMapTool(Tool):
    """Build hazard-map tile URLs for the tile containing a point. No network."""

    name = "hazard_map"
    description = "Hazard map layers (flood, storm surge, tsunami, landslide) for a point"

    def __init__(self, zoom: int = 15):
        self._zoom = zoom

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        latitude, longitude = self.require(params, "latitude", "longitude")
        layer_keys = params.get("layers") or DEFAULT_LAYERS
        unknown = [key for key in layer_keys if key not in HAZARD_LAYERS]
        if unknown:
            raise ToolError(f"Unknown hazard layers: {', '.join(unknown)}", tool_name=self.name)

        x, y = tile_for(latitude, longitude, self._zoom)
        layers = [
            {
                "key": key,
                "name": HAZARD_LAYERS[key][0],
                "tile_url": f"{HAZARD_TILE_BASE}/{HAZARD_LAYERS[key][1]}/{self._zoom}/{x}/{y}.png",
            }
            for key in layer_keys
        ]
        return {
            "zoom": self._zoom,
            "tile": {"x": x, "y": y},
            "base_map_url": f"{BASE_MAP_URL}/{self._zoom}/{x}/{y}.png",
            "layers": layers,
            "sources": ["https://disaportal.gsi.go.jp/"],
        }


class SheltersTool(HttpTool):
    """Nearest designated emergency shelters from the reinfolib shelter tiles."""

    name = "shelters"
    description = "Designated emergency shelters nearest to a point"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        zoom: int = 15,
        limit: int = 3,
    ):
        super().__init__(client)
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._zoom = zoom
        self._limit = limit

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        latitude, longitude = self.require(params, "latitude", "longitude")
        if not self._api_key:
            raise ToolError(
                "Reinfolib API key not configured (REINFOLIB_API_KEY)",
                tool_name=self.name,
                recoverable=False,
            )

        x, y = tile_for(latitude, longitude, self._zoom)
        response = await self.get(
            f"{self._base_url}/XGT001",
            params={"response_format": "geojson", "z": self._zoom, "x": x, "y": y},
            headers={"Ocp-Apim-Subscription-Key": self._api_key},
        )

        shelters: dict[tuple[float, float], dict[str, Any]] = {}
        for feature in response.json().get("features", []):
            coordinates = (feature.get("geometry") or {}).get("coordinates") or []
            if len(coordinates) < 2:
                continue
            lon, lat = float(coordinates[0]), float(coordinates[1])
            properties = feature.get("properties") or {}
            meters = distance_meters(latitude, longitude, lat, lon)
            shelters.setdefault(
                (lon, lat),
                {
                    "name": properties.get("name") or "名称不明",
                    "type": properties.get("type") or "指定緊急避難場所",
                    "meters": round(meters),
                    "distance": f"徒歩{walk_minutes(meters)}分 ({format_distance(meters)})",
                },
            )

        nearest = sorted(shelters.values(), key=lambda s: s["meters"])[: self._limit]
        return {
            "shelters": nearest,
            "sources": ["https://www.reinfolib.mlit.go.jp/"],
        }
