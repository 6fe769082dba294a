"""Builtin tools for location research and financial calculations."""

import httpx

from flyer_deck.config.settings import Settings
from flyer_deck.tools.base import Tool
from flyer_deck.tools.builtin.finance import ClosingCostsTool, LoanSimulationTool
from flyer_deck.tools.builtin.geocode import GeocodeTool
from flyer_deck.tools.builtin.hazard import HazardMapTool, SheltersTool
from flyer_deck.tools.builtin.nearby import NearbyFacilitiesTool
from flyer_deck.tools.builtin.routes import TransitRoutesTool
from flyer_deck.tools.builtin.stations import NearestStationsTool
from flyer_deck.tools.builtin.transactions import TransactionsTool


def create_builtin_tools(client: httpx.AsyncClient, settings: Settings) -> list[Tool]:
    """Instantiate every builtin tool against a shared HTTP client."""
    return [
        GeocodeTool(client, settings.geocoder_url),
        NearestStationsTool(client, settings.stations_url),
        NearbyFacilitiesTool(
            client,
            settings.places_url,
            settings.google_maps_api_key,
            radius_meters=settings.nearby_radius_meters,
            static_map_url=settings.static_map_url,
        ),
        TransitRoutesTool(client, settings.routes_url, settings.google_maps_api_key),
        HazardMapTool(),
        SheltersTool(client, settings.reinfolib_url, settings.reinfolib_api_key),
        TransactionsTool(client, settings.reinfolib_url, settings.reinfolib_api_key),
        LoanSimulationTool(),
        ClosingCostsTool(),
    ]


__all__ = [
    "ClosingCostsTool",
    "GeocodeTool",
    "HazardMapTool",
    "LoanSimulationTool",
    "NearbyFacilitiesTool",
    "NearestStationsTool",
    "SheltersTool",
    "TransactionsTool",
    "TransitRoutesTool",
    "create_builtin_tools",
]
