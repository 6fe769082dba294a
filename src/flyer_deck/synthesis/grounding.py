"""Fields of generated content that are pinned to tool payloads and context.

The model writes the prose. Names, addresses, stations, travel times and
image sources come from the context or a tool payload and overwrite
whatever the model returned for them. The merged dict is validated with
validate_content() like any other payload.
"""

from typing import Any, Callable

from flyer_deck.content.models import ContentType, SlideContent
from flyer_deck.core.context import GenerationContext
from flyer_deck.core.models import ToolResult


Grounder = Callable[[GenerationContext, dict[str, ToolResult]], dict[str, Any]]


def _ok_payload(results: dict[str, ToolResult], tool_name: str) -> dict[str, Any] | None:
    result = results.get(tool_name)
    if result is None or not result.ok:
        return None
    return result.payload


def _property_highlight(
    context: GenerationContext, results: dict[str, ToolResult]
) -> dict[str, Any]:
    return {"property_name": context.property_name}


def _floor_plan(context: GenerationContext, results: dict[str, ToolResult]) -> dict[str, Any]:
    return {"image_url": context.flyer_image_urls[0]}


def _access(context: GenerationContext, results: dict[str, ToolResult]) -> dict[str, Any]:
    fields: dict[str, Any] = {"property_name": context.property_name}
    address = context.facts.address or (context.location and context.location.address)
    if address:
        fields["address"] = address

    stations = _ok_payload(results, "nearest_stations")
    if stations and stations.get("stations"):
        nearest = stations["stations"][0]
        fields["nearest_station"] = {
            "name": nearest["name"],
            "lines": nearest.get("lines", []),
            "walk_minutes": nearest["walk_minutes"],
        }

    # Without a route lookup there are no travel times to show
    routes = _ok_payload(results, "transit_routes") or {}
    fields["station_routes"] = routes.get("station_routes", [])[:4]
    fields["airport_routes"] = routes.get("airport_routes", [])[:2]
    return fields


GROUNDERS: dict[ContentType, Grounder] = {
    ContentType.PROPERTY_HIGHLIGHT: _property_highlight,
    ContentType.FLOOR_PLAN: _floor_plan,
    ContentType.ACCESS: _access,
}


def ground(
    content_type: ContentType,
    content: SlideContent,
    context: GenerationContext,
    tool_results: list[ToolResult],
) -> dict[str, Any]:
    """Model content as a dict with the grounded fields overwritten."""
    payload = content.model_dump()
    grounder = GROUNDERS.get(content_type)
    if grounder is not None:
        payload.update(grounder(context, {r.tool_name: r for r in tool_results}))
    return payload
