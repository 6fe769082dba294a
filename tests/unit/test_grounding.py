"""Tests for pinning generated fields to tool payloads and context."""

from fakes import GENERATED_CONTENT
from flyer_deck.content.models import (
    AccessContent,
    ContentType,
    FloorPlanContent,
    PropertyHighlightContent,
)
from flyer_deck.core.models import ToolResult
from flyer_deck.synthesis.grounding import ground


STATIONS = ToolResult(
    tool_name="nearest_stations",
    payload={"stations": [{"name": "南新宿", "lines": ["小田急線"], "walk_minutes": 7}]},
)

ROUTES = ToolResult(
    tool_name="transit_routes",
    payload={
        "station_routes": [
            {"destination": f"駅{i}", "total_minutes": i, "transfer_count": 0} for i in range(6)
        ],
        "airport_routes": [],
    },
)


def model_access(**overrides) -> AccessContent:
    return AccessContent.model_validate({**GENERATED_CONTENT[AccessContent], **overrides})


class TestGround:
    """Tests for ground()."""

    def test_access_uses_lookups(self, context):
        content = model_access(property_name="別の物件", address="どこか")

        payload = ground(ContentType.ACCESS, content, context, [STATIONS, ROUTES])

        assert payload["property_name"] == "パークハウス代々木"
        assert payload["address"] == "東京都渋谷区代々木1-2-3"
        assert payload["nearest_station"] == {"name": "南新宿", "lines": ["小田急線"], "walk_minutes": 7}
        assert [r["destination"] for r in payload["station_routes"]] == ["駅0", "駅1", "駅2", "駅3"]
        assert payload["airport_routes"] == []

    def test_access_without_lookups_keeps_model_station_only(self, context):
        failed = [
            ToolResult(tool_name="nearest_stations", error="timeout"),
            ToolResult(tool_name="transit_routes", error="timeout"),
        ]

        payload = ground(ContentType.ACCESS, model_access(), context, failed)

        assert payload["nearest_station"]["name"] == "代々木"
        assert payload["station_routes"] == []
        assert payload["airport_routes"] == []

    def test_floor_plan_image_from_flyer(self, context):
        content = FloorPlanContent.model_validate(
            {**GENERATED_CONTENT[FloorPlanContent], "image_url": "https://elsewhere.example/a.png"}
        )

        payload = ground(ContentType.FLOOR_PLAN, content, context, [])

        assert payload["image_url"] == context.flyer_image_urls[0]
        assert payload["points"] == [p.model_dump() for p in content.points]

    def test_property_name_pinned(self, context):
        content = PropertyHighlightContent.model_validate(
            {**GENERATED_CONTENT[PropertyHighlightContent], "property_name": "架空マンション"}
        )

        payload = ground(ContentType.PROPERTY_HIGHLIGHT, content, context, [])

        assert payload["property_name"] == "パークハウス代々木"
        assert payload["location"]["title"] == "立地"
