"""Tests for deterministic content assembly."""

import pytest

from flyer_deck.content.models import ContentType, validate_content
from flyer_deck.core.exceptions import SynthesisError
from flyer_deck.core.models import ToolResult
from flyer_deck.core.plan import get_plan
from flyer_deck.synthesis.direct import assemble, format_man_yen, format_yen


def plan_item(content_type: ContentType):
    return next(item for item in get_plan() if item.content_type == content_type)


class TestFormatting:
    def test_format_man_yen(self):
        assert format_man_yen(45_800_000) == "4,580万円"
        assert format_man_yen(1_250_000) == "125万円"
        assert format_man_yen(15_000) == "1.5万円"

    def test_format_yen(self):
        assert format_yen(142_253.4) == "142,253円"


class TestAssemble:
    """Tests for assemble()."""

    def test_cover_from_context(self, context):
        payload = assemble(plan_item(ContentType.COVER), context, [])
        content = validate_content(ContentType.COVER, payload)

        assert content.customer_name == "山田太郎"
        assert content.store_name == "代々木店"
        assert content.created_date == "2024年4月1日"
        assert content.image_url.startswith("data:image/png;base64,")

    def test_flyer_lists_every_page(self, context):
        payload = assemble(plan_item(ContentType.FLYER), context, [])
        assert payload["image_urls"] == context.flyer_image_urls

    def test_nearby_numbers_facilities_across_groups(self, context):
        result = ToolResult(
            tool_name="nearby_facilities",
            payload={
                "groups": [
                    {
                        "category": "スーパー",
                        "color": "#7dabfd",
                        "facilities": [
                            {"name": "A", "distance": "1分"},
                            {"name": "B", "distance": "2分"},
                        ],
                    },
                    {
                        "category": "公園",
                        "color": "#dc8501",
                        "facilities": [{"name": "C", "distance": "3分"}],
                    },
                ]
            },
        )
        payload = assemble(plan_item(ContentType.NEARBY), context, [result])

        numbers = [
            facility["number"]
            for group in payload["facility_groups"]
            for facility in group["facilities"]
        ]
        assert numbers == [1, 2, 3]

    def test_nearby_keeps_tool_numbers_and_map(self, context):
        result = ToolResult(
            tool_name="nearby_facilities",
            payload={
                "groups": [
                    {
                        "category": "公園",
                        "color": "#dc8501",
                        "facilities": [{"name": "代々木公園", "distance": "10分", "number": 4}],
                    }
                ],
                "map_image_url": "data:image/png;base64,AAAA",
            },
        )
        content = validate_content(
            ContentType.NEARBY, assemble(plan_item(ContentType.NEARBY), context, [result])
        )

        assert content.facility_groups[0].facilities[0].number == 4
        assert content.map_image_url == "data:image/png;base64,AAAA"

    def test_failed_required_tool(self, context):
        """Test a failed required tool raises with the tool's error."""
        result = ToolResult(tool_name="loan_simulation", error="price missing")
        with pytest.raises(SynthesisError) as exc_info:
            assemble(plan_item(ContentType.FUNDING), context, [result])
        assert "price missing" in str(exc_info.value)

    def test_price_analysis_range_from_area(self, context):
        result = ToolResult(
            tool_name="real_estate_transactions",
            payload={
                "transactions": [
                    {"name": "X", "price_yen": 60_000_000, "area_m2": 60, "unit_price_yen": 1_000_000},
                    {"name": "Y", "price_yen": 70_000_000, "area_m2": 70, "unit_price_yen": 1_000_000},
                ],
                "total_count": 2,
            },
        )
        payload = assemble(plan_item(ContentType.PRICE_ANALYSIS), context, [result])
        content = validate_content(ContentType.PRICE_ANALYSIS, payload)

        # 100万円/㎡ x 70.5㎡ = 7,050万円, +/- 10%
        assert content.estimated_price_min == "6,345万円"
        assert content.estimated_price_max == "7,755万円"
        assert content.average_unit_price == "100.0万円/㎡"
        assert content.target_property.price == "5,980万円"
        assert content.data_count == 2

    def test_price_analysis_without_comparables(self, context):
        result = ToolResult(tool_name="real_estate_transactions", payload={"transactions": []})
        with pytest.raises(SynthesisError):
            assemble(plan_item(ContentType.PRICE_ANALYSIS), context, [result])

    def test_funding_monthly_total(self, context):
        loan = ToolResult(
            tool_name="loan_simulation",
            payload={
                "price_yen": 59_800_000,
                "down_payment_yen": 5_000_000,
                "principal_yen": 54_800_000,
                "annual_rate_percent": 0.5,
                "years": 35,
                "monthly_payment_yen": 142_253,
            },
        )
        payload = assemble(plan_item(ContentType.FUNDING), context, [loan])
        content = validate_content(ContentType.FUNDING, payload)

        # 142,253 + 15,000 management fee + 12,000 repair reserve
        assert content.monthly_payments.total == "169,253円"
        assert content.loan_conditions.loan_term_and_rate == "35年 / 年0.5%"
        assert content.note is None

    def test_generative_type_has_no_assembler(self, context):
        with pytest.raises(SynthesisError):
            assemble(plan_item(ContentType.FLOOR_PLAN), context, [])
