"""Tests for the deck plan and strategy selection."""

from flyer_deck.content.models import STATIC_CONTENT_TYPES, ContentType
from flyer_deck.core.plan import DataSource, get_plan
from flyer_deck.synthesis.strategies import SynthesisStrategy, strategy_for
from flyer_deck.tools.bindings import bindings_for


class TestPlan:
    """Tests for the fixed plan."""

    def test_twelve_items_in_order(self):
        plan = get_plan()
        assert len(plan) == 12
        assert [item.index for item in plan] == list(range(12))

    def test_one_item_per_content_type(self):
        plan = get_plan()
        assert {item.content_type for item in plan} == set(ContentType)

    def test_static_items_match_static_types(self):
        static = {item.content_type for item in get_plan() if item.data_source == DataSource.STATIC}
        assert static == set(STATIC_CONTENT_TYPES)

    def test_get_plan_returns_a_copy(self):
        plan = get_plan()
        plan.clear()
        assert len(get_plan()) == 12


class TestStrategies:
    """Tests for strategy selection."""

    def test_strategy_per_content_type(self):
        strategies = {item.content_type: strategy_for(item) for item in get_plan()}

        assert strategies[ContentType.FLYER] == SynthesisStrategy.DIRECT
        assert strategies[ContentType.COVER] == SynthesisStrategy.DIRECT
        assert strategies[ContentType.PROPERTY_HIGHLIGHT] == SynthesisStrategy.GENERATIVE
        assert strategies[ContentType.FLOOR_PLAN] == SynthesisStrategy.GENERATIVE
        assert strategies[ContentType.ACCESS] == SynthesisStrategy.GENERATIVE
        assert strategies[ContentType.NEARBY] == SynthesisStrategy.DIRECT
        assert strategies[ContentType.PRICE_ANALYSIS] == SynthesisStrategy.DIRECT
        assert strategies[ContentType.HAZARD] == SynthesisStrategy.DIRECT
        assert strategies[ContentType.FUNDING] == SynthesisStrategy.DIRECT
        assert strategies[ContentType.EXPENSES] == SynthesisStrategy.DIRECT
        assert strategies[ContentType.TAX] == SynthesisStrategy.STATIC
        assert strategies[ContentType.PURCHASE_FLOW] == SynthesisStrategy.STATIC

    def test_static_items_call_no_tools(self):
        for item in get_plan():
            if strategy_for(item) == SynthesisStrategy.STATIC:
                assert bindings_for(item.content_type) == ()

    def test_hazard_calls_map_and_shelters(self):
        names = [binding.tool_name for binding in bindings_for(ContentType.HAZARD)]
        assert names == ["hazard_map", "shelters"]
