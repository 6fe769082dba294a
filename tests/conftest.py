"""Pytest fixtures for testing."""

import pytest

from fakes import LATITUDE, LONGITUDE, PNG_BASE64, FakeSynthesizer, make_tools
from flyer_deck.config.settings import Settings
from flyer_deck.core.context import (
    FlyerFacts,
    FlyerImage,
    GenerationContext,
    GeoLocation,
    PrimaryInput,
)
from flyer_deck.tools.base import Tool
from flyer_deck.tools.registry import ToolRegistry


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(anthropic_api_key="", log_level="DEBUG")


@pytest.fixture
def complete_facts() -> FlyerFacts:
    return FlyerFacts(
        property_name="パークハウス代々木",
        address="東京都渋谷区代々木1-2-3",
        price_man_yen=5980,
        layout="3LDK",
        area_m2=70.5,
        balcony_m2=10.2,
        floor="5階",
        built_year="2018年",
        management_fee_yen=15_000,
        repair_reserve_yen=12_000,
        station_access="JR山手線 代々木駅 徒歩5分",
    )


@pytest.fixture
def primary_input(complete_facts: FlyerFacts) -> PrimaryInput:
    """Caller input with complete facts, so extraction is skipped."""
    return PrimaryInput(
        flyer_images=[FlyerImage(data=PNG_BASE64, media_type="image/png")],
        customer_name="山田太郎",
        agent_name="佐藤花子",
        agent_phone="03-1234-5678",
        company_name="サンプル不動産",
        store_name="代々木店",
        annual_income_man_yen=800,
        down_payment_man_yen=500,
        facts=complete_facts,
    )


@pytest.fixture
def context(primary_input: PrimaryInput, complete_facts: FlyerFacts) -> GenerationContext:
    """Generation context with a known location."""
    return GenerationContext(
        input=primary_input,
        facts=complete_facts,
        location=GeoLocation(
            address="東京都渋谷区代々木一丁目", latitude=LATITUDE, longitude=LONGITUDE
        ),
        created_date="2024年4月1日",
        interest_rate_percent=0.5,
        loan_term_years=35,
    )


@pytest.fixture
def tools() -> dict[str, Tool]:
    return make_tools()


@pytest.fixture
def registry(tools: dict[str, Tool]) -> ToolRegistry:
    """Registry holding a working tool for every builtin name."""
    registry = ToolRegistry()
    for tool in tools.values():
        registry.add(tool)
    return registry


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()
