"""The fixed deck plan.

The plan is static data: twelve items, one worker each, in the order
the deck is presented. PLAN_VERSION changes whenever items are added,
removed or reordered.
"""

from enum import Enum

from pydantic import BaseModel

from flyer_deck.content.models import ContentType


PLAN_VERSION = "2024.1"


class DataSource(str, Enum):
    """Where a slide's data comes from."""

    PRIMARY = "primary"  # the caller's input
    GENERATED = "generated"  # written by the model from flyer facts
    RESEARCHED = "researched"  # external lookups
    COMPUTED = "computed"  # local calculation
    STATIC = "static"  # fixed template


class PlanItem(BaseModel):
    """One slide in the deck. Immutable; defines exactly one worker."""

    model_config = {"frozen": True}

    index: int
    content_type: ContentType
    title: str
    data_source: DataSource
    description: str = ""
    content_hints: tuple[str, ...] = ()


_PLAN: tuple[PlanItem, ...] = (
    PlanItem(
        index=0,
        content_type=ContentType.FLYER,
        title="物件チラシ",
        data_source=DataSource.PRIMARY,
        description="The uploaded flyer pages, shown as-is.",
    ),
    PlanItem(
        index=1,
        content_type=ContentType.COVER,
        title="表紙",
        data_source=DataSource.PRIMARY,
        description="Cover with property, customer and agent details.",
    ),
    PlanItem(
        index=2,
        content_type=ContentType.PROPERTY_HIGHLIGHT,
        title="物件のおすすめポイント",
        data_source=DataSource.GENERATED,
        description="Three selling points: location, quality and price.",
        content_hints=(
            "Up to three items per section",
            "Use concrete numbers from the flyer where available",
        ),
    ),
    PlanItem(
        index=3,
        content_type=ContentType.FLOOR_PLAN,
        title="間取り",
        data_source=DataSource.GENERATED,
        description="Floor plan highlights and unit specifications.",
        content_hints=("Up to three points", "Area and layout are required"),
    ),
    PlanItem(
        index=4,
        content_type=ContentType.ACCESS,
        title="交通アクセス",
        data_source=DataSource.RESEARCHED,
        description="Nearest station and travel times to major destinations.",
        content_hints=(
            "Use the nearest station from the station lookup",
            "Travel times come only from the route lookup; leave routes empty without one",
        ),
    ),
    PlanItem(
        index=5,
        content_type=ContentType.NEARBY,
        title="周辺施設",
        data_source=DataSource.RESEARCHED,
        description="Supermarkets, convenience stores, parks and hospitals nearby.",
    ),
    PlanItem(
        index=6,
        content_type=ContentType.PRICE_ANALYSIS,
        title="価格分析",
        data_source=DataSource.RESEARCHED,
        description="Comparable transactions and an estimated price range.",
    ),
    PlanItem(
        index=7,
        content_type=ContentType.HAZARD,
        title="ハザード情報",
        data_source=DataSource.RESEARCHED,
        description="Hazard map layers and nearby designated shelters.",
    ),
    PlanItem(
        index=8,
        content_type=ContentType.FUNDING,
        title="資金計画",
        data_source=DataSource.COMPUTED,
        description="Loan conditions and monthly payments.",
    ),
    PlanItem(
        index=9,
        content_type=ContentType.EXPENSES,
        title="諸費用",
        data_source=DataSource.COMPUTED,
        description="Closing costs paid on top of the purchase price.",
    ),
    PlanItem(
        index=10,
        content_type=ContentType.TAX,
        title="税金について",
        data_source=DataSource.STATIC,
    ),
    PlanItem(
        index=11,
        content_type=ContentType.PURCHASE_FLOW,
        title="購入の流れ",
        data_source=DataSource.STATIC,
    ),
)


def get_plan() -> list[PlanItem]:
    """Return the fixed deck plan, ordered by index."""
    return list(_PLAN)
