"""Pydantic content shapes, one per slide type.

Every synthesized or assembled payload passes through validate_content()
before it reaches the renderer, whichever strategy produced it.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from flyer_deck.core.exceptions import ContentValidationError


class ContentType(str, Enum):
    """Slide content types, one per plan item."""

    FLYER = "flyer"
    COVER = "cover"
    PROPERTY_HIGHLIGHT = "property-highlight"
    FLOOR_PLAN = "floor-plan"
    ACCESS = "access"
    NEARBY = "nearby"
    PRICE_ANALYSIS = "price-analysis"
    HAZARD = "hazard"
    FUNDING = "funding"
    EXPENSES = "expenses"
    TAX = "tax"
    PURCHASE_FLOW = "purchase-flow"


STATIC_CONTENT_TYPES = frozenset({ContentType.TAX, ContentType.PURCHASE_FLOW})

# Marker colors end up in a style attribute
HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class SlideContent(BaseModel):
    """Base for all content shapes."""

    model_config = {"extra": "ignore"}


class StaticContent(SlideContent):
    """Marker for slides rendered from a fixed template."""

    content_type: ContentType

    @field_validator("content_type")
    @classmethod
    def _must_be_static(cls, value: ContentType) -> ContentType:
        if value not in STATIC_CONTENT_TYPES:
            raise ValueError(f"{value.value} has no static template")
        return value


# =============================================================================
# PRIMARY
# =============================================================================


class FlyerContent(SlideContent):
    image_urls: list[str] = Field(min_length=1)


class CoverContent(SlideContent):
    property_name: str
    address: str | None = None
    customer_name: str
    agent_name: str
    agent_phone: str | None = None
    agent_email: str | None = None
    company_name: str | None = None
    store_name: str | None = None
    created_date: str
    image_url: str | None = None


# =============================================================================
# GENERATED
# =============================================================================


class HighlightItem(BaseModel):
    value: str | None = None
    text: str


class HighlightSection(BaseModel):
    title: str
    description: str
    items: list[HighlightItem] = Field(default_factory=list, max_length=3)


class PropertyHighlightContent(SlideContent):
    property_name: str | None = None
    location: HighlightSection
    quality: HighlightSection
    price: HighlightSection


class FloorPlanPoint(BaseModel):
    title: str
    description: str


class FloorPlanSpecs(BaseModel):
    area: str
    layout: str
    balcony: str | None = None


class FloorPlanContent(SlideContent):
    points: list[FloorPlanPoint] = Field(min_length=1, max_length=3)
    specs: FloorPlanSpecs
    image_url: str | None = None


# =============================================================================
# RESEARCHED
# =============================================================================


class NearestStation(BaseModel):
    name: str
    lines: list[str] = Field(default_factory=list)
    walk_minutes: int = Field(ge=0)


class Route(BaseModel):
    destination: str
    total_minutes: int = Field(ge=0)
    transfer_count: int = Field(default=0, ge=0)
    route_summary: str | None = None


class AccessContent(SlideContent):
    property_name: str
    address: str
    nearest_station: NearestStation
    station_routes: list[Route] = Field(default_factory=list, max_length=4)
    airport_routes: list[Route] = Field(default_factory=list, max_length=2)


class Facility(BaseModel):
    name: str
    distance: str
    number: int = Field(ge=1)


class FacilityGroup(BaseModel):
    category: str
    color: str = Field(pattern=HEX_COLOR_PATTERN)
    facilities: list[Facility] = Field(default_factory=list, max_length=3)


class NearbyContent(SlideContent):
    address: str
    facility_groups: list[FacilityGroup] = Field(min_length=1, max_length=4)
    map_image_url: str | None = None

    @field_validator("facility_groups")
    @classmethod
    def _unique_categories(cls, groups: list[FacilityGroup]) -> list[FacilityGroup]:
        categories = [group.category for group in groups]
        if len(categories) != len(set(categories)):
            raise ValueError("facility group categories must be unique")
        return groups


class SimilarProperty(BaseModel):
    name: str
    price: str
    area: str | None = None
    unit_price: str | None = None
    built_year: str | None = None
    period: str | None = None


class PriceAnalysisContent(SlideContent):
    target_property: SimilarProperty | None = None
    similar_properties: list[SimilarProperty] = Field(default_factory=list, max_length=6)
    estimated_price_min: str
    estimated_price_max: str
    average_unit_price: str | None = None
    data_count: int | None = Field(default=None, ge=0)


class HazardRisk(BaseModel):
    type: str
    level: str


class Shelter(BaseModel):
    name: str
    type: str
    distance: str


class HazardContent(SlideContent):
    property_name: str
    address: str
    description: str | None = None
    hazard_risks: list[HazardRisk] = Field(default_factory=list, max_length=3)
    shelters: list[Shelter] = Field(default_factory=list, max_length=3)
    hazard_map_url: str | None = None
    shelter_map_url: str | None = None


# =============================================================================
# COMPUTED
# =============================================================================


class LoanConditions(BaseModel):
    property_price: str
    down_payment: str
    loan_amount: str
    loan_term_and_rate: str


class MonthlyPayments(BaseModel):
    loan_repayment: str
    management_fee: str
    repair_reserve: str
    total: str


class FundingContent(SlideContent):
    property_name: str
    loan_conditions: LoanConditions
    monthly_payments: MonthlyPayments
    note: str | None = None


class ExpenseLine(BaseModel):
    item: str
    amount: str


class ExpensesContent(SlideContent):
    property_name: str
    property_price: str | None = None
    expenses: list[ExpenseLine] = Field(min_length=1, max_length=6)
    total_description: str | None = None
    note: str | None = None


CONTENT_MODELS: dict[ContentType, type[SlideContent]] = {
    ContentType.FLYER: FlyerContent,
    ContentType.COVER: CoverContent,
    ContentType.PROPERTY_HIGHLIGHT: PropertyHighlightContent,
    ContentType.FLOOR_PLAN: FloorPlanContent,
    ContentType.ACCESS: AccessContent,
    ContentType.NEARBY: NearbyContent,
    ContentType.PRICE_ANALYSIS: PriceAnalysisContent,
    ContentType.HAZARD: HazardContent,
    ContentType.FUNDING: FundingContent,
    ContentType.EXPENSES: ExpensesContent,
}


def content_model_for(content_type: ContentType) -> type[SlideContent]:
    """Content shape class for a content type."""
    if content_type in STATIC_CONTENT_TYPES:
        return StaticContent
    return CONTENT_MODELS[content_type]


def validate_content(
    content_type: ContentType,
    payload: SlideContent | dict[str, Any],
) -> SlideContent:
    """
    Validate a payload against the shape for a content type.

    Accepts either a dict or an already-built model (re-validated through
    its dict form so that model instances from any source get the same
    checks).

    Raises:
        ContentValidationError: If the payload does not match the shape
    """
    model = content_model_for(content_type)
    if isinstance(payload, SlideContent):
        if not isinstance(payload, model):
            raise ContentValidationError(
                f"Expected {model.__name__}, got {type(payload).__name__}",
                content_type=content_type.value,
            )
        payload = payload.model_dump()

    try:
        content = model.model_validate(payload)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ContentValidationError(
            f"Invalid {content_type.value} content: {details}",
            content_type=content_type.value,
        ) from e

    if isinstance(content, StaticContent) and content.content_type != content_type:
        raise ContentValidationError(
            f"Static marker for {content.content_type.value} used for {content_type.value}",
            content_type=content_type.value,
        )
    return content
