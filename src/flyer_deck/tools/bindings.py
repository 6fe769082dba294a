"""Which tools each content type calls, and how their parameters are built.

Parameter builders read only the shared GenerationContext. A builder that
cannot produce parameters (no geocoded location, no price) raises
ToolError; the worker records that as the tool's error.
"""

from dataclasses import dataclass
from typing import Any, Callable

from flyer_deck.content.models import ContentType
from flyer_deck.core.context import GenerationContext
from flyer_deck.core.exceptions import ToolError


ParamsBuilder = Callable[[GenerationContext], dict[str, Any]]


@dataclass(frozen=True)
class ToolBinding:
    tool_name: str
    build_params: ParamsBuilder


def _coordinates(tool_name: str) -> ParamsBuilder:
    def build(context: GenerationContext) -> dict[str, Any]:
        if context.location is None:
            raise ToolError("Property location is unknown", tool_name=tool_name)
        return {
            "latitude": context.location.latitude,
            "longitude": context.location.longitude,
        }

    return build


def _price_yen(context: GenerationContext, tool_name: str) -> int:
    if not context.facts.price_man_yen:
        raise ToolError("Property price is unknown", tool_name=tool_name)
    return context.facts.price_man_yen * 10_000


def _transactions_params(context: GenerationContext) -> dict[str, Any]:
    address = context.facts.address or (context.location and context.location.address)
    if not address:
        raise ToolError("Property address is unknown", tool_name="real_estate_transactions")
    return {"address": address}


def _loan_params(context: GenerationContext) -> dict[str, Any]:
    params: dict[str, Any] = {
        "price_yen": _price_yen(context, "loan_simulation"),
        "down_payment_yen": context.input.down_payment_man_yen * 10_000,
        "annual_rate_percent": context.interest_rate_percent,
        "years": context.loan_term_years,
    }
    if context.input.annual_income_man_yen:
        params["annual_income_yen"] = context.input.annual_income_man_yen * 10_000
    return params


def _closing_cost_params(context: GenerationContext) -> dict[str, Any]:
    price = _price_yen(context, "closing_costs")
    down_payment = context.input.down_payment_man_yen * 10_000
    return {"price_yen": price, "loan_amount_yen": max(0, price - down_payment)}


TOOL_BINDINGS: dict[ContentType, tuple[ToolBinding, ...]] = {
    ContentType.ACCESS: (
        ToolBinding("nearest_stations", _coordinates("nearest_stations")),
        ToolBinding("transit_routes", _coordinates("transit_routes")),
    ),
    ContentType.NEARBY: (
        ToolBinding("nearby_facilities", _coordinates("nearby_facilities")),
    ),
    ContentType.PRICE_ANALYSIS: (
        ToolBinding("real_estate_transactions", _transactions_params),
    ),
    ContentType.HAZARD: (
        ToolBinding("hazard_map", _coordinates("hazard_map")),
        ToolBinding("shelters", _coordinates("shelters")),
    ),
    ContentType.FUNDING: (ToolBinding("loan_simulation", _loan_params),),
    ContentType.EXPENSES: (ToolBinding("closing_costs", _closing_cost_params),),
}


def bindings_for(content_type: ContentType) -> tuple[ToolBinding, ...]:
    return TOOL_BINDINGS.get(content_type, ())
