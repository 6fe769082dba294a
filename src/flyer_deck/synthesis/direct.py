"""Deterministic content assembly from tool payloads and context.

No model calls. A missing required tool payload is a SynthesisError; the
assembled dict is validated by the worker with the same validate_content()
the generative path uses.
"""

import statistics
from typing import Any, Callable

from flyer_deck.content.models import ContentType
from flyer_deck.core.context import GenerationContext
from flyer_deck.core.exceptions import SynthesisError
from flyer_deck.core.models import ToolResult
from flyer_deck.core.plan import PlanItem


Assembler = Callable[[GenerationContext, dict[str, ToolResult]], dict[str, Any]]

PRICE_ESTIMATE_SPREAD = 0.10
MAX_COMPARABLES = 6


def format_man_yen(yen: int | float) -> str:
    """45_800_000 -> '4,580万円'."""
    man = yen / 10_000
    if man == int(man):
        return f"{int(man):,}万円"
    return f"{man:,.1f}万円"


def format_yen(yen: int | float) -> str:
    return f"{round(yen):,}円"


def _required_payload(
    results: dict[str, ToolResult], tool_name: str, content_type: ContentType
) -> dict[str, Any]:
    result = results.get(tool_name)
    if result is None:
        raise SynthesisError(f"{tool_name} was not called", content_type=content_type.value)
    if not result.ok:
        raise SynthesisError(
            f"{tool_name} failed: {result.error}", content_type=content_type.value
        )
    return result.payload


def _address(context: GenerationContext) -> str:
    if context.facts.address:
        return context.facts.address
    if context.location is not None:
        return context.location.address
    raise SynthesisError("Property address is unknown")


# =============================================================================
# PRIMARY
# =============================================================================


def _flyer(context: GenerationContext, results: dict[str, ToolResult]) -> dict[str, Any]:
    return {"image_urls": context.flyer_image_urls}


def _cover(context: GenerationContext, results: dict[str, ToolResult]) -> dict[str, Any]:
    primary = context.input
    return {
        "property_name": context.property_name,
        "address": context.facts.address,
        "customer_name": primary.customer_name,
        "agent_name": primary.agent_name,
        "agent_phone": primary.agent_phone,
        "agent_email": primary.agent_email,
        "company_name": primary.company_name,
        "store_name": primary.store_name,
        "created_date": context.created_date,
        "image_url": context.flyer_image_urls[0],
    }


# =============================================================================
# RESEARCHED
# =============================================================================


def _nearby(context: GenerationContext, results: dict[str, ToolResult]) -> dict[str, Any]:
    payload = _required_payload(results, "nearby_facilities", ContentType.NEARBY)
    groups = []
    number = 1
    for group in payload.get("groups", [])[:4]:
        facilities = []
        for facility in group.get("facilities", [])[:3]:
            facilities.append(
                {
                    "name": facility["name"],
                    "distance": facility["distance"],
                    "number": facility.get("number", number),
                }
            )
            number += 1
        groups.append(
            {"category": group["category"], "color": group["color"], "facilities": facilities}
        )
    return {
        "address": _address(context),
        "facility_groups": groups,
        "map_image_url": payload.get("map_image_url"),
    }


def _price_analysis(
    context: GenerationContext, results: dict[str, ToolResult]
) -> dict[str, Any]:
    payload = _required_payload(results, "real_estate_transactions", ContentType.PRICE_ANALYSIS)
    transactions = payload.get("transactions", [])
    if not transactions:
        raise SynthesisError(
            "No comparable transactions found", content_type=ContentType.PRICE_ANALYSIS.value
        )

    unit_prices = [t["unit_price_yen"] for t in transactions]
    average_unit = statistics.mean(unit_prices)

    facts = context.facts
    if facts.area_m2:
        center = average_unit * facts.area_m2
        low = center * (1 - PRICE_ESTIMATE_SPREAD)
        high = center * (1 + PRICE_ESTIMATE_SPREAD)
    else:
        prices = sorted(t["price_yen"] for t in transactions)
        if len(prices) >= 2:
            low, _, high = statistics.quantiles(prices, n=4)
        else:
            low = prices[0] * (1 - PRICE_ESTIMATE_SPREAD)
            high = prices[0] * (1 + PRICE_ESTIMATE_SPREAD)

    target = None
    if facts.price_man_yen:
        price_yen = facts.price_man_yen * 10_000
        target = {
            "name": context.property_name,
            "price": format_man_yen(price_yen),
            "area": f"{facts.area_m2:g}㎡" if facts.area_m2 else None,
            "unit_price": (
                f"{price_yen / facts.area_m2 / 10_000:.1f}万円/㎡" if facts.area_m2 else None
            ),
            "built_year": facts.built_year,
        }

    return {
        "target_property": target,
        "similar_properties": [
            {
                "name": t["name"],
                "price": format_man_yen(t["price_yen"]),
                "area": f"{t['area_m2']}㎡",
                "unit_price": f"{t['unit_price_yen'] / 10_000:.1f}万円/㎡",
                "built_year": t.get("building_year"),
                "period": t.get("period"),
            }
            for t in transactions[:MAX_COMPARABLES]
        ],
        "estimated_price_min": format_man_yen(round(low, -4)),
        "estimated_price_max": format_man_yen(round(high, -4)),
        "average_unit_price": f"{average_unit / 10_000:.1f}万円/㎡",
        "data_count": payload.get("total_count", len(transactions)),
    }


def _hazard(context: GenerationContext, results: dict[str, ToolResult]) -> dict[str, Any]:
    hazard = _required_payload(results, "hazard_map", ContentType.HAZARD)
    layers = hazard.get("layers", [])

    shelters: list[dict[str, Any]] = []
    shelter_result = results.get("shelters")
    if shelter_result is not None and shelter_result.ok:
        shelters = [
            {"name": s["name"], "type": s["type"], "distance": s["distance"]}
            for s in shelter_result.payload.get("shelters", [])[:3]
        ]

    address = _address(context)
    return {
        "property_name": context.property_name,
        "address": address,
        "description": "国土交通省ハザードマップポータルサイトの公開情報に基づく想定区域です。",
        "hazard_risks": [{"type": layer["name"], "level": "要確認"} for layer in layers[:3]],
        "shelters": shelters,
        "hazard_map_url": layers[0]["tile_url"] if layers else None,
        "shelter_map_url": hazard.get("base_map_url"),
    }


# =============================================================================
# COMPUTED
# =============================================================================


def _funding(context: GenerationContext, results: dict[str, ToolResult]) -> dict[str, Any]:
    loan = _required_payload(results, "loan_simulation", ContentType.FUNDING)
    management_fee = context.facts.management_fee_yen or 0
    repair_reserve = context.facts.repair_reserve_yen or 0
    total = loan["monthly_payment_yen"] + management_fee + repair_reserve

    note = None
    if "repayment_ratio_percent" in loan:
        note = f"年収に対する返済負担率は約{loan['repayment_ratio_percent']}%です。"

    return {
        "property_name": context.property_name,
        "loan_conditions": {
            "property_price": format_man_yen(loan["price_yen"]),
            "down_payment": format_man_yen(loan["down_payment_yen"]),
            "loan_amount": format_man_yen(loan["principal_yen"]),
            "loan_term_and_rate": f"{loan['years']}年 / 年{loan['annual_rate_percent']:g}%",
        },
        "monthly_payments": {
            "loan_repayment": format_yen(loan["monthly_payment_yen"]),
            "management_fee": format_yen(management_fee),
            "repair_reserve": format_yen(repair_reserve),
            "total": format_yen(total),
        },
        "note": note,
    }


def _expenses(context: GenerationContext, results: dict[str, ToolResult]) -> dict[str, Any]:
    costs = _required_payload(results, "closing_costs", ContentType.EXPENSES)
    price = costs["price_yen"]
    total = costs["total_yen"]
    return {
        "property_name": context.property_name,
        "property_price": format_man_yen(price),
        "expenses": [
            {"item": line["item"], "amount": format_man_yen(line["amount_yen"])}
            for line in costs.get("lines", [])
        ],
        "total_description": f"諸費用合計 約{format_man_yen(round(total, -4))}（物件価格の約{total / price * 100:.1f}%）",
        "note": "金額は概算です。実際の費用は金融機関や契約条件により異なります。",
    }


ASSEMBLERS: dict[ContentType, Assembler] = {
    ContentType.FLYER: _flyer,
    ContentType.COVER: _cover,
    ContentType.NEARBY: _nearby,
    ContentType.PRICE_ANALYSIS: _price_analysis,
    ContentType.HAZARD: _hazard,
    ContentType.FUNDING: _funding,
    ContentType.EXPENSES: _expenses,
}


def assemble(
    item: PlanItem,
    context: GenerationContext,
    tool_results: list[ToolResult],
) -> dict[str, Any]:
    """Build the content payload for a direct-strategy item."""
    assembler = ASSEMBLERS.get(item.content_type)
    if assembler is None:
        raise SynthesisError(
            f"No direct assembly for {item.content_type.value}",
            content_type=item.content_type.value,
        )
    by_name = {result.tool_name: result for result in tool_results}
    return assembler(context, by_name)
