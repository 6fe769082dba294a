"""Loan and closing-cost calculators. Pure local computation."""

from typing import Any

from flyer_deck.core.exceptions import ToolError
from flyer_deck.tools.base import Tool


CONSUMPTION_TAX_RATE = 0.10
BROKERAGE_RATE = 0.03
BROKERAGE_FIXED_YEN = 60_000
REGISTRATION_RATE = 0.01
REGISTRATION_MIN_YEN = 300_000
LOAN_FEE_RATE = 0.022
FIRE_INSURANCE_YEN = 200_000
TAX_SETTLEMENT_YEN = 100_000

# Reduced stamp duty on sale contracts: (upper bound in yen, duty)
STAMP_DUTY_BRACKETS: tuple[tuple[int, int], ...] = (
    (10_000_000, 5_000),
    (50_000_000, 10_000),
    (100_000_000, 30_000),
    (500_000_000, 60_000),
)
STAMP_DUTY_MAX = 160_000


def monthly_payment(principal: int, annual_rate_percent: float, years: int) -> int:
    """Equal-installment (元利均等) monthly repayment, rounded to the yen."""
    months = years * 12
    if principal <= 0:
        return 0
    rate = annual_rate_percent / 100 / 12
    if rate == 0:
        return round(principal / months)
    factor = (1 + rate) ** months
    return round(principal * rate * factor / (factor - 1))


def stamp_duty(price: int) -> int:
    for upper, duty in STAMP_DUTY_BRACKETS:
        if price <= upper:
            return duty
    return STAMP_DUTY_MAX


class LoanSimulationTool(Tool):
    """Monthly repayment for a fixed-rate equal-installment loan."""

    name = "loan_simulation"
    description = "Simulate monthly repayments for a housing loan"

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        price, down_payment, rate, years = self.require(
            params, "price_yen", "down_payment_yen", "annual_rate_percent", "years"
        )
        if price <= 0 or years <= 0 or rate < 0 or down_payment < 0:
            raise ToolError("Loan parameters out of range", tool_name=self.name, recoverable=False)

        principal = max(0, price - down_payment)
        payment = monthly_payment(principal, rate, years)
        total = payment * years * 12

        result: dict[str, Any] = {
            "price_yen": price,
            "down_payment_yen": down_payment,
            "principal_yen": principal,
            "annual_rate_percent": rate,
            "years": years,
            "monthly_payment_yen": payment,
            "total_repayment_yen": total,
            "total_interest_yen": total - principal,
            "sources": [],
        }

        annual_income = params.get("annual_income_yen")
        if annual_income:
            result["repayment_ratio_percent"] = round(payment * 12 / annual_income * 100, 1)
        return result


class ClosingCostsTool(Tool):
    """Estimated costs paid on top of the purchase price."""

    name = "closing_costs"
    description = "Estimate brokerage, registration and other purchase costs"

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        (price,) = self.require(params, "price_yen")
        if price <= 0:
            raise ToolError("price_yen must be positive", tool_name=self.name, recoverable=False)
        loan_amount = params.get("loan_amount_yen") or 0

        brokerage = round((price * BROKERAGE_RATE + BROKERAGE_FIXED_YEN) * (1 + CONSUMPTION_TAX_RATE))
        lines = [
            {"item": "仲介手数料", "amount_yen": brokerage},
            {
                "item": "登記費用",
                "amount_yen": max(REGISTRATION_MIN_YEN, round(price * REGISTRATION_RATE)),
            },
            {"item": "印紙税", "amount_yen": stamp_duty(price)},
        ]
        if loan_amount > 0:
            lines.append(
                {"item": "ローン事務手数料", "amount_yen": round(loan_amount * LOAN_FEE_RATE)}
            )
        lines.append({"item": "火災保険料", "amount_yen": FIRE_INSURANCE_YEN})
        lines.append({"item": "固定資産税等精算金", "amount_yen": TAX_SETTLEMENT_YEN})

        return {
            "price_yen": price,
            "lines": lines,
            "total_yen": sum(line["amount_yen"] for line in lines),
            "sources": [],
        }
