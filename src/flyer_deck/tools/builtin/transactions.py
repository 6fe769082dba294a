"""Comparable real-estate transactions from the reinfolib API (XIT001)."""

from datetime import date
from typing import Any

import httpx

from flyer_deck.core.exceptions import ToolError
from flyer_deck.tools.base import HttpTool


PREFECTURES: tuple[str, ...] = (
    "北海道", "青森県", "岩手県", "宮城県", "秋田県", "山形県", "福島県",
    "茨城県", "栃木県", "群馬県", "埼玉県", "千葉県", "東京都", "神奈川県",
    "新潟県", "富山県", "石川県", "福井県", "山梨県", "長野県", "岐阜県",
    "静岡県", "愛知県", "三重県", "滋賀県", "京都府", "大阪府", "兵庫県",
    "奈良県", "和歌山県", "鳥取県", "島根県", "岡山県", "広島県", "山口県",
    "徳島県", "香川県", "愛媛県", "高知県", "福岡県", "佐賀県", "長崎県",
    "熊本県", "大分県", "宮崎県", "鹿児島県", "沖縄県",
)

# Transaction "Type" values on the API
CONDOMINIUM_TYPE = "中古マンション等"


def prefecture_code(address: str) -> tuple[str, str]:
    """Return (code, name) for the prefecture an address starts with."""
    for number, name in enumerate(PREFECTURES, start=1):
        if address.startswith(name):
            return f"{number:02d}", name
    raise ValueError(f"No prefecture found in address {address!r}")


def _to_int(value: Any) -> int | None:
    try:
        return int(str(value).replace(",", ""))
    except (TypeError, ValueError):
        return None


class TransactionsTool(HttpTool):
    """Recent transactions in the property's city, most recent first."""

    name = "real_estate_transactions"
    description = "Recent comparable transactions in the same municipality"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        limit: int = 20,
    ):
        super().__init__(client)
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._limit = limit

    @property
    def _headers(self) -> dict[str, str]:
        return {"Ocp-Apim-Subscription-Key": self._api_key}

    async def execute(self, params: dict[str, Any]) -> dict[str, Any]:
        (address,) = self.require(params, "address")
        if not self._api_key:
            raise ToolError(
                "Reinfolib API key not configured (REINFOLIB_API_KEY)",
                tool_name=self.name,
                recoverable=False,
            )

        try:
            pref_code, pref_name = prefecture_code(address)
        except ValueError as e:
            raise ToolError(str(e), tool_name=self.name, recoverable=False) from e

        city_code, city_name = await self._find_city(pref_code, address[len(pref_name):])
        year = params.get("year") or date.today().year - 1

        response = await self.get(
            f"{self._base_url}/XIT001",
            params={"year": year, "city": city_code},
            headers=self._headers,
        )
        rows = response.json().get("data", [])

        property_type = params.get("property_type", CONDOMINIUM_TYPE)
        transactions = []
        for row in rows:
            if property_type and row.get("Type") != property_type:
                continue
            price = _to_int(row.get("TradePrice"))
            area = _to_int(row.get("Area"))
            if not price or not area:
                continue
            transactions.append(
                {
                    "name": f"{row.get('Municipality', '')}{row.get('DistrictName', '')}",
                    "price_yen": price,
                    "area_m2": area,
                    "unit_price_yen": round(price / area),
                    "floor_plan": row.get("FloorPlan") or None,
                    "building_year": row.get("BuildingYear") or None,
                    "period": row.get("Period") or None,
                }
            )

        return {
            "prefecture": pref_name,
            "city": city_name,
            "year": year,
            "transactions": transactions[: self._limit],
            "total_count": len(transactions),
            "sources": ["https://www.reinfolib.mlit.go.jp/"],
        }

    async def _find_city(self, pref_code: str, remainder: str) -> tuple[str, str]:
        """Match the rest of the address against the prefecture's municipalities (XIT002)."""
        response = await self.get(
            f"{self._base_url}/XIT002",
            params={"area": pref_code},
            headers=self._headers,
        )
        cities = response.json().get("data", [])
        # Longest name first so that designated-city wards win over the city itself
        for city in sorted(cities, key=lambda c: len(c.get("name", "")), reverse=True):
            name = city.get("name", "")
            if name and remainder.startswith(name):
                return city["id"], name
        raise ToolError(
            f"No municipality matches address remainder {remainder!r}",
            tool_name=self.name,
            recoverable=False,
        )
