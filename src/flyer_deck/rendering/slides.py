"""Slide body renderers, one per content model."""

from flyer_deck.content.models import (
    AccessContent,
    ContentType,
    CoverContent,
    ExpensesContent,
    FloorPlanContent,
    FlyerContent,
    FundingContent,
    HazardContent,
    HighlightSection,
    NearbyContent,
    PriceAnalysisContent,
    PropertyHighlightContent,
    Route,
    StaticContent,
)
from flyer_deck.rendering.renderer import esc, image_tag, render_body


def _rows(cells: list[list[str]]) -> str:
    return "".join("<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in cells)


def _table(headers: list[str], cells: list[list[str]]) -> str:
    head = "".join(f"<th>{esc(h)}</th>" for h in headers)
    return f"<table><thead><tr>{head}</tr></thead><tbody>{_rows(cells)}</tbody></table>"


@render_body.register
def _flyer(content: FlyerContent) -> str:
    pages = "".join(
        f'<div class="card">{image_tag(url, f"物件チラシ {i}")}</div>'
        for i, url in enumerate(content.image_urls, start=1)
    )
    return f'<div class="slide__body">{pages}</div>'


@render_body.register
def _cover(content: CoverContent) -> str:
    agent_lines = [
        esc(content.company_name),
        esc(content.store_name),
        f"担当: {esc(content.agent_name)}",
        esc(content.agent_phone),
        esc(content.agent_email),
    ]
    agent = "<br>".join(line for line in agent_lines if line)
    return (
        '<div class="slide__body">'
        '<div class="card">'
        f'<p class="muted">{esc(content.customer_name)} 様</p>'
        f"<h1>{esc(content.property_name)}</h1>"
        f'<p class="muted">{esc(content.address)}</p>'
        f"<p>ご提案資料 / {esc(content.created_date)}</p>"
        f'<p class="muted">{agent}</p>'
        "</div>"
        f'<div class="card">{image_tag(content.image_url, content.property_name)}</div>'
        "</div>"
    )


def _highlight_section(section: HighlightSection) -> str:
    items = "".join(
        f'<li><span class="value">{esc(item.value)}</span> {esc(item.text)}</li>'
        for item in section.items
    )
    return (
        f'<div class="card"><h3>{esc(section.title)}</h3>'
        f"<p>{esc(section.description)}</p><ul>{items}</ul></div>"
    )


@render_body.register
def _property_highlight(content: PropertyHighlightContent) -> str:
    sections = "".join(
        _highlight_section(section)
        for section in (content.location, content.quality, content.price)
    )
    name = f'<p class="muted">{esc(content.property_name)}</p>' if content.property_name else ""
    return f'{name}<div class="slide__body">{sections}</div>'


@render_body.register
def _floor_plan(content: FloorPlanContent) -> str:
    points = "".join(
        f"<li><h3>{esc(point.title)}</h3><p>{esc(point.description)}</p></li>"
        for point in content.points
    )
    specs = _table(
        ["専有面積", "間取り", "バルコニー"],
        [[esc(content.specs.area), esc(content.specs.layout), esc(content.specs.balcony) or "-"]],
    )
    return (
        '<div class="slide__body">'
        f'<div class="card">{image_tag(content.image_url, "間取り図")}</div>'
        f'<div class="card"><ul>{points}</ul>{specs}</div>'
        "</div>"
    )


def _routes(routes: list[Route]) -> list[list[str]]:
    return [
        [
            esc(route.destination),
            f"{route.total_minutes}分",
            f"乗換{route.transfer_count}回",
            esc(route.route_summary),
        ]
        for route in routes
    ]


@render_body.register
def _access(content: AccessContent) -> str:
    station = content.nearest_station
    lines = " / ".join(esc(line) for line in station.lines)
    airport = (
        _table(["空港", "所要時間", "乗換", "経路"], _routes(content.airport_routes))
        if content.airport_routes
        else ""
    )
    return (
        '<div class="slide__body">'
        '<div class="card">'
        f'<p class="muted">{esc(content.address)}</p>'
        f"<h3>最寄り駅 {esc(station.name)}</h3>"
        f'<p class="value">徒歩{station.walk_minutes}分</p>'
        f'<p class="muted">{lines}</p>'
        "</div>"
        '<div class="card">'
        f'{_table(["目的地", "所要時間", "乗換", "経路"], _routes(content.station_routes))}'
        f"{airport}"
        "</div>"
        "</div>"
    )


@render_body.register
def _nearby(content: NearbyContent) -> str:
    groups = []
    for group in content.facility_groups:
        rows = "".join(
            f'<li><span class="marker" style="background:{esc(group.color)}">{facility.number}</span>'
            f"{esc(facility.name)} <span class=\"muted\">{esc(facility.distance)}</span></li>"
            for facility in group.facilities
        )
        groups.append(f'<div class="card"><h3>{esc(group.category)}</h3><ul>{rows}</ul></div>')
    map_image = image_tag(content.map_image_url, "周辺地図")
    return (
        f'<p class="muted">{esc(content.address)}</p>'
        f'<div class="slide__body">{map_image}{"".join(groups)}</div>'
    )


@render_body.register
def _price_analysis(content: PriceAnalysisContent) -> str:
    rows = [
        [esc(p.name), esc(p.price), esc(p.area), esc(p.unit_price), esc(p.built_year), esc(p.period)]
        for p in content.similar_properties
    ]
    target = ""
    if content.target_property is not None:
        t = content.target_property
        target = f"<p>本物件: {esc(t.name)} {esc(t.price)} {esc(t.area)} {esc(t.unit_price)}</p>"
    count = f'<p class="muted">対象取引 {content.data_count}件</p>' if content.data_count is not None else ""
    average = (
        f"<p>平均単価 {esc(content.average_unit_price)}</p>" if content.average_unit_price else ""
    )
    return (
        '<div class="slide__body">'
        '<div class="card">'
        "<h3>推定価格帯</h3>"
        f'<p class="value">{esc(content.estimated_price_min)} 〜 {esc(content.estimated_price_max)}</p>'
        f"{average}{target}{count}"
        "</div>"
        f'<div class="card">{_table(["所在", "価格", "面積", "単価", "築年", "取引時期"], rows)}</div>'
        "</div>"
    )


@render_body.register
def _hazard(content: HazardContent) -> str:
    risks = _table(
        ["災害種別", "リスク"],
        [[esc(r.type), esc(r.level)] for r in content.hazard_risks],
    )
    shelters = _table(
        ["避難所", "種別", "距離"],
        [[esc(s.name), esc(s.type), esc(s.distance)] for s in content.shelters],
    )
    description = f"<p>{esc(content.description)}</p>" if content.description else ""
    return (
        f'<p class="muted">{esc(content.property_name)} / {esc(content.address)}</p>'
        '<div class="slide__body">'
        f'<div class="card">{image_tag(content.hazard_map_url, "ハザードマップ")}{description}{risks}</div>'
        f'<div class="card">{image_tag(content.shelter_map_url, "避難所マップ")}{shelters}</div>'
        "</div>"
    )


@render_body.register
def _funding(content: FundingContent) -> str:
    loan = content.loan_conditions
    monthly = content.monthly_payments
    conditions = _table(
        ["物件価格", "頭金", "借入額", "期間 / 金利"],
        [[esc(loan.property_price), esc(loan.down_payment), esc(loan.loan_amount), esc(loan.loan_term_and_rate)]],
    )
    payments = _table(
        ["ローン返済", "管理費", "修繕積立金", "合計"],
        [[esc(monthly.loan_repayment), esc(monthly.management_fee), esc(monthly.repair_reserve), esc(monthly.total)]],
    )
    note = f'<p class="muted">{esc(content.note)}</p>' if content.note else ""
    return (
        f'<p class="muted">{esc(content.property_name)}</p>'
        '<div class="slide__body">'
        f'<div class="card"><h3>借入条件</h3>{conditions}</div>'
        f'<div class="card"><h3>月々のお支払い</h3>{payments}'
        f'<p class="value">{esc(monthly.total)}</p>{note}</div>'
        "</div>"
    )


@render_body.register
def _expenses(content: ExpensesContent) -> str:
    lines = _table(["項目", "金額"], [[esc(e.item), esc(e.amount)] for e in content.expenses])
    price = f"<p>物件価格 {esc(content.property_price)}</p>" if content.property_price else ""
    total = (
        f'<p class="value">{esc(content.total_description)}</p>' if content.total_description else ""
    )
    note = f'<p class="muted">{esc(content.note)}</p>' if content.note else ""
    return (
        f'<p class="muted">{esc(content.property_name)}</p>'
        f'<div class="slide__body"><div class="card">{price}{lines}{total}{note}</div></div>'
    )


# =============================================================================
# STATIC TEMPLATES
# =============================================================================


TAX_BODY = (
    '<div class="slide__body">'
    '<div class="card"><h3>住宅ローン控除</h3>'
    "<p>年末のローン残高の0.7%が最大13年間、所得税・住民税から控除されます。</p>"
    '<p class="muted">床面積50㎡以上、合計所得2,000万円以下などの要件があります。</p></div>'
    '<div class="card"><h3>不動産取得税</h3>'
    "<p>取得後に一度だけ課税されます。住宅用は軽減措置が適用されます。</p></div>"
    '<div class="card"><h3>固定資産税・都市計画税</h3>'
    "<p>毎年1月1日時点の所有者に課税されます。引渡し時に日割りで精算します。</p></div>"
    "</div>"
)

PURCHASE_FLOW_STEPS = (
    ("物件見学", "ご希望条件に合う物件を実際にご覧いただきます。"),
    ("購入申込", "購入申込書を提出し、価格や条件を交渉します。"),
    ("住宅ローン事前審査", "金融機関に借入可能額を確認します。"),
    ("重要事項説明・売買契約", "宅地建物取引士の説明を受け、契約を締結します。"),
    ("住宅ローン本審査・契約", "本審査の承認後、金銭消費貸借契約を結びます。"),
    ("決済・引渡し", "残代金を支払い、鍵を受け取ります。"),
)

PURCHASE_FLOW_BODY = (
    '<div class="slide__body"><ol>'
    + "".join(
        f'<li class="card"><h3>{esc(step)}</h3><p>{esc(detail)}</p></li>'
        for step, detail in PURCHASE_FLOW_STEPS
    )
    + "</ol></div>"
)

STATIC_BODIES: dict[ContentType, str] = {
    ContentType.TAX: TAX_BODY,
    ContentType.PURCHASE_FLOW: PURCHASE_FLOW_BODY,
}


@render_body.register
def _static(content: StaticContent) -> str:
    return STATIC_BODIES[content.content_type]
