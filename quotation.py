"""PDF plan quotation for a sized solar system."""

import logging
from datetime import datetime
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.graphics.charts.barcharts import VerticalBarChart
from reportlab.graphics.charts.lineplots import LinePlot
from reportlab.graphics.shapes import Drawing, Line, Rect, String
from reportlab.graphics.widgets.markers import makeMarker
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
)

from constants import CATEGORY_DESCRIPTIONS, DEFAULT_MARKET
from devices import make_device_entry
from utils import is_payback_reached, run_calculation

logger = logging.getLogger(__name__)

PRIMARY = '#E67E22'
SAVINGS_GREEN = '#4CAF50'

DETAIL_TABLE_STYLE = [
    ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
    ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#f5f5f5')),
    ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
    ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.grey),
    ('PADDING', (0, 0), (-1, -1), 6),
]


def _money(value) -> str:
    return f"${value:,.0f}"


def create_payback_chart(timeline: list, payback_year: int) -> Drawing:
    """Cumulative net position over the system lifespan with break-even marked."""

    drawing = Drawing(170*mm, 80*mm)
    years = len(timeline) - 1
    payback_year = int(payback_year)

    chart = LinePlot()
    chart.x = 20*mm
    chart.y = 15*mm
    chart.width = 140*mm
    chart.height = 55*mm

    chart.data = [[(year, value) for year, value in enumerate(timeline)]]

    chart.lines[0].strokeColor = colors.HexColor(PRIMARY)
    chart.lines[0].strokeWidth = 2
    chart.lines[0].symbol = makeMarker('Circle', size=3)

    chart.xValueAxis.valueMin = 0
    chart.xValueAxis.valueMax = years
    chart.xValueAxis.valueStep = 5
    chart.xValueAxis.labels.fontSize = 8

    min_val = min(min(timeline), 0)
    max_val = max(max(timeline), 0)
    if max_val == min_val:
        max_val += 1
    chart.yValueAxis.valueMin = min_val - abs(min_val) * 0.1
    chart.yValueAxis.valueMax = max_val + abs(max_val) * 0.1
    chart.yValueAxis.labels.fontSize = 8
    chart.yValueAxis.labelTextFormat = '$%d'

    drawing.add(chart)

    y_span = chart.yValueAxis.valueMax - chart.yValueAxis.valueMin

    # Zero line
    zero_y = chart.y + chart.height * (0 - chart.yValueAxis.valueMin) / y_span
    zero_line = Line(chart.x, zero_y, chart.x + chart.width, zero_y)
    zero_line.strokeColor = colors.grey
    zero_line.strokeDashArray = [3, 3]
    zero_line.strokeWidth = 1
    drawing.add(zero_line)

    if payback_year and payback_year <= years and timeline[payback_year] >= 0:
        breakeven_x = chart.x + chart.width * (payback_year / years)
        breakeven_y = chart.y + chart.height * (timeline[payback_year] - chart.yValueAxis.valueMin) / y_span

        be_line = Line(breakeven_x, chart.y, breakeven_x, breakeven_y)
        be_line.strokeColor = colors.HexColor(SAVINGS_GREEN)
        be_line.strokeWidth = 1.5
        be_line.strokeDashArray = [2, 2]
        drawing.add(be_line)

        marker = Rect(breakeven_x - 3, breakeven_y - 3, 6, 6)
        marker.fillColor = colors.HexColor(SAVINGS_GREEN)
        marker.strokeColor = colors.white
        drawing.add(marker)

        be_label = String(breakeven_x + 3, breakeven_y + 5, f'Break-even: Year {payback_year}')
        be_label.fontSize = 8
        be_label.fillColor = colors.HexColor(SAVINGS_GREEN)
        be_label.fontName = 'Helvetica-Bold'
        drawing.add(be_label)

    title = String(chart.x + chart.width / 2, chart.y + chart.height + 8*mm, 'Cumulative Net Position')
    title.fontSize = 10
    title.fontName = 'Helvetica-Bold'
    title.textAnchor = 'middle'
    drawing.add(title)

    x_label = String(chart.x + chart.width / 2, 3*mm, 'Year')
    x_label.fontSize = 8
    x_label.textAnchor = 'middle'
    drawing.add(x_label)

    return drawing


def create_cost_breakdown_chart(cost_breakdown: dict) -> Drawing:
    """Bar chart of the component and installation costs."""

    drawing = Drawing(170*mm, 70*mm)

    chart = VerticalBarChart()
    chart.x = 20*mm
    chart.y = 12*mm
    chart.width = 130*mm
    chart.height = 45*mm

    chart.data = [[
        cost_breakdown["panels"],
        cost_breakdown["battery"],
        cost_breakdown["inverter"],
        cost_breakdown["installation"]
    ]]
    chart.categoryAxis.categoryNames = ['Panels', 'Battery', 'Inverter', 'Installation']
    chart.categoryAxis.labels.fontSize = 8
    chart.categoryAxis.labels.dy = -5

    chart.valueAxis.valueMin = 0
    chart.valueAxis.labels.fontSize = 8
    chart.valueAxis.labelTextFormat = '$%d'

    bar_colors = ['#F1C40F', '#27AE60', '#2E86AB', '#8E44AD']
    for i, color in enumerate(bar_colors):
        chart.bars[(0, i)].fillColor = colors.HexColor(color)

    drawing.add(chart)

    title = String(chart.x + chart.width / 2, chart.y + chart.height + 8*mm, 'Cost Breakdown')
    title.fontSize = 10
    title.fontName = 'Helvetica-Bold'
    title.textAnchor = 'middle'
    drawing.add(title)

    return drawing


def generate_plan_pdf(
    data: dict,
    result: dict,
    customer_name: str,
    company_name: str = "SolarAfrica Planner",
    quote_ref: str = None,
    market=DEFAULT_MARKET
) -> bytes:
    """Generate a customer plan PDF for a calculated system.

    Args:
        data: The validated calculation input
        result: Output of ``calculate_solar_system`` for ``data``
        market: Market the result was calculated with, for the assumptions page

    Returns PDF as bytes.
    """

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20*mm,
        leftMargin=20*mm,
        topMargin=20*mm,
        bottomMargin=20*mm
    )

    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name='CompanyName',
        parent=styles['Heading1'],
        fontSize=22,
        textColor=colors.HexColor(PRIMARY),
        spaceAfter=5*mm
    ))
    styles.add(ParagraphStyle(
        name='QuoteTitle',
        parent=styles['Heading1'],
        fontSize=18,
        textColor=colors.HexColor('#1a1a1a'),
        alignment=TA_CENTER,
        spaceBefore=5*mm,
        spaceAfter=10*mm
    ))
    styles.add(ParagraphStyle(
        name='SectionHeader',
        parent=styles['Heading2'],
        fontSize=14,
        textColor=colors.HexColor(PRIMARY),
        spaceBefore=8*mm,
        spaceAfter=4*mm
    ))
    styles.add(ParagraphStyle(
        name='BodyTextRight',
        parent=styles['Normal'],
        alignment=TA_RIGHT
    ))
    styles.add(ParagraphStyle(
        name='Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER
    ))

    elements = []
    now = datetime.now()

    # --- Header ---
    if quote_ref is None:
        quote_ref = f"SP-{now.strftime('%Y%m%d-%H%M%S')}"

    header_table = Table(
        [[Paragraph(f"<b>{escape(company_name)}</b>", styles['CompanyName']),
          Paragraph(f"Plan Ref: {escape(quote_ref)}<br/>Date: {now.strftime('%d %B %Y')}", styles['BodyTextRight'])]],
        colWidths=[100*mm, 70*mm]
    )
    header_table.setStyle(TableStyle([('VALIGN', (0, 0), (-1, -1), 'TOP')]))
    elements.append(header_table)
    elements.append(Spacer(1, 5*mm))

    elements.append(Paragraph("Solar System Plan", styles['QuoteTitle']))

    customer_table = Table(
        [
            ["Customer:", customer_name],
            ["Location:", data["location"]],
            ["Category:", f"{data['category'].title()} - {CATEGORY_DESCRIPTIONS[data['category']]}"],
        ],
        colWidths=[30*mm, 140*mm]
    )
    customer_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ]))
    elements.append(customer_table)

    # --- Consumption ---
    elements.append(Paragraph("Your Energy Profile", styles['SectionHeader']))

    device_rows = [["Device", "Qty", "Hours/day", "Watts", "Wh/day"]]
    for device in data["devices"]:
        daily_wh = device["power_consumption"] * device["quantity"] * device["hours_per_day"]
        device_rows.append([
            device["type"],
            str(device["quantity"]),
            f"{device['hours_per_day']:g}",
            f"{device['power_consumption']:g}",
            f"{daily_wh:,.0f}",
        ])
    device_rows.append(["Daily demand", "", "", "", f"{result['energy_demand']} kWh"])

    device_table = Table(device_rows, colWidths=[70*mm, 20*mm, 25*mm, 25*mm, 30*mm])
    device_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#fdebd0')),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
        ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.grey),
        ('PADDING', (0, 0), (-1, -1), 5),
    ]))
    elements.append(device_table)

    # --- System Specification ---
    elements.append(Paragraph("System Specification", styles['SectionHeader']))

    system_table = Table(
        [
            ["Solar Panel Capacity:", f"{result['panel_size']} kW"],
            ["Battery Storage:", f"{result['battery_capacity']} kWh ({market.battery_days:g} days backup)"],
            ["Inverter Size:", f"{result['inverter_size']} kW"],
            ["Average Sunlight:", f"{data['sunlight_hours']:g} hours/day"],
            ["Expected Daily Generation:", f"{result['panel_size'] * data['sunlight_hours']:.1f} kWh"],
        ],
        colWidths=[60*mm, 110*mm]
    )
    system_table.setStyle(TableStyle(DETAIL_TABLE_STYLE))
    elements.append(system_table)

    # --- Investment ---
    elements.append(Paragraph("Investment", styles['SectionHeader']))

    breakdown = result["cost_breakdown"]
    incentive = result["upfront_cost"] - result["net_upfront_cost"]
    pricing_table = Table(
        [
            ["Solar Panels:", _money(breakdown["panels"])],
            ["Battery Storage:", _money(breakdown["battery"])],
            ["Inverter:", _money(breakdown["inverter"])],
            ["Installation:", _money(breakdown["installation"])],
            ["Total System Cost:", _money(result["upfront_cost"])],
            [f"Government Incentive ({result['government_incentive']:.0%}):", f"-{_money(incentive)}"],
            ["Net Cost:", _money(result["net_upfront_cost"])],
        ],
        colWidths=[60*mm, 110*mm]
    )
    pricing_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 12),
        ('BACKGROUND', (0, -1), (-1, -1), colors.HexColor(PRIMARY)),
        ('TEXTCOLOR', (0, -1), (-1, -1), colors.white),
        ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
        ('INNERGRID', (0, 0), (-1, -2), 0.25, colors.grey),
        ('PADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(pricing_table)

    # --- Financing ---
    elements.append(Paragraph("Payment Options", styles['SectionHeader']))

    financing = result["financing_options"]
    payment_rows = [["Option", "Monthly Payment", "Total Paid", "Interest Rate"]]
    for key, option in financing.items():
        if key == "cash_payback":
            continue
        payment_rows.append([
            f"{option['term']}-year loan",
            _money(option["monthly_payment"]),
            _money(option["total_payment"]),
            f"{option['interest_rate']:.0%} APR",
        ])
    cash_payback = financing["cash_payback"]
    payment_rows.append([
        "Cash purchase",
        _money(result["net_upfront_cost"]),
        f"recovered in {cash_payback} months" if cash_payback is not None else "not recovered",
        "",
    ])
    payment_table = Table(payment_rows, colWidths=[45*mm, 40*mm, 50*mm, 35*mm])
    payment_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#fdebd0')),
        ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
        ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.grey),
        ('PADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(payment_table)

    # --- Savings ---
    elements.append(Paragraph("Projected Savings", styles['SectionHeader']))

    lifespan = market.system_lifespan
    reached = is_payback_reached(result)
    savings_table = Table(
        [
            ["Current Monthly Bill:", _money(result["current_electricity_bill"])],
            ["Annual Savings:", _money(result["annual_savings"])],
            ["Annual Maintenance:", _money(result["maintenance_cost"])],
            ["Net Annual Savings:", _money(result["net_annual_savings"])],
            ["Battery Replacements:", _money(result["battery_replacement_cost"])],
            ["Payback Period:", f"{result['payback_period']:g} years" if reached else f">{lifespan} years"],
            [f"Return over {lifespan} years:", f"{result['roi']}%" if result["roi"] is not None else "n/a"],
            ["CO2 Avoided:", f"{result['co2_reduction']:,} kg/year"],
        ],
        colWidths=[60*mm, 110*mm]
    )
    savings_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#e8f5e9')),
        ('BOX', (0, 0), (-1, -1), 0.5, colors.HexColor(SAVINGS_GREEN)),
        ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.HexColor(SAVINGS_GREEN)),
        ('PADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(savings_table)

    # --- Charts ---
    elements.append(PageBreak())
    elements.append(Paragraph("Financial Projections", styles['SectionHeader']))
    elements.append(create_payback_chart(result["payback_timeline"], result["payback_period"]))
    elements.append(Spacer(1, 5*mm))

    if reached:
        be_text = f"""
        <b>Break-even Analysis:</b> Your system pays for itself in <b>Year {result['payback_period']:g}</b>,
        including battery replacements every {market.battery_replacement_years} years.
        Over {lifespan} years your net position is projected to be
        <b>{_money(result['payback_timeline'][-1])}</b>.
        """
    else:
        be_text = f"""
        <b>Break-even Analysis:</b> With current tariffs, savings do not cover the system cost
        within its {lifespan}-year lifespan. Consider financing, a smaller battery, or
        shifting more daytime load onto solar.
        """
    elements.append(Paragraph(be_text, styles['Normal']))
    elements.append(Spacer(1, 8*mm))

    elements.append(Paragraph("Where the Money Goes", styles['SectionHeader']))
    elements.append(create_cost_breakdown_chart(breakdown))

    # --- Assumptions ---
    elements.append(Spacer(1, 10*mm))
    elements.append(Paragraph("Assumptions & Notes", styles['SectionHeader']))

    rates = market.electricity_rates[data["category"]]
    assumptions_text = f"""
    <font size=9>
    This plan is based on the following assumptions:<br/>
    - Tariff: ${rates['base_rate']}/kWh up to {rates['tier_threshold']} kWh/month, ${rates['tier_rate']}/kWh above<br/>
    - System efficiency: {market.system_efficiency:.0%}, panels oversized by {market.panel_safety_margin - 1:.0%}<br/>
    - Maintenance: {market.maintenance_cost_percentage:.0%} of system cost per year<br/>
    - Battery replaced every {market.battery_replacement_years} years at
      {market.battery_replacement_cost_factor:.0%} of the original price<br/>
    - Loans at {market.financing_interest_rate:.0%} annual interest<br/>
    <br/>
    Actual savings depend on usage patterns, weather and future tariffs.
    This plan is valid for 30 days from the date shown above.
    </font>
    """
    elements.append(Paragraph(assumptions_text, styles['Normal']))

    elements.append(Spacer(1, 15*mm))
    elements.append(Paragraph(
        f"{escape(company_name)} | Plan generated on {now.strftime('%d/%m/%Y at %H:%M')}",
        styles['Footer']
    ))

    doc.build(elements)
    logger.info("Generated plan PDF %s for %s (%s)", quote_ref, data["location"], data["category"])

    return buffer.getvalue()


def generate_sample_plans():
    """Generate one sample plan PDF per category."""

    scenarios = [
        {
            "name": "home",
            "data": {
                "category": "HOME",
                "location": "Kenya",
                "sunlight_hours": 6.2,
                "devices": [
                    make_device_entry("LED Light Bulb", quantity=8, hours_per_day=6),
                    make_device_entry("TV", hours_per_day=5),
                    make_device_entry("Refrigerator", hours_per_day=24),
                    make_device_entry("Phone Charger", quantity=3, hours_per_day=3),
                ],
            },
        },
        {
            "name": "business",
            "data": {
                "category": "BUSINESS",
                "location": "Nigeria",
                "sunlight_hours": 5.5,
                "devices": [
                    make_device_entry("LED Light Bulb", quantity=20, hours_per_day=10),
                    make_device_entry("Laptop", quantity=6, hours_per_day=8),
                    make_device_entry("Air Conditioner", hours_per_day=8),
                ],
            },
        },
        {
            "name": "farm",
            "data": {
                "category": "FARM",
                "location": "Ethiopia",
                "sunlight_hours": 6.1,
                "devices": [
                    make_device_entry("Water Pump", quantity=2, hours_per_day=6),
                    make_device_entry("Refrigerator", quantity=2, hours_per_day=24),
                    make_device_entry("LED Light Bulb", quantity=10, hours_per_day=5),
                ],
            },
        },
    ]

    generated_files = []

    for scenario in scenarios:
        result, errors = run_calculation(scenario["data"])
        if errors:
            raise ValueError(f"Sample scenario {scenario['name']} is invalid: {errors}")

        pdf_bytes = generate_plan_pdf(scenario["data"], result, customer_name="Sample Customer")

        filename = f"plan_{scenario['name']}.pdf"
        with open(filename, 'wb') as f:
            f.write(pdf_bytes)

        generated_files.append(filename)
        print(f"Generated: {filename}")

    return generated_files


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    generate_sample_plans()
