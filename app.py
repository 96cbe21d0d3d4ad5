"""SolarAfrica Planner Streamlit app.

A four-step calculator (category, details, review, results) that sizes a
solar system for a home, business or farm and projects its finances. The
results come straight from the calculation engine in ``utils``.
"""

import logging

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from constants import CATEGORIES, CATEGORY_DESCRIPTIONS, DEFAULT_MARKET, SUNLIGHT_HOURS
from devices import DEVICE_CATALOG, DEVICE_CATEGORIES, get_devices_by_category, make_device_entry
from quotation import generate_plan_pdf
from utils import (
    get_location_sunlight,
    is_payback_reached,
    run_calculation,
    validate_calculation_input,
)

logging.basicConfig(level=logging.INFO)

st.set_page_config(
    page_title="SolarAfrica Planner",
    page_icon="☀️",
    layout="wide"
)

STEPS = ["Category", "Details", "Review", "Results"]
CATEGORY_ICONS = {"HOME": "🏠", "BUSINESS": "🏢", "FARM": "🌾"}
DEVICE_COLUMNS = ["type", "quantity", "hours_per_day", "power_consumption"]
OTHER_LOCATION = "Other"


def _reset():
    st.session_state.step = 0
    st.session_state.calculator_data = {
        "category": None,
        "location": "",
        "sunlight_hours": 0.0,
        "devices": [],
    }
    st.session_state.result = None
    st.session_state.editor_version = 0
    st.session_state.pop("pdf_bytes", None)


def _go_to(step):
    st.session_state.step = step


def _choose_category(category):
    st.session_state.calculator_data["category"] = category
    st.session_state.step = 1


def _devices_frame(devices: list) -> pd.DataFrame:
    frame = pd.DataFrame(devices, columns=DEVICE_COLUMNS)
    return frame.astype({"quantity": "float64", "hours_per_day": "float64", "power_consumption": "float64"})


def _devices_from_frame(frame: pd.DataFrame) -> list:
    """Turn the edited device table back into calculation device entries."""
    frame = frame.dropna(how="all")
    devices = []
    for row in frame.to_dict("records"):
        if isinstance(row.get("type"), str):
            row["type"] = row["type"].strip()
        quantity = row.get("quantity")
        if isinstance(quantity, float) and quantity.is_integer():
            row["quantity"] = int(quantity)
        devices.append({column: row.get(column) for column in DEVICE_COLUMNS})
    return devices


if "step" not in st.session_state:
    _reset()

data = st.session_state.calculator_data
step = st.session_state.step

st.title("☀️ SolarAfrica Planner")
st.caption("Size a solar system for your home, business or farm and see what it will cost and save.")
st.progress((step + 1) / len(STEPS), text=f"Step {step + 1} of {len(STEPS)}: {STEPS[step]}")

# --- Step 1: Category ---
if step == 0:
    st.header("What are you powering?")
    st.markdown("Your category selects the electricity tariff your savings are measured against.")

    columns = st.columns(len(CATEGORIES))
    for column, category in zip(columns, CATEGORIES):
        with column:
            rates = DEFAULT_MARKET.electricity_rates[category]
            st.subheader(f"{CATEGORY_ICONS[category]} {category.title()}")
            st.write(CATEGORY_DESCRIPTIONS[category])
            st.caption(
                f"${rates['base_rate']}/kWh up to {rates['tier_threshold']} kWh/month, "
                f"${rates['tier_rate']}/kWh above"
            )
            st.button(
                f"Choose {category.title()}",
                key=f"category_{category}",
                type="primary" if data["category"] == category else "secondary",
                on_click=_choose_category,
                args=(category,),
                use_container_width=True
            )

# --- Step 2: Details ---
elif step == 1:
    st.header("Location & Devices")

    col_loc, col_sun = st.columns(2)
    with col_loc:
        location_options = list(SUNLIGHT_HOURS.keys()) + [OTHER_LOCATION]
        if data["location"] in SUNLIGHT_HOURS:
            location_index = location_options.index(data["location"])
        elif data["location"]:
            location_index = len(location_options) - 1
        else:
            location_index = 0
        selected_location = st.selectbox("Country", location_options, index=location_index)
        if selected_location == OTHER_LOCATION:
            location = st.text_input(
                "Location name",
                value="" if data["location"] in SUNLIGHT_HOURS else data["location"]
            )
        else:
            location = selected_location

    with col_sun:
        if location.strip():
            suggested = get_location_sunlight(location)["average_sunlight_hours"]
        else:
            suggested = 5.5
        if data["location"] == location and data["sunlight_hours"]:
            suggested = data["sunlight_hours"]
        sunlight_hours = st.number_input(
            "Average sunlight hours per day",
            min_value=0.0, max_value=12.0, value=float(suggested), step=0.1,
            key=f"sunlight_{location}",
            help="Peak-sun-hours. Pre-filled from the average for the selected country."
        )

    st.subheader("Your Devices")
    st.caption("Edit quantities and daily hours in the table. Add rows for devices not in the catalog.")

    edited = st.data_editor(
        _devices_frame(data["devices"]),
        key=f"devices_{st.session_state.editor_version}",
        num_rows="dynamic",
        use_container_width=True,
        column_config={
            "type": st.column_config.TextColumn("Device", required=True),
            "quantity": st.column_config.NumberColumn("Quantity", min_value=1, step=1),
            "hours_per_day": st.column_config.NumberColumn("Hours per day", min_value=0.5, max_value=24, step=0.5),
            "power_consumption": st.column_config.NumberColumn("Power (W)", min_value=1, step=1),
        }
    )
    current_devices = _devices_from_frame(edited)

    with st.expander("Add devices from the catalog", expanded=not current_devices):
        device_category = st.selectbox(
            "Device category",
            ["all"] + DEVICE_CATEGORIES,
            format_func=str.title
        )
        catalog_names = [d["name"] for d in get_devices_by_category(device_category)]
        selected_devices = st.multiselect(
            "Devices",
            catalog_names,
            format_func=lambda name: (
                f"{DEVICE_CATALOG[name]['icon']} {name} ({DEVICE_CATALOG[name]['power_consumption']} W)"
            )
        )
        if st.button("Add selected devices", disabled=not selected_devices):
            data["devices"] = current_devices + [make_device_entry(name) for name in selected_devices]
            st.session_state.editor_version += 1
            st.rerun()

    if current_devices:
        daily_wh = (edited["quantity"] * edited["hours_per_day"] * edited["power_consumption"]).sum()
        st.info(f"Estimated daily consumption: **{daily_wh / 1000:,.1f} kWh**")

    col_prev, col_next = st.columns(2)
    with col_prev:
        st.button("← Back", on_click=_go_to, args=(0,))
    with col_next:
        if st.button("Review →", type="primary", disabled=not (location.strip() and current_devices)):
            data["location"] = location.strip()
            data["sunlight_hours"] = sunlight_hours
            data["devices"] = current_devices
            st.session_state.editor_version += 1
            _go_to(2)
            st.rerun()

# --- Step 3: Review ---
elif step == 2:
    st.header("Review Your Information")

    col_a, col_b, col_c = st.columns(3)
    with col_a:
        st.metric("Category", f"{CATEGORY_ICONS.get(data['category'], '')} {(data['category'] or '').title()}")
    with col_b:
        st.metric("Location", data["location"])
    with col_c:
        st.metric("Average Sunlight", f"{data['sunlight_hours']:g} hours/day")

    df_devices = _devices_frame(data["devices"])
    df_devices["daily_wh"] = df_devices["quantity"] * df_devices["hours_per_day"] * df_devices["power_consumption"]
    st.dataframe(
        df_devices.rename(columns={
            "type": "Device",
            "quantity": "Quantity",
            "hours_per_day": "Hours/day",
            "power_consumption": "Power (W)",
            "daily_wh": "Wh/day",
        }),
        use_container_width=True,
        hide_index=True
    )

    errors = validate_calculation_input(data)
    for error in errors:
        st.error(error)
    if not errors:
        st.success(
            f"Ready to calculate a system for {len(data['devices'])} device type(s) "
            f"and {data['sunlight_hours']:g} hours of daily sunlight."
        )

    col_prev, col_next = st.columns(2)
    with col_prev:
        st.button("← Edit details", on_click=_go_to, args=(1,))
    with col_next:
        if st.button("Calculate my solar plan", type="primary", disabled=bool(errors)):
            result, errors = run_calculation(data)
            if errors:
                for error in errors:
                    st.error(error)
            else:
                st.session_state.result = result
                st.session_state.pop("pdf_bytes", None)
                _go_to(3)
                st.rerun()

# --- Step 4: Results ---
else:
    result = st.session_state.result
    lifespan = DEFAULT_MARKET.system_lifespan
    reached = is_payback_reached(result)

    st.header("Your Solar Plan")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Solar Panels", f"{result['panel_size']} kW")
    with col2:
        st.metric("Battery", f"{result['battery_capacity']} kWh")
    with col3:
        st.metric("Inverter", f"{result['inverter_size']} kW")
    with col4:
        st.metric("Net Cost", f"${result['net_upfront_cost']:,}",
                  delta=f"-{result['government_incentive']:.0%} incentive", delta_color="off")

    tab_overview, tab_financial, tab_environmental = st.tabs(
        ["Overview", "💰 Financial Analysis", "🌍 Environmental Impact"]
    )

    with tab_overview:
        col_o1, col_o2, col_o3 = st.columns(3)
        with col_o1:
            st.metric("Daily Energy Demand", f"{result['energy_demand']} kWh")
        with col_o2:
            st.metric("Expected Daily Generation", f"{result['panel_size'] * data['sunlight_hours']:.1f} kWh")
        with col_o3:
            backup_days = result["battery_capacity"] / result["energy_demand"] if result["energy_demand"] else 0
            st.metric("Battery Backup", f"{backup_days:.1f} days")

        df_load = _devices_frame(data["devices"])
        df_load["kWh/day"] = df_load["quantity"] * df_load["hours_per_day"] * df_load["power_consumption"] / 1000
        fig_load = px.bar(df_load, x="type", y="kWh/day", color="type")
        fig_load.update_layout(showlegend=False, xaxis_title="", height=350)
        st.subheader("Where Your Energy Goes")
        st.plotly_chart(fig_load, use_container_width=True)

    with tab_financial:
        col_f1, col_f2, col_f3, col_f4 = st.columns(4)
        with col_f1:
            st.metric("Current Monthly Bill", f"${result['current_electricity_bill']:,}")
        with col_f2:
            st.metric("Annual Savings", f"${result['annual_savings']:,}")
        with col_f3:
            st.metric("Payback Period", f"{result['payback_period']:g} years" if reached else f">{lifespan} years")
        with col_f4:
            st.metric(f"ROI ({lifespan} years)", f"{result['roi']}%" if result["roi"] is not None else "n/a")

        col_chart1, col_chart2 = st.columns(2)

        with col_chart1:
            st.subheader("Cost Breakdown")
            breakdown = result["cost_breakdown"]
            df_costs = pd.DataFrame({
                "Component": ["Panels", "Battery", "Inverter", "Installation"],
                "Cost": [breakdown["panels"], breakdown["battery"], breakdown["inverter"], breakdown["installation"]],
            })
            fig_costs = px.pie(
                df_costs, names="Component", values="Cost",
                color_discrete_sequence=["#F1C40F", "#27AE60", "#2E86AB", "#8E44AD"]
            )
            fig_costs.update_layout(height=400)
            st.plotly_chart(fig_costs, use_container_width=True)

        with col_chart2:
            st.subheader("Payback Timeline")
            timeline = result["payback_timeline"]
            fig_payback = go.Figure()
            fig_payback.add_trace(go.Scatter(
                x=list(range(len(timeline))), y=timeline,
                name="Net position", fill="tozeroy", line=dict(color="#E67E22", width=3)
            ))
            fig_payback.add_hline(y=0, line_dash="dash", line_color="gray")
            if reached:
                fig_payback.add_vline(
                    x=result["payback_period"], line_dash="dot", line_color="green",
                    annotation_text="Break-even", annotation_position="top left"
                )
            fig_payback.update_layout(
                xaxis_title="Year",
                yaxis_title="Cumulative net position ($)",
                showlegend=False,
                height=400
            )
            st.plotly_chart(fig_payback, use_container_width=True)

        st.subheader("Running Costs")
        st.table(pd.DataFrame({
            "Item": [
                "Annual maintenance",
                "Net annual savings",
                f"Battery replacements over {lifespan} years",
            ],
            "Amount": [
                f"${result['maintenance_cost']:,}",
                f"${result['net_annual_savings']:,}",
                f"${result['battery_replacement_cost']:,}",
            ],
        }))

        st.subheader("Financing Options")
        financing = result["financing_options"]
        loans = [option for key, option in financing.items() if key != "cash_payback"]
        st.table(pd.DataFrame({
            "Option": [f"{loan['term']}-year loan" for loan in loans],
            "Monthly Payment": [f"${loan['monthly_payment']:,}" for loan in loans],
            "Total Paid": [f"${loan['total_payment']:,}" for loan in loans],
            "Interest Rate": [f"{loan['interest_rate']:.0%}" for loan in loans],
        }))
        if financing["cash_payback"] is not None:
            st.info(f"Paying cash, your bill savings cover the net cost in about **{financing['cash_payback']} months**.")
        else:
            st.warning("Your current bill is too small for savings to recover a cash purchase.")

    with tab_environmental:
        col_e1, col_e2 = st.columns(2)
        with col_e1:
            st.metric("CO₂ Avoided per Year", f"{result['co2_reduction']:,} kg")
        with col_e2:
            st.metric(f"CO₂ Avoided over {lifespan} years", f"{result['co2_reduction'] * lifespan / 1000:,.1f} t")
        st.caption(f"Based on {DEFAULT_MARKET.co2_factor} kg CO₂ per kWh of grid electricity replaced.")

    st.markdown("---")
    st.subheader("Download Your Plan")
    col_pdf1, col_pdf2 = st.columns(2)
    with col_pdf1:
        customer_name = st.text_input("Your name", value="")
    with col_pdf2:
        company_name = st.text_input("Installer / company name", value="SolarAfrica Planner")

    if st.button("Generate PDF plan"):
        with st.spinner("Generating plan..."):
            st.session_state.pdf_bytes = generate_plan_pdf(
                data, result,
                customer_name=customer_name or "Valued Customer",
                company_name=company_name or "SolarAfrica Planner"
            )

    if st.session_state.get("pdf_bytes"):
        st.download_button(
            label="Download PDF",
            data=st.session_state.pdf_bytes,
            file_name=f"solar_plan_{data['category'].lower()}.pdf",
            mime="application/pdf"
        )

    col_back, col_restart = st.columns(2)
    with col_back:
        st.button("← Adjust inputs", on_click=_go_to, args=(1,))
    with col_restart:
        st.button("Start a new plan", on_click=_reset)

st.markdown("---")
st.caption("Estimates use typical African market prices and tariffs. This is a planning tool, not an installer quotation.")
