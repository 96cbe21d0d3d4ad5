"""Solar system sizing and financial calculations.

Every function here is pure: results depend only on the arguments and the
market configuration. Intermediate values stay as floats; rounding happens
once, when ``calculate_solar_system`` assembles its result.
"""

import logging
import math
from numbers import Number

from constants import (
    CATEGORIES,
    DAYS_PER_MONTH,
    DAYS_PER_YEAR,
    DEFAULT_MARKET,
    DEFAULT_SUNLIGHT_HOURS,
    MONTHS_PER_YEAR,
    SUNLIGHT_HOURS,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, so 2.5 -> 3 and -2.5 -> -2."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def _is_number(value) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool) and math.isfinite(value)


def get_location_sunlight(location: str) -> dict:
    """Look up average peak-sun-hours for a location."""
    if not location or not location.strip():
        raise ValueError("Location parameter is required")
    location = location.strip()
    return {
        "location": location,
        "average_sunlight_hours": SUNLIGHT_HOURS.get(location, DEFAULT_SUNLIGHT_HOURS),
        "unit": "hours/day",
    }


def validate_calculation_input(data: dict) -> list:
    """Check a calculation request and return every problem found.

    An empty list means the input is valid.
    """
    errors = []

    category = data.get("category")
    if category not in CATEGORIES:
        errors.append("Valid category is required (HOME, BUSINESS, or FARM)")

    location = data.get("location")
    if not isinstance(location, str) or not location.strip():
        errors.append("Location is required")

    sunlight_hours = data.get("sunlight_hours")
    if not _is_number(sunlight_hours) or not 0 < sunlight_hours <= 12:
        errors.append("Sunlight hours must be greater than 0 and at most 12")

    devices = data.get("devices")
    if not isinstance(devices, (list, tuple)) or len(devices) == 0:
        errors.append("At least one device is required")
        return errors

    for index, device in enumerate(devices, start=1):
        if not isinstance(device, dict):
            errors.append(f"Device {index}: Invalid device entry")
            continue

        device_type = device.get("type")
        if not isinstance(device_type, str) or not device_type.strip():
            errors.append(f"Device {index}: Type is required")

        quantity = device.get("quantity")
        if not _is_number(quantity) or quantity <= 0 or int(quantity) != quantity:
            errors.append(f"Device {index}: Quantity must be a whole number greater than 0")

        hours = device.get("hours_per_day")
        if not _is_number(hours) or not 0 < hours <= 24:
            errors.append(f"Device {index}: Hours per day must be greater than 0 and at most 24")

        power = device.get("power_consumption")
        if not _is_number(power) or power <= 0:
            errors.append(f"Device {index}: Power consumption must be greater than 0")

    return errors


def calculate_daily_consumption(devices: list) -> float:
    """Total daily consumption of all devices in Wh."""
    return sum(
        d["power_consumption"] * d["quantity"] * d["hours_per_day"]
        for d in devices
    )


def calculate_panel_size(energy_demand: float, sunlight_hours: float, market=DEFAULT_MARKET) -> float:
    """Panel capacity (kW) derated for system losses, plus a safety margin."""
    required = (energy_demand / sunlight_hours) / market.system_efficiency
    return required * market.panel_safety_margin


def calculate_battery_capacity(energy_demand: float, market=DEFAULT_MARKET) -> float:
    """Battery capacity (kWh) for the days of autonomy with depth-of-discharge headroom."""
    return energy_demand * market.battery_days * market.depth_of_discharge_factor


def calculate_inverter_size(panel_size: float, market=DEFAULT_MARKET) -> float:
    return panel_size * market.inverter_oversize_factor


def calculate_costs(
    panel_size: float,
    battery_capacity: float,
    inverter_size: float,
    market=DEFAULT_MARKET
) -> dict:
    """Cost of each component plus installation, unrounded."""
    panels = panel_size * market.panel_cost_per_kw
    battery = battery_capacity * market.battery_cost_per_kwh
    inverter = inverter_size * market.inverter_cost_per_kw
    installation = (panels + battery + inverter) * market.installation_cost_percentage

    return {
        "panels": panels,
        "battery": battery,
        "inverter": inverter,
        "installation": installation
    }


def calculate_net_upfront_cost(upfront_cost: float, market=DEFAULT_MARKET) -> float:
    """Upfront cost after the government incentive."""
    return upfront_cost * (1 - market.government_incentive)


def calculate_electricity_bill(monthly_energy_demand: float, category: str, market=DEFAULT_MARKET) -> float:
    """Monthly grid bill under the category's two-band tariff.

    Consumption up to the threshold is billed at the base rate, the rest at
    the higher tier rate.
    """
    try:
        rates = market.electricity_rates[category]
    except KeyError:
        raise ValueError(f"Unknown category: {category!r}") from None

    threshold = rates["tier_threshold"]
    if monthly_energy_demand <= threshold:
        return monthly_energy_demand * rates["base_rate"]

    base_amount = threshold * rates["base_rate"]
    tier_amount = (monthly_energy_demand - threshold) * rates["tier_rate"]
    return base_amount + tier_amount


def calculate_battery_replacement_cost(battery_cost: float, market=DEFAULT_MARKET) -> float:
    """Cost of all battery replacements over the system lifespan."""
    replacements = math.floor(market.system_lifespan / market.battery_replacement_years)
    return replacements * battery_cost * market.battery_replacement_cost_factor


def _replacement_deduction(year: int, battery_replacement_cost: float, market) -> float:
    """Amount charged against savings in ``year`` for a battery swap."""
    if year % market.battery_replacement_years == 0 and year < market.system_lifespan:
        events = market.system_lifespan / market.battery_replacement_years
        return battery_replacement_cost / events
    return 0.0


def calculate_payback_period(
    net_upfront_cost: float,
    net_annual_savings: float,
    battery_replacement_cost: float,
    market=DEFAULT_MARKET
) -> int:
    """Years until cumulative savings cover the net upfront cost.

    Battery replacements are deducted in the years they fall due. Capped at
    the system lifespan when savings never catch up.
    """
    cumulative_savings = 0.0
    year = 0
    while cumulative_savings < net_upfront_cost and year < market.system_lifespan:
        year += 1
        cumulative_savings += net_annual_savings
        cumulative_savings -= _replacement_deduction(year, battery_replacement_cost, market)
    return min(year, market.system_lifespan)


def calculate_payback_timeline(
    net_upfront_cost: float,
    net_annual_savings: float,
    battery_replacement_cost: float,
    market=DEFAULT_MARKET
) -> list:
    """Cumulative net position for years 0 to the end of the system lifespan.

    Year 0 is the net upfront outlay; later years follow the same savings and
    replacement schedule as ``calculate_payback_period``.
    """
    position = -net_upfront_cost
    timeline = [position]
    for year in range(1, market.system_lifespan + 1):
        position += net_annual_savings
        position -= _replacement_deduction(year, battery_replacement_cost, market)
        timeline.append(position)
    return timeline


def is_payback_reached(result: dict) -> bool:
    """Whether a calculated system actually breaks even within its lifespan.

    ``payback_period`` is capped at the lifespan, so a capped value alone
    does not say whether the investment was recovered.
    """
    return result["payback_timeline"][int(result["payback_period"])] >= 0


def calculate_roi(
    net_upfront_cost: float,
    net_annual_savings: float,
    battery_replacement_cost: float,
    market=DEFAULT_MARKET
):
    """Lifetime return on investment in percent, or None when costs are zero."""
    total_savings = net_annual_savings * market.system_lifespan
    total_costs = net_upfront_cost + battery_replacement_cost
    if total_costs == 0:
        return None
    return (total_savings - total_costs) / total_costs * 100


def calculate_co2_reduction(energy_demand: float, market=DEFAULT_MARKET) -> float:
    """CO2 avoided per year (kg)."""
    return energy_demand * DAYS_PER_YEAR * market.co2_factor


def calculate_loan_payment(principal: float, annual_rate: float, term_months: int) -> float:
    """Monthly payment on an amortizing loan."""
    if term_months <= 0:
        return 0.0
    if annual_rate == 0:
        return principal / term_months
    r = annual_rate / MONTHS_PER_YEAR
    growth = (1 + r) ** term_months
    return principal * r * growth / (growth - 1)


def calculate_financing_options(net_upfront_cost: float, annual_savings: float, market=DEFAULT_MARKET) -> dict:
    """Loan schedules for each configured term plus a simple cash payback.

    ``cash_payback`` is the number of months of gross savings needed to cover
    the net cost, or None when there are no savings to pay it back with.
    """
    options = {}
    for term in market.loan_terms_years:
        months = term * MONTHS_PER_YEAR
        payment = calculate_loan_payment(net_upfront_cost, market.financing_interest_rate, months)
        options[f"loan_{term}_year"] = {
            "term": term,
            "monthly_payment": round_half_up(payment),
            "total_payment": round_half_up(payment * months),
            "interest_rate": market.financing_interest_rate
        }

    monthly_savings = annual_savings / MONTHS_PER_YEAR
    if monthly_savings > 0:
        options["cash_payback"] = round_half_up(net_upfront_cost / monthly_savings)
    else:
        options["cash_payback"] = None

    return options


def calculate_solar_system(data: dict, market=DEFAULT_MARKET) -> dict:
    """Size a solar system and project its finances.

    Args:
        data: Calculation input with category, location, sunlight_hours and
              devices. Must already pass ``validate_calculation_input``.
        market: Pricing and design assumptions

    Returns:
        Dict of sizing, costs and financial metrics, rounded for display
    """
    energy_demand = calculate_daily_consumption(data["devices"]) / 1000

    panel_size = calculate_panel_size(energy_demand, data["sunlight_hours"], market)
    battery_capacity = calculate_battery_capacity(energy_demand, market)
    inverter_size = calculate_inverter_size(panel_size, market)

    costs = calculate_costs(panel_size, battery_capacity, inverter_size, market)
    upfront_cost = sum(costs.values())
    net_upfront_cost = calculate_net_upfront_cost(upfront_cost, market)

    monthly_energy_demand = energy_demand * DAYS_PER_MONTH
    electricity_bill = calculate_electricity_bill(monthly_energy_demand, data["category"], market)
    annual_savings = electricity_bill * MONTHS_PER_YEAR
    maintenance_cost = upfront_cost * market.maintenance_cost_percentage
    net_annual_savings = annual_savings - maintenance_cost

    battery_replacement_cost = calculate_battery_replacement_cost(costs["battery"], market)

    payback_period = calculate_payback_period(
        net_upfront_cost, net_annual_savings, battery_replacement_cost, market
    )
    roi = calculate_roi(net_upfront_cost, net_annual_savings, battery_replacement_cost, market)
    co2_reduction = calculate_co2_reduction(energy_demand, market)
    financing_options = calculate_financing_options(net_upfront_cost, annual_savings, market)
    timeline = calculate_payback_timeline(
        net_upfront_cost, net_annual_savings, battery_replacement_cost, market
    )

    logger.debug(
        "Sized %.2f kWh/day %s system: %.2f kW panels, %.2f kWh battery, upfront %.0f",
        energy_demand, data["category"], panel_size, battery_capacity, upfront_cost
    )

    return {
        "energy_demand": round_half_up(energy_demand, 1),
        "panel_size": math.ceil(panel_size),
        "battery_capacity": math.ceil(battery_capacity),
        "inverter_size": math.ceil(inverter_size),
        "upfront_cost": round_half_up(upfront_cost),
        "net_upfront_cost": round_half_up(net_upfront_cost),
        "cost_breakdown": {name: round_half_up(cost) for name, cost in costs.items()},
        "current_electricity_bill": round_half_up(electricity_bill),
        "annual_savings": round_half_up(annual_savings),
        "maintenance_cost": round_half_up(maintenance_cost),
        "net_annual_savings": round_half_up(net_annual_savings),
        "battery_replacement_cost": round_half_up(battery_replacement_cost),
        "payback_period": round_half_up(payback_period, 1),
        "roi": round_half_up(roi) if roi is not None else None,
        "co2_reduction": round_half_up(co2_reduction),
        "financing_options": financing_options,
        "payback_timeline": [round_half_up(v) for v in timeline],
        "government_incentive": market.government_incentive
    }


def run_calculation(data: dict, market=DEFAULT_MARKET) -> tuple:
    """Validate ``data`` and calculate it if valid.

    Returns:
        (result, errors). ``result`` is None whenever ``errors`` is non-empty.
    """
    errors = validate_calculation_input(data)
    if errors:
        logger.info("Rejected calculation input with %d error(s): %s", len(errors), "; ".join(errors))
        return None, errors
    return calculate_solar_system(data, market), []
