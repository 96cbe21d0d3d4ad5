"""
Unit tests for utils.py - solar sizing and financial calculations.

Covers:
- Input validation
- Sizing, costs and the tiered tariff
- Payback, ROI and financing
- The assembled calculation result
- Market configuration overrides
"""
import copy
import dataclasses
import math

import pytest

from constants import DEFAULT_MARKET, DEFAULT_SUNLIGHT_HOURS
from utils import (
    calculate_battery_replacement_cost,
    calculate_co2_reduction,
    calculate_electricity_bill,
    calculate_financing_options,
    calculate_loan_payment,
    calculate_payback_period,
    calculate_payback_timeline,
    calculate_roi,
    calculate_solar_system,
    get_location_sunlight,
    is_payback_reached,
    round_half_up,
    run_calculation,
    validate_calculation_input,
)


def led_request(**overrides):
    data = {
        "category": "HOME",
        "location": "Lagos",
        "sunlight_hours": 5.5,
        "devices": [
            {"type": "LED Light Bulb", "quantity": 10, "hours_per_day": 5, "power_consumption": 10},
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture
def led_result():
    return calculate_solar_system(led_request())


# =============================================================================
# Rounding
# =============================================================================

class TestRoundHalfUp:

    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1

    def test_negative_halves_round_towards_positive(self):
        assert round_half_up(-2.5) == -2

    def test_integer_result_when_no_digits(self):
        assert isinstance(round_half_up(3.2), int)

    def test_one_decimal(self):
        assert round_half_up(1.25, 1) == pytest.approx(1.3)


# =============================================================================
# Validation
# =============================================================================

class TestValidateCalculationInput:

    def test_valid_input_has_no_errors(self):
        assert validate_calculation_input(led_request()) == []

    def test_reports_every_problem_at_once(self):
        data = {"category": "X", "location": "Kenya", "sunlight_hours": -1, "devices": []}
        errors = validate_calculation_input(data)
        assert errors == [
            "Valid category is required (HOME, BUSINESS, or FARM)",
            "Sunlight hours must be greater than 0 and at most 12",
            "At least one device is required",
        ]

    def test_missing_location(self):
        errors = validate_calculation_input(led_request(location="   "))
        assert errors == ["Location is required"]

    @pytest.mark.parametrize("hours", [0, 12.5, "6", None, True, float("nan")])
    def test_sunlight_hours_out_of_range_or_not_numeric(self, hours):
        errors = validate_calculation_input(led_request(sunlight_hours=hours))
        assert errors == ["Sunlight hours must be greater than 0 and at most 12"]

    def test_sunlight_hours_upper_bound_is_inclusive(self):
        assert validate_calculation_input(led_request(sunlight_hours=12)) == []

    def test_device_errors_are_numbered(self):
        devices = [
            {"type": "Fan", "quantity": 1, "hours_per_day": 4, "power_consumption": 75},
            {"type": "", "quantity": 1.5, "hours_per_day": 25, "power_consumption": 0},
        ]
        errors = validate_calculation_input(led_request(devices=devices))
        assert errors == [
            "Device 2: Type is required",
            "Device 2: Quantity must be a whole number greater than 0",
            "Device 2: Hours per day must be greater than 0 and at most 24",
            "Device 2: Power consumption must be greater than 0",
        ]

    def test_non_dict_device_entry(self):
        errors = validate_calculation_input(led_request(devices=["Fan"]))
        assert errors == ["Device 1: Invalid device entry"]

    def test_full_day_usage_is_allowed(self):
        devices = [{"type": "Refrigerator", "quantity": 1, "hours_per_day": 24, "power_consumption": 150}]
        assert validate_calculation_input(led_request(devices=devices)) == []


class TestRunCalculation:

    def test_invalid_input_returns_errors_and_no_result(self):
        result, errors = run_calculation(led_request(devices=[]))
        assert result is None
        assert errors == ["At least one device is required"]

    def test_valid_input_returns_result(self):
        result, errors = run_calculation(led_request())
        assert errors == []
        assert result == calculate_solar_system(led_request())


# =============================================================================
# Sizing and costs
# =============================================================================

class TestSmallHomeSystem:
    """Ten 10 W LED bulbs for five hours a day at 5.5 sun-hours."""

    def test_sizing(self, led_result):
        assert led_result["energy_demand"] == pytest.approx(0.5)
        assert led_result["panel_size"] == 1
        assert led_result["battery_capacity"] == 2
        assert led_result["inverter_size"] == 1

    def test_costs(self, led_result):
        assert led_result["cost_breakdown"] == {
            "panels": 168,
            "battery": 844,
            "inverter": 59,
            "installation": 375,
        }
        assert led_result["upfront_cost"] == 1445
        assert led_result["net_upfront_cost"] == 1228

    def test_savings(self, led_result):
        assert led_result["current_electricity_bill"] == 1
        assert led_result["annual_savings"] == 14
        assert led_result["maintenance_cost"] == 29
        assert led_result["net_annual_savings"] == -14
        assert led_result["battery_replacement_cost"] == 1181

    def test_never_pays_back(self, led_result):
        assert led_result["payback_period"] == 20
        assert led_result["roi"] == -112
        assert not is_payback_reached(led_result)

    def test_financing(self, led_result):
        financing = led_result["financing_options"]
        assert financing["loan_5_year"]["monthly_payment"] == 27
        assert financing["loan_5_year"]["term"] == 5
        assert financing["loan_10_year"]["monthly_payment"] == 18
        assert financing["loan_10_year"]["interest_rate"] == 0.12
        assert financing["cash_payback"] == 1023

    def test_incentive_is_reported(self, led_result):
        assert led_result["government_incentive"] == 0.15

    def test_timeline_spans_lifespan(self, led_result):
        timeline = led_result["payback_timeline"]
        assert len(timeline) == DEFAULT_MARKET.system_lifespan + 1
        assert timeline[0] == -1228


class TestSolarSystemProperties:

    def test_deterministic(self):
        assert calculate_solar_system(led_request()) == calculate_solar_system(led_request())

    def test_input_is_not_mutated(self):
        data = led_request()
        snapshot = copy.deepcopy(data)
        calculate_solar_system(data)
        assert data == snapshot

    def test_more_load_never_shrinks_the_system(self):
        small = calculate_solar_system(led_request())
        devices = led_request()["devices"] + [
            {"type": "Refrigerator", "quantity": 1, "hours_per_day": 24, "power_consumption": 150}
        ]
        large = calculate_solar_system(led_request(devices=devices))
        assert large["panel_size"] >= small["panel_size"]
        assert large["battery_capacity"] >= small["battery_capacity"]
        assert large["upfront_cost"] > small["upfront_cost"]

    def test_more_sunlight_never_grows_panels(self):
        devices = [{"type": "Water Pump", "quantity": 2, "hours_per_day": 6, "power_consumption": 500}]
        cloudy = calculate_solar_system(led_request(devices=devices, sunlight_hours=3))
        sunny = calculate_solar_system(led_request(devices=devices, sunlight_hours=7))
        assert sunny["panel_size"] <= cloudy["panel_size"]

    def test_inverter_follows_panel_size(self):
        devices = [{"type": "Air Conditioner", "quantity": 2, "hours_per_day": 8, "power_consumption": 1200}]
        result = calculate_solar_system(led_request(devices=devices))
        assert result["inverter_size"] >= result["panel_size"]
        assert result["inverter_size"] <= math.ceil(result["panel_size"] * 1.2)

    def test_net_cost_applies_incentive(self):
        devices = [{"type": "TV", "quantity": 3, "hours_per_day": 6, "power_consumption": 100}]
        result = calculate_solar_system(led_request(devices=devices))
        assert abs(result["net_upfront_cost"] - result["upfront_cost"] * 0.85) <= 1

    def test_breakdown_sums_to_upfront_within_rounding(self, led_result):
        assert abs(sum(led_result["cost_breakdown"].values()) - led_result["upfront_cost"]) <= 2

    def test_system_pays_back_with_expensive_grid(self):
        market = dataclasses.replace(
            DEFAULT_MARKET,
            battery_cost_per_kwh=0,
            electricity_rates={"BUSINESS": {"base_rate": 1.0, "tier_rate": 1.0, "tier_threshold": 500}},
        )
        devices = [{"type": "Laptop", "quantity": 6, "hours_per_day": 8, "power_consumption": 65}]
        result = calculate_solar_system(led_request(category="BUSINESS", devices=devices), market)
        assert result["payback_period"] < market.system_lifespan
        assert is_payback_reached(result)
        assert result["roi"] > 0
        assert result["payback_timeline"][0] < 0 <= result["payback_timeline"][-1]


# =============================================================================
# Tariff
# =============================================================================

class TestElectricityBill:

    def test_below_threshold_uses_base_rate(self):
        assert calculate_electricity_bill(100, "HOME") == pytest.approx(8.0)

    def test_at_threshold(self):
        assert calculate_electricity_bill(200, "HOME") == pytest.approx(16.0)

    def test_above_threshold_uses_tier_rate(self):
        assert calculate_electricity_bill(201, "HOME") == pytest.approx(16.18)

    def test_farm_threshold(self):
        assert calculate_electricity_bill(1100, "FARM") == pytest.approx(60 + 15)

    def test_unknown_category_raises(self):
        with pytest.raises(ValueError, match="Unknown category"):
            calculate_electricity_bill(100, "INDUSTRY")


# =============================================================================
# Payback, ROI and financing
# =============================================================================

class TestPayback:

    def test_simple_payback(self):
        assert calculate_payback_period(1000, 300, 0) == 4

    def test_battery_replacement_delays_payback(self):
        # 400 is charged against year 8
        assert calculate_payback_period(2300, 300, 1000) == 9

    def test_capped_at_lifespan(self):
        assert calculate_payback_period(10000, 100, 0) == 20
        assert calculate_payback_period(1000, -50, 0) == 20

    def test_timeline_matches_payback_year(self):
        timeline = calculate_payback_timeline(2300, 300, 1000)
        assert timeline[0] == -2300
        assert timeline[8] == pytest.approx(-300)
        assert timeline[9] >= 0
        assert timeline[8] < 0

    def test_replacement_schedule(self):
        assert calculate_battery_replacement_cost(1000) == pytest.approx(1400)


class TestRoi:

    def test_positive_roi(self):
        assert calculate_roi(1000, 200, 0) == pytest.approx(300)

    def test_zero_costs_has_no_roi(self):
        assert calculate_roi(0, 100, 0) is None


class TestFinancing:

    def test_loan_payment_amortizes(self):
        assert calculate_loan_payment(10000, 0.12, 60) == pytest.approx(222.44, abs=0.01)

    def test_zero_rate_is_straight_division(self):
        assert calculate_loan_payment(1200, 0, 12) == pytest.approx(100)

    def test_zero_term(self):
        assert calculate_loan_payment(1200, 0.12, 0) == 0

    def test_no_savings_means_no_cash_payback(self):
        options = calculate_financing_options(1000, 0)
        assert options["cash_payback"] is None
        assert set(options) == {"loan_5_year", "loan_10_year", "cash_payback"}

    def test_total_payment_covers_principal(self):
        options = calculate_financing_options(5000, 1200)
        assert options["loan_10_year"]["total_payment"] > 5000
        assert options["cash_payback"] == 50


def test_co2_reduction():
    assert calculate_co2_reduction(0.5) == pytest.approx(109.5)


# =============================================================================
# Location lookup
# =============================================================================

class TestLocationSunlight:

    def test_known_country(self):
        assert get_location_sunlight("Kenya") == {
            "location": "Kenya",
            "average_sunlight_hours": 6.2,
            "unit": "hours/day",
        }

    def test_unknown_location_falls_back(self):
        assert get_location_sunlight("Atlantis")["average_sunlight_hours"] == DEFAULT_SUNLIGHT_HOURS

    def test_blank_location_raises(self):
        with pytest.raises(ValueError):
            get_location_sunlight("  ")


# =============================================================================
# Market configuration
# =============================================================================

class TestMarketConfig:

    def test_market_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_MARKET.panel_cost_per_kw = 1

    def test_tariff_table_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_MARKET.electricity_rates["HOME"]["base_rate"] = 1

    def test_cheaper_panels_lower_cost(self):
        cheap = dataclasses.replace(DEFAULT_MARKET, panel_cost_per_kw=600)
        default_result = calculate_solar_system(led_request())
        cheap_result = calculate_solar_system(led_request(), cheap)
        assert cheap_result["cost_breakdown"]["panels"] == 84
        assert cheap_result["upfront_cost"] < default_result["upfront_cost"]

    def test_custom_tariff_dict_is_accepted(self):
        rates = {"HOME": {"base_rate": 0.5, "tier_rate": 0.5, "tier_threshold": 100}}
        market = dataclasses.replace(DEFAULT_MARKET, electricity_rates=rates)
        assert calculate_electricity_bill(10, "HOME", market) == pytest.approx(5.0)
        with pytest.raises(ValueError):
            calculate_electricity_bill(10, "FARM", market)

    def test_no_incentive(self):
        market = dataclasses.replace(DEFAULT_MARKET, government_incentive=0)
        result = calculate_solar_system(led_request(), market)
        assert result["net_upfront_cost"] == result["upfront_cost"]
