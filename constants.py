"""Constants for solar system sizing and financial calculations.

Pricing reflects African markets: import duties, logistics and installation
complexity are folded into the per-unit costs.
"""

from dataclasses import dataclass, field
from types import MappingProxyType

CATEGORIES = ("HOME", "BUSINESS", "FARM")

# Component pricing (USD)
PANEL_COST_PER_KW = 1200
BATTERY_COST_PER_KWH = 450
INVERTER_COST_PER_KW = 350
INSTALLATION_COST_PERCENTAGE = 0.35  # of panels + battery + inverter
MAINTENANCE_COST_PERCENTAGE = 0.02  # of upfront cost, per year

# System design
SYSTEM_EFFICIENCY = 0.78
BATTERY_DAYS = 3  # days of autonomy, outages are frequent
SYSTEM_LIFESPAN = 20  # years
BATTERY_REPLACEMENT_YEARS = 8
PANEL_SAFETY_MARGIN = 1.2
DEPTH_OF_DISCHARGE_FACTOR = 1.25
INVERTER_OVERSIZE_FACTOR = 1.2
BATTERY_REPLACEMENT_COST_FACTOR = 0.7  # replacement batteries are cheaper

# Incentives and financing
GOVERNMENT_INCENTIVE = 0.15
FINANCING_INTEREST_RATE = 0.12  # annual
LOAN_TERMS_YEARS = (5, 10)

CO2_FACTOR = 0.6  # kg CO2 per kWh, coal-heavy grids

# Progressive monthly tariffs: rates in USD/kWh, threshold in kWh/month
ELECTRICITY_RATES = {
    "HOME": {"base_rate": 0.08, "tier_rate": 0.18, "tier_threshold": 200},
    "BUSINESS": {"base_rate": 0.12, "tier_rate": 0.22, "tier_threshold": 500},
    "FARM": {"base_rate": 0.06, "tier_rate": 0.15, "tier_threshold": 1000},
}

CATEGORY_DESCRIPTIONS = {
    "HOME": "Household lighting, appliances and electronics",
    "BUSINESS": "Shops, offices and small commercial sites",
    "FARM": "Irrigation pumps, cold storage and farm equipment",
}

# Average peak-sun-hours per day
SUNLIGHT_HOURS = {
    "Nigeria": 5.5,
    "Kenya": 6.2,
    "South Africa": 5.8,
    "Ghana": 5.4,
    "Tanzania": 6.0,
    "Uganda": 5.9,
    "Rwanda": 5.7,
    "Ethiopia": 6.1,
    "Morocco": 5.9,
    "Egypt": 6.8,
    "Senegal": 5.6,
    "Mali": 6.3,
    "Burkina Faso": 6.0,
    "Ivory Coast": 5.3,
}
DEFAULT_SUNLIGHT_HOURS = 5.5

DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365
MONTHS_PER_YEAR = 12


def _frozen_rates(rates: dict) -> MappingProxyType:
    return MappingProxyType({k: MappingProxyType(dict(v)) for k, v in rates.items()})


@dataclass(frozen=True)
class MarketConfig:
    """Pricing and design assumptions for one market.

    The calculation functions take one of these instead of reading the
    module constants, so an alternate market can be modelled with
    ``dataclasses.replace(DEFAULT_MARKET, ...)``.
    """

    panel_cost_per_kw: float = PANEL_COST_PER_KW
    battery_cost_per_kwh: float = BATTERY_COST_PER_KWH
    inverter_cost_per_kw: float = INVERTER_COST_PER_KW
    installation_cost_percentage: float = INSTALLATION_COST_PERCENTAGE
    maintenance_cost_percentage: float = MAINTENANCE_COST_PERCENTAGE
    system_efficiency: float = SYSTEM_EFFICIENCY
    battery_days: float = BATTERY_DAYS
    system_lifespan: int = SYSTEM_LIFESPAN
    battery_replacement_years: int = BATTERY_REPLACEMENT_YEARS
    panel_safety_margin: float = PANEL_SAFETY_MARGIN
    depth_of_discharge_factor: float = DEPTH_OF_DISCHARGE_FACTOR
    inverter_oversize_factor: float = INVERTER_OVERSIZE_FACTOR
    battery_replacement_cost_factor: float = BATTERY_REPLACEMENT_COST_FACTOR
    government_incentive: float = GOVERNMENT_INCENTIVE
    financing_interest_rate: float = FINANCING_INTEREST_RATE
    loan_terms_years: tuple = LOAN_TERMS_YEARS
    co2_factor: float = CO2_FACTOR
    electricity_rates: MappingProxyType = field(
        default_factory=lambda: _frozen_rates(ELECTRICITY_RATES)
    )

    def __post_init__(self):
        # Accept plain dicts from callers but keep the stored table read-only
        if not isinstance(self.electricity_rates, MappingProxyType):
            object.__setattr__(self, "electricity_rates", _frozen_rates(self.electricity_rates))


DEFAULT_MARKET = MarketConfig()
