"""
Financial calculations for a rooftop installation.
Supports grid resale and self-consumption scenarios.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List

from .config import DEFAULT_CONFIG, EstimatorConfig

logger = logging.getLogger(__name__)

RESALE = 'resale'
SELF_CONSUMPTION = 'self_consumption'


@dataclass
class YearProjection:
    """One year of the discounted cash-flow projection."""
    year: int
    production_kwh: float
    price_per_kwh: float
    revenue: float
    profit: float
    discounted_profit: float
    cumulative_discounted_profit: float


@dataclass
class ScenarioResult:
    """Results for one revenue scenario."""
    name: str
    price_per_kwh: float
    gross_revenue: float
    net_revenue: float  # Gross revenue minus maintenance
    simple_payback_years: float
    discounted_profit: float  # Sum of discounted yearly profits
    net_benefit: float  # Discounted profit minus installation cost, clamped
    yearly: List[YearProjection] = field(default_factory=list)


@dataclass
class InstallationCost:
    """Installation cost before and after incentives."""
    gross_cost: float
    transition_bonus: float
    tax_credit: float
    vat_reduction: float
    regional_bonus: float
    net_cost: float
    annual_maintenance: float

    @property
    def total_incentives(self) -> float:
        return self.transition_bonus + self.tax_credit + self.vat_reduction + self.regional_bonus


@dataclass
class FinancialProjection:
    """Both revenue scenarios plus cost and carbon figures."""
    installation: InstallationCost
    resale: ScenarioResult
    self_consumption: ScenarioResult
    carbon_offset_kg: float
    electricity_price: float
    analysis_years: int

    @property
    def net_benefit(self) -> float:
        """Headline net benefit over the analysis horizon (self-consumption)."""
        return self.self_consumption.net_benefit

    @property
    def payback_years(self) -> float:
        return self.self_consumption.simple_payback_years


def _positive(value) -> bool:
    try:
        return math.isfinite(value) and value > 0
    except TypeError:
        return False


def calculate_transition_bonus(peak_power_kwc: float, config: EstimatorConfig = DEFAULT_CONFIG) -> float:
    """One-time incentive from the tiered schedule by power bracket."""
    for max_kwc, amount in config.incentive_tiers:
        if peak_power_kwc <= max_kwc:
            return amount
    return config.incentive_above_tiers


def calculate_installation_cost(
    peak_power_kwc: float,
    config: EstimatorConfig = DEFAULT_CONFIG
) -> InstallationCost:
    """
    Calculate installation cost net of incentives.

    Args:
        peak_power_kwc: Installed peak power in kWc
        config: Estimator constants

    Returns:
        InstallationCost with each incentive broken out
    """
    gross_cost = max(0.0, config.base_installation_cost + peak_power_kwc * config.installation_cost_per_kwc)
    transition_bonus = max(0.0, calculate_transition_bonus(peak_power_kwc, config))
    tax_credit = min(peak_power_kwc * config.tax_credit_per_kwc, config.tax_credit_cap)
    regional_bonus = min(peak_power_kwc * config.regional_bonus_per_kwc, config.regional_bonus_cap)
    # Difference between standard and reduced VAT
    vat_reduction = max(0.0, gross_cost * (config.standard_vat_rate - config.reduced_vat_rate))

    net_cost = max(0.0, gross_cost - transition_bonus - tax_credit - vat_reduction - regional_bonus)

    return InstallationCost(
        gross_cost=gross_cost,
        transition_bonus=transition_bonus,
        tax_credit=tax_credit,
        vat_reduction=vat_reduction,
        regional_bonus=regional_bonus,
        net_cost=net_cost,
        annual_maintenance=max(0.0, peak_power_kwc * config.maintenance_cost_per_kwc)
    )


def calculate_scenario(
    name: str,
    annual_production_kwh: float,
    price_per_kwh: float,
    installation: InstallationCost,
    config: EstimatorConfig = DEFAULT_CONFIG
) -> ScenarioResult:
    """
    Calculate revenue, payback and discounted net benefit for one scenario.

    Args:
        name: Scenario name
        annual_production_kwh: Year-one production
        price_per_kwh: Year-one price received per kWh (€)
        installation: Installation and maintenance costs
        config: Estimator constants

    Returns:
        ScenarioResult with a year-by-year projection
    """
    gross_revenue = max(0.0, min(annual_production_kwh * price_per_kwh, config.max_annual_revenue))
    net_revenue = gross_revenue - installation.annual_maintenance

    # Simple payback, conservative ceiling when the system never pays back
    if net_revenue > 0:
        simple_payback = installation.net_cost / net_revenue
    else:
        simple_payback = float(config.analysis_years)

    # Discounted profit with degradation and price inflation
    yearly = []
    total_discounted = 0.0
    current_production = annual_production_kwh
    current_price = price_per_kwh

    for year in range(1, config.analysis_years + 1):
        current_production *= (1 - config.degradation_rate)
        current_price *= (1 + config.price_inflation_rate)

        year_revenue = max(0.0, min(
            current_production * min(current_price, config.max_price_per_kwh),
            config.max_annual_revenue
        ))
        year_profit = max(0.0, year_revenue - installation.annual_maintenance)
        discounted = year_profit / (1 + config.discount_rate) ** year
        total_discounted += discounted

        yearly.append(YearProjection(
            year=year,
            production_kwh=current_production,
            price_per_kwh=current_price,
            revenue=year_revenue,
            profit=year_profit,
            discounted_profit=discounted,
            cumulative_discounted_profit=total_discounted - installation.net_cost
        ))

    net_benefit = max(0.0, min(total_discounted - installation.net_cost, config.max_net_benefit))

    return ScenarioResult(
        name=name,
        price_per_kwh=price_per_kwh,
        gross_revenue=gross_revenue,
        net_revenue=net_revenue,
        simple_payback_years=simple_payback,
        discounted_profit=total_discounted,
        net_benefit=net_benefit,
        yearly=yearly
    )


def calculate_carbon_offset(annual_production_kwh: float, config: EstimatorConfig = DEFAULT_CONFIG) -> float:
    """Yearly avoided CO2 in kg."""
    if not _positive(annual_production_kwh):
        return 0.0
    return max(0.0, min(
        annual_production_kwh * config.grid_emission_factor_kg_per_kwh,
        config.max_carbon_offset_kg
    ))


def _empty_scenario(name: str, price_per_kwh: float, config: EstimatorConfig) -> ScenarioResult:
    return ScenarioResult(
        name=name,
        price_per_kwh=price_per_kwh,
        gross_revenue=0.0,
        net_revenue=0.0,
        simple_payback_years=float(config.analysis_years),
        discounted_profit=0.0,
        net_benefit=0.0
    )


def empty_projection(electricity_price: float = 0.0, config: EstimatorConfig = DEFAULT_CONFIG) -> FinancialProjection:
    """All-zero projection used when inputs cannot support a calculation."""
    price = electricity_price if _positive(electricity_price) else 0.0
    return FinancialProjection(
        installation=InstallationCost(
            gross_cost=0.0,
            transition_bonus=0.0,
            tax_credit=0.0,
            vat_reduction=0.0,
            regional_bonus=0.0,
            net_cost=0.0,
            annual_maintenance=0.0
        ),
        resale=_empty_scenario(RESALE, price * config.resale_markdown, config),
        self_consumption=_empty_scenario(SELF_CONSUMPTION, price, config),
        carbon_offset_kg=0.0,
        electricity_price=price,
        analysis_years=config.analysis_years
    )


def calculate_financial_projection(
    annual_production_kwh: float,
    peak_power_kwc: float,
    electricity_price: float,
    config: EstimatorConfig = DEFAULT_CONFIG
) -> FinancialProjection:
    """
    Calculate financials for resale and self-consumption of the production.

    Args:
        annual_production_kwh: Estimated yearly production (kWh)
        peak_power_kwc: Installed peak power (kWc)
        electricity_price: Retail electricity price (€/kWh)
        config: Estimator constants

    Returns:
        FinancialProjection; all-zero when any input is missing or not positive
    """
    inputs = {
        'annual_production_kwh': annual_production_kwh,
        'peak_power_kwc': peak_power_kwc,
        'electricity_price': electricity_price,
    }
    invalid = [name for name, value in inputs.items() if not _positive(value)]
    if invalid:
        logger.warning("Non-positive financial inputs %s, returning empty projection", invalid)
        return empty_projection(electricity_price, config)

    installation = calculate_installation_cost(peak_power_kwc, config)

    resale = calculate_scenario(
        RESALE,
        annual_production_kwh,
        electricity_price * config.resale_markdown,
        installation,
        config
    )
    self_consumption = calculate_scenario(
        SELF_CONSUMPTION,
        annual_production_kwh,
        electricity_price,
        installation,
        config
    )

    return FinancialProjection(
        installation=installation,
        resale=resale,
        self_consumption=self_consumption,
        carbon_offset_kg=calculate_carbon_offset(annual_production_kwh, config),
        electricity_price=electricity_price,
        analysis_years=config.analysis_years
    )
