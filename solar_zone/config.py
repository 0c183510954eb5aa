"""
Estimator configuration.
All constants used by the zone metrics and financial pipelines live here.
Defaults describe a residential installation in France (2024 market).
"""

from dataclasses import dataclass, field, replace as dataclass_replace
from typing import Tuple


@dataclass(frozen=True)
class EstimatorConfig:
    """Constants for panel layout, energy, cost and incentive calculations."""

    # Panel layout
    utilization_rate: float = 0.9  # Share of the drawn area that is installable
    panel_width_m: float = 1.7
    panel_height_m: float = 1.0
    panel_power_w: float = 450.0  # High-efficiency panels (2024)

    # Energy
    default_efficiency_factor: float = 0.85
    pitch_match_tolerance_degrees: float = 5.0
    default_pitch_degrees: float = 20.0

    # Drawing
    snap_tolerance_m: float = 3.0

    # Installation and maintenance (€)
    base_installation_cost: float = 8000.0
    installation_cost_per_kwc: float = 1300.0
    maintenance_cost_per_kwc: float = 20.0

    # Incentives: (max kWc, one-time bonus €), last tier applies above
    incentive_tiers: Tuple[Tuple[float, float], ...] = field(
        default=((3.0, 2200.0), (9.0, 1800.0), (36.0, 1000.0))
    )
    incentive_above_tiers: float = 800.0
    tax_credit_per_kwc: float = 450.0
    tax_credit_cap: float = 2400.0
    regional_bonus_per_kwc: float = 200.0
    regional_bonus_cap: float = 1000.0
    standard_vat_rate: float = 0.20
    reduced_vat_rate: float = 0.055

    # Projection
    degradation_rate: float = 0.005
    price_inflation_rate: float = 0.03
    discount_rate: float = 0.04
    analysis_years: int = 25
    resale_markdown: float = 0.6  # Share of the retail price paid for grid resale

    # Sanity caps
    max_price_per_kwh: float = 0.50
    max_annual_revenue: float = 25000.0
    max_net_benefit: float = 500000.0
    max_carbon_offset_kg: float = 10000.0

    # Carbon (French grid, RTE 2024)
    grid_emission_factor_kg_per_kwh: float = 0.0581

    @property
    def panel_area_m2(self) -> float:
        return self.panel_width_m * self.panel_height_m

    def replace(self, **overrides) -> "EstimatorConfig":
        """Return a copy with some constants overridden (regional variants, tests)."""
        return dataclass_replace(self, **overrides)


DEFAULT_CONFIG = EstimatorConfig()
