"""Area -> zone metrics -> financial projection."""

from dataclasses import dataclass
from typing import Optional

from .config import DEFAULT_CONFIG, EstimatorConfig
from .financial_calcs import FinancialProjection, calculate_financial_projection
from .models import SolarPotential
from .zone_metrics import (
    ZoneMetrics,
    average_pitch,
    calculate_zone_metrics,
    extract_best_roof_segment,
    nearest_segment_pitch
)


@dataclass(frozen=True)
class ZoneEstimate:
    """Technical and financial figures published for a zone."""
    metrics: ZoneMetrics
    financials: FinancialProjection
    average_pitch_degrees: float
    azimuth_degrees: float
    perimeter_m: float = 0.0

    @property
    def area_m2(self) -> float:
        return self.metrics.area_m2


def estimate_zone(
    area_m2: float,
    solar_potential: Optional[SolarPotential],
    electricity_price: float,
    config: EstimatorConfig = DEFAULT_CONFIG,
    perimeter_m: float = 0.0
) -> ZoneEstimate:
    """
    Run the full estimate for a net zone area.

    Args:
        area_m2: Net zone area (holes already subtracted)
        solar_potential: Building solar potential, or None
        electricity_price: Last known retail price (€/kWh), live or fallback
        config: Estimator constants
        perimeter_m: Ring perimeter, carried through for display

    Returns:
        ZoneEstimate
    """
    segments = solar_potential.roof_segments if solar_potential else ()
    pitch = average_pitch(segments, config)
    azimuth = extract_best_roof_segment(segments)['azimuth']

    metrics = calculate_zone_metrics(
        area_m2, nearest_segment_pitch(pitch, segments), solar_potential, config
    )
    financials = calculate_financial_projection(
        metrics.estimated_energy_kwh,
        metrics.peak_power_kwc,
        electricity_price,
        config
    )

    return ZoneEstimate(
        metrics=metrics,
        financials=financials,
        average_pitch_degrees=pitch,
        azimuth_degrees=azimuth,
        perimeter_m=perimeter_m
    )


def estimate_whole_roof(
    solar_potential: SolarPotential,
    electricity_price: float,
    config: EstimatorConfig = DEFAULT_CONFIG
) -> ZoneEstimate:
    """Estimate over the API's maximum array area when no zone is drawn."""
    return estimate_zone(solar_potential.max_array_area_m2, solar_potential, electricity_price, config)
