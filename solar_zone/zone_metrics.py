"""
Zone metrics: usable area, panel count, peak power and yearly energy
for a drawn installation zone.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from .config import DEFAULT_CONFIG, EstimatorConfig
from .models import RoofSegmentStats, SolarPotential

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoneMetrics:
    """Technical metrics for one installation zone."""
    area_m2: float
    usable_area_m2: float
    number_of_panels: int
    peak_power_kwc: float
    estimated_energy_kwh: float
    efficiency_factor: float
    pitch_degrees: float

    @property
    def production_per_panel_kwh(self) -> float:
        if self.number_of_panels <= 0:
            return 0.0
        return self.estimated_energy_kwh / self.number_of_panels

    @property
    def production_per_m2_kwh(self) -> float:
        if self.usable_area_m2 <= 0:
            return 0.0
        return self.estimated_energy_kwh / self.usable_area_m2

    @property
    def monthly_average_kwh(self) -> float:
        return self.estimated_energy_kwh / 12

    @property
    def utilization_percent(self) -> float:
        if self.area_m2 <= 0:
            return 0.0
        return self.usable_area_m2 / self.area_m2 * 100


def _clamp(value: float, name: str) -> float:
    """Replace negative or NaN values coming from malformed upstream data with 0."""
    if value is None or not math.isfinite(value) or value < 0:
        logger.warning("Clamping %s=%r to 0", name, value)
        return 0.0
    return value


def empty_metrics(area_m2: float = 0.0, pitch_degrees: float = 0.0) -> ZoneMetrics:
    """All-zero metrics, keeping the drawn area for display."""
    return ZoneMetrics(
        area_m2=_clamp(area_m2, 'area_m2') if area_m2 else 0.0,
        usable_area_m2=0.0,
        number_of_panels=0,
        peak_power_kwc=0.0,
        estimated_energy_kwh=0.0,
        efficiency_factor=0.0,
        pitch_degrees=pitch_degrees,
    )


def average_pitch(
    roof_segments: Sequence[RoofSegmentStats],
    config: EstimatorConfig = DEFAULT_CONFIG
) -> float:
    """
    Area-weighted average pitch of the roof segments.

    Falls back to the default pitch when there are no segments or none
    has a positive area.
    """
    total_area = sum(segment.area_m2 for segment in roof_segments)
    if total_area <= 0:
        return config.default_pitch_degrees
    weighted = sum(segment.pitch_degrees * segment.area_m2 for segment in roof_segments)
    return weighted / total_area


def nearest_segment_pitch(pitch_degrees: float, roof_segments: Sequence[RoofSegmentStats]) -> float:
    """
    Pitch of the roof segment closest to the given pitch.

    An area-weighted average can fall between segments on a mixed roof;
    snapping it to a real segment lets the efficiency lookup find a match.
    Returns the pitch unchanged when there are no segments.
    """
    if not roof_segments:
        return pitch_degrees
    closest = min(roof_segments, key=lambda s: abs(s.pitch_degrees - pitch_degrees))
    return closest.pitch_degrees


def extract_best_roof_segment(roof_segments: Sequence[RoofSegmentStats]) -> Dict[str, float]:
    """
    Extract the best roof segment for solar installation.

    Args:
        roof_segments: Parsed roof segment stats

    Returns:
        Dict with tilt (pitch) and azimuth of the sunniest segment
    """
    if not roof_segments:
        return {'tilt': 20.0, 'azimuth': 180.0}  # Defaults

    best_segment = max(roof_segments, key=lambda s: s.high_sunshine_quantile)

    return {
        'tilt': best_segment.pitch_degrees,
        'azimuth': best_segment.azimuth_degrees
    }


def efficiency_factor(
    pitch_degrees: float,
    roof_segments: Sequence[RoofSegmentStats],
    config: EstimatorConfig = DEFAULT_CONFIG
) -> float:
    """
    Sunshine of the segment matching the pitch relative to the best segment.

    The matching segment is the one closest in pitch within the configured
    tolerance. Falls back to the default factor when no segment matches or
    the quantile data is missing.
    """
    candidates = [
        segment for segment in roof_segments
        if abs(segment.pitch_degrees - pitch_degrees) <= config.pitch_match_tolerance_degrees
    ]
    best_quantile = max((s.high_sunshine_quantile for s in roof_segments), default=0.0)

    if not candidates or best_quantile <= 0:
        return config.default_efficiency_factor

    match = min(candidates, key=lambda s: abs(s.pitch_degrees - pitch_degrees))
    factor = match.high_sunshine_quantile / best_quantile
    if not math.isfinite(factor) or factor <= 0:
        return config.default_efficiency_factor
    return min(1.0, factor)


def estimate_energy(
    area_m2: float,
    peak_power_kwc: float,
    factor: float,
    solar_potential: SolarPotential
) -> float:
    """
    Yearly energy (kWh) for a zone, capped at the full-roof maximum.

    Sunshine hours × peak power × efficiency factor. When the API gives no
    sunshine hours, the full-roof energy is scaled by the area ratio instead.
    """
    max_energy = solar_potential.max_energy_kwh
    sunshine_hours = solar_potential.max_sunshine_hours_per_year

    if sunshine_hours > 0:
        energy = sunshine_hours * peak_power_kwc * factor
    elif max_energy > 0 and solar_potential.max_array_area_m2 > 0:
        energy = max_energy * min(1.0, area_m2 / solar_potential.max_array_area_m2)
    else:
        energy = 0.0

    if max_energy > 0:
        energy = min(energy, max_energy)
    return energy


def calculate_zone_metrics(
    area_m2: float,
    pitch_degrees: float,
    solar_potential: Optional[SolarPotential],
    config: EstimatorConfig = DEFAULT_CONFIG
) -> ZoneMetrics:
    """
    Calculate panel layout and production for a zone.

    Args:
        area_m2: Net drawn area in m²
        pitch_degrees: Roof pitch used to pick the matching segment
        solar_potential: Building solar potential, or None if unavailable
        config: Estimator constants

    Returns:
        ZoneMetrics; all-zero when solar data is absent
    """
    if solar_potential is None:
        logger.warning("No solar potential data, returning empty metrics")
        return empty_metrics(area_m2, pitch_degrees)

    area_m2 = _clamp(area_m2, 'area_m2')
    usable_area = _clamp(area_m2 * config.utilization_rate, 'usable_area')
    number_of_panels = int(math.floor(usable_area / config.panel_area_m2))
    peak_power = _clamp(number_of_panels * config.panel_power_w / 1000, 'peak_power')

    factor = efficiency_factor(pitch_degrees, solar_potential.roof_segments, config)
    energy = _clamp(estimate_energy(area_m2, peak_power, factor, solar_potential), 'energy')

    return ZoneMetrics(
        area_m2=area_m2,
        usable_area_m2=usable_area,
        number_of_panels=number_of_panels,
        peak_power_kwc=peak_power,
        estimated_energy_kwh=energy,
        efficiency_factor=factor,
        pitch_degrees=pitch_degrees
    )
