"""
Typed views over the Google Solar API building insights payload.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .geometry import GeoPoint


def _number(value: Any, default: float = 0.0) -> float:
    """Coerce a payload value to a finite float."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _lat_lng(data: Any) -> Optional[GeoPoint]:
    if not isinstance(data, dict) or 'latitude' not in data or 'longitude' not in data:
        return None
    return GeoPoint(lat=_number(data['latitude']), lng=_number(data['longitude']))


def _bounding_box(data: Any) -> Optional[Tuple[GeoPoint, GeoPoint]]:
    """(south-west, north-east) corners, or None if either is missing."""
    if not isinstance(data, dict):
        return None
    sw, ne = _lat_lng(data.get('sw')), _lat_lng(data.get('ne'))
    if sw is None or ne is None:
        return None
    return sw, ne


def _imagery_date(data: Any) -> Optional[str]:
    """YYYY-MM-DD from the API's {year, month, day} object."""
    if not isinstance(data, dict) or not data:
        return None
    year, month, day = (int(_number(data.get(part))) for part in ('year', 'month', 'day'))
    if year <= 0 or not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"


@dataclass(frozen=True)
class RoofSegmentStats:
    """A planar piece of roof with uniform pitch and azimuth."""
    pitch_degrees: float
    azimuth_degrees: float
    area_m2: float
    sunshine_quantiles: Tuple[float, ...] = ()
    center: Optional[GeoPoint] = None
    bounding_box: Optional[Tuple[GeoPoint, GeoPoint]] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RoofSegmentStats":
        stats = _dict(data.get('stats'))
        return cls(
            pitch_degrees=_number(data.get('pitchDegrees')),
            azimuth_degrees=_number(data.get('azimuthDegrees')),
            area_m2=max(0.0, _number(stats.get('areaMeters2'))),
            sunshine_quantiles=tuple(_number(q) for q in _list(stats.get('sunshineQuantiles'))),
            center=_lat_lng(data.get('center')),
            bounding_box=_bounding_box(data.get('boundingBox')),
        )

    @property
    def high_sunshine_quantile(self) -> float:
        """90th-percentile annual sunshine hours (0 when no quantiles)."""
        if not self.sunshine_quantiles:
            return 0.0
        index = int(round(0.9 * (len(self.sunshine_quantiles) - 1)))
        return self.sunshine_quantiles[index]


@dataclass(frozen=True)
class PanelConfig:
    """One panel layout evaluated by the Solar API."""
    panels_count: int
    yearly_energy_dc_kwh: float

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PanelConfig":
        return cls(
            panels_count=int(_number(data.get('panelsCount'))),
            yearly_energy_dc_kwh=max(0.0, _number(data.get('yearlyEnergyDcKwh'))),
        )


@dataclass(frozen=True)
class SolarPotential:
    """Whole-roof solar potential for one building."""
    max_array_area_m2: float
    max_array_annual_energy_kwh: float
    max_array_panels_count: int
    max_sunshine_hours_per_year: float
    carbon_offset_factor_kg_per_kwh: float
    panel_capacity_watts: float
    whole_roof_area_m2: float
    roof_segments: Tuple[RoofSegmentStats, ...] = ()
    panel_configs: Tuple[PanelConfig, ...] = ()

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SolarPotential":
        data = _dict(data)
        whole_roof = _dict(data.get('wholeRoofStats'))
        return cls(
            max_array_area_m2=max(0.0, _number(data.get('maxArrayAreaMeters2'))),
            max_array_annual_energy_kwh=max(0.0, _number(data.get('maxArrayAnnualEnergyKwh'))),
            max_array_panels_count=int(_number(data.get('maxArrayPanelsCount'))),
            max_sunshine_hours_per_year=max(0.0, _number(data.get('maxSunshineHoursPerYear'))),
            carbon_offset_factor_kg_per_kwh=max(0.0, _number(data.get('carbonOffsetFactorKgPerKwh'))),
            panel_capacity_watts=_number(data.get('panelCapacityWatts'), 400.0),
            whole_roof_area_m2=max(0.0, _number(whole_roof.get('areaMeters2'))),
            roof_segments=tuple(
                RoofSegmentStats.from_api(segment)
                for segment in _list(data.get('roofSegmentStats'))
                if isinstance(segment, dict)
            ),
            panel_configs=tuple(
                PanelConfig.from_api(config)
                for config in _list(data.get('solarPanelConfigs'))
                if isinstance(config, dict)
            ),
        )

    @property
    def best_config(self) -> Optional[PanelConfig]:
        if not self.panel_configs:
            return None
        return max(self.panel_configs, key=lambda config: config.yearly_energy_dc_kwh)

    @property
    def best_config_energy_kwh(self) -> float:
        best = self.best_config
        return best.yearly_energy_dc_kwh if best else 0.0

    @property
    def max_energy_kwh(self) -> float:
        """Upper bound on yearly energy for the full roof, 0 if unknown."""
        return self.max_array_annual_energy_kwh or self.best_config_energy_kwh


@dataclass
class BuildingInsights:
    """Building-level metadata plus its solar potential."""
    center: Optional[GeoPoint]
    bounding_box: Optional[Tuple[GeoPoint, GeoPoint]]
    imagery_date: Optional[str]
    imagery_quality: Optional[str]
    region_code: Optional[str]
    solar_potential: SolarPotential

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "BuildingInsights":
        data = _dict(data)
        quality, region = data.get('imageryQuality'), data.get('regionCode')
        return cls(
            center=_lat_lng(data.get('center')),
            bounding_box=_bounding_box(data.get('boundingBox')),
            imagery_date=_imagery_date(data.get('imageryDate')),
            imagery_quality=quality if isinstance(quality, str) else None,
            region_code=region if isinstance(region, str) else None,
            solar_potential=SolarPotential.from_api(data.get('solarPotential')),
        )
