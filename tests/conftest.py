"""Shared fixtures: a small Paris roof and its Solar API payload."""

import pytest

from solar_zone.geometry import GeoPoint
from solar_zone.models import BuildingInsights, SolarPotential


@pytest.fixture
def paris_square():
    """Roughly 11 m x 15 m rectangle near the Louvre."""
    return [
        GeoPoint(48.8566, 2.3522),
        GeoPoint(48.8567, 2.3522),
        GeoPoint(48.8567, 2.3524),
        GeoPoint(48.8566, 2.3524),
    ]


@pytest.fixture
def inner_square():
    """Exclusion zone well inside paris_square."""
    return [
        GeoPoint(48.85663, 2.35225),
        GeoPoint(48.85667, 2.35225),
        GeoPoint(48.85667, 2.35235),
        GeoPoint(48.85663, 2.35235),
    ]


def _segment(pitch, azimuth, area, high):
    return {
        'pitchDegrees': pitch,
        'azimuthDegrees': azimuth,
        'stats': {
            'areaMeters2': area,
            'sunshineQuantiles': [high * q / 10 for q in range(11)],
            'groundAreaMeters2': area * 0.9,
        },
        'center': {'latitude': 48.85665, 'longitude': 2.3523},
        'boundingBox': {
            'sw': {'latitude': 48.8566, 'longitude': 2.3522},
            'ne': {'latitude': 48.8567, 'longitude': 2.3524},
        },
    }


@pytest.fixture
def insights_payload():
    """buildingInsights:findClosest response with a 30° south and a 10° east segment."""
    return {
        'name': 'buildings/ChIJtest',
        'center': {'latitude': 48.85665, 'longitude': 2.3523},
        'boundingBox': {
            'sw': {'latitude': 48.8566, 'longitude': 2.3522},
            'ne': {'latitude': 48.8567, 'longitude': 2.3524},
        },
        'imageryDate': {'year': 2023, 'month': 4, 'day': 9},
        'imageryQuality': 'HIGH',
        'regionCode': 'FR',
        'solarPotential': {
            'maxArrayPanelsCount': 60,
            'maxArrayAreaMeters2': 120.0,
            'maxArrayAnnualEnergyKwh': 200000.0,
            'maxSunshineHoursPerYear': 1300.0,
            'carbonOffsetFactorKgPerKwh': 58.1,
            'panelCapacityWatts': 400,
            'wholeRoofStats': {'areaMeters2': 160.0, 'sunshineQuantiles': [], 'groundAreaMeters2': 150.0},
            'roofSegmentStats': [
                _segment(30.0, 180.0, 100.0, 1200.0),
                _segment(10.0, 90.0, 50.0, 1000.0),
            ],
            'solarPanelConfigs': [
                {'panelsCount': 4, 'yearlyEnergyDcKwh': 1900.0, 'roofSegmentSummaries': []},
                {'panelsCount': 60, 'yearlyEnergyDcKwh': 28000.0, 'roofSegmentSummaries': []},
            ],
        },
    }


@pytest.fixture
def solar_potential(insights_payload):
    return SolarPotential.from_api(insights_payload['solarPotential'])


@pytest.fixture
def building_insights(insights_payload):
    return BuildingInsights.from_api(insights_payload)
