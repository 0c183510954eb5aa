"""Tests for the area -> metrics -> financials pipeline."""

from dataclasses import replace

import pytest

from solar_zone.models import BuildingInsights
from solar_zone.pipeline import estimate_whole_roof, estimate_zone


def test_estimate_zone_chains_metrics_into_financials(solar_potential):
    estimate = estimate_zone(100.0, solar_potential, 0.3, perimeter_m=40.0)

    assert estimate.area_m2 == 100.0
    assert estimate.perimeter_m == 40.0
    assert estimate.average_pitch_degrees == pytest.approx(70 / 3)
    assert estimate.azimuth_degrees == 180.0
    # 23.3° average snaps to the 30° segment, which is also the sunniest
    assert estimate.metrics.pitch_degrees == 30.0
    assert estimate.metrics.efficiency_factor == pytest.approx(1.0)
    assert estimate.financials.self_consumption.gross_revenue == pytest.approx(
        estimate.metrics.estimated_energy_kwh * 0.3
    )
    assert estimate.financials.installation.gross_cost == pytest.approx(
        8000.0 + estimate.metrics.peak_power_kwc * 1300.0
    )


def test_mixed_roof_matches_dominant_segment(solar_potential):
    steep, shallow = solar_potential.roof_segments
    mostly_shallow = replace(
        solar_potential,
        roof_segments=(replace(steep, area_m2=20.0), replace(shallow, area_m2=130.0))
    )

    estimate = estimate_zone(100.0, mostly_shallow, 0.3)

    assert estimate.average_pitch_degrees == pytest.approx(1900 / 150)
    assert estimate.metrics.pitch_degrees == 10.0
    assert estimate.metrics.efficiency_factor == pytest.approx(900.0 / 1080.0)


def test_estimate_zone_without_solar_data():
    estimate = estimate_zone(100.0, None, 0.3)

    assert estimate.metrics.number_of_panels == 0
    assert estimate.financials.net_benefit == 0.0
    assert estimate.average_pitch_degrees == 20.0


def test_zero_area_gives_empty_estimate(solar_potential):
    estimate = estimate_zone(0.0, solar_potential, 0.3)

    assert estimate.metrics.estimated_energy_kwh == 0.0
    assert estimate.financials.installation.net_cost == 0.0


def test_whole_roof_uses_max_array_area(solar_potential):
    estimate = estimate_whole_roof(solar_potential, 0.3)

    assert estimate.area_m2 == 120.0
    assert estimate.metrics.number_of_panels == 63


def test_malformed_payload_parses_to_zeros():
    insights = BuildingInsights.from_api({'solarPotential': {
        'maxArrayAreaMeters2': 'lots',
        'maxSunshineHoursPerYear': float('nan'),
        'roofSegmentStats': [{'pitchDegrees': None, 'stats': None}, 'junk'],
    }})
    potential = insights.solar_potential

    assert potential.max_array_area_m2 == 0.0
    assert potential.max_sunshine_hours_per_year == 0.0
    assert len(potential.roof_segments) == 1
    assert potential.roof_segments[0].high_sunshine_quantile == 0.0
    assert insights.imagery_date is None
    assert insights.center is None

    estimate = estimate_zone(50.0, potential, 0.3)
    assert estimate.metrics.estimated_energy_kwh == 0.0
    assert estimate.financials.net_benefit == 0.0
