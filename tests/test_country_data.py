"""Tests for fallback rates and display helpers."""

import pytest

from solar_zone.country_data import (
    RETAIL_RATES,
    format_electricity_rate,
    get_fallback_rate,
    is_sane_price,
    normalize_country_code,
    orientation_label,
)


def test_fallback_rate_known_countries():
    assert get_fallback_rate('FR') == 0.34223
    assert get_fallback_rate('de') == RETAIL_RATES['DE']


@pytest.mark.parametrize("code", ['XX', '', None, 42])
def test_fallback_rate_defaults_to_france(code):
    assert get_fallback_rate(code) == 0.34223


def test_normalize_country_code():
    assert normalize_country_code(' be ') == 'BE'
    assert normalize_country_code(None) == 'FR'


@pytest.mark.parametrize("price, sane", [
    (0.25, True),
    (0.01, True),
    (1.0, True),
    (0.0, False),
    (1.5, False),
    (float('nan'), False),
    ('abc', False),
    (None, False),
])
def test_is_sane_price(price, sane):
    assert is_sane_price(price) is sane


def test_format_electricity_rate():
    assert format_electricity_rate(0.34223) == "0.3422€/kWh"
    assert format_electricity_rate(0.34223, 'CENTS') == "34.2c€/kWh"


@pytest.mark.parametrize("azimuth, label", [
    (0, 'North'),
    (44, 'North-East'),
    (90, 'East'),
    (180, 'South'),
    (200, 'South'),
    (270, 'West'),
    (340, 'North'),
    (-90, 'West'),
])
def test_orientation_label(azimuth, label):
    assert orientation_label(azimuth) == label
