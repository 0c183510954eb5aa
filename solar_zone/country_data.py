"""
Country-specific electricity rates used when the live rate is unavailable.
"""

import logging
import math

logger = logging.getLogger(__name__)

# Retail electricity rates (€/kWh) for self-consumption - as of 2024
RETAIL_RATES = {
    'FR': 0.34223,  # France - autoconsommation rate
    'DE': 0.3790,   # Germany
    'ES': 0.1890,   # Spain
    'IT': 0.2590,   # Italy
    'GB': 0.2780,   # United Kingdom
    'NL': 0.3150,   # Netherlands
    'BE': 0.2890,   # Belgium
}

# Country names for display
COUNTRY_NAMES = {
    'FR': 'France',
    'DE': 'Germany',
    'ES': 'Spain',
    'IT': 'Italy',
    'GB': 'United Kingdom',
    'NL': 'Netherlands',
    'BE': 'Belgium',
}

DEFAULT_COUNTRY = 'FR'

# Sane bounds for a live retail price (€/kWh)
MIN_SANE_PRICE = 0.01
MAX_SANE_PRICE = 1.0

_COMPASS_LABELS = [
    'North', 'North-East', 'East', 'South-East',
    'South', 'South-West', 'West', 'North-West',
]


def normalize_country_code(country_code) -> str:
    """Upper-case a country code, falling back to the default country."""
    if not country_code or not isinstance(country_code, str):
        return DEFAULT_COUNTRY
    return country_code.strip().upper() or DEFAULT_COUNTRY


def get_fallback_rate(country_code) -> float:
    """Get the static retail rate for a country, with fallback to France."""
    code = normalize_country_code(country_code)
    if code not in RETAIL_RATES:
        logger.warning("No fallback rate for %s, using %s", code, DEFAULT_COUNTRY)
    return RETAIL_RATES.get(code, RETAIL_RATES[DEFAULT_COUNTRY])


def is_sane_price(price_per_kwh) -> bool:
    """Check that a live price is a finite value within retail bounds."""
    try:
        price = float(price_per_kwh)
    except (TypeError, ValueError):
        return False
    return math.isfinite(price) and MIN_SANE_PRICE <= price <= MAX_SANE_PRICE


def format_electricity_rate(rate: float, unit: str = 'EUR') -> str:
    """
    Format a rate for display.

    Args:
        rate: Rate in €/kWh
        unit: 'EUR' for euros per kWh or 'CENTS' for euro cents per kWh

    Returns:
        Formatted rate string
    """
    if unit == 'CENTS':
        return f"{rate * 100:.1f}c€/kWh"
    return f"{rate:.4f}€/kWh"


def orientation_label(azimuth_degrees: float) -> str:
    """Eight-point compass label for an azimuth (degrees from north)."""
    degrees = azimuth_degrees % 360
    index = int(((degrees + 22.5) % 360) // 45)
    return _COMPASS_LABELS[index]
