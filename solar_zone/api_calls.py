"""
Remote collaborators: Google Geocoding API, Google Solar API and the
electricity-rate API. None of these functions raise; failures are reported
on the result objects.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests

from .country_data import (
    DEFAULT_COUNTRY,
    get_fallback_rate,
    is_sane_price,
    normalize_country_code
)
from .models import BuildingInsights

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
BUILDING_INSIGHTS_URL = "https://solar.googleapis.com/v1/buildingInsights:findClosest"
ELECTRICITY_API_BASE_URL = "https://zylalabs.com/api/3040/electricity+rates+in+europe+api"


class ErrorCategory(Enum):
    """Why a remote call failed."""
    INPUT = 'input'  # Unresolvable or unsupported address
    UPSTREAM = 'upstream'  # Quota, 4xx/5xx, timeouts, malformed payload
    DATA_INCOMPLETE = 'data_incomplete'  # Roof cannot be analyzed


@dataclass
class GeocodingResult:
    """Result from geocoding an address."""
    latitude: float
    longitude: float
    formatted_address: str
    country_code: str
    success: bool
    error: Optional[str] = None
    error_category: Optional[ErrorCategory] = None


@dataclass
class SolarInsightsResult:
    """Result from Google Solar API building insights."""
    success: bool
    insights: Optional[BuildingInsights] = None
    error: Optional[str] = None
    error_category: Optional[ErrorCategory] = None


@dataclass
class ElectricityRate:
    """Electricity price with a flag for static fallback values."""
    price_per_kwh: float
    country_code: str
    is_fallback: bool


def _geocoding_failure(error: str, category: ErrorCategory) -> GeocodingResult:
    return GeocodingResult(
        latitude=0, longitude=0, formatted_address='',
        country_code='', success=False,
        error=error, error_category=category
    )


def geocode_address(address: str, api_key: str) -> GeocodingResult:
    """
    Convert street address to coordinates using Google Geocoding API.

    Args:
        address: Street address to geocode
        api_key: Google Geocoding API key

    Returns:
        GeocodingResult with coordinates and ISO country code
    """
    if not address or not address.strip():
        return _geocoding_failure("Empty address", ErrorCategory.INPUT)

    params = {
        "address": address,
        "key": api_key
    }

    try:
        logger.info("Geocoding address %r", address)
        response = requests.get(GEOCODE_URL, params=params, timeout=10)
        response.raise_for_status()
        data = response.json()

        status = data.get('status')
        if status == 'OK' and data.get('results'):
            result = data['results'][0]
            location = result['geometry']['location']

            # Extract country code from address components
            country_code = ''
            for component in result.get('address_components', []):
                if 'country' in component.get('types', []):
                    country_code = component.get('short_name', '')
                    break

            return GeocodingResult(
                latitude=float(location['lat']),
                longitude=float(location['lng']),
                formatted_address=result.get('formatted_address', address),
                country_code=country_code.upper(),
                success=True
            )

        if status in ('ZERO_RESULTS', 'INVALID_REQUEST'):
            return _geocoding_failure(f"Unable to geocode address: {status}", ErrorCategory.INPUT)
        return _geocoding_failure(f"Geocoding API error: {status}", ErrorCategory.UPSTREAM)

    except requests.exceptions.Timeout:
        logger.warning("Geocoding timed out for %r", address)
        return _geocoding_failure("Request timed out", ErrorCategory.UPSTREAM)
    except requests.exceptions.RequestException as e:
        logger.warning("Geocoding request failed: %s", e)
        return _geocoding_failure(f"Network error: {e}", ErrorCategory.UPSTREAM)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Malformed geocoding payload: %s", e)
        return _geocoding_failure(f"Malformed geocoding response: {e}", ErrorCategory.UPSTREAM)


def get_building_insights(
    latitude: float,
    longitude: float,
    api_key: str,
    required_quality: str = "LOW"
) -> SolarInsightsResult:
    """
    Get building solar insights from Google Solar API.

    Args:
        latitude: Latitude of the location
        longitude: Longitude of the location
        api_key: Google Solar API key
        required_quality: Minimum imagery quality (LOW, MEDIUM, HIGH)

    Returns:
        SolarInsightsResult with parsed building insights
    """
    params = {
        "location.latitude": latitude,
        "location.longitude": longitude,
        "requiredQuality": required_quality,
        "key": api_key
    }

    try:
        logger.info("Fetching building insights for (%s, %s)", latitude, longitude)
        response = requests.get(BUILDING_INSIGHTS_URL, params=params, timeout=15)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.Timeout:
        logger.warning("Building insights request timed out")
        return SolarInsightsResult(
            success=False, error="Request timed out",
            error_category=ErrorCategory.UPSTREAM
        )
    except requests.exceptions.HTTPError as e:
        status_code = e.response.status_code if e.response is not None else None
        logger.warning("Building insights API error: %s", status_code)
        if status_code == 404:
            return SolarInsightsResult(
                success=False, error="Location not supported by the Solar API",
                error_category=ErrorCategory.INPUT
            )
        return SolarInsightsResult(
            success=False, error=f"API error: {status_code}",
            error_category=ErrorCategory.UPSTREAM
        )
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("Building insights request failed: %s", e)
        return SolarInsightsResult(
            success=False, error=f"Network error: {e}",
            error_category=ErrorCategory.UPSTREAM
        )

    malformed = SolarInsightsResult(
        success=False, error="Malformed building insights payload",
        error_category=ErrorCategory.UPSTREAM
    )
    if not isinstance(data, dict):
        return malformed

    solar = data.get('solarPotential')
    if not solar:
        return SolarInsightsResult(
            success=False, error="No solar potential data available for this location",
            error_category=ErrorCategory.DATA_INCOMPLETE
        )
    if not isinstance(solar, dict):
        logger.warning("solarPotential is a %s, not an object", type(solar).__name__)
        return malformed

    try:
        insights = BuildingInsights.from_api(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning("Malformed building insights payload: %s", e)
        return malformed

    if not insights.solar_potential.panel_configs:
        return SolarInsightsResult(
            success=False, error="No viable solar panel configurations found for this roof",
            error_category=ErrorCategory.DATA_INCOMPLETE
        )
    if not insights.solar_potential.roof_segments:
        return SolarInsightsResult(
            success=False, error="No roof segments found for this building",
            error_category=ErrorCategory.DATA_INCOMPLETE
        )

    return SolarInsightsResult(success=True, insights=insights)


def fetch_electricity_price(country_code: Optional[str], api_key: Optional[str]) -> ElectricityRate:
    """
    Get the current electricity price for a country.

    Any failure (no key, HTTP error, malformed payload, price out of bounds)
    degrades to the static table with is_fallback set.

    Args:
        country_code: ISO country code; the default country when empty
        api_key: Electricity-rate API key

    Returns:
        ElectricityRate in €/kWh
    """
    code = normalize_country_code(country_code or DEFAULT_COUNTRY)

    def fallback(reason: str) -> ElectricityRate:
        logger.warning("Using fallback electricity rate for %s: %s", code, reason)
        return ElectricityRate(price_per_kwh=get_fallback_rate(code), country_code=code, is_fallback=True)

    if not api_key:
        return fallback("no API key configured")

    try:
        response = requests.get(
            f"{ELECTRICITY_API_BASE_URL}/3214/latest",
            params={"region": code},
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {api_key}"
            },
            timeout=10
        )
        response.raise_for_status()
        data = response.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        return fallback(f"request failed ({e})")

    try:
        if not data.get('success'):
            return fallback("API request not successful")
        payload = data['data']
        price = float(payload['price'])
        unit = str(payload.get('unit', 'MWh'))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        return fallback(f"malformed payload ({e})")

    # Prices are quoted per MWh unless stated otherwise
    price_per_kwh = price if 'kwh' in unit.lower() else price / 1000

    if not is_sane_price(price_per_kwh):
        return fallback(f"price {price_per_kwh} out of bounds")

    logger.info("Live electricity rate for %s: %.4f €/kWh", code, price_per_kwh)
    return ElectricityRate(price_per_kwh=price_per_kwh, country_code=code, is_fallback=False)
