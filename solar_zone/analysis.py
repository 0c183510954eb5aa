"""
Analysis orchestration: geocode -> building insights -> electricity rate.

Remote failures are turned into one user-facing message per category;
upstream error text is only logged.
"""

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .api_calls import (
    ElectricityRate,
    ErrorCategory,
    GeocodingResult,
    fetch_electricity_price,
    geocode_address,
    get_building_insights
)
from .country_data import DEFAULT_COUNTRY
from .models import BuildingInsights

logger = logging.getLogger(__name__)

USER_MESSAGES = {
    ErrorCategory.INPUT: "Invalid address. Please check the address and try again.",
    ErrorCategory.UPSTREAM: "Service temporarily unavailable. Please try again later.",
    ErrorCategory.DATA_INCOMPLETE: (
        "Unable to analyze this building. The roof might not be suitable for solar panels."
    ),
}
UNSUPPORTED_MESSAGE = "This address is not currently supported for solar analysis."
UNEXPECTED_MESSAGE = "An unexpected error occurred. Please try again."

RETRYABLE = {
    ErrorCategory.INPUT: False,
    ErrorCategory.UPSTREAM: True,
    ErrorCategory.DATA_INCOMPLETE: False,
}


@dataclass
class AnalysisOutcome:
    """Everything the display layer needs after analyzing an address."""
    address: str
    success: bool
    geocoding: Optional[GeocodingResult] = None
    insights: Optional[BuildingInsights] = None
    electricity_rate: Optional[ElectricityRate] = None
    message: Optional[str] = None
    retryable: bool = False
    error_category: Optional[ErrorCategory] = None


def user_message(category: Optional[ErrorCategory], stage: str = '') -> str:
    """Pick the user-facing message for a failure category."""
    if category is ErrorCategory.INPUT and stage == 'insights':
        return UNSUPPORTED_MESSAGE
    return USER_MESSAGES.get(category, UNEXPECTED_MESSAGE)


def _failure(address: str, category: Optional[ErrorCategory], stage: str, **kwargs) -> AnalysisOutcome:
    return AnalysisOutcome(
        address=address,
        success=False,
        message=user_message(category, stage),
        retryable=RETRYABLE.get(category, True),
        error_category=category,
        **kwargs
    )


def analyze_address(
    address: str,
    google_api_key: str,
    electricity_api_key: Optional[str] = None
) -> AnalysisOutcome:
    """
    Run the full remote analysis for an address.

    Args:
        address: Address typed by the user
        google_api_key: Key for the Geocoding and Solar APIs
        electricity_api_key: Key for the electricity-rate API (optional)

    Returns:
        AnalysisOutcome; on failure carries a user message and retryable flag
    """
    address = (address or '').strip()
    if not address:
        return _failure(address, ErrorCategory.INPUT, 'geocode')

    geo = geocode_address(address, google_api_key)
    if not geo.success:
        logger.warning("Geocoding failed for %r: %s", address, geo.error)
        return _failure(address, geo.error_category, 'geocode', geocoding=geo)

    solar = get_building_insights(geo.latitude, geo.longitude, google_api_key)
    if not solar.success:
        logger.warning("Building insights failed for %r: %s", address, solar.error)
        return _failure(address, solar.error_category, 'insights', geocoding=geo)

    rate = fetch_electricity_price(geo.country_code or DEFAULT_COUNTRY, electricity_api_key)

    return AnalysisOutcome(
        address=address,
        success=True,
        geocoding=geo,
        insights=solar.insights,
        electricity_rate=rate
    )


class RequestGuard:
    """
    Tracks which analysis request is current.

    A result is applied only if its token is still the latest one issued
    and the consuming view has not been torn down.
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._current = 0
        self._closed = False
        self._lock = threading.Lock()

    def begin(self) -> int:
        """Issue a token for a new request, superseding earlier ones."""
        with self._lock:
            self._current = next(self._counter)
            self._closed = False
            return self._current

    def is_current(self, token: int) -> bool:
        with self._lock:
            return not self._closed and token == self._current

    def close(self) -> None:
        """Teardown: every outstanding request becomes stale."""
        with self._lock:
            self._closed = True

    def apply(self, token: int, result, handler: Callable) -> bool:
        """Call handler(result) only if token is current; return whether it ran."""
        if not self.is_current(token):
            logger.debug("Discarding stale result for request %d", token)
            return False
        handler(result)
        return True
