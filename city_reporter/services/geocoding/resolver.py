import logging
from typing import Optional

from city_reporter.core.settings import settings
from .base import GeocodingProvider, empty_result
from .nominatim_provider import NominatimProvider

logger = logging.getLogger(__name__)

_provider_instance: Optional[GeocodingProvider] = None


class NoOpProvider(GeocodingProvider):
    """Used when geocoding is disabled; leaves missing fields to the 'Unknown' default."""

    def reverse_geocode(self, latitude: float, longitude: float):
        return empty_result("noop")


def get_geocoding_provider() -> GeocodingProvider:
    """
    Resolve the active geocoding provider based on settings.

    - GEOCODING_ENABLED=false (default): no-op provider.
    - Otherwise: Nominatim.
    """
    global _provider_instance
    if _provider_instance is not None:
        return _provider_instance

    if settings.GEOCODING_ENABLED:
        _provider_instance = NominatimProvider(user_agent=settings.GEOCODING_USER_AGENT)
        logger.info("Geocoding provider initialized: nominatim")
    else:
        _provider_instance = NoOpProvider()
        logger.info("Geocoding disabled (GEOCODING_ENABLED=false)")

    return _provider_instance
