import logging
from typing import Dict, Any

import requests

from .base import GeocodingProvider, empty_result

logger = logging.getLogger(__name__)


class NominatimProvider(GeocodingProvider):
    """
    OpenStreetMap Nominatim reverse-geocoding provider.

    - No API key required.
    - Uses a strict timeout (<= 3 seconds).
    - Includes a User-Agent header as required by Nominatim usage policy.
    - Never raises upstream exceptions; returns empty fields on failure.
    """

    BASE_URL = "https://nominatim.openstreetmap.org/reverse"

    def __init__(self, user_agent: str = "city-reporter/4.1", timeout: float = 3.0):
        self.user_agent = user_agent
        self.timeout = timeout

    def reverse_geocode(self, latitude: float, longitude: float) -> Dict[str, str]:
        try:
            params = {
                "lat": latitude,
                "lon": longitude,
                "format": "json",
                "addressdetails": 1,
            }
            headers = {"User-Agent": self.user_agent}
            resp = requests.get(self.BASE_URL, params=params, headers=headers, timeout=self.timeout)
            if resp.status_code != 200:
                logger.warning(f"Nominatim reverse-geocode failed with status {resp.status_code}")
                return empty_result("nominatim")

            data: Dict[str, Any] = resp.json()
            if not isinstance(data, dict):
                logger.warning(f"Nominatim returned unexpected payload type {type(data).__name__}")
                return empty_result("nominatim")
            address = data.get("address")
            if not isinstance(address, dict):
                address = {}

            return {
                "formatted_address": data.get("display_name"),
                "city": address.get("city") or address.get("town") or address.get("village"),
                "district": address.get("state_district") or address.get("county"),
                "province": address.get("state") or address.get("province"),
                "provider": "nominatim",
            }
        except (requests.RequestException, ValueError) as e:
            # Never block report submission on geocoding.
            logger.warning(f"Nominatim reverse-geocode error: {e}")
            return empty_result("nominatim")
