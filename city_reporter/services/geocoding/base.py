from abc import ABC, abstractmethod
from typing import Dict
import logging

logger = logging.getLogger(__name__)


class GeocodingProvider(ABC):
    """
    Abstract reverse-geocoding provider.

    Contract:
    - Input: latitude, longitude (floats)
    - Output: dict with well-known keys:
      {
        "formatted_address": str | None,
        "city": str | None,
        "district": str | None,
        "province": str | None,
        "provider": str
      }
    - MUST NEVER raise upstream exceptions.
    - MUST return empty fields on failure.
    """

    @abstractmethod
    def reverse_geocode(self, latitude: float, longitude: float) -> Dict[str, str]:
        raise NotImplementedError


def empty_result(provider: str) -> Dict[str, str]:
    return {
        "formatted_address": None,
        "city": None,
        "district": None,
        "province": None,
        "provider": provider,
    }
