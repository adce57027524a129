"""Geocoder port — abstract interface for address geocoding.

Adapters must return None when an address cannot be resolved instead of
raising; callers still guard against unexpected exceptions and timeouts.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


class Geocoder(ABC):
    """Abstract interface for geocoding adapters."""

    @abstractmethod
    def geocode(self, address: str, timeout: float) -> Coordinates | None:
        """Resolve a free-form address to coordinates.

        Returns:
            Coordinates, or None when the address is empty or unknown.
        """
        ...
