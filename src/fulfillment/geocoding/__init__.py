"""Geocoder adapter abstraction — pluggable address geocoding."""

import os

from fulfillment.geocoding.port import Geocoder

_geocoder_instance: Geocoder | None = None


def get_geocoder() -> Geocoder:
    """Return the configured geocoder (singleton).

    Uses FakeGeocoder by default. Set GEOCODER_ADAPTER=mapbox together with
    MAPBOX_ACCESS_TOKEN to geocode against Mapbox.
    """
    global _geocoder_instance
    if _geocoder_instance is None:
        adapter = os.environ.get("GEOCODER_ADAPTER", "fake")
        if adapter == "fake":
            from fulfillment.geocoding.fake_adapter import FakeGeocoder

            _geocoder_instance = FakeGeocoder()
        elif adapter == "mapbox":
            from fulfillment.geocoding.mapbox_adapter import MapboxGeocoder

            _geocoder_instance = MapboxGeocoder(os.environ.get("MAPBOX_ACCESS_TOKEN"))
        else:
            raise ValueError(f"Unknown geocoder adapter: {adapter}")
    return _geocoder_instance


def set_geocoder(geocoder: Geocoder) -> None:
    """Override the active geocoder (useful for tests)."""
    global _geocoder_instance
    _geocoder_instance = geocoder


def reset_geocoder() -> None:
    """Reset the geocoder singleton (useful for testing)."""
    global _geocoder_instance
    _geocoder_instance = None


def geocoder_timeout() -> float:
    """Seconds to wait for the geocoder, from GEOCODER_TIMEOUT_SECONDS."""
    return float(os.environ.get("GEOCODER_TIMEOUT_SECONDS", "5"))
