"""Mapbox geocoding adapter.

Uses the Mapbox v5 ``mapbox.places`` forward geocoding endpoint and keeps
only the best match.
"""

from urllib.parse import quote

import httpx
import structlog
from protean.exceptions import ConfigurationError

from fulfillment.geocoding.port import Coordinates, Geocoder

logger = structlog.get_logger(__name__)

MAPBOX_BASE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"


class MapboxGeocoder(Geocoder):
    def __init__(self, access_token: str | None, client: httpx.Client | None = None, base_url: str = MAPBOX_BASE_URL):
        if not access_token:
            raise ConfigurationError("MAPBOX_ACCESS_TOKEN is required for the Mapbox geocoder")
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client()

    def geocode(self, address: str, timeout: float) -> Coordinates | None:
        if not address or not address.strip():
            return None

        url = f"{self.base_url}/{quote(address.strip(), safe='')}.json"
        try:
            response = self.client.get(
                url,
                params={"access_token": self.access_token, "limit": 1},
                timeout=timeout,
            )
            response.raise_for_status()
            features = response.json().get("features") or []
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("mapbox_geocode_failed", address=address, error=str(exc))
            return None

        if not features:
            logger.info("mapbox_geocode_no_match", address=address)
            return None

        # Mapbox returns [longitude, latitude]
        longitude, latitude = features[0]["center"][:2]
        return Coordinates(latitude=float(latitude), longitude=float(longitude))
