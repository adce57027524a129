"""Fake geocoder — deterministic coordinates for testing and development.

Configurable to resolve, return nothing, fail or hang, so callers can be
exercised against every outcome a real provider produces.
"""

import hashlib
import time

from fulfillment.geocoding.port import Coordinates, Geocoder


class FakeGeocoder(Geocoder):
    """Fake geocoder that resolves every non-empty address by default."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str | None = None
        self.delay_seconds: float = 0.0
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str | None = None,
        delay_seconds: float = 0.0,
    ) -> None:
        """Configure the fake geocoder behavior for testing.

        ``should_succeed=False`` returns None, unless ``failure_reason`` is set,
        in which case the call raises instead.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.delay_seconds = delay_seconds

    def geocode(self, address: str, timeout: float) -> Coordinates | None:
        self.calls.append({"method": "geocode", "address": address, "timeout": timeout})

        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if self.failure_reason:
            raise RuntimeError(self.failure_reason)
        if not self.should_succeed or not address or not address.strip():
            return None

        # Stable pseudo-coordinates derived from the address text
        digest = hashlib.sha256(address.strip().lower().encode()).digest()
        latitude = round(-60 + (digest[0] * 256 + digest[1]) / 65535 * 120, 6)
        longitude = round(-170 + (digest[2] * 256 + digest[3]) / 65535 * 340, 6)
        return Coordinates(latitude=latitude, longitude=longitude)
