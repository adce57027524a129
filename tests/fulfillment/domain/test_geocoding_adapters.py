"""Tests for geocoder adapters and adapter selection."""

import httpx
import pytest
from protean.exceptions import ConfigurationError

from fulfillment.geocoding import get_geocoder, reset_geocoder
from fulfillment.geocoding.fake_adapter import FakeGeocoder
from fulfillment.geocoding.mapbox_adapter import MapboxGeocoder
from fulfillment.geocoding.port import Coordinates


def _mapbox(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return MapboxGeocoder("pk.test-token", client=client)


class TestFakeGeocoder:
    def test_resolves_address_deterministically(self):
        geocoder = FakeGeocoder()
        first = geocoder.geocode("12 Analytical Way, London", timeout=1)
        second = geocoder.geocode("12 Analytical Way, London", timeout=1)
        assert isinstance(first, Coordinates)
        assert first == second
        assert -90 <= first.latitude <= 90
        assert -180 <= first.longitude <= 180

    def test_blank_address_returns_none(self):
        assert FakeGeocoder().geocode("   ", timeout=1) is None

    def test_configured_miss_returns_none(self):
        geocoder = FakeGeocoder()
        geocoder.configure(should_succeed=False)
        assert geocoder.geocode("1 Main St", timeout=1) is None

    def test_configured_failure_raises(self):
        geocoder = FakeGeocoder()
        geocoder.configure(failure_reason="provider down")
        with pytest.raises(RuntimeError, match="provider down"):
            geocoder.geocode("1 Main St", timeout=1)

    def test_records_calls(self):
        geocoder = FakeGeocoder()
        geocoder.geocode("1 Main St", timeout=2.5)
        assert geocoder.calls == [{"method": "geocode", "address": "1 Main St", "timeout": 2.5}]


class TestMapboxGeocoder:
    def test_requires_access_token(self):
        with pytest.raises(ConfigurationError):
            MapboxGeocoder(None)

    def test_returns_best_match_as_lat_lon(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(
                200,
                json={"features": [{"center": [-0.1025, 51.5362]}, {"center": [1.0, 2.0]}]},
            )

        coordinates = _mapbox(handler).geocode("12 Analytical Way, London", timeout=5)
        assert coordinates == Coordinates(latitude=51.5362, longitude=-0.1025)
        assert seen["url"].params["access_token"] == "pk.test-token"
        assert seen["url"].params["limit"] == "1"
        assert seen["url"].path.startswith("/geocoding/v5/mapbox.places/")
        assert seen["url"].path.endswith(".json")

    def test_no_features_returns_none(self):
        geocoder = _mapbox(lambda request: httpx.Response(200, json={"features": []}))
        assert geocoder.geocode("Nowhere", timeout=5) is None

    def test_http_error_returns_none(self):
        geocoder = _mapbox(lambda request: httpx.Response(401, json={"message": "Not Authorized"}))
        assert geocoder.geocode("1 Main St", timeout=5) is None

    def test_timeout_returns_none(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert _mapbox(handler).geocode("1 Main St", timeout=0.1) is None

    def test_empty_address_skips_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"features": []})

        assert _mapbox(handler).geocode("", timeout=5) is None
        assert calls == []


class TestAdapterSelection:
    def test_default_is_fake(self, monkeypatch):
        monkeypatch.delenv("GEOCODER_ADAPTER", raising=False)
        reset_geocoder()
        assert isinstance(get_geocoder(), FakeGeocoder)

    def test_mapbox_selected_by_env(self, monkeypatch):
        monkeypatch.setenv("GEOCODER_ADAPTER", "mapbox")
        monkeypatch.setenv("MAPBOX_ACCESS_TOKEN", "pk.env-token")
        reset_geocoder()
        geocoder = get_geocoder()
        assert isinstance(geocoder, MapboxGeocoder)
        assert geocoder.access_token == "pk.env-token"

    def test_mapbox_without_token_fails_fast(self, monkeypatch):
        monkeypatch.setenv("GEOCODER_ADAPTER", "mapbox")
        monkeypatch.delenv("MAPBOX_ACCESS_TOKEN", raising=False)
        reset_geocoder()
        with pytest.raises(ConfigurationError):
            get_geocoder()

    def test_unknown_adapter(self, monkeypatch):
        monkeypatch.setenv("GEOCODER_ADAPTER", "carrier-pigeon")
        reset_geocoder()
        with pytest.raises(ValueError, match="Unknown geocoder adapter"):
            get_geocoder()
