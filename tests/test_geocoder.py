import pytest

from conftest import FakeMapsClient

from courier_maps.services.context import CallContext
from courier_maps.services.errors import ProviderUnavailableError
from courier_maps.services.locations.geocoder import Geocoder, qualify_address
from courier_maps.services.locations.models import Coordinates

HINTS = ("bolivia",)


def test_qualifier_is_appended_to_short_addresses():
    assert qualify_address("Av. Heroínas 123", "Bolivia", HINTS) == "Av. Heroínas 123, Bolivia"


def test_qualifier_is_not_repeated():
    assert qualify_address("Cochabamba, bolivia", "Bolivia", HINTS) == "Cochabamba, bolivia"


def test_full_addresses_urls_and_coordinates_are_left_alone():
    assert qualify_address("Calle 1, Zona Sur, Cochabamba", "Bolivia", HINTS) == "Calle 1, Zona Sur, Cochabamba"
    assert qualify_address("https://maps.app.goo.gl/abc", "Bolivia", HINTS) == "https://maps.app.goo.gl/abc"
    assert qualify_address("cerca de -17.39, -66.15", "Bolivia", HINTS) == "cerca de -17.39, -66.15"


def test_geocode_returns_first_result():
    client = FakeMapsClient(geocode={"Mercado La Cancha, Bolivia": (-17.4, -66.16)})
    geocoder = Geocoder(client, "Bolivia", HINTS)
    context = CallContext(max_calls=6)

    assert geocoder.geocode("Mercado La Cancha", context) == Coordinates(lat=-17.4, lng=-66.16)
    assert context.calls == 1


def test_geocode_misses_and_failures_return_none():
    client = FakeMapsClient(geocode={"Down, Bolivia": ProviderUnavailableError("read timeout", timed_out=True)})
    geocoder = Geocoder(client, "Bolivia", HINTS)
    context = CallContext(max_calls=6)

    assert geocoder.geocode("Nowhere", context) is None
    assert geocoder.geocode("Down", context) is None
    assert geocoder.geocode("   ", context) is None
    assert client.count("geocode") == 2


def test_refused_connection_propagates():
    client = FakeMapsClient(geocode={"Down, Bolivia": ProviderUnavailableError("connection refused")})

    with pytest.raises(ProviderUnavailableError):
        Geocoder(client, "Bolivia", HINTS).geocode("Down", CallContext(max_calls=6))


class NullGeometryClient(FakeMapsClient):
    def geocode(self, address, context):
        self._record("geocode", address, context)
        return {"status": "OK", "results": [{"geometry": None}]}


def test_result_with_null_geometry_is_none():
    client = NullGeometryClient()

    assert Geocoder(client, "Bolivia", HINTS).geocode("Mercado La Cancha", CallContext(max_calls=6)) is None
    assert client.count("geocode") == 1
