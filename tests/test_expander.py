import pytest

from conftest import FakeMapsClient

from courier_maps.services.context import CallContext
from courier_maps.services.errors import ProviderUnavailableError, ResolutionCancelled
from courier_maps.services.locations.expander import LinkExpander
from courier_maps.services.locations.models import Coordinates

SHORT = "https://maps.app.goo.gl/AbCdEf123"
LONG_WITH_COORDS = "https://www.google.com/maps/place/Mercado/data=!4m6!3m5!8m2!3d-17.3935!4d-66.157"
LONG_PLACE_ONLY = "https://www.google.com/maps/place/Mercado+La+Cancha"


def test_single_hop_extracts_coordinates():
    client = FakeMapsClient(redirects={SHORT: LONG_WITH_COORDS})
    context = CallContext(max_calls=6)

    result = LinkExpander(client).expand(SHORT, context)

    assert result.succeeded
    assert result.coordinates == Coordinates(lat=-17.3935, lng=-66.157)
    assert result.precision_rank == 1
    assert result.hops == 1
    assert context.calls == 1


def test_two_hops_through_an_intermediate_short_link():
    intermediate = "https://goo.gl/maps/intermediate"
    client = FakeMapsClient(redirects={SHORT: intermediate, intermediate: LONG_WITH_COORDS})

    result = LinkExpander(client).expand(SHORT, CallContext(max_calls=6))

    assert result.coordinates is not None
    assert result.hops == 2


def test_expansion_without_coordinates_reports_final_url():
    client = FakeMapsClient(redirects={SHORT: LONG_PLACE_ONLY})

    result = LinkExpander(client).expand(SHORT, CallContext(max_calls=6))

    assert result.final_url == LONG_PLACE_ONLY
    assert result.coordinates is None


def test_non_redirect_first_response_fails():
    result = LinkExpander(FakeMapsClient()).expand(SHORT, CallContext(max_calls=6))

    assert not result.succeeded


def test_link_stuck_on_short_host_fails_within_hop_budget():
    hops = {SHORT: "https://goo.gl/maps/b", "https://goo.gl/maps/b": "https://goo.gl/maps/c"}
    client = FakeMapsClient(redirects=hops)

    result = LinkExpander(client, hop_budget=2).expand(SHORT, CallContext(max_calls=6))

    assert not result.succeeded
    assert client.count("redirect") == 2


def test_timeout_is_not_an_exception():
    client = FakeMapsClient(redirects={SHORT: ProviderUnavailableError("timed out", timed_out=True)})

    assert not LinkExpander(client).expand(SHORT, CallContext(max_calls=6)).succeeded


def test_refused_connection_propagates():
    client = FakeMapsClient(redirects={SHORT: ProviderUnavailableError("connection refused")})

    with pytest.raises(ProviderUnavailableError):
        LinkExpander(client).expand(SHORT, CallContext(max_calls=6))

    assert client.count("redirect") == 1


def test_hop_budget_must_be_positive():
    with pytest.raises(ValueError):
        LinkExpander(FakeMapsClient()).expand(SHORT, CallContext(max_calls=6), hop_budget=0)


def test_cancellation_propagates():
    context = CallContext(max_calls=6)
    context.cancel_event.set()

    with pytest.raises(ResolutionCancelled):
        LinkExpander(FakeMapsClient(redirects={SHORT: LONG_WITH_COORDS})).expand(SHORT, context)
