import httpx
import pytest

from courier_maps.services.context import CallContext
from courier_maps.services.errors import ProviderResponseError, ProviderUnavailableError
from courier_maps.services.routing.maps_client import GoogleMapsClient, check_health


def _client(handler) -> GoogleMapsClient:
    return GoogleMapsClient(
        api_key="test-key",
        base_url="https://maps.example/api",
        timeout_retries=1,
        transport=httpx.MockTransport(handler),
    )


def test_directions_request_carries_key_and_alternatives():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "OK", "routes": []})

    data = _client(handler).directions("-17.39,-66.15", "Plaza Colón", CallContext(max_calls=16))

    assert data["status"] == "OK"
    request = seen[0]
    assert request.url.path == "/api/directions/json"
    assert request.url.params["key"] == "test-key"
    assert request.url.params["alternatives"] == "true"
    assert request.url.params["destination"] == "Plaza Colón"


def test_missing_key_is_a_response_error_without_spending_calls():
    client = GoogleMapsClient(api_key="", transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    context = CallContext(max_calls=16)

    with pytest.raises(ProviderResponseError):
        client.geocode("Cochabamba", context)
    assert context.calls == 0


def test_timeout_is_retried_once():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200, json={"status": "OK", "rows": []})

    context = CallContext(max_calls=16)
    data = _client(handler).distance_matrix("a", "b", context)

    assert data["status"] == "OK"
    assert context.calls == 2


def test_second_timeout_gives_up():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("slow", request=request)

    context = CallContext(max_calls=16)
    with pytest.raises(ProviderUnavailableError) as excinfo:
        _client(handler).geocode("Cochabamba", context)

    assert excinfo.value.timed_out
    assert context.calls == 2


def test_connection_failure_is_not_retried():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    context = CallContext(max_calls=16)
    with pytest.raises(ProviderUnavailableError) as excinfo:
        _client(handler).geocode("Cochabamba", context)

    assert not excinfo.value.timed_out
    assert context.calls == 1


def test_http_error_and_non_json_body_are_response_errors():
    def failing(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    def html(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html></html>")

    with pytest.raises(ProviderResponseError):
        _client(failing).geocode("Cochabamba", CallContext(max_calls=16))
    with pytest.raises(ProviderResponseError):
        _client(html).geocode("Cochabamba", CallContext(max_calls=16))


def test_follow_redirect_returns_absolute_target():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": "/maps/place/Mercado"})

    target = _client(handler).follow_redirect("https://maps.app.goo.gl/AbC", CallContext(max_calls=6))

    assert target == "https://maps.app.goo.gl/maps/place/Mercado"


def test_follow_redirect_without_redirect_is_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="landing page")

    assert _client(handler).follow_redirect("https://maps.app.goo.gl/AbC", CallContext(max_calls=6)) is None


def test_check_health():
    ok = _client(lambda request: httpx.Response(200, json={"status": "OK", "results": []}))
    denied = _client(lambda request: httpx.Response(200, json={"status": "REQUEST_DENIED"}))

    assert check_health(ok)
    assert not check_health(denied)
    assert not check_health(GoogleMapsClient(api_key=""))
