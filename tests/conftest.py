from __future__ import annotations

from typing import Any

import pytest

from courier_maps.services.errors import ProviderUnavailableError
from courier_maps.services.routing import service as maps_service_module


def matrix_response(element_status: str = "OK", meters: int = 5200, seconds: int = 780) -> dict:
    element: dict[str, Any] = {"status": element_status}
    if element_status == "OK":
        element["distance"] = {"text": f"{meters / 1000:.1f} km", "value": meters}
        element["duration"] = {"text": f"{seconds // 60} min", "value": seconds}
    return {
        "status": "OK",
        "origin_addresses": ["Origin St, Cochabamba, Bolivia"],
        "destination_addresses": ["Destination Ave, Cochabamba, Bolivia"],
        "rows": [{"elements": [element]}],
    }


def directions_response(*meters: int) -> dict:
    routes = []
    for index, value in enumerate(meters):
        routes.append(
            {
                "summary": f"Route {index}",
                "legs": [
                    {
                        "distance": {"text": f"{value / 1000:.1f} km", "value": value},
                        "duration": {"text": f"{value // 500} min", "value": value // 8},
                        "start_address": f"Start {index}",
                        "end_address": f"End {index}",
                    }
                ],
            }
        )
    return {"status": "OK" if routes else "ZERO_RESULTS", "routes": routes}


def _next(responses: Any, default: dict) -> dict:
    if responses is None:
        return default
    if isinstance(responses, list):
        value = responses.pop(0) if len(responses) > 1 else responses[0]
    else:
        value = responses
    if isinstance(value, Exception):
        raise value
    return value


class FakeMapsClient:
    """Stands in for GoogleMapsClient; spends the call budget exactly like the real one."""

    configured = True

    def __init__(
        self,
        *,
        redirects: dict | None = None,
        directions: Any = None,
        matrix: Any = None,
        geocode: dict | None = None,
        places: dict | None = None,
    ) -> None:
        self.redirects = redirects or {}
        self.directions_responses = directions
        self.matrix_responses = matrix
        self.geocode_results = geocode or {}
        self.places = places or {}
        self.calls: list[tuple[str, str]] = []

    def _record(self, label: str, argument: str, context) -> None:
        context.spend(label)
        self.calls.append((label, argument))

    def count(self, label: str) -> int:
        return sum(1 for name, _ in self.calls if name == label)

    def follow_redirect(self, url, context):
        self._record("redirect", url, context)
        target = self.redirects.get(url)
        if isinstance(target, Exception):
            raise target
        return target

    def directions(self, origin, destination, context):
        self._record("directions", f"{origin}|{destination}", context)
        return _next(self.directions_responses, {"status": "ZERO_RESULTS", "routes": []})

    def distance_matrix(self, origin, destination, context):
        self._record("distancematrix", f"{origin}|{destination}", context)
        return _next(self.matrix_responses, matrix_response())

    def geocode(self, address, context):
        self._record("geocode", address, context)
        value = self.geocode_results.get(address)
        if isinstance(value, Exception):
            raise value
        if value is None:
            return {"status": "ZERO_RESULTS", "results": []}
        lat, lng = value
        return {"status": "OK", "results": [{"geometry": {"location": {"lat": lat, "lng": lng}}}]}

    def place_details(self, place_id, context):
        self._record("place/details", place_id, context)
        value = self.places.get(place_id)
        if isinstance(value, Exception):
            raise value
        if value is None:
            return {"status": "NOT_FOUND"}
        lat, lng = value
        return {"status": "OK", "result": {"geometry": {"location": {"lat": lat, "lng": lng}}}}


class OfflineMapsClient(FakeMapsClient):
    """Every outgoing call is refused, as with no network at all."""

    def _record(self, label: str, argument: str, context) -> None:
        super()._record(label, argument, context)
        raise ProviderUnavailableError(f"{label}: connection refused")


@pytest.fixture(autouse=True)
def clear_service_singleton():
    maps_service_module.get_maps_service.cache_clear()
    yield
    maps_service_module.get_maps_service.cache_clear()
