"""Serializers for route results."""

from __future__ import annotations

from typing import Optional

from ..geospatial import meters_to_km
from ..locations.models import Coordinates
from ..routing.models import RouteResult


def route_result_to_json(result: RouteResult) -> dict:
    return {
        "status": "OK",
        "distance": {"text": result.distance_text, "valueMeters": result.distance_meters},
        "duration": {"text": result.duration_text, "valueSeconds": result.duration_seconds},
        "originAddress": result.origin_address,
        "destinationAddress": result.destination_address,
        "source": result.source.value,
    }


def route_result_to_distance_json(result: RouteResult) -> dict:
    """Kilometre view used by the quoting screens."""
    return {
        "distanceKm": meters_to_km(result.distance_meters),
        "distanceText": result.distance_text,
        "durationSeconds": result.duration_seconds,
        "durationText": result.duration_text,
        "originAddress": result.origin_address,
        "destinationAddress": result.destination_address,
        "source": result.source.value,
    }


def coordinates_to_json(coordinates: Optional[Coordinates]) -> Optional[dict]:
    if coordinates is None:
        return None
    return {"lat": coordinates.lat, "lng": coordinates.lng}
