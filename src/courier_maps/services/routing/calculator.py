"""Shortest driving route between two resolved locations.

The calculator is an explicit state machine::

    Start -> TryRouting -> TryMatrix -> Success
                              |-> RetryWithReexpandedLinks -> TryMatrix -> ...
                              |-> RetryWithGeocoding -> TryMatrix -> ...
                              |-> Failed

Each retry tier runs at most once per request; the markers live on the
CallContext so nothing recurses. Distances stay in meters here.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Protocol

from ..context import CallContext
from ..errors import (
    CallBudgetExceeded,
    MapsError,
    MapsErrorCode,
    ProviderResponseError,
    ProviderUnavailableError,
    no_connectivity,
)
from ..geospatial import haversine_km
from ..locations.classifier import is_short_link, looks_like_url
from ..locations.models import TEXT_GEOCODE_RANK, ResolvedLocation, ResolvedVia, RoutableString
from ..locations.resolver import LocationResolver, place_name_from_url
from .models import MatrixOutcome, MatrixOutcomeKind, RouteResult, RouteSource, RouteState

logger = logging.getLogger(__name__)

NO_PATH_STATUSES = frozenset({"ZERO_RESULTS", "MAX_ROUTE_LENGTH_EXCEEDED"})
NOT_FOUND_STATUSES = frozenset({"NOT_FOUND"})
MAX_REEXPANSIONS = 1
MAX_GEOCODE_RETRIES = 1


class RoutingProvider(Protocol):
    def directions(self, origin: str, destination: str, context: CallContext) -> dict: ...

    def distance_matrix(self, origin: str, destination: str, context: CallContext) -> dict: ...


def _first(items) -> Optional[dict]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def _first_text(items) -> str:
    if isinstance(items, list) and items:
        return str(items[0] or "")
    return ""


class RouteCalculator:
    def __init__(self, client: RoutingProvider, resolver: LocationResolver) -> None:
        self.client = client
        self.resolver = resolver

    def calculate(
        self, origin: ResolvedLocation, destination: ResolvedLocation, context: CallContext
    ) -> RouteResult:
        state = RouteState.START
        last_outcome: Optional[MatrixOutcome] = None
        try:
            while True:
                logger.debug(f"Route state {state.value} ({origin.as_query()} -> {destination.as_query()})")
                if state is RouteState.START:
                    # Two coordinate pairs need only the matrix lookup.
                    if origin.is_precise and destination.is_precise:
                        state = RouteState.TRY_MATRIX
                    else:
                        state = RouteState.TRY_ROUTING

                elif state is RouteState.TRY_ROUTING:
                    result = self._try_routing(origin, destination, context)
                    if result is not None:
                        return self._succeed(result, origin, destination)
                    state = RouteState.TRY_MATRIX

                elif state is RouteState.TRY_MATRIX:
                    last_outcome = self._try_matrix(origin, destination, context)
                    if last_outcome.kind is MatrixOutcomeKind.OK:
                        return self._succeed(last_outcome.result, origin, destination)
                    if last_outcome.kind is MatrixOutcomeKind.NO_PATH:
                        raise MapsError(
                            MapsErrorCode.NO_ROUTE_FOUND,
                            f"No driving route exists between \"{origin.as_query()}\" and "
                            f"\"{destination.as_query()}\" ({last_outcome.element_status}).",
                        )
                    logger.info(
                        f"Distance Matrix element status {last_outcome.element_status!r}; trying the next tier"
                    )
                    state = self._next_retry_state(context)

                elif state is RouteState.RETRY_WITH_REEXPANDED_LINKS:
                    context.reexpansions += 1
                    new_origin = self._reexpand(origin, context)
                    new_destination = self._reexpand(destination, context)
                    if new_origin is not None or new_destination is not None:
                        origin = new_origin or origin
                        destination = new_destination or destination
                        state = RouteState.TRY_MATRIX
                    else:
                        state = self._next_retry_state(context)

                elif state is RouteState.RETRY_WITH_GEOCODING:
                    context.geocode_retries += 1
                    geocoded = None
                    if not (origin.is_precise and destination.is_precise):
                        geocoded = self._geocode_endpoints(origin, destination, context)
                    if geocoded is None:
                        state = RouteState.FAILED
                    else:
                        origin, destination = geocoded
                        state = RouteState.TRY_MATRIX

                else:
                    raise self._failure(last_outcome, origin, destination)
        except CallBudgetExceeded as exc:
            raise MapsError(
                MapsErrorCode.UPSTREAM_INCONSISTENT,
                f"Gave up after {context.calls} external calls without a consistent answer: {exc}",
            ) from exc
        except ProviderUnavailableError as exc:
            # From the re-expansion and geocoding tiers.
            raise no_connectivity() from exc

    @staticmethod
    def _next_retry_state(context: CallContext) -> RouteState:
        if context.reexpansions < MAX_REEXPANSIONS:
            return RouteState.RETRY_WITH_REEXPANDED_LINKS
        if context.geocode_retries < MAX_GEOCODE_RETRIES:
            return RouteState.RETRY_WITH_GEOCODING
        return RouteState.FAILED

    def _try_routing(
        self, origin: ResolvedLocation, destination: ResolvedLocation, context: CallContext
    ) -> Optional[RouteResult]:
        try:
            data = self.client.directions(origin.as_query(), destination.as_query(), context)
        except ProviderUnavailableError as exc:
            if not exc.timed_out:
                raise no_connectivity() from exc
            logger.warning(f"Directions timed out, falling back to Distance Matrix: {exc}")
            return None
        except ProviderResponseError as exc:
            logger.warning(f"Directions request failed, falling back to Distance Matrix: {exc}")
            return None

        routes = data.get("routes")
        if data.get("status") != "OK" or not isinstance(routes, list) or not routes:
            logger.info(f"Directions returned status={data.get('status')}; falling back to Distance Matrix")
            return None

        best_leg: Optional[dict] = None
        shortest = math.inf
        for route in routes:
            leg = _first(route.get("legs")) if isinstance(route, dict) else None
            distance = ((leg or {}).get("distance") or {}).get("value")
            # Strict comparison keeps the first route seen on ties.
            if distance is not None and distance < shortest:
                best_leg, shortest = leg, distance
        if best_leg is None or not isinstance(best_leg.get("duration"), dict):
            logger.info("Directions routes carry no usable leg; falling back to Distance Matrix")
            return None

        result = RouteResult(
            distance_meters=int(best_leg["distance"]["value"]),
            distance_text=str(best_leg["distance"].get("text", "")),
            duration_seconds=int(best_leg["duration"].get("value", 0)),
            duration_text=str(best_leg["duration"].get("text", "")),
            source=RouteSource.ROUTING,
            origin_address=str(best_leg.get("start_address") or ""),
            destination_address=str(best_leg.get("end_address") or ""),
        )
        logger.info(
            f"Shortest of {len(routes)} Directions route(s): {result.distance_text} / {result.duration_text}"
        )
        return result

    def _try_matrix(
        self, origin: ResolvedLocation, destination: ResolvedLocation, context: CallContext
    ) -> MatrixOutcome:
        try:
            data = self.client.distance_matrix(origin.as_query(), destination.as_query(), context)
        except ProviderUnavailableError as exc:
            raise no_connectivity() from exc
        except ProviderResponseError as exc:
            raise MapsError(MapsErrorCode.UPSTREAM_ERROR, f"Distance Matrix request failed: {exc}") from exc

        status = data.get("status")
        if status != "OK":
            message = data.get("error_message") or f"Distance Matrix answered with status {status}."
            raise MapsError(MapsErrorCode.UPSTREAM_ERROR, message)

        element = _first((_first(data.get("rows")) or {}).get("elements"))
        if element is None:
            return MatrixOutcome(kind=MatrixOutcomeKind.INCONSISTENT, detail="status OK without an element")

        element_status = element.get("status")
        if element_status == "OK":
            distance, duration = element.get("distance") or {}, element.get("duration") or {}
            if "value" not in distance or "value" not in duration:
                return MatrixOutcome(
                    kind=MatrixOutcomeKind.INCONSISTENT,
                    element_status=element_status,
                    detail="element OK without distance/duration",
                )
            result = RouteResult(
                distance_meters=int(distance["value"]),
                distance_text=str(distance.get("text", "")),
                duration_seconds=int(duration["value"]),
                duration_text=str(duration.get("text", "")),
                source=RouteSource.MATRIX,
                origin_address=_first_text(data.get("origin_addresses")),
                destination_address=_first_text(data.get("destination_addresses")),
            )
            logger.info(f"Distance Matrix answered: {result.distance_text} / {result.duration_text}")
            return MatrixOutcome(kind=MatrixOutcomeKind.OK, result=result, element_status=element_status)
        if element_status in NO_PATH_STATUSES:
            return MatrixOutcome(kind=MatrixOutcomeKind.NO_PATH, element_status=element_status)
        if element_status in NOT_FOUND_STATUSES:
            return MatrixOutcome(kind=MatrixOutcomeKind.NOT_FOUND, element_status=element_status)
        return MatrixOutcome(
            kind=MatrixOutcomeKind.INCONSISTENT,
            element_status=element_status,
            detail=str(element.get("error_message") or ""),
        )

    def _reexpand(self, endpoint: ResolvedLocation, context: CallContext) -> Optional[ResolvedLocation]:
        """New location for an endpoint that is still a short link, or None if nothing changed."""
        representation = endpoint.representation
        if not isinstance(representation, RoutableString) or not is_short_link(representation.value):
            return None
        logger.info(f"Re-expanding short link {representation.value}")
        located = self.resolver.reexpand(representation.value, context)
        if located is None or located.as_query() == representation.value or is_short_link(located.as_query()):
            return None
        return located

    def _geocode_endpoints(
        self, origin: ResolvedLocation, destination: ResolvedLocation, context: CallContext
    ) -> Optional[tuple[ResolvedLocation, ResolvedLocation]]:
        """Endpoints with free text replaced by coordinates, or None if nothing could be improved.

        Coordinates and ``place_id:`` tokens are kept as they are.
        """
        geocoded = []
        changed = False
        for endpoint in (origin, destination):
            text = endpoint.as_query()
            if endpoint.is_precise or text.startswith("place_id:"):
                geocoded.append(endpoint)
                continue
            if looks_like_url(text):
                text = place_name_from_url(text) or text
            coordinates = self.resolver.geocoder.geocode(text, context)
            if coordinates is None:
                logger.info(f"Geocoding retry could not place {endpoint.as_query()}")
                return None
            geocoded.append(
                ResolvedLocation(
                    representation=coordinates,
                    precision_rank=TEXT_GEOCODE_RANK,
                    resolved_via=ResolvedVia.TEXT_GEOCODE,
                )
            )
            changed = True
        if not changed:
            return None
        return geocoded[0], geocoded[1]

    @staticmethod
    def _failure(
        outcome: Optional[MatrixOutcome], origin: ResolvedLocation, destination: ResolvedLocation
    ) -> MapsError:
        if outcome is not None and outcome.kind is MatrixOutcomeKind.INCONSISTENT:
            return MapsError(
                MapsErrorCode.UPSTREAM_INCONSISTENT,
                f"Distance Matrix kept answering inconsistently ({outcome.element_status or outcome.detail}).",
            )
        return MapsError(
            MapsErrorCode.ENDPOINT_NOT_FOUND,
            f"One of the addresses was not found. Origin: \"{origin.as_query()}\", "
            f"Destination: \"{destination.as_query()}\".",
        )

    @staticmethod
    def _succeed(result: RouteResult, origin: ResolvedLocation, destination: ResolvedLocation) -> RouteResult:
        logger.debug(f"Route state {RouteState.SUCCESS.value} via {result.source.value}")
        start, end = origin.coordinates, destination.coordinates
        if start is not None and end is not None:
            straight_line_m = haversine_km(start.lat, start.lng, end.lat, end.lng) * 1000.0
            if result.distance_meters < straight_line_m * 0.95:
                logger.warning(
                    f"{result.source.value} distance {result.distance_meters} m is shorter than the "
                    f"straight line ({straight_line_m:.0f} m)"
                )
        return result
