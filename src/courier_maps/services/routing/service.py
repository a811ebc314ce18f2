"""Maps orchestration service."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence

from ...config import settings
from ..cache import TTLCache
from ..context import CallContext
from ..errors import (
    CallBudgetExceeded,
    MapsError,
    MapsErrorCode,
    ProviderUnavailableError,
    ResolutionCancelled,
)
from ..locations.classifier import looks_like_url
from ..locations.expander import LinkExpander
from ..locations.geocoder import Geocoder
from ..locations.models import Coordinates, ReferenceKind, ResolvedLocation
from ..locations.place_resolver import PlaceResolver
from ..locations.resolver import LocationResolver
from .calculator import RouteCalculator
from .maps_client import GoogleMapsClient
from .models import RouteResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReferenceValidation:
    valid: bool
    kind: ReferenceKind
    coordinates: Optional[Coordinates] = None
    reason: Optional[str] = None
    resolved_via: Optional[str] = None


def _cancelled(exc: ResolutionCancelled) -> MapsError:
    return MapsError(MapsErrorCode.CANCELLED, str(exc) or "Request was cancelled.")


class MapsService:
    """Wires the resolver, the route calculator and both result caches together."""

    def __init__(
        self,
        client: GoogleMapsClient | None = None,
        link_cache: TTLCache | None = None,
        route_cache: TTLCache | None = None,
    ) -> None:
        self.client = client if client is not None else GoogleMapsClient()
        self.link_cache = (
            link_cache
            if link_cache is not None
            else TTLCache(settings.link_cache_ttl_seconds, settings.link_cache_capacity, name="links")
        )
        self.route_cache = (
            route_cache
            if route_cache is not None
            else TTLCache(settings.route_cache_ttl_seconds, settings.route_cache_capacity, name="routes")
        )
        self.geocoder = Geocoder(self.client, settings.region_qualifier, settings.region_hints)
        self.resolver = LocationResolver(
            expander=LinkExpander(self.client, settings.redirect_hop_budget),
            place_resolver=PlaceResolver(self.client),
            geocoder=self.geocoder,
            cache=self.link_cache,
            sentinels=settings.unresolvable_sentinels,
        )
        self.calculator = RouteCalculator(self.client, self.resolver)

    def resolve(self, raw: str, cancel_event: threading.Event | None = None) -> ResolvedLocation:
        context = CallContext(
            max_calls=settings.max_calls_per_resolution,
            cancel_event=cancel_event or threading.Event(),
        )
        try:
            return self.resolver.resolve(raw, context)
        except ResolutionCancelled as exc:
            raise _cancelled(exc) from exc

    def validate_reference(self, raw: str) -> ReferenceValidation:
        """Whether a reference can be turned into something routable, and what it resolves to."""
        reference = self.resolver.classify(raw)
        if reference.kind is ReferenceKind.UNRESOLVABLE:
            return ReferenceValidation(
                valid=False,
                kind=reference.kind,
                reason="Not a coordinate pair, a Google Maps link or an address.",
            )
        context = CallContext(max_calls=settings.max_calls_per_resolution)
        location = self.resolver.resolve_reference(reference, context)
        return ReferenceValidation(
            valid=True,
            kind=reference.kind,
            coordinates=location.coordinates,
            resolved_via=location.resolved_via.value,
        )

    def compute_route(
        self,
        origin: str,
        destination: str,
        cancel_event: threading.Event | None = None,
    ) -> RouteResult:
        origin_ref = self.resolver.classify(origin)
        destination_ref = self.resolver.classify(destination)
        key = (origin_ref.normalized, destination_ref.normalized)

        cached = self.route_cache.get(key)
        if cached is not None:
            logger.debug(f"Route cache hit for {key[0]} -> {key[1]}")
            return cached

        context = CallContext(
            max_calls=settings.max_calls_per_route,
            cancel_event=cancel_event or threading.Event(),
        )
        try:
            with context.sub_budget(settings.max_calls_per_resolution):
                origin_location = self.resolver.resolve_reference(origin_ref, context)
            with context.sub_budget(settings.max_calls_per_resolution):
                destination_location = self.resolver.resolve_reference(destination_ref, context)
            result = self.calculator.calculate(origin_location, destination_location, context)
            context.raise_if_cancelled()
        except ResolutionCancelled as exc:
            logger.info(f"Route {key[0]} -> {key[1]} cancelled after {context.calls} external call(s)")
            raise _cancelled(exc) from exc

        self.route_cache.put(key, result)
        logger.info(
            f"Route {key[0]} -> {key[1]}: {result.distance_meters} m via {result.source.value} "
            f"({context.calls} external call(s): {', '.join(context.labels) or 'none'})"
        )
        return result

    def urls_to_coordinates(self, references: Sequence[str]) -> list[Optional[Coordinates]]:
        """Best-effort coordinates for map overlays; None where a reference cannot be placed."""
        coordinates: list[Optional[Coordinates]] = []
        for raw in references:
            coordinates.append(self._coordinates_for(raw))
        return coordinates

    def _coordinates_for(self, raw: str) -> Optional[Coordinates]:
        context = CallContext(max_calls=settings.max_calls_per_resolution)
        try:
            location = self.resolver.resolve(raw, context)
            if location.is_precise:
                return location.coordinates
            query = location.as_query()
            # place_id: strings and unexpanded links cannot be geocoded as addresses.
            if looks_like_url(query) or query.startswith("place_id:"):
                return None
            return self.geocoder.geocode(query, context)
        except MapsError as exc:
            logger.info(f"No coordinates for '{raw}': {exc.message}")
            return None
        except CallBudgetExceeded:
            logger.warning(f"Call budget exhausted while placing '{raw}' on the map")
            return None
        except ProviderUnavailableError as exc:
            logger.warning(f"Google Maps unreachable while placing '{raw}' on the map: {exc}")
            return None

    def cache_stats(self) -> dict:
        return {"links": self.link_cache.stats(), "routes": self.route_cache.stats()}


@lru_cache(maxsize=1)
def get_maps_service() -> MapsService:
    return MapsService()
