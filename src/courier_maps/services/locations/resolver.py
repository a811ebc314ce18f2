"""Location reference resolution pipeline.

raw reference -> classify -> (extract | expand -> extract | place/CID | geocode)
-> ResolvedLocation. Every path ends in something routable; when nothing
precise is found the cleaned original reference is passed through.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional
from urllib.parse import parse_qs, unquote_plus, urlsplit

from ..cache import ResultCache
from ..context import CallContext
from ..errors import (
    CallBudgetExceeded,
    MapsError,
    MapsErrorCode,
    ProviderUnavailableError,
    no_connectivity,
)
from .classifier import classify, parse_coordinate_pair
from .expander import LinkExpander
from .extractor import extract
from .geocoder import Geocoder
from .models import (
    DIRECT_COORDINATES_RANK,
    ROUTABLE_STRING_RANK,
    TEXT_GEOCODE_RANK,
    Coordinates,
    LocationReference,
    ReferenceKind,
    ResolvedLocation,
    ResolvedVia,
    RoutableString,
)
from .place_resolver import PlaceResolver

logger = logging.getLogger(__name__)

_PATH_NAME_PATTERNS = (
    re.compile(r"/place/([^/?#]+)"),
    re.compile(r"/search/([^/?#]+)"),
)


def place_name_from_url(url: str) -> Optional[str]:
    """Decoded place name from ``/place/<name>``, ``/search/<name>`` or a ``query=`` parameter."""
    for pattern in _PATH_NAME_PATTERNS:
        match = pattern.search(url)
        if match:
            name = unquote_plus(match.group(1)).strip()
            if name and not name.startswith("@") and parse_coordinate_pair(name) is None:
                return name
    query = parse_qs(urlsplit(url).query)
    for key in ("query", "q"):
        values = query.get(key)
        if values and values[0].strip() and parse_coordinate_pair(values[0]) is None:
            return values[0].strip()
    return None


def passthrough(value: str) -> ResolvedLocation:
    return ResolvedLocation(
        representation=RoutableString(value),
        precision_rank=ROUTABLE_STRING_RANK,
        resolved_via=ResolvedVia.ORIGINAL_LINK_PASSTHROUGH,
    )


class LocationResolver:
    def __init__(
        self,
        expander: LinkExpander,
        place_resolver: PlaceResolver,
        geocoder: Geocoder,
        cache: ResultCache[str, ResolvedLocation] | None = None,
        sentinels: Iterable[str] | None = None,
    ) -> None:
        self.expander = expander
        self.place_resolver = place_resolver
        self.geocoder = geocoder
        self.cache = cache
        self.sentinels = tuple(sentinels) if sentinels is not None else None

    def classify(self, raw: str) -> LocationReference:
        return classify(raw, self.sentinels)

    def resolve(self, raw: str, context: CallContext) -> ResolvedLocation:
        reference = self.classify(raw)
        return self.resolve_reference(reference, context)

    def resolve_reference(self, reference: LocationReference, context: CallContext) -> ResolvedLocation:
        if reference.kind is ReferenceKind.UNRESOLVABLE:
            raise MapsError(
                MapsErrorCode.UNRESOLVABLE_REFERENCE,
                f"'{reference.raw}' is not a coordinate pair, a map link or an address.",
            )
        if reference.kind is ReferenceKind.COORDINATES:
            lat, lng = parse_coordinate_pair(reference.normalized)
            return ResolvedLocation(
                representation=Coordinates(lat=lat, lng=lng),
                precision_rank=DIRECT_COORDINATES_RANK,
                resolved_via=ResolvedVia.DIRECT_EXTRACTION,
            )

        if self.cache is not None:
            cached = self.cache.get(reference.normalized)
            if cached is not None:
                logger.debug(f"Link cache hit for {reference.normalized}")
                return cached

        try:
            location = self._resolve_uncached(reference, context)
        except CallBudgetExceeded:
            logger.warning(f"Call budget exhausted while resolving {reference.normalized}; passing it through")
            return passthrough(reference.normalized)
        except ProviderUnavailableError as exc:
            logger.warning(f"Google Maps unreachable while resolving {reference.normalized}: {exc}")
            raise no_connectivity() from exc

        context.raise_if_cancelled()
        if self.cache is not None and location.resolved_via is not ResolvedVia.ORIGINAL_LINK_PASSTHROUGH:
            self.cache.put(reference.normalized, location)
        logger.info(
            f"Resolved {reference.kind.value} '{reference.normalized}' via {location.resolved_via.value} "
            f"-> {location.as_query()}"
        )
        return location

    def _resolve_uncached(self, reference: LocationReference, context: CallContext) -> ResolvedLocation:
        kind = reference.kind
        if kind is ReferenceKind.LONG_LINK_WITH_COORDS:
            coordinates, rank = extract(reference.normalized)
            return ResolvedLocation(
                representation=coordinates, precision_rank=rank, resolved_via=ResolvedVia.DIRECT_EXTRACTION
            )
        if kind is ReferenceKind.SHORT_LINK:
            return self._resolve_short_link(reference.normalized, context)
        if kind is ReferenceKind.LONG_LINK_PLACE_ONLY:
            return self._resolve_place_page(reference.normalized, reference.normalized, context)
        return self._geocode_or_passthrough(reference.normalized, reference.normalized, context)

    def _resolve_short_link(self, url: str, context: CallContext) -> ResolvedLocation:
        expanded = self.expander.expand(url, context)
        if not expanded.succeeded:
            # The routing provider can sometimes resolve short links the client cannot.
            return passthrough(url)
        if expanded.coordinates is not None:
            return ResolvedLocation(
                representation=expanded.coordinates,
                precision_rank=expanded.precision_rank,
                resolved_via=ResolvedVia.EXPANDED_LINK_EXTRACTION,
            )
        return self._resolve_place_page(expanded.final_url, url, context)

    def _resolve_place_page(self, url: str, fallback: str, context: CallContext) -> ResolvedLocation:
        located = self.place_resolver.resolve_place_token(url, context)
        if located is not None:
            return located
        name = place_name_from_url(url)
        if name:
            return self._geocode_or_passthrough(name, fallback, context)
        return passthrough(fallback)

    def _geocode_or_passthrough(self, text: str, fallback: str, context: CallContext) -> ResolvedLocation:
        coordinates = self.geocoder.geocode(text, context)
        if coordinates is None:
            return passthrough(fallback)
        return ResolvedLocation(
            representation=coordinates, precision_rank=TEXT_GEOCODE_RANK, resolved_via=ResolvedVia.TEXT_GEOCODE
        )

    def reexpand(self, short_link: str, context: CallContext) -> Optional[ResolvedLocation]:
        """Expand a short link again without place-details or geocoding lookups."""
        expanded = self.expander.expand(short_link, context)
        if not expanded.succeeded:
            return None
        if expanded.coordinates is not None:
            return ResolvedLocation(
                representation=expanded.coordinates,
                precision_rank=expanded.precision_rank,
                resolved_via=ResolvedVia.EXPANDED_LINK_EXTRACTION,
            )
        decoded = self.place_resolver.resolve_offline(expanded.final_url)
        if decoded is not None:
            return decoded
        return ResolvedLocation(
            representation=RoutableString(expanded.final_url),
            precision_rank=ROUTABLE_STRING_RANK,
            resolved_via=ResolvedVia.EXPANDED_LINK_EXTRACTION,
        )
