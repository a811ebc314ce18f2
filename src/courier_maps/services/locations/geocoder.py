"""Last-resort geocoding of free text and place names."""

from __future__ import annotations

import logging
import re
from typing import Optional, Protocol, Sequence

from ...config import settings
from ..context import CallContext
from ..errors import ProviderResponseError, ProviderUnavailableError
from .classifier import looks_like_url
from .extractor import in_range
from .models import Coordinates

logger = logging.getLogger(__name__)

_HAS_COORDINATES = re.compile(r"-?\d+\.\d+,\s*-?\d+\.\d+")


class GeocodeProvider(Protocol):
    def geocode(self, address: str, context: CallContext) -> dict: ...


def qualify_address(
    text: str,
    qualifier: str | None = None,
    region_hints: Sequence[str] | None = None,
) -> str:
    """Append the regional qualifier unless the text already pins down a region."""
    region = qualifier if qualifier is not None else settings.region_qualifier
    hints = region_hints if region_hints is not None else settings.region_hints
    cleaned = text.strip()
    if not region or looks_like_url(cleaned) or _HAS_COORDINATES.search(cleaned):
        return cleaned
    lowered = cleaned.lower()
    if region.lower() in lowered or any(hint in lowered for hint in hints):
        return cleaned
    # Three or more comma-separated parts reads as a complete address already.
    if len([part for part in cleaned.split(",") if part.strip()]) >= 3:
        return cleaned
    return f"{cleaned}, {region}"


class Geocoder:
    def __init__(
        self,
        client: GeocodeProvider,
        qualifier: str | None = None,
        region_hints: Sequence[str] | None = None,
    ) -> None:
        self.client = client
        self.qualifier = qualifier
        self.region_hints = region_hints

    def geocode(self, text: str, context: CallContext) -> Optional[Coordinates]:
        """Single upstream call, no retry; any non-OK outcome is None.

        A refused or unreachable connection propagates instead.
        """
        if not text or not text.strip():
            return None
        address = qualify_address(text, self.qualifier, self.region_hints)
        try:
            data = self.client.geocode(address, context)
        except ProviderUnavailableError as exc:
            if not exc.timed_out:
                raise
            logger.warning(f"Geocoding timed out for '{address}': {exc}")
            return None
        except ProviderResponseError as exc:
            logger.warning(f"Geocoding failed for '{address}': {exc}")
            return None

        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            logger.info(f"Geocoding found nothing for '{address}' (status={data.get('status')})")
            return None
        location = (results[0].get("geometry") or {}).get("location") or {}
        try:
            lat, lng = float(location["lat"]), float(location["lng"])
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Geocoding result for '{address}' has no usable location")
            return None
        if not in_range(lat, lng):
            return None
        logger.info(f"Geocoded '{address}' to {lat},{lng}")
        return Coordinates(lat=lat, lng=lng)
