"""Place-identifier and CID handling for expanded map links."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from ..context import CallContext
from ..errors import ProviderResponseError, ProviderUnavailableError
from .extractor import in_range
from .models import (
    PLACE_DETAILS_RANK,
    ROUTABLE_STRING_RANK,
    Coordinates,
    ResolvedLocation,
    ResolvedVia,
    RoutableString,
)

logger = logging.getLogger(__name__)

PLACE_TOKEN_PATTERNS = (
    re.compile(r"!4m2!3m1!1s([A-Za-z0-9_\-:]+)"),
    re.compile(r"!1s([A-Za-z0-9_\-:]+)"),
    re.compile(r"[?&]ftid=([A-Za-z0-9_\-:]+)"),
)
NUMERIC_CID_PATTERN = re.compile(r"[?&]cid=(\d+)")
HEX_PAIR_PATTERN = re.compile(r"^0x[0-9a-fA-F]+:0x([0-9a-fA-F]+)$")
PUBLIC_PLACE_ID_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_-]{15,}$")


class PlaceTokenShape(str, Enum):
    HEX_PAIR = "hex_pair"
    NUMERIC_CID = "numeric_cid"
    PUBLIC_PLACE_ID = "public_place_id"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True, slots=True)
class PlaceToken:
    value: str
    shape: PlaceTokenShape


class PlaceDetailsProvider(Protocol):
    def place_details(self, place_id: str, context: CallContext) -> dict: ...


def classify_token(token: str) -> PlaceTokenShape:
    if token.startswith("0x"):
        return PlaceTokenShape.HEX_PAIR if HEX_PAIR_PATTERN.match(token) else PlaceTokenShape.UNSUPPORTED
    if PUBLIC_PLACE_ID_PATTERN.match(token):
        return PlaceTokenShape.PUBLIC_PLACE_ID
    return PlaceTokenShape.UNSUPPORTED


def find_place_token(url: str) -> Optional[PlaceToken]:
    """First supported place token in the URL, else the first unsupported one seen."""
    unsupported: Optional[PlaceToken] = None
    for pattern in PLACE_TOKEN_PATTERNS:
        for match in pattern.finditer(url):
            token = PlaceToken(value=match.group(1), shape=classify_token(match.group(1)))
            if token.shape is not PlaceTokenShape.UNSUPPORTED:
                return token
            unsupported = unsupported or token
    cid = NUMERIC_CID_PATTERN.search(url)
    if cid:
        return PlaceToken(value=cid.group(1), shape=PlaceTokenShape.NUMERIC_CID)
    return unsupported


def decode_cid(token: str) -> Optional[int]:
    """Decode the customer id from a ``0x<feature>:0x<cid>`` pair.

    Only the two-part shape is understood; anything else returns None.
    """
    match = HEX_PAIR_PATTERN.match(token)
    if not match:
        return None
    return int(match.group(1), 16)


def _cid_location(cid: int | str) -> ResolvedLocation:
    return ResolvedLocation(
        representation=RoutableString(f"place_id:{cid}"),
        precision_rank=ROUTABLE_STRING_RANK,
        resolved_via=ResolvedVia.CID_DECODE,
    )


class PlaceResolver:
    def __init__(self, client: PlaceDetailsProvider) -> None:
        self.client = client

    def resolve_offline(self, url: str) -> Optional[ResolvedLocation]:
        """CID decoding only; never touches the network."""
        token = find_place_token(url)
        if token is None:
            return None
        if token.shape is PlaceTokenShape.HEX_PAIR:
            cid = decode_cid(token.value)
            logger.info(f"Decoded CID {cid} from internal place id {token.value}")
            return _cid_location(cid)
        if token.shape is PlaceTokenShape.NUMERIC_CID:
            return _cid_location(token.value)
        return None

    def resolve_place_token(self, url: str, context: CallContext) -> Optional[ResolvedLocation]:
        token = find_place_token(url)
        if token is None:
            return None
        if token.shape is PlaceTokenShape.UNSUPPORTED:
            logger.warning(f"Unsupported place identifier shape '{token.value}' in {url}")
            return None
        if token.shape is not PlaceTokenShape.PUBLIC_PLACE_ID:
            return self.resolve_offline(url)

        coordinates = self._place_details(token.value, context)
        if coordinates is not None:
            return ResolvedLocation(
                representation=coordinates,
                precision_rank=PLACE_DETAILS_RANK,
                resolved_via=ResolvedVia.PLACE_ID_GEOCODE,
            )
        # The routing endpoints accept place_id: tokens directly.
        return ResolvedLocation(
            representation=RoutableString(f"place_id:{token.value}"),
            precision_rank=ROUTABLE_STRING_RANK,
            resolved_via=ResolvedVia.PLACE_ID_GEOCODE,
        )

    def _place_details(self, place_id: str, context: CallContext) -> Optional[Coordinates]:
        try:
            data = self.client.place_details(place_id, context)
        except ProviderUnavailableError as exc:
            if not exc.timed_out:
                raise
            logger.warning(f"Place details lookup timed out for {place_id}: {exc}")
            return None
        except ProviderResponseError as exc:
            logger.warning(f"Place details lookup failed for {place_id}: {exc}")
            return None
        location = ((data.get("result") or {}).get("geometry") or {}).get("location") or {}
        if data.get("status") != "OK" or "lat" not in location or "lng" not in location:
            logger.warning(f"Place details returned no coordinates for {place_id} (status={data.get('status')})")
            return None
        lat, lng = float(location["lat"]), float(location["lng"])
        if not in_range(lat, lng):
            return None
        logger.info(f"Place details resolved {place_id} to {lat},{lng}")
        return Coordinates(lat=lat, lng=lng)
