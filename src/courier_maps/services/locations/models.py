"""Location domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

# Lower is more precise.
DIRECT_COORDINATES_RANK = 0
PLACE_DETAILS_RANK = 1
TEXT_GEOCODE_RANK = 20
ROUTABLE_STRING_RANK = 100


class ReferenceKind(str, Enum):
    COORDINATES = "Coordinates"
    SHORT_LINK = "ShortLink"
    LONG_LINK_WITH_COORDS = "LongLinkWithCoords"
    LONG_LINK_PLACE_ONLY = "LongLinkPlaceOnly"
    FREE_TEXT = "FreeText"
    UNRESOLVABLE = "Unresolvable"


class ResolvedVia(str, Enum):
    DIRECT_EXTRACTION = "DirectExtraction"
    EXPANDED_LINK_EXTRACTION = "ExpandedLinkExtraction"
    PLACE_ID_GEOCODE = "PlaceIdGeocode"
    CID_DECODE = "CidDecode"
    TEXT_GEOCODE = "TextGeocode"
    ORIGINAL_LINK_PASSTHROUGH = "OriginalLinkPassthrough"


@dataclass(frozen=True, slots=True)
class LocationReference:
    raw: str
    normalized: str
    kind: ReferenceKind


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float

    def as_query(self) -> str:
        return f"{self.lat},{self.lng}"


@dataclass(frozen=True, slots=True)
class RoutableString:
    """Opaque value the provider may still route (a cleaned URL, ``place_id:...``, an address)."""

    value: str

    def as_query(self) -> str:
        return self.value


Representation = Union[Coordinates, RoutableString]


@dataclass(frozen=True, slots=True)
class ResolvedLocation:
    representation: Representation
    precision_rank: int
    resolved_via: ResolvedVia

    @property
    def is_precise(self) -> bool:
        return isinstance(self.representation, Coordinates)

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if isinstance(self.representation, Coordinates):
            return self.representation
        return None

    def as_query(self) -> str:
        return self.representation.as_query()


@dataclass(frozen=True, slots=True)
class ExpandedResult:
    """Outcome of following a short link; ``final_url`` is None when expansion failed."""

    final_url: Optional[str]
    coordinates: Optional[Coordinates] = None
    precision_rank: Optional[int] = None
    hops: int = 0

    @property
    def succeeded(self) -> bool:
        return self.final_url is not None
