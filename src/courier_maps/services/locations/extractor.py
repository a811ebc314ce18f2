"""Coordinate extraction from map URLs.

The rule table is ordered from the most to the least precise marker. The
first rule that matches wins, so a place-level pair beats the viewport pair
that usually sits earlier in the same URL.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Pattern

from .models import Coordinates

logger = logging.getLogger(__name__)

_NUM = r"(-?\d+\.\d+)"


@dataclass(frozen=True, slots=True)
class ExtractionRule:
    label: str
    pattern: Pattern[str]
    rank: int


EXTRACTION_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule("place marker (!8m2!3d!4d)", re.compile(rf"!8m2!3d{_NUM}!4d{_NUM}"), 1),
    ExtractionRule("internal marker (!3d!4d)", re.compile(rf"!3d{_NUM}!4d{_NUM}"), 2),
    ExtractionRule("search path (/search/lat,lng)", re.compile(rf"/search/{_NUM},\+?{_NUM}"), 3),
    ExtractionRule("query parameter (q=)", re.compile(rf"(?:^|[?&])(?:q|query)={_NUM},\+?{_NUM}"), 4),
    ExtractionRule("query parameter (ll=)", re.compile(rf"(?:^|[?&])ll={_NUM},{_NUM}"), 5),
    ExtractionRule("query parameter (center=)", re.compile(rf"(?:^|[?&])center={_NUM},{_NUM}"), 6),
    ExtractionRule("viewport with zoom (@lat,lng,zoom)", re.compile(rf"@{_NUM},{_NUM},[\d.]+[a-z]?"), 7),
    ExtractionRule("viewport (@lat,lng)", re.compile(rf"@{_NUM},{_NUM}"), 8),
    ExtractionRule("path coordinates (/lat,lng)", re.compile(rf"/{_NUM},{_NUM}"), 9),
)


def in_range(lat: float, lng: float) -> bool:
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def extract(url: str) -> Optional[tuple[Coordinates, int]]:
    """Return the coordinates recovered by the first matching rule and its precision rank."""
    if not url:
        return None
    for rule in EXTRACTION_RULES:
        match = rule.pattern.search(url)
        if not match:
            continue
        lat, lng = float(match.group(1)), float(match.group(2))
        if not in_range(lat, lng):
            logger.debug(f"Skipping out-of-range pair from rule '{rule.label}': {lat},{lng}")
            continue
        logger.debug(f"Coordinates {lat},{lng} matched rule '{rule.label}' (rank {rule.rank})")
        return Coordinates(lat=lat, lng=lng), rule.rank
    return None
