"""Classification of raw, copy-pasted location references."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from ...config import settings
from .extractor import extract, in_range
from .models import LocationReference, ReferenceKind

SHORT_LINK_HOSTS: tuple[str, ...] = (
    "maps.app.goo.gl",
    "goo.gl/maps",
    "goo.gl/",
    "g.co/kgs/",
)
LONG_LINK_HOSTS: tuple[str, ...] = (
    "google.com/maps",
    "google.com.bo/maps",
    "maps.google.",
)

_LEADING_JUNK = " \t\r\n([<{\"'@"
_TRAILING_JUNK = " \t\r\n)]>}\"'.,;"
_COORDINATE_PAIR = re.compile(r"^([-+]?\d{1,2}\.\d+)\s*,\s*([-+]?\d{1,3}\.\d+)$")
# Splits "https://a/xhttps://b/y" into its glued parts.
_URL_PIECE = re.compile(r"https?://.*?(?=https?://|$)")
_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def is_short_link(value: str) -> bool:
    lowered = value.lower()
    return any(host in lowered for host in SHORT_LINK_HOSTS)


def is_long_link(value: str) -> bool:
    lowered = value.lower()
    return any(host in lowered for host in LONG_LINK_HOSTS)


def is_maps_link(value: str) -> bool:
    return is_short_link(value) or is_long_link(value)


def looks_like_url(value: str) -> bool:
    lowered = value.lower()
    return "http://" in lowered or "https://" in lowered or is_maps_link(value)


def parse_coordinate_pair(value: str) -> Optional[tuple[float, float]]:
    match = _COORDINATE_PAIR.match(value.strip())
    if not match:
        return None
    lat, lng = float(match.group(1)), float(match.group(2))
    if not in_range(lat, lng):
        return None
    return lat, lng


def _strip_junk(value: str) -> str:
    return value.strip().lstrip(_LEADING_JUNK).rstrip(_TRAILING_JUNK).strip()


def _pick_maps_url(text: str) -> Optional[str]:
    """Find a maps URL inside surrounding text; of glued links keep the last one."""
    for token in text.split():
        pieces = [_strip_junk(piece) for piece in _URL_PIECE.findall(token)]
        candidates = [piece for piece in pieces if piece and is_maps_link(piece)]
        if candidates:
            return candidates[-1]
    return None


def normalize(raw: str) -> str:
    """Canonical form used for classification and as cache key."""
    text = _strip_junk(raw or "")
    if not text:
        return ""
    url = _pick_maps_url(text)
    if url is None and is_maps_link(text) and " " not in text:
        url = text if _SCHEME.match(text) else f"https://{text}"
    if url is not None:
        if is_short_link(url):
            url = url.split("?", 1)[0].split("#", 1)[0]
        return url.rstrip(_TRAILING_JUNK)
    pair = parse_coordinate_pair(text)
    if pair is not None:
        return f"{pair[0]},{pair[1]}"
    return " ".join(text.split())


def classify(raw: str, sentinels: Iterable[str] | None = None) -> LocationReference:
    """Tag a raw reference; pure, no network access."""
    normalized = normalize(raw)
    sentinel_values = tuple(sentinels) if sentinels is not None else settings.unresolvable_sentinels

    def _tag(kind: ReferenceKind) -> LocationReference:
        return LocationReference(raw=raw, normalized=normalized, kind=kind)

    if len(normalized) < 3 or not any(ch.isalnum() for ch in normalized):
        return _tag(ReferenceKind.UNRESOLVABLE)
    if normalized.lower() in sentinel_values:
        return _tag(ReferenceKind.UNRESOLVABLE)
    # Coordinates first: they never need the network.
    if parse_coordinate_pair(normalized) is not None:
        return _tag(ReferenceKind.COORDINATES)
    if is_short_link(normalized):
        return _tag(ReferenceKind.SHORT_LINK)
    if is_long_link(normalized):
        if extract(normalized) is not None:
            return _tag(ReferenceKind.LONG_LINK_WITH_COORDS)
        return _tag(ReferenceKind.LONG_LINK_PLACE_ONLY)
    if _SCHEME.match(normalized):
        return _tag(ReferenceKind.UNRESOLVABLE)
    return _tag(ReferenceKind.FREE_TEXT)
