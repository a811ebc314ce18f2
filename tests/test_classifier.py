import pytest

from courier_maps.services.locations.classifier import classify, normalize
from courier_maps.services.locations.models import ReferenceKind

SENTINELS = ("cliente avisa",)


def _kind(raw: str) -> ReferenceKind:
    return classify(raw, SENTINELS).kind


def test_coordinate_pair_is_normalized_and_classified():
    reference = classify("  -17.3935 , -66.1570 ", SENTINELS)

    assert reference.kind is ReferenceKind.COORDINATES
    assert reference.normalized == "-17.3935,-66.157"
    assert reference.raw == "  -17.3935 , -66.1570 "


def test_bracketed_coordinates_are_stripped():
    assert _kind("(-17.3935, -66.1570)") is ReferenceKind.COORDINATES


def test_out_of_range_pair_is_not_coordinates():
    assert _kind("95.5,10.0") is not ReferenceKind.COORDINATES


def test_short_link_drops_tracking_query():
    reference = classify("https://maps.app.goo.gl/AbCdEf123?g_st=iw", SENTINELS)

    assert reference.kind is ReferenceKind.SHORT_LINK
    assert reference.normalized == "https://maps.app.goo.gl/AbCdEf123"


def test_short_link_without_scheme_gets_https():
    assert normalize("maps.app.goo.gl/AbCdEf123") == "https://maps.app.goo.gl/AbCdEf123"


def test_glued_short_links_keep_the_last_one():
    reference = classify("https://maps.app.goo.gl/abchttps://maps.app.goo.gl/xyz", SENTINELS)

    assert reference.kind is ReferenceKind.SHORT_LINK
    assert reference.normalized == "https://maps.app.goo.gl/xyz"


def test_link_embedded_in_chat_text_is_extracted():
    raw = "Ubicación: https://www.google.com/maps/place/Mercado/@-17.3900,-66.1500,17z gracias"
    reference = classify(raw, SENTINELS)

    assert reference.kind is ReferenceKind.LONG_LINK_WITH_COORDS
    assert reference.normalized == "https://www.google.com/maps/place/Mercado/@-17.3900,-66.1500,17z"


def test_long_link_without_coordinates_is_place_only():
    assert _kind("https://www.google.com/maps/place/Plaza+Principal") is ReferenceKind.LONG_LINK_PLACE_ONLY


def test_unknown_url_is_unresolvable():
    assert _kind("https://example.com/where/we/meet") is ReferenceKind.UNRESOLVABLE


@pytest.mark.parametrize("raw", ["", "   ", "--", "ab", "Cliente avisa", "  CLIENTE AVISA "])
def test_garbage_and_sentinels_are_unresolvable(raw):
    assert _kind(raw) is ReferenceKind.UNRESOLVABLE


def test_free_text_collapses_whitespace():
    reference = classify("Av.  Heroínas   123,  Cochabamba", SENTINELS)

    assert reference.kind is ReferenceKind.FREE_TEXT
    assert reference.normalized == "Av. Heroínas 123, Cochabamba"
