from courier_maps.services.locations.extractor import EXTRACTION_RULES, extract
from courier_maps.services.locations.models import Coordinates


def test_place_marker_beats_viewport():
    url = (
        "https://www.google.com/maps/place/Mercado+La+Cancha/@-17.3900,-66.1500,17z/"
        "data=!3m1!4b1!4m6!3m5!1s0x93e373:0x1a2b!8m2!3d-17.3935!4d-66.157!16s"
    )

    coordinates, rank = extract(url)

    assert coordinates == Coordinates(lat=-17.3935, lng=-66.157)
    assert rank == 1


def test_viewport_with_zoom():
    coordinates, rank = extract("https://www.google.com/maps/@-17.39,-66.15,15z")

    assert coordinates == Coordinates(lat=-17.39, lng=-66.15)
    assert rank == 7


def test_search_path_and_query_parameters():
    assert extract("https://www.google.com/maps/search/-17.39,+-66.15")[1] == 3
    assert extract("https://maps.google.com/?q=-17.39,-66.15")[1] == 4
    assert extract("https://maps.google.com/?ll=-17.39,-66.15&z=14")[1] == 5


def test_out_of_range_pairs_are_skipped():
    coordinates, rank = extract("https://www.google.com/maps/@95.5,10.0,15z/dir/-17.1,-66.1")

    assert coordinates == Coordinates(lat=-17.1, lng=-66.1)
    assert rank == 9


def test_no_coordinates_returns_none():
    assert extract("https://www.google.com/maps/place/Plaza+Principal") is None
    assert extract("") is None


def test_rule_ranks_follow_table_order():
    assert [rule.rank for rule in EXTRACTION_RULES] == list(range(1, len(EXTRACTION_RULES) + 1))
